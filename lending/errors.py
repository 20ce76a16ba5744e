class LendingError(Exception):
    """Base class for refused lending operations."""

    status_code = 400
    message = "Lending operation failed."

    def __init__(self, book_id):
        super().__init__(self.message)
        self.book_id = book_id


class BookNotFound(LendingError):
    status_code = 404
    message = "Book not found."


class AlreadyBorrowed(LendingError):
    message = "This book is already borrowed."


class NotBorrowedByUser(LendingError):
    message = "You did not borrow this book."
