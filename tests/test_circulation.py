from datetime import timedelta

import pytest
from sqlalchemy.exc import IntegrityError

from lending import circulation
from lending.errors import AlreadyBorrowed, BookNotFound, NotBorrowedByUser
from lending.models import Book, Borrowing, User


@pytest.fixture
def library(db_session):
    alice = User(username="alice", hashed_password="x", role="user")
    bob = User(username="bob", hashed_password="x", role="user")
    book = Book(title="Dune", author="Frank Herbert")
    db_session.add_all([alice, bob, book])
    db_session.commit()
    return {"alice": alice, "bob": bob, "book": book}


def borrowing_count(db):
    return db.query(Borrowing).count()


def test_borrow_creates_open_borrowing_due_in_two_weeks(db_session, library):
    borrowing = circulation.borrow(db_session, library["book"].id, library["alice"])

    assert borrowing.returned is False
    assert borrowing.user_id == library["alice"].id
    assert borrowing.book_id == library["book"].id
    assert borrowing.due_date == borrowing.created_at.date() + timedelta(days=14)
    assert borrowing_count(db_session) == 1


def test_borrow_already_borrowed_creates_nothing(db_session, library):
    book_id = library["book"].id
    circulation.borrow(db_session, book_id, library["alice"])

    with pytest.raises(AlreadyBorrowed):
        circulation.borrow(db_session, book_id, library["bob"])
    assert borrowing_count(db_session) == 1


def test_borrow_missing_book(db_session, library):
    with pytest.raises(BookNotFound):
        circulation.borrow(db_session, 999, library["alice"])
    assert borrowing_count(db_session) == 0


def test_return_flips_flag_only(db_session, library):
    book_id = library["book"].id
    borrowing = circulation.borrow(db_session, book_id, library["alice"])

    returned = circulation.return_book(db_session, book_id, library["alice"])

    assert returned.id == borrowing.id
    assert returned.returned is True
    assert borrowing_count(db_session) == 1


def test_return_not_borrowed_by_user_mutates_nothing(db_session, library):
    book_id = library["book"].id
    borrowing = circulation.borrow(db_session, book_id, library["alice"])

    with pytest.raises(NotBorrowedByUser):
        circulation.return_book(db_session, book_id, library["bob"])

    db_session.refresh(borrowing)
    assert borrowing.returned is False
    assert borrowing_count(db_session) == 1


def test_return_never_borrowed_book(db_session, library):
    with pytest.raises(NotBorrowedByUser):
        circulation.return_book(db_session, library["book"].id, library["alice"])


def test_return_missing_book(db_session, library):
    with pytest.raises(BookNotFound):
        circulation.return_book(db_session, 999, library["alice"])


def test_book_status_tracks_open_borrowing(db_session, library):
    book_id = library["book"].id
    assert circulation.book_status(db_session, book_id) == (False, None)

    circulation.borrow(db_session, book_id, library["alice"])
    status = circulation.book_status(db_session, book_id)
    assert status.borrowed is True
    assert status.borrower.username == "alice"

    circulation.return_book(db_session, book_id, library["alice"])
    status = circulation.book_status(db_session, book_id)
    assert status.borrowed is False
    assert status.borrower is None


def test_book_status_missing_book(db_session, library):
    with pytest.raises(BookNotFound):
        circulation.book_status(db_session, 999)


def test_alice_and_bob(db_session, library):
    alice, bob = library["alice"], library["bob"]
    book_id = library["book"].id

    circulation.borrow(db_session, book_id, alice)
    assert circulation.book_status(db_session, book_id) == (True, alice)

    with pytest.raises(AlreadyBorrowed):
        circulation.borrow(db_session, book_id, bob)
    assert borrowing_count(db_session) == 1

    with pytest.raises(NotBorrowedByUser):
        circulation.return_book(db_session, book_id, bob)

    circulation.return_book(db_session, book_id, alice)
    assert circulation.book_status(db_session, book_id) == (False, None)


def test_borrow_again_after_return_keeps_history(db_session, library):
    book_id = library["book"].id
    first = circulation.borrow(db_session, book_id, library["alice"])
    circulation.return_book(db_session, book_id, library["alice"])

    second = circulation.borrow(db_session, book_id, library["bob"])

    assert second.id != first.id
    assert borrowing_count(db_session) == 2
    assert library["book"].current_borrower.username == "bob"


def test_list_open_borrowings(db_session, library):
    alice = library["alice"]
    other = Book(title="Emma", author="Jane Austen")
    db_session.add(other)
    db_session.commit()

    circulation.borrow(db_session, library["book"].id, alice)
    circulation.borrow(db_session, other.id, alice)
    circulation.return_book(db_session, library["book"].id, alice)

    open_borrowings = circulation.list_open_borrowings(db_session, alice)
    assert [b.book_id for b in open_borrowings] == [other.id]
    assert circulation.list_open_borrowings(db_session, library["bob"]) == []


def test_database_rejects_second_open_borrowing(db_session, library):
    book = library["book"]
    due = circulation.borrow(db_session, book.id, library["alice"]).due_date

    db_session.add(Borrowing(book_id=book.id, user_id=library["bob"].id, due_date=due))
    with pytest.raises(IntegrityError):
        db_session.commit()
    db_session.rollback()


def test_database_allows_many_returned_borrowings(db_session, library):
    book = library["book"]
    for user in (library["alice"], library["bob"], library["alice"]):
        circulation.borrow(db_session, book.id, user)
        circulation.return_book(db_session, book.id, user)
    assert borrowing_count(db_session) == 3
    assert book.is_borrowed is False


def test_borrow_race_is_reported_as_already_borrowed(db_session, library, monkeypatch):
    book_id = library["book"].id
    circulation.borrow(db_session, book_id, library["alice"])

    # the existence check misses the other request's borrowing
    monkeypatch.setattr(Book, "is_borrowed", property(lambda self: False))
    with pytest.raises(AlreadyBorrowed):
        circulation.borrow(db_session, book_id, library["bob"])

    assert borrowing_count(db_session) == 1
