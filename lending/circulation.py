"""Borrow and return transitions for books.

A book is out on loan while it has a Borrowing with ``returned`` false.
Borrowing rows are never deleted, returning a book only flips the flag.
"""
import logging
from datetime import datetime, timedelta, UTC
from typing import List, NamedTuple, Optional

from sqlalchemy import false
from sqlalchemy.exc import IntegrityError
from sqlalchemy.orm import Session

from .errors import AlreadyBorrowed, BookNotFound, NotBorrowedByUser
from .models import Book, Borrowing, User

logger = logging.getLogger(__name__)

LOAN_PERIOD = timedelta(weeks=2)


class BookStatus(NamedTuple):
    borrowed: bool
    borrower: Optional[User]


def get_book(db: Session, book_id: int) -> Book:
    book = db.query(Book).filter(Book.id == book_id).first()
    if not book:
        raise BookNotFound(book_id)
    return book


def borrow(db: Session, book_id: int, user: User) -> Borrowing:
    book = get_book(db, book_id)
    if book.is_borrowed:
        logger.info("user %s refused book %s: already borrowed", user.id, book_id)
        raise AlreadyBorrowed(book_id)

    now = datetime.now(UTC)
    borrowing = Borrowing(
        book=book,
        user=user,
        due_date=(now + LOAN_PERIOD).date(),
        returned=False,
        created_at=now,
    )
    db.add(borrowing)
    try:
        db.commit()
    except IntegrityError:
        # another request opened a borrowing for this book after our check
        db.rollback()
        logger.info("user %s lost borrow race for book %s", user.id, book_id)
        raise AlreadyBorrowed(book_id)
    db.refresh(borrowing)
    logger.info("user %s borrowed book %s, due %s", user.id, book_id, borrowing.due_date)
    return borrowing


def return_book(db: Session, book_id: int, user: User) -> Borrowing:
    book = get_book(db, book_id)
    borrowing = (
        db.query(Borrowing)
        .filter(
            Borrowing.user_id == user.id,
            Borrowing.book_id == book.id,
            Borrowing.returned == false(),
        )
        .first()
    )
    if not borrowing:
        logger.info("user %s refused return of book %s: not borrowed by user", user.id, book_id)
        raise NotBorrowedByUser(book_id)

    borrowing.returned = True
    db.commit()
    db.refresh(borrowing)
    logger.info("user %s returned book %s", user.id, book_id)
    return borrowing


def list_open_borrowings(db: Session, user: User) -> List[Borrowing]:
    return (
        db.query(Borrowing)
        .filter(Borrowing.user_id == user.id, Borrowing.returned == false())
        .all()
    )


def book_status(db: Session, book_id: int) -> BookStatus:
    book = get_book(db, book_id)
    return BookStatus(borrowed=book.is_borrowed, borrower=book.current_borrower)
