from datetime import datetime, UTC

from sqlalchemy import Column, Integer, String, Date, DateTime, Boolean, ForeignKey, Index, false
from sqlalchemy.orm import relationship, declarative_base

Base = declarative_base()


# table for user model
class User(Base):
    __tablename__ = 'user'
    id = Column(Integer, primary_key=True, index=True)
    username = Column(String, unique=True, index=True, nullable=False)
    hashed_password = Column(String, nullable=False)
    role = Column(String, default='user') # role for the user ( user, admin, staff)
    borrowings = relationship('Borrowing', back_populates='user', lazy='dynamic')


# table for book model
class Book(Base):
    __tablename__ = 'book'
    id = Column(Integer, primary_key=True, index=True)
    title = Column(String, nullable=False)
    author = Column(String, nullable=False)
    isbn = Column(String, unique=True)
    published_date = Column(Date)
    borrowings = relationship('Borrowing', back_populates='book', lazy='dynamic')

    def open_borrowings(self):
        return self.borrowings.filter(Borrowing.returned == false())

    @property
    def is_borrowed(self):
        return self.open_borrowings().first() is not None

    @property
    def current_borrower(self):
        borrowing = self.open_borrowings().first()
        return borrowing.user if borrowing else None


# table for borrowing model, one row per loan of a book to a user
class Borrowing(Base):
    __tablename__ = 'borrowing'
    id = Column(Integer, primary_key=True, index=True)
    book_id = Column(Integer, ForeignKey('book.id'), nullable=False, index=True)
    user_id = Column(Integer, ForeignKey('user.id'), nullable=False, index=True)
    due_date = Column(Date, nullable=False)
    returned = Column(Boolean, nullable=False, default=False)
    created_at = Column(DateTime, nullable=False, default=lambda: datetime.now(UTC))
    book = relationship('Book', back_populates='borrowings')
    user = relationship('User', back_populates='borrowings')


# a book can have at most one open borrowing
Index(
    'uq_borrowing_open_book',
    Borrowing.book_id,
    unique=True,
    sqlite_where=Borrowing.returned == false(),
    postgresql_where=Borrowing.returned == false(),
)
