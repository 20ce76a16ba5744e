from fastapi import APIRouter, Depends, HTTPException, Query
from sqlalchemy import false
from sqlalchemy.orm import Session
from typing import List, Optional
from pydantic import BaseModel, validator
from datetime import date

from . import circulation
from .auth import UserRead, get_current_user_jwt, staff_or_admin_required
from .database import get_db
from .errors import LendingError
from .models import Book, Borrowing


def check_isbn(v):
    if v is None:
        return v
    # Remove hyphens for validation
    isbn = v.replace('-', '')
    if not (len(isbn) == 10 or len(isbn) == 13) or not isbn.isdigit():
        raise ValueError('ISBN must be a 10 or 13 digit number (hyphens allowed)')
    return v


# pydantic schemas
class BookCreate(BaseModel):
    title: str
    author: str
    isbn: Optional[str] = None
    published_date: Optional[date] = None

    @validator('isbn')
    def validate_isbn(cls, v):
        return check_isbn(v)


class BookRead(BaseModel):
    id: int
    title: str
    author: str
    isbn: Optional[str]
    published_date: Optional[date]
    is_borrowed: bool
    class Config:
        orm_mode = True


class BookUpdate(BaseModel):
    title: Optional[str] = None
    author: Optional[str] = None
    isbn: Optional[str] = None
    published_date: Optional[date] = None

    @validator('isbn')
    def validate_isbn(cls, v):
        return check_isbn(v)


class BookStatusRead(BaseModel):
    borrowed: bool
    borrower: Optional[UserRead]


# router
book_router = APIRouter(prefix="/books", tags=["books"])


@book_router.post("/", response_model=BookRead, status_code=201, dependencies=[Depends(staff_or_admin_required)])
def create_book(book: BookCreate, db: Session = Depends(get_db)):
    if book.isbn and db.query(Book).filter(Book.isbn == book.isbn).first():
        raise HTTPException(status_code=400, detail="Book with this ISBN already exists.")
    db_book = Book(
        title=book.title,
        author=book.author,
        isbn=book.isbn,
        published_date=book.published_date,
    )
    db.add(db_book)
    db.commit()
    db.refresh(db_book)
    return db_book


@book_router.get("/", response_model=List[BookRead]) # get all the books
def list_books(
    db: Session = Depends(get_db),
    title: Optional[str] = Query(None),
    author: Optional[str] = Query(None),
    borrowed: Optional[bool] = Query(None),
):
    query = db.query(Book)
    if title:
        query = query.filter(Book.title.ilike(f"%{title}%"))

    if author:
        query = query.filter(Book.author.ilike(f"%{author}%"))

    if borrowed is not None:
        is_out = Book.borrowings.any(Borrowing.returned == false())
        query = query.filter(is_out if borrowed else ~is_out)
    return query.order_by(Book.id).all()


@book_router.get("/{id}", response_model=BookRead) # get book by id
def get_book(id: int, db: Session = Depends(get_db)):
    try:
        return circulation.get_book(db, id)
    except LendingError as e:
        raise HTTPException(status_code=e.status_code, detail=e.message)


@book_router.get("/{id}/status", response_model=BookStatusRead, dependencies=[Depends(get_current_user_jwt)])
def get_book_status(id: int, db: Session = Depends(get_db)):
    try:
        status = circulation.book_status(db, id)
    except LendingError as e:
        raise HTTPException(status_code=e.status_code, detail=e.message)
    return {"borrowed": status.borrowed, "borrower": status.borrower}


@book_router.put("/{id}", response_model=BookRead, dependencies=[Depends(staff_or_admin_required)]) # update book by id
def update_book(id: int, book_update: BookUpdate, db: Session = Depends(get_db)):
    book = db.query(Book).filter(Book.id == id).first()
    if not book:
        raise HTTPException(status_code=404, detail="Book not found.")
    if book_update.title is not None:
        book.title = book_update.title

    if book_update.author is not None:
        book.author = book_update.author

    if book_update.isbn is not None:
        if db.query(Book).filter(Book.isbn == book_update.isbn, Book.id != id).first():
            raise HTTPException(status_code=400, detail="Book with this ISBN already exists.")
        book.isbn = book_update.isbn

    if book_update.published_date is not None:
        book.published_date = book_update.published_date
    db.commit()
    db.refresh(book)
    return book


@book_router.delete("/{id}", status_code=204, dependencies=[Depends(staff_or_admin_required)]) # delete book by id
def delete_book(id: int, db: Session = Depends(get_db)):
    book = db.query(Book).filter(Book.id == id).first()
    if not book:
        raise HTTPException(status_code=404, detail="Book not found.")
    # borrowing history is kept, so a book that was ever lent stays in the catalog
    if book.borrowings.first() is not None:
        raise HTTPException(status_code=400, detail="Book has borrowing history and cannot be deleted.")
    db.delete(book)
    db.commit()
    return None
