from datetime import date

from fastapi import APIRouter, Depends, HTTPException
from pydantic import BaseModel
from sqlalchemy.orm import Session

from . import circulation
from .auth import get_current_user_jwt
from .database import get_db
from .errors import LendingError
from .models import User


class BorrowingRead(BaseModel):
    id: int
    book_id: int
    user_id: int
    due_date: date
    returned: bool
    class Config:
        orm_mode = True


class BorrowingMessage(BaseModel):
    message: str
    borrowing: BorrowingRead


borrow_router = APIRouter(tags=["borrowing"])


@borrow_router.post("/borrow/{book_id}", response_model=BorrowingMessage)
def borrow_book(book_id: int, db: Session = Depends(get_db), user: User = Depends(get_current_user_jwt)):
    try:
        borrowing = circulation.borrow(db, book_id, user)
    except LendingError as e:
        raise HTTPException(status_code=e.status_code, detail=e.message)
    return {"message": "You have successfully borrowed this book.", "borrowing": borrowing}


@borrow_router.post("/return/{book_id}", response_model=BorrowingMessage)
def return_book(book_id: int, db: Session = Depends(get_db), user: User = Depends(get_current_user_jwt)):
    try:
        borrowing = circulation.return_book(db, book_id, user)
    except LendingError as e:
        raise HTTPException(status_code=e.status_code, detail=e.message)
    return {"message": "You have successfully returned the book.", "borrowing": borrowing}
