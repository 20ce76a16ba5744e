from datetime import date
from typing import List

from fastapi import APIRouter, Depends
from pydantic import BaseModel
from sqlalchemy.orm import Session

from . import circulation
from .auth import UserRead, get_current_user_jwt
from .book_router import BookRead
from .database import get_db
from .models import User


class OpenBorrowingRead(BaseModel):
    id: int
    due_date: date
    book: BookRead
    class Config:
        orm_mode = True


class ProfileRead(BaseModel):
    user: UserRead
    borrowings: List[OpenBorrowingRead]


user_router = APIRouter(prefix="/users", tags=["users"])


@user_router.get("/profile", response_model=ProfileRead) # current user and the books they have out
def profile(db: Session = Depends(get_db), user: User = Depends(get_current_user_jwt)):
    return {"user": user, "borrowings": circulation.list_open_borrowings(db, user)}
