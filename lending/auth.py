import logging

from fastapi import APIRouter, Depends, HTTPException
from fastapi_jwt_auth import AuthJWT
from fastapi_jwt_auth.exceptions import AuthJWTException
from pydantic import BaseModel, validator
from sqlalchemy.orm import Session
from passlib.context import CryptContext

from .config import settings
from .database import get_db
from .models import User

logger = logging.getLogger(__name__)

ROLES = ("user", "staff", "admin")

pwd_context = CryptContext(schemes=["bcrypt"], deprecated="auto")


# JWT settings
class JWTSettings(BaseModel):
    authjwt_secret_key: str = settings.jwt_secret_key


@AuthJWT.load_config
def get_config():
    return JWTSettings()


# User schemas
class UserCreate(BaseModel):
    username: str
    password: str
    role: str = "user"

    @validator('role')
    def validate_role(cls, v):
        if v not in ROLES:
            raise ValueError(f"role must be one of {', '.join(ROLES)}")
        return v


class UserRead(BaseModel):
    id: int
    username: str
    role: str
    class Config:
        orm_mode = True


class UserLogin(BaseModel):
    username: str
    password: str


# Auth router
router = APIRouter(prefix="/auth", tags=["auth"])


@router.post('/register', response_model=UserRead, status_code=201)
def register(user: UserCreate, db: Session = Depends(get_db)):
    if db.query(User).filter(User.username == user.username).first():
        raise HTTPException(status_code=400, detail="Username already exists")
    hashed_password = pwd_context.hash(user.password)
    db_user = User(username=user.username, hashed_password=hashed_password, role=user.role)
    db.add(db_user)
    db.commit()
    db.refresh(db_user)
    return db_user


@router.post('/login')
def login(user: UserLogin, Authorize: AuthJWT = Depends(), db: Session = Depends(get_db)):
    db_user = db.query(User).filter(User.username == user.username).first()
    if not db_user or not pwd_context.verify(user.password, db_user.hashed_password):
        logger.warning("failed login for %r", user.username)
        raise HTTPException(status_code=401, detail="Invalid username or password")
    access_token = Authorize.create_access_token(subject=db_user.id)
    return {"access_token": access_token, "token_type": "bearer"}


# Dependency to get current user from JWT
def get_current_user_jwt(Authorize: AuthJWT = Depends(), db: Session = Depends(get_db)):
    try:
        Authorize.jwt_required()
    except AuthJWTException as e:
        raise HTTPException(status_code=401, detail=getattr(e, "message", str(e)))
    user_id = Authorize.get_jwt_subject()
    user = db.query(User).filter(User.id == int(user_id)).first()
    if not user:
        raise HTTPException(status_code=401, detail="User not found")
    return user


# Role-based dependencies
def staff_or_admin_required(user: User = Depends(get_current_user_jwt)):
    if user.role not in ("admin", "staff"):
        raise HTTPException(status_code=403, detail="Staff or admin access required")
    return user
