import logging
from contextlib import asynccontextmanager

from fastapi import FastAPI

from .auth import router
from .book_router import book_router
from .borrow_router import borrow_router
from .config import settings
from .database import init_db
from .user_router import user_router

logging.basicConfig(level=settings.log_level)
logger = logging.getLogger(__name__)


@asynccontextmanager
async def lifespan(app: FastAPI):
    init_db()
    logger.info("database ready at %s", settings.database_url)
    yield


app = FastAPI(title="Library Lending", lifespan=lifespan)

app.include_router(router)
app.include_router(book_router)
app.include_router(borrow_router)
app.include_router(user_router)
