import os

from pydantic import BaseModel


class Settings(BaseModel):
    database_url: str = os.getenv("LENDING_DATABASE_URL", "sqlite:///./library.db")
    jwt_secret_key: str = os.getenv("LENDING_JWT_SECRET_KEY", "super-secret-key")
    log_level: str = os.getenv("LENDING_LOG_LEVEL", "INFO")


settings = Settings()
