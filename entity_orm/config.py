from functools import lru_cache
from typing import Optional

from pydantic_settings import BaseSettings, SettingsConfigDict


class Settings(BaseSettings):
    """
    Persistence layer configuration loaded from ``ENTITY_ORM_*`` environment
    variables or a `.env` file.
    """

    model_config = SettingsConfigDict(env_prefix="ENTITY_ORM_", env_file=".env", extra="ignore")

    DATABASE_URL: str = "sqlite:///entity_orm.db"
    """SQLAlchemy URL of the database holding users, requests and sessions."""

    DATABASE_ECHO: bool = False
    """Echo every statement issued by the engine."""

    LOG_LEVEL: str = "INFO"
    """Level of the `entity_orm` logger."""

    LOG_DIRECTORY: Optional[str] = None
    """When set, attribute, sql and entity manager failures go to files in this directory."""

    SESSION_EXPIRY_DAYS: int = 1
    """Days after the last request before a session expires."""

    REQUEST_RETENTION_DAYS: int = 365
    """Days a request must be kept before it may be deleted."""

    BCRYPT_ROUNDS: int = 12
    """Cost factor used when hashing raw secrets."""


@lru_cache(maxsize=None)
def get_settings() -> Settings:
    return Settings()
