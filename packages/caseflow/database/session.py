"""Database session configuration."""

from functools import lru_cache

from sqlalchemy import Engine, create_engine
from sqlalchemy.orm import Session, sessionmaker

from caseflow.database.models import Base
from caseflow.settings import get_settings


@lru_cache
def get_engine() -> Engine:
    """Engine for the configured CASEFLOW_DATABASE_URL."""
    settings = get_settings()
    return create_engine(
        settings.database_url,
        echo=settings.database_echo,
        pool_pre_ping=True,
    )


def get_session_factory(engine: Engine | None = None) -> sessionmaker[Session]:
    """Session factory bound to the given engine, or the configured one."""
    return sessionmaker(
        bind=engine or get_engine(),
        autoflush=False,
        expire_on_commit=False,
    )


def create_tables(engine: Engine | None = None) -> None:
    """Create all tables; used for local databases and tests."""
    Base.metadata.create_all(engine or get_engine())
