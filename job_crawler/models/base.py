"""SQLAlchemy engine and declarative base."""

from pathlib import Path

from sqlalchemy import Engine, create_engine
from sqlalchemy.engine import make_url
from sqlalchemy.orm import DeclarativeBase


def create_db_engine(database_url: str, echo: bool = False) -> Engine:
    """Build an engine for the given URL, creating the SQLite parent directory if needed."""
    url = make_url(database_url)
    if url.get_backend_name() == "sqlite" and url.database and url.database != ":memory:":
        Path(url.database).parent.mkdir(parents=True, exist_ok=True)

    return create_engine(
        url,
        pool_pre_ping=True,
        echo=echo,
    )


class Base(DeclarativeBase):
    pass
