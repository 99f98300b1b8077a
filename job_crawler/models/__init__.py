"""ORM models for the listing store."""

from .base import Base, create_db_engine
from .listing import Listing
from .run_history import RunHistory

__all__ = [
    "Base",
    "create_db_engine",
    "Listing",
    "RunHistory",
]
