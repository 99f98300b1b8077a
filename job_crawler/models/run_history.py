"""Run history model - one row per crawl run."""

from datetime import datetime, timezone

from sqlalchemy import DateTime, Float, Integer, String, Text
from sqlalchemy.orm import Mapped, mapped_column

from .base import Base


class RunHistory(Base):
    __tablename__ = "run_history"

    id: Mapped[int] = mapped_column(Integer, primary_key=True, autoincrement=True)
    run_at: Mapped[datetime] = mapped_column(
        DateTime(timezone=True), default=lambda: datetime.now(timezone.utc)
    )
    query: Mapped[str] = mapped_column(String(255), default="")
    pages_skipped: Mapped[int] = mapped_column(Integer, default=0)
    candidates_seen: Mapped[int] = mapped_column(Integer, default=0)
    after_dedup: Mapped[int] = mapped_column(Integer, default=0)
    enrichment_failures: Mapped[int] = mapped_column(Integer, default=0)
    inserted: Mapped[int] = mapped_column(Integer, default=0)
    error_message: Mapped[str | None] = mapped_column(Text, nullable=True)
    duration_seconds: Mapped[float | None] = mapped_column(Float, nullable=True)
