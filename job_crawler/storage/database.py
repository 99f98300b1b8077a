"""SQLAlchemy-backed listing store: the durable collection, staging area and run history."""

import logging
import uuid
from collections.abc import Iterable, Iterator
from contextlib import contextmanager
from datetime import datetime, timezone
from typing import Optional

from sqlalchemy import Column, Connection, Engine, Integer, MetaData, String, Table, Text, func, insert, select
from sqlalchemy.exc import SQLAlchemyError
from sqlalchemy.orm import sessionmaker

from job_crawler.config import DEFAULT_DATABASE_URL
from job_crawler.errors import StoreError
from job_crawler.jobs.models import UNAVAILABLE, CanonicalListing
from job_crawler.models import Base, Listing, RunHistory, create_db_engine

logger = logging.getLogger("job_crawler.storage")

# Bound on identities per IN (...) clause
_IN_CHUNK = 500

LISTING_COLUMNS = ("identity", "title", "company", "location", "summary", "link", "description")


@contextmanager
def _store_errors(operation: str) -> Iterator[None]:
    try:
        yield
    except SQLAlchemyError as e:
        raise StoreError(f"{operation} failed: {e}") from e


def _staging_table(name: str) -> Table:
    return Table(
        name,
        MetaData(),
        Column("seq", Integer, primary_key=True),
        Column("identity", String(64), nullable=False),
        Column("title", String(500)),
        Column("company", String(255)),
        Column("location", String(255)),
        Column("summary", Text),
        Column("link", String(2048)),
        Column("description", Text),
        prefixes=["TEMPORARY"],
    )


def _to_listing(row) -> CanonicalListing:
    return CanonicalListing(
        identity=row.identity,
        title=row.title or "",
        company=row.company or "",
        location=row.location or "",
        summary=row.summary or "",
        link=row.link or "",
        description=row.description,
    )


class StagingArea:
    """A per-run scratch table on one connection.

    Only valid inside ListingStore.staging(); the table is dropped on exit.
    """

    def __init__(self, conn: Connection, table: Table):
        self.conn = conn
        self.table = table

    def load(self, listings: Iterable[CanonicalListing]) -> int:
        """Copy the batch into the scratch table, keeping batch order in seq."""
        rows = [
            {"seq": seq, **{name: getattr(listing, name) for name in LISTING_COLUMNS}}
            for seq, listing in enumerate(listings)
        ]
        if rows:
            self.conn.execute(insert(self.table), rows)
        self.conn.commit()
        return len(rows)

    def pending(self) -> list[dict]:
        """Staged rows with an identity not yet stored, first staged row per identity."""
        staged = self.table
        stored = Listing.__table__
        first = (
            select(staged.c.identity, func.min(staged.c.seq).label("seq"))
            .group_by(staged.c.identity)
            .subquery()
        )
        stmt = (
            select(*(staged.c[name] for name in LISTING_COLUMNS))
            .select_from(staged.join(first, staged.c.seq == first.c.seq))
            .where(~select(stored.c.identity).where(stored.c.identity == staged.c.identity).exists())
            .order_by(staged.c.seq)
        )
        return [dict(row) for row in self.conn.execute(stmt).mappings()]

    def insert_pending(self) -> int:
        """Append pending rows to the durable table in one transaction."""
        rows = self.pending()
        if not rows:
            self.conn.commit()
            return 0

        now = datetime.now(timezone.utc)
        try:
            self.conn.execute(insert(Listing.__table__), [{**row, "first_seen_at": now} for row in rows])
            self.conn.commit()
        except SQLAlchemyError:
            self.conn.rollback()
            raise
        return len(rows)


class ListingStore:
    """Durable listing collection keyed by identity. Rows are never updated or deleted."""

    def __init__(self, database_url: str = DEFAULT_DATABASE_URL, engine: Optional[Engine] = None):
        self.engine = engine or create_db_engine(database_url)
        self._sessions = sessionmaker(bind=self.engine, autoflush=False, expire_on_commit=False)
        with _store_errors("schema creation"):
            Base.metadata.create_all(self.engine)

    def exists(self, identity: str) -> bool:
        with _store_errors("exists"), self._sessions() as session:
            return session.get(Listing, identity) is not None

    def existing_identities(self, identities: Iterable[str]) -> set[str]:
        """Batched exists: the subset of identities already stored."""
        wanted = list(dict.fromkeys(identities))
        found: set[str] = set()
        with _store_errors("existing_identities"), self._sessions() as session:
            for start in range(0, len(wanted), _IN_CHUNK):
                chunk = wanted[start:start + _IN_CHUNK]
                found.update(session.scalars(select(Listing.identity).where(Listing.identity.in_(chunk))))
        return found

    def insert_many(self, listings: Iterable[CanonicalListing]) -> int:
        """Insert listings as-is. Duplicate identities violate the primary key."""
        now = datetime.now(timezone.utc)
        rows = [Listing(**listing.to_dict(), first_seen_at=now) for listing in listings]
        with _store_errors("insert_many"), self._sessions() as session:
            session.add_all(rows)
            session.commit()
        return len(rows)

    def select_all(self) -> list[CanonicalListing]:
        with _store_errors("select_all"), self._sessions() as session:
            rows = session.scalars(select(Listing).order_by(Listing.first_seen_at, Listing.identity)).all()
            return [_to_listing(row) for row in rows]

    def count(self) -> int:
        with _store_errors("count"), self._sessions() as session:
            return session.scalar(select(func.count()).select_from(Listing)) or 0

    @contextmanager
    def staging(self) -> Iterator[StagingArea]:
        """Yield a scratch area that is dropped on every exit path."""
        table = _staging_table(f"listings_staging_{uuid.uuid4().hex[:12]}")
        with _store_errors("staging"), self.engine.connect() as conn:
            created = False
            try:
                table.create(conn)
                conn.commit()
                created = True
                logger.debug("Created staging table %s", table.name)
                yield StagingArea(conn, table)
            finally:
                conn.rollback()
                if created:
                    table.drop(conn)
                    conn.commit()
                    logger.debug("Dropped staging table %s", table.name)

    def record_run(
        self,
        query: str = "",
        pages_skipped: int = 0,
        candidates_seen: int = 0,
        after_dedup: int = 0,
        enrichment_failures: int = 0,
        inserted: int = 0,
        error_message: Optional[str] = None,
        duration_seconds: Optional[float] = None,
    ):
        """Record a crawl run in history."""
        with _store_errors("record_run"), self._sessions() as session:
            session.add(RunHistory(
                query=query,
                pages_skipped=pages_skipped,
                candidates_seen=candidates_seen,
                after_dedup=after_dedup,
                enrichment_failures=enrichment_failures,
                inserted=inserted,
                error_message=error_message,
                duration_seconds=duration_seconds,
            ))
            session.commit()

    def get_stats(self) -> dict:
        """Get store statistics."""
        stats = {}
        with _store_errors("get_stats"), self._sessions() as session:
            stats["total_listings"] = session.scalar(select(func.count()).select_from(Listing)) or 0
            stats["with_description"] = session.scalar(
                select(func.count()).select_from(Listing).where(
                    Listing.description.is_not(None), Listing.description != UNAVAILABLE,
                )
            ) or 0
            stats["total_runs"] = session.scalar(select(func.count()).select_from(RunHistory)) or 0

            run = session.scalars(select(RunHistory).order_by(RunHistory.id.desc()).limit(1)).first()
            if run:
                stats["last_run"] = {
                    "run_at": run.run_at.isoformat() if run.run_at else "",
                    "query": run.query,
                    "pages_skipped": run.pages_skipped,
                    "candidates_seen": run.candidates_seen,
                    "after_dedup": run.after_dedup,
                    "enrichment_failures": run.enrichment_failures,
                    "inserted": run.inserted,
                    "error_message": run.error_message,
                    "duration_seconds": run.duration_seconds,
                }

            rows = session.execute(
                select(Listing.company, func.count().label("cnt"))
                .group_by(Listing.company)
                .order_by(func.count().desc())
                .limit(10)
            ).all()
            stats["top_companies"] = {row.company or "": row.cnt for row in rows}

        return stats

    def close(self):
        self.engine.dispose()

    def __enter__(self):
        return self

    def __exit__(self, exc_type, exc_val, exc_tb):
        self.close()
