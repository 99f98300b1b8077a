"""Incremental, append-only merge of a scraped batch into the listing store."""

import logging
from collections.abc import Iterable

from job_crawler.jobs.models import CanonicalListing
from job_crawler.storage.database import ListingStore

logger = logging.getLogger("job_crawler.storage.sync")


def sync_listings(store: ListingStore, batch: Iterable[CanonicalListing]) -> int:
    """Insert the batch's unseen identities and return how many were inserted.

    The batch is staged in a per-run scratch table and only rows whose identity
    is absent from the store are appended, so repeating a sync inserts nothing.
    Store failures raise StoreError; the scratch table is always dropped.
    Callers must not run two syncs against the same store concurrently.
    """
    batch = list(batch)
    with store.staging() as staging:
        staged = staging.load(batch)
        inserted = staging.insert_pending()

    logger.info(
        "Synced batch of %d listings: %d inserted, %d already stored or repeated",
        staged, inserted, staged - inserted,
    )
    return inserted
