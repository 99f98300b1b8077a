"""Collapse repeated postings into one canonical listing per identity."""

import logging
from collections.abc import Iterable

from job_crawler.jobs.models import CanonicalListing, ListingCandidate

logger = logging.getLogger("job_crawler.jobs.dedup")


def deduplicate(listings: Iterable[ListingCandidate]) -> list[CanonicalListing]:
    """Keep the first listing per identity, then the first per detail link.

    Survivors stay in scrape order. Listings without a link are only
    collapsed by identity.
    """
    canonical = [CanonicalListing.from_candidate(item) for item in listings]

    seen_ids: set[str] = set()
    by_identity: list[CanonicalListing] = []
    for listing in canonical:
        if listing.identity not in seen_ids:
            seen_ids.add(listing.identity)
            by_identity.append(listing)

    seen_links: set[str] = set()
    unique: list[CanonicalListing] = []
    for listing in by_identity:
        if not listing.link:
            unique.append(listing)
        elif listing.link not in seen_links:
            seen_links.add(listing.link)
            unique.append(listing)

    logger.info(
        "Deduplicated %d listings to %d (%d by identity, %d by link)",
        len(canonical), len(unique),
        len(canonical) - len(by_identity), len(by_identity) - len(unique),
    )
    return unique
