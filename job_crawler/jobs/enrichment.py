"""Detail-page enrichment: fetch each listing's page and pull its full description."""

import dataclasses
import logging
from collections.abc import Callable, Sequence
from dataclasses import dataclass

from bs4 import BeautifulSoup

from job_crawler.config import Selectors
from job_crawler.errors import ParseError
from job_crawler.jobs.models import UNAVAILABLE, CanonicalListing
from job_crawler.utils.http_client import FetchFailure, FetchResult
from job_crawler.utils.markup import block_text, select_first
from job_crawler.utils.parallel import ordered_map
from job_crawler.utils.text_processing import normalize_paragraphs

logger = logging.getLogger("job_crawler.jobs.enrichment")


@dataclass(frozen=True)
class EnrichmentResult:
    listings: list[CanonicalListing]
    failures: int = 0


def extract_description(html: str, selector: str | None = None) -> str:
    """Return the description text of a detail page, or raise ParseError."""
    if not html or not html.strip():
        raise ParseError("empty detail document")

    selector = selector or Selectors().description
    node = select_first(BeautifulSoup(html, "lxml"), selector)
    if node is None:
        raise ParseError(f"no description node matching {selector!r}")

    text = normalize_paragraphs(block_text(node))
    if not text:
        raise ParseError("description node is empty")
    return text


def enrich_listing(
    listing: CanonicalListing,
    fetch: Callable[[str], FetchResult],
    selector: str | None = None,
) -> CanonicalListing:
    """Return a copy of listing with description set, or the sentinel on failure."""
    if not listing.link:
        logger.warning("No detail link for '%s' @ '%s'", listing.title, listing.company)
        return dataclasses.replace(listing, description=UNAVAILABLE)

    result = fetch(listing.link)
    if isinstance(result, FetchFailure):
        logger.warning("Detail fetch failed for %s: %s", listing.link, result.reason)
        return dataclasses.replace(listing, description=UNAVAILABLE)

    try:
        description = extract_description(result.text, selector)
    except ParseError as e:
        logger.warning("Could not parse detail page %s: %s", listing.link, e)
        return dataclasses.replace(listing, description=UNAVAILABLE)

    return dataclasses.replace(listing, description=description)


def enrich_listings(
    listings: Sequence[CanonicalListing],
    fetch: Callable[[str], FetchResult],
    selector: str | None = None,
    max_workers: int = 1,
) -> EnrichmentResult:
    """Enrich every listing; per-record failures never drop or reorder records."""
    enriched = ordered_map(
        lambda listing: enrich_listing(listing, fetch, selector),
        listings,
        max_workers=max_workers,
    )
    failures = sum(1 for listing in enriched if listing.description == UNAVAILABLE)

    logger.info("Enriched %d listings (%d unavailable)", len(enriched), failures)
    return EnrichmentResult(listings=enriched, failures=failures)
