"""Crawl pipeline: results pages -> candidates -> canonical listings -> enriched batch."""

import logging
from collections.abc import Callable
from dataclasses import dataclass, field

from job_crawler.config import AppConfig
from job_crawler.jobs.dedup import deduplicate
from job_crawler.jobs.enrichment import enrich_listings
from job_crawler.jobs.indeed_scraper import collect_candidates
from job_crawler.jobs.models import CanonicalListing
from job_crawler.utils.http_client import FetchResult, ThreadSessions, fetch_document

logger = logging.getLogger("job_crawler.pipeline")

Fetcher = Callable[[str], FetchResult]


@dataclass
class RunSummary:
    """Per-stage counters for one run, enough to audit where records were lost."""

    pages_skipped: int = 0
    candidates_seen: int = 0
    after_dedup: int = 0
    enrichment_failures: int = 0
    inserted: int = 0
    listings: list[CanonicalListing] = field(default_factory=list)

    def as_counts(self) -> dict:
        return {
            "pages_skipped": self.pages_skipped,
            "candidates_seen": self.candidates_seen,
            "after_dedup": self.after_dedup,
            "enrichment_failures": self.enrichment_failures,
            "inserted": self.inserted,
        }


def build_fetcher(config: AppConfig, sessions: ThreadSessions) -> Fetcher:
    """Bind the crawl settings to fetch_document, using the calling thread's session."""

    def fetch(url: str) -> FetchResult:
        return fetch_document(
            url,
            session=sessions.get(),
            timeout=config.crawl.timeout,
            delay=config.crawl.delay_seconds,
        )

    return fetch


def run_crawl(config: AppConfig, fetch: Fetcher) -> RunSummary:
    """Run every stage up to (not including) the store sync."""
    search = config.search
    workers = max(config.crawl.max_workers, 1)

    logger.info("Step 1: Crawling %d results pages for '%s'...", len(search.offsets), search.query)
    crawl = collect_candidates(
        search.offsets,
        fetch,
        query=search.query,
        location=search.location,
        base_url=search.base_url,
        selectors=config.selectors,
        max_workers=workers,
    )

    logger.info("Step 2: Deduplicating %d candidates...", len(crawl.candidates))
    listings = deduplicate(crawl.candidates)

    summary = RunSummary(
        pages_skipped=crawl.pages_skipped,
        candidates_seen=len(crawl.candidates),
        after_dedup=len(listings),
        listings=listings,
    )

    if not config.crawl.enrich:
        logger.info("Step 3: Skipping detail enrichment (disabled)")
        return summary

    logger.info("Step 3: Fetching %d detail pages...", len(listings))
    enriched = enrich_listings(listings, fetch, selector=config.selectors.description, max_workers=workers)
    summary.listings = enriched.listings
    summary.enrichment_failures = enriched.failures
    return summary
