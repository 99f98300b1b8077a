"""Orchestrator - CLI entry point for the listing crawler."""

import argparse
import logging
import sys
import time
import traceback

from job_crawler.config import AppConfig, load_config, validate_config
from job_crawler.errors import StoreError
from job_crawler.jobs.models import UNAVAILABLE
from job_crawler.pipeline import Fetcher, RunSummary, build_fetcher, run_crawl
from job_crawler.storage.database import ListingStore
from job_crawler.storage.sync import sync_listings
from job_crawler.utils.http_client import ThreadSessions
from job_crawler.utils.logging_config import setup_logging
from job_crawler.utils.text_processing import skill_frequencies

logger = logging.getLogger("job_crawler")


def parse_args(argv: list[str] | None = None) -> argparse.Namespace:
    parser = argparse.ArgumentParser(
        description="Job listing crawler - scrape, deduplicate, enrich and store postings",
    )
    parser.add_argument(
        "--config", default="config.yaml",
        help="Path to config file (default: config.yaml)",
    )
    parser.add_argument(
        "--dry-run", action="store_true",
        help="Crawl, deduplicate and enrich but don't write to the store",
    )
    parser.add_argument(
        "--no-enrich", action="store_true",
        help="Skip detail page fetches; descriptions stay empty",
    )
    parser.add_argument(
        "--stats", action="store_true",
        help="Print store statistics and exit",
    )
    parser.add_argument(
        "--skills", type=int, metavar="N", default=0,
        help="Print the N most requested skills across stored listings and exit",
    )
    parser.add_argument(
        "-v", "--verbose", action="store_true",
        help="Enable debug logging",
    )
    return parser.parse_args(argv)


def print_stats(store: ListingStore):
    """Print store statistics."""
    stats = store.get_stats()
    print("\n=== Listing Store Statistics ===")
    print(f"Total listings: {stats['total_listings']}")
    print(f"With description: {stats['with_description']}")
    print(f"Total crawl runs: {stats['total_runs']}")

    if stats.get("top_companies"):
        print("\nTop companies:")
        for company, count in stats["top_companies"].items():
            print(f"  {company or 'unknown'}: {count}")

    if stats.get("last_run"):
        run = stats["last_run"]
        print(f"\nLast run: {run['run_at']} ('{run['query']}')")
        print(f"  Candidates seen: {run['candidates_seen']}")
        print(f"  After dedup: {run['after_dedup']}")
        print(f"  Enrichment failures: {run['enrichment_failures']}")
        print(f"  Inserted: {run['inserted']}")
        print(f"  Pages skipped: {run['pages_skipped']}")
        if run["error_message"]:
            print(f"  Error: {run['error_message']}")
    print()


def print_skills(store: ListingStore, top_n: int):
    """Print the most frequently requested skills across stored listings."""
    listings = store.select_all()
    texts = [
        listing.description if listing.description and listing.description != UNAVAILABLE else listing.summary
        for listing in listings
    ]
    counts = skill_frequencies(texts)

    print(f"\n=== Top {top_n} skills across {len(listings)} listings ===")
    for skill, count in counts.most_common(top_n):
        share = count / len(listings) if listings else 0.0
        print(f"  {skill:<20} {count:>5}  ({share:.0%})")
    print()


def run_pipeline(
    config: AppConfig,
    store: ListingStore,
    fetch: Fetcher,
    dry_run: bool = False,
) -> RunSummary:
    """Run the crawl and sync its batch into the store."""
    start = time.time()
    summary = RunSummary()

    try:
        summary = run_crawl(config, fetch)

        if dry_run:
            logger.info("DRY RUN - Skipping store sync. Would offer %d listings:", len(summary.listings))
            for i, listing in enumerate(summary.listings[:10], 1):
                logger.info("  #%d %s @ %s (%s)", i, listing.title, listing.company, listing.location)
        else:
            logger.info("Step 4: Syncing %d listings into the store...", len(summary.listings))
            summary.inserted = sync_listings(store, summary.listings)

        store.record_run(
            query=config.search.query,
            duration_seconds=round(time.time() - start, 2),
            **summary.as_counts(),
        )

        logger.info(
            "Pipeline complete: %d candidates, %d after dedup, %d enrichment failures, %d inserted",
            summary.candidates_seen, summary.after_dedup, summary.enrichment_failures, summary.inserted,
        )
        return summary

    except Exception as e:
        error_msg = f"{type(e).__name__}: {e}"
        logger.error("Pipeline failed: %s\n%s", error_msg, traceback.format_exc())
        try:
            store.record_run(
                query=config.search.query,
                error_message=error_msg,
                duration_seconds=round(time.time() - start, 2),
                **summary.as_counts(),
            )
        except StoreError as record_error:
            logger.error("Could not record failed run: %s", record_error)
        raise


def main(argv: list[str] | None = None):
    args = parse_args(argv)

    # Load config
    try:
        config = load_config(args.config)
    except FileNotFoundError as e:
        print(f"Error: {e}", file=sys.stderr)
        sys.exit(1)

    setup_logging(config.log_dir, verbose=args.verbose)

    for w in validate_config(config):
        logger.warning("Config: %s", w)

    if args.no_enrich:
        config.crawl.enrich = False

    try:
        with ListingStore(config.database_url) as store:
            if args.stats:
                print_stats(store)
                return

            if args.skills:
                print_skills(store, args.skills)
                return

            with ThreadSessions(
                max_retries=config.crawl.max_retries,
                backoff_factor=config.crawl.backoff_factor,
            ) as sessions:
                run_pipeline(config, store, build_fetcher(config, sessions), dry_run=args.dry_run)
    except StoreError as e:
        print(f"Error: {e}", file=sys.stderr)
        sys.exit(1)


if __name__ == "__main__":
    main()
