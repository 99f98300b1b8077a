"""Indeed search-results scraping: page extraction and the paginated crawl."""

import logging
from collections.abc import Callable, Iterable
from dataclasses import dataclass, field
from functools import reduce
from urllib.parse import quote_plus, urljoin

from bs4 import BeautifulSoup

from job_crawler.config import Selectors
from job_crawler.errors import ParseError
from job_crawler.jobs.models import ListingCandidate
from job_crawler.utils.http_client import FetchFailure, FetchResult
from job_crawler.utils.markup import block_text, select_first
from job_crawler.utils.parallel import ordered_map
from job_crawler.utils.text_processing import normalize_text

logger = logging.getLogger("job_crawler.jobs.indeed")

INDEED_BASE = "https://www.indeed.com"
QUERY_TEMPLATE = "{base_url}/jobs?q={query}&l={location}&start={offset}"


@dataclass(frozen=True)
class PageResult:
    """Outcome of scraping one results page."""

    offset: int
    candidates: tuple[ListingCandidate, ...] = ()
    error: str | None = None

    @property
    def skipped(self) -> bool:
        return self.error is not None


@dataclass(frozen=True)
class CrawlResult:
    candidates: list[ListingCandidate] = field(default_factory=list)
    pages_fetched: int = 0
    pages_skipped: int = 0


def build_search_url(query: str, offset: int, location: str = "", base_url: str = INDEED_BASE) -> str:
    return QUERY_TEMPLATE.format(
        base_url=base_url.rstrip("/"),
        query=quote_plus(query),
        location=quote_plus(location),
        offset=offset,
    )


def extract_listings(
    html: str,
    selectors: Selectors | None = None,
    base_url: str = INDEED_BASE,
) -> list[ListingCandidate]:
    """Parse an Indeed search results page into listing candidates."""
    if not html or not html.strip():
        raise ParseError("empty results document")

    selectors = selectors or Selectors()
    soup = BeautifulSoup(html, "lxml")
    if soup.find() is None:
        raise ParseError("results document contains no markup")

    return [_parse_card(card, selectors, base_url) for card in soup.select(selectors.container)]


def _select_text(card, selector: str, field_name: str) -> str:
    node = select_first(card, selector)
    if node is None:
        logger.debug("Listing card has no %s node (%s)", field_name, selector)
        return ""
    return normalize_text(block_text(node))


def _parse_card(card, selectors: Selectors, base_url: str) -> ListingCandidate:
    """Parse a single job card; missing nodes yield empty fields."""
    link = ""
    link_elem = select_first(card, selectors.link)
    if link_elem is None and card.name == "a" and card.get("href"):
        link_elem = card
    if link_elem is not None:
        href = (link_elem.get("href") or "").strip()
        if href:
            link = urljoin(f"{base_url.rstrip('/')}/", href)
    else:
        logger.debug("Listing card has no link node (%s)", selectors.link)

    return ListingCandidate(
        title=_select_text(card, selectors.title, "title"),
        company=_select_text(card, selectors.company, "company"),
        location=_select_text(card, selectors.location, "location"),
        summary=_select_text(card, selectors.summary, "summary"),
        link=link,
    )


def scrape_page(
    offset: int,
    fetch: Callable[[str], FetchResult],
    query: str,
    location: str = "",
    base_url: str = INDEED_BASE,
    selectors: Selectors | None = None,
) -> PageResult:
    """Fetch and extract one results page; failures become a skipped PageResult."""
    url = build_search_url(query, offset, location=location, base_url=base_url)
    result = fetch(url)

    if isinstance(result, FetchFailure):
        logger.warning("Skipping results page at start=%d: %s", offset, result.reason)
        return PageResult(offset=offset, error=result.reason)

    try:
        candidates = extract_listings(result.text, selectors, base_url)
    except ParseError as e:
        logger.warning("Skipping unparseable results page at start=%d: %s", offset, e)
        return PageResult(offset=offset, error=str(e))

    logger.debug("Extracted %d candidates at start=%d", len(candidates), offset)
    return PageResult(offset=offset, candidates=tuple(candidates))


def _fold_page(acc: CrawlResult, page: PageResult) -> CrawlResult:
    if page.skipped:
        return CrawlResult(acc.candidates, acc.pages_fetched, acc.pages_skipped + 1)
    return CrawlResult(acc.candidates + list(page.candidates), acc.pages_fetched + 1, acc.pages_skipped)


def collect_candidates(
    offsets: Iterable[int],
    fetch: Callable[[str], FetchResult],
    query: str,
    location: str = "",
    base_url: str = INDEED_BASE,
    selectors: Selectors | None = None,
    max_workers: int = 1,
) -> CrawlResult:
    """Scrape every offset and fold the pages, in offset order, into one result."""

    def scrape(offset: int) -> PageResult:
        return scrape_page(offset, fetch, query, location=location, base_url=base_url, selectors=selectors)

    pages = ordered_map(scrape, offsets, max_workers=max_workers)
    crawl = reduce(_fold_page, pages, CrawlResult())

    logger.info(
        "Collected %d candidates from %d pages (%d skipped) for query '%s'",
        len(crawl.candidates), crawl.pages_fetched, crawl.pages_skipped, query,
    )
    return crawl
