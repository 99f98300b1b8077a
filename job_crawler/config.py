"""YAML config loading and validation."""

import os
from dataclasses import dataclass, field
from pathlib import Path

import yaml

DEFAULT_DATABASE_URL = "sqlite:///data/job_crawler.db"


@dataclass
class SearchConfig:
    query: str = "data scientist"
    location: str = ""
    base_url: str = "https://www.indeed.com"
    page_size: int = 10
    max_offset: int = 100

    @property
    def offsets(self) -> range:
        """Result-page offsets visited by one run, in order."""
        if self.page_size <= 0:
            return range(0)
        return range(0, self.max_offset, self.page_size)


@dataclass
class CrawlConfig:
    max_workers: int = 1
    delay_seconds: float = 1.0
    timeout: float = 30
    max_retries: int = 3
    backoff_factor: float = 1.0
    enrich: bool = True


@dataclass
class Selectors:
    """CSS selectors for the results page and the detail page.

    Comma-separated alternatives are tried left to right; the first one that
    matches wins, regardless of where its node sits in the document.
    """

    container: str = "div.job_seen_beacon, div.jobsearch-SerpJobCard"
    title: str = "h2.jobTitle, h2.title, a.jobtitle"
    company: str = "[data-testid=company-name], span.companyName, span.company"
    location: str = "[data-testid=text-location], div.companyLocation, .location"
    summary: str = "div.job-snippet, div.summary"
    link: str = "h2.jobTitle a[href], a.jcs-JobTitle[href], a.jobtitle[href], a[href]"
    description: str = "#jobDescriptionText, div.jobsearch-jobDescriptionText"


@dataclass
class AppConfig:
    search: SearchConfig = field(default_factory=SearchConfig)
    crawl: CrawlConfig = field(default_factory=CrawlConfig)
    selectors: Selectors = field(default_factory=Selectors)
    database_url: str = DEFAULT_DATABASE_URL
    log_dir: str = "logs"


def _database_url(configured: str) -> str:
    url = os.environ.get("DATABASE_URL", configured)
    # SQLAlchemy 2.x requires postgresql://
    if url.startswith("postgres://"):
        url = url.replace("postgres://", "postgresql://", 1)
    return url


def load_config(config_path: str = "config.yaml") -> AppConfig:
    """Load and validate configuration from YAML file."""
    path = Path(config_path)
    if not path.exists():
        raise FileNotFoundError(
            f"Config file not found: {config_path}\n"
            "Copy config.example.yaml to config.yaml and fill in your settings."
        )

    with open(path, "r", encoding="utf-8") as f:
        raw = yaml.safe_load(f) or {}

    config = AppConfig()

    search_raw = raw.get("search", {})
    config.search = SearchConfig(
        query=search_raw.get("query", "data scientist"),
        location=search_raw.get("location", ""),
        base_url=search_raw.get("base_url", "https://www.indeed.com").rstrip("/"),
        page_size=int(search_raw.get("page_size", 10)),
        max_offset=int(search_raw.get("max_offset", 100)),
    )

    crawl_raw = raw.get("crawl", {})
    config.crawl = CrawlConfig(
        max_workers=int(crawl_raw.get("max_workers", 1)),
        delay_seconds=float(crawl_raw.get("delay_seconds", 1.0)),
        timeout=float(crawl_raw.get("timeout", 30)),
        max_retries=int(crawl_raw.get("max_retries", 3)),
        backoff_factor=float(crawl_raw.get("backoff_factor", 1.0)),
        enrich=bool(crawl_raw.get("enrich", True)),
    )

    # Unknown selector keys are ignored; missing ones keep the defaults
    selectors_raw = raw.get("selectors", {}) or {}
    defaults = Selectors()
    config.selectors = Selectors(**{
        name: selectors_raw.get(name, getattr(defaults, name))
        for name in defaults.__dataclass_fields__
    })

    config.database_url = _database_url(raw.get("database_url", DEFAULT_DATABASE_URL))
    config.log_dir = raw.get("log_dir", "logs")

    return config


def validate_config(config: AppConfig) -> list[str]:
    """Return list of validation warnings (empty = OK)."""
    warnings = []

    if not config.search.query.strip():
        warnings.append("No search query configured - results pages will be unfiltered")

    if config.search.page_size <= 0:
        warnings.append("search.page_size must be positive - no pages will be fetched")
    elif config.search.max_offset <= 0:
        warnings.append("search.max_offset is not positive - no pages will be fetched")

    if config.crawl.max_workers < 1:
        warnings.append("crawl.max_workers below 1 - falling back to sequential fetching")

    if config.crawl.max_workers > 1 and config.crawl.delay_seconds <= 0:
        warnings.append("Concurrent crawling without a courtesy delay may get the crawler rate-limited")

    if not config.search.base_url.startswith(("http://", "https://")):
        warnings.append(f"search.base_url is not an http(s) URL: {config.search.base_url}")

    return warnings
