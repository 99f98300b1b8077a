"""HTTP client with retry logic and User-Agent rotation."""

import logging
import random
import threading
import time
from dataclasses import dataclass
from typing import Optional, Union

import requests
from requests.adapters import HTTPAdapter
from urllib3.util.retry import Retry

logger = logging.getLogger("job_crawler.http")

USER_AGENTS = [
    "Mozilla/5.0 (Windows NT 10.0; Win64; x64) AppleWebKit/537.36 (KHTML, like Gecko) Chrome/120.0.0.0 Safari/537.36",
    "Mozilla/5.0 (Windows NT 10.0; Win64; x64; rv:121.0) Gecko/20100101 Firefox/121.0",
    "Mozilla/5.0 (Windows NT 10.0; Win64; x64) AppleWebKit/537.36 (KHTML, like Gecko) Chrome/120.0.0.0 Safari/537.36 Edg/120.0.0.0",
    "Mozilla/5.0 (Macintosh; Intel Mac OS X 10_15_7) AppleWebKit/537.36 (KHTML, like Gecko) Chrome/120.0.0.0 Safari/537.36",
    "Mozilla/5.0 (Macintosh; Intel Mac OS X 10_15_7) AppleWebKit/605.1.15 (KHTML, like Gecko) Version/17.2 Safari/605.1.15",
]


@dataclass(frozen=True)
class Document:
    """A successfully fetched page."""

    url: str
    text: str
    status: int = 200


@dataclass(frozen=True)
class FetchFailure:
    """A fetch that did not produce a usable document."""

    url: str
    reason: str


FetchResult = Union[Document, FetchFailure]


def create_session(
    max_retries: int = 3,
    backoff_factor: float = 1.0,
    pool_size: int = 10,
) -> requests.Session:
    """Create a requests session with retry logic."""
    session = requests.Session()

    retry_strategy = Retry(
        total=max_retries,
        backoff_factor=backoff_factor,
        status_forcelist=[429, 500, 502, 503, 504],
        allowed_methods=["GET"],
    )

    adapter = HTTPAdapter(max_retries=retry_strategy, pool_connections=pool_size, pool_maxsize=pool_size)
    session.mount("http://", adapter)
    session.mount("https://", adapter)

    session.headers.update({
        "User-Agent": random.choice(USER_AGENTS),
        "Accept": "text/html,application/xhtml+xml,application/xml;q=0.9,*/*;q=0.8",
        "Accept-Language": "en-US,en;q=0.9",
    })

    return session


def fetch_document(
    url: str,
    session: Optional[requests.Session] = None,
    timeout: float = 30,
    delay: float = 0.0,
    **kwargs,
) -> FetchResult:
    """GET a page, returning a FetchFailure instead of raising."""
    if session is None:
        session = create_session()

    if delay > 0:
        time.sleep(delay)

    try:
        # Per-request header so concurrent callers don't race on session.headers
        headers = {"User-Agent": random.choice(USER_AGENTS)}
        response = session.get(url, timeout=timeout, headers=headers, **kwargs)
        response.raise_for_status()
    except requests.RequestException as e:
        logger.warning("HTTP request failed for %s: %s", url, e)
        return FetchFailure(url=url, reason=f"{type(e).__name__}: {e}")

    if not response.text.strip():
        logger.warning("Empty response body from %s", url)
        return FetchFailure(url=url, reason="empty response body")

    return Document(url=url, text=response.text, status=response.status_code)


class ThreadSessions:
    """One requests.Session per thread, all closed together.

    requests does not guarantee Session is thread-safe, so concurrent fetchers
    each get their own session and connection pool.
    """

    def __init__(self, max_retries: int = 3, backoff_factor: float = 1.0):
        self.max_retries = max_retries
        self.backoff_factor = backoff_factor
        self._local = threading.local()
        self._lock = threading.Lock()
        self._sessions: list[requests.Session] = []

    def get(self) -> requests.Session:
        session = getattr(self._local, "session", None)
        if session is None:
            session = create_session(self.max_retries, self.backoff_factor, pool_size=1)
            self._local.session = session
            with self._lock:
                self._sessions.append(session)
        return session

    def close(self):
        with self._lock:
            sessions, self._sessions = self._sessions, []
        for session in sessions:
            session.close()
        self._local = threading.local()

    def __enter__(self):
        return self

    def __exit__(self, exc_type, exc_val, exc_tb):
        self.close()
