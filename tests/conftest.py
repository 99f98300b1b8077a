"""Shared fixtures: HTML builders and an in-memory fetcher."""

import threading

import pytest

from job_crawler.storage.database import ListingStore
from job_crawler.utils.http_client import Document, FetchFailure


def job_card(title="", company="", location="", summary="", href=""):
    """Render one search-result card; empty arguments leave the node out."""
    parts = ['<div class="job_seen_beacon">']
    if title or href:
        anchor = f'<a class="jcs-JobTitle" href="{href}">' if href else "<a>"
        parts.append(f'<h2 class="jobTitle">{anchor}<span>{title}</span></a></h2>')
    if company:
        parts.append(f'<span data-testid="company-name">{company}</span>')
    if location:
        parts.append(f'<div data-testid="text-location">{location}</div>')
    if summary:
        parts.append(f'<div class="job-snippet"><ul><li>{summary}</li></ul></div>')
    parts.append("</div>")
    return "\n".join(parts)


def results_page(*cards):
    return (
        "<html><head><title>Jobs</title></head><body>"
        '<div id="mosaic-provider-jobcards">' + "".join(cards) + "</div>"
        "</body></html>"
    )


def detail_page(description):
    return (
        "<html><body><h1>Job</h1>"
        f'<div id="jobDescriptionText">{description}</div>'
        "</body></html>"
    )


class FakeFetcher:
    """Serves canned pages by URL; unknown URLs fail like a 404."""

    def __init__(self, pages=None):
        self.pages = dict(pages or {})
        self.calls = []
        self._lock = threading.Lock()

    def __call__(self, url):
        with self._lock:
            self.calls.append(url)
        page = self.pages.get(url)
        if page is None:
            return FetchFailure(url=url, reason="HTTPError: 404 Client Error")
        if isinstance(page, FetchFailure):
            return page
        return Document(url=url, text=page)


@pytest.fixture
def fetcher():
    return FakeFetcher()


@pytest.fixture
def store(tmp_path):
    listing_store = ListingStore(f"sqlite:///{tmp_path / 'listings.db'}")
    yield listing_store
    listing_store.close()
