"""Tests for the HTTP layer: fetch failures as values and per-thread sessions."""

import threading
from concurrent.futures import ThreadPoolExecutor

import requests

from job_crawler.config import AppConfig
from job_crawler.pipeline import build_fetcher
from job_crawler.utils.http_client import Document, FetchFailure, ThreadSessions, fetch_document


class FakeResponse:
    def __init__(self, text="", status_code=200, error=None):
        self.text = text
        self.status_code = status_code
        self.error = error

    def raise_for_status(self):
        if self.error:
            raise self.error


class FakeSession:
    def __init__(self, response=None, error=None):
        self.response = response
        self.error = error
        self.requests = []

    def get(self, url, **kwargs):
        self.requests.append((url, kwargs))
        if self.error:
            raise self.error
        return self.response


class TestFetchDocument:
    def test_success(self):
        session = FakeSession(FakeResponse("<html>ok</html>"))
        result = fetch_document("https://example.com/a", session=session, timeout=5)
        assert result == Document(url="https://example.com/a", text="<html>ok</html>")
        _, kwargs = session.requests[0]
        assert kwargs["timeout"] == 5
        assert kwargs["headers"]["User-Agent"]

    def test_request_error_becomes_failure(self):
        session = FakeSession(error=requests.ConnectionError("refused"))
        result = fetch_document("https://example.com/a", session=session)
        assert isinstance(result, FetchFailure)
        assert result.reason.startswith("ConnectionError")

    def test_http_error_becomes_failure(self):
        response = FakeResponse("gone", 404, error=requests.HTTPError("404 Client Error"))
        result = fetch_document("https://example.com/a", session=FakeSession(response))
        assert isinstance(result, FetchFailure)
        assert "404" in result.reason

    def test_empty_body_becomes_failure(self):
        result = fetch_document("https://example.com/a", session=FakeSession(FakeResponse("  \n")))
        assert result == FetchFailure(url="https://example.com/a", reason="empty response body")


class TestThreadSessions:
    def test_same_session_within_a_thread(self):
        with ThreadSessions() as sessions:
            assert sessions.get() is sessions.get()

    def test_distinct_session_per_thread(self):
        workers = 4
        barrier = threading.Barrier(workers)

        def grab(_):
            session = sessions.get()
            barrier.wait(timeout=5)
            return session

        with ThreadSessions() as sessions:
            with ThreadPoolExecutor(max_workers=workers) as pool:
                seen = list(pool.map(grab, range(workers)))
        assert len({id(s) for s in seen}) == workers

    def test_close_closes_every_session(self, monkeypatch):
        closed = []
        monkeypatch.setattr(requests.Session, "close", lambda self: closed.append(self))

        sessions = ThreadSessions()
        main_session = sessions.get()
        with ThreadPoolExecutor(max_workers=1) as pool:
            worker_session = pool.submit(sessions.get).result()
        sessions.close()

        assert {id(s) for s in closed} == {id(main_session), id(worker_session)}
        assert sessions.get() is not main_session
        sessions.close()

    def test_retry_settings_applied(self):
        with ThreadSessions(max_retries=5, backoff_factor=0.5) as sessions:
            retries = sessions.get().get_adapter("https://www.indeed.com").max_retries
        assert retries.total == 5
        assert retries.backoff_factor == 0.5


class TestBuildFetcher:
    def test_fetches_with_calling_threads_session(self, monkeypatch):
        used = []

        def fake_fetch(url, session=None, timeout=30, delay=0.0):
            used.append((threading.get_ident(), session, timeout))
            return Document(url=url, text="ok")

        monkeypatch.setattr("job_crawler.pipeline.fetch_document", fake_fetch)
        config = AppConfig()
        config.crawl.timeout = 7

        with ThreadSessions() as sessions:
            fetch = build_fetcher(config, sessions)
            fetch("https://example.com/1")
            with ThreadPoolExecutor(max_workers=1) as pool:
                pool.submit(fetch, "https://example.com/2").result()

        (main_ident, main_session, timeout), (worker_ident, worker_session, _) = used
        assert timeout == 7
        assert main_ident != worker_ident
        assert main_session is not worker_session
