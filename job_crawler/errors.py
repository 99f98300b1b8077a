"""Exception types raised across the crawler."""


class JobCrawlerError(Exception):
    """Base class for crawler errors."""


class ParseError(JobCrawlerError):
    """A fetched document does not have the expected structure."""

    def __init__(self, message: str, url: str = ""):
        super().__init__(message)
        self.url = url


class StoreError(JobCrawlerError):
    """Reading from or writing to the listing store failed."""
