"""
Error types raised by the crawler components.
"""

from typing import Optional


class CrawlerError(Exception):
    """Base class for crawler errors."""

    def __init__(self, message: str, url: Optional[str] = None):
        super().__init__(message)
        self.url = url


class InvalidURLError(CrawlerError):
    """URL is not a well-formed absolute request URL."""


class FetchError(CrawlerError):
    """Network or decoding failure while fetching a page."""

    def __init__(self, message: str, url: Optional[str] = None,
                 status_code: Optional[int] = None):
        super().__init__(message, url)
        self.status_code = status_code


class ParseError(CrawlerError):
    """Document or base URL could not be parsed."""
