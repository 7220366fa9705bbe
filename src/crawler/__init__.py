"""
Web crawler core components.
"""

from .url_frontier import URLFrontier
from .fetcher import WebFetcher, FetchResult
from .parser import ContentParser, ensure_request_url, is_request_url
from .errors import CrawlerError, InvalidURLError, FetchError, ParseError

__all__ = [
    'URLFrontier',
    'WebFetcher', 'FetchResult',
    'ContentParser', 'ensure_request_url', 'is_request_url',
    'CrawlerError', 'InvalidURLError', 'FetchError', 'ParseError'
]
