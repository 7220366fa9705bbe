"""
HTML link extraction.
"""

import logging
from typing import List, Optional, Union
from urllib.parse import urljoin, urlsplit

from bs4 import BeautifulSoup, FeatureNotFound, ParserRejectedMarkup, Tag

from .errors import InvalidURLError, ParseError


def _has_control_chars(value: str) -> bool:
    return any(ord(ch) < 0x20 or ord(ch) == 0x7f for ch in value)


def _keep_first_attribute(attrs, key, value):
    # html.parser hands duplicates to this hook; leaving attrs alone keeps the first
    pass


def is_request_url(url: Optional[str]) -> bool:
    """Check that a URL is absolute, well formed and can be requested."""
    if not url or _has_control_chars(url):
        return False
    try:
        parsed = urlsplit(url)
        parsed.port  # raises ValueError on a bad port
    except ValueError:
        return False
    return bool(parsed.scheme) and bool(parsed.netloc)


def ensure_request_url(url: Optional[str]) -> str:
    """Return the URL unchanged, or raise InvalidURLError if it cannot be requested."""
    if not is_request_url(url):
        raise InvalidURLError(f"Not an absolute request URL: {url!r}", url=url)
    return url


class ContentParser:
    """
    Parses HTML content and extracts anchor links.

    Links come back in document order (depth-first, pre-order), resolved
    against the supplied base URL. Repeated links within one page are kept.
    """

    def __init__(self, features: str = 'lxml'):
        self.features = features
        self.logger = logging.getLogger(__name__)

    def _make_soup(self, html_content: Union[str, bytes]) -> BeautifulSoup:
        if self.features == 'html.parser':
            return BeautifulSoup(html_content, self.features,
                                 on_duplicate_attribute=_keep_first_attribute)
        return BeautifulSoup(html_content, self.features)

    def extract_links(self, html_content: Union[str, bytes], base_url: str) -> List[str]:
        """
        Extract absolute link targets from every <a> element.

        Args:
            html_content: Raw HTML content
            base_url: URL that relative hrefs are resolved against

        Returns:
            List of absolute URLs in document order

        Raises:
            ParseError: if the base URL or the document cannot be parsed
        """
        if not isinstance(base_url, str):
            raise ParseError(f"Invalid base URL {base_url!r}")
        try:
            urlsplit(base_url).port
        except ValueError as e:
            raise ParseError(f"Invalid base URL {base_url!r}: {e}", url=base_url) from e

        if not isinstance(html_content, (str, bytes)):
            raise ParseError(f"Cannot parse document of type {type(html_content).__name__}",
                             url=base_url)

        try:
            soup = self._make_soup(html_content)
        except ParserRejectedMarkup as e:
            raise ParseError(f"Markup rejected by {self.features}: {e}", url=base_url) from e
        except FeatureNotFound as e:
            raise ParseError(f"No HTML tree builder named {self.features!r}", url=base_url) from e

        links = []
        stack = [soup]
        while stack:
            node = stack.pop()
            if node.name == 'a':
                href = node.attrs.get('href')
                if href is not None:
                    absolute_url = self._resolve(base_url, href)
                    if absolute_url is not None:
                        links.append(absolute_url)

            # Reversed so the first child is popped next
            stack.extend(reversed([child for child in node.children if isinstance(child, Tag)]))

        self.logger.debug(f"Extracted {len(links)} links from {base_url}")
        return links

    def _resolve(self, base_url: str, href: str) -> Optional[str]:
        """Resolve an href against the base URL, or None if it is malformed."""
        href = href.strip()
        if _has_control_chars(href):
            self.logger.debug(f"Skipping malformed href: {href!r}")
            return None
        try:
            absolute_url = urljoin(base_url, href)
            urlsplit(absolute_url).port
        except ValueError as e:
            self.logger.debug(f"Skipping malformed href {href!r}: {e}")
            return None
        return absolute_url
