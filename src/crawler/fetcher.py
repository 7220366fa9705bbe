"""
Web page fetcher implementation on top of aiohttp.
"""

import asyncio
import logging
import time
from dataclasses import dataclass
from typing import Dict, List, Optional

import aiohttp
from aiohttp import ClientError, ClientSession, ClientTimeout

from .errors import FetchError


@dataclass
class FetchResult:
    """Result of a fetch operation."""
    url: str
    status_code: int
    content: Optional[str] = None
    final_url: Optional[str] = None
    error: Optional[str] = None
    fetch_time: float = 0.0
    content_type: Optional[str] = None
    encoding: Optional[str] = None
    length: int = 0

    @property
    def ok(self) -> bool:
        return self.error is None


class WebFetcher:
    """
    Fetches web pages with a bounded timeout and a single attempt per call.

    Redirects are followed by the transport; ``FetchResult.final_url`` holds
    the URL the body was actually served from. Non-success status codes are
    returned like any other response unless ``raise_for_status`` is set.
    """

    def __init__(self, user_agent: str, request_timeout: float = 30,
                 max_concurrent_requests: int = 10, raise_for_status: bool = False,
                 max_content_size: int = 10 * 1024 * 1024):
        self.user_agent = user_agent
        self.request_timeout = request_timeout
        self.max_concurrent_requests = max_concurrent_requests
        self.raise_for_status = raise_for_status
        self.max_content_size = max_content_size

        self.logger = logging.getLogger(__name__)

        # Session management
        self.session: Optional[ClientSession] = None
        self.semaphore = asyncio.Semaphore(max_concurrent_requests)

        # Statistics
        self.stats = {
            'total_requests': 0,
            'successful_requests': 0,
            'failed_requests': 0,
            'total_bytes_downloaded': 0
        }

    async def __aenter__(self):
        """Async context manager entry."""
        await self.start()
        return self

    async def __aexit__(self, exc_type, exc_val, exc_tb):
        """Async context manager exit."""
        await self.close()

    async def start(self):
        """Initialize the fetcher session."""
        if self.session is None:
            timeout = ClientTimeout(total=self.request_timeout)
            headers = {'User-Agent': self.user_agent}

            self.session = aiohttp.ClientSession(
                timeout=timeout,
                headers=headers,
                connector=aiohttp.TCPConnector(
                    limit=self.max_concurrent_requests * 2,
                    ttl_dns_cache=300,
                    use_dns_cache=True
                )
            )
            self.logger.info("WebFetcher session started")

    async def close(self):
        """Close the fetcher session."""
        if self.session:
            await self.session.close()
            self.session = None
            self.logger.info("WebFetcher session closed")

    async def fetch(self, url: str) -> FetchResult:
        """
        Fetch a single URL.

        Args:
            url: The URL to fetch

        Returns:
            FetchResult with the decoded response body

        Raises:
            FetchError: on connection failure, timeout, oversized or
                undecodable body, or a rejected status code
        """
        if self.session is None:
            raise FetchError("Fetcher session not started", url=url)

        start_time = time.time()
        self.stats['total_requests'] += 1

        try:
            async with self.session.get(url) as response:
                if self.raise_for_status and not 200 <= response.status < 300:
                    raise FetchError(f"HTTP status {response.status}", url=url,
                                     status_code=response.status)

                content_bytes = await self._read_content(response)
                encoding = response.charset or 'utf-8'
                try:
                    content = content_bytes.decode(encoding)
                except (UnicodeDecodeError, LookupError) as e:
                    raise FetchError(f"Cannot decode body as {encoding}: {e}", url=url,
                                     status_code=response.status) from e

                result = FetchResult(
                    url=url,
                    status_code=response.status,
                    content=content,
                    final_url=str(response.url),
                    content_type=response.headers.get('content-type', '').lower(),
                    encoding=encoding,
                    fetch_time=time.time() - start_time,
                    length=len(content_bytes)
                )

        except asyncio.TimeoutError as e:
            self.stats['failed_requests'] += 1
            self.logger.warning(f"Timeout fetching {url}")
            raise FetchError("Request timeout", url=url) from e

        except (ClientError, ValueError) as e:
            self.stats['failed_requests'] += 1
            self.logger.warning(f"Client error fetching {url}: {e}")
            raise FetchError(f"Client error: {e}", url=url) from e

        except FetchError as e:
            self.stats['failed_requests'] += 1
            self.logger.warning(f"Failed to fetch {url}: {e}")
            raise

        self.stats['successful_requests'] += 1
        self.stats['total_bytes_downloaded'] += result.length
        self.logger.debug(f"Fetched {url}: {result.status_code} ({result.length} bytes)")
        return result

    async def _read_content(self, response) -> bytes:
        """Read the whole response body, refusing anything over max_content_size."""
        content_length = response.headers.get('content-length')
        if content_length and content_length.isdigit() and int(content_length) > self.max_content_size:
            raise FetchError(f"Content too large ({content_length} bytes)", url=str(response.url),
                             status_code=response.status)

        content_bytes = b''
        async for chunk in response.content.iter_chunked(8192):
            content_bytes += chunk
            if len(content_bytes) > self.max_content_size:
                raise FetchError("Content exceeded size limit during reading",
                                 url=str(response.url), status_code=response.status)
        return content_bytes

    async def _fetch_bounded(self, url: str) -> FetchResult:
        async with self.semaphore:
            try:
                return await self.fetch(url)
            except FetchError as e:
                return FetchResult(
                    url=url,
                    status_code=e.status_code or 0,
                    error=str(e)
                )

    async def fetch_multiple(self, urls: List[str]) -> List[FetchResult]:
        """
        Fetch multiple URLs concurrently.

        At most ``max_concurrent_requests`` requests are in flight at once.
        Failures are reported through ``FetchResult.error`` instead of being
        raised.

        Args:
            urls: List of URLs to fetch

        Returns:
            List of FetchResult objects, in the same order as ``urls``
        """
        tasks = [self._fetch_bounded(url) for url in urls]
        return list(await asyncio.gather(*tasks))

    def get_stats(self) -> Dict[str, int]:
        """Get fetcher statistics."""
        return self.stats.copy()
