"""
Crawl step and the scheduler that drives it over a frontier.
"""

import asyncio
import logging
import time
from collections import defaultdict
from dataclasses import dataclass
from enum import Enum
from typing import Dict, Iterable, Optional

from .url_frontier import URLFrontier
from .fetcher import WebFetcher
from .parser import ContentParser, ensure_request_url
from .errors import FetchError, InvalidURLError, ParseError
from ..utils.config import Config
from ..utils.logger import get_crawler_logger

logger = get_crawler_logger(__name__)


class StepStatus(Enum):
    """Outcome of a single crawl step."""
    EMPTY = "empty"
    INVALID_URL = "invalid_url"
    FETCH_ERROR = "fetch_error"
    PARSE_ERROR = "parse_error"
    CRAWLED = "crawled"


@dataclass
class StepResult:
    """What happened to the URL handled by one crawl step."""
    status: StepStatus
    url: Optional[str] = None
    links_found: int = 0
    links_enqueued: int = 0
    bytes_downloaded: int = 0
    fetch_time: float = 0.0
    error: Optional[str] = None

    @property
    def failed(self) -> bool:
        return self.status in (StepStatus.FETCH_ERROR, StepStatus.PARSE_ERROR)


async def crawl_next(frontier: URLFrontier, fetcher: WebFetcher, parser: ContentParser,
                     base_url: Optional[str] = None) -> StepResult:
    """
    Pop one URL, fetch it, queue its unseen links and mark it visited.

    Relative links are resolved against ``base_url`` when given, otherwise
    against the URL the page was finally served from. A URL that is invalid
    or fails to fetch or parse is dropped without being marked visited.
    Errors never propagate out of this function.
    """
    url = frontier.dequeue()
    if url is None:
        return StepResult(status=StepStatus.EMPTY)

    try:
        ensure_request_url(url)
    except InvalidURLError as e:
        logger.log_url_event(logging.DEBUG, url, f"Dropping invalid URL: {e}")
        return StepResult(status=StepStatus.INVALID_URL, url=url, error=str(e))

    try:
        fetch_result = await fetcher.fetch(url)
    except FetchError as e:
        logger.log_url_event(logging.WARNING, url, f"Failed to fetch {url}: {e}")
        return StepResult(status=StepStatus.FETCH_ERROR, url=url, error=str(e))

    resolve_against = base_url or fetch_result.final_url or url
    try:
        links = parser.extract_links(fetch_result.content, resolve_against)
    except ParseError as e:
        logger.log_url_event(logging.WARNING, url, f"Failed to parse {url}: {e}")
        return StepResult(status=StepStatus.PARSE_ERROR, url=url, error=str(e),
                          bytes_downloaded=fetch_result.length,
                          fetch_time=fetch_result.fetch_time)

    enqueued = 0
    for link in links:
        if not frontier.is_visited(link) and frontier.enqueue(link):
            enqueued += 1

    frontier.mark_visited(url)

    logger.log_url_event(logging.DEBUG, url,
                         f"Crawled {url}: {len(links)} links, {enqueued} queued")
    return StepResult(
        status=StepStatus.CRAWLED,
        url=url,
        links_found=len(links),
        links_enqueued=enqueued,
        bytes_downloaded=fetch_result.length,
        fetch_time=fetch_result.fetch_time
    )


@dataclass
class CrawlStats:
    """Statistics for crawl operations."""
    start_time: float
    urls_crawled: int = 0
    errors: int = 0
    invalid_urls: int = 0
    links_enqueued: int = 0
    total_bytes_downloaded: int = 0
    average_response_time: float = 0.0
    urls_in_queue: int = 0

    @property
    def elapsed_time(self) -> float:
        return time.time() - self.start_time

    @property
    def pages_per_minute(self) -> float:
        elapsed_minutes = self.elapsed_time / 60
        return self.urls_crawled / elapsed_minutes if elapsed_minutes > 0 else 0

    def record(self, step: StepResult):
        """Fold the outcome of one step into the counters."""
        if step.status is StepStatus.CRAWLED:
            self.urls_crawled += 1
            self.links_enqueued += step.links_enqueued
            self.total_bytes_downloaded += step.bytes_downloaded
            self.average_response_time = (
                (self.average_response_time * (self.urls_crawled - 1) + step.fetch_time)
                / self.urls_crawled
            )
        elif step.status is StepStatus.INVALID_URL:
            self.invalid_urls += 1
        elif step.failed:
            self.errors += 1


class CrawlerScheduler:
    """
    Runs crawl steps one after another until the frontier drains or a limit
    is reached.

    A URL that keeps failing is retired after ``retry_attempts`` failures by
    marking it visited, so rediscovering it from other pages cannot make the
    crawl loop forever.
    """

    def __init__(self, config: Config):
        self.config = config
        self.logger = logging.getLogger(__name__)

        # Components
        self.url_frontier: Optional[URLFrontier] = None
        self.fetcher: Optional[WebFetcher] = None
        self.parser: Optional[ContentParser] = None

        # Crawl state
        self.stats = CrawlStats(start_time=time.time())
        self.is_running = False
        self.failures: Dict[str, int] = defaultdict(int)

    async def initialize(self):
        """Initialize all crawler components."""
        crawler_config = self.config.crawler

        self.url_frontier = URLFrontier(dedupe_pending=crawler_config.dedupe_pending)

        self.fetcher = WebFetcher(
            user_agent=crawler_config.user_agent,
            request_timeout=crawler_config.request_timeout,
            max_concurrent_requests=crawler_config.max_concurrent_requests,
            raise_for_status=crawler_config.raise_for_status,
            max_content_size=crawler_config.max_content_size
        )
        await self.fetcher.start()

        self.parser = ContentParser(features=crawler_config.html_parser)

        self.logger.info("Crawler scheduler initialized successfully")

    def add_seed_urls(self, urls: Optional[Iterable[str]] = None) -> int:
        """Add seed URLs to the frontier."""
        seeds = list(urls) if urls is not None else self.config.crawler.seed_urls
        added_count = self.url_frontier.enqueue_many(seeds)
        self.logger.info(f"Added {added_count} seed URLs to frontier")
        return added_count

    async def crawl_next(self) -> StepResult:
        """Run one crawl step against the scheduler's own components."""
        step = await crawl_next(self.url_frontier, self.fetcher, self.parser,
                                base_url=self.config.crawler.base_url)
        self.stats.record(step)

        if step.failed:
            self.failures[step.url] += 1
            if self.failures[step.url] >= max(self.config.crawler.retry_attempts, 1):
                self.logger.warning(
                    f"URL failed permanently after {self.failures[step.url]} attempts: {step.url}"
                )
                self.url_frontier.mark_visited(step.url)

        return step

    async def start_crawling(self, max_pages: Optional[int] = None,
                             max_duration: Optional[int] = None) -> CrawlStats:
        """
        Start the crawling process.

        Args:
            max_pages: Maximum number of pages to crawl (None for unlimited)
            max_duration: Maximum duration in seconds (None for unlimited)

        Returns:
            Statistics for this run
        """
        if self.is_running:
            self.logger.warning("Crawler is already running")
            return self.stats

        if max_pages is None:
            max_pages = self.config.crawler.max_pages
        if max_duration is None:
            max_duration = self.config.crawler.max_duration

        self.is_running = True
        self.stats = CrawlStats(start_time=time.time())

        if self.url_frontier.is_empty():
            self.add_seed_urls()

        stats_task = asyncio.create_task(self._stats_reporter())
        self.logger.info("Started crawling")

        try:
            while self.is_running:
                if max_pages is not None and self.stats.urls_crawled >= max_pages:
                    self.logger.info(f"Reached max pages limit: {max_pages}")
                    break

                if max_duration is not None and self.stats.elapsed_time >= max_duration:
                    self.logger.info(f"Reached max duration: {max_duration} seconds")
                    break

                step = await self.crawl_next()
                if step.status is StepStatus.EMPTY:
                    self.logger.info("Frontier is empty")
                    break
        finally:
            self.is_running = False
            stats_task.cancel()
            try:
                await stats_task
            except asyncio.CancelledError:
                pass

        self._log_final_stats()
        return self.stats

    async def _stats_reporter(self):
        """Periodically log crawl statistics."""
        while self.is_running:
            await asyncio.sleep(self.config.crawler.stats_interval)
            self._log_current_stats()

    def _log_current_stats(self):
        """Log current crawl statistics."""
        self.stats.urls_in_queue = self.url_frontier.size()

        self.logger.info(
            f"Crawl Progress: "
            f"Crawled={self.stats.urls_crawled}, "
            f"Queued={self.stats.urls_in_queue}, "
            f"Errors={self.stats.errors}, "
            f"Rate={self.stats.pages_per_minute:.1f} pages/min, "
            f"AvgTime={self.stats.average_response_time:.2f}s"
        )

    def _log_final_stats(self):
        """Log final crawl statistics."""
        frontier_stats = self.url_frontier.get_stats()
        self.stats.urls_in_queue = frontier_stats['total_queued']

        self.logger.info("=== CRAWL COMPLETED ===")
        logger.log_crawler_stat("urls_crawled", self.stats.urls_crawled)
        logger.log_crawler_stat("errors", self.stats.errors)
        self.logger.info(f"Invalid URLs dropped: {self.stats.invalid_urls}")
        self.logger.info(f"Total time: {self.stats.elapsed_time:.2f} seconds")
        self.logger.info(f"Average rate: {self.stats.pages_per_minute:.1f} pages/min")
        self.logger.info(f"Data downloaded: {self.stats.total_bytes_downloaded / 1024 / 1024:.1f} MB")
        self.logger.info(f"URLs remaining in queue: {frontier_stats['total_queued']}")
        self.logger.info(f"URLs visited: {frontier_stats['total_visited']}")
        self.logger.info(f"Fetcher stats: {self.fetcher.get_stats()}")

    async def stop_crawling(self):
        """Stop the crawling process after the current step."""
        self.logger.info("Stopping crawler...")
        self.is_running = False

    async def close(self):
        """Close all connections and cleanup resources."""
        self.is_running = False
        if self.fetcher:
            await self.fetcher.close()
        self.logger.info("Crawler scheduler closed")

    def get_stats(self) -> Dict:
        """Get current crawl statistics."""
        return {
            'urls_crawled': self.stats.urls_crawled,
            'errors': self.stats.errors,
            'invalid_urls': self.stats.invalid_urls,
            'links_enqueued': self.stats.links_enqueued,
            'elapsed_time': self.stats.elapsed_time,
            'pages_per_minute': self.stats.pages_per_minute,
            'average_response_time': self.stats.average_response_time,
            'total_bytes_downloaded': self.stats.total_bytes_downloaded,
            'urls_in_queue': self.url_frontier.size() if self.url_frontier else 0,
            'is_running': self.is_running
        }
