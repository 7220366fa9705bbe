"""
URL Frontier implementation for managing URLs to crawl.
Keeps a FIFO queue of pending URLs and the set of visited URLs.
"""

import logging
import threading
from collections import deque
from typing import Deque, Dict, Iterable, Optional, Set


class URLFrontier:
    """
    Breadth-first URL frontier.

    URLs are handed out in the order they were discovered. A URL is only
    queued while it is absent from the visited set; by default the pending
    queue itself is not checked, so a URL found on two pages before being
    crawled is queued twice. Pass ``dedupe_pending=True`` to refuse URLs
    that are already waiting.
    """

    def __init__(self, dedupe_pending: bool = False):
        self.dedupe_pending = dedupe_pending
        self.logger = logging.getLogger(__name__)

        self.pending: Deque[str] = deque()
        self.visited: Set[str] = set()
        self._queued: Set[str] = set()

        # Guards pending and visited together
        self._lock = threading.Lock()

    def enqueue(self, url: str) -> bool:
        """
        Add a URL to the end of the queue.
        Returns True if the URL was added, False if already visited.
        """
        with self._lock:
            if url in self.visited:
                return False
            if self.dedupe_pending:
                if url in self._queued:
                    return False
                self._queued.add(url)
            self.pending.append(url)

        self.logger.debug(f"Added URL to frontier: {url}")
        return True

    def enqueue_many(self, urls: Iterable[str]) -> int:
        """Add multiple URLs to the frontier. Returns count of added URLs."""
        added_count = 0
        for url in urls:
            if self.enqueue(url):
                added_count += 1
        return added_count

    def dequeue(self) -> Optional[str]:
        """Remove and return the oldest pending URL, or None if the queue is empty."""
        with self._lock:
            if not self.pending:
                return None
            url = self.pending.popleft()
            self._queued.discard(url)

        self.logger.debug(f"Retrieved URL from frontier: {url}")
        return url

    def mark_visited(self, url: str):
        """Mark a URL as visited."""
        with self._lock:
            self.visited.add(url)
        self.logger.debug(f"Marked URL as visited: {url}")

    def is_visited(self, url: str) -> bool:
        with self._lock:
            return url in self.visited

    def is_empty(self) -> bool:
        """Check if the frontier has no pending URLs."""
        with self._lock:
            return not self.pending

    def size(self) -> int:
        """Number of pending URLs."""
        with self._lock:
            return len(self.pending)

    def __len__(self) -> int:
        return self.size()

    def __contains__(self, url: str) -> bool:
        with self._lock:
            return url in self.pending

    def get_stats(self) -> Dict[str, int]:
        """Get frontier statistics."""
        with self._lock:
            return {
                'total_queued': len(self.pending),
                'total_visited': len(self.visited)
            }
