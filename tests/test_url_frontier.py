"""
URL Frontier Tests

Tests for FIFO ordering and visited-set bookkeeping.
"""

import threading

from src.crawler.url_frontier import URLFrontier


def test_dequeue_returns_urls_in_enqueue_order(frontier):
    urls = [f"http://example.com/{i}" for i in range(5)]
    for url in urls:
        frontier.enqueue(url)

    assert [frontier.dequeue() for _ in urls] == urls


def test_enqueue_after_mark_visited_is_ignored(frontier):
    url = "http://example.com"

    assert frontier.enqueue(url) is True
    frontier.mark_visited(url)
    assert frontier.enqueue(url) is False

    assert frontier.size() == 1
    assert list(frontier.pending) == [url]


def test_dequeue_empty_frontier_returns_none(frontier):
    assert frontier.dequeue() is None
    assert frontier.is_empty() is True
    assert frontier.size() == 0


def test_dequeue_drains_frontier(frontier):
    frontier.enqueue("http://example.com")

    assert frontier.dequeue() == "http://example.com"
    assert frontier.is_empty() is True
    assert frontier.dequeue() is None


def test_mark_visited_is_idempotent(frontier):
    frontier.mark_visited("http://example.com")
    frontier.mark_visited("http://example.com")

    assert frontier.is_visited("http://example.com")
    assert len(frontier.visited) == 1


def test_dequeue_does_not_mark_visited(frontier):
    frontier.enqueue("http://example.com")
    url = frontier.dequeue()

    assert frontier.is_visited(url) is False


def test_pending_duplicates_are_kept_by_default(frontier):
    frontier.enqueue("http://example.com/a")
    frontier.enqueue("http://example.com/a")

    assert frontier.size() == 2


def test_dedupe_pending_refuses_queued_url():
    frontier = URLFrontier(dedupe_pending=True)

    assert frontier.enqueue("http://example.com/a") is True
    assert frontier.enqueue("http://example.com/a") is False
    assert frontier.size() == 1

    # Once handed out and not visited, it may be queued again
    frontier.dequeue()
    assert frontier.enqueue("http://example.com/a") is True


def test_enqueue_many_counts_added(frontier):
    frontier.mark_visited("http://example.com/b")

    added = frontier.enqueue_many([
        "http://example.com/a",
        "http://example.com/b",
        "http://example.com/c",
    ])

    assert added == 2
    assert list(frontier.pending) == ["http://example.com/a", "http://example.com/c"]


def test_len_contains_and_stats(frontier):
    frontier.enqueue("http://example.com/a")
    frontier.enqueue("http://example.com/b")
    frontier.mark_visited("http://example.com/z")

    assert len(frontier) == 2
    assert "http://example.com/a" in frontier
    assert "http://example.com/z" not in frontier
    assert frontier.get_stats() == {"total_queued": 2, "total_visited": 1}


def test_concurrent_enqueue_keeps_every_url(frontier):
    def worker(offset):
        for i in range(200):
            frontier.enqueue(f"http://example.com/{offset}/{i}")

    threads = [threading.Thread(target=worker, args=(n,)) for n in range(4)]
    for thread in threads:
        thread.start()
    for thread in threads:
        thread.join()

    assert frontier.size() == 800
    assert len(set(frontier.pending)) == 800
