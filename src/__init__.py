"""
Web Crawler

A breadth-first web crawler: fetch a page, queue the links it has not
seen yet, repeat.
"""

__version__ = "1.0.0"
__description__ = "A breadth-first web crawler"
