"""
Test configuration and fixtures for crawler tests
"""

import asyncio
import logging
import socket

import pytest
import pytest_asyncio
from aiohttp import web
from aiohttp.test_utils import TestServer

from src.crawler.fetcher import WebFetcher
from src.crawler.parser import ContentParser
from src.crawler.url_frontier import URLFrontier


INDEX_PAGE = """<html>
<head><title>Test Page</title></head>
<body>
    <a href="/link1">Link 1</a>
    <a href="/link2">Link 2</a>
</body>
</html>"""


def make_app() -> web.Application:
    """Small site: an index with two links, a redirect, and some broken pages."""

    async def index(request):
        return web.Response(text=INDEX_PAGE, content_type="text/html")

    async def link1(request):
        return web.Response(text='<a href="/">home</a>', content_type="text/html")

    async def link2(request):
        return web.Response(text='<a href="/link1">one</a>', content_type="text/html")

    async def redirect(request):
        raise web.HTTPFound("/dir/index.html")

    async def dir_index(request):
        return web.Response(text='<a href="page.html">page</a>', content_type="text/html")

    async def missing(request):
        return web.Response(status=404, text='<a href="/gone">gone</a>', content_type="text/html")

    async def undecodable(request):
        return web.Response(body=b"\xff\xfe\xfa<a>", content_type="text/html", charset="utf-8")

    async def bogus_charset(request):
        return web.Response(body=b"<a href='/x'>x</a>",
                            headers={"Content-Type": "text/html; charset=no-such-codec"})

    async def large(request):
        return web.Response(body=b"a" * 4096, content_type="text/html")

    async def slow(request):
        await asyncio.sleep(2)
        return web.Response(text="late", content_type="text/html")

    app = web.Application()
    app.router.add_get("/", index)
    app.router.add_get("/link1", link1)
    app.router.add_get("/link2", link2)
    app.router.add_get("/redirect", redirect)
    app.router.add_get("/dir/index.html", dir_index)
    app.router.add_get("/missing", missing)
    app.router.add_get("/undecodable", undecodable)
    app.router.add_get("/bogus-charset", bogus_charset)
    app.router.add_get("/large", large)
    app.router.add_get("/slow", slow)
    return app


@pytest_asyncio.fixture
async def http_server():
    """Local HTTP server serving the test site"""
    server = TestServer(make_app())
    await server.start_server()
    yield server
    await server.close()


@pytest.fixture
def site_url(http_server):
    """Root URL of the test site, with trailing slash"""
    return str(http_server.make_url("/"))


@pytest.fixture
def unused_url():
    """URL on a local port nothing listens on"""
    sock = socket.socket(socket.AF_INET, socket.SOCK_STREAM)
    sock.bind(("127.0.0.1", 0))
    port = sock.getsockname()[1]
    sock.close()
    return f"http://127.0.0.1:{port}/"


@pytest_asyncio.fixture
async def fetcher():
    """Started WebFetcher with a short timeout"""
    async with WebFetcher(user_agent="test-agent", request_timeout=5) as web_fetcher:
        yield web_fetcher


@pytest.fixture
def parser():
    return ContentParser()


@pytest.fixture
def frontier():
    return URLFrontier()


@pytest.fixture
def restore_logging():
    """Undo root logger changes made by setup_logging"""
    root_logger = logging.getLogger()
    handlers = list(root_logger.handlers)
    level = root_logger.level

    yield

    for handler in list(root_logger.handlers):
        if handler not in handlers:
            root_logger.removeHandler(handler)
            handler.close()
    for handler in handlers:
        if handler not in root_logger.handlers:
            root_logger.addHandler(handler)
    root_logger.setLevel(level)
