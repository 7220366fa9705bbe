"""
Command Line Tests
"""

import pytest

from main import CrawlerApp, build_arg_parser, main


def write_config(tmp_path, seed_url):
    path = tmp_path / "config.yaml"
    path.write_text(f"""
crawler:
  seed_urls: ["{seed_url}"]
  request_timeout: 5
logging:
  file: "{tmp_path / 'logs' / 'crawler.log'}"
""")
    return path


def test_arg_parser_collects_seeds():
    args = build_arg_parser().parse_args([
        "--seed", "http://a.com", "--seed", "http://b.com", "--max-pages", "5"
    ])

    assert args.seeds == ["http://a.com", "http://b.com"]
    assert args.max_pages == 5
    assert args.config == "config.yaml"
    assert args.dry_run is False


def test_main_missing_config(tmp_path, capsys):
    assert main(["--config", str(tmp_path / "missing.yaml")]) == 1
    assert "not found" in capsys.readouterr().out


@pytest.mark.asyncio
async def test_app_dry_run(tmp_path, site_url, restore_logging):
    path = write_config(tmp_path, site_url)

    app = CrawlerApp()
    assert await app.run(str(path), dry_run=True) == 0
    assert app.scheduler.url_frontier.visited == set()


@pytest.mark.asyncio
async def test_app_crawls_seed_override(tmp_path, site_url, unused_url, restore_logging):
    path = write_config(tmp_path, unused_url)

    app = CrawlerApp()
    assert await app.run(str(path), seeds=[site_url], max_pages=2) == 0
    assert app.scheduler.stats.urls_crawled == 2


@pytest.mark.asyncio
async def test_app_invalid_config_returns_error(tmp_path, restore_logging):
    path = tmp_path / "config.yaml"
    path.write_text("crawler:\n  seed_urls: []\n")

    assert await CrawlerApp().run(str(path)) == 1
