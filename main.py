#!/usr/bin/env python3
"""
Main entry point for the web crawler.
"""

import asyncio
import argparse
import logging
import signal
import sys
from pathlib import Path
from typing import List, Optional

from src import __version__
from src.utils.config import load_config, Config
from src.utils.logger import setup_logging
from src.crawler.scheduler import CrawlerScheduler


class CrawlerApp:
    """Main application class for the web crawler."""

    def __init__(self):
        self.scheduler: Optional[CrawlerScheduler] = None
        self.logger = logging.getLogger(__name__)

    def setup_signal_handlers(self):
        """Stop the crawl after the current step on SIGINT/SIGTERM."""
        loop = asyncio.get_running_loop()

        def signal_handler(signum):
            self.logger.info(f"Received signal {signum}, initiating shutdown...")
            if self.scheduler:
                loop.create_task(self.scheduler.stop_crawling())

        for signum in (signal.SIGINT, signal.SIGTERM):
            try:
                loop.add_signal_handler(signum, signal_handler, signum)
            except NotImplementedError:
                # Not available on Windows event loops
                signal.signal(signum, lambda s, f: signal_handler(s))

    async def run(self, config_path: str, seeds: Optional[List[str]] = None,
                  max_pages: Optional[int] = None, max_duration: Optional[int] = None,
                  dry_run: bool = False) -> int:
        """Run the web crawler."""
        try:
            config = load_config(config_path, seed_urls=seeds)
            setup_logging(config.logging)
            self.setup_signal_handlers()

            self.logger.info("=== WEB CRAWLER STARTING ===")
            self.logger.info(f"Configuration loaded from: {config_path}")
            self.logger.info(f"Seed URLs: {config.crawler.seed_urls}")
            self.logger.info(f"Request timeout: {config.crawler.request_timeout}s")
            self.logger.info(f"Base URL for resolution: {config.crawler.base_url or 'page URL'}")

            self.scheduler = CrawlerScheduler(config)
            await self.scheduler.initialize()

            if dry_run:
                self.logger.info("DRY RUN MODE: No actual crawling will be performed")
                await self._dry_run(config)
                return 0

            await self.scheduler.start_crawling(max_pages, max_duration)

        except Exception as e:
            self.logger.error(f"Fatal error: {e}", exc_info=True)
            return 1

        finally:
            if self.scheduler:
                await self.scheduler.close()
            self.logger.info("=== WEB CRAWLER FINISHED ===")

        return 0

    async def _dry_run(self, config: Config):
        """Fetch the seed URLs once to test configuration and connectivity."""
        results = await self.scheduler.fetcher.fetch_multiple(config.crawler.seed_urls)
        for result in results:
            if result.error:
                self.logger.warning(f"✗ Test fetch failed for {result.url}: {result.error}")
            else:
                self.logger.info(f"✓ Test fetch successful for {result.url}: "
                                 f"{result.status_code} ({result.length} bytes)")

        self.logger.info("Dry run completed")


def build_arg_parser() -> argparse.ArgumentParser:
    parser = argparse.ArgumentParser(
        description="Breadth-first web crawler",
        formatter_class=argparse.RawDescriptionHelpFormatter,
        epilog="""
Examples:
  python main.py                                  # Run with default config.yaml
  python main.py --config my_config.yaml         # Run with custom config
  python main.py --seed https://example.com/     # Override the seed URLs
  python main.py --max-pages 100                 # Limit to 100 pages
  python main.py --max-duration 3600             # Run for 1 hour max
  python main.py --dry-run                       # Fetch seeds only
        """
    )

    parser.add_argument(
        '--config',
        default='config.yaml',
        help='Path to configuration file (default: config.yaml)'
    )

    parser.add_argument(
        '--seed',
        action='append',
        dest='seeds',
        metavar='URL',
        help='Seed URL to start from (repeatable, overrides config seeds)'
    )

    parser.add_argument(
        '--max-pages',
        type=int,
        help='Maximum number of pages to crawl'
    )

    parser.add_argument(
        '--max-duration',
        type=int,
        help='Maximum crawl duration in seconds'
    )

    parser.add_argument(
        '--dry-run',
        action='store_true',
        help='Fetch the seed URLs once without crawling'
    )

    parser.add_argument(
        '--version',
        action='version',
        version=f'Web Crawler {__version__}'
    )

    return parser


def main(argv: Optional[List[str]] = None) -> int:
    """Main entry point."""
    args = build_arg_parser().parse_args(argv)

    if not Path(args.config).exists():
        print(f"Error: Configuration file '{args.config}' not found.")
        print("Please create a config.yaml file or specify a different path with --config")
        return 1

    app = CrawlerApp()
    try:
        return asyncio.run(app.run(
            config_path=args.config,
            seeds=args.seeds,
            max_pages=args.max_pages,
            max_duration=args.max_duration,
            dry_run=args.dry_run
        ))
    except KeyboardInterrupt:
        print("\nInterrupted by user")
        return 1


if __name__ == '__main__':
    sys.exit(main())
