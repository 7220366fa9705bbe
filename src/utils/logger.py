"""
Logging setup for the crawler: console plus rotating log files, optional
JSON output, and an adapter that tags records with the URL being crawled.
"""

import json
import logging
import logging.handlers
import sys
from datetime import datetime, timezone
from pathlib import Path
from typing import Any, Dict, Iterable, Optional

from .config import LoggingConfig

# Record attributes set by CrawlerLogAdapter that JSON output carries along
CONTEXT_FIELDS = ('url', 'event_type', 'stat_name', 'stat_value')

QUIET_LOGGERS = ('aiohttp', 'asyncio', 'bs4')


class JSONFormatter(logging.Formatter):
    """One JSON object per record."""

    def format(self, record: logging.LogRecord) -> str:
        entry = {
            'timestamp': datetime.fromtimestamp(record.created, tz=timezone.utc).isoformat(),
            'level': record.levelname,
            'logger': record.name,
            'message': record.getMessage(),
            'location': f"{record.module}:{record.funcName}:{record.lineno}",
        }
        entry.update({key: getattr(record, key) for key in CONTEXT_FIELDS if hasattr(record, key)})

        if record.exc_info:
            entry['exception'] = self.formatException(record.exc_info)

        return json.dumps(entry, ensure_ascii=False, default=str)


class CrawlerLogAdapter(logging.LoggerAdapter):
    """Merges fixed context into every record and adds crawl event helpers."""

    def __init__(self, logger: logging.Logger, extra: Optional[Dict[str, Any]] = None):
        super().__init__(logger, extra or {})

    def process(self, msg, kwargs):
        kwargs['extra'] = {**self.extra, **kwargs.get('extra', {})}
        return msg, kwargs

    def log_url_event(self, level: int, url: str, message: str, **kwargs):
        """Log something that happened to one URL."""
        kwargs['extra'] = {**kwargs.get('extra', {}), 'url': url, 'event_type': 'url_event'}
        self.log(level, message, **kwargs)

    def log_crawler_stat(self, stat_name: str, value: Any, **kwargs):
        """Log a named crawl counter at INFO."""
        kwargs['extra'] = {**kwargs.get('extra', {}), 'stat_name': stat_name,
                           'stat_value': value, 'event_type': 'crawler_stat'}
        self.info(f"Stat: {stat_name} = {value}", **kwargs)


class PerformanceFilter(logging.Filter):
    """Drops records from per-request transport loggers."""

    def __init__(self, suppress_modules: Iterable[str] = ('aiohttp.access', 'aiohttp.internal')):
        super().__init__()
        self.suppress_modules = tuple(suppress_modules)

    def filter(self, record: logging.LogRecord) -> bool:
        return not record.name.startswith(self.suppress_modules)


def _rotating_file(path: Path, level: int, max_mb: int, backups: int) -> logging.Handler:
    handler = logging.handlers.RotatingFileHandler(
        path, maxBytes=max_mb * 1024 * 1024, backupCount=backups, encoding='utf-8'
    )
    handler.setLevel(level)
    return handler


def setup_logging(config: LoggingConfig,
                  enable_performance_filtering: bool = True) -> logging.Logger:
    """
    Route the root logger to stdout, ``config.file`` and an ``errors.log``
    next to it. Any handlers already on the root logger are replaced.

    Returns the root logger.
    """
    log_file = Path(config.file)
    log_file.parent.mkdir(parents=True, exist_ok=True)

    formatter = JSONFormatter() if config.json else logging.Formatter(config.format)

    console = logging.StreamHandler(sys.stdout)
    console.setLevel(logging.INFO)
    handlers = [
        (console, True),
        (_rotating_file(log_file, logging.DEBUG, max_mb=50, backups=5), True),
        (_rotating_file(log_file.parent / 'errors.log', logging.ERROR, max_mb=10, backups=3), False),
    ]

    root_logger = logging.getLogger()
    root_logger.setLevel(getattr(logging, config.level.upper()))
    root_logger.handlers.clear()

    for handler, filtered in handlers:
        handler.setFormatter(formatter)
        if filtered and enable_performance_filtering:
            handler.addFilter(PerformanceFilter())
        root_logger.addHandler(handler)

    for name in QUIET_LOGGERS:
        logging.getLogger(name).setLevel(logging.WARNING)

    root_logger.info(f"Logging to {log_file} at level {config.level}")
    return root_logger


def get_crawler_logger(name: str, **extra_context) -> CrawlerLogAdapter:
    """Return a CrawlerLogAdapter for ``name`` carrying ``extra_context`` on every record."""
    return CrawlerLogAdapter(logging.getLogger(name), extra_context)
