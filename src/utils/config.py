"""
Configuration management for the web crawler system.
"""

import yaml
import logging
from pathlib import Path
from typing import Dict, List, Any, Optional
from dataclasses import dataclass, field

from bs4.builder import builder_registry

from ..crawler.parser import is_request_url


@dataclass
class CrawlerConfig:
    """Configuration for crawler behavior."""
    seed_urls: List[str] = field(default_factory=list)
    request_timeout: float = 30
    max_concurrent_requests: int = 10
    retry_attempts: int = 3
    user_agent: str = "bfs-web-crawler/1.0"
    raise_for_status: bool = False
    max_content_size: int = 10 * 1024 * 1024
    html_parser: str = "lxml"
    # None resolves links against each page's own (post-redirect) URL
    base_url: Optional[str] = None
    dedupe_pending: bool = False
    max_pages: Optional[int] = None
    max_duration: Optional[int] = None
    stats_interval: float = 30


@dataclass
class LoggingConfig:
    """Configuration for logging."""
    level: str = "INFO"
    file: str = "logs/crawler.log"
    format: str = "%(asctime)s - %(name)s - %(levelname)s - %(message)s"
    json: bool = False


@dataclass
class Config:
    """Main configuration class."""
    crawler: CrawlerConfig = field(default_factory=CrawlerConfig)
    logging: LoggingConfig = field(default_factory=LoggingConfig)

    @classmethod
    def from_dict(cls, config_data: Optional[Dict[str, Any]]) -> 'Config':
        """Build a Config from a parsed YAML mapping."""
        config_data = config_data or {}
        return cls(
            crawler=CrawlerConfig(**(config_data.get('crawler') or {})),
            logging=LoggingConfig(**(config_data.get('logging') or {}))
        )


class ConfigManager:
    """Manages configuration loading and validation."""

    def __init__(self, config_path: str = "config.yaml"):
        self.config_path = Path(config_path)
        self._config: Optional[Config] = None

    def load_config(self, seed_urls: Optional[List[str]] = None) -> Config:
        """Load configuration from YAML file."""
        if not self.config_path.exists():
            raise FileNotFoundError(f"Configuration file not found: {self.config_path}")

        with open(self.config_path, 'r') as file:
            config_data = yaml.safe_load(file)

        try:
            self._config = Config.from_dict(config_data)
        except TypeError as e:
            raise ValueError(f"Invalid configuration in {self.config_path}: {e}") from e

        if seed_urls:
            self._config.crawler.seed_urls = list(seed_urls)

        self._validate_config()
        return self._config

    def _validate_config(self):
        """Validate configuration values."""
        if not self._config:
            raise ValueError("Configuration not loaded")

        crawler = self._config.crawler

        # Validate seed URLs
        if not crawler.seed_urls:
            raise ValueError("At least one seed URL must be provided")

        for url in crawler.seed_urls:
            if not is_request_url(url):
                raise ValueError(f"Seed URL is not an absolute URL: {url!r}")

        if crawler.base_url is not None and not is_request_url(crawler.base_url):
            raise ValueError(f"base_url is not an absolute URL: {crawler.base_url!r}")

        # Validate numeric values
        if crawler.request_timeout <= 0:
            raise ValueError("request_timeout must be positive")

        if crawler.max_concurrent_requests < 1:
            raise ValueError("max_concurrent_requests must be at least 1")

        if crawler.max_content_size < 1:
            raise ValueError("max_content_size must be at least 1")

        if crawler.retry_attempts < 0:
            raise ValueError("retry_attempts must be non-negative")

        if crawler.stats_interval <= 0:
            raise ValueError("stats_interval must be positive")

        for name in ("max_pages", "max_duration"):
            value = getattr(crawler, name)
            if value is not None and value < 1:
                raise ValueError(f"{name} must be at least 1 when set")

        if builder_registry.lookup(crawler.html_parser) is None:
            raise ValueError(f"Unknown html_parser: {crawler.html_parser!r}")

        logging.info("Configuration validation passed")

    @property
    def config(self) -> Config:
        """Get the loaded configuration."""
        if not self._config:
            raise ValueError("Configuration not loaded. Call load_config() first.")
        return self._config


# Global config manager instance
config_manager = ConfigManager()


def get_config() -> Config:
    """Get the global configuration instance."""
    return config_manager.config


def load_config(config_path: str = "config.yaml", seed_urls: Optional[List[str]] = None) -> Config:
    """Load configuration from file."""
    global config_manager
    config_manager = ConfigManager(config_path)
    return config_manager.load_config(seed_urls)
