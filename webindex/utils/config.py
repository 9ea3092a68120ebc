"""
Configuration management for index builds, crawls and queries.
"""

import yaml
import logging
from pathlib import Path
from typing import Any, Dict, Optional
from dataclasses import dataclass, field, fields


LOG_LEVELS = ('DEBUG', 'INFO', 'WARNING', 'ERROR', 'CRITICAL')


@dataclass
class WorkerConfig:
    """Configuration for the worker thread pool."""
    threads: int = 5


@dataclass
class CrawlerConfig:
    """Configuration for crawler behavior."""
    seed_url: Optional[str] = None
    limit: int = 50
    request_timeout: float = 10.0
    max_redirects: int = 3
    max_content_bytes: int = 10 * 1024 * 1024
    user_agent: str = "webindex/1.0"


@dataclass
class IndexConfig:
    """Configuration for index input and output."""
    path: Optional[str] = None
    output: str = "index.json"
    results: str = "results.json"


@dataclass
class LoggingConfig:
    """Configuration for logging."""
    level: str = "INFO"
    file: str = "logs/webindex.log"
    format: str = "%(asctime)s - %(name)s - %(levelname)s - %(message)s"


@dataclass
class MonitoringConfig:
    """Configuration for monitoring."""
    prometheus_port: int = 8000
    metrics_enabled: bool = False


@dataclass
class Config:
    """
    Main configuration class.

    One instance is created per process and handed to whatever needs it.
    """
    workers: WorkerConfig = field(default_factory=WorkerConfig)
    crawler: CrawlerConfig = field(default_factory=CrawlerConfig)
    index: IndexConfig = field(default_factory=IndexConfig)
    logging: LoggingConfig = field(default_factory=LoggingConfig)
    monitoring: MonitoringConfig = field(default_factory=MonitoringConfig)


def _build_section(section_cls, data: Optional[Dict[str, Any]]):
    """Build a section dataclass, rejecting keys it does not define."""
    data = data or {}
    known = {f.name for f in fields(section_cls)}
    unknown = set(data) - known
    if unknown:
        raise ValueError(f"Unknown {section_cls.__name__} option(s): {', '.join(sorted(unknown))}")
    return section_cls(**data)


class ConfigManager:
    """Manages configuration loading and validation."""

    def __init__(self, config_path: Optional[str] = None):
        self.config_path = Path(config_path) if config_path else None
        self._config: Optional[Config] = None

    def load_config(self) -> Config:
        """Load configuration from the YAML file, or defaults when no file was given."""
        if self.config_path is None:
            self._config = Config()
            self._validate_config()
            return self._config

        if not self.config_path.exists():
            raise FileNotFoundError(f"Configuration file not found: {self.config_path}")

        with open(self.config_path, 'r', encoding='utf-8') as file:
            config_data = yaml.safe_load(file) or {}

        self._config = self.from_dict(config_data)
        self._validate_config()
        return self._config

    @staticmethod
    def from_dict(config_data: Dict[str, Any]) -> Config:
        """Parse configuration sections from a plain mapping."""
        return Config(
            workers=_build_section(WorkerConfig, config_data.get('workers')),
            crawler=_build_section(CrawlerConfig, config_data.get('crawler')),
            index=_build_section(IndexConfig, config_data.get('index')),
            logging=_build_section(LoggingConfig, config_data.get('logging')),
            monitoring=_build_section(MonitoringConfig, config_data.get('monitoring'))
        )

    def _validate_config(self):
        """Validate configuration values."""
        if not self._config:
            raise ValueError("Configuration not loaded")

        validate_config(self._config)
        logging.getLogger(__name__).debug("Configuration validation passed")

    @property
    def config(self) -> Config:
        """Get the loaded configuration."""
        if not self._config:
            raise ValueError("Configuration not loaded. Call load_config() first.")
        return self._config


def validate_config(config: Config):
    """Raise ValueError if any configuration value is out of range."""
    if config.workers.threads < 1:
        raise ValueError("threads must be at least 1")

    if config.crawler.limit < 1:
        raise ValueError("limit must be at least 1")

    if config.crawler.request_timeout <= 0:
        raise ValueError("request_timeout must be positive")

    if config.crawler.max_redirects < 0:
        raise ValueError("max_redirects must be non-negative")

    if not 0 <= config.monitoring.prometheus_port <= 65535:
        raise ValueError("prometheus_port must be between 0 and 65535")

    if config.logging.level.upper() not in LOG_LEVELS:
        raise ValueError(f"logging level must be one of {', '.join(LOG_LEVELS)}")


def load_config(config_path: Optional[str] = None) -> Config:
    """Load configuration from file (or defaults when no path is given)."""
    return ConfigManager(config_path).load_config()
