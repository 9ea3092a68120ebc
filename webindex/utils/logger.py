"""
Logging setup for index builds, crawls and query runs.
"""

import json
import logging
import logging.handlers
import sys
from datetime import datetime, timezone
from pathlib import Path
from typing import Any, Dict, Optional

from .config import LoggingConfig


# Record attributes copied into JSON output when a document event sets them
DOCUMENT_FIELDS = ('document', 'source', 'event')


class JSONFormatter(logging.Formatter):
    """One JSON object per record, for log shippers."""

    def format(self, record: logging.LogRecord) -> str:
        entry = {
            'time': datetime.fromtimestamp(record.created, tz=timezone.utc).isoformat(),
            'level': record.levelname,
            'logger': record.name,
            'thread': record.threadName,
            'message': record.getMessage(),
        }
        for key in DOCUMENT_FIELDS:
            value = getattr(record, key, None)
            if value is not None:
                entry[key] = value

        if record.exc_info:
            entry['exception'] = self.formatException(record.exc_info)

        return json.dumps(entry, ensure_ascii=False)


class IndexLogAdapter(logging.LoggerAdapter):
    """
    Logger adapter for code that handles one document at a time.

    ``source`` (``file`` or ``web``) is fixed per adapter; document events
    also carry the document ID and what happened to it.
    """

    def __init__(self, logger: logging.Logger, source: str):
        super().__init__(logger, {'source': source})

    def process(self, msg: str, kwargs: Dict[str, Any]) -> tuple:
        kwargs['extra'] = {**self.extra, **kwargs.get('extra', {})}
        return msg, kwargs

    def log_document_event(self, level: int, document_id: str, event: str, message: str):
        """Log something that happened to one document (indexed, skipped, fetch_failed...)."""
        self.log(level, f"[{event}] {message}", extra={'document': document_id, 'event': event})


class NoiseFilter(logging.Filter):
    """Drops records from chatty third-party loggers."""

    def __init__(self, suppressed: Optional[tuple] = None):
        super().__init__()
        self.suppressed = suppressed or ('aiohttp.access', 'aiohttp.client', 'urllib3.connectionpool')

    def filter(self, record: logging.LogRecord) -> bool:
        if record.name.startswith(self.suppressed):
            return False
        return not (record.levelno == logging.DEBUG and record.name.startswith('asyncio'))


def _handler(handler: logging.Handler, level: int, formatter: logging.Formatter,
             noise_filter: Optional[NoiseFilter]) -> logging.Handler:
    handler.setLevel(level)
    handler.setFormatter(formatter)
    if noise_filter:
        handler.addFilter(noise_filter)
    return handler


def setup_logging(config: LoggingConfig,
                  enable_json: bool = False,
                  enable_noise_filtering: bool = True) -> logging.Logger:
    """
    Configure the root logger.

    Installs a console handler and a rotating log file at the configured
    level, and an ``errors.log`` beside the log file for ERROR and above.

    Args:
        config: Logging configuration
        enable_json: Emit JSON records instead of the configured text format
        enable_noise_filtering: Drop chatty third-party records

    Returns:
        The root logger
    """
    level = getattr(logging, config.level.upper())
    log_file = Path(config.file)
    log_file.parent.mkdir(parents=True, exist_ok=True)

    formatter = JSONFormatter() if enable_json else logging.Formatter(config.format)
    noise_filter = NoiseFilter() if enable_noise_filtering else None

    root_logger = logging.getLogger()
    root_logger.setLevel(level)
    for handler in list(root_logger.handlers):
        root_logger.removeHandler(handler)
        handler.close()

    root_logger.addHandler(_handler(logging.StreamHandler(sys.stdout), level, formatter, noise_filter))
    root_logger.addHandler(_handler(
        logging.handlers.RotatingFileHandler(log_file, maxBytes=50 * 1024 * 1024,
                                             backupCount=5, encoding='utf-8'),
        logging.DEBUG, formatter, noise_filter
    ))
    root_logger.addHandler(_handler(
        logging.handlers.RotatingFileHandler(log_file.parent / 'errors.log', maxBytes=10 * 1024 * 1024,
                                             backupCount=3, encoding='utf-8'),
        logging.ERROR, formatter, None
    ))

    for name in ('aiohttp', 'asyncio', 'urllib3'):
        logging.getLogger(name).setLevel(logging.WARNING)

    return root_logger


def get_index_logger(name: str, source: str) -> IndexLogAdapter:
    """Logger for a component that indexes documents from ``source``."""
    return IndexLogAdapter(logging.getLogger(name), source)


def log_system_info(threads: int):
    """Log the host resources available to the worker pool."""
    import platform
    import psutil

    logger = logging.getLogger(__name__)
    memory = psutil.virtual_memory()
    logger.info(f"Platform: {platform.platform()}, Python {sys.version.split()[0]}")
    logger.info(f"CPU cores: {psutil.cpu_count()}, worker threads: {threads}")
    logger.info(f"Memory: {memory.available / 1024**3:.1f} GB free of {memory.total / 1024**3:.1f} GB")
