"""
Utility modules for configuration, logging and monitoring.
"""

from .config import Config, ConfigManager, load_config, validate_config
from .monitoring import IndexMonitor, MetricsCollector

__all__ = [
    'Config', 'ConfigManager', 'load_config', 'validate_config',
    'IndexMonitor', 'MetricsCollector'
]
