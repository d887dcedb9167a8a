"""Configuration module for lovesync.

Public API:
----------
settings: Settings instance
    Pydantic settings object with nested configuration

get_settings() -> Settings
    Accessor for the settings singleton

get_logger(name: str) -> Logger
    Get a context-aware logger for your module

setup_loguru_logger(verbose: bool = False) -> None
    Configure Loguru logger for the application

resilient_operation(operation_name: str)
    Decorator for logging errors in external API calls

Usage:
------
```python
from lovesync.config import settings
page_size = settings.api.subsonic_page_size

from lovesync.config import get_logger
logger = get_logger(__name__)
logger.info("Starting sync")
```
"""

from .logging import get_logger, resilient_operation, setup_loguru_logger
from .settings import Settings, get_settings, settings

__all__ = [
    "Settings",
    "get_logger",
    "get_settings",
    "resilient_operation",
    "settings",
    "setup_loguru_logger",
]
