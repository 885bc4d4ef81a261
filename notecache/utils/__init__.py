"""
Utility modules for the notes cache.

Provides common utilities for:
- Structured logging
- Error handling
"""

from .logging import setup_logging, get_logger
from .errors import NoteCacheError, ValidationError, StorageError, ConfigurationError

__all__ = [
    "setup_logging",
    "get_logger",
    "NoteCacheError",
    "ValidationError",
    "StorageError",
    "ConfigurationError",
]
