"""Core utilities and shared components for selstorage."""

from .config import StorageSettings, settings
from .exceptions import SelStorageError, ValidationError
from .observability import get_logger, get_tracer

__all__ = [
    "StorageSettings",
    "settings",
    "SelStorageError",
    "ValidationError",
    "get_logger",
    "get_tracer",
]
