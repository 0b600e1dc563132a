"""Async client for Selectel object storage.

This package wraps the container and file operations of the Selectel
storage API and manages the session behind them: logging in with one of the
three authentication protocol versions, caching the token until it expires,
and resolving the numeric domain (storage shard) of the account.

Key Features:
    - Authentication protocols 1, 2 and 3
    - Proactive token renewal based on the cached expiry
    - Streaming uploads from bytes, paths, file objects or async iterables
    - Archive extraction and bulk delete

Recommended Usage:

    >>> from selstorage import SelectelStorageClient
    >>> async with SelectelStorageClient("123_bob", "secret") as client:
    ...     await client.upload_file("pics", b"...", file_name="a.jpg")
    ...     listing = await client.get_files("pics")
"""

__version__ = "0.1.0"

from .auth import IssuedToken, TokenState
from .core.exceptions import (
    AuthError,
    ConfigError,
    DomainResolutionError,
    ParseError,
    SelStorageError,
    StorageRequestError,
    UnsupportedFormatError,
    UploadStreamError,
    ValidationError,
)
from .schemas import (
    AccountInfo,
    AuthProtocol,
    ContainerInfo,
    ContainerObject,
    Credentials,
    FileListing,
    FileObject,
)
from .storage import SelectelStorageClient

__all__ = [
    # Client
    "SelectelStorageClient",
    # Session
    "AuthProtocol",
    "Credentials",
    "IssuedToken",
    "TokenState",
    # Results
    "AccountInfo",
    "ContainerInfo",
    "ContainerObject",
    "FileListing",
    "FileObject",
    # Errors
    "AuthError",
    "ConfigError",
    "DomainResolutionError",
    "ParseError",
    "SelStorageError",
    "StorageRequestError",
    "UnsupportedFormatError",
    "UploadStreamError",
    "ValidationError",
]
