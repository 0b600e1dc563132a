"""Exception hierarchy for selstorage."""

from typing import Optional


class SelStorageError(Exception):
    """Base exception for all selstorage errors."""

    pass


class ConfigError(SelStorageError):
    """Raised when client credentials or options are missing or invalid."""

    pass


class ValidationError(SelStorageError):
    """Raised when a required call parameter is missing or invalid."""

    pass


class AuthError(SelStorageError):
    """Raised when a login exchange or the domain probe fails."""

    def __init__(self, message: str, status_code: Optional[int] = None):
        super().__init__(message)
        self.status_code = status_code


class ParseError(SelStorageError):
    """Raised when an expected field is absent or malformed in a response."""

    pass


class DomainResolutionError(ParseError):
    """Raised when the numeric storage domain cannot be extracted."""

    pass


class UnsupportedFormatError(SelStorageError):
    """Raised when an unsupported listing format is requested."""

    pass


class StorageRequestError(SelStorageError):
    """Raised when a storage request fails in transport or with a non-2xx status."""

    def __init__(self, message: str, status_code: Optional[int] = None):
        super().__init__(message)
        self.status_code = status_code


class UploadStreamError(SelStorageError):
    """Raised when an upload source fails while it is being read."""

    pass
