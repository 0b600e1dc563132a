"""Container and file operations."""

from .client import SelectelStorageClient
from .listing import build_bulk_delete_body, build_listing_params, parse_files
from .streams import to_byte_stream

__all__ = [
    "SelectelStorageClient",
    "build_bulk_delete_body",
    "build_listing_params",
    "parse_files",
    "to_byte_stream",
]
