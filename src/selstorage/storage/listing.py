"""Request and response helpers for container and file listings."""

import json
from typing import Any, Optional

from pydantic import TypeAdapter
from pydantic import ValidationError as PydanticValidationError

from selstorage.core.exceptions import ParseError, UnsupportedFormatError
from selstorage.schemas import ContainerInfo, FileObject

_file_objects = TypeAdapter(list[FileObject])


def parse_files(body: str, format: Optional[str] = None) -> list[FileObject] | list[str]:
    """Parse a container listing body.

    Args:
        body: Response text
        format: ``"json"`` for file objects, ``None`` for the plain listing
            of one name per line; ``"xml"`` is not supported

    Returns:
        File objects for JSON listings, file names otherwise

    Raises:
        UnsupportedFormatError: If an XML or unknown listing is requested
        ParseError: If a JSON listing cannot be decoded
    """
    if format == "json":
        try:
            return _file_objects.validate_python(json.loads(body))
        except (json.JSONDecodeError, PydanticValidationError) as e:
            raise ParseError(f"Malformed JSON file listing: {e}") from e
    if format == "xml":
        raise UnsupportedFormatError("XML listings are not supported")
    if format is not None:
        raise UnsupportedFormatError(f"Unknown listing format: {format}")

    stripped = body.strip()
    if not stripped:
        return []
    return stripped.split("\n")


def build_listing_params(
    format: Optional[str] = None,
    limit: Optional[int] = None,
    marker: Optional[str] = None,
    prefix: Optional[str] = None,
    delimiter: Optional[str] = None,
) -> dict[str, str]:
    """Build query parameters for a file listing, skipping unset ones."""
    params: dict[str, str] = {}
    if format is not None:
        params["format"] = format
    if limit is not None:
        params["limit"] = str(limit)
    if marker is not None:
        params["marker"] = marker
    if prefix is not None:
        params["prefix"] = prefix
    if delimiter is not None:
        params["delimiter"] = delimiter
    return params


def build_bulk_delete_body(container: str, files: list[str]) -> str:
    """Newline separated full paths, e.g. ``pics/a.jpg\\npics/b.jpg``."""
    return "\n".join(f"{container}/{name}" for name in files)


def header_int(headers: Any, name: str) -> Optional[int]:
    """Integer value of a response header, ``None`` when absent."""
    value = headers.get(name)
    if value is None:
        return None
    try:
        return int(value)
    except ValueError as e:
        raise ParseError(f"Header '{name}' is not an integer: {value!r}") from e


def container_info_from_headers(headers: Any) -> ContainerInfo:
    return ContainerInfo(
        files_amount=header_int(headers, "x-container-object-count"),
        container_size=header_int(headers, "x-container-bytes-used"),
        container_type=headers.get("x-container-meta-type"),
    )
