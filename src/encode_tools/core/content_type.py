"""Format negotiation from HTTP headers.

Reads a Content-Type / Accept style header and maps its MIME type to a
SerializationFormat or ImageFormat.

Usage:
    found = header_to_convertable_format(
        {"Content-Type": "application/json; charset=utf-8"}, "content-type"
    )
    found.format  # SerializationFormat.JSON
"""

from collections.abc import Mapping
from enum import Enum
from typing import Any

from ..constants import (
    MIME_TYPES_PORTABLE_CONVERTABLE_FORMAT,
    PORTABLE_CONVERTABLE_FORMAT_MIME_TYPES,
    ImageFormat,
    SerializationFormat,
)
from ..backends.schemas import ExtractedContentType


def _headers_of(request: Any) -> Mapping[str, Any]:
    """Accept either a header mapping or an object with a .headers mapping."""
    headers = getattr(request, "headers", request)
    if not isinstance(headers, Mapping):
        raise TypeError(f"Expected a header mapping, got {type(headers).__name__}")
    return headers


def _read_header(headers: Mapping[str, Any], key: str) -> str | None:
    """Case-insensitive lookup. List values use their first entry."""
    wanted = key.lower()
    for name, value in headers.items():
        if name.lower() != wanted:
            continue
        if isinstance(value, (list, tuple)):
            value = value[0] if value else None
        return value
    return None


def header_to_convertable_format(
    request: Any,
    key: str,
    default: Enum | None = None,
    mime_types: Mapping[str, Enum] = MIME_TYPES_PORTABLE_CONVERTABLE_FORMAT,
    format_mime_types: Mapping[Enum, str] = PORTABLE_CONVERTABLE_FORMAT_MIME_TYPES,
    allowed: type[Enum] | None = None,
) -> ExtractedContentType:
    """Extract a serialization or image format from a header.

    Args:
        request: Header mapping, or an object with a .headers mapping
        key: Header name (case-insensitive)
        default: Format to report when the header is missing or unknown
        mime_types: MIME type -> format table
        format_mime_types: Format -> MIME type table, for the default
        allowed: Only accept formats of this enum

    Returns:
        ExtractedContentType with the format, its MIME type and the header
    """
    value = _read_header(_headers_of(request), key)

    if value:
        # Drop parameters such as "; charset=utf-8"
        mime_type = value.split(";", 1)[0].strip().lower()
        fmt = mime_types.get(mime_type)
        if fmt is not None and (allowed is None or isinstance(fmt, allowed)):
            return ExtractedContentType(format=fmt, mime_type=mime_type, header=key)

    return ExtractedContentType(
        format=default,
        mime_type=format_mime_types.get(default) if default is not None else None,
        header=key,
    )


def header_to_serialization_format(
    request: Any, key: str, default: SerializationFormat | None = None
) -> ExtractedContentType[SerializationFormat]:
    """Extract a SerializationFormat from a header."""
    return header_to_convertable_format(request, key, default, allowed=SerializationFormat)


def header_to_image_format(
    request: Any, key: str, default: ImageFormat | None = None
) -> ExtractedContentType[ImageFormat]:
    """Extract an ImageFormat from a header."""
    return header_to_convertable_format(request, key, default, allowed=ImageFormat)
