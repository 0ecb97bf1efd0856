"""Helpers shared by both backends.

Usage:
    data = ensure_bytes("text")              # b"text"
    fmt = coerce_format(HashAlgorithm, "md5")  # HashAlgorithm.MD5
"""

import json
from enum import Enum
from typing import Any, TypeVar

from ..exceptions import InvalidFormat

E = TypeVar("E", bound=Enum)


def ensure_bytes(data: Any) -> bytes:
    """Convert supported binary-ish input to bytes.

    Args:
        data: bytes, bytearray, memoryview or str (UTF-8 encoded)

    Returns:
        The payload as bytes

    Raises:
        TypeError: If the input type has no byte representation
    """
    if isinstance(data, bytes):
        return data
    if isinstance(data, (bytearray, memoryview)):
        return bytes(data)
    if isinstance(data, str):
        return data.encode("utf-8")
    raise TypeError(f"Expected bytes-like or str, got {type(data).__name__}")


def canonical_json_bytes(obj: Any) -> bytes:
    """Deterministic JSON bytes for hashing objects.

    Keys are sorted and separators carry no whitespace, so equal objects
    hash equally regardless of insertion order.
    """
    s = json.dumps(obj, sort_keys=True, separators=(",", ":"), ensure_ascii=False, default=str)
    return s.encode("utf-8")


def coerce_format(enum_cls: type[E], value: Any) -> E:
    """Turn a string (or enum member) into a member of enum_cls.

    Args:
        enum_cls: Target enumeration
        value: Member or member value

    Returns:
        The matching enum member

    Raises:
        InvalidFormat: If value is not a member of enum_cls
    """
    if isinstance(value, enum_cls):
        return value
    try:
        return enum_cls(value)
    except ValueError:
        raise InvalidFormat(value) from None
