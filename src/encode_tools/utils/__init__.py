"""Utility functions for encode-tools.

This module contains:
- Config file management
- Byte and format coercion helpers
"""

from .binary import canonical_json_bytes, coerce_format, ensure_bytes
from .config import get_config_path, get_value, load_config, load_option_bags, save_config, set_value

__all__ = [
    "load_config",
    "save_config",
    "load_option_bags",
    "get_value",
    "set_value",
    "get_config_path",
    "ensure_bytes",
    "canonical_json_bytes",
    "coerce_format",
]
