"""Capability detection and option merging.

The facade lives in encode_tools.core.auto; it is not imported here because
the backends depend on this package.
"""

from .capabilities import AvailableNativeModules, detect_native_modules, is_module_available, safe_load_module
from .options import (
    DEFAULT_NATIVE_OPTIONS,
    DEFAULT_PORTABLE_OPTIONS,
    EncodingOptions,
    merge_options,
    portable_options,
)

__all__ = [
    "AvailableNativeModules",
    "detect_native_modules",
    "is_module_available",
    "safe_load_module",
    "EncodingOptions",
    "DEFAULT_NATIVE_OPTIONS",
    "DEFAULT_PORTABLE_OPTIONS",
    "merge_options",
    "portable_options",
]
