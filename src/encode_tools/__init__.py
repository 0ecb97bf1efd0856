"""encode-tools - Encode, hash, compress, serialize and transform images.

Each operation runs on a native backend when the optional compiled module
it needs is installed, and on a portable backend otherwise.

Usage:
    from encode_tools import EncodeToolsAuto

    enc = EncodeToolsAuto()
    digest = await enc.hash_string(b"payload")
"""

from importlib.metadata import PackageNotFoundError, version

from .backends import EncodeToolsBase, NativeEncodeTools, PortableEncodeTools
from .constants import (
    BinaryEncoding,
    CompressionFormat,
    HashAlgorithm,
    IDFormat,
    ImageFormat,
    SerializationFormat,
)
from .core import AvailableNativeModules, EncodingOptions, detect_native_modules, merge_options
from .core.auto import EncodeToolsAuto
from .exceptions import ConfigError, EncodeToolsError, ImageError, InvalidFormat, MissingModuleError


def _get_version() -> str:
    """Get version from package metadata."""
    try:
        return version("encode-tools")
    except PackageNotFoundError:
        return "0.0.0"


__version__ = _get_version()

__all__ = [
    "EncodeToolsAuto",
    "EncodeToolsBase",
    "NativeEncodeTools",
    "PortableEncodeTools",
    "AvailableNativeModules",
    "EncodingOptions",
    "detect_native_modules",
    "merge_options",
    "BinaryEncoding",
    "CompressionFormat",
    "HashAlgorithm",
    "IDFormat",
    "ImageFormat",
    "SerializationFormat",
    "EncodeToolsError",
    "InvalidFormat",
    "MissingModuleError",
    "ImageError",
    "ConfigError",
]
