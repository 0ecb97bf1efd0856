"""Option bags and the merge that produces the effective configuration.

Two bags are supplied by the caller: one that prefers native formats and a
fallback used when the native module behind a chosen value is missing.
merge_options() resolves them once, at construction time, into a frozen
EncodingOptions.

Example:
    >>> opts = merge_options(
    ...     {"hash_algorithm": "xxhash3"},
    ...     {"hash_algorithm": "sha512"},
    ...     available=AvailableNativeModules(xxhash=False),
    ... )
    >>> opts.hash_algorithm
    <HashAlgorithm.SHA512: 'sha512'>
"""

import logging
from collections.abc import Mapping
from dataclasses import dataclass, fields, replace
from enum import Enum
from typing import Any, Union

from ..constants import (
    FAST_HASH_ALGORITHM,
    NATIVE_IMAGE_FORMATS,
    BinaryEncoding,
    CompressionFormat,
    HashAlgorithm,
    IDFormat,
    ImageFormat,
    SerializationFormat,
)
from ..exceptions import ConfigError
from ..utils.binary import coerce_format
from .capabilities import AvailableNativeModules, detect_native_modules

logger = logging.getLogger(__name__)

# Field name -> enum for the fields that hold a format
_ENUM_FIELDS: dict[str, type[Enum]] = {
    "unique_id_format": IDFormat,
    "serialization_format": SerializationFormat,
    "hash_algorithm": HashAlgorithm,
    "binary_encoding": BinaryEncoding,
    "compression_format": CompressionFormat,
    "image_format": ImageFormat,
}

# camelCase spellings accepted from config files and mappings
_CAMEL_CASE_KEYS: dict[str, str] = {
    "uniqueIdFormat": "unique_id_format",
    "serializationFormat": "serialization_format",
    "hashAlgorithm": "hash_algorithm",
    "binaryEncoding": "binary_encoding",
    "compressionFormat": "compression_format",
    "compressionLevel": "compression_level",
    "imageFormat": "image_format",
}


@dataclass(frozen=True)
class EncodingOptions:
    """Default formats used when an operation is called without one.

    Every field is optional; None means the bag does not specify it.

    Attributes:
        unique_id_format: Format for unique_id()
        serialization_format: Format for serialize/deserialize and *_object
        hash_algorithm: Algorithm for hash, hash_string and hash_object
        binary_encoding: Encoding for encode/decode of buffers and objects
        compression_format: Preferred compression format
        compression_level: Compression level passed to compress()
        image_format: Output format for image operations
    """

    unique_id_format: IDFormat | None = None
    serialization_format: SerializationFormat | None = None
    hash_algorithm: HashAlgorithm | None = None
    binary_encoding: BinaryEncoding | None = None
    compression_format: CompressionFormat | None = None
    compression_level: int | None = None
    image_format: ImageFormat | None = None

    def __post_init__(self):
        for name, enum_cls in _ENUM_FIELDS.items():
            value = getattr(self, name)
            if value is not None:
                object.__setattr__(self, name, coerce_format(enum_cls, value))

        level = self.compression_level
        if level is not None and (isinstance(level, bool) or not isinstance(level, int)):
            raise ConfigError(f"compression_level must be an integer, got {level!r}")

    def to_dict(self) -> dict[str, Any]:
        """Convert the specified fields to a plain dictionary."""
        result = {}
        for f in fields(self):
            value = getattr(self, f.name)
            if value is None:
                continue
            result[f.name] = value.value if isinstance(value, Enum) else value
        return result

    @classmethod
    def from_dict(cls, data: Mapping[str, Any]) -> "EncodingOptions":
        """Create EncodingOptions from a mapping.

        Accepts snake_case keys and the camelCase keys used by config files
        written for other encode-tools ports.

        Raises:
            ConfigError: If a key is not an option name
            InvalidFormat: If a value is not a known format
        """
        kwargs = {}
        for key, value in data.items():
            name = _CAMEL_CASE_KEYS.get(key, key)
            if name not in _ENUM_FIELDS and name != "compression_level":
                raise ConfigError(f"Unknown encoding option: {key}")
            kwargs[name] = value
        return cls(**kwargs)

    def overlay(self, other: "EncodingOptions") -> "EncodingOptions":
        """Return a copy with every field other specifies taken from other."""
        changes = {
            f.name: getattr(other, f.name)
            for f in fields(other)
            if getattr(other, f.name) is not None
        }
        return replace(self, **changes)


OptionBag = Union[EncodingOptions, Mapping[str, Any], None]


DEFAULT_NATIVE_OPTIONS = EncodingOptions(
    binary_encoding=BinaryEncoding.BASE64,
    hash_algorithm=HashAlgorithm.XXHASH64,
    serialization_format=SerializationFormat.JSON,
    unique_id_format=IDFormat.UUIDV1_STRING,
    compression_format=CompressionFormat.ZSTD,
    image_format=ImageFormat.PNG,
)

DEFAULT_PORTABLE_OPTIONS = EncodingOptions(
    binary_encoding=BinaryEncoding.BASE64,
    hash_algorithm=HashAlgorithm.SHA2,
    serialization_format=SerializationFormat.JSON,
    unique_id_format=IDFormat.UUIDV4_STRING,
    compression_format=CompressionFormat.GZIP,
    image_format=ImageFormat.PNG,
)


def to_options(bag: OptionBag) -> EncodingOptions:
    """Normalize an option bag (options, mapping or None) to EncodingOptions."""
    if bag is None:
        return EncodingOptions()
    if isinstance(bag, EncodingOptions):
        return bag
    if isinstance(bag, Mapping):
        return EncodingOptions.from_dict(bag)
    raise ConfigError(f"Expected EncodingOptions or a mapping, got {type(bag).__name__}")


def portable_options(fallback_options: OptionBag = None) -> EncodingOptions:
    """Portable defaults overlaid by the caller's fallback bag."""
    return DEFAULT_PORTABLE_OPTIONS.overlay(to_options(fallback_options))


def merge_options(
    native_options: OptionBag = None,
    fallback_options: OptionBag = None,
    available: AvailableNativeModules | None = None,
) -> EncodingOptions:
    """Resolve the two option bags into the effective configuration.

    Steps:
    1. Native defaults overlaid by the caller's native bag
    2. xxhash3 without the xxhash module -> fallback bag's hash_algorithm
    3. An image format that needs libvips without pyvips -> fallback bag's
       image_format
    All other fields are kept; per-call dispatch handles them.

    The demoted value comes from the caller's fallback bag as given, so a
    bag that leaves the field out yields None for it.

    Args:
        native_options: Bag preferring native formats
        fallback_options: Bag used for demoted fields
        available: Capability snapshot. If None, detects now.

    Returns:
        Frozen EncodingOptions
    """
    native = to_options(native_options)
    fallback = to_options(fallback_options)
    if available is None:
        available = detect_native_modules()

    options = DEFAULT_NATIVE_OPTIONS.overlay(native)
    demoted = {}

    if options.hash_algorithm == FAST_HASH_ALGORITHM and not available.xxhash:
        demoted["hash_algorithm"] = fallback.hash_algorithm

    if options.image_format in NATIVE_IMAGE_FORMATS and not available.pyvips:
        demoted["image_format"] = fallback.image_format

    for name, value in demoted.items():
        logger.info(
            f"Demoted {name} from {getattr(options, name).value} to "
            f"{value.value if value is not None else None}: native module missing"
        )

    return replace(options, **demoted)
