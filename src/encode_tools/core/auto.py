"""Auto-selecting facade over the portable and native backends.

Each call resolves its format, checks the optional native modules and
hands the call to exactly one backend:

    Operation                         Native when
    --------------------------------  ------------------------------------
    hash, hash_string, hash_object    xxhash3 + xxhash, or md5/sha1/sha2/
                                      sha512 + cryptography
    compress, decompress              zstd + zstandard
    serialize/deserialize_object      cbor + compiled cbor2
    encode/decode_object              configured cbor + compiled cbor2
    image operations                  pyvips
    encode/decode_buffer, unique_id   never

Whatever the chosen backend returns or raises reaches the caller as is.
There is no retry on the other backend.

Example:
    >>> enc = EncodeToolsAuto({"hash_algorithm": "xxhash3"}, {"hash_algorithm": "sha512"})
    >>> digest = asyncio.run(enc.hash(b"payload"))
"""

import logging
from collections.abc import Mapping
from enum import Enum
from pathlib import Path
from typing import Any, TypeVar

from ..backends.base import EncodeToolsBase
from ..backends.native import NativeEncodeTools
from ..backends.portable import PortableEncodeTools
from ..backends.schemas import CropDims, ExtractedContentType, ImageDims, ImageMetadata
from ..constants import (
    CRYPTO_HASH_ALGORITHMS,
    DEFAULT_COMPRESSION_FORMAT,
    FAST_HASH_ALGORITHM,
    NATIVE_SERIALIZATION_FORMAT,
    BinaryEncoding,
    CompressionFormat,
    HashAlgorithm,
    IDFormat,
    ImageFormat,
    SerializationFormat,
)
from ..utils.binary import coerce_format
from ..utils.config import load_option_bags
from . import content_type
from .capabilities import AvailableNativeModules, detect_native_modules
from .options import (
    DEFAULT_NATIVE_OPTIONS,
    EncodingOptions,
    OptionBag,
    merge_options,
    portable_options,
    to_options,
)

logger = logging.getLogger(__name__)

E = TypeVar("E", bound=Enum)


class EncodeToolsAuto:
    """Routes every operation to the native or the portable backend.

    Options are merged once, at construction. Module availability is
    checked again on every call.

    Example:
        >>> enc = EncodeToolsAuto(
        ...     {"hash_algorithm": "xxhash3", "image_format": "webp"},
        ...     {"hash_algorithm": "xxhash64", "image_format": "png"},
        ... )
        >>> enc.options.hash_algorithm  # without xxhash installed
        <HashAlgorithm.XXHASH64: 'xxhash64'>
    """

    def __init__(self, native_options: OptionBag = None, fallback_options: OptionBag = None):
        """Initialize facade.

        Args:
            native_options: Options used when the native module behind
                each value is available
            fallback_options: Values substituted for fields whose native
                module is missing
        """
        self._native_options = DEFAULT_NATIVE_OPTIONS.overlay(to_options(native_options))
        self._fallback_options = portable_options(fallback_options)
        self._options = merge_options(
            native_options, fallback_options, available=self.available_native_modules
        )

        self._portable = PortableEncodeTools(self._fallback_options)
        self._native = NativeEncodeTools(self._options, portable=self._portable)

    # -------------------------------------------------------------------------
    # Construction helpers
    # -------------------------------------------------------------------------

    @classmethod
    def with_defaults(cls) -> "EncodeToolsAuto":
        """Create a facade using only the built-in defaults."""
        return cls()

    @classmethod
    def create(cls, native_options: OptionBag = None, fallback_options: OptionBag = None) -> "EncodeToolsAuto":
        """Create a facade with the provided option bags."""
        return cls(native_options, fallback_options)

    @classmethod
    def from_config(cls, path: Path | None = None) -> "EncodeToolsAuto":
        """Create a facade from the [native] and [fallback] config tables."""
        native, fallback = load_option_bags(path)
        return cls(native, fallback)

    # -------------------------------------------------------------------------
    # State
    # -------------------------------------------------------------------------

    @property
    def available_native_modules(self) -> AvailableNativeModules:
        """Check which native modules can be used right now."""
        return detect_native_modules()

    @property
    def options(self) -> EncodingOptions:
        """Get the effective configuration."""
        return self._options

    @property
    def native_options(self) -> EncodingOptions:
        """Get the native bag overlaid on native defaults, before demotion."""
        return self._native_options

    @property
    def fallback_options(self) -> EncodingOptions:
        """Get the fallback bag overlaid on portable defaults."""
        return self._fallback_options

    @property
    def portable(self) -> PortableEncodeTools:
        """Get the backend built from the fallback options."""
        return self._portable

    @property
    def native(self) -> NativeEncodeTools:
        """Get the backend built from the effective configuration."""
        return self._native

    # -------------------------------------------------------------------------
    # Routing
    # -------------------------------------------------------------------------

    @staticmethod
    def _resolve(enum_cls: type[E], value: Any, default: Any) -> E:
        return coerce_format(enum_cls, default if value is None else value)

    def _pick(self, use_native: bool, operation: str, format: Any = None) -> EncodeToolsBase:
        backend = self._native if use_native else self._portable
        label = format.value if isinstance(format, Enum) else format
        logger.debug(f"{operation}({label}) -> {'native' if use_native else 'portable'}")
        return backend

    @staticmethod
    def _native_hash(algorithm: HashAlgorithm, available: AvailableNativeModules) -> bool:
        return (algorithm == FAST_HASH_ALGORITHM and available.xxhash) or (
            algorithm in CRYPTO_HASH_ALGORITHMS and available.cryptography
        )

    def _pick_hash(self, algorithm: Any, operation: str) -> tuple[EncodeToolsBase, HashAlgorithm]:
        algorithm = self._resolve(HashAlgorithm, algorithm, self._options.hash_algorithm)
        use_native = self._native_hash(algorithm, self.available_native_modules)
        return self._pick(use_native, operation, algorithm), algorithm

    def _pick_image(self, format: Any, operation: str) -> tuple[EncodeToolsBase, ImageFormat]:
        format = self._resolve(ImageFormat, format, self._options.image_format)
        return self._pick(self.available_native_modules.pyvips, operation, format), format

    # -------------------------------------------------------------------------
    # Lookup tables
    # -------------------------------------------------------------------------

    @property
    def convertable_format_mime_types(self) -> Mapping[Enum, str]:
        """Map of every serialization and image format to its MIME type."""
        if self.available_native_modules.pyvips:
            return self._native.convertable_format_mime_types
        return self._portable.convertable_format_mime_types

    @property
    def mime_types_convertable_format(self) -> Mapping[str, Enum]:
        """Map of MIME type to serialization or image format."""
        available = self.available_native_modules
        if available.bson_ext and available.cbor_ext:
            return self._native.mime_types_convertable_format
        return self._portable.mime_types_convertable_format

    def header_to_convertable_format(
        self, request: Any, key: str, default: Enum | None = None
    ) -> ExtractedContentType:
        """Extract a serialization or image format from an HTTP header."""
        return content_type.header_to_convertable_format(request, key, default)

    def header_to_serialization_format(self, request: Any, key: str) -> ExtractedContentType[SerializationFormat]:
        """Extract a SerializationFormat, defaulting to the configured one."""
        return content_type.header_to_serialization_format(request, key, self._options.serialization_format)

    def header_to_image_format(self, request: Any, key: str) -> ExtractedContentType[ImageFormat]:
        """Extract an ImageFormat, defaulting to the configured one."""
        return content_type.header_to_image_format(request, key, self._options.image_format)

    # -------------------------------------------------------------------------
    # Hashing
    # -------------------------------------------------------------------------

    async def hash(self, data: Any, algorithm: HashAlgorithm | str | None = None, *args: Any) -> bytes:
        """Hash data, returning the raw digest.

        Args:
            data: Payload (bytes-like or str)
            algorithm: Defaults to options.hash_algorithm
            *args: Passed to the backend unchanged

        Raises:
            InvalidFormat: If algorithm is not a HashAlgorithm
        """
        backend, algorithm = self._pick_hash(algorithm, "hash")
        return await backend.hash(data, algorithm, *args)

    async def hash_string(self, data: Any, algorithm: HashAlgorithm | str | None = None, *args: Any) -> str:
        """Hash data, returning the digest as hex."""
        backend, algorithm = self._pick_hash(algorithm, "hash_string")
        return await backend.hash_string(data, algorithm, *args)

    async def hash_object(self, obj: Any, algorithm: HashAlgorithm | str | None = None, *args: Any) -> bytes:
        """Hash an object independently of its key order."""
        backend, algorithm = self._pick_hash(algorithm, "hash_object")
        return await backend.hash_object(obj, algorithm, *args)

    # -------------------------------------------------------------------------
    # Compression
    # -------------------------------------------------------------------------

    async def compress(
        self,
        data: Any,
        format: CompressionFormat | str | None = None,
        level: int | None = None,
        *args: Any,
    ) -> bytes:
        """Compress data.

        Args:
            data: Payload
            format: Defaults to options.compression_format
            level: Defaults to options.compression_level
            *args: Passed to the backend unchanged
        """
        format = self._resolve(CompressionFormat, format, self._options.compression_format)
        use_native = format == DEFAULT_COMPRESSION_FORMAT and self.available_native_modules.zstandard
        if level is None:
            level = self._options.compression_level
        return await self._pick(use_native, "compress", format).compress(data, format, level, *args)

    async def decompress(self, data: Any, format: CompressionFormat | str | None = None, *args: Any) -> bytes:
        """Decompress data produced by compress()."""
        format = self._resolve(CompressionFormat, format, self._options.compression_format)
        use_native = format == DEFAULT_COMPRESSION_FORMAT and self.available_native_modules.zstandard
        return await self._pick(use_native, "decompress", format).decompress(data, format, *args)

    # -------------------------------------------------------------------------
    # Serialization
    # -------------------------------------------------------------------------

    def serialize_object(self, obj: Any, format: SerializationFormat | str | None = None, *args: Any) -> bytes | str:
        """Serialize an object. Text formats return str, binary formats bytes."""
        format = self._resolve(SerializationFormat, format, self._options.serialization_format)
        use_native = format == NATIVE_SERIALIZATION_FORMAT and self.available_native_modules.cbor_ext
        return self._pick(use_native, "serialize_object", format).serialize_object(obj, format, *args)

    def deserialize_object(self, data: Any, format: SerializationFormat | str | None = None) -> Any:
        """Deserialize data produced by serialize_object()."""
        format = self._resolve(SerializationFormat, format, self._options.serialization_format)
        use_native = format == NATIVE_SERIALIZATION_FORMAT and self.available_native_modules.cbor_ext
        return self._pick(use_native, "deserialize_object", format).deserialize_object(data, format)

    def _object_backend(self, encoding: Any, operation: str) -> tuple[EncodeToolsBase, BinaryEncoding]:
        encoding = self._resolve(BinaryEncoding, encoding, self._options.binary_encoding)
        # Routed on the configured serialization format, not the encoding
        use_native = (
            self._options.serialization_format == NATIVE_SERIALIZATION_FORMAT
            and self.available_native_modules.cbor_ext
        )
        return self._pick(use_native, operation, encoding), encoding

    def encode_object(self, obj: Any, encoding: BinaryEncoding | str | None = None, *args: Any) -> bytes | str:
        """Serialize an object, then encode the bytes."""
        backend, encoding = self._object_backend(encoding, "encode_object")
        return backend.encode_object(obj, encoding, *args)

    def decode_object(self, data: Any, encoding: BinaryEncoding | str | None = None, *args: Any) -> Any:
        """Reverse of encode_object()."""
        backend, encoding = self._object_backend(encoding, "decode_object")
        return backend.decode_object(data, encoding, *args)

    # -------------------------------------------------------------------------
    # Portable-only operations
    # -------------------------------------------------------------------------

    def encode_buffer(self, data: Any, encoding: BinaryEncoding | str | None = None, *args: Any) -> bytes | str:
        """Encode binary data (base64, hex, hashids, ...)."""
        encoding = self._resolve(BinaryEncoding, encoding, self._options.binary_encoding)
        return self._portable.encode_buffer(data, encoding, *args)

    def decode_buffer(self, data: Any, encoding: BinaryEncoding | str | None = None, *args: Any) -> bytes:
        """Decode data produced by encode_buffer()."""
        encoding = self._resolve(BinaryEncoding, encoding, self._options.binary_encoding)
        return self._portable.decode_buffer(data, encoding, *args)

    def unique_id(self, format: IDFormat | str | None = None, *args: Any) -> bytes | str | int:
        """Generate a unique identifier."""
        format = self._resolve(IDFormat, format, self._options.unique_id_format)
        return self._portable.unique_id(format, *args)

    # -------------------------------------------------------------------------
    # Images
    # -------------------------------------------------------------------------

    async def convert_image(self, data: Any, format: ImageFormat | str | None = None) -> bytes:
        """Re-encode an image in another format."""
        backend, format = self._pick_image(format, "convert_image")
        return await backend.convert_image(data, format)

    async def resize_image(
        self,
        data: Any,
        dims: ImageDims | Mapping[str, int],
        format: ImageFormat | str | None = None,
    ) -> bytes:
        """Resize an image. A missing width or height keeps the aspect ratio."""
        backend, format = self._pick_image(format, "resize_image")
        return await backend.resize_image(data, dims, format)

    async def crop_image(
        self,
        data: Any,
        dims: CropDims | Mapping[str, int],
        format: ImageFormat | str | None = None,
    ) -> bytes:
        """Extract a region of an image."""
        backend, format = self._pick_image(format, "crop_image")
        return await backend.crop_image(data, dims, format)

    async def adjust_image_brightness(
        self,
        data: Any,
        factor: float,
        format: ImageFormat | str | None = None,
    ) -> bytes:
        """Scale brightness by (1 + factor)."""
        backend, format = self._pick_image(format, "adjust_image_brightness")
        return await backend.adjust_image_brightness(data, factor, format)

    async def get_image_metadata(self, data: Any) -> ImageMetadata:
        """Read format and size of an encoded image."""
        backend = self._pick(self.available_native_modules.pyvips, "get_image_metadata")
        return await backend.get_image_metadata(data)
