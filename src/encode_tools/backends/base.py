"""Abstract base class for the encode-tools backends.

Both backends (portable and native) inherit EncodeToolsBase and implement
its abstract primitives. The facade only ever talks to this interface.

Public coroutines (hash, compress, the image operations) resolve their
defaults from the backend's options, then run the blocking primitive in a
worker thread so the event loop stays free.

Example:
    class MyBackend(EncodeToolsBase):
        def _hash(self, data, algorithm, *args):
            return hashlib.new(algorithm.value, data).digest()
        ...
"""

import asyncio
import base64
from abc import ABC, abstractmethod
from collections.abc import Mapping
from enum import Enum
from typing import Any, TypeVar

from hashids import Hashids

from ..constants import (
    DEFAULT_COMPRESSION_LEVELS,
    BinaryEncoding,
    CompressionFormat,
    HashAlgorithm,
    IDFormat,
    ImageFormat,
    SerializationFormat,
)
from ..core.options import EncodingOptions, OptionBag, to_options
from ..exceptions import InvalidFormat
from ..utils.binary import canonical_json_bytes, coerce_format, ensure_bytes
from .schemas import CropDims, ImageDims, ImageMetadata

E = TypeVar("E", bound=Enum)


class EncodeToolsBase(ABC):
    """Base class that all backends must inherit from.

    Subclasses set default_options and implement the underscore
    primitives. Each primitive receives already-resolved enum members and
    bytes payloads.
    """

    default_options: EncodingOptions = EncodingOptions()

    def __init__(self, options: OptionBag = None):
        """Initialize backend with its options.

        Args:
            options: Bag overlaid on the backend's default_options
        """
        self._options = self.default_options.overlay(to_options(options))

    @property
    def options(self) -> EncodingOptions:
        """Get the backend's resolved options."""
        return self._options

    @classmethod
    def with_defaults(cls):
        """Create an instance using only default_options."""
        return cls()

    @staticmethod
    def _resolve(enum_cls: type[E], value: Any, default: Any) -> E:
        return coerce_format(enum_cls, default if value is None else value)

    # -------------------------------------------------------------------------
    # Lookup tables
    # -------------------------------------------------------------------------

    @property
    @abstractmethod
    def convertable_format_mime_types(self) -> Mapping[Enum, str]:
        """Map of every serialization and image format to its MIME type."""
        pass

    @property
    @abstractmethod
    def mime_types_convertable_format(self) -> Mapping[str, Enum]:
        """Map of MIME type to serialization or image format."""
        pass

    # -------------------------------------------------------------------------
    # Hashing
    # -------------------------------------------------------------------------

    @abstractmethod
    def _hash(self, data: bytes, algorithm: HashAlgorithm, *args: Any) -> bytes:
        pass

    async def hash(self, data: Any, algorithm: HashAlgorithm | str | None = None, *args: Any) -> bytes:
        """Hash data, returning the raw digest.

        Args:
            data: Payload (bytes-like or str)
            algorithm: Algorithm to use. Defaults to options.hash_algorithm
            *args: Passed through to the hash implementation

        Raises:
            InvalidFormat: If the algorithm is unknown or unsupported here
        """
        algorithm = self._resolve(HashAlgorithm, algorithm, self.options.hash_algorithm)
        return await asyncio.to_thread(self._hash, ensure_bytes(data), algorithm, *args)

    async def hash_string(self, data: Any, algorithm: HashAlgorithm | str | None = None, *args: Any) -> str:
        """Hash data, returning the digest as a hex string."""
        return (await self.hash(data, algorithm, *args)).hex()

    async def hash_object(self, obj: Any, algorithm: HashAlgorithm | str | None = None, *args: Any) -> bytes:
        """Hash the canonical JSON form of an object (key order ignored)."""
        return await self.hash(canonical_json_bytes(obj), algorithm, *args)

    # -------------------------------------------------------------------------
    # Compression
    # -------------------------------------------------------------------------

    @abstractmethod
    def _compress(self, data: bytes, format: CompressionFormat, level: int, *args: Any) -> bytes:
        pass

    @abstractmethod
    def _decompress(self, data: bytes, format: CompressionFormat, *args: Any) -> bytes:
        pass

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
            level: Defaults to options.compression_level, then to the
                format's usual level
            *args: Passed through to the compressor
        """
        format = self._resolve(CompressionFormat, format, self.options.compression_format)
        if level is None:
            level = self.options.compression_level
        if level is None:
            level = DEFAULT_COMPRESSION_LEVELS[format]
        return await asyncio.to_thread(self._compress, ensure_bytes(data), format, level, *args)

    async def decompress(self, data: Any, format: CompressionFormat | str | None = None, *args: Any) -> bytes:
        """Decompress data produced by compress()."""
        format = self._resolve(CompressionFormat, format, self.options.compression_format)
        return await asyncio.to_thread(self._decompress, ensure_bytes(data), format, *args)

    # -------------------------------------------------------------------------
    # Serialization
    # -------------------------------------------------------------------------

    @abstractmethod
    def _serialize(self, obj: Any, format: SerializationFormat, *args: Any) -> bytes | str:
        pass

    @abstractmethod
    def _deserialize(self, data: bytes | str, format: SerializationFormat) -> Any:
        pass

    def serialize_object(self, obj: Any, format: SerializationFormat | str | None = None, *args: Any) -> bytes | str:
        """Serialize an object. Text formats return str, binary formats bytes."""
        format = self._resolve(SerializationFormat, format, self.options.serialization_format)
        return self._serialize(obj, format, *args)

    def deserialize_object(self, data: Any, format: SerializationFormat | str | None = None) -> Any:
        """Deserialize data produced by serialize_object()."""
        format = self._resolve(SerializationFormat, format, self.options.serialization_format)
        if not isinstance(data, str):
            data = ensure_bytes(data)
        return self._deserialize(data, format)

    # -------------------------------------------------------------------------
    # Binary encodings
    # -------------------------------------------------------------------------

    def encode_buffer(self, data: Any, encoding: BinaryEncoding | str | None = None, *args: Any) -> bytes | str:
        """Encode binary data into the given representation.

        Args:
            data: Payload
            encoding: Defaults to options.binary_encoding
            *args: For hashids, passed to the Hashids constructor
                (salt, min_length, alphabet)

        Returns:
            bytes for BinaryEncoding.BYTES, str otherwise
        """
        encoding = self._resolve(BinaryEncoding, encoding, self.options.binary_encoding)
        data = ensure_bytes(data)

        if encoding == BinaryEncoding.BYTES:
            return data
        if encoding == BinaryEncoding.BASE64:
            return base64.b64encode(data).decode("ascii")
        if encoding == BinaryEncoding.BASE64URL:
            return base64.urlsafe_b64encode(data).decode("ascii").rstrip("=")
        if encoding == BinaryEncoding.HEX:
            return data.hex()
        if encoding == BinaryEncoding.BASE32:
            return base64.b32encode(data).decode("ascii")
        if encoding == BinaryEncoding.BASE85:
            return base64.b85encode(data).decode("ascii")
        if encoding == BinaryEncoding.ASCII85:
            return base64.a85encode(data).decode("ascii")
        if encoding == BinaryEncoding.HASHIDS:
            return Hashids(*args).encode(*data)
        raise InvalidFormat(encoding)

    def decode_buffer(self, data: Any, encoding: BinaryEncoding | str | None = None, *args: Any) -> bytes:
        """Decode data produced by encode_buffer() back to bytes."""
        encoding = self._resolve(BinaryEncoding, encoding, self.options.binary_encoding)

        if encoding == BinaryEncoding.BYTES:
            return ensure_bytes(data)

        text = data.decode("ascii") if isinstance(data, (bytes, bytearray)) else data
        if encoding == BinaryEncoding.BASE64:
            return base64.b64decode(text)
        if encoding == BinaryEncoding.BASE64URL:
            return base64.urlsafe_b64decode(text + "=" * (-len(text) % 4))
        if encoding == BinaryEncoding.HEX:
            return bytes.fromhex(text)
        if encoding == BinaryEncoding.BASE32:
            return base64.b32decode(text)
        if encoding == BinaryEncoding.BASE85:
            return base64.b85decode(text)
        if encoding == BinaryEncoding.ASCII85:
            return base64.a85decode(text)
        if encoding == BinaryEncoding.HASHIDS:
            return bytes(Hashids(*args).decode(text))
        raise InvalidFormat(encoding)

    def encode_object(self, obj: Any, encoding: BinaryEncoding | str | None = None, *args: Any) -> bytes | str:
        """Serialize with options.serialization_format, then encode_buffer()."""
        serialized = self.serialize_object(obj)
        return self.encode_buffer(ensure_bytes(serialized), encoding, *args)

    def decode_object(self, data: Any, encoding: BinaryEncoding | str | None = None, *args: Any) -> Any:
        """Reverse of encode_object()."""
        return self.deserialize_object(self.decode_buffer(data, encoding, *args))

    # -------------------------------------------------------------------------
    # Unique IDs
    # -------------------------------------------------------------------------

    @abstractmethod
    def _unique_id(self, format: IDFormat, *args: Any) -> bytes | str | int:
        pass

    def unique_id(self, format: IDFormat | str | None = None, *args: Any) -> bytes | str | int:
        """Generate a unique identifier.

        Args:
            format: Defaults to options.unique_id_format
            *args: Format specific (nanoid accepts a size)
        """
        format = self._resolve(IDFormat, format, self.options.unique_id_format)
        return self._unique_id(format, *args)

    # -------------------------------------------------------------------------
    # Images
    # -------------------------------------------------------------------------

    @abstractmethod
    def _convert_image(self, data: bytes, format: ImageFormat) -> bytes:
        pass

    @abstractmethod
    def _resize_image(self, data: bytes, dims: ImageDims, format: ImageFormat) -> bytes:
        pass

    @abstractmethod
    def _crop_image(self, data: bytes, dims: CropDims, format: ImageFormat) -> bytes:
        pass

    @abstractmethod
    def _adjust_image_brightness(self, data: bytes, factor: float, format: ImageFormat) -> bytes:
        pass

    @abstractmethod
    def _get_image_metadata(self, data: bytes) -> ImageMetadata:
        pass

    async def convert_image(self, data: Any, format: ImageFormat | str | None = None) -> bytes:
        """Re-encode an image in another format without changing it."""
        format = self._resolve(ImageFormat, format, self.options.image_format)
        return await asyncio.to_thread(self._convert_image, ensure_bytes(data), format)

    async def resize_image(
        self,
        data: Any,
        dims: ImageDims | Mapping[str, int],
        format: ImageFormat | str | None = None,
    ) -> bytes:
        """Resize an image. A missing width or height keeps the aspect ratio."""
        format = self._resolve(ImageFormat, format, self.options.image_format)
        return await asyncio.to_thread(self._resize_image, ensure_bytes(data), ImageDims.coerce(dims), format)

    async def crop_image(
        self,
        data: Any,
        dims: CropDims | Mapping[str, int],
        format: ImageFormat | str | None = None,
    ) -> bytes:
        """Extract a region of an image."""
        format = self._resolve(ImageFormat, format, self.options.image_format)
        return await asyncio.to_thread(self._crop_image, ensure_bytes(data), CropDims.coerce(dims), format)

    async def adjust_image_brightness(
        self,
        data: Any,
        factor: float,
        format: ImageFormat | str | None = None,
    ) -> bytes:
        """Scale brightness by (1 + factor). factor=0 leaves it unchanged."""
        format = self._resolve(ImageFormat, format, self.options.image_format)
        return await asyncio.to_thread(self._adjust_image_brightness, ensure_bytes(data), factor, format)

    async def get_image_metadata(self, data: Any) -> ImageMetadata:
        """Read format and size of an encoded image."""
        return await asyncio.to_thread(self._get_image_metadata, ensure_bytes(data))
