"""Portable backend.

Works with the base install: the standard library plus the packages every
install carries (Pillow, cbor2, msgpack, pymongo's bson, json5, nanoid).
Every format in the built-in defaults can be served here: xxhash64 through
the xxhash package and zstd through compression.zstd (backports.zstd before
Python 3.14).

Images are limited to PNG and JPEG.
"""

import gzip
import hashlib
import io
import json
import lzma
import time
import uuid
import zlib
from typing import Any

import cbor2
import json5
import msgpack
import xxhash
from bson import ObjectId
from bson import decode as bson_decode
from bson import encode as bson_encode
from nanoid import generate as generate_nanoid
from PIL import Image, ImageEnhance

try:
    from compression import zstd  # Python 3.14+
except ImportError:
    from backports import zstd  # type: ignore

from ..constants import (
    DEFAULT_NANOID_SIZE,
    MIME_TYPES_PORTABLE_CONVERTABLE_FORMAT,
    PORTABLE_CONVERTABLE_FORMAT_MIME_TYPES,
    PORTABLE_IMAGE_FORMATS,
    CompressionFormat,
    HashAlgorithm,
    IDFormat,
    ImageFormat,
    SerializationFormat,
)
from ..core.options import DEFAULT_PORTABLE_OPTIONS
from ..exceptions import ImageError, InvalidFormat
from ..utils.binary import ensure_bytes
from .base import EncodeToolsBase
from .schemas import CropDims, ImageDims, ImageMetadata

# HashAlgorithm -> hashlib constructor name
HASHLIB_ALGORITHMS = {
    HashAlgorithm.MD5: "md5",
    HashAlgorithm.SHA1: "sha1",
    HashAlgorithm.SHA2: "sha256",
    HashAlgorithm.SHA512: "sha512",
    HashAlgorithm.SHA3: "sha3_256",
}

# HashAlgorithm -> xxhash function name
XXHASH_ALGORITHMS = {
    HashAlgorithm.XXHASH64: "xxh64",
    HashAlgorithm.XXHASH32: "xxh32",
}

# ImageFormat -> Pillow format name
PILLOW_FORMATS = {
    ImageFormat.PNG: "PNG",
    ImageFormat.JPEG: "JPEG",
}


class PortableEncodeTools(EncodeToolsBase):
    """Backend built on the standard library and pure-Python packages."""

    default_options = DEFAULT_PORTABLE_OPTIONS

    @property
    def convertable_format_mime_types(self):
        return PORTABLE_CONVERTABLE_FORMAT_MIME_TYPES

    @property
    def mime_types_convertable_format(self):
        return MIME_TYPES_PORTABLE_CONVERTABLE_FORMAT

    # -------------------------------------------------------------------------
    # Hashing
    # -------------------------------------------------------------------------

    def _hash(self, data: bytes, algorithm: HashAlgorithm, *args: Any) -> bytes:
        if algorithm == HashAlgorithm.CRC32:
            return zlib.crc32(data).to_bytes(4, "big")

        if algorithm in HASHLIB_ALGORITHMS:
            return hashlib.new(HASHLIB_ALGORITHMS[algorithm], data).digest()

        if algorithm in XXHASH_ALGORITHMS:
            return getattr(xxhash, XXHASH_ALGORITHMS[algorithm])(data, *args).digest()

        raise InvalidFormat(algorithm)

    # -------------------------------------------------------------------------
    # Compression
    # -------------------------------------------------------------------------

    def _compress(self, data: bytes, format: CompressionFormat, level: int, *args: Any) -> bytes:
        if format == CompressionFormat.GZIP:
            # Fixed mtime keeps output deterministic
            return gzip.compress(data, compresslevel=level, mtime=0)
        if format == CompressionFormat.LZMA:
            return lzma.compress(data, preset=level)
        if format == CompressionFormat.ZSTD:
            return zstd.compress(data, level=level)
        raise InvalidFormat(format)

    def _decompress(self, data: bytes, format: CompressionFormat, *args: Any) -> bytes:
        if format == CompressionFormat.GZIP:
            return gzip.decompress(data)
        if format == CompressionFormat.LZMA:
            return lzma.decompress(data)
        if format == CompressionFormat.ZSTD:
            return zstd.decompress(data)
        raise InvalidFormat(format)

    # -------------------------------------------------------------------------
    # Serialization
    # -------------------------------------------------------------------------

    def _serialize(self, obj: Any, format: SerializationFormat, *args: Any) -> bytes | str:
        if format == SerializationFormat.JSON:
            return json.dumps(obj)
        if format == SerializationFormat.JSON5:
            return json5.dumps(obj)
        if format == SerializationFormat.CBOR:
            return cbor2.dumps(obj)
        if format == SerializationFormat.MSGPACK:
            return msgpack.packb(obj)
        if format == SerializationFormat.BSON:
            return bson_encode(obj)
        raise InvalidFormat(format)

    def _deserialize(self, data: bytes | str, format: SerializationFormat) -> Any:
        if format == SerializationFormat.JSON:
            return json.loads(data)
        if format == SerializationFormat.JSON5:
            return json5.loads(data.decode("utf-8") if isinstance(data, bytes) else data)
        if format == SerializationFormat.CBOR:
            return cbor2.loads(ensure_bytes(data))
        if format == SerializationFormat.MSGPACK:
            return msgpack.unpackb(ensure_bytes(data))
        if format == SerializationFormat.BSON:
            return bson_decode(ensure_bytes(data))
        raise InvalidFormat(format)

    # -------------------------------------------------------------------------
    # Unique IDs
    # -------------------------------------------------------------------------

    def _unique_id(self, format: IDFormat, *args: Any) -> bytes | str | int:
        if format == IDFormat.UUIDV1:
            return uuid.uuid1().bytes
        if format == IDFormat.UUIDV4:
            return uuid.uuid4().bytes
        if format == IDFormat.UUIDV1_STRING:
            return str(uuid.uuid1())
        if format == IDFormat.UUIDV4_STRING:
            return str(uuid.uuid4())
        if format == IDFormat.OBJECT_ID:
            return ObjectId().binary
        if format == IDFormat.OBJECT_ID_STRING:
            return str(ObjectId())
        if format == IDFormat.NANOID:
            size = args[0] if args else DEFAULT_NANOID_SIZE
            return generate_nanoid(size=size)
        if format == IDFormat.TIMESTAMP:
            return int(time.time() * 1000)
        raise InvalidFormat(format)

    # -------------------------------------------------------------------------
    # Images
    # -------------------------------------------------------------------------

    @staticmethod
    def _check_image_format(format: ImageFormat) -> None:
        if format not in PORTABLE_IMAGE_FORMATS:
            raise InvalidFormat(format, f"Image format {format.value} needs pyvips")

    @staticmethod
    def _open(data: bytes) -> Image.Image:
        try:
            img = Image.open(io.BytesIO(data))
            img.load()
            return img
        except Exception as e:
            raise ImageError(f"Cannot decode image: {e}")

    @staticmethod
    def _save(img: Image.Image, format: ImageFormat) -> bytes:
        if format == ImageFormat.JPEG and img.mode not in ("RGB", "L"):
            img = img.convert("RGB")
        buffer = io.BytesIO()
        img.save(buffer, PILLOW_FORMATS[format])
        return buffer.getvalue()

    def _convert_image(self, data: bytes, format: ImageFormat) -> bytes:
        self._check_image_format(format)
        return self._save(self._open(data), format)

    def _resize_image(self, data: bytes, dims: ImageDims, format: ImageFormat) -> bytes:
        self._check_image_format(format)
        img = self._open(data)
        return self._save(img.resize(dims.resolve(img.width, img.height)), format)

    def _crop_image(self, data: bytes, dims: CropDims, format: ImageFormat) -> bytes:
        self._check_image_format(format)
        img = self._open(data)
        if not dims.fits(img.width, img.height):
            raise ImageError(f"Crop region {dims.box()} is outside the {img.width}x{img.height} image")
        return self._save(img.crop(dims.box()), format)

    def _adjust_image_brightness(self, data: bytes, factor: float, format: ImageFormat) -> bytes:
        self._check_image_format(format)
        img = self._open(data)
        if img.mode not in ("RGB", "RGBA", "L"):
            img = img.convert("RGB")
        return self._save(ImageEnhance.Brightness(img).enhance(1 + factor), format)

    def _get_image_metadata(self, data: bytes) -> ImageMetadata:
        img = self._open(data)
        try:
            format = ImageFormat((img.format or "").lower())
        except ValueError:
            format = None
        return ImageMetadata(format=format, width=img.width, height=img.height)
