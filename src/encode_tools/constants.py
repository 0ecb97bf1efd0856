"""Formats, algorithms and lookup tables.

Centralizes the enumerations shared by both backends and the facade so the
string values used in option bags and config files live in one place.
"""

from enum import Enum
from typing import Final

# =============================================================================
# VERSION AND METADATA
# =============================================================================

APP_NAME: Final[str] = "encode-tools"

# =============================================================================
# FORMATS
# =============================================================================


class BinaryEncoding(str, Enum):
    """Text (or raw) representations for binary payloads."""

    BYTES = "bytes"
    BASE64 = "base64"
    BASE64URL = "base64url"
    HEX = "hex"
    BASE32 = "base32"
    BASE85 = "base85"
    ASCII85 = "ascii85"
    HASHIDS = "hashids"


class HashAlgorithm(str, Enum):
    """Supported hash algorithms."""

    XXHASH3 = "xxhash3"
    XXHASH64 = "xxhash64"
    XXHASH32 = "xxhash32"
    CRC32 = "crc32"
    MD5 = "md5"
    SHA1 = "sha1"
    SHA2 = "sha2"      # SHA-256
    SHA512 = "sha512"
    SHA3 = "sha3"      # SHA3-256


class IDFormat(str, Enum):
    """Unique identifier formats."""

    UUIDV1 = "uuidv1"
    UUIDV4 = "uuidv4"
    UUIDV1_STRING = "uuidv1String"
    UUIDV4_STRING = "uuidv4String"
    OBJECT_ID = "objectId"
    OBJECT_ID_STRING = "objectIdString"
    NANOID = "nanoid"
    TIMESTAMP = "timestamp"


class SerializationFormat(str, Enum):
    """Object serialization formats."""

    JSON = "json"
    JSON5 = "json5"
    CBOR = "cbor"
    MSGPACK = "msgpack"
    BSON = "bson"


class CompressionFormat(str, Enum):
    """Compression formats."""

    ZSTD = "zstd"
    LZMA = "lzma"
    GZIP = "gzip"


class ImageFormat(str, Enum):
    """Image output formats."""

    PNG = "png"
    JPEG = "jpeg"
    WEBP = "webp"
    AVIF = "avif"
    TIFF = "tiff"
    GIF = "gif"


# =============================================================================
# CAPABILITY REQUIREMENTS
# =============================================================================

# Hash served by the extended hashing module only
FAST_HASH_ALGORITHM: Final[HashAlgorithm] = HashAlgorithm.XXHASH3

# Digests served by the cryptographic engine
CRYPTO_HASH_ALGORITHMS: Final[frozenset[HashAlgorithm]] = frozenset({
    HashAlgorithm.SHA2,
    HashAlgorithm.MD5,
    HashAlgorithm.SHA512,
    HashAlgorithm.SHA1,
})

# Image formats Pillow's minimal path does not write
NATIVE_IMAGE_FORMATS: Final[frozenset[ImageFormat]] = frozenset({
    ImageFormat.GIF,
    ImageFormat.WEBP,
    ImageFormat.TIFF,
    ImageFormat.AVIF,
})

PORTABLE_IMAGE_FORMATS: Final[frozenset[ImageFormat]] = frozenset(
    set(ImageFormat) - NATIVE_IMAGE_FORMATS
)

DEFAULT_COMPRESSION_FORMAT: Final[CompressionFormat] = CompressionFormat.ZSTD

# Binary schema-based format with a compiled codec
NATIVE_SERIALIZATION_FORMAT: Final[SerializationFormat] = SerializationFormat.CBOR

# =============================================================================
# COMPRESSION
# =============================================================================

DEFAULT_COMPRESSION_LEVELS: Final[dict[CompressionFormat, int]] = {
    CompressionFormat.ZSTD: 3,
    CompressionFormat.LZMA: 6,
    CompressionFormat.GZIP: 9,
}

# =============================================================================
# UNIQUE IDS
# =============================================================================

DEFAULT_NANOID_SIZE: Final[int] = 21

# =============================================================================
# MIME TYPES
# =============================================================================

SERIALIZATION_FORMAT_MIME_TYPES: Final[dict[SerializationFormat, str]] = {
    SerializationFormat.JSON: "application/json",
    SerializationFormat.JSON5: "application/json5",
    SerializationFormat.CBOR: "application/cbor",
    SerializationFormat.MSGPACK: "application/msgpack",
    SerializationFormat.BSON: "application/bson",
}

PORTABLE_IMAGE_FORMAT_MIME_TYPES: Final[dict[ImageFormat, str]] = {
    ImageFormat.PNG: "image/png",
    ImageFormat.JPEG: "image/jpeg",
}

NATIVE_IMAGE_FORMAT_MIME_TYPES: Final[dict[ImageFormat, str]] = {
    ImageFormat.AVIF: "image/avif",
    ImageFormat.TIFF: "image/tiff",
    ImageFormat.GIF: "image/gif",
    ImageFormat.PNG: "image/png",
    ImageFormat.JPEG: "image/jpeg",
    ImageFormat.WEBP: "image/webp",
}

PORTABLE_CONVERTABLE_FORMAT_MIME_TYPES: Final[dict[Enum, str]] = {
    **PORTABLE_IMAGE_FORMAT_MIME_TYPES,
    **SERIALIZATION_FORMAT_MIME_TYPES,
}

NATIVE_CONVERTABLE_FORMAT_MIME_TYPES: Final[dict[Enum, str]] = {
    **NATIVE_IMAGE_FORMAT_MIME_TYPES,
    **SERIALIZATION_FORMAT_MIME_TYPES,
}

MIME_TYPES_PORTABLE_CONVERTABLE_FORMAT: Final[dict[str, Enum]] = {
    mime: fmt for fmt, mime in PORTABLE_CONVERTABLE_FORMAT_MIME_TYPES.items()
}

MIME_TYPES_NATIVE_CONVERTABLE_FORMAT: Final[dict[str, Enum]] = {
    mime: fmt for fmt, mime in NATIVE_CONVERTABLE_FORMAT_MIME_TYPES.items()
}
