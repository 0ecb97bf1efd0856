"""Native backend.

Uses compiled modules for the work they accelerate:
- xxhash: xxhash3, xxhash64, xxhash32
- cryptography: md5, sha1, sha2, sha512
- zstandard: zstd compression
- cbor2's compiled codec and pymongo's compiled bson codec
- pyvips (libvips): every image format

Anything else is handed to a PortableEncodeTools instance built from the
same options. Modules are imported when first needed, so constructing a
NativeEncodeTools never fails; calling an operation whose module is missing
raises MissingModuleError.
"""

from typing import Any

from ..constants import (
    MIME_TYPES_NATIVE_CONVERTABLE_FORMAT,
    NATIVE_CONVERTABLE_FORMAT_MIME_TYPES,
    CompressionFormat,
    HashAlgorithm,
    IDFormat,
    ImageFormat,
    SerializationFormat,
)
from ..core.capabilities import require_module
from ..core.options import DEFAULT_NATIVE_OPTIONS, OptionBag
from ..exceptions import ImageError
from ..utils.binary import ensure_bytes
from .base import EncodeToolsBase
from .portable import PortableEncodeTools
from .schemas import CropDims, ImageDims, ImageMetadata

# HashAlgorithm -> xxhash function name
XXHASH_ALGORITHMS = {
    HashAlgorithm.XXHASH3: "xxh3_64",
    HashAlgorithm.XXHASH64: "xxh64",
    HashAlgorithm.XXHASH32: "xxh32",
}

# HashAlgorithm -> cryptography hash class name
CRYPTOGRAPHY_ALGORITHMS = {
    HashAlgorithm.MD5: "MD5",
    HashAlgorithm.SHA1: "SHA1",
    HashAlgorithm.SHA2: "SHA256",
    HashAlgorithm.SHA512: "SHA512",
}

# ImageFormat -> suffix libvips picks a saver from
VIPS_SUFFIXES = {
    ImageFormat.PNG: ".png",
    ImageFormat.JPEG: ".jpg",
    ImageFormat.WEBP: ".webp",
    ImageFormat.AVIF: ".avif",
    ImageFormat.TIFF: ".tif",
    ImageFormat.GIF: ".gif",
}

# libvips loader prefix -> ImageFormat
VIPS_LOADERS = {
    "png": ImageFormat.PNG,
    "jpeg": ImageFormat.JPEG,
    "webp": ImageFormat.WEBP,
    "heif": ImageFormat.AVIF,
    "tiff": ImageFormat.TIFF,
    "gif": ImageFormat.GIF,
}


class NativeEncodeTools(EncodeToolsBase):
    """Backend built on optional compiled modules."""

    default_options = DEFAULT_NATIVE_OPTIONS

    def __init__(self, options: OptionBag = None, portable: PortableEncodeTools | None = None):
        """Initialize backend.

        Args:
            options: Bag overlaid on DEFAULT_NATIVE_OPTIONS
            portable: Backend for formats without a native path. If None,
                one is created with the same options.
        """
        super().__init__(options)
        self._portable = portable if portable is not None else PortableEncodeTools(self.options)

    @property
    def portable(self) -> PortableEncodeTools:
        """Get the backend used for formats without a native path."""
        return self._portable

    @property
    def convertable_format_mime_types(self):
        return NATIVE_CONVERTABLE_FORMAT_MIME_TYPES

    @property
    def mime_types_convertable_format(self):
        return MIME_TYPES_NATIVE_CONVERTABLE_FORMAT

    # -------------------------------------------------------------------------
    # Hashing
    # -------------------------------------------------------------------------

    def _hash(self, data: bytes, algorithm: HashAlgorithm, *args: Any) -> bytes:
        if algorithm in XXHASH_ALGORITHMS:
            xxhash = require_module("xxhash")
            return getattr(xxhash, XXHASH_ALGORITHMS[algorithm])(data, *args).digest()

        if algorithm in CRYPTOGRAPHY_ALGORITHMS:
            hashes = require_module("cryptography.hazmat.primitives.hashes")
            digest = hashes.Hash(getattr(hashes, CRYPTOGRAPHY_ALGORITHMS[algorithm])())
            digest.update(data)
            return digest.finalize()

        return self._portable._hash(data, algorithm, *args)

    # -------------------------------------------------------------------------
    # Compression
    # -------------------------------------------------------------------------

    def _compress(self, data: bytes, format: CompressionFormat, level: int, *args: Any) -> bytes:
        if format == CompressionFormat.ZSTD:
            zstandard = require_module("zstandard")
            return zstandard.ZstdCompressor(level=level).compress(data)
        return self._portable._compress(data, format, level, *args)

    def _decompress(self, data: bytes, format: CompressionFormat, *args: Any) -> bytes:
        if format == CompressionFormat.ZSTD:
            zstandard = require_module("zstandard")
            # decompressobj() copes with frames that omit the content size
            return zstandard.ZstdDecompressor().decompressobj().decompress(data)
        return self._portable._decompress(data, format, *args)

    # -------------------------------------------------------------------------
    # Serialization
    # -------------------------------------------------------------------------

    def _serialize(self, obj: Any, format: SerializationFormat, *args: Any) -> bytes | str:
        if format == SerializationFormat.CBOR:
            require_module("_cbor2")
            # cbor2 re-exports the compiled codec once _cbor2 is importable
            return require_module("cbor2").dumps(obj)
        if format == SerializationFormat.BSON:
            return require_module("bson").encode(obj)
        return self._portable._serialize(obj, format, *args)

    def _deserialize(self, data: bytes | str, format: SerializationFormat) -> Any:
        if format == SerializationFormat.CBOR:
            require_module("_cbor2")
            return require_module("cbor2").loads(ensure_bytes(data))
        if format == SerializationFormat.BSON:
            return require_module("bson").decode(ensure_bytes(data))
        return self._portable._deserialize(data, format)

    # -------------------------------------------------------------------------
    # Unique IDs
    # -------------------------------------------------------------------------

    def _unique_id(self, format: IDFormat, *args: Any) -> bytes | str | int:
        return self._portable._unique_id(format, *args)

    # -------------------------------------------------------------------------
    # Images
    # -------------------------------------------------------------------------

    @staticmethod
    def _load(data: bytes):
        pyvips = require_module("pyvips")
        try:
            return pyvips.Image.new_from_buffer(data, "")
        except pyvips.Error as e:
            raise ImageError(f"Cannot decode image: {e}")

    @staticmethod
    def _save(image, format: ImageFormat) -> bytes:
        return image.write_to_buffer(VIPS_SUFFIXES[format])

    def _convert_image(self, data: bytes, format: ImageFormat) -> bytes:
        return self._save(self._load(data), format)

    def _resize_image(self, data: bytes, dims: ImageDims, format: ImageFormat) -> bytes:
        image = self._load(data)
        width, height = dims.resolve(image.width, image.height)
        resized = image.resize(width / image.width, vscale=height / image.height)
        return self._save(resized, format)

    def _crop_image(self, data: bytes, dims: CropDims, format: ImageFormat) -> bytes:
        image = self._load(data)
        if not dims.fits(image.width, image.height):
            raise ImageError(f"Crop region {dims.box()} is outside the {image.width}x{image.height} image")
        return self._save(image.crop(dims.left, dims.top, dims.width, dims.height), format)

    def _adjust_image_brightness(self, data: bytes, factor: float, format: ImageFormat) -> bytes:
        image = self._load(data)
        scale = 1 + factor

        if image.hasalpha():
            # Leave the alpha band untouched
            color = image.extract_band(0, n=image.bands - 1)
            alpha = image.extract_band(image.bands - 1)
            adjusted = color.linear(scale, 0).cast("uchar").bandjoin(alpha)
        else:
            adjusted = image.linear(scale, 0).cast("uchar")

        return self._save(adjusted, format)

    def _get_image_metadata(self, data: bytes) -> ImageMetadata:
        image = self._load(data)
        loader = image.get("vips-loader") if "vips-loader" in image.get_fields() else ""
        format = next(
            (fmt for prefix, fmt in VIPS_LOADERS.items() if loader.startswith(prefix)),
            None,
        )
        return ImageMetadata(format=format, width=image.width, height=image.height)
