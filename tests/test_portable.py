"""Tests for the portable backend."""

import asyncio
import hashlib
import io
import uuid
import zlib

import pytest
import xxhash
from PIL import Image

from encode_tools.backends.portable import PortableEncodeTools
from encode_tools.backends.schemas import CropDims, ImageDims
from encode_tools.constants import (
    PORTABLE_CONVERTABLE_FORMAT_MIME_TYPES,
    BinaryEncoding,
    CompressionFormat,
    HashAlgorithm,
    IDFormat,
    ImageFormat,
    SerializationFormat,
)
from encode_tools.exceptions import ImageError, InvalidFormat


@pytest.fixture
def tools():
    return PortableEncodeTools()


def open_image(data: bytes) -> Image.Image:
    return Image.open(io.BytesIO(data))


class TestOptions:
    """Tests for backend options."""

    def test_defaults(self, tools):
        assert tools.options.hash_algorithm is HashAlgorithm.SHA2
        assert tools.options.compression_format is CompressionFormat.GZIP

    def test_overlay(self):
        tools = PortableEncodeTools({"hash_algorithm": "md5"})
        assert tools.options.hash_algorithm is HashAlgorithm.MD5
        assert tools.options.binary_encoding is BinaryEncoding.BASE64

    def test_with_defaults(self):
        assert PortableEncodeTools.with_defaults().options == PortableEncodeTools().options

    def test_mime_tables(self, tools):
        assert tools.convertable_format_mime_types is PORTABLE_CONVERTABLE_FORMAT_MIME_TYPES
        assert ImageFormat.WEBP not in tools.convertable_format_mime_types


class TestHash:
    """Tests for hashing."""

    @pytest.mark.parametrize(
        "algorithm,name",
        [("md5", "md5"), ("sha1", "sha1"), ("sha2", "sha256"), ("sha512", "sha512"), ("sha3", "sha3_256")],
    )
    def test_hashlib_digests(self, tools, algorithm, name):
        """Test digests match hashlib."""
        assert asyncio.run(tools.hash(b"payload", algorithm)) == hashlib.new(name, b"payload").digest()

    def test_default_algorithm(self, tools):
        assert asyncio.run(tools.hash(b"payload")) == hashlib.sha256(b"payload").digest()

    def test_str_input(self, tools):
        assert asyncio.run(tools.hash("payload")) == asyncio.run(tools.hash(b"payload"))

    def test_crc32(self, tools):
        digest = asyncio.run(tools.hash(b"payload", HashAlgorithm.CRC32))
        assert digest == zlib.crc32(b"payload").to_bytes(4, "big")

    def test_fast_hash_unsupported(self, tools):
        """Test xxhash3 has no portable implementation."""
        with pytest.raises(InvalidFormat) as exc_info:
            asyncio.run(tools.hash(b"payload", "xxhash3"))
        assert exc_info.value.format is HashAlgorithm.XXHASH3

    def test_unknown_algorithm(self, tools):
        with pytest.raises(InvalidFormat) as exc_info:
            asyncio.run(tools.hash(b"payload", "whirlpool"))
        assert exc_info.value.format == "whirlpool"

    def test_xxhash64(self, tools):
        assert asyncio.run(tools.hash(b"payload", "xxhash64")) == xxhash.xxh64(b"payload").digest()

    def test_xxhash32_with_seed(self, tools):
        assert asyncio.run(tools.hash(b"payload", "xxhash32", 7)) == xxhash.xxh32(b"payload", 7).digest()

    def test_hash_string(self, tools):
        assert asyncio.run(tools.hash_string(b"payload", "md5")) == hashlib.md5(b"payload").hexdigest()

    def test_hash_object_ignores_key_order(self, tools):
        """Test equal objects hash equally regardless of key order."""
        first = asyncio.run(tools.hash_object({"a": 1, "b": [1, 2]}))
        second = asyncio.run(tools.hash_object({"b": [1, 2], "a": 1}))
        assert first == second
        assert first == hashlib.sha256(b'{"a":1,"b":[1,2]}').digest()


class TestCompression:
    """Tests for compression."""

    def test_gzip_roundtrip(self, tools):
        data = b"hello world " * 100
        compressed = asyncio.run(tools.compress(data, "gzip"))
        assert len(compressed) < len(data)
        assert asyncio.run(tools.decompress(compressed, "gzip")) == data

    def test_gzip_deterministic(self, tools):
        assert asyncio.run(tools.compress(b"abc", "gzip")) == asyncio.run(tools.compress(b"abc", "gzip"))

    def test_default_format_is_gzip(self, tools):
        compressed = asyncio.run(tools.compress(b"abc"))
        assert compressed[:2] == b"\x1f\x8b"

    def test_lzma_roundtrip(self, tools):
        compressed = asyncio.run(tools.compress(b"abc" * 50, CompressionFormat.LZMA, 1))
        assert asyncio.run(tools.decompress(compressed, CompressionFormat.LZMA)) == b"abc" * 50

    def test_zstd_roundtrip(self, tools):
        """Test zstd works without the zstandard package."""
        compressed = asyncio.run(tools.compress(b"abc" * 50, "zstd"))
        assert compressed[:4] == b"\x28\xb5\x2f\xfd"
        assert asyncio.run(tools.decompress(compressed, "zstd")) == b"abc" * 50

    def test_unknown_format(self, tools):
        with pytest.raises(InvalidFormat):
            asyncio.run(tools.compress(b"abc", "brotli"))


class TestSerialization:
    """Tests for serialization."""

    def test_json_returns_text(self, tools):
        assert tools.serialize_object({"a": 1}) == '{"a": 1}'

    def test_json5(self, tools):
        assert tools.deserialize_object("{a: 1, // comment\n}", "json5") == {"a": 1}

    def test_cbor(self, tools):
        data = tools.serialize_object({"a": [1, 2]}, SerializationFormat.CBOR)
        assert isinstance(data, bytes)
        assert tools.deserialize_object(data, "cbor") == {"a": [1, 2]}

    def test_msgpack(self, tools):
        data = tools.serialize_object({"a": "b"}, "msgpack")
        assert tools.deserialize_object(data, "msgpack") == {"a": "b"}

    def test_bson(self, tools):
        data = tools.serialize_object({"a": 1}, "bson")
        assert tools.deserialize_object(bytearray(data), "bson") == {"a": 1}

    def test_unknown_format(self, tools):
        with pytest.raises(InvalidFormat):
            tools.serialize_object({}, "yaml")


class TestBinaryEncoding:
    """Tests for encode_buffer and decode_buffer."""

    @pytest.mark.parametrize(
        "encoding,expected",
        [
            ("bytes", b"hello?"),
            ("base64", "aGVsbG8/"),
            ("base64url", "aGVsbG8_"),
            ("hex", "68656c6c6f3f"),
            ("base32", "NBSWY3DPH4======"),
        ],
    )
    def test_known_values(self, tools, encoding, expected):
        assert tools.encode_buffer(b"hello?", encoding) == expected
        assert tools.decode_buffer(expected, encoding) == b"hello?"

    def test_base64url_strips_padding(self, tools):
        encoded = tools.encode_buffer(b"ab", "base64url")
        assert encoded == "YWI"
        assert tools.decode_buffer(encoded, "base64url") == b"ab"

    def test_base85_and_ascii85(self, tools):
        for encoding in ("base85", "ascii85"):
            assert tools.decode_buffer(tools.encode_buffer(b"\x00\xffdata", encoding), encoding) == b"\x00\xffdata"

    def test_hashids_with_salt(self, tools):
        """Test extra args reach the Hashids constructor."""
        salted = tools.encode_buffer(b"\x01\x02", "hashids", "salt")
        assert salted != tools.encode_buffer(b"\x01\x02", "hashids")
        assert tools.decode_buffer(salted, "hashids", "salt") == b"\x01\x02"

    def test_unknown_encoding(self, tools):
        with pytest.raises(InvalidFormat) as exc_info:
            tools.encode_buffer(b"x", "rot13")
        assert exc_info.value.format == "rot13"

    def test_encode_object(self, tools):
        encoded = tools.encode_object({"a": 1})
        assert tools.decode_buffer(encoded) == b'{"a": 1}'
        assert tools.decode_object(encoded) == {"a": 1}

    def test_encode_object_uses_configured_format(self):
        tools = PortableEncodeTools({"serialization_format": "msgpack"})
        encoded = tools.encode_object({"a": 1}, "hex")
        assert tools.decode_object(encoded, "hex") == {"a": 1}


class TestUniqueId:
    """Tests for unique_id."""

    def test_default_is_uuid4_string(self, tools):
        value = tools.unique_id()
        assert uuid.UUID(value).version == 4

    def test_uuid_bytes(self, tools):
        assert uuid.UUID(bytes=tools.unique_id("uuidv1")).version == 1
        assert len(tools.unique_id(IDFormat.UUIDV4)) == 16

    def test_object_id(self, tools):
        assert len(tools.unique_id("objectId")) == 12
        assert len(tools.unique_id("objectIdString")) == 24

    def test_nanoid(self, tools):
        assert len(tools.unique_id("nanoid")) == 21
        assert len(tools.unique_id("nanoid", 10)) == 10

    def test_timestamp(self, tools):
        assert isinstance(tools.unique_id("timestamp"), int)

    def test_unique(self, tools):
        assert tools.unique_id("uuidv4String") != tools.unique_id("uuidv4String")


class TestImages:
    """Tests for Pillow image operations."""

    def test_convert(self, tools, png_bytes):
        converted = asyncio.run(tools.convert_image(png_bytes, "jpeg"))
        assert open_image(converted).format == "JPEG"

    def test_convert_rgba_to_jpeg(self, tools, rgba_png_bytes):
        converted = asyncio.run(tools.convert_image(rgba_png_bytes, ImageFormat.JPEG))
        assert open_image(converted).mode == "RGB"

    def test_native_only_format(self, tools, png_bytes):
        with pytest.raises(InvalidFormat) as exc_info:
            asyncio.run(tools.convert_image(png_bytes, "webp"))
        assert exc_info.value.format is ImageFormat.WEBP

    def test_resize_keeps_aspect(self, tools, png_bytes):
        resized = asyncio.run(tools.resize_image(png_bytes, {"width": 50}))
        assert open_image(resized).size == (50, 25)

    def test_resize_both_sides(self, tools, png_bytes):
        resized = asyncio.run(tools.resize_image(png_bytes, ImageDims(width=10, height=40)))
        assert open_image(resized).size == (10, 40)

    def test_crop(self, tools, png_bytes):
        cropped = asyncio.run(tools.crop_image(png_bytes, {"left": 10, "top": 5, "width": 20, "height": 15}))
        assert open_image(cropped).size == (20, 15)

    def test_crop_dims(self, tools, jpeg_bytes):
        cropped = asyncio.run(tools.crop_image(jpeg_bytes, CropDims(0, 0, 5, 5), "jpeg"))
        assert open_image(cropped).size == (5, 5)

    def test_crop_outside_image(self, tools, png_bytes):
        """Test a region past the edge is rejected rather than padded."""
        with pytest.raises(ImageError, match="outside"):
            asyncio.run(tools.crop_image(png_bytes, {"left": 90, "top": 0, "width": 20, "height": 10}))

    def test_brightness(self, tools, png_bytes):
        darker = asyncio.run(tools.adjust_image_brightness(png_bytes, -0.5))
        assert open_image(darker).convert("RGB").getpixel((0, 0))[0] < 255

    def test_brightness_zero_is_identity(self, tools, png_bytes):
        same = asyncio.run(tools.adjust_image_brightness(png_bytes, 0))
        assert open_image(same).convert("RGB").getpixel((0, 0)) == (255, 0, 0)

    def test_metadata(self, tools, jpeg_bytes):
        meta = asyncio.run(tools.get_image_metadata(jpeg_bytes))
        assert meta.format is ImageFormat.JPEG
        assert (meta.width, meta.height) == (100, 50)

    def test_corrupted(self, tools, corrupted_bytes):
        with pytest.raises(ImageError):
            asyncio.run(tools.get_image_metadata(corrupted_bytes))
