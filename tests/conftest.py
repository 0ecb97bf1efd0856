"""Pytest configuration and fixtures."""

import io
import tempfile
from pathlib import Path
from unittest.mock import patch

import pytest
from PIL import Image

from encode_tools.core.capabilities import AvailableNativeModules, is_module_available


def requires_module(name: str):
    """Skip a test unless the module can actually be loaded."""
    return pytest.mark.skipif(not is_module_available(name), reason=f"{name} not available")


def image_bytes(fmt: str, size=(100, 50), color="red", mode="RGB") -> bytes:
    """Encode a solid-color Pillow image."""
    buffer = io.BytesIO()
    Image.new(mode, size, color=color).save(buffer, fmt)
    return buffer.getvalue()


@pytest.fixture
def temp_dir():
    """Create a temporary directory."""
    with tempfile.TemporaryDirectory() as tmpdir:
        yield Path(tmpdir)


@pytest.fixture
def png_bytes():
    """A 100x50 red PNG."""
    return image_bytes("PNG")


@pytest.fixture
def jpeg_bytes():
    """A 100x50 blue JPEG."""
    return image_bytes("JPEG", color="blue")


@pytest.fixture
def rgba_png_bytes():
    """A 40x40 semi-transparent PNG."""
    return image_bytes("PNG", size=(40, 40), color=(0, 128, 255, 128), mode="RGBA")


@pytest.fixture
def corrupted_bytes():
    """Bytes that are not an image."""
    return b"not a valid image file"


@pytest.fixture
def no_native_modules():
    """Capability set with nothing installed."""
    return AvailableNativeModules()


@pytest.fixture
def all_native_modules():
    """Capability set with everything installed."""
    return AvailableNativeModules(
        zstandard=True,
        pyvips=True,
        bson_ext=True,
        xxhash=True,
        cbor_ext=True,
        cryptography=True,
    )


@pytest.fixture
def patch_modules():
    """Patch the facade's capability detection.

    Usage:
        with patch_modules(AvailableNativeModules(xxhash=True)):
            enc = EncodeToolsAuto()
    """

    def _patch(available: AvailableNativeModules):
        return patch("encode_tools.core.auto.detect_native_modules", return_value=available)

    return _patch
