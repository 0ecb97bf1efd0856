"""Backend implementations.

- PortableEncodeTools: standard library and pure-Python packages
- NativeEncodeTools: optional compiled modules
"""

from .base import EncodeToolsBase
from .native import NativeEncodeTools
from .portable import PortableEncodeTools
from .schemas import CropDims, ExtractedContentType, ImageDims, ImageMetadata

__all__ = [
    "EncodeToolsBase",
    "NativeEncodeTools",
    "PortableEncodeTools",
    "CropDims",
    "ExtractedContentType",
    "ImageDims",
    "ImageMetadata",
]
