"""Data schemas exchanged between the facade and the backends."""

from collections.abc import Mapping
from dataclasses import asdict, dataclass
from enum import Enum
from typing import Any, Generic, TypeVar

from ..constants import ImageFormat

F = TypeVar("F", bound=Enum)


@dataclass(frozen=True)
class ImageDims:
    """Target size for resize_image().

    At least one side is required. A missing side is derived from the
    image's aspect ratio.

    Example:
        >>> ImageDims(width=200)
        ImageDims(width=200, height=None)
    """

    width: int | None = None
    height: int | None = None

    def __post_init__(self):
        if self.width is None and self.height is None:
            raise ValueError("ImageDims needs a width, a height, or both")

    @classmethod
    def coerce(cls, dims: "ImageDims | Mapping[str, int]") -> "ImageDims":
        if isinstance(dims, ImageDims):
            return dims
        return cls(width=dims.get("width"), height=dims.get("height"))

    def resolve(self, width: int, height: int) -> tuple[int, int]:
        """Fill in a missing side from the source size."""
        if self.width is not None and self.height is not None:
            return self.width, self.height
        if self.width is not None:
            return self.width, max(1, round(height * self.width / width))
        return max(1, round(width * self.height / height)), self.height


@dataclass(frozen=True)
class CropDims:
    """Region for crop_image(), in pixels from the top-left corner."""

    left: int
    top: int
    width: int
    height: int

    @classmethod
    def coerce(cls, dims: "CropDims | Mapping[str, int]") -> "CropDims":
        if isinstance(dims, CropDims):
            return dims
        return cls(left=dims["left"], top=dims["top"], width=dims["width"], height=dims["height"])

    def box(self) -> tuple[int, int, int, int]:
        """(left, upper, right, lower) box as Pillow expects it."""
        return self.left, self.top, self.left + self.width, self.top + self.height

    def fits(self, width: int, height: int) -> bool:
        """Check the region lies inside an image of the given size."""
        return (
            self.left >= 0
            and self.top >= 0
            and self.width > 0
            and self.height > 0
            and self.left + self.width <= width
            and self.top + self.height <= height
        )


@dataclass(frozen=True)
class ImageMetadata:
    """Basic facts about an encoded image."""

    format: ImageFormat | None
    width: int
    height: int

    def to_dict(self) -> dict:
        """Convert to dictionary."""
        result = asdict(self)
        if self.format is not None:
            result["format"] = self.format.value
        return result


@dataclass(frozen=True)
class ExtractedContentType(Generic[F]):
    """Format and MIME type read from an HTTP header.

    Attributes:
        format: Format found, or the default if nothing matched
        mime_type: MIME type of format, or None
        header: Name of the header that was read
    """

    format: F | None
    mime_type: str | None
    header: str

    def to_dict(self) -> dict[str, Any]:
        """Convert to dictionary."""
        return {
            "format": self.format.value if self.format is not None else None,
            "mime_type": self.mime_type,
            "header": self.header,
        }
