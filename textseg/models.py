"""
Data models for textseg.

Pixel buffers are flat RGBA byte arrays addressed by ``(row * width + col) * 4``.
Boxes live in working-resolution coordinates; bounding boxes and regions
live in original-image coordinates.
"""

from __future__ import annotations

import io
from dataclasses import dataclass, field
from typing import Any

from PIL import Image

from textseg.exceptions import EncodeError

CHANNELS = 4  # R, G, B, A

WHITE = (255, 255, 255, 255)


@dataclass
class RasterImage:
    """
    An RGBA pixel buffer.

    Owned by whichever stage currently holds it. Stages never write into a
    buffer they received; they return a new one.

    Example:
        >>> image = RasterImage.new(4, 2)
        >>> image.pixels[image.offset(1, 0)]
        255
    """

    width: int
    height: int
    pixels: bytearray = field(repr=False)

    def __post_init__(self) -> None:
        """Validate buffer size."""
        if self.width <= 0 or self.height <= 0:
            raise ValueError(f"Image dimensions must be positive, got {self.width}x{self.height}")
        expected = self.width * self.height * CHANNELS
        if len(self.pixels) != expected:
            raise ValueError(
                f"Pixel buffer has {len(self.pixels)} bytes, expected {expected} "
                f"for {self.width}x{self.height} RGBA"
            )
        if not isinstance(self.pixels, bytearray):
            self.pixels = bytearray(self.pixels)

    @classmethod
    def new(cls, width: int, height: int, fill: tuple[int, int, int, int] = WHITE) -> RasterImage:
        """Allocate a buffer filled with a single color (white by default)."""
        return cls(width, height, bytearray(bytes(fill) * (width * height)))

    @classmethod
    def from_pil(cls, image: Image.Image) -> RasterImage:
        """Copy a PIL image into a new RGBA buffer."""
        if image.mode != "RGBA":
            image = image.convert("RGBA")
        return cls(image.width, image.height, bytearray(image.tobytes()))

    def to_pil(self) -> Image.Image:
        """Copy the buffer into a new PIL RGBA image."""
        return Image.frombytes("RGBA", (self.width, self.height), bytes(self.pixels))

    def copy(self) -> RasterImage:
        """Return an independently owned copy."""
        return RasterImage(self.width, self.height, bytearray(self.pixels))

    @property
    def size(self) -> tuple[int, int]:
        """(width, height)."""
        return (self.width, self.height)

    def offset(self, x: int, y: int) -> int:
        """Byte offset of the first channel of pixel (x, y)."""
        if not (0 <= x < self.width and 0 <= y < self.height):
            raise IndexError(f"Pixel ({x}, {y}) outside {self.width}x{self.height} image")
        return (y * self.width + x) * CHANNELS

    def pixel(self, x: int, y: int) -> tuple[int, int, int, int]:
        """RGBA tuple at (x, y)."""
        i = self.offset(x, y)
        r, g, b, a = self.pixels[i : i + CHANNELS]
        return (r, g, b, a)

    def channel(self, index: int) -> bytes:
        """One channel (0=R .. 3=A) as a flat row-major byte string."""
        if not 0 <= index < CHANNELS:
            raise IndexError(f"Channel index must be 0-3, got {index}")
        return bytes(self.pixels[index::CHANNELS])

    def encode(self, image_format: str = "PNG") -> bytes:
        """
        Serialize to an encoded image.

        Args:
            image_format: PIL format name (PNG, JPEG, ...).

        Returns:
            Encoded image bytes.

        Raises:
            EncodeError: If the raster cannot be encoded in that format.
        """
        image = self.to_pil()
        # JPEG has no alpha channel
        if image_format.upper() in ("JPEG", "JPG"):
            image = image.convert("RGB")
            image_format = "JPEG"

        buf = io.BytesIO()
        try:
            image.save(buf, format=image_format)
        except (KeyError, OSError, ValueError) as e:
            raise EncodeError(f"Failed to encode {self.width}x{self.height} raster as {image_format}: {e}") from e
        return buf.getvalue()


@dataclass
class Box:
    """
    Axis-aligned extent of a component in working-resolution pixels.

    Inclusive on both ends. Mutated only while boxes are being merged.
    """

    min_x: int
    min_y: int
    max_x: int
    max_y: int

    def __post_init__(self) -> None:
        """Validate extent ordering."""
        if self.min_x > self.max_x or self.min_y > self.max_y:
            raise ValueError(
                f"Invalid box extent: ({self.min_x}, {self.min_y}, {self.max_x}, {self.max_y})"
            )

    @classmethod
    def at(cls, x: int, y: int) -> Box:
        """A single-pixel box."""
        return cls(x, y, x, y)

    @property
    def width(self) -> int:
        """Extent along x (max - min)."""
        return self.max_x - self.min_x

    @property
    def height(self) -> int:
        """Extent along y (max - min)."""
        return self.max_y - self.min_y

    @property
    def area(self) -> int:
        """(max_x - min_x) * (max_y - min_y)."""
        return self.width * self.height

    def include(self, x: int, y: int) -> None:
        """Grow to contain pixel (x, y)."""
        if x < self.min_x:
            self.min_x = x
        if x > self.max_x:
            self.max_x = x
        if y < self.min_y:
            self.min_y = y
        if y > self.max_y:
            self.max_y = y

    def absorb(self, other: Box) -> None:
        """Grow to the union of this box and ``other``."""
        self.min_x = min(self.min_x, other.min_x)
        self.min_y = min(self.min_y, other.min_y)
        self.max_x = max(self.max_x, other.max_x)
        self.max_y = max(self.max_y, other.max_y)

    def is_close(self, other: Box, distance: int) -> bool:
        """
        True if both boxes, each expanded by ``distance`` on every side, intersect.

        Equivalent to the gap between them being strictly less than
        ``2 * distance`` on both axes.
        """
        return (
            self.min_x - distance < other.max_x + distance
            and other.min_x - distance < self.max_x + distance
            and self.min_y - distance < other.max_y + distance
            and other.min_y - distance < self.max_y + distance
        )

    def copy(self) -> Box:
        return Box(self.min_x, self.min_y, self.max_x, self.max_y)

    def as_tuple(self) -> tuple[int, int, int, int]:
        return (self.min_x, self.min_y, self.max_x, self.max_y)


@dataclass(frozen=True)
class BoundingBox:
    """Rectangle in original-image coordinates; x1/y1 are exclusive crop edges."""

    x0: int
    y0: int
    x1: int
    y1: int

    @property
    def width(self) -> int:
        return self.x1 - self.x0

    @property
    def height(self) -> int:
        return self.y1 - self.y0

    def to_dict(self) -> dict[str, int]:
        return {"x0": self.x0, "y0": self.y0, "x1": self.x1, "y1": self.y1}


@dataclass(frozen=True)
class Region:
    """A detected text region: its bounding box and the cropped original pixels."""

    bbox: BoundingBox
    image: RasterImage = field(repr=False)


@dataclass(frozen=True)
class RegionDescriptor:
    """Encoded form of a Region, as handed to storage or display."""

    bbox: BoundingBox
    cropped_image: bytes = field(repr=False)

    def to_dict(self) -> dict[str, Any]:
        return {"bbox": self.bbox.to_dict(), "croppedImage": self.cropped_image}


@dataclass
class DetectionStats:
    """Statistics for one detection run."""

    original_size: tuple[int, int] = (0, 0)
    working_size: tuple[int, int] = (0, 0)
    scale: float = 1.0
    threshold: int = 0
    ink_pixels: int = 0
    components: int = 0
    boxes_after_filter: int = 0
    boxes_after_merge: int = 0
    processing_time_ms: float = 0.0


@dataclass
class DetectionResult:
    """
    Output of one detection run.

    Regions are in merge-set order, not reading order; use
    ``textseg.detection.extract.sort_reading_order`` when order matters.
    """

    regions: list[Region]
    full_image: RasterImage = field(repr=False)
    scale: float = 1.0
    threshold: int = 0
    stats: DetectionStats = field(default_factory=DetectionStats)

    def __len__(self) -> int:
        return len(self.regions)

    def encode_full_image(self, image_format: str = "PNG") -> bytes:
        """Encode the unmodified original image for display or storage."""
        return self.full_image.encode(image_format)

    def to_descriptors(self, image_format: str = "PNG") -> list[RegionDescriptor]:
        """
        Encode every region.

        Raises:
            EncodeError: If any region fails to encode. Nothing is returned
                in that case; callers get the complete set or an error.
        """
        return [
            RegionDescriptor(bbox=region.bbox, cropped_image=region.image.encode(image_format))
            for region in self.regions
        ]

    def to_dict(self, image_format: str = "PNG") -> dict[str, Any]:
        """Encoded representation: the full image plus region descriptors."""
        descriptors = self.to_descriptors(image_format)
        return {
            "fullImage": self.encode_full_image(image_format),
            "regions": [d.to_dict() for d in descriptors],
            "scale": self.scale,
            "threshold": self.threshold,
        }
