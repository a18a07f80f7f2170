"""
Region extraction.

Maps working-resolution boxes back onto the original image, pads and
clamps them, and crops the original (color, unscaled) pixels.
"""

from __future__ import annotations

import math

from textseg.models import BoundingBox, Box, RasterImage, Region

DEFAULT_PADDING = 10  # px in original-image coordinates


def to_original_bbox(box: Box, scale: float, padding: int, width: int, height: int) -> BoundingBox:
    """
    Translate a working-resolution box to original coordinates.

    Args:
        box: Box at working resolution.
        scale: Factor the original was scaled by.
        padding: Pixels added on every side.
        width: Original image width (clamp limit).
        height: Original image height (clamp limit).

    Returns:
        Padded bounding box clamped to [0, width] x [0, height].
    """
    return BoundingBox(
        x0=max(0, math.floor(box.min_x / scale) - padding),
        y0=max(0, math.floor(box.min_y / scale) - padding),
        x1=min(width, math.ceil(box.max_x / scale) + padding),
        y1=min(height, math.ceil(box.max_y / scale) + padding),
    )


def crop(image: RasterImage, bbox: BoundingBox) -> RasterImage:
    """Copy the pixels inside ``bbox`` into a new raster."""
    stride = image.width * 4
    row_bytes = bbox.width * 4
    out = bytearray(row_bytes * bbox.height)
    for row in range(bbox.height):
        start = (bbox.y0 + row) * stride + bbox.x0 * 4
        out[row * row_bytes : (row + 1) * row_bytes] = image.pixels[start : start + row_bytes]
    return RasterImage(bbox.width, bbox.height, out)


def extract_regions(
    boxes: list[Box],
    scale: float,
    original: RasterImage,
    padding: int = DEFAULT_PADDING,
) -> tuple[list[Region], RasterImage]:
    """
    Crop one region per box from the original image.

    Args:
        boxes: Merged boxes at working resolution.
        scale: Factor used by preprocessing.
        original: The original, non-binarized, non-scaled image.
        padding: Pixels added around each region.

    Returns:
        Tuple of (regions in box order, unmodified copy of the original).
    """
    regions = []
    for box in boxes:
        bbox = to_original_bbox(box, scale, padding, original.width, original.height)
        if bbox.width <= 0 or bbox.height <= 0:
            continue
        regions.append(Region(bbox=bbox, image=crop(original, bbox)))
    return regions, original.copy()


def sort_reading_order(regions: list[Region]) -> list[Region]:
    """Regions sorted top-to-bottom, then left-to-right."""
    return sorted(regions, key=lambda r: (r.bbox.y0, r.bbox.x0))
