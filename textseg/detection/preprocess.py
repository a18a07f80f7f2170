"""
Working-resolution normalization.

Upscales the input onto a white canvas, converts it to grayscale in
place and optionally boosts contrast and brightness. The scale factor is
returned so region coordinates can be mapped back to the original.
"""

from __future__ import annotations

import logging
from dataclasses import dataclass

from PIL import Image, ImageEnhance

from textseg.exceptions import ResourceUnavailableError
from textseg.models import RasterImage

logger = logging.getLogger(__name__)


# =============================================================================
# CONSTANTS
# =============================================================================

DEFAULT_TARGET_DIMENSION = 2000
DEFAULT_MIN_SCALE = 2.0


@dataclass
class PreprocessResult:
    """Working image plus the scale used to produce it."""

    image: RasterImage
    scale: float


def compute_scale(width: int, height: int, target_dimension: int, min_scale: float) -> float:
    """
    Scale factor from original to working resolution.

    Fits the image inside ``target_dimension`` but never scales by less
    than ``min_scale``, so small scans are always upscaled.
    """
    return max(min_scale, min(target_dimension / width, target_dimension / height))


def to_grayscale(image: Image.Image, contrast: float = 1.0, brightness: float = 1.0) -> Image.Image:
    """
    Set R=G=B=luminance (0.299R + 0.587G + 0.114B) on an RGBA image, keeping alpha.

    Contrast and brightness factors are applied to the luminance channel.
    """
    # PIL's "L" conversion uses the ITU-R 601-2 weights
    gray = image.convert("L")
    if contrast != 1.0:
        gray = ImageEnhance.Contrast(gray).enhance(contrast)
    if brightness != 1.0:
        gray = ImageEnhance.Brightness(gray).enhance(brightness)
    return Image.merge("RGBA", (gray, gray, gray, image.getchannel("A")))


def preprocess(
    image: RasterImage,
    target_dimension: int = DEFAULT_TARGET_DIMENSION,
    min_scale: float = DEFAULT_MIN_SCALE,
    contrast: float = 1.0,
    brightness: float = 1.0,
) -> PreprocessResult:
    """
    Produce the grayscale working image.

    Args:
        image: Original image. Not modified.
        target_dimension: Working resolution ceiling.
        min_scale: Minimum upscale factor.
        contrast: Contrast factor (1.0 = unchanged).
        brightness: Brightness factor (1.0 = unchanged).

    Returns:
        PreprocessResult with a newly allocated working image.

    Raises:
        ResourceUnavailableError: If the working canvas cannot be allocated.
    """
    scale = compute_scale(image.width, image.height, target_dimension, min_scale)
    working_size = (max(1, int(image.width * scale)), max(1, int(image.height * scale)))

    try:
        canvas = Image.new("RGBA", working_size, (255, 255, 255, 255))
        scaled = image.to_pil().resize(working_size, Image.Resampling.BILINEAR)
        canvas.alpha_composite(scaled)
    except (MemoryError, ValueError, OSError) as e:
        raise ResourceUnavailableError(
            f"Cannot allocate {working_size[0]}x{working_size[1]} working canvas: {e}"
        ) from e

    canvas = to_grayscale(canvas, contrast, brightness)

    logger.debug(
        "Preprocessed %dx%d -> %dx%d (scale %.3f)",
        image.width,
        image.height,
        working_size[0],
        working_size[1],
        scale,
    )

    return PreprocessResult(image=RasterImage.from_pil(canvas), scale=scale)
