"""
Global binarization with Otsu's method.

The threshold is chosen from a 256-bin luminance histogram by maximizing
the between-class variance. Pixels darker than the threshold become ink
(pure black); everything else becomes background (pure white).
"""

from __future__ import annotations

import logging

from PIL import Image

from textseg.models import RasterImage

logger = logging.getLogger(__name__)


# =============================================================================
# CONSTANTS
# =============================================================================

HISTOGRAM_BINS = 256
INK = 0
BACKGROUND = 255


def build_histogram(image: RasterImage) -> list[int]:
    """
    Count pixels per luminance value.

    The image must already be grayscale; the red channel is read as the
    luminance channel.
    """
    gray = Image.frombytes("L", image.size, image.channel(0))
    return gray.histogram()


def otsu_threshold(histogram: list[int]) -> int:
    """
    Otsu-optimal threshold for a 256-bin histogram.

    For each candidate ``t`` the background class is every bin below ``t``
    and the foreground class is every bin from ``t`` up. Candidates with an
    empty background are skipped and the scan stops once the foreground is
    empty. Ties keep the lowest ``t``.

    A histogram with a single populated bin yields 0.

    Args:
        histogram: 256 non-negative counts.

    Returns:
        Threshold in [0, 255]; pixels with luminance < threshold are ink.
    """
    if len(histogram) != HISTOGRAM_BINS:
        raise ValueError(f"Histogram must have {HISTOGRAM_BINS} bins, got {len(histogram)}")

    total = sum(histogram)
    weighted_sum = sum(i * count for i, count in enumerate(histogram))

    sum_background = 0
    weight_background = 0
    best_variance = 0.0
    threshold = 0

    for t in range(HISTOGRAM_BINS):
        if weight_background > 0:
            weight_foreground = total - weight_background
            if weight_foreground == 0:
                break

            mean_background = sum_background / weight_background
            mean_foreground = (weighted_sum - sum_background) / weight_foreground
            variance = (
                weight_background
                * weight_foreground
                * (mean_background - mean_foreground) ** 2
            )
            if variance > best_variance:
                best_variance = variance
                threshold = t

        weight_background += histogram[t]
        sum_background += t * histogram[t]

    return threshold


def binarize(image: RasterImage, threshold: int) -> RasterImage:
    """
    Two-level copy of a grayscale image.

    R, G and B are all set to 0 where luminance < threshold, 255 elsewhere.
    Alpha is preserved.
    """
    lut = [INK if value < threshold else BACKGROUND for value in range(HISTOGRAM_BINS)]
    gray = Image.frombytes("L", image.size, image.channel(0))
    binary = gray.point(lut)
    alpha = Image.frombytes("L", image.size, image.channel(3))
    return RasterImage.from_pil(Image.merge("RGBA", (binary, binary, binary, alpha)))


def otsu_binarize(image: RasterImage) -> tuple[RasterImage, int]:
    """Compute the Otsu threshold for ``image`` and binarize it."""
    threshold = otsu_threshold(build_histogram(image))
    logger.debug("Otsu threshold: %d", threshold)
    return binarize(image, threshold), threshold
