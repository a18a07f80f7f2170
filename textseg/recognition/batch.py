"""
Concurrent recognition of detected regions.

Regions are independent of each other, so once detection has produced
the complete region list every region is prepared and recognized on its
own worker. Results come back in region order with line boxes mapped
into original-image coordinates.
"""

from __future__ import annotations

import logging
import math
import time
from concurrent.futures import ThreadPoolExecutor
from dataclasses import dataclass

from textseg.config import RecognitionConfig
from textseg.detection.preprocess import preprocess
from textseg.models import BoundingBox, RasterImage, Region
from textseg.recognition.engine import RecognitionEngine, RecognizedLine

logger = logging.getLogger(__name__)


@dataclass
class RegionText:
    """Recognition output for one region, in original-image coordinates."""

    region: Region
    lines: list[RecognizedLine]
    confidence: float

    @property
    def text(self) -> str:
        return "\n".join(line.text for line in self.lines)


@dataclass
class RecognitionStats:
    """Statistics for a batch of region recognitions."""

    regions_processed: int = 0
    regions_with_text: int = 0
    lines_recognized: int = 0
    engine_used: str = ""
    total_time_ms: float = 0.0


@dataclass
class PreparedRegion:
    """A region image ready for the engine, plus the scale applied to it."""

    image: RasterImage
    scale: float = 1.0


def prepare_region(image: RasterImage, config: RecognitionConfig) -> PreparedRegion:
    """Grayscale and upscale a region crop for recognition."""
    if not config.preprocess:
        return PreparedRegion(image=image, scale=1.0)
    prepared = preprocess(image, target_dimension=config.target_dimension, min_scale=config.min_scale)
    return PreparedRegion(image=prepared.image, scale=prepared.scale)


def _clamp(value: int, low: int, high: int) -> int:
    return max(low, min(high, value))


def to_region_coords(bbox: BoundingBox, scale: float, region: Region) -> BoundingBox:
    """Map a box from a prepared region image to original-image coordinates, clamped to the region."""
    bounds = region.bbox
    return BoundingBox(
        x0=_clamp(bounds.x0 + math.floor(bbox.x0 / scale), bounds.x0, bounds.x1),
        y0=_clamp(bounds.y0 + math.floor(bbox.y0 / scale), bounds.y0, bounds.y1),
        x1=_clamp(bounds.x0 + math.ceil(bbox.x1 / scale), bounds.x0, bounds.x1),
        y1=_clamp(bounds.y0 + math.ceil(bbox.y1 / scale), bounds.y0, bounds.y1),
    )


def recognize_region(region: Region, engine: RecognitionEngine, config: RecognitionConfig) -> RegionText:
    """
    Recognize one region.

    Raises:
        RecognitionError: If the engine fails.
    """
    prepared = prepare_region(region.image, config)
    result = engine.recognize(prepared.image, config)
    lines = [
        RecognizedLine(
            text=line.text,
            bbox=to_region_coords(line.bbox, prepared.scale, region),
            confidence=line.confidence,
        )
        for line in result.lines
    ]
    return RegionText(region=region, lines=lines, confidence=result.confidence)


def recognize_regions(
    regions: list[Region],
    engine: RecognitionEngine,
    config: RecognitionConfig | None = None,
) -> tuple[list[RegionText], RecognitionStats]:
    """
    Recognize every region concurrently.

    Args:
        regions: Complete region list from a detection run.
        engine: Recognition engine.
        config: Recognition parameters.

    Returns:
        Tuple of (results in region order, statistics).

    Raises:
        RecognitionError: If the engine fails on any region.
    """
    config = config or RecognitionConfig()
    regions = tuple(regions)
    start_time = time.time()
    stats = RecognitionStats(engine_used=engine.name)

    if not regions:
        return [], stats

    workers = min(config.max_workers, len(regions))
    with ThreadPoolExecutor(max_workers=workers, thread_name_prefix="textseg-ocr") as pool:
        results = list(pool.map(lambda r: recognize_region(r, engine, config), regions))

    for result in results:
        stats.regions_processed += 1
        if result.lines:
            stats.regions_with_text += 1
            stats.lines_recognized += len(result.lines)

    stats.total_time_ms = (time.time() - start_time) * 1000
    logger.debug(
        "Recognized %d regions with %s: %d lines in %.1f ms",
        stats.regions_processed,
        engine.name,
        stats.lines_recognized,
        stats.total_time_ms,
    )
    return results, stats
