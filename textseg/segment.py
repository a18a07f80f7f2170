"""
Top-level segmentation and recognition entry points.

Wires together:
- readers (decode an image, or rasterize PDF pages)
- TextRegionDetector (find and crop text regions)
- recognition (concurrent per-region OCR)

Every input is fully decoded before detection starts, and detection is
complete before any recognition call is made.
"""

from __future__ import annotations

import logging
from collections.abc import Iterator
from dataclasses import dataclass, field
from pathlib import Path
from typing import Any, Union

from textseg.config import SegmentationConfig
from textseg.detection.extract import sort_reading_order
from textseg.detection.pipeline import TextRegionDetector
from textseg.exceptions import TextSegError, UnsupportedFormatError
from textseg.models import DetectionResult, RasterImage
from textseg.readers.image_reader import decode_image, is_image_path
from textseg.readers.pdf_rasterizer import PageRasterizer
from textseg.recognition.batch import RecognitionStats, RegionText, recognize_regions
from textseg.recognition.engine import RecognitionEngine, RecognizedLine, TesseractEngine

logger = logging.getLogger(__name__)

Source = Union[str, Path, bytes, RasterImage]


@dataclass
class OCRResult:
    """
    Recognized text for a whole image.

    ``lines`` are in reading order with boxes in original-image
    coordinates; ``confidence`` is the mean region confidence (0-100)
    over regions that produced text.
    """

    text: str
    confidence: float
    lines: list[RecognizedLine] = field(default_factory=list)
    regions: list[RegionText] = field(default_factory=list)
    detection: DetectionResult | None = field(default=None, repr=False)
    stats: RecognitionStats = field(default_factory=RecognitionStats)

    def to_dict(self) -> dict[str, Any]:
        """Convert to a JSON-serializable dictionary."""
        return {
            "text": self.text,
            "confidence": self.confidence,
            "lines": [line.to_dict() for line in self.lines],
        }


def detect_format(path: str | Path) -> str:
    """
    Detect input format from file extension and magic bytes.

    Returns:
        "pdf" or "image".

    Raises:
        UnsupportedFormatError: If the format cannot be detected.
    """
    path = Path(path)

    if path.suffix.lower() == ".pdf":
        return "pdf"
    if is_image_path(path):
        return "image"

    # Try magic bytes for PDF
    try:
        with open(path, "rb") as f:
            header = f.read(8)
            if header.startswith(b"%PDF"):
                return "pdf"
    except OSError:
        pass

    raise UnsupportedFormatError(f"Cannot detect format for: {path}")


def _load(source: Source) -> RasterImage:
    if isinstance(source, RasterImage):
        return source
    return decode_image(source)


def detect_regions(source: Source, config: SegmentationConfig | None = None) -> DetectionResult:
    """
    Detect text regions in one image.

    Args:
        source: Image path, encoded image bytes, or a decoded RasterImage.
        config: Segmentation configuration.

    Returns:
        DetectionResult with regions in merge order.

    Raises:
        DecodeError: If the image cannot be decoded.
        UnsupportedFormatError: If the image format is not supported.
        ResourceUnavailableError: If working buffers cannot be allocated.
    """
    config = config or SegmentationConfig()
    image = _load(source)
    return TextRegionDetector(config.detection).detect(image)


def detect_document_regions(
    source: str | Path | bytes,
    config: SegmentationConfig | None = None,
    page_range: tuple[int, int] | None = None,
) -> Iterator[tuple[int, DetectionResult | Exception]]:
    """
    Detect text regions on every page of a PDF.

    Args:
        source: PDF path or bytes.
        config: Segmentation configuration.
        page_range: Optional (start, end) page range, inclusive.

    Yields:
        (page_index, result) tuples where result is a DetectionResult, or
        the exception raised for that page when ``config.on_error`` is "warn".
        Failed pages are dropped when it is "skip" and re-raised when it is
        "raise".
    """
    config = config or SegmentationConfig()
    detector = TextRegionDetector(config.detection)

    with PageRasterizer(source) as rasterizer:
        if page_range:
            start, end = page_range
            pages = range(max(0, start), min(end + 1, rasterizer.page_count))
        else:
            pages = range(rasterizer.page_count)

        for page_index in pages:
            try:
                image = rasterizer.render(page_index, config.render_scale)
                result = detector.detect(image)
            except TextSegError as e:
                if config.on_error == "raise":
                    raise
                if config.on_error == "warn":
                    logger.warning("Detection failed on page %d: %s", page_index, e)
                    yield (page_index, e)
                continue
            yield (page_index, result)


def read_text(
    source: Source,
    config: SegmentationConfig | None = None,
    engine: RecognitionEngine | None = None,
) -> OCRResult:
    """
    Detect text regions and recognize each one.

    Args:
        source: Image path, encoded image bytes, or a decoded RasterImage.
        config: Segmentation configuration.
        engine: Recognition engine (Tesseract if None).

    Returns:
        OCRResult with lines in reading order.

    Raises:
        RecognitionError: If the engine fails on any region.
    """
    config = config or SegmentationConfig()
    engine = engine or TesseractEngine()
    if not engine.is_available:
        logger.warning("Recognition engine %r is not available", engine.name)

    detection = detect_regions(source, config)
    regions = sort_reading_order(detection.regions)
    region_texts, stats = recognize_regions(regions, engine, config.recognition)

    lines = [line for item in region_texts for line in item.lines]
    with_text = [item.confidence for item in region_texts if item.lines]
    confidence = sum(with_text) / len(with_text) if with_text else 0.0

    return OCRResult(
        text="\n".join(line.text for line in lines),
        confidence=confidence,
        lines=lines,
        regions=region_texts,
        detection=detection,
        stats=stats,
    )
