"""
Recognition engine adapters.

Detected regions are handed to an external recognition engine that
returns text lines with bounding boxes and an overall confidence.
Tesseract (through pytesseract) is the bundled adapter; any object
implementing ``RecognitionEngine`` can be used instead.
"""

from __future__ import annotations

import logging
from abc import ABC, abstractmethod
from dataclasses import dataclass, field
from typing import Any

from textseg.config import RecognitionConfig
from textseg.exceptions import RecognitionError
from textseg.models import BoundingBox, RasterImage

logger = logging.getLogger(__name__)


# =============================================================================
# DATA STRUCTURES
# =============================================================================


@dataclass(frozen=True)
class RecognizedLine:
    """One recognized line and its box in the coordinates of the image it came from."""

    text: str
    bbox: BoundingBox
    confidence: float = 0.0

    def to_dict(self) -> dict[str, Any]:
        return {"text": self.text, "bbox": self.bbox.to_dict()}


@dataclass
class RecognitionResult:
    """Engine output for one image. Confidence is on a 0-100 scale."""

    lines: list[RecognizedLine] = field(default_factory=list)
    confidence: float = 0.0

    @property
    def text(self) -> str:
        """Lines joined with newlines."""
        return "\n".join(line.text for line in self.lines)


# =============================================================================
# ENGINES
# =============================================================================


class RecognitionEngine(ABC):
    """Interface for recognition engines."""

    name: str = "engine"

    @property
    def is_available(self) -> bool:
        """Whether the engine can be used in this environment."""
        return True

    @abstractmethod
    def recognize(self, image: RasterImage, config: RecognitionConfig) -> RecognitionResult:
        """
        Recognize the text in ``image``.

        Raises:
            RecognitionError: If the engine fails.
        """


def _check_tesseract_available() -> bool:
    """Check if Tesseract is installed and usable."""
    try:
        import pytesseract

        # Try to get version to verify installation
        pytesseract.get_tesseract_version()
        return True
    except ImportError:
        logger.debug("pytesseract not installed")
        return False
    except pytesseract.TesseractNotFoundError:
        logger.debug("Tesseract binary not found")
        return False


def group_words_into_lines(
    data: dict[str, list],
    min_confidence: float = 0.0,
    separator: str = " ",
) -> RecognitionResult:
    """
    Build lines from pytesseract ``image_to_data`` output.

    Words sharing (block_num, par_num, line_num) form one line; the line
    box is the union of its word boxes. The overall confidence is the
    mean of all word confidences above zero (-1 means "no confidence").

    Args:
        data: ``image_to_data(..., output_type=Output.DICT)`` result.
        min_confidence: Lines whose mean word confidence is below this are dropped.
        separator: Joins the words of a line; "" for languages written
            without spaces.

    Returns:
        RecognitionResult in the coordinates of the recognized image.
    """
    lines: dict[tuple[int, int, int], dict[str, Any]] = {}
    confidences = []

    for i, word in enumerate(data["text"]):
        if not word or not word.strip():
            continue

        conf = float(data["conf"][i])
        left, top = int(data["left"][i]), int(data["top"][i])
        right, bottom = left + int(data["width"][i]), top + int(data["height"][i])

        key = (data["block_num"][i], data["par_num"][i], data["line_num"][i])
        line = lines.get(key)
        if line is None:
            line = lines[key] = {"words": [], "confs": [], "box": [left, top, right, bottom]}
        else:
            box = line["box"]
            box[0], box[1] = min(box[0], left), min(box[1], top)
            box[2], box[3] = max(box[2], right), max(box[3], bottom)

        line["words"].append(word.strip())
        if conf > 0:
            line["confs"].append(conf)
            confidences.append(conf)

    result_lines = []
    for line in lines.values():
        line_conf = sum(line["confs"]) / len(line["confs"]) if line["confs"] else 0.0
        if line_conf < min_confidence:
            continue
        x0, y0, x1, y1 = line["box"]
        result_lines.append(
            RecognizedLine(
                text=separator.join(line["words"]),
                bbox=BoundingBox(x0, y0, x1, y1),
                confidence=line_conf,
            )
        )

    overall = sum(confidences) / len(confidences) if confidences else 0.0
    return RecognitionResult(lines=result_lines, confidence=overall)


class TesseractEngine(RecognitionEngine):
    """
    Tesseract via pytesseract.

    Example:
        >>> engine = TesseractEngine()
        >>> if engine.is_available:
        ...     result = engine.recognize(region.image, RecognitionConfig(language="eng"))
    """

    name = "tesseract"

    def __init__(self) -> None:
        self._available: bool | None = None

    @property
    def is_available(self) -> bool:
        if self._available is None:
            self._available = _check_tesseract_available()
        return self._available

    def recognize(self, image: RasterImage, config: RecognitionConfig) -> RecognitionResult:
        try:
            import pytesseract
        except ImportError as e:
            raise RecognitionError(
                "pytesseract is not installed; install textseg[tesseract]"
            ) from e

        try:
            data = pytesseract.image_to_data(
                image.to_pil().convert("RGB"),
                lang=config.language,
                config=f"--psm {config.page_segmentation_mode}",
                output_type=pytesseract.Output.DICT,
            )
        except (pytesseract.TesseractError, pytesseract.TesseractNotFoundError, OSError) as e:
            raise RecognitionError(f"Tesseract failed on {image.width}x{image.height} image: {e}") from e

        return group_words_into_lines(data, config.min_confidence, config.separator)
