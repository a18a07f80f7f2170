"""
Recognition of detected regions.

The detection pipeline decides where text is; this package hands each
region to a recognition engine and maps the recognized lines back onto
the original image.

Example:
    >>> from textseg.recognition import TesseractEngine, recognize_regions
    >>> results, stats = recognize_regions(detection.regions, TesseractEngine())
    >>> for item in results:
    ...     print(item.region.bbox, item.text)
"""

from textseg.recognition.batch import (
    PreparedRegion,
    RecognitionStats,
    RegionText,
    prepare_region,
    recognize_region,
    recognize_regions,
)
from textseg.recognition.engine import (
    RecognitionEngine,
    RecognitionResult,
    RecognizedLine,
    TesseractEngine,
    group_words_into_lines,
)

__all__ = [
    # Engines
    "RecognitionEngine",
    "TesseractEngine",
    "RecognitionResult",
    "RecognizedLine",
    "group_words_into_lines",
    # Batch
    "PreparedRegion",
    "RecognitionStats",
    "RegionText",
    "prepare_region",
    "recognize_region",
    "recognize_regions",
]
