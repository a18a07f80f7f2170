"""
textseg: Find and crop text regions in scanned documents.

Whole-page recognition of sparse handwritten or printed text works poorly,
so textseg segments the page first: it binarizes the scan, labels its
connected components, merges their boxes into text regions and crops
each region from the original image for a recognition engine.

Example:
    >>> import textseg
    >>> result = textseg.detect_regions("scan.png")
    >>> for region in result.regions:
    ...     print(region.bbox)

    >>> # Detection plus Tesseract recognition
    >>> ocr = textseg.read_text("scan.png")
    >>> print(ocr.text)
"""

from textseg.config import DetectionConfig, RecognitionConfig, SegmentationConfig
from textseg.detection import TextRegionDetector
from textseg.exceptions import (
    ConfigurationError,
    DecodeError,
    EncodeError,
    RecognitionError,
    ResourceUnavailableError,
    TextSegError,
    UnsupportedFormatError,
)
from textseg.models import (
    BoundingBox,
    Box,
    DetectionResult,
    DetectionStats,
    RasterImage,
    Region,
    RegionDescriptor,
)
from textseg.segment import (
    OCRResult,
    detect_document_regions,
    detect_format,
    detect_regions,
    read_text,
)

__version__ = "0.1.0"
__all__ = [
    # Main API
    "detect_regions",
    "detect_document_regions",
    "detect_format",
    "read_text",
    "TextRegionDetector",
    # Configuration
    "DetectionConfig",
    "RecognitionConfig",
    "SegmentationConfig",
    # Models
    "RasterImage",
    "Box",
    "BoundingBox",
    "Region",
    "RegionDescriptor",
    "DetectionResult",
    "DetectionStats",
    "OCRResult",
    # Exceptions
    "TextSegError",
    "ResourceUnavailableError",
    "DecodeError",
    "EncodeError",
    "UnsupportedFormatError",
    "RecognitionError",
    "ConfigurationError",
]
