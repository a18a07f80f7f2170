"""
Configuration for textseg region detection and recognition.

All options have defaults; the detection defaults match the values the
segmentation heuristics were calibrated with.
"""

from dataclasses import dataclass, field
from typing import Literal, Optional

from textseg.exceptions import ConfigurationError

# Tesseract languages written without spaces; their models emit one word per character
UNSPACED_LANGUAGES = frozenset(
    {"jpn", "jpn_vert", "chi_sim", "chi_sim_vert", "chi_tra", "chi_tra_vert"}
)


@dataclass
class DetectionConfig:
    """
    Configuration for the text-region detection pipeline.

    Distances and areas are measured at working resolution, except
    padding which is applied in original-image pixels.

    Example:
        >>> config = DetectionConfig(merge_distance=20, padding=5)
        >>> result = TextRegionDetector(config).detect(image)
    """

    # Preprocessing
    target_dimension: int = 2000  # Working resolution ceiling
    min_scale: float = 2.0  # Never upscale by less than this
    contrast: float = 1.0  # 1.0 = unchanged
    brightness: float = 1.0  # 1.0 = unchanged

    # Box aggregation
    min_area: int = 400  # Boxes with area <= this are noise
    merge_distance: int = 30  # Margin added on every side when testing proximity
    sort_boxes: bool = False  # Sort by origin before each merge pass

    # Region extraction
    padding: int = 10

    def __post_init__(self):
        """Validate configuration."""
        if self.target_dimension <= 0:
            raise ConfigurationError(
                f"target_dimension must be > 0, got {self.target_dimension}"
            )
        if self.min_scale <= 0:
            raise ConfigurationError(f"min_scale must be > 0, got {self.min_scale}")
        if self.contrast < 0 or self.brightness < 0:
            raise ConfigurationError(
                f"contrast and brightness must be >= 0, "
                f"got contrast={self.contrast}, brightness={self.brightness}"
            )
        if self.min_area < 0:
            raise ConfigurationError(f"min_area must be >= 0, got {self.min_area}")
        if self.merge_distance < 0:
            raise ConfigurationError(
                f"merge_distance must be >= 0, got {self.merge_distance}"
            )
        if self.padding < 0:
            raise ConfigurationError(f"padding must be >= 0, got {self.padding}")


@dataclass
class RecognitionConfig:
    """
    Configuration for the recognition engine adapter.

    Regions are preprocessed again (grayscale + upscale) before being
    handed to the engine unless ``preprocess`` is False.

    Recognized words are joined with ``word_separator``. When it is None
    the separator follows the primary (first) language: none for Japanese
    and Chinese, a single space otherwise.
    """

    language: str = "jpn"  # Tesseract language code(s), e.g. "jpn+eng"
    page_segmentation_mode: int = 6  # Tesseract --psm (6 = single uniform block)

    preprocess: bool = True
    target_dimension: int = 2000
    min_scale: float = 2.0

    max_workers: int = 4  # Concurrent recognition calls
    min_confidence: float = 0.0  # Drop lines below this word confidence (0-100)
    word_separator: Optional[str] = None

    def __post_init__(self):
        """Validate configuration."""
        if not self.language:
            raise ConfigurationError("language must not be empty")
        if not 0 <= self.page_segmentation_mode <= 13:
            raise ConfigurationError(
                f"page_segmentation_mode must be between 0 and 13, "
                f"got {self.page_segmentation_mode}"
            )
        if self.target_dimension <= 0:
            raise ConfigurationError(
                f"target_dimension must be > 0, got {self.target_dimension}"
            )
        if self.min_scale <= 0:
            raise ConfigurationError(f"min_scale must be > 0, got {self.min_scale}")
        if self.max_workers < 1:
            raise ConfigurationError(f"max_workers must be >= 1, got {self.max_workers}")
        if not 0.0 <= self.min_confidence <= 100.0:
            raise ConfigurationError(
                f"min_confidence must be between 0 and 100, got {self.min_confidence}"
            )

    @property
    def separator(self) -> str:
        """String placed between recognized words of one line."""
        if self.word_separator is not None:
            return self.word_separator
        primary = self.language.split("+")[0].strip()
        return "" if primary in UNSPACED_LANGUAGES else " "


@dataclass
class SegmentationConfig:
    """
    Top-level configuration.

    Example:
        >>> config = SegmentationConfig(
        ...     detection=DetectionConfig(padding=4),
        ...     recognition=RecognitionConfig(language="eng"),
        ... )
        >>> result = textseg.read_text("scan.png", config)
    """

    detection: DetectionConfig = field(default_factory=DetectionConfig)
    recognition: RecognitionConfig = field(default_factory=RecognitionConfig)

    # PDF pages are rasterized at this scale before detection
    render_scale: float = 2.0

    # Error handling for multi-page documents
    on_error: Literal["raise", "warn", "skip"] = "raise"

    def __post_init__(self):
        """Validate configuration."""
        if self.render_scale <= 0:
            raise ConfigurationError(f"render_scale must be > 0, got {self.render_scale}")

        valid_error_modes = ("raise", "warn", "skip")
        if self.on_error not in valid_error_modes:
            raise ConfigurationError(
                f"on_error must be one of {valid_error_modes}, got {self.on_error!r}"
            )
