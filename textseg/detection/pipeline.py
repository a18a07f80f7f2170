"""
Text-region detection pipeline.

Runs the five detection stages in order on one decoded image:
1. Preprocess (upscale, grayscale, optional enhancement)
2. Binarize (Otsu threshold)
3. Label connected components
4. Aggregate boxes (noise filter + proximity merge)
5. Extract regions from the original image

The pipeline is synchronous. It never starts before the image is fully
decoded and never returns a partial result.
"""

from __future__ import annotations

import logging
import time
from dataclasses import dataclass, field

from textseg.config import DetectionConfig
from textseg.detection.binarize import otsu_binarize
from textseg.detection.boxes import compute_boxes, filter_noise, merge_boxes
from textseg.detection.extract import extract_regions
from textseg.detection.labeling import label_components
from textseg.detection.preprocess import preprocess
from textseg.models import DetectionResult, DetectionStats, RasterImage

logger = logging.getLogger(__name__)


@dataclass
class TextRegionDetector:
    """
    Finds text regions in a scanned image.

    Attributes:
        config: Detection parameters.

    Example:
        >>> from textseg.detection import TextRegionDetector
        >>> detector = TextRegionDetector()
        >>> result = detector.detect(image)
        >>> [region.bbox for region in result.regions]
        [BoundingBox(x0=30, y0=30, x1=70, y1=70)]
    """

    config: DetectionConfig = field(default_factory=DetectionConfig)

    def detect(self, image: RasterImage) -> DetectionResult:
        """
        Detect and crop the text regions of ``image``.

        Args:
            image: Decoded original image. Not modified.

        Returns:
            DetectionResult with regions in merge order and a copy of the
            original image.

        Raises:
            ResourceUnavailableError: If the working buffer cannot be allocated.
        """
        start_time = time.time()
        config = self.config
        stats = DetectionStats(original_size=image.size)

        # Stage 1: working resolution
        prepared = preprocess(
            image,
            target_dimension=config.target_dimension,
            min_scale=config.min_scale,
            contrast=config.contrast,
            brightness=config.brightness,
        )
        stats.working_size = prepared.image.size
        stats.scale = prepared.scale

        # Stage 2: binarization
        binary, threshold = otsu_binarize(prepared.image)
        stats.threshold = threshold
        stats.ink_pixels = binary.channel(0).count(0)

        # Stage 3: connected components
        grid = label_components(binary)
        stats.components = len(grid.labels_in_use())

        # Stage 4: boxes
        boxes = filter_noise(compute_boxes(grid), config.min_area)
        stats.boxes_after_filter = len(boxes)
        boxes = merge_boxes(boxes, config.merge_distance, config.sort_boxes)
        stats.boxes_after_merge = len(boxes)

        # Stage 5: regions
        regions, full_image = extract_regions(boxes, prepared.scale, image, config.padding)
        stats.processing_time_ms = (time.time() - start_time) * 1000

        logger.debug(
            "Detected %d regions (%d components, threshold %d) in %.1f ms",
            len(regions),
            stats.components,
            threshold,
            stats.processing_time_ms,
        )

        return DetectionResult(
            regions=regions,
            full_image=full_image,
            scale=prepared.scale,
            threshold=threshold,
            stats=stats,
        )
