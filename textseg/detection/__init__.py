"""
Text-region detection pipeline.

Stages, each consuming the previous stage's output:
- Preprocess: upscale to working resolution and convert to grayscale
- Binarize: Otsu global threshold
- Label: two-pass connected components with union-find
- Aggregate: per-component boxes, noise filter, proximity merge
- Extract: map boxes back to the original image and crop

Example:
    >>> from textseg.detection import TextRegionDetector
    >>> result = TextRegionDetector().detect(image)
    >>> for region in result.regions:
    ...     print(region.bbox)
"""

from textseg.detection.binarize import (
    binarize,
    build_histogram,
    otsu_binarize,
    otsu_threshold,
)
from textseg.detection.boxes import (
    aggregate,
    compute_boxes,
    filter_noise,
    merge_boxes,
)
from textseg.detection.extract import (
    extract_regions,
    sort_reading_order,
    to_original_bbox,
)
from textseg.detection.labeling import (
    EquivalenceTable,
    LabelGrid,
    label_components,
)
from textseg.detection.pipeline import TextRegionDetector
from textseg.detection.preprocess import (
    PreprocessResult,
    compute_scale,
    preprocess,
)

__all__ = [
    # Pipeline
    "TextRegionDetector",
    # Preprocessing
    "PreprocessResult",
    "compute_scale",
    "preprocess",
    # Binarization
    "build_histogram",
    "otsu_threshold",
    "binarize",
    "otsu_binarize",
    # Labeling
    "EquivalenceTable",
    "LabelGrid",
    "label_components",
    # Boxes
    "compute_boxes",
    "filter_noise",
    "merge_boxes",
    "aggregate",
    # Extraction
    "extract_regions",
    "sort_reading_order",
    "to_original_bbox",
]
