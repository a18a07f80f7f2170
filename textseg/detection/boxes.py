"""
Bounding-box aggregation.

Turns a label grid into one box per component, drops boxes too small to
be text, and merges boxes that sit close to each other until no two
remaining boxes are within the merge distance.
"""

from __future__ import annotations

import logging

from textseg.detection.labeling import LabelGrid
from textseg.models import Box

logger = logging.getLogger(__name__)


# =============================================================================
# CONSTANTS
# =============================================================================

DEFAULT_MIN_AREA = 400  # px² at working resolution
DEFAULT_MERGE_DISTANCE = 30  # px at working resolution


def compute_boxes(grid: LabelGrid) -> list[Box]:
    """
    One box per canonical label, in order of first appearance.

    Args:
        grid: Label grid with canonical labels.

    Returns:
        Boxes covering every pixel of each component.
    """
    boxes: dict[int, Box] = {}
    width = grid.width
    for i, label in enumerate(grid.labels):
        if not label:
            continue
        y, x = divmod(i, width)
        box = boxes.get(label)
        if box is None:
            boxes[label] = Box.at(x, y)
        else:
            box.include(x, y)
    return list(boxes.values())


def filter_noise(boxes: list[Box], min_area: int = DEFAULT_MIN_AREA) -> list[Box]:
    """Keep boxes whose area is strictly greater than ``min_area``."""
    return [box for box in boxes if box.area > min_area]


def _find_close_pair(boxes: list[Box], distance: int) -> tuple[int, int] | None:
    for i in range(len(boxes)):
        for j in range(i + 1, len(boxes)):
            if boxes[i].is_close(boxes[j], distance):
                return i, j
    return None


def merge_boxes(
    boxes: list[Box],
    distance: int = DEFAULT_MERGE_DISTANCE,
    sort_boxes: bool = False,
) -> list[Box]:
    """
    Merge close boxes until none remain close.

    Every merge absorbs the later box of the first close pair into the
    earlier one and restarts the pairwise scan. Each merge removes one box,
    so the loop terminates after at most ``len(boxes) - 1`` merges.

    Args:
        boxes: Input boxes. Not modified.
        distance: Margin added to every side of both boxes before testing
            for intersection.
        sort_boxes: Sort by (min_y, min_x) before every pass for a result
            that does not depend on input order.

    Returns:
        Merged boxes.
    """
    working = [box.copy() for box in boxes]
    merges = 0

    while True:
        if sort_boxes:
            working.sort(key=lambda b: (b.min_y, b.min_x))

        pair = _find_close_pair(working, distance)
        if pair is None:
            break

        i, j = pair
        working[i].absorb(working[j])
        del working[j]
        merges += 1

    logger.debug("Merged %d boxes into %d (%d merges)", len(boxes), len(working), merges)
    return working


def aggregate(
    grid: LabelGrid,
    min_area: int = DEFAULT_MIN_AREA,
    distance: int = DEFAULT_MERGE_DISTANCE,
    sort_boxes: bool = False,
) -> list[Box]:
    """Compute, filter and merge the boxes of a label grid."""
    boxes = filter_noise(compute_boxes(grid), min_area)
    return merge_boxes(boxes, distance, sort_boxes)
