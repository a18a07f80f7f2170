"""
Two-pass connected-component labeling.

Pass 1 scans the binarized image in row-major order and gives each ink
pixel a provisional label taken from its already-visited neighbours
(left, top, top-left, top-right). Labels that meet are recorded as
equivalent. Pass 2 replaces every provisional label with its canonical
label, the smallest label in its equivalence class.

The neighbour mask is the causal half of an 8-neighbourhood, so
diagonally touching pixels join the same component.
"""

from __future__ import annotations

import logging
from dataclasses import dataclass, field

from textseg.detection.binarize import INK
from textseg.models import RasterImage

logger = logging.getLogger(__name__)


# =============================================================================
# DATA STRUCTURES
# =============================================================================


class EquivalenceTable:
    """
    Union-find over provisional labels.

    Label 0 is background and never joins a component. Roots are always
    the smallest label in their set, so ``find`` returns the canonical
    label directly. ``find`` compresses paths as it goes.

    Example:
        >>> table = EquivalenceTable()
        >>> a, b, c = table.add(), table.add(), table.add()
        >>> table.union(c, b)
        2
        >>> table.union(b, a)
        1
        >>> table.find(c)
        1
    """

    def __init__(self) -> None:
        self._parent: list[int] = [0]

    def __len__(self) -> int:
        """Number of provisional labels issued."""
        return len(self._parent) - 1

    def add(self) -> int:
        """Issue a fresh label (1, 2, 3, ...)."""
        label = len(self._parent)
        self._parent.append(label)
        return label

    def find(self, label: int) -> int:
        """Canonical label for ``label``."""
        root = label
        while self._parent[root] != root:
            root = self._parent[root]

        while self._parent[label] != root:
            self._parent[label], label = root, self._parent[label]

        return root

    def union(self, a: int, b: int) -> int:
        """Merge the classes of ``a`` and ``b``; returns the surviving root."""
        root_a = self.find(a)
        root_b = self.find(b)
        if root_a == root_b:
            return root_a
        if root_a < root_b:
            self._parent[root_b] = root_a
            return root_a
        self._parent[root_a] = root_b
        return root_b


@dataclass
class LabelGrid:
    """Per-pixel component labels, flat and row-major; 0 is background."""

    width: int
    height: int
    labels: list[int] = field(repr=False)

    def __post_init__(self) -> None:
        if len(self.labels) != self.width * self.height:
            raise ValueError(
                f"Label grid has {len(self.labels)} cells, expected {self.width * self.height}"
            )

    def at(self, x: int, y: int) -> int:
        """Label of pixel (x, y)."""
        return self.labels[y * self.width + x]

    def labels_in_use(self) -> set[int]:
        """Distinct non-zero labels."""
        return {label for label in self.labels if label}


# =============================================================================
# LABELING
# =============================================================================


def label_components(image: RasterImage) -> LabelGrid:
    """
    Label the connected ink components of a binarized image.

    Args:
        image: Binarized image; ink pixels have a red channel of 0.

    Returns:
        LabelGrid holding canonical labels.
    """
    width = image.width
    height = image.height
    ink = image.channel(0)
    labels = [0] * (width * height)
    table = EquivalenceTable()

    # Pass 1: provisional labels
    for y in range(height):
        row = y * width
        above = row - width
        for x in range(width):
            i = row + x
            if ink[i] != INK:
                continue

            neighbours = []
            if x > 0 and labels[i - 1]:
                neighbours.append(labels[i - 1])
            if y > 0:
                if labels[above + x]:
                    neighbours.append(labels[above + x])
                if x > 0 and labels[above + x - 1]:
                    neighbours.append(labels[above + x - 1])
                if x < width - 1 and labels[above + x + 1]:
                    neighbours.append(labels[above + x + 1])

            if not neighbours:
                labels[i] = table.add()
                continue

            smallest = min(neighbours)
            labels[i] = smallest
            for label in neighbours:
                if label != smallest:
                    table.union(label, smallest)

    # Pass 2: canonical labels
    for i, label in enumerate(labels):
        if label:
            labels[i] = table.find(label)

    logger.debug("Labeled %dx%d image: %d provisional labels", width, height, len(table))
    return LabelGrid(width=width, height=height, labels=labels)
