"""
PDF page rasterizer using PyMuPDF (fitz).

Renders one page at a time into a RasterImage so scanned PDFs can be fed
through the same detection pipeline as plain images.
"""

from __future__ import annotations

import logging
from pathlib import Path

import fitz  # PyMuPDF
from PIL import Image

from textseg.exceptions import DecodeError
from textseg.models import RasterImage

logger = logging.getLogger(__name__)


class PageRasterizer:
    """Renders pages of a PDF to RGBA rasters.

    Usage:
        with PageRasterizer("/path/to/scan.pdf") as rasterizer:
            for index in range(rasterizer.page_count):
                image = rasterizer.render(index, scale=2.0)
    """

    def __init__(self, source: str | Path | bytes):
        """Open a PDF from a path or from bytes.

        Raises:
            FileNotFoundError: If the path doesn't exist.
            DecodeError: If the data is not a valid PDF.
        """
        if isinstance(source, (bytes, bytearray)):
            self.source_path = None
            open_args = {"stream": bytes(source), "filetype": "pdf"}
        else:
            self.source_path = Path(source)
            if not self.source_path.exists():
                raise FileNotFoundError(f"PDF not found: {self.source_path}")
            open_args = {"filename": str(self.source_path), "filetype": "pdf"}

        try:
            self._doc = fitz.open(**open_args)
        except Exception as e:
            raise DecodeError(f"Failed to open PDF: {e}") from e

    def __enter__(self) -> PageRasterizer:
        return self

    def __exit__(self, *exc_info) -> None:
        self.close()

    def close(self) -> None:
        """Release the underlying document."""
        self._doc.close()

    @property
    def page_count(self) -> int:
        """Number of pages in the document."""
        return len(self._doc)

    def render(self, page_index: int, scale: float = 2.0) -> RasterImage:
        """Render a page.

        Args:
            page_index: 0-based page index.
            scale: Render scale; 1.0 renders at 72 DPI.

        Returns:
            RasterImage of the page.

        Raises:
            IndexError: If the page index is out of range.
            DecodeError: If the page cannot be rendered.
        """
        if not 0 <= page_index < self.page_count:
            raise IndexError(f"Page {page_index} out of range (document has {self.page_count})")

        try:
            page = self._doc[page_index]
            pix = page.get_pixmap(matrix=fitz.Matrix(scale, scale))
        except Exception as e:
            raise DecodeError(f"Failed to render page {page_index}: {e}") from e

        logger.debug("Rendered page %d at scale %.2f: %dx%d", page_index, scale, pix.width, pix.height)
        return RasterImage.from_pil(Image.frombytes("RGB", (pix.width, pix.height), pix.samples))
