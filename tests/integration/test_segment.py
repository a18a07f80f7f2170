"""
Integration tests for the full detection pipeline and top-level API.

Runs synthetic scans end to end: decode, preprocess, binarize, label,
aggregate, extract, and (with a stub engine) recognize.
"""

import io
import logging
import sys

import fitz
import pytest
from PIL import Image

import textseg
from textseg import (
    DecodeError,
    DetectionConfig,
    RecognitionError,
    ResourceUnavailableError,
    SegmentationConfig,
    TextRegionDetector,
    UnsupportedFormatError,
)
from textseg.models import BoundingBox
from textseg.readers import PageRasterizer
from textseg.recognition import RecognitionEngine, RecognitionResult, RecognizedLine

# Scale 2 for 100x100 inputs
SCALE_TWO = DetectionConfig(target_dimension=200, min_scale=2.0, min_area=400, padding=10)


def close_to(bbox, expected, tolerance=1):
    return all(abs(a - b) <= tolerance for a, b in zip(
        (bbox.x0, bbox.y0, bbox.x1, bbox.y1), expected
    ))


class LabelEngine(RecognitionEngine):
    """Stub engine returning one whole-image line per call."""

    name = "label"

    def recognize(self, image, config):
        line = RecognizedLine("text", BoundingBox(0, 0, image.width, image.height), 88.0)
        return RecognitionResult(lines=[line], confidence=88.0)


class CrashingEngine(RecognitionEngine):
    name = "crash"

    def recognize(self, image, config):
        raise RecognitionError("boom")


# =============================================================================
# Detection pipeline
# =============================================================================


class TestTextRegionDetector:
    """End-to-end detection on synthetic images."""

    def test_single_square(self, square_image):
        """A 20x20 square at (40, 40) yields one region at about (30, 30, 70, 70)."""
        result = TextRegionDetector(SCALE_TWO).detect(square_image)

        assert result.scale == pytest.approx(2.0)
        assert len(result.regions) == 1
        assert close_to(result.regions[0].bbox, (30, 30, 70, 70))

    def test_blank_page(self, blank_image):
        """A blank page has threshold 0 and no regions."""
        result = TextRegionDetector(SCALE_TWO).detect(blank_image)

        assert result.threshold == 0
        assert result.regions == []
        assert result.stats.ink_pixels == 0
        assert result.stats.components == 0

    def test_region_padding_clamped_at_border(self, make_image):
        """A mark in the corner is clamped to the image."""
        image = make_image(100, 100, [(0, 0, 20, 20)])
        result = TextRegionDetector(SCALE_TWO).detect(image)

        assert len(result.regions) == 1
        assert close_to(result.regions[0].bbox, (0, 0, 30, 30))

    def test_specks_filtered(self, make_image):
        """Marks below the minimum area produce no regions."""
        image = make_image(100, 100, [(10, 10, 13, 13), (70, 20, 72, 22)])
        result = TextRegionDetector(SCALE_TWO).detect(image)

        assert result.regions == []
        assert result.stats.components >= 2
        assert result.stats.boxes_after_filter == 0

    def test_nearby_marks_merge(self, make_image):
        """Marks closer than twice the merge distance become one region."""
        image = make_image(200, 100, [(20, 40, 40, 60), (60, 40, 80, 60)])
        config = DetectionConfig(target_dimension=400, min_scale=2.0, padding=0)
        result = TextRegionDetector(config).detect(image)

        assert len(result.regions) == 1
        assert close_to(result.regions[0].bbox, (20, 40, 80, 60))
        assert result.stats.boxes_after_filter == 2
        assert result.stats.boxes_after_merge == 1

    def test_distant_marks_stay_apart(self, make_image):
        """Marks farther apart than twice the merge distance stay separate."""
        image = make_image(200, 100, [(20, 40, 40, 60), (140, 40, 160, 60)])
        config = DetectionConfig(target_dimension=400, min_scale=2.0, padding=0)
        result = TextRegionDetector(config).detect(image)

        assert len(result.regions) == 2
        boxes = sorted((r.bbox.x0, r.bbox.x1) for r in result.regions)
        assert abs(boxes[0][0] - 20) <= 1 and abs(boxes[0][1] - 40) <= 1
        assert abs(boxes[1][0] - 140) <= 1 and abs(boxes[1][1] - 160) <= 1

    def test_regions_are_color_crops(self, make_image):
        """Regions hold original colors, not binarized pixels."""
        image = make_image(100, 100, [(40, 40, 60, 60)], fill=(200, 0, 0, 255))
        result = TextRegionDetector(SCALE_TWO).detect(image)

        region = result.regions[0]
        cx = region.image.width // 2
        cy = region.image.height // 2
        assert region.image.pixel(cx, cy) == (200, 0, 0, 255)

    def test_full_image_unmodified(self, square_image):
        """The exported full image equals the input."""
        result = TextRegionDetector(SCALE_TWO).detect(square_image)
        assert result.full_image.pixels == square_image.pixels
        assert result.full_image is not square_image

    def test_input_not_modified(self, square_image):
        """Detection never writes to the input buffer."""
        before = bytes(square_image.pixels)
        TextRegionDetector(SCALE_TWO).detect(square_image)
        assert bytes(square_image.pixels) == before

    def test_descriptors(self, square_image):
        """Results encode to region descriptors."""
        result = TextRegionDetector(SCALE_TWO).detect(square_image)
        descriptors = result.to_descriptors()

        assert len(descriptors) == 1
        decoded = Image.open(io.BytesIO(descriptors[0].cropped_image))
        assert decoded.size == (descriptors[0].bbox.width, descriptors[0].bbox.height)

    def test_default_config(self, square_image):
        """Default settings upscale small scans to the 2000px ceiling."""
        result = TextRegionDetector().detect(square_image)

        assert result.scale == pytest.approx(20.0)
        assert result.stats.working_size == (2000, 2000)
        assert len(result.regions) == 1
        assert close_to(result.regions[0].bbox, (30, 30, 70, 70))


# =============================================================================
# Top-level API
# =============================================================================


def png_bytes(raster):
    return raster.encode("PNG")


class TestDetectRegions:
    """Tests for textseg.detect_regions."""

    def test_from_raster(self, square_image):
        """RasterImage input skips decoding."""
        result = textseg.detect_regions(square_image, SegmentationConfig(detection=SCALE_TWO))
        assert len(result.regions) == 1

    def test_from_bytes(self, square_image):
        """Encoded bytes are decoded first."""
        result = textseg.detect_regions(png_bytes(square_image), SegmentationConfig(detection=SCALE_TWO))
        assert close_to(result.regions[0].bbox, (30, 30, 70, 70))

    def test_from_path(self, square_image, tmp_path):
        """Paths are decoded first."""
        path = tmp_path / "scan.png"
        path.write_bytes(png_bytes(square_image))
        result = textseg.detect_regions(path, SegmentationConfig(detection=SCALE_TWO))
        assert len(result.regions) == 1

    def test_bad_input_never_runs(self):
        """Malformed input fails at the decode boundary."""
        with pytest.raises(DecodeError):
            textseg.detect_regions(b"\x89PNG but not really")

    def test_canvas_allocation_failure(self, square_image, monkeypatch):
        """An unallocatable working canvas surfaces as ResourceUnavailableError."""

        def fail(*args, **kwargs):
            raise MemoryError("out of memory")

        monkeypatch.setattr(sys.modules["textseg.detection.preprocess"].Image, "new", fail)

        with pytest.raises(ResourceUnavailableError):
            textseg.detect_regions(square_image, SegmentationConfig(detection=SCALE_TWO))


class TestDetectFormat:
    """Tests for textseg.detect_format."""

    def test_pdf_extension(self, tmp_path):
        assert textseg.detect_format(tmp_path / "doc.pdf") == "pdf"

    def test_image_extension(self, tmp_path):
        assert textseg.detect_format(tmp_path / "scan.jpeg") == "image"

    def test_pdf_magic_bytes(self, tmp_path):
        path = tmp_path / "upload.bin"
        path.write_bytes(b"%PDF-1.7\n...")
        assert textseg.detect_format(path) == "pdf"

    def test_unknown(self, tmp_path):
        path = tmp_path / "notes.docx"
        path.write_bytes(b"PK\x03\x04")
        with pytest.raises(UnsupportedFormatError):
            textseg.detect_format(path)


class TestDetectDocumentRegions:
    """Tests for multi-page PDF detection."""

    @pytest.fixture
    def pdf_bytes(self):
        """Three pages: square, blank, two far-apart squares."""
        doc = fitz.open()
        page = doc.new_page(width=100, height=100)
        page.draw_rect(fitz.Rect(40, 40, 60, 60), color=(0, 0, 0), fill=(0, 0, 0))
        doc.new_page(width=100, height=100)
        page = doc.new_page(width=100, height=100)
        page.draw_rect(fitz.Rect(5, 5, 25, 25), color=(0, 0, 0), fill=(0, 0, 0))
        page.draw_rect(fitz.Rect(70, 70, 90, 90), color=(0, 0, 0), fill=(0, 0, 0))
        data = doc.tobytes()
        doc.close()
        return data

    @pytest.fixture
    def config(self):
        return SegmentationConfig(detection=SCALE_TWO, render_scale=1.0)

    def test_every_page(self, pdf_bytes, config):
        """Each page yields its own detection result."""
        results = list(textseg.detect_document_regions(pdf_bytes, config))

        assert [index for index, _ in results] == [0, 1, 2]
        assert [len(result.regions) for _, result in results] == [1, 0, 2]
        assert close_to(results[0][1].regions[0].bbox, (30, 30, 70, 70), tolerance=2)

    def test_page_range(self, pdf_bytes, config):
        """page_range is inclusive and clipped to the document."""
        results = list(textseg.detect_document_regions(pdf_bytes, config, page_range=(1, 10)))
        assert [index for index, _ in results] == [1, 2]

    def test_from_path(self, pdf_bytes, config, tmp_path):
        """PDF paths are accepted."""
        path = tmp_path / "scan.pdf"
        path.write_bytes(pdf_bytes)
        results = list(textseg.detect_document_regions(path, config))
        assert len(results) == 3

    def test_invalid_pdf(self, config):
        """Undecodable documents fail before any page is processed."""
        with pytest.raises(DecodeError):
            list(textseg.detect_document_regions(b"garbage", config))

    @pytest.fixture
    def broken_second_page(self, monkeypatch):
        """Make page 1 fail to render; other pages render normally."""
        render = PageRasterizer.render

        def render_or_fail(self, page_index, scale=2.0):
            if page_index == 1:
                raise DecodeError(f"Failed to render page {page_index}: damaged stream")
            return render(self, page_index, scale)

        monkeypatch.setattr(PageRasterizer, "render", render_or_fail)

    def test_page_failure_raises(self, pdf_bytes, broken_second_page):
        """on_error="raise" stops at the failing page."""
        config = SegmentationConfig(detection=SCALE_TWO, render_scale=1.0, on_error="raise")
        pages = textseg.detect_document_regions(pdf_bytes, config)

        index, first = next(pages)
        assert index == 0
        assert len(first.regions) == 1
        with pytest.raises(DecodeError, match="page 1"):
            next(pages)

    def test_page_failure_warns(self, pdf_bytes, broken_second_page, caplog):
        """on_error="warn" yields the exception in place of the page and logs it."""
        config = SegmentationConfig(detection=SCALE_TWO, render_scale=1.0, on_error="warn")

        with caplog.at_level(logging.WARNING, logger="textseg.segment"):
            results = list(textseg.detect_document_regions(pdf_bytes, config))

        assert [index for index, _ in results] == [0, 1, 2]
        assert isinstance(results[1][1], DecodeError)
        assert [len(results[i][1].regions) for i in (0, 2)] == [1, 2]

        warnings = [r for r in caplog.records if r.levelno == logging.WARNING]
        assert len(warnings) == 1
        assert "page 1" in warnings[0].getMessage()

    def test_page_failure_skipped(self, pdf_bytes, broken_second_page, caplog):
        """on_error="skip" drops the failing page silently."""
        config = SegmentationConfig(detection=SCALE_TWO, render_scale=1.0, on_error="skip")

        with caplog.at_level(logging.WARNING, logger="textseg.segment"):
            results = list(textseg.detect_document_regions(pdf_bytes, config))

        assert [index for index, _ in results] == [0, 2]
        assert all(not isinstance(result, Exception) for _, result in results)
        assert not [r for r in caplog.records if r.levelno == logging.WARNING]

    def test_detection_failure_handled_per_page(self, pdf_bytes, monkeypatch):
        """Errors raised by the detector follow on_error like render errors."""
        detect = TextRegionDetector.detect
        calls = []

        def detect_or_fail(self, image):
            calls.append(image.size)
            if len(calls) == 1:
                raise ResourceUnavailableError("Cannot allocate working canvas")
            return detect(self, image)

        monkeypatch.setattr(TextRegionDetector, "detect", detect_or_fail)
        config = SegmentationConfig(detection=SCALE_TWO, render_scale=1.0, on_error="warn")
        results = list(textseg.detect_document_regions(pdf_bytes, config))

        assert isinstance(results[0][1], ResourceUnavailableError)
        assert [index for index, _ in results] == [0, 1, 2]


class TestReadText:
    """Tests for detection plus recognition."""

    @pytest.fixture
    def two_lines(self, make_image):
        """Two marks stacked vertically, lower one drawn first in scan order by x."""
        return make_image(200, 200, [(120, 20, 160, 40), (10, 140, 50, 160)])

    @pytest.fixture
    def config(self):
        return SegmentationConfig(detection=DetectionConfig(target_dimension=400, padding=0))

    def test_lines_in_reading_order(self, two_lines, config):
        """Lines come back top to bottom in original coordinates."""
        result = textseg.read_text(two_lines, config, engine=LabelEngine())

        assert len(result.lines) == 2
        assert result.lines[0].bbox.y0 < result.lines[1].bbox.y0
        assert close_to(result.lines[0].bbox, (120, 20, 160, 40))
        assert close_to(result.lines[1].bbox, (10, 140, 50, 160))
        assert result.text == "text\ntext"
        assert result.confidence == pytest.approx(88.0)

    def test_to_dict(self, two_lines, config):
        """The OCR result serializes to text, confidence and lines."""
        data = textseg.read_text(two_lines, config, engine=LabelEngine()).to_dict()
        assert set(data) == {"text", "confidence", "lines"}
        assert set(data["lines"][0]) == {"text", "bbox"}

    def test_blank_image(self, blank_image):
        """A blank page recognizes to nothing."""
        result = textseg.read_text(blank_image, SegmentationConfig(detection=SCALE_TWO), engine=LabelEngine())
        assert result.text == ""
        assert result.confidence == 0.0
        assert result.lines == []

    def test_engine_failure_propagates(self, two_lines, config):
        """Recognition failures reach the caller."""
        with pytest.raises(RecognitionError):
            textseg.read_text(two_lines, config, engine=CrashingEngine())
