#!/usr/bin/env python3
"""
Basic textseg Usage Example

This example demonstrates the core workflow:
1. Detect text regions in a scanned image
2. Export region descriptors
3. Detect regions on every page of a PDF
4. Recognize text region by region
"""

import json
import logging
from pathlib import Path

import textseg
from textseg import DetectionConfig, RecognitionConfig, SegmentationConfig, TextRegionDetector
from textseg.readers import decode_image


def main():
    logging.basicConfig(level=logging.INFO)

    # ─────────────────────────────────────────────────────────────────────────
    # 1. Region Detection
    # ─────────────────────────────────────────────────────────────────────────

    result = textseg.detect_regions("path/to/scan.png")

    print(f"Found {len(result.regions)} regions")
    print(f"  Working scale: {result.scale:.2f}")
    print(f"  Otsu threshold: {result.threshold}")
    print(f"  Time: {result.stats.processing_time_ms:.0f} ms")

    for region in result.regions:
        bbox = region.bbox
        print(f"  ({bbox.x0}, {bbox.y0}) - ({bbox.x1}, {bbox.y1})")

    # ─────────────────────────────────────────────────────────────────────────
    # 2. Custom Configuration and Export
    # ─────────────────────────────────────────────────────────────────────────

    detector = TextRegionDetector(
        DetectionConfig(
            target_dimension=1500,  # Smaller working canvas
            merge_distance=20,  # Keep nearby blocks apart
            padding=5,  # Tighter crops
            sort_boxes=True,  # Deterministic merge order
        )
    )
    image = decode_image(Path("path/to/scan.png"))
    result = detector.detect(image)

    out_dir = Path("regions")
    out_dir.mkdir(exist_ok=True)
    for i, descriptor in enumerate(result.to_descriptors()):
        (out_dir / f"region_{i:03d}.png").write_bytes(descriptor.cropped_image)

    # ─────────────────────────────────────────────────────────────────────────
    # 3. PDF Pages
    # ─────────────────────────────────────────────────────────────────────────

    config = SegmentationConfig(render_scale=2.0, on_error="warn")
    for page_index, page_result in textseg.detect_document_regions("path/to/scan.pdf", config):
        if isinstance(page_result, Exception):
            print(f"Page {page_index + 1}: failed ({page_result})")
            continue
        print(f"Page {page_index + 1}: {len(page_result.regions)} regions")

    # ─────────────────────────────────────────────────────────────────────────
    # 4. Text Recognition (requires Tesseract)
    # ─────────────────────────────────────────────────────────────────────────

    config = SegmentationConfig(recognition=RecognitionConfig(language="eng", max_workers=8))
    ocr = textseg.read_text("path/to/scan.png", config)

    print(ocr.text)
    print(f"Confidence: {ocr.confidence:.1f}")
    print(json.dumps(ocr.to_dict(), indent=2, ensure_ascii=False))


if __name__ == "__main__":
    main()
