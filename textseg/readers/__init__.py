"""Image decoding and PDF page rasterization.

Everything here sits in front of the detection pipeline: inputs are fully
decoded into a RasterImage before detection starts.
"""

from textseg.readers.image_reader import (
    SUPPORTED_IMAGE_FORMATS,
    decode_image,
    decode_image_async,
    encode_image,
    is_image_path,
)
from textseg.readers.pdf_rasterizer import PageRasterizer

__all__ = [
    # Classes
    "PageRasterizer",
    # Functions
    "decode_image",
    "decode_image_async",
    "encode_image",
    "is_image_path",
    # Constants
    "SUPPORTED_IMAGE_FORMATS",
]
