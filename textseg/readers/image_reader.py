"""
Image decoding and encoding using Pillow.

Decoding is the only suspension point in front of the detection
pipeline: ``decode_image_async`` returns a future, and detection runs on
the resolved RasterImage only.
"""

from __future__ import annotations

import io
import logging
from concurrent.futures import Executor, Future, ThreadPoolExecutor
from pathlib import Path
from typing import BinaryIO, Union

from PIL import Image, UnidentifiedImageError

from textseg.exceptions import DecodeError, UnsupportedFormatError
from textseg.models import RasterImage

logger = logging.getLogger(__name__)

ImageSource = Union[str, Path, bytes, BinaryIO]

# Pillow format names accepted as input; MPO is a JPEG with an MPF extension (camera output)
SUPPORTED_IMAGE_FORMATS = frozenset({"PNG", "JPEG", "MPO", "GIF", "BMP", "TIFF", "WEBP"})

IMAGE_EXTENSIONS = frozenset(
    {".png", ".jpg", ".jpeg", ".gif", ".bmp", ".tif", ".tiff", ".webp"}
)


def _open(source: ImageSource) -> Image.Image:
    if isinstance(source, (bytes, bytearray)):
        return Image.open(io.BytesIO(source))
    if isinstance(source, (str, Path)):
        path = Path(source)
        if not path.exists():
            raise FileNotFoundError(f"Image not found: {path}")
        return Image.open(path)
    return Image.open(source)


def decode_image(source: ImageSource) -> RasterImage:
    """
    Decode an encoded image into an RGBA buffer.

    Animated formats contribute their first frame.

    Args:
        source: File path, encoded bytes, or binary file object.

    Returns:
        Fully decoded RasterImage.

    Raises:
        FileNotFoundError: If a path does not exist.
        UnsupportedFormatError: If the image format is not accepted.
        DecodeError: If the data is not a valid image.
    """
    try:
        image = _open(source)
    except FileNotFoundError:
        raise
    except UnidentifiedImageError as e:
        raise DecodeError(f"Not a recognizable image: {e}") from e
    except Exception as e:
        raise DecodeError(f"Failed to open image: {e}") from e

    with image:
        image_format = image.format
        if image_format not in SUPPORTED_IMAGE_FORMATS:
            raise UnsupportedFormatError(
                f"Image format {image_format!r} is not supported. "
                f"Supported: {', '.join(sorted(SUPPORTED_IMAGE_FORMATS))}"
            )
        try:
            image.seek(0)
            image.load()
            raster = RasterImage.from_pil(image)
        except Exception as e:
            raise DecodeError(f"Failed to decode {image_format} image: {e}") from e

    logger.debug("Decoded %s image %dx%d", image_format, raster.width, raster.height)
    return raster


def decode_image_async(source: ImageSource, executor: Executor | None = None) -> Future:
    """
    Decode on a worker thread.

    Args:
        source: File path, encoded bytes, or binary file object.
        executor: Executor to run on; a single-use thread is used if None.

    Returns:
        Future resolving to a RasterImage, or raising what ``decode_image``
        raises.
    """
    if executor is not None:
        return executor.submit(decode_image, source)

    pool = ThreadPoolExecutor(max_workers=1, thread_name_prefix="textseg-decode")
    future = pool.submit(decode_image, source)
    pool.shutdown(wait=False)
    return future


def encode_image(image: RasterImage, image_format: str = "PNG") -> bytes:
    """
    Encode a raster for display or storage.

    Raises:
        EncodeError: If encoding fails.
    """
    return image.encode(image_format)


def is_image_path(path: str | Path) -> bool:
    """Whether the extension names a supported raster format."""
    return Path(path).suffix.lower() in IMAGE_EXTENSIONS
