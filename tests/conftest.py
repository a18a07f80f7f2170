"""
Pytest configuration and fixtures for textseg tests.
"""

import pytest
from PIL import Image, ImageDraw

from textseg.models import RasterImage


def draw_image(width, height, rects=(), fill=(0, 0, 0, 255), background=(255, 255, 255, 255)):
    """Build a RasterImage with filled rectangles given as (x0, y0, x1, y1), x1/y1 exclusive."""
    image = Image.new("RGBA", (width, height), background)
    draw = ImageDraw.Draw(image)
    for x0, y0, x1, y1 in rects:
        draw.rectangle((x0, y0, x1 - 1, y1 - 1), fill=fill)
    return RasterImage.from_pil(image)


def binary_image(rows):
    """Build a binarized RasterImage from strings: '#' is ink, anything else background."""
    height = len(rows)
    width = len(rows[0])
    pixels = bytearray()
    for row in rows:
        for char in row:
            value = 0 if char == "#" else 255
            pixels.extend((value, value, value, 255))
    return RasterImage(width, height, pixels)


@pytest.fixture
def make_image():
    """Factory for synthetic RGBA images."""
    return draw_image


@pytest.fixture
def make_binary():
    """Factory for binarized images drawn from ASCII rows."""
    return binary_image


@pytest.fixture
def square_image():
    """100x100 white canvas with a 20x20 black square at (40, 40)."""
    return draw_image(100, 100, [(40, 40, 60, 60)])


@pytest.fixture
def blank_image():
    """100x100 white canvas."""
    return draw_image(100, 100)
