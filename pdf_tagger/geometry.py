"""Normalized Textract boxes to page space, and page space to raster pixels."""

from __future__ import annotations

from typing import Tuple

from .types import BoundingBox, Rectangle


def to_page_rect(box: BoundingBox, page_width: float, page_height: float) -> Rectangle:
    """Flip a top-left-origin unit box into a bottom-left-origin page rectangle.

    Values are not clamped; out-of-range OCR geometry passes straight through.
    """
    return Rectangle(
        x=box.left * page_width,
        y=(1 - box.top - box.height) * page_height,
        width=box.width * page_width,
        height=box.height * page_height,
    )


def to_image_box(
    rect: Rectangle, page_height: float, scale_x: float = 1.0, scale_y: float = 1.0
) -> Tuple[int, int, int, int]:
    """Return (x0, y0, x1, y1) pixels, top-left origin, for a page rectangle."""
    x0 = rect.x * scale_x
    x1 = (rect.x + rect.width) * scale_x
    y0 = (page_height - rect.y - rect.height) * scale_y
    y1 = (page_height - rect.y) * scale_y
    return int(round(x0)), int(round(y0)), int(round(x1)), int(round(y1))
