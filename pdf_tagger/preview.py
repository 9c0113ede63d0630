"""Raster debug preview (PyMuPDF + Pillow) and canvas fan-out."""

from __future__ import annotations

import logging
import os
from typing import List, Optional, Tuple

import fitz  # PyMuPDF
from PIL import Image, ImageDraw

from .geometry import to_image_box
from .types import Rectangle

logger = logging.getLogger(__name__)


class PreviewCanvas:
    """Collects region outlines and draws them over a rendering of the page."""

    def __init__(
        self,
        page: fitz.Page,
        zoom: float = 2.0,
        max_side: Optional[int] = None,
        color: Tuple[int, int, int] = (220, 30, 30),
        width: int = 2,
    ):
        self.page = page
        self.zoom = zoom
        self.max_side = max_side
        self.color = color
        self.width = width
        self.rects: List[Rectangle] = []

    def draw_outline(self, rect: Rectangle) -> None:
        self.rects.append(rect)

    def effective_zoom(self) -> float:
        """Zoom after shrinking so the longer rendered side fits ``max_side``."""
        longest = max(float(self.page.rect.width), float(self.page.rect.height)) * self.zoom
        if self.max_side and longest > self.max_side:
            return self.zoom * self.max_side / longest
        return self.zoom

    def image(self) -> Image.Image:
        z = self.effective_zoom()
        pm = self.page.get_pixmap(matrix=fitz.Matrix(z, z), alpha=False)
        img = Image.frombytes("RGB", (pm.width, pm.height), pm.samples)
        page_w = float(self.page.rect.width)
        page_h = float(self.page.rect.height)
        sx = pm.width / page_w if page_w else 1.0
        sy = pm.height / page_h if page_h else 1.0
        draw = ImageDraw.Draw(img)
        for r in self.rects:
            x0, y0, x1, y1 = to_image_box(r, page_h, sx, sy)
            draw.rectangle([min(x0, x1), min(y0, y1), max(x0, x1), max(y0, y1)], outline=self.color, width=self.width)
        return img

    def render(self, out_path: str) -> str:
        os.makedirs(os.path.dirname(os.path.abspath(out_path)), exist_ok=True)
        self.image().save(out_path)
        logger.info("wrote preview %s (%d outlines)", out_path, len(self.rects))
        return out_path


class CanvasGroup:
    """Send each outline to several canvases.

    Every member is tried; the first failure is re-raised afterwards so the
    tree builder can count it.
    """

    def __init__(self, *canvases):
        self.canvases = [c for c in canvases if c is not None]

    def draw_outline(self, rect: Rectangle) -> None:
        first_error = None
        for c in self.canvases:
            try:
                c.draw_outline(rect)
            except Exception as exc:
                if first_error is None:
                    first_error = exc
        if first_error is not None:
            raise first_error
