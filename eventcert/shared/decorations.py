from __future__ import annotations

from ..constants import (
    ACCENT_BAR_HEIGHT,
    CORNER_OFFSET,
    CORNER_SIZE,
    CORNER_STROKE,
    WATERMARK_ANGLE,
    WATERMARK_FONT_SIZE,
)
from ..models import BorderStyle, Color, WatermarkStyle
from .surfaces import DrawingSurface


class TemplateDecorator:
    """Background ornamentation drawn before any text."""

    def __init__(self, surface: DrawingSurface):
        self.surface = surface

    def draw_border(self, border: BorderStyle, color: Color) -> None:
        if not border.enabled:
            return
        s = self.surface
        inset = border.width * s.scale
        s.stroke_rect(
            inset,
            inset,
            s.width - 2 * inset,
            s.height - 2 * inset,
            color,
            inset,
        )

    def decorate(self, template: str, primary: Color) -> None:
        if template == "modern":
            self._accent_bars(primary)
        elif template == "elegant":
            self._corner_brackets(primary)
        # classic relies on border + watermark; minimalist draws nothing

    def _accent_bars(self, color: Color) -> None:
        s = self.surface
        bar = ACCENT_BAR_HEIGHT * s.scale
        s.fill_rect(0, 0, s.width, bar, color)
        s.fill_rect(0, s.height - bar, s.width, bar, color)

    def corner_brackets(self) -> list[list[tuple[float, float]]]:
        """Polylines for the four L-shaped corners, symmetric in both origins."""
        s = self.surface
        size = CORNER_SIZE * s.scale
        offset = CORNER_OFFSET * s.scale
        w, h = s.width, s.height
        return [
            [(offset, offset + size), (offset, offset), (offset + size, offset)],
            [(w - offset - size, offset), (w - offset, offset), (w - offset, offset + size)],
            [(offset, h - offset - size), (offset, h - offset), (offset + size, h - offset)],
            [
                (w - offset - size, h - offset),
                (w - offset, h - offset),
                (w - offset, h - offset - size),
            ],
        ]

    def _corner_brackets(self, color: Color) -> None:
        stroke = CORNER_STROKE * self.surface.scale
        for points in self.corner_brackets():
            self.surface.polyline(points, color, stroke)

    def draw_watermark(self, watermark: WatermarkStyle, text: str, color: Color) -> None:
        """``text`` is the already sanitised watermark string."""
        if not watermark.enabled or not text:
            return
        s = self.surface
        s.draw_rotated_text(
            text,
            s.width / 2,
            s.height / 2,
            WATERMARK_FONT_SIZE * s.scale,
            color,
            WATERMARK_ANGLE,
            watermark.opacity,
        )
