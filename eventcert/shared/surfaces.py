"""Drawing surfaces the certificate renderer paints on.

``RasterSurface`` draws on a Pillow image (origin top-left), ``VectorSurface``
on a reportlab canvas (origin bottom-left). Text ``y`` coordinates are the
vertical middle of the line; images are centred on the given point.
"""

from __future__ import annotations

from io import BytesIO
from typing import Protocol, Sequence

from PIL import Image, ImageDraw
from reportlab.lib.utils import ImageReader
from reportlab.pdfbase import pdfmetrics
from reportlab.pdfgen import canvas

from ..constants import RASTER_SIZES, VECTOR_PAGE_SIZES
from ..models import Color
from .certificates_layout import ORIGIN_BOTTOM_LEFT, ORIGIN_TOP_LEFT
from .fonts import FontResolution

ALIGN_CENTER = "center"
ALIGN_LEFT = "left"


class DrawingSurface(Protocol):
    width: float
    height: float
    origin: str
    scale: float

    def from_top(self, distance: float) -> float: ...

    def fill_rect(self, x: float, y: float, w: float, h: float, color: Color) -> None: ...

    def stroke_rect(
        self, x: float, y: float, w: float, h: float, color: Color, line_width: float
    ) -> None: ...

    def polyline(
        self, points: Sequence[tuple[float, float]], color: Color, line_width: float
    ) -> None: ...

    def text_width(self, text: str, size: float, bold: bool = False) -> float: ...

    def draw_text(
        self,
        text: str,
        x: float,
        y: float,
        size: float,
        color: Color,
        bold: bool = False,
        align: str = ALIGN_CENTER,
    ) -> None: ...

    def draw_rotated_text(
        self,
        text: str,
        x: float,
        y: float,
        size: float,
        color: Color,
        angle: float,
        opacity: float,
    ) -> None: ...

    def draw_image(self, image: Image.Image, x: float, y: float, w: float, h: float) -> None: ...

    def encode(self) -> bytes: ...


class RasterSurface:
    origin = ORIGIN_TOP_LEFT
    scale = 1.0

    def __init__(
        self,
        orientation: str,
        fonts: FontResolution,
        font_family: str,
    ):
        self.width, self.height = RASTER_SIZES.get(orientation, RASTER_SIZES["landscape"])
        self.fonts = fonts
        self.font_family = font_family
        self.image = Image.new("RGB", (self.width, self.height), "white")
        self.draw = ImageDraw.Draw(self.image)

    def from_top(self, distance: float) -> float:
        return distance

    def _font(self, size: float, bold: bool = False):
        return self.fonts.raster_font(self.font_family, size, bold)

    def fill_rect(self, x, y, w, h, color):
        if w <= 0 or h <= 0:
            return
        self.draw.rectangle([x, y, x + w - 1, y + h - 1], fill=color)

    def stroke_rect(self, x, y, w, h, color, line_width):
        if w <= 0 or h <= 0:
            return
        self.draw.rectangle(
            [x, y, x + w, y + h], outline=color, width=max(1, int(round(line_width)))
        )

    def polyline(self, points, color, line_width):
        self.draw.line(
            [tuple(p) for p in points],
            fill=color,
            width=max(1, int(round(line_width))),
            joint="curve",
        )

    def text_width(self, text, size, bold=False):
        if not text:
            return 0.0
        return float(self._font(size, bold).getlength(text))

    def draw_text(self, text, x, y, size, color, bold=False, align=ALIGN_CENTER):
        if not text:
            return
        anchor = "mm" if align == ALIGN_CENTER else "lm"
        self.draw.text((x, y), text, font=self._font(size, bold), fill=color, anchor=anchor)

    def draw_rotated_text(self, text, x, y, size, color, angle, opacity):
        if not text:
            return
        font = self._font(size, bold=True)
        left, top, right, bottom = font.getbbox(text)
        layer = Image.new("RGBA", (int(right - left) + 4, int(bottom - top) + 4), (0, 0, 0, 0))
        alpha = max(0, min(255, int(round(255 * opacity))))
        ImageDraw.Draw(layer).text((2 - left, 2 - top), text, font=font, fill=(*color, alpha))
        rotated = layer.rotate(angle, expand=True, resample=Image.BICUBIC)
        dest = (int(round(x - rotated.width / 2)), int(round(y - rotated.height / 2)))
        self.image.paste(rotated, dest, rotated)

    def draw_image(self, image, x, y, w, h):
        size = (max(1, int(round(w))), max(1, int(round(h))))
        resized = image.convert("RGBA").resize(size, Image.LANCZOS)
        dest = (int(round(x - size[0] / 2)), int(round(y - size[1] / 2)))
        self.image.paste(resized, dest, resized)

    def encode(self) -> bytes:
        buffer = BytesIO()
        self.image.save(buffer, format="PNG")
        return buffer.getvalue()


class VectorSurface:
    origin = ORIGIN_BOTTOM_LEFT

    def __init__(
        self,
        orientation: str,
        fonts: FontResolution,
        font_family: str,
    ):
        self.width, self.height = VECTOR_PAGE_SIZES.get(
            orientation, VECTOR_PAGE_SIZES["landscape"]
        )
        raster_width, _ = RASTER_SIZES.get(orientation, RASTER_SIZES["landscape"])
        self.scale = self.width / raster_width
        self.fonts = fonts
        self.font_family = font_family
        self.buffer = BytesIO()
        self.canvas = canvas.Canvas(self.buffer, pagesize=(self.width, self.height))

    def from_top(self, distance: float) -> float:
        return self.height - distance

    def _font_name(self, bold: bool = False) -> str:
        return self.fonts.pdf_font(self.font_family, bold)

    def _fill(self, color: Color) -> None:
        self.canvas.setFillColorRGB(*(c / 255.0 for c in color))

    def _stroke(self, color: Color) -> None:
        self.canvas.setStrokeColorRGB(*(c / 255.0 for c in color))

    def _baseline(self, font_name: str, size: float, y: float) -> float:
        ascent, descent = pdfmetrics.getAscentDescent(font_name, size)
        return y - (ascent + descent) / 2

    def fill_rect(self, x, y, w, h, color):
        if w <= 0 or h <= 0:
            return
        self._fill(color)
        self.canvas.rect(x, y, w, h, stroke=0, fill=1)

    def stroke_rect(self, x, y, w, h, color, line_width):
        if w <= 0 or h <= 0:
            return
        self._stroke(color)
        self.canvas.setLineWidth(line_width)
        self.canvas.rect(x, y, w, h, stroke=1, fill=0)

    def polyline(self, points, color, line_width):
        if len(points) < 2:
            return
        self._stroke(color)
        self.canvas.setLineWidth(line_width)
        self.canvas.setLineJoin(1)
        path = self.canvas.beginPath()
        path.moveTo(*points[0])
        for point in points[1:]:
            path.lineTo(*point)
        self.canvas.drawPath(path, stroke=1, fill=0)

    def text_width(self, text, size, bold=False):
        if not text:
            return 0.0
        return pdfmetrics.stringWidth(text, self._font_name(bold), size)

    def draw_text(self, text, x, y, size, color, bold=False, align=ALIGN_CENTER):
        if not text:
            return
        font_name = self._font_name(bold)
        self._fill(color)
        self.canvas.setFont(font_name, size)
        baseline = self._baseline(font_name, size, y)
        if align == ALIGN_CENTER:
            self.canvas.drawCentredString(x, baseline, text)
        else:
            self.canvas.drawString(x, baseline, text)

    def draw_rotated_text(self, text, x, y, size, color, angle, opacity):
        if not text:
            return
        font_name = self._font_name(bold=True)
        c = self.canvas
        c.saveState()
        self._fill(color)
        c.setFillAlpha(opacity)
        c.translate(x, y)
        c.rotate(angle)
        c.setFont(font_name, size)
        c.drawCentredString(0, self._baseline(font_name, size, 0), text)
        c.restoreState()

    def draw_image(self, image, x, y, w, h):
        self.canvas.drawImage(
            ImageReader(image.convert("RGBA")),
            x - w / 2,
            y - h / 2,
            width=w,
            height=h,
            mask="auto",
        )

    def encode(self) -> bytes:
        self.canvas.showPage()
        self.canvas.save()
        return self.buffer.getvalue()
