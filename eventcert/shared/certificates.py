from __future__ import annotations

import logging
from concurrent.futures import ThreadPoolExecutor
from dataclasses import dataclass, field
from datetime import datetime
from io import BytesIO
from typing import Iterable, Sequence

from flask import current_app, has_app_context
from PyPDF2 import PdfReader, PdfWriter
from PyPDF2.errors import PdfReadError

from ..constants import (
    BODY_LINE_SPACING,
    BODY_WIDTH_RATIO,
    DEFAULT_BATCH_WORKERS,
    FOOTER_OFFSET_PERCENT,
    FOOTER_SIZE_RATIO,
    LOGO_SCALE,
    MIME_PDF,
    MIME_PNG,
    PLACEHOLDER_FONT_SIZE,
    PLACEHOLDER_STROKE,
    QR_DRAW_SIZE,
    QR_LABEL_GAP,
    QR_PLACEHOLDER_FONT_SIZE,
    SUBTITLE_OFFSET_PERCENT,
    SUBTITLE_SIZE_RATIO,
    TIMESTAMP_BASE_SIZE,
    TIMESTAMP_MARGIN,
    TIMESTAMP_PREFIX,
)
from ..models import CertificateConfig, CertificateData, Color, Position, RenderedCertificate
from .assets import AssetLoader, LogoAsset, Placeholder
from .certificates_layout import ORIGIN_TOP_LEFT, get_multipliers, resolve_effective_config, to_absolute
from .decorations import TemplateDecorator
from .fonts import FontResolution, FontResolver
from .surfaces import ALIGN_LEFT, DrawingSurface, RasterSurface, VectorSurface
from .text import sanitize, slugify, substitute_placeholders
from .text_layout import centered_x, line_centers, wrap_text
from .time import format_issued_at, now_brazil

logger = logging.getLogger("eventcert.render")

FONTS_EXTENSION = "eventcert.fonts"
ASSETS_EXTENSION = "eventcert.assets"

FORMAT_PNG = "png"
FORMAT_PDF = "pdf"


class CertificateRenderError(RuntimeError):
    """The final output buffer could not be produced."""

    def __init__(self, message: str, mime_type: str):
        super().__init__(message)
        self.mime_type = mime_type


@dataclass
class RenderTrace:
    """What a render actually put on the surface, for callers and tests."""

    body_text: str = ""
    body_lines: list[str] = field(default_factory=list)
    qr_payload: str | None = None
    logo_placeholder: bool = False
    qr_placeholder: bool = False


@dataclass(frozen=True)
class BatchFailure:
    user_name: str
    error: str


@dataclass
class BatchResult:
    certificates: list[tuple[CertificateData, RenderedCertificate]] = field(default_factory=list)
    failures: list[BatchFailure] = field(default_factory=list)

    @property
    def ok(self) -> int:
        return len(self.certificates)


def get_font_resolver() -> FontResolver:
    return current_app.extensions[FONTS_EXTENSION]


def get_asset_loader() -> AssetLoader:
    return current_app.extensions[ASSETS_EXTENSION]


def certificate_filename(data: CertificateData, extension: str) -> str:
    name = slugify(data.user_name) or "participante"
    return f"certificado_{name}_{data.event_date.strftime('%Y-%m-%d')}.{extension}"


def _down(surface: DrawingSurface, y: float, distance: float) -> float:
    return y + distance if surface.origin == ORIGIN_TOP_LEFT else y - distance


def _anchor(surface: DrawingSurface, position: Position) -> tuple[float, float]:
    return to_absolute(position, surface.width, surface.height, surface.origin)


def _draw_placeholder_box(
    surface: DrawingSurface,
    placeholder: Placeholder,
    x: float,
    y: float,
    side: float,
    font_size: float,
    color: Color,
    label_gap: float = 0,
) -> None:
    k = surface.scale
    surface.stroke_rect(x - side / 2, y - side / 2, side, side, color, PLACEHOLDER_STROKE * k)
    words = placeholder.label.split()
    if len(words) > 1 and label_gap:
        surface.draw_text(words[0], x, _down(surface, y, -label_gap), font_size, color, bold=True)
        surface.draw_text(" ".join(words[1:]), x, _down(surface, y, label_gap), font_size, color, bold=True)
    else:
        surface.draw_text(placeholder.label, x, y, font_size, color, bold=True)


def compose_body(config: CertificateConfig, data: CertificateData, ascii_only: bool) -> str:
    """Body copy with placeholders substituted, then cleaned for drawing."""
    return sanitize(substitute_placeholders(config.content.body, data), ascii_only)


def paint_certificate(
    surface: DrawingSurface,
    config: CertificateConfig,
    data: CertificateData,
    fonts: FontResolution,
    assets: AssetLoader,
    issued_at: datetime,
    warnings: list[str] | None = None,
) -> RenderTrace:
    """Draw one certificate on ``surface`` in the fixed paint order."""
    trace = RenderTrace()
    notes: list[str] = warnings if warnings is not None else []
    ascii_only = fonts.ascii_only

    def clean(value: str) -> str:
        return sanitize(value, ascii_only)

    s = surface
    k = s.scale
    mult = get_multipliers(config.template)
    typo = config.typography
    palette = config.palette
    layout = config.layout

    s.fill_rect(0, 0, s.width, s.height, palette.background)
    decorator = TemplateDecorator(s)
    decorator.draw_border(config.border, palette.border)
    decorator.decorate(config.template, palette.primary)
    decorator.draw_watermark(config.watermark, clean(config.watermark.text), palette.primary)

    title_size = typo.title_size * mult.title * k
    x, y = _anchor(s, layout.title)
    s.draw_text(clean(substitute_placeholders(config.content.title, data)), x, y, title_size, palette.primary, bold=True)

    subtitle = clean(substitute_placeholders(config.content.subtitle, data))
    if subtitle:
        position = Position(layout.title.x, layout.title.y + SUBTITLE_OFFSET_PERCENT)
        x, y = _anchor(s, position)
        size = typo.title_size * SUBTITLE_SIZE_RATIO * mult.subtitle * k
        s.draw_text(subtitle, x, y, size, palette.secondary)

    x, y = _anchor(s, layout.name)
    s.draw_text(clean(data.user_name), x, y, typo.name_size * mult.name * k, palette.primary, bold=True)

    body_size = typo.body_size * mult.body * k
    trace.body_text = compose_body(config, data, ascii_only)
    trace.body_lines = list(
        wrap_text(
            trace.body_text,
            s.width * BODY_WIDTH_RATIO,
            lambda line: s.text_width(line, body_size),
        )
    )
    line_height = typo.body_size * BODY_LINE_SPACING * mult.line_height * k
    anchor_x, anchor_y = _anchor(s, layout.body)
    centers = line_centers(anchor_y, len(trace.body_lines), line_height, s.origin)
    for line, line_y in zip(trace.body_lines, centers):
        width = s.text_width(line, body_size)
        s.draw_text(line, centered_x(anchor_x, width), line_y, body_size, palette.secondary, align=ALIGN_LEFT)

    footer = clean(substitute_placeholders(config.content.footer, data))
    if footer:
        position = Position(layout.body.x, layout.body.y + FOOTER_OFFSET_PERCENT)
        x, y = _anchor(s, position)
        size = typo.body_size * FOOTER_SIZE_RATIO * mult.footer * k
        s.draw_text(footer, x, y, size, palette.secondary)

    if config.logo.url:
        x, y = _anchor(s, layout.logo)
        logo = assets.load_logo(config.logo.url)
        if isinstance(logo, LogoAsset):
            w, h = logo.render_size(config.logo.size * LOGO_SCALE * k)
            s.draw_image(logo.image, x, y, w, h)
        else:
            trace.logo_placeholder = True
            notes.append("Logo could not be loaded; placeholder drawn.")
            _draw_placeholder_box(
                s, logo, x, y, config.logo.size * k, PLACEHOLDER_FONT_SIZE * k, palette.secondary
            )

    if config.qr_code.enabled:
        x, y = _anchor(s, layout.qr_code)
        payload = config.qr_code.text or assets.default_qr_payload(data.event_id, data.user_name)
        trace.qr_payload = payload
        qr = assets.build_qr(payload, palette.secondary)
        side = QR_DRAW_SIZE * k
        if isinstance(qr, Placeholder):
            trace.qr_placeholder = True
            notes.append("QR code could not be generated; placeholder drawn.")
            _draw_placeholder_box(
                s,
                qr,
                x,
                y,
                side,
                QR_PLACEHOLDER_FONT_SIZE * k,
                palette.secondary,
                label_gap=QR_LABEL_GAP * k,
            )
        else:
            s.draw_image(qr, x, y, side, side)

    stamp = clean(f"{TIMESTAMP_PREFIX} {format_issued_at(issued_at)}")
    stamp_y = s.from_top(s.height - TIMESTAMP_MARGIN * k)
    s.draw_text(
        stamp,
        TIMESTAMP_MARGIN * k,
        stamp_y,
        TIMESTAMP_BASE_SIZE * mult.timestamp * k,
        palette.secondary,
        align=ALIGN_LEFT,
    )
    return trace


def finalize_pdf(raw: bytes, title: str, subject: str) -> bytes:
    """Re-write the reportlab page with document metadata and check the result."""
    if not raw or not raw.startswith(b"%PDF"):
        raise CertificateRenderError("renderer produced no PDF data", MIME_PDF)
    try:
        reader = PdfReader(BytesIO(raw))
        writer = PdfWriter()
        for page in reader.pages:
            writer.add_page(page)
        writer.add_metadata(
            {"/Title": title, "/Subject": subject, "/Producer": "eventcert"}
        )
        out = BytesIO()
        writer.write(out)
    except (PdfReadError, ValueError) as exc:
        raise CertificateRenderError(f"invalid PDF output: {exc}", MIME_PDF) from exc
    data = out.getvalue()
    if not data.startswith(b"%PDF"):
        raise CertificateRenderError("invalid PDF signature", MIME_PDF)
    return data


class CertificateRenderer:
    mime_type = ""

    def __init__(self, fonts: FontResolver | None = None, assets: AssetLoader | None = None):
        self.fonts = fonts or get_font_resolver()
        self.assets = assets or get_asset_loader()
        self.last_trace: RenderTrace | None = None

    def _surface(self, config: CertificateConfig, resolution: FontResolution):
        raise NotImplementedError

    def _encode(self, surface, config: CertificateConfig, data: CertificateData) -> bytes:
        raise NotImplementedError

    def render(
        self,
        config: CertificateConfig | dict | None,
        data: CertificateData,
        issued_at: datetime | None = None,
        warnings: list[str] | None = None,
    ) -> RenderedCertificate:
        if not isinstance(config, CertificateConfig):
            config = resolve_effective_config(config)
        resolution = self.fonts.resolve()
        if warnings is not None:
            if resolution.is_system_fallback:
                warnings.append("Custom fonts unavailable; using system fonts.")
            if resolution.ascii_only:
                warnings.append("Accented characters are simplified in this environment.")
        surface = self._surface(config, resolution)
        self.last_trace = paint_certificate(
            surface,
            config,
            data,
            resolution,
            self.assets,
            issued_at or now_brazil(),
            warnings,
        )
        try:
            content = self._encode(surface, config, data)
        except (OSError, ValueError) as exc:
            raise CertificateRenderError(str(exc), self.mime_type) from exc
        if not content:
            raise CertificateRenderError("empty output buffer", self.mime_type)
        logger.info(
            "[CERT] rendered user=%s template=%s mime=%s bytes=%d",
            data.user_name,
            config.template,
            self.mime_type,
            len(content),
        )
        return RenderedCertificate(content, self.mime_type)


class RasterRenderer(CertificateRenderer):
    mime_type = MIME_PNG

    def _surface(self, config, resolution):
        return RasterSurface(config.orientation, resolution, config.typography.font_family)

    def _encode(self, surface, config, data):
        return surface.encode()


class VectorRenderer(CertificateRenderer):
    mime_type = MIME_PDF

    def _surface(self, config, resolution):
        return VectorSurface(config.orientation, resolution, config.typography.font_family)

    def _encode(self, surface, config, data):
        title = sanitize(
            substitute_placeholders(config.content.title, data), self.fonts.resolve().ascii_only
        )
        return finalize_pdf(surface.encode(), title, data.user_name)


def get_renderer(fmt: str, fonts: FontResolver | None = None, assets: AssetLoader | None = None):
    if fmt == FORMAT_PNG:
        return RasterRenderer(fonts, assets)
    if fmt == FORMAT_PDF:
        return VectorRenderer(fonts, assets)
    raise ValueError(f"unknown certificate format: {fmt}")


def render_for_event(
    config: CertificateConfig | dict | None,
    participants: Iterable[CertificateData],
    fmt: str = FORMAT_PDF,
    max_workers: int | None = None,
    fonts: FontResolver | None = None,
    assets: AssetLoader | None = None,
    issued_at: datetime | None = None,
) -> BatchResult:
    """Render every participant; one failure never aborts the batch."""
    if not isinstance(config, CertificateConfig):
        config = resolve_effective_config(config)
    if max_workers is None:
        max_workers = (
            current_app.config.get("CERT_BATCH_WORKERS", DEFAULT_BATCH_WORKERS)
            if has_app_context()
            else DEFAULT_BATCH_WORKERS
        )
    fonts = fonts or get_font_resolver()
    assets = assets or get_asset_loader()
    # workers only read the cached resolution
    fonts.resolve()
    items: Sequence[CertificateData] = list(participants)
    stamp = issued_at or now_brazil()

    def _one(data: CertificateData) -> RenderedCertificate:
        return get_renderer(fmt, fonts, assets).render(config, data, issued_at=stamp)

    result = BatchResult()
    with ThreadPoolExecutor(max_workers=max(1, int(max_workers))) as pool:
        futures = [pool.submit(_one, data) for data in items]
        for data, future in zip(items, futures):
            try:
                result.certificates.append((data, future.result()))
            except Exception as exc:
                logger.exception(
                    "[CERT-FAIL] user=%s event=%s", data.user_name, data.event_id
                )
                result.failures.append(BatchFailure(data.user_name, str(exc)))
    logger.info(
        "[CERT] batch event=%s ok=%d failed=%d",
        items[0].event_id if items else None,
        result.ok,
        len(result.failures),
    )
    return result
