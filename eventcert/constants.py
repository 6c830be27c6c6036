from __future__ import annotations

TEMPLATE_IDS: tuple[str, ...] = ("modern", "classic", "elegant", "minimalist")
ORIENTATIONS: tuple[str, ...] = ("landscape", "portrait")
FONT_FAMILIES: tuple[str, ...] = ("helvetica", "times", "courier", "DejaVuSans")

PLACEHOLDER_TOKENS: tuple[str, ...] = (
    "{userName}",
    "{eventName}",
    "{eventDate}",
    "{eventTime}",
    "{eventStartTime}",
    "{eventEndTime}",
)

MIME_PNG = "image/png"
MIME_PDF = "application/pdf"

# Raster canvas in px; every fixed size below is expressed against it.
RASTER_SIZES: dict[str, tuple[int, int]] = {
    "landscape": (1200, 800),
    "portrait": (800, 1200),
}

# A4 in points.
VECTOR_PAGE_SIZES: dict[str, tuple[float, float]] = {
    "landscape": (842.0, 595.0),
    "portrait": (595.0, 842.0),
}

BODY_WIDTH_RATIO = 0.8
BODY_LINE_SPACING = 1.5
SUBTITLE_SIZE_RATIO = 0.6
FOOTER_SIZE_RATIO = 0.9
TIMESTAMP_BASE_SIZE = 8
SUBTITLE_OFFSET_PERCENT = 8
FOOTER_OFFSET_PERCENT = 15

ACCENT_BAR_HEIGHT = 20
CORNER_SIZE = 60
CORNER_OFFSET = 40
CORNER_STROKE = 4
WATERMARK_FONT_SIZE = 80
WATERMARK_ANGLE = 45

LOGO_SCALE = 2
PLACEHOLDER_STROKE = 4
PLACEHOLDER_FONT_SIZE = 24
QR_DRAW_SIZE = 60
QR_RENDER_SIZE = 120
QR_LABEL_GAP = 15
QR_PLACEHOLDER_FONT_SIZE = 12

TIMESTAMP_MARGIN = 40
TIMESTAMP_PREFIX = "Certificado emitido em"

DEFAULT_SITE_URL = "https://sistema-eventos.vercel.app"
DEFAULT_FETCH_TIMEOUT = 5.0
DEFAULT_FONT_DOWNLOAD_TIMEOUT = 10.0
DEFAULT_BATCH_WORKERS = 4

LOGO_FETCH_HEADERS = {
    "User-Agent": "Certificate-Generator/1.0",
    "Accept": "image/*",
    "Cache-Control": "no-cache",
}
