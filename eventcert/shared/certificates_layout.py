from __future__ import annotations

from copy import deepcopy
from typing import NamedTuple

from PIL import ImageColor

from ..constants import FONT_FAMILIES, ORIENTATIONS, TEMPLATE_IDS
from ..models import (
    BorderStyle,
    CertificateConfig,
    Color,
    Layout,
    LogoStyle,
    Palette,
    Position,
    QRCodeStyle,
    TextContent,
    Typography,
    WatermarkStyle,
)

ORIGIN_TOP_LEFT = "top-left"
ORIGIN_BOTTOM_LEFT = "bottom-left"

TITLE_SIZE_RANGE = (16.0, 48.0)
NAME_SIZE_RANGE = (14.0, 36.0)
BODY_SIZE_RANGE = (10.0, 20.0)
BORDER_WIDTH_RANGE = (1, 10)
LOGO_SIZE_RANGE = (20, 200)
WATERMARK_OPACITY_RANGE = (0.05, 0.5)
WATERMARK_TEXT_MAX = 50
QR_TEXT_MAX = 200


class SizeMultipliers(NamedTuple):
    title: float
    name: float
    body: float
    line_height: float
    footer: float
    timestamp: float
    subtitle: float


# Output is usually recompressed and downscaled by the asset CDN, which eats
# small text. Every template scales its base sizes up by these factors.
SIZE_MULTIPLIERS: dict[str, SizeMultipliers] = {
    "modern": SizeMultipliers(1.5, 1.6, 1.5, 1.5, 1.4, 1.5, 1.5),
    "classic": SizeMultipliers(1.45, 1.55, 1.45, 1.55, 1.4, 1.5, 1.45),
    "elegant": SizeMultipliers(1.55, 1.65, 1.5, 1.6, 1.45, 1.5, 1.5),
    "minimalist": SizeMultipliers(1.4, 1.5, 1.4, 1.45, 1.35, 1.5, 1.4),
}

_DEFAULT_CONFIG = {
    "template": "modern",
    "orientation": "landscape",
    "primaryColor": "#2563eb",
    "secondaryColor": "#64748b",
    "backgroundColor": "#ffffff",
    "borderColor": "#e2e8f0",
    "fontFamily": "helvetica",
    "titleFontSize": 24,
    "nameFontSize": 18,
    "bodyFontSize": 12,
    "title": "Certificado de Participação",
    "subtitle": "",
    "bodyText": (
        "Certificamos que {userName} participou do evento {eventName}, "
        "realizado em {eventDate} das {eventTime}."
    ),
    "footer": "",
    "titlePosition": {"x": 50, "y": 25},
    "namePosition": {"x": 50, "y": 45},
    "bodyPosition": {"x": 50, "y": 65},
    "logoPosition": {"x": 10, "y": 10},
    "qrCodePosition": {"x": 85, "y": 85},
    "logoUrl": None,
    "logoSize": 80,
    "showBorder": True,
    "borderWidth": 2,
    "showWatermark": False,
    "watermarkText": "CERTIFICADO",
    "watermarkOpacity": 0.1,
    "includeQRCode": False,
    "qrCodeText": None,
}


def to_absolute(
    position: Position, width: float, height: float, origin: str = ORIGIN_TOP_LEFT
) -> tuple[float, float]:
    """Map a percentage anchor to absolute surface coordinates.

    Out-of-range percentages are not rejected; they land off-canvas.
    """
    x = width * position.x / 100.0
    y = height * position.y / 100.0
    if origin == ORIGIN_BOTTOM_LEFT:
        y = height - y
    return x, y


def get_multipliers(template: str) -> SizeMultipliers:
    return SIZE_MULTIPLIERS.get(template, SIZE_MULTIPLIERS["modern"])


def get_default_config_dict() -> dict:
    return deepcopy(_DEFAULT_CONFIG)


def _clamp(value, bounds, default, cast=float):
    try:
        number = float(value)
    except (TypeError, ValueError):
        return cast(default)
    if number != number:  # NaN
        return cast(default)
    low, high = bounds
    # clamp before casting so infinities never reach int()
    return cast(max(float(low), min(number, float(high))))


def _color(value, default: str) -> Color:
    if isinstance(value, (tuple, list)) and len(value) >= 3:
        try:
            return tuple(max(0, min(int(c), 255)) for c in value[:3])  # type: ignore[return-value]
        except (TypeError, ValueError):
            pass
    if isinstance(value, str) and value.strip():
        try:
            return ImageColor.getrgb(value.strip())[:3]  # type: ignore[return-value]
        except ValueError:
            pass
    return ImageColor.getrgb(default)[:3]  # type: ignore[return-value]


def _position(value, default: dict) -> Position:
    if isinstance(value, Position):
        value = value.to_dict()
    if not isinstance(value, dict):
        value = default
    return Position(
        _clamp(value.get("x"), (0, 100), default["x"]),
        _clamp(value.get("y"), (0, 100), default["y"]),
    )


def _text(value, default: str, limit: int | None = None) -> str:
    if value is None:
        return default
    if not isinstance(value, str):
        return default
    if limit is not None:
        value = value[:limit]
    return value


def _flag(value, default: bool) -> bool:
    if isinstance(value, bool):
        return value
    if isinstance(value, str):
        lowered = value.strip().lower()
        if lowered in {"1", "true", "yes", "on"}:
            return True
        if lowered in {"0", "false", "no", "off"}:
            return False
    return default


def resolve_effective_config(
    overrides: dict | CertificateConfig | None,
    defaults: dict | None = None,
) -> CertificateConfig:
    """Merge a stored (possibly partial or invalid) config with defaults.

    Every field of the returned config is populated. Invalid values fall back
    to their default and numeric values are clamped to the accepted ranges.
    """
    if isinstance(overrides, CertificateConfig):
        overrides = overrides.to_dict()
    base = get_default_config_dict()
    if defaults:
        base.update(deepcopy(defaults))
    raw = overrides if isinstance(overrides, dict) else {}

    def pick(key):
        value = raw.get(key)
        return base.get(key) if value is None else value

    template = pick("template")
    if template not in TEMPLATE_IDS:
        template = base["template"] if base["template"] in TEMPLATE_IDS else "modern"
    orientation = pick("orientation")
    if orientation not in ORIENTATIONS:
        orientation = "landscape"
    font_family = pick("fontFamily")
    if font_family not in FONT_FAMILIES:
        font_family = "helvetica"

    qr_text = raw.get("qrCodeText", base.get("qrCodeText"))
    if isinstance(qr_text, str):
        qr_text = qr_text[:QR_TEXT_MAX] or None
    else:
        qr_text = None
    logo_url = raw.get("logoUrl", base.get("logoUrl"))
    if not isinstance(logo_url, str) or not logo_url.strip():
        logo_url = None
    else:
        logo_url = logo_url.strip()

    return CertificateConfig(
        template=template,
        orientation=orientation,
        palette=Palette(
            primary=_color(raw.get("primaryColor"), base["primaryColor"]),
            secondary=_color(raw.get("secondaryColor"), base["secondaryColor"]),
            background=_color(raw.get("backgroundColor"), base["backgroundColor"]),
            border=_color(raw.get("borderColor"), base["borderColor"]),
        ),
        typography=Typography(
            font_family=font_family,
            title_size=_clamp(pick("titleFontSize"), TITLE_SIZE_RANGE, base["titleFontSize"]),
            name_size=_clamp(pick("nameFontSize"), NAME_SIZE_RANGE, base["nameFontSize"]),
            body_size=_clamp(pick("bodyFontSize"), BODY_SIZE_RANGE, base["bodyFontSize"]),
        ),
        content=TextContent(
            title=_text(raw.get("title"), base["title"]),
            subtitle=_text(raw.get("subtitle"), base["subtitle"]),
            body=_text(raw.get("bodyText"), base["bodyText"]),
            footer=_text(raw.get("footer"), base["footer"]),
        ),
        layout=Layout(
            title=_position(raw.get("titlePosition"), base["titlePosition"]),
            name=_position(raw.get("namePosition"), base["namePosition"]),
            body=_position(raw.get("bodyPosition"), base["bodyPosition"]),
            logo=_position(raw.get("logoPosition"), base["logoPosition"]),
            qr_code=_position(raw.get("qrCodePosition"), base["qrCodePosition"]),
        ),
        border=BorderStyle(
            enabled=_flag(raw.get("showBorder"), base["showBorder"]),
            width=_clamp(pick("borderWidth"), BORDER_WIDTH_RANGE, base["borderWidth"], int),
        ),
        watermark=WatermarkStyle(
            enabled=_flag(raw.get("showWatermark"), base["showWatermark"]),
            text=_text(raw.get("watermarkText"), base["watermarkText"], WATERMARK_TEXT_MAX),
            opacity=_clamp(
                pick("watermarkOpacity"), WATERMARK_OPACITY_RANGE, base["watermarkOpacity"]
            ),
        ),
        qr_code=QRCodeStyle(
            enabled=_flag(raw.get("includeQRCode"), base["includeQRCode"]),
            text=qr_text,
        ),
        logo=LogoStyle(
            url=logo_url,
            size=_clamp(pick("logoSize"), LOGO_SIZE_RANGE, base["logoSize"], int),
        ),
    )


def default_config() -> CertificateConfig:
    return resolve_effective_config(None)
