from __future__ import annotations

from dataclasses import dataclass
from datetime import date, datetime, time
from typing import NamedTuple, Optional, Union

from .constants import MIME_PDF, MIME_PNG

Color = tuple[int, int, int]


def color_to_hex(color: Color) -> str:
    return "#{:02x}{:02x}{:02x}".format(*color)


class Position(NamedTuple):
    """Anchor point as percentages of canvas width/height."""

    x: float
    y: float

    def to_dict(self) -> dict:
        return {"x": self.x, "y": self.y}


@dataclass(frozen=True)
class Palette:
    primary: Color
    secondary: Color
    background: Color
    border: Color


@dataclass(frozen=True)
class Typography:
    font_family: str
    title_size: float
    name_size: float
    body_size: float


@dataclass(frozen=True)
class TextContent:
    title: str
    subtitle: str
    body: str
    footer: str


@dataclass(frozen=True)
class Layout:
    title: Position
    name: Position
    body: Position
    logo: Position
    qr_code: Position


@dataclass(frozen=True)
class BorderStyle:
    enabled: bool
    width: int


@dataclass(frozen=True)
class WatermarkStyle:
    enabled: bool
    text: str
    opacity: float


@dataclass(frozen=True)
class QRCodeStyle:
    enabled: bool
    text: Optional[str]


@dataclass(frozen=True)
class LogoStyle:
    url: Optional[str]
    size: int


@dataclass(frozen=True)
class CertificateConfig:
    """Fully resolved certificate configuration.

    Instances are produced by ``resolve_effective_config`` (or the template
    catalog) so every field group is always populated.
    """

    template: str
    orientation: str
    palette: Palette
    typography: Typography
    content: TextContent
    layout: Layout
    border: BorderStyle
    watermark: WatermarkStyle
    qr_code: QRCodeStyle
    logo: LogoStyle

    def to_dict(self) -> dict:
        data = {
            "template": self.template,
            "orientation": self.orientation,
            "primaryColor": color_to_hex(self.palette.primary),
            "secondaryColor": color_to_hex(self.palette.secondary),
            "backgroundColor": color_to_hex(self.palette.background),
            "borderColor": color_to_hex(self.palette.border),
            "fontFamily": self.typography.font_family,
            "titleFontSize": self.typography.title_size,
            "nameFontSize": self.typography.name_size,
            "bodyFontSize": self.typography.body_size,
            "title": self.content.title,
            "subtitle": self.content.subtitle,
            "bodyText": self.content.body,
            "footer": self.content.footer,
            "titlePosition": self.layout.title.to_dict(),
            "namePosition": self.layout.name.to_dict(),
            "bodyPosition": self.layout.body.to_dict(),
            "logoPosition": self.layout.logo.to_dict(),
            "qrCodePosition": self.layout.qr_code.to_dict(),
            "showBorder": self.border.enabled,
            "borderWidth": self.border.width,
            "showWatermark": self.watermark.enabled,
            "watermarkText": self.watermark.text,
            "watermarkOpacity": self.watermark.opacity,
            "includeQRCode": self.qr_code.enabled,
            "logoSize": self.logo.size,
        }
        if self.qr_code.text is not None:
            data["qrCodeText"] = self.qr_code.text
        if self.logo.url:
            data["logoUrl"] = self.logo.url
        return data


EventTime = Union[datetime, time, None]


@dataclass(frozen=True)
class CertificateData:
    user_name: str
    event_name: str
    event_date: date
    event_start_time: EventTime = None
    event_end_time: EventTime = None
    event_id: Optional[str] = None

    @classmethod
    def from_dict(cls, raw: dict) -> "CertificateData":
        """Build from the camelCase JSON used by the CLI batch files."""
        event_date = raw.get("eventDate")
        if isinstance(event_date, str):
            event_date = (
                datetime.fromisoformat(event_date)
                if "T" in event_date
                else date.fromisoformat(event_date)
            )
        if not isinstance(event_date, date):
            raise ValueError("eventDate is required")
        return cls(
            user_name=str(raw.get("userName") or "").strip(),
            event_name=str(raw.get("eventName") or "").strip(),
            event_date=event_date,
            event_start_time=_parse_time(raw.get("eventStartTime")),
            event_end_time=_parse_time(raw.get("eventEndTime")),
            event_id=raw.get("eventId"),
        )


def _parse_time(value) -> EventTime:
    if not value:
        return None
    if isinstance(value, (datetime, time)):
        return value
    text = str(value)
    if "T" in text:
        return datetime.fromisoformat(text)
    return time.fromisoformat(text)


@dataclass(frozen=True)
class RenderedCertificate:
    content: bytes
    mime_type: str

    @property
    def extension(self) -> str:
        if self.mime_type == MIME_PDF:
            return "pdf"
        if self.mime_type == MIME_PNG:
            return "png"
        return "bin"
