from __future__ import annotations

import logging
from dataclasses import dataclass
from io import BytesIO
from typing import NamedTuple, Union

import qrcode
import requests
from PIL import Image
from qrcode.exceptions import DataOverflowError

from ..constants import (
    DEFAULT_FETCH_TIMEOUT,
    DEFAULT_SITE_URL,
    LOGO_FETCH_HEADERS,
    QR_RENDER_SIZE,
)
from ..models import Color, color_to_hex

logger = logging.getLogger("eventcert.assets")


class Placeholder(NamedTuple):
    label: str


LOGO_PLACEHOLDER = Placeholder("LOGO")
QR_PLACEHOLDER = Placeholder("QR CODE")


@dataclass(frozen=True)
class LogoAsset:
    image: Image.Image
    natural_width: int
    natural_height: int

    def render_size(self, max_dimension: float) -> tuple[float, float]:
        return fit_logo(self.natural_width, self.natural_height, max_dimension)


LogoResult = Union[LogoAsset, Placeholder]
QRResult = Union[Image.Image, Placeholder]


def fit_logo(width: float, height: float, max_dimension: float) -> tuple[float, float]:
    """Scale so the longer side equals ``max_dimension``, keeping aspect ratio."""
    if width <= 0 or height <= 0:
        return max_dimension, max_dimension
    if width > height:
        return max_dimension, height * max_dimension / width
    return width * max_dimension / height, max_dimension


def logo_candidates(url: str) -> list[str]:
    """Original URL, then CDN auto-format and fit-400 variants.

    URLs without a CDN ``/upload/`` segment yield the original three times,
    which doubles as a retry.
    """
    return [
        url,
        url.replace("/upload/", "/upload/f_auto,q_auto/", 1),
        url.replace("/upload/", "/upload/c_fit,w_400,h_400/", 1),
    ]


class AssetLoader:
    def __init__(
        self,
        http: requests.Session | None = None,
        timeout: float = DEFAULT_FETCH_TIMEOUT,
        site_url: str | None = None,
    ):
        self.http = http or requests.Session()
        self.timeout = timeout
        self.site_url = (site_url or DEFAULT_SITE_URL).rstrip("/")

    def _fetch(self, url: str) -> bytes | None:
        try:
            resp = self.http.get(url, headers=LOGO_FETCH_HEADERS, timeout=self.timeout)
            resp.raise_for_status()
        except requests.RequestException as exc:
            logger.warning("[CERT-ASSET] fetch failed url=%s: %s", url, exc)
            return None
        if not resp.content:
            logger.warning("[CERT-ASSET] empty body url=%s", url)
            return None
        return resp.content

    def load_logo(self, url: str | None) -> LogoResult:
        if not url:
            return LOGO_PLACEHOLDER
        for attempt, candidate in enumerate(logo_candidates(url), start=1):
            payload = self._fetch(candidate)
            if payload is None:
                continue
            try:
                image = Image.open(BytesIO(payload))
                image.load()
            except (OSError, Image.DecompressionBombError) as exc:
                logger.warning("[CERT-ASSET] undecodable logo url=%s: %s", candidate, exc)
                continue
            image = image.convert("RGBA")
            logger.info(
                "[CERT-ASSET] logo loaded attempt=%d size=%dx%d", attempt, *image.size
            )
            return LogoAsset(image, image.width, image.height)
        logger.warning("[CERT-ASSET] logo unavailable, using placeholder url=%s", url)
        return LOGO_PLACEHOLDER

    def default_qr_payload(self, event_id: str | None, user_name: str) -> str:
        return f"{self.site_url}/validate/{event_id or ''}/{user_name}"

    def build_qr(self, payload: str | None, color: Color = (0, 0, 0)) -> QRResult:
        if not payload:
            return QR_PLACEHOLDER
        try:
            qr = qrcode.QRCode(box_size=10, border=1)
            qr.add_data(payload)
            qr.make(fit=True)
            image = qr.make_image(fill_color=color_to_hex(color), back_color="white")
            image = image.convert("RGBA")
        except (DataOverflowError, ValueError, TypeError) as exc:
            logger.warning("[CERT-QR] generation failed: %s", exc)
            return QR_PLACEHOLDER
        return image.resize((QR_RENDER_SIZE, QR_RENDER_SIZE), Image.NEAREST)
