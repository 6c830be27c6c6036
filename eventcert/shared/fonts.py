"""Process-wide font resolution for both output surfaces.

The resolver walks embedded → remote → system fonts once, records what it
ended up with in a :class:`FontResolution` and serves that result for the rest
of the process. No step of the chain raises to the caller.
"""

from __future__ import annotations

import logging
import os
import tempfile
import threading
from dataclasses import asdict, dataclass
from functools import lru_cache
from typing import Sequence

import reportlab
import requests
from PIL import Image, ImageDraw, ImageFont
from reportlab.pdfbase import pdfmetrics
from reportlab.pdfbase.ttfonts import TTFError, TTFont

from ..constants import DEFAULT_FONT_DOWNLOAD_TIMEOUT
from .environment import DeploymentEnvironment, ProcessEnvironment
from .storage import download_if_missing

logger = logging.getLogger("eventcert.fonts")

SOURCE_EMBEDDED = "embedded"
SOURCE_REMOTE = "remote"
SOURCE_SYSTEM = "system"

SELF_TEST_TEXT = "Certificação Açaí"

# PDF base-14 fonts only carry WinAnsi glyphs but never need embedding.
SYSTEM_PDF_FONTS: dict[str, tuple[str, str]] = {
    "helvetica": ("Helvetica", "Helvetica-Bold"),
    "times": ("Times-Roman", "Times-Bold"),
    "courier": ("Courier", "Courier-Bold"),
    "DejaVuSans": ("Helvetica", "Helvetica-Bold"),
}

_DEJAVU_DIR = "/usr/share/fonts/truetype/dejavu"
SYSTEM_RASTER_FONTS: dict[str, tuple[str, str]] = {
    "helvetica": (
        f"{_DEJAVU_DIR}/DejaVuSans.ttf",
        f"{_DEJAVU_DIR}/DejaVuSans-Bold.ttf",
    ),
    "times": (
        f"{_DEJAVU_DIR}/DejaVuSerif.ttf",
        f"{_DEJAVU_DIR}/DejaVuSerif-Bold.ttf",
    ),
    "courier": (
        f"{_DEJAVU_DIR}/DejaVuSansMono.ttf",
        f"{_DEJAVU_DIR}/DejaVuSansMono-Bold.ttf",
    ),
    "DejaVuSans": (
        f"{_DEJAVU_DIR}/DejaVuSans.ttf",
        f"{_DEJAVU_DIR}/DejaVuSans-Bold.ttf",
    ),
}


class FontRegistrationError(RuntimeError):
    pass


@dataclass(frozen=True)
class EmbeddedFont:
    name: str
    regular_path: str
    bold_path: str


@dataclass(frozen=True)
class RemoteFont:
    name: str
    regular_url: str
    bold_url: str


def bundled_fonts() -> tuple[EmbeddedFont, ...]:
    """TrueType faces shipped inside the reportlab distribution."""
    font_dir = os.path.join(os.path.dirname(reportlab.__file__), "fonts")
    return (
        EmbeddedFont(
            "CertSans",
            os.path.join(font_dir, "Vera.ttf"),
            os.path.join(font_dir, "VeraBd.ttf"),
        ),
    )


REMOTE_FONTS: tuple[RemoteFont, ...] = (
    RemoteFont(
        "NotoSans",
        "https://github.com/notofonts/notofonts.github.io/raw/main/fonts/NotoSans/hinted/ttf/NotoSans-Regular.ttf",
        "https://github.com/notofonts/notofonts.github.io/raw/main/fonts/NotoSans/hinted/ttf/NotoSans-Bold.ttf",
    ),
    RemoteFont(
        "DejaVuSans",
        "https://cdn.jsdelivr.net/npm/dejavu-fonts-ttf@2.37.3/ttf/DejaVuSans.ttf",
        "https://cdn.jsdelivr.net/npm/dejavu-fonts-ttf@2.37.3/ttf/DejaVuSans-Bold.ttf",
    ),
)


@lru_cache(maxsize=256)
def load_truetype(path: str, size: int) -> ImageFont.FreeTypeFont:
    return ImageFont.truetype(path, size)


@dataclass(frozen=True)
class FontResolution:
    family: str
    bold_family: str
    regular_path: str | None
    bold_path: str | None
    source: str
    supports_extended_characters: bool
    constrained: bool
    ascii_only: bool

    @property
    def is_system_fallback(self) -> bool:
        return self.source == SOURCE_SYSTEM

    def pdf_font(self, font_family: str, bold: bool = False) -> str:
        if self.is_system_fallback:
            regular, heavy = SYSTEM_PDF_FONTS.get(font_family, SYSTEM_PDF_FONTS["helvetica"])
            return heavy if bold else regular
        return self.bold_family if bold else self.family

    def raster_font(self, font_family: str, size: float, bold: bool = False):
        px = max(1, int(round(size)))
        if self.is_system_fallback:
            regular, heavy = SYSTEM_RASTER_FONTS.get(
                font_family, SYSTEM_RASTER_FONTS["helvetica"]
            )
            path = heavy if bold else regular
        else:
            path = self.bold_path if bold else self.regular_path
        if path:
            try:
                return load_truetype(path, px)
            except OSError:
                pass
        return ImageFont.load_default(size=px)

    def to_dict(self) -> dict:
        return asdict(self)


class FontResolver:
    """Lazily resolves the usable font family once and caches the answer.

    Build a fresh instance per test; ``resolve`` is safe to call from many
    threads and only the first caller does any work.
    """

    def __init__(
        self,
        environment: DeploymentEnvironment | None = None,
        embedded_fonts: Sequence[EmbeddedFont] | None = None,
        remote_fonts: Sequence[RemoteFont] | None = None,
        cache_dir: str | None = None,
        http: requests.Session | None = None,
        timeout: float = DEFAULT_FONT_DOWNLOAD_TIMEOUT,
    ):
        self.environment = environment or ProcessEnvironment()
        self.embedded_fonts = (
            tuple(embedded_fonts) if embedded_fonts is not None else bundled_fonts()
        )
        self.remote_fonts = tuple(remote_fonts) if remote_fonts is not None else REMOTE_FONTS
        self.cache_dir = cache_dir or os.path.join(tempfile.gettempdir(), "eventcert-fonts")
        self.http = http
        self.timeout = timeout
        self._lock = threading.Lock()
        self._resolution: FontResolution | None = None

    @property
    def resolved(self) -> bool:
        return self._resolution is not None

    def resolve(self) -> FontResolution:
        resolution = self._resolution
        if resolution is not None:
            return resolution
        with self._lock:
            if self._resolution is None:
                self._resolution = self._compute()
            return self._resolution

    def _compute(self) -> FontResolution:
        constrained = self.environment.is_constrained()
        resolution = None
        if constrained:
            logger.info("[CERT-FONT] constrained environment, skipping custom fonts")
        else:
            resolution = self._try_embedded()
            if resolution is None and not self.environment.is_windows_like():
                resolution = self._try_remote()
        if resolution is None:
            resolution = self._system_fallback()

        supports = self._self_test(resolution)
        if constrained:
            supports = False
        resolution = FontResolution(
            family=resolution.family,
            bold_family=resolution.bold_family,
            regular_path=resolution.regular_path,
            bold_path=resolution.bold_path,
            source=resolution.source,
            supports_extended_characters=supports,
            constrained=constrained,
            ascii_only=constrained or not supports,
        )
        logger.info(
            "[CERT-FONT] resolved family=%s source=%s extended=%s ascii_only=%s",
            resolution.family,
            resolution.source,
            resolution.supports_extended_characters,
            resolution.ascii_only,
        )
        return resolution

    def _register(self, name: str, regular_path: str, bold_path: str, source: str) -> FontResolution:
        bold_name = f"{name}-Bold"
        try:
            pdfmetrics.registerFont(TTFont(name, regular_path))
            pdfmetrics.registerFont(TTFont(bold_name, bold_path))
            # PIL must be able to open the same files for the raster surface.
            ImageFont.truetype(regular_path, 12)
            ImageFont.truetype(bold_path, 12)
        except (OSError, TTFError, ValueError) as exc:
            raise FontRegistrationError(f"{name}: {exc}") from exc
        return FontResolution(
            family=name,
            bold_family=bold_name,
            regular_path=regular_path,
            bold_path=bold_path,
            source=source,
            supports_extended_characters=False,
            constrained=False,
            ascii_only=False,
        )

    def _try_embedded(self) -> FontResolution | None:
        for font in self.embedded_fonts:
            try:
                return self._register(font.name, font.regular_path, font.bold_path, SOURCE_EMBEDDED)
            except FontRegistrationError as exc:
                logger.warning("[CERT-FONT] embedded font failed: %s", exc)
        return None

    def _try_remote(self) -> FontResolution | None:
        for font in self.remote_fonts:
            regular_dest = os.path.join(self.cache_dir, f"{font.name}-Regular.ttf")
            bold_dest = os.path.join(self.cache_dir, f"{font.name}-Bold.ttf")
            try:
                download_if_missing(font.regular_url, regular_dest, self.http, self.timeout)
                download_if_missing(font.bold_url, bold_dest, self.http, self.timeout)
                return self._register(font.name, regular_dest, bold_dest, SOURCE_REMOTE)
            except (requests.RequestException, OSError, FontRegistrationError) as exc:
                logger.warning("[CERT-FONT] remote font %s failed: %s", font.name, exc)
        return None

    def _system_fallback(self) -> FontResolution:
        regular, bold = SYSTEM_PDF_FONTS["helvetica"]
        return FontResolution(
            family=regular,
            bold_family=bold,
            regular_path=None,
            bold_path=None,
            source=SOURCE_SYSTEM,
            supports_extended_characters=False,
            constrained=False,
            ascii_only=False,
        )

    def _self_test(self, resolution: FontResolution) -> bool:
        try:
            font = resolution.raster_font("helvetica", 16)
            image = Image.new("L", (400, 40), 0)
            draw = ImageDraw.Draw(image)
            draw.text((2, 2), SELF_TEST_TEXT, font=font, fill=255)
            width = draw.textlength(SELF_TEST_TEXT, font=font)
        except (OSError, UnicodeError, ValueError) as exc:
            logger.warning("[CERT-FONT] self-test failed: %s", exc)
            return False
        return width > 0
