import base64
import hashlib
import json
import logging
import time
from dataclasses import dataclass
from datetime import date

from ..models import CertificateConfig, CertificateData
from ..shared.assets import AssetLoader
from ..shared.certificates import RasterRenderer, get_font_resolver
from ..shared.certificates_layout import resolve_effective_config
from ..shared.fonts import FontResolution, FontResolver

logger = logging.getLogger("eventcert.preview")

_CACHE_TTL_SECONDS = 45

SAMPLE_USER_NAME = "Nome do Participante"
SAMPLE_EVENT_NAME = "Evento de Exemplo"
SAMPLE_EVENT_ID = "preview"


@dataclass(frozen=True)
class PreviewResult:
    image_base64: str
    warnings: tuple[str, ...]


_preview_cache: dict[str, tuple[float, PreviewResult]] = {}


def _build_cache_key(config: CertificateConfig, today: date, fonts: FontResolution) -> str:
    fingerprint = json.dumps(config.to_dict(), sort_keys=True, separators=(",", ":"))
    raw = "|".join([today.isoformat(), fonts.source, str(fonts.ascii_only), fingerprint])
    return hashlib.sha256(raw.encode()).hexdigest()


def sample_data(today: date | None = None) -> CertificateData:
    return CertificateData(
        user_name=SAMPLE_USER_NAME,
        event_name=SAMPLE_EVENT_NAME,
        event_date=today or date.today(),
        event_id=SAMPLE_EVENT_ID,
    )


def clear_preview_cache() -> None:
    _preview_cache.clear()


def generate_preview(
    config: CertificateConfig | dict | None,
    *,
    fonts: FontResolver | None = None,
    assets: AssetLoader | None = None,
) -> PreviewResult:
    """PNG preview of ``config`` with sample participant data, base64 encoded."""
    if not isinstance(config, CertificateConfig):
        config = resolve_effective_config(config)
    fonts = fonts or get_font_resolver()
    today = date.today()
    cache_key = _build_cache_key(config, today, fonts.resolve())

    cached = _preview_cache.get(cache_key)
    now = time.time()
    if cached and now - cached[0] < _CACHE_TTL_SECONDS:
        return cached[1]

    warnings: list[str] = []
    rendered = RasterRenderer(fonts, assets).render(config, sample_data(today), warnings=warnings)
    image_base64 = base64.b64encode(rendered.content).decode("ascii")
    result = PreviewResult(image_base64=image_base64, warnings=tuple(warnings))
    if warnings:
        logger.info("[CERT-PREVIEW] template=%s warnings=%d", config.template, len(warnings))
    _preview_cache[cache_key] = (now, result)
    return result
