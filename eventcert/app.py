import logging
import os
import tempfile

from flask import Flask

from .constants import (
    DEFAULT_BATCH_WORKERS,
    DEFAULT_FETCH_TIMEOUT,
    DEFAULT_FONT_DOWNLOAD_TIMEOUT,
    DEFAULT_SITE_URL,
)
from .shared.assets import AssetLoader
from .shared.certificates import ASSETS_EXTENSION, FONTS_EXTENSION
from .shared.environment import ProcessEnvironment
from .shared.fonts import FontResolver


def _env_float(name: str, default: float) -> float:
    try:
        return float(os.getenv(name, default))
    except (TypeError, ValueError):
        logging.warning("invalid %s, using %s", name, default)
        return float(default)


def create_app(environment=None, http=None):
    """Flask app carrying the certificate engine's configuration and services.

    ``environment`` and ``http`` are injected into the font resolver and
    asset loader; both default to the real process environment and network.
    """
    app = Flask(__name__)
    app.config["SITE_URL"] = os.getenv("SITE_URL", DEFAULT_SITE_URL)
    app.config["SITE_ROOT"] = os.getenv("SITE_ROOT", "/srv")
    app.config["CERT_FONT_CACHE_DIR"] = os.getenv(
        "CERT_FONT_CACHE_DIR", os.path.join(tempfile.gettempdir(), "eventcert-fonts")
    )
    app.config["CERT_FETCH_TIMEOUT"] = _env_float("CERT_FETCH_TIMEOUT", DEFAULT_FETCH_TIMEOUT)
    app.config["CERT_FONT_DOWNLOAD_TIMEOUT"] = _env_float(
        "CERT_FONT_DOWNLOAD_TIMEOUT", DEFAULT_FONT_DOWNLOAD_TIMEOUT
    )
    app.config["CERT_BATCH_WORKERS"] = int(
        _env_float("CERT_BATCH_WORKERS", DEFAULT_BATCH_WORKERS)
    )
    app.config["LOG_LEVEL"] = os.getenv("LOG_LEVEL", "INFO").upper()

    level = logging.getLevelName(app.config["LOG_LEVEL"])
    if not isinstance(level, int):
        level = logging.INFO
    logging.getLogger("eventcert").setLevel(level)
    app.logger.setLevel(level)

    app.extensions[FONTS_EXTENSION] = FontResolver(
        environment=environment or ProcessEnvironment(),
        cache_dir=app.config["CERT_FONT_CACHE_DIR"],
        http=http,
        timeout=app.config["CERT_FONT_DOWNLOAD_TIMEOUT"],
    )
    app.extensions[ASSETS_EXTENSION] = AssetLoader(
        http=http,
        timeout=app.config["CERT_FETCH_TIMEOUT"],
        site_url=app.config["SITE_URL"],
    )
    return app
