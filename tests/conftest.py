import os
import pathlib
import sys
from io import BytesIO

import pytest
import requests
from PIL import Image

PROJECT_ROOT = pathlib.Path(__file__).resolve().parent.parent
if str(PROJECT_ROOT) not in sys.path:
    sys.path.insert(0, str(PROJECT_ROOT))

from eventcert.app import create_app
from eventcert.shared.assets import AssetLoader
from eventcert.shared.environment import StaticEnvironment
from eventcert.shared.fonts import FontResolver


def pytest_collection_modifyitems(config, items):
    for item in items:
        if "slow" in item.keywords or "quarantine" in item.keywords:
            continue
        item.add_marker("full")
        if "no_smoke" in item.keywords:
            continue
        item.add_marker("smoke")


class FakeResponse:
    def __init__(self, content: bytes = b"", status_code: int = 200):
        self.content = content
        self.status_code = status_code

    def raise_for_status(self):
        if self.status_code >= 400:
            raise requests.HTTPError(f"{self.status_code} error")


class FakeSession:
    """Stands in for ``requests.Session``; unknown URLs fail like a dead host."""

    def __init__(self, responses=None):
        self.responses = dict(responses or {})
        self.calls: list[str] = []

    def get(self, url, headers=None, timeout=None):
        self.calls.append(url)
        outcome = self.responses.get(url)
        if outcome is None:
            raise requests.ConnectionError(f"unreachable: {url}")
        if isinstance(outcome, Exception):
            raise outcome
        return outcome


def png_bytes(width: int = 40, height: int = 20, color=(200, 30, 30, 255)) -> bytes:
    buffer = BytesIO()
    Image.new("RGBA", (width, height), color).save(buffer, format="PNG")
    return buffer.getvalue()


@pytest.fixture
def fake_http():
    return FakeSession()


@pytest.fixture
def font_resolver(tmp_path):
    return FontResolver(
        environment=StaticEnvironment(),
        remote_fonts=(),
        cache_dir=str(tmp_path / "fonts"),
        http=FakeSession(),
    )


@pytest.fixture
def constrained_resolver(tmp_path):
    return FontResolver(
        environment=StaticEnvironment(constrained=True),
        remote_fonts=(),
        cache_dir=str(tmp_path / "fonts"),
        http=FakeSession(),
    )


@pytest.fixture
def asset_loader(fake_http):
    return AssetLoader(http=fake_http, timeout=1, site_url="https://certs.example.org")


@pytest.fixture
def app(tmp_path, monkeypatch):
    monkeypatch.setenv("SITE_ROOT", str(tmp_path / "srv"))
    monkeypatch.setenv("SITE_URL", "https://certs.example.org")
    monkeypatch.setenv("CERT_FONT_CACHE_DIR", str(tmp_path / "fonts"))
    application = create_app(environment=StaticEnvironment(), http=FakeSession())
    with application.app_context():
        yield application
