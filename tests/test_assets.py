import pytest
from PIL import Image

from eventcert.constants import LOGO_FETCH_HEADERS, QR_RENDER_SIZE
from eventcert.shared.assets import (
    LOGO_PLACEHOLDER,
    QR_PLACEHOLDER,
    AssetLoader,
    LogoAsset,
    fit_logo,
    logo_candidates,
)

from conftest import FakeResponse, FakeSession, png_bytes

CDN_URL = "https://res.example.com/demo/image/upload/v1/logo.png"


def test_candidates_for_cdn_url():
    assert logo_candidates(CDN_URL) == [
        CDN_URL,
        "https://res.example.com/demo/image/upload/f_auto,q_auto/v1/logo.png",
        "https://res.example.com/demo/image/upload/c_fit,w_400,h_400/v1/logo.png",
    ]


def test_plain_url_is_tried_three_times():
    assert logo_candidates("https://example.com/logo.png") == ["https://example.com/logo.png"] * 3


def test_logo_loaded_from_first_working_candidate():
    fallback = logo_candidates(CDN_URL)[1]
    http = FakeSession({fallback: FakeResponse(png_bytes(60, 30))})
    logo = AssetLoader(http=http).load_logo(CDN_URL)
    assert isinstance(logo, LogoAsset)
    assert (logo.natural_width, logo.natural_height) == (60, 30)
    assert http.calls == logo_candidates(CDN_URL)[:2]


def test_empty_and_error_bodies_are_skipped():
    candidates = logo_candidates(CDN_URL)
    http = FakeSession(
        {
            candidates[0]: FakeResponse(b""),
            candidates[1]: FakeResponse(b"nope", status_code=404),
            candidates[2]: FakeResponse(png_bytes()),
        }
    )
    assert isinstance(AssetLoader(http=http).load_logo(CDN_URL), LogoAsset)


def test_undecodable_body_moves_to_next_candidate():
    candidates = logo_candidates(CDN_URL)
    http = FakeSession(
        {
            candidates[0]: FakeResponse(b"<html>not an image</html>"),
            candidates[1]: FakeResponse(png_bytes()),
        }
    )
    assert isinstance(AssetLoader(http=http).load_logo(CDN_URL), LogoAsset)


def test_total_failure_returns_placeholder(caplog):
    caplog.set_level("WARNING", logger="eventcert.assets")
    http = FakeSession()
    assert AssetLoader(http=http).load_logo(CDN_URL) == LOGO_PLACEHOLDER
    assert len(http.calls) == 3
    assert any("[CERT-ASSET]" in message for message in caplog.messages)


def test_fetch_sends_identifying_headers_and_timeout():
    seen = {}

    class RecordingSession(FakeSession):
        def get(self, url, headers=None, timeout=None):
            seen.update(headers=headers, timeout=timeout)
            return FakeResponse(png_bytes())

    AssetLoader(http=RecordingSession(), timeout=2.5).load_logo(CDN_URL)
    assert seen == {"headers": LOGO_FETCH_HEADERS, "timeout": 2.5}


def test_no_url_is_placeholder_without_fetching():
    http = FakeSession()
    assert AssetLoader(http=http).load_logo(None) == LOGO_PLACEHOLDER
    assert http.calls == []


@pytest.mark.no_smoke
def test_fit_logo_keeps_aspect_ratio():
    for width, height in [(1, 1), (400, 100), (100, 400), (3, 7), (1920, 1080), (17, 16)]:
        for max_dim in (20.0, 160.0, 333.0):
            render_w, render_h = fit_logo(width, height, max_dim)
            assert max(render_w, render_h) == pytest.approx(max_dim)
            assert render_w / render_h == pytest.approx(width / height)


def test_fit_logo_degenerate_size_is_square():
    assert fit_logo(0, 50, 80) == (80, 80)


def test_default_qr_payload(asset_loader):
    assert (
        asset_loader.default_qr_payload("evt1", "Ana Silva")
        == "https://certs.example.org/validate/evt1/Ana Silva"
    )


def test_qr_is_square_bitmap(asset_loader):
    image = asset_loader.build_qr("https://certs.example.org/validate/evt1/Ana", (100, 116, 139))
    assert isinstance(image, Image.Image)
    assert image.size == (QR_RENDER_SIZE, QR_RENDER_SIZE)
    assert (100, 116, 139, 255) in {color for _, color in image.getcolors(maxcolors=1024)}


def test_qr_overflow_returns_placeholder(asset_loader, caplog):
    caplog.set_level("WARNING", logger="eventcert.assets")
    assert asset_loader.build_qr("x" * 5000) == QR_PLACEHOLDER
    assert any("[CERT-QR]" in message for message in caplog.messages)


def test_qr_without_payload_is_placeholder(asset_loader):
    assert asset_loader.build_qr("") == QR_PLACEHOLDER
