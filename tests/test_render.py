from datetime import date, datetime, time
from io import BytesIO

import pytest
from PIL import Image, ImageChops
from PyPDF2 import PdfReader

from eventcert.constants import MIME_PDF, MIME_PNG
from eventcert.models import CertificateData
from eventcert.shared import certificates
from eventcert.shared.assets import AssetLoader
from eventcert.shared.certificates import (
    RasterRenderer,
    VectorRenderer,
    certificate_filename,
    get_renderer,
    render_for_event,
)
from eventcert.shared.certificates_layout import resolve_effective_config
from eventcert.shared.environment import StaticEnvironment
from eventcert.shared.fonts import FontResolver

from conftest import FakeResponse, FakeSession, png_bytes

ISSUED = datetime(2024, 5, 20, 12, 0)


@pytest.fixture
def ana():
    return CertificateData(
        user_name="Ana Silva",
        event_name="Oficina de Python",
        event_date=date(2024, 5, 10),
        event_start_time=time(14, 0),
        event_end_time=time(18, 0),
        event_id="evt1",
    )


def _image(rendered):
    return Image.open(BytesIO(rendered.content)).convert("RGB")


def test_body_placeholders_are_substituted(font_resolver, asset_loader, ana):
    config = resolve_effective_config(
        {
            "template": "minimalist",
            "bodyText": "{userName} concluiu {eventName} em {eventDate}, {eventTime}.",
        }
    )
    renderer = RasterRenderer(font_resolver, asset_loader)
    rendered = renderer.render(config, ana, issued_at=ISSUED)
    assert rendered.mime_type == MIME_PNG
    assert renderer.last_trace.body_text == (
        "Ana Silva concluiu Oficina de Python em 10 de maio de 2024, 14:00 às 18:00."
    )
    assert " ".join(renderer.last_trace.body_lines) == renderer.last_trace.body_text
    assert _image(rendered).size == (1200, 800)


def test_portrait_raster_size(font_resolver, asset_loader, ana):
    config = resolve_effective_config({"orientation": "portrait"})
    rendered = RasterRenderer(font_resolver, asset_loader).render(config, ana, issued_at=ISSUED)
    assert _image(rendered).size == (800, 1200)


def test_logo_failure_draws_placeholder_box(font_resolver, ana):
    assets = AssetLoader(http=FakeSession(), site_url="https://certs.example.org")
    config = resolve_effective_config(
        {
            "template": "minimalist",
            "showBorder": False,
            "logoUrl": "https://res.example.com/demo/image/upload/logo.png",
            "logoPosition": {"x": 10, "y": 10},
            "logoSize": 80,
        }
    )
    warnings = []
    renderer = RasterRenderer(font_resolver, assets)
    image = _image(renderer.render(config, ana, issued_at=ISSUED, warnings=warnings))
    assert renderer.last_trace.logo_placeholder is True
    # box is 80px centred on (120, 80): left edge stroke then empty interior
    assert image.getpixel((81, 80)) == (100, 116, 139)
    assert image.getpixel((100, 50)) == (255, 255, 255)
    assert any("Logo" in warning for warning in warnings)


def test_real_logo_is_drawn(font_resolver, ana):
    url = "https://example.com/logo.png"
    assets = AssetLoader(http=FakeSession({url: FakeResponse(png_bytes(40, 20, (200, 30, 30, 255)))}))
    config = resolve_effective_config(
        {"template": "minimalist", "showBorder": False, "logoUrl": url, "logoSize": 80}
    )
    renderer = RasterRenderer(font_resolver, assets)
    image = _image(renderer.render(config, ana, issued_at=ISSUED))
    assert renderer.last_trace.logo_placeholder is False
    # 40x20 logo drawn at 160x80 around (120, 80)
    assert image.getpixel((120, 80)) == (200, 30, 30)
    assert image.getpixel((20, 80)) == (255, 255, 255)


def test_default_qr_payload_points_to_validation_page(font_resolver, asset_loader, ana):
    config = resolve_effective_config({"includeQRCode": True})
    renderer = RasterRenderer(font_resolver, asset_loader)
    renderer.render(config, ana, issued_at=ISSUED)
    assert renderer.last_trace.qr_payload == "https://certs.example.org/validate/evt1/Ana Silva"
    assert renderer.last_trace.qr_placeholder is False


def test_custom_qr_text_wins(font_resolver, asset_loader, ana):
    config = resolve_effective_config({"includeQRCode": True, "qrCodeText": "https://x.org/c/1"})
    renderer = VectorRenderer(font_resolver, asset_loader)
    renderer.render(config, ana, issued_at=ISSUED)
    assert renderer.last_trace.qr_payload == "https://x.org/c/1"


def test_constrained_pdf_uses_ascii_text(constrained_resolver, asset_loader, ana):
    warnings = []
    rendered = VectorRenderer(constrained_resolver, asset_loader).render(
        resolve_effective_config({}), ana, issued_at=ISSUED, warnings=warnings
    )
    assert rendered.mime_type == MIME_PDF
    assert rendered.content.startswith(b"%PDF")
    text = PdfReader(BytesIO(rendered.content)).pages[0].extract_text()
    assert "Participacao" in text
    assert "ção" not in text
    assert len(warnings) == 2


def test_pdf_carries_metadata(font_resolver, asset_loader, ana):
    rendered = get_renderer("pdf", font_resolver, asset_loader).render(
        resolve_effective_config({"template": "elegant", "showWatermark": True}), ana, issued_at=ISSUED
    )
    reader = PdfReader(BytesIO(rendered.content))
    assert len(reader.pages) == 1
    assert reader.metadata.title == "Certificado de Participação"
    assert reader.metadata.subject == "Ana Silva"
    assert float(reader.pages[0].mediabox.width) == pytest.approx(842.0)


def test_cold_and_warm_font_cache_render_identically(tmp_path, asset_loader, ana):
    def resolver():
        return FontResolver(
            environment=StaticEnvironment(),
            remote_fonts=(),
            cache_dir=str(tmp_path),
            http=FakeSession(),
        )

    config = resolve_effective_config({"template": "classic", "showWatermark": True})
    warm = resolver()
    warm.resolve()
    first = RasterRenderer(resolver(), asset_loader).render(config, ana, issued_at=ISSUED)
    second = RasterRenderer(warm, asset_loader).render(config, ana, issued_at=ISSUED)
    assert first.content == second.content


def test_issue_date_only_changes_timestamp_area(font_resolver, asset_loader, ana):
    config = resolve_effective_config({"template": "minimalist"})
    renderer = RasterRenderer(font_resolver, asset_loader)
    before = _image(renderer.render(config, ana, issued_at=datetime(2024, 5, 20)))
    after = _image(renderer.render(config, ana, issued_at=datetime(2025, 11, 3)))
    left, top, right, bottom = ImageChops.difference(before, after).getbbox()
    assert left >= 40 and right <= 600
    assert top >= 700


def test_unknown_format_is_rejected(font_resolver, asset_loader):
    with pytest.raises(ValueError):
        get_renderer("gif", font_resolver, asset_loader)


def test_filename_is_slugged(ana):
    assert certificate_filename(ana, "pdf") == "certificado_ana-silva_2024-05-10.pdf"


def test_batch_keeps_going_after_a_failure(font_resolver, asset_loader, monkeypatch, caplog):
    original = certificates.substitute_placeholders

    def flaky(template, data):
        if data.user_name == "Bruno":
            raise RuntimeError("boom")
        return original(template, data)

    monkeypatch.setattr(certificates, "substitute_placeholders", flaky)
    caplog.set_level("INFO", logger="eventcert.render")
    people = [
        CertificateData(name, "Oficina", date(2024, 5, 10), event_id="evt1")
        for name in ("Ana", "Bruno", "Carla")
    ]
    result = render_for_event(
        {}, people, fmt="png", max_workers=2, fonts=font_resolver, assets=asset_loader, issued_at=ISSUED
    )
    assert [data.user_name for data, _ in result.certificates] == ["Ana", "Carla"]
    assert result.ok == 2
    assert [(f.user_name, f.error) for f in result.failures] == [("Bruno", "boom")]
    failures = [r for r in caplog.records if "[CERT-FAIL]" in r.getMessage()]
    assert len(failures) == 1
    assert "user=Bruno event=evt1" in failures[0].getMessage()
    assert failures[0].exc_info is not None


def test_batch_uses_app_defaults(app, ana):
    result = render_for_event(None, [ana], fmt="pdf")
    assert result.ok == 1
    assert result.certificates[0][1].content.startswith(b"%PDF")


def test_pdf_title_metadata_has_placeholders_filled(font_resolver, asset_loader, ana):
    config = resolve_effective_config({"title": "Certificado: {eventName}"})
    rendered = VectorRenderer(font_resolver, asset_loader).render(config, ana, issued_at=ISSUED)
    assert PdfReader(BytesIO(rendered.content)).metadata.title == "Certificado: Oficina de Python"
