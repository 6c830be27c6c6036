import json

import pytest

from manage import font_status, gen_batch, gen_cert, list_templates_cmd


@pytest.fixture
def runner(app):
    for command in (gen_cert, gen_batch, list_templates_cmd, font_status):
        app.cli.add_command(command)
    return app.test_cli_runner()


def test_list_templates(runner):
    res = runner.invoke(args=["list_templates"])
    assert res.exit_code == 0
    lines = res.output.strip().splitlines()
    assert len(lines) == 6
    assert lines[4].split("\t")[:3] == ["corporate", "Corporativo", "modern"]


def test_font_status(runner):
    res = runner.invoke(args=["font_status"])
    assert res.exit_code == 0
    assert "source=embedded" in res.output
    assert "ascii_only=False" in res.output


def test_gen_cert_writes_file(runner, tmp_path):
    out = tmp_path / "out" / "ana.png"
    res = runner.invoke(
        args=[
            "gen_cert",
            "--name", "Ana Silva",
            "--event", "Oficina",
            "--date", "2024-05-10",
            "--start", "14:00",
            "--template", "minimalist",
            "--format", "png",
            "--out", str(out),
        ]
    )
    assert res.exit_code == 0, res.output
    assert out.read_bytes().startswith(b"\x89PNG")
    assert str(out) in res.output


def test_gen_cert_defaults_to_site_root(runner, app):
    res = runner.invoke(
        args=["gen_cert", "--name", "Ana Silva", "--event", "Oficina", "--date", "2024-05-10", "--event-id", "evt1"]
    )
    assert res.exit_code == 0, res.output
    expected = f"{app.config['SITE_ROOT']}/certificates/2024/evt1/ana-silva.pdf"
    with open(expected, "rb") as fh:
        assert fh.read(4) == b"%PDF"


def test_gen_batch(runner, app, tmp_path):
    participants = tmp_path / "people.json"
    participants.write_text(
        json.dumps(
            [
                {"userName": "Ana", "eventName": "Oficina", "eventDate": "2024-05-10", "eventId": "e1"},
                {"userName": "Bruno", "eventName": "Oficina", "eventDate": "2024-05-10", "eventId": "e1"},
                {"userName": "Sem Data", "eventName": "Oficina"},
            ]
        ),
        encoding="utf-8",
    )
    res = runner.invoke(args=["gen_batch", "--participants", str(participants), "--format", "png"])
    assert res.exit_code == 0, res.output
    assert "ok=2 failed=0" in res.output
    root = app.config["SITE_ROOT"]
    for name in ("ana", "bruno"):
        with open(f"{root}/certificates/2024/e1/{name}.png", "rb") as fh:
            assert fh.read(4) == b"\x89PNG"
