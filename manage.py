import json
import os

import click
from flask import current_app
from flask.cli import FlaskGroup

from eventcert.app import create_app
from eventcert.models import CertificateData
from eventcert.shared.certificate_templates import get_template_config, list_templates
from eventcert.shared.certificates import (
    FORMAT_PDF,
    FORMAT_PNG,
    get_font_resolver,
    get_renderer,
    render_for_event,
)
from eventcert.shared.certificates_layout import resolve_effective_config
from eventcert.shared.storage import certificate_output_path, write_atomic

cli = FlaskGroup(create_app=create_app)


def _load_config(template_id: str | None, config_path: str | None):
    overrides = None
    if config_path:
        with open(config_path, encoding="utf-8") as fh:
            overrides = json.load(fh)
    if template_id:
        return get_template_config(template_id, overrides)
    return resolve_effective_config(overrides)


@cli.command("gen_cert")
@click.option("--name", "user_name", required=True)
@click.option("--event", "event_name", required=True)
@click.option("--date", "event_date", required=True, type=click.DateTime(["%Y-%m-%d"]))
@click.option("--event-id", "event_id", default=None)
@click.option("--start", "start_time", default=None, help="HH:MM")
@click.option("--end", "end_time", default=None, help="HH:MM")
@click.option("--template", "template_id", default=None)
@click.option("--config", "config_path", default=None, type=click.Path(exists=True, dir_okay=False))
@click.option("--format", "fmt", default=FORMAT_PDF, type=click.Choice([FORMAT_PNG, FORMAT_PDF]))
@click.option("--out", "out_path", default=None)
def gen_cert(user_name, event_name, event_date, event_id, start_time, end_time, template_id, config_path, fmt, out_path):
    """Render one certificate to disk."""
    config = _load_config(template_id, config_path)
    data = CertificateData.from_dict(
        {
            "userName": user_name,
            "eventName": event_name,
            "eventDate": event_date.date(),
            "eventStartTime": start_time,
            "eventEndTime": end_time,
            "eventId": event_id,
        }
    )
    warnings: list[str] = []
    rendered = get_renderer(fmt).render(config, data, warnings=warnings)
    path = out_path or certificate_output_path(
        current_app.config["SITE_ROOT"], event_id, data.event_date, user_name, rendered.extension
    )
    write_atomic(os.path.abspath(path), rendered.content)
    for warning in warnings:
        click.echo(f"warning: {warning}", err=True)
    click.echo(path)


@cli.command("gen_batch")
@click.option("--participants", "participants_path", required=True, type=click.Path(exists=True, dir_okay=False))
@click.option("--template", "template_id", default=None)
@click.option("--config", "config_path", default=None, type=click.Path(exists=True, dir_okay=False))
@click.option("--format", "fmt", default=FORMAT_PDF, type=click.Choice([FORMAT_PNG, FORMAT_PDF]))
@click.option("--workers", "workers", default=None, type=int)
def gen_batch(participants_path, template_id, config_path, fmt, workers):
    """Render certificates for every participant listed in a JSON file."""
    with open(participants_path, encoding="utf-8") as fh:
        rows = json.load(fh)
    participants = []
    for row in rows:
        try:
            participants.append(CertificateData.from_dict(row))
        except ValueError as exc:
            click.echo(f"skipping {row.get('userName')!r}: {exc}", err=True)
    config = _load_config(template_id, config_path)
    result = render_for_event(config, participants, fmt=fmt, max_workers=workers)
    site_root = current_app.config["SITE_ROOT"]
    for data, rendered in result.certificates:
        path = certificate_output_path(
            site_root, data.event_id, data.event_date, data.user_name, rendered.extension
        )
        write_atomic(path, rendered.content)
        click.echo(path)
    for failure in result.failures:
        click.echo(f"failed: {failure.user_name}: {failure.error}", err=True)
    click.echo(f"ok={result.ok} failed={len(result.failures)}")


@cli.command("list_templates")
def list_templates_cmd():
    for template in list_templates():
        click.echo(
            f"{template.id}\t{template.name}\t{template.config['template']}\t{template.description}"
        )


@cli.command("font_status")
def font_status():
    resolution = get_font_resolver().resolve()
    for key, value in resolution.to_dict().items():
        click.echo(f"{key}={value}")


if __name__ == "__main__":
    cli()
