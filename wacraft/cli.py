"""wacraft CLI — inspect and preview rich content descriptors."""

import asyncio
import base64
import json
import logging
import sys

import click
from rich.console import Console
from rich.markup import escape
from rich.panel import Panel
from rich.syntax import Syntax
from rich.table import Table

from wacraft import __version__

console = Console()


def _load_descriptor(path: str) -> dict:
    """Read a JSON descriptor from a file, or stdin when path is '-'."""
    try:
        if path == "-":
            return json.load(sys.stdin)
        with open(path) as f:
            return json.load(f)
    except json.JSONDecodeError as e:
        raise click.ClickException(f"{path} is not valid JSON: {e}")


def _json_default(value):
    if isinstance(value, (bytes, bytearray)):
        return base64.b64encode(bytes(value)).decode()
    return str(value)


def _dump(data) -> str:
    return json.dumps(data, indent=2, default=_json_default)


@click.group()
@click.version_option(version=__version__, prog_name="wacraft")
def cli():
    """wacraft — rich content composer for WhatsApp-protocol clients"""
    from wacraft.config import load_settings

    settings = load_settings()
    logging.basicConfig(
        level=getattr(logging, settings.log_level.upper(), logging.INFO),
        format="%(asctime)s %(levelname)s %(name)s: %(message)s",
    )


@cli.command()
def kinds():
    """List message kinds, their marker fields and execution strategy."""
    from wacraft.kinds import MARKERS
    from wacraft.strategies import strategy_for

    table = Table(title="Message kinds (priority order)")
    table.add_column("#", style="dim")
    table.add_column("Kind", style="bold")
    table.add_column("Marker")
    table.add_column("Strategy")
    for i, (kind, names) in enumerate(MARKERS, 1):
        table.add_row(str(i), kind.value, " / ".join(names), strategy_for(kind).value)
    console.print(table)


@cli.command()
@click.argument("path")
def detect(path):
    """Print the kind of a JSON descriptor (PATH or - for stdin)."""
    from wacraft.descriptors import classify

    kind = classify(_load_descriptor(path))
    if kind is None:
        console.print("[yellow]Not a rich content descriptor[/yellow]")
        raise SystemExit(1)
    console.print(kind.value)


@cli.command()
@click.argument("path")
@click.option("--jid", default="0@s.whatsapp.net", show_default=True, help="Destination JID")
@click.option("--no-fetch", is_flag=True, help="Do not download remote order thumbnails")
def preview(path, jid, no_fetch):
    """Build a descriptor against dry-run collaborators and show every relay.

    Uploads, keys and relays are simulated. Order thumbnails given as URLs are
    still downloaded over HTTP unless --no-fetch is passed.
    """
    from wacraft.config import load_settings
    from wacraft.defaults import DefaultsPolicy
    from wacraft.dryrun import (
        DryRunMaterializer,
        DryRunUploader,
        PassthroughContentGenerator,
        RecordingTransport,
        SequentialIds,
    )
    from wacraft.errors import ComposerError, describe_error
    from wacraft.media import HttpThumbnailFetcher
    from wacraft.relay import RelayOrchestrator

    raw = _load_descriptor(path)
    settings = load_settings()
    ids = SequentialIds()
    transport = RecordingTransport()
    orchestrator = RelayOrchestrator(
        DryRunUploader(),
        DryRunMaterializer(ids),
        transport,
        ids,
        content_generator=PassthroughContentGenerator(),
        thumbnail_fetcher=None if no_fetch else HttpThumbnailFetcher.from_settings(settings),
        defaults=DefaultsPolicy.from_settings(settings),
    )

    try:
        result = asyncio.run(orchestrator.send(jid, raw))
    except ComposerError as e:
        console.print(f"[red]✗ {escape(describe_error(e))}[/red]")
        raise SystemExit(1)

    if result is None:
        console.print("[yellow]Not a rich content descriptor[/yellow]")
        raise SystemExit(1)

    console.print(f"[green]✓ {result.kind}[/green] → {jid} ({len(transport.envelopes)} relay(s))\n")
    for i, envelope in enumerate(transport.envelopes, 1):
        options = {"messageId": envelope.options.message_id}
        if envelope.options.quoted is not None:
            options["quoted"] = envelope.options.quoted.key.to_dict()
        console.print(Panel(
            Syntax(_dump({"options": options, "message": envelope.payload}), "json"),
            title=f"relay {i}",
            expand=False,
        ))
