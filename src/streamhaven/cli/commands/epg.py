"""
EPG command group.
"""

from __future__ import annotations

from pathlib import Path

import typer

from ...infra.exceptions import StreamHavenError
from ...infra.uow import session
from ...usecases.epg_ingest import fetch_and_ingest_epg, ingest_epg
from ...usecases.epg_query import entry_to_dict, get_now_and_next
from ...usecases.lookup import get_channel, get_source
from ._output import echo_json, fail

app = typer.Typer()


@app.command("ingest")
def ingest(
    source_id: str = typer.Argument(..., help="Source whose channels receive the guide"),
    file: Path | None = typer.Option(None, "--file", help="Read XMLTV from a local file instead of the source's EPG URL"),
    force: bool = typer.Option(False, "--force", help="Fetch even if the guide is still fresh"),
    json_output: bool = typer.Option(False, "--json", help="Output in JSON format"),
):
    """
    Load programme data for a source's channels.

    Examples:
        streamhaven epg ingest 4b2b05e7-d7d2-414a-a587-3f5df9b53f44
        streamhaven epg ingest 4b2b05e7-d7d2-414a-a587-3f5df9b53f44 --file guide.xml.gz
    """
    try:
        with session() as db:
            source = get_source(db, source_id)
            if file is not None:
                try:
                    payload = file.read_bytes()
                except OSError as e:
                    fail(f"cannot read {file}: {e}")
                result = {"status": "ok", **ingest_epg(db, payload, source=source)}
            else:
                result = fetch_and_ingest_epg(db, source, force=force)
    except StreamHavenError as e:
        fail(str(e))

    if json_output:
        echo_json(result)
    elif result["status"] == "skipped":
        typer.echo(f"Guide is fresh (last refreshed {result['last_refreshed']}); use --force to fetch anyway")
    else:
        typer.echo(
            f"Inserted {result['inserted']} of {result['parsed']} programmes "
            f"({result['duplicates']} duplicates, {result['unknown_channel']} unknown channel, "
            f"{result['purged']} purged)"
        )


@app.command("now-next")
def now_next(
    channel_id: int = typer.Argument(..., help="Channel id"),
    json_output: bool = typer.Option(False, "--json", help="Output in JSON format"),
):
    """Show what is on a channel now and what follows."""
    try:
        with session(read_only=True) as db:
            channel = get_channel(db, channel_id)
            result = get_now_and_next(db, channel)
            payload = {
                "channel": channel.display_title,
                "now": entry_to_dict(result.now),
                "next": entry_to_dict(result.next),
            }
    except StreamHavenError as e:
        fail(str(e))

    if json_output:
        echo_json(payload)
        return
    typer.echo(payload["channel"])
    for label in ("now", "next"):
        entry = payload[label]
        if entry is None:
            typer.echo(f"  {label.capitalize()}: no programme")
        else:
            typer.echo(f"  {label.capitalize()}: {entry['title']} ({entry['start']} - {entry['end']})")
