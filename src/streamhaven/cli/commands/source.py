"""
Source command group.

Surfaces playlist source management: add, list, update, (de)activate,
reorder, delete and ingest.
"""

from __future__ import annotations

from typing import Any

import typer
from sqlalchemy import select

from ...adapters.registry import detect_playlist_type, list_importers
from ...domain.entities import PlaylistSource
from ...infra.exceptions import StreamHavenError
from ...infra.uow import session
from ...usecases.lookup import get_profile, get_source
from ...usecases.source_add import add_source
from ...usecases.source_delete import delete_source
from ...usecases.source_ingest import ingest_sources
from ...usecases.source_list import list_sources
from ...usecases.source_update import activate_source, deactivate_source, move_source, update_source
from ._output import echo_json, fail

app = typer.Typer()


def _print_source(source: dict[str, Any]) -> None:
    state = "active" if source["is_active"] else "inactive"
    typer.echo(f"{source['display_order']}. {source['name']} ({source['type']}, {state})")
    typer.echo(f"   ID: {source['id']}")
    if "movies" in source:
        typer.echo(
            f"   Content: {source['movies']} movies, {source['series']} series, {source['channels']} channels"
        )
    if source.get("last_refreshed"):
        typer.echo(f"   Last refreshed: {source['last_refreshed']}")
    if source.get("last_error"):
        typer.echo(f"   Last error: {source['last_error']}")


@app.command("types")
def types(json_output: bool = typer.Option(False, "--json", help="Output in JSON format")):
    """Show the supported source types and their parameters."""
    importers = list_importers()
    if json_output:
        echo_json({"status": "ok", "total": len(importers), "types": importers})
        return
    for importer in importers:
        typer.echo(f"{importer['type']}: {importer['description']}")
        for param in importer["required_params"]:
            typer.echo(f"   --{param['name']} (required) {param['description']}")
        for param in importer["optional_params"]:
            typer.echo(f"   {param['name']} (default {param.get('default')}) {param['description']}")


@app.command("add")
def add(
    profile_id: int = typer.Option(..., "--profile", help="Owning profile id"),
    name: str = typer.Option(..., "--name", help="Friendly name for the source"),
    url: str = typer.Option(..., "--url", help="Playlist URL, server URL or local file path"),
    source_type: str | None = typer.Option(None, "--type", help="m3u or xtream; detected from the URL when omitted"),
    username: str | None = typer.Option(None, "--username", help="Xtream username"),
    password: str | None = typer.Option(None, "--password", help="Xtream password"),
    json_output: bool = typer.Option(False, "--json", help="Output in JSON format"),
):
    """
    Add a playlist source to a profile.

    Examples:
        streamhaven source add --profile 1 --name Home --url http://host/list.m3u
        streamhaven source add --profile 1 --name Provider --type xtream --url http://host:8080 --username u --password p
    """
    try:
        with session() as db:
            profile = get_profile(db, profile_id)
            result = add_source(
                db,
                profile=profile,
                source_type=source_type or detect_playlist_type(url),
                name=name,
                url=url,
                username=username,
                password=password,
            )
    except StreamHavenError as e:
        fail(str(e))

    if json_output:
        echo_json(result)
    else:
        typer.echo(f"Added source '{result['name']}' ({result['type']}) with ID {result['id']}")


@app.command("list")
def list_all(
    profile_id: int | None = typer.Option(None, "--profile", help="Only sources of this profile"),
    json_output: bool = typer.Option(False, "--json", help="Output in JSON format"),
):
    """List sources in display order with content counts."""
    try:
        with session(read_only=True) as db:
            profile = get_profile(db, profile_id) if profile_id is not None else None
            sources = list_sources(db, profile=profile)
    except StreamHavenError as e:
        fail(str(e))

    if json_output:
        echo_json({"status": "ok", "total": len(sources), "sources": sources})
        return
    if not sources:
        typer.echo("No sources found")
        return
    typer.echo("Sources:")
    for source in sources:
        _print_source(source)
    typer.echo(f"\nTotal: {len(sources)} source(s)")


@app.command("update")
def update(
    source_id: str = typer.Argument(..., help="Source ID"),
    name: str | None = typer.Option(None, "--name", help="New name"),
    url: str | None = typer.Option(None, "--url", help="New URL"),
    username: str | None = typer.Option(None, "--username", help="New username"),
    password: str | None = typer.Option(None, "--password", help="New password"),
    json_output: bool = typer.Option(False, "--json", help="Output in JSON format"),
):
    """Update a source's connection details."""
    try:
        with session() as db:
            result = update_source(
                db, get_source(db, source_id), name=name, url=url, username=username, password=password
            )
    except StreamHavenError as e:
        fail(str(e))

    if json_output:
        echo_json(result)
    else:
        typer.echo(f"Updated source '{result['name']}'")


@app.command("activate")
def activate(source_id: str = typer.Argument(..., help="Source ID")):
    """Include a source in grouping again. Its content returns on the next ingest."""
    try:
        with session() as db:
            result = activate_source(db, get_source(db, source_id))
    except StreamHavenError as e:
        fail(str(e))
    typer.echo(f"Activated source '{result['name']}'")


@app.command("deactivate")
def deactivate(
    source_id: str = typer.Argument(..., help="Source ID"),
    keep_content: bool = typer.Option(False, "--keep-content", help="Keep the source's movies, series and channels"),
):
    """Exclude a source from grouping; removes its content unless --keep-content."""
    try:
        with session() as db:
            result = deactivate_source(db, get_source(db, source_id), purge_content=not keep_content)
    except StreamHavenError as e:
        fail(str(e))
    typer.echo(f"Deactivated source '{result['name']}'")


@app.command("move")
def move(
    profile_id: int = typer.Argument(..., help="Profile id"),
    from_index: int = typer.Argument(..., help="Current position (0-based)"),
    to_index: int = typer.Argument(..., help="New position (0-based)"),
):
    """Move a source to another position in the profile's display order."""
    try:
        with session() as db:
            ordered = move_source(db, get_profile(db, profile_id), from_index, to_index)
    except StreamHavenError as e:
        fail(str(e))
    for source in ordered:
        typer.echo(f"{source['display_order']}. {source['name']}")


@app.command("delete", no_args_is_help=True)
def delete(
    source_id: str = typer.Argument(..., help="Source ID"),
    force: bool = typer.Option(False, "--force", help="Delete without confirmation"),
    json_output: bool = typer.Option(False, "--json", help="Output in JSON format"),
):
    """
    Delete a source with all of its content, favorites and watch history.
    """
    if not force and not typer.confirm(f"Delete source {source_id} and everything it imported?"):
        typer.echo("Aborted")
        raise typer.Exit(1)

    try:
        with session() as db:
            result = delete_source(db, get_source(db, source_id))
    except StreamHavenError as e:
        fail(str(e))

    if json_output:
        echo_json(result)
    else:
        typer.echo(f"Deleted source '{result['name']}'")


@app.command("ingest")
def ingest(
    source_ids: list[str] = typer.Argument(None, help="Source IDs; defaults to every active source"),
    profile_id: int | None = typer.Option(None, "--profile", help="Ingest the active sources of this profile"),
    workers: int | None = typer.Option(None, "--workers", help="Concurrent ingest workers"),
    json_output: bool = typer.Option(False, "--json", help="Output in JSON format"),
):
    """
    Import playlists into the store. Independent sources run concurrently.
    """
    try:
        with session(read_only=True) as db:
            if source_ids:
                ids = [get_source(db, value).source_id for value in source_ids]
            elif profile_id is not None:
                ids = [s.source_id for s in get_profile(db, profile_id).active_sources]
            else:
                ids = list(
                    db.scalars(
                        select(PlaylistSource.source_id)
                        .where(PlaylistSource.is_active.is_(True))
                        .order_by(PlaylistSource.profile_id, PlaylistSource.display_order)
                    )
                )
    except StreamHavenError as e:
        fail(str(e))

    if not ids:
        typer.echo("No active sources to ingest")
        return

    results = ingest_sources(ids, max_workers=workers)
    failed = [r for r in results if r["status"] == "failed"]

    if json_output:
        echo_json({"status": "failed" if failed else "ok", "total": len(results), "results": results})
    else:
        for r in results:
            if r["status"] == "failed":
                typer.echo(f"{r['source_id']}: failed: {r['error']}", err=True)
                continue
            typer.echo(
                f"{r['name']}: {r['status']} - {r['movies']} movies, {r['series']} series, "
                f"{r['channels']} channels ({r['variants']} streams), {r['skipped']} skipped"
            )
            for category, message in r["errors"].items():
                typer.echo(f"   {category} failed: {message}", err=True)

    if failed:
        raise typer.Exit(1)
