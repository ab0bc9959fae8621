"""
Content command group: grouped views across a profile's sources and quick
listings read from the cached per-item fields.
"""

from __future__ import annotations

import typer

from ...infra.exceptions import StreamHavenError
from ...infra.uow import session
from ...usecases.content_franchises import list_franchises
from ...usecases.content_groups import list_content_groups
from ...usecases.content_queries import VIEWS, content_statistics, run_view
from ...usecases.lookup import get_profile
from ._output import echo_json, fail

app = typer.Typer()


@app.command("groups")
def groups(
    profile_id: int = typer.Option(..., "--profile", help="Profile id"),
    kind: str = typer.Option(..., "--kind", help="movie, series or channel"),
    json_output: bool = typer.Option(False, "--json", help="Output in JSON format"),
):
    """List content grouped according to the profile's source mode."""
    try:
        with session(read_only=True) as db:
            result = list_content_groups(db, profile=get_profile(db, profile_id), kind=kind)
    except StreamHavenError as e:
        fail(str(e))

    if json_output:
        echo_json({"status": "ok", "total": len(result), "groups": result})
        return
    if not result:
        typer.echo("No content found")
        return
    for group in result:
        extra = f" (+{group['item_count'] - 1} more)" if group["item_count"] > 1 else ""
        sources = ", ".join(s["name"] for s in group["sources"])
        typer.echo(f"{group['title']}{extra} [{sources}]")


@app.command("franchises")
def franchises(
    profile_id: int = typer.Option(..., "--profile", help="Profile id"),
    json_output: bool = typer.Option(False, "--json", help="Output in JSON format"),
):
    """List movie franchises detected from titles."""
    try:
        with session(read_only=True) as db:
            result = list_franchises(db, profile=get_profile(db, profile_id))
    except StreamHavenError as e:
        fail(str(e))

    if json_output:
        echo_json({"status": "ok", "total": len(result), "franchises": result})
        return
    if not result:
        typer.echo("No franchises found")
        return
    for franchise in result:
        typer.echo(f"{franchise['name']} ({franchise['count']} movies)")


@app.command("list")
def list_view(
    profile_id: int = typer.Option(..., "--profile", help="Profile id"),
    view: str = typer.Option(..., "--view", help=f"One of: {', '.join(VIEWS)}"),
    limit: int | None = typer.Option(None, "--limit", help="Maximum rows, for views that take one"),
    minimum: int | None = typer.Option(None, "--minimum", help="Episode or season floor"),
    json_output: bool = typer.Option(False, "--json", help="Output in JSON format"),
):
    """List content through one of the cached-field views."""
    try:
        with session(read_only=True) as db:
            items = run_view(db, profile=get_profile(db, profile_id), view=view, limit=limit, minimum=minimum)
    except StreamHavenError as e:
        fail(str(e))

    if json_output:
        echo_json({"status": "ok", "view": view, "total": len(items), "items": items})
        return
    if not items:
        typer.echo("No content found")
        return
    for item in items:
        typer.echo(f"{item['id']}: {item['title']} [{item['kind']}]")


@app.command("views")
def views():
    """Show the available --view names."""
    for name, content_view in VIEWS.items():
        typer.echo(f"{name}: {content_view.description}")


@app.command("stats")
def stats(
    profile_id: int = typer.Option(..., "--profile", help="Profile id"),
    json_output: bool = typer.Option(False, "--json", help="Output in JSON format"),
):
    """Show library totals for a profile."""
    try:
        with session(read_only=True) as db:
            result = content_statistics(db, profile=get_profile(db, profile_id))
    except StreamHavenError as e:
        fail(str(e))

    if json_output:
        echo_json({"status": "ok", **result})
        return
    for key, value in result.items():
        typer.echo(f"{key.replace('_', ' ')}: {value}")
