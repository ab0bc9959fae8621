"""
Profile command group.

Profiles own playlist sources and choose how their content is presented:
``combined`` groups duplicates across sources, ``single`` lists each record
on its own.
"""

from __future__ import annotations

import typer

from ...infra.exceptions import StreamHavenError
from ...infra.uow import session
from ...usecases.lookup import get_profile
from ...usecases.profile_add import add_profile, parse_source_mode
from ...usecases.profile_list import list_profiles
from ...usecases.profile_mode import set_source_mode
from ._output import echo_json, fail

app = typer.Typer()


@app.command("add")
def add(
    name: str = typer.Option(..., "--name", help="Profile name"),
    mode: str = typer.Option("combined", "--mode", help="combined or single"),
    adult: bool = typer.Option(True, "--adult/--kids", help="Adult or kids profile"),
    json_output: bool = typer.Option(False, "--json", help="Output in JSON format"),
):
    """Create a profile."""
    try:
        with session() as db:
            result = add_profile(db, name=name, source_mode=parse_source_mode(mode), is_adult=adult)
    except StreamHavenError as e:
        fail(str(e))

    if json_output:
        echo_json(result)
    else:
        typer.echo(f"Created profile {result['id']}: {result['name']} ({result['source_mode']})")


@app.command("list")
def list_all(json_output: bool = typer.Option(False, "--json", help="Output in JSON format")):
    """List profiles."""
    try:
        with session(read_only=True) as db:
            profiles = list_profiles(db)
    except StreamHavenError as e:
        fail(str(e))

    if json_output:
        echo_json({"status": "ok", "total": len(profiles), "profiles": profiles})
        return
    if not profiles:
        typer.echo("No profiles found")
        return
    for p in profiles:
        typer.echo(f"{p['id']}: {p['name']} [{p['source_mode']}]")


@app.command("mode")
def mode(
    profile_id: int = typer.Argument(..., help="Profile id"),
    source_mode: str = typer.Argument(..., help="combined or single"),
):
    """Switch a profile between combined and single source mode."""
    try:
        with session() as db:
            result = set_source_mode(db, get_profile(db, profile_id), source_mode)
    except StreamHavenError as e:
        fail(str(e))
    typer.echo(f"Profile {result['id']} now uses {result['source_mode']} mode")
