"""
Main CLI application using Typer with router-based command dispatch.

All command groups are registered through the CliRouter.
"""

from __future__ import annotations

import typer

from ..infra.logging import configure_logging
from .commands import content, db, epg, maintenance, profile, source
from .router import CommandGroup, get_router

COMMAND_GROUPS = (
    CommandGroup("db", db.app, "Database schema operations"),
    CommandGroup("profile", profile.app, "Viewer profile operations"),
    CommandGroup("source", source.app, "Playlist source management and ingest"),
    CommandGroup("epg", epg.app, "Electronic programme guide operations"),
    CommandGroup("content", content.app, "Grouped content and franchise views"),
    CommandGroup("maintenance", maintenance.app, "Cache maintenance operations"),
)

app = typer.Typer(help="StreamHaven content reconciliation CLI", no_args_is_help=True)

router = get_router(app)
router.register_all(COMMAND_GROUPS)


@app.callback()
def main(
    log_level: str | None = typer.Option(None, "--log-level", help="Override LOG_LEVEL"),
    log_format: str | None = typer.Option(None, "--log-format", help="json or console"),
):
    """StreamHaven operator CLI."""
    configure_logging(level=log_level, fmt=log_format)


if __name__ == "__main__":
    app()
