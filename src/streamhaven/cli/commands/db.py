"""
Database command group.
"""

from __future__ import annotations

import typer

from ...infra import db as db_module
from ._output import fail

app = typer.Typer()


@app.command("init")
def init_schema():
    """Create every table in the configured database."""
    try:
        db_module.create_schema()
    except Exception as e:
        fail(f"creating schema failed: {e}")
    typer.echo("Schema created")
