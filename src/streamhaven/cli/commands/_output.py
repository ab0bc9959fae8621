"""
Shared output helpers for CLI commands.
"""

from __future__ import annotations

import json
from typing import Any

import typer


def echo_json(payload: Any) -> None:
    typer.echo(json.dumps(payload, indent=2, default=str))


def fail(message: str) -> None:
    typer.echo(f"Error: {message}", err=True)
    raise typer.Exit(1)
