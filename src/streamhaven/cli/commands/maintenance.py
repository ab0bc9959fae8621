"""
Maintenance command group.
"""

from __future__ import annotations

import signal
import threading

import typer

from ...catalog.denormalization import DenormalizationEngine
from ...infra.exceptions import StreamHavenError
from ...infra.uow import session
from ._output import echo_json, fail

app = typer.Typer()


@app.command("rebuild-derived")
def rebuild_derived(json_output: bool = typer.Option(False, "--json", help="Output in JSON format")):
    """
    Recompute the cached favorite, progress and guide fields of all content.

    Ctrl-C stops the rebuild after the current item; work done so far is kept.
    """
    cancel = threading.Event()
    previous = signal.signal(signal.SIGINT, lambda *_: cancel.set())
    try:
        with session() as db:
            summary = DenormalizationEngine().rebuild_denormalized_fields(db, cancel_event=cancel)
    except StreamHavenError as e:
        fail(str(e))
    finally:
        signal.signal(signal.SIGINT, previous)

    if json_output:
        echo_json(summary)
        return
    state = "Cancelled" if summary["cancelled"] else "Rebuilt"
    typer.echo(
        f"{state}: {summary['channels']} channels, {summary['movies']} movies, "
        f"{summary['series']} series ({summary['skipped']} skipped)"
    )
