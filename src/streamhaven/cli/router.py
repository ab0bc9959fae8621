"""
Command group registry for the streamhaven CLI.

Every group (``source``, ``epg``, ...) is its own Typer app. The router mounts
them on the root app in a fixed order and remembers what it mounted, so the
set of groups can be checked without parsing ``--help`` output.
"""

from __future__ import annotations

from collections.abc import Iterable
from dataclasses import dataclass

import typer


@dataclass(frozen=True)
class CommandGroup:
    name: str
    app: typer.Typer
    help_text: str | None = None


class CliRouter:
    """Mounts command groups on a root Typer app."""

    def __init__(self, root_app: typer.Typer) -> None:
        self.root_app = root_app
        self._groups: dict[str, CommandGroup] = {}

    def register(self, name: str, command_group: typer.Typer, *, help_text: str | None = None) -> None:
        """
        Mount ``command_group`` under ``name``.

        Raises:
            ValueError: If a group with that name is already mounted
        """
        if name in self._groups:
            raise ValueError(f"Command group '{name}' is already registered")
        self.root_app.add_typer(command_group, name=name, help=help_text)
        self._groups[name] = CommandGroup(name=name, app=command_group, help_text=help_text)

    def register_all(self, groups: Iterable[CommandGroup]) -> None:
        for group in groups:
            self.register(group.name, group.app, help_text=group.help_text)

    def get_registered_groups(self) -> dict[str, CommandGroup]:
        return dict(self._groups)

    def list_registered_groups(self) -> list[str]:
        """Group names in mount order."""
        return list(self._groups)


_router: CliRouter | None = None


def get_router(root_app: typer.Typer) -> CliRouter:
    """Return the process-wide router for ``root_app``, creating it on first use."""
    global _router
    if _router is None or _router.root_app is not root_app:
        _router = CliRouter(root_app)
    return _router
