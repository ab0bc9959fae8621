"""
Tests for CLI command group registration.
"""

import pytest
import typer

from streamhaven.cli.main import app, router
from streamhaven.cli.router import CliRouter, CommandGroup, get_router


def test_registers_groups_in_order():
    root = typer.Typer()
    cli_router = CliRouter(root)
    cli_router.register("alpha", typer.Typer(), help_text="First")
    cli_router.register("beta", typer.Typer())

    assert cli_router.list_registered_groups() == ["alpha", "beta"]
    assert cli_router.get_registered_groups()["alpha"].help_text == "First"


def test_duplicate_group_is_rejected():
    cli_router = CliRouter(typer.Typer())
    cli_router.register("alpha", typer.Typer())

    with pytest.raises(ValueError):
        cli_router.register("alpha", typer.Typer())


def test_application_groups():
    assert get_router(app) is router
    assert router.list_registered_groups() == ["db", "profile", "source", "epg", "content", "maintenance"]


def test_register_all():
    cli_router = CliRouter(typer.Typer())
    cli_router.register_all([CommandGroup("alpha", typer.Typer()), CommandGroup("beta", typer.Typer(), "Second")])

    assert cli_router.list_registered_groups() == ["alpha", "beta"]
