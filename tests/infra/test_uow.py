"""
Tests for the unit-of-work session boundary.
"""

import pytest

from streamhaven.domain.entities import Profile
from streamhaven.infra.uow import session


def test_commits_on_success(file_db):
    with session() as db:
        db.add(Profile(name="Main"))

    with session() as db:
        assert [p.name for p in db.query(Profile)] == ["Main"]


def test_rolls_back_on_error(file_db):
    with pytest.raises(RuntimeError):
        with session() as db:
            db.add(Profile(name="Main"))
            db.flush()
            raise RuntimeError("boom")

    with session() as db:
        assert db.query(Profile).count() == 0


def test_savepoint_rollback_keeps_outer_work(file_db):
    with session() as db:
        db.add(Profile(name="Kept"))
        db.flush()
        with pytest.raises(RuntimeError):
            with db.begin_nested():
                db.add(Profile(name="Dropped"))
                db.flush()
                raise RuntimeError("boom")

    with session() as db:
        assert [p.name for p in db.query(Profile)] == ["Kept"]


def test_read_only_unit_never_commits(file_db):
    with session(read_only=True) as db:
        db.add(Profile(name="Main"))
        db.flush()

    with session() as db:
        assert db.query(Profile).count() == 0
