"""
Unit of work for StreamHaven.

CLI commands, batch jobs and each concurrent ingest worker open their own unit
of work here, so every one of them gets its own session and its own
commit/rollback boundary. Use cases never commit; they flush and leave the
outcome to the unit that called them.
"""

from __future__ import annotations

import contextlib
from collections.abc import Iterator

from sqlalchemy.orm import Session

from . import db as db_module


@contextlib.contextmanager
def session(*, read_only: bool = False) -> Iterator[Session]:
    """
    Open one unit of work on the application database.

    The block's changes are committed when it exits cleanly and rolled back
    when it raises. A ``read_only`` unit is always rolled back, so listing and
    query commands cannot persist a stray flush.

    Usage:
        with session() as db:
            add_profile(db, name="Living Room")
    """
    db = db_module.SessionLocal()
    try:
        yield db
        if read_only:
            db.rollback()
        else:
            db.commit()
    except Exception:
        db.rollback()
        raise
    finally:
        db.close()
