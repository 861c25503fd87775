from __future__ import annotations

from collections.abc import Generator
from contextlib import contextmanager

from sqlalchemy import create_engine
from sqlalchemy.orm import Session

from app.jury.db import transaction


@contextmanager
def script_session(db_url: str) -> Generator[Session, None, None]:
    """Session on its own short-lived engine; commits on a clean exit."""
    engine = create_engine(db_url, pool_pre_ping=True)
    s = Session(engine, autoflush=False, expire_on_commit=False)
    try:
        with transaction(s):
            yield s
    finally:
        s.close()
        engine.dispose()
