"""Database connection and schema setup."""

from __future__ import annotations

import os
from contextlib import contextmanager
from typing import Iterator, Optional

from sqlalchemy import create_engine
from sqlalchemy.engine import make_url
from sqlalchemy.exc import ArgumentError, SQLAlchemyError
from sqlalchemy.orm import Session, sessionmaker
from sqlalchemy.pool import StaticPool

from womens_shop.models import Base

DEFAULT_URL = "sqlite:///womens_shop.db"
URL_ENV_VAR = "WOMENS_SHOP_DATABASE_URL"


def _engine_options(url) -> dict:
    if url.get_backend_name() != "sqlite":
        return {}
    options: dict = {"connect_args": {"check_same_thread": False}}
    if url.database in (None, "", ":memory:"):
        options["poolclass"] = StaticPool
    return options


class Database:
    """A connected database whose tables match the shop models."""

    def __init__(self, url: str) -> None:
        try:
            parsed = make_url(url)
            engine = create_engine(parsed, **_engine_options(parsed))
        except (ArgumentError, ImportError) as exc:
            raise RuntimeError(f"Failed to connect to database: {exc}") from exc
        try:
            with engine.connect():
                pass
        except SQLAlchemyError as exc:
            engine.dispose()
            raise RuntimeError(f"Failed to connect to database: {exc}") from exc
        try:
            Base.metadata.create_all(engine)
        except SQLAlchemyError as exc:
            engine.dispose()
            raise RuntimeError(f"Migrate failed: {exc}") from exc
        self.engine = engine
        self._sessions = sessionmaker(engine, expire_on_commit=False)

    @contextmanager
    def session(self) -> Iterator[Session]:
        """Yield a session that commits on success and rolls back on error."""
        session = self._sessions()
        try:
            yield session
            session.commit()
        except BaseException:
            session.rollback()
            raise
        finally:
            session.close()


def init_db(url: Optional[str] = None) -> Database:
    """Connect to ``url`` (or the configured default) and create the tables."""
    database = Database(url or os.environ.get(URL_ENV_VAR, DEFAULT_URL))
    print("Successfully connected to Database!!!")
    return database