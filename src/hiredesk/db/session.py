from __future__ import annotations

from collections.abc import Iterator
from contextlib import contextmanager
from typing import Any

from sqlalchemy import Engine, create_engine
from sqlalchemy.exc import OperationalError
from sqlalchemy.exc import TimeoutError as PoolTimeoutError
from sqlalchemy.orm import Session, sessionmaker

from hiredesk.config import Settings
from hiredesk.errors import TransientStorageError


def _connect_args(settings: Settings) -> dict[str, Any]:
    url = settings.database_url
    if url.startswith("sqlite"):
        return {"check_same_thread": False, "timeout": settings.db_pool_timeout_sec}
    if url.startswith("postgresql"):
        return {
            "connect_timeout": settings.db_pool_timeout_sec,
            "options": f"-c statement_timeout={settings.db_statement_timeout_ms}",
        }
    return {}


def build_engine(settings: Settings) -> Engine:
    options: dict[str, Any] = {"connect_args": _connect_args(settings), "future": True}
    if not settings.database_url.startswith("sqlite"):
        options["pool_timeout"] = settings.db_pool_timeout_sec
        options["pool_pre_ping"] = True
    return create_engine(settings.database_url, **options)


class Database:
    """Owns one engine and its session factory; handed to services explicitly."""

    def __init__(self, settings: Settings, engine: Engine | None = None):
        self.settings = settings
        self.engine = engine or build_engine(settings)
        self.session_factory = sessionmaker(
            bind=self.engine, autoflush=False, autocommit=False, expire_on_commit=False, future=True
        )

    @contextmanager
    def session(self) -> Iterator[Session]:
        session = self.session_factory()
        try:
            yield session
        except (OperationalError, PoolTimeoutError) as exc:
            session.rollback()
            raise TransientStorageError("storage unavailable, retry later") from exc
        except Exception:
            session.rollback()
            raise
        finally:
            session.close()

    def dispose(self) -> None:
        self.engine.dispose()
