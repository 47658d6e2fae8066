from __future__ import annotations

import logging
from pathlib import Path
from typing import Any

from hiredesk.db import models  # noqa: F401
from hiredesk.db.base import Base
from hiredesk.db.migrations import MigrationRunner
from hiredesk.db.session import Database

logger = logging.getLogger(__name__)


def is_sqlite(database: Database) -> bool:
    return database.engine.url.get_backend_name() == "sqlite"


def ensure_sqlite_directory(database: Database) -> None:
    path = database.engine.url.database
    if path and path != ":memory:":
        Path(path).parent.mkdir(parents=True, exist_ok=True)


def init_database(database: Database) -> dict[str, Any]:
    """Bring the schema up to date.

    PostgreSQL runs the packaged SQL migrations. SQLite, used for local
    development and tests, gets its tables straight from the ORM models.
    """
    if is_sqlite(database):
        ensure_sqlite_directory(database)
        Base.metadata.create_all(bind=database.engine)
        logger.info("Created SQLite schema at %s", database.engine.url.database)
        return {"backend": "sqlite", "tables": sorted(Base.metadata.tables)}

    report = MigrationRunner(database.engine, database.settings.migrations_dir).run()
    return {"backend": database.engine.url.get_backend_name(), **report.model_dump()}
