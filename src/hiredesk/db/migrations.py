"""Idempotent SQL migration runner.

Applies every ``*.sql`` file of a directory in filename order, once. Each
applied file is recorded in ``schema_migrations``; recorded files are never
executed again and their content is never re-checked.

Statements inside a file are executed one by one on an autocommit
connection. Failures meaning "the desired end state already holds" are
logged and skipped; anything else aborts the run with
:class:`~hiredesk.errors.FatalMigrationError`. A file is not atomic: an
abort can leave earlier statements applied and the file unrecorded, so
every statement must be safe to execute twice.
"""

from __future__ import annotations

import logging
import re
from pathlib import Path

from sqlalchemy import Connection, Engine, select, text
from sqlalchemy.exc import DBAPIError

from hiredesk.db.models import MigrationRecord
from hiredesk.errors import FatalMigrationError
from hiredesk.types import MigrationReport

logger = logging.getLogger(__name__)

DOLLAR_MARKER = "$$"

IGNORABLE_MESSAGES = (
    "already exists",
    "duplicate",
    "already installed",
)
MISSING_COLUMN_MESSAGE = re.compile(r"column .* does not exist|no such column", re.IGNORECASE)
INDEX_STATEMENT = re.compile(r"^create\s+(unique\s+)?index\b", re.IGNORECASE)

_RECORD_SQL = text(
    "INSERT INTO schema_migrations (filename) VALUES (:filename) ON CONFLICT (filename) DO NOTHING"
)


def split_statements(sql: str) -> list[str]:
    """Split a multi-statement script on top-level semicolons.

    Semicolons inside single-quoted literals, double-quoted identifiers and
    ``$$ ... $$`` blocks are kept. Unterminated quotes or blocks are flushed
    as a final statement; malformed SQL is left for the database to reject.
    """
    statements: list[str] = []
    current: list[str] = []
    in_single = False
    in_double = False
    in_dollar = False
    index = 0
    length = len(sql)

    while index < length:
        char = sql[index]

        if sql.startswith(DOLLAR_MARKER, index):
            in_dollar = not in_dollar
            current.append(DOLLAR_MARKER)
            index += len(DOLLAR_MARKER)
            continue

        if not in_dollar:
            if char == "'" and not in_double:
                in_single = not in_single
            elif char == '"' and not in_single:
                in_double = not in_double
            elif char == ";" and not in_single and not in_double:
                statement = "".join(current).strip()
                if statement:
                    statements.append(statement)
                current = []
                index += 1
                continue

        current.append(char)
        index += 1

    tail = "".join(current).strip()
    if tail:
        statements.append(tail)
    return statements


def _strip_leading_comments(statement: str) -> str:
    """Drop leading ``--`` line comments and ``/* ... */`` block comments."""
    body = statement.lstrip()
    while body.startswith(("--", "/*")):
        if body.startswith("--"):
            newline = body.find("\n")
            body = "" if newline == -1 else body[newline + 1 :]
        else:
            end = body.find("*/")
            body = "" if end == -1 else body[end + 2 :]
        body = body.lstrip()
    return body.rstrip()


def is_ignorable_error(statement: str, message: str) -> bool:
    lowered = message.lower()
    if any(marker in lowered for marker in IGNORABLE_MESSAGES):
        return True
    body = _strip_leading_comments(statement)
    return bool(INDEX_STATEMENT.match(body) and MISSING_COLUMN_MESSAGE.search(message))


def _error_message(exc: DBAPIError) -> str:
    return str(exc.orig).strip() if exc.orig is not None else str(exc)


class MigrationRunner:
    def __init__(self, engine: Engine, directory: Path | str):
        self.engine = engine
        self.directory = Path(directory)

    def _connect(self) -> Connection:
        return self.engine.connect().execution_options(isolation_level="AUTOCOMMIT")

    def ensure_tracking_table(self) -> None:
        with self._connect() as conn:
            MigrationRecord.__table__.create(conn, checkfirst=True)

    def applied_filenames(self) -> set[str]:
        with self._connect() as conn:
            return set(conn.scalars(select(MigrationRecord.filename)).all())

    def migration_files(self) -> list[Path]:
        if not self.directory.is_dir():
            logger.warning("Migration directory %s does not exist", self.directory)
            return []
        files = [path for path in self.directory.iterdir() if path.is_file() and path.suffix == ".sql"]
        return sorted(files, key=lambda path: path.name)

    def pending_files(self) -> list[Path]:
        self.ensure_tracking_table()
        applied = self.applied_filenames()
        return [path for path in self.migration_files() if path.name not in applied]

    def run(self) -> MigrationReport:
        self.ensure_tracking_table()
        applied = self.applied_filenames()
        report = MigrationReport()

        for path in self.migration_files():
            if path.name in applied:
                logger.debug("Skipping already applied migration %s", path.name)
                report.skipped.append(path.name)
                continue

            logger.info("Applying migration %s", path.name)
            self._apply_file(path, report)
            self._record(path.name)
            report.applied.append(path.name)

        logger.info(
            "Migrations complete applied=%s skipped=%s ignored_errors=%s",
            len(report.applied),
            len(report.skipped),
            report.ignored_errors,
        )
        return report

    def _apply_file(self, path: Path, report: MigrationReport) -> None:
        statements = split_statements(path.read_text(encoding="utf-8"))
        with self._connect() as conn:
            for number, statement in enumerate(statements, start=1):
                if not _strip_leading_comments(statement):
                    continue
                try:
                    conn.exec_driver_sql(statement)
                except DBAPIError as exc:
                    message = _error_message(exc)
                    if not is_ignorable_error(statement, message):
                        logger.error("Migration %s failed at statement #%s: %s", path.name, number, message)
                        raise FatalMigrationError(path.name, number, message) from exc
                    logger.warning(
                        "Ignoring error in %s statement #%s: %s", path.name, number, message
                    )
                    report.ignored_errors += 1
                    continue
                report.statements_executed += 1

    def _record(self, filename: str) -> None:
        with self._connect() as conn:
            conn.execute(_RECORD_SQL, {"filename": filename})
