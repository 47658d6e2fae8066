from __future__ import annotations

import json
from pathlib import Path

import typer
import uvicorn

from hiredesk.api.app import create_app
from hiredesk.config import get_settings
from hiredesk.core.onboarding import AuthWorkflows
from hiredesk.db.init import init_database, is_sqlite
from hiredesk.db.migrations import MigrationRunner
from hiredesk.db.session import Database
from hiredesk.errors import FatalMigrationError, HiredeskError
from hiredesk.logging_config import configure_logging

app = typer.Typer(help="Hiredesk CLI")
migrations_app = typer.Typer(help="Schema migrations")

app.add_typer(migrations_app, name="migrations")


def _database() -> Database:
    configure_logging()
    return Database(get_settings())


def _runner(database: Database, directory: Path | None) -> MigrationRunner:
    return MigrationRunner(database.engine, directory or database.settings.migrations_dir)


def _migration_failure(exc: FatalMigrationError) -> dict[str, object]:
    return {"ok": False, "file": exc.filename, "statement": exc.statement_index, "error": exc.reason}


@app.command("init")
def init_cmd() -> None:
    """Create the schema: packaged migrations on PostgreSQL, ORM tables on SQLite."""
    database = _database()
    try:
        result = init_database(database)
    except FatalMigrationError as exc:
        typer.echo(json.dumps(_migration_failure(exc), indent=2), err=True)
        raise typer.Exit(code=1) from exc
    finally:
        database.dispose()
    typer.echo(json.dumps({"ok": True, **result}, indent=2))


@app.command("migrate")
def migrate(directory: Path | None = typer.Option(None, "--dir", file_okay=False)) -> None:
    """Apply every unapplied migration file in filename order."""
    database = _database()
    if directory is None and is_sqlite(database):
        database.dispose()
        message = "packaged migrations target PostgreSQL; use `hiredesk init` for SQLite"
        typer.echo(json.dumps({"ok": False, "error": message}, indent=2), err=True)
        raise typer.Exit(code=1)
    try:
        report = _runner(database, directory).run()
    except FatalMigrationError as exc:
        typer.echo(json.dumps(_migration_failure(exc), indent=2), err=True)
        raise typer.Exit(code=1) from exc
    finally:
        database.dispose()
    typer.echo(json.dumps({"ok": True, **report.model_dump()}, indent=2))


@migrations_app.command("pending")
def migrations_pending(directory: Path | None = typer.Option(None, "--dir", file_okay=False)) -> None:
    database = _database()
    try:
        pending = [path.name for path in _runner(database, directory).pending_files()]
    finally:
        database.dispose()
    typer.echo(json.dumps({"pending": pending}, indent=2))


@app.command("seed-admin")
def seed_admin() -> None:
    """Create (or re-approve) the super admin from SUPER_ADMIN_* settings."""
    database = _database()
    try:
        account = AuthWorkflows(database, settings=database.settings).ensure_super_admin()
    except HiredeskError as exc:
        typer.echo(json.dumps({"ok": False, "error": exc.message}, indent=2), err=True)
        raise typer.Exit(code=1) from exc
    finally:
        database.dispose()
    typer.echo(json.dumps({"ok": True, "id": account.id, "email": account.email}, indent=2))


@app.command("issue-approval")
def issue_approval(account_id: int = typer.Option(..., "--account-id")) -> None:
    """Issue a fresh approval token for an account and print its link."""
    database = _database()
    workflows = AuthWorkflows(database, settings=database.settings)
    try:
        account = workflows.accounts.get_account(account_id)
        raw_token = workflows.request_approval(account)
    except HiredeskError as exc:
        typer.echo(json.dumps({"ok": False, "error": exc.message}, indent=2), err=True)
        raise typer.Exit(code=1) from exc
    finally:
        database.dispose()
    typer.echo(json.dumps({"ok": True, "link": workflows.approval_link(raw_token)}, indent=2))


@app.command("serve")
def serve(
    host: str | None = typer.Option(None, "--host"),
    port: int | None = typer.Option(None, "--port"),
) -> None:
    configure_logging()
    settings = get_settings()
    database = Database(settings)
    try:
        init_database(database)
    finally:
        database.dispose()
    app_instance = create_app(settings)
    uvicorn.run(app_instance, host=host or settings.app_host, port=port or settings.app_port)


if __name__ == "__main__":
    app()
