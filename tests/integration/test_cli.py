from __future__ import annotations

from collections.abc import Iterator
from pathlib import Path

import pytest
from typer.testing import CliRunner

from hiredesk.cli.app import app
from hiredesk.config import get_settings
from hiredesk.db.base import Base

runner = CliRunner()


@pytest.fixture
def cli_env(tmp_path: Path, monkeypatch: pytest.MonkeyPatch) -> Iterator[Path]:
    monkeypatch.setenv("DATABASE_URL", f"sqlite:///{tmp_path / 'cli.db'}")
    monkeypatch.setenv("BCRYPT_ROUNDS", "4")
    monkeypatch.setenv("SUPER_ADMIN_EMAIL", "owner@hiredesk.test")
    monkeypatch.setenv("SUPER_ADMIN_PASSWORD", "Sup3rSecret!")
    get_settings.cache_clear()
    sql_dir = tmp_path / "sql"
    sql_dir.mkdir()
    yield sql_dir
    get_settings.cache_clear()


def test_migrate_applies_then_reports_nothing_pending(cli_env: Path) -> None:
    (cli_env / "001_people.sql").write_text("CREATE TABLE IF NOT EXISTS people (id INTEGER PRIMARY KEY);")

    pending = runner.invoke(app, ["migrations", "pending", "--dir", str(cli_env)])
    assert pending.exit_code == 0
    assert "001_people.sql" in pending.stdout

    result = runner.invoke(app, ["migrate", "--dir", str(cli_env)])
    assert result.exit_code == 0
    assert '"ok": true' in result.stdout
    assert '"001_people.sql"' in result.stdout

    after = runner.invoke(app, ["migrations", "pending", "--dir", str(cli_env)])
    assert '"pending": []' in after.stdout


def test_migrate_exits_non_zero_on_fatal_error(cli_env: Path) -> None:
    (cli_env / "001_broken.sql").write_text("CREATE TABLE people (id INTEGER PRIMARY KEY);\nINSERT INTO nowhere VALUES (1);")

    result = runner.invoke(app, ["migrate", "--dir", str(cli_env)])

    assert result.exit_code == 1
    assert '"ok": false' in result.output
    assert "001_broken.sql" in result.output


def test_seed_admin_is_repeatable(cli_env: Path) -> None:
    assert runner.invoke(app, ["init"]).exit_code == 0

    first = runner.invoke(app, ["seed-admin"])
    second = runner.invoke(app, ["seed-admin"])

    assert first.exit_code == 0
    assert second.exit_code == 0
    assert '"email": "owner@hiredesk.test"' in second.stdout


def test_init_creates_sqlite_schema_in_missing_directory(
    tmp_path: Path, cli_env: Path, monkeypatch: pytest.MonkeyPatch
) -> None:
    db_path = tmp_path / "nested" / "data" / "hiredesk.db"
    monkeypatch.setenv("DATABASE_URL", f"sqlite:///{db_path}")
    get_settings.cache_clear()

    first = runner.invoke(app, ["init"])
    second = runner.invoke(app, ["init"])

    assert first.exit_code == 0
    assert second.exit_code == 0
    assert db_path.exists()
    assert '"backend": "sqlite"' in first.stdout
    for table in Base.metadata.tables:
        assert f'"{table}"' in first.stdout


def test_migrate_refuses_packaged_migrations_on_sqlite(cli_env: Path) -> None:
    result = runner.invoke(app, ["migrate"])

    assert result.exit_code == 1
    assert '"ok": false' in result.output
    assert "hiredesk init" in result.output
