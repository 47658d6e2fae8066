import pytest

from hiredesk.db.migrations import is_ignorable_error


@pytest.mark.parametrize(
    "message",
    [
        'relation "accounts" already exists',
        "table people already exists",
        'constraint "accounts_role_check" for relation "accounts" already exists',
        "duplicate column name: nickname",
        'duplicate key value violates unique constraint "pg_type_typname_nsp_index"',
        'extension "pgcrypto" is already installed',
    ],
)
def test_already_applied_errors_are_ignorable(message: str) -> None:
    assert is_ignorable_error("ALTER TABLE accounts ADD COLUMN x INT", message)


def test_missing_column_is_ignorable_only_for_index_creation() -> None:
    pg_message = 'column "legacy" does not exist'
    assert is_ignorable_error("CREATE INDEX idx_people_legacy ON people(legacy)", pg_message)
    assert is_ignorable_error("create unique index idx_people_legacy on people(legacy)", "no such column: legacy")
    assert not is_ignorable_error("UPDATE people SET legacy = 1", pg_message)
    assert not is_ignorable_error("ALTER TABLE people DROP COLUMN legacy", "no such column: legacy")


def test_index_detection_skips_leading_comments() -> None:
    statement = "-- keep lookups fast\n\nCREATE INDEX IF NOT EXISTS idx_people_legacy ON people(legacy)"
    assert is_ignorable_error(statement, 'column "legacy" does not exist')


@pytest.mark.parametrize(
    "message",
    [
        'null value in column "name" of relation "people" violates not-null constraint',
        "NOT NULL constraint failed: people.name",
        'syntax error at or near "CREAT"',
        'relation "missing" does not exist',
    ],
)
def test_other_errors_are_fatal(message: str) -> None:
    assert not is_ignorable_error("INSERT INTO people (name) VALUES (NULL)", message)


def test_index_detection_skips_leading_block_comments() -> None:
    statement = "/* legacy lookups,\n   kept for reports */\n-- still needed\nCREATE UNIQUE INDEX idx_people_legacy ON people(legacy)"
    assert is_ignorable_error(statement, 'column "legacy" does not exist')


def test_comment_only_statement_is_not_an_index() -> None:
    assert not is_ignorable_error("/* CREATE INDEX idx ON people(legacy) */", "no such column: legacy")
    assert not is_ignorable_error("/* unterminated CREATE INDEX", "no such column: legacy")
