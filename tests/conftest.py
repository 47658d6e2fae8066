from __future__ import annotations

from collections.abc import Iterator
from pathlib import Path

import pytest
from fastapi.testclient import TestClient

from hiredesk.api.app import create_app
from hiredesk.config import Settings
from hiredesk.core.accounts import AccountService
from hiredesk.core.notifications import MemoryMailer
from hiredesk.core.onboarding import AuthWorkflows
from hiredesk.core.resources import TenantResources
from hiredesk.db.base import Base
from hiredesk.db.models import Account
from hiredesk.db.session import Database

OWNER_EMAIL = "owner@hiredesk.test"
PASSWORD = "Sup3rSecret!"


@pytest.fixture
def settings(tmp_path: Path) -> Settings:
    return Settings(
        _env_file=None,
        app_env="test",
        database_url=f"sqlite:///{tmp_path / 'hiredesk.db'}",
        bcrypt_rounds=4,
        secret_key="test-secret",
        super_admin_email=OWNER_EMAIL,
        super_admin_password=PASSWORD,
        public_api_url="http://api.hiredesk.test",
        frontend_url="http://app.hiredesk.test",
    )


@pytest.fixture
def database(settings: Settings) -> Iterator[Database]:
    database = Database(settings)
    Base.metadata.create_all(bind=database.engine)
    yield database
    database.dispose()


@pytest.fixture
def mailer() -> MemoryMailer:
    return MemoryMailer()


@pytest.fixture
def accounts(database: Database, settings: Settings) -> AccountService:
    return AccountService(database, settings=settings)


@pytest.fixture
def workflows(database: Database, settings: Settings, accounts: AccountService, mailer: MemoryMailer) -> AuthWorkflows:
    return AuthWorkflows(database, settings=settings, accounts=accounts, mailer=mailer)


@pytest.fixture
def resources(database: Database) -> TenantResources:
    return TenantResources(database)


@pytest.fixture
def client(settings: Settings, database: Database, mailer: MemoryMailer) -> TestClient:
    return TestClient(create_app(settings, database=database, mailer=mailer))


@pytest.fixture
def make_tenant(accounts: AccountService):
    """Create an approved tenant root account."""

    def _make(name: str) -> Account:
        account = accounts.create_root_account(name.title(), f"{name}@example.com", name, PASSWORD)
        return accounts.approve(account.id)

    return _make
