from __future__ import annotations

from fastapi import Depends, HTTPException, Request, status
from fastapi.security import HTTPAuthorizationCredentials, HTTPBearer

from hiredesk.config import Settings
from hiredesk.core.accounts import AccountService
from hiredesk.core.onboarding import AuthWorkflows
from hiredesk.core.resources import TenantResources
from hiredesk.core.security import decode_access_token
from hiredesk.db.models import Account
from hiredesk.errors import NotFoundError

bearer_scheme = HTTPBearer(auto_error=False)


def get_settings_dep(request: Request) -> Settings:
    return request.app.state.settings


def get_workflows(request: Request) -> AuthWorkflows:
    return request.app.state.workflows


def get_accounts(request: Request) -> AccountService:
    return request.app.state.workflows.accounts


def get_resources(request: Request) -> TenantResources:
    return request.app.state.resources


def get_current_account(
    credentials: HTTPAuthorizationCredentials | None = Depends(bearer_scheme),
    settings: Settings = Depends(get_settings_dep),
    accounts: AccountService = Depends(get_accounts),
) -> Account:
    credentials_exception = HTTPException(
        status_code=status.HTTP_401_UNAUTHORIZED,
        detail="Could not validate credentials",
        headers={"WWW-Authenticate": "Bearer"},
    )
    if credentials is None:
        raise credentials_exception

    account_id = decode_access_token(settings, credentials.credentials)
    if account_id is None:
        raise credentials_exception

    try:
        account = accounts.get_account(account_id)
    except NotFoundError as exc:
        raise credentials_exception from exc
    if not account.is_approved:
        raise HTTPException(status_code=status.HTTP_403_FORBIDDEN, detail="account is awaiting approval")
    return account
