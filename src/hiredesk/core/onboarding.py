from __future__ import annotations

import logging
from datetime import timedelta
from urllib.parse import quote, urlencode

from hiredesk.config import Settings
from hiredesk.core.accounts import AccountService, normalize_email
from hiredesk.core.notifications import (
    LogMailer,
    Mailer,
    approval_request_mail,
    approved_mail,
    deliver,
    password_reset_mail,
)
from hiredesk.core.tokens import APPROVAL, PASSWORD_RESET, TokenService
from hiredesk.db.models import Account
from hiredesk.db.repositories import Repository
from hiredesk.db.session import Database
from hiredesk.errors import ValidationError

logger = logging.getLogger(__name__)


class AuthWorkflows:
    """Signup, approval and password-recovery flows built on the account and token services."""

    def __init__(
        self,
        database: Database,
        *,
        settings: Settings,
        accounts: AccountService | None = None,
        mailer: Mailer | None = None,
    ):
        self.database = database
        self.settings = settings
        self.accounts = accounts or AccountService(database, settings=settings)
        self.approvals = TokenService(database, APPROVAL)
        self.resets = TokenService(database, PASSWORD_RESET)
        self.mailer = mailer or LogMailer()

    @property
    def approval_ttl(self) -> timedelta:
        return timedelta(minutes=self.settings.approval_token_ttl_min)

    @property
    def reset_ttl(self) -> timedelta:
        return timedelta(minutes=self.settings.reset_token_ttl_min)

    def approval_link(self, raw_token: str) -> str:
        base = self.settings.public_api_url.rstrip("/")
        return f"{base}/api/auth/approve-by-token?{urlencode({'token': raw_token})}"

    def reset_link(self, raw_token: str, email: str) -> str:
        base = self.settings.frontend_url.rstrip("/")
        return f"{base}/reset-password?token={quote(raw_token)}&email={quote(email)}"

    def signup(self, company_name: str, email: str, username: str, password: str) -> Account:
        account = self.accounts.create_root_account(company_name, email, username, password)
        self.request_approval(account)
        return account

    def request_approval(self, account: Account) -> str:
        reviewer = self.settings.super_admin_email or account.email
        raw_token = self.approvals.issue(account.id, reviewer, self.approval_ttl)
        deliver(
            self.mailer,
            approval_request_mail(
                reviewer,
                username=account.username,
                company_name=account.company_name,
                link=self.approval_link(raw_token),
            ),
        )
        return raw_token

    def approve_by_token(self, raw_token: str) -> Account:
        account_id = self.approvals.redeem(raw_token)
        account = self.accounts.get_account(account_id)
        deliver(self.mailer, approved_mail(account.email, username=account.username))
        return account

    def approve_directly(self, account_id: int, approver_id: int) -> Account:
        already_approved = self.accounts.get_account(account_id).is_approved
        account = self.accounts.approve(account_id, approver_id)
        if not already_approved:
            deliver(self.mailer, approved_mail(account.email, username=account.username))
        return account

    def forgot_password(self, email: str) -> str | None:
        """Issue and mail a reset token; returns None when no account has that email."""
        email = normalize_email(email)
        with self.database.session() as session:
            account = Repository(session).find_account_by_email(email)
        if account is None:
            # Unknown emails still cost one token round trip.
            self.resets.issue_decoy()
            logger.info("Password reset requested for unknown email")
            return None

        raw_token = self.resets.issue(account.id, account.email, self.reset_ttl)
        deliver(self.mailer, password_reset_mail(account.email, link=self.reset_link(raw_token, account.email)))
        return raw_token

    def reset_password(self, raw_token: str, new_password: str) -> int:
        password_hash = self.accounts.hash_password(new_password)
        account_id = self.resets.redeem(raw_token, password_hash=password_hash)
        logger.info("Password reset completed for account id=%s", account_id)
        return account_id

    def ensure_super_admin(self) -> Account:
        if not self.settings.super_admin_email or not self.settings.super_admin_password:
            raise ValidationError("SUPER_ADMIN_EMAIL and SUPER_ADMIN_PASSWORD must be set")
        return self.accounts.ensure_super_admin(
            self.settings.super_admin_company,
            self.settings.super_admin_email,
            self.settings.super_admin_password,
        )
