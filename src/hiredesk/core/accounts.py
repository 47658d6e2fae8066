from __future__ import annotations

import logging
import re
from typing import Any

from sqlalchemy.exc import IntegrityError
from sqlalchemy.orm import Session

from hiredesk.config import Settings
from hiredesk.core.security import PasswordHasher
from hiredesk.db.base import utcnow
from hiredesk.db.models import Account
from hiredesk.db.repositories import Repository
from hiredesk.db.session import Database
from hiredesk.errors import (
    ConflictError,
    ForbiddenError,
    NotFoundError,
    UnauthorizedError,
    ValidationError,
)
from hiredesk.types import MEMBER_ROLES

logger = logging.getLogger(__name__)

EMAIL_PATTERN = re.compile(r"^[a-zA-Z0-9_.+-]+@[a-zA-Z0-9-]+\.[a-zA-Z0-9-.]+$")
USERNAME_PATTERN = re.compile(r"^[a-z0-9_.-]{3,120}$")

INVALID_CREDENTIALS = "invalid credentials"
SUPER_ADMIN_USERNAME = "superadmin"


def normalize_email(email: str) -> str:
    value = (email or "").strip().lower()
    if not EMAIL_PATTERN.match(value):
        raise ValidationError("invalid email address")
    return value


def normalize_username(username: str) -> str:
    value = (username or "").strip().lower()
    if not USERNAME_PATTERN.match(value):
        raise ValidationError("username must be 3-120 characters of letters, digits, '.', '_' or '-'")
    return value


def _super_admin_username(repo: Repository, email: str) -> str:
    # The local part when usable, else "superadmin" with the first free numeric suffix.
    local_part = re.sub(r"[^a-z0-9_.-]", "", email.split("@")[0])
    if USERNAME_PATTERN.match(local_part) and not repo.username_taken(local_part):
        return local_part
    username, suffix = SUPER_ADMIN_USERNAME, 1
    while repo.username_taken(username):
        suffix += 1
        username = f"{SUPER_ADMIN_USERNAME}{suffix}"
    return username


class AccountService:
    def __init__(self, database: Database, *, settings: Settings, hasher: PasswordHasher | None = None):
        self.database = database
        self.settings = settings
        self.hasher = hasher or PasswordHasher(settings.bcrypt_rounds)

    def hash_password(self, password: str) -> str:
        if not password or len(password) < self.settings.min_password_length:
            raise ValidationError(
                f"password must be at least {self.settings.min_password_length} characters"
            )
        return self.hasher.hash(password)

    def create_root_account(self, company_name: str, email: str, username: str, password: str) -> Account:
        company_name = (company_name or "").strip()
        if not company_name:
            raise ValidationError("company name is required")
        email = normalize_email(email)
        username = normalize_username(username)
        password_hash = self.hash_password(password)

        with self.database.session() as session:
            account = self._insert(
                session,
                company_name=company_name,
                email=email,
                username=username,
                password_hash=password_hash,
                role="admin",
                is_approved=False,
            )
        logger.info("Created tenant root account id=%s", account.id)
        return account

    def create_sub_account(
        self, creator_id: int, role: str, email: str, username: str, password: str
    ) -> Account:
        if role not in MEMBER_ROLES:
            raise ValidationError("role must be recruiter or partner")
        email = normalize_email(email)
        username = normalize_username(username)
        password_hash = self.hash_password(password)

        with self.database.session() as session:
            repo = Repository(session)
            creator = repo.get_account(creator_id)
            if creator is None:
                raise NotFoundError("creator account not found")
            if not creator.is_admin or not creator.is_approved:
                raise ForbiddenError("only approved admins can create team members")
            tenant_root = repo.get_account(creator.tenant_root_id)
            if tenant_root is None:
                raise NotFoundError("tenant root not found")

            # Members are vouched for by the admin who creates them.
            account = self._insert(
                session,
                company_name=tenant_root.company_name,
                email=email,
                username=username,
                password_hash=password_hash,
                role=role,
                parent_account_id=tenant_root.id,
                created_by=creator.id,
                is_approved=True,
                approved_at=utcnow(),
                approved_by=creator.id,
            )
        logger.info(
            "Created %s account id=%s tenant=%s creator=%s", role, account.id, account.parent_account_id, creator_id
        )
        return account

    def _insert(self, session: Session, **values: Any) -> Account:
        try:
            account = Repository(session).add_account(**values)
            session.commit()
        except IntegrityError as exc:
            session.rollback()
            raise ConflictError("account with this email or username already exists") from exc
        return account

    def get_account(self, account_id: int) -> Account:
        with self.database.session() as session:
            account = Repository(session).get_account(account_id)
        if account is None:
            raise NotFoundError("account not found")
        return account

    def approve(self, account_id: int, approver_id: int | None = None) -> Account:
        with self.database.session() as session:
            repo = Repository(session)
            if approver_id is not None:
                approver = repo.get_account(approver_id)
                if approver is None or not approver.is_tenant_root or not approver.is_approved:
                    raise ForbiddenError("only a super admin can approve accounts")

            account = repo.get_account(account_id)
            if account is None:
                raise NotFoundError("account not found")
            if account.is_approved:
                return account

            if repo.mark_approved(account_id, approved_by=approver_id, at=utcnow()):
                session.commit()
                logger.info("Approved account id=%s by=%s", account_id, approver_id)
            session.refresh(account)
        return account

    def authenticate(self, identifier: str, password: str) -> Account:
        lookup = (identifier or "").strip().lower()
        with self.database.session() as session:
            matches = Repository(session).find_accounts_by_identifier(lookup) if lookup else []

        if len(matches) != 1:
            self.hasher.dummy_verify()
            raise UnauthorizedError(INVALID_CREDENTIALS)

        account = matches[0]
        if not self.hasher.verify(password or "", account.password_hash):
            raise UnauthorizedError(INVALID_CREDENTIALS)
        if not account.is_approved:
            raise ForbiddenError("account is awaiting approval")
        return account

    def list_team(self, admin_id: int, role: str | None = None) -> list[Account]:
        if role is not None and role not in MEMBER_ROLES:
            raise ValidationError("role must be recruiter or partner")
        with self.database.session() as session:
            repo = Repository(session)
            admin = repo.get_account(admin_id)
            if admin is None or not admin.is_admin:
                raise ForbiddenError("only admins can view team members")
            return repo.list_members(admin.tenant_root_id, role)

    def list_pending_approvals(self, viewer_id: int) -> list[Account]:
        with self.database.session() as session:
            repo = Repository(session)
            viewer = repo.get_account(viewer_id)
            if viewer is None or not viewer.is_tenant_root:
                raise ForbiddenError("only a super admin can view pending approvals")
            return repo.list_pending_accounts()

    def change_password(self, account_id: int, current_password: str, new_password: str) -> None:
        new_hash = self.hash_password(new_password)
        with self.database.session() as session:
            repo = Repository(session)
            account = repo.get_account(account_id)
            if account is None:
                raise NotFoundError("account not found")
            if not self.hasher.verify(current_password or "", account.password_hash):
                raise UnauthorizedError("current password is incorrect")
            repo.set_password_hash(account_id, new_hash)
            session.commit()
        logger.info("Password changed for account id=%s", account_id)

    def reset_member_password(self, admin_id: int, member_id: int, new_password: str) -> None:
        new_hash = self.hash_password(new_password)
        with self.database.session() as session:
            repo = Repository(session)
            admin = repo.get_account(admin_id)
            if admin is None or not admin.is_admin:
                raise ForbiddenError("only admins can reset member passwords")
            member = repo.get_account(member_id)
            if member is None or member.is_admin or member.parent_account_id != admin.tenant_root_id:
                raise NotFoundError("team member not found")
            repo.set_password_hash(member_id, new_hash)
            session.commit()
        logger.info("Admin id=%s reset password for member id=%s", admin_id, member_id)

    def update_profile(self, account_id: int, *, username: str, company_name: str | None = None) -> Account:
        username = normalize_username(username)
        with self.database.session() as session:
            repo = Repository(session)
            account = repo.get_account(account_id)
            if account is None:
                raise NotFoundError("account not found")
            if account.is_admin:
                company_name = (company_name or "").strip()
                if not company_name:
                    raise ValidationError("company name is required")
                account.company_name = company_name
            account.username = username
            try:
                session.commit()
            except IntegrityError as exc:
                session.rollback()
                raise ConflictError("username already taken") from exc
            session.refresh(account)
        return account

    def ensure_super_admin(self, company_name: str, email: str, password: str) -> Account:
        """Create or re-approve the platform's first tenant root; safe to call repeatedly."""
        email = normalize_email(email)
        with self.database.session() as session:
            repo = Repository(session)
            existing = repo.find_account_by_email(email)
            username = None if existing is not None else _super_admin_username(repo, email)
        if existing is not None:
            if not existing.is_tenant_root:
                raise ConflictError("email belongs to a team member account")
            return self.approve(existing.id)

        account = self.create_root_account(company_name, email, username, password)
        return self.approve(account.id)
