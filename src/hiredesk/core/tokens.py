"""Single-use, expiring tokens.

One state machine serves both account approval and password reset:

    issued --redeem--> redeemed
           +-------> expired       (now > expires_at, detected on redeem)
           +-------> already_used  (a prior redeem won)

Only the SHA-256 digest of a token is stored. Redeeming claims the row with
an update guarded by ``used = false`` and applies the bound side effect in
the same transaction, so a token takes effect at most once even when two
requests race.
"""

from __future__ import annotations

import logging
from collections.abc import Callable
from dataclasses import dataclass
from datetime import timedelta
from typing import Any

from sqlalchemy.orm import Session

from hiredesk.core.security import digest_token, generate_token
from hiredesk.db.base import as_utc, utcnow
from hiredesk.db.models import ApprovalToken, PasswordResetToken, TokenMixin
from hiredesk.db.repositories import Repository
from hiredesk.db.session import Database
from hiredesk.errors import (
    HiredeskError,
    NotFoundError,
    TokenAlreadyUsedError,
    TokenExpiredError,
    TokenNotFoundError,
)
from hiredesk.types import RedemptionOutcome, TokenPurposeName

logger = logging.getLogger(__name__)

SideEffect = Callable[..., None]


@dataclass(frozen=True, slots=True)
class TokenPurpose:
    name: TokenPurposeName
    model: type[TokenMixin]
    apply: SideEffect


def _approve_account(repo: Repository, account_id: int) -> None:
    repo.mark_approved(account_id, approved_by=None, at=utcnow())


def _replace_password(repo: Repository, account_id: int, *, password_hash: str) -> None:
    if not repo.set_password_hash(account_id, password_hash):
        raise NotFoundError("account not found")


APPROVAL = TokenPurpose(name="approval", model=ApprovalToken, apply=_approve_account)
PASSWORD_RESET = TokenPurpose(name="password_reset", model=PasswordResetToken, apply=_replace_password)


class TokenService:
    def __init__(self, database: Database, purpose: TokenPurpose):
        self.database = database
        self.purpose = purpose

    def issue(self, account_id: int, email: str, ttl: timedelta) -> str:
        raw_token = generate_token()
        with self.database.session() as session:
            Repository(session).add_token(
                self.purpose.model,
                account_id=account_id,
                token=digest_token(raw_token),
                email=email,
                expires_at=utcnow() + ttl,
                used=False,
            )
            session.commit()
        logger.info("Issued %s token for account id=%s", self.purpose.name, account_id)
        return raw_token

    def issue_decoy(self) -> None:
        """Spend the work of an issue without storing anything."""
        digest = digest_token(generate_token())
        with self.database.session() as session:
            Repository(session).get_token(self.purpose.model, digest)

    def redeem(self, raw_token: str, **effect: Any) -> int:
        """Redeem a token and apply its side effect.

        Returns the account id the token was bound to. Raises
        TokenNotFoundError, TokenAlreadyUsedError or TokenExpiredError.
        """
        with self.database.session() as session:
            account_id = self._redeem(session, raw_token, effect)
            session.commit()
        logger.info("Redeemed %s token for account id=%s", self.purpose.name, account_id)
        return account_id

    def _redeem(self, session: Session, raw_token: str, effect: dict[str, Any]) -> int:
        repo = Repository(session)
        model = self.purpose.model
        row = repo.get_token(model, digest_token(raw_token or ""))
        if row is None:
            raise TokenNotFoundError(f"{self.purpose.name} token not found")
        if row.used:
            raise TokenAlreadyUsedError(f"{self.purpose.name} token has already been used")

        now = utcnow()
        if now > as_utc(row.expires_at):
            raise TokenExpiredError(f"{self.purpose.name} token has expired")

        if not repo.claim_token(model, row.id, at=now):
            raise TokenAlreadyUsedError(f"{self.purpose.name} token has already been used")
        self.purpose.apply(repo, row.account_id, **effect)
        return row.account_id


def outcome_of(error: HiredeskError | None) -> RedemptionOutcome:
    if error is None:
        return "redeemed"
    if isinstance(error, TokenExpiredError):
        return "expired"
    if isinstance(error, TokenAlreadyUsedError):
        return "already_used"
    if isinstance(error, TokenNotFoundError):
        return "not_found"
    raise error
