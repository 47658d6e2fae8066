from __future__ import annotations

from datetime import datetime
from typing import Any

from sqlalchemy import func, or_, select, update
from sqlalchemy.orm import Session

from hiredesk.db.models import Account, Candidate, Job, JobPosition, TokenMixin


class Repository:
    """Query helpers over one session. Callers own the transaction boundary."""

    def __init__(self, session: Session):
        self.session = session

    def add_account(self, **values: Any) -> Account:
        account = Account(**values)
        self.session.add(account)
        self.session.flush()
        return account

    def get_account(self, account_id: int) -> Account | None:
        return self.session.get(Account, account_id)

    def find_accounts_by_identifier(self, identifier: str) -> list[Account]:
        statement = select(Account).where(
            or_(Account.email == identifier, Account.username == identifier)
        )
        return list(self.session.scalars(statement).all())

    def find_account_by_email(self, email: str) -> Account | None:
        return self.session.scalar(select(Account).where(Account.email == email))

    def username_taken(self, username: str) -> bool:
        return self.session.scalar(select(Account.id).where(Account.username == username)) is not None

    def list_members(self, tenant_root_id: int, role: str | None = None) -> list[Account]:
        statement = select(Account).where(Account.parent_account_id == tenant_root_id)
        if role is not None:
            statement = statement.where(Account.role == role)
        statement = statement.order_by(Account.created_at.desc(), Account.id.desc())
        return list(self.session.scalars(statement).all())

    def list_pending_accounts(self) -> list[Account]:
        statement = (
            select(Account)
            .where(Account.is_approved.is_(False))
            .order_by(Account.created_at.desc(), Account.id.desc())
        )
        return list(self.session.scalars(statement).all())

    def mark_approved(self, account_id: int, *, approved_by: int | None, at: datetime) -> bool:
        result = self.session.execute(
            update(Account)
            .where(Account.id == account_id, Account.is_approved.is_(False))
            .values(is_approved=True, approved_at=at, approved_by=approved_by)
        )
        return result.rowcount == 1

    def set_password_hash(self, account_id: int, password_hash: str) -> bool:
        result = self.session.execute(
            update(Account).where(Account.id == account_id).values(password_hash=password_hash)
        )
        return result.rowcount == 1

    def add_token(self, model: type[TokenMixin], **values: Any) -> TokenMixin:
        row = model(**values)
        self.session.add(row)
        self.session.flush()
        return row

    def get_token(self, model: type[TokenMixin], digest: str) -> TokenMixin | None:
        return self.session.scalar(select(model).where(model.token == digest))

    def claim_token(self, model: type[TokenMixin], token_id: int, *, at: datetime) -> bool:
        """Flip ``used`` only if still unused; the affected row count is the verdict."""
        result = self.session.execute(
            update(model)
            .where(model.id == token_id, model.used.is_(False))
            .values(used=True, used_at=at)
        )
        return result.rowcount == 1

    def add_candidate(self, **values: Any) -> Candidate:
        candidate = Candidate(**values)
        self.session.add(candidate)
        self.session.flush()
        return candidate

    def list_candidates(self, tenant_root_id: int, *, created_by: int | None = None) -> list[Candidate]:
        statement = select(Candidate).where(Candidate.account_id == tenant_root_id)
        if created_by is not None:
            statement = statement.where(Candidate.created_by == created_by)
        statement = statement.order_by(Candidate.created_at.desc(), Candidate.id.desc())
        return list(self.session.scalars(statement).all())

    def get_candidate(
        self, candidate_id: int, tenant_root_id: int, *, created_by: int | None = None
    ) -> Candidate | None:
        statement = select(Candidate).where(
            Candidate.id == candidate_id, Candidate.account_id == tenant_root_id
        )
        if created_by is not None:
            statement = statement.where(Candidate.created_by == created_by)
        return self.session.scalar(statement)

    def add_job(self, **values: Any) -> Job:
        job = Job(**values)
        self.session.add(job)
        self.session.flush()
        return job

    def list_jobs(self, tenant_root_id: int) -> list[Job]:
        statement = (
            select(Job)
            .where(Job.owner_account_id == tenant_root_id)
            .order_by(Job.created_at.desc(), Job.id.desc())
        )
        return list(self.session.scalars(statement).all())

    def get_job(self, job_id: int, tenant_root_id: int) -> Job | None:
        return self.session.scalar(
            select(Job).where(Job.id == job_id, Job.owner_account_id == tenant_root_id)
        )

    def add_job_position(self, **values: Any) -> JobPosition:
        position = JobPosition(**values)
        self.session.add(position)
        self.session.flush()
        return position

    def list_job_positions(self, tenant_root_id: int) -> list[JobPosition]:
        statement = (
            select(JobPosition)
            .where(JobPosition.owner_account_id == tenant_root_id)
            .order_by(JobPosition.name.asc())
        )
        return list(self.session.scalars(statement).all())

    def get_job_position(self, position_id: int, tenant_root_id: int) -> JobPosition | None:
        return self.session.scalar(
            select(JobPosition).where(
                JobPosition.id == position_id, JobPosition.owner_account_id == tenant_root_id
            )
        )

    def find_job_position_by_name(
        self, name: str, tenant_root_id: int, *, exclude_id: int | None = None
    ) -> JobPosition | None:
        statement = select(JobPosition).where(
            JobPosition.name == name, JobPosition.owner_account_id == tenant_root_id
        )
        if exclude_id is not None:
            statement = statement.where(JobPosition.id != exclude_id)
        return self.session.scalar(statement)

    def count_jobs_for_position(self, position_id: int) -> int:
        return self.session.scalar(
            select(func.count()).select_from(Job).where(Job.job_position_id == position_id)
        ) or 0

    def count_candidates_by_status(
        self, tenant_root_id: int, *, created_by: int | None = None
    ) -> dict[str, int]:
        statement = (
            select(Candidate.profile_status, func.count())
            .where(Candidate.account_id == tenant_root_id)
            .group_by(Candidate.profile_status)
        )
        if created_by is not None:
            statement = statement.where(Candidate.created_by == created_by)
        return {status: count for status, count in self.session.execute(statement)}

    def count_jobs_by_status(self, tenant_root_id: int) -> dict[str, int]:
        statement = (
            select(Job.status, func.count())
            .where(Job.owner_account_id == tenant_root_id)
            .group_by(Job.status)
        )
        return {status: count for status, count in self.session.execute(statement)}

    def count_members(self, tenant_root_id: int, role: str) -> int:
        return self.session.scalar(
            select(func.count())
            .select_from(Account)
            .where(Account.parent_account_id == tenant_root_id, Account.role == role)
        ) or 0

    def recent_candidates(
        self, tenant_root_id: int, limit: int, *, created_by: int | None = None
    ) -> list[tuple[Candidate, str | None]]:
        statement = (
            select(Candidate, Account.username)
            .outerjoin(Account, Candidate.created_by == Account.id)
            .where(Candidate.account_id == tenant_root_id)
            .order_by(Candidate.created_at.desc(), Candidate.id.desc())
            .limit(limit)
        )
        if created_by is not None:
            statement = statement.where(Candidate.created_by == created_by)
        return [(candidate, username) for candidate, username in self.session.execute(statement)]

    def recent_jobs(self, tenant_root_id: int, limit: int) -> list[tuple[Job, str | None]]:
        statement = (
            select(Job, Account.username)
            .outerjoin(Account, Job.created_by == Account.id)
            .where(Job.owner_account_id == tenant_root_id)
            .order_by(Job.created_at.desc(), Job.id.desc())
            .limit(limit)
        )
        return [(job, username) for job, username in self.session.execute(statement)]
