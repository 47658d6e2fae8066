from __future__ import annotations

import logging
from typing import Any

from sqlalchemy.exc import IntegrityError

from hiredesk.db.base import as_utc
from hiredesk.db.models import Account, Candidate, Job, JobPosition
from hiredesk.db.repositories import Repository
from hiredesk.db.session import Database
from hiredesk.errors import ConflictError, ForbiddenError, NotFoundError, ValidationError
from hiredesk.types import (
    ActivityItem,
    CandidateCounts,
    CandidateInput,
    CandidateStats,
    CandidateUpdate,
    DashboardStats,
    JobCounts,
    JobInput,
    JobUpdate,
)

logger = logging.getLogger(__name__)

RECENT_PER_KIND = 5
RECENT_ACTIVITY_LIMIT = 10


def _actor(repo: Repository, actor_id: int) -> Account:
    actor = repo.get_account(actor_id)
    if actor is None or not actor.is_approved:
        raise ForbiddenError("account is not allowed to act")
    return actor


def _own_rows_only(actor: Account) -> int | None:
    # Recruiters and partners see what they created; admins see the whole tenant.
    return None if actor.is_admin else actor.id


def _require_values(changes: dict[str, Any], *fields: str) -> None:
    for field in fields:
        if field in changes and (changes[field] is None or changes[field] == ""):
            raise ValidationError(f"{field} cannot be empty")


def _clean_description(description: str | None) -> str | None:
    return (description or "").strip() or None


class TenantResources:
    """Candidates, jobs and positions, always owned by the actor's tenant root."""

    def __init__(self, database: Database):
        self.database = database

    def create_candidate(self, actor_id: int, data: CandidateInput) -> Candidate:
        with self.database.session() as session:
            repo = Repository(session)
            actor = _actor(repo, actor_id)
            tenant_id = actor.tenant_root_id
            self._check_references(repo, tenant_id, job_id=data.job_id, job_position_id=data.job_position_id)
            candidate = repo.add_candidate(
                **data.model_dump(),
                account_id=tenant_id,
                created_by=actor.id,
            )
            session.commit()
        logger.info("Created candidate id=%s tenant=%s creator=%s", candidate.id, tenant_id, actor_id)
        return candidate

    def list_candidates(self, actor_id: int) -> list[Candidate]:
        with self.database.session() as session:
            repo = Repository(session)
            actor = _actor(repo, actor_id)
            return repo.list_candidates(actor.tenant_root_id, created_by=_own_rows_only(actor))

    def get_candidate(self, actor_id: int, candidate_id: int) -> Candidate:
        with self.database.session() as session:
            repo = Repository(session)
            actor = _actor(repo, actor_id)
            candidate = repo.get_candidate(
                candidate_id, actor.tenant_root_id, created_by=_own_rows_only(actor)
            )
        if candidate is None:
            raise NotFoundError("candidate not found")
        return candidate

    def update_candidate(self, actor_id: int, candidate_id: int, data: CandidateUpdate) -> Candidate:
        changes = data.model_dump(exclude_unset=True)
        if not changes:
            raise ValidationError("no fields provided to update")
        _require_values(changes, "name", "profile_status")
        with self.database.session() as session:
            repo = Repository(session)
            actor = _actor(repo, actor_id)
            candidate = repo.get_candidate(
                candidate_id, actor.tenant_root_id, created_by=_own_rows_only(actor)
            )
            if candidate is None:
                raise NotFoundError("candidate not found")
            self._check_references(
                repo,
                actor.tenant_root_id,
                job_id=changes.get("job_id"),
                job_position_id=changes.get("job_position_id"),
            )
            for field, value in changes.items():
                setattr(candidate, field, value)
            session.commit()
        logger.info("Updated candidate id=%s fields=%s by=%s", candidate_id, sorted(changes), actor_id)
        return candidate

    def candidate_stats(self, actor_id: int) -> CandidateStats:
        """Hired, rejected and still-open counts over the candidates the actor can see."""
        with self.database.session() as session:
            repo = Repository(session)
            actor = _actor(repo, actor_id)
            counts = repo.count_candidates_by_status(actor.tenant_root_id, created_by=_own_rows_only(actor))
        total = sum(counts.values())
        accepted = counts.get("hired", 0)
        rejected = counts.get("rejected", 0)
        return CandidateStats(
            total=total, accepted=accepted, rejected=rejected, pending=total - accepted - rejected
        )

    def delete_candidate(self, actor_id: int, candidate_id: int) -> None:
        with self.database.session() as session:
            repo = Repository(session)
            actor = _actor(repo, actor_id)
            candidate = repo.get_candidate(
                candidate_id, actor.tenant_root_id, created_by=_own_rows_only(actor)
            )
            if candidate is None:
                raise NotFoundError("candidate not found")
            session.delete(candidate)
            session.commit()
        logger.info("Deleted candidate id=%s by=%s", candidate_id, actor_id)

    def create_job(self, actor_id: int, data: JobInput) -> Job:
        with self.database.session() as session:
            repo = Repository(session)
            actor = _actor(repo, actor_id)
            if not actor.is_admin:
                raise ForbiddenError("only admins can create jobs")
            tenant_id = actor.tenant_root_id
            self._check_references(repo, tenant_id, job_position_id=data.job_position_id)
            try:
                job = repo.add_job(**data.model_dump(), owner_account_id=tenant_id, created_by=actor.id)
                session.commit()
            except IntegrityError as exc:
                session.rollback()
                raise ConflictError("job code already exists") from exc
        logger.info("Created job id=%s code=%s tenant=%s", job.id, job.job_code, tenant_id)
        return job

    def list_jobs(self, actor_id: int) -> list[Job]:
        with self.database.session() as session:
            repo = Repository(session)
            return repo.list_jobs(_actor(repo, actor_id).tenant_root_id)

    def update_job(self, actor_id: int, job_id: int, data: JobUpdate) -> Job:
        changes = data.model_dump(exclude_unset=True)
        if not changes:
            raise ValidationError("no fields provided to update")
        _require_values(changes, "title", "work_type", "positions", "status")
        with self.database.session() as session:
            repo = Repository(session)
            actor = _actor(repo, actor_id)
            if not actor.is_admin:
                raise ForbiddenError("only admins can update jobs")
            job = repo.get_job(job_id, actor.tenant_root_id)
            if job is None:
                raise NotFoundError("job not found")
            self._check_references(repo, actor.tenant_root_id, job_position_id=changes.get("job_position_id"))
            for field, value in changes.items():
                setattr(job, field, value)
            session.commit()
        logger.info("Updated job id=%s fields=%s by=%s", job_id, sorted(changes), actor_id)
        return job

    def create_job_position(self, actor_id: int, name: str, description: str | None = None) -> JobPosition:
        name = (name or "").strip()
        if not name:
            raise ValidationError("position name is required")
        with self.database.session() as session:
            repo = Repository(session)
            actor = _actor(repo, actor_id)
            if not actor.is_admin:
                raise ForbiddenError("only admins can create job positions")
            if repo.find_job_position_by_name(name, actor.tenant_root_id) is not None:
                raise ConflictError("a position with this name already exists")
            position = repo.add_job_position(
                name=name,
                description=_clean_description(description),
                owner_account_id=actor.tenant_root_id,
                created_by=actor.id,
            )
            session.commit()
        return position

    def update_job_position(
        self, actor_id: int, position_id: int, name: str, description: str | None = None
    ) -> JobPosition:
        name = (name or "").strip()
        if not name:
            raise ValidationError("position name is required")
        with self.database.session() as session:
            repo = Repository(session)
            actor = _actor(repo, actor_id)
            if not actor.is_admin:
                raise ForbiddenError("only admins can update job positions")
            tenant_id = actor.tenant_root_id
            position = repo.get_job_position(position_id, tenant_id)
            if position is None:
                raise NotFoundError("job position not found")
            if repo.find_job_position_by_name(name, tenant_id, exclude_id=position_id) is not None:
                raise ConflictError("a position with this name already exists")
            position.name = name
            position.description = _clean_description(description)
            session.commit()
        return position

    def delete_job_position(self, actor_id: int, position_id: int) -> None:
        with self.database.session() as session:
            repo = Repository(session)
            actor = _actor(repo, actor_id)
            if not actor.is_admin:
                raise ForbiddenError("only admins can delete job positions")
            position = repo.get_job_position(position_id, actor.tenant_root_id)
            if position is None:
                raise NotFoundError("job position not found")
            in_use = repo.count_jobs_for_position(position_id)
            if in_use:
                raise ValidationError(f"position is assigned to {in_use} job(s)")
            session.delete(position)
            session.commit()
        logger.info("Deleted job position id=%s by=%s", position_id, actor_id)

    def list_job_positions(self, actor_id: int) -> list[JobPosition]:
        with self.database.session() as session:
            repo = Repository(session)
            return repo.list_job_positions(_actor(repo, actor_id).tenant_root_id)

    def dashboard_stats(self, actor_id: int) -> DashboardStats:
        """Tenant job counts, candidate counts and the latest activity.

        Candidate figures follow the same visibility as :meth:`list_candidates`.
        Recruiter counts are reported to admins only.
        """
        with self.database.session() as session:
            repo = Repository(session)
            actor = _actor(repo, actor_id)
            tenant_id = actor.tenant_root_id
            own_rows = _own_rows_only(actor)
            job_counts = repo.count_jobs_by_status(tenant_id)
            candidate_counts = repo.count_candidates_by_status(tenant_id, created_by=own_rows)
            recruiters = repo.count_members(tenant_id, "recruiter") if actor.is_admin else 0
            recent_jobs = repo.recent_jobs(tenant_id, RECENT_PER_KIND)
            recent_candidates = repo.recent_candidates(tenant_id, RECENT_PER_KIND, created_by=own_rows)

        activity = [
            ActivityItem(
                type="job",
                title=job.title,
                status=job.status,
                created_at=as_utc(job.created_at),
                created_by=username,
            )
            for job, username in recent_jobs
        ]
        activity += [
            ActivityItem(
                type="candidate",
                title=candidate.name,
                status=candidate.profile_status,
                created_at=as_utc(candidate.created_at),
                created_by=username,
            )
            for candidate, username in recent_candidates
        ]
        activity.sort(key=lambda item: item.created_at, reverse=True)

        return DashboardStats(
            jobs=JobCounts(total=sum(job_counts.values()), **job_counts),
            candidates=CandidateCounts(
                total=sum(candidate_counts.values()),
                **{status.replace("-", "_"): count for status, count in candidate_counts.items()},
            ),
            recruiters=recruiters,
            recent_activity=activity[:RECENT_ACTIVITY_LIMIT],
        )

    @staticmethod
    def _check_references(
        repo: Repository, tenant_id: int, *, job_id: int | None = None, job_position_id: int | None = None
    ) -> None:
        if job_id is not None and repo.get_job(job_id, tenant_id) is None:
            raise NotFoundError("job not found")
        if job_position_id is not None and repo.get_job_position(job_position_id, tenant_id) is None:
            raise NotFoundError("job position not found")
