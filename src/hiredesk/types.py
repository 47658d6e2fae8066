from __future__ import annotations

from datetime import datetime
from typing import Literal

from pydantic import BaseModel, ConfigDict, Field

Role = Literal["admin", "recruiter", "partner"]
MemberRole = Literal["recruiter", "partner"]
TokenPurposeName = Literal["approval", "password_reset"]
RedemptionOutcome = Literal["redeemed", "not_found", "expired", "already_used"]
ProfileStatus = Literal["new", "screening", "interview", "offer", "hired", "rejected", "on-hold"]
WorkType = Literal["hybrid", "remote", "onsite"]
JobStatus = Literal["active", "onhold", "closed"]

MEMBER_ROLES: tuple[str, ...] = ("recruiter", "partner")


class AccountView(BaseModel):
    model_config = ConfigDict(from_attributes=True)

    id: int
    company_name: str
    email: str
    username: str
    role: Role
    parent_account_id: int | None = None
    created_by: int | None = None
    is_approved: bool
    approved_at: datetime | None = None


class MigrationReport(BaseModel):
    applied: list[str] = Field(default_factory=list)
    skipped: list[str] = Field(default_factory=list)
    statements_executed: int = 0
    ignored_errors: int = 0


class CandidateInput(BaseModel):
    name: str
    email: str | None = None
    phone: str | None = None
    location: str | None = None
    visa_status: str | None = None
    experience_years: float | None = Field(default=None, ge=0)
    profile_status: ProfileStatus = "new"
    linkedin_url: str | None = None
    resume_url: str | None = None
    job_id: int | None = None
    job_position_id: int | None = None


class JobInput(BaseModel):
    job_code: str
    title: str
    description: str | None = None
    client_name: str | None = None
    location: str | None = None
    work_type: WorkType
    visa_type: str | None = None
    positions: int = Field(default=1, gt=0)
    status: JobStatus = "active"
    job_position_id: int | None = None


class CandidateUpdate(BaseModel):
    """Partial candidate update; only fields present in the payload change."""

    name: str | None = None
    email: str | None = None
    phone: str | None = None
    location: str | None = None
    visa_status: str | None = None
    experience_years: float | None = Field(default=None, ge=0)
    profile_status: ProfileStatus | None = None
    linkedin_url: str | None = None
    resume_url: str | None = None
    job_id: int | None = None
    job_position_id: int | None = None


class JobUpdate(BaseModel):
    title: str | None = None
    description: str | None = None
    client_name: str | None = None
    location: str | None = None
    work_type: WorkType | None = None
    visa_type: str | None = None
    positions: int | None = Field(default=None, gt=0)
    status: JobStatus | None = None
    job_position_id: int | None = None


class CandidateStats(BaseModel):
    total: int = 0
    accepted: int = 0
    rejected: int = 0
    pending: int = 0


class JobCounts(BaseModel):
    total: int = 0
    active: int = 0
    onhold: int = 0
    closed: int = 0


class CandidateCounts(BaseModel):
    total: int = 0
    new: int = 0
    screening: int = 0
    interview: int = 0
    offer: int = 0
    hired: int = 0
    rejected: int = 0
    on_hold: int = 0


class ActivityItem(BaseModel):
    type: Literal["job", "candidate"]
    title: str
    status: str
    created_at: datetime
    created_by: str | None = None


class DashboardStats(BaseModel):
    jobs: JobCounts
    candidates: CandidateCounts
    recruiters: int = 0
    recent_activity: list[ActivityItem] = Field(default_factory=list)
