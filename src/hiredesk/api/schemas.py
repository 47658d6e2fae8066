from __future__ import annotations

from datetime import datetime

from pydantic import BaseModel, ConfigDict

from hiredesk.types import AccountView, MemberRole, RedemptionOutcome


class SignupRequest(BaseModel):
    company_name: str
    email: str
    username: str
    password: str


class SignupResponse(BaseModel):
    message: str
    account: AccountView


class LoginRequest(BaseModel):
    identifier: str
    password: str


class LoginResponse(BaseModel):
    access_token: str
    token_type: str = "bearer"
    account: AccountView


class ForgotPasswordRequest(BaseModel):
    email: str


class ResetPasswordRequest(BaseModel):
    token: str
    new_password: str


class RedemptionResponse(BaseModel):
    status: RedemptionOutcome


class MessageResponse(BaseModel):
    message: str


class ProfileUpdateRequest(BaseModel):
    username: str
    company_name: str | None = None


class PasswordChangeRequest(BaseModel):
    current_password: str
    new_password: str


class ApproveAccountRequest(BaseModel):
    account_id: int


class MemberCreateRequest(BaseModel):
    email: str
    username: str
    password: str
    role: MemberRole = "recruiter"


class MemberPasswordRequest(BaseModel):
    new_password: str


class JobPositionRequest(BaseModel):
    name: str
    description: str | None = None


class CandidateResponse(BaseModel):
    model_config = ConfigDict(from_attributes=True)

    id: int
    name: str
    email: str | None
    phone: str | None
    location: str | None
    visa_status: str | None
    experience_years: float | None
    profile_status: str
    linkedin_url: str | None
    resume_url: str | None
    account_id: int
    created_by: int | None
    job_id: int | None
    job_position_id: int | None
    created_at: datetime


class JobResponse(BaseModel):
    model_config = ConfigDict(from_attributes=True)

    id: int
    job_code: str
    title: str
    description: str | None
    client_name: str | None
    location: str | None
    work_type: str
    visa_type: str | None
    positions: int
    status: str
    owner_account_id: int
    created_by: int | None
    job_position_id: int | None


class JobPositionResponse(BaseModel):
    model_config = ConfigDict(from_attributes=True)

    id: int
    name: str
    description: str | None
    owner_account_id: int
    created_by: int | None
