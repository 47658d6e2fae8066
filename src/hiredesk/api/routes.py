from __future__ import annotations

from fastapi import APIRouter, Depends, Query, Response, status
from fastapi.responses import JSONResponse

from hiredesk.api.deps import (
    get_accounts,
    get_current_account,
    get_resources,
    get_settings_dep,
    get_workflows,
)
from hiredesk.api.schemas import (
    ApproveAccountRequest,
    CandidateResponse,
    ForgotPasswordRequest,
    JobPositionRequest,
    JobPositionResponse,
    JobResponse,
    LoginRequest,
    LoginResponse,
    MemberCreateRequest,
    MemberPasswordRequest,
    MessageResponse,
    PasswordChangeRequest,
    ProfileUpdateRequest,
    RedemptionResponse,
    ResetPasswordRequest,
    SignupRequest,
    SignupResponse,
)
from hiredesk.config import Settings
from hiredesk.core.accounts import AccountService
from hiredesk.core.onboarding import AuthWorkflows
from hiredesk.core.resources import TenantResources
from hiredesk.core.security import create_access_token
from hiredesk.core.tokens import outcome_of
from hiredesk.db.models import Account
from hiredesk.errors import TokenAlreadyUsedError, TokenExpiredError, TokenNotFoundError
from hiredesk.types import (
    AccountView,
    CandidateInput,
    CandidateStats,
    CandidateUpdate,
    DashboardStats,
    JobInput,
    JobUpdate,
    MemberRole,
)

REDEMPTION_STATUS_CODES = {
    "redeemed": status.HTTP_200_OK,
    "not_found": status.HTTP_404_NOT_FOUND,
    "expired": status.HTTP_410_GONE,
    "already_used": status.HTTP_409_CONFLICT,
}

RESET_REQUESTED = "If an account exists with this email, a reset link has been sent."

auth_router = APIRouter(prefix="/api/auth", tags=["auth"])
team_router = APIRouter(prefix="/api/team", tags=["team"])
router = APIRouter(prefix="/api", tags=["resources"])


def _redemption_response(outcome: str) -> JSONResponse:
    return JSONResponse({"status": outcome}, status_code=REDEMPTION_STATUS_CODES[outcome])


@auth_router.post("/signup", response_model=SignupResponse, status_code=status.HTTP_201_CREATED)
def signup(payload: SignupRequest, workflows: AuthWorkflows = Depends(get_workflows)) -> SignupResponse:
    account = workflows.signup(payload.company_name, payload.email, payload.username, payload.password)
    return SignupResponse(
        message="Account created successfully! Await admin approval to access all features.",
        account=AccountView.model_validate(account),
    )


@auth_router.post("/login", response_model=LoginResponse)
def login(
    payload: LoginRequest,
    accounts: AccountService = Depends(get_accounts),
    settings: Settings = Depends(get_settings_dep),
) -> LoginResponse:
    account = accounts.authenticate(payload.identifier, payload.password)
    return LoginResponse(
        access_token=create_access_token(settings, account.id),
        account=AccountView.model_validate(account),
    )


@auth_router.get("/me", response_model=AccountView)
def me(account: Account = Depends(get_current_account)) -> AccountView:
    return AccountView.model_validate(account)


@auth_router.get("/approve-by-token", response_model=RedemptionResponse)
def approve_by_token(
    token: str = Query(..., min_length=1),
    workflows: AuthWorkflows = Depends(get_workflows),
) -> JSONResponse:
    try:
        workflows.approve_by_token(token)
    except (TokenNotFoundError, TokenExpiredError, TokenAlreadyUsedError) as exc:
        return _redemption_response(outcome_of(exc))
    return _redemption_response(outcome_of(None))


@auth_router.post("/forgot-password", response_model=MessageResponse)
def forgot_password(
    payload: ForgotPasswordRequest,
    workflows: AuthWorkflows = Depends(get_workflows),
) -> MessageResponse:
    workflows.forgot_password(payload.email)
    return MessageResponse(message=RESET_REQUESTED)


@auth_router.post("/reset-password", response_model=RedemptionResponse)
def reset_password(
    payload: ResetPasswordRequest,
    workflows: AuthWorkflows = Depends(get_workflows),
) -> JSONResponse:
    try:
        workflows.reset_password(payload.token, payload.new_password)
    except (TokenNotFoundError, TokenExpiredError, TokenAlreadyUsedError) as exc:
        return _redemption_response(outcome_of(exc))
    return _redemption_response(outcome_of(None))


@auth_router.put("/profile", response_model=AccountView)
def update_profile(
    payload: ProfileUpdateRequest,
    account: Account = Depends(get_current_account),
    accounts: AccountService = Depends(get_accounts),
) -> AccountView:
    updated = accounts.update_profile(account.id, username=payload.username, company_name=payload.company_name)
    return AccountView.model_validate(updated)


@auth_router.put("/password", response_model=MessageResponse)
def change_password(
    payload: PasswordChangeRequest,
    account: Account = Depends(get_current_account),
    accounts: AccountService = Depends(get_accounts),
) -> MessageResponse:
    accounts.change_password(account.id, payload.current_password, payload.new_password)
    return MessageResponse(message="password changed successfully")


@auth_router.get("/pending-approvals", response_model=list[AccountView])
def pending_approvals(
    account: Account = Depends(get_current_account),
    accounts: AccountService = Depends(get_accounts),
) -> list[AccountView]:
    return [AccountView.model_validate(row) for row in accounts.list_pending_approvals(account.id)]


@auth_router.post("/approve-account", response_model=AccountView)
def approve_account(
    payload: ApproveAccountRequest,
    account: Account = Depends(get_current_account),
    workflows: AuthWorkflows = Depends(get_workflows),
) -> AccountView:
    approved = workflows.approve_directly(payload.account_id, approver_id=account.id)
    return AccountView.model_validate(approved)


@team_router.get("", response_model=list[AccountView])
def list_team(
    role: MemberRole | None = None,
    account: Account = Depends(get_current_account),
    accounts: AccountService = Depends(get_accounts),
) -> list[AccountView]:
    return [AccountView.model_validate(row) for row in accounts.list_team(account.id, role)]


@team_router.post("", response_model=AccountView, status_code=status.HTTP_201_CREATED)
def create_member(
    payload: MemberCreateRequest,
    account: Account = Depends(get_current_account),
    accounts: AccountService = Depends(get_accounts),
) -> AccountView:
    member = accounts.create_sub_account(
        account.id, payload.role, payload.email, payload.username, payload.password
    )
    return AccountView.model_validate(member)


@team_router.put("/{member_id}/password", response_model=MessageResponse)
def reset_member_password(
    member_id: int,
    payload: MemberPasswordRequest,
    account: Account = Depends(get_current_account),
    accounts: AccountService = Depends(get_accounts),
) -> MessageResponse:
    accounts.reset_member_password(account.id, member_id, payload.new_password)
    return MessageResponse(message="Password reset successfully")


@router.post("/candidates", response_model=CandidateResponse, status_code=status.HTTP_201_CREATED)
def create_candidate(
    payload: CandidateInput,
    account: Account = Depends(get_current_account),
    resources: TenantResources = Depends(get_resources),
) -> CandidateResponse:
    return CandidateResponse.model_validate(resources.create_candidate(account.id, payload))


@router.get("/candidates", response_model=list[CandidateResponse])
def list_candidates(
    account: Account = Depends(get_current_account),
    resources: TenantResources = Depends(get_resources),
) -> list[CandidateResponse]:
    return [CandidateResponse.model_validate(row) for row in resources.list_candidates(account.id)]


# Declared before /candidates/{candidate_id} so "stats" is not read as an id.
@router.get("/candidates/stats/summary", response_model=CandidateStats)
def candidate_stats(
    account: Account = Depends(get_current_account),
    resources: TenantResources = Depends(get_resources),
) -> CandidateStats:
    return resources.candidate_stats(account.id)


@router.get("/candidates/{candidate_id}", response_model=CandidateResponse)
def get_candidate(
    candidate_id: int,
    account: Account = Depends(get_current_account),
    resources: TenantResources = Depends(get_resources),
) -> CandidateResponse:
    return CandidateResponse.model_validate(resources.get_candidate(account.id, candidate_id))


@router.put("/candidates/{candidate_id}", response_model=CandidateResponse)
def update_candidate(
    candidate_id: int,
    payload: CandidateUpdate,
    account: Account = Depends(get_current_account),
    resources: TenantResources = Depends(get_resources),
) -> CandidateResponse:
    return CandidateResponse.model_validate(resources.update_candidate(account.id, candidate_id, payload))


@router.delete("/candidates/{candidate_id}", status_code=status.HTTP_204_NO_CONTENT)
def delete_candidate(
    candidate_id: int,
    account: Account = Depends(get_current_account),
    resources: TenantResources = Depends(get_resources),
) -> Response:
    resources.delete_candidate(account.id, candidate_id)
    return Response(status_code=status.HTTP_204_NO_CONTENT)


@router.post("/jobs", response_model=JobResponse, status_code=status.HTTP_201_CREATED)
def create_job(
    payload: JobInput,
    account: Account = Depends(get_current_account),
    resources: TenantResources = Depends(get_resources),
) -> JobResponse:
    return JobResponse.model_validate(resources.create_job(account.id, payload))


@router.get("/jobs", response_model=list[JobResponse])
def list_jobs(
    account: Account = Depends(get_current_account),
    resources: TenantResources = Depends(get_resources),
) -> list[JobResponse]:
    return [JobResponse.model_validate(row) for row in resources.list_jobs(account.id)]


@router.put("/jobs/{job_id}", response_model=JobResponse)
def update_job(
    job_id: int,
    payload: JobUpdate,
    account: Account = Depends(get_current_account),
    resources: TenantResources = Depends(get_resources),
) -> JobResponse:
    return JobResponse.model_validate(resources.update_job(account.id, job_id, payload))


@router.post("/job-positions", response_model=JobPositionResponse, status_code=status.HTTP_201_CREATED)
def create_job_position(
    payload: JobPositionRequest,
    account: Account = Depends(get_current_account),
    resources: TenantResources = Depends(get_resources),
) -> JobPositionResponse:
    position = resources.create_job_position(account.id, payload.name, payload.description)
    return JobPositionResponse.model_validate(position)


@router.get("/job-positions", response_model=list[JobPositionResponse])
def list_job_positions(
    account: Account = Depends(get_current_account),
    resources: TenantResources = Depends(get_resources),
) -> list[JobPositionResponse]:
    return [JobPositionResponse.model_validate(row) for row in resources.list_job_positions(account.id)]


@router.put("/job-positions/{position_id}", response_model=JobPositionResponse)
def update_job_position(
    position_id: int,
    payload: JobPositionRequest,
    account: Account = Depends(get_current_account),
    resources: TenantResources = Depends(get_resources),
) -> JobPositionResponse:
    position = resources.update_job_position(account.id, position_id, payload.name, payload.description)
    return JobPositionResponse.model_validate(position)


@router.delete("/job-positions/{position_id}", response_model=MessageResponse)
def delete_job_position(
    position_id: int,
    account: Account = Depends(get_current_account),
    resources: TenantResources = Depends(get_resources),
) -> MessageResponse:
    resources.delete_job_position(account.id, position_id)
    return MessageResponse(message="Job position deleted successfully")


@router.get("/dashboard/stats", response_model=DashboardStats)
def dashboard_stats(
    account: Account = Depends(get_current_account),
    resources: TenantResources = Depends(get_resources),
) -> DashboardStats:
    return resources.dashboard_stats(account.id)
