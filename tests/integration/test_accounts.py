from __future__ import annotations

import pytest

from hiredesk.core.accounts import AccountService
from hiredesk.errors import (
    ConflictError,
    ForbiddenError,
    NotFoundError,
    UnauthorizedError,
    ValidationError,
)

PASSWORD = "Sup3rSecret!"


def test_root_account_starts_unapproved_and_normalizes_identity(accounts: AccountService) -> None:
    account = accounts.create_root_account("Acme Staffing", "  Jane@Acme.COM ", "Jane.Doe", PASSWORD)

    assert account.email == "jane@acme.com"
    assert account.username == "jane.doe"
    assert account.role == "admin"
    assert account.parent_account_id is None
    assert account.is_tenant_root
    assert account.is_approved is False
    assert account.password_hash != PASSWORD


def test_duplicate_email_or_username_conflicts_case_insensitively(accounts: AccountService) -> None:
    accounts.create_root_account("Acme", "jane@acme.com", "jane", PASSWORD)

    with pytest.raises(ConflictError):
        accounts.create_root_account("Other", "JANE@acme.com", "someone", PASSWORD)
    with pytest.raises(ConflictError):
        accounts.create_root_account("Other", "other@acme.com", "JANE", PASSWORD)


@pytest.mark.parametrize(
    ("company", "email", "username", "password"),
    [
        ("", "a@b.com", "abc", PASSWORD),
        ("Acme", "not-an-email", "abc", PASSWORD),
        ("Acme", "a@b.com", "x", PASSWORD),
        ("Acme", "a@b.com", "abc", "short"),
    ],
)
def test_invalid_signup_input_is_rejected(
    accounts: AccountService, company: str, email: str, username: str, password: str
) -> None:
    with pytest.raises(ValidationError):
        accounts.create_root_account(company, email, username, password)


def test_sub_account_belongs_to_creators_tenant(accounts: AccountService, make_tenant) -> None:
    root = make_tenant("acme")

    member = accounts.create_sub_account(root.id, "recruiter", "rita@acme.com", "rita", PASSWORD)

    assert member.parent_account_id == root.id
    assert member.tenant_root_id == root.id
    assert member.created_by == root.id
    assert member.company_name == root.company_name
    assert member.is_approved
    assert member.approved_by == root.id
    assert not member.is_tenant_root


def test_only_approved_admins_create_members(accounts: AccountService, make_tenant) -> None:
    root = make_tenant("acme")
    recruiter = accounts.create_sub_account(root.id, "recruiter", "rita@acme.com", "rita", PASSWORD)
    pending = accounts.create_root_account("Pending", "p@pending.com", "pending", PASSWORD)

    with pytest.raises(ForbiddenError):
        accounts.create_sub_account(recruiter.id, "partner", "pat@acme.com", "pat", PASSWORD)
    with pytest.raises(ForbiddenError):
        accounts.create_sub_account(pending.id, "recruiter", "r2@pending.com", "rob", PASSWORD)
    with pytest.raises(ValidationError):
        accounts.create_sub_account(root.id, "admin", "boss@acme.com", "boss", PASSWORD)
    with pytest.raises(NotFoundError):
        accounts.create_sub_account(9999, "recruiter", "ghost@acme.com", "ghost", PASSWORD)


def test_approve_is_idempotent(accounts: AccountService, make_tenant) -> None:
    owner = make_tenant("owner")
    account = accounts.create_root_account("Acme", "jane@acme.com", "jane", PASSWORD)

    first = accounts.approve(account.id, approver_id=owner.id)
    second = accounts.approve(account.id, approver_id=owner.id)

    assert first.is_approved and second.is_approved
    assert first.approved_by == owner.id
    assert second.approved_at == first.approved_at


def test_approve_requires_tenant_root_and_existing_account(accounts: AccountService, make_tenant) -> None:
    root = make_tenant("acme")
    recruiter = accounts.create_sub_account(root.id, "recruiter", "rita@acme.com", "rita", PASSWORD)
    account = accounts.create_root_account("Other", "o@other.com", "other", PASSWORD)

    with pytest.raises(ForbiddenError):
        accounts.approve(account.id, approver_id=recruiter.id)
    with pytest.raises(NotFoundError):
        accounts.approve(9999, approver_id=root.id)
    assert accounts.get_account(account.id).is_approved is False


def test_authenticate_by_email_or_username(accounts: AccountService, make_tenant) -> None:
    root = make_tenant("acme")

    assert accounts.authenticate("acme@example.com", PASSWORD).id == root.id
    assert accounts.authenticate("  ACME ", PASSWORD).id == root.id


def test_authentication_failures_share_one_message(accounts: AccountService, make_tenant) -> None:
    make_tenant("acme")

    with pytest.raises(UnauthorizedError) as unknown:
        accounts.authenticate("nobody@example.com", PASSWORD)
    with pytest.raises(UnauthorizedError) as wrong:
        accounts.authenticate("acme", "not-the-password")

    assert unknown.value.message == wrong.value.message


def test_unapproved_account_cannot_sign_in(accounts: AccountService) -> None:
    accounts.create_root_account("Acme", "jane@acme.com", "jane", PASSWORD)

    with pytest.raises(ForbiddenError):
        accounts.authenticate("jane", PASSWORD)
    # A wrong password still reads as bad credentials, not as pending approval.
    with pytest.raises(UnauthorizedError):
        accounts.authenticate("jane", "not-the-password")


def test_team_listing_is_scoped_to_tenant(accounts: AccountService, make_tenant) -> None:
    acme = make_tenant("acme")
    globex = make_tenant("globex")
    rita = accounts.create_sub_account(acme.id, "recruiter", "rita@acme.com", "rita", PASSWORD)
    paul = accounts.create_sub_account(acme.id, "partner", "paul@acme.com", "paul", PASSWORD)
    accounts.create_sub_account(globex.id, "recruiter", "gus@globex.com", "gus", PASSWORD)

    assert {member.id for member in accounts.list_team(acme.id)} == {rita.id, paul.id}
    assert [member.id for member in accounts.list_team(acme.id, "partner")] == [paul.id]
    with pytest.raises(ForbiddenError):
        accounts.list_team(rita.id)


def test_pending_approvals_visible_to_tenant_roots_only(accounts: AccountService, make_tenant) -> None:
    root = make_tenant("acme")
    recruiter = accounts.create_sub_account(root.id, "recruiter", "rita@acme.com", "rita", PASSWORD)
    pending = accounts.create_root_account("Pending", "p@pending.com", "pending", PASSWORD)

    assert [account.id for account in accounts.list_pending_approvals(root.id)] == [pending.id]
    with pytest.raises(ForbiddenError):
        accounts.list_pending_approvals(recruiter.id)


def test_change_password_checks_current_password(accounts: AccountService, make_tenant) -> None:
    root = make_tenant("acme")

    with pytest.raises(UnauthorizedError):
        accounts.change_password(root.id, "not-the-password", "BrandNew123")
    accounts.change_password(root.id, PASSWORD, "BrandNew123")

    assert accounts.authenticate("acme", "BrandNew123").id == root.id


def test_admin_resets_only_own_members(accounts: AccountService, make_tenant) -> None:
    acme = make_tenant("acme")
    globex = make_tenant("globex")
    rita = accounts.create_sub_account(acme.id, "recruiter", "rita@acme.com", "rita", PASSWORD)

    with pytest.raises(NotFoundError):
        accounts.reset_member_password(globex.id, rita.id, "Hijacked123")
    accounts.reset_member_password(acme.id, rita.id, "Replaced123")

    assert accounts.authenticate("rita", "Replaced123").id == rita.id


def test_profile_update(accounts: AccountService, make_tenant) -> None:
    acme = make_tenant("acme")
    make_tenant("globex")
    rita = accounts.create_sub_account(acme.id, "recruiter", "rita@acme.com", "rita", PASSWORD)

    updated = accounts.update_profile(acme.id, username="acme-hq", company_name="Acme Holdings")
    assert (updated.username, updated.company_name) == ("acme-hq", "Acme Holdings")

    member = accounts.update_profile(rita.id, username="rita.r", company_name="Ignored")
    assert member.username == "rita.r"
    assert member.company_name == "Acme"

    with pytest.raises(ConflictError):
        accounts.update_profile(rita.id, username="globex")


def test_ensure_super_admin_is_repeatable(accounts: AccountService) -> None:
    first = accounts.ensure_super_admin("Hiredesk", "Owner@Hiredesk.test", PASSWORD)
    second = accounts.ensure_super_admin("Hiredesk", "owner@hiredesk.test", PASSWORD)

    assert first.id == second.id
    assert second.is_approved
    assert second.is_tenant_root
    assert second.username == "owner"


def test_super_admin_with_short_local_part_gets_fallback_username(accounts: AccountService) -> None:
    account = accounts.ensure_super_admin("Hiredesk", "jo@hiredesk.test", PASSWORD)

    assert account.username == "superadmin"
    assert account.is_approved


def test_super_admin_username_avoids_taken_names(accounts: AccountService, make_tenant) -> None:
    make_tenant("owner")
    accounts.create_root_account("Other", "boss@other.com", "superadmin", PASSWORD)

    account = accounts.ensure_super_admin("Hiredesk", "owner@hiredesk.test", PASSWORD)

    assert account.username == "superadmin2"
    assert account.email == "owner@hiredesk.test"
