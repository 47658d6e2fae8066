from hiredesk.db.models import Account


def _account(**values) -> Account:
    defaults = {"id": 1, "company_name": "Acme", "email": "a@example.com", "username": "acme", "password_hash": "x"}
    return Account(**{**defaults, **values})


def test_parentless_admin_is_tenant_root_of_itself() -> None:
    root = _account(id=7, role="admin", parent_account_id=None)
    assert root.is_tenant_root
    assert root.is_admin
    assert root.tenant_root_id == 7


def test_members_resolve_to_parent_tenant() -> None:
    recruiter = _account(id=8, role="recruiter", parent_account_id=7)
    partner = _account(id=9, role="partner", parent_account_id=7)
    for member in (recruiter, partner):
        assert not member.is_tenant_root
        assert not member.is_admin
        assert member.tenant_root_id == 7


def test_admin_with_parent_is_not_a_tenant_root() -> None:
    sub_admin = _account(id=10, role="admin", parent_account_id=7)
    assert sub_admin.is_admin
    assert not sub_admin.is_tenant_root
    assert sub_admin.tenant_root_id == 7
