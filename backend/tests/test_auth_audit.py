import pytest
from fastapi import HTTPException

from audit import branding_changes
from auth import ClerkClaims, require_org_admin, verify_clerk_token


def test_verify_without_issuer_is_503(monkeypatch):
    monkeypatch.delenv("CLERK_JWT_ISSUER", raising=False)
    with pytest.raises(HTTPException) as exc:
        verify_clerk_token("not-a-token")
    assert exc.value.status_code == 503


def test_org_admin_roles():
    assert ClerkClaims(sub="u", org_id="o", org_role="org:admin").is_org_admin
    assert ClerkClaims(sub="u", org_id="o", org_role="admin").is_org_admin
    assert not ClerkClaims(sub="u", org_id="o", org_role="org:member").is_org_admin
    assert not ClerkClaims(sub="u").is_org_admin


def test_require_org_admin_passes_admin_through():
    claims = ClerkClaims(sub="u", org_id="o", org_role="org:admin")
    assert require_org_admin(claims) is claims


def test_require_org_admin_rejects_member():
    with pytest.raises(HTTPException) as exc:
        require_org_admin(ClerkClaims(sub="u", org_id="o", org_role="org:member"))
    assert exc.value.status_code == 403


def test_branding_changes_lists_only_changed_fields():
    before = {"colors": {"primary": "#111"}, "font_family": None, "app_name": "Registro"}
    after = {"colors": {"primary": "#222"}, "font_family": None, "app_name": "Registro"}
    assert branding_changes(before, after) == {
        "colors": {"from": {"primary": "#111"}, "to": {"primary": "#222"}},
    }
    assert branding_changes(after, after) == {}
