"""HTTP surface for branding: JSON payload, theme.css, admin guards."""
import asyncio

import pytest
from fastapi.testclient import TestClient

# Conftest adds backend dir to path: use direct imports (no backend. prefix)
from auth import ClerkClaims, get_optional_claims
from brands import BRANDS, DEFAULT_APP_NAME
from main import app
from models_branding import BrandingRecord
from theming.applier import ThemeRegistry
from theming.resolver import BrandingResolver
from theming.scope import DEFAULT_STYLE_VARIABLES
from theming.sources import BRANDING_ENV_VARS, StaticBrandingSource

ORG_A = BrandingRecord(
    organization_id="org_a",
    colors={"primary": "#112233", "danger": "#ff0000"},
    institution_name="Hospital A",
    logo_url="https://cdn.example.org/a.png",
)


@pytest.fixture
def registry(monkeypatch):
    for name in BRANDING_ENV_VARS:
        monkeypatch.delenv(name, raising=False)
    source = StaticBrandingSource({"org_a": ORG_A, **BRANDS}, default_id="default")
    registry = ThemeRegistry(BrandingResolver(source, timeout=1, palette_roles=()))
    previous = app.state.theme_registry
    app.state.theme_registry = registry
    yield registry
    app.state.theme_registry = previous
    app.dependency_overrides.clear()


def _as(claims: ClerkClaims | None):
    app.dependency_overrides[get_optional_claims] = lambda: claims


def test_anonymous_gets_ambient_branding(registry):
    client = TestClient(app)
    response = client.get("/api/v1/branding")
    assert response.status_code == 200
    data = response.json()
    assert data["organization_id"] is None
    assert data["is_loaded"] is True
    assert data["phase"] == "themed"
    assert data["institution_name"] == "Sistema TxH"
    assert data["colors"]["primary"] == "#00a0a0"
    assert data["css_variables"]["--color-secondary"] == "#0057e6"
    assert response.headers.get("X-Request-Id")


def test_member_gets_org_branding(registry):
    _as(ClerkClaims(sub="user_1", org_id="org_a", org_role="org:member"))
    client = TestClient(app)
    data = client.get("/api/v1/branding").json()
    assert data["organization_id"] == "org_a"
    assert data["institution_name"] == "Hospital A"
    assert data["app_name"] == DEFAULT_APP_NAME
    assert data["logo_url"] == "https://cdn.example.org/a.png"
    assert data["colors"]["primary"] == "#112233"
    assert data["colors"]["danger"] == "#ff0000"
    assert data["css_variables"]["--color-primary"] == "#112233"
    assert data["is_custom_branding"] is False
    assert data["error"] is None


def test_unknown_org_falls_back_to_defaults(registry):
    _as(ClerkClaims(sub="user_1", org_id="org_unknown"))
    data = TestClient(app).get("/api/v1/branding").json()
    assert data["is_loaded"] is True
    assert data["phase"] == "unthemed"
    assert data["css_variables"] == DEFAULT_STYLE_VARIABLES
    assert data["logo_url"] == "/logo.jpg"


def test_custom_branding_flag_follows_env(registry, monkeypatch):
    monkeypatch.setenv("INSTITUTION_NAME", "Hospital Central")
    data = TestClient(app).get("/api/v1/branding").json()
    assert data["is_custom_branding"] is True


def test_theme_css_and_etag(registry):
    _as(ClerkClaims(sub="user_1", org_id="org_a"))
    client = TestClient(app)
    response = client.get("/api/v1/branding/theme.css")
    assert response.status_code == 200
    assert response.headers["content-type"].startswith("text/css")
    assert response.text.startswith(":root {")
    assert "  --color-primary: #112233;" in response.text
    etag = response.headers["etag"]
    assert etag

    cached = client.get("/api/v1/branding/theme.css", headers={"If-None-Match": etag})
    assert cached.status_code == 304


def test_theme_css_etag_changes_after_refresh(registry):
    _as(ClerkClaims(sub="user_1", org_id="org_a"))
    client = TestClient(app)
    first = client.get("/api/v1/branding/theme.css").headers["etag"]
    registry.resolver.source = StaticBrandingSource(
        {"org_a": ORG_A.model_copy(update={"colors": {"primary": "#445566"}})}
    )
    session = registry.session_for("org_a")
    asyncio.run(session.load("org_a"))
    second = client.get("/api/v1/branding/theme.css", headers={"If-None-Match": first})
    assert second.status_code == 200
    assert "--color-primary: #445566;" in second.text
    assert second.headers["etag"] != first


def test_update_requires_auth(registry):
    response = TestClient(app).put("/api/v1/branding", json={"colors": {"primary": "#000000"}})
    assert response.status_code == 401


def test_update_requires_org_admin(registry):
    _as(ClerkClaims(sub="user_1", org_id="org_a", org_role="org:member"))
    response = TestClient(app).put("/api/v1/branding", json={"colors": {"primary": "#000000"}})
    assert response.status_code == 403


def test_update_requires_org_context(registry):
    _as(ClerkClaims(sub="user_1", org_role="org:admin"))
    response = TestClient(app).delete("/api/v1/branding/logo")
    assert response.status_code == 403


def test_update_rejects_unknown_role(registry):
    _as(ClerkClaims(sub="user_1", org_id="org_a", org_role="org:admin"))
    response = TestClient(app).put("/api/v1/branding", json={"colors": {"sparkle": "#000000"}})
    assert response.status_code == 422


def test_health_reports_ambient_branding(registry):
    data = TestClient(app).get("/health").json()
    assert data["status"] == "ok"
    assert data["branding_phase"] in ("uninitialized", "themed", "unthemed")


def test_brands_lists_registry(registry):
    data = TestClient(app).get("/brands").json()
    assert {b["organization_id"] for b in data} == {"default", "sample"}


def test_debug_branding_hidden_unless_enabled(registry, monkeypatch):
    client = TestClient(app)
    monkeypatch.delenv("ENABLE_DEBUG_ROUTES", raising=False)
    assert client.get("/debug/branding").status_code == 404
    monkeypatch.setenv("ENABLE_DEBUG_ROUTES", "1")
    data = client.get("/debug/branding").json()
    assert data["env"]["INSTITUTION_NAME"] == "UNDEFINED"
    assert data["ambient_loaded"] is False
