"""SqlBrandingSource and Clerk org sync against a sqlite schema."""
import asyncio
import uuid

from clerk_sync import delete_org, ensure_org_synced
from db.models import AuditLog, Organization, OrganizationBranding
from audit import log as audit_log
from theming.sources import SqlBrandingSource


def _org(db, clerk_org_id="org_a", name="Hospital A", image_url=None):
    return ensure_org_synced(db, clerk_org_id, org_name=name, image_url=image_url)


def _branding(db, org, **fields):
    row = OrganizationBranding(id=str(uuid.uuid4()), organization_id=org.id, colors=fields.pop("colors", {}), **fields)
    db.add(row)
    db.commit()
    return row


def _get(db_factory, organization_id, default_id=None):
    source = SqlBrandingSource(db_factory, default_id=default_id)
    return asyncio.run(source.get_branding_for_organization(organization_id))


def test_unknown_org_has_no_record(db_factory):
    assert _get(db_factory, "org_missing") is None
    assert _get(db_factory, None) is None


def test_org_without_branding_row_is_identity_only(db_factory):
    db = db_factory()
    _org(db, image_url="https://img.clerk.com/a.png")
    db.close()
    record = _get(db_factory, "org_a")
    assert record.organization_id == "org_a"
    assert record.colors == {}
    assert record.font_family is None
    assert record.institution_name == "Hospital A"
    assert record.logo_url == "https://img.clerk.com/a.png"


def test_branding_row_with_logo_bytes_uses_data_url(db_factory):
    db = db_factory()
    org = _org(db, image_url="https://img.clerk.com/a.png")
    _branding(
        db,
        org,
        colors={"primary": "#112233"},
        font_family="Segoe UI",
        institution_name="Hospital Central",
        app_name="Registro",
        logo_bytes=b"\x89PNG",
        logo_content_type="image/png",
    )
    db.close()
    record = _get(db_factory, "org_a")
    assert record.colors == {"primary": "#112233"}
    assert record.font_family == "Segoe UI"
    assert record.institution_name == "Hospital Central"
    assert record.app_name == "Registro"
    assert record.logo_url == "data:image/png;base64,iVBORw=="


def test_branding_row_without_logo_falls_back_to_clerk_image(db_factory):
    db = db_factory()
    org = _org(db, image_url="https://img.clerk.com/a.png")
    _branding(db, org, colors={"danger": "#ff0000"})
    db.close()
    record = _get(db_factory, "org_a")
    assert record.logo_url == "https://img.clerk.com/a.png"
    assert record.institution_name == "Hospital A"


def test_org_named_by_its_clerk_id_has_no_institution_name(db_factory):
    db = db_factory()
    ensure_org_synced(db, "org_a")
    db.close()
    assert _get(db_factory, "org_a").institution_name is None


def test_ambient_tenant_reads_default_id(db_factory):
    db = db_factory()
    _org(db, clerk_org_id="org_main", name="Hospital Principal")
    db.close()
    assert _get(db_factory, None, default_id="org_main").institution_name == "Hospital Principal"


def test_ensure_org_synced_updates_existing(db_factory):
    db = db_factory()
    first = ensure_org_synced(db, "org_a")
    again = ensure_org_synced(db, "org_a", org_name="Hospital A", org_slug="hospital-a", image_url="https://img/a.png")
    assert again.id == first.id
    assert again.name == "Hospital A"
    assert again.slug == "hospital-a"
    assert db.query(Organization).count() == 1
    db.close()


def test_delete_org_cascades(db_factory):
    db = db_factory()
    org = _org(db)
    _branding(db, org, colors={"primary": "#111"})
    audit_log(db, org.id, "user_1", "update", "branding")
    assert delete_org(db, "org_a") is True
    assert delete_org(db, "org_a") is False
    assert db.query(OrganizationBranding).count() == 0
    assert db.query(AuditLog).count() == 0
    db.close()
