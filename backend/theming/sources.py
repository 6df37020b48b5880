"""
Branding sources: where BrandingRecords come from.
A source answers one question, get_branding_for_organization(id), and returns None
when the organization has no branding. `None` as the id means the ambient tenant.
"""
from __future__ import annotations

import base64
import os
from typing import Callable, Mapping, Optional, Protocol

from sqlalchemy.orm import Session
from starlette.concurrency import run_in_threadpool

from models_branding import BrandingRecord

BRANDING_ENV_VARS = ("INSTITUTION_NAME", "INSTITUTION_LOGO_URL", "PRIMARY_COLOR", "APP_NAME")


class BrandingSource(Protocol):
    async def get_branding_for_organization(self, organization_id: Optional[str]) -> Optional[BrandingRecord]:
        ...


def logo_data_url(logo_bytes: bytes | None, content_type: str | None) -> str | None:
    if not logo_bytes:
        return None
    ctype = (content_type or "image/png").strip() or "image/png"
    return f"data:{ctype};base64,{base64.b64encode(logo_bytes).decode('ascii')}"


class StaticBrandingSource:
    """Records held in memory, keyed by organization id (see brands.BRANDS)."""

    def __init__(self, records: Mapping[str, BrandingRecord], default_id: Optional[str] = None):
        self._records = dict(records)
        self._default_id = default_id

    async def get_branding_for_organization(self, organization_id: Optional[str]) -> Optional[BrandingRecord]:
        key = organization_id or self._default_id
        if key is None:
            return None
        return self._records.get(key)


def organization_display_name(org) -> Optional[str]:
    """Org name fit for display; None while it is still the Clerk id set by a first sync from a token."""
    name = (org.name or "").strip()
    if not name or name == org.clerk_org_id:
        return None
    return name


class SqlBrandingSource:
    """
    Reads organizations + organization_branding through SQLAlchemy.
    Organization ids are Clerk org ids. Queries run in the threadpool so the event loop never blocks.
    """

    def __init__(self, session_factory: Callable[[], Session], default_id: Optional[str] = None):
        self._session_factory = session_factory
        self._default_id = default_id

    async def get_branding_for_organization(self, organization_id: Optional[str]) -> Optional[BrandingRecord]:
        key = organization_id or self._default_id
        if key is None:
            return None
        return await run_in_threadpool(self._load, key)

    def _load(self, clerk_org_id: str) -> Optional[BrandingRecord]:
        from db.models import Organization

        db = self._session_factory()
        try:
            org = db.query(Organization).filter(Organization.clerk_org_id == clerk_org_id).first()
            if org is None:
                return None
            row = org.branding
            if row is None:
                # Org exists (synced from Clerk) but was never branded: identity only
                return BrandingRecord(
                    organization_id=clerk_org_id,
                    institution_name=organization_display_name(org),
                    logo_url=org.image_url,
                )
            return BrandingRecord(
                organization_id=clerk_org_id,
                colors=dict(row.colors or {}),
                font_family=row.font_family,
                logo_url=logo_data_url(row.logo_bytes, row.logo_content_type) or org.image_url,
                institution_name=row.institution_name or organization_display_name(org),
                app_name=row.app_name,
            )
        finally:
            db.close()


def env_branding_overrides(environ: Mapping[str, str] | None = None) -> dict[str, str]:
    """Branding environment variables that are set (non-empty), by name."""
    env = os.environ if environ is None else environ
    return {name: env[name].strip() for name in BRANDING_ENV_VARS if (env.get(name) or "").strip()}


class EnvBrandingOverlay:
    """
    Environment variables take priority over the inner source (single-tenant B2B deployments):
    INSTITUTION_NAME, INSTITUTION_LOGO_URL, PRIMARY_COLOR, APP_NAME.
    Read on every call so a changed .env applies on the next resolution.
    """

    def __init__(self, inner: BrandingSource, environ: Mapping[str, str] | None = None):
        self._inner = inner
        self._environ = environ

    @property
    def inner(self) -> BrandingSource:
        return self._inner

    async def get_branding_for_organization(self, organization_id: Optional[str]) -> Optional[BrandingRecord]:
        record = await self._inner.get_branding_for_organization(organization_id)
        overrides = env_branding_overrides(self._environ)
        if not overrides:
            return record
        base = record or BrandingRecord(organization_id=organization_id or "env")
        update: dict = {}
        if "INSTITUTION_NAME" in overrides:
            update["institution_name"] = overrides["INSTITUTION_NAME"]
        if "INSTITUTION_LOGO_URL" in overrides:
            update["logo_url"] = overrides["INSTITUTION_LOGO_URL"]
        if "APP_NAME" in overrides:
            update["app_name"] = overrides["APP_NAME"]
        if "PRIMARY_COLOR" in overrides:
            update["colors"] = {**base.colors, "primary": overrides["PRIMARY_COLOR"]}
        return base.model_copy(update=update)
