"""
Authenticated API: organization branding (JSON + stylesheet), branding updates and logos.
The organization in the Clerk session token selects the tenant; anonymous callers get the ambient tenant.
"""
from __future__ import annotations

import hashlib
import logging
import os
import uuid
from datetime import datetime
from typing import Any, Optional

from fastapi import APIRouter, Depends, HTTPException, File, Request, UploadFile
from fastapi.responses import Response
from sqlalchemy.orm import Session

from auth import ClerkClaims, get_optional_claims, require_org_admin
from audit import branding_changes, log as audit_log
from brands import DEFAULT_APP_NAME, DEFAULT_INSTITUTION_NAME, DEFAULT_LOGO_URL
from clerk_sync import ensure_org_synced
from db.session import get_db
from db.models import Organization, OrganizationBranding as OrganizationBrandingModel
from models_branding import BrandingResponse, BrandingUpdate, ColorRole, color_variable, theme_hash
from theming.applier import ThemeRegistry, ThemeSession
from theming.sources import env_branding_overrides

router = APIRouter(prefix="/api/v1", tags=["api"])

_LOG = logging.getLogger("uvicorn.error")

BRANDING_READY_TIMEOUT_SECONDS = float(os.environ.get("BRANDING_READY_TIMEOUT_SECONDS", "3"))

ALLOWED_LOGO_CONTENT_TYPES = {"image/png", "image/jpeg", "image/jpg", "image/svg+xml"}
MAX_LOGO_BYTES = 1_500_000


def get_theme_registry(request: Request) -> ThemeRegistry:
    return request.app.state.theme_registry


def _tenant_key(claims: Optional[ClerkClaims]) -> Optional[str]:
    if claims and claims.org_id:
        return claims.org_id
    return None


def _stylesheet_etag(session: ThemeSession) -> str:
    return f'"{theme_hash(session.scope.snapshot())}"'


def _branding_response(session: ThemeSession) -> BrandingResponse:
    record = session.record
    overrides = env_branding_overrides()
    scope = session.scope.snapshot()
    colors = {
        role.value: scope[color_variable(role).value]
        for role in ColorRole
        if color_variable(role).value in scope
    }
    resolved = session.last_resolution
    return BrandingResponse(
        organization_id=session.state.organization_id,
        institution_name=(record.institution_name if record else None) or DEFAULT_INSTITUTION_NAME,
        app_name=(record.app_name if record else None) or DEFAULT_APP_NAME,
        logo_url=(record.logo_url if record else None) or DEFAULT_LOGO_URL,
        colors=colors,
        css_variables=scope,
        is_loaded=session.is_loaded,
        is_custom_branding="INSTITUTION_NAME" in overrides or "INSTITUTION_LOGO_URL" in overrides,
        theme_hash=theme_hash(scope),
        phase=session.phase.value,
        error=resolved.error if resolved else None,
    )


def _branding_fields(row: OrganizationBrandingModel) -> dict[str, Any]:
    return {
        "colors": dict(row.colors or {}),
        "font_family": row.font_family,
        "institution_name": row.institution_name,
        "app_name": row.app_name,
    }


def _get_or_create_branding(db: Session, org: Organization) -> OrganizationBrandingModel:
    row = (
        db.query(OrganizationBrandingModel)
        .filter(OrganizationBrandingModel.organization_id == org.id)
        .first()
    )
    if row is None:
        row = OrganizationBrandingModel(id=str(uuid.uuid4()), organization_id=org.id, colors={})
        db.add(row)
        db.flush()
    return row


# --- Branding (read) ---

@router.get("/branding", response_model=BrandingResponse)
async def get_branding(
    claims: Optional[ClerkClaims] = Depends(get_optional_claims),
    registry: ThemeRegistry = Depends(get_theme_registry),
):
    session = await registry.ensure_loaded(_tenant_key(claims), timeout=BRANDING_READY_TIMEOUT_SECONDS)
    return _branding_response(session)


@router.get("/branding/theme.css")
async def get_theme_css(
    request: Request,
    claims: Optional[ClerkClaims] = Depends(get_optional_claims),
    registry: ThemeRegistry = Depends(get_theme_registry),
):
    session = await registry.ensure_loaded(_tenant_key(claims), timeout=BRANDING_READY_TIMEOUT_SECONDS)
    etag = _stylesheet_etag(session)
    headers = {"ETag": etag, "Cache-Control": "no-cache"}
    if request.headers.get("if-none-match") == etag:
        return Response(status_code=304, headers=headers)
    return Response(content=session.stylesheet(), media_type="text/css", headers=headers)


# --- Branding (write, org admins) ---

@router.put("/branding", response_model=BrandingResponse)
async def update_branding(
    body: BrandingUpdate,
    claims: ClerkClaims = Depends(require_org_admin),
    db: Session = Depends(get_db),
    registry: ThemeRegistry = Depends(get_theme_registry),
):
    org = ensure_org_synced(db, claims.org_id, org_slug=claims.org_slug)
    row = _get_or_create_branding(db, org)
    before = _branding_fields(row)
    if body.colors is not None:
        row.colors = body.colors
    if body.font_family is not None:
        row.font_family = body.font_family or None
    if body.institution_name is not None:
        row.institution_name = body.institution_name or None
    if body.app_name is not None:
        row.app_name = body.app_name or None
    db.commit()
    changes = branding_changes(before, _branding_fields(row))
    if changes:
        audit_log(db, org.id, claims.sub, "update", "branding", row.id, changes)
        _LOG.info("branding updated org=%s fields=%s", claims.org_id, ",".join(changes))
    session = await registry.refresh(claims.org_id)
    return _branding_response(session)


@router.post("/branding/logo", response_model=BrandingResponse)
async def upload_branding_logo(
    file: UploadFile = File(...),
    claims: ClerkClaims = Depends(require_org_admin),
    db: Session = Depends(get_db),
    registry: ThemeRegistry = Depends(get_theme_registry),
):
    if not file.filename:
        raise HTTPException(status_code=400, detail="Missing filename")
    filename_lower = file.filename.lower().strip()
    content_type = (file.content_type or "").lower().strip()
    if content_type not in ALLOWED_LOGO_CONTENT_TYPES:
        if filename_lower.endswith(".png"):
            content_type = "image/png"
        elif filename_lower.endswith(".jpg") or filename_lower.endswith(".jpeg"):
            content_type = "image/jpeg"
        elif filename_lower.endswith(".svg"):
            content_type = "image/svg+xml"
    if content_type not in ALLOWED_LOGO_CONTENT_TYPES:
        raise HTTPException(status_code=400, detail="Logo must be PNG, JPG, or SVG")

    data = await file.read()
    if not data:
        raise HTTPException(status_code=400, detail="Empty file")
    if len(data) > MAX_LOGO_BYTES:
        raise HTTPException(status_code=413, detail="Logo exceeds 1.5MB")

    org = ensure_org_synced(db, claims.org_id, org_slug=claims.org_slug)
    row = _get_or_create_branding(db, org)
    row.logo_bytes = data
    row.logo_content_type = content_type
    row.logo_filename = file.filename
    row.logo_sha256 = hashlib.sha256(data).hexdigest()
    row.logo_updated_at = datetime.utcnow()
    db.commit()
    audit_log(
        db,
        org.id,
        claims.sub,
        "update",
        "branding_logo",
        row.id,
        {"filename": file.filename, "content_type": content_type, "sha256": row.logo_sha256},
    )
    session = await registry.refresh(claims.org_id)
    return _branding_response(session)


@router.delete("/branding/logo", response_model=BrandingResponse)
async def delete_branding_logo(
    claims: ClerkClaims = Depends(require_org_admin),
    db: Session = Depends(get_db),
    registry: ThemeRegistry = Depends(get_theme_registry),
):
    org = ensure_org_synced(db, claims.org_id, org_slug=claims.org_slug)
    row = (
        db.query(OrganizationBrandingModel)
        .filter(OrganizationBrandingModel.organization_id == org.id)
        .first()
    )
    if row and row.logo_bytes:
        row.logo_bytes = None
        row.logo_content_type = None
        row.logo_filename = None
        row.logo_sha256 = None
        row.logo_updated_at = None
        db.commit()
        audit_log(db, org.id, claims.sub, "delete", "branding_logo", row.id, {"logo_deleted": True})
    session = await registry.refresh(claims.org_id)
    return _branding_response(session)
