"""
Sync Clerk organizations into the local DB. Call from the Clerk webhook or before writing branding.
"""
from __future__ import annotations

import uuid
from sqlalchemy.orm import Session

from db.models import Organization


def ensure_org_synced(
    db: Session,
    clerk_org_id: str,
    org_name: str = "",
    org_slug: str | None = None,
    image_url: str | None = None,
) -> Organization:
    """Create or update Organization by clerk_org_id. Use from Clerk organization.created/updated."""
    org = db.query(Organization).filter(Organization.clerk_org_id == clerk_org_id).first()
    if not org:
        org = Organization(
            id=str(uuid.uuid4()),
            clerk_org_id=clerk_org_id,
            name=org_name or org_slug or clerk_org_id,
            slug=org_slug,
            image_url=image_url,
        )
        db.add(org)
        db.flush()
    else:
        if org_name:
            org.name = org_name
        if org_slug is not None:
            org.slug = org_slug
        if image_url is not None:
            org.image_url = image_url
    db.commit()
    db.refresh(org)
    return org


def delete_org(db: Session, clerk_org_id: str) -> bool:
    """Remove an organization (branding and audit rows cascade). Returns False if unknown."""
    org = db.query(Organization).filter(Organization.clerk_org_id == clerk_org_id).first()
    if not org:
        return False
    db.delete(org)
    db.commit()
    return True
