"""
Seed organizations and their branding from the in-repo registry (brands.BRANDS).
Registry keys are used as Clerk org ids unless a mapping is given:

Usage:
  cd backend
  python3 scripts/seed_branding.py                       # every registry brand
  python3 scripts/seed_branding.py sample=org_2abcXYZ    # brand "sample" -> Clerk org org_2abcXYZ
"""
from __future__ import annotations

from pathlib import Path
import sys
import uuid

BACKEND_DIR = Path(__file__).resolve().parents[1]
if str(BACKEND_DIR) not in sys.path:
    sys.path.insert(0, str(BACKEND_DIR))

from sqlalchemy.orm import Session

from brands import BRANDS
from clerk_sync import ensure_org_synced
from db.models import OrganizationBranding
from db.session import session_scope
from models_branding import BrandingRecord


def seed_organization_branding(db: Session, clerk_org_id: str, record: BrandingRecord) -> OrganizationBranding:
    org = ensure_org_synced(db, clerk_org_id, org_name=record.institution_name or "")
    row = db.query(OrganizationBranding).filter(OrganizationBranding.organization_id == org.id).first()
    if row is None:
        row = OrganizationBranding(id=str(uuid.uuid4()), organization_id=org.id)
        db.add(row)
    row.colors = dict(record.colors)
    row.font_family = record.font_family
    row.institution_name = record.institution_name
    row.app_name = record.app_name
    db.commit()
    return row


def _targets(args: list[str]) -> list[tuple[str, str]]:
    if not args:
        return [(brand_id, brand_id) for brand_id in BRANDS]
    targets = []
    for arg in args:
        brand_id, _, clerk_org_id = arg.partition("=")
        if brand_id not in BRANDS:
            raise SystemExit(f"Unknown brand {brand_id!r}; known: {', '.join(BRANDS)}")
        targets.append((brand_id, clerk_org_id or brand_id))
    return targets


def main() -> None:
    with session_scope() as db:
        for brand_id, clerk_org_id in _targets(sys.argv[1:]):
            row = seed_organization_branding(db, clerk_org_id, BRANDS[brand_id])
            print(f"[seed] brand={brand_id} org={clerk_org_id} branding_id={row.id} colors={sorted(row.colors)}")


if __name__ == "__main__":
    main()
