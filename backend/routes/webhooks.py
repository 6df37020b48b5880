"""
Webhooks: Clerk organization sync. Name, slug and image changes re-skin the tenant.
"""
from __future__ import annotations

import json
import logging
import os

import svix
from fastapi import APIRouter, Request, HTTPException, Header, Depends
from sqlalchemy.orm import Session

from db.session import get_db

router = APIRouter(tags=["webhooks"])

_LOG = logging.getLogger("uvicorn.error")

ORG_SYNC_EVENTS = ("organization.created", "organization.updated")


@router.post("/webhooks/clerk")
async def clerk_webhook(
    request: Request,
    svix_id: str | None = Header(None, alias="Svix-Id"),
    svix_timestamp: str | None = Header(None, alias="Svix-Timestamp"),
    svix_signature: str | None = Header(None, alias="Svix-Signature"),
    db: Session = Depends(get_db),
):
    """Verify Svix signature and sync organizations from Clerk events."""
    from clerk_sync import delete_org, ensure_org_synced
    payload = await request.body()
    secret = os.environ.get("CLERK_WEBHOOK_SECRET")
    if not secret or not svix_signature:
        raise HTTPException(status_code=400, detail="CLERK_WEBHOOK_SECRET or Svix-Signature missing")
    try:
        wh = svix.Webhook(secret)
        wh.verify(payload, {"svix-id": svix_id, "svix-timestamp": svix_timestamp, "svix-signature": svix_signature})
    except Exception as e:
        raise HTTPException(status_code=400, detail=f"Invalid webhook: {e}")

    data = json.loads(payload)
    typ = data.get("type")
    obj = data.get("data", {}) or {}
    org_id = obj.get("id")
    registry = request.app.state.theme_registry
    if typ in ORG_SYNC_EVENTS and org_id:
        ensure_org_synced(
            db,
            org_id,
            org_name=obj.get("name") or "",
            org_slug=obj.get("slug"),
            image_url=obj.get("image_url"),
        )
        if org_id in registry:
            await registry.refresh(org_id)
        _LOG.info("clerk webhook type=%s org=%s synced", typ, org_id)
    elif typ == "organization.deleted" and org_id:
        delete_org(db, org_id)
        registry.discard(org_id)
        _LOG.info("clerk webhook type=%s org=%s removed", typ, org_id)
    return {"received": True}
