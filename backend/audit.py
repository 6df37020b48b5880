"""Audit log helpers. Call after branding mutations."""
from __future__ import annotations

import uuid
from typing import Any, Mapping

from sqlalchemy.orm import Session

from db.models import AuditLog


def branding_changes(before: Mapping[str, Any], after: Mapping[str, Any]) -> dict[str, dict[str, Any]]:
    """Field-level diff for the audit entry: {field: {"from": old, "to": new}} for changed fields only."""
    changes: dict[str, dict[str, Any]] = {}
    for key in sorted(set(before) | set(after)):
        old, new = before.get(key), after.get(key)
        if old != new:
            changes[key] = {"from": old, "to": new}
    return changes


def log(
    db: Session,
    organization_id: str,
    actor_id: str,
    action: str,
    resource_type: str,
    resource_id: str | None = None,
    details: dict | None = None,
) -> AuditLog:
    entry = AuditLog(
        id=str(uuid.uuid4()),
        organization_id=organization_id,
        actor_id=actor_id,
        action=action,
        resource_type=resource_type,
        resource_id=resource_id,
        details=details or {},
    )
    db.add(entry)
    db.commit()
    return entry
