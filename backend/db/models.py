"""SQLAlchemy models for organizations and their branding. Use Alembic for migrations."""
from __future__ import annotations

from datetime import datetime
from sqlalchemy import JSON, Column, String, DateTime, ForeignKey, LargeBinary
from sqlalchemy.dialects.postgresql import JSONB
from sqlalchemy.orm import relationship

from .session import Base

# JSONB on Postgres; plain JSON elsewhere (sqlite in tests)
JSONType = JSON().with_variant(JSONB(), "postgresql")


class Organization(Base):
    __tablename__ = "organizations"

    id = Column(String, primary_key=True)
    clerk_org_id = Column("clerk_org_id", String, unique=True, nullable=False)
    name = Column(String, nullable=False)
    slug = Column(String, nullable=True)
    image_url = Column("image_url", String, nullable=True)
    created_at = Column("created_at", DateTime, default=datetime.utcnow)
    updated_at = Column("updated_at", DateTime, default=datetime.utcnow, onupdate=datetime.utcnow)

    audit_logs = relationship("AuditLog", back_populates="organization", passive_deletes=True)
    branding = relationship("OrganizationBranding", back_populates="organization", uselist=False, passive_deletes=True)


class AuditLog(Base):
    __tablename__ = "audit_log"

    id = Column(String, primary_key=True)
    organization_id = Column("organization_id", String, ForeignKey("organizations.id", ondelete="CASCADE"), nullable=False)
    actor_id = Column("actor_id", String, nullable=False)
    action = Column(String, nullable=False)
    resource_type = Column("resource_type", String, nullable=False)
    resource_id = Column("resource_id", String, nullable=True)
    details = Column(JSONType, nullable=True)
    created_at = Column("created_at", DateTime, default=datetime.utcnow)

    organization = relationship("Organization", back_populates="audit_logs")


class OrganizationBranding(Base):
    __tablename__ = "organization_branding"

    id = Column(String, primary_key=True)
    organization_id = Column(
        "organization_id",
        String,
        ForeignKey("organizations.id", ondelete="CASCADE"),
        nullable=False,
        unique=True,
    )
    colors = Column(JSONType, nullable=False, default=dict)  # role -> hex color
    font_family = Column("font_family", String, nullable=True)
    institution_name = Column("institution_name", String, nullable=True)
    app_name = Column("app_name", String, nullable=True)
    logo_bytes = Column("logo_bytes", LargeBinary, nullable=True)
    logo_content_type = Column("logo_content_type", String, nullable=True)
    logo_filename = Column("logo_filename", String, nullable=True)
    logo_sha256 = Column("logo_sha256", String, nullable=True)
    logo_updated_at = Column("logo_updated_at", DateTime, nullable=True)
    created_at = Column("created_at", DateTime, default=datetime.utcnow)
    updated_at = Column("updated_at", DateTime, default=datetime.utcnow, onupdate=datetime.utcnow)

    organization = relationship("Organization", back_populates="branding")
