"""Tenant theming: branding sources, resolver, style scope and applier."""
from __future__ import annotations

import os

from theming.applier import BrandingApplier, ThemePhase, ThemeRegistry, ThemeSession, ThemeState
from theming.resolver import BrandingResolver, PartialRecord, SourceUnavailable, build_style_variables
from theming.scope import DEFAULT_STYLE_VARIABLES, StyleScope
from theming.sources import EnvBrandingOverlay, SqlBrandingSource, StaticBrandingSource


def build_theme_registry() -> ThemeRegistry:
    """
    Registry wired from env: BRANDING_SOURCE=database (default) reads organization_branding,
    BRANDING_SOURCE=registry serves brands.BRANDS. Environment overrides apply on top of either.
    DEFAULT_ORGANIZATION_ID names the ambient tenant for unauthenticated requests.
    """
    ambient = (os.environ.get("DEFAULT_ORGANIZATION_ID") or "").strip() or None
    kind = (os.environ.get("BRANDING_SOURCE") or "database").strip().lower()
    if kind == "registry":
        from brands import BRANDS
        inner = StaticBrandingSource(BRANDS, default_id=ambient or "default")
    else:
        from db.session import SessionLocal
        inner = SqlBrandingSource(SessionLocal, default_id=ambient)
    return ThemeRegistry(BrandingResolver(EnvBrandingOverlay(inner)), ambient_organization_id=ambient)


__all__ = [
    "BrandingApplier",
    "BrandingResolver",
    "DEFAULT_STYLE_VARIABLES",
    "EnvBrandingOverlay",
    "PartialRecord",
    "SourceUnavailable",
    "SqlBrandingSource",
    "StaticBrandingSource",
    "StyleScope",
    "ThemePhase",
    "ThemeRegistry",
    "ThemeSession",
    "ThemeState",
    "build_style_variables",
    "build_theme_registry",
]
