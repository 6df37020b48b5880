"""In-repo branding registry for development and single-tenant deployments."""
from __future__ import annotations

from models_branding import BrandingRecord

DEFAULT_INSTITUTION_NAME = "Sistema TxH"
DEFAULT_APP_NAME = "Sistema Registro TxH"
DEFAULT_LOGO_URL = "/logo.jpg"

BRANDS: dict[str, BrandingRecord] = {
    "default": BrandingRecord(
        organization_id="default",
        colors={
            "primary": "#00a0a0",
            "secondary": "#0057e6",
        },
        font_family=None,
        logo_url=DEFAULT_LOGO_URL,
        institution_name=DEFAULT_INSTITUTION_NAME,
        app_name=DEFAULT_APP_NAME,
    ),
    "sample": BrandingRecord(
        organization_id="sample",
        colors={
            "primary": "#2c5282",
            "secondary": "#718096",
            "danger": "#c53030",
        },
        font_family="'Segoe UI', system-ui, sans-serif",
        logo_url=None,
        institution_name="Hospital de Ejemplo",
        app_name=DEFAULT_APP_NAME,
    ),
}


def get_brand(organization_id: str) -> BrandingRecord | None:
    return BRANDS.get(organization_id)


def list_brands() -> list[BrandingRecord]:
    return list(BRANDS.values())
