"""Branding records and the style-variable vocabulary shared with the front end."""
from __future__ import annotations

import enum
import hashlib
import json
import re
from typing import Dict, Optional

from pydantic import BaseModel, ConfigDict, Field, field_validator

HEX_COLOR_RE = re.compile(r"^#(?:[0-9a-fA-F]{3}|[0-9a-fA-F]{6})$")
UNSAFE_CSS_RE = re.compile(r"[;{}<>\\\n\r]")

PALETTE_SHADES: tuple[int, ...] = (50, 100, 200, 300, 400, 500, 600, 700, 800, 900)


class ColorRole(str, enum.Enum):
    primary = "primary"
    secondary = "secondary"
    accent = "accent"
    surface = "surface"
    background = "background"
    text = "text"
    muted = "muted"
    border = "border"
    success = "success"
    warning = "warning"
    danger = "danger"
    info = "info"


class StyleVariable(str, enum.Enum):
    """Style-variable names the front end may reference in its declarations."""
    color_primary = "--color-primary"
    color_secondary = "--color-secondary"
    color_accent = "--color-accent"
    color_surface = "--color-surface"
    color_background = "--color-background"
    color_text = "--color-text"
    color_muted = "--color-muted"
    color_border = "--color-border"
    color_success = "--color-success"
    color_warning = "--color-warning"
    color_danger = "--color-danger"
    color_info = "--color-info"
    font_family = "--font-family"


def color_variable(role: ColorRole) -> StyleVariable:
    return StyleVariable(f"--color-{role.value}")


def palette_variable(role: ColorRole, shade: int) -> str:
    return f"--color-{role.value}-{shade}"


RECOGNIZED_VARIABLES: frozenset[str] = frozenset(
    [v.value for v in StyleVariable]
    + [palette_variable(role, shade) for role in ColorRole for shade in PALETTE_SHADES]
)


def is_recognized_variable(name: str) -> bool:
    return name in RECOGNIZED_VARIABLES


# Flat mapping of variable name -> CSS value.
StyleVariableSet = Dict[str, str]


def theme_hash(variables: StyleVariableSet) -> str:
    """Stable hash of a variable set; used as ETag and to detect re-skins."""
    payload = json.dumps(variables, sort_keys=True, separators=(",", ":"))
    return hashlib.sha256(payload.encode("utf-8")).hexdigest()


class BrandingRecord(BaseModel):
    """Tenant branding as returned by a branding source. Superseded, never mutated."""
    model_config = ConfigDict(frozen=True)

    organization_id: str
    colors: Dict[str, str] = Field(default_factory=dict)
    font_family: Optional[str] = None
    logo_url: Optional[str] = None
    # Display identity (institution and product name shown in the navbar)
    institution_name: Optional[str] = None
    app_name: Optional[str] = None


class BrandingErrorKind(str, enum.Enum):
    source_unavailable = "source_unavailable"
    partial_record = "partial_record"


class ResolvedBranding(BaseModel):
    """Outcome of one resolution: the variable set plus the loaded flag."""
    model_config = ConfigDict(frozen=True)

    organization_id: Optional[str] = None
    variables: StyleVariableSet = Field(default_factory=dict)
    loaded: bool = False
    record: Optional[BrandingRecord] = None
    error: Optional[BrandingErrorKind] = None

    @property
    def degraded(self) -> bool:
        return self.error is not None

    @property
    def theme_hash(self) -> str:
        return theme_hash(self.variables)


class BrandingUpdate(BaseModel):
    """Body of PUT /api/v1/branding. Omitted fields are left unchanged."""
    colors: Optional[Dict[str, str]] = None
    font_family: Optional[str] = None
    institution_name: Optional[str] = None
    app_name: Optional[str] = None

    @field_validator("colors")
    @classmethod
    def _validate_colors(cls, value: Optional[Dict[str, str]]) -> Optional[Dict[str, str]]:
        if value is None:
            return value
        cleaned: Dict[str, str] = {}
        for role, color in value.items():
            key = (role or "").strip().lower()
            try:
                ColorRole(key)
            except ValueError:
                raise ValueError(f"Unknown color role: {role!r}")
            color = (color or "").strip()
            if not HEX_COLOR_RE.match(color):
                raise ValueError(f"Color for {key!r} must be #rgb or #rrggbb")
            cleaned[key] = color
        return cleaned

    @field_validator("font_family", "institution_name", "app_name")
    @classmethod
    def _validate_text(cls, value: Optional[str]) -> Optional[str]:
        if value is None:
            return value
        if UNSAFE_CSS_RE.search(value):
            raise ValueError("Must not contain ; { } < > or line breaks")
        return value.strip()


class BrandingResponse(BaseModel):
    organization_id: Optional[str] = None
    institution_name: str
    app_name: str
    logo_url: str
    colors: Dict[str, str] = Field(default_factory=dict)
    css_variables: StyleVariableSet = Field(default_factory=dict)
    is_loaded: bool = False
    is_custom_branding: bool = False
    theme_hash: str
    phase: str
    error: Optional[BrandingErrorKind] = None
