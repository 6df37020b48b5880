"""
BrandingResolver: fetch a tenant's BrandingRecord and turn it into a StyleVariableSet.

Failures never reach the UI. A source error or timeout (SourceUnavailable) and a record
with nothing usable (PartialRecord) both resolve to an empty set with loaded=True, so the
front end renders with built-in defaults instead of waiting.
"""
from __future__ import annotations

import asyncio
import logging
import os
from typing import Iterable, Optional

from models_branding import (
    BrandingErrorKind,
    BrandingRecord,
    ColorRole,
    ResolvedBranding,
    StyleVariable,
    StyleVariableSet,
    color_variable,
    palette_variable,
)
from theming.palette import generate_color_palette, normalize_hex
from theming.scope import validate_property
from theming.sources import BrandingSource

_LOG = logging.getLogger("uvicorn.error")

BRANDING_FETCH_TIMEOUT_SECONDS = float(os.environ.get("BRANDING_FETCH_TIMEOUT_SECONDS", "5"))


def _parse_roles(raw: str) -> tuple[ColorRole, ...]:
    roles = []
    for part in raw.split(","):
        part = part.strip().lower()
        if not part:
            continue
        try:
            roles.append(ColorRole(part))
        except ValueError:
            _LOG.warning("BRANDING_PALETTE_ROLES: ignoring unknown role %r", part)
    return tuple(roles)


BRANDING_PALETTE_ROLES = _parse_roles(os.environ.get("BRANDING_PALETTE_ROLES", ""))


class BrandingError(Exception):
    kind: BrandingErrorKind

    def __init__(self, message: str, organization_id: Optional[str] = None):
        super().__init__(message)
        self.organization_id = organization_id


class SourceUnavailable(BrandingError):
    kind = BrandingErrorKind.source_unavailable


class PartialRecord(BrandingError):
    kind = BrandingErrorKind.partial_record


def build_style_variables(
    record: BrandingRecord,
    palette_roles: Iterable[ColorRole] = (),
) -> StyleVariableSet:
    """
    Deterministic record -> variables transform.
    Role "primary" -> "--color-primary"; unknown roles and invalid colors are dropped.
    Roles in palette_roles also get "--color-<role>-50" .. "-900".
    A record with no colors and no font (identity only) gives an empty set.
    Raises PartialRecord when it had some but none was usable.
    """
    palette_roles = set(palette_roles)
    if not record.colors and not (record.font_family or "").strip():
        return {}
    variables: StyleVariableSet = {}
    for raw_role, raw_color in record.colors.items():
        try:
            role = ColorRole((raw_role or "").strip().lower())
        except ValueError:
            _LOG.warning("branding org=%s unknown color role %r dropped", record.organization_id, raw_role)
            continue
        color = normalize_hex(raw_color)
        if color is None:
            _LOG.warning("branding org=%s invalid color for %s dropped: %r", record.organization_id, role.value, raw_color)
            continue
        variables[color_variable(role).value] = color
        if role in palette_roles:
            for shade, value in generate_color_palette(color).items():
                variables[palette_variable(role, shade)] = value

    font = (record.font_family or "").strip()
    if font:
        try:
            validate_property(StyleVariable.font_family.value, font)
            variables[StyleVariable.font_family.value] = font
        except ValueError:
            _LOG.warning("branding org=%s unsafe font_family dropped", record.organization_id)

    if not variables:
        raise PartialRecord("branding record has no usable colors or font", record.organization_id)
    return variables


class BrandingResolver:
    def __init__(
        self,
        source: BrandingSource,
        timeout: float = BRANDING_FETCH_TIMEOUT_SECONDS,
        palette_roles: Iterable[ColorRole] = BRANDING_PALETTE_ROLES,
    ):
        self.source = source
        self.timeout = timeout
        self.palette_roles = tuple(palette_roles)

    async def _fetch(self, organization_id: Optional[str]) -> Optional[BrandingRecord]:
        try:
            return await asyncio.wait_for(
                self.source.get_branding_for_organization(organization_id),
                timeout=self.timeout,
            )
        except asyncio.TimeoutError as e:
            raise SourceUnavailable(f"timed out after {self.timeout}s", organization_id) from e
        except Exception as e:
            raise SourceUnavailable(str(e) or e.__class__.__name__, organization_id) from e

    async def resolve(self, organization_id: Optional[str] = None) -> ResolvedBranding:
        try:
            record = await self._fetch(organization_id)
        except SourceUnavailable as e:
            _LOG.warning("branding org=%s source unavailable: %s; using defaults", organization_id, e)
            return ResolvedBranding(organization_id=organization_id, loaded=True, error=e.kind)

        if record is None:
            _LOG.info("branding org=%s no record; using defaults", organization_id)
            return ResolvedBranding(organization_id=organization_id, loaded=True)

        try:
            variables = build_style_variables(record, self.palette_roles)
        except PartialRecord as e:
            _LOG.warning("branding org=%s partial record: %s; using defaults", organization_id, e)
            return ResolvedBranding(organization_id=organization_id, loaded=True, record=record, error=e.kind)

        return ResolvedBranding(
            organization_id=organization_id,
            variables=variables,
            loaded=True,
            record=record,
        )
