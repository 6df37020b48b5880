"""
Applying resolved branding to a rendering root.

BrandingApplier writes a StyleVariableSet into a StyleScope. ThemeSession owns one scope,
its published ThemeState and the ready signal; it is the single writer for that scope.
ThemeRegistry keeps one session per tenant and is attached to the FastAPI app state.
"""
from __future__ import annotations

import asyncio
import enum
import logging
import os
from typing import Dict, Mapping, Optional

from pydantic import BaseModel, ConfigDict, Field

from models_branding import BrandingErrorKind, BrandingRecord, ResolvedBranding, StyleVariableSet, is_recognized_variable, theme_hash
from theming.resolver import BrandingResolver
from theming.scope import StyleScope

_LOG = logging.getLogger("uvicorn.error")

BRANDING_RESET_BEFORE_APPLY = os.environ.get("BRANDING_RESET_BEFORE_APPLY", "true").strip().lower() not in ("0", "false", "no")


class ThemePhase(str, enum.Enum):
    uninitialized = "uninitialized"
    unthemed = "unthemed"
    themed = "themed"


class ThemeState(BaseModel):
    """What renderers see: the applied variables and whether theming has settled."""
    model_config = ConfigDict(frozen=True)

    current_variables: StyleVariableSet = Field(default_factory=dict)
    is_loaded: bool = False
    organization_id: Optional[str] = None

    @property
    def theme_hash(self) -> str:
        return theme_hash(self.current_variables)


class BrandingApplier:
    """
    Synchronizes (variables, is_loaded) onto a scope.
    Runs once per distinct variable set and never while is_loaded is false.
    With reset_before_apply the scope goes back to its defaults first, so keys from a
    previous tenant cannot survive a switch; without it the apply is overwrite-only.
    """

    def __init__(self, scope: StyleScope, reset_before_apply: bool = BRANDING_RESET_BEFORE_APPLY):
        self.scope = scope
        self.reset_before_apply = reset_before_apply
        self.apply_count = 0
        self._last_applied: Optional[tuple[tuple[str, str], ...]] = None

    def observe(self, variables: Mapping[str, str], is_loaded: bool) -> None:
        if not is_loaded:
            return
        fingerprint = tuple(sorted(variables.items()))
        if fingerprint == self._last_applied:
            return
        if self.reset_before_apply:
            self.scope.reset()
        for name, value in fingerprint:
            if not is_recognized_variable(name):
                _LOG.warning("branding unrecognized style variable %s skipped", name)
                continue
            self.scope.set_property(name, value)
        self._last_applied = fingerprint
        self.apply_count += 1


class ThemeSession:
    def __init__(
        self,
        resolver: BrandingResolver,
        scope: Optional[StyleScope] = None,
        reset_before_apply: bool = BRANDING_RESET_BEFORE_APPLY,
    ):
        self.resolver = resolver
        self.scope = scope if scope is not None else StyleScope()
        self.applier = BrandingApplier(self.scope, reset_before_apply=reset_before_apply)
        self.state = ThemeState()
        self.phase = ThemePhase.uninitialized
        self.record: Optional[BrandingRecord] = None
        self.last_resolution: Optional[ResolvedBranding] = None
        self._generation = 0
        self._in_flight = 0
        self._ready = asyncio.Event()

    @property
    def is_loaded(self) -> bool:
        return self.state.is_loaded

    @property
    def loading(self) -> bool:
        return self._in_flight > 0

    async def load(self, organization_id: Optional[str] = None) -> bool:
        """
        Resolve and apply branding for organization_id.
        Returns False when a newer load started meanwhile; that result is dropped.
        """
        self._generation += 1
        generation = self._generation
        self._in_flight += 1
        try:
            resolved = await self.resolver.resolve(organization_id)
        finally:
            self._in_flight -= 1
        if generation != self._generation:
            _LOG.info(
                "branding org=%s stale resolution dropped generation=%s latest=%s",
                organization_id, generation, self._generation,
            )
            return False
        self._publish(resolved)
        return True

    def _publish(self, resolved: ResolvedBranding) -> None:
        keep_current = (
            resolved.error == BrandingErrorKind.source_unavailable
            and self.phase == ThemePhase.themed
            and self.state.organization_id == resolved.organization_id
        )
        if keep_current:
            _LOG.warning(
                "branding org=%s source unavailable; keeping current theme",
                resolved.organization_id,
            )
        else:
            # Apply first: renderers must not see is_loaded before the scope is written.
            self.applier.observe(resolved.variables, resolved.loaded)
            if resolved.loaded:
                self.state = ThemeState(
                    current_variables=dict(resolved.variables),
                    is_loaded=True,
                    organization_id=resolved.organization_id,
                )
                self.phase = ThemePhase.themed if resolved.variables else ThemePhase.unthemed
                self.record = resolved.record
                _LOG.info(
                    "branding org=%s applied phase=%s variables=%s theme_hash=%s",
                    resolved.organization_id, self.phase.value, len(resolved.variables), self.state.theme_hash[:12],
                )
        self.last_resolution = resolved
        if self.state.is_loaded:
            self._ready.set()

    async def wait_until_ready(self, timeout: Optional[float] = None) -> bool:
        if self.state.is_loaded:
            return True
        try:
            await asyncio.wait_for(self._ready.wait(), timeout=timeout)
        except asyncio.TimeoutError:
            return False
        return True

    def stylesheet(self, selector: str = ":root") -> str:
        return self.scope.to_css(selector)


class ThemeRegistry:
    """One ThemeSession per tenant; the `None` key is the ambient (deployment) tenant."""

    def __init__(
        self,
        resolver: BrandingResolver,
        ambient_organization_id: Optional[str] = None,
        reset_before_apply: bool = BRANDING_RESET_BEFORE_APPLY,
    ):
        self.resolver = resolver
        self.ambient_organization_id = ambient_organization_id
        self.reset_before_apply = reset_before_apply
        self._sessions: Dict[Optional[str], ThemeSession] = {}

    def _organization_for(self, key: Optional[str]) -> Optional[str]:
        return key if key is not None else self.ambient_organization_id

    def session_for(self, organization_id: Optional[str]) -> ThemeSession:
        session = self._sessions.get(organization_id)
        if session is None:
            session = ThemeSession(self.resolver, reset_before_apply=self.reset_before_apply)
            self._sessions[organization_id] = session
        return session

    async def ensure_loaded(self, organization_id: Optional[str], timeout: Optional[float] = None) -> ThemeSession:
        """
        Session for the tenant, loaded. Joins a load already in flight (startup) for up to
        `timeout` seconds before starting a new one.
        """
        session = self.session_for(organization_id)
        if session.is_loaded:
            return session
        if session.loading and await session.wait_until_ready(timeout):
            return session
        await session.load(self._organization_for(organization_id))
        return session

    async def refresh(self, organization_id: Optional[str]) -> ThemeSession:
        """Re-resolve after the tenant's branding changed; clients re-skin on next fetch."""
        session = self.session_for(organization_id)
        await session.load(self._organization_for(organization_id))
        return session

    def discard(self, organization_id: Optional[str]) -> None:
        self._sessions.pop(organization_id, None)

    def __contains__(self, organization_id: object) -> bool:
        return organization_id in self._sessions

    def __len__(self) -> int:
        return len(self._sessions)
