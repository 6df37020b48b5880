from __future__ import annotations

import asyncio
import logging
import os
import time
import uuid
from pathlib import Path

from dotenv import load_dotenv

# Load .env from backend directory so branding and Clerk settings are available
load_dotenv(Path(__file__).resolve().parent / ".env")

from fastapi import FastAPI, HTTPException, Request
from fastapi.middleware.cors import CORSMiddleware
from fastapi.responses import Response
from starlette.middleware.base import BaseHTTPMiddleware

from brands import list_brands
from routes.api import router as api_router
from routes.webhooks import router as webhooks_router
from theming import build_theme_registry
from theming.sources import BRANDING_ENV_VARS

# Version for /health and startup log (Render sets RENDER_GIT_COMMIT)
VERSION = (os.environ.get("RENDER_GIT_COMMIT") or "").strip() or "unknown"

# Same logger as uvicorn so Render shows all lines
_LOG = logging.getLogger("uvicorn.error")


def _debug_routes_enabled() -> bool:
    return (os.environ.get("ENABLE_DEBUG_ROUTES") or "").strip().lower() in ("1", "true", "yes")


app = FastAPI(title="TxH Registry Backend", version="0.1.0")
app.state.theme_registry = build_theme_registry()

# CORS: use ALLOWED_ORIGINS env (comma-separated) if set, else default
_origins_env = os.environ.get("ALLOWED_ORIGINS", "").strip()
if _origins_env:
    ALLOWED_ORIGINS = [o.strip() for o in _origins_env.split(",") if o.strip()]
else:
    ALLOWED_ORIGINS = [
        "http://localhost:3000",
        "http://127.0.0.1:3000",
    ]
app.add_middleware(
    CORSMiddleware,
    allow_origins=ALLOWED_ORIGINS,
    allow_credentials=True,
    allow_methods=["*"],
    allow_headers=["*"],
    expose_headers=["ETag", "X-Request-Id"],
)


class RequestLogMiddleware(BaseHTTPMiddleware):
    async def dispatch(self, request: Request, call_next):
        request_id = str(uuid.uuid4())[:8]
        request.state.request_id = request_id
        start = time.perf_counter()
        response = await call_next(request)
        duration_ms = (time.perf_counter() - start) * 1000
        _LOG.info(
            "request_id=%s method=%s path=%s status=%s duration_ms=%.0f",
            request_id,
            request.method,
            request.url.path,
            response.status_code,
            duration_ms,
        )
        response.headers["X-Request-Id"] = request_id
        return response


app.add_middleware(RequestLogMiddleware)
app.include_router(api_router)
app.include_router(webhooks_router)


@app.on_event("startup")
async def load_ambient_branding() -> None:
    """Kick off the ambient tenant's branding load; requests join it through the ready signal."""
    registry = app.state.theme_registry
    session = registry.session_for(None)
    app.state.ambient_branding_task = asyncio.create_task(
        session.load(registry.ambient_organization_id)
    )
    _LOG.info(
        "Backend starting version=%s ambient_org=%s branding_env=%s",
        VERSION,
        registry.ambient_organization_id or "-",
        ",".join(n for n in BRANDING_ENV_VARS if os.environ.get(n)) or "-",
    )


@app.get("/health")
def health():
    session = app.state.theme_registry.session_for(None)
    return {
        "status": "ok",
        "version": VERSION,
        "branding_loaded": session.is_loaded,
        "branding_phase": session.phase.value,
    }


@app.options("/brands")
def brands_options():
    """CORS preflight; ensure OPTIONS /brands returns 200."""
    return Response(status_code=200)


@app.get("/brands")
def get_brands_list():
    """In-repo branding registry (development organizations)."""
    return [b.model_dump() for b in list_brands()]


@app.get("/debug/branding")
def debug_branding():
    """Which branding env vars the process sees. Off unless ENABLE_DEBUG_ROUTES=1."""
    if not _debug_routes_enabled():
        raise HTTPException(status_code=404, detail="Not Found")
    registry = app.state.theme_registry
    session = registry.session_for(None)
    return {
        "env": {name: (os.environ.get(name) or "UNDEFINED") for name in BRANDING_ENV_VARS},
        "ambient_organization_id": registry.ambient_organization_id,
        "ambient_phase": session.phase.value,
        "ambient_loaded": session.is_loaded,
        "tenant_sessions": len(registry),
    }


def get_app() -> FastAPI:
    """
    Convenience accessor for ASGI servers.
    """
    return app


if __name__ == "__main__":
    import uvicorn
    uvicorn.run(
        "main:app",
        host="127.0.0.1",
        port=8010,
        reload=True,
    )
