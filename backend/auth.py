"""
Clerk JWT verification. The active organization in the session token is the tenant context.
Expect Authorization: Bearer <session_token>.
Set CLERK_JWT_ISSUER (e.g. https://your-clerk-domain.clerk.accounts.dev) and optionally CLERK_JWKS_URL.
"""
from __future__ import annotations

import os
from typing import Annotated, Optional

import jwt
from fastapi import Depends, HTTPException
from fastapi.security import HTTPAuthorizationCredentials, HTTPBearer
from pydantic import BaseModel

security = HTTPBearer(auto_error=False)

ORG_ADMIN_ROLES = {"org:admin", "admin"}


class ClerkClaims(BaseModel):
    sub: str  # clerk user id
    org_id: Optional[str] = None
    org_role: Optional[str] = None
    org_slug: Optional[str] = None

    @property
    def is_org_admin(self) -> bool:
        return (self.org_role or "") in ORG_ADMIN_ROLES


def verify_clerk_token(token: str) -> ClerkClaims:
    """Verify Clerk session JWT and return claims."""
    issuer = os.environ.get("CLERK_JWT_ISSUER")
    if not issuer:
        raise HTTPException(status_code=503, detail="CLERK_JWT_ISSUER not set")
    try:
        jwks_client = jwt.PyJWKClient(
            os.environ.get("CLERK_JWKS_URL", issuer.rstrip("/") + "/.well-known/jwks.json")
        )
        signing_key = jwks_client.get_signing_key_from_jwt(token)
        payload = jwt.decode(
            token,
            signing_key.key,
            algorithms=["RS256"],
            issuer=issuer,
            options={"verify_aud": False},
        )
    except jwt.PyJWKClientError as e:
        raise HTTPException(status_code=503, detail=f"JWKS unavailable: {e}")
    except jwt.InvalidTokenError as e:
        raise HTTPException(status_code=401, detail=f"Invalid token: {e}")
    return ClerkClaims(
        sub=payload.get("sub", ""),
        org_id=payload.get("org_id"),
        org_role=payload.get("org_role"),
        org_slug=payload.get("org_slug"),
    )


def get_optional_claims(
    creds: Annotated[Optional[HTTPAuthorizationCredentials], Depends(security)],
) -> Optional[ClerkClaims]:
    if not creds or not creds.credentials:
        return None
    return verify_clerk_token(creds.credentials)


def require_auth(
    claims: Annotated[Optional[ClerkClaims], Depends(get_optional_claims)],
) -> ClerkClaims:
    if not claims:
        raise HTTPException(status_code=401, detail="Not authenticated")
    return claims


def require_org_admin(
    claims: Annotated[ClerkClaims, Depends(require_auth)],
) -> ClerkClaims:
    """Require an active organization and the org admin role in the session token."""
    if not claims.org_id:
        raise HTTPException(status_code=403, detail="Organization context required")
    if not claims.is_org_admin:
        raise HTTPException(status_code=403, detail="Requires org admin")
    return claims
