"""
Login smoke test: verify a Clerk session token against CLERK_JWT_ISSUER and print its claims.

Usage:
  cd backend
  CLERK_JWT_ISSUER=https://<your-clerk-domain> python3 scripts/check_clerk_token.py <session_token>
"""
from __future__ import annotations

from pathlib import Path
import sys

BACKEND_DIR = Path(__file__).resolve().parents[1]
if str(BACKEND_DIR) not in sys.path:
    sys.path.insert(0, str(BACKEND_DIR))

from fastapi import HTTPException

from auth import verify_clerk_token


def main() -> None:
    if len(sys.argv) != 2:
        raise SystemExit("Usage: check_clerk_token.py <session_token>")
    try:
        claims = verify_clerk_token(sys.argv[1].strip())
    except HTTPException as e:
        print(f"[token] FAILED status={e.status_code} detail={e.detail}")
        raise SystemExit(1)
    print(f"[token] OK user={claims.sub} org={claims.org_id or '-'} role={claims.org_role or '-'} org_admin={claims.is_org_admin}")


if __name__ == "__main__":
    main()
