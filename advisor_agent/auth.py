"""Authentication dependency for the flow API.

The host's gateway authenticates the advisor and forwards two things:
a shared bearer token proving the request came through the gateway, and
the advisor id in the ``X-Caller-Id`` header.

Behavior matrix:
  API_KEY set + valid token   → check caller id
  API_KEY set + wrong/missing → 401 Unauthorized
  API_KEY empty + DEBUG=true  → check caller id (local dev convenience)
  API_KEY empty + DEBUG=false → 403 Forbidden (locked in production)
  caller id missing / not an integer → 401 Unauthorized
"""

from __future__ import annotations

import logging

from fastapi import Depends, Header, HTTPException, status
from fastapi.security import HTTPAuthorizationCredentials, HTTPBearer

from advisor_agent.config import settings

log = logging.getLogger("advisor_agent.auth")

_bearer_scheme = HTTPBearer(auto_error=False)


async def require_api_token(
    credentials: HTTPAuthorizationCredentials | None = Depends(_bearer_scheme),
) -> None:
    """FastAPI dependency — protect the flow API with a bearer token."""
    key = settings.api_key

    if not key:
        if settings.debug:
            return
        raise HTTPException(
            status_code=status.HTTP_403_FORBIDDEN,
            detail="API key not configured. Set API_KEY in .env.",
        )

    if credentials is None or credentials.credentials != key:
        raise HTTPException(
            status_code=status.HTTP_401_UNAUTHORIZED,
            detail="Invalid or missing API token.",
            headers={"WWW-Authenticate": "Bearer"},
        )


async def require_caller(
    _: None = Depends(require_api_token),
    x_caller_id: str | None = Header(default=None),
) -> int:
    """FastAPI dependency — return the authenticated advisor id."""
    if not x_caller_id:
        raise HTTPException(
            status_code=status.HTTP_401_UNAUTHORIZED,
            detail="User not authenticated.",
        )
    try:
        return int(x_caller_id)
    except ValueError:
        log.warning("Rejected non-numeric caller id %r", x_caller_id)
        raise HTTPException(
            status_code=status.HTTP_401_UNAUTHORIZED,
            detail="Invalid caller id.",
        )
