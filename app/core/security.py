"""Bearer token extraction for calls forwarded to the travel API."""
from __future__ import annotations

import hashlib

from fastapi import Depends, HTTPException, status
from fastapi.security import HTTPAuthorizationCredentials, HTTPBearer

AUTH_SCHEME = HTTPBearer(auto_error=False)


def token_fingerprint(token: str) -> str:
    """Stable owner key for a bearer token; the raw token is never stored."""
    return hashlib.sha256(token.encode("utf-8")).hexdigest()


def get_bearer_token(
    creds: HTTPAuthorizationCredentials | None = Depends(AUTH_SCHEME),
) -> str:
    if creds is None or not creds.credentials:
        raise HTTPException(
            status_code=status.HTTP_401_UNAUTHORIZED,
            detail="Missing authorization token",
        )
    return creds.credentials


def get_session_owner(token: str = Depends(get_bearer_token)) -> str:
    return token_fingerprint(token)
