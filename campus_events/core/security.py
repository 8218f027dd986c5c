from typing import Optional

import jwt
from fastapi import Header, HTTPException, Request

from campus_events.core.config import settings


def create_access_token(data: dict) -> str:
    return jwt.encode(data, settings.JWT_SECRET, algorithm=settings.JWT_ALGORITHM)


def get_current_caller(request: Request) -> Optional[dict]:
    """Decode the bearer token, or return None for anonymous callers.

    Rejecting anonymous calls is left to the service so it can answer with
    a structured ``unauthenticated`` error.
    """
    auth_header = request.headers.get("Authorization")
    if not auth_header:
        return None
    try:
        scheme, token = auth_header.split(" ", 1)
        if scheme.lower() != "bearer" or not token:
            return None
        payload = jwt.decode(token, settings.JWT_SECRET, algorithms=[settings.JWT_ALGORITHM])
    except (jwt.PyJWTError, ValueError):
        return None
    if not payload.get("sub"):
        return None
    return payload


def require_api_key(x_api_key: Optional[str] = Header(default=None)) -> None:
    """Enforce ``X-API-Key`` only when a public key is configured."""
    expected = settings.PUBLIC_API_KEY
    if expected and x_api_key != expected:
        raise HTTPException(status_code=401, detail="Unauthorized: invalid API key")
