"""FastAPI authentication dependencies."""

from __future__ import annotations

import jwt
from fastapi import HTTPException, Security
from fastapi.security import HTTPAuthorizationCredentials, HTTPBearer

from meditrack.auth.jwt import verify_token
from meditrack.db.models import PRINCIPAL_LENGTH

_bearer = HTTPBearer()


async def get_current_principal(
    credentials: HTTPAuthorizationCredentials = Security(_bearer),
) -> str:
    """Extract and verify the JWT, return the caller's principal. Raises 401."""
    try:
        payload = verify_token(credentials.credentials, expected_type="access")
    except jwt.InvalidTokenError as e:
        raise HTTPException(status_code=401, detail=str(e)) from e

    principal = str(payload["sub"])
    if len(principal) > PRINCIPAL_LENGTH:
        raise HTTPException(status_code=401, detail="Principal too long")
    return principal
