"""
Bearer-token authentication.

Tokens are HS256 JWTs signed with SECRET_KEY; the `sub` claim is the user id
that owns every row the caller can read or write.
"""
from __future__ import annotations

from datetime import datetime, timedelta, timezone
from typing import Optional

from fastapi import Depends
from fastapi.security import HTTPAuthorizationCredentials, HTTPBearer
from jose import JWTError, jwt

from app.core.config import settings
from app.core.errors import NotAuthenticatedError

ACCESS_TOKEN_EXPIRE_MINUTES = 60 * 24 * 30  # 30 days

bearer_scheme = HTTPBearer(auto_error=False)


def create_access_token(user_id: str, expires_delta: Optional[timedelta] = None) -> str:
    expire = datetime.now(tz=timezone.utc) + (
        expires_delta or timedelta(minutes=ACCESS_TOKEN_EXPIRE_MINUTES)
    )
    return jwt.encode(
        {"sub": user_id, "exp": expire},
        settings.SECRET_KEY,
        algorithm=settings.JWT_ALGORITHM,
    )


def decode_user_id(token: str) -> str:
    try:
        payload = jwt.decode(token, settings.SECRET_KEY, algorithms=[settings.JWT_ALGORITHM])
    except JWTError:
        raise NotAuthenticatedError()
    user_id = payload.get("sub")
    if not user_id:
        raise NotAuthenticatedError()
    return str(user_id)


def get_current_user_id(
    credentials: Optional[HTTPAuthorizationCredentials] = Depends(bearer_scheme),
) -> str:
    """FastAPI dependency: resolve the caller's user id or raise 401."""
    if credentials is None or not credentials.credentials:
        raise NotAuthenticatedError()
    return decode_user_id(credentials.credentials)
