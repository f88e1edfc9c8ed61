"""Owner authentication: password login issuing a signed bearer token."""

import hmac
from datetime import UTC, datetime, timedelta

from fastapi import Depends, HTTPException, status
from fastapi.security import HTTPAuthorizationCredentials, HTTPBearer
from jose import JWTError, jwt

from ledger.config import get_settings

OWNER_ROLE = "owner"

security = HTTPBearer(auto_error=False)


def check_owner_password(password: str) -> bool:
    return hmac.compare_digest(password.encode(), get_settings().OWNER_PASSWORD.encode())


def create_access_token(role: str = OWNER_ROLE, expires_delta: timedelta | None = None) -> str:
    settings = get_settings()
    expire = datetime.now(UTC) + (expires_delta or timedelta(minutes=settings.ACCESS_TOKEN_EXPIRE_MINUTES))
    payload = {"role": role, "sub": role, "exp": expire}
    return jwt.encode(payload, settings.JWT_SECRET, algorithm=settings.JWT_ALGORITHM)


def decode_token(token: str) -> dict | None:
    settings = get_settings()
    try:
        return jwt.decode(token, settings.JWT_SECRET, algorithms=[settings.JWT_ALGORITHM])
    except JWTError:
        return None


def require_owner(
    credentials: HTTPAuthorizationCredentials | None = Depends(security),
) -> str:
    """Return the acting role for an owner token, or reject the request with 401."""
    credentials_exception = HTTPException(
        status_code=status.HTTP_401_UNAUTHORIZED,
        detail="Authentication required",
        headers={"WWW-Authenticate": "Bearer"},
    )
    if credentials is None:
        raise credentials_exception

    payload = decode_token(credentials.credentials)
    if payload is None or payload.get("role") != OWNER_ROLE:
        raise credentials_exception
    return payload["role"]
