"""
Access tokens and the authenticated administrator.

The portal knows a single administrator configured through ADMIN_USERNAME /
ADMIN_PASSWORD. Services never see credentials: routers receive the identity
from get_current_admin and pass what they need (e.g. created_by) along.
"""

import hmac
import logging
from datetime import datetime, timedelta, timezone
from typing import Optional

from fastapi import Depends, HTTPException, status
from fastapi.security import HTTPAuthorizationCredentials, HTTPBearer
from jose import JWTError, jwt

from vaccination_portal.config import settings
from vaccination_portal.schemas.auth import AdminIdentity

logger = logging.getLogger(__name__)

ADMIN_ID = "1"

bearer_scheme = HTTPBearer(auto_error=False)


def authenticate(username: str, password: str) -> Optional[AdminIdentity]:
    """Returns the admin identity if the credentials match, None otherwise."""
    username_ok = hmac.compare_digest(username.encode("utf-8"), settings.ADMIN_USERNAME.encode("utf-8"))
    password_ok = hmac.compare_digest(password.encode("utf-8"), settings.ADMIN_PASSWORD.encode("utf-8"))
    if not (username_ok and password_ok):
        return None
    return AdminIdentity(id=ADMIN_ID, username=settings.ADMIN_USERNAME, role="admin")


def create_access_token(identity: AdminIdentity, expires_minutes: Optional[int] = None) -> str:
    if expires_minutes is None:
        expires_minutes = settings.ACCESS_TOKEN_EXPIRE_MINUTES

    to_encode = {
        "sub": identity.id,
        "username": identity.username,
        "role": identity.role,
        "exp": datetime.now(timezone.utc) + timedelta(minutes=expires_minutes),
    }
    return jwt.encode(to_encode, settings.SECRET_KEY, algorithm=settings.ALGORITHM)


def decode_access_token(token: str) -> AdminIdentity:
    """Raises JWTError if the token is invalid, expired or incomplete."""
    payload = jwt.decode(token, settings.SECRET_KEY, algorithms=[settings.ALGORITHM])
    subject = payload.get("sub")
    username = payload.get("username")
    if not subject or not username:
        raise JWTError("Token is missing its subject.")
    return AdminIdentity(id=subject, username=username, role=payload.get("role", "admin"))


def get_current_admin(
    credentials: Optional[HTTPAuthorizationCredentials] = Depends(bearer_scheme),
) -> AdminIdentity:
    """FastAPI dependency: the identity carried by the Bearer token, or 401."""
    if credentials is None:
        raise HTTPException(
            status_code=status.HTTP_401_UNAUTHORIZED,
            detail="No authentication token, access denied.",
            headers={"WWW-Authenticate": "Bearer"},
        )
    try:
        return decode_access_token(credentials.credentials)
    except JWTError:
        logger.warning("Rejected an invalid access token")
        raise HTTPException(
            status_code=status.HTTP_401_UNAUTHORIZED,
            detail="Token is invalid.",
            headers={"WWW-Authenticate": "Bearer"},
        )
