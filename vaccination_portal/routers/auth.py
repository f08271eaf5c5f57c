"""
Router for authentication.
POST /api/auth/login : exchanges the administrator credentials for a token.
"""

import logging

from fastapi import APIRouter, HTTPException, status

from vaccination_portal.schemas.auth import LoginRequest, TokenResponse
from vaccination_portal.security import authenticate, create_access_token

logger = logging.getLogger(__name__)

router = APIRouter(prefix="/api/auth", tags=["Authentication"])


@router.post("/login", response_model=TokenResponse, summary="Log in")
def login(data: LoginRequest):
    """Returns a signed Bearer token for the administrator."""
    identity = authenticate(data.username, data.password)
    if identity is None:
        logger.warning("Failed login attempt for '%s'", data.username)
        raise HTTPException(status_code=status.HTTP_401_UNAUTHORIZED, detail="Invalid credentials.")
    return TokenResponse(access_token=create_access_token(identity), user=identity)
