"""
Pydantic schemas for login and the authenticated identity.
"""

from pydantic import BaseModel


class LoginRequest(BaseModel):
    username: str
    password: str


class AdminIdentity(BaseModel):
    """Caller identity carried by the access token."""
    id: str
    username: str
    role: str = "admin"


class TokenResponse(BaseModel):
    access_token: str
    token_type: str = "bearer"
    user: AdminIdentity
