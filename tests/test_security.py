"""
Unit tests for administrator authentication and access tokens.
"""

import pytest
from jose import JWTError

from vaccination_portal.config import settings
from vaccination_portal.security import (
    ADMIN_ID,
    authenticate,
    create_access_token,
    decode_access_token,
)


def test_authenticate_with_configured_credentials():
    identity = authenticate(settings.ADMIN_USERNAME, settings.ADMIN_PASSWORD)

    assert identity is not None
    assert identity.id == ADMIN_ID
    assert identity.role == "admin"


def test_authenticate_wrong_password():
    assert authenticate(settings.ADMIN_USERNAME, "wrong") is None


def test_authenticate_wrong_username():
    assert authenticate("someone", settings.ADMIN_PASSWORD) is None


def test_token_round_trip():
    identity = authenticate(settings.ADMIN_USERNAME, settings.ADMIN_PASSWORD)

    decoded = decode_access_token(create_access_token(identity))

    assert decoded == identity


def test_expired_token_rejected():
    identity = authenticate(settings.ADMIN_USERNAME, settings.ADMIN_PASSWORD)
    token = create_access_token(identity, expires_minutes=-1)

    with pytest.raises(JWTError):
        decode_access_token(token)


def test_tampered_token_rejected():
    identity = authenticate(settings.ADMIN_USERNAME, settings.ADMIN_PASSWORD)
    token = create_access_token(identity)

    with pytest.raises(JWTError):
        decode_access_token(token[:-2] + ("AA" if not token.endswith("AA") else "BB"))
