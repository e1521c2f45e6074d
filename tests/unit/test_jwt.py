"""JWT principal extraction tests."""

from datetime import timedelta

import jwt
import pytest

from meditrack.auth.jwt import create_access_token, verify_token
from meditrack.config import get_settings


class TestAccessToken:
    def test_roundtrip_subject(self):
        payload = verify_token(create_access_token("alice"))
        assert payload["sub"] == "alice"
        assert payload["iss"] == get_settings().jwt_issuer
        assert payload["type"] == "access"

    def test_expired(self):
        token = create_access_token("alice", expires_in=timedelta(seconds=-1))
        with pytest.raises(jwt.InvalidTokenError, match="expired"):
            verify_token(token)

    def test_wrong_type(self):
        token = create_access_token("alice")
        with pytest.raises(jwt.InvalidTokenError, match="Expected token type"):
            verify_token(token, expected_type="refresh")

    def test_wrong_secret(self):
        settings = get_settings()
        forged = jwt.encode(
            {"sub": "alice", "iss": settings.jwt_issuer, "type": "access"},
            "some-other-secret-of-sufficient-length-000",
            algorithm="HS256",
        )
        with pytest.raises(jwt.InvalidTokenError):
            verify_token(forged)

    def test_missing_subject(self):
        settings = get_settings()
        token = jwt.encode(
            {"iss": settings.jwt_issuer, "type": "access"},
            settings.jwt_secret,
            algorithm=settings.jwt_algorithm,
        )
        with pytest.raises(jwt.InvalidTokenError):
            verify_token(token)
