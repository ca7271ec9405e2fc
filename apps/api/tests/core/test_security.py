"""
Tests for password hashing, session tokens and activation tokens.
"""

from datetime import timedelta
from uuid import UUID

from portal.core.security import (
    create_access_token,
    decode_token,
    generate_activation_token,
    hash_password,
    verify_password,
)


class TestPasswords:
    def test_hash_and_verify(self):
        hashed = hash_password("LongEnough1")

        assert hashed != "LongEnough1"
        assert verify_password("LongEnough1", hashed) is True
        assert verify_password("LongEnough2", hashed) is False

    def test_malformed_hash_does_not_verify(self):
        assert verify_password("LongEnough1", "not-a-bcrypt-hash") is False


class TestTokens:
    def test_access_token_round_trip(self):
        token = create_access_token("identity-1", additional_claims={"email": "jane@example.com"})

        claims = decode_token(token)

        assert claims["sub"] == "identity-1"
        assert claims["type"] == "access"
        assert claims["email"] == "jane@example.com"

    def test_expired_token_is_rejected(self):
        token = create_access_token("identity-1", expires_delta=timedelta(seconds=-5))
        assert decode_token(token) is None

    def test_tampered_token_is_rejected(self):
        token = create_access_token("identity-1")
        assert decode_token(token[:-2] + "xx") is None

    def test_activation_tokens_are_unique_uuids(self):
        first = generate_activation_token()
        second = generate_activation_token()

        assert first != second
        assert str(UUID(first)) == first
