"""Unit tests for token_service module."""

import pytest

from tasktracker.core.errors import InvalidTokenError, TokenExpiredError
from tasktracker.services.token_service import TokenCodec, get_token_codec


USER = {"id": "42", "email": "a@x.com", "name": "Alice"}


@pytest.mark.unit
class TestTokenCodec:
    """Tests for issuing and verifying bearer tokens."""

    def test_issued_token_verifies_to_same_identity(self, token_codec):
        """A freshly issued token round-trips the user's identity."""
        claim = token_codec.verify(token_codec.issue(USER))

        assert claim.id == "42"
        assert claim.email == "a@x.com"
        assert claim.name == "Alice"
        assert claim.expires_at - claim.issued_at == 24 * 3600

    def test_integer_user_id_is_stringified(self, token_codec):
        claim = token_codec.verify(token_codec.issue({**USER, "id": 7}))

        assert claim.id == "7"

    def test_expired_token_raises_token_expired(self, token_codec, expired_token_codec):
        """Tokens past their expiry are rejected with TokenExpired, not InvalidToken."""
        token = expired_token_codec.issue(USER)

        with pytest.raises(TokenExpiredError):
            token_codec.verify(token)

    def test_expiry_boundary_is_exclusive(self):
        """A token is invalid at exactly ``exp``."""
        now = [1_000_000.0]
        codec = TokenCodec(secret_key="k", ttl_seconds=60, clock=lambda: now[0])
        token = codec.issue(USER)

        now[0] += 59
        assert codec.verify(token).id == "42"

        now[0] += 1
        with pytest.raises(TokenExpiredError):
            codec.verify(token)

    def test_token_signed_with_other_secret_is_invalid(self, token_codec):
        other = TokenCodec(secret_key="another-secret", ttl_seconds=3600)

        with pytest.raises(InvalidTokenError):
            token_codec.verify(other.issue(USER))

    def test_tampered_token_is_invalid(self, token_codec):
        token = token_codec.issue(USER)
        tampered = ("B" if token.startswith("A") else "A") + token[1:]

        with pytest.raises(InvalidTokenError):
            token_codec.verify(tampered)

    @pytest.mark.parametrize("garbage", ["", "not-a-token", "a.b.c"])
    def test_garbage_is_invalid(self, token_codec, garbage):
        with pytest.raises(InvalidTokenError):
            token_codec.verify(garbage)

    def test_signed_payload_missing_claims_is_invalid(self, token_codec):
        """A correctly signed payload that lacks required claims is still rejected."""
        token = token_codec._serializer.dumps({"id": "1"})

        with pytest.raises(InvalidTokenError):
            token_codec.verify(token)

    def test_empty_secret_rejected(self):
        with pytest.raises(ValueError, match="must not be empty"):
            TokenCodec(secret_key="", ttl_seconds=60)


@pytest.mark.unit
class TestGetTokenCodec:
    """Tests for the settings-backed dependency."""

    def test_uses_configured_secret(self, test_settings, token_codec):
        codec = get_token_codec()

        assert token_codec.verify(codec.issue(USER)).id == "42"

    def test_uses_configured_ttl(self, monkeypatch, test_settings):
        monkeypatch.setattr(test_settings, "token_ttl_hours", 2)

        claim = get_token_codec().verify(get_token_codec().issue(USER))

        assert claim.expires_at - claim.issued_at == 2 * 3600

    def test_missing_secret_fails_fast(self, monkeypatch, test_settings):
        monkeypatch.setattr(test_settings, "secret_key", None)

        with pytest.raises(ValueError, match="SECRET_KEY"):
            get_token_codec()
