"""Tests for token issuing and verification."""

from datetime import timedelta

import pytest
from jose import jwt

from agrirent.config import get_settings
from agrirent.services.durations import DEFAULT_DURATION, parse_duration
from agrirent.services.tokens import InvalidTokenError, TokenKind, TokenService


class TestParseDuration:
    @pytest.mark.parametrize(
        ("value", "expected"),
        [
            ("30s", timedelta(seconds=30)),
            ("15m", timedelta(minutes=15)),
            ("2h", timedelta(hours=2)),
            ("1d", timedelta(days=1)),
            (" 7D ", timedelta(days=7)),
        ],
    )
    def test_valid(self, value, expected):
        assert parse_duration(value) == expected

    @pytest.mark.parametrize("value", ["", "1w", "h1", "1.5h", "ten minutes", None, 3600])
    def test_unparseable_falls_back_to_one_hour(self, value):
        assert parse_duration(value) == DEFAULT_DURATION == timedelta(hours=1)


class TestTokenService:
    def test_session_token_round_trip(self, token_service: TokenService):
        token = token_service.create_session_token(7, "a@b.com", "provider")
        claims = token_service.verify(TokenKind.SESSION, token)
        assert claims["email"] == "a@b.com"
        assert claims["id"] == 7
        assert claims["userType"] == "provider"
        assert "exp" in claims

    def test_activation_token_has_no_expiry(self, token_service: TokenService):
        token = token_service.create_activation_token("a@b.com")
        claims = token_service.verify(TokenKind.ACTIVATION, token)
        assert claims["email"] == "a@b.com"
        assert "exp" not in claims

    def test_tokens_are_bound_to_their_kind(self, token_service: TokenService):
        reset = token_service.create_reset_token("a@b.com", "user")
        with pytest.raises(InvalidTokenError):
            token_service.verify(TokenKind.ACTIVATION, reset)
        with pytest.raises(InvalidTokenError):
            token_service.verify(TokenKind.SESSION, reset)
        assert token_service.verify(TokenKind.RESET, reset)["userType"] == "user"

    def test_expired_token_rejected(self, token_service: TokenService):
        claims = {"email": "a@b.com", "userType": "user"}
        token = token_service.issue(TokenKind.RESET, claims, ttl=timedelta(seconds=-10))
        with pytest.raises(InvalidTokenError):
            token_service.verify(TokenKind.RESET, token)

    def test_missing_claims_rejected(self, token_service: TokenService):
        token = token_service.issue(TokenKind.RESET, {"email": "a@b.com"}, ttl=timedelta(minutes=5))
        with pytest.raises(InvalidTokenError):
            token_service.verify(TokenKind.RESET, token)

    def test_failures_are_indistinguishable(self, token_service: TokenService):
        """Expired, tampered and foreign-secret tokens all raise the same error message."""
        settings = get_settings()
        claims = {"email": "a@b.com", "id": 1, "userType": "user"}
        expired = token_service.issue(TokenKind.SESSION, claims, ttl=timedelta(seconds=-1))
        foreign = jwt.encode(claims, "other-secret", algorithm=settings.JWT_ALGORITHM)
        # Signature from one token, payload from another
        header, _, signature = token_service.create_session_token(1, "a@b.com", "user").split(".")
        other_payload = token_service.create_session_token(2, "b@b.com", "user").split(".")[1]
        tampered = f"{header}.{other_payload}.{signature}"

        messages = set()
        for token in (expired, foreign, tampered, "garbage"):
            with pytest.raises(InvalidTokenError) as exc_info:
                token_service.verify(TokenKind.SESSION, token)
            messages.add(str(exc_info.value))
        assert messages == {"Invalid or expired token"}

    def test_decode_session_token_returns_none_on_failure(self, token_service: TokenService):
        assert token_service.decode_session_token("garbage") is None

    def test_consecutive_reset_tokens_differ(self, token_service: TokenService):
        first = token_service.create_reset_token("a@b.com", "user")
        second = token_service.create_reset_token("a@b.com", "user")
        assert first != second
