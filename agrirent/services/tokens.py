"""Signed token issuing and verification for sessions, activation and password reset."""

import enum
import secrets
from datetime import datetime, timedelta
from typing import Any

from jose import JWTError, jwt

from agrirent.config import Settings
from agrirent.services.durations import parse_duration


class TokenKind(str, enum.Enum):
    """Token categories. Each one is signed with its own secret."""

    SESSION = "session"
    ACTIVATION = "activation"
    RESET = "reset"


# Claims a token of each kind must carry to be accepted
REQUIRED_CLAIMS: dict[TokenKind, tuple[str, ...]] = {
    TokenKind.SESSION: ("email", "id", "userType"),
    TokenKind.ACTIVATION: ("email",),
    TokenKind.RESET: ("email", "userType"),
}


class InvalidTokenError(Exception):
    """Raised for any token that fails verification, whatever the cause."""


class TokenService:
    """Handles JWT creation and validation for every token kind."""

    def __init__(self, settings: Settings) -> None:
        self.algorithm = settings.JWT_ALGORITHM
        self._secrets = {
            TokenKind.SESSION: settings.JWT_SECRET_KEY,
            TokenKind.ACTIVATION: settings.JWT_ACTIVATION_SECRET_KEY,
            TokenKind.RESET: settings.JWT_RESET_SECRET_KEY,
        }
        self.session_ttl = parse_duration(settings.JWT_EXPIRE)
        self.reset_ttl = parse_duration(settings.JWT_RESET_EXPIRE)

    def issue(self, kind: TokenKind, claims: dict[str, Any], ttl: timedelta | None = None) -> str:
        """Sign ``claims`` with the secret for ``kind``. No ``exp`` is set when ``ttl`` is None."""
        payload = dict(claims)
        payload["iat"] = datetime.utcnow()
        if kind is not TokenKind.SESSION:
            payload["jti"] = secrets.token_hex(8)
        if ttl is not None:
            payload["exp"] = datetime.utcnow() + ttl
        return jwt.encode(payload, self._secrets[kind], algorithm=self.algorithm)

    def verify(self, kind: TokenKind, token: str) -> dict[str, Any]:
        """Return the claims of a valid token of ``kind``. Raises InvalidTokenError otherwise."""
        try:
            payload = jwt.decode(token, self._secrets[kind], algorithms=[self.algorithm])
        except JWTError:
            raise InvalidTokenError("Invalid or expired token") from None
        if any(payload.get(claim) in (None, "") for claim in REQUIRED_CLAIMS[kind]):
            raise InvalidTokenError("Invalid or expired token")
        return payload

    def create_session_token(self, account_id: int, email: str, variant: str) -> str:
        """Create the session token returned at signin."""
        return self.issue(
            TokenKind.SESSION,
            {"sub": str(account_id), "id": account_id, "email": email, "userType": variant},
            ttl=self.session_ttl,
        )

    def create_activation_token(self, email: str) -> str:
        # Validity is bounded by the stored single-use copy, not by exp
        return self.issue(TokenKind.ACTIVATION, {"email": email})

    def create_reset_token(self, email: str, variant: str) -> str:
        return self.issue(TokenKind.RESET, {"email": email, "userType": variant}, ttl=self.reset_ttl)

    def decode_session_token(self, token: str) -> dict[str, Any] | None:
        """Decode a session token. Returns None if invalid."""
        try:
            return self.verify(TokenKind.SESSION, token)
        except InvalidTokenError:
            return None
