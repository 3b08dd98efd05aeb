"""Request-scoped dependencies: the auth service and the authenticated caller."""

from dataclasses import dataclass

from fastapi import HTTPException, Request

from agrirent.models.account import AccountVariant
from agrirent.services.auth import AuthService
from agrirent.services.tokens import TokenService


@dataclass
class CurrentAccount:
    """Authenticated caller, as asserted by a session token."""

    account_id: int
    email: str
    variant: AccountVariant


def get_auth_service(request: Request) -> AuthService:
    """Return the lifecycle service built at startup."""
    return request.app.state.auth_service


def get_token_service(request: Request) -> TokenService:
    return request.app.state.token_service


def get_current_account(request: Request) -> CurrentAccount:
    """Extract and validate the caller from a Bearer session token. Raises 401 if invalid."""
    auth_header = request.headers.get("Authorization")
    if not auth_header or not auth_header.startswith("Bearer "):
        raise HTTPException(status_code=401, detail="Not authenticated")

    payload = get_token_service(request).decode_session_token(auth_header[7:])
    if not payload:
        raise HTTPException(status_code=401, detail="Invalid or expired token")

    try:
        variant = AccountVariant(payload["userType"])
    except ValueError:
        raise HTTPException(status_code=401, detail="Invalid or expired token") from None

    return CurrentAccount(account_id=int(payload["id"]), email=payload["email"], variant=variant)
