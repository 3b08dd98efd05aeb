"""Account lifecycle: signup, activation, signin and password reset."""

import enum
import logging
from collections.abc import Callable
from dataclasses import dataclass
from datetime import datetime
from typing import Any

import bcrypt
from sqlalchemy.exc import SQLAlchemyError
from sqlalchemy.orm import Session

from agrirent.config import Settings
from agrirent.models.account import DEFAULT_BUSINESS_TYPE, Account, AccountVariant
from agrirent.services.account_store import AccountStore, DuplicateAccountError, normalize_email
from agrirent.services.durations import parse_duration
from agrirent.services.mailer import Mailer, render_email
from agrirent.services.tokens import InvalidTokenError, TokenKind, TokenService

logger = logging.getLogger("agrirent")

INVALID_ACTIVATION_MESSAGE = "Invalid or expired activation link"
INVALID_RESET_MESSAGE = "Invalid or expired token"
FORGOT_PASSWORD_MESSAGE = "If the email exists, a reset link has been sent."
INTERNAL_ERROR_MESSAGE = "Internal server error"
MIN_PASSWORD_LENGTH = 6


class AuthErrorKind(str, enum.Enum):
    """Classification of lifecycle failures."""

    VALIDATION = "validation"
    ALREADY_EXISTS = "already_exists"
    NOT_FOUND = "not_found"
    NOT_ACTIVATED = "not_activated"
    INVALID_CREDENTIALS = "invalid_credentials"
    INVALID_OR_EXPIRED = "invalid_or_expired"
    DELIVERY_FAILED = "delivery_failed"
    INTERNAL = "internal"


@dataclass
class AuthResult:
    """Result of a lifecycle operation."""

    success: bool
    error: str | None = None
    error_kind: AuthErrorKind | None = None
    account: Account | None = None
    email: str | None = None
    token: str | None = None
    variant: AccountVariant | None = None
    valid: bool | None = None


def hash_password(password: str) -> str:
    return bcrypt.hashpw(password.encode("utf-8"), bcrypt.gensalt()).decode("utf-8")


def check_password(password: str, password_hash: str) -> bool:
    return bcrypt.checkpw(password.encode("utf-8"), password_hash.encode("utf-8"))


def _label(variant: AccountVariant) -> str:
    return "Provider" if variant is AccountVariant.PROVIDER else "User"


def _failure(kind: AuthErrorKind, message: str) -> AuthResult:
    return AuthResult(success=False, error=message, error_kind=kind)


class AuthService:
    """Drives accounts through signup, activation, signin and password reset.

    The service is variant-agnostic: users and providers share every
    transition and differ only in the profile fields they store. The mail
    gateway is injected so signup can refuse to persist an account whose
    activation email could not be delivered.
    """

    def __init__(
        self,
        tokens: TokenService,
        mailer: Mailer,
        settings: Settings,
        clock: Callable[[], datetime] = datetime.utcnow,
    ) -> None:
        self.tokens = tokens
        self.mailer = mailer
        self.frontend_url = settings.FRONTEND_URL.rstrip("/")
        self.reset_expire = settings.JWT_RESET_EXPIRE
        self.reset_ttl = parse_duration(settings.JWT_RESET_EXPIRE)
        self.clock = clock

    # --- Signup / activation ---

    def signup(
        self,
        db: Session,
        variant: AccountVariant,
        email: str,
        password: str,
        profile: dict[str, Any],
    ) -> AuthResult:
        """Create an unactivated account, but only once its activation email is delivered."""
        store = AccountStore(db)
        email = normalize_email(email)
        if len(password) < MIN_PASSWORD_LENGTH:
            return _failure(
                AuthErrorKind.VALIDATION, f"Password must be at least {MIN_PASSWORD_LENGTH} characters"
            )
        try:
            if store.find_by_email(variant, email):
                return _failure(AuthErrorKind.ALREADY_EXISTS, f"{_label(variant)} email already exists")

            password_hash = hash_password(password)
            activation_token = self.tokens.create_activation_token(email)
            link = f"{self.frontend_url}/?activate={activation_token}"
            subject = (
                "Welcome to Rental App - Provider Account Activation"
                if variant is AccountVariant.PROVIDER
                else "Welcome to Rental App - Activate Your Account"
            )
            body = render_email(
                "activation.html",
                name=profile.get("name", ""),
                link=link,
                is_provider=variant is AccountVariant.PROVIDER,
                business_name=profile.get("business_name"),
            )

            if not self.mailer.send(email, subject, body):
                logger.warning("Signup aborted for %s: activation email not delivered", email)
                return _failure(
                    AuthErrorKind.DELIVERY_FAILED,
                    "Failed to send activation email. Please verify your email address.",
                )

            account = Account(
                variant=variant.value,
                email=email,
                password_hash=password_hash,
                name=profile["name"],
                phone=profile["phone"],
                address=profile["address"],
                is_activated=False,
                activation_token=activation_token,
            )
            if variant is AccountVariant.PROVIDER:
                account.business_name = profile.get("business_name") or ""
                account.business_type = profile.get("business_type") or DEFAULT_BUSINESS_TYPE
                account.license_number = profile.get("license_number") or ""

            try:
                store.insert(account)
            except DuplicateAccountError:
                return _failure(AuthErrorKind.ALREADY_EXISTS, f"{_label(variant)} email already exists")
        except SQLAlchemyError:
            db.rollback()
            logger.exception("Signup failed for %s", email)
            return _failure(AuthErrorKind.INTERNAL, INTERNAL_ERROR_MESSAGE)

        logger.info("%s account created for %s (pending activation)", _label(variant), email)
        return AuthResult(success=True, account=account, email=email, variant=variant)

    def activate(self, db: Session, variant: AccountVariant, token: str) -> AuthResult:
        """Consume an activation token. Bad signatures and stale tokens fail identically."""
        try:
            claims = self.tokens.verify(TokenKind.ACTIVATION, token)
        except InvalidTokenError:
            return _failure(AuthErrorKind.INVALID_OR_EXPIRED, INVALID_ACTIVATION_MESSAGE)

        store = AccountStore(db)
        email = normalize_email(claims["email"])
        try:
            if not store.find_by_email_and_token(variant, email, token):
                return _failure(AuthErrorKind.INVALID_OR_EXPIRED, INVALID_ACTIVATION_MESSAGE)
            # A concurrent activation may still win between the lookup and the update
            updated = store.update_atomic(
                [
                    Account.variant == variant.value,
                    Account.email == email,
                    Account.activation_token == token,
                ],
                {Account.is_activated: True, Account.activation_token: None, Account.updated_at: self.clock()},
            )
            if updated != 1:
                return _failure(AuthErrorKind.INVALID_OR_EXPIRED, INVALID_ACTIVATION_MESSAGE)
            account = store.find_by_email(variant, email)
        except SQLAlchemyError:
            db.rollback()
            logger.exception("Activation failed for %s", email)
            return _failure(AuthErrorKind.INTERNAL, INTERNAL_ERROR_MESSAGE)

        logger.info("%s account activated: %s", _label(variant), email)
        return AuthResult(success=True, account=account, email=email, variant=variant)

    # --- Signin ---

    def signin(self, db: Session, variant: AccountVariant, email: str, password: str) -> AuthResult:
        """Check existence, activation and password, in that order, then issue a session token."""
        store = AccountStore(db)
        try:
            account = store.find_by_email(variant, email)
            if not account:
                return _failure(AuthErrorKind.NOT_FOUND, f"{_label(variant)} not found")

            if not account.is_activated:
                return _failure(AuthErrorKind.NOT_ACTIVATED, "Account not activated. Please check your email.")

            if not check_password(password, account.password_hash):
                return _failure(AuthErrorKind.INVALID_CREDENTIALS, "Invalid password")

            account.last_login_at = self.clock()
            db.commit()
        except SQLAlchemyError:
            db.rollback()
            logger.exception("Signin failed")
            return _failure(AuthErrorKind.INTERNAL, INTERNAL_ERROR_MESSAGE)

        token = self.tokens.create_session_token(account.id, account.email, account.variant)
        return AuthResult(success=True, account=account, email=account.email, token=token, variant=variant)

    # --- Password reset ---

    def forgot_password(self, db: Session, variant: AccountVariant, email: str) -> None:
        """Store a fresh reset token and email the link, if the account exists.

        Meant to run after the generic acknowledgment has been sent, so the
        caller's answer cannot depend on whether an account matched. Store and
        delivery failures are logged, never raised.
        """
        try:
            account = AccountStore(db).find_by_email(variant, email)
            if not account:
                return

            token = self.tokens.create_reset_token(account.email, account.variant)
            account.password_reset_token = token
            account.password_reset_expires_at = self.clock() + self.reset_ttl
            db.commit()
        except SQLAlchemyError:
            db.rollback()
            logger.exception("Forgot-password failed for %s", email)
            return

        body = render_email(
            "password_reset.html",
            link=f"{self.frontend_url}/reset-password/{token}",
            expires_in=self.reset_expire,
        )
        if not self.mailer.send(account.email, "Reset your password", body):
            logger.error("Reset email to %s could not be delivered", account.email)

    def _check_reset_token(self, db: Session, token: str) -> tuple[AccountVariant, str] | None:
        try:
            claims = self.tokens.verify(TokenKind.RESET, token)
            variant = AccountVariant(claims["userType"])
        except (InvalidTokenError, ValueError):
            return None

        account = AccountStore(db).find_by_reset_token(variant, claims["email"], token)
        # Usable up to and including the stored expiry instant
        if (
            not account
            or not account.password_reset_expires_at
            or account.password_reset_expires_at < self.clock()
        ):
            return None
        return variant, account.email

    def verify_reset_token(self, db: Session, token: str) -> AuthResult:
        """Report whether a reset token is currently usable, without consuming it."""
        try:
            checked = self._check_reset_token(db, token)
        except SQLAlchemyError:
            db.rollback()
            logger.exception("Reset token verification failed")
            return _failure(AuthErrorKind.INTERNAL, INTERNAL_ERROR_MESSAGE)
        if not checked:
            return _failure(AuthErrorKind.INVALID_OR_EXPIRED, INVALID_RESET_MESSAGE)
        variant, email = checked
        return AuthResult(success=True, email=email, variant=variant, valid=True)

    def reset_password(self, db: Session, token: str, new_password: str) -> AuthResult:
        """Consume a reset token and replace the password in one conditional update."""
        if len(new_password) < MIN_PASSWORD_LENGTH:
            return _failure(
                AuthErrorKind.VALIDATION, f"Password must be at least {MIN_PASSWORD_LENGTH} characters"
            )
        try:
            checked = self._check_reset_token(db, token)
            if not checked:
                return _failure(AuthErrorKind.INVALID_OR_EXPIRED, INVALID_RESET_MESSAGE)
            variant, email = checked

            now = self.clock()
            updated = AccountStore(db).update_atomic(
                [
                    Account.variant == variant.value,
                    Account.email == email,
                    Account.password_reset_token == token,
                    Account.password_reset_expires_at >= now,
                ],
                {
                    Account.password_hash: hash_password(new_password),
                    Account.password_reset_token: None,
                    Account.password_reset_expires_at: None,
                    Account.updated_at: now,
                },
            )
        except SQLAlchemyError:
            db.rollback()
            logger.exception("Password reset failed")
            return _failure(AuthErrorKind.INTERNAL, INTERNAL_ERROR_MESSAGE)

        if updated != 1:
            return _failure(AuthErrorKind.INVALID_OR_EXPIRED, INVALID_RESET_MESSAGE)

        logger.info("Password reset for %s account %s", variant.value, email)
        return AuthResult(success=True, email=email, variant=variant)

    # --- Account maintenance ---

    def verify_password(self, db: Session, variant: AccountVariant, email: str, password: str) -> AuthResult:
        """Check a password without signing in, e.g. before a profile edit."""
        try:
            account = AccountStore(db).find_by_email(variant, email)
        except SQLAlchemyError:
            db.rollback()
            logger.exception("Password verification failed")
            return _failure(AuthErrorKind.INTERNAL, INTERNAL_ERROR_MESSAGE)
        if not account:
            return _failure(AuthErrorKind.NOT_FOUND, f"{_label(variant)} not found")
        return AuthResult(
            success=True,
            account=account,
            email=account.email,
            variant=variant,
            valid=check_password(password, account.password_hash),
        )

    def deactivate(self, db: Session, account_id: int) -> AuthResult:
        """Soft-delete an account. Signin does not consult this flag."""
        store = AccountStore(db)
        try:
            updated = store.update_atomic(
                [Account.id == account_id], {Account.is_active: False, Account.updated_at: self.clock()}
            )
            if updated != 1:
                return _failure(AuthErrorKind.NOT_FOUND, "Account not found")
            account = store.get(account_id)
        except SQLAlchemyError:
            db.rollback()
            logger.exception("Deactivation failed for account %s", account_id)
            return _failure(AuthErrorKind.INTERNAL, INTERNAL_ERROR_MESSAGE)
        return AuthResult(success=True, account=account)
