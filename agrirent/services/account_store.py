"""Persistence for account records."""

from typing import Any

from sqlalchemy.exc import IntegrityError
from sqlalchemy.orm import Session

from agrirent.models.account import Account, AccountVariant


class DuplicateAccountError(Exception):
    """An account with the same variant and email already exists."""


def normalize_email(email: str) -> str:
    return email.strip().lower()


class AccountStore:
    """Account lookups and conditional updates against one database session."""

    def __init__(self, db: Session) -> None:
        self.db = db

    def get(self, account_id: int) -> Account | None:
        return self.db.get(Account, account_id)

    def find_by_email(self, variant: AccountVariant, email: str) -> Account | None:
        return (
            self.db.query(Account)
            .filter(Account.variant == variant.value, Account.email == normalize_email(email))
            .first()
        )

    def find_by_email_and_token(self, variant: AccountVariant, email: str, token: str) -> Account | None:
        """Find an account whose stored activation token matches ``token``."""
        return (
            self.db.query(Account)
            .filter(
                Account.variant == variant.value,
                Account.email == normalize_email(email),
                Account.activation_token == token,
            )
            .first()
        )

    def find_by_reset_token(self, variant: AccountVariant, email: str, token: str) -> Account | None:
        return (
            self.db.query(Account)
            .filter(
                Account.variant == variant.value,
                Account.email == normalize_email(email),
                Account.password_reset_token == token,
            )
            .first()
        )

    def insert(self, account: Account) -> Account:
        """Persist a new account. Raises DuplicateAccountError on the (variant, email) constraint."""
        account.email = normalize_email(account.email)
        self.db.add(account)
        try:
            self.db.commit()
        except IntegrityError:
            self.db.rollback()
            raise DuplicateAccountError(account.email) from None
        self.db.refresh(account)
        return account

    def update_atomic(self, filters: list[Any], patch: dict[str, Any]) -> int:
        """Apply ``patch`` in a single ``UPDATE ... WHERE filters`` and return the matched row count."""
        count = self.db.query(Account).filter(*filters).update(patch, synchronize_session=False)
        self.db.commit()
        return count
