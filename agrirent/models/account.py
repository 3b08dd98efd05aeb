"""Account model shared by end users and providers."""

import enum
from datetime import datetime

from sqlalchemy import Boolean, Column, DateTime, Integer, String, UniqueConstraint

from agrirent.database import Base


class AccountVariant(str, enum.Enum):
    """Which kind of account a row describes."""

    USER = "user"
    PROVIDER = "provider"


DEFAULT_BUSINESS_TYPE = "Equipment Rental"
BUSINESS_TYPES = (
    "Equipment Rental",
    "Farm Services",
    "Agricultural Contractor",
    "Equipment Dealer",
    "Other",
)


class Account(Base):
    """A user or provider account with its credential and lifecycle state."""

    __tablename__ = "account"
    __table_args__ = (UniqueConstraint("variant", "email", name="uq_account_variant_email"),)

    id = Column(Integer, primary_key=True, autoincrement=True)
    variant = Column(String(16), nullable=False, index=True)
    email = Column(String(256), nullable=False, index=True)
    password_hash = Column(String(256), nullable=False)

    # Lifecycle
    is_activated = Column(Boolean, nullable=False, default=False)
    activation_token = Column(String(512), nullable=True)
    password_reset_token = Column(String(512), nullable=True, index=True)
    password_reset_expires_at = Column(DateTime, nullable=True)
    is_active = Column(Boolean, nullable=False, default=True)

    # Profile
    name = Column(String(100), nullable=False)
    phone = Column(String(16), nullable=False)
    address = Column(String(500), nullable=False)
    business_name = Column(String(200), nullable=True)
    business_type = Column(String(64), nullable=True)
    license_number = Column(String(50), nullable=True)

    created_at = Column(DateTime, nullable=False, default=datetime.utcnow)
    updated_at = Column(DateTime, nullable=False, default=datetime.utcnow, onupdate=datetime.utcnow)
    last_login_at = Column(DateTime, nullable=True)

    def __repr__(self) -> str:
        return f"<Account id={self.id} variant={self.variant} email={self.email}>"
