"""Pydantic schemas for account profiles."""

from pydantic import BaseModel, ConfigDict

from agrirent.models.account import AccountVariant


class AccountProfile(BaseModel):
    """Public account fields. Secrets and lifecycle tokens are never included."""

    model_config = ConfigDict(from_attributes=True)

    id: int
    name: str
    email: str
    phone: str
    address: str
    variant: AccountVariant
    business_name: str | None = None
    business_type: str | None = None
    license_number: str | None = None
    is_active: bool


class DeactivateResponse(BaseModel):
    message: str
    account: AccountProfile
