"""Pydantic schemas for authentication endpoints."""

from typing import Annotated

from pydantic import AfterValidator, BaseModel, BeforeValidator, EmailStr, Field, field_validator

from agrirent.models.account import BUSINESS_TYPES, DEFAULT_BUSINESS_TYPE, AccountVariant
from agrirent.schemas.account import AccountProfile
from agrirent.services.auth import MIN_PASSWORD_LENGTH


def _strip(value: object) -> object:
    return value.strip() if isinstance(value, str) else value


def _lower(value: str) -> str:
    return value.lower()


# Stored and looked up in lower case
Email = Annotated[EmailStr, BeforeValidator(_strip), AfterValidator(_lower)]


class SignupRequest(BaseModel):
    name: str = Field(min_length=1, max_length=100)
    email: Email
    password: str = Field(min_length=MIN_PASSWORD_LENGTH)
    phone: str = Field(pattern=r"^[0-9]{10}$")
    address: str = Field(min_length=1, max_length=500)
    # Provider-only profile fields
    business_name: str | None = Field(default=None, max_length=200)
    business_type: str | None = None
    license_number: str | None = Field(default=None, max_length=50)

    @field_validator("name", "address", "business_name", "license_number", mode="before")
    @classmethod
    def strip_text(cls, value: object) -> object:
        return _strip(value)

    @field_validator("business_type")
    @classmethod
    def check_business_type(cls, value: str | None) -> str:
        if value is None or value.strip() == "":
            return DEFAULT_BUSINESS_TYPE
        if value not in BUSINESS_TYPES:
            raise ValueError(f"business_type must be one of: {', '.join(BUSINESS_TYPES)}")
        return value


class SignupResponse(BaseModel):
    message: str
    email: str


class ActivationResponse(BaseModel):
    message: str
    email: str
    user_type: AccountVariant = Field(serialization_alias="userType")
    id: int


class SigninRequest(BaseModel):
    email: Email
    password: str = Field(min_length=1)


class SigninResponse(BaseModel):
    token: str
    user: AccountProfile
    message: str = "Login successful"


class ForgotPasswordRequest(BaseModel):
    email: Email
    user_type: AccountVariant = Field(alias="userType")


class ResetPasswordRequest(BaseModel):
    token: str = Field(min_length=1)
    password: str = Field(min_length=MIN_PASSWORD_LENGTH)


class ResetTokenStatus(BaseModel):
    valid: bool
    user_type: AccountVariant | None = Field(default=None, serialization_alias="userType")
    message: str | None = None


class VerifyPasswordRequest(BaseModel):
    email: Email
    password: str = Field(min_length=1)
    user_type: AccountVariant = Field(alias="userType")


class MessageResponse(BaseModel):
    message: str
