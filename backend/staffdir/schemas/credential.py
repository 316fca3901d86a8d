"""
StaffDir Backend: Credential Request Schemas
=============================================

What:  Pydantic models for POST /register and POST /login bodies.
How:   Field validators raise ValueError with the user-facing reason; the
       validator service turns pydantic's error list into field violations.

Registration enforces a minimum password length of 6. Login only checks
that a password is present, so users registered under an older policy can
still sign in.
"""

import email_validator
from pydantic import BaseModel, Field, field_validator

MIN_REGISTER_PASSWORD_LENGTH = 6


def check_email(value: str) -> str:
    """
    Syntax check only (no DNS lookup). The raw value is returned, not
    email-validator's normalized form, because lookups are case-sensitive.
    """
    if not value:
        raise ValueError("Email is required")
    try:
        email_validator.validate_email(value, check_deliverability=False)
    except email_validator.EmailNotValidError:
        raise ValueError("Invalid email address")
    return value


class LoginRequest(BaseModel):
    email: str = Field(description="Registered email address")
    password: str = Field(description="Account password")

    @field_validator("email")
    @classmethod
    def validate_email(cls, v: str) -> str:
        return check_email(v)

    @field_validator("password")
    @classmethod
    def validate_password(cls, v: str) -> str:
        if len(v) < 1:
            raise ValueError("Password is required")
        return v


class RegisterRequest(BaseModel):
    email: str = Field(description="Email address, unique across all accounts")
    password: str = Field(
        description=f"Password, at least {MIN_REGISTER_PASSWORD_LENGTH} characters"
    )

    @field_validator("email")
    @classmethod
    def validate_email(cls, v: str) -> str:
        return check_email(v)

    @field_validator("password")
    @classmethod
    def validate_password(cls, v: str) -> str:
        if len(v) < MIN_REGISTER_PASSWORD_LENGTH:
            raise ValueError(
                f"Password must be at least {MIN_REGISTER_PASSWORD_LENGTH} characters"
            )
        return v
