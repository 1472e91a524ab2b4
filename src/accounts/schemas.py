"""
Account Schemas - Pydantic models for request bodies and responses.

Request fields are optional at the schema level: missing or blank values are
reported by the lifecycle service with its own messages instead of a generic
validation error.
"""
from typing import Optional
from pydantic import BaseModel, Field

class AccountCreate(BaseModel):
    """
    Registration body

    Fields:
    - name: Display name
    - email: Email address (must not be registered yet)
    - password: Plain text password, 8 to 20 characters
    """
    name: Optional[str] = None
    email: Optional[str] = None
    password: Optional[str] = None

class AccountSignin(BaseModel):
    email: Optional[str] = None
    password: Optional[str] = None

class EmailVerify(BaseModel):
    """
    Email verification body

    Fields:
    - userId: Account id returned at registration
    - otp: Code received by email
    """
    user_id: Optional[str] = Field(None, alias="userId")
    otp: Optional[str] = None

    class Config:
        populate_by_name = True
        coerce_numbers_to_str = True

class EmailRequest(BaseModel):
    """Body carrying only an email address (forgot password, resend verification)."""
    email: Optional[str] = None

class PasswordResetBody(BaseModel):
    password: Optional[str] = None

class PasswordResetConfirm(BaseModel):
    """
    Token-gated reset body, built from the emailed link

    Fields:
    - userId: Account id from the link
    - token: Reset token from the link
    - password: New password
    """
    user_id: Optional[str] = Field(None, alias="userId")
    token: Optional[str] = None
    password: Optional[str] = None

    class Config:
        populate_by_name = True

class AccountResponse(BaseModel):
    """
    Redacted account projection - never carries credential material
    """
    id: str
    name: str
    email: str
    verified: bool

    class Config:
        from_attributes = True

class AccountSummary(BaseModel):
    name: str
    email: str
    id: str

    class Config:
        from_attributes = True

class SigninUser(AccountSummary):
    token: str

class AccountEnvelope(BaseModel):
    success: bool = True
    user: AccountResponse

class SigninResponse(BaseModel):
    success: bool = True
    user: SigninUser

class VerifyEmailResponse(BaseModel):
    success: bool = True
    message: str
    user: AccountSummary

class MessageResponse(BaseModel):
    success: bool = True
    message: str
