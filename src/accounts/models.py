"""
Account models - accounts and the two single-use token kinds bound to them.

Each account owns at most one verification token and at most one reset token.
The unique constraint on owner_id is what guarantees it; the service relies on
the resulting IntegrityError instead of read-then-write sequencing.
"""
import uuid
from sqlalchemy import Column, Integer, String, Boolean, DateTime, ForeignKey, UniqueConstraint
from sqlalchemy.sql import func

from ..database import Base


def generate_account_id() -> str:
    return str(uuid.uuid4())


class Account(Base):
    """
    Account Model - a registered user

    Fields:
    - id: Opaque identifier (UUID string)
    - name: Display name
    - email: Unique email address used for sign-in and notifications
    - password_hash: bcrypt hash of the password (raw passwords are never stored)
    - verified: Whether the email address has been confirmed; never goes back to False
    - created_at: Timestamp when the account was created
    - updated_at: Timestamp when the account was last updated
    """
    __tablename__ = "accounts"

    id = Column(String(36), primary_key=True, default=generate_account_id)
    name = Column(String, nullable=False)
    email = Column(String, unique=True, index=True, nullable=False)
    password_hash = Column(String, nullable=False)
    verified = Column(Boolean, nullable=False, default=False)
    created_at = Column(DateTime(timezone=True), server_default=func.now())
    updated_at = Column(DateTime(timezone=True), onupdate=func.now())

    def __repr__(self):
        return f"<Account(id={self.id}, email='{self.email}', verified={self.verified})>"


class VerificationToken(Base):
    """
    One-time email verification code.

    Holds the bcrypt hash of the numeric code mailed at registration. Deleted
    when the code is accepted, when a new code is issued or after too many
    wrong guesses.
    """
    __tablename__ = "verification_tokens"
    __table_args__ = (
        UniqueConstraint("owner_id", name="uq_verification_tokens_owner_id"),
    )

    id = Column(Integer, primary_key=True, index=True)
    owner_id = Column(String(36), ForeignKey("accounts.id", ondelete="CASCADE"), nullable=False)
    token_hash = Column(String, nullable=False)
    attempts = Column(Integer, nullable=False, default=0)
    expires_at = Column(DateTime(timezone=True), nullable=False)
    created_at = Column(DateTime(timezone=True), server_default=func.now())


class ResetToken(Base):
    """
    Password reset token.

    Stores the sha256 of the token embedded in the reset link. While a live one
    exists for an account, further reset requests are rejected.
    """
    __tablename__ = "reset_tokens"
    __table_args__ = (
        UniqueConstraint("owner_id", name="uq_reset_tokens_owner_id"),
    )

    id = Column(Integer, primary_key=True, index=True)
    owner_id = Column(String(36), ForeignKey("accounts.id", ondelete="CASCADE"), nullable=False)
    token_hash = Column(String(64), nullable=False)
    expires_at = Column(DateTime(timezone=True), nullable=False)
    created_at = Column(DateTime(timezone=True), server_default=func.now())
