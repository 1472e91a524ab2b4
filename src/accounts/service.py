"""
Account lifecycle service layer.

Owns the rules for registration, email verification, sign-in and password
reset: when a verification code or reset token is live, that each one is
consumed exactly once, and which account state transitions they unlock.
Mail goes out through a Notifier only after the state change has committed.
"""
import logging
import uuid
from datetime import datetime, timezone
from typing import Dict, Any, Optional

from sqlalchemy.exc import IntegrityError
from sqlalchemy.orm import Session

from ..config import settings
from ..core.mail import Notifier
from ..core.security import (
    hash_password,
    verify_password,
    create_access_token,
    generate_otp,
    generate_secure_reset_token,
    hash_token,
    verify_token_hash,
    is_token_expired,
    get_token_expiry_time
)
from .models import Account, VerificationToken, ResetToken, generate_account_id
from .exceptions import (
    InvalidInputException,
    UnauthorizedException,
    NotFoundException,
    ConflictException,
    AlreadyVerifiedException,
    RateLimitedException
)
from .utils import (
    VERIFY_EMAIL_SUBJECT,
    WELCOME_SUBJECT,
    PASSWORD_RESET_SUBJECT,
    build_reset_url,
    verification_email,
    welcome_email,
    password_reset_email,
    password_changed_email
)

# Set up logging
logger = logging.getLogger(__name__)

EMAIL_EXISTS = "This email already exists!"
MISSING_PARAMETERS = "Invalid request, missing parameters!!"
INVALID_EMAIL = "Please provide a valid email!"


def _is_blank(value: Optional[str]) -> bool:
    return value is None or not str(value).strip()

def _normalize_email(email: str) -> str:
    return email.strip().lower()

def _parse_account_id(account_id: str) -> str:
    try:
        return str(uuid.UUID(str(account_id).strip()))
    except ValueError:
        raise InvalidInputException("Invalid user id!")

def _password_length_message() -> str:
    return f"Password must be {settings.password_min_length} to {settings.password_max_length} characters long"

def _has_valid_length(password: str) -> bool:
    return settings.password_min_length <= len(password) <= settings.password_max_length

def _find_by_email(db: Session, email: str) -> Optional[Account]:
    return db.query(Account).filter(Account.email == _normalize_email(email)).first()

def _find_by_id(db: Session, account_id: str) -> Optional[Account]:
    return db.query(Account).filter(Account.id == account_id).first()

def _live_verification_token(db: Session, account_id: str) -> Optional[VerificationToken]:
    token = db.query(VerificationToken).filter(VerificationToken.owner_id == account_id).first()
    if token and is_token_expired(token.expires_at):
        logger.info(f"Evicting expired verification token of account {account_id}")
        db.delete(token)
        db.commit()
        return None
    return token

def _live_reset_token(db: Session, account_id: str) -> Optional[ResetToken]:
    token = db.query(ResetToken).filter(ResetToken.owner_id == account_id).first()
    if token and is_token_expired(token.expires_at):
        logger.info(f"Evicting expired reset token of account {account_id}")
        db.delete(token)
        db.commit()
        return None
    return token

def _new_verification_token(account_id: str, otp: str) -> VerificationToken:
    return VerificationToken(
        owner_id=account_id,
        token_hash=hash_password(otp),
        expires_at=get_token_expiry_time(settings.verification_token_expire_minutes)
    )

def _record_failed_attempt(db: Session, token_id: int, account_id: str) -> None:
    # Counted in SQL so parallel guesses cannot share one attempt
    db.query(VerificationToken).filter(VerificationToken.id == token_id).update(
        {VerificationToken.attempts: VerificationToken.attempts + 1},
        synchronize_session=False
    )
    db.commit()

    attempts = db.query(VerificationToken.attempts).filter(VerificationToken.id == token_id).scalar()
    if attempts is not None and attempts >= settings.otp_max_attempts:
        logger.warning(f"Discarding verification code of account {account_id} after {attempts} wrong guesses")
        db.query(VerificationToken).filter(VerificationToken.id == token_id).delete(synchronize_session=False)
        db.commit()


async def register_account(
    db: Session,
    name: Optional[str],
    email: Optional[str],
    password: Optional[str],
    notifier: Notifier
) -> Account:
    """
    Register a new, unverified account and mail it a verification code.

    Args:
        db: Database session
        name: Display name
        email: Email address
        password: Plain text password
        notifier: Outbound notification port

    Returns:
        Account: The created account

    Raises:
        InvalidInputException: If a field is blank
        ConflictException: If the email is already registered
    """
    if _is_blank(name) or _is_blank(email) or _is_blank(password):
        raise InvalidInputException("Name/Email/Password is missing")

    email = _normalize_email(email)
    logger.info(f"Registration attempt for email: {email}")

    if _find_by_email(db, email):
        logger.warning(f"Registration failed: Email {email} already registered")
        raise ConflictException(EMAIL_EXISTS)

    otp = generate_otp()
    account = Account(
        id=generate_account_id(),
        name=name.strip(),
        email=email,
        password_hash=hash_password(password),
        verified=False
    )

    # Account and its first code are committed together
    try:
        db.add(account)
        db.flush()
        db.add(_new_verification_token(account.id, otp))
        db.commit()
    except IntegrityError:
        db.rollback()
        logger.warning(f"Registration failed: Email {email} registered concurrently")
        raise ConflictException(EMAIL_EXISTS)

    db.refresh(account)
    logger.info(f"Account created: {account.id}")

    notifier.notify(account.email, VERIFY_EMAIL_SUBJECT, verification_email(account.name, otp))
    return account


async def authenticate(db: Session, email: Optional[str], password: Optional[str]) -> Dict[str, Any]:
    """
    Check credentials and issue a session token valid for one day.

    Args:
        db: Database session
        email: Email address
        password: Plain text password

    Returns:
        Dict with name, email, id and the bearer token

    Raises:
        InvalidInputException: If email or password is blank
        NotFoundException: If no account matches the email
        UnauthorizedException: If the password does not match
    """
    if _is_blank(email) or _is_blank(password):
        raise InvalidInputException("Email/Password is missing")

    account = _find_by_email(db, email)
    if not account:
        logger.warning(f"Sign-in failed: No account for {email}")
        raise NotFoundException("User not found!")

    if not verify_password(password, account.password_hash):
        logger.warning(f"Sign-in failed: Incorrect password for account {account.id}")
        raise UnauthorizedException("Incorrect Password!")

    token = create_access_token(account.id)
    logger.info(f"Sign-in successful: Account {account.id}")

    return {
        "name": account.name,
        "email": account.email,
        "id": account.id,
        "token": token
    }


async def verify_email(
    db: Session,
    account_id: Optional[str],
    otp: Optional[str],
    notifier: Notifier
) -> Account:
    """
    Verify an account's email address with the code mailed to it.

    The code is consumed by the same commit that marks the account verified,
    so replaying it fails with "Verification token not found".
    After `otp_max_attempts` wrong guesses the code is discarded and a new
    one has to be requested.

    Args:
        db: Database session
        account_id: Account id
        otp: Code received by email
        notifier: Outbound notification port

    Returns:
        Account: The verified account

    Raises:
        InvalidInputException: If a parameter is missing or the id is malformed
        NotFoundException: If the account or its live code is absent
        AlreadyVerifiedException: If the account is already verified
        UnauthorizedException: If the code does not match
    """
    if _is_blank(account_id) or _is_blank(otp):
        raise InvalidInputException(MISSING_PARAMETERS)

    account_id = _parse_account_id(account_id)
    account = _find_by_id(db, account_id)
    if not account:
        logger.warning(f"Verification failed: Account {account_id} not found")
        raise NotFoundException("User not found")

    if account.verified:
        logger.info(f"Verification rejected: Account {account_id} already verified")
        raise AlreadyVerifiedException()

    token = _live_verification_token(db, account.id)
    if not token:
        logger.warning(f"Verification failed: No live code for account {account_id}")
        raise NotFoundException("Verification token not found")

    if not verify_password(otp.strip(), token.token_hash):
        logger.warning(f"Verification failed: Invalid code for account {account_id}")
        _record_failed_attempt(db, token.id, account.id)
        raise UnauthorizedException("Please provide a valid OTP")

    consumed = db.query(VerificationToken).filter(
        VerificationToken.id == token.id
    ).delete(synchronize_session=False)
    if not consumed:
        # Another request consumed the code between lookup and delete
        db.rollback()
        raise NotFoundException("Verification token not found")

    account.verified = True
    db.commit()
    db.refresh(account)
    logger.info(f"Email verified: Account {account.id}")

    notifier.notify(account.email, WELCOME_SUBJECT, welcome_email(account.name))
    return account


async def resend_verification(db: Session, email: Optional[str], notifier: Notifier) -> None:
    """
    Replace an unverified account's code with a new one and mail it.

    Raises:
        InvalidInputException: If email is blank
        NotFoundException: If no account matches
        AlreadyVerifiedException: If the account is already verified
        ConflictException: If a concurrent request issued a code at the same time
    """
    if _is_blank(email):
        raise InvalidInputException(INVALID_EMAIL)

    account = _find_by_email(db, email)
    if not account:
        raise NotFoundException("User not found")

    if account.verified:
        raise AlreadyVerifiedException()

    otp = generate_otp()
    try:
        db.query(VerificationToken).filter(
            VerificationToken.owner_id == account.id
        ).delete(synchronize_session=False)
        db.add(_new_verification_token(account.id, otp))
        db.commit()
    except IntegrityError:
        db.rollback()
        logger.warning(f"Resend verification collided for account {account.id}")
        raise ConflictException("A new code was just issued, please check your email")

    logger.info(f"Verification code reissued for account {account.id}")
    notifier.notify(account.email, VERIFY_EMAIL_SUBJECT, verification_email(account.name, otp))


async def request_password_reset(db: Session, email: Optional[str], notifier: Notifier) -> None:
    """
    Issue a reset token and mail the reset link.

    Only one live reset token may exist per account; the unique owner
    constraint settles concurrent requests.

    Args:
        db: Database session
        email: Email address
        notifier: Outbound notification port

    Raises:
        InvalidInputException: If email is missing
        NotFoundException: If no account matches
        RateLimitedException: If a live reset token already exists
    """
    if _is_blank(email):
        raise InvalidInputException(INVALID_EMAIL)

    account = _find_by_email(db, email)
    if not account:
        logger.warning(f"Password reset failed: No account for {email}")
        raise NotFoundException("User not found")

    if _live_reset_token(db, account.id):
        logger.warning(f"Password reset rejected: Request already pending for account {account.id}")
        raise RateLimitedException()

    token = generate_secure_reset_token()
    expires_at = get_token_expiry_time(settings.reset_token_expire_minutes)

    try:
        db.add(ResetToken(owner_id=account.id, token_hash=hash_token(token), expires_at=expires_at))
        db.commit()
    except IntegrityError:
        db.rollback()
        logger.warning(f"Password reset rejected: Concurrent request for account {account.id}")
        raise RateLimitedException()

    logger.info(f"Password reset token issued for account {account.id}")

    reset_url = build_reset_url(token, account.id)
    notifier.notify(account.email, PASSWORD_RESET_SUBJECT, password_reset_email(account.name, reset_url, expires_at))


def _replace_password(
    db: Session,
    account: Account,
    new_password: Optional[str],
    notifier: Notifier,
    require_reset_token: bool = False
) -> None:
    if new_password is None:
        raise InvalidInputException(_password_length_message())

    new_password = new_password.strip()
    if verify_password(new_password, account.password_hash):
        raise ConflictException("New password cannot be same as old password!!")

    if not _has_valid_length(new_password):
        raise InvalidInputException(_password_length_message())

    account.password_hash = hash_password(new_password)
    consumed = db.query(ResetToken).filter(
        ResetToken.owner_id == account.id
    ).delete(synchronize_session=False)
    if require_reset_token and not consumed:
        db.rollback()
        raise NotFoundException("Reset token not found")

    db.commit()
    logger.info(f"Password reset successful for account {account.id}")

    notifier.notify(account.email, PASSWORD_RESET_SUBJECT, password_changed_email(account.name))


async def reset_password(
    db: Session,
    account_id: str,
    new_password: Optional[str],
    notifier: Notifier
) -> None:
    """
    Replace the password of the account identified by the caller's session token.

    Any outstanding reset token of the account is consumed as well.

    Raises:
        NotFoundException: If the account no longer exists
        ConflictException: If the new password equals the current one
        InvalidInputException: If the trimmed length is outside the allowed range
    """
    account = _find_by_id(db, account_id)
    if not account:
        raise NotFoundException("User not found!")

    _replace_password(db, account, new_password, notifier)


async def reset_password_with_token(
    db: Session,
    account_id: Optional[str],
    token: Optional[str],
    new_password: Optional[str],
    notifier: Notifier
) -> None:
    """
    Replace a password using the token from the emailed reset link.

    Raises:
        InvalidInputException: If a parameter is missing, the id is malformed or the length is out of bounds
        NotFoundException: If the account or a live reset token is absent
        UnauthorizedException: If the token does not match
        ConflictException: If the new password equals the current one
    """
    if _is_blank(account_id) or _is_blank(token):
        raise InvalidInputException(MISSING_PARAMETERS)

    account_id = _parse_account_id(account_id)
    account = _find_by_id(db, account_id)
    if not account:
        raise NotFoundException("User not found!")

    reset_token = _live_reset_token(db, account.id)
    if not reset_token:
        logger.warning(f"Token reset failed: No live reset token for account {account_id}")
        raise NotFoundException("Reset token not found")

    if not verify_token_hash(token.strip(), reset_token.token_hash):
        logger.warning(f"Token reset failed: Invalid token for account {account_id}")
        raise UnauthorizedException("Reset token is invalid")

    _replace_password(db, account, new_password, notifier, require_reset_token=True)


async def get_account(db: Session, account_id: str) -> Account:
    account = _find_by_id(db, account_id)
    if not account:
        raise NotFoundException("User not found!")
    return account


def purge_expired_tokens(db: Session) -> int:
    """
    Delete every verification and reset token whose expiry has passed.

    Args:
        db: Database session

    Returns:
        int: Number of tokens removed
    """
    now = datetime.now(timezone.utc)
    removed = 0
    for model in (VerificationToken, ResetToken):
        removed += db.query(model).filter(model.expires_at <= now).delete(synchronize_session=False)
    db.commit()

    if removed:
        logger.info(f"Purged {removed} expired tokens")
    return removed
