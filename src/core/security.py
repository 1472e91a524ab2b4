"""
Core security utilities for authentication and password handling.
"""
from datetime import datetime, timedelta, timezone
from typing import Optional, Dict, Any
from jose import jwt, JWTError
from passlib.context import CryptContext
import secrets
import hashlib
import hmac
import logging

from ..config import settings

# Set up logging
logger = logging.getLogger(__name__)

# Password and verification code hashing context
pwd_context = CryptContext(schemes=["bcrypt"], deprecated="auto")

def hash_password(password: str) -> str:
    """
    Hash a password using bcrypt.

    Args:
        password: Plain text password

    Returns:
        str: Hashed password
    """
    return pwd_context.hash(password)

def verify_password(plain_password: str, hashed_password: str) -> bool:
    """
    Verify a password against a hash.

    Args:
        plain_password: Plain text password
        hashed_password: Hashed password to compare against

    Returns:
        bool: True if password matches hash
    """
    return pwd_context.verify(plain_password, hashed_password)

def generate_otp(length: Optional[int] = None) -> str:
    """
    Generate a numeric one-time code for email verification.

    Args:
        length: Number of digits (defaults to settings.otp_length)

    Returns:
        str: Code made of decimal digits only
    """
    length = length or settings.otp_length
    return "".join(str(secrets.randbelow(10)) for _ in range(length))

def create_access_token(subject: str, expires_delta: Optional[timedelta] = None) -> str:
    """
    Create a JWT access token (the session assertion).

    Args:
        subject: Account id the token asserts
        expires_delta: Token lifetime, defaults to settings.access_token_expire_minutes

    Returns:
        str: Encoded JWT token
    """
    now = datetime.now(timezone.utc)
    expire = now + (expires_delta or timedelta(minutes=settings.access_token_expire_minutes))

    to_encode = {"sub": subject, "iat": now, "exp": expire}
    return jwt.encode(to_encode, settings.secret_key, algorithm=settings.algorithm)

def verify_token(token: str) -> Optional[Dict[str, Any]]:
    """
    Verify and decode a JWT token.

    Args:
        token: JWT token string

    Returns:
        Dict containing token payload if valid, None if invalid or expired
    """
    try:
        payload = jwt.decode(token, settings.secret_key, algorithms=[settings.algorithm])
        return payload
    except JWTError as e:
        logger.debug(f"Rejected access token: {str(e)}")
        return None

def generate_secure_reset_token() -> str:
    """
    Generate a secure token for password reset.

    Returns:
        str: 64 hex characters (32 random bytes)
    """
    return secrets.token_hex(32)

def hash_token(token: str) -> str:
    """
    Hash a token for secure storage.

    Args:
        token: Token to hash

    Returns:
        str: Hashed token
    """
    return hashlib.sha256(token.encode()).hexdigest()

def verify_token_hash(token: str, hashed_token: str) -> bool:
    """
    Verify a token against a hash.

    Args:
        token: Plain text token
        hashed_token: Hashed token to compare against

    Returns:
        bool: True if token matches hash
    """
    return hmac.compare_digest(hash_token(token), hashed_token)

def as_utc(moment: datetime) -> datetime:
    # SQLite hands back naive datetimes even for timezone-aware columns
    if moment.tzinfo is None:
        return moment.replace(tzinfo=timezone.utc)
    return moment

def is_token_expired(expiry_time: datetime) -> bool:
    """
    Check if a token has expired.

    Args:
        expiry_time: Token expiration time

    Returns:
        bool: True if token has expired
    """
    return datetime.now(timezone.utc) >= as_utc(expiry_time)

def get_token_expiry_time(minutes: int = 60) -> datetime:
    """
    Get token expiration time.

    Args:
        minutes: Minutes until expiration

    Returns:
        datetime: Expiration time
    """
    return datetime.now(timezone.utc) + timedelta(minutes=minutes)
