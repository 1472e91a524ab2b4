"""
Application configuration settings loaded from environment variables.
Uses pydantic_settings for validation and type conversion.
"""
from pydantic_settings import BaseSettings
from typing import Optional

class Settings(BaseSettings):
    """
    Application settings class with environment variable validation.

    Attributes:
        database_url: Database connection string
        secret_key: Secret key for JWT token encoding
        algorithm: Algorithm used for JWT encoding (typically HS256)
        access_token_expire_minutes: Session token lifetime in minutes (one day)

        # Email settings
        mail_username: SMTP server username
        mail_password: SMTP server password
        mail_from: Sender email address
        mail_from_name: Display name used as sender
        mail_port: SMTP server port
        mail_server: SMTP server hostname
        mail_starttls: Whether to use STARTTLS
        mail_ssl_tls: Whether to use SSL/TLS
        use_credentials: Whether to use credentials for SMTP
        validate_certs: Whether to validate certificates
        mail_suppress_send: Build messages but never open an SMTP connection
        mail_max_retries: Delivery attempts per message
        mail_retry_delay: Seconds between delivery attempts

        # Frontend settings
        frontend_url: URL of the frontend application (reset links point here)

        # Account policy
        otp_length: Number of digits in the email verification code
        verification_token_expire_minutes: Lifetime of a verification code
        otp_max_attempts: Wrong codes accepted before the verification code is discarded
        reset_token_expire_minutes: Lifetime of a reset token (also the reset request window)
        password_min_length: Minimum length of a reset password after trimming
        password_max_length: Maximum length of a reset password after trimming
    """
    # Database settings
    database_url: str

    # JWT settings
    secret_key: str
    algorithm: str = "HS256"
    access_token_expire_minutes: int = 60 * 24

    # Email settings
    mail_username: str
    mail_password: str
    mail_from: str
    mail_from_name: Optional[str] = None
    mail_port: int = 587
    mail_server: str
    mail_starttls: bool = True
    mail_ssl_tls: bool = False
    use_credentials: bool = True
    validate_certs: bool = True
    mail_suppress_send: bool = False
    mail_max_retries: int = 3
    mail_retry_delay: float = 2

    # Frontend settings
    frontend_url: str = "http://localhost:3000"

    # Account policy
    otp_length: int = 4
    verification_token_expire_minutes: int = 60
    otp_max_attempts: int = 5
    reset_token_expire_minutes: int = 60
    password_min_length: int = 8
    password_max_length: int = 20

    class Config:
        """Configuration for environment variables loading"""
        env_file = ".env"
        case_sensitive = False

# Create settings instance
settings = Settings()
