"""
Outbound mail transport.

State changes commit first; mail goes out afterwards through a Notifier. The
mail path has its own failure channel: delivery is retried and logged, and a
failure never reaches the caller or undoes the state change.
"""
import asyncio
import logging
from typing import Optional

from fastapi import BackgroundTasks
from fastapi_mail import FastMail, MessageSchema, ConnectionConfig, MessageType

from ..config import settings

# Set up logging
logger = logging.getLogger(__name__)

_fast_mail: Optional[FastMail] = None


def get_mail_config() -> ConnectionConfig:
    """
    Build the fastapi-mail connection configuration from settings.

    Returns:
        ConnectionConfig: SMTP configuration
    """
    return ConnectionConfig(
        MAIL_USERNAME=settings.mail_username,
        MAIL_PASSWORD=settings.mail_password,
        MAIL_FROM=settings.mail_from,
        MAIL_FROM_NAME=settings.mail_from_name,
        MAIL_PORT=settings.mail_port,
        MAIL_SERVER=settings.mail_server,
        MAIL_STARTTLS=settings.mail_starttls,
        MAIL_SSL_TLS=settings.mail_ssl_tls,
        USE_CREDENTIALS=settings.use_credentials,
        VALIDATE_CERTS=settings.validate_certs,
        SUPPRESS_SEND=1 if settings.mail_suppress_send else 0
    )


def get_fast_mail() -> FastMail:
    global _fast_mail
    if _fast_mail is None:
        _fast_mail = FastMail(get_mail_config())
    return _fast_mail


async def send_mail(email: str, subject: str, html: str) -> bool:
    """
    Send an HTML email with retry logic.

    Args:
        email: Recipient address
        subject: Subject line
        html: HTML body

    Returns:
        bool: True if the message was handed to the SMTP server
    """
    message = MessageSchema(
        subject=subject,
        recipients=[email],
        body=html,
        subtype=MessageType.html
    )

    attempts = max(1, settings.mail_max_retries)
    for attempt in range(1, attempts + 1):
        try:
            logger.info(f"Email send attempt {attempt}/{attempts} to {email}: {subject}")
            await get_fast_mail().send_message(message)
            logger.info(f"Email sent successfully to {email} on attempt {attempt}")
            return True
        except Exception as e:
            logger.warning(f"Error sending email to {email} on attempt {attempt}: {str(e)}")
            if attempt < attempts:
                await asyncio.sleep(settings.mail_retry_delay)

    logger.error(f"Failed to send '{subject}' to {email} after {attempts} attempts")
    return False


class Notifier:
    """
    Outbound notification port used by the account lifecycle.
    """
    def notify(self, email: str, subject: str, html: str) -> None:
        raise NotImplementedError


class MailNotifier(Notifier):
    """
    Notifier that queues mail on the request's background tasks, so delivery
    happens after the response has been produced.
    """
    def __init__(self, background_tasks: BackgroundTasks):
        self.background_tasks = background_tasks

    def notify(self, email: str, subject: str, html: str) -> None:
        self.background_tasks.add_task(send_mail, email, subject, html)
