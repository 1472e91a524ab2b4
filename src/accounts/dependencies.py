"""
FastAPI dependencies for the account routes.
"""
from fastapi import BackgroundTasks, Depends
from fastapi.security import OAuth2PasswordBearer

from ..core.mail import MailNotifier, Notifier
from ..core.security import verify_token
from .exceptions import UnauthorizedException

# OAuth2 scheme for JWT token authentication; auto_error is off so a missing
# header is reported in the same shape as a bad token
oauth2_scheme = OAuth2PasswordBearer(tokenUrl="/api/v1/users/signin", auto_error=False)

def get_notifier(background_tasks: BackgroundTasks) -> Notifier:
    """
    Notifier bound to the current request's background tasks.
    """
    return MailNotifier(background_tasks)

def get_current_account_id(token: str = Depends(oauth2_scheme)) -> str:
    """
    Resolve the account id asserted by the bearer token.

    The account itself is looked up by the service, so an account that
    disappeared after sign-in is reported as not found.

    Args:
        token: JWT token from Authorization header

    Returns:
        str: Account id carried in the token subject

    Raises:
        UnauthorizedException: If the token is missing, invalid or expired
    """
    if not token:
        raise UnauthorizedException("Unauthorized access!")

    payload = verify_token(token)
    if not payload or not payload.get("sub"):
        raise UnauthorizedException("Invalid or expired token")

    return payload["sub"]
