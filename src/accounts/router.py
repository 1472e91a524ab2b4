"""
Account routes: registration, sign-in, email verification and password reset.

Every route shares the same error boundary: lifecycle exceptions pass through
to the global handler, anything else is logged and reported as a generic
internal error.
"""
from fastapi import APIRouter, Depends, status
from sqlalchemy.orm import Session
import logging

from ..database import get_db
from ..core.mail import Notifier
from .dependencies import get_current_account_id, get_notifier
from .exceptions import AccountException, InternalServerException
from .schemas import (
    AccountCreate, AccountSignin, EmailVerify, EmailRequest,
    PasswordResetBody, PasswordResetConfirm,
    AccountResponse, AccountSummary, SigninUser,
    AccountEnvelope, SigninResponse, VerifyEmailResponse, MessageResponse
)
from . import service

# Set up logging
logger = logging.getLogger(__name__)

# Create API router
router = APIRouter(prefix="/api/v1/users", tags=["Accounts"])


def _internal_error(db: Session, operation: str) -> InternalServerException:
    logger.exception(f"Unexpected error during {operation}")
    db.rollback()
    return InternalServerException()


@router.post("/create", status_code=status.HTTP_201_CREATED, response_model=AccountEnvelope, summary="Register Account")
async def create_account_route(
    account_data: AccountCreate,
    db: Session = Depends(get_db),
    notifier: Notifier = Depends(get_notifier)
):
    """
    Registration endpoint. Creates an unverified account and mails a verification code.

    Returns:
        AccountEnvelope with the redacted account
    """
    try:
        account = await service.register_account(
            db=db,
            name=account_data.name,
            email=account_data.email,
            password=account_data.password,
            notifier=notifier
        )
        return AccountEnvelope(user=AccountResponse.model_validate(account))
    except AccountException:
        raise
    except Exception:
        raise _internal_error(db, "registration")


@router.post("/signin", response_model=SigninResponse, summary="Sign In")
async def signin_route(
    signin_data: AccountSignin,
    db: Session = Depends(get_db)
):
    """
    Sign-in endpoint.

    Returns:
        SigninResponse with the account summary and a bearer token valid for one day
    """
    try:
        result = await service.authenticate(
            db=db,
            email=signin_data.email,
            password=signin_data.password
        )
        return SigninResponse(user=SigninUser(**result))
    except AccountException:
        raise
    except Exception:
        raise _internal_error(db, "sign in")


@router.post("/verify-email", response_model=VerifyEmailResponse, summary="Verify Email Address")
async def verify_email_route(
    verification_data: EmailVerify,
    db: Session = Depends(get_db),
    notifier: Notifier = Depends(get_notifier)
):
    """
    Email verification endpoint.

    Returns:
        VerifyEmailResponse with the verified account summary
    """
    try:
        account = await service.verify_email(
            db=db,
            account_id=verification_data.user_id,
            otp=verification_data.otp,
            notifier=notifier
        )
        return VerifyEmailResponse(
            message="Your email is verified.",
            user=AccountSummary.model_validate(account)
        )
    except AccountException:
        raise
    except Exception:
        raise _internal_error(db, "email verification")


@router.post("/resend-verification", response_model=MessageResponse, summary="Resend Verification Code")
async def resend_verification_route(
    request_data: EmailRequest,
    db: Session = Depends(get_db),
    notifier: Notifier = Depends(get_notifier)
):
    try:
        await service.resend_verification(db=db, email=request_data.email, notifier=notifier)
        return MessageResponse(message="A new verification code is sent to your email.")
    except AccountException:
        raise
    except Exception:
        raise _internal_error(db, "resend verification")


@router.post("/forgot-password", response_model=MessageResponse, summary="Request Password Reset")
async def forgot_password_route(
    request_data: EmailRequest,
    db: Session = Depends(get_db),
    notifier: Notifier = Depends(get_notifier)
):
    """
    Forgot password endpoint. Mails a reset link; one outstanding request per hour.
    """
    try:
        await service.request_password_reset(db=db, email=request_data.email, notifier=notifier)
        return MessageResponse(message="Password reset link is sent to your email.")
    except AccountException:
        raise
    except Exception:
        raise _internal_error(db, "forgot password")


@router.post("/reset-password", response_model=MessageResponse, summary="Reset Password (signed in)")
async def reset_password_route(
    reset_data: PasswordResetBody,
    account_id: str = Depends(get_current_account_id),
    db: Session = Depends(get_db),
    notifier: Notifier = Depends(get_notifier)
):
    """
    Session-gated password reset for the account named by the bearer token.
    """
    try:
        await service.reset_password(
            db=db,
            account_id=account_id,
            new_password=reset_data.password,
            notifier=notifier
        )
        return MessageResponse(message="Password reset successfully")
    except AccountException:
        raise
    except Exception:
        raise _internal_error(db, "password reset")


@router.post("/reset-password/confirm", response_model=MessageResponse, summary="Reset Password (emailed link)")
async def reset_password_confirm_route(
    reset_data: PasswordResetConfirm,
    db: Session = Depends(get_db),
    notifier: Notifier = Depends(get_notifier)
):
    """
    Token-gated password reset using the token and account id from the reset link.
    """
    try:
        await service.reset_password_with_token(
            db=db,
            account_id=reset_data.user_id,
            token=reset_data.token,
            new_password=reset_data.password,
            notifier=notifier
        )
        return MessageResponse(message="Password reset successfully")
    except AccountException:
        raise
    except Exception:
        raise _internal_error(db, "token password reset")


@router.get("/me", response_model=AccountEnvelope, summary="Current Account")
async def current_account_route(
    account_id: str = Depends(get_current_account_id),
    db: Session = Depends(get_db)
):
    try:
        account = await service.get_account(db, account_id)
        return AccountEnvelope(user=AccountResponse.model_validate(account))
    except AccountException:
        raise
    except Exception:
        raise _internal_error(db, "profile lookup")
