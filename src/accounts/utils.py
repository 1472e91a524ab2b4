"""
Email bodies for the account lifecycle notifications.
"""
from datetime import datetime

from ..config import settings

VERIFY_EMAIL_SUBJECT = "Verify your email account"
WELCOME_SUBJECT = "Welcome!"
PASSWORD_RESET_SUBJECT = "Password Reset!"

_LAYOUT = """
    <html>
        <head>
            <style>
                body {{ font-family: Arial, sans-serif; line-height: 1.6; }}
                .container {{ max-width: 600px; margin: 0 auto; padding: 20px; }}
                .content {{ padding: 20px; border: 1px solid #ddd; }}
                .code {{ font-size: 24px; font-weight: bold; text-align: center;
                        margin: 20px 0; padding: 10px; background-color: #f5f5f5; letter-spacing: 4px; }}
                .button {{ display: inline-block; padding: 10px 20px; background-color: #3498db;
                        color: white; text-decoration: none; border-radius: 5px; margin: 20px 0; }}
                .footer {{ text-align: center; margin-top: 20px; font-size: 12px; color: #777; }}
            </style>
        </head>
        <body>
            <div class="container">
                <div class="content">
                    {content}
                </div>
                <div class="footer">
                    &copy; {year}. All rights reserved.
                </div>
            </div>
        </body>
    </html>
"""


def _render(content: str) -> str:
    return _LAYOUT.format(content=content, year=datetime.now().year)


def build_reset_url(token: str, account_id: str) -> str:
    """
    Build the link mailed on a forgot-password request.

    Args:
        token: Plain reset token (only ever sent, never stored)
        account_id: Owner of the token

    Returns:
        str: Frontend URL carrying token and account id
    """
    base_url = settings.frontend_url.rstrip("/")
    return f"{base_url}/reset-password?token={token}&id={account_id}"


def verification_email(name: str, otp: str) -> str:
    return _render(f"""
                    <p>Hello {name},</p>
                    <p>Use the following code to verify your email address:</p>
                    <div class="code">{otp}</div>
                    <p>The code expires in {settings.verification_token_expire_minutes} minutes.</p>
                    <p>If you did not create an account, please ignore this email.</p>
    """)


def welcome_email(name: str) -> str:
    return _render(f"""
                    <p>Hello {name},</p>
                    <h1>Email verified successfully</h1>
                    <p>Thanks for confirming your address. You can now sign in.</p>
    """)


def password_reset_email(name: str, reset_url: str, expires_at: datetime) -> str:
    """
    Reset link email, with the link repeated as text for clients that block buttons.
    """
    expiry = expires_at.strftime("%B %d, %Y at %I:%M %p %Z").strip()
    return _render(f"""
                    <p>Hello {name},</p>
                    <p>We received a request to reset your password. Click the button below to choose a new one:</p>
                    <p style="text-align: center;">
                        <a href="{reset_url}" class="button">Reset Password</a>
                    </p>
                    <p><strong>Important:</strong> This link will expire on {expiry}.</p>
                    <p>If you can't click the button, copy and paste this link into your browser:</p>
                    <p style="word-break: break-all;">{reset_url}</p>
                    <p>If you did not request a password reset, please ignore this email.</p>
    """)


def password_changed_email(name: str) -> str:
    return _render(f"""
                    <p>Hello {name},</p>
                    <h1>Password Reset successfully</h1>
                    <p>Now you can login with new password.</p>
                    <p>If you did not make this change, please contact support immediately.</p>
    """)
