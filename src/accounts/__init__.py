"""
Account module for the account service.

This module provides the account lifecycle:
- Registration with email verification (one-time code)
- Sign-in issuing a bearer token
- Password reset (emailed link or signed-in reset)
"""
