"""
Account lifecycle exceptions.

Each class is one failure kind of the lifecycle; the HTTP status it maps to is
fixed here and rendered by the global AppException handler.
"""
from fastapi import status

from ..exceptions import AppException, INTERNAL_ERROR_MESSAGE

class AccountException(AppException):
    """Base class for account lifecycle exceptions."""
    def __init__(self, status_code: int, detail: str):
        super().__init__(status_code=status_code, detail=detail)

class InvalidInputException(AccountException):
    """Exception raised when a field is missing or malformed."""
    def __init__(self, detail: str = "Invalid request, missing parameters!!"):
        super().__init__(status_code=status.HTTP_400_BAD_REQUEST, detail=detail)

class UnauthorizedException(AccountException):
    """Exception raised when a password, code or token does not match."""
    def __init__(self, detail: str = "Unauthorized access!"):
        super().__init__(status_code=status.HTTP_401_UNAUTHORIZED, detail=detail)

class NotFoundException(AccountException):
    """Exception raised when an account or a live token is absent."""
    def __init__(self, detail: str = "Not found"):
        super().__init__(status_code=status.HTTP_404_NOT_FOUND, detail=detail)

class ConflictException(AccountException):
    """Exception raised on duplicate email or password reuse."""
    def __init__(self, detail: str = "Conflict"):
        super().__init__(status_code=status.HTTP_409_CONFLICT, detail=detail)

class AlreadyVerifiedException(AccountException):
    """Exception raised when verifying an account that is already verified."""
    def __init__(self, detail: str = "This email is already verified"):
        super().__init__(status_code=status.HTTP_409_CONFLICT, detail=detail)

class RateLimitedException(AccountException):
    """Exception raised while a reset request is still outstanding."""
    def __init__(self, detail: str = "Only after one hour you can request for another token"):
        super().__init__(status_code=status.HTTP_429_TOO_MANY_REQUESTS, detail=detail)

class InternalServerException(AccountException):
    """Exception raised for unexpected failures; never carries internal detail."""
    def __init__(self, detail: str = INTERNAL_ERROR_MESSAGE):
        super().__init__(status_code=status.HTTP_500_INTERNAL_SERVER_ERROR, detail=detail)
