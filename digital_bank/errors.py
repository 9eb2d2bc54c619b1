"""
Error Taxonomy Module

Domain exceptions raised by the hashing, storage and configuration layers,
and the API error type that carries an HTTP status to the route guards.
"""

from fastapi.responses import JSONResponse


INTERNAL_SERVER_ERROR = "Internal server error"


class DigitalBankError(Exception):
    """Base class for all digital bank errors"""
    pass


class HashingError(DigitalBankError):
    """Password hashing primitive failed"""
    pass


class ComparisonError(DigitalBankError):
    """Stored password digest could not be compared"""
    pass


class DuplicateEmailError(DigitalBankError):
    """A user with the same email already exists in the store"""

    def __init__(self, email: str):
        super().__init__(f"User with email {email} already exists")
        self.email = email


class UserNotFoundError(DigitalBankError):
    """No user record with the given id"""

    def __init__(self, user_id: str):
        super().__init__(f"User {user_id} not found")
        self.user_id = user_id


class ConfigurationError(DigitalBankError):
    """Invalid or unsafe configuration detected at startup"""
    pass


class ApiError(DigitalBankError):
    """
    Handled request failure with the HTTP status it maps to.

    The message is user visible and ends up in the ``{"error": ...}`` body.
    """

    def __init__(self, message: str, status_code: int):
        super().__init__(message)
        self.message = message
        self.status_code = status_code

    def to_response(self) -> JSONResponse:
        return error_response(self.message, self.status_code)


def error_response(message: str, status_code: int) -> JSONResponse:
    """Build the uniform JSON error body"""
    return JSONResponse(status_code=status_code, content={"error": message})
