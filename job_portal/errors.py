"""
Exception taxonomy for the job portal.

Validation and authentication errors are recovered by the route handlers
and shown to the user as flash messages. Upload errors are caught by a
central error handler. Anything else propagates to the generic 500 page.
"""

from typing import List, Optional


class PortalError(Exception):
    """Base class for all errors raised by job portal components."""


class ValidationError(PortalError):
    """
    User input failed validation.

    Carries the full list of messages so that every problem with a form
    can be reported at once.
    """

    def __init__(self, errors: List[str]):
        self.errors = list(errors)
        super().__init__("; ".join(self.errors))


class JobValidationError(ValidationError):
    """A job posting failed field validation."""


class RegistrationError(ValidationError):
    """A registration request was rejected."""

    def __init__(self, message: str):
        super().__init__([message])
        self.message = message


class AuthenticationError(PortalError):
    """Credential verification failed."""

    GENERIC_MESSAGE = "Incorrect email or password"

    def __init__(self, message: Optional[str] = None):
        self.message = message or self.GENERIC_MESSAGE
        super().__init__(self.message)


class DuplicateEmailError(PortalError):
    """The user store already holds a user with this email."""

    def __init__(self, email: str):
        self.email = email
        super().__init__(f"Email already registered: {email}")


class UploadError(PortalError):
    """An uploaded file was rejected (disallowed type or oversize)."""

    def __init__(self, message: str, field_name: Optional[str] = None):
        self.message = message
        self.field_name = field_name
        super().__init__(message)
