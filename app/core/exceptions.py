"""Custom exception types for domain and API layers."""


class AppError(Exception):
    """Base app exception."""


class ValidationError(AppError):
    """Validation failure for user input or generated artifacts."""


class IntegrationError(AppError):
    """External integration call failure."""

    def __init__(self, message: str, status_code: int | None = None):
        super().__init__(message)
        self.message = message
        self.status_code = status_code


class AuthenticationError(IntegrationError):
    """Travel API rejected the caller's credentials."""


class SessionNotFoundError(AppError):
    """No payment session registered under the given id."""
