"""Custom domain exceptions for the application."""

# Stable, machine-readable error codes for API consumers.
VALIDATION_ERROR = "VALIDATION_ERROR"
INVALID_CREDENTIALS = "INVALID_CREDENTIALS"
UNAUTHORIZED = "UNAUTHORIZED"
FORBIDDEN = "FORBIDDEN"
NOT_FOUND = "NOT_FOUND"
GONE = "GONE"
CONFIGURATION_ERROR = "CONFIGURATION_ERROR"
NOTIFICATION_ERROR = "NOTIFICATION_ERROR"
INTERNAL_ERROR = "INTERNAL_ERROR"


class DomainError(Exception):
    """Base exception for domain/business logic errors."""

    code = INTERNAL_ERROR


class DomainValidationError(DomainError):
    """Raised when input is missing or malformed, or a business rule fails."""

    code = VALIDATION_ERROR


class InvalidCredentialsError(DomainError):
    """Raised on login for an unknown email or a wrong password alike."""

    code = INVALID_CREDENTIALS


class UnauthorizedError(DomainError):
    """Raised when a credential is absent or has expired."""

    code = UNAUTHORIZED


class ForbiddenError(DomainError):
    """Raised when a credential is present but not acceptable."""

    code = FORBIDDEN


class NotFoundError(DomainError):
    """Raised when a requested resource does not exist."""

    code = NOT_FOUND


class GoneError(DomainError):
    """Raised when a password reset token matched but has expired."""

    code = GONE

    def __init__(self, message: str, redirect_to_forgot: bool = True):
        super().__init__(message)
        self.redirect_to_forgot = redirect_to_forgot


class ServerError(DomainError):
    """
    Base for failures on our side.

    The exception message is logged server-side; callers only ever see
    ``public_message``.
    """

    public_message = "Server error"

    def __init__(self, message: str, public_message: str | None = None):
        super().__init__(message)
        if public_message is not None:
            self.public_message = public_message


class ConfigurationError(ServerError):
    """Raised when required server configuration (secret, SMTP) is missing."""

    code = CONFIGURATION_ERROR
    public_message = "Server configuration error"


class NotificationError(ServerError):
    """Raised when the outbound mail service cannot deliver a message."""

    code = NOTIFICATION_ERROR
    public_message = "Email service temporarily unavailable. Please try again later."


class InternalError(ServerError):
    """Catch-all for database and signing failures."""

    code = INTERNAL_ERROR
