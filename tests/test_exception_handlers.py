import pytest

from backoffice.api.exception_handlers import status_for
from backoffice.errors import (
    ConfigurationError,
    DomainError,
    DomainValidationError,
    ForbiddenError,
    GoneError,
    InternalError,
    InvalidCredentialsError,
    NotFoundError,
    NotificationError,
    UnauthorizedError,
)


@pytest.mark.parametrize(
    "exc,expected",
    [
        (DomainValidationError("bad"), 400),
        (InvalidCredentialsError("Invalid credentials"), 401),
        (UnauthorizedError("missing"), 401),
        (ForbiddenError("invalid"), 403),
        (NotFoundError("User not found"), 404),
        (GoneError("expired"), 410),
        (ConfigurationError("no secret"), 500),
        (NotificationError("smtp down"), 500),
        (InternalError("db down"), 500),
        (DomainError("unclassified"), 500),
    ],
)
def test_status_for(exc, expected):
    assert status_for(exc) == expected


def test_server_errors_hide_details():
    exc = InternalError("refresh failed: connection reset by peer")
    assert exc.public_message == "Server error"
    assert "connection reset" in str(exc)
