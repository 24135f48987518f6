from datetime import timedelta
from types import SimpleNamespace

import jwt
import pytest

from backoffice.core.security import (
    TokenSigner,
    get_password_hash,
    utcnow,
    validate_password,
    verify_password,
)
from backoffice.errors import ConfigurationError, ForbiddenError, UnauthorizedError

SECRET = "test-secret-key-min-32-characters-long-for-testing"

USER = SimpleNamespace(id=7, department_id=3, role_id=2)


def test_access_token_claims(signer: TokenSigner):
    token = signer.create_access_token(USER)

    payload = jwt.decode(token, SECRET, algorithms=["HS256"])
    assert payload["sub"] == "7"
    assert payload["id"] == 7
    assert payload["department_id"] == 3
    assert payload["role_id"] == 2
    assert payload["type"] == "access"
    assert payload["exp"] - payload["iat"] == 15 * 60


def test_access_tokens_are_unique(signer: TokenSigner):
    assert signer.create_access_token(USER) != signer.create_access_token(USER)


def test_decode_round_trip(signer: TokenSigner):
    payload = signer.decode_access_token(signer.create_access_token(USER))
    assert payload["id"] == 7


def test_decode_expired_token(signer: TokenSigner):
    now = utcnow()
    token = jwt.encode(
        {
            "sub": "7",
            "id": 7,
            "type": "access",
            "iat": now - timedelta(hours=1),
            "exp": now - timedelta(minutes=1),
        },
        SECRET,
        algorithm="HS256",
    )

    with pytest.raises(UnauthorizedError, match="Token has expired"):
        signer.decode_access_token(token)


def test_decode_token_signed_with_other_key(signer: TokenSigner):
    other = TokenSigner("another-secret-key-that-is-long-enough-for-hs256")
    with pytest.raises(ForbiddenError):
        signer.decode_access_token(other.create_access_token(USER))


def test_decode_rejects_non_access_token(signer: TokenSigner):
    now = utcnow()
    token = jwt.encode(
        {"sub": "7", "id": 7, "type": "refresh", "exp": now + timedelta(minutes=5)},
        SECRET,
        algorithm="HS256",
    )
    with pytest.raises(ForbiddenError):
        signer.decode_access_token(token)


def test_decode_garbage(signer: TokenSigner):
    with pytest.raises(ForbiddenError, match="Invalid or expired token"):
        signer.decode_access_token("not.a.jwt")


def test_missing_secret_is_configuration_error():
    signer = TokenSigner(None)
    with pytest.raises(ConfigurationError) as exc_info:
        signer.create_access_token(USER)
    assert exc_info.value.public_message == "Server configuration error"


def test_opaque_tokens():
    refresh_tokens = {TokenSigner.create_refresh_token() for _ in range(50)}
    reset_tokens = {TokenSigner.create_reset_token() for _ in range(50)}

    assert len(refresh_tokens) == 50
    assert len(reset_tokens) == 50
    assert all(len(t) == 80 and int(t, 16) >= 0 for t in refresh_tokens)
    assert all(len(t) == 64 and int(t, 16) >= 0 for t in reset_tokens)


def test_password_hashing():
    hashed = get_password_hash("P@ssw0rd1")
    assert hashed != "P@ssw0rd1"
    assert verify_password("P@ssw0rd1", hashed)
    assert not verify_password("P@ssw0rd2", hashed)


@pytest.mark.parametrize(
    "password,fragment",
    [
        ("Sh0rt!", "8 characters"),
        ("nouppercase1!", "uppercase"),
        ("NOLOWERCASE1!", "lowercase"),
        ("NoNumbers!!", "number"),
        ("NoSymbols123", "symbol"),
    ],
)
def test_validate_password_rejects(password, fragment):
    is_valid, message = validate_password(password)
    assert not is_valid
    assert fragment in message


def test_validate_password_accepts_strong_password():
    assert validate_password("P@ssw0rd1") == (True, None)
