from datetime import timedelta

import jwt
import pytest

from elms import config
from elms.exceptions import InvalidCredentialsError, InvalidTokenError
from elms.security import (
    DEACTIVATED_MESSAGE,
    authenticate,
    hash_password,
    issue_token,
    verify_password,
    verify_token,
)


def test_hash_password_uses_random_salt_and_verifies():
    first_hash, first_salt = hash_password("employee123")
    second_hash, second_salt = hash_password("employee123")

    assert first_salt != second_salt
    assert first_hash != second_hash
    assert verify_password("employee123", first_hash, first_salt)
    assert not verify_password("employee124", first_hash, first_salt)


def test_verify_password_rejects_missing_credentials():
    assert not verify_password("anything", None, None)


def test_issued_token_is_accepted_before_expiry():
    token = issue_token(42, {"role": "admin"})

    payload = verify_token(token)

    assert payload["id"] == 42
    assert payload["role"] == "admin"
    assert payload["exp"] > payload["iat"]


def test_expired_token_is_rejected():
    token = issue_token(42, expires_delta=timedelta(seconds=-10))

    with pytest.raises(InvalidTokenError):
        verify_token(token)


def test_tampered_token_is_rejected():
    token = issue_token(42)
    header, payload, signature = token.split(".")
    flipped = ("A" if signature[0] != "A" else "B") + signature[1:]

    with pytest.raises(InvalidTokenError):
        verify_token(".".join([header, payload, flipped]))


def test_token_signed_with_other_key_is_rejected():
    forged = jwt.encode({"id": 1}, "not-the-real-key", algorithm="HS256")

    with pytest.raises(InvalidTokenError):
        verify_token(forged)


@pytest.mark.parametrize("token", [None, "", "not-a-jwt"])
def test_malformed_tokens_are_rejected(token):
    with pytest.raises(InvalidTokenError):
        verify_token(token)


def test_missing_signing_key_fails(monkeypatch):
    monkeypatch.delenv("JWT_SECRET", raising=False)

    with pytest.raises(RuntimeError):
        config.require_jwt_secret()
    with pytest.raises(RuntimeError):
        issue_token(1)


def test_blank_signing_key_fails(monkeypatch):
    monkeypatch.setenv("JWT_SECRET", "   ")

    with pytest.raises(RuntimeError):
        config.require_jwt_secret()


def test_authenticate_updates_last_login(db, employee):
    assert employee.last_login is None

    user = authenticate(db, "Amit.Singh@mic.edu", "employee123")

    assert user.id == employee.id
    assert user.last_login is not None


def test_authenticate_rejects_wrong_password(db, employee):
    with pytest.raises(InvalidCredentialsError) as excinfo:
        authenticate(db, employee.email, "wrong-password")
    assert excinfo.value.message == "Invalid credentials"


def test_authenticate_rejects_unknown_email(db):
    with pytest.raises(InvalidCredentialsError):
        authenticate(db, "nobody@mic.edu", "whatever")


def test_authenticate_rejects_inactive_account(db, make_user):
    user = make_user(email="gone@mic.edu", password="secret123", is_active=False)

    with pytest.raises(InvalidCredentialsError) as excinfo:
        authenticate(db, user.email, "secret123")
    assert excinfo.value.message == DEACTIVATED_MESSAGE
