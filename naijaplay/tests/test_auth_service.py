"""
Tests for password hashing and JWT helpers.
"""

from datetime import timedelta

from jose import jwt

from naijaplay.services import auth_service


def test_hash_and_verify_password():
    hashed = auth_service.hash_password("Password1")
    assert hashed != "Password1"
    assert hashed.startswith("$2")
    assert auth_service.verify_password("Password1", hashed)
    assert not auth_service.verify_password("Password2", hashed)


def test_hash_is_salted():
    assert auth_service.hash_password("Password1") != auth_service.hash_password("Password1")


def test_verify_password_handles_bad_input():
    assert not auth_service.verify_password("", "whatever")
    assert not auth_service.verify_password("Password1", "")
    assert not auth_service.verify_password("Password1", "not-a-bcrypt-hash")


def test_token_round_trip():
    token = auth_service.create_access_token(data={"user_id": 42})
    payload = auth_service.verify_token(token)
    assert payload["user_id"] == 42
    assert payload["exp"] > payload["iat"]


def test_expired_token_rejected():
    token = auth_service.create_access_token(
        data={"user_id": 42}, expires_delta=timedelta(seconds=-10)
    )
    assert auth_service.verify_token(token) is None


def test_token_signed_with_other_key_rejected():
    forged = jwt.encode({"user_id": 42}, "some-other-secret", algorithm="HS256")
    assert auth_service.verify_token(forged) is None
    assert auth_service.verify_token("garbage") is None


def test_recovery_tokens_are_unique():
    tokens = {auth_service.generate_recovery_token() for _ in range(20)}
    assert len(tokens) == 20
    assert all(len(t) >= 32 for t in tokens)
