import jwt
import pytest
from fastapi import HTTPException

from src.api.core.auth import (
    ACCESS_TOKEN_ISSUER,
    REFRESH_TOKEN_ISSUER,
    create_token,
    decode_token,
    hash_password,
    verify_password,
)

SECRET = "test-secret"


def test_password_hash_round_trip():
    hashed = hash_password("hunter2")
    assert hashed != "hunter2"
    assert verify_password("hunter2", hashed)
    assert not verify_password("hunter3", hashed)


def test_password_hashes_are_salted():
    assert hash_password("same") != hash_password("same")


def test_decode_valid_token():
    token = create_token("7", SECRET, ACCESS_TOKEN_ISSUER, 60)
    data = decode_token(token, SECRET, ACCESS_TOKEN_ISSUER)
    assert data.sub == "7"
    assert data.iss == ACCESS_TOKEN_ISSUER


def test_decode_rejects_wrong_issuer():
    token = create_token("7", SECRET, REFRESH_TOKEN_ISSUER, 60)
    with pytest.raises(HTTPException) as exc_info:
        decode_token(token, SECRET, ACCESS_TOKEN_ISSUER)
    assert exc_info.value.status_code == 401
    assert exc_info.value.detail == "Wrong issuer"


def test_decode_rejects_expired_token():
    token = create_token("7", SECRET, ACCESS_TOKEN_ISSUER, -10)
    with pytest.raises(HTTPException) as exc_info:
        decode_token(token, SECRET, ACCESS_TOKEN_ISSUER)
    assert exc_info.value.status_code == 401


def test_decode_rejects_bad_signature():
    token = create_token("7", "another-secret", ACCESS_TOKEN_ISSUER, 60)
    with pytest.raises(HTTPException) as exc_info:
        decode_token(token, SECRET, ACCESS_TOKEN_ISSUER)
    assert exc_info.value.status_code == 401


def test_decode_rejects_missing_subject():
    token = jwt.encode({"iss": ACCESS_TOKEN_ISSUER, "exp": 9999999999}, SECRET, algorithm="HS256")
    with pytest.raises(HTTPException):
        decode_token(token, SECRET, ACCESS_TOKEN_ISSUER)


def test_decode_rejects_garbage():
    with pytest.raises(HTTPException):
        decode_token("not-a-jwt", SECRET, ACCESS_TOKEN_ISSUER)
