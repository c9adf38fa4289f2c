from datetime import timedelta

from jose import jwt

from app.core.config import settings
from app.core.security import create_access_token, decode_access_token, hash_password, verify_password


def test_hash_and_verify_password():
    hashed = hash_password("s3cret-pass")

    assert hashed != "s3cret-pass"
    assert verify_password("s3cret-pass", hashed) is True
    assert verify_password("wrong", hashed) is False


def test_verify_password_handles_missing_or_garbage_hash():
    assert verify_password("s3cret-pass", None) is False
    assert verify_password("s3cret-pass", "not-a-hash") is False
    assert verify_password(None, hash_password("x")) is False


def test_token_roundtrip():
    token = create_access_token("64f0c0ffee0000000000abcd")
    payload = decode_access_token(token)

    assert payload["sub"] == "64f0c0ffee0000000000abcd"
    assert payload["exp"] > payload["iat"]


def test_token_lifetime_defaults_to_configured_days():
    payload = decode_access_token(create_access_token("abc"))
    assert payload["exp"] - payload["iat"] == settings.JWT_EXPIRES_DAYS * 24 * 3600


def test_expired_token_rejected():
    token = create_access_token("abc", expires_delta=timedelta(seconds=-1))
    assert decode_access_token(token) is None


def test_token_signed_with_other_key_rejected():
    forged = jwt.encode({"sub": "abc"}, "some-other-secret", algorithm="HS256")
    assert decode_access_token(forged) is None
