import pytest

from medcert.infrastructure.security.password_hash import hash_password, needs_rehash, verify_password


def test_hash_and_verify_argon2():
    raw = "Secret123!"
    hashed = hash_password(raw, scheme="argon2")
    assert hashed.startswith("$argon2")
    assert verify_password(raw, hashed) is True
    assert verify_password("wrong", hashed) is False
    assert needs_rehash(hashed) is False


def test_legacy_bcrypt_hash_is_verified_and_flagged_for_rehash():
    raw = "AnotherPass#1"
    hashed = hash_password(raw, scheme="bcrypt")
    assert hashed.startswith("$2")
    assert verify_password(raw, hashed) is True
    assert verify_password("nope", hashed) is False
    assert needs_rehash(hashed) is True


def test_unknown_hash_format_rejected():
    with pytest.raises(ValueError):
        verify_password("x", "plain-text")
