# =============================================================================================
# TESTS/TEST_SECURITY.PY - PASSWORD HASHER AND TOKEN CODEC
# =============================================================================================

from datetime import timedelta

import jwt

from authapi.core.security import (
    ACCESS_TOKEN,
    REFRESH_TOKEN,
    PasswordHasher,
    SigningContext,
    TokenCodec,
)

SECRET_A = "secret-a-0123456789abcdef0123456789"
SECRET_B = "secret-b-0123456789abcdef0123456789"


def make_codec(access_ttl=timedelta(minutes=15), refresh_ttl=timedelta(days=7),
               access_secret=SECRET_A, refresh_secret=SECRET_B):
    return TokenCodec(
        access=SigningContext(secret=access_secret, ttl=access_ttl, token_type=ACCESS_TOKEN),
        refresh=SigningContext(secret=refresh_secret, ttl=refresh_ttl, token_type=REFRESH_TOKEN),
    )


# =============================================================================================
# PasswordHasher
# =============================================================================================

def test_hash_and_verify():
    hasher = PasswordHasher(rounds=4)
    hashed = hasher.hash("secret1")

    assert hashed.startswith("$2b$04$")
    assert hashed != "secret1"
    assert hasher.verify("secret1", hashed)
    assert not hasher.verify("secret2", hashed)


def test_same_password_hashes_differently():
    hasher = PasswordHasher(rounds=4)
    assert hasher.hash("secret1") != hasher.hash("secret1")


def test_verify_never_raises_on_malformed_hash():
    hasher = PasswordHasher(rounds=4)

    assert hasher.verify("secret1", "not-a-hash") is False
    assert hasher.verify("secret1", "") is False
    assert hasher.verify("secret1", None) is False


def test_needs_rehash_when_cost_factor_changes():
    old_hash = PasswordHasher(rounds=4).hash("secret1")

    assert PasswordHasher(rounds=4).needs_rehash(old_hash) is False
    assert PasswordHasher(rounds=5).needs_rehash(old_hash) is True
    # Old hashes still verify under the new configuration
    assert PasswordHasher(rounds=5).verify("secret1", old_hash)


# =============================================================================================
# TokenCodec
# =============================================================================================

def test_access_round_trip():
    codec = make_codec()
    token = codec.sign_access("user-1", "a@example.com")

    payload = codec.verify_access(token)

    assert payload is not None
    assert payload.user_id == "user-1"
    assert payload.email == "a@example.com"
    assert payload.expires_at - payload.issued_at == timedelta(minutes=15)


def test_refresh_round_trip():
    codec = make_codec()
    payload = codec.verify_refresh(codec.sign_refresh("user-1", "a@example.com"))

    assert payload is not None
    assert payload.user_id == "user-1"
    assert payload.expires_at - payload.issued_at == timedelta(days=7)


def test_already_expired_token_fails():
    codec = make_codec(access_ttl=timedelta(seconds=-1), refresh_ttl=timedelta(seconds=-1))

    assert codec.verify_access(codec.sign_access("user-1", "a@example.com")) is None
    assert codec.verify_refresh(codec.sign_refresh("user-1", "a@example.com")) is None


def test_access_and_refresh_contexts_are_not_interchangeable():
    codec = make_codec()

    assert codec.verify_refresh(codec.sign_access("user-1", "a@example.com")) is None
    assert codec.verify_access(codec.sign_refresh("user-1", "a@example.com")) is None


def test_type_claim_checked_even_with_shared_secret():
    codec = make_codec(refresh_secret=SECRET_A)

    assert codec.verify_refresh(codec.sign_access("user-1", "a@example.com")) is None


def test_token_signed_with_other_secret_fails():
    token = make_codec(access_secret=SECRET_B, refresh_secret=SECRET_A).sign_access("u", "a@example.com")

    assert make_codec().verify_access(token) is None


def test_tampered_payload_fails():
    codec = make_codec()
    header, _, signature = codec.sign_access("user-1", "a@example.com").split(".")
    forged_payload = jwt.encode(
        {"userId": "admin", "email": "a@example.com", "type": "access", "iat": 0, "exp": 9999999999},
        "whatever-secret-0123456789abcdef0123",
        algorithm="HS256",
    ).split(".")[1]

    assert codec.verify_access(f"{header}.{forged_payload}.{signature}") is None


def test_malformed_tokens_fail():
    codec = make_codec()

    assert codec.verify_access("") is None
    assert codec.verify_access("invalid.token.here") is None
    assert codec.verify_access("garbage") is None


def test_missing_user_claims_fail():
    token = jwt.encode(
        {"type": "access", "iat": 1, "exp": 9999999999},
        SECRET_A,
        algorithm="HS256",
    )
    assert make_codec().verify_access(token) is None


def test_tokens_signed_back_to_back_differ():
    codec = make_codec()

    first = codec.sign_refresh("user-1", "a@example.com")
    second = codec.sign_refresh("user-1", "a@example.com")

    assert first != second
