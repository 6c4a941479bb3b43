"""Password hashing and generation tests."""

import pytest

from pmhome.auth.password import (
    PASSWORD_ALPHABET,
    generate_password,
    generate_reset_token,
    hash_password,
    hash_password_async,
    hash_reset_token,
    verify_password,
    verify_password_async,
)


def test_hash_and_verify():
    hashed = hash_password("s3cret-pass", rounds=4)
    assert hashed != "s3cret-pass"
    assert hashed.startswith("$2")
    assert verify_password("s3cret-pass", hashed)
    assert not verify_password("wrong", hashed)


def test_hash_is_salted():
    assert hash_password("same", rounds=4) != hash_password("same", rounds=4)


@pytest.mark.parametrize("bad_hash", ["", "plaintext", "$2b$04$short"])
def test_verify_malformed_hash_fails(bad_hash):
    assert verify_password("anything", bad_hash) is False


def test_long_password_truncated_to_72_bytes():
    base = "x" * 72
    hashed = hash_password(base + "tail-one", rounds=4)
    assert verify_password(base + "tail-two", hashed)


@pytest.mark.asyncio
async def test_async_wrappers():
    hashed = await hash_password_async("async-pass", rounds=4)
    assert await verify_password_async("async-pass", hashed)
    assert not await verify_password_async("nope", hashed)


def test_generated_password_shape():
    password = generate_password()
    assert len(password) == 12
    assert set(password) <= set(PASSWORD_ALPHABET)


def test_generated_password_minimum_length():
    assert len(generate_password(4)) == 12
    assert len(generate_password(20)) == 20


def test_generated_passwords_differ():
    assert len({generate_password() for _ in range(20)}) == 20


def test_reset_token_hashing():
    token = generate_reset_token()
    assert len(token) >= 40
    digest = hash_reset_token(token)
    assert len(digest) == 64
    assert digest == hash_reset_token(token)
    assert digest != hash_reset_token(generate_reset_token())
