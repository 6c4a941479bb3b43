"""Password hashing, generation, and reset-token utilities.

Learn: Uses bcrypt for password hashing. bcrypt salts automatically and
the work factor makes brute force expensive, which also makes it the
one CPU-bound step in a request, so the async wrappers push it onto a
worker thread instead of blocking the event loop.

Generated passwords and reset tokens come from `secrets`, never `random`.
"""

import asyncio
import hashlib
import secrets
import string

import bcrypt

ALPHA = string.ascii_letters
DIGITS = string.digits
SYMBOLS = "!@#$%&*"
PASSWORD_ALPHABET = ALPHA + DIGITS + SYMBOLS
MIN_GENERATED_LENGTH = 12


def hash_password(password: str, rounds: int = 10) -> str:
    """Hash a password with bcrypt.

    Passwords are truncated to 72 bytes (bcrypt's limit).
    """
    pw_bytes = password.encode("utf-8")[:72]
    salt = bcrypt.gensalt(rounds=rounds)
    return bcrypt.hashpw(pw_bytes, salt).decode("utf-8")


def verify_password(password: str, password_hash: str) -> bool:
    """Verify a password against its bcrypt hash. Malformed hashes fail."""
    if not password_hash:
        return False
    try:
        pw_bytes = password.encode("utf-8")[:72]
        return bcrypt.checkpw(pw_bytes, password_hash.encode("utf-8"))
    except (ValueError, TypeError):
        return False


async def hash_password_async(password: str, rounds: int = 10) -> str:
    return await asyncio.to_thread(hash_password, password, rounds)


async def verify_password_async(password: str, password_hash: str) -> bool:
    return await asyncio.to_thread(verify_password, password, password_hash)


def generate_password(length: int = MIN_GENERATED_LENGTH) -> str:
    """Random password of at least 12 characters: letters, digits, symbols."""
    size = max(MIN_GENERATED_LENGTH, length)
    return "".join(secrets.choice(PASSWORD_ALPHABET) for _ in range(size))


def generate_reset_token() -> str:
    return secrets.token_urlsafe(32)


def hash_reset_token(token: str) -> str:
    """Reset tokens are stored as sha256 digests, like API keys."""
    return hashlib.sha256(token.encode("utf-8")).hexdigest()
