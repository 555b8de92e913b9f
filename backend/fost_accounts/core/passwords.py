"""Password hashing and remember-me token helpers.

Credentials are stored as a (hash, salt) pair sized for the
user_authentication table: a 16-character salt and a 64-character hex
hash derived with bcrypt's key derivation function (bcrypt_pbkdf).

The stored hash is the KDF cost as two hex digits followed by a 31-byte
derived key (62 hex chars). Verification reads the cost back from the
hash, so changing PASSWORD_KDF_ROUNDS only affects newly hashed passwords.

Remember-me tokens are random URL-safe strings handed to the client once;
only their SHA-256 hex digest (64 chars) is persisted.
"""

import hashlib
import hmac
import re
import secrets

import bcrypt

from fost_accounts.core.config import settings

# 8 random bytes -> 16 hex chars (width of user_authentication.password_salt)
_SALT_BYTES = 8

# 2 hex chars of rounds + 31-byte key -> 64 hex chars
# (width of user_authentication.password_hash)
_KEY_BYTES = 31
MAX_KDF_ROUNDS = 0xFF

_STORED_HASH = re.compile(r"[0-9a-f]{64}")

# Fixed salt used to burn the same CPU time when a login name is unknown.
# Security: prevents login name enumeration via response time differences.
DUMMY_SALT = "0000000000000000"


def generate_salt() -> str:
    """Return a fresh random 16-character hex salt."""
    return secrets.token_hex(_SALT_BYTES)


def hash_password(password: str, salt: str, *, rounds: int | None = None) -> str:
    """Derive the stored hash for a password and salt.

    Args:
        password: Plain-text password (non-empty).
        salt: Salt string as stored in password_salt.
        rounds: bcrypt.kdf rounds. Defaults to settings.password_kdf_rounds.

    Returns:
        64-character lowercase hex string: two hex digits of rounds, then
        the derived key.

    Raises:
        ValueError: If rounds is outside 1..255.
    """
    rounds = rounds or settings.password_kdf_rounds
    if not 1 <= rounds <= MAX_KDF_ROUNDS:
        msg = f"rounds must be between 1 and {MAX_KDF_ROUNDS}, got {rounds}"
        raise ValueError(msg)

    key = bcrypt.kdf(
        password=password.encode(),
        salt=salt.encode(),
        desired_key_bytes=_KEY_BYTES,
        rounds=rounds,
        # Round floor is enforced by Settings for production
        ignore_few_rounds=True,
    )
    return f"{rounds:02x}{key.hex()}"


def stored_rounds(password_hash: str) -> int | None:
    """Return the KDF rounds recorded in a stored hash.

    Returns:
        The rounds, or None if the value is not a hash made by hash_password.
    """
    if not _STORED_HASH.fullmatch(password_hash):
        return None
    rounds = int(password_hash[:2], 16)
    return rounds or None


def verify_password(password: str, salt: str, password_hash: str) -> bool:
    """Check a password against a stored (hash, salt) pair in constant time.

    The hash is recomputed with the rounds stored in password_hash. Empty
    passwords and malformed hashes are rejected after the same KDF work.
    """
    rounds = stored_rounds(password_hash)
    if rounds is None:
        burn_password_check(password)
        return False
    candidate = hash_password(password or "-", salt, rounds=rounds)
    return hmac.compare_digest(candidate, password_hash) and bool(password)


def burn_password_check(password: str, *, rounds: int | None = None) -> None:
    """Spend the same work as verify_password without a stored credential."""
    hash_password(password or "-", DUMMY_SALT, rounds=rounds)


def generate_token() -> str:
    """Return a new random remember-me token (plain value for the client)."""
    return secrets.token_urlsafe(settings.token_bytes)


def token_digest(token: str) -> str:
    """Return the SHA-256 hex digest stored in user_authentication_token.token."""
    return hashlib.sha256(token.encode()).hexdigest()
