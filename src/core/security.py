"""Password hashing using bcrypt."""
from functools import lru_cache

import bcrypt

# bcrypt cost factor (2^10 key-expansion rounds)
BCRYPT_ROUNDS = 10

# bcrypt only considers the first 72 bytes of input; longer passwords are rejected
# at registration instead of being silently truncated.
MAX_PASSWORD_BYTES = 72


def hash_password(password: str) -> str:
    """Hash a password with a fresh random salt."""
    salt = bcrypt.gensalt(rounds=BCRYPT_ROUNDS)
    return bcrypt.hashpw(password.encode("utf-8"), salt).decode("utf-8")


def verify_password(password: str, password_hash: str) -> bool:
    """
    Check a password against a stored bcrypt hash.

    Returns False (never raises) for a mismatch, an over-long password, or a
    malformed hash.
    """
    try:
        return bcrypt.checkpw(password.encode("utf-8"), password_hash.encode("utf-8"))
    except ValueError:
        return False


@lru_cache
def dummy_password_hash() -> str:
    """
    Hash compared against when a login names an unknown email.

    Keeps the unknown-user path as slow as the wrong-password path.
    """
    return hash_password("dummy-password-for-timing-equalization")
