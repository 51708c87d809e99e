"""
Password Utilities

This module hashes and verifies passwords with bcrypt. The cost factor is
fixed at 10 so hashes written by any instance stay verifiable by all others.
"""

import bcrypt

from poscore.common.error_handling import ValidationError

BCRYPT_ROUNDS = 10

# bcrypt only looks at the first 72 bytes of its input
MAX_PASSWORD_BYTES = 72


def hash_password(password: str) -> str:
    """
    Hash a password with a fresh salt.

    Args:
        password: The plain-text password

    Returns:
        The bcrypt hash as text, salt and cost included

    Raises:
        ValidationError: If the password is longer than bcrypt can hash
    """
    encoded = password.encode("utf-8")
    if len(encoded) > MAX_PASSWORD_BYTES:
        raise ValidationError(f"Password must be at most {MAX_PASSWORD_BYTES} bytes")

    return bcrypt.hashpw(encoded, bcrypt.gensalt(rounds=BCRYPT_ROUNDS)).decode("utf-8")


def verify_password(password: str, hashed_password: str) -> bool:
    """
    Verify that a password matches a stored hash.

    Malformed hashes and over-long passwords never match.
    """
    encoded = password.encode("utf-8")
    if len(encoded) > MAX_PASSWORD_BYTES:
        return False
    try:
        return bcrypt.checkpw(encoded, hashed_password.encode("utf-8"))
    except ValueError:
        return False
