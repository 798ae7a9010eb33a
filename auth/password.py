# auth/password.py
"""
Secure password hashing using bcrypt.

Bcrypt is designed for password hashing with:
- Automatic salt generation
- Configurable work factor (cost)
- Resistance to rainbow tables
"""

from __future__ import annotations

import bcrypt
import logging
import os

_logger = logging.getLogger(__name__)

# Work factor (cost); tests lower it through BCRYPT_ROUNDS
DEFAULT_BCRYPT_ROUNDS = 12


def get_bcrypt_rounds() -> int:
    """Resolve the bcrypt cost from BCRYPT_ROUNDS (4-31)."""
    raw = os.environ.get("BCRYPT_ROUNDS")
    if not raw:
        return DEFAULT_BCRYPT_ROUNDS
    try:
        rounds = int(raw)
    except ValueError:
        _logger.warning(f"BCRYPT_ROUNDS='{raw}' is not a valid integer; using {DEFAULT_BCRYPT_ROUNDS}")
        return DEFAULT_BCRYPT_ROUNDS
    return min(max(rounds, 4), 31)


def hash_password(password: str) -> str:
    """
    Hash a password using bcrypt.

    Args:
        password: Plain text password

    Returns:
        Bcrypt hash string (includes salt)
    """
    if not password:
        raise ValueError("Password cannot be empty")

    # Encode to bytes and hash
    password_bytes = password.encode("utf-8")
    salt = bcrypt.gensalt(rounds=get_bcrypt_rounds())
    hashed = bcrypt.hashpw(password_bytes, salt)

    return hashed.decode("utf-8")


def verify_password(password: str, password_hash: str) -> bool:
    """
    Verify a password against its hash.

    Args:
        password: Plain text password to verify
        password_hash: Stored bcrypt hash

    Returns:
        True if password matches, False otherwise
    """
    if not password or not password_hash:
        return False

    try:
        password_bytes = password.encode("utf-8")
        hash_bytes = password_hash.encode("utf-8")
        return bcrypt.checkpw(password_bytes, hash_bytes)
    except ValueError as e:
        _logger.warning(f"Password verification error: {e}")
        return False


def is_password_strong(password: str) -> tuple[bool, str]:
    """
    Check if a password meets minimum strength requirements.

    Requirements:
    - At least 8 characters
    - Contains at least one letter
    - Contains at least one digit

    Args:
        password: Password to check

    Returns:
        Tuple of (is_valid, error_message)
    """
    if not password:
        return False, "Password cannot be empty"

    if len(password) < 8:
        return False, "Password must be at least 8 characters"

    has_letter = any(c.isalpha() for c in password)
    has_digit = any(c.isdigit() for c in password)

    if not has_letter:
        return False, "Password must contain at least one letter"

    if not has_digit:
        return False, "Password must contain at least one digit"

    return True, ""
