# persistence/tokens.py
"""
Signed token helpers for upload tickets and storage references.

Both are HS256 JWTs. The ``purpose`` claim keeps a ticket from being
accepted where a storage reference is expected and vice versa.
"""

from __future__ import annotations

import logging
import os
from datetime import datetime, timedelta
from typing import Optional

from jose import JWTError, jwt

_logger = logging.getLogger(__name__)

ALGORITHM = "HS256"
DEFAULT_SECRET_KEY = "course-evaluator-dev-secret-change-in-production"

PURPOSE_UPLOAD = "upload"
PURPOSE_BLOB = "blob"


class TokenError(Exception):
    """Token is malformed, tampered with, expired or for another purpose."""
    pass


def get_secret_key() -> str:
    """Signing secret from COURSE_EVAL_SECRET_KEY (dev default otherwise)."""
    return os.environ.get("COURSE_EVAL_SECRET_KEY") or DEFAULT_SECRET_KEY


def sign_token(
    claims: dict,
    purpose: str,
    expires_delta: Optional[timedelta] = None,
) -> str:
    """
    Sign a set of claims for a purpose.

    Args:
        claims: Claims to embed (copied, not mutated)
        purpose: PURPOSE_UPLOAD or PURPOSE_BLOB
        expires_delta: Optional lifetime; tokens without one never expire

    Returns:
        Compact JWT string
    """
    to_encode = dict(claims)
    to_encode["purpose"] = purpose
    if expires_delta is not None:
        to_encode["exp"] = datetime.utcnow() + expires_delta
    return jwt.encode(to_encode, get_secret_key(), algorithm=ALGORITHM)


def verify_token(token: str, purpose: str) -> dict:
    """
    Verify a token and return its claims.

    Raises:
        TokenError: If the signature, expiry or purpose check fails
    """
    if not token:
        raise TokenError("Token is missing")

    try:
        claims = jwt.decode(token, get_secret_key(), algorithms=[ALGORITHM])
    except JWTError as e:
        raise TokenError(str(e)) from e

    if claims.get("purpose") != purpose:
        raise TokenError(f"Token purpose mismatch: expected {purpose}")

    return claims
