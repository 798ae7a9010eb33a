# auth/__init__.py
"""
Sign-in for the course evaluator.

Evaluations, upload tickets and blobs all belong to a user, so every
evaluations route resolves the caller through the session cookie set by
the /users routes. Provides:
- User and Session dataclasses backed by the persistence sqlite file
- bcrypt password hashing with a configurable cost
- get_required_user, the FastAPI dependency that yields 401 without a session
"""

from auth.models import User, Session
from auth.service import (
    AuthError,
    InvalidCredentialsError,
    UserExistsError,
    WeakPasswordError,
    authenticate_user,
    create_session,
    create_user,
    get_current_user,
    get_session,
    invalidate_session,
)

__all__ = [
    "User",
    "Session",
    "AuthError",
    "InvalidCredentialsError",
    "UserExistsError",
    "WeakPasswordError",
    "authenticate_user",
    "create_session",
    "create_user",
    "get_current_user",
    "get_session",
    "invalidate_session",
]
