# evaluator/errors.py
"""
Failure taxonomy for the submission pipeline.

Every failure carries a user-facing message and a stable code. The submit
action catches EvaluatorError and turns it into exactly one notice.
"""
from __future__ import annotations

from typing import List, Optional


class EvaluatorError(Exception):
    """Base exception for all client-side pipeline failures."""

    def __init__(self, message: str, code: str):
        self.message = message
        self.code = code
        super().__init__(message)

    @property
    def user_message(self) -> str:
        return self.message


class ValidationFailure(EvaluatorError):
    """Input rejected locally or by the server's field validation."""

    def __init__(self, errors: List[str]):
        self.errors = list(errors)
        super().__init__(
            message=", ".join(self.errors) or "Failed to evaluate courses",
            code="VALIDATION_FAILED",
        )


class CapacityFailure(EvaluatorError):
    """Staging would exceed the number of images the current mode allows."""

    def __init__(self, capacity: int, attempted: int):
        noun = "image" if capacity == 1 else "images"
        super().__init__(
            message=f"Maximum {capacity} {noun} allowed",
            code="CAPACITY_EXCEEDED",
        )
        self.capacity = capacity
        self.attempted = attempted


class UploadFailure(EvaluatorError):
    """Ticket issuance or byte transfer failed; the batch is abandoned."""

    def __init__(self, reason: str, index: Optional[int] = None):
        super().__init__(message="Failed to upload image", code="UPLOAD_FAILED")
        self.reason = reason
        self.index = index

    def __str__(self) -> str:
        where = f" (file {self.index})" if self.index is not None else ""
        return f"{self.message}{where}: {self.reason}"


class AuthorizationFailure(EvaluatorError):
    """No valid principal; the caller should show the sign-in form."""

    def __init__(self, message: str = "Not authenticated"):
        super().__init__(message=message, code="NOT_AUTHENTICATED")


class NetworkFailure(EvaluatorError):
    """Transport-level failure; safe to retry."""

    def __init__(self, reason: str):
        super().__init__(
            message="Network error, please try again",
            code="NETWORK_ERROR",
        )
        self.reason = reason


class ApiError(EvaluatorError):
    """The server answered with an unexpected status or body."""

    def __init__(self, status_code: int, detail: str = ""):
        super().__init__(message="Failed to evaluate courses", code="API_ERROR")
        self.status_code = status_code
        self.detail = detail

    def __str__(self) -> str:
        return f"HTTP {self.status_code}: {self.detail or self.message}"


class InvalidModeError(EvaluatorError):
    """Raised for a scope/kind combination that cannot exist."""

    def __init__(self, scope: str, kind: str, message: Optional[str] = None):
        super().__init__(
            message=message or f"Input type {kind} requires advanced mode",
            code="INVALID_MODE",
        )
        self.scope = scope
        self.kind = kind


class SubmissionInProgressError(EvaluatorError):
    """A submission was started while another is still in flight."""

    def __init__(self):
        super().__init__(
            message="An evaluation is already in progress",
            code="SUBMISSION_IN_PROGRESS",
        )
