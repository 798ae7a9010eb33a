"""
Client-side submission pipeline for course equivalency evaluations.

Provides:
- Input modes and course groups with preview bookkeeping
- Clipboard paste ingestion
- Two-phase image uploads
- Evaluation submission and history
"""
from evaluator.api import EvaluationsApi
from evaluator.clipboard import ClipboardIngestor, ClipboardItem, PasteEvent, PasteOutcome
from evaluator.errors import (
    ApiError,
    AuthorizationFailure,
    CapacityFailure,
    EvaluatorError,
    InvalidModeError,
    NetworkFailure,
    SubmissionInProgressError,
    UploadFailure,
    ValidationFailure,
)
from evaluator.groups import CourseGroup, GroupKey, StagedFile, StagedImage
from evaluator.history import (
    EvaluationHistoryView,
    HistoryEntry,
    HistoryImage,
    is_equivalent,
    normalize_record,
    partition_images,
)
from evaluator.modes import InputKind, InputMode, InputModeController, Scope
from evaluator.previews import PreviewRevocationError, PreviewURLRegistry
from evaluator.session import EvaluatorSession, Notice, NoticeLevel
from evaluator.submitter import EvaluationRequest, EvaluationSubmitter, SubmissionOutcome
from evaluator.uploads import UploadOrchestrator

__all__ = [
    # API
    "EvaluationsApi",
    # Clipboard
    "ClipboardIngestor",
    "ClipboardItem",
    "PasteEvent",
    "PasteOutcome",
    # Errors
    "ApiError",
    "AuthorizationFailure",
    "CapacityFailure",
    "EvaluatorError",
    "InvalidModeError",
    "NetworkFailure",
    "SubmissionInProgressError",
    "UploadFailure",
    "ValidationFailure",
    # Groups
    "CourseGroup",
    "GroupKey",
    "StagedFile",
    "StagedImage",
    # History
    "EvaluationHistoryView",
    "HistoryEntry",
    "HistoryImage",
    "is_equivalent",
    "normalize_record",
    "partition_images",
    # Modes
    "InputKind",
    "InputMode",
    "InputModeController",
    "Scope",
    # Previews
    "PreviewRevocationError",
    "PreviewURLRegistry",
    # Session
    "EvaluatorSession",
    "Notice",
    "NoticeLevel",
    # Submission
    "EvaluationRequest",
    "EvaluationSubmitter",
    "SubmissionOutcome",
    "UploadOrchestrator",
]
