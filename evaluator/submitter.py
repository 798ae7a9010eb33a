# evaluator/submitter.py
"""
Evaluation submission.

Builds the create request from the current mode and course groups, uploads
staged images first when the mode needs them, posts the request and
normalizes the returned result. The submit action is where every pipeline
failure ends up: it is logged and turned into a single notice, and staged
inputs are only cleared after a confirmed success.
"""
from __future__ import annotations

import logging
from dataclasses import dataclass, field
from typing import TYPE_CHECKING, Any, Dict, List, Optional

from evaluator.errors import (
    AuthorizationFailure,
    EvaluatorError,
    SubmissionInProgressError,
    ValidationFailure,
)
from evaluator.groups import CourseGroup, GroupKey
from evaluator.modes import InputKind, InputMode
from evaluator.uploads import UploadOrchestrator

if TYPE_CHECKING:
    from evaluator.session import EvaluatorSession


_logger = logging.getLogger(__name__)

EXTERNAL_SECTION_HEADER = "=== EXTERNAL COURSES ==="
INTERNAL_SECTION_HEADER = "=== INTERNAL COURSES ==="
SECTION_SEPARATOR = "\n\n"

SUCCESS_MESSAGE = "Evaluation completed!"

# Local validation messages
EMPTY_TEXT_MESSAGE = "Please enter course descriptions"
EMPTY_IMAGE_MESSAGE = "Please select or paste an image"
EMPTY_GROUPS_TEXT_MESSAGE = "Please enter course descriptions for at least one group"
EMPTY_GROUPS_IMAGE_MESSAGE = "Please select or paste images for at least one group"

RESULT_FIELDS = ("coverage", "confidence", "conclusion", "courseMatches", "reasoning")


# =============================================================================
# Request / Outcome Types
# =============================================================================


@dataclass
class EvaluationRequest:
    """Outbound create-evaluation request."""
    input_type: str
    is_simple_mode: bool
    text_input: Optional[str] = None
    image_ids: List[str] = field(default_factory=list)
    external_courses_count: Optional[int] = None
    internal_courses_count: Optional[int] = None

    def to_payload(self) -> Dict[str, Any]:
        """camelCase JSON body; absent values are omitted."""
        payload: Dict[str, Any] = {
            "inputType": self.input_type,
            "isSimpleMode": self.is_simple_mode,
        }
        if self.text_input:
            payload["textInput"] = self.text_input
        if self.image_ids:
            payload["imageIds"] = list(self.image_ids)
        if self.external_courses_count is not None:
            payload["externalCoursesCount"] = self.external_courses_count
        if self.internal_courses_count is not None:
            payload["internalCoursesCount"] = self.internal_courses_count
        return payload


@dataclass
class SubmissionOutcome:
    result: Optional[Dict[str, Any]] = None
    error: Optional[EvaluatorError] = None
    notice: Optional[str] = None

    @property
    def succeeded(self) -> bool:
        return self.error is None and self.result is not None


# =============================================================================
# Pure Helpers
# =============================================================================


def normalize_result(body: Dict[str, Any]) -> Dict[str, Any]:
    """Accept either a bare result object or one wrapped under "result"."""
    wrapped = body.get("result")
    if isinstance(wrapped, dict) and not any(name in body for name in RESULT_FIELDS):
        return dict(wrapped)
    return dict(body)


def join_text_sections(external: str, internal: str) -> str:
    """Join the non-blank sides under their section headers."""
    parts = []
    if external.strip():
        parts.append(f"{EXTERNAL_SECTION_HEADER}\n{external.strip()}")
    if internal.strip():
        parts.append(f"{INTERNAL_SECTION_HEADER}\n{internal.strip()}")
    return SECTION_SEPARATOR.join(parts)


def validate_staged_input(mode: InputMode, groups: Dict[GroupKey, CourseGroup]) -> None:
    """
    Reject blank input before any network call.

    Raises:
        ValidationFailure
    """
    if mode.is_simple:
        group = groups[GroupKey.SIMPLE]
        if mode.kind is InputKind.TEXT and not group.has_text:
            raise ValidationFailure([EMPTY_TEXT_MESSAGE])
        if mode.kind.is_image and group.image_count == 0:
            raise ValidationFailure([EMPTY_IMAGE_MESSAGE])
        return

    external, internal = groups[GroupKey.EXTERNAL], groups[GroupKey.INTERNAL]
    if mode.kind is InputKind.TEXT:
        if not external.has_text and not internal.has_text:
            raise ValidationFailure([EMPTY_GROUPS_TEXT_MESSAGE])
    elif external.image_count + internal.image_count == 0:
        raise ValidationFailure([EMPTY_GROUPS_IMAGE_MESSAGE])


# =============================================================================
# Submitter
# =============================================================================


class EvaluationSubmitter:
    """Submits the session's staged input as one evaluation."""

    def __init__(self, session: "EvaluatorSession", uploader: Optional[UploadOrchestrator] = None):
        self.session = session
        self.uploader = uploader or UploadOrchestrator(session.api)

    def build_request(self) -> EvaluationRequest:
        """
        Validate staged input and build the request, uploading images first.

        Raises:
            ValidationFailure, UploadFailure, AuthorizationFailure, NetworkFailure
        """
        mode = self.session.controller.mode
        groups = self.session.groups
        validate_staged_input(mode, groups)

        request = EvaluationRequest(input_type=mode.kind.value, is_simple_mode=mode.is_simple)

        if mode.is_simple:
            group = groups[GroupKey.SIMPLE]
            if mode.kind is InputKind.TEXT:
                request.text_input = group.text_input.strip()
            else:
                request.image_ids = self.uploader.upload(group.files)
            return request

        external, internal = groups[GroupKey.EXTERNAL], groups[GroupKey.INTERNAL]
        if mode.kind is InputKind.TEXT:
            request.text_input = join_text_sections(external.text_input, internal.text_input)
            request.external_courses_count = 1 if external.has_text else 0
            request.internal_courses_count = 1 if internal.has_text else 0
            return request

        for group in (external, internal):
            if group.image_count:
                request.image_ids.extend(self.uploader.upload(group.files))
        request.external_courses_count = external.image_count
        request.internal_courses_count = internal.image_count
        return request

    def submit(self) -> SubmissionOutcome:
        """
        Run one submission end to end.

        Raises:
            SubmissionInProgressError: another submission is in flight
        """
        session = self.session
        if session.is_submitting:
            raise SubmissionInProgressError()

        session.is_submitting = True
        try:
            request = self.build_request()
            body = session.api.create_evaluation(request.to_payload())
            result = normalize_result(body)
        except EvaluatorError as e:
            return self._fail(e)
        finally:
            session.is_submitting = False

        session.current_result = result
        session.requires_sign_in = False
        session.clear_staged_input()
        session.notify_success(SUCCESS_MESSAGE)
        _logger.info(f"Evaluation submitted: input_type={request.input_type} images={len(request.image_ids)}")

        session.refresh_history()
        return SubmissionOutcome(result=result, notice=SUCCESS_MESSAGE)

    def _fail(self, error: EvaluatorError) -> SubmissionOutcome:
        if isinstance(error, AuthorizationFailure):
            self.session.requires_sign_in = True

        _logger.warning(f"Evaluation failed: {error.__class__.__name__}: {error}")
        self.session.notify_error(error.user_message)
        return SubmissionOutcome(error=error, notice=error.user_message)
