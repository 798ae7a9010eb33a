# evaluator/session.py
"""
Per-user evaluator session.

Holds everything one user interaction needs: the preview registry, the three
course groups, the mode controller, focus, submission state, notices and the
history view. Components receive the session explicitly; nothing is global.
teardown() sweeps any previews still outstanding.
"""
from __future__ import annotations

import logging
from dataclasses import dataclass
from enum import Enum
from typing import Any, Dict, List, Optional, Sequence

import httpx

from evaluator.api import EvaluationsApi
from evaluator.clipboard import ClipboardIngestor, PasteEvent, PasteOutcome
from evaluator.errors import AuthorizationFailure, CapacityFailure, EvaluatorError
from evaluator.groups import CourseGroup, GroupKey, StagedFile, StagedImage
from evaluator.history import EvaluationHistoryView, HistoryEntry
from evaluator.modes import InputMode, InputModeController
from evaluator.previews import PreviewURLRegistry
from evaluator.submitter import EvaluationSubmitter, SubmissionOutcome


_logger = logging.getLogger(__name__)


class NoticeLevel(str, Enum):
    SUCCESS = "success"
    ERROR = "error"


@dataclass(frozen=True)
class Notice:
    """A user-visible message (toast)."""
    level: NoticeLevel
    message: str


class EvaluatorSession:
    """
    State for one user's evaluator UI.

    Usage:
        with EvaluatorSession(client) as session:
            session.set_text(GroupKey.SIMPLE, "...")
            session.submit()
    """

    def __init__(self, client: httpx.Client, mode: Optional[InputMode] = None):
        self.api = EvaluationsApi(client)
        self.registry = PreviewURLRegistry()
        self.groups: Dict[GroupKey, CourseGroup] = {
            key: CourseGroup(key, self.registry) for key in GroupKey
        }
        self.controller = InputModeController(self.groups, mode)
        self.history = EvaluationHistoryView(self.api)
        self.clipboard = ClipboardIngestor(self.controller, lambda: self.focused_region)
        self.submitter = EvaluationSubmitter(self)

        self.focused_region: Optional[GroupKey] = None
        self.is_submitting = False
        self.current_result: Optional[Dict[str, Any]] = None
        self.requires_sign_in = False
        self.notices: List[Notice] = []
        self._closed = False

    # =========================================================================
    # Notices
    # =========================================================================

    def notify_success(self, message: str) -> None:
        self.notices.append(Notice(NoticeLevel.SUCCESS, message))

    def notify_error(self, message: str) -> None:
        self.notices.append(Notice(NoticeLevel.ERROR, message))

    @property
    def last_notice(self) -> Optional[Notice]:
        return self.notices[-1] if self.notices else None

    # =========================================================================
    # Mode and Staging
    # =========================================================================

    @property
    def mode(self) -> InputMode:
        return self.controller.mode

    def set_mode(self, scope, kind) -> int:
        return self.controller.set_mode(scope, kind)

    def focus(self, key: Optional[GroupKey]) -> None:
        self.focused_region = key

    def set_text(self, key: GroupKey, value: str) -> None:
        self.groups[key].set_text(value)

    def select_files(self, key: GroupKey, files: Sequence[StagedFile]) -> List[StagedImage]:
        """Stage files chosen in a group's file picker; capacity errors become a notice."""
        try:
            return self.groups[key].add_images(files)
        except CapacityFailure as e:
            self.notify_error(e.user_message)
            raise

    def remove_image(self, key: GroupKey, index: int) -> None:
        self.groups[key].remove_image(index)

    def paste(self, event: PasteEvent) -> PasteOutcome:
        outcome = self.clipboard.handle_paste(event)
        if outcome.error is not None:
            self.notify_error(outcome.notice)
        elif outcome.added:
            self.notify_success(outcome.notice)
        return outcome

    def clear_staged_input(self) -> None:
        """Clear text and images of the groups the current mode uses."""
        for group in self.controller.active_groups():
            group.clear_text()
            group.clear_images()

    # =========================================================================
    # Submission and History
    # =========================================================================

    def submit(self) -> SubmissionOutcome:
        return self.submitter.submit()

    def refresh_history(self) -> List[HistoryEntry]:
        """Refresh history; a failure keeps the previous entries."""
        try:
            return self.history.refresh()
        except AuthorizationFailure:
            self.requires_sign_in = True
            return self.history.entries
        except EvaluatorError:
            return self.history.entries

    # =========================================================================
    # Teardown
    # =========================================================================

    def teardown(self) -> int:
        """
        Release every preview still outstanding.

        Staged images are cleared through their groups; anything the
        registry still holds afterwards was leaked and is swept.

        Returns:
            Number of previews revoked by the teardown
        """
        if self._closed:
            return 0
        self._closed = True

        cleared = sum(group.clear_images() for group in self.groups.values())
        leaked = self.registry.revoke_all()
        if leaked:
            _logger.warning(f"Session teardown found {leaked} leaked preview(s)")
        return cleared + leaked

    def __enter__(self) -> "EvaluatorSession":
        return self

    def __exit__(self, exc_type, exc, tb) -> None:
        self.teardown()
