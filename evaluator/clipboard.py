# evaluator/clipboard.py
"""
Clipboard paste ingestion.

Routes pasted image payloads to the course group whose input region has
focus, under the same capacity rule as file selection.
"""
from __future__ import annotations

import logging
import mimetypes
from dataclasses import dataclass, field
from typing import Callable, List, Optional

from evaluator.errors import CapacityFailure
from evaluator.groups import GroupKey, StagedFile
from evaluator.modes import InputKind, InputModeController


_logger = logging.getLogger(__name__)

FocusProvider = Callable[[], Optional[GroupKey]]


@dataclass(frozen=True)
class ClipboardItem:
    """One entry of clipboard data."""
    mime_type: str
    data: bytes = b""
    name: Optional[str] = None

    @property
    def is_image(self) -> bool:
        return self.mime_type.lower().startswith("image/")

    def to_staged_file(self, position: int = 0) -> StagedFile:
        name = self.name
        if not name:
            extension = mimetypes.guess_extension(self.mime_type) or ""
            name = f"pasted-{position + 1}{extension}"
        return StagedFile(name=name, content_type=self.mime_type, data=self.data)


@dataclass
class PasteEvent:
    """A paste event; handlers may suppress its default action."""
    items: List[ClipboardItem] = field(default_factory=list)
    default_prevented: bool = False

    def prevent_default(self) -> None:
        self.default_prevented = True


@dataclass
class PasteOutcome:
    """What a paste did."""
    target: Optional[GroupKey] = None
    images_found: int = 0
    added: int = 0
    error: Optional[CapacityFailure] = None

    @property
    def handled(self) -> bool:
        return self.images_found > 0

    @property
    def notice(self) -> Optional[str]:
        if self.error is not None:
            return self.error.user_message
        if self.added:
            plural = "s" if self.added > 1 else ""
            return f"{self.added} image{plural} pasted successfully!"
        return None


class ClipboardIngestor:
    """
    Handles paste events for a session.

    Args:
        controller: Current mode and the groups it governs
        focus: Returns the group whose input region holds focus, or None
    """

    def __init__(self, controller: InputModeController, focus: FocusProvider):
        self.controller = controller
        self.focus = focus

    def handle_paste(self, event: PasteEvent) -> PasteOutcome:
        if self.controller.kind is InputKind.TEXT:
            return PasteOutcome()

        target = self.focus()
        if target is None or target not in self.controller.active_group_keys():
            return PasteOutcome()

        files = [
            item.to_staged_file(position)
            for position, item in enumerate(event.items)
            if item.is_image
        ]
        if not files:
            return PasteOutcome(target=target)

        event.prevent_default()
        outcome = PasteOutcome(target=target, images_found=len(files))

        try:
            self.controller.groups[target].add_images(files)
        except CapacityFailure as e:
            outcome.error = e
            return outcome

        outcome.added = len(files)
        _logger.info(f"Pasted {len(files)} image(s) into {target.value}")
        return outcome
