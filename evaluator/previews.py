# evaluator/previews.py
"""
Preview handle bookkeeping.

A preview is a revocable local handle that lets a staged image be rendered
before it is uploaded. Each handle is revoked exactly once: revoking an
unknown or already-revoked handle raises, and anything still outstanding at
teardown is swept by revoke_all().
"""
from __future__ import annotations

import logging
import uuid
from typing import Dict, List


_logger = logging.getLogger(__name__)

PREVIEW_SCHEME = "preview"


class PreviewRevocationError(Exception):
    """Raised when a preview handle is revoked twice or was never created."""

    def __init__(self, handle: str):
        self.handle = handle
        super().__init__(f"Preview handle {handle!r} is not outstanding")


class PreviewURLRegistry:
    """Tracks outstanding preview handles for one session."""

    def __init__(self):
        self._outstanding: Dict[str, str] = {}
        self._revoked_count = 0

    def create(self, label: str = "") -> str:
        """Create a new preview handle and mark it outstanding."""
        handle = f"{PREVIEW_SCHEME}:{uuid.uuid4()}"
        self._outstanding[handle] = label
        return handle

    def revoke(self, handle: str) -> None:
        if handle not in self._outstanding:
            raise PreviewRevocationError(handle)
        del self._outstanding[handle]
        self._revoked_count += 1

    def is_outstanding(self, handle: str) -> bool:
        return handle in self._outstanding

    @property
    def outstanding(self) -> List[str]:
        return list(self._outstanding)

    @property
    def outstanding_count(self) -> int:
        return len(self._outstanding)

    @property
    def revoked_count(self) -> int:
        return self._revoked_count

    def revoke_all(self) -> int:
        """
        Revoke every outstanding handle.

        Returns:
            Number of handles that were still outstanding
        """
        leaked = list(self._outstanding)
        for handle in leaked:
            self.revoke(handle)
        if leaked:
            _logger.warning(f"Swept {len(leaked)} outstanding preview handle(s)")
        return len(leaked)
