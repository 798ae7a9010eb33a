# evaluator/history.py
"""
Evaluation history: fetch past evaluations and shape them for display.

Records arrive with every field under two spellings; normalize_record reads
whichever is present. Attached images are split into external / internal
sides purely by position using the stored counts.
"""
from __future__ import annotations

import logging
from dataclasses import dataclass, field
from datetime import datetime, timezone
from typing import Any, Dict, List, Mapping, Optional, Sequence

from evaluator.api import EvaluationsApi
from evaluator.errors import EvaluatorError


_logger = logging.getLogger(__name__)

SIDE_EXTERNAL = "external"
SIDE_INTERNAL = "internal"


# =============================================================================
# Display Types
# =============================================================================


@dataclass(frozen=True)
class HistoryImage:
    url: str
    side: Optional[str] = None  # None when the record carries no counts

    @property
    def side_label(self) -> Optional[str]:
        return self.side.capitalize() if self.side else None


@dataclass
class HistoryEntry:
    """One past evaluation, normalized."""
    id: Any
    input_type: str
    text_input: Optional[str] = None
    external_courses_count: Optional[int] = None
    internal_courses_count: Optional[int] = None
    is_simple_mode: bool = False
    result: Optional[Dict[str, Any]] = None
    created_at: Optional[datetime] = None
    images: List[HistoryImage] = field(default_factory=list)

    @property
    def image_urls(self) -> List[str]:
        return [image.url for image in self.images]

    @property
    def has_counts(self) -> bool:
        return self.external_courses_count is not None and self.internal_courses_count is not None

    @property
    def counts_label(self) -> Optional[str]:
        if not self.has_counts:
            return None
        return f"({self.external_courses_count} external, {self.internal_courses_count} internal)"

    @property
    def is_equivalent(self) -> bool:
        return is_equivalent(self.result)


# =============================================================================
# Pure Helpers
# =============================================================================


def partition_images(
    urls: Sequence[str],
    external_count: Optional[int],
    internal_count: Optional[int],
) -> List[HistoryImage]:
    """
    Label each URL by position: index < external_count is external, the rest
    internal. Without both counts no side is assigned.
    """
    if external_count is None or internal_count is None:
        return [HistoryImage(url=url) for url in urls]

    return [
        HistoryImage(url=url, side=SIDE_EXTERNAL if index < external_count else SIDE_INTERNAL)
        for index, url in enumerate(urls)
    ]


def is_equivalent(result: Optional[Mapping[str, Any]]) -> bool:
    """
    Whether a result reads as "equivalent".

    A boolean ``equivalent`` field wins. Otherwise the conclusion text must
    mention "equivalent" without saying "not equivalent".
    """
    if not result:
        return False

    structured = result.get("equivalent")
    if isinstance(structured, bool):
        return structured

    conclusion = result.get("conclusion")
    if not isinstance(conclusion, str):
        return False
    conclusion = conclusion.lower()
    return "equivalent" in conclusion and "not equivalent" not in conclusion


def _pick(raw: Mapping[str, Any], *keys: str) -> Any:
    for key in keys:
        if key in raw:
            return raw[key]
    return None


def _parse_timestamp(value: Any) -> Optional[datetime]:
    if isinstance(value, bool) or not isinstance(value, (int, float)):
        return None
    return datetime.fromtimestamp(value / 1000, tz=timezone.utc)


def normalize_record(raw: Mapping[str, Any]) -> HistoryEntry:
    """Build a HistoryEntry from a record in either naming convention."""
    external = _pick(raw, "externalCoursesCount", "external_courses_count")
    internal = _pick(raw, "internalCoursesCount", "internal_courses_count")
    urls = _pick(raw, "imageUrls", "image_urls") or []

    return HistoryEntry(
        id=_pick(raw, "id", "_id"),
        input_type=_pick(raw, "inputType", "input_type") or "",
        text_input=_pick(raw, "textInput", "text_input"),
        external_courses_count=external,
        internal_courses_count=internal,
        is_simple_mode=bool(_pick(raw, "isSimpleMode", "is_simple_mode")),
        result=raw.get("result"),
        created_at=_parse_timestamp(_pick(raw, "_creationTime", "creation_time")),
        images=partition_images(list(urls), external, internal),
    )


# =============================================================================
# View
# =============================================================================


class EvaluationHistoryView:
    """Read-only list of the principal's evaluations, newest first."""

    def __init__(self, api: EvaluationsApi):
        self.api = api
        self.entries: List[HistoryEntry] = []
        self.last_error: Optional[EvaluatorError] = None

    def refresh(self) -> List[HistoryEntry]:
        """
        Re-fetch the history.

        On failure the previous entries are kept, the error is recorded in
        last_error and re-raised.
        """
        try:
            records = self.api.list_evaluations()
        except EvaluatorError as e:
            self.last_error = e
            _logger.warning(f"Failed to fetch evaluations: {e.__class__.__name__}: {e}")
            raise

        self.entries = [normalize_record(record) for record in records]
        self.last_error = None
        return self.entries

    def __len__(self) -> int:
        return len(self.entries)

    def __iter__(self):
        return iter(self.entries)
