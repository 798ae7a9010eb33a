# evaluator/modes.py
"""
Input mode state machine.

A mode is a scope (simple | advanced) and a kind (text | single_image |
multiple_images). multiple_images only exists in advanced scope. Every
transition clears the staged images of every group and revokes their
previews; text survives.
"""
from __future__ import annotations

import logging
from dataclasses import dataclass
from enum import Enum
from typing import Dict, List, Optional, Tuple

from evaluator.errors import InvalidModeError
from evaluator.groups import CourseGroup, GroupKey


_logger = logging.getLogger(__name__)


class Scope(str, Enum):
    SIMPLE = "simple"
    ADVANCED = "advanced"


class InputKind(str, Enum):
    TEXT = "text"
    SINGLE_IMAGE = "single_image"
    MULTIPLE_IMAGES = "multiple_images"

    @property
    def is_image(self) -> bool:
        return self is not InputKind.TEXT


SIMPLE_KINDS = (InputKind.TEXT, InputKind.SINGLE_IMAGE)

SCOPE_GROUPS: Dict[Scope, List[GroupKey]] = {
    Scope.SIMPLE: [GroupKey.SIMPLE],
    Scope.ADVANCED: [GroupKey.EXTERNAL, GroupKey.INTERNAL],
}


def _coerce_mode(scope, kind) -> Tuple[Scope, InputKind]:
    try:
        return Scope(scope), InputKind(kind)
    except ValueError as e:
        raise InvalidModeError(str(scope), str(kind), message=f"Unknown input mode {scope}/{kind}") from e


@dataclass(frozen=True)
class InputMode:
    """A validated (scope, kind) pair."""
    scope: Scope = Scope.SIMPLE
    kind: InputKind = InputKind.TEXT

    def __post_init__(self):
        scope, kind = _coerce_mode(self.scope, self.kind)
        object.__setattr__(self, "scope", scope)
        object.__setattr__(self, "kind", kind)
        if self.scope is Scope.SIMPLE and self.kind not in SIMPLE_KINDS:
            raise InvalidModeError(self.scope.value, self.kind.value)

    @property
    def is_simple(self) -> bool:
        return self.scope is Scope.SIMPLE

    @property
    def image_capacity(self) -> Optional[int]:
        """Images a single group may stage: 0, 1, or None for unbounded."""
        if self.kind is InputKind.TEXT:
            return 0
        if self.scope is Scope.SIMPLE and self.kind is InputKind.SINGLE_IMAGE:
            return 1
        return None


class InputModeController:
    """
    Owns the current InputMode and its side effects on the course groups.
    """

    def __init__(self, groups: Dict[GroupKey, CourseGroup], mode: Optional[InputMode] = None):
        self.groups = groups
        self._mode = mode or InputMode()
        self._apply_capacity()

    @property
    def mode(self) -> InputMode:
        return self._mode

    @property
    def scope(self) -> Scope:
        return self._mode.scope

    @property
    def kind(self) -> InputKind:
        return self._mode.kind

    def active_group_keys(self) -> List[GroupKey]:
        return list(SCOPE_GROUPS[self._mode.scope])

    def active_groups(self) -> List[CourseGroup]:
        return [self.groups[key] for key in self.active_group_keys()]

    def set_mode(self, scope, kind) -> int:
        """
        Switch to (scope, kind).

        Raises:
            InvalidModeError: multiple_images requested in simple scope

        Returns:
            Number of staged images that were cleared
        """
        new_mode = InputMode(scope=scope, kind=kind)
        cleared = self.clear_all_images()

        previous, self._mode = self._mode, new_mode
        self._apply_capacity()

        _logger.info(
            f"Input mode {previous.scope.value}/{previous.kind.value} -> "
            f"{new_mode.scope.value}/{new_mode.kind.value} (cleared {cleared} image(s))"
        )
        return cleared

    def set_scope(self, scope) -> int:
        """Switch scope, restricting multiple_images to single_image in simple scope."""
        scope, kind = _coerce_mode(scope, self._mode.kind)
        if scope is Scope.SIMPLE and kind not in SIMPLE_KINDS:
            kind = InputKind.SINGLE_IMAGE
        return self.set_mode(scope, kind)

    def set_kind(self, kind) -> int:
        return self.set_mode(self._mode.scope, kind)

    def clear_all_images(self) -> int:
        return sum(group.clear_images() for group in self.groups.values())

    def _apply_capacity(self) -> None:
        capacity = self._mode.image_capacity
        for group in self.groups.values():
            group.capacity = capacity
