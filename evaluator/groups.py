# evaluator/groups.py
"""
Course groups: one side's staged input.

A group holds free text and an ordered list of staged images, each paired
with a preview handle from the session's PreviewURLRegistry. The group that
creates a preview is the one that revokes it.
"""
from __future__ import annotations

import logging
import mimetypes
from dataclasses import dataclass
from enum import Enum
from pathlib import Path
from typing import List, Optional, Sequence, Union

from evaluator.errors import CapacityFailure
from evaluator.previews import PreviewURLRegistry


_logger = logging.getLogger(__name__)

DEFAULT_CONTENT_TYPE = "application/octet-stream"


# =============================================================================
# Group Keys
# =============================================================================


class GroupKey(str, Enum):
    """Identifies a course group within a session."""
    SIMPLE = "simple"
    EXTERNAL = "external"
    INTERNAL = "internal"

    @property
    def label(self) -> str:
        return _GROUP_LABELS[self]


_GROUP_LABELS = {
    GroupKey.SIMPLE: "",
    GroupKey.EXTERNAL: "External Courses",
    GroupKey.INTERNAL: "Internal Courses",
}


# =============================================================================
# Staged Files
# =============================================================================


@dataclass(frozen=True)
class StagedFile:
    """A locally selected or pasted file that has not been uploaded."""
    name: str
    content_type: str
    data: bytes

    @property
    def size(self) -> int:
        return len(self.data)

    @property
    def is_image(self) -> bool:
        return self.content_type.startswith("image/")

    @classmethod
    def from_path(cls, path: Union[str, Path], content_type: Optional[str] = None) -> "StagedFile":
        path = Path(path)
        guessed, _ = mimetypes.guess_type(path.name)
        return cls(
            name=path.name,
            content_type=content_type or guessed or DEFAULT_CONTENT_TYPE,
            data=path.read_bytes(),
        )


@dataclass(frozen=True)
class StagedImage:
    """A staged file paired with its preview handle."""
    file: StagedFile
    preview: str


# =============================================================================
# Course Group
# =============================================================================


class CourseGroup:
    """
    Staged input for one side of an evaluation.

    capacity is None for an unbounded group, otherwise the maximum number of
    staged images. The mode controller sets it on every mode change.
    """

    def __init__(
        self,
        key: GroupKey,
        registry: PreviewURLRegistry,
        capacity: Optional[int] = None,
    ):
        self.key = key
        self.registry = registry
        self.capacity = capacity
        self.text_input = ""
        self._images: List[StagedImage] = []

    @property
    def label(self) -> str:
        return self.key.label

    @property
    def images(self) -> List[StagedImage]:
        return list(self._images)

    @property
    def files(self) -> List[StagedFile]:
        return [image.file for image in self._images]

    @property
    def previews(self) -> List[str]:
        return [image.preview for image in self._images]

    @property
    def image_count(self) -> int:
        return len(self._images)

    @property
    def remaining_capacity(self) -> Optional[int]:
        if self.capacity is None:
            return None
        return max(self.capacity - len(self._images), 0)

    @property
    def has_text(self) -> bool:
        return bool(self.text_input.strip())

    def check_capacity(self, incoming: int) -> None:
        """Raise CapacityFailure if incoming more images would not fit."""
        if self.capacity is not None and len(self._images) + incoming > self.capacity:
            _logger.info(
                f"Rejected {incoming} image(s) for {self.key.value}: "
                f"{len(self._images)}/{self.capacity} staged"
            )
            raise CapacityFailure(self.capacity, len(self._images) + incoming)

    def add_images(self, files: Sequence[StagedFile]) -> List[StagedImage]:
        """
        Stage a batch of files.

        The whole batch is rejected when it does not fit; previews are only
        created once the batch is accepted.

        Raises:
            CapacityFailure: batch exceeds the group's capacity
        """
        files = list(files)
        self.check_capacity(len(files))

        added = [
            StagedImage(file=file, preview=self.registry.create(self.key.value))
            for file in files
        ]
        self._images.extend(added)
        return added

    def remove_image(self, index: int) -> Optional[StagedImage]:
        """Remove one staged image and revoke its preview. Out of range is a no-op."""
        if index < 0 or index >= len(self._images):
            return None
        image = self._images.pop(index)
        self.registry.revoke(image.preview)
        return image

    def clear_images(self) -> int:
        """Revoke every preview and empty the group. Returns how many were cleared."""
        cleared = self._images
        self._images = []
        for image in cleared:
            self.registry.revoke(image.preview)
        return len(cleared)

    def set_text(self, value: Optional[str]) -> None:
        self.text_input = value or ""

    def clear_text(self) -> None:
        self.text_input = ""

    def __repr__(self) -> str:
        return f"CourseGroup({self.key.value!r}, images={len(self._images)}, capacity={self.capacity})"
