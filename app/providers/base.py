"""
Provider interface for the analysis collaborator.
The abstract base class defines the contract every analysis backend follows.
"""

from abc import ABC, abstractmethod
from typing import List, Optional
from pydantic import BaseModel, ConfigDict, Field


class CourseMaterial(BaseModel):
    """Normalized course material handed to an analysis provider."""
    input_type: str  # "text" | "single_image" | "multiple_images"
    text_input: Optional[str] = None
    image_urls: List[str] = Field(default_factory=list)
    external_courses_count: Optional[int] = None
    internal_courses_count: Optional[int] = None
    is_simple_mode: bool = False


class EvaluationResult(BaseModel):
    """
    Fixed-shape analysis result.

    Serialized with camelCase keys (courseMatches) to match what clients render.
    Extra keys from a provider are passed through untouched.
    """
    model_config = ConfigDict(populate_by_name=True, extra="allow")

    coverage: str
    confidence: str
    conclusion: str
    course_matches: Optional[str] = Field(default=None, alias="courseMatches")
    reasoning: str

    def to_dict(self) -> dict:
        """Serialize for storage and API responses."""
        return self.model_dump(by_alias=True, exclude_none=True)


class AnalysisProvider(ABC):
    """
    Abstract base class for analysis providers.

    All analysis providers must implement this interface.
    Returns an EvaluationResult regardless of backend.
    """

    @abstractmethod
    async def analyze(self, material: CourseMaterial) -> EvaluationResult:
        """
        Judge whether the described courses are equivalent.

        Args:
            material: Normalized course material

        Returns:
            EvaluationResult
        """
        pass

    @property
    @abstractmethod
    def source_name(self) -> str:
        """Provider identifier (e.g., 'placeholder')."""
        pass
