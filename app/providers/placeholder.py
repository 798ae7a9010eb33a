"""
Placeholder analysis provider.
Returns a fixed result until a real analysis backend is wired in.
"""

import logging

from app.providers.base import AnalysisProvider, CourseMaterial, EvaluationResult

logger = logging.getLogger(__name__)


class PlaceholderAnalysisProvider(AnalysisProvider):
    """Analysis provider that ignores its input and returns a fixed judgment."""

    @property
    def source_name(self) -> str:
        return "placeholder"

    async def analyze(self, material: CourseMaterial) -> EvaluationResult:
        """Return the fixed placeholder judgment."""
        logger.debug(
            f"Placeholder analysis for input_type={material.input_type} "
            f"images={len(material.image_urls)}"
        )
        return EvaluationResult(
            coverage="High",
            confidence="High",
            conclusion="The courses are equivalent",
            courseMatches="Course A matches Course B",
            reasoning=(
                "Based on the course descriptions provided, both courses cover "
                "similar learning objectives and outcomes."
            ),
        )
