"""
Analysis providers for course equivalency judgments.

This module abstracts the analysis collaborator behind a common interface.
Providers can be swapped without changing consumer code.

Example:
    from app.providers import ProviderFactory, CourseMaterial

    provider = ProviderFactory.get_analysis_provider("placeholder")
    result = await provider.analyze(material)
"""

from app.providers.base import (
    AnalysisProvider,
    CourseMaterial,
    EvaluationResult,
)

from app.providers.placeholder import PlaceholderAnalysisProvider

from app.providers.factory import ProviderFactory

__all__ = [
    # Base classes
    "AnalysisProvider",
    # Models
    "CourseMaterial",
    "EvaluationResult",
    # Implementations
    "PlaceholderAnalysisProvider",
    # Factory
    "ProviderFactory",
]
