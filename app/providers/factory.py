"""
Provider factory for instantiating analysis backends.
"""

from app.providers.base import AnalysisProvider
from app.providers.placeholder import PlaceholderAnalysisProvider


class ProviderFactory:
    """
    Factory for creating provider instances.

    Usage:
        provider = ProviderFactory.get_analysis_provider("placeholder")
    """

    _analysis_providers = {
        "placeholder": PlaceholderAnalysisProvider,
    }

    @classmethod
    def get_analysis_provider(cls, source: str = "placeholder", **kwargs) -> AnalysisProvider:
        """
        Get an analysis provider by source name.

        Args:
            source: Provider identifier ("placeholder", ...)
            **kwargs: Provider-specific config

        Returns:
            AnalysisProvider instance

        Raises:
            ValueError: If source is unknown
        """
        if source not in cls._analysis_providers:
            raise ValueError(
                f"Unknown analysis provider: {source}. "
                f"Available: {list(cls._analysis_providers.keys())}"
            )

        provider_class = cls._analysis_providers[source]
        return provider_class(**kwargs)

    @classmethod
    def register_analysis_provider(cls, name: str, provider_class: type):
        """Register a new analysis provider type."""
        cls._analysis_providers[name] = provider_class

    @classmethod
    def available_analysis_providers(cls) -> list:
        """List available analysis provider names."""
        return list(cls._analysis_providers.keys())
