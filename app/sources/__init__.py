"""
Business listing sources.
"""

from app.config import SourceSettings
from app.sources.base import BaseBusinessSource
from app.sources.gemini_maps import GeminiMapsSource
from app.sources.mock_source import MockBusinessSource


def build_source(settings: SourceSettings) -> BaseBusinessSource:
    """Instantiate the source selected by the LLM_ADAPTER env var.

    LLM_ADAPTER=mock   -> MockBusinessSource (testing, no API key required)
    LLM_ADAPTER=gemini -> GeminiMapsSource (default)
    """
    if settings.adapter == "mock":
        return MockBusinessSource(records_per_query=settings.mock_records_per_query)

    return GeminiMapsSource(model=settings.model, api_key=settings.api_key)


__all__ = [
    "BaseBusinessSource",
    "GeminiMapsSource",
    "MockBusinessSource",
    "build_source",
]
