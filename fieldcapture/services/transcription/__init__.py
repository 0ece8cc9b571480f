"""
Transcription module - Speech-to-text abstraction layer.

Factory function for creating transcriber instances based on provider configuration.
"""

from .base import BaseTranscriber
from .relay import TranscriptionRelay

__all__ = ["BaseTranscriber", "TranscriptionRelay", "create_transcriber"]


def create_transcriber(provider: str, **kwargs) -> BaseTranscriber:
    """
    Factory function to create a transcriber based on provider.

    Args:
        provider: Provider name ("gemini")
        **kwargs: Provider-specific configuration

    Returns:
        BaseTranscriber implementation instance

    Raises:
        ValueError: If provider is unknown
    """
    if provider == "gemini":
        from .gemini import GeminiTranscriber
        return GeminiTranscriber(**kwargs)
    else:
        raise ValueError(f"Unknown transcription provider: {provider}")
