"""
Models module for text improvement providers.

Provides a unified interface for rewriting text with Anthropic or OpenAI.
"""

from ai_text_improver.models.provider_client import (
    AnthropicClient,
    Message,
    OpenAIClient,
    ProviderClientBase,
    build_provider_client,
)
from ai_text_improver.models.schemas import (
    AITextImproverError,
    ErrorKind,
    Provider,
    ServiceError,
    WritingStyle,
)

__all__ = [
    "AITextImproverError",
    "AnthropicClient",
    "ErrorKind",
    "Message",
    "OpenAIClient",
    "Provider",
    "ProviderClientBase",
    "ServiceError",
    "WritingStyle",
    "build_provider_client",
]
