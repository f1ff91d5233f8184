"""LLM provider implementations."""

from .base import LLMProvider, LLMRequest, LLMResponse, LLMError
from .bedrock import BedrockProvider
from .mock import MockProvider
from .openai import OpenAIProvider

__all__ = [
    "LLMProvider",
    "LLMRequest",
    "LLMResponse",
    "LLMError",
    "BedrockProvider",
    "MockProvider",
    "OpenAIProvider",
]
