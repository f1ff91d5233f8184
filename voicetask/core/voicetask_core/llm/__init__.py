"""LLM integration module for VoiceTask."""

from .service import LLMService, LLMConfig
from .providers.base import LLMProvider, LLMRequest, LLMResponse, LLMError
from .prompts import PromptTemplates

__all__ = [
    "LLMService",
    "LLMConfig",
    "LLMProvider",
    "LLMRequest",
    "LLMResponse",
    "LLMError",
    "PromptTemplates",
]
