"""Provider-neutral request/response types and the provider interface."""

from abc import ABC, abstractmethod
from datetime import datetime, UTC
from typing import Dict, List, Optional, Any
from dataclasses import dataclass, field
from enum import Enum

# Values accepted in LLMRequest.response_format.
RESPONSE_FORMATS = (None, "json_object")


class LLMRole(Enum):
    """Speaker of a chat turn."""
    SYSTEM = "system"
    USER = "user"
    ASSISTANT = "assistant"


@dataclass
class LLMMessage:
    """One chat turn."""
    role: LLMRole
    content: str
    metadata: Optional[Dict[str, Any]] = None


@dataclass
class LLMRequest:
    """A single completion request, independent of provider wire format."""
    messages: List[LLMMessage]
    model: str
    max_tokens: Optional[int] = None
    temperature: Optional[float] = None
    stop_sequences: Optional[List[str]] = None
    system_prompt: Optional[str] = None
    # "json_object" asks the provider for a bare JSON object
    response_format: Optional[str] = None
    metadata: Optional[Dict[str, Any]] = None


@dataclass
class LLMUsage:
    """Token accounting reported by the provider."""
    prompt_tokens: int
    completion_tokens: int
    total_tokens: int


@dataclass
class LLMResponse:
    """Completion text plus whatever bookkeeping the provider returned."""
    content: str
    model: str
    usage: Optional[LLMUsage] = None
    finish_reason: Optional[str] = None
    request_id: Optional[str] = None
    created_at: datetime = field(default_factory=lambda: datetime.now(UTC))
    metadata: Optional[Dict[str, Any]] = None


class LLMError(Exception):
    """Base class for every provider failure."""


class LLMRateLimitError(LLMError):
    """Provider throttled the request."""


class LLMAuthenticationError(LLMError):
    """Missing or rejected credentials."""


class LLMServiceError(LLMError):
    """Network failure or provider-side outage."""


class LLMTimeoutError(LLMError):
    """No answer within the configured timeout."""


class LLMResponseError(LLMError):
    """Provider answered with a non-success status or an unreadable envelope."""

    def __init__(self, message: str, status_code: Optional[int] = None):
        super().__init__(message)
        self.status_code = status_code


class LLMProvider(ABC):
    """Interface every completion backend implements."""

    @abstractmethod
    async def generate(self, request: LLMRequest) -> LLMResponse:
        """Send ``request`` and return the completion.

        Raises:
            LLMError: Any provider failure
        """

    @abstractmethod
    def get_model_info(self, model_name: str) -> Dict[str, Any]:
        """Static facts about a model (ids, token limits)."""

    @abstractmethod
    def list_available_models(self) -> List[str]:
        """Model names this provider accepts."""

    def validate_request(self, request: LLMRequest) -> None:
        """Reject requests no provider could serve.

        Raises:
            ValueError: Describing the first problem found
        """
        problems = [
            (not request.messages, "Request must contain at least one message"),
            (not request.model, "Request must specify a model"),
            (any(not (m.content or "").strip() for m in request.messages), "Message content cannot be empty"),
            (request.max_tokens is not None and request.max_tokens <= 0, "max_tokens must be positive"),
            (request.temperature is not None and not 0.0 <= request.temperature <= 2.0,
             "temperature must be between 0.0 and 2.0"),
            (request.response_format not in RESPONSE_FORMATS,
             f"Unsupported response_format: {request.response_format}"),
        ]
        for failed, message in problems:
            if failed:
                raise ValueError(message)
