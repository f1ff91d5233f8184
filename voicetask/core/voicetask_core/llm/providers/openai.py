"""OpenAI chat-completions provider over httpx."""

import logging
from typing import Dict, List, Optional, Any

import httpx

from .base import (
    LLMProvider,
    LLMRequest,
    LLMResponse,
    LLMRole,
    LLMUsage,
    LLMError,
    LLMRateLimitError,
    LLMAuthenticationError,
    LLMServiceError,
    LLMTimeoutError,
    LLMResponseError,
)

logger = logging.getLogger(__name__)


class OpenAIProvider(LLMProvider):
    """Provider for the OpenAI (or any compatible) chat-completions endpoint."""

    MODELS = {
        "gpt-4o-mini": {"max_tokens": 16384},
        "gpt-4o": {"max_tokens": 16384},
        "gpt-4.1-mini": {"max_tokens": 32768},
        "gpt-4.1": {"max_tokens": 32768},
    }

    def __init__(
        self,
        api_key: Optional[str],
        base_url: str = "https://api.openai.com/v1",
        timeout: float = 15.0,
        transport: Optional[httpx.AsyncBaseTransport] = None,
    ):
        """Initialize OpenAI provider.

        Args:
            api_key: Bearer token for the API
            base_url: API root, without the trailing /chat/completions
            timeout: Total request timeout in seconds
            transport: Optional httpx transport (used by tests)
        """
        if not api_key or not api_key.strip():
            raise LLMAuthenticationError("OPENAI_API_KEY is missing")

        self.api_key = api_key.strip()
        self.base_url = base_url.rstrip("/")
        self.timeout = timeout
        self._transport = transport

    async def generate(self, request: LLMRequest) -> LLMResponse:
        """Send one chat-completions request. No retries."""
        self.validate_request(request)

        url = f"{self.base_url}/chat/completions"
        headers = {
            "Authorization": f"Bearer {self.api_key}",
            "Content-Type": "application/json",
        }
        payload = self._prepare_payload(request)

        try:
            async with httpx.AsyncClient(timeout=self.timeout, transport=self._transport) as client:
                r = await client.post(url, headers=headers, json=payload)
        except httpx.TimeoutException as e:
            raise LLMTimeoutError(f"OpenAI request timed out after {self.timeout}s: {e}")
        except httpx.HTTPError as e:
            raise LLMServiceError(f"OpenAI transport error: {e}")

        if r.status_code == 429:
            raise LLMRateLimitError(f"Rate limit exceeded: {r.text[:200]}")
        if r.status_code in (401, 403):
            raise LLMAuthenticationError(f"Authentication failed ({r.status_code})")
        if r.status_code >= 400:
            raise LLMResponseError(
                f"OpenAI API error ({r.status_code}): {r.text[:200]}",
                status_code=r.status_code,
            )

        try:
            data = r.json()
        except ValueError as e:
            raise LLMResponseError(f"OpenAI returned a non-JSON envelope: {e}", status_code=r.status_code)

        return self._parse_response(data, request.model)

    def _prepare_payload(self, request: LLMRequest) -> Dict[str, Any]:
        """Build the chat-completions request body."""
        messages = []
        if request.system_prompt:
            messages.append({"role": LLMRole.SYSTEM.value, "content": request.system_prompt})
        for msg in request.messages:
            messages.append({"role": msg.role.value, "content": msg.content})

        payload: Dict[str, Any] = {
            "model": request.model,
            "messages": messages,
        }
        if request.temperature is not None:
            payload["temperature"] = request.temperature
        if request.max_tokens is not None:
            payload["max_tokens"] = request.max_tokens
        if request.stop_sequences:
            payload["stop"] = request.stop_sequences
        if request.response_format == "json_object":
            payload["response_format"] = {"type": "json_object"}

        return payload

    def _parse_response(self, data: Dict[str, Any], model: str) -> LLMResponse:
        """Parse a chat-completions envelope into LLMResponse."""
        try:
            choice = data["choices"][0]
            content = choice["message"]["content"]
        except (KeyError, IndexError, TypeError) as e:
            raise LLMError(f"Malformed OpenAI response envelope: {e}")

        usage = None
        if isinstance(data.get("usage"), dict):
            usage_data = data["usage"]
            usage = LLMUsage(
                prompt_tokens=usage_data.get("prompt_tokens", 0),
                completion_tokens=usage_data.get("completion_tokens", 0),
                total_tokens=usage_data.get("total_tokens", 0),
            )

        logger.debug(f"OpenAI response received (model={data.get('model', model)})")

        return LLMResponse(
            content=(content or "").strip(),
            model=data.get("model", model),
            usage=usage,
            finish_reason=choice.get("finish_reason"),
            request_id=data.get("id"),
            metadata={"provider": "openai"},
        )

    def get_model_info(self, model_name: str) -> Dict[str, Any]:
        """Get model information."""
        if model_name not in self.MODELS:
            raise ValueError(f"Unknown model: {model_name}")

        return self.MODELS[model_name].copy()

    def list_available_models(self) -> List[str]:
        """List known chat models."""
        return list(self.MODELS.keys())
