"""Provider selection, configuration loading and the task-extraction call."""

import os
import json
import asyncio
import logging
from typing import Dict, List, Optional, Any
from dataclasses import dataclass, fields
from pathlib import Path

import boto3
from botocore.exceptions import BotoCoreError
from pydantic import TypeAdapter, ValidationError

from .providers.base import (
    LLMProvider,
    LLMRequest,
    LLMResponse,
    LLMMessage,
    LLMRole,
    LLMError,
    LLMTimeoutError,
)
from .providers.bedrock import BedrockProvider
from .providers.mock import MockProvider
from .providers.openai import OpenAIProvider
from .prompts import PromptTemplates

logger = logging.getLogger(__name__)

DEFAULT_MODELS = {
    "openai": "gpt-4o-mini",
    "bedrock": "claude-3-5-haiku-20241022",
    "mock": "mock-gpt-4o-mini",
}

DEFAULT_CONFIG_PATH = Path.home() / ".config" / "voicetask" / "llm.json"

_FALSE_VALUES = {"0", "false", "no", "off"}


@dataclass
class LLMConfig:
    """Which provider to call and how, from env vars and an optional JSON file."""
    provider: str = "openai"
    model: Optional[str] = None
    max_tokens: int = 400
    temperature: float = 0.1
    timeout_seconds: float = 15.0
    api_key: Optional[str] = None
    base_url: str = "https://api.openai.com/v1"
    aws_profile: Optional[str] = None
    aws_region: str = "us-east-1"
    use_llm: bool = True
    mock_delay: float = 0.0
    mock_fail_rate: float = 0.0

    def __post_init__(self):
        self.provider = (self.provider or "openai").strip().lower()
        if not self.model:
            self.model = DEFAULT_MODELS.get(self.provider, DEFAULT_MODELS["openai"])

    @classmethod
    def from_dict(cls, data: Dict[str, Any]) -> "LLMConfig":
        """Build a config, ignoring unknown keys and values of the wrong type."""
        values = {}
        for f in fields(cls):
            if f.name not in data:
                continue
            try:
                values[f.name] = TypeAdapter(f.type).validate_python(data[f.name])
            except ValidationError as e:
                logger.warning(f"Ignoring invalid LLM config value for {f.name}: {e.errors()[0]['msg']}")
        return cls(**values)

    def to_dict(self) -> Dict[str, Any]:
        """Convert config to dictionary, masking the API key."""
        data = {
            k: v for k, v in self.__dict__.items()
            if not k.startswith('_')
        }
        if data.get("api_key"):
            data["api_key"] = f"***{data['api_key'][-4:]}"
        return data

    @classmethod
    def load(cls, config_path: Optional[Path] = None) -> "LLMConfig":
        """Load configuration from environment and files.

        Environment values are read first; a JSON config file, when present,
        overrides them.
        """
        values: Dict[str, Any] = {}

        provider = os.getenv("VOICETASK_LLM_PROVIDER")
        if provider:
            values["provider"] = provider.strip().lower()

        model = os.getenv("VOICETASK_LLM_MODEL")
        if not model and values.get("provider", "openai") == "openai":
            model = os.getenv("OPENAI_MODEL")
        if model:
            values["model"] = model.strip()

        if os.getenv("OPENAI_API_KEY"):
            values["api_key"] = os.getenv("OPENAI_API_KEY")
        if os.getenv("OPENAI_BASE_URL"):
            values["base_url"] = os.getenv("OPENAI_BASE_URL").strip()
        if os.getenv("VOICETASK_AWS_PROFILE"):
            values["aws_profile"] = os.getenv("VOICETASK_AWS_PROFILE")
        if os.getenv("VOICETASK_AWS_REGION"):
            values["aws_region"] = os.getenv("VOICETASK_AWS_REGION")

        timeout = os.getenv("VOICETASK_LLM_TIMEOUT")
        if timeout:
            try:
                values["timeout_seconds"] = float(timeout)
            except ValueError:
                logger.warning(f"Ignoring invalid VOICETASK_LLM_TIMEOUT={timeout!r}")

        use_llm = os.getenv("VOICETASK_USE_LLM")
        if use_llm is not None:
            values["use_llm"] = use_llm.strip().lower() not in _FALSE_VALUES

        if config_path is None:
            env_path = os.getenv("VOICETASK_CONFIG")
            config_path = Path(env_path) if env_path else DEFAULT_CONFIG_PATH

        if config_path.exists():
            try:
                with open(config_path, 'r') as f:
                    file_config = json.load(f)
                if isinstance(file_config, dict):
                    values.update(file_config)
                    logger.info(f"Loaded LLM config from {config_path}")
                else:
                    logger.warning(f"Ignoring config {config_path}: expected a JSON object")
            except (OSError, json.JSONDecodeError) as e:
                logger.warning(f"Failed to load config from {config_path}: {e}")

        return cls.from_dict(values)

    def has_credentials(self) -> bool:
        """Whether the configured provider can authenticate from this environment."""
        if self.provider == "openai":
            return bool(self.api_key and self.api_key.strip())

        if self.provider == "bedrock":
            try:
                session_kwargs = {"profile_name": self.aws_profile} if self.aws_profile else {}
                return boto3.Session(**session_kwargs).get_credentials() is not None
            except BotoCoreError as e:
                logger.debug(f"No usable AWS credentials: {e}")
                return False

        return self.provider == "mock"


class LLMService:
    """Wraps one provider with config defaults and a per-call timeout."""

    def __init__(self, config: Optional[LLMConfig] = None, provider: Optional[LLMProvider] = None):
        """Build the provider named by ``config``.

        Args:
            config: LLM configuration, loads from environment/file if None
            provider: Ready-made provider, built from config if None

        Raises:
            LLMError: If the configured provider cannot be initialized
        """
        self.config = config or LLMConfig.load()
        self.provider: LLMProvider = provider or self._initialize_provider()
        self.request_count = 0

        logger.debug(f"LLM service initialized with {self.config.provider} provider")

    def _initialize_provider(self) -> LLMProvider:
        """Instantiate the configured provider; unknown names raise LLMError."""
        if self.config.provider == "openai":
            return OpenAIProvider(
                api_key=self.config.api_key,
                base_url=self.config.base_url,
                timeout=self.config.timeout_seconds,
            )
        elif self.config.provider == "bedrock":
            return BedrockProvider(
                region=self.config.aws_region,
                aws_profile=self.config.aws_profile,
                timeout=self.config.timeout_seconds,
            )
        elif self.config.provider == "mock":
            return MockProvider(
                delay=self.config.mock_delay,
                fail_rate=self.config.mock_fail_rate
            )

        raise LLMError(f"Unsupported provider: {self.config.provider}")

    async def generate(
        self,
        prompt: Optional[str] = None,
        system_prompt: Optional[str] = None,
        messages: Optional[List[LLMMessage]] = None,
        model: Optional[str] = None,
        max_tokens: Optional[int] = None,
        temperature: Optional[float] = None,
        response_format: Optional[str] = None,
        metadata: Optional[Dict[str, Any]] = None
    ) -> LLMResponse:
        """Send one completion request, bounded by the configured timeout.

        Args:
            prompt: User prompt, used when ``messages`` is not given
            system_prompt: System prompt (optional)
            messages: Full conversation to send
            model: Model to use (uses config default if None)
            max_tokens: Max tokens to generate
            temperature: Generation temperature
            response_format: "json_object" to request a bare JSON object
            metadata: Additional metadata

        Returns:
            LLM response

        Raises:
            LLMError: Various LLM-related errors, including timeouts
        """
        if messages is None:
            if prompt is None:
                raise LLMError("Either prompt or messages is required")
            messages = [LLMMessage(role=LLMRole.USER, content=prompt)]

        request = LLMRequest(
            messages=messages,
            model=model or self.config.model,
            max_tokens=max_tokens or self.config.max_tokens,
            temperature=temperature if temperature is not None else self.config.temperature,
            system_prompt=system_prompt,
            response_format=response_format,
            metadata=metadata
        )

        try:
            response = await asyncio.wait_for(
                self.provider.generate(request),
                timeout=self.config.timeout_seconds,
            )
        except asyncio.TimeoutError:
            raise LLMTimeoutError(f"LLM request exceeded {self.config.timeout_seconds}s")
        except ValueError as e:
            raise LLMError(f"Invalid LLM request: {e}")

        self.request_count += 1
        if response.usage:
            logger.debug(
                f"LLM request completed: {response.usage.prompt_tokens} in / "
                f"{response.usage.completion_tokens} out"
            )
        return response

    async def extract_task_fields(self, transcript: str) -> LLMResponse:
        """Ask the model for a JSON task object describing ``transcript``.

        The response content is returned unvalidated; callers own parsing.
        """
        return await self.generate(
            system_prompt=PromptTemplates.task_extraction_system_prompt(),
            messages=PromptTemplates.task_extraction_messages(transcript),
            response_format="json_object",
            temperature=self.config.temperature,
        )

    def get_status(self) -> Dict[str, Any]:
        """Snapshot of provider, model, request count and masked config."""
        return {
            "provider": self.config.provider,
            "model": self.config.model,
            "request_count": self.request_count,
            "available_models": self.provider.list_available_models() if self.provider else [],
            "config": self.config.to_dict()
        }
