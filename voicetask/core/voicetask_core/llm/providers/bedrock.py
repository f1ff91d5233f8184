"""AWS Bedrock provider for Anthropic Claude models."""

import json
import asyncio
import logging
from typing import Dict, List, Optional, Any

import boto3
from botocore.config import Config
from botocore.exceptions import ClientError, BotoCoreError, ReadTimeoutError, ConnectTimeoutError

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
)

logger = logging.getLogger(__name__)

ANTHROPIC_VERSION = "bedrock-2023-05-31"

# Claude has no JSON mode; an assistant turn opening the object pins the shape.
JSON_PREFILL = "{"

# Bedrock error code -> exception type. Anything else is a plain LLMError.
CLIENT_ERRORS = {
    "ThrottlingException": LLMRateLimitError,
    "AccessDeniedException": LLMAuthenticationError,
    "UnrecognizedClientException": LLMAuthenticationError,
    "ServiceUnavailableException": LLMServiceError,
    "InternalServerException": LLMServiceError,
    "ModelNotReadyException": LLMServiceError,
}


class BedrockProvider(LLMProvider):
    """Claude on AWS Bedrock, invoked through ``bedrock-runtime``."""

    MODELS = {
        "claude-3-5-haiku-20241022": {
            "model_id": "anthropic.claude-3-5-haiku-20241022-v1:0",
            "max_tokens": 8192,
        },
        "claude-3-5-sonnet-20240620": {
            "model_id": "anthropic.claude-3-5-sonnet-20240620-v1:0",
            "max_tokens": 8192,
        },
        "claude-3-haiku-20240307": {
            "model_id": "anthropic.claude-3-haiku-20240307-v1:0",
            "max_tokens": 4096,
        },
        "claude-3-sonnet-20240229": {
            "model_id": "anthropic.claude-3-sonnet-20240229-v1:0",
            "max_tokens": 4096,
        },
    }

    def __init__(
        self,
        region: str = "us-east-1",
        aws_profile: Optional[str] = None,
        timeout: float = 15.0,
        **client_kwargs
    ):
        """Initialize Bedrock provider.

        Args:
            region: AWS region for Bedrock
            aws_profile: Named AWS profile, default credential chain if None
            timeout: Overall budget in seconds, split between connect and read
            **client_kwargs: Extra arguments for ``session.client``

        Raises:
            LLMAuthenticationError: If the runtime client cannot be created
        """
        self.region = region
        self.aws_profile = aws_profile
        self.timeout = timeout
        self.client = self._build_client(client_kwargs)

    def _build_client(self, client_kwargs: Dict[str, Any]):
        session = boto3.Session(profile_name=self.aws_profile) if self.aws_profile else boto3.Session()
        # Single attempt, and connect plus read stays within the overall timeout.
        config = Config(
            connect_timeout=self.timeout / 2,
            read_timeout=self.timeout / 2,
            retries={"total_max_attempts": 1},
        )
        try:
            client = session.client("bedrock-runtime", region_name=self.region, config=config, **client_kwargs)
        except (BotoCoreError, ValueError) as e:
            raise LLMAuthenticationError(f"Failed to initialize Bedrock client: {e}")
        logger.info(f"Initialized Bedrock client for region {self.region}")
        return client

    async def generate(self, request: LLMRequest) -> LLMResponse:
        """Invoke the model once.

        Raises:
            LLMError: Unsupported model, AWS error or timeout
        """
        self.validate_request(request)

        model_config = self.MODELS.get(request.model)
        if model_config is None:
            raise LLMError(f"Unsupported Bedrock model: {request.model}")

        body = self._prepare_bedrock_request(request, model_config)
        json_mode = request.response_format == "json_object"

        loop = asyncio.get_running_loop()
        try:
            raw = await loop.run_in_executor(None, self._invoke_model, model_config["model_id"], body)
        except ClientError as e:
            code = e.response.get("Error", {}).get("Code", "Unknown")
            error_type = CLIENT_ERRORS.get(code, LLMError)
            raise error_type(f"Bedrock API error ({code}): {e}")
        except (ReadTimeoutError, ConnectTimeoutError) as e:
            raise LLMTimeoutError(f"Bedrock request timed out: {e}")
        except BotoCoreError as e:
            raise LLMServiceError(f"Bedrock transport error: {e}")

        return self._parse_bedrock_response(raw, request.model, prefill=JSON_PREFILL if json_mode else "")

    def _prepare_bedrock_request(self, request: LLMRequest, model_config: Dict) -> Dict:
        """Build the Anthropic messages body.

        System-role messages are lifted into ``system``; an explicit
        ``request.system_prompt`` takes precedence.
        """
        system = request.system_prompt
        turns = []
        for msg in request.messages:
            if msg.role == LLMRole.SYSTEM:
                system = system or msg.content
                continue
            turns.append({"role": msg.role.value, "content": msg.content})

        if request.response_format == "json_object":
            turns.append({"role": LLMRole.ASSISTANT.value, "content": JSON_PREFILL})

        limit = model_config["max_tokens"]
        body: Dict[str, Any] = {
            "anthropic_version": ANTHROPIC_VERSION,
            "messages": turns,
            "max_tokens": min(request.max_tokens or limit, limit),
        }
        if system:
            body["system"] = system
        if request.temperature is not None:
            body["temperature"] = request.temperature
        if request.stop_sequences:
            body["stop_sequences"] = request.stop_sequences
        return body

    def _invoke_model(self, model_id: str, body: Dict) -> Dict:
        """Blocking call, run in the default executor."""
        logger.debug(f"Invoking Bedrock model {model_id}")
        response = self.client.invoke_model(
            modelId=model_id,
            body=json.dumps(body),
            contentType="application/json",
            accept="application/json",
        )
        return json.loads(response["body"].read())

    def _parse_bedrock_response(self, response: Dict, model: str, prefill: str = "") -> LLMResponse:
        """Turn a Bedrock body into an LLMResponse, restoring any prefill."""
        text = "".join(
            block.get("text", "")
            for block in response.get("content", [])
            if block.get("type") == "text"
        )

        usage = None
        tokens = response.get("usage")
        if tokens:
            prompt_tokens = tokens.get("input_tokens", 0)
            completion_tokens = tokens.get("output_tokens", 0)
            usage = LLMUsage(
                prompt_tokens=prompt_tokens,
                completion_tokens=completion_tokens,
                total_tokens=prompt_tokens + completion_tokens,
            )

        return LLMResponse(
            content=(prefill + text).strip(),
            model=model,
            usage=usage,
            finish_reason=response.get("stop_reason"),
            request_id=response.get("ResponseMetadata", {}).get("RequestId"),
            metadata={"provider": "bedrock"},
        )

    def get_model_info(self, model_name: str) -> Dict[str, Any]:
        if model_name not in self.MODELS:
            raise ValueError(f"Unknown model: {model_name}")
        return self.MODELS[model_name].copy()

    def list_available_models(self) -> List[str]:
        return list(self.MODELS.keys())
