"""LLM-assisted task parser with deterministic fallback.

One request is made per transcript. Any failure along the way (transport,
status, empty body, JSON, schema) hands the transcript to the deterministic
parser and tags the outcome with the reason. A validated answer is merged
with the deterministic candidate by ``reconcile_tasks``.
"""

import json
import logging
from datetime import datetime
from typing import Callable, Optional, Union

from pydantic import ValidationError

from ..llm import LLMConfig, LLMError, LLMService
from ..llm.providers.base import LLMResponseError
from .deterministic import DeterministicParser
from .models import (
    Assisted,
    AssistedTaskPayload,
    Fallback,
    FallbackReason,
    ParseOutcome,
    StructuredTask,
)
from .reconcile import reconcile_tasks

logger = logging.getLogger(__name__)

ServiceFactory = Callable[[], LLMService]


class AssistedParser:
    """Parse transcripts with an LLM, falling back to rules on any failure."""

    def __init__(
        self,
        service: Union[LLMService, ServiceFactory, None] = None,
        deterministic: Optional[DeterministicParser] = None,
        config: Optional[LLMConfig] = None,
    ):
        """Initialize the parser.

        Args:
            service: LLM service, or a zero-argument factory for one. Built
                from ``config`` on first use when None.
            deterministic: Rule-based parser used for fallback and backfill
            config: Configuration for the lazily built service
        """
        self._service = service
        self.config = config
        self.deterministic = deterministic or DeterministicParser()

    def _get_service(self) -> LLMService:
        if isinstance(self._service, LLMService):
            return self._service
        if callable(self._service):
            return self._service()
        return LLMService(config=self.config)

    async def parse(
        self,
        text: str,
        timezone_offset: Optional[int] = None,
        reference: Optional[datetime] = None,
    ) -> ParseOutcome:
        """Extract a task from ``text``.

        Args:
            text: Transcript to parse
            timezone_offset: Caller's offset in minutes east of UTC
            reference: Instant relative phrases are resolved against

        Returns:
            Assisted on success, otherwise Fallback carrying the reason
        """
        baseline = self.deterministic.parse(text, timezone_offset=timezone_offset, reference=reference)

        try:
            service = self._get_service()
        except LLMError as e:
            return self._fallback(baseline, FallbackReason.UNAVAILABLE, e)

        try:
            logger.debug("Assisted parse: request sent")
            response = await service.extract_task_fields(text)
        except LLMResponseError as e:
            return self._fallback(baseline, FallbackReason.BAD_STATUS, e)
        except LLMError as e:
            return self._fallback(baseline, FallbackReason.TRANSPORT, e)
        except Exception as e:
            logger.exception("Unexpected error during assisted parse")
            return self._fallback(baseline, FallbackReason.UNEXPECTED, e)

        content = (response.content or "").strip()
        if not content:
            return self._fallback(baseline, FallbackReason.EMPTY_RESPONSE, "model returned no content")
        logger.debug("Assisted parse: response ok")

        try:
            data = json.loads(content)
        except json.JSONDecodeError as e:
            return self._fallback(baseline, FallbackReason.INVALID_JSON, e)

        if not isinstance(data, dict):
            return self._fallback(baseline, FallbackReason.SCHEMA, f"expected object, got {type(data).__name__}")

        try:
            candidate = AssistedTaskPayload.model_validate(data).to_task()
        except ValidationError as e:
            return self._fallback(baseline, FallbackReason.SCHEMA, e)
        logger.debug("Assisted parse: validated")

        task = reconcile_tasks(candidate, baseline)
        logger.debug(f"Assisted parse: reconciled {task.to_payload()}")
        return Assisted(task=task)

    @staticmethod
    def _fallback(task: StructuredTask, reason: FallbackReason, detail) -> Fallback:
        logger.warning(f"Assisted parse fell back to rules ({reason.value}): {detail}")
        return Fallback(task=task, reason=reason, detail=str(detail))
