"""Offline provider: scripted answers, injected failures, or a keyword-built task."""

import asyncio
import json
import random
import re
from collections import deque
from typing import Dict, Iterable, List, Any, Optional

from .base import (
    LLMProvider,
    LLMRequest,
    LLMResponse,
    LLMUsage,
    LLMRole,
    LLMError,
)

EXTRACT_MARKER = "extract fields from this:"


class MockProvider(LLMProvider):
    """Deterministic stand-in for a real model.

    Scripted ``responses`` are returned in order; once exhausted the provider
    falls back to a crude keyword-driven JSON extraction of the last user
    message.
    """

    def __init__(
        self,
        delay: float = 0.0,
        fail_rate: float = 0.0,
        responses: Optional[Iterable[str]] = None,
        error: Optional[Exception] = None,
    ):
        """Initialize the mock.

        Args:
            delay: Seconds to sleep before answering
            fail_rate: Probability of raising LLMError on a call
            responses: Raw completion bodies to return, in order
            error: Exception raised on every call instead of answering
        """
        self.delay = delay
        self.fail_rate = fail_rate
        self.error = error
        self.responses = deque(responses or [])
        self.request_count = 0
        self.requests: List[LLMRequest] = []

    async def generate(self, request: LLMRequest) -> LLMResponse:
        """Answer from the script, or synthesize a task JSON."""
        self.validate_request(request)
        self.request_count += 1
        self.requests.append(request)

        if self.delay > 0:
            await asyncio.sleep(self.delay)

        if self.error is not None:
            raise self.error

        if random.random() < self.fail_rate:
            raise LLMError("Mock provider random failure")

        content = self.responses.popleft() if self.responses else self._task_json(request)

        # Word counts stand in for tokens.
        prompt_words = sum(len(m.content.split()) for m in request.messages)
        answer_words = len(content.split())
        return LLMResponse(
            content=content,
            model=request.model,
            usage=LLMUsage(prompt_words, answer_words, prompt_words + answer_words),
            finish_reason="stop",
            request_id=f"mock-{self.request_count:06d}",
            metadata={"provider": "mock"},
        )

    def _task_json(self, request: LLMRequest) -> str:
        """Build a JSON task payload from the last user message."""
        user_turns = [m.content for m in request.messages if m.role == LLMRole.USER]
        if not user_turns:
            return "{}"

        text = user_turns[-1]
        marker_at = text.lower().find(EXTRACT_MARKER)
        if marker_at >= 0:
            text = text[marker_at + len(EXTRACT_MARKER):]
        text = text.strip()
        lowered = text.lower()

        status = "todo"
        if re.search(r"\b(done|finished|completed)\b", lowered):
            status = "done"
        elif re.search(r"\b(in progress|working on|started)\b", lowered):
            status = "in-progress"

        priority = "Medium"
        if re.search(r"\b(critical)\b", lowered):
            priority = "Critical"
        elif re.search(r"\b(urgent|asap|high)\b", lowered):
            priority = "High"
        elif re.search(r"\blow\b", lowered):
            priority = "Low"

        title = text.split(".")[0].strip()[:100] or "Untitled task"

        return json.dumps({
            "title": title[0].upper() + title[1:],
            "description": "",
            "due_date": None,
            "priority": priority,
            "status": status,
        })

    def get_model_info(self, model_name: str) -> Dict[str, Any]:
        return {"name": model_name, "provider": "mock", "max_tokens": 4000}

    def list_available_models(self) -> List[str]:
        return [
            "mock-gpt-4o-mini",
            "mock-claude-3-haiku",
        ]
