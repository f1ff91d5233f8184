"""Single entry point for turning a transcript into a task."""

import asyncio
import logging
from dataclasses import dataclass
from datetime import datetime
from typing import Callable, Optional

from ..llm import LLMConfig, LLMService
from ..parsing import (
    AssistedParser,
    Deterministic,
    DeterministicParser,
    ParseOutcome,
    StructuredTask,
)
from ..parsing.models import TRANSCRIPT_MAX_LENGTH

logger = logging.getLogger(__name__)


@dataclass
class InterpreterConfig:
    """Knobs for the extraction facade."""
    max_transcript_length: int = TRANSCRIPT_MAX_LENGTH
    # Set False to never attempt the assisted path, whatever the LLM config says.
    allow_llm: bool = True


class TaskInterpreter:
    """Route transcripts to the assisted or deterministic parser.

    The LLM configuration is loaded on every call, so credentials added to the
    environment take effect without rebuilding the interpreter.
    """

    def __init__(
        self,
        config: Optional[InterpreterConfig] = None,
        llm_config_loader: Callable[[], LLMConfig] = LLMConfig.load,
        service_factory: Optional[Callable[[LLMConfig], LLMService]] = None,
        deterministic: Optional[DeterministicParser] = None,
    ):
        self.config = config or InterpreterConfig()
        self.llm_config_loader = llm_config_loader
        self.service_factory = service_factory or (lambda cfg: LLMService(config=cfg))
        self.deterministic = deterministic or DeterministicParser()

    def extract(
        self,
        text: str,
        timezone_offset: Optional[int] = None,
        reference: Optional[datetime] = None,
    ) -> ParseOutcome:
        """Extract a task synchronously. Must not be called inside a running loop.

        The event loop is closed only after its executor threads finish, so a
        Bedrock call that outlives ``timeout_seconds`` still delays the return
        until botocore gives up. The Bedrock provider keeps its connect and read
        timeouts within that same budget.
        """
        return asyncio.run(self.extract_async(text, timezone_offset=timezone_offset, reference=reference))

    async def extract_async(
        self,
        text: str,
        timezone_offset: Optional[int] = None,
        reference: Optional[datetime] = None,
    ) -> ParseOutcome:
        """Extract a task from ``text``.

        Args:
            text: Transcript, truncated to the configured maximum length
            timezone_offset: Caller's offset in minutes east of UTC
            reference: Instant relative phrases are resolved against

        Returns:
            Assisted or Fallback when the assisted path was tried, else Deterministic
        """
        if not text or not text.strip():
            return Deterministic(task=StructuredTask())

        if len(text) > self.config.max_transcript_length:
            logger.info(f"Truncating transcript from {len(text)} to {self.config.max_transcript_length} characters")
            text = text[: self.config.max_transcript_length]

        llm_config = self._usable_llm_config()
        if llm_config is not None:
            parser = AssistedParser(
                service=lambda: self.service_factory(llm_config),
                deterministic=self.deterministic,
            )
            return await parser.parse(text, timezone_offset=timezone_offset, reference=reference)

        task = self.deterministic.parse(text, timezone_offset=timezone_offset, reference=reference)
        return Deterministic(task=task)

    def _usable_llm_config(self) -> Optional[LLMConfig]:
        """Load the LLM config, or None when the assisted path cannot run.

        A config that fails to load counts as unavailable.
        """
        if not self.config.allow_llm:
            return None
        try:
            llm_config = self.llm_config_loader()
            available = llm_config.use_llm and llm_config.has_credentials()
        except Exception:
            logger.exception("Could not load LLM config; using rules")
            return None

        if not available:
            logger.debug(f"Assisted path unavailable for provider {llm_config.provider}; using rules")
            return None
        return llm_config


def extract(
    text: str,
    timezone_offset: Optional[int] = None,
    reference: Optional[datetime] = None,
) -> ParseOutcome:
    """Extract a task with a freshly built interpreter."""
    return TaskInterpreter().extract(text, timezone_offset=timezone_offset, reference=reference)
