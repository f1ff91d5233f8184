"""Tests for the extraction facade."""

import json
import pytest
from datetime import datetime, UTC

from voicetask.core.voicetask_core.llm.service import LLMService, LLMConfig
from voicetask.core.voicetask_core.llm.providers.base import LLMServiceError
from voicetask.core.voicetask_core.llm.providers.mock import MockProvider
from voicetask.core.voicetask_core.parsing import (
    Assisted,
    Deterministic,
    DeterministicParser,
    Fallback,
    FallbackReason,
    StructuredTask,
)
from voicetask.core.voicetask_core.router import InterpreterConfig, TaskInterpreter, extract

REFERENCE = datetime(2025, 6, 11, 10, 0, tzinfo=UTC)
TRANSCRIPT = "remind me to call mom tomorrow at 8am"
ANSWER = json.dumps({"title": "Call mom", "description": "", "due_date": None, "priority": "High", "status": "todo"})


def interpreter_with(provider: MockProvider, llm_config: LLMConfig = None, **kwargs) -> TaskInterpreter:
    llm_config = llm_config or LLMConfig(provider="mock")
    return TaskInterpreter(
        llm_config_loader=lambda: llm_config,
        service_factory=lambda cfg: LLMService(config=cfg, provider=provider),
        **kwargs,
    )


class TestTaskInterpreter:
    """Test routing between the assisted and rule-based parsers."""

    def test_empty_transcript(self):
        """Empty input short-circuits to the default task."""
        provider = MockProvider(responses=[ANSWER])
        outcome = interpreter_with(provider).extract("   ")

        assert isinstance(outcome, Deterministic)
        assert outcome.task == StructuredTask()
        assert provider.request_count == 0

    def test_assisted_when_credentials_present(self):
        """A configured provider is used."""
        provider = MockProvider(responses=[ANSWER])
        outcome = interpreter_with(provider).extract(TRANSCRIPT, reference=REFERENCE)

        assert isinstance(outcome, Assisted)
        assert outcome.task.title == "Call mom"
        assert outcome.task.due_date == datetime(2025, 6, 12, 8, 0, tzinfo=UTC)
        assert provider.request_count == 1

    def test_deterministic_without_credentials(self):
        """No API key means rules only, and no request."""
        provider = MockProvider(responses=[ANSWER])
        interpreter = interpreter_with(provider, LLMConfig(provider="openai", api_key=None))
        outcome = interpreter.extract(TRANSCRIPT, reference=REFERENCE)

        assert isinstance(outcome, Deterministic)
        assert outcome.method == "deterministic"
        assert outcome.task == DeterministicParser().parse(TRANSCRIPT, reference=REFERENCE)
        assert provider.request_count == 0

    def test_deterministic_when_llm_disabled(self):
        """use_llm=False skips the assisted path."""
        provider = MockProvider(responses=[ANSWER])
        outcome = interpreter_with(provider, LLMConfig(provider="mock", use_llm=False)).extract(TRANSCRIPT)

        assert isinstance(outcome, Deterministic)
        assert provider.request_count == 0

    def test_deterministic_when_interpreter_disallows(self):
        """allow_llm=False overrides the LLM config."""
        provider = MockProvider(responses=[ANSWER])
        interpreter = interpreter_with(provider, config=InterpreterConfig(allow_llm=False))

        assert isinstance(interpreter.extract(TRANSCRIPT), Deterministic)

    def test_fallback_on_provider_error(self):
        """Provider failures surface as a tagged fallback."""
        provider = MockProvider(error=LLMServiceError("down"))
        outcome = interpreter_with(provider).extract(TRANSCRIPT, timezone_offset=-300, reference=REFERENCE)

        assert isinstance(outcome, Fallback)
        assert outcome.reason == FallbackReason.TRANSPORT
        assert outcome.task == DeterministicParser().parse(TRANSCRIPT, timezone_offset=-300, reference=REFERENCE)

    def test_config_loaded_per_call(self):
        """Configuration changes apply to the next call."""
        configs = [LLMConfig(provider="openai", api_key=None), LLMConfig(provider="mock")]
        provider = MockProvider(responses=[ANSWER])
        interpreter = TaskInterpreter(
            llm_config_loader=lambda: configs.pop(0),
            service_factory=lambda cfg: LLMService(config=cfg, provider=provider),
        )

        assert isinstance(interpreter.extract(TRANSCRIPT), Deterministic)
        assert isinstance(interpreter.extract(TRANSCRIPT), Assisted)

    def test_long_transcript_truncated(self):
        """Transcripts are cut to the maximum length before parsing."""
        provider = MockProvider(responses=[ANSWER])
        interpreter_with(provider).extract("x" * 2500)

        sent = provider.requests[0].messages[-1].content
        assert sent == "Extract fields from this: " + "x" * 2000

    def test_long_transcript_bounded_on_rules(self):
        """Rule-based output for long input stays in bounds."""
        provider = MockProvider()
        interpreter = interpreter_with(provider, LLMConfig(provider="mock", use_llm=False))
        outcome = interpreter.extract("y" * 2500)

        assert len(outcome.task.title) == 200

    @pytest.mark.asyncio
    async def test_extract_async(self):
        """The async entry point works inside a running loop."""
        provider = MockProvider(responses=[ANSWER])
        outcome = await interpreter_with(provider).extract_async(TRANSCRIPT, reference=REFERENCE)

        assert isinstance(outcome, Assisted)

    def test_module_level_extract(self, monkeypatch, tmp_path):
        """extract() builds a fresh interpreter from the environment."""
        monkeypatch.delenv("OPENAI_API_KEY", raising=False)
        monkeypatch.delenv("VOICETASK_LLM_PROVIDER", raising=False)
        monkeypatch.setenv("VOICETASK_CONFIG", str(tmp_path / "missing.json"))

        outcome = extract("call the dentist on friday, low priority", reference=REFERENCE)

        assert isinstance(outcome, Deterministic)
        assert outcome.task.title == "Call the dentist"
        assert outcome.to_dict()["parsed"]["priority"] == "Low"

    def test_config_load_failure_uses_rules(self):
        """A loader that raises degrades to the rule-based parser."""
        def broken_loader():
            raise RuntimeError("config unreadable")

        provider = MockProvider(responses=[ANSWER])
        interpreter = TaskInterpreter(
            llm_config_loader=broken_loader,
            service_factory=lambda cfg: LLMService(config=cfg, provider=provider),
        )
        outcome = interpreter.extract(TRANSCRIPT, reference=REFERENCE)

        assert isinstance(outcome, Deterministic)
        assert outcome.task == DeterministicParser().parse(TRANSCRIPT, reference=REFERENCE)
        assert provider.request_count == 0

    @pytest.mark.parametrize("content", ['["openai"]', '{"api_key": 12345}', '"mock"', '{"use_llm": "maybe"}'])
    def test_malformed_config_file_uses_rules(self, monkeypatch, tmp_path, content):
        """A bad config file never breaks extraction."""
        for name in ("OPENAI_API_KEY", "VOICETASK_LLM_PROVIDER", "VOICETASK_USE_LLM", "VOICETASK_AWS_PROFILE"):
            monkeypatch.delenv(name, raising=False)
        config_file = tmp_path / "llm.json"
        config_file.write_text(content)
        monkeypatch.setenv("VOICETASK_CONFIG", str(config_file))

        outcome = extract(TRANSCRIPT, reference=REFERENCE)

        assert isinstance(outcome, Deterministic)
        assert outcome.task.title == "Call mom"
        assert outcome.task.due_date == datetime(2025, 6, 12, 8, 0, tzinfo=UTC)
