"""Prompt templates for LLM interactions."""

from typing import List, Tuple

from .providers.base import LLMMessage, LLMRole


# (transcript, expected JSON) pairs that anchor output format and priority calibration.
FEW_SHOT_EXAMPLES: List[Tuple[str, str]] = [
    (
        "Create a high priority task: Finish the quarterly report by December 15, 2025 at 5 pm. "
        "Add a note to include the sales numbers.",
        '{"title":"Finish the quarterly report","description":"Include the sales numbers.",'
        '"due_date":"2025-12-15T17:00:00.000Z","priority":"High","status":"todo"}',
    ),
    (
        "Plan team offsite; discuss venue options and budget. Low priority.",
        '{"title":"Plan team offsite","description":"Discuss venue options and budget.",'
        '"due_date":null,"priority":"Low","status":"todo"}',
    ),
]


class PromptTemplates:
    """Collection of reusable prompt templates for different LLM tasks."""

    @staticmethod
    def task_extraction_system_prompt() -> str:
        """System prompt for single-task field extraction."""
        return """You extract task details from a user's natural language note.
Return ONLY a compact JSON object with keys: title, description, due_date, priority, status.
- title: a short actionable summary (<= 100 chars). Do not include dates, priority, or meta words like "priority".
- description: any extra details, context, steps, notes that don't fit in title. If none, use empty string.
- due_date: ISO 8601 (UTC) if present, else null.
- priority: one of Low, Medium, High, Critical.
  - Explicit statements such as "high priority", "low priority" or "critical" are taken literally.
  - Words like "urgent", "asap" or "critical", or scheduling an important meeting, lean towards High.
  - Use Medium when nothing suggests otherwise.
- status: one of todo, in-progress, done.
  - "done", "finished", "already completed" mean done; "working on it", "in progress" mean in-progress.
No code blocks, no comments, no extra fields."""

    @staticmethod
    def task_extraction_user_prompt(transcript: str) -> str:
        """User turn wrapping a transcript."""
        return f"Extract fields from this: {transcript}"

    @staticmethod
    def task_extraction_messages(transcript: str) -> List[LLMMessage]:
        """Few-shot conversation ending with the transcript to extract.

        Args:
            transcript: Raw transcript text

        Returns:
            Messages to send after the system prompt
        """
        messages: List[LLMMessage] = []
        for example_input, example_output in FEW_SHOT_EXAMPLES:
            messages.append(LLMMessage(
                role=LLMRole.USER,
                content=PromptTemplates.task_extraction_user_prompt(example_input),
            ))
            messages.append(LLMMessage(role=LLMRole.ASSISTANT, content=example_output))

        messages.append(LLMMessage(
            role=LLMRole.USER,
            content=PromptTemplates.task_extraction_user_prompt(transcript),
        ))
        return messages

    @staticmethod
    def get_prompt_by_name(name: str, **kwargs) -> str:
        """Get a prompt template by name with parameters.

        Args:
            name: Prompt template name
            **kwargs: Template parameters

        Returns:
            Formatted prompt

        Raises:
            ValueError: If prompt template not found
        """
        templates = {
            "task_extraction_system": PromptTemplates.task_extraction_system_prompt,
            "task_extraction_user": lambda: PromptTemplates.task_extraction_user_prompt(
                kwargs.get("transcript", "")
            ),
        }

        if name not in templates:
            raise ValueError(f"Unknown prompt template: {name}")

        return templates[name]()
