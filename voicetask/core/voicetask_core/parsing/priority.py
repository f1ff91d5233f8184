"""Lexical priority classification."""

import re
from typing import List, Tuple

from .models import Priority

# Evaluated top to bottom, first match wins. Explicit phrases sit above the
# bare words they contain; "urgent but low effort" is Critical.
PRIORITY_RULES: List[Tuple[re.Pattern, Priority]] = [
    (re.compile(r"\b(critical|urgent)\b", re.I), Priority.CRITICAL),
    (re.compile(r"\bhigh\s*priority\b", re.I), Priority.HIGH),
    (re.compile(r"\bhigh\b", re.I), Priority.HIGH),
    (re.compile(r"\blow\s*priority\b", re.I), Priority.LOW),
    (re.compile(r"\blow\b", re.I), Priority.LOW),
]


class PriorityClassifier:
    """Map lexical cues in a transcript to a priority level."""

    def __init__(self, rules: List[Tuple[re.Pattern, Priority]] = None, default: Priority = Priority.MEDIUM):
        self.rules = rules if rules is not None else PRIORITY_RULES
        self.default = default

    def classify(self, text: str) -> Priority:
        for pattern, priority in self.rules:
            if pattern.search(text or ""):
                return priority
        return self.default
