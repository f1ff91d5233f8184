"""Tests for lexical priority classification."""

import re

import pytest

from voicetask.core.voicetask_core.parsing.models import Priority
from voicetask.core.voicetask_core.parsing.priority import PRIORITY_RULES, PriorityClassifier


class TestPriorityClassifier:
    """Test the ordered priority rule table."""

    def setup_method(self):
        """Set up test fixtures."""
        self.classifier = PriorityClassifier()

    @pytest.mark.parametrize("text,expected", [
        ("fix the prod outage, it's critical", Priority.CRITICAL),
        ("urgent: renew passport", Priority.CRITICAL),
        ("finish slides, high priority", Priority.HIGH),
        ("finish slides, highpriority", Priority.HIGH),
        ("this one is high", Priority.HIGH),
        ("clean the garage, low priority", Priority.LOW),
        ("low effort chore", Priority.LOW),
        ("buy milk", Priority.MEDIUM),
        ("", Priority.MEDIUM),
    ])
    def test_classify(self, text, expected):
        """Cue words map to priority levels."""
        assert self.classifier.classify(text) == expected

    def test_case_insensitive(self):
        """Cues match regardless of case."""
        assert self.classifier.classify("URGENT call back") == Priority.CRITICAL
        assert self.classifier.classify("High Priority review") == Priority.HIGH

    def test_rule_order_critical_beats_low(self):
        """Earlier rules win when several cues are present."""
        assert self.classifier.classify("this is urgent but low effort") == Priority.CRITICAL
        assert self.classifier.classify("low priority but high visibility") == Priority.HIGH

    def test_word_boundaries(self):
        """Cues inside other words are ignored."""
        assert self.classifier.classify("highlight the slow parts") == Priority.MEDIUM
        assert self.classifier.classify("follow up with Highland team") == Priority.MEDIUM

    def test_rule_table_order(self):
        """The rule table order is part of the contract."""
        assert [priority for _, priority in PRIORITY_RULES] == [
            Priority.CRITICAL,
            Priority.HIGH,
            Priority.HIGH,
            Priority.LOW,
            Priority.LOW,
        ]

    def test_custom_rules(self):
        """Rules and default can be replaced."""
        classifier = PriorityClassifier(
            rules=[(re.compile(r"\basap\b", re.I), Priority.HIGH)],
            default=Priority.LOW,
        )
        assert classifier.classify("send it asap") == Priority.HIGH
        assert classifier.classify("whenever") == Priority.LOW
