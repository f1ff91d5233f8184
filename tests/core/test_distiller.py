"""Tests for title and description distillation."""

import pytest

from voicetask.core.voicetask_core.parsing.distiller import TitleDistiller
from voicetask.core.voicetask_core.parsing.models import TITLE_MAX_LENGTH, DESCRIPTION_MAX_LENGTH


class TestTitleDistiller:
    """Test the title transformation pipeline."""

    def setup_method(self):
        """Set up test fixtures."""
        self.distiller = TitleDistiller()

    def test_empty_text(self):
        """Empty input gives an empty title."""
        result = self.distiller.distill("")
        assert result.title == ""
        assert result.description == ""

    @pytest.mark.parametrize("text,expected", [
        ("remind me to call mom", "Call mom"),
        ("create a task: book flights", "Book flights"),
        ("create a high priority task: finish the report", "Finish the report"),
        ("add task: water plants", "Water plants"),
        ("set a high priority reminder to renew passport", "Renew passport"),
        ("make a note to buy milk", "Buy milk"),
        ("after lunch review the PR", "Lunch review the PR"),
    ])
    def test_prefix_stripping(self, text, expected):
        """Leading imperative prefixes are removed."""
        assert self.distiller.distill(text).title == expected

    def test_compound_prefix_single_pass(self):
        """Only the first matching prefix is removed."""
        result = self.distiller.distill("remind me to create a task: call mom")
        assert result.title == "Create a task: call mom"

    def test_date_connectives_removed(self):
        """Date spans are excised along with their connective."""
        assert self.distiller.distill("submit the form by tonight", "tonight").title == "Submit the form"
        assert self.distiller.distill("call the dentist on friday", "friday").title == "Call the dentist"
        assert self.distiller.distill("pay rent before the 1st", "1st").title == "Pay rent"
        assert self.distiller.distill("call mom tomorrow at 8am", "tomorrow at 8am").title == "Call mom"

    def test_date_span_mid_sentence(self):
        """Commas around an excised date collapse cleanly."""
        result = self.distiller.distill("finish the deck by friday, then email Sam", "friday")
        assert result.title == "Finish the deck then email Sam"

    @pytest.mark.parametrize("text,span,expected", [
        ("fix the login bug, it's urgent", None, "Fix the login bug"),
        ("finish slides, high priority", None, "Finish slides"),
        ("clean the garage, low priority.", None, "Clean the garage"),
        ("renew passport urgent", None, "Renew passport"),
        ("call the bank, its high priority", None, "Call the bank"),
        ("this is a high priority bug fix", None, "This is a bug fix"),
        ("call mom, urgent, tomorrow", "tomorrow", "Call mom"),
        ("fix the login bug, it's urgent, by friday", "friday", "Fix the login bug"),
        ("pay rent, high priority, before the 1st.", "1st", "Pay rent"),
    ])
    def test_priority_phrases_removed(self, text, span, expected):
        """Priority phrases never end up in the title, even ahead of a date."""
        assert self.distiller.distill(text, span).title == expected

    def test_dangling_remind_me_removed(self):
        """A mid-sentence 'remind me to' is dropped."""
        assert self.distiller.distill("after dinner, remind me to walk the dog").title == "Dinner walk the dog"

    def test_trailing_preposition_removed(self):
        """A dangling connective left at the end is removed."""
        assert self.distiller.distill("submit the form by").title == "Submit the form"

    @pytest.mark.parametrize("text,expected", [
        ("water the plants every monday", "Recurrence: every monday"),
        ("take vitamins daily", "Recurrence: daily"),
        ("review budget monthly", "Recurrence: monthly"),
        ("team sync every week", "Recurrence: every week"),
    ])
    def test_recurrence_description(self, text, expected):
        """Recurrence phrases are salvaged into the description."""
        assert self.distiller.distill(text).description == expected

    def test_recurring_weekday_stays_in_title(self):
        """A weekday inside a recurrence phrase is not excised."""
        result = self.distiller.distill("water the plants every monday", "monday")
        assert result.title == "Water the plants every monday"

    def test_minimum_title_guarantee(self):
        """When every rule fires the cleaned transcript is used."""
        assert self.distiller.distill("high priority").title == "High priority"
        assert self.distiller.distill("  tomorrow  ", "tomorrow").title == "Tomorrow"

    def test_whitespace_normalized(self):
        """Runs of whitespace collapse to one space."""
        assert self.distiller.distill("  buy   milk \n and eggs ").title == "Buy milk and eggs"

    def test_title_bounded(self):
        """Long transcripts give a bounded title."""
        result = self.distiller.distill("write " + "very " * 100 + "long essay")
        assert len(result.title) <= TITLE_MAX_LENGTH
        assert len(result.description) <= DESCRIPTION_MAX_LENGTH
        assert result.title.startswith("Write very")

    def test_span_with_regex_characters(self):
        """Date spans are matched literally."""
        result = self.distiller.distill("ship it on 12/15 (tentative)", "12/15")
        assert result.title == "Ship it (tentative)"

    def test_space_before_punctuation_removed(self):
        """Excising a date right before a full stop leaves no stray space."""
        assert self.distiller.distill("call mom tomorrow.", "tomorrow").title == "Call mom."
        assert self.distiller.distill("call mom tomorrow, then rest", "tomorrow").title == "Call mom, then rest"
