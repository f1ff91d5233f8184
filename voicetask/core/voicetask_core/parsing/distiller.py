"""Title and description distillation from raw transcripts."""

import logging
import re
from dataclasses import dataclass
from typing import List, Optional, Tuple

from .models import DESCRIPTION_MAX_LENGTH, TITLE_MAX_LENGTH, Priority

logger = logging.getLogger(__name__)

_LEVEL = r"(?:high|low|critical|urgent)"

# First match wins; the whole matched phrase becomes the description.
RECURRENCE_PATTERNS: List[re.Pattern] = [
    re.compile(
        r"\bevery\s+(?:day|week|month|monday|tuesday|wednesday|thursday|friday|saturday|sunday)\b",
        re.I,
    ),
    re.compile(r"\bdaily\b", re.I),
    re.compile(r"\bweekly\b", re.I),
    re.compile(r"\bmonthly\b", re.I),
]

# Leading imperative prefixes. At most one is removed, the first that matches.
PREFIX_PATTERNS: List[re.Pattern] = [
    re.compile(r"^remind\s+me\s+to\s+", re.I),
    re.compile(rf"^create\s+(?:a\s+)?(?:{_LEVEL}\s+)?(?:priority\s+)?task\s*:\s*", re.I),
    re.compile(r"^add\s+(?:a\s+)?task\s*:\s*", re.I),
    re.compile(rf"^set\s+(?:a\s+)?(?:{_LEVEL}\s+)?priority\s+reminder\s+to\s+", re.I),
    re.compile(r"^make\s+(?:a\s+)?note\s+to\s+", re.I),
    re.compile(r"^after\s+", re.I),
]

# Trailing priority phrases, ignoring leftovers of an excised date. All are applied, in order.
PRIORITY_SUFFIX_PATTERNS: List[re.Pattern] = [
    re.compile(rf"[,\s]+it'?s?\s+{_LEVEL}(?:\s*priority)?[.!,\s]*$", re.I),
    re.compile(rf"[,\s]+{_LEVEL}\s*priority[.!,\s]*$", re.I),
    re.compile(rf"[,\s]+{_LEVEL}[.!,\s]*$", re.I),
]

STANDALONE_PRIORITY = re.compile(rf"\b{_LEVEL}\s+priority\b", re.I)

# Connective phrasing around a date span: (template, replacement).
DATE_CONNECTIVES: List[Tuple[str, str]] = [
    (r"[,\s]*\bby\s+{span}[,\s]*", " "),
    (r"[,\s]*\bbefore\s+(?:the\s+)?{span}[,\s]*", " "),
    (r"[,\s]*\bon\s+{span}[,\s]*", " "),
    (r"[,\s]*\bat\s+{span}[,\s]*", " "),
    # A span inside a recurrence phrase ("every monday") stays in the title.
    (r"(?<!\bevery\s)(?<!\w){span}(?!\w)", ""),
]

# Final cleanup, applied in order.
CLEANUP_PATTERNS: List[Tuple[re.Pattern, str]] = [
    (re.compile(r"[,\s]+remind\s+me\s+to\b", re.I), ""),
    (re.compile(r"\b(?:by|before|on|at)\s*$", re.I), ""),
    (re.compile(r"^\s*[,\s]+"), ""),
    (re.compile(r"[,\s]+$"), ""),
    (re.compile(r"\s+"), " "),
    (re.compile(r"\s+([.,!?])"), r"\1"),
]


@dataclass(frozen=True)
class DistilledText:
    """Title and description salvaged from a transcript."""

    title: str
    description: str = ""


def _capitalize(text: str) -> str:
    return text[:1].upper() + text[1:]


def _truncate(text: str, limit: int) -> str:
    return text if len(text) <= limit else text[:limit].rstrip()


class TitleDistiller:
    """Turn a transcript into a short imperative title plus optional description."""

    def distill(
        self,
        text: str,
        matched_date_span: Optional[str] = None,
        priority: Optional[Priority] = None,
    ) -> DistilledText:
        """Run the transformation pipeline.

        Args:
            text: Raw transcript
            matched_date_span: Substring the temporal resolver consumed, if any
            priority: Inferred priority; the phrases are stripped regardless

        Returns:
            DistilledText with a non-empty title whenever ``text`` is non-blank
        """
        working = (text or "").strip()
        if not working:
            return DistilledText(title="")

        description = self.detect_recurrence(working)

        title = self.strip_prefix(working)
        if matched_date_span:
            title = self.excise_date(title, matched_date_span)
        title = self.excise_priority(title)
        title = self.cleanup(title)

        if not title:
            # Every rule fired; keep the transcript itself rather than nothing.
            logger.debug(f"Distillation emptied {working!r}; using cleaned transcript")
            title = self.cleanup(working)

        return DistilledText(
            title=_truncate(_capitalize(title), TITLE_MAX_LENGTH),
            description=_truncate(description, DESCRIPTION_MAX_LENGTH),
        )

    @staticmethod
    def detect_recurrence(text: str) -> str:
        for pattern in RECURRENCE_PATTERNS:
            match = pattern.search(text)
            if match:
                return f"Recurrence: {match.group(0)}"
        return ""

    @staticmethod
    def strip_prefix(text: str) -> str:
        for pattern in PREFIX_PATTERNS:
            stripped, count = pattern.subn("", text, count=1)
            if count:
                return stripped
        return text

    @staticmethod
    def excise_date(text: str, span: str) -> str:
        escaped = re.escape(span)
        for template, replacement in DATE_CONNECTIVES:
            pattern = re.compile(template.format(span=escaped), re.I)
            text = pattern.sub(replacement, text)
        return text

    @staticmethod
    def excise_priority(text: str) -> str:
        for pattern in PRIORITY_SUFFIX_PATTERNS:
            text = pattern.sub("", text)
        return STANDALONE_PRIORITY.sub("", text)

    @staticmethod
    def cleanup(text: str) -> str:
        for pattern, replacement in CLEANUP_PATTERNS:
            text = pattern.sub(replacement, text)
        return text.strip()
