"""Natural-language date/time resolution with a forward-date preference.

The grammar is two ordered tables, one for date phrases and one for clock
times. Every match in the text becomes a candidate; a date immediately
followed by a time (or a time immediately followed by a date) is merged into
a single candidate. The leftmost candidate wins, the longest one on ties.

Resolution happens on the reference instant's UTC wall clock. A caller's
timezone offset (minutes east of UTC) is then subtracted so that "tomorrow
at 8am" means 8am on the caller's clock.
"""

import logging
import re
from dataclasses import dataclass
from datetime import date, datetime, time, timedelta, UTC
from typing import Callable, Dict, Iterator, List, Optional, Tuple

from dateutil import parser as date_parser
from dateutil.relativedelta import relativedelta

logger = logging.getLogger(__name__)

WEEKDAYS = ["monday", "tuesday", "wednesday", "thursday", "friday", "saturday", "sunday"]

MONTH_NAMES = [
    "january", "february", "march", "april", "may", "june", "july",
    "august", "september", "october", "november", "december",
    "jan", "feb", "mar", "apr", "jun", "jul", "aug", "sep", "sept", "oct", "nov", "dec",
]

NUMBER_WORDS = {
    "a": 1, "an": 1, "one": 1, "two": 2, "three": 3, "four": 4, "five": 5, "six": 6,
    "seven": 7, "eight": 8, "nine": 9, "ten": 10, "eleven": 11, "twelve": 12,
}

# Implied clock time for parts of the day.
PERIOD_HOURS = {"morning": 6, "afternoon": 15, "evening": 20, "night": 22}

NOON = time(12, 0)

_WEEKDAY = "|".join(WEEKDAYS)
_MONTH = "|".join(sorted(MONTH_NAMES, key=len, reverse=True))
_NUMBER = r"\d+|" + "|".join(sorted(NUMBER_WORDS, key=len, reverse=True))
_PERIOD = "|".join(PERIOD_HOURS)
_ORDINAL = r"(?:st|nd|rd|th)?"

# Ordered date grammar: (kind, pattern).
DATE_PATTERNS: List[Tuple[str, re.Pattern]] = [
    ("day_after_tomorrow", re.compile(r"\b(?:the\s+)?day\s+after\s+(?:tomorrow|tmrw)\b", re.I)),
    ("casual_day", re.compile(rf"\b(today|tonight|tomorrow|tmrw)\b(?:\s+({_PERIOD})\b)?", re.I)),
    ("this_period", re.compile(r"\bthis\s+(morning|afternoon|evening)\b", re.I)),
    ("weekend", re.compile(r"\b(this|next)\s+weekend\b", re.I)),
    ("next_unit", re.compile(r"\bnext\s+(week|month|year)\b", re.I)),
    ("weekday", re.compile(rf"\b(?:(this|next)\s+)?({_WEEKDAY})\b(?:\s+({_PERIOD})\b)?", re.I)),
    ("in_offset", re.compile(rf"\bin\s+({_NUMBER})\s+(minute|hour|day|week|month|year)s?\b", re.I)),
    ("offset_from_now", re.compile(rf"\b({_NUMBER})\s+(day|week|month|year)s?\s+from\s+now\b", re.I)),
    ("month_day", re.compile(
        rf"\b(?:{_MONTH})\.?\s+\d{{1,2}}{_ORDINAL}(?!\d)\b(?:,?\s+\d{{4}}\b)?", re.I)),
    ("day_month", re.compile(
        rf"\b\d{{1,2}}{_ORDINAL}\s+(?:of\s+)?(?:{_MONTH})\b\.?(?:,?\s+\d{{4}}\b)?", re.I)),
    ("iso_date", re.compile(r"\b(\d{4})-(\d{2})-(\d{2})\b")),
    ("us_date", re.compile(r"\b(\d{1,2})/(\d{1,2})(?:/(\d{4}|\d{2}))?\b")),
]

# Ordered clock-time grammar: (kind, pattern).
TIME_PATTERNS: List[Tuple[str, re.Pattern]] = [
    ("meridiem", re.compile(r"\b(\d{1,2})(?::([0-5]\d))?\s*([ap])(?:m|\.m\.?)(?!\w)", re.I)),
    ("clock", re.compile(r"\b([01]?\d|2[0-3]):([0-5]\d)\b")),
    ("named", re.compile(r"\b(noon|midday|midnight)\b", re.I)),
]

# Glue allowed between a date and a following time, and vice versa.
_DATE_THEN_TIME = re.compile(r"\s*,?\s*(?:at\s+|@\s*)?", re.I)
_TIME_THEN_DATE = re.compile(r"\s*,?\s*(?:on\s+)?", re.I)


@dataclass(frozen=True)
class TemporalResolution:
    """Outcome of resolving a transcript against a reference instant."""

    instant: Optional[datetime] = None
    matched_span: Optional[str] = None

    @property
    def found(self) -> bool:
        return self.instant is not None


@dataclass(frozen=True)
class _DatePart:
    day: date
    implied_time: time
    # Added once when the explicit moment falls before the reference.
    roll: Optional[relativedelta] = None


@dataclass(frozen=True)
class _Match:
    start: int
    end: int
    value: object


def _number(token: str) -> int:
    token = token.lower()
    return NUMBER_WORDS[token] if token in NUMBER_WORDS else int(token)


def _to_naive_utc(reference: Optional[datetime]) -> datetime:
    if reference is None:
        reference = datetime.now(UTC)
    if reference.tzinfo is not None:
        reference = reference.astimezone(UTC)
    return reference.replace(tzinfo=None)


class TemporalResolver:
    """Resolve date phrases in free text to absolute UTC instants."""

    def __init__(self):
        self._date_handlers: Dict[str, Callable[[re.Match, datetime], Optional[_DatePart]]] = {
            "day_after_tomorrow": self._day_after_tomorrow,
            "casual_day": self._casual_day,
            "this_period": self._this_period,
            "weekend": self._weekend,
            "next_unit": self._next_unit,
            "weekday": self._weekday,
            "in_offset": self._offset,
            "offset_from_now": self._offset,
            "month_day": self._calendar_words,
            "day_month": self._calendar_words,
            "iso_date": self._iso_date,
            "us_date": self._us_date,
        }
        self._time_handlers: Dict[str, Callable[[re.Match], Optional[time]]] = {
            "meridiem": self._meridiem_time,
            "clock": self._clock_time,
            "named": self._named_time,
        }

    def resolve(
        self,
        text: str,
        reference: Optional[datetime] = None,
        timezone_offset: Optional[int] = None,
    ) -> TemporalResolution:
        """Find the first date phrase in ``text`` and resolve it.

        Args:
            text: Free-form transcript
            reference: "Now" for relative phrases (defaults to current UTC time)
            timezone_offset: Caller's offset in minutes east of UTC

        Returns:
            TemporalResolution; both fields are None when nothing matched
        """
        if not text or not text.strip():
            return TemporalResolution()

        ref = _to_naive_utc(reference)
        best: Optional[Tuple[int, int, datetime]] = None

        for start, end, moment in self._candidates(text, ref):
            if best is None or start < best[0] or (start == best[0] and end > best[1]):
                best = (start, end, moment)

        if best is None:
            return TemporalResolution()

        start, end, moment = best
        if timezone_offset:
            moment = moment - timedelta(minutes=timezone_offset)

        span = text[start:end]
        logger.debug(f"Resolved {span!r} to {moment.isoformat()} (offset={timezone_offset})")
        return TemporalResolution(instant=moment.replace(tzinfo=UTC), matched_span=span)

    def _candidates(self, text: str, ref: datetime) -> Iterator[Tuple[int, int, datetime]]:
        dates = list(self._find_dates(text, ref))
        times = list(self._find_times(text))
        times_by_start = self._longest_by_start(times)
        dates_by_start = self._longest_by_start(dates)

        for d in dates:
            part: _DatePart = d.value
            yield d.start, d.end, self._combine(part, None, ref)

            glue = _DATE_THEN_TIME.match(text, d.end)
            following = times_by_start.get(glue.end())
            if following is not None:
                yield d.start, following.end, self._combine(part, following.value, ref)

        for t in times:
            yield t.start, t.end, self._time_only(t.value, ref)

            glue = _TIME_THEN_DATE.match(text, t.end)
            following = dates_by_start.get(glue.end())
            if following is not None:
                yield t.start, following.end, self._combine(following.value, t.value, ref)

    def _find_dates(self, text: str, ref: datetime) -> Iterator[_Match]:
        for kind, pattern in DATE_PATTERNS:
            handler = self._date_handlers[kind]
            for match in pattern.finditer(text):
                try:
                    part = handler(match, ref)
                except (ValueError, OverflowError) as e:
                    logger.debug(f"Skipping date candidate {match.group(0)!r}: {e}")
                    continue
                if part is not None:
                    yield _Match(match.start(), match.end(), part)

    def _find_times(self, text: str) -> Iterator[_Match]:
        for kind, pattern in TIME_PATTERNS:
            handler = self._time_handlers[kind]
            for match in pattern.finditer(text):
                value = handler(match)
                if value is not None:
                    yield _Match(match.start(), match.end(), value)

    @staticmethod
    def _longest_by_start(matches: List[_Match]) -> Dict[int, _Match]:
        longest: Dict[int, _Match] = {}
        for m in matches:
            if m.start not in longest or m.end > longest[m.start].end:
                longest[m.start] = m
        return longest

    @staticmethod
    def _combine(part: _DatePart, explicit: Optional[time], ref: datetime) -> datetime:
        moment = datetime.combine(part.day, explicit or part.implied_time)
        if part.roll is not None and moment < ref:
            moment = moment + part.roll
        return moment

    @staticmethod
    def _time_only(value: time, ref: datetime) -> datetime:
        moment = datetime.combine(ref.date(), value)
        if moment < ref:
            moment += timedelta(days=1)
        return moment

    # Date handlers

    def _day_after_tomorrow(self, match: re.Match, ref: datetime) -> _DatePart:
        return _DatePart((ref + timedelta(days=2)).date(), ref.time())

    def _casual_day(self, match: re.Match, ref: datetime) -> _DatePart:
        word = match.group(1).lower()
        period = match.group(2)
        day = ref.date() if word in ("today", "tonight") else (ref + timedelta(days=1)).date()

        if period:
            implied = time(PERIOD_HOURS[period.lower()], 0)
        elif word == "tonight":
            implied = time(PERIOD_HOURS["night"], 0)
        else:
            implied = ref.time()
        return _DatePart(day, implied)

    def _this_period(self, match: re.Match, ref: datetime) -> _DatePart:
        return _DatePart(ref.date(), time(PERIOD_HOURS[match.group(1).lower()], 0))

    def _weekend(self, match: re.Match, ref: datetime) -> _DatePart:
        weekday = ref.weekday()
        if match.group(1).lower() == "next":
            # The Saturday after the weekend in progress or coming up.
            days_ahead = 7 - weekday + 5 if weekday < 5 else 12 - weekday
            return _DatePart((ref + timedelta(days=days_ahead)).date(), NOON)

        if weekday < 5:
            return _DatePart((ref + timedelta(days=5 - weekday)).date(), NOON)
        # Already the weekend: noon today, or the next weekend day once that has passed.
        return _DatePart(ref.date(), NOON, relativedelta(days=1 if weekday == 5 else 6))

    def _next_unit(self, match: re.Match, ref: datetime) -> _DatePart:
        unit = match.group(1).lower()
        moment = ref + relativedelta(**{f"{unit}s": 1})
        return _DatePart(moment.date(), moment.time())

    def _weekday(self, match: re.Match, ref: datetime) -> _DatePart:
        modifier = (match.group(1) or "").lower()
        target = WEEKDAYS.index(match.group(2).lower())
        period = match.group(3)

        days_ahead = (target - ref.weekday()) % 7
        # Forward-date: a bare weekday naming today means next week.
        if days_ahead == 0 and modifier != "this":
            days_ahead = 7

        implied = time(PERIOD_HOURS[period.lower()], 0) if period else NOON
        return _DatePart((ref + timedelta(days=days_ahead)).date(), implied)

    def _offset(self, match: re.Match, ref: datetime) -> _DatePart:
        amount = _number(match.group(1))
        unit = match.group(2).lower()
        moment = ref + relativedelta(**{f"{unit}s": amount})
        return _DatePart(moment.date(), moment.time())

    def _calendar_words(self, match: re.Match, ref: datetime) -> _DatePart:
        phrase = match.group(0)
        explicit_year = re.search(r"\b\d{4}\b", phrase) is not None
        parsed = date_parser.parse(phrase, default=datetime(ref.year, 1, 1))
        roll = None if explicit_year else relativedelta(years=1)
        return _DatePart(parsed.date(), NOON, roll)

    def _iso_date(self, match: re.Match, ref: datetime) -> _DatePart:
        year, month, day = (int(g) for g in match.groups())
        return _DatePart(date(year, month, day), NOON)

    def _us_date(self, match: re.Match, ref: datetime) -> _DatePart:
        month, day, year = match.group(1), match.group(2), match.group(3)
        if year is None:
            return _DatePart(date(ref.year, int(month), int(day)), NOON, relativedelta(years=1))
        full_year = int(year) + 2000 if len(year) == 2 else int(year)
        return _DatePart(date(full_year, int(month), int(day)), NOON)

    # Time handlers

    @staticmethod
    def _meridiem_time(match: re.Match) -> Optional[time]:
        hour = int(match.group(1))
        minute = int(match.group(2) or 0)
        if not 1 <= hour <= 12:
            return None
        hour = hour % 12
        if match.group(3).lower() == "p":
            hour += 12
        return time(hour, minute)

    @staticmethod
    def _clock_time(match: re.Match) -> Optional[time]:
        return time(int(match.group(1)), int(match.group(2)))

    @staticmethod
    def _named_time(match: re.Match) -> Optional[time]:
        return time(0, 0) if match.group(1).lower() == "midnight" else NOON
