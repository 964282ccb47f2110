"""
Trigger extraction and recurring-pattern detection.

A trigger is a word from a reading's food_intake or activity text. Words that
recur across a patient's recent abnormal readings become patterns.

Everything here is pure: the caller supplies readings, settings and the
reference time.
"""
import re
from dataclasses import dataclass, field
from datetime import datetime, timedelta
from typing import Dict, Iterable, List, Optional, Sequence, Tuple

from core.datetime_utils import to_utc, utc_now
from models.reading import Category, Reading

DEFAULT_MIN_LENGTH = 3
DEFAULT_STOPWORDS = frozenset({"with", "after", "before", "some"})
DEFAULT_REPETITION_THRESHOLD = 3

NO_TRIGGERS_LABEL = "None detected"

_SPLIT_RE = re.compile(r"[\s,]+")


@dataclass(frozen=True)
class LookbackWindow:
    """Which abnormal readings are analysed: newer than `days`, at most `max_readings`."""
    days: int = 30
    max_readings: int = 50

    def start(self, now: datetime) -> datetime:
        return to_utc(now) - timedelta(days=self.days)


@dataclass
class PatternResult:
    """
    Outcome of a frequency analysis.

    Attributes:
        counts: Occurrences per token, in first-seen order.
        patterns: Tokens meeting the repetition threshold, most frequent
            first, ties kept in first-seen order.
        readings_analysed: Number of abnormal readings that were counted.
    """
    counts: Dict[str, int] = field(default_factory=dict)
    patterns: List[str] = field(default_factory=list)
    readings_analysed: int = 0


def extract_tokens(
    reading: Reading,
    min_length: int = DEFAULT_MIN_LENGTH,
    stopwords: Iterable[str] = DEFAULT_STOPWORDS
) -> List[str]:
    """
    Split a reading's food and activity text into trigger tokens.

    Text is lowercased and split on whitespace and commas. Tokens shorter
    than min_length and stopwords are dropped. Repeats within one reading
    are kept.

    Example:
        food_intake="Pizza with extra cheese", activity="Sedentary"
        -> ["pizza", "extra", "cheese", "sedentary"]
    """
    stop = {word.lower() for word in stopwords}
    text = f"{reading.food_intake or ''} {reading.activity or ''}".lower()
    return [
        token for token in _SPLIT_RE.split(text)
        if token and len(token) >= min_length and token not in stop
    ]


def select_window(
    readings: Iterable[Reading],
    window: LookbackWindow,
    now: Optional[datetime] = None
) -> List[Reading]:
    """Abnormal readings inside the window, most recent first, truncated."""
    now = to_utc(now) if now is not None else utc_now()
    start = window.start(now)
    eligible = [
        r for r in readings
        if r.category == Category.ABNORMAL and start <= to_utc(r.timestamp) <= now
    ]
    eligible.sort(key=lambda r: to_utc(r.timestamp), reverse=True)
    return eligible[:window.max_readings]


def count_tokens(
    readings: Iterable[Reading],
    min_length: int = DEFAULT_MIN_LENGTH,
    stopwords: Iterable[str] = DEFAULT_STOPWORDS
) -> Dict[str, int]:
    """Token occurrences across readings; dict order is first-seen order."""
    counts: Dict[str, int] = {}
    for reading in readings:
        for token in extract_tokens(reading, min_length, stopwords):
            counts[token] = counts.get(token, 0) + 1
    return counts


def top_triggers(counts: Dict[str, int], k: int) -> List[Tuple[str, int]]:
    """
    The k most frequent tokens with their counts.

    Ties keep the order of the input dict, since sorted() is stable.
    """
    if k <= 0:
        return []
    return sorted(counts.items(), key=lambda item: item[1], reverse=True)[:k]


def format_top_triggers(pairs: Sequence[Tuple[str, int]]) -> str:
    """Render trigger pairs as "pizza (3), soda (2)" or "None detected"."""
    if not pairs:
        return NO_TRIGGERS_LABEL
    return ", ".join(f"{token} ({count})" for token, count in pairs)


def find_patterns(
    readings: Iterable[Reading],
    window: LookbackWindow = LookbackWindow(),
    repetition_threshold: int = DEFAULT_REPETITION_THRESHOLD,
    min_length: int = DEFAULT_MIN_LENGTH,
    stopwords: Iterable[str] = DEFAULT_STOPWORDS,
    now: Optional[datetime] = None
) -> PatternResult:
    """
    Detect triggers that recur across a patient's recent abnormal readings.

    Args:
        readings: Candidate readings. Non-abnormal readings and readings
            outside the window are ignored.
        window: Lookback window applied before counting.
        repetition_threshold: Minimum occurrences for a token to be a pattern.
        min_length: Minimum token length.
        stopwords: Words never counted.
        now: Reference time (defaults to the current UTC time).

    Returns:
        PatternResult with counts and the ordered list of patterns.
    """
    selected = select_window(readings, window, now)
    counts = count_tokens(selected, min_length, stopwords)
    ranked = top_triggers(counts, len(counts))
    patterns = [token for token, count in ranked if count >= repetition_threshold]
    return PatternResult(counts=counts, patterns=patterns, readings_analysed=len(selected))


def abnormal_trigger_counts(
    readings: Iterable[Reading],
    min_length: int = DEFAULT_MIN_LENGTH,
    stopwords: Iterable[str] = DEFAULT_STOPWORDS
) -> Dict[str, int]:
    """Token counts over the Abnormal readings only, in first-seen order."""
    abnormal = (r for r in readings if r.category == Category.ABNORMAL)
    return count_tokens(abnormal, min_length, stopwords)
