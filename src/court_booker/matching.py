"""Heuristics deciding whether one hour on the scheduler is open, taken or unknown."""

from __future__ import annotations

import re
from dataclasses import dataclass
from typing import Callable, Iterable, Optional, Pattern, Sequence

import structlog

from .models import SlotCandidate, SlotStatus, SlotVerdict, TimeRange, UnavailableIndicator

LOGGER = structlog.get_logger(__name__)

# Separators seen between the date and time parts of a reserve link.
_URL_SPACE = r"(?:%20|\+)"
_END_TIME_PREFIX = re.compile(r"\bto\s*$", re.IGNORECASE)


@dataclass(frozen=True)
class MatchData:
    """Precomputed patterns for recognising one start time in scraped markup."""

    hour24: int
    minute: str
    display_hour: int
    am_pm: str
    label: str
    url_display_pattern: Pattern[str]
    url_24h_pattern: Pattern[str]
    start_time_pattern: Pattern[str]
    exact_pattern: Pattern[str]

    def matches_url(self, value: str) -> bool:
        """True if a link-like string encodes this start time."""
        if not value:
            return False
        return bool(self.url_display_pattern.search(value) or self.url_24h_pattern.search(value))

    def matches_start(self, value: str) -> bool:
        """True if free text names this time as a start, not as the end of a range."""
        if not value:
            return False
        for match in self.start_time_pattern.finditer(value):
            if not _END_TIME_PREFIX.search(value[: match.start()]):
                return True
        return False

    def matches_exact(self, value: str) -> bool:
        """True if the whole field is exactly this time."""
        if not value:
            return False
        return bool(self.exact_pattern.fullmatch(value.strip()))


def build_match_data(time_range: TimeRange) -> MatchData:
    """Derive the comparison patterns for the start of ``time_range``."""
    hour24 = time_range.start_hour
    minute = time_range.start_minute
    display_hour = hour24 % 12 or 12
    am_pm = "PM" if hour24 >= 12 else "AM"
    hour_text = rf"0?{display_hour}"
    hour24_text = f"{hour24:02d}" if hour24 >= 10 else rf"0?{hour24}"

    return MatchData(
        hour24=hour24,
        minute=minute,
        display_hour=display_hour,
        am_pm=am_pm,
        label=f"{display_hour}:{minute} {am_pm}",
        url_display_pattern=re.compile(
            rf"{_URL_SPACE}{hour_text}:{minute}{_URL_SPACE}{am_pm}",
            re.IGNORECASE,
        ),
        url_24h_pattern=re.compile(
            rf"{_URL_SPACE}{hour24_text}:{minute}(?!\d)(?!(?::\d\d)?{_URL_SPACE}?[AP]M)",
            re.IGNORECASE,
        ),
        start_time_pattern=re.compile(
            rf"(?<![\d:]){hour_text}:{minute}\s*{am_pm}\b",
            re.IGNORECASE,
        ),
        exact_pattern=re.compile(rf"{hour_text}:{minute}\s*{am_pm}", re.IGNORECASE),
    )


IndicatorCheck = Callable[[UnavailableIndicator, MatchData], bool]
CandidateCheck = Callable[[SlotCandidate, MatchData], bool]

# Ordered signal channels. Append new channels at the end.
INDICATOR_CHANNELS: tuple[tuple[str, IndicatorCheck], ...] = (
    ("compact_time", lambda ind, m: m.matches_exact(ind.compact_time)),
    ("parent_compact_time", lambda ind, m: m.matches_exact(ind.parent_compact_time)),
    ("parent_label", lambda ind, m: m.matches_start(ind.parent_label)),
    (
        "url",
        lambda ind, m: any(
            m.matches_url(value)
            for value in (ind.compact_time, ind.parent_label, ind.parent_compact_time)
        ),
    ),
)

CANDIDATE_CHANNELS: tuple[tuple[str, CandidateCheck], ...] = (
    ("reference", lambda c, m: m.matches_url(c.reference) or m.matches_url(c.parent_reference)),
    ("label", lambda c, m: m.matches_start(c.label) or m.matches_start(c.parent_label)),
    ("parent_compact_time", lambda c, m: m.matches_exact(c.parent_compact_time)),
    ("text", lambda c, m: m.matches_start(c.text)),
)


def _first_channel(record, channels: Sequence[tuple[str, Callable]], match: MatchData) -> Optional[str]:
    for name, check in channels:
        if check(record, match):
            return name
    return None


def classify_slot(
    candidates: Iterable[SlotCandidate],
    indicators: Iterable[UnavailableIndicator],
    match: MatchData,
) -> SlotVerdict:
    """Classify the hour described by ``match``.

    A matching "none available" indicator always wins; reserve buttons are
    only consulted when no indicator matched. ``unknown`` means the markup
    carried no recognisable signal for this hour.
    """
    for indicator in indicators:
        channel = _first_channel(indicator, INDICATOR_CHANNELS, match)
        if channel:
            LOGGER.info("slot.unavailable", label=match.label, channel=channel)
            return SlotVerdict(SlotStatus.UNAVAILABLE, channel=channel)

    for candidate in candidates:
        channel = _first_channel(candidate, CANDIDATE_CHANNELS, match)
        if channel:
            LOGGER.info("slot.available", label=match.label, channel=channel)
            return SlotVerdict(SlotStatus.AVAILABLE, candidate=candidate, channel=channel)

    LOGGER.warning("slot.unknown", label=match.label)
    return SlotVerdict(SlotStatus.UNKNOWN)
