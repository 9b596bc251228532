"""Shared data models used across the court booker."""

from __future__ import annotations

from dataclasses import dataclass, field
from enum import Enum
from typing import Any, Optional


def _display_label(hour24: int, minute: str) -> str:
    am_pm = "PM" if hour24 >= 12 else "AM"
    hour12 = hour24 % 12 or 12
    return f"{hour12}:{minute} {am_pm}"


@dataclass(frozen=True)
class TimeRange:
    """Start/end of a requested slot in 24-hour form."""

    start_hour: int
    start_minute: str
    end_hour: int
    end_minute: str

    @property
    def start_time(self) -> str:
        return f"{self.start_hour:02d}:{self.start_minute}"

    @property
    def end_time(self) -> str:
        return f"{self.end_hour:02d}:{self.end_minute}"

    @property
    def start_display(self) -> str:
        return _display_label(self.start_hour, self.start_minute)

    @property
    def end_display(self) -> str:
        return _display_label(self.end_hour, self.end_minute)


@dataclass(frozen=True)
class SlotCandidate:
    """A scraped reserve button hypothesised to represent an open slot."""

    ref: Any
    label: str = ""
    reference: str = ""
    parent_label: str = ""
    parent_reference: str = ""
    parent_compact_time: str = ""
    text: str = ""
    attributes: dict[str, str] = field(default_factory=dict, compare=False, hash=False)


@dataclass(frozen=True)
class UnavailableIndicator:
    """A scraped "none available" marker for a fully booked slot."""

    compact_time: str = ""
    parent_label: str = ""
    parent_compact_time: str = ""


@dataclass(frozen=True)
class DialogButton:
    """A clickable button found while confirming a reservation."""

    text: str
    ref: Any = field(default=None, compare=False, hash=False)


class SlotStatus(str, Enum):
    AVAILABLE = "available"
    UNAVAILABLE = "unavailable"
    UNKNOWN = "unknown"


@dataclass(frozen=True)
class SlotVerdict:
    """Classification of one hour on the scheduler."""

    status: SlotStatus
    candidate: Optional[SlotCandidate] = None
    channel: Optional[str] = None


class AvailabilityStatus(str, Enum):
    AVAILABLE = "available"
    UNAVAILABLE = "unavailable"
    UNKNOWN = "unknown"
    ERROR = "error"
    INVALID_INPUT = "invalid_input"


class BookingStatus(str, Enum):
    BOOKED = "booked"
    ALREADY_BOOKED = "already_booked"
    NOT_FOUND = "not_found"
    UNCERTAIN = "uncertain"
    FAILED = "failed"
    INVALID_INPUT = "invalid_input"


@dataclass
class AvailabilityOutcome:
    """Result of a read-only availability check."""

    status: AvailabilityStatus
    label: Optional[str] = None
    message: Optional[str] = None
    diagnostics: dict[str, str] = field(default_factory=dict)

    @property
    def screenshot(self) -> Optional[str]:
        return self.diagnostics.get("availability") or self.diagnostics.get("failure")


@dataclass
class BookingOutcome:
    """Result of one orchestrated booking request."""

    status: BookingStatus
    label: Optional[str] = None
    message: Optional[str] = None
    diagnostics: dict[str, str] = field(default_factory=dict)
    verification: Optional[SlotStatus] = None

    @property
    def success(self) -> bool:
        return self.status is BookingStatus.BOOKED

    @property
    def already_booked(self) -> bool:
        return self.status is BookingStatus.ALREADY_BOOKED


@dataclass(frozen=True)
class NavigationResult:
    """Where the scheduler ended up after navigating."""

    arrived: bool
    steps: int
    displayed: str = ""
