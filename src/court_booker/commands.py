"""Recognise game announcements and commands in group chat messages."""

from __future__ import annotations

import re
from dataclasses import dataclass, field
from typing import Optional

_TIME_TEXT = r"\d{1,2}(?::\d{2})?\s*(?:[ap]m?)?\s*-\s*\d{1,2}(?::\d{2})?\s*[ap]m?"

ANNOUNCEMENT_PATTERN = re.compile(
    rf"🚨\s*(\d{{1,2}}/\d{{1,2}})\s+(\w+)\s+({_TIME_TEXT})\s*\[([^\]]+)\]",
    re.IGNORECASE,
)
CHECK_PATTERN = re.compile(rf"^!check\s+(\d{{1,2}}/\d{{1,2}})\s+({_TIME_TEXT})", re.IGNORECASE)

CHECK_FORMAT_HINT = "⚠️ Invalid check format. Use:\n\n!check 2/24 9-11p\n\nExample: !check 2/24 9-11p"

COMMITMENT_PATTERNS = [
    re.compile(pattern, re.IGNORECASE)
    for pattern in (
        r"\bi'?m in\b",
        r"\bcount me in\b",
        r"\bi'?ll be there\b",
        r"\bdown\b",
        r"^\+1$",
        r"^yes$",
        r"^yup$",
        r"^yeah$",
        r"👍",
        r"🏀",
        r"✋",
    )
]

CANCELLATION_PATTERNS = [
    re.compile(pattern, re.IGNORECASE)
    for pattern in (
        r"\bi'?m out\b",
        r"\bcan'?t make it\b",
        r"\bcan'?t come\b",
        r"\bsorry",
        r"\bnot coming\b",
        r"^-1$",
        r"^no$",
        r"^nope$",
    )
]

CONFIRMATION_PHRASES = ("book it", "book the court", "confirm booking", "yes book", "go ahead")


@dataclass(frozen=True)
class GameInfo:
    date: str
    time: str
    day_of_week: Optional[str] = None
    court_name: Optional[str] = None


@dataclass
class GameMessage:
    """A parsed announcement with its roster."""

    game: GameInfo
    players: list[str] = field(default_factory=list)
    waitlist: list[str] = field(default_factory=list)
    count_line: Optional[str] = None

    @property
    def player_count(self) -> int:
        return len(self.players)


@dataclass(frozen=True)
class CheckCommand:
    date: str
    time: str


def is_game_announcement(text: str) -> bool:
    return "🚨" in text


def parse_game_announcement(text: str) -> Optional[GameInfo]:
    """Read date, time and court from an announcement, falling back to the first line."""
    match = ANNOUNCEMENT_PATTERN.search(text)
    if match:
        return GameInfo(
            date=match.group(1),
            day_of_week=match.group(2),
            time=match.group(3),
            court_name=match.group(4).strip(),
        )

    first_line = text.split("\n", 1)[0]
    date_match = re.search(r"(\d{1,2}/\d{1,2})", first_line)
    time_match = re.search(rf"({_TIME_TEXT})", first_line, re.IGNORECASE)
    court_match = re.search(r"\[([^\]]+)\]", first_line)
    if date_match and time_match:
        return GameInfo(
            date=date_match.group(1),
            time=time_match.group(1),
            court_name=court_match.group(1).strip() if court_match else None,
        )
    return None


def parse_game_message(text: str) -> Optional[GameMessage]:
    """Parse an announcement plus the player list and waitlist under it."""
    game = parse_game_announcement(text)
    if not game:
        return None

    lines = [line.strip() for line in text.split("\n")]
    lines = [line for line in lines if line]
    message = GameMessage(game=game)
    in_waitlist = False

    for line in lines[1:]:
        if re.fullmatch(r"\d+/\d+", line):
            message.count_line = line
            continue
        if "waitlist" in line.lower():
            in_waitlist = True
            continue
        if line.startswith(("🚨", "[")) or re.match(r"\d{1,2}/\d{1,2}", line):
            continue
        if in_waitlist:
            message.waitlist.append(line)
        elif not line.isdigit():
            message.players.append(line)
    return message


def is_commitment(text: str) -> bool:
    cleaned = text.strip()
    return any(pattern.search(cleaned) for pattern in COMMITMENT_PATTERNS)


def is_cancellation(text: str) -> bool:
    cleaned = text.strip()
    return any(pattern.search(cleaned) for pattern in CANCELLATION_PATTERNS)


def is_check_command(text: str) -> bool:
    return text.strip().lower().startswith("!check")


def parse_check_command(text: str) -> Optional[CheckCommand]:
    match = CHECK_PATTERN.match(text.strip())
    if not match:
        return None
    return CheckCommand(date=match.group(1), time=match.group(2))


def is_booking_confirmation(text: str, sender: str, admin_ids: list[str]) -> bool:
    """True for a "book it" style message from an admin (anyone if no admins are configured)."""
    lowered = text.lower().strip()
    is_admin = not admin_ids or sender in admin_ids
    return is_admin and any(phrase in lowered for phrase in CONFIRMATION_PHRASES)
