"""Drive the scheduler's day view to a target date using prev/next stepping."""

from __future__ import annotations

import asyncio
import re
from datetime import date
from typing import Awaitable, Callable, Optional

import structlog
from dateutil import parser as date_parser

from .exceptions import CourtBookerError
from .models import NavigationResult
from .surface import SchedulingSurface

LOGGER = structlog.get_logger(__name__)

MONTH_NAMES = (
    "January",
    "February",
    "March",
    "April",
    "May",
    "June",
    "July",
    "August",
    "September",
    "October",
    "November",
    "December",
)

DISPLAYED_DATE_PATTERN = re.compile(
    r"\b(Jan|Feb|Mar|Apr|May|Jun|Jul|Aug|Sep|Oct|Nov|Dec)[a-z]*\.?\s+(\d{1,2})(?:st|nd|rd|th)?,?\s+(\d{4})\b",
    re.IGNORECASE,
)

MAX_DIRECTED_ATTEMPTS = 90
WEEKLY_PAUSE_EVERY = 7

Sleep = Callable[[float], Awaitable[None]]


def date_text_variants(target: date) -> list[str]:
    """Literal forms the toolbar may use to show ``target``."""
    month = MONTH_NAMES[target.month - 1]
    short = month[:3]
    day = target.day
    year = target.year
    variants = []
    for name in dict.fromkeys((month, short)):
        variants.extend(
            (
                f"{name} {day}, {year}",
                f"{name} {day} {year}",
                f"{name} {day}",
            )
        )
    return variants


def matches_target(displayed: str, target: date) -> bool:
    """Substring test of the displayed toolbar text against the target's variants.

    The day must not run on into another digit, so "March 1" does not
    accept "March 12".
    """
    if not displayed:
        return False
    for variant in date_text_variants(target):
        if re.search(re.escape(variant) + r"(?!\d)", displayed, re.IGNORECASE):
            return True
    return False


def parse_displayed_date(text: str) -> Optional[date]:
    """Pull a month-name/day/year date out of toolbar text, or ``None``."""
    match = DISPLAYED_DATE_PATTERN.search(text or "")
    if not match:
        return None
    fragment = f"{match.group(1)} {match.group(2)} {match.group(3)}"
    try:
        return date_parser.parse(fragment).date()
    except (ValueError, OverflowError) as exc:
        LOGGER.debug("navigation.date_parse_failed", text=text, error=str(exc))
        return None


class NavigationDriver:
    """Moves a :class:`SchedulingSurface` to a target date.

    ``strategy`` is ``"blind"`` (count the days from today and step forward
    that many times) or ``"directed"`` (read the toolbar after every step and
    pick a direction).
    """

    def __init__(
        self,
        surface: SchedulingSurface,
        *,
        strategy: str = "directed",
        max_attempts: int = MAX_DIRECTED_ATTEMPTS,
        step_pause: float = 0.25,
        weekly_pause: float = 0.8,
        recovery_pause: float = 2.0,
        sleep: Sleep = asyncio.sleep,
        today: Optional[Callable[[], date]] = None,
    ):
        if strategy not in ("blind", "directed"):
            raise ValueError(f"Unknown navigation strategy: {strategy}")
        self._surface = surface
        self._strategy = strategy
        self._max_attempts = max_attempts
        self._step_pause = step_pause
        self._weekly_pause = weekly_pause
        self._recovery_pause = recovery_pause
        self._sleep = sleep
        self._today = today or date.today

    async def navigate(self, target: date) -> NavigationResult:
        LOGGER.info("navigation.start", target=target.isoformat(), strategy=self._strategy)
        if self._strategy == "blind":
            result = await self._navigate_blind(target)
        else:
            result = await self._navigate_directed(target)

        if result.arrived:
            LOGGER.info("navigation.arrived", target=target.isoformat(), steps=result.steps)
        else:
            LOGGER.warning(
                "navigation.not_arrived",
                target=target.isoformat(),
                steps=result.steps,
                displayed=result.displayed,
            )
        return result

    async def _navigate_blind(self, target: date) -> NavigationResult:
        days = (target - self._today()).days
        if days <= 0:
            LOGGER.info("navigation.no_steps_needed", days=days)
            return NavigationResult(arrived=True, steps=0)

        steps = 0
        for index in range(days):
            try:
                await self._surface.step_forward()
            except CourtBookerError as exc:
                LOGGER.warning("navigation.step_failed", step=index + 1, total=days, error=str(exc))
                await self._sleep(self._recovery_pause)
                try:
                    await self._surface.step_forward()
                except CourtBookerError as retry_exc:
                    LOGGER.error("navigation.recovery_failed", step=index + 1, error=str(retry_exc))
                    break
            steps += 1
            if steps % WEEKLY_PAUSE_EVERY == 0:
                await self._sleep(self._weekly_pause)
            else:
                await self._sleep(self._step_pause)

        await self._sleep(self._weekly_pause)
        displayed = await self._read_displayed()
        return NavigationResult(
            arrived=steps == days and matches_target(displayed, target),
            steps=steps,
            displayed=displayed,
        )

    async def _navigate_directed(self, target: date) -> NavigationResult:
        steps = 0
        consecutive_failures = 0
        displayed = ""

        for _ in range(self._max_attempts):
            displayed = await self._read_displayed()
            if matches_target(displayed, target):
                return NavigationResult(arrived=True, steps=steps, displayed=displayed)

            current = parse_displayed_date(displayed)
            forward = current is None or current < target
            try:
                if forward:
                    await self._surface.step_forward()
                else:
                    await self._surface.step_backward()
            except CourtBookerError as exc:
                consecutive_failures += 1
                LOGGER.warning(
                    "navigation.step_failed",
                    direction="forward" if forward else "backward",
                    consecutive=consecutive_failures,
                    error=str(exc),
                )
                if consecutive_failures >= 2:
                    break
                await self._sleep(self._recovery_pause)
                continue

            consecutive_failures = 0
            steps += 1
            await self._sleep(self._step_pause)
        else:
            displayed = await self._read_displayed()
            if matches_target(displayed, target):
                return NavigationResult(arrived=True, steps=steps, displayed=displayed)

        return NavigationResult(arrived=False, steps=steps, displayed=displayed)

    async def _read_displayed(self) -> str:
        try:
            displayed = await self._surface.current_date_text()
        except CourtBookerError as exc:
            LOGGER.warning("navigation.read_failed", error=str(exc))
            return ""
        LOGGER.debug("navigation.displayed", displayed=displayed)
        return displayed
