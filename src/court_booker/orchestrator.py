"""Sequences navigation, slot matching, clicking and confirmation against the scheduler."""

from __future__ import annotations

import asyncio
import re
from datetime import date
from typing import AsyncContextManager, Awaitable, Callable, Optional, TypeVar

import structlog
from tenacity import AsyncRetrying, retry_if_exception_type, stop_after_attempt, wait_fixed

from .config import Settings
from .exceptions import RETRYABLE_ERRORS, CourtBookerError, NavigationFailure, ParseFailure, SessionFailure
from .matching import MatchData, build_match_data, classify_slot
from .models import (
    AvailabilityOutcome,
    AvailabilityStatus,
    BookingOutcome,
    BookingStatus,
    DialogButton,
    SlotStatus,
    SlotVerdict,
    TimeRange,
)
from .navigation import NavigationDriver
from .surface import CourtReserveSurface, SchedulingSurface
from .time_range import TIME_FORMAT_HINT, parse_time_range, resolve_date

LOGGER = structlog.get_logger(__name__)

# "Book" and "Reserve" also label page buttons, so they only count inside the open dialog.
CONFIRM_LABELS = (
    ("Confirm", False),
    ("Complete Reservation", False),
    ("Submit", False),
    ("Book", True),
    ("Reserve", True),
)
AFFIRMATIVE_WORDS = ("confirm", "submit", "book", "reserve", "complete", "ok", "yes")
DATE_FORMAT_HINT = "Use format like: 2/24"

SessionFactory = Callable[[], AsyncContextManager[SchedulingSurface]]
Diagnostics = dict[str, str]
T = TypeVar("T")


class BookingOrchestrator:
    """Runs availability checks and bookings, one at a time, with session-level retry."""

    def __init__(
        self,
        settings: Settings,
        *,
        session_factory: Optional[SessionFactory] = None,
        sleep: Callable[[float], Awaitable[None]] = asyncio.sleep,
        today: Optional[Callable[[], date]] = None,
        retry_wait_seconds: float = 1.0,
    ):
        self._settings = settings
        self._session_factory = session_factory or (lambda: CourtReserveSurface(settings))
        self._sleep = sleep
        self._today = today or date.today
        self._retry_wait_seconds = retry_wait_seconds
        self._lock = asyncio.Lock()

    async def check_availability(self, date_text: str, time_text: str) -> AvailabilityOutcome:
        """Report whether the start hour of ``time_text`` on ``date_text`` is open."""
        try:
            target, time_range = self._parse(date_text, time_text)
        except ParseFailure as exc:
            return AvailabilityOutcome(status=AvailabilityStatus.INVALID_INPUT, message=str(exc))

        match = build_match_data(time_range)
        diagnostics: Diagnostics = {}
        LOGGER.info("availability.start", target=target.isoformat(), label=match.label)

        async def attempt(surface: SchedulingSurface) -> AvailabilityOutcome:
            return await self._check_once(surface, target, match, diagnostics)

        try:
            return await self._run_attempts("availability-check", attempt, diagnostics)
        except CourtBookerError as exc:
            LOGGER.error("availability.failed", label=match.label, error=str(exc))
            return AvailabilityOutcome(
                status=AvailabilityStatus.ERROR,
                label=match.label,
                message=str(exc),
                diagnostics=diagnostics,
            )

    async def book_court(
        self,
        date_text: str,
        time_text: str,
        court_name: Optional[str] = None,
    ) -> BookingOutcome:
        """Reserve the start hour of ``time_text`` on ``date_text``."""
        try:
            target, time_range = self._parse(date_text, time_text)
        except ParseFailure as exc:
            return BookingOutcome(status=BookingStatus.INVALID_INPUT, message=str(exc))

        match = build_match_data(time_range)
        diagnostics: Diagnostics = {}
        LOGGER.info(
            "booking.start",
            target=target.isoformat(),
            start=time_range.start_display,
            end=time_range.end_display,
            court=court_name,
        )

        async def attempt(surface: SchedulingSurface) -> BookingOutcome:
            return await self._book_once(surface, target, match, diagnostics)

        try:
            return await self._run_attempts("booking", attempt, diagnostics)
        except CourtBookerError as exc:
            LOGGER.error("booking.failed", label=match.label, error=str(exc))
            return BookingOutcome(
                status=BookingStatus.FAILED,
                label=match.label,
                message=str(exc),
                diagnostics=diagnostics,
            )

    def _parse(self, date_text: str, time_text: str) -> tuple[date, TimeRange]:
        target = resolve_date(date_text, self._today())
        if target is None:
            raise ParseFailure(f"Could not parse date: {date_text}\n\n{DATE_FORMAT_HINT}")
        time_range = parse_time_range(time_text)
        if time_range is None:
            raise ParseFailure(f"Could not parse time: {time_text}\n\n{TIME_FORMAT_HINT}")
        return target, time_range

    async def _run_attempts(
        self,
        operation: str,
        attempt_fn: Callable[[SchedulingSurface], Awaitable[T]],
        diagnostics: Diagnostics,
    ) -> T:
        """Run ``attempt_fn`` in a fresh session per attempt, holding the session gate.

        ``diagnostics`` is emptied before each attempt, so a failure capture
        only survives when that attempt's failure is the final one.
        """
        async with self._lock:
            async for attempt in AsyncRetrying(
                stop=stop_after_attempt(self._settings.max_attempts),
                retry=retry_if_exception_type(RETRYABLE_ERRORS),
                wait=wait_fixed(self._retry_wait_seconds),
                sleep=self._sleep,
                reraise=True,
            ):
                with attempt:
                    diagnostics.clear()
                    number = attempt.retry_state.attempt_number
                    if number > 1:
                        LOGGER.info(f"{operation}.retry", attempt=number, max_attempts=self._settings.max_attempts)
                    try:
                        async with self._session_factory() as surface:
                            try:
                                return await attempt_fn(surface)
                            except Exception as exc:
                                LOGGER.warning(f"{operation}.attempt_failed", attempt=number, error=str(exc))
                                await self._capture(surface, f"{operation}-error", diagnostics, key="failure")
                                raise
                    except CourtBookerError:
                        raise
                    except Exception as exc:
                        raise SessionFailure(f"Unexpected {operation} failure: {exc}") from exc
        raise SessionFailure(f"{operation} made no attempts")  # safety net

    async def _check_once(
        self,
        surface: SchedulingSurface,
        target: date,
        match: MatchData,
        diagnostics: Diagnostics,
    ) -> AvailabilityOutcome:
        await self._navigate(surface, target)
        verdict = await self._classify(surface, match)
        await self._capture(surface, "availability-check", diagnostics, key="availability")
        LOGGER.info("availability.result", label=match.label, status=verdict.status.value)
        return AvailabilityOutcome(
            status=AvailabilityStatus(verdict.status.value),
            label=match.label,
            diagnostics=diagnostics,
        )

    async def _book_once(
        self,
        surface: SchedulingSurface,
        target: date,
        match: MatchData,
        diagnostics: Diagnostics,
    ) -> BookingOutcome:
        await self._navigate(surface, target)
        verdict = await self._classify(surface, match)

        if verdict.status is SlotStatus.UNAVAILABLE:
            await self._capture(surface, "slot-already-booked", diagnostics, key="failure")
            return BookingOutcome(
                status=BookingStatus.ALREADY_BOOKED,
                label=match.label,
                message=f"The {match.label} slot is already fully booked",
                diagnostics=diagnostics,
            )
        if verdict.status is SlotStatus.UNKNOWN or verdict.candidate is None:
            await self._capture(surface, "time-slot-not-found", diagnostics, key="failure")
            return BookingOutcome(
                status=BookingStatus.NOT_FOUND,
                label=match.label,
                message=f"Could not find time slot: {match.label}",
                diagnostics=diagnostics,
            )

        LOGGER.info("booking.click_slot", label=match.label, channel=verdict.channel)
        await surface.click(verdict.candidate)
        await self._capture(surface, "step-timeslot", diagnostics)

        await self._sleep(self._settings.settle_seconds)
        button = await self._confirm(surface)
        await self._capture(surface, "step-confirmation", diagnostics, key="confirmation")

        if button is None:
            LOGGER.warning("booking.confirmation_missing", label=match.label)
            return BookingOutcome(
                status=BookingStatus.UNCERTAIN,
                label=match.label,
                message="Could not find confirmation button",
                diagnostics=diagnostics,
            )

        verification = await self._verify(surface, match, diagnostics)
        LOGGER.info("booking.complete", label=match.label, verification=getattr(verification, "value", None))
        return BookingOutcome(
            status=BookingStatus.BOOKED,
            label=match.label,
            diagnostics=diagnostics,
            verification=verification,
        )

    async def _navigate(self, surface: SchedulingSurface, target: date) -> None:
        driver = NavigationDriver(
            surface,
            strategy=self._settings.navigation_strategy,
            max_attempts=self._settings.max_navigation_attempts,
            step_pause=self._settings.step_pause_seconds,
            sleep=self._sleep,
            today=self._today,
        )
        result = await driver.navigate(target)
        if not result.arrived and self._settings.strict_navigation:
            raise NavigationFailure(
                f"Scheduler shows '{result.displayed}' instead of {target:%B} {target.day}, {target.year}"
            )

    async def _classify(self, surface: SchedulingSurface, match: MatchData) -> SlotVerdict:
        await surface.reveal_slots()
        indicators = await surface.scrape_unavailable_indicators()
        candidates = await surface.scrape_slot_candidates()
        LOGGER.info(
            "slot.scraped",
            label=match.label,
            candidates=len(candidates),
            indicators=len(indicators),
        )
        return classify_slot(candidates, indicators, match)

    async def _confirm(self, surface: SchedulingSurface) -> Optional[DialogButton]:
        """Click the first plausible confirm button; ``None`` if nothing looked like one."""
        for label, in_dialog in CONFIRM_LABELS:
            button = await surface.find_visible_button_by_text(label, in_dialog=in_dialog)
            if button:
                return await self._press(surface, button, reason=f"label:{label}")

        button = await surface.find_primary_dialog_button()
        if button:
            return await self._press(surface, button, reason="primary")

        for button in await surface.list_buttons_in_open_dialog():
            text = button.text.lower()
            if any(re.search(rf"\b{word}\b", text) for word in AFFIRMATIVE_WORDS):
                return await self._press(surface, button, reason="dialog_scan")
        return None

    async def _press(self, surface: SchedulingSurface, button: DialogButton, *, reason: str) -> DialogButton:
        LOGGER.info("booking.confirm_click", text=button.text, matched_by=reason)
        await surface.click_button(button)
        return button

    async def _verify(
        self,
        surface: SchedulingSurface,
        match: MatchData,
        diagnostics: Diagnostics,
    ) -> Optional[SlotStatus]:
        """Re-read the slot after confirming; never fails the booking."""
        try:
            await self._sleep(self._settings.settle_seconds)
            verdict = await self._classify(surface, match)
        except Exception as exc:  # noqa: BLE001
            LOGGER.warning("booking.verify_failed", label=match.label, error=str(exc))
            return None
        await self._capture(surface, "calendar", diagnostics)
        return verdict.status

    async def _capture(
        self,
        surface: SchedulingSurface,
        name: str,
        diagnostics: Diagnostics,
        *,
        key: Optional[str] = None,
    ) -> Optional[str]:
        try:
            handle = await surface.capture_diagnostic(name)
        except Exception as exc:  # noqa: BLE001
            LOGGER.warning("diagnostic.capture_failed", name=name, error=str(exc))
            return None
        diagnostics[key or name] = handle
        return handle
