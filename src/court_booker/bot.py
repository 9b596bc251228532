"""Group chat bot: turns chat messages into checks and bookings and reports back."""

from __future__ import annotations

import asyncio

import httpx
import structlog

from . import commands
from .config import Settings
from .models import AvailabilityOutcome, AvailabilityStatus, BookingOutcome, BookingStatus
from .orchestrator import BookingOrchestrator
from .telegram import InboundMessage, TelegramTransport, Transport
from .tracker import Game, GameTracker

LOGGER = structlog.get_logger(__name__)


def format_availability(date: str, time: str, outcome: AvailabilityOutcome) -> str:
    """Build the chat reply for a ``!check`` result."""
    if outcome.status is AvailabilityStatus.AVAILABLE:
        return (
            f"✅ COURT AVAILABLE! 🏀\n\n📅 {date}\n🕐 {time}\n\n"
            f"The {outcome.label} slot is open! Reply \"BOOK IT\" to reserve."
        )
    if outcome.status is AvailabilityStatus.UNAVAILABLE:
        return (
            f"❌ COURT UNAVAILABLE 😬\n\n📅 {date}\n🕐 {time}\n\n"
            f"The {outcome.label} slot is already fully booked."
        )
    if outcome.status is AvailabilityStatus.INVALID_INPUT:
        return f"⚠️ {outcome.message}"
    if outcome.status is AvailabilityStatus.ERROR:
        return f"❌ Error checking availability. Please check manually.\n\nError: {outcome.message}"
    return f"⚠️ Could not determine availability for {date} at {time}.\n\nPlease check manually."


def format_booking(game: Game, outcome: BookingOutcome) -> str:
    """Build the chat reply for a booking attempt."""
    court = game.court_name or "Court"
    if outcome.success:
        return f"✅ COURT BOOKED! 🏀\n\n📅 {game.date} at {game.time}\n🏢 {court}\n\nSee you on the court!"
    if outcome.already_booked:
        return (
            f"⚠️ COURT UNAVAILABLE! 😬\n\n"
            f"The {game.time} slot on {game.date} is already fully booked.\n\n"
            f"❌ Please check for another time or date."
        )
    if outcome.status is BookingStatus.UNCERTAIN:
        return (
            f"⚠️ Booking may not have completed. Please check the reservation manually.\n\n"
            f"📅 {game.date} at {game.time}\n🏢 {court}\n\n"
            f"Reason: {outcome.message}"
        )
    return (
        f"❌ Booking failed. Please book manually.\n\n"
        f"📅 {game.date} at {game.time}\n🏢 {court}\n\n"
        f"Reason: {outcome.message or 'Unknown error'}"
    )


def format_threshold_alert(game: Game) -> str:
    roster = "\n".join(f"{index}. {name}" for index, name in enumerate(game.players, start=1))
    return (
        f"🏀 COURT BOOKING READY! 🏀\n\n"
        f"We have {game.player_count} players committed for:\n"
        f"📅 {game.date}\n"
        f"🕐 {game.time}\n"
        f"🏢 {game.court_name or 'Court TBD'}\n\n"
        f"Current players:\n{roster}\n\n"
        f"⚠️ READY TO BOOK! Reply with \"BOOK IT\" to confirm the reservation."
    )


class CourtBot:
    """Dispatches inbound chat messages."""

    def __init__(
        self,
        settings: Settings,
        orchestrator: BookingOrchestrator,
        transport: Transport,
        tracker: GameTracker | None = None,
    ):
        self._settings = settings
        self._orchestrator = orchestrator
        self._transport = transport
        self._tracker = tracker or GameTracker(settings.player_threshold)

    @property
    def tracker(self) -> GameTracker:
        return self._tracker

    async def handle(self, message: InboundMessage) -> None:
        LOGGER.info("bot.message", sender=message.sender_name, preview=message.text[:50])
        text = message.text

        if commands.is_game_announcement(text):
            await self.handle_announcement(message)
        elif commands.is_check_command(text):
            await self.handle_check(text)
        elif commands.is_booking_confirmation(text, message.sender, self._settings.admin_id_list):
            await self.handle_booking_confirmation()
        elif commands.is_commitment(text):
            LOGGER.info("bot.commitment", sender=message.sender_name)
        elif commands.is_cancellation(text):
            LOGGER.info("bot.cancellation", sender=message.sender_name)

    async def handle_announcement(self, message: InboundMessage) -> None:
        parsed = commands.parse_game_message(message.text)
        if not parsed:
            LOGGER.warning("bot.announcement_unparsed", preview=message.text[:50])
            return

        game = self._tracker.record(parsed, announcement_id=message.id)
        if self._tracker.needs_alert(game):
            LOGGER.info("bot.threshold_reached", game_id=game.game_id, players=game.player_count)
            await self._transport.send_text(format_threshold_alert(game))
            self._tracker.mark_alerted(game)

    async def handle_check(self, text: str) -> None:
        command = commands.parse_check_command(text)
        if not command:
            await self._transport.send_text(commands.CHECK_FORMAT_HINT)
            return

        await self._transport.send_text(f"🔍 Checking availability for {command.date} at {command.time}...")
        outcome = await self._orchestrator.check_availability(command.date, command.time)
        await self._transport.send_text(format_availability(command.date, command.time, outcome))
        if outcome.screenshot:
            await self._send_image(outcome.screenshot, f"📅 Court availability for {command.date} at {command.time}")

    async def handle_booking_confirmation(self) -> None:
        self._tracker.prune()
        pending = self._tracker.pending_games()
        if not pending:
            await self._transport.send_text("⚠️ No games are ready for booking right now.")
            return

        game = pending[0]
        await self._transport.send_text("🔄 Processing your booking request...")
        self._tracker.confirm(game)
        outcome = await self._orchestrator.book_court(game.date, game.time, game.court_name)
        if outcome.success:
            self._tracker.mark_booked(game)
        elif outcome.status is BookingStatus.FAILED:
            # Every attempt errored before confirming, so the game can be retried.
            self._tracker.reopen(game)
        await self._transport.send_text(format_booking(game, outcome))

        if outcome.success:
            if "confirmation" in outcome.diagnostics:
                await self._send_image(outcome.diagnostics["confirmation"], "📋 Booking confirmation")
            if "calendar" in outcome.diagnostics:
                await self._send_image(outcome.diagnostics["calendar"], "📅 Court calendar - your slot is booked!")
        elif outcome.already_booked and "failure" in outcome.diagnostics:
            await self._send_image(outcome.diagnostics["failure"], "📅 Court calendar - this slot is full!")
        elif "failure" in outcome.diagnostics:
            await self._send_image(outcome.diagnostics["failure"], "❌ Screenshot at point of failure")
        elif "confirmation" in outcome.diagnostics:
            await self._send_image(
                outcome.diagnostics["confirmation"],
                "⚠️ Screenshot - please check if booking completed",
            )

    async def _send_image(self, path: str, caption: str) -> None:
        try:
            await self._transport.send_image(path, caption)
        except Exception as exc:  # noqa: BLE001
            LOGGER.warning("bot.image_failed", path=path, error=str(exc))

    async def run(self, transport: TelegramTransport, poll_timeout: int = 30) -> None:
        """Poll Telegram forever, handling one message at a time."""
        LOGGER.info(
            "bot.start",
            threshold=self._tracker.threshold,
            chat_id=self._settings.telegram_chat_id,
            admins=len(self._settings.admin_id_list),
        )
        while True:
            try:
                messages = await transport.fetch_updates(timeout=poll_timeout)
            except (httpx.HTTPError, RuntimeError) as exc:
                LOGGER.warning("bot.poll_failed", error=str(exc))
                await asyncio.sleep(5)
                continue
            for message in messages:
                try:
                    await self.handle(message)
                except Exception as exc:  # noqa: BLE001
                    LOGGER.exception("bot.handle_failed", error=str(exc))
