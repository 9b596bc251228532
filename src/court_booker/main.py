"""Entry point for the court booker."""

from __future__ import annotations

import argparse
import asyncio
import logging
import sys
from typing import Optional

import structlog

from .bot import CourtBot
from .config import Settings
from .models import AvailabilityStatus, BookingStatus
from .orchestrator import BookingOrchestrator
from .telegram import TelegramTransport


def configure_logging(level: int = logging.INFO) -> None:
    """Configure structlog + stdlib logging."""
    logging.basicConfig(
        level=level,
        format="%(message)s",
        stream=sys.stdout,
    )
    structlog.configure(
        processors=[
            structlog.stdlib.filter_by_level,
            structlog.processors.TimeStamper(fmt="iso"),
            structlog.processors.add_log_level,
            structlog.processors.format_exc_info,
            structlog.processors.KeyValueRenderer(key_order=["timestamp", "level", "event"]),
        ],
        logger_factory=structlog.stdlib.LoggerFactory(),
        cache_logger_on_first_use=True,
    )


LOGGER = structlog.get_logger(__name__)


def parse_args(argv: Optional[list[str]] = None) -> argparse.Namespace:
    """CLI argument parsing."""
    parser = argparse.ArgumentParser(description="Check and book CourtReserve basketball courts.")
    parser.add_argument("--debug", action="store_true", help="Enable debug logging.")
    subparsers = parser.add_subparsers(dest="command", required=True)

    check = subparsers.add_parser("check", help="Check whether a slot is open.")
    check.add_argument("date", help="Short date, e.g. 2/24")
    check.add_argument("time", help="Time range, e.g. 9-11p")

    book = subparsers.add_parser("book", help="Reserve a slot.")
    book.add_argument("date", help="Short date, e.g. 2/24")
    book.add_argument("time", help="Time range, e.g. 9-11p")
    book.add_argument("--court", default=None, help="Court name for the log and reply.")

    subparsers.add_parser("run", help="Run the Telegram group bot.")
    return parser.parse_args(argv)


async def run_check(settings: Settings, date_text: str, time_text: str) -> int:
    outcome = await BookingOrchestrator(settings).check_availability(date_text, time_text)
    LOGGER.info(
        "cli.check_result",
        status=outcome.status.value,
        label=outcome.label,
        message=outcome.message,
        screenshot=outcome.screenshot,
    )
    print(f"{outcome.status.value}: {outcome.label or ''} {outcome.message or ''}".strip())
    return 1 if outcome.status in (AvailabilityStatus.ERROR, AvailabilityStatus.INVALID_INPUT) else 0


async def run_book(settings: Settings, date_text: str, time_text: str, court: Optional[str]) -> int:
    outcome = await BookingOrchestrator(settings).book_court(date_text, time_text, court)
    LOGGER.info(
        "cli.book_result",
        status=outcome.status.value,
        label=outcome.label,
        message=outcome.message,
        verification=getattr(outcome.verification, "value", None),
        diagnostics=outcome.diagnostics,
    )
    print(f"{outcome.status.value}: {outcome.message or outcome.label or ''}".strip())
    return 0 if outcome.status is BookingStatus.BOOKED else 1


async def run_bot(settings: Settings, transport: TelegramTransport) -> int:
    bot = CourtBot(settings, BookingOrchestrator(settings), transport)
    await bot.run(transport)
    return 0


def cli(argv: Optional[list[str]] = None) -> None:
    """Console script entrypoint."""
    args = parse_args(argv)
    configure_logging(logging.DEBUG if args.debug else logging.INFO)

    try:
        settings = Settings()
    except Exception as exc:  # pragma: no cover - startup validation
        LOGGER.exception("settings.error", error=str(exc))
        raise SystemExit(2) from exc

    if args.command == "check":
        coroutine = run_check(settings, args.date, args.time)
    elif args.command == "book":
        coroutine = run_book(settings, args.date, args.time, args.court)
    else:
        try:
            transport = TelegramTransport(settings)
        except ValueError as exc:
            LOGGER.error("settings.error", error=str(exc))
            raise SystemExit(2) from exc
        coroutine = run_bot(settings, transport)

    try:
        code = asyncio.run(coroutine)
    except KeyboardInterrupt:  # pragma: no cover - interactive stop
        LOGGER.info("cli.interrupted")
        code = 0
    except Exception as exc:  # pragma: no cover - top level
        LOGGER.exception("cli.failed", error=str(exc))
        raise SystemExit(1) from exc
    raise SystemExit(code)


if __name__ == "__main__":  # pragma: no cover
    cli()
