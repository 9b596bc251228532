"""In-memory record of announced games and who committed to them."""

from __future__ import annotations

from dataclasses import dataclass, field
from datetime import datetime, timedelta
from typing import Callable, Optional

import structlog

from .commands import GameMessage
from .time_range import resolve_date

LOGGER = structlog.get_logger(__name__)

STALE_AFTER = timedelta(days=7)


@dataclass
class Game:
    game_id: str
    date: str
    time: str
    created_at: datetime
    court_name: Optional[str] = None
    announcement_id: Optional[str] = None
    players: list[str] = field(default_factory=list)
    waitlist: list[str] = field(default_factory=list)
    confirmed: bool = False
    booked: bool = False

    @property
    def player_count(self) -> int:
        return len(self.players)


class GameTracker:
    """Tracks games by date and time and decides when to raise the booking alert.

    A game leaves the booking queue once a booking has been confirmed for it
    (``confirm``), and only returns when that booking failed outright
    (``reopen``). Unconfirmed games are dropped by ``prune`` when their day
    has passed or they have waited longer than ``stale_after``.
    """

    def __init__(
        self,
        threshold: int,
        *,
        stale_after: timedelta = STALE_AFTER,
        now: Callable[[], datetime] = datetime.now,
    ):
        self.threshold = threshold
        self._stale_after = stale_after
        self._now = now
        self._games: dict[str, Game] = {}
        self._alerted: set[str] = set()

    @staticmethod
    def key_for(date: str, time: str) -> str:
        return f"{date} {time.replace(' ', '').lower()}"

    def record(self, message: GameMessage, announcement_id: Optional[str] = None) -> Game:
        """Merge an announcement's roster into the tracked game."""
        info = message.game
        game_id = self.key_for(info.date, info.time)
        game = self._games.get(game_id)
        if game is None:
            game = Game(game_id=game_id, date=info.date, time=info.time, created_at=self._now())
            self._games[game_id] = game
        game.court_name = info.court_name or game.court_name
        game.announcement_id = announcement_id or game.announcement_id

        for name in message.players:
            if name not in game.players:
                game.players.append(name)
        for name in message.waitlist:
            if name not in game.waitlist and name not in game.players:
                game.waitlist.append(name)

        LOGGER.info(
            "tracker.game_updated",
            game_id=game_id,
            players=game.player_count,
            waitlist=len(game.waitlist),
            threshold=self.threshold,
        )
        return game

    def needs_alert(self, game: Game) -> bool:
        return game.player_count >= self.threshold and game.game_id not in self._alerted

    def mark_alerted(self, game: Game) -> None:
        self._alerted.add(game.game_id)

    def pending_games(self) -> list[Game]:
        """Games that reached the threshold and have no booking confirmed, oldest first."""
        return [
            game
            for game in self._games.values()
            if not game.confirmed and game.player_count >= self.threshold
        ]

    def confirm(self, game: Game) -> None:
        game.confirmed = True
        LOGGER.info("tracker.booking_confirmed", game_id=game.game_id)

    def reopen(self, game: Game) -> None:
        game.confirmed = False
        LOGGER.info("tracker.game_reopened", game_id=game.game_id)

    def mark_booked(self, game: Game) -> None:
        game.confirmed = True
        game.booked = True
        LOGGER.info("tracker.game_booked", game_id=game.game_id)

    def prune(self) -> list[Game]:
        """Drop unconfirmed games whose day has passed or that have gone stale."""
        now = self._now()
        stale = [
            game
            for game in self._games.values()
            if not game.confirmed and self._is_stale(game, now)
        ]
        for game in stale:
            del self._games[game.game_id]
            self._alerted.discard(game.game_id)
        if stale:
            LOGGER.info("tracker.pruned", games=[game.game_id for game in stale])
        return stale

    def _is_stale(self, game: Game, now: datetime) -> bool:
        if now - game.created_at > self._stale_after:
            return True
        played_on = resolve_date(game.date, game.created_at.date())
        return played_on is not None and played_on < now.date()
