"""
Tests for chat message parsing.
"""

from court_booker import commands


ANNOUNCEMENT = """🚨 2/24 Tue 9-11p [Fmt Procourt]
10/12
Alice
Bob
Carol

Waitlist:
Dave
"""


def test_parse_full_announcement():
    message = commands.parse_game_message(ANNOUNCEMENT)

    assert message.game == commands.GameInfo(
        date="2/24",
        day_of_week="Tue",
        time="9-11p",
        court_name="Fmt Procourt",
    )
    assert message.players == ["Alice", "Bob", "Carol"]
    assert message.waitlist == ["Dave"]
    assert message.count_line == "10/12"
    assert message.player_count == 3


def test_announcement_falls_back_to_first_line():
    game = commands.parse_game_announcement("🚨 Run on 3/5 from 7-9p!\nAlice")

    assert game.date == "3/5"
    assert game.time == "7-9p"
    assert game.day_of_week is None
    assert game.court_name is None


def test_announcement_without_time_is_ignored():
    assert commands.parse_game_message("🚨 hoops this week?") is None


def test_check_command():
    assert commands.is_check_command("  !CHECK 2/24 9-11p")
    assert commands.parse_check_command("!check 2/24 9-11p") == commands.CheckCommand(date="2/24", time="9-11p")
    assert commands.parse_check_command("!check 2/24 11a-1p").time == "11a-1p"
    assert commands.parse_check_command("!check tomorrow") is None


def test_commitments_and_cancellations():
    assert commands.is_commitment("I'm in")
    assert commands.is_commitment("+1")
    assert commands.is_commitment("count me in 🏀")
    assert not commands.is_commitment("maybe later")

    assert commands.is_cancellation("sorry, can't make it")
    assert commands.is_cancellation("-1")
    assert not commands.is_cancellation("see you there")


def test_booking_confirmation_respects_admins():
    assert commands.is_booking_confirmation("BOOK IT!", "42", [])
    assert commands.is_booking_confirmation("ok go ahead", "42", ["42"])
    assert not commands.is_booking_confirmation("book it", "7", ["42"])
    assert not commands.is_booking_confirmation("nice game", "42", ["42"])
