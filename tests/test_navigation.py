"""
Tests for the navigation driver and toolbar date helpers.
"""

import asyncio
from datetime import date

import pytest

from court_booker.navigation import NavigationDriver, matches_target, parse_displayed_date

from fakes import FakeSurface, no_sleep

TODAY = date(2026, 10, 19)


def _driver(surface, **kwargs) -> NavigationDriver:
    return NavigationDriver(surface, sleep=no_sleep, today=lambda: TODAY, **kwargs)


def test_matches_target_accepts_variants():
    target = date(2026, 3, 5)

    assert matches_target("Thursday, March 5, 2026", target)
    assert matches_target("Thu, Mar 5 2026", target)
    assert matches_target("Mar 5", target)
    assert not matches_target("Sunday, March 15, 2026", target)
    assert not matches_target("", target)


def test_parse_displayed_date():
    assert parse_displayed_date("Thursday, March 5, 2026") == date(2026, 3, 5)
    assert parse_displayed_date("Sat, Nov 21st 2026") == date(2026, 11, 21)
    assert parse_displayed_date("Week of March") is None
    assert parse_displayed_date("Feb 30, 2026") is None


def test_directed_steps_forward_to_target():
    surface = FakeSurface(TODAY)
    driver = _driver(surface, strategy="directed")

    result = asyncio.run(driver.navigate(date(2026, 10, 25)))

    assert result.arrived
    assert result.steps == 6
    assert surface.forward_steps == 6
    assert surface.backward_steps == 0
    assert "October 25, 2026" in result.displayed


def test_directed_steps_backward_when_past_target():
    surface = FakeSurface(date(2026, 11, 3))
    driver = _driver(surface, strategy="directed")

    result = asyncio.run(driver.navigate(date(2026, 10, 30)))

    assert result.arrived
    assert surface.backward_steps == 4
    assert surface.forward_steps == 0


def test_directed_defaults_forward_when_toolbar_unparseable():
    surface = FakeSurface(TODAY, display=lambda d: "Loading…" if d < date(2026, 10, 21) else d.strftime("%b %d"))
    driver = _driver(surface, strategy="directed")

    result = asyncio.run(driver.navigate(date(2026, 10, 22)))

    assert result.arrived
    assert surface.forward_steps == 3


def test_directed_gives_up_after_max_attempts():
    surface = FakeSurface(TODAY, display=lambda d: "Court schedule")
    driver = _driver(surface, strategy="directed", max_attempts=90)

    result = asyncio.run(driver.navigate(date(2026, 10, 25)))

    assert not result.arrived
    assert result.steps == 90
    assert surface.forward_steps == 90


def test_directed_aborts_after_two_consecutive_step_failures():
    surface = FakeSurface(TODAY, failing_steps=2)
    driver = _driver(surface, strategy="directed")

    result = asyncio.run(driver.navigate(date(2026, 10, 25)))

    assert not result.arrived
    assert result.steps == 0


def test_directed_recovers_from_single_step_failure():
    surface = FakeSurface(TODAY, failing_steps=1)
    driver = _driver(surface, strategy="directed")

    result = asyncio.run(driver.navigate(date(2026, 10, 21)))

    assert result.arrived
    assert surface.forward_steps == 2


def test_blind_counts_days_from_today():
    surface = FakeSurface(TODAY)
    driver = _driver(surface, strategy="blind")

    result = asyncio.run(driver.navigate(date(2026, 11, 2)))

    assert result.arrived
    assert result.steps == 14
    assert surface.forward_steps == 14


def test_blind_accepts_today_and_past_without_stepping():
    surface = FakeSurface(TODAY)
    driver = _driver(surface, strategy="blind")

    result = asyncio.run(driver.navigate(date(2026, 10, 18)))

    assert result.arrived
    assert result.steps == 0
    assert surface.forward_steps == 0


def test_blind_reports_mismatch_without_raising():
    surface = FakeSurface(date(2026, 10, 20))
    driver = _driver(surface, strategy="blind")

    result = asyncio.run(driver.navigate(date(2026, 10, 22)))

    assert not result.arrived
    assert result.steps == 3
    assert "October 23, 2026" in result.displayed


def test_blind_retries_a_failed_step_after_recovery_pause():
    pauses = []

    async def record(seconds: float) -> None:
        pauses.append(seconds)

    surface = FakeSurface(TODAY, failing_steps=1)
    driver = NavigationDriver(surface, strategy="blind", recovery_pause=2.0, sleep=record, today=lambda: TODAY)

    result = asyncio.run(driver.navigate(date(2026, 10, 21)))

    assert result.arrived
    assert result.steps == 2
    assert surface.forward_steps == 2
    assert pauses[0] == 2.0


def test_blind_stops_when_recovery_step_also_fails():
    surface = FakeSurface(TODAY, failing_steps=2)
    driver = _driver(surface, strategy="blind")

    result = asyncio.run(driver.navigate(date(2026, 10, 21)))

    assert not result.arrived
    assert result.steps == 0
    assert surface.forward_steps == 0
    assert "October 19, 2026" in result.displayed


def test_blind_pauses_longer_every_seven_steps():
    pauses = []

    async def record(seconds: float) -> None:
        pauses.append(seconds)

    surface = FakeSurface(TODAY)
    driver = NavigationDriver(
        surface,
        strategy="blind",
        step_pause=0.25,
        weekly_pause=0.8,
        sleep=record,
        today=lambda: TODAY,
    )

    asyncio.run(driver.navigate(date(2026, 10, 27)))

    assert pauses[:8] == [0.25] * 6 + [0.8, 0.25]


def test_unknown_strategy_rejected():
    with pytest.raises(ValueError):
        NavigationDriver(FakeSurface(TODAY), strategy="teleport")
