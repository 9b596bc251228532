"""
Tests for the Playwright session's login step against a scripted page.
"""

import asyncio

import pytest

from court_booker.exceptions import SessionFailure
from court_booker.surface import SELECTORS, CourtReserveSurface


class ScriptedLocator:
    def __init__(self, visible):
        self._visible = visible

    @property
    def first(self):
        return self

    async def is_visible(self):
        return self._visible


class ScriptedPage:
    """Records the login form interactions and lands on ``landing_url``."""

    def __init__(self, landing_url, *, form_still_visible=False):
        self.url = "https://app.courtreserve.com/Online/Portal/Index/1234"
        self._landing_url = landing_url
        self._form_still_visible = form_still_visible
        self.filled = {}

    async def goto(self, url, **kwargs):
        self.url = url

    async def click(self, selector, **kwargs):
        if selector == SELECTORS["continue_btn"]:
            self.url = self._landing_url

    async def wait_for_selector(self, selector, **kwargs):
        return None

    async def fill(self, selector, value):
        self.filled[selector] = value

    async def wait_for_timeout(self, ms):
        return None

    async def wait_for_load_state(self, state, **kwargs):
        return None

    def locator(self, selector):
        return ScriptedLocator(self._form_still_visible and selector == SELECTORS["password"])


def _surface(settings, page):
    surface = CourtReserveSurface(settings)
    surface._page = page
    return surface


def test_login_fills_credentials(settings):
    page = ScriptedPage("https://app.courtreserve.com/Online/Portal/Index/1234")

    asyncio.run(_surface(settings, page)._login())

    assert page.filled[SELECTORS["email"]] == "player@example.com"
    assert page.filled[SELECTORS["password"]] == "secret"


def test_login_still_on_login_page_fails(settings):
    page = ScriptedPage("https://app.courtreserve.com/Online/Account/Login/1234")

    with pytest.raises(SessionFailure, match="Login failed"):
        asyncio.run(_surface(settings, page)._login())


def test_login_form_still_showing_fails(settings):
    page = ScriptedPage("https://app.courtreserve.com/Online/Portal/Index/1234", form_still_visible=True)

    with pytest.raises(SessionFailure, match="Login failed"):
        asyncio.run(_surface(settings, page)._login())
