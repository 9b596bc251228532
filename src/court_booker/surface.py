"""Playwright automation for the CourtReserve booking scheduler."""

from __future__ import annotations

from pathlib import Path
from typing import Any, Optional, Protocol

import structlog
from playwright.async_api import Browser, BrowserContext, Error as PlaywrightError, Locator, Page, async_playwright

from .config import Settings
from .exceptions import ActionFailure, SessionFailure
from .models import DialogButton, SlotCandidate, UnavailableIndicator

LOGGER = structlog.get_logger(__name__)

USER_AGENT = "Mozilla/5.0 (Macintosh; Intel Mac OS X 10_15_7) AppleWebKit/537.36"

SELECTORS = {
    "login_link": 'button:has-text("LOG IN"), a:has-text("LOG IN")',
    "email": 'input[placeholder*="Email"], input[placeholder*="email"]',
    "password": 'input[placeholder*="Password"], input[placeholder*="password"]',
    "continue_btn": 'button:has-text("Continue")',
    "menu": 'a[href="#menu"]',
    "book_menu": 'a:has-text("Book Basketball"), button:has-text("Book Basketball")',
    "full_court": 'a:has-text("Book a Full Court")',
    "nav_next": '.k-scheduler-toolbar .k-nav-next, [data-testid="link-2"], button[aria-label="Next"]',
    "nav_prev": '.k-scheduler-toolbar .k-nav-prev, [data-testid="link-1"], button[aria-label="Previous"]',
    "nav_current": '.k-scheduler-toolbar .k-nav-current, [data-testid="link-0"], .fn-scheduler-toolbar-name',
    "slot_btn": 'a.slot-btn, a.btn-consolidate-slot, [class*="slot-btn"]',
    "none_available": '.not-available-courts-container, [data-testid="noneAvailableBtn"], [class*="not-available"]',
    "open_dialog": '.modal.show, .modal.in, [role="dialog"]:visible, .k-window:visible',
    "primary_dialog_btn": (
        '.modal.show button.btn-primary, .modal.in button.btn-primary, '
        '[role="dialog"] button.btn-primary, .modal button[type="submit"]'
    ),
}

_SCRAPE_CANDIDATES_JS = """(selector) => {
    const records = [];
    document.querySelectorAll(selector).forEach((el, index) => {
        const labelled = el.parentElement ? el.parentElement.closest('[aria-label]') : null;
        const linked = el.parentElement ? el.parentElement.closest('[data-href]') : null;
        const timed = el.closest('[data-time]');
        const attributes = {};
        for (const attr of el.attributes) attributes[attr.name] = attr.value;
        records.push({
            index,
            label: el.getAttribute('aria-label') || '',
            reference: el.getAttribute('data-href') || el.getAttribute('href') || '',
            parent_label: labelled ? labelled.getAttribute('aria-label') || '' : '',
            parent_reference: linked ? linked.getAttribute('data-href') || '' : '',
            parent_compact_time: timed ? timed.getAttribute('data-time') || '' : '',
            text: (el.textContent || '').trim(),
            attributes,
        });
    });
    return records;
}"""

_SCRAPE_INDICATORS_JS = """(selector) => {
    const records = [];
    document.querySelectorAll(selector).forEach((el) => {
        const labelled = el.closest('[aria-label]');
        const timed = el.parentElement ? el.parentElement.closest('[data-time]') : null;
        records.push({
            compact_time: el.getAttribute('data-time') || '',
            parent_label: labelled ? labelled.getAttribute('aria-label') || '' : '',
            parent_compact_time: timed ? timed.getAttribute('data-time') || '' : '',
        });
    });
    return records;
}"""

_SCROLL_HALF_JS = """() => {
    const content = document.querySelector('.k-scheduler-content, .k-scrollbar-v, [class*="scheduler-content"]');
    if (content) content.scrollTop = content.scrollHeight / 2;
    window.scrollTo(0, document.body.scrollHeight / 2);
}"""

_SCROLL_END_JS = """() => {
    document.querySelectorAll('.k-scheduler-content, [role="presentation"]').forEach(s => s.scrollTop = 99999);
    window.scrollTo(0, 99999);
}"""


class SchedulingSurface(Protocol):
    """Capabilities the booking core needs from the remote scheduler."""

    async def current_date_text(self) -> str: ...

    async def step_forward(self) -> None: ...

    async def step_backward(self) -> None: ...

    async def reveal_slots(self) -> None: ...

    async def scrape_slot_candidates(self) -> list[SlotCandidate]: ...

    async def scrape_unavailable_indicators(self) -> list[UnavailableIndicator]: ...

    async def click(self, candidate: SlotCandidate) -> None: ...

    async def capture_diagnostic(self, name: str) -> str: ...

    async def find_visible_button_by_text(self, label: str, *, in_dialog: bool = False) -> Optional[DialogButton]: ...

    async def find_primary_dialog_button(self) -> Optional[DialogButton]: ...

    async def list_buttons_in_open_dialog(self) -> list[DialogButton]: ...

    async def click_button(self, button: DialogButton) -> None: ...


class CourtReserveSurface:
    """A logged-in Playwright session positioned on the full-court scheduler."""

    def __init__(self, settings: Settings):
        self._settings = settings
        self._playwright = None
        self._browser: Optional[Browser] = None
        self._context: Optional[BrowserContext] = None
        self._page: Optional[Page] = None

    async def __aenter__(self) -> "CourtReserveSurface":
        try:
            self._playwright = await async_playwright().start()
            self._browser = await self._playwright.firefox.launch(
                headless=self._settings.headless,
                slow_mo=50 if self._settings.headless else 100,
            )
            self._context = await self._browser.new_context(
                viewport={"width": 1280, "height": 720},
                user_agent=USER_AGENT,
            )
            self._page = await self._context.new_page()
            self._page.set_default_timeout(self._settings.timeout_seconds * 1000)
            self._page.set_default_navigation_timeout(self._settings.navigation_timeout_seconds * 1000)
            await self._login()
            await self._open_scheduler()
        except PlaywrightError as exc:
            await self.close()
            raise SessionFailure(f"Could not open CourtReserve session: {exc}") from exc
        except BaseException:
            await self.close()
            raise
        return self

    async def __aexit__(self, exc_type, exc, tb) -> None:
        await self.close()

    async def close(self) -> None:
        """Release the browser; safe to call more than once."""
        try:
            if self._context:
                await self._context.close()
            if self._browser:
                await self._browser.close()
            if self._playwright:
                await self._playwright.stop()
        except PlaywrightError as exc:
            LOGGER.warning("browser.close_failed", error=str(exc))
        finally:
            if self._browser:
                LOGGER.info("browser.closed")
            self._playwright = None
            self._browser = None
            self._context = None
            self._page = None

    @property
    def page(self) -> Page:
        if not self._page:
            raise SessionFailure("Playwright page has not been initialised")
        return self._page

    async def _login(self) -> None:
        """Log into the CourtReserve member portal."""
        page = self.page
        LOGGER.info("login.start", url=str(self._settings.portal_url))
        await page.goto(str(self._settings.portal_url), wait_until="networkidle")
        await page.click(SELECTORS["login_link"])
        await page.wait_for_selector(SELECTORS["email"], timeout=10_000)

        await page.fill(SELECTORS["email"], self._settings.username)
        await page.fill(SELECTORS["password"], self._settings.password.get_secret_value())
        await page.wait_for_timeout(500)
        await page.click(SELECTORS["continue_btn"])
        await page.wait_for_load_state("networkidle", timeout=15_000)

        # Still looking at the login form after submitting means the credentials were refused.
        if "login" in page.url.lower() or await page.locator(SELECTORS["password"]).first.is_visible():
            LOGGER.error("login.failed", current_url=page.url)
            raise SessionFailure("Login failed - still on login page after submission")

        LOGGER.info("login.complete", redirected_to=page.url)

    async def _open_scheduler(self) -> None:
        """Walk the portal menu to the full-court day view."""
        page = self.page
        await page.goto(str(self._settings.portal_url), wait_until="domcontentloaded")
        await page.wait_for_timeout(1500)
        await page.click(SELECTORS["menu"])
        await page.wait_for_timeout(800)
        await page.click(SELECTORS["book_menu"])
        await page.wait_for_timeout(800)
        await page.click(SELECTORS["full_court"])
        await page.wait_for_timeout(1500)
        LOGGER.info("scheduler.opened", url=page.url)

    async def current_date_text(self) -> str:
        try:
            text = await self.page.locator(SELECTORS["nav_current"]).first.text_content(timeout=5000)
        except PlaywrightError as exc:
            raise SessionFailure(f"Could not read scheduler date: {exc}") from exc
        return (text or "").strip()

    async def step_forward(self) -> None:
        await self._step(SELECTORS["nav_next"])

    async def step_backward(self) -> None:
        await self._step(SELECTORS["nav_prev"])

    async def _step(self, selector: str) -> None:
        try:
            await self.page.locator(selector).first.click(timeout=5000)
        except PlaywrightError as exc:
            raise SessionFailure(f"Scheduler step failed: {exc}") from exc

    async def reveal_slots(self) -> None:
        """Scroll the scheduler so the evening rows are rendered."""
        try:
            await self.page.evaluate(_SCROLL_HALF_JS)
            await self.page.wait_for_timeout(800)
            await self.page.evaluate(_SCROLL_END_JS)
            await self.page.wait_for_timeout(1000)
        except PlaywrightError as exc:
            raise SessionFailure(f"Could not scroll scheduler: {exc}") from exc

    async def scrape_slot_candidates(self) -> list[SlotCandidate]:
        try:
            records = await self.page.evaluate(_SCRAPE_CANDIDATES_JS, SELECTORS["slot_btn"])
        except PlaywrightError as exc:
            raise SessionFailure(f"Could not scrape reserve buttons: {exc}") from exc
        LOGGER.debug("scrape.candidates", count=len(records))
        return [
            SlotCandidate(
                ref=record["index"],
                label=record["label"],
                reference=record["reference"],
                parent_label=record["parent_label"],
                parent_reference=record["parent_reference"],
                parent_compact_time=record["parent_compact_time"],
                text=record["text"],
                attributes=record["attributes"],
            )
            for record in records
        ]

    async def scrape_unavailable_indicators(self) -> list[UnavailableIndicator]:
        try:
            records = await self.page.evaluate(_SCRAPE_INDICATORS_JS, SELECTORS["none_available"])
        except PlaywrightError as exc:
            raise SessionFailure(f"Could not scrape unavailable markers: {exc}") from exc
        LOGGER.debug("scrape.indicators", count=len(records))
        return [UnavailableIndicator(**record) for record in records]

    async def click(self, candidate: SlotCandidate) -> None:
        button = self.page.locator(SELECTORS["slot_btn"]).nth(candidate.ref)
        try:
            await button.scroll_into_view_if_needed()
            await self.page.wait_for_timeout(300)
            await button.click()
            await self.page.wait_for_timeout(2000)
        except PlaywrightError as exc:
            raise ActionFailure(f"Could not click reserve button: {exc}") from exc

    async def capture_diagnostic(self, name: str) -> str:
        directory = Path(self._settings.diagnostics_dir)
        directory.mkdir(parents=True, exist_ok=True)
        path = directory / f"{name}.png"
        try:
            await self.page.screenshot(path=str(path), full_page=True)
        except PlaywrightError as exc:
            raise SessionFailure(f"Screenshot failed: {exc}") from exc
        return str(path)

    async def find_visible_button_by_text(self, label: str, *, in_dialog: bool = False) -> Optional[DialogButton]:
        selector = f'button:has-text("{label}")'
        if in_dialog:
            return await self._first_visible(self.page.locator(SELECTORS["open_dialog"]).locator(selector))
        return await self._first_visible(self.page.locator(selector))

    async def find_primary_dialog_button(self) -> Optional[DialogButton]:
        return await self._first_visible(self.page.locator(SELECTORS["primary_dialog_btn"]))

    async def list_buttons_in_open_dialog(self) -> list[DialogButton]:
        buttons = self.page.locator(SELECTORS["open_dialog"]).locator("button")
        found: list[DialogButton] = []
        try:
            for index in range(await buttons.count()):
                button = buttons.nth(index)
                if await button.is_visible():
                    found.append(DialogButton(text=(await button.inner_text()).strip(), ref=button))
        except PlaywrightError as exc:
            raise SessionFailure(f"Could not inspect dialog buttons: {exc}") from exc
        return found

    async def click_button(self, button: DialogButton) -> None:
        locator: Any = button.ref
        try:
            await locator.click()
            await self.page.wait_for_timeout(2000)
        except PlaywrightError as exc:
            raise ActionFailure(f"Could not click '{button.text}': {exc}") from exc

    async def _first_visible(self, locator: Locator) -> Optional[DialogButton]:
        try:
            for index in range(await locator.count()):
                button = locator.nth(index)
                if await button.is_visible():
                    return DialogButton(text=(await button.inner_text()).strip(), ref=button)
        except PlaywrightError as exc:
            raise SessionFailure(f"Could not inspect buttons: {exc}") from exc
        return None
