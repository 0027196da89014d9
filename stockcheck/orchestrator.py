"""One end-to-end stock check: login, search, add to cart, confirm, notify."""

from __future__ import annotations

import asyncio
from dataclasses import dataclass, field
from enum import Enum
from typing import Any, Awaitable, Callable, Optional

import stockcheck.selectors as selectors
from stockcheck.browser import BrowserSession, capture_screenshot, ensure_screenshot_dir, launch_session
from stockcheck.checkout import CheckoutFlow
from stockcheck.config import Settings
from stockcheck.logging_config import get_logger
from stockcheck.notifier import Notifier
from stockcheck.processor import ProcessingResult, RowProcessor
from stockcheck.rows import collect_rows
from stockcheck.selectors import RowSelectors, load_row_selectors

LOGGER = get_logger(__name__)

RESULTS_TIMEOUT_MS = 30000

Launcher = Callable[[Settings], Awaitable[BrowserSession]]
SleepFn = Callable[[float], Awaitable[None]]


class OutcomeKind(str, Enum):
    STOCK_FOUND = "stock-found"
    NO_STOCK = "no-stock"
    ERROR = "error"


@dataclass(frozen=True)
class RunOutcome:
    kind: OutcomeKind
    product: str
    message: str = ""
    added: tuple[str, ...] = field(default_factory=tuple)

    @classmethod
    def error(cls, product: str, message: str, added: tuple[str, ...] = ()) -> "RunOutcome":
        return cls(OutcomeKind.ERROR, product, message, added)

    @property
    def cart_touched(self) -> bool:
        """True when rows reached the cart, even if checkout then failed."""
        return bool(self.added)

    def render(self) -> str:
        """Human-readable notification text."""

        if self.kind is OutcomeKind.STOCK_FOUND:
            lines = [f"✅ Found {self.product} in stock and added to cart!"]
            lines.extend(f"- {label}" for label in self.added)
            lines.append("Order processing initiated.")
            return "\n".join(lines)
        if self.kind is OutcomeKind.NO_STOCK:
            return f"❌ No stock available for {self.product} at this time."
        text = f"⚠️ Stock check for {self.product} failed: {self.message}"
        if self.added:
            text += "\nAlready in cart: " + ", ".join(self.added)
        return text


class StockChecker:
    """Owns the browser session for one run and reports exactly one outcome."""

    def __init__(
        self,
        settings: Settings,
        notifier: Notifier,
        *,
        launcher: Launcher = launch_session,
        sleep: SleepFn = asyncio.sleep,
        row_selectors: Optional[RowSelectors] = None,
    ) -> None:
        self._settings = settings
        self._notifier = notifier
        self._launcher = launcher
        self._sleep = sleep
        self._row_selectors = row_selectors or load_row_selectors(
            settings.row_profile, settings.selectors_file
        )
        self._page: Any | None = None
        self._screenshots = settings.debug
        self.processing: ProcessingResult | None = None
        self.checkout: CheckoutFlow | None = None

    async def run(self) -> RunOutcome:
        product = self._settings.product_name
        LOGGER.info("Starting %s stock check...", product)
        LOGGER.info("Debug mode: %s", "ON" if self._settings.debug else "OFF")
        session: BrowserSession | None = None
        try:
            if self._screenshots:
                self._screenshots = ensure_screenshot_dir(self._settings.screenshots_dir)
            session = await self._launcher(self._settings)
            self._page = session.page
            outcome = await self._check(session.page)
        except Exception as exc:
            LOGGER.exception("Stock check for %s failed", product)
            await self._capture("error")
            added = tuple(row.label for row in self.processing.added) if self.processing else ()
            outcome = RunOutcome.error(product, f"{exc.__class__.__name__}: {exc}", added)
        finally:
            if session is not None:
                await session.close()
            self._page = None
            LOGGER.info("Finished checking stock.")

        self._notifier.send(outcome.render())
        return outcome

    async def _check(self, page: Any) -> RunOutcome:
        product = self._settings.product_name

        await self._login(page)
        await self._search(page)

        rows = await collect_rows(page, self._row_selectors)
        LOGGER.info("Found %d results in the table.", len(rows))

        processor = RowProcessor(self._row_selectors, sleep=self._sleep, capture=self._capture)
        self.processing = await processor.process(rows)

        if not self.processing.found_stock:
            LOGGER.info("No stock available for %s at this time.", product)
            return RunOutcome(OutcomeKind.NO_STOCK, product)

        self.checkout = CheckoutFlow(sleep=self._sleep, capture=self._capture)
        await self.checkout.run(page)

        added = tuple(outcome.label for outcome in self.processing.added)
        LOGGER.info("Found %s in stock and added to cart: %s", product, ", ".join(added))
        return RunOutcome(OutcomeKind.STOCK_FOUND, product, added=added)

    async def _login(self, page: Any) -> None:
        LOGGER.info("Navigating to %s", self._settings.base_url)
        await page.goto(self._settings.base_url)
        await self._capture("homepage")

        await page.click(selectors.LOGIN_ENTRY)
        await page.click(selectors.LOGIN_SINGLE_ACCESS)
        await page.wait_for_load_state("networkidle")
        await self._capture("login-page")

        LOGGER.info("Entering credentials for %s", self._settings.username)
        await page.fill(selectors.LOGIN_USERNAME, self._settings.username)
        await page.fill(selectors.LOGIN_PASSWORD, self._settings.password)
        await page.click(selectors.LOGIN_SUBMIT)
        await page.wait_for_load_state("networkidle")
        await self._capture("dashboard")

    async def _search(self, page: Any) -> None:
        product = self._settings.product_name
        LOGGER.info("Searching for %s...", product)
        await page.fill(selectors.SEARCH_INPUT, product)
        await page.press(selectors.SEARCH_INPUT, "Enter")

        await page.wait_for_selector(selectors.RESULTS_TABLE, timeout=RESULTS_TIMEOUT_MS)
        await self._capture("search-results")

        delay_ms = self._settings.table_load_delay_ms
        if delay_ms > 0:
            LOGGER.info("Waiting an additional %dms to ensure the table fully loads", delay_ms)
            await self._sleep(delay_ms / 1000)

    async def _capture(self, name: str) -> None:
        if not self._screenshots or self._page is None:
            return
        await capture_screenshot(self._page, self._settings.screenshots_dir, name)
