"""Order confirmation flow run after at least one row reached the cart."""

from __future__ import annotations

import asyncio
from enum import Enum
from typing import Any, Awaitable, Callable, Optional

from playwright.async_api import TimeoutError as PlaywrightTimeoutError

import stockcheck.selectors as selectors
from stockcheck.errors import CheckoutTimeoutError
from stockcheck.logging_config import get_logger

LOGGER = get_logger(__name__)

# The portal updates its cart and dialogs asynchronously with no observable
# completion signal; these delays were measured against the live site.
CART_PRE_DELAY_S = 5.0
CART_ICON_TIMEOUT_MS = 30000
FIRST_CONFIRM_TIMEOUT_MS = 10000
SECOND_CONFIRM_TIMEOUT_MS = 10000
CONFIRM_SETTLE_S = 5.0

SleepFn = Callable[[float], Awaitable[None]]
CaptureFn = Callable[[str], Awaitable[None]]


class CheckoutStep(str, Enum):
    CART_ICON_VISIBLE = "cart-icon-visible"
    FIRST_CONFIRM_VISIBLE = "first-confirm-visible"
    SECOND_CONFIRM_VISIBLE = "second-confirm-visible"
    DONE = "done"


class CheckoutFlow:
    """Linear state machine: cart icon, first dialog, second dialog, done.

    Each state is entered once, in order. A control that does not appear in
    time raises :class:`CheckoutTimeoutError` and leaves the machine in the
    last state it reached.
    """

    def __init__(
        self,
        *,
        sleep: SleepFn = asyncio.sleep,
        capture: Optional[CaptureFn] = None,
    ) -> None:
        self._sleep = sleep
        self._capture = capture
        self.history: list[CheckoutStep] = []

    @property
    def state(self) -> CheckoutStep | None:
        return self.history[-1] if self.history else None

    async def run(self, page: Any) -> list[CheckoutStep]:
        if self.history:
            raise RuntimeError("CheckoutFlow instances are single-use")

        LOGGER.info("Waiting %.0fs before opening the cart", CART_PRE_DELAY_S)
        await self._sleep(CART_PRE_DELAY_S)

        await self._await_control(
            page, selectors.CART_ICON, CART_ICON_TIMEOUT_MS, CheckoutStep.CART_ICON_VISIBLE
        )
        await page.click(selectors.CART_ICON)
        await self._snapshot("cart-page")

        await self._await_control(
            page,
            selectors.FIRST_CONFIRM_ACCEPT,
            FIRST_CONFIRM_TIMEOUT_MS,
            CheckoutStep.FIRST_CONFIRM_VISIBLE,
        )
        await page.click(selectors.FIRST_CONFIRM_ACCEPT)
        await self._snapshot("after-first-confirm")
        await self._sleep(CONFIRM_SETTLE_S)

        await self._await_control(
            page,
            selectors.SECOND_CONFIRM_ACCEPT,
            SECOND_CONFIRM_TIMEOUT_MS,
            CheckoutStep.SECOND_CONFIRM_VISIBLE,
        )
        await self._sleep(CONFIRM_SETTLE_S)
        await page.click(selectors.SECOND_CONFIRM_ACCEPT)
        await self._snapshot("after-second-confirm")
        await self._sleep(CONFIRM_SETTLE_S)

        self._enter(CheckoutStep.DONE)
        LOGGER.info("Order processing initiated")
        return list(self.history)

    async def _await_control(
        self,
        page: Any,
        selector: str,
        timeout_ms: int,
        step: CheckoutStep,
    ) -> None:
        LOGGER.info("Waiting for %s (%s, timeout=%dms)", step.value, selector, timeout_ms)
        try:
            await page.wait_for_selector(selector, timeout=timeout_ms)
        except PlaywrightTimeoutError as exc:
            raise CheckoutTimeoutError(
                f"Timed out waiting for {step.value}",
                step=step.value,
                selector=selector,
                timeout_ms=timeout_ms,
            ) from exc
        self._enter(step)
        await self._snapshot(step.value)

    def _enter(self, step: CheckoutStep) -> None:
        LOGGER.info("Checkout state -> %s", step.value)
        self.history.append(step)

    async def _snapshot(self, name: str) -> None:
        if self._capture is not None:
            await self._capture(name)
