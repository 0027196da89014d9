"""Walk the results table and add in-stock rows to the cart."""

from __future__ import annotations

import asyncio
from dataclasses import dataclass, field
from enum import Enum
from typing import Awaitable, Callable, Iterable, Optional

from tenacity import AsyncRetrying, RetryCallState, stop_after_attempt, wait_fixed

from stockcheck.logging_config import get_logger
from stockcheck.rows import Control, ResultRow
from stockcheck.selectors import RowSelectors
from stockcheck.stock import evaluate_stock

LOGGER = get_logger(__name__)

ORDER_QUANTITY = "1"
ADD_MAX_ATTEMPTS = 3
ADD_RETRY_BACKOFF_S = 2.0
ADD_SETTLE_S = 1.0

SleepFn = Callable[[float], Awaitable[None]]
CaptureFn = Callable[[str], Awaitable[None]]


class RowStatus(str, Enum):
    NO_STOCK = "no-stock"
    SKIPPED_NO_QUANTITY = "skipped-no-quantity"
    SKIPPED_QUANTITY_DISABLED = "skipped-quantity-disabled"
    SKIPPED_NO_ADD_BUTTON = "skipped-no-add-button"
    SKIPPED_ADD_DISABLED = "skipped-add-disabled"
    ADDED = "added"
    ADD_FAILED = "add-failed"
    ERROR = "error"


@dataclass
class RowOutcome:
    index: int
    name: str
    code: str
    status: RowStatus
    attempts: int = 0
    reason: str = ""

    @property
    def label(self) -> str:
        return f"{self.name} [{self.code}]" if self.code else self.name


@dataclass
class ProcessingResult:
    outcomes: list[RowOutcome] = field(default_factory=list)

    @property
    def found_stock(self) -> bool:
        return any(outcome.status is RowStatus.ADDED for outcome in self.outcomes)

    @property
    def added(self) -> list[RowOutcome]:
        return [outcome for outcome in self.outcomes if outcome.status is RowStatus.ADDED]


def first_line(text: Optional[str]) -> str:
    """Return the first non-empty line of *text*, trimmed."""

    if not text:
        return ""
    for line in text.splitlines():
        stripped = line.strip()
        if stripped:
            return stripped
    return ""


class RowProcessor:
    """Evaluates rows one at a time and adds the purchasable ones to the cart."""

    def __init__(
        self,
        selectors: RowSelectors,
        *,
        sleep: SleepFn = asyncio.sleep,
        capture: Optional[CaptureFn] = None,
    ) -> None:
        self._selectors = selectors
        self._sleep = sleep
        self._capture = capture

    async def process(self, rows: Iterable[ResultRow]) -> ProcessingResult:
        result = ProcessingResult()
        for index, row in enumerate(rows, start=1):
            name, code = f"row {index}", ""
            try:
                name, code = await self._identify(row, index)
                outcome = await self._process_row(row, index, name, code)
            except Exception as exc:
                LOGGER.exception("Row %d (%s) failed; continuing with the next row", index, name)
                outcome = RowOutcome(index, name, code, RowStatus.ERROR, reason=str(exc))
            result.outcomes.append(outcome)

        LOGGER.info(
            "Processed %d rows | added=%d | found_stock=%s",
            len(result.outcomes),
            len(result.added),
            result.found_stock,
        )
        return result

    async def _identify(self, row: ResultRow, index: int) -> tuple[str, str]:
        placeholder = f"row {index}"
        try:
            name = first_line(await row.read_text(self._selectors.name_cell)) or placeholder
        except Exception as exc:
            LOGGER.debug("Could not read name of row %d: %s", index, exc)
            name = placeholder
        try:
            code = first_line(await row.read_text(self._selectors.code_cell))
        except Exception as exc:
            LOGGER.debug("Could not read code of row %d: %s", index, exc)
            code = ""
        return name, code

    async def _process_row(self, row: ResultRow, index: int, name: str, code: str) -> RowOutcome:
        outcome = RowOutcome(index, name, code, RowStatus.NO_STOCK)

        decision = await evaluate_stock(row, self._selectors)
        outcome.reason = decision.reason
        if not decision.in_stock:
            LOGGER.info("No stock for %s: %s", outcome.label, decision.reason)
            return outcome
        LOGGER.info("Stock detected for %s: %s", outcome.label, decision.reason)

        quantity = await row.find_control(self._selectors.quantity_input)
        if quantity is None:
            LOGGER.warning("Skipping %s: quantity input not found", outcome.label)
            outcome.status = RowStatus.SKIPPED_NO_QUANTITY
            return outcome
        if await quantity.is_disabled():
            LOGGER.warning(
                "Skipping %s: stock reported but quantity input is disabled",
                outcome.label,
            )
            outcome.status = RowStatus.SKIPPED_QUANTITY_DISABLED
            return outcome
        await quantity.fill(ORDER_QUANTITY)
        await self._snapshot("quantity-filled")

        add_button = await row.find_control(self._selectors.add_button)
        if add_button is None:
            LOGGER.warning("Skipping %s: add-to-cart control not found", outcome.label)
            outcome.status = RowStatus.SKIPPED_NO_ADD_BUTTON
            return outcome
        if await add_button.is_disabled():
            LOGGER.warning("Skipping %s: add-to-cart control is disabled", outcome.label)
            outcome.status = RowStatus.SKIPPED_ADD_DISABLED
            return outcome

        try:
            outcome.attempts = await self._add_to_cart(add_button, outcome)
        except Exception as exc:
            outcome.attempts = ADD_MAX_ATTEMPTS
            outcome.status = RowStatus.ADD_FAILED
            outcome.reason = str(exc)
            LOGGER.error(
                "Giving up on %s after %d add attempts: %s",
                outcome.label,
                ADD_MAX_ATTEMPTS,
                exc,
            )
            return outcome

        outcome.status = RowStatus.ADDED
        await self._snapshot("added-to-cart")
        LOGGER.info("Added %s to cart (attempts=%d)", outcome.label, outcome.attempts)
        return outcome

    async def _add_to_cart(self, add_button: Control, outcome: RowOutcome) -> int:
        def _log_retry(state: RetryCallState) -> None:
            error = state.outcome.exception() if state.outcome else None
            LOGGER.warning(
                "Add to cart failed for %s (attempt %d/%d): %s",
                outcome.label,
                state.attempt_number,
                ADD_MAX_ATTEMPTS,
                error,
            )

        attempts = 0
        async for attempt in AsyncRetrying(
            stop=stop_after_attempt(ADD_MAX_ATTEMPTS),
            wait=wait_fixed(ADD_RETRY_BACKOFF_S),
            sleep=self._sleep,
            before_sleep=_log_retry,
            reraise=True,
        ):
            with attempt:
                attempts += 1
                await add_button.click()
        await self._sleep(ADD_SETTLE_S)
        return attempts

    async def _snapshot(self, name: str) -> None:
        if self._capture is not None:
            await self._capture(name)
