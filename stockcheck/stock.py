"""Stock detection for a single results-table row.

The portal reports availability twice: a coarse class on a stock badge and
the enabled state of the row's increment and quick-buy buttons. The two drift
apart (a stale ``sin-stock`` badge next to a working button, or a badge
without any usable button), so the buttons decide whenever they can be
inspected and the badge only qualifies the reason.
"""

from __future__ import annotations

from dataclasses import dataclass
from enum import Enum
from typing import Optional

from stockcheck.logging_config import get_logger
from stockcheck.rows import ResultRow, class_tokens
from stockcheck.selectors import RowSelectors

LOGGER = get_logger(__name__)


class StockIndicator(str, Enum):
    """State of the row's stock badge."""

    NO_STOCK = "no-stock"
    LIMITED = "limited"
    AVAILABLE = "available"
    UNKNOWN = "unknown"


@dataclass(frozen=True)
class StockDecision:
    in_stock: bool
    reason: str

    def __bool__(self) -> bool:
        return self.in_stock


def parse_indicator(class_attr: Optional[str], selectors: RowSelectors) -> StockIndicator:
    """Map the badge's ``class`` attribute onto a :class:`StockIndicator`."""

    tokens = class_tokens(class_attr)
    if selectors.limited_class in tokens:
        return StockIndicator.LIMITED
    if selectors.no_stock_class in tokens:
        return StockIndicator.NO_STOCK
    if selectors.available_class in tokens:
        return StockIndicator.AVAILABLE
    return StockIndicator.UNKNOWN


def decide_stock(
    indicator: StockIndicator,
    *,
    increment_enabled: bool,
    quick_buy_enabled: bool,
) -> StockDecision:
    """Combine the badge state with the control state."""

    actionable = increment_enabled or quick_buy_enabled
    controls = ", ".join(
        name
        for name, enabled in (("increment", increment_enabled), ("quick-buy", quick_buy_enabled))
        if enabled
    )

    if indicator is StockIndicator.LIMITED:
        if actionable:
            return StockDecision(True, f"limited stock, enabled {controls}")
        return StockDecision(False, "limited stock but no enabled control")

    if indicator is StockIndicator.NO_STOCK:
        if actionable:
            return StockDecision(True, f"no-stock badge contradicted by enabled {controls}")
        return StockDecision(False, "no-stock badge and no enabled control")

    if actionable:
        return StockDecision(True, f"enabled {controls}")
    return StockDecision(False, "no enabled increment or quick-buy control")


async def _control_enabled(row: ResultRow, selector: Optional[str]) -> bool:
    if not selector:
        return False
    control = await row.find_control(selector)
    if control is None:
        return False
    return not await control.is_disabled()


async def evaluate_stock(row: ResultRow, selectors: RowSelectors) -> StockDecision:
    """Inspect *row* and decide whether it is purchasable. Never raises."""

    try:
        class_attr = None
        if selectors.stock_indicator:
            class_attr = await row.read_attribute(selectors.stock_indicator, "class")
        indicator = parse_indicator(class_attr, selectors)
        increment_enabled = await _control_enabled(row, selectors.increment_control)
        quick_buy_enabled = await _control_enabled(row, selectors.quick_buy_control)
    except Exception as exc:
        LOGGER.debug("Stock evaluation failed: %s", exc)
        return StockDecision(False, f"evaluation failed: {exc}")

    return decide_stock(
        indicator,
        increment_enabled=increment_enabled,
        quick_buy_enabled=quick_buy_enabled,
    )


async def has_stock(row: ResultRow, selectors: RowSelectors) -> bool:
    """Return ``True`` when *row* shows purchasable stock."""

    decision = await evaluate_stock(row, selectors)
    return decision.in_stock
