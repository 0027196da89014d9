"""Row and control abstractions over the live results table."""

from __future__ import annotations

from typing import Any, Optional, Protocol

from stockcheck.selectors import RowSelectors


class Control(Protocol):
    """An interactive element inside a row (input, button or image)."""

    async def is_disabled(self) -> bool: ...

    async def fill(self, value: str) -> None: ...

    async def click(self) -> None: ...


class ResultRow(Protocol):
    """Read-only view of one results-table row plus access to its controls."""

    async def read_text(self, selector: str) -> Optional[str]: ...

    async def read_attribute(self, selector: str, name: str) -> Optional[str]: ...

    async def find_control(self, selector: str) -> Optional[Control]: ...


def class_tokens(value: str | None) -> set[str]:
    """Split a ``class`` attribute into its individual class names."""

    if not value:
        return set()
    return {token for token in value.split() if token}


class ElementControl:
    """Adapts a Playwright element handle to :class:`Control`.

    The portal marks inactive buttons inconsistently, so a control counts as
    disabled when the native property, a ``disabled`` class or
    ``aria-disabled="true"`` says so.
    """

    def __init__(self, handle: Any) -> None:
        self._handle = handle

    async def is_disabled(self) -> bool:
        if await self._handle.is_disabled():
            return True
        if "disabled" in class_tokens(await self._handle.get_attribute("class")):
            return True
        aria = await self._handle.get_attribute("aria-disabled")
        return (aria or "").strip().lower() == "true"

    async def fill(self, value: str) -> None:
        await self._handle.fill(value)

    async def click(self) -> None:
        await self._handle.click()


class ElementRow:
    """Adapts a Playwright row element handle to :class:`ResultRow`."""

    def __init__(self, handle: Any) -> None:
        self._handle = handle

    async def _first(self, selector: str) -> Any | None:
        return await self._handle.query_selector(selector)

    async def read_text(self, selector: str) -> Optional[str]:
        element = await self._first(selector)
        if element is None:
            return None
        text = await element.inner_text()
        return text.strip() if text is not None else None

    async def read_attribute(self, selector: str, name: str) -> Optional[str]:
        element = await self._first(selector)
        if element is None:
            return None
        return await element.get_attribute(name)

    async def find_control(self, selector: str) -> Optional[Control]:
        element = await self._first(selector)
        if element is None:
            return None
        return ElementControl(element)


async def collect_rows(page: Any, selectors: RowSelectors) -> list[ElementRow]:
    """Snapshot the current table rows in top-to-bottom order."""

    handles = await page.query_selector_all(selectors.rows)
    return [ElementRow(handle) for handle in handles]
