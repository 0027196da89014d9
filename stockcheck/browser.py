"""Playwright launch, teardown and debug screenshots."""

from __future__ import annotations

import os
import shlex
import time
from dataclasses import dataclass
from pathlib import Path
from typing import Any

from playwright.async_api import Browser, BrowserContext, Page, Playwright, async_playwright

from stockcheck.config import Settings
from stockcheck.logging_config import get_logger

LOGGER = get_logger(__name__)

DEFAULT_TIMEOUT_MS = 30000


def launch_kwargs(settings: Settings) -> dict[str, Any]:
    """Return kwargs passed to ``chromium.launch``."""

    args = [
        "--disable-dev-shm-usage",
        "--lang=es-ES",
        "--no-default-browser-check",
        "--window-size=1440,960",
    ]
    extra_args = os.getenv("STOCKCHECK_CHROMIUM_ARGS")
    if extra_args:
        args.extend(shlex.split(extra_args))

    kwargs: dict[str, Any] = {
        "headless": settings.headless,
        "args": args,
    }
    if settings.slow_mo_ms > 0:
        kwargs["slow_mo"] = settings.slow_mo_ms
    return kwargs


@dataclass
class BrowserSession:
    """The single browser, context and page owned by one run."""

    playwright: Playwright
    browser: Browser
    context: BrowserContext
    page: Page

    async def close(self) -> None:
        """Close the browser and stop Playwright, logging instead of raising."""

        try:
            await self.browser.close()
        except Exception as exc:
            LOGGER.warning("Browser close failed: %s", exc)
        try:
            await self.playwright.stop()
        except Exception as exc:
            LOGGER.warning("Playwright stop failed: %s", exc)


async def launch_session(settings: Settings) -> BrowserSession:
    """Start Playwright and open one Chromium page configured from *settings*."""

    playwright = await async_playwright().start()
    try:
        browser = await playwright.chromium.launch(**launch_kwargs(settings))
        context = await browser.new_context(
            locale="es-ES",
            viewport={"width": 1440, "height": 900},
        )
        page = await context.new_page()
        page.set_default_timeout(DEFAULT_TIMEOUT_MS)
    except Exception:
        await playwright.stop()
        raise

    LOGGER.info(
        "Browser launched | headless=%s | slow_mo=%sms",
        settings.headless,
        settings.slow_mo_ms,
    )
    return BrowserSession(playwright=playwright, browser=browser, context=context, page=page)


def ensure_screenshot_dir(directory: Path) -> bool:
    """Create *directory* if needed; return False instead of raising when it cannot be used."""

    if directory.is_dir():
        return True
    try:
        directory.mkdir(parents=True, exist_ok=True)
    except OSError as exc:
        LOGGER.warning("Screenshots disabled, cannot create %s: %s", directory, exc)
        return False
    LOGGER.info("Created screenshots directory at %s", directory)
    return True


async def capture_screenshot(page: Any, directory: Path, name: str) -> Path | None:
    """Save a PNG named ``<epoch-ms>-<name>.png``; return ``None`` on failure."""

    path = directory / f"{int(time.time() * 1000)}-{name}.png"
    try:
        await page.screenshot(path=str(path))
    except Exception as exc:
        LOGGER.warning("Failed to take screenshot %s: %s", name, exc)
        return None
    LOGGER.debug("Screenshot saved: %s", path)
    return path
