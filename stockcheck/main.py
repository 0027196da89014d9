"""Command-line interface entry point for the stock checker."""

from __future__ import annotations

import argparse
import asyncio
from typing import Iterable

from apscheduler.schedulers.asyncio import AsyncIOScheduler

from stockcheck.config import Settings, load_settings
from stockcheck.errors import ConfigError
from stockcheck.logging_config import get_logger, set_level
from stockcheck.notifier import Notifier
from stockcheck.orchestrator import OutcomeKind, RunOutcome, StockChecker
from stockcheck.selectors import ROW_PROFILES, load_row_selectors

LOGGER = get_logger(__name__)

EXIT_OK = 0
EXIT_CONFIG = 1
EXIT_RUN_ERROR = 2
EXIT_INTERRUPTED = 130


def parse_args(argv: Iterable[str] | None = None) -> argparse.Namespace:
    """Parse CLI arguments for the application."""

    parser = argparse.ArgumentParser(
        description="Check Hefame stock for a product and order it when available."
    )
    parser.add_argument(
        "--product",
        type=str,
        help="Product to search for (overrides PRODUCT_NAME).",
    )
    parser.add_argument(
        "--debug",
        action="store_true",
        help="Run a headed browser and save screenshots of every step.",
    )
    parser.add_argument(
        "--profile",
        choices=sorted(ROW_PROFILES),
        help="Row-selector profile matching the results table markup (overrides ROW_PROFILE).",
    )
    parser.add_argument(
        "--every",
        type=float,
        metavar="MINUTES",
        help="Repeat the check on this interval until stock is ordered.",
    )

    args = parser.parse_args(list(argv) if argv is not None else None)

    if args.every is not None and args.every <= 0:
        parser.error("--every must be a positive number of minutes")
    if args.product is not None:
        args.product = args.product.strip()
        if not args.product:
            parser.error("--product must not be empty")
    return args


def _apply_args(settings: Settings, args: argparse.Namespace) -> Settings:
    return settings.with_overrides(
        product_name=args.product,
        row_profile=args.profile,
        debug=True if args.debug else None,
    )


async def _run_once(settings: Settings) -> RunOutcome:
    checker = StockChecker(settings, Notifier.from_settings(settings))
    return await checker.run()


async def _run_scheduled(settings: Settings, minutes: float) -> RunOutcome:
    """Run immediately, then every *minutes* until the cart has been touched.

    An errored run that already added rows also stops the schedule: the cart
    and dialogs are in an unknown state and a rerun would add the rows again.
    """

    done = asyncio.Event()
    last: list[RunOutcome] = []

    async def scheduled_check() -> None:
        try:
            outcome = await _run_once(settings)
        except Exception:
            LOGGER.exception("Scheduled stock check failed")
            return
        last.append(outcome)
        if outcome.kind is OutcomeKind.STOCK_FOUND:
            LOGGER.info("Stock ordered; stopping the schedule")
            done.set()
        elif outcome.cart_touched:
            LOGGER.error("Run failed after adding to cart; stopping the schedule for manual review")
            done.set()

    await scheduled_check()
    if done.is_set():
        return last[-1]

    scheduler = AsyncIOScheduler()
    scheduler.add_job(scheduled_check, "interval", minutes=minutes, max_instances=1, coalesce=True)
    scheduler.start()
    LOGGER.info("Scheduler started with interval=%s minutes", minutes)

    try:
        await done.wait()
    finally:
        scheduler.shutdown(wait=False)
    return last[-1]


async def _async_main(argv: Iterable[str] | None = None) -> int:
    args = parse_args(argv)
    if args.debug:
        set_level("DEBUG")

    try:
        settings = _apply_args(load_settings(), args)
        LOGGER.info("Loaded %r", settings)
        load_row_selectors(settings.row_profile, settings.selectors_file)
        if args.every:
            outcome = await _run_scheduled(settings, args.every)
        else:
            outcome = await _run_once(settings)
    except ConfigError as exc:
        LOGGER.error("Error: %s", exc)
        return EXIT_CONFIG

    return EXIT_RUN_ERROR if outcome.kind is OutcomeKind.ERROR else EXIT_OK


def main() -> None:
    try:
        code = asyncio.run(_async_main())
    except KeyboardInterrupt:
        LOGGER.info("Interrupted by user")
        code = EXIT_INTERRUPTED
    raise SystemExit(code)


if __name__ == "__main__":
    main()
