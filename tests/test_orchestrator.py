import asyncio
from pathlib import Path

from fakes import FakeNotifier, FakePage, FakeSession, RecordingSleep, make_row

import stockcheck.selectors as selectors
from stockcheck.checkout import CheckoutStep
from stockcheck.config import Settings
from stockcheck.orchestrator import OutcomeKind, RunOutcome, StockChecker
from stockcheck.processor import RowStatus
from stockcheck.selectors import ROW_PROFILES

ROW_SELECTORS = ROW_PROFILES["indicator"]
CHECKOUT_SELECTORS = {
    selectors.CART_ICON,
    selectors.FIRST_CONFIRM_ACCEPT,
    selectors.SECOND_CONFIRM_ACCEPT,
}


def _settings(**overrides) -> Settings:
    values = {"username": "farmacia01", "password": "s3cret", "table_load_delay_ms": 3000}
    values.update(overrides)
    return Settings(**values)


def _run(page: FakePage, settings: Settings | None = None):
    session = FakeSession(page)
    notifier = FakeNotifier()
    sleep = RecordingSleep()

    async def launcher(_settings: Settings) -> FakeSession:
        return session

    checker = StockChecker(
        settings or _settings(),
        notifier,
        launcher=launcher,
        sleep=sleep,
        row_selectors=ROW_SELECTORS,
    )
    outcome = asyncio.run(checker.run())
    return checker, outcome, session, notifier, sleep


def test_login_and_search_sequence() -> None:
    page = FakePage([make_row(ROW_SELECTORS, badge="sin-stock")])
    _, _, _, _, sleep = _run(page, _settings(product_name="wegovy"))

    assert page.calls[:10] == [
        ("goto", "https://www.hefame.es/"),
        ("click", selectors.LOGIN_ENTRY),
        ("click", selectors.LOGIN_SINGLE_ACCESS),
        ("wait_for_load_state", "networkidle"),
        ("fill", selectors.LOGIN_USERNAME, "farmacia01"),
        ("fill", selectors.LOGIN_PASSWORD, "s3cret"),
        ("click", selectors.LOGIN_SUBMIT),
        ("wait_for_load_state", "networkidle"),
        ("fill", selectors.SEARCH_INPUT, "wegovy"),
        ("press", selectors.SEARCH_INPUT, "Enter"),
    ]
    assert ("wait_for_selector", selectors.RESULTS_TABLE, 30000) in page.calls
    assert sleep.calls[0] == 3.0


def test_no_stock_scenario() -> None:
    rows = [make_row(ROW_SELECTORS, badge="sin-stock") for _ in range(3)]
    page = FakePage(rows)
    checker, outcome, session, notifier, _ = _run(page)

    assert outcome.kind is OutcomeKind.NO_STOCK
    assert len(notifier.messages) == 1
    assert "No stock available for ozempic" in notifier.messages[0]
    assert checker.checkout is None
    assert not (page.selectors_touched() & CHECKOUT_SELECTORS)
    assert [o.status for o in checker.processing.outcomes] == [RowStatus.NO_STOCK] * 3
    assert session.closed == 1


def test_stock_found_scenario() -> None:
    rows = [
        make_row(ROW_SELECTORS, name="OZEMPIC 0,25 MG", badge="sin-stock"),
        make_row(ROW_SELECTORS, name="OZEMPIC 1 MG", code="718858\nEAN", increment=True),
        make_row(ROW_SELECTORS, name="OZEMPIC 2 MG", badge="sin-stock"),
    ]
    page = FakePage(rows)
    checker, outcome, session, notifier, _ = _run(page)

    assert outcome.kind is OutcomeKind.STOCK_FOUND
    assert outcome.added == ("OZEMPIC 1 MG [718858]",)
    assert checker.checkout.history == [
        CheckoutStep.CART_ICON_VISIBLE,
        CheckoutStep.FIRST_CONFIRM_VISIBLE,
        CheckoutStep.SECOND_CONFIRM_VISIBLE,
        CheckoutStep.DONE,
    ]
    assert rows[1].children[ROW_SELECTORS.add_button].clicks == 1
    assert len(notifier.messages) == 1
    assert "Found ozempic in stock" in notifier.messages[0]
    assert "OZEMPIC 1 MG [718858]" in notifier.messages[0]
    assert session.closed == 1


def test_checkout_timeout_scenario() -> None:
    rows = [make_row(ROW_SELECTORS, increment=True), make_row(ROW_SELECTORS, badge="sin-stock")]
    page = FakePage(rows, missing={selectors.SECOND_CONFIRM_ACCEPT})
    checker, outcome, session, notifier, _ = _run(page)

    assert outcome.kind is OutcomeKind.ERROR
    assert "CheckoutTimeoutError" in outcome.message
    assert "Timeout 10000ms exceeded" in outcome.message
    assert len(notifier.messages) == 1
    assert "failed" in notifier.messages[0]
    assert "Timeout 10000ms exceeded" in notifier.messages[0]
    assert checker.checkout.state is CheckoutStep.FIRST_CONFIRM_VISIBLE
    assert session.closed == 1


def test_results_table_timeout_is_reported() -> None:
    page = FakePage(missing={selectors.RESULTS_TABLE})
    checker, outcome, session, notifier, _ = _run(page)

    assert outcome.kind is OutcomeKind.ERROR
    assert checker.processing is None
    assert len(notifier.messages) == 1
    assert session.closed == 1


def test_launch_failure_is_reported_once() -> None:
    notifier = FakeNotifier()

    async def launcher(_settings: Settings) -> FakeSession:
        raise RuntimeError("Executable doesn't exist")

    checker = StockChecker(
        _settings(), notifier, launcher=launcher, sleep=RecordingSleep(), row_selectors=ROW_SELECTORS
    )
    outcome = asyncio.run(checker.run())

    assert outcome.kind is OutcomeKind.ERROR
    assert "Executable doesn't exist" in outcome.message
    assert notifier.messages == [outcome.render()]


def test_debug_mode_takes_screenshots(tmp_path: Path) -> None:
    shots = tmp_path / "shots"
    page = FakePage([make_row(ROW_SELECTORS, badge="sin-stock")], missing={selectors.RESULTS_TABLE})
    _run(page, _settings(debug=True, screenshots_dir=shots))

    assert shots.is_dir()
    names = [Path(path).name for path in page.screenshots]
    assert any(name.endswith("-homepage.png") for name in names)
    assert names[-1].endswith("-error.png")


def test_outcome_messages() -> None:
    assert RunOutcome(OutcomeKind.NO_STOCK, "ozempic").render() == (
        "❌ No stock available for ozempic at this time."
    )
    found = RunOutcome(OutcomeKind.STOCK_FOUND, "ozempic", added=("A [1]", "B [2]")).render()
    assert found.splitlines()[1:3] == ["- A [1]", "- B [2]"]
    assert "boom" in RunOutcome.error("ozempic", "boom").render()


def test_unusable_screenshot_dir_still_reports_once(tmp_path: Path) -> None:
    blocker = tmp_path / "file.txt"
    blocker.write_text("not a directory", encoding="utf-8")
    page = FakePage([make_row(ROW_SELECTORS, badge="sin-stock")])

    _, outcome, session, notifier, _ = _run(
        page, _settings(debug=True, screenshots_dir=blocker / "shots")
    )

    assert outcome.kind is OutcomeKind.NO_STOCK
    assert len(notifier.messages) == 1
    assert session.closed == 1
    assert page.screenshots == []


def test_error_after_add_keeps_added_rows() -> None:
    rows = [make_row(ROW_SELECTORS, name="OZEMPIC 1 MG", code="718858", increment=True)]
    page = FakePage(rows, missing={selectors.FIRST_CONFIRM_ACCEPT})
    _, outcome, _, notifier, _ = _run(page)

    assert outcome.kind is OutcomeKind.ERROR
    assert outcome.added == ("OZEMPIC 1 MG [718858]",)
    assert outcome.cart_touched is True
    assert "Already in cart: OZEMPIC 1 MG [718858]" in notifier.messages[0]


def test_error_before_processing_has_no_added_rows() -> None:
    page = FakePage(missing={selectors.RESULTS_TABLE})
    _, outcome, _, _, _ = _run(page)

    assert outcome.added == ()
    assert outcome.cart_touched is False
