import pytest

from stockcheck.errors import SelectorProfileError
from stockcheck.selectors import DEFAULT_PROFILE, ROW_PROFILES, load_row_selectors


def test_default_profile_is_indicator() -> None:
    assert DEFAULT_PROFILE == "indicator"
    assert load_row_selectors() is ROW_PROFILES["indicator"]


def test_unknown_profile_raises() -> None:
    with pytest.raises(SelectorProfileError) as excinfo:
        load_row_selectors("legacy")
    assert "cubeta" in str(excinfo.value)


def test_yaml_overrides_patch_profile(tmp_path) -> None:
    path = tmp_path / "selectors.yml"
    path.write_text(
        "no_stock_class: agotado\n"
        "increment_control: button.sumar\n"
        "quick_buy_control: null\n",
        encoding="utf-8",
    )
    selectors = load_row_selectors("indicator", path)

    assert selectors.no_stock_class == "agotado"
    assert selectors.increment_control == "button.sumar"
    assert selectors.quick_buy_control is None
    assert selectors.rows == ROW_PROFILES["indicator"].rows


@pytest.mark.parametrize(
    "content",
    [
        "unknown_key: x\n",
        "rows: ''\n",
        "rows: null\n",
        "- just\n- a list\n",
        "rows: [unterminated\n",
    ],
)
def test_malformed_overrides_are_rejected(tmp_path, content) -> None:
    path = tmp_path / "selectors.yml"
    path.write_text(content, encoding="utf-8")
    with pytest.raises(SelectorProfileError):
        load_row_selectors("indicator", path)


def test_missing_override_file_is_rejected(tmp_path) -> None:
    with pytest.raises(SelectorProfileError):
        load_row_selectors("indicator", tmp_path / "absent.yml")


def test_indicator_badge_selector_targets_the_badge_only() -> None:
    badge = ROW_PROFILES["indicator"].stock_indicator

    assert badge == "span.indicador-stock"
    assert "*=" not in badge
    assert "," not in badge
