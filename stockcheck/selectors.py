"""Centralised selectors for the Hefame portal flows."""

from __future__ import annotations

from dataclasses import dataclass, fields, replace
from pathlib import Path
from typing import Any, Optional

import yaml

from stockcheck.errors import SelectorProfileError

# ==== LOGIN ====
LOGIN_ENTRY = "text=Acceder"
LOGIN_SINGLE_ACCESS = "text=Acceso Único"
LOGIN_USERNAME = 'input[placeholder="Usuario"]'
LOGIN_PASSWORD = 'input[placeholder="Contraseña"]'
LOGIN_SUBMIT = "button.submit-button"

# ==== SEARCH ====
SEARCH_INPUT = "input#material"
RESULTS_TABLE = "table#datosTabla"

# ==== CHECKOUT ====
CART_ICON = "a#cesta"
FIRST_CONFIRM_ACCEPT = "button#aceptar"
SECOND_CONFIRM_ACCEPT = "button.aceptarDialogo"

CUBETA_TITLE = "Agrega los productos a la cubeta."


@dataclass(frozen=True)
class RowSelectors:
    """Selectors and class names used to read one results-table row.

    Selectors are scoped to the row element. Optional selectors that are
    ``None`` mean the page variant has no such element.
    """

    rows: str
    name_cell: str
    code_cell: str
    quantity_input: str
    add_button: str
    stock_indicator: Optional[str] = None
    no_stock_class: str = "sin-stock"
    limited_class: str = "stock-limitado"
    available_class: str = "con-stock"
    increment_control: Optional[str] = None
    quick_buy_control: Optional[str] = None


ROW_PROFILES: dict[str, RowSelectors] = {
    # Current table: a coloured stock badge plus +/- and quick-buy buttons.
    "indicator": RowSelectors(
        rows=f"{RESULTS_TABLE} tbody tr",
        name_cell="td:nth-child(2)",
        code_cell="td:nth-child(1)",
        quantity_input='input[name^="cantidad_pedir_"]',
        add_button="button.btn-cesta, button.anadir-cesta",
        stock_indicator="span.indicador-stock",
        increment_control="button.btn-mas, button.incrementar",
        quick_buy_control="button.compra-rapida",
    ),
    # Older table: the cart image in the third column is the only signal.
    "cubeta": RowSelectors(
        rows=f"{RESULTS_TABLE} tbody tr",
        name_cell="td:nth-child(2)",
        code_cell="td:nth-child(1)",
        quantity_input='input[name^="cantidad_pedir_"]',
        add_button=f'td:nth-child(3) img[title="{CUBETA_TITLE}"]',
        quick_buy_control=f'td:nth-child(3) img[title="{CUBETA_TITLE}"]',
    ),
}

DEFAULT_PROFILE = "indicator"

_OPTIONAL_FIELDS = {"stock_indicator", "increment_control", "quick_buy_control"}


def _load_overrides(path: Path) -> dict[str, Any]:
    try:
        with path.open("r", encoding="utf-8") as handle:
            payload = yaml.safe_load(handle) or {}
    except (OSError, yaml.YAMLError) as exc:
        raise SelectorProfileError(f"Unable to read selector overrides from {path}: {exc}") from exc
    if not isinstance(payload, dict):
        raise SelectorProfileError(f"Selector overrides in {path} must be a mapping")

    known = {field.name for field in fields(RowSelectors)}
    unknown = sorted(set(payload) - known)
    if unknown:
        raise SelectorProfileError(
            f"Unknown selector keys in {path}: " + ", ".join(unknown)
        )

    overrides: dict[str, Any] = {}
    for key, value in payload.items():
        if value is None and key in _OPTIONAL_FIELDS:
            overrides[key] = None
            continue
        if not isinstance(value, str) or not value.strip():
            raise SelectorProfileError(f"Selector '{key}' in {path} must be a non-empty string")
        overrides[key] = value.strip()
    return overrides


def load_row_selectors(profile: str = DEFAULT_PROFILE, overrides_path: Path | None = None) -> RowSelectors:
    """Return the named row profile, optionally patched from a YAML file."""

    try:
        selectors = ROW_PROFILES[profile]
    except KeyError:
        raise SelectorProfileError(
            f"Unknown row profile '{profile}'. Choose one of: " + ", ".join(sorted(ROW_PROFILES))
        ) from None

    if overrides_path is None:
        return selectors
    return replace(selectors, **_load_overrides(overrides_path))
