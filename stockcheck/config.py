"""Runtime settings for a stock check, loaded once from the environment."""

from __future__ import annotations

import os
from dataclasses import dataclass, replace
from pathlib import Path
from typing import Mapping

from dotenv import load_dotenv

from stockcheck.errors import MissingCredentialsError
from stockcheck.selectors import DEFAULT_PROFILE

DEFAULT_BASE_URL = "https://www.hefame.es/"
DEFAULT_PRODUCT = "ozempic"

_FALSE_VALUES = {"0", "false", "no", "off"}


def _as_bool(value: str | None, default: bool) -> bool:
    if value is None or not value.strip():
        return default
    return value.strip().lower() not in _FALSE_VALUES


def _env_int(env: Mapping[str, str], name: str, default: int) -> int:
    raw = env.get(name)
    if raw is None:
        return default
    try:
        return int(raw.strip())
    except ValueError:
        return default


def _env_str(env: Mapping[str, str], name: str) -> str | None:
    raw = env.get(name)
    if raw is None:
        return None
    trimmed = raw.strip()
    return trimmed or None


@dataclass(frozen=True)
class Settings:
    """Immutable configuration handed to the orchestrator."""

    username: str
    password: str
    product_name: str = DEFAULT_PRODUCT
    base_url: str = DEFAULT_BASE_URL
    debug: bool = False
    slow_mo_ms: int = 0
    table_load_delay_ms: int = 3000
    screenshots_dir: Path = Path("./screenshots")
    row_profile: str = DEFAULT_PROFILE
    selectors_file: Path | None = None
    notify_enabled: bool = True
    telegram_token: str | None = None
    telegram_chat_id: str | None = None

    @property
    def headless(self) -> bool:
        return not self.debug

    def __repr__(self) -> str:
        return (
            f"Settings(username={self.username!r}, password='***', "
            f"product_name={self.product_name!r}, debug={self.debug}, "
            f"row_profile={self.row_profile!r}, notify_enabled={self.notify_enabled})"
        )

    def with_overrides(self, **changes: object) -> "Settings":
        """Return a copy with the non-``None`` values in *changes* applied."""
        applied = {key: value for key, value in changes.items() if value is not None}
        return replace(self, **applied) if applied else self


def load_settings(env: Mapping[str, str] | None = None, *, dotenv: bool = True) -> Settings:
    """Build :class:`Settings` from *env* (defaults to ``os.environ``).

    Raises :class:`MissingCredentialsError` when ``USERNAME`` or ``PASSWORD``
    is absent so the process can stop before launching a browser.
    """
    if env is None:
        if dotenv:
            load_dotenv()
        env = os.environ

    username = _env_str(env, "USERNAME")
    password = _env_str(env, "PASSWORD")
    missing = [name for name, value in (("USERNAME", username), ("PASSWORD", password)) if not value]
    if missing:
        raise MissingCredentialsError(missing)

    selectors_file = _env_str(env, "SELECTORS_FILE")

    return Settings(
        username=username,
        password=password,
        product_name=_env_str(env, "PRODUCT_NAME") or DEFAULT_PRODUCT,
        base_url=_env_str(env, "HEFAME_BASE_URL") or DEFAULT_BASE_URL,
        debug=_as_bool(env.get("DEBUG_MODE"), False),
        slow_mo_ms=max(0, _env_int(env, "SLOW_MO", 0)),
        table_load_delay_ms=max(0, _env_int(env, "TABLE_LOAD_DELAY", 3000)),
        screenshots_dir=Path(_env_str(env, "SCREENSHOTS_DIR") or "./screenshots"),
        row_profile=_env_str(env, "ROW_PROFILE") or DEFAULT_PROFILE,
        selectors_file=Path(selectors_file) if selectors_file else None,
        notify_enabled=_as_bool(env.get("NOTIFY_ENABLED"), True),
        telegram_token=_env_str(env, "TELEGRAM_BOT_TOKEN"),
        telegram_chat_id=_env_str(env, "TELEGRAM_CHAT_ID"),
    )
