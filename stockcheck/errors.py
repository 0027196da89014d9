"""Custom exception types for the stock checker."""

from __future__ import annotations

from typing import Optional


class ConfigError(Exception):
    """Raised when the runtime configuration cannot be used."""


class MissingCredentialsError(ConfigError):
    """Raised at startup when the portal username or password is missing."""

    def __init__(self, missing: list[str]) -> None:
        self.missing = list(missing)
        super().__init__(
            "Missing credentials. Please provide "
            + " and ".join(self.missing)
            + " environment variables."
        )


class SelectorProfileError(ConfigError):
    """Raised when a row-selector profile is unknown or malformed."""


class CheckoutError(Exception):
    """Raised when the order-confirmation flow cannot proceed."""

    def __init__(
        self,
        message: str = "Checkout failed.",
        *,
        step: Optional[str] = None,
        selector: Optional[str] = None,
        timeout_ms: Optional[int] = None,
    ) -> None:
        self.message = message
        self.step = step
        self.selector = selector
        self.timeout_ms = timeout_ms
        super().__init__(message)

    def __str__(self) -> str:
        context_parts: list[str] = []
        if self.step:
            context_parts.append(f"step={self.step}")
        if self.selector:
            context_parts.append(f"selector={self.selector}")
        if self.timeout_ms is not None:
            context_parts.append(f"timeout_ms={self.timeout_ms}")
        context = ", ".join(context_parts)
        text = f"{self.message} ({context})" if context else self.message
        if self.__cause__ is not None:
            text = f"{text}: {self.__cause__}"
        return text


class CheckoutTimeoutError(CheckoutError):
    """Raised when a checkout control does not appear within its time budget."""
