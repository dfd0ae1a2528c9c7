"""Exception hierarchy raised by the slot mathematics engine."""

from __future__ import annotations

from typing import Any, Optional


class SlotEngineError(Exception):
    """Base class for every error the engine raises on purpose."""

    def __init__(self, message: str, details: Optional[dict[str, Any]] = None) -> None:
        super().__init__(message)
        self.message = message
        self.details = details if details is not None else {}

    def __str__(self) -> str:
        if not self.details:
            return self.message
        context = ", ".join(f"{key}={value!r}" for key, value in self.details.items())
        return f"{self.message} ({context})"


class ConfigurationError(SlotEngineError, ValueError):
    """Invalid tables or parameters; the caller must fix them before retrying."""


class NoOutcomesAvailable(ConfigurationError):
    """The outcome table is empty or every weight is zero."""

    def __init__(self, message: str = "No outcomes available or all weights are zero",
                 details: Optional[dict[str, Any]] = None) -> None:
        super().__init__(message, details)


class RuntimeUnavailableError(SlotEngineError, RuntimeError):
    """The engine state cannot serve the call until pools are rebuilt."""


class PoolsNotBuilt(RuntimeUnavailableError):
    def __init__(self, message: str = "Pools have not been built; call build() first",
                 details: Optional[dict[str, Any]] = None) -> None:
        super().__init__(message, details)


class PoolEmptyForOutcome(RuntimeUnavailableError):
    """The drawn outcome has no boards even though other pools are filled."""

    def __init__(self, outcome_id: str, outcome_name: Optional[str] = None) -> None:
        label = outcome_name or outcome_id
        super().__init__(
            f"Pool for outcome '{label}' is empty; rebuild pools",
            {"outcome_id": outcome_id},
        )
        self.outcome_id = outcome_id


class EngineInvariantError(SlotEngineError, RuntimeError):
    """An internal invariant broke; details name the bucket, board or symbol."""
