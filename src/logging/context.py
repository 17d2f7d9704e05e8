# src/logging/context.py — v2
"""Contextual logging support — attach env, cache name, phase and item index to log records."""

from __future__ import annotations

import contextvars
from dataclasses import dataclass
from typing import Any

# Context variables for structured logging — set per command and per item.
_env: contextvars.ContextVar[str | None] = contextvars.ContextVar(
    "env", default=None
)
_cache_name: contextvars.ContextVar[str | None] = contextvars.ContextVar(
    "cache_name", default=None
)
_phase: contextvars.ContextVar[str | None] = contextvars.ContextVar(
    "phase", default=None
)
_item_index: contextvars.ContextVar[str | None] = contextvars.ContextVar(
    "item_index", default=None
)


@dataclass
class LogContext:
    """Immutable snapshot of current logging context."""

    env: str | None = None
    cache_name: str | None = None
    phase: str | None = None
    item_index: str | None = None

    def as_dict(self) -> dict[str, Any]:
        """Return non-None fields as dict for JSON log injection."""
        return {k: v for k, v in self.__dict__.items() if v is not None}


def get_context() -> LogContext:
    """Snapshot current context variables."""
    return LogContext(
        env=_env.get(),
        cache_name=_cache_name.get(),
        phase=_phase.get(),
        item_index=_item_index.get(),
    )


def set_run_context(env: str, cache_name: str) -> None:
    """Set run-level context (called once per command)."""
    _env.set(env)
    _cache_name.set(cache_name)


def set_phase_context(phase: str) -> None:
    """Set the current pipeline phase (upload, reconcile, verify, ...)."""
    _phase.set(phase)
    _item_index.set(None)


def set_item_context(index: str | None) -> None:
    """Set the bundle index being processed."""
    _item_index.set(index)


def clear_context() -> None:
    """Reset all context variables."""
    _env.set(None)
    _cache_name.set(None)
    _phase.set(None)
    _item_index.set(None)
