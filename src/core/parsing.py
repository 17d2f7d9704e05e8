# src/core/parsing.py — v1
"""Operator input parsing: prices and go-live dates."""

from __future__ import annotations

from datetime import datetime, timezone
from decimal import Decimal, InvalidOperation
from email.utils import parsedate_to_datetime

LAMPORTS_PER_SOL = 1_000_000_000


def parse_price(price: str, multiplier: int = LAMPORTS_PER_SOL) -> int:
    """Convert a decimal price string into integer base units.

    Args:
        price: Price as typed by the operator, e.g. "1.5".
        multiplier: Base units per whole unit (lamports per SOL, or
            10**decimals for a token).

    Raises:
        ValueError: Not a non-negative number.
    """
    try:
        value = Decimal(price.strip())
    except InvalidOperation as e:
        raise ValueError(f"Invalid price: {price!r}") from e
    if not value.is_finite() or value < 0:
        raise ValueError(f"Invalid price: {price!r}")
    return int(value * multiplier)


def parse_date(date: str, now: datetime | None = None) -> int:
    """Convert "now" or an RFC 2822 date ("04 Dec 1995 00:12:00 GMT") to epoch seconds.

    Raises:
        ValueError: The date cannot be parsed.
    """
    if date.strip().lower() == "now":
        moment = now or datetime.now(timezone.utc)
        return int(moment.timestamp())
    try:
        parsed = parsedate_to_datetime(date)
    except (TypeError, ValueError) as e:
        raise ValueError(f"Invalid date: {date!r}") from e
    if parsed.tzinfo is None:
        parsed = parsed.replace(tzinfo=timezone.utc)
    return int(parsed.timestamp())
