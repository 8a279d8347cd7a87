"""
Time and date utilities for forecast horizons.

Key concepts:
  - Timeframes: the surrounding application speaks in strings (``"1d"``,
    ``"7d"``, ``"30d"``); the engine speaks in integer horizons.
  - History lookback: each timeframe has a default amount of history the
    demo harness synthesizes before forecasting.
  - Forecast date generation: calendar dates for each forecast day.
"""

from __future__ import annotations

from datetime import date, datetime, timedelta, timezone

# Days of history shown/synthesized before each canonical timeframe.
HISTORY_DAYS_BY_TIMEFRAME: dict[str, int] = {
    "1d":  7,
    "7d":  14,
    "30d": 30,
}


def timeframe_to_days(timeframe: str) -> int:
    """Parse a timeframe string like ``"7d"`` into an integer day count.

    Supported formats: ``Nd`` (days), ``Nw`` (weeks), ``Nm`` (months, ≈30 days).

    Args:
        timeframe: Timeframe string.

    Returns:
        Positive number of days.

    Raises:
        ValueError: If the format is unrecognized or the count is not positive.
    """
    tf = timeframe.strip().lower()
    try:
        if tf.endswith("d"):
            days = int(tf[:-1])
        elif tf.endswith("w"):
            days = int(tf[:-1]) * 7
        elif tf.endswith("m"):
            days = int(tf[:-1]) * 30
        else:
            raise ValueError(tf)
    except ValueError:
        raise ValueError(
            f"Cannot parse timeframe '{timeframe}'. "
            "Expected format: Nd (days), Nw (weeks), or Nm (months)."
        ) from None
    if days < 1:
        raise ValueError(f"timeframe must cover at least one day, got '{timeframe}'.")
    return days


def history_days_for_timeframe(timeframe: str) -> int:
    """Default history length for a timeframe.

    Canonical timeframes use ``HISTORY_DAYS_BY_TIMEFRAME``; any other
    timeframe gets as many days of history as it forecasts, at least 7.
    """
    key = timeframe.strip().lower()
    if key in HISTORY_DAYS_BY_TIMEFRAME:
        return HISTORY_DAYS_BY_TIMEFRAME[key]
    return max(7, timeframe_to_days(key))


def forecast_dates(base_date: date, horizon: int) -> list[date]:
    """Return the ``horizon`` calendar dates following ``base_date``.

    Raises:
        ValueError: If ``horizon < 1``.
    """
    if horizon < 1:
        raise ValueError(f"horizon must be >= 1, got {horizon}.")
    return [base_date + timedelta(days=i + 1) for i in range(horizon)]


def utcnow() -> datetime:
    """Return the current UTC datetime with timezone info.

    Prefer this over ``datetime.utcnow()`` (which returns naive datetimes).
    """
    return datetime.now(tz=timezone.utc)
