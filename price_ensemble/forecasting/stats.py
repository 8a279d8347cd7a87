"""
Trend and volatility statistics shared by the component models.

Estimator summary
-----------------
simple_trend
  ``(last - first) / first / window`` over the last ``window`` observations.
  A per-day drift implied by the net move across the window.  The divisor
  is always ``window``, even when fewer observations are available but the
  ``min_obs`` threshold is met.

weighted_trend
  Mean of daily returns over the last ``window`` observations, weighted by
  ``exp(0.1 * i)`` where ``i`` is the 1-indexed position inside the window.
  Recent returns dominate.

long_range_trend
  ``(last - first) / first / 30`` over the last 30 observations; below 30
  observations it degrades to ``weighted_trend`` over two weeks.

volatility / weighted_volatility
  Population standard deviation of daily returns.  The weighted variant
  applies the same recency weights to both the mean and the squared
  deviations, normalized by the weight sum (not the count).

Fallback policy
---------------
Short series never raise.  Below the minimum length an estimator returns a
neutral value: trend 0.0, volatility 0.02.
"""

from __future__ import annotations

import math
from typing import Sequence

NEUTRAL_TREND = 0.0
DEFAULT_VOLATILITY = 0.02
RECENCY_DECAY = 0.1

LONG_RANGE_WINDOW = 30
SHORT_WEIGHTED_WINDOW = 14


def daily_returns(prices: Sequence[float]) -> list[float]:
    """Return ``(p_i - p_{i-1}) / p_{i-1}`` for each consecutive pair."""
    return [
        (curr - prev) / prev
        for prev, curr in zip(prices, prices[1:])
    ]


def recency_weights(n: int) -> list[float]:
    """Weights ``exp(0.1 * i)`` for ``i = 1..n``."""
    return [math.exp(RECENCY_DECAY * i) for i in range(1, n + 1)]


def _tail(prices: Sequence[float], window: int | None) -> Sequence[float]:
    if window is None:
        return prices
    return prices[-window:]


def simple_trend(
    prices: Sequence[float],
    window: int,
    min_obs: int | None = None,
) -> float:
    """Net fractional move across the last ``window`` observations, per day.

    Args:
        prices:  Chronological price sequence.
        window:  Number of trailing observations to use; also the divisor.
        min_obs: Minimum series length required; defaults to ``window``.

    Returns:
        Per-day drift, or ``NEUTRAL_TREND`` when the series is too short.
    """
    required = window if min_obs is None else min_obs
    if len(prices) < max(required, 2):
        return NEUTRAL_TREND
    recent = _tail(prices, window)
    first, last = recent[0], recent[-1]
    return (last - first) / first / window


def weighted_trend(prices: Sequence[float], window: int) -> float:
    """Recency-weighted mean daily return over the last ``window`` observations."""
    if len(prices) < 2:
        return NEUTRAL_TREND
    returns = daily_returns(_tail(prices, window))
    weights = recency_weights(len(returns))
    return sum(r * w for r, w in zip(returns, weights)) / sum(weights)


def long_range_trend(
    prices: Sequence[float],
    window: int = LONG_RANGE_WINDOW,
    short_window: int = SHORT_WEIGHTED_WINDOW,
) -> float:
    """Month-scale drift; falls back to the short weighted trend below ``window``."""
    if len(prices) < window:
        return weighted_trend(prices, short_window)
    recent = prices[-window:]
    first, last = recent[0], recent[-1]
    return (last - first) / first / window


def volatility(prices: Sequence[float], window: int | None = None) -> float:
    """Population standard deviation of daily returns."""
    subset = _tail(prices, window)
    if len(subset) < 2:
        return DEFAULT_VOLATILITY
    returns = daily_returns(subset)
    return math.sqrt(population_variance(returns))


def weighted_volatility(prices: Sequence[float], window: int | None = None) -> float:
    """Recency-weighted standard deviation of daily returns."""
    subset = _tail(prices, window)
    if len(subset) < 2:
        return DEFAULT_VOLATILITY
    returns = daily_returns(subset)
    weights = recency_weights(len(returns))
    weight_sum = sum(weights)
    mean = sum(r * w for r, w in zip(returns, weights)) / weight_sum
    variance = sum((r - mean) ** 2 * w for r, w in zip(returns, weights)) / weight_sum
    return math.sqrt(variance)


def population_variance(values: Sequence[float]) -> float:
    """Unweighted population variance; 0.0 for an empty sequence."""
    if not values:
        return 0.0
    mean = sum(values) / len(values)
    return sum((v - mean) ** 2 for v in values) / len(values)
