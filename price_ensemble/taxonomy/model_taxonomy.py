"""
Taxonomy of the ensemble's component models.

Two enums describe an ensemble configuration:
  - ``ModelKind``     — the closed set of component forecasting variants.
  - ``SentimentMode`` — where the sentiment component gets its daily change.

Usage example::

    from price_ensemble.taxonomy.model_taxonomy import ModelKind, SentimentMode

    kind = ModelKind.MOMENTUM
    mode = SentimentMode.EXOGENOUS

This module has NO imports from any other ``price_ensemble`` package.
"""

from enum import StrEnum


class ModelKind(StrEnum):
    """Component forecasting variant. Declaration order is the canonical order."""

    MOMENTUM = "momentum"
    """Weighted short trend blended with a long-range trend, plus weekly cycle."""

    STABLE_TREND = "stable_trend"
    """Two-week simple trend with damped volatility noise."""

    NONLINEAR_SEASONAL = "nonlinear_seasonal"
    """Ten-day simple trend with a half-week sine cycle."""

    SENTIMENT = "sentiment"
    """Daily change taken from a sentiment signal rather than price history."""

    SHORT_TREND = "short_trend"
    """Amplified five-day trend with fixed-magnitude noise."""


class SentimentMode(StrEnum):
    """Source of the sentiment component's daily fractional change."""

    EXOGENOUS = "exogenous"
    """Caller supplies an impact multiplier; ``multiplier - 1`` applied every day."""

    STOCHASTIC = "stochastic"
    """No external signal; a positively biased random change is drawn per day."""
