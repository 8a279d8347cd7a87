"""
Tests for SentimentSignal and the neutral-impact fallback.
"""

from __future__ import annotations

import pytest
from pydantic import ValidationError

from price_ensemble.forecasting.sentiment import (
    DEFAULT_MAX_IMPACT,
    NEUTRAL_IMPACT,
    SentimentSignal,
    resolve_impact,
)
from price_ensemble.taxonomy.model_taxonomy import SentimentMode


def test_default_is_stochastic_neutral() -> None:
    signal = SentimentSignal()
    assert signal.mode == SentimentMode.STOCHASTIC
    assert signal.impact_multiplier == NEUTRAL_IMPACT
    assert signal.daily_change is None


def test_exogenous_daily_change() -> None:
    assert SentimentSignal.exogenous(1.05).daily_change == pytest.approx(0.05)
    assert SentimentSignal.exogenous(0.98).daily_change == pytest.approx(-0.02)


def test_stochastic_ignores_multiplier() -> None:
    signal = SentimentSignal(mode=SentimentMode.STOCHASTIC, impact_multiplier=1.5)
    assert signal.daily_change is None


@pytest.mark.parametrize("bad", [0.0, -1.0])
def test_non_positive_multiplier_rejected(bad: float) -> None:
    with pytest.raises(ValidationError):
        SentimentSignal.exogenous(bad)


@pytest.mark.parametrize(
    "score, expected",
    [(1.0, 1.03), (-1.0, 0.97), (0.0, 1.0), (0.5, 1.015)],
)
def test_from_score_maps_to_multiplier(score: float, expected: float) -> None:
    signal = SentimentSignal.from_score(score)
    assert signal.mode == SentimentMode.EXOGENOUS
    assert signal.impact_multiplier == pytest.approx(expected)


def test_from_score_custom_max_impact() -> None:
    assert SentimentSignal.from_score(1.0, max_impact=0.1).impact_multiplier == pytest.approx(1.1)
    assert DEFAULT_MAX_IMPACT == 0.03


@pytest.mark.parametrize("score", [1.01, -2.0])
def test_from_score_out_of_range(score: float) -> None:
    with pytest.raises(ValueError, match="sentiment score"):
        SentimentSignal.from_score(score)


def test_signal_is_frozen() -> None:
    signal = SentimentSignal.exogenous(1.02)
    with pytest.raises(ValidationError):
        signal.impact_multiplier = 1.5


def test_resolve_impact_falls_back_to_neutral() -> None:
    assert resolve_impact(None) == NEUTRAL_IMPACT
    assert resolve_impact(1.04) == 1.04
