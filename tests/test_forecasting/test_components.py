"""
Tests for the component forecasting models.

What we test
------------
1. Every model returns exactly ``horizon`` prices, including on degenerate
   one-observation series.
2. Autoregression — each day compounds on the previous prediction.
3. Per-model formulas with zero noise (midpoint generator).
4. Sentiment model: exogenous compounding and stochastic draw range.
5. Models never mutate their input.
6. build_models — canonical order, fixed weights, selection errors.
"""

from __future__ import annotations

import math

import pytest

from price_ensemble.forecasting.components import (
    ComponentModel,
    MomentumModel,
    NonlinearSeasonalModel,
    SentimentModel,
    ShortTrendModel,
    StableTrendModel,
    build_models,
)
from price_ensemble.forecasting.sentiment import SentimentSignal
from price_ensemble.forecasting.stats import long_range_trend, simple_trend, weighted_trend
from price_ensemble.models.forecast import ComponentForecast
from price_ensemble.taxonomy.model_taxonomy import ModelKind, SentimentMode

ALL_MODELS = [
    MomentumModel,
    StableTrendModel,
    NonlinearSeasonalModel,
    SentimentModel,
    ShortTrendModel,
]


# ── Path length ───────────────────────────────────────────────────────────────

class TestPathLength:
    @pytest.mark.parametrize("model_cls", ALL_MODELS)
    @pytest.mark.parametrize("horizon", [1, 7, 30])
    def test_path_length_equals_horizon(self, model_cls, horizon, noisy_prices, seeded_rng):
        path = model_cls().predict(noisy_prices, horizon, seeded_rng)
        assert len(path) == horizon

    @pytest.mark.parametrize("model_cls", ALL_MODELS)
    def test_single_observation_uses_fallbacks(self, model_cls, seeded_rng):
        path = model_cls().predict([100.0], 5, seeded_rng)
        assert len(path) == 5
        assert all(math.isfinite(p) for p in path)

    @pytest.mark.parametrize("model_cls", ALL_MODELS)
    def test_input_not_mutated(self, model_cls, noisy_prices, seeded_rng):
        before = list(noisy_prices)
        model_cls().predict(noisy_prices, 10, seeded_rng)
        assert noisy_prices == before


# ── Zero-noise formulas ───────────────────────────────────────────────────────

class TestZeroNoiseFormulas:
    def test_stable_trend_flat_series_stays_flat(self, flat_prices, zero_noise_rng):
        path = StableTrendModel().predict(flat_prices, 10, zero_noise_rng)
        assert path == [100.0] * 10

    def test_stable_trend_compounds_trend(self, rising_prices, zero_noise_rng):
        trend = simple_trend(rising_prices, 14, min_obs=10)
        path = StableTrendModel().predict(rising_prices, 3, zero_noise_rng)
        base = rising_prices[-1]
        assert path[0] == pytest.approx(base * (1 + trend))
        assert path[2] == pytest.approx(base * (1 + trend) ** 3)

    def test_nonlinear_seasonal_cycle(self, flat_prices, zero_noise_rng):
        path = NonlinearSeasonalModel().predict(flat_prices, 3, zero_noise_rng)
        assert path[0] == pytest.approx(100.0)      # sin(0) = 0
        day1 = 100.0 * (1 + math.sin(math.pi / 7) * 0.005)
        assert path[1] == pytest.approx(day1)
        day2 = day1 * (1 + math.sin(2 * math.pi / 7) * 0.005)
        assert path[2] == pytest.approx(day2)

    def test_short_trend_amplifies_five_day_trend(self, zero_noise_rng):
        prices = [100.0, 101.0, 102.0, 103.0, 104.0]
        trend = (104.0 - 100.0) / 100.0 / 5
        path = ShortTrendModel().predict(prices, 2, zero_noise_rng)
        assert path[0] == pytest.approx(104.0 * (1 + trend * 1.2))
        assert path[1] == pytest.approx(104.0 * (1 + trend * 1.2) ** 2)

    def test_short_trend_below_five_obs_has_no_trend(self, zero_noise_rng):
        path = ShortTrendModel().predict([100.0, 120.0, 140.0, 160.0], 3, zero_noise_rng)
        assert path == pytest.approx([160.0, 160.0, 160.0])

    def test_momentum_flat_series_weekly_cycle_only(self, flat_prices, zero_noise_rng):
        path = MomentumModel().predict(flat_prices, 2, zero_noise_rng)
        assert path[0] == pytest.approx(100.0)
        assert path[1] == pytest.approx(100.0 * (1 + math.sin(math.pi / 3.5) * 0.002))

    def test_momentum_first_day_uses_short_trend_only(self, rising_prices, zero_noise_rng):
        trend = weighted_trend(rising_prices, 14)
        momentum = math.tanh(trend * 10) * 0.005
        path = MomentumModel().predict(rising_prices, 1, zero_noise_rng)
        assert path[0] == pytest.approx(rising_prices[-1] * (1 + trend + momentum))

    def test_momentum_blend_weight_floors_at_point_two(self, rising_prices, zero_noise_rng):
        """From day 16 on, the short-trend share is pinned at 0.2."""
        trend = weighted_trend(rising_prices, 14)
        long_trend = long_range_trend(rising_prices)
        momentum = math.tanh(trend * 10) * 0.005
        path = MomentumModel().predict(rising_prices, 25, zero_noise_rng)

        for i in (16, 20, 24):
            weekly = math.sin((i % 7) * math.pi / 3.5) * 0.002
            blended = trend * 0.2 + long_trend * 0.8
            assert path[i] == pytest.approx(path[i - 1] * (1 + blended + weekly + momentum))


# ── Sentiment model ───────────────────────────────────────────────────────────

class TestSentimentModel:
    def test_exogenous_multiplier_compounds_daily(self, noisy_prices, seeded_rng):
        model = SentimentModel(SentimentSignal.exogenous(1.05))
        path = model.predict([100.0], 7, seeded_rng)
        assert path[6] == pytest.approx(100.0 * 1.05 ** 7, rel=1e-12)
        for prev, curr in zip([100.0] + path, path):
            assert curr / prev == pytest.approx(1.05)

    def test_exogenous_neutral_is_flat(self, noisy_prices, seeded_rng):
        model = SentimentModel(SentimentSignal.exogenous(1.0))
        path = model.predict(noisy_prices, 5, seeded_rng)
        assert path == [noisy_prices[-1]] * 5

    def test_stochastic_midpoint_draw_has_positive_bias(self, zero_noise_rng):
        path = SentimentModel().predict([100.0], 3, zero_noise_rng)
        # U(-0.4, 0.6) midpoint = 0.1 → +0.2% per day
        assert path == pytest.approx([100.0 * 1.002 ** k for k in (1, 2, 3)])

    def test_stochastic_daily_change_within_range(self, seeded_rng):
        path = SentimentModel().predict([100.0], 200, seeded_rng)
        for prev, curr in zip([100.0] + path, path):
            change = curr / prev - 1
            assert -0.008 - 1e-12 <= change <= 0.012 + 1e-12

    def test_default_signal_is_stochastic(self):
        assert SentimentModel().signal.mode == SentimentMode.STOCHASTIC


# ── forecast() wrapper ────────────────────────────────────────────────────────

def test_forecast_wraps_path_with_identity(noisy_prices, seeded_rng):
    fc = StableTrendModel().forecast(noisy_prices, 4, seeded_rng)
    assert isinstance(fc, ComponentForecast)
    assert fc.model_name == "Random Forest"
    assert fc.confidence_weight == 0.25
    assert fc.horizon == 4


# ── build_models ──────────────────────────────────────────────────────────────

class TestBuildModels:
    def test_default_set_in_canonical_order(self):
        models = build_models()
        assert [m.kind for m in models] == list(ModelKind)
        assert [m.confidence_weight for m in models] == [0.45, 0.25, 0.20, 0.10, 0.10]

    def test_fresh_instances_each_call(self):
        a, b = build_models(), build_models()
        assert all(x is not y for x, y in zip(a, b))

    def test_active_subset_keeps_canonical_order(self):
        models = build_models(active=["short_trend", ModelKind.MOMENTUM])
        assert [m.kind for m in models] == [ModelKind.MOMENTUM, ModelKind.SHORT_TREND]

    def test_sentiment_signal_passed_to_sentiment_model(self):
        signal = SentimentSignal.exogenous(1.02)
        (model,) = build_models(sentiment=signal, active=["sentiment"])
        assert isinstance(model, SentimentModel)
        assert model.signal is signal

    def test_unknown_kind_raises(self):
        with pytest.raises(ValueError, match="Unknown model kind"):
            build_models(active=["lstm"])

    def test_empty_selection_raises(self):
        with pytest.raises(ValueError, match="At least one"):
            build_models(active=[])

    def test_all_models_share_interface(self):
        for m in build_models():
            assert isinstance(m, ComponentModel)
            assert 0.0 < m.confidence_weight <= 1.0
            assert m.name

    def test_base_class_requires_predict(self):
        with pytest.raises(TypeError):
            ComponentModel()

        class NoPredict(ComponentModel):
            kind = ModelKind.MOMENTUM
            name = "incomplete"
            confidence_weight = 0.5

        with pytest.raises(TypeError):
            NoPredict()
