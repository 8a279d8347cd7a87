"""
Component forecasting models.

Five fixed-formula heuristics stand in for distinct forecasting
methodologies.  None of them is fit to data: each reads a trend and a
volatility off recent history and rolls a price path forward.

  MomentumModel           → weighted two-week trend blended with a month-scale
                            trend; weekly cycle; non-linear momentum term.
  StableTrendModel        → two-week simple trend; damped noise.
  NonlinearSeasonalModel  → ten-day simple trend; half-week sine cycle.
  SentimentModel          → no price trend; daily change from a sentiment
                            signal (exogenous) or a biased random draw.
  ShortTrendModel         → amplified five-day trend; fixed-size noise.

Interface contract
------------------
All models implement:

  predict(prices: Sequence[float], horizon: int, rng) → list[float]
    Generate ``horizon`` prices autoregressively: day i's prediction is the
    base price for day i+1.  Each day applies
    ``p_i = p_{i-1} * (1 + trend + seasonal + momentum + noise)``
    with only the terms the model defines.

  forecast(prices, horizon, rng) → ComponentForecast
    ``predict`` wrapped with the model's name and confidence weight.

``rng`` is a ``numpy.random.Generator`` (anything exposing
``uniform(low, high)`` works).  Models never see each other's output and
never validate their input — the ensemble boundary does that once.
"""

from __future__ import annotations

import math
from abc import ABC, abstractmethod
from typing import Any, Iterable, Sequence

from price_ensemble.forecasting.sentiment import SentimentSignal
from price_ensemble.forecasting.stats import (
    long_range_trend,
    simple_trend,
    volatility,
    weighted_trend,
    weighted_volatility,
)
from price_ensemble.models.forecast import ComponentForecast
from price_ensemble.taxonomy.model_taxonomy import ModelKind, SentimentMode


class ComponentModel(ABC):
    """Abstract base for the component models.

    Subclasses set ``kind``, ``name`` and ``confidence_weight`` and implement
    ``predict``; ``forecast`` wraps the path with that identity.
    """

    kind: ModelKind
    name: str
    confidence_weight: float

    @abstractmethod
    def predict(self, prices: Sequence[float], horizon: int, rng: Any) -> list[float]:
        """Return ``horizon`` prices rolled forward from ``prices[-1]``."""

    def forecast(self, prices: Sequence[float], horizon: int, rng: Any) -> ComponentForecast:
        path = self.predict(prices, horizon, rng)
        return ComponentForecast(
            model_name=self.name,
            confidence_weight=self.confidence_weight,
            path=tuple(float(p) for p in path),
        )

    def __repr__(self) -> str:
        return f"{self.__class__.__name__}(weight={self.confidence_weight})"


class MomentumModel(ComponentModel):
    """Long-range attention analogue.

    The short (weighted, 14-obs) trend dominates early days; its blend weight
    decays by 0.05 per day down to a floor of 0.2, handing over to the
    30-obs long-range trend for distant days.
    """

    kind = ModelKind.MOMENTUM
    name = "Transformer"
    confidence_weight = 0.45

    def predict(self, prices: Sequence[float], horizon: int, rng: Any) -> list[float]:
        trend = weighted_trend(prices, 14)
        long_trend = long_range_trend(prices)
        vol = weighted_volatility(prices)
        momentum = math.tanh(trend * 10) * 0.005

        path: list[float] = []
        last = prices[-1]
        for i in range(horizon):
            weekly = math.sin((i % 7) * math.pi / 3.5) * 0.002
            short_weight = max(0.2, 1 - i * 0.05)
            blended = trend * short_weight + long_trend * (1 - short_weight)
            noise = rng.uniform(-0.5, 0.5) * vol * 0.4

            last = last * (1 + blended + weekly + momentum + noise)
            path.append(last)
        return path


class StableTrendModel(ComponentModel):
    """Ensemble-tree analogue: plain trend, volatility damped to 80%."""

    kind = ModelKind.STABLE_TREND
    name = "Random Forest"
    confidence_weight = 0.25

    def predict(self, prices: Sequence[float], horizon: int, rng: Any) -> list[float]:
        vol = volatility(prices) * 0.8
        trend = simple_trend(prices, 14, min_obs=10)

        path: list[float] = []
        last = prices[-1]
        for _ in range(horizon):
            last = last * (1 + trend + rng.uniform(-0.5, 0.5) * vol)
            path.append(last)
        return path


class NonlinearSeasonalModel(ComponentModel):
    """Boosted-tree analogue: ten-day trend plus a ``sin(i*pi/7)`` cycle."""

    kind = ModelKind.NONLINEAR_SEASONAL
    name = "XGBoost"
    confidence_weight = 0.20

    def predict(self, prices: Sequence[float], horizon: int, rng: Any) -> list[float]:
        vol = volatility(prices) * 0.9
        trend = simple_trend(prices, 10)

        path: list[float] = []
        last = prices[-1]
        for i in range(horizon):
            seasonal = math.sin(i * math.pi / 7) * 0.005
            last = last * (1 + trend + seasonal + rng.uniform(-0.5, 0.5) * vol)
            path.append(last)
        return path


class SentimentModel(ComponentModel):
    """Sentiment adjustment; ignores price history apart from the base price.

    Exogenous mode applies ``multiplier - 1`` identically every day, so the
    final price is ``base * multiplier ** horizon``.  Stochastic mode draws
    ``U(-0.4, 0.6) * 0.02`` per day — a slight positive bias.
    """

    kind = ModelKind.SENTIMENT
    name = "VADER Sentiment"
    confidence_weight = 0.10

    def __init__(self, signal: SentimentSignal | None = None) -> None:
        self.signal = signal or SentimentSignal.stochastic()

    def predict(self, prices: Sequence[float], horizon: int, rng: Any) -> list[float]:
        if self.signal.mode == SentimentMode.EXOGENOUS:
            changes = [self.signal.daily_change] * horizon
        else:
            changes = [rng.uniform(-0.4, 0.6) * 0.02 for _ in range(horizon)]

        path: list[float] = []
        last = prices[-1]
        for change in changes:
            last = last * (1 + change)
            path.append(last)
        return path

    def __repr__(self) -> str:
        return f"SentimentModel(mode={self.signal.mode}, impact={self.signal.impact_multiplier})"


class ShortTrendModel(ComponentModel):
    """Language-model analogue: five-day trend amplified by 1.2."""

    kind = ModelKind.SHORT_TREND
    name = "BERT NLP"
    confidence_weight = 0.10

    def predict(self, prices: Sequence[float], horizon: int, rng: Any) -> list[float]:
        trend = simple_trend(prices, 5)

        path: list[float] = []
        last = prices[-1]
        for _ in range(horizon):
            last = last * (1 + trend * 1.2 + rng.uniform(-0.5, 0.5) * 0.02)
            path.append(last)
        return path


_MODEL_CLASSES: dict[ModelKind, type[ComponentModel]] = {
    ModelKind.MOMENTUM:           MomentumModel,
    ModelKind.STABLE_TREND:       StableTrendModel,
    ModelKind.NONLINEAR_SEASONAL: NonlinearSeasonalModel,
    ModelKind.SENTIMENT:          SentimentModel,
    ModelKind.SHORT_TREND:        ShortTrendModel,
}


def build_models(
    sentiment: SentimentSignal | None = None,
    active: Iterable[ModelKind | str] | None = None,
) -> list[ComponentModel]:
    """Return fresh instances of the active component models.

    Models are always returned in canonical ``ModelKind`` order regardless of
    the order of ``active``.  Each call returns new instances (no state shared
    between forecast calls).

    Args:
        sentiment: Signal for the sentiment component; stochastic if ``None``.
        active:    Model kinds (enum values or their string values) to
                   include.  ``None`` means all five.

    Raises:
        ValueError: If ``active`` names an unknown kind or selects nothing.
    """
    if active is None:
        selected = set(ModelKind)
    else:
        selected = set()
        for kind in active:
            try:
                selected.add(ModelKind(kind))
            except ValueError:
                valid = [k.value for k in ModelKind]
                raise ValueError(
                    f"Unknown model kind '{kind}'. Valid kinds: {valid}."
                ) from None
        if not selected:
            raise ValueError("At least one component model must be active.")

    models: list[ComponentModel] = []
    for kind in ModelKind:
        if kind not in selected:
            continue
        if kind == ModelKind.SENTIMENT:
            models.append(SentimentModel(sentiment))
        else:
            models.append(_MODEL_CLASSES[kind]())
    return models
