"""
Ensemble combiner: run every active component model and merge their paths.

Aggregation per day offset ``d`` (``H`` = horizon)
-------------------------------------------------
  combined[d]   = Σ(w_m * path_m[d]) / Σ(w_m)
  variance[d]   = unweighted population variance of {path_m[d]}
  std[d]        = sqrt(variance[d])
  widening[d]   = 1 + d / H                (1.0 on the first day)
  half[d]       = std[d] * 1.96 * widening[d] * volatility_factor
  bounds        = combined[d] ± half[d]
  confidence[d] = 1 - std[d] / combined[d]

Two asymmetries are intentional and preserved:

  - The central estimate is confidence-weighted, but the disagreement
    variance treats every model equally.  The band reflects raw model
    spread, not confidence-adjusted spread.
  - ``confidence`` is not clamped to [0, 1].  Large disagreement relative to
    price pushes it negative.  A combined price of exactly 0 yields ``nan``.

Randomness
----------
Every call takes an explicit ``numpy.random.Generator``.  Each component
model gets its own child generator spawned in canonical model order, so a
seeded call produces bit-identical output whether the components run
sequentially or on worker threads.  Do not share one generator object
between concurrent forecast calls.
"""

from __future__ import annotations

import logging
import math
from concurrent.futures import ThreadPoolExecutor
from numbers import Integral, Real
from typing import TYPE_CHECKING, Any, Sequence
from uuid import uuid4

import numpy as np

from price_ensemble.forecasting.components import ComponentModel, SentimentModel, build_models
from price_ensemble.forecasting.sentiment import SentimentSignal
from price_ensemble.forecasting.stats import population_variance
from price_ensemble.models.forecast import (
    ComponentForecast,
    EnsembleForecast,
    EnsembleForecastPoint,
    WeightContribution,
)
from price_ensemble.models.series import HistoricalSeries
from price_ensemble.taxonomy.model_taxonomy import SentimentMode
from price_ensemble.utils.time_utils import utcnow

if TYPE_CHECKING:
    from price_ensemble.config import AppConfig

logger = logging.getLogger(__name__)

# z-score for a 95% two-sided interval
INTERVAL_Z = 1.96


class ForecastInputError(ValueError):
    """Raised at the ensemble boundary before any component model runs."""


def make_rng(seed: int | None = None) -> np.random.Generator:
    """Return a new generator; ``seed=None`` draws fresh OS entropy."""
    return np.random.default_rng(seed)


def day_widening_factor(day_offset: int, horizon: int) -> float:
    """Band multiplier ``1 + d / H``; strictly increasing in ``d``."""
    return 1 + day_offset / horizon


def aggregate_day(
    day_offset: int,
    horizon: int,
    prices: Sequence[float],
    weights: Sequence[float],
    volatility_factor: float = 1.0,
) -> EnsembleForecastPoint:
    """Combine the component prices for one day into a forecast point.

    Args:
        day_offset:        0-based day index.
        horizon:           Total forecast days (for the widening factor).
        prices:            Same-day price from each component, model order.
        weights:           Confidence weight of each component, model order.
        volatility_factor: Caller-supplied band scale.

    Returns:
        ``EnsembleForecastPoint`` for ``day_offset``.
    """
    combined = sum(w * p for w, p in zip(weights, prices)) / sum(weights)
    std = math.sqrt(population_variance(prices))
    half_width = std * INTERVAL_Z * day_widening_factor(day_offset, horizon) * volatility_factor
    confidence = 1 - std / combined if combined != 0 else math.nan

    return EnsembleForecastPoint(
        day_offset=day_offset,
        predicted_price=combined,
        lower_bound=combined - half_width,
        upper_bound=combined + half_width,
        confidence=confidence,
    )


def weight_breakdown(models: Sequence[ComponentModel]) -> list[WeightContribution]:
    """Normalize each model's confidence weight to a percentage of the total.

    The fixed default weights sum to 1.10, so this always rescales rather
    than assuming pre-normalized inputs.
    """
    total = sum(m.confidence_weight for m in models)
    return [
        WeightContribution(
            model_name=m.name,
            percentage=m.confidence_weight / total * 100,
        )
        for m in models
    ]


def _as_prices(series: HistoricalSeries | Sequence[float]) -> list[float]:
    if isinstance(series, HistoricalSeries):
        return series.prices
    return [float(p) for p in series]


def _validate_inputs(
    prices: Sequence[float],
    horizon: Any,
    volatility_factor: Any,
) -> None:
    if isinstance(horizon, bool) or not isinstance(horizon, Integral) or horizon <= 0:
        raise ForecastInputError(f"horizon must be a positive integer, got {horizon!r}.")
    if not prices:
        raise ForecastInputError("historical series must contain at least one price.")
    bad = [p for p in prices if not (math.isfinite(p) and p > 0)]
    if bad:
        raise ForecastInputError(
            f"historical prices must be finite and positive; found {len(bad)} invalid value(s), "
            f"first={bad[0]!r}."
        )
    if (
        isinstance(volatility_factor, bool)
        or not isinstance(volatility_factor, Real)
        or not math.isfinite(volatility_factor)
        or volatility_factor < 0
    ):
        raise ForecastInputError(
            f"volatility_factor must be a finite non-negative number, got {volatility_factor!r}."
        )


class EnsembleCombiner:
    """Runs a fixed set of component models and merges their forecasts.

    The model set is decided at construction (from an explicit list, or from
    a sentiment signal plus optional active-kind selection) and never mutated.
    Build a new combiner to change it.

    Attributes:
        models: Active component models in canonical order.
        max_workers: Worker threads for component evaluation; 1 = sequential.
    """

    def __init__(
        self,
        models: Sequence[ComponentModel] | None = None,
        sentiment: SentimentSignal | None = None,
        active: Sequence[str] | None = None,
        max_workers: int = 1,
    ) -> None:
        if models is not None and (sentiment is not None or active is not None):
            raise ValueError("Pass either explicit models or sentiment/active, not both.")
        if max_workers < 1:
            raise ValueError(f"max_workers must be >= 1, got {max_workers}.")
        self.models: tuple[ComponentModel, ...] = tuple(
            models if models is not None else build_models(sentiment, active)
        )
        if not self.models:
            raise ValueError("EnsembleCombiner needs at least one component model.")
        self.max_workers = max_workers

    @classmethod
    def from_config(
        cls, config: AppConfig, sentiment: SentimentSignal | None = None
    ) -> "EnsembleCombiner":
        """Build a combiner from ``AppConfig``.

        ``sentiment`` overrides the configured sentiment section for this call.
        """
        if sentiment is None:
            sentiment = SentimentSignal(
                mode=config.sentiment.mode,
                impact_multiplier=config.sentiment.impact_multiplier,
            )
        return cls(
            sentiment=sentiment,
            active=config.forecast.active_models,
            max_workers=config.forecast.max_workers,
        )

    # ── Component evaluation ──────────────────────────────────────────────────

    def run_components(
        self,
        series: HistoricalSeries | Sequence[float],
        horizon: int,
        rng: np.random.Generator | None = None,
    ) -> list[ComponentForecast]:
        """Run every active model independently and collect their paths.

        Raises:
            ForecastInputError: On an invalid horizon or empty/non-positive series.
        """
        prices = _as_prices(series)
        _validate_inputs(prices, horizon, 1.0)
        return self._run_components(prices, horizon, rng)

    def _run_components(
        self,
        prices: list[float],
        horizon: int,
        rng: np.random.Generator | None,
    ) -> list[ComponentForecast]:
        if rng is None:
            rng = make_rng()
        child_rngs = rng.spawn(len(self.models))

        if self.max_workers == 1:
            return [
                m.forecast(prices, horizon, child)
                for m, child in zip(self.models, child_rngs)
            ]

        with ThreadPoolExecutor(max_workers=self.max_workers) as executor:
            futures = [
                executor.submit(m.forecast, prices, horizon, child)
                for m, child in zip(self.models, child_rngs)
            ]
            return [f.result() for f in futures]

    # ── Aggregation ───────────────────────────────────────────────────────────

    def combine(
        self,
        series: HistoricalSeries | Sequence[float],
        horizon: int,
        volatility_factor: float = 1.0,
        rng: np.random.Generator | None = None,
    ) -> list[EnsembleForecastPoint]:
        """Produce the combined forecast, one point per horizon day.

        Args:
            series:            Historical prices (or ``HistoricalSeries``),
                               oldest first.
            horizon:           Number of future days; must be a positive int.
            volatility_factor: Band scaling factor (default 1.0).
            rng:               Generator for the noise terms; fresh entropy
                               when ``None``.

        Returns:
            List of ``EnsembleForecastPoint`` of length ``horizon``.

        Raises:
            ForecastInputError: Before any model runs, on invalid inputs.
        """
        points, _ = self._combine(series, horizon, volatility_factor, rng)
        return points

    def _combine(
        self,
        series: HistoricalSeries | Sequence[float],
        horizon: int,
        volatility_factor: float,
        rng: np.random.Generator | None,
    ) -> tuple[list[EnsembleForecastPoint], list[ComponentForecast]]:
        prices = _as_prices(series)
        _validate_inputs(prices, horizon, volatility_factor)

        components = self._run_components(prices, horizon, rng)
        weights = [c.confidence_weight for c in components]

        points = [
            aggregate_day(
                day_offset=d,
                horizon=horizon,
                prices=[c.path[d] for c in components],
                weights=weights,
                volatility_factor=volatility_factor,
            )
            for d in range(horizon)
        ]
        return points, components

    def forecast(
        self,
        series: HistoricalSeries | Sequence[float],
        horizon: int,
        volatility_factor: float = 1.0,
        rng: np.random.Generator | None = None,
    ) -> EnsembleForecast:
        """``combine`` plus the component paths and weight breakdown.

        Raises:
            ForecastInputError: Before any model runs, on invalid inputs.
        """
        run_slug = str(uuid4())
        logger.debug(
            "Ensemble forecast starting | horizon=%s models=%d run_slug=%s",
            horizon, len(self.models), run_slug,
        )
        points, components = self._combine(series, horizon, volatility_factor, rng)

        result = EnsembleForecast(
            run_slug=run_slug,
            horizon=horizon,
            volatility_factor=volatility_factor,
            sentiment_mode=self.sentiment_mode,
            points=tuple(points),
            components=tuple(components),
            weights=tuple(self.weight_breakdown()),
            generated_at=utcnow(),
        )
        logger.info(
            "Ensemble forecast complete | horizon=%d models=%d final=%.4f "
            "band=[%.4f, %.4f] run_slug=%s",
            horizon, len(components), points[-1].predicted_price,
            points[-1].lower_bound, points[-1].upper_bound, run_slug,
            extra={"run_slug": run_slug, "horizon": int(horizon)},
        )
        return result

    # ── Introspection ─────────────────────────────────────────────────────────

    def weight_breakdown(self) -> list[WeightContribution]:
        """Normalized weight percentages of the active models; sums to 100."""
        return weight_breakdown(self.models)

    @property
    def sentiment_mode(self) -> SentimentMode | None:
        """Mode of the active sentiment component, or ``None`` when it is inactive."""
        for m in self.models:
            if isinstance(m, SentimentModel):
                return m.signal.mode
        return None
