"""
Forecast output models.

``ComponentForecast`` is one component model's full price path for a call.
``EnsembleForecastPoint`` is one combined day with its uncertainty band.
``WeightContribution`` is a model's normalized share of the central estimate.
``EnsembleForecast`` bundles everything a single forecast call produced.
``ChartRow`` is the flat historical+future row handed to chart collaborators.

All models are frozen — forecasts are created fresh per call and never
mutated afterwards.
"""

from __future__ import annotations

from datetime import date, datetime
from typing import Optional

from pydantic import BaseModel, ConfigDict, field_validator, model_validator

from price_ensemble.taxonomy.model_taxonomy import SentimentMode


class ComponentForecast(BaseModel):
    """Full autoregressive price path from a single component model.

    Attributes:
        model_name: Display identifier of the producing model.
        confidence_weight: Fixed influence on the combined estimate, in (0, 1].
        path: Predicted prices, one per horizon day.
    """

    model_config = ConfigDict(frozen=True, protected_namespaces=())

    model_name: str
    confidence_weight: float
    path: tuple[float, ...]

    @field_validator("confidence_weight")
    @classmethod
    def validate_weight_range(cls, v: float) -> float:
        if not 0.0 < v <= 1.0:
            raise ValueError(f"confidence_weight must be in (0.0, 1.0], got {v}.")
        return v

    @property
    def horizon(self) -> int:
        return len(self.path)


class EnsembleForecastPoint(BaseModel):
    """Combined prediction for one horizon day.

    ``confidence`` is ``1 - std / predicted_price`` and is deliberately left
    unclamped: it can exceed 1 or drop below 0 when model disagreement is
    large relative to price, and is ``nan`` when the combined price is 0.

    Attributes:
        day_offset: 0-based index into the horizon.
        predicted_price: Confidence-weighted mean of component prices.
        lower_bound: ``predicted_price - half_width``.
        upper_bound: ``predicted_price + half_width``.
        confidence: Agreement score (see above).
    """

    model_config = ConfigDict(frozen=True)

    day_offset: int
    predicted_price: float
    lower_bound: float
    upper_bound: float
    confidence: float

    @model_validator(mode="after")
    def validate_band(self) -> "EnsembleForecastPoint":
        if self.day_offset < 0:
            raise ValueError(f"day_offset must be >= 0, got {self.day_offset}.")
        if self.lower_bound > self.upper_bound:
            raise ValueError(
                f"lower_bound ({self.lower_bound}) must be <= "
                f"upper_bound ({self.upper_bound})."
            )
        return self

    @property
    def half_width(self) -> float:
        return self.upper_bound - self.predicted_price


class WeightContribution(BaseModel):
    """A model's confidence weight as a percentage of the active total."""

    model_config = ConfigDict(frozen=True, protected_namespaces=())

    model_name: str
    percentage: float


class EnsembleForecast(BaseModel):
    """Everything produced by one ensemble forecast call.

    Attributes:
        run_slug: Random identifier used to correlate log lines for a call.
        horizon: Number of forecast days.
        volatility_factor: Band scaling factor supplied by the caller.
        sentiment_mode: Mode the sentiment component ran in, or ``None`` when
            the sentiment component was not active.
        points: Combined forecast, one per day.
        components: Per-model paths in canonical model order.
        weights: Normalized weight breakdown of the active models.
        generated_at: UTC timestamp of the call.
    """

    model_config = ConfigDict(frozen=True)

    run_slug: str
    horizon: int
    volatility_factor: float
    sentiment_mode: Optional[SentimentMode] = None
    points: tuple[EnsembleForecastPoint, ...]
    components: tuple[ComponentForecast, ...]
    weights: tuple[WeightContribution, ...]
    generated_at: datetime

    @model_validator(mode="after")
    def validate_lengths(self) -> "EnsembleForecast":
        if len(self.points) != self.horizon:
            raise ValueError(
                f"expected {self.horizon} forecast points, got {len(self.points)}."
            )
        for c in self.components:
            if c.horizon != self.horizon:
                raise ValueError(
                    f"component '{c.model_name}' path length {c.horizon} "
                    f"!= horizon {self.horizon}."
                )
        return self

    @property
    def final_price(self) -> float:
        return self.points[-1].predicted_price


class ChartRow(BaseModel):
    """One row of a historical+future chart series.

    Historical rows carry the observed price in every column; future rows
    have ``actual=None`` and the ensemble's prediction and band.
    """

    model_config = ConfigDict(frozen=True)

    row_date: date
    actual: Optional[float] = None
    predicted: float
    upper_bound: float
    lower_bound: float

    @property
    def is_forecast(self) -> bool:
        return self.actual is None
