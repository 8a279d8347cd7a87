"""
Historical price series models.

``PricePoint`` is one daily observation; ``HistoricalSeries`` is an ordered,
strictly ascending run of them.  The forecasting math only ever looks at
``HistoricalSeries.prices`` (index order); dates are carried for callers that
render results.

Gaps in the daily cadence are NOT detected — callers guarantee cadence.

Both models are frozen (immutable) after construction.
"""

from __future__ import annotations

from datetime import date, timedelta
from typing import Sequence

from pydantic import BaseModel, ConfigDict, field_validator


class PricePoint(BaseModel):
    """A single daily price observation.

    Attributes:
        obs_date: Calendar day of the observation (no intraday resolution).
        price: Observed price; must be strictly positive.
    """

    model_config = ConfigDict(frozen=True)

    obs_date: date
    price: float

    @field_validator("price")
    @classmethod
    def validate_price_positive(cls, v: float) -> float:
        if not v > 0:
            raise ValueError(f"price must be positive, got {v}.")
        return v


class HistoricalSeries(BaseModel):
    """Chronological sequence of ``PricePoint`` records.

    Attributes:
        points: Observations ordered strictly ascending by date.
    """

    model_config = ConfigDict(frozen=True)

    points: tuple[PricePoint, ...] = ()

    @field_validator("points")
    @classmethod
    def validate_ascending_dates(
        cls, v: tuple[PricePoint, ...]
    ) -> tuple[PricePoint, ...]:
        for prev, curr in zip(v, v[1:]):
            if curr.obs_date <= prev.obs_date:
                raise ValueError(
                    f"points must be strictly ascending by date: "
                    f"{curr.obs_date} follows {prev.obs_date}."
                )
        return v

    @classmethod
    def from_prices(
        cls, prices: Sequence[float], end_date: date
    ) -> "HistoricalSeries":
        """Build a daily series whose last point falls on ``end_date``."""
        n = len(prices)
        return cls(
            points=tuple(
                PricePoint(obs_date=end_date - timedelta(days=n - 1 - i), price=p)
                for i, p in enumerate(prices)
            )
        )

    @property
    def prices(self) -> list[float]:
        return [p.price for p in self.points]

    @property
    def dates(self) -> list[date]:
        return [p.obs_date for p in self.points]

    @property
    def last_price(self) -> float | None:
        return self.points[-1].price if self.points else None

    def __len__(self) -> int:
        return len(self.points)
