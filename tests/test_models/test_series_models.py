"""
Tests for PricePoint and HistoricalSeries.
"""

from __future__ import annotations

from datetime import date, timedelta

import pytest
from pydantic import ValidationError

from price_ensemble.models.series import HistoricalSeries, PricePoint

D0 = date(2026, 10, 1)


def test_price_point_valid() -> None:
    p = PricePoint(obs_date=D0, price=123.45)
    assert p.price == 123.45


@pytest.mark.parametrize("price", [0.0, -10.0])
def test_price_point_rejects_non_positive(price: float) -> None:
    with pytest.raises(ValidationError, match="positive"):
        PricePoint(obs_date=D0, price=price)


def test_price_point_frozen() -> None:
    p = PricePoint(obs_date=D0, price=1.0)
    with pytest.raises(ValidationError):
        p.price = 2.0


def test_series_rejects_unordered_dates() -> None:
    points = (
        PricePoint(obs_date=D0 + timedelta(days=1), price=1.0),
        PricePoint(obs_date=D0, price=2.0),
    )
    with pytest.raises(ValidationError, match="ascending"):
        HistoricalSeries(points=points)


def test_series_rejects_duplicate_dates() -> None:
    points = (PricePoint(obs_date=D0, price=1.0), PricePoint(obs_date=D0, price=2.0))
    with pytest.raises(ValidationError):
        HistoricalSeries(points=points)


def test_from_prices_ends_on_end_date() -> None:
    series = HistoricalSeries.from_prices([10.0, 11.0, 12.0], end_date=D0)
    assert series.dates == [D0 - timedelta(days=2), D0 - timedelta(days=1), D0]
    assert series.prices == [10.0, 11.0, 12.0]
    assert series.last_price == 12.0
    assert len(series) == 3


def test_empty_series() -> None:
    series = HistoricalSeries()
    assert len(series) == 0
    assert series.prices == []
    assert series.last_price is None
