"""
Series synthesizer — the ensemble's typical demo caller.

When no live price series is supplied, the synthesizer builds one: a
random walk ending today, followed by the ensemble's forecast, flattened
into ``ChartRow`` records for a chart collaborator.

Synthesis flow
--------------
1. Random-walk ``days`` past prices from ``start_price``:
   ``p += U(-0.5, 0.5) * asset_volatility * p``.
2. Append today's point, repeating the last walked price.
3. Run the ensemble over the full series for the timeframe's horizon with
   ``volatility_factor = asset_volatility * volatility_multiplier``
   (e.g. 0.03 * 30 = 0.9 for BTC).
4. Emit one historical row per past/today point and one forecast row per
   horizon day (``actual=None``).

Prices are not clamped: an extreme ``asset_volatility`` can walk the
synthetic history towards zero, which the ensemble boundary then rejects.
"""

from __future__ import annotations

import logging
from datetime import date, timedelta
from typing import Any

import pandas as pd

from price_ensemble.config import AppConfig
from price_ensemble.forecasting.ensemble import EnsembleCombiner, make_rng
from price_ensemble.forecasting.sentiment import SentimentSignal
from price_ensemble.models.forecast import ChartRow
from price_ensemble.models.series import HistoricalSeries, PricePoint
from price_ensemble.utils.time_utils import (
    forecast_dates,
    history_days_for_timeframe,
    timeframe_to_days,
)

logger = logging.getLogger(__name__)

_FRAME_COLUMNS = ["date", "actual", "predicted", "upper_bound", "lower_bound"]


def asset_volatility(symbol: str, config: AppConfig | None = None) -> float:
    """Daily volatility constant for ``symbol`` (BTC 0.03, others 0.04 by default)."""
    cfg = (config or AppConfig()).synthesizer
    return cfg.asset_volatility.get(symbol.upper(), cfg.default_asset_volatility)


def synthesize_history(
    days: int,
    start_price: float,
    volatility: float,
    rng: Any,
    end_date: date | None = None,
) -> HistoricalSeries:
    """Random-walk ``days`` past prices and append today's point.

    Args:
        days:        Number of past days to walk (``>= 0``).
        start_price: Price the walk starts from (positive).
        volatility:  Per-day noise scale as a fraction of price.
        rng:         Generator exposing ``uniform(low, high)``.
        end_date:    Date of the final ("today") point; defaults to today.

    Returns:
        ``HistoricalSeries`` with ``days + 1`` daily points.

    Raises:
        ValueError: If ``days < 0`` or ``start_price <= 0``.
        pydantic.ValidationError: If the walk produces a non-positive price.
    """
    if days < 0:
        raise ValueError(f"days must be >= 0, got {days}.")
    if not start_price > 0:
        raise ValueError(f"start_price must be positive, got {start_price}.")
    if end_date is None:
        end_date = date.today()

    points: list[PricePoint] = []
    current = float(start_price)
    for i in range(days, 0, -1):
        current += rng.uniform(-0.5, 0.5) * volatility * current
        points.append(PricePoint(obs_date=end_date - timedelta(days=i), price=current))
    points.append(PricePoint(obs_date=end_date, price=current))

    return HistoricalSeries(points=tuple(points))


def generate_prediction_data(
    days: int | None,
    start_price: float,
    symbol: str,
    timeframe: str,
    sentiment: SentimentSignal | None = None,
    rng: Any = None,
    config: AppConfig | None = None,
    today: date | None = None,
) -> list[ChartRow]:
    """Synthesize a history for ``symbol`` and append the ensemble forecast.

    Args:
        days:        Past days of synthetic history; ``None`` uses the
                     timeframe default (1d→7, 7d→14, 30d→30).
        start_price: Starting price of the walk.
        symbol:      Asset symbol, selects the volatility constant.
        timeframe:   Forecast timeframe string (``"1d"``, ``"7d"``, ``"30d"``…).
        sentiment:   Sentiment signal for this call; stochastic when ``None``.
        rng:         Generator shared by the walk and the ensemble; seeded
                     from ``config.forecast.seed`` when ``None``.
        config:      Optional ``AppConfig``; built-in defaults otherwise.
        today:       Date of the last historical point; defaults to today.

    Returns:
        Historical rows followed by ``horizon`` forecast rows.
    """
    if config is None:
        config = AppConfig()
    if today is None:
        today = date.today()
    if rng is None:
        rng = make_rng(config.forecast.seed)

    horizon = timeframe_to_days(timeframe)
    if days is None:
        days = history_days_for_timeframe(timeframe)
    vol = asset_volatility(symbol, config)
    multiplier = config.synthesizer.volatility_multiplier

    history = synthesize_history(days, start_price, vol, rng, end_date=today)

    combiner = EnsembleCombiner.from_config(config, sentiment=sentiment)
    points = combiner.combine(history, horizon, volatility_factor=vol * multiplier, rng=rng)

    rows = [
        ChartRow(
            row_date=p.obs_date,
            actual=p.price,
            predicted=p.price,
            upper_bound=p.price,
            lower_bound=p.price,
        )
        for p in history.points
    ]
    for target, point in zip(forecast_dates(today, horizon), points):
        rows.append(
            ChartRow(
                row_date=target,
                actual=None,
                predicted=point.predicted_price,
                upper_bound=point.upper_bound,
                lower_bound=point.lower_bound,
            )
        )

    logger.info(
        "Synthesized %d history rows + %d forecast rows for %s (%s)",
        len(history), horizon, symbol.upper(), timeframe,
    )
    return rows


def rows_to_frame(rows: list[ChartRow]) -> pd.DataFrame:
    """Flatten chart rows into a DataFrame with one column per field."""
    if not rows:
        return pd.DataFrame(columns=_FRAME_COLUMNS)
    records = [
        {
            "date": r.row_date,
            "actual": r.actual,
            "predicted": r.predicted,
            "upper_bound": r.upper_bound,
            "lower_bound": r.lower_bound,
        }
        for r in rows
    ]
    frame = pd.DataFrame.from_records(records, columns=_FRAME_COLUMNS)
    frame["date"] = pd.to_datetime(frame["date"])
    return frame
