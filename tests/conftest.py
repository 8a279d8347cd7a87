"""
Shared pytest fixtures for the price-ensemble test suite.

Provides:
  - Price series fixtures (flat, steadily rising, noisy saw-tooth).
  - ``seeded_rng``: a fresh ``numpy.random.Generator`` with a fixed seed.
  - ``zero_noise_rng``: a generator stand-in whose every uniform draw is the
    interval midpoint, so symmetric noise terms vanish.
"""

from __future__ import annotations

from datetime import date

import numpy as np
import pytest

from price_ensemble.models.series import HistoricalSeries


class MidpointRng:
    """Generator stand-in: ``uniform(low, high)`` always returns the midpoint."""

    def uniform(self, low: float, high: float) -> float:
        return (low + high) / 2

    def spawn(self, n: int) -> list["MidpointRng"]:
        return [MidpointRng() for _ in range(n)]


# ── Random sources ────────────────────────────────────────────────────────────

@pytest.fixture
def seeded_rng() -> np.random.Generator:
    return np.random.default_rng(1234)


@pytest.fixture
def zero_noise_rng() -> MidpointRng:
    return MidpointRng()


# ── Price series ──────────────────────────────────────────────────────────────

@pytest.fixture
def flat_prices() -> list[float]:
    """30 identical observations of 100.0."""
    return [100.0] * 30


@pytest.fixture
def rising_prices() -> list[float]:
    """40 observations compounding at +1% per day from 100.0."""
    return [100.0 * 1.01 ** i for i in range(40)]


@pytest.fixture
def noisy_prices() -> list[float]:
    """45 observations of a deterministic saw-tooth around an upward drift."""
    return [100.0 + 0.5 * i + (3.0 if i % 3 == 0 else -2.0) for i in range(45)]


@pytest.fixture
def sample_series(noisy_prices: list[float]) -> HistoricalSeries:
    return HistoricalSeries.from_prices(noisy_prices, end_date=date(2026, 10, 17))
