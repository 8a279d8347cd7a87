"""
Per-call sentiment configuration for the sentiment component model.

The news-sentiment collaborator (feed retrieval, keyword scoring) lives
outside this package.  The engine only consumes its result as a single
price-impact multiplier where ``1.0`` is neutral:

  multiplier = 1.05  → +5% applied on every forecast day
  multiplier = 0.98  → -2% applied on every forecast day

When the collaborator fails, the caller substitutes ``NEUTRAL_IMPACT``
(see ``resolve_impact``) before calling the engine.  The engine never sees
collaborator failure modes.

A ``SentimentSignal`` is a value, not shared state: each forecast call
builds its own model set from it.
"""

from __future__ import annotations

from typing import Optional

from pydantic import BaseModel, ConfigDict, field_validator

from price_ensemble.taxonomy.model_taxonomy import SentimentMode

NEUTRAL_IMPACT = 1.0

# Largest fractional daily impact a maximally bullish/bearish score maps to.
DEFAULT_MAX_IMPACT = 0.03


class SentimentSignal(BaseModel):
    """How the sentiment component should behave for one forecast call.

    Attributes:
        mode: ``EXOGENOUS`` uses ``impact_multiplier``; ``STOCHASTIC`` ignores
            it and draws a random daily change.
        impact_multiplier: Positive price-impact multiplier, 1.0 = neutral.
    """

    model_config = ConfigDict(frozen=True)

    mode: SentimentMode = SentimentMode.STOCHASTIC
    impact_multiplier: float = NEUTRAL_IMPACT

    @field_validator("impact_multiplier")
    @classmethod
    def validate_multiplier_positive(cls, v: float) -> float:
        if not v > 0:
            raise ValueError(f"impact_multiplier must be positive, got {v}.")
        return v

    @classmethod
    def stochastic(cls) -> "SentimentSignal":
        return cls(mode=SentimentMode.STOCHASTIC)

    @classmethod
    def exogenous(cls, multiplier: float) -> "SentimentSignal":
        return cls(mode=SentimentMode.EXOGENOUS, impact_multiplier=multiplier)

    @classmethod
    def from_score(
        cls, score: float, max_impact: float = DEFAULT_MAX_IMPACT
    ) -> "SentimentSignal":
        """Exogenous signal from a sentiment score in [-1, 1].

        Args:
            score:      Net sentiment, -1 (fully bearish) to 1 (fully bullish).
            max_impact: Fractional daily impact of a score of ±1.

        Raises:
            ValueError: If ``score`` is outside [-1, 1].
        """
        if not -1.0 <= score <= 1.0:
            raise ValueError(f"sentiment score must be in [-1.0, 1.0], got {score}.")
        return cls.exogenous(NEUTRAL_IMPACT + score * max_impact)

    @property
    def daily_change(self) -> Optional[float]:
        """Constant fractional daily change in exogenous mode, else ``None``."""
        if self.mode == SentimentMode.EXOGENOUS:
            return self.impact_multiplier - NEUTRAL_IMPACT
        return None


def resolve_impact(multiplier: float | None) -> float:
    """Return ``multiplier``, or the neutral impact when it is unavailable."""
    return NEUTRAL_IMPACT if multiplier is None else multiplier
