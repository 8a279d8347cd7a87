"""
Configuration for price-ensemble: ``load_config(config_path=None) -> AppConfig``.

Layers, later ones winning:
  1. ``config/default.toml`` (or an explicit ``--config`` file)
  2. ``config/local.toml`` beside it, if present (gitignored)
  3. ``.env`` at the project root, exported into the environment
  4. ``PRICE_ENSEMBLE_LOG_LEVEL`` / ``_SEED`` / ``_MAX_WORKERS`` / ``_DEBUG``

The forecasting core itself takes plain arguments; ``AppConfig`` is consumed
by the CLI, the synthesizer and ``EnsembleCombiner.from_config()``.
"""

from __future__ import annotations

import os
import tomllib
from pathlib import Path
from typing import Any, Callable, Optional

from dotenv import load_dotenv
from pydantic import BaseModel, ConfigDict, field_validator

from price_ensemble.taxonomy.model_taxonomy import ModelKind, SentimentMode

# ── Sub-config models ─────────────────────────────────────────────────────────


class ForecastConfig(BaseModel):
    """Ensemble forecast settings."""

    model_config = ConfigDict(frozen=True)

    timeframes: list[str] = ["1d", "7d", "30d"]
    default_timeframe: str = "7d"
    volatility_factor: float = 1.0
    seed: Optional[int] = None           # None → fresh entropy per run
    max_workers: int = 1                 # >1 → components on worker threads
    active_models: list[str] = [k.value for k in ModelKind]

    @field_validator("volatility_factor")
    @classmethod
    def validate_volatility_factor(cls, v: float) -> float:
        if v < 0:
            raise ValueError(f"volatility_factor must be >= 0, got {v}.")
        return v

    @field_validator("max_workers")
    @classmethod
    def validate_max_workers(cls, v: int) -> int:
        if v < 1:
            raise ValueError(f"max_workers must be >= 1, got {v}.")
        return v

    @field_validator("active_models")
    @classmethod
    def validate_active_models(cls, v: list[str]) -> list[str]:
        valid = {k.value for k in ModelKind}
        unknown = [m for m in v if m not in valid]
        if unknown:
            raise ValueError(
                f"Unknown active_models {unknown}; valid kinds: {sorted(valid)}."
            )
        if not v:
            raise ValueError("active_models must name at least one model.")
        return v


class SentimentConfig(BaseModel):
    """Default sentiment component behaviour (overridable per call)."""

    model_config = ConfigDict(frozen=True)

    mode: SentimentMode = SentimentMode.STOCHASTIC
    impact_multiplier: float = 1.0
    max_impact: float = 0.03

    @field_validator("impact_multiplier")
    @classmethod
    def validate_multiplier(cls, v: float) -> float:
        if not v > 0:
            raise ValueError(f"impact_multiplier must be positive, got {v}.")
        return v


class SynthesizerConfig(BaseModel):
    """Synthetic-history parameters for the demo harness.

    ``volatility_factor`` for a synthesized forecast is
    ``asset_volatility[symbol] * volatility_multiplier``.
    """

    model_config = ConfigDict(frozen=True)

    asset_volatility: dict[str, float] = {"BTC": 0.03, "ETH": 0.04}
    default_asset_volatility: float = 0.04
    volatility_multiplier: float = 30.0
    start_prices: dict[str, float] = {"BTC": 65000.0, "ETH": 3500.0}
    default_start_price: float = 100.0

    def start_price_for(self, symbol: str) -> float:
        return self.start_prices.get(symbol.upper(), self.default_start_price)


class LoggingConfig(BaseModel):
    """Logging output settings."""

    model_config = ConfigDict(frozen=True)

    level: str = "INFO"
    log_file: str = ""
    json_format: bool = False

    @field_validator("level")
    @classmethod
    def validate_level(cls, v: str) -> str:
        valid = {"DEBUG", "INFO", "WARNING", "ERROR", "CRITICAL"}
        if v.upper() not in valid:
            raise ValueError(f"Log level must be one of {sorted(valid)}, got '{v}'.")
        return v.upper()


class AppConfig(BaseModel):
    """Complete application configuration — the single source of truth.

    Constructed by ``load_config()`` which merges TOML + .env.
    ``AppConfig()`` with no arguments yields the built-in defaults.
    """

    model_config = ConfigDict(frozen=True)

    forecast: ForecastConfig = ForecastConfig()
    sentiment: SentimentConfig = SentimentConfig()
    synthesizer: SynthesizerConfig = SynthesizerConfig()
    logging: LoggingConfig = LoggingConfig()
    debug: bool = False


# ── Loader ────────────────────────────────────────────────────────────────────

_PACKAGE_DIR = Path(__file__).resolve().parent


def _truthy(value: str) -> bool:
    return value.strip().lower() in ("1", "true", "yes", "on")


# (env var, config section or None for top level, key, parser)
_ENV_OVERRIDES: tuple[tuple[str, Optional[str], str, Callable[[str], Any]], ...] = (
    ("PRICE_ENSEMBLE_LOG_LEVEL",   "logging",  "level",       str),
    ("PRICE_ENSEMBLE_SEED",        "forecast", "seed",        int),
    ("PRICE_ENSEMBLE_MAX_WORKERS", "forecast", "max_workers", int),
    ("PRICE_ENSEMBLE_DEBUG",       None,       "debug",       _truthy),
)


def _project_root() -> Path:
    """Nearest ancestor of the package holding ``pyproject.toml``."""
    for candidate in (_PACKAGE_DIR, *_PACKAGE_DIR.parents):
        if (candidate / "pyproject.toml").exists():
            return candidate
    return _PACKAGE_DIR.parent


def load_config(config_path: Optional[Path] = None) -> AppConfig:
    """Load and merge application configuration.

    Args:
        config_path: Explicit path to a TOML config file. Defaults to
            ``<project_root>/config/default.toml``; when that default file is
            absent the built-in defaults are used.

    Returns:
        Fully validated ``AppConfig`` instance.

    Raises:
        FileNotFoundError: If the specified ``config_path`` does not exist.
        pydantic.ValidationError: If merged config values fail validation.
    """
    root = _project_root()
    load_dotenv(dotenv_path=root / ".env", override=False)

    if config_path is not None:
        toml_path = Path(config_path)
        if not toml_path.exists():
            raise FileNotFoundError(f"Config file not found: {toml_path}")
    else:
        toml_path = root / "config" / "default.toml"

    raw = _read_toml(toml_path) if toml_path.exists() else {}

    # config/local.toml next to the chosen file wins over it
    local_path = toml_path.parent / "local.toml"
    if local_path.exists():
        raw = _deep_merge(raw, _read_toml(local_path))

    return _build_app_config(_apply_env_overrides(raw))


def _read_toml(path: Path) -> dict[str, Any]:
    with open(path, "rb") as f:
        return tomllib.load(f)


def _deep_merge(base: dict[str, Any], override: dict[str, Any]) -> dict[str, Any]:
    """Return ``base`` with ``override`` merged in, recursing into tables."""
    merged = dict(base)
    for key, val in override.items():
        current = merged.get(key)
        if isinstance(current, dict) and isinstance(val, dict):
            merged[key] = _deep_merge(current, val)
        else:
            merged[key] = val
    return merged


def _apply_env_overrides(raw: dict[str, Any]) -> dict[str, Any]:
    """Overlay ``PRICE_ENSEMBLE_*`` variables listed in ``_ENV_OVERRIDES``."""
    for var, section, key, parse in _ENV_OVERRIDES:
        value = os.environ.get(var)
        if not value:
            continue
        target = raw if section is None else raw.setdefault(section, {})
        target[key] = parse(value)
    return raw


def _build_app_config(raw: dict[str, Any]) -> AppConfig:
    """Validate each TOML table into its sub-config model."""
    # [project] debug = ... is accepted as an alias for top-level debug
    project = raw.pop("project", {})
    return AppConfig(
        forecast=ForecastConfig(**raw.get("forecast", {})),
        sentiment=SentimentConfig(**raw.get("sentiment", {})),
        synthesizer=SynthesizerConfig(**raw.get("synthesizer", {})),
        logging=LoggingConfig(**raw.get("logging", {})),
        debug=raw.get("debug", project.get("debug", False)),
    )
