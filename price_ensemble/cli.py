"""
price-ensemble — CLI entry point (demo harness for the forecasting engine).

All commands follow this pattern:
  1. Load ``AppConfig`` via ``load_config()``.
  2. Configure logging.
  3. Validate inputs.
  4. Run the ensemble (or inspect its configuration).
  5. Report result to stdout (text table or ``--json``).

Install and run::

    pip install -e .
    price-ensemble --help
    price-ensemble validate-config
    price-ensemble weights
    price-ensemble forecast --symbol BTC --timeframe 7d --seed 42
    price-ensemble forecast --prices 100,101,103,102,104 --horizon 3
    price-ensemble chart --symbol ETH --timeframe 30d --sentiment-impact 1.02
"""

from __future__ import annotations

import json
from datetime import date
from pathlib import Path
from typing import Optional

import typer

app = typer.Typer(
    name="price-ensemble",
    help="Ensemble price forecasting — confidence-weighted component models.",
    add_completion=False,
)


# ── Helpers ───────────────────────────────────────────────────────────────────

def _load_config_or_exit(config_path: Optional[str] = None):
    """Load AppConfig, printing a friendly error and exiting on failure."""
    from price_ensemble.config import load_config

    try:
        cfg_path = Path(config_path) if config_path else None
        return load_config(cfg_path)
    except FileNotFoundError as exc:
        typer.echo(f"[ERROR] {exc}", err=True)
        raise typer.Exit(code=1)
    except Exception as exc:
        typer.echo(f"[ERROR] Config validation failed: {exc}", err=True)
        raise typer.Exit(code=1)


def _configure_logging(config):
    """Set up logging from config."""
    from price_ensemble.utils.logging import configure_logging
    configure_logging(config.logging, debug=config.debug)


def _parse_prices(raw: str) -> list[float]:
    """Parse ``"100,101.5,99"`` into floats, exiting on malformed input."""
    try:
        return [float(tok) for tok in raw.split(",") if tok.strip()]
    except ValueError as exc:
        typer.echo(f"[ERROR] --prices must be comma-separated numbers: {exc}", err=True)
        raise typer.Exit(code=1)


def _sentiment_signal(config, impact: Optional[float], score: Optional[float]):
    """Resolve CLI sentiment flags into a ``SentimentSignal`` (or ``None``)."""
    from price_ensemble.forecasting.sentiment import SentimentSignal

    if impact is not None and score is not None:
        typer.echo(
            "[ERROR] Use either --sentiment-impact or --sentiment-score, not both.",
            err=True,
        )
        raise typer.Exit(code=1)
    try:
        if impact is not None:
            return SentimentSignal.exogenous(impact)
        if score is not None:
            return SentimentSignal.from_score(score, max_impact=config.sentiment.max_impact)
    except ValueError as exc:
        typer.echo(f"[ERROR] Invalid sentiment input: {exc}", err=True)
        raise typer.Exit(code=1)
    return None


# ── Commands ──────────────────────────────────────────────────────────────────

@app.command("validate-config")
def validate_config(
    config_path: Optional[str] = typer.Option(
        None,
        "--config",
        help="Path to TOML config file (default: config/default.toml).",
    ),
    show_full: bool = typer.Option(
        False,
        "--full",
        help="Print full config including all fields.",
    ),
) -> None:
    """Validate the configuration file and print parsed values.

    Exits with code 1 if the config fails validation.
    """
    config = _load_config_or_exit(config_path)

    typer.echo("Configuration validated successfully.")
    typer.echo("")
    typer.echo(f"  Timeframes:       {', '.join(config.forecast.timeframes)}")
    typer.echo(f"  Default timeframe:{config.forecast.default_timeframe}")
    typer.echo(f"  Active models:    {', '.join(config.forecast.active_models)}")
    typer.echo(f"  Max workers:      {config.forecast.max_workers}")
    typer.echo(f"  Seed:             {config.forecast.seed}")
    typer.echo(f"  Sentiment mode:   {config.sentiment.mode.value}")
    typer.echo(f"  Log level:        {config.logging.level}")
    typer.echo(f"  Debug mode:       {config.debug}")

    if show_full:
        typer.echo("")
        typer.echo("Full config (JSON):")
        typer.echo(json.dumps(config.model_dump(mode="json"), indent=2, default=str))

    typer.echo("")
    typer.echo("[OK] Config valid.")


@app.command("weights")
def weights(
    config_path: Optional[str] = typer.Option(
        None, "--config", help="Path to TOML config file."
    ),
    as_json: bool = typer.Option(False, "--json", help="Emit JSON instead of a table."),
) -> None:
    """Show each active model's share of the combined estimate."""
    from price_ensemble.forecasting.ensemble import EnsembleCombiner

    config = _load_config_or_exit(config_path)
    _configure_logging(config)

    breakdown = EnsembleCombiner.from_config(config).weight_breakdown()

    if as_json:
        typer.echo(json.dumps([w.model_dump() for w in breakdown], indent=2))
        return

    for w in breakdown:
        typer.echo(f"  {w.model_name:<18} {w.percentage:6.2f}%")


@app.command("forecast")
def forecast(
    symbol: str = typer.Option("BTC", "--symbol", help="Asset symbol (selects volatility)."),
    timeframe: Optional[str] = typer.Option(
        None, "--timeframe", help="Forecast timeframe, e.g. 1d, 7d, 30d."
    ),
    horizon: Optional[int] = typer.Option(
        None, "--horizon", help="Explicit horizon in days (overrides --timeframe)."
    ),
    prices: Optional[str] = typer.Option(
        None,
        "--prices",
        help="Comma-separated historical prices, oldest first. Synthesized if omitted.",
    ),
    start_price: Optional[float] = typer.Option(
        None, "--start-price", help="Start price for synthesized history."
    ),
    history_days: Optional[int] = typer.Option(
        None, "--history-days", help="Days of synthesized history."
    ),
    volatility_factor: Optional[float] = typer.Option(
        None, "--volatility-factor", help="Band scaling factor override."
    ),
    sentiment_impact: Optional[float] = typer.Option(
        None, "--sentiment-impact", help="Exogenous sentiment multiplier (1.0 = neutral)."
    ),
    sentiment_score: Optional[float] = typer.Option(
        None, "--sentiment-score", help="Sentiment score in [-1, 1]."
    ),
    seed: Optional[int] = typer.Option(None, "--seed", help="Random seed for reproducible output."),
    config_path: Optional[str] = typer.Option(None, "--config", help="Path to TOML config file."),
    as_json: bool = typer.Option(False, "--json", help="Emit JSON instead of a table."),
) -> None:
    """Run the ensemble and print the day-by-day forecast with its band.

    With ``--prices`` the given series is forecast with the configured
    volatility factor.  Otherwise a history is synthesized for ``--symbol``
    and the factor is ``asset_volatility * volatility_multiplier``.
    """
    from price_ensemble.forecasting.ensemble import (
        EnsembleCombiner,
        ForecastInputError,
        make_rng,
    )
    from price_ensemble.forecasting.synthesizer import asset_volatility, synthesize_history
    from price_ensemble.utils.time_utils import history_days_for_timeframe, timeframe_to_days

    config = _load_config_or_exit(config_path)
    _configure_logging(config)

    tf = timeframe or config.forecast.default_timeframe
    try:
        days_ahead = horizon if horizon is not None else timeframe_to_days(tf)
    except ValueError as exc:
        typer.echo(f"[ERROR] {exc}", err=True)
        raise typer.Exit(code=1)

    rng = make_rng(seed if seed is not None else config.forecast.seed)
    signal = _sentiment_signal(config, sentiment_impact, sentiment_score)

    if prices is not None:
        series = _parse_prices(prices)
        factor = config.forecast.volatility_factor
    else:
        vol = asset_volatility(symbol, config)
        try:
            series = synthesize_history(
                history_days if history_days is not None else history_days_for_timeframe(tf),
                start_price or config.synthesizer.start_price_for(symbol),
                vol,
                rng,
                end_date=date.today(),
            )
        except ValueError as exc:
            typer.echo(f"[ERROR] Could not synthesize history: {exc}", err=True)
            raise typer.Exit(code=1)
        factor = vol * config.synthesizer.volatility_multiplier

    if volatility_factor is not None:
        factor = volatility_factor

    combiner = EnsembleCombiner.from_config(config, sentiment=signal)
    try:
        result = combiner.forecast(series, days_ahead, volatility_factor=factor, rng=rng)
    except ForecastInputError as exc:
        typer.echo(f"[ERROR] {exc}", err=True)
        raise typer.Exit(code=1)

    if as_json:
        typer.echo(json.dumps(result.model_dump(mode="json"), indent=2, default=str))
        return

    typer.echo(
        f"Forecast | symbol={symbol.upper()} | horizon={result.horizon}d | "
        f"volatility_factor={result.volatility_factor:.4f}"
    )
    typer.echo("")
    typer.echo(f"  {'day':>4}  {'predicted':>14}  {'lower':>14}  {'upper':>14}  {'conf':>7}")
    for p in result.points:
        typer.echo(
            f"  {p.day_offset:>4}  {p.predicted_price:>14.4f}  {p.lower_bound:>14.4f}  "
            f"{p.upper_bound:>14.4f}  {p.confidence:>7.4f}"
        )
    typer.echo("")
    for w in result.weights:
        typer.echo(f"  {w.model_name:<18} {w.percentage:6.2f}%")


@app.command("chart")
def chart(
    symbol: str = typer.Option("BTC", "--symbol", help="Asset symbol."),
    timeframe: Optional[str] = typer.Option(
        None, "--timeframe", help="Forecast timeframe, e.g. 1d, 7d, 30d."
    ),
    start_price: Optional[float] = typer.Option(
        None, "--start-price", help="Start price of the synthesized history."
    ),
    sentiment_impact: Optional[float] = typer.Option(
        None, "--sentiment-impact", help="Exogenous sentiment multiplier (1.0 = neutral)."
    ),
    seed: Optional[int] = typer.Option(None, "--seed", help="Random seed."),
    config_path: Optional[str] = typer.Option(None, "--config", help="Path to TOML config file."),
    as_json: bool = typer.Option(False, "--json", help="Emit JSON records."),
) -> None:
    """Print the synthesized history + forecast rows a chart would plot."""
    from price_ensemble.forecasting.ensemble import make_rng
    from price_ensemble.forecasting.synthesizer import generate_prediction_data, rows_to_frame

    config = _load_config_or_exit(config_path)
    _configure_logging(config)

    tf = timeframe or config.forecast.default_timeframe
    signal = _sentiment_signal(config, sentiment_impact, None)
    rng = make_rng(seed if seed is not None else config.forecast.seed)

    try:
        rows = generate_prediction_data(
            None,
            start_price or config.synthesizer.start_price_for(symbol),
            symbol,
            tf,
            sentiment=signal,
            rng=rng,
            config=config,
        )
    except ValueError as exc:
        typer.echo(f"[ERROR] {exc}", err=True)
        raise typer.Exit(code=1)

    frame = rows_to_frame(rows)
    if as_json:
        typer.echo(frame.to_json(orient="records", date_format="iso", indent=2))
        return
    typer.echo(frame.to_string(index=False))


# ── Entry point ───────────────────────────────────────────────────────────────

if __name__ == "__main__":
    app()
