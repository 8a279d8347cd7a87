"""
Forecasting layer — fixed-formula component models and their ensemble.

Modules
-------
stats        : Trend / volatility estimators with short-series fallbacks.
components   : The five component models and build_models().
sentiment    : SentimentSignal — per-call sentiment mode and impact multiplier.
ensemble     : EnsembleCombiner — runs components, weighted mean, disagreement
               band, confidence, weight breakdown.
synthesizer  : Synthetic history + forecast rows for demo/chart callers.
"""
