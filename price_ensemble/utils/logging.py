"""
Logging setup for price-ensemble.

Library modules only ever do ``logger = logging.getLogger(__name__)``.  The
CLI calls ``configure_logging`` exactly once, after loading ``AppConfig``,
to install handlers on the root logger.

Output goes to stderr so ``--json`` results on stdout stay machine-readable.
With ``json_format = true`` each line is one JSON object::

    {"ts": "2026-10-17T09:00:00Z", "level": "INFO",
     "logger": "price_ensemble.forecasting.ensemble",
     "msg": "Ensemble forecast complete | ...", "run_slug": "...", "horizon": 7}

Fields passed through ``extra=`` (``run_slug``, ``horizon``...) are copied
to the top level of the JSON object.
"""

from __future__ import annotations

import json
import logging
import sys
from datetime import datetime, timezone
from pathlib import Path
from typing import TYPE_CHECKING

if TYPE_CHECKING:
    from price_ensemble.config import LoggingConfig

LOG_FORMAT = "%(asctime)s [%(levelname)s] %(name)s: %(message)s"
LOG_DATE_FORMAT = "%Y-%m-%dT%H:%M:%SZ"

_RESERVED = frozenset(
    logging.LogRecord("", 0, "", 0, "", (), None).__dict__
) | {"message", "asctime"}


class _JsonFormatter(logging.Formatter):
    """One JSON object per record: ts, level, logger, msg, plus extras."""

    def format(self, record: logging.LogRecord) -> str:
        ts = datetime.fromtimestamp(record.created, tz=timezone.utc)
        payload: dict = {
            "ts": ts.strftime(LOG_DATE_FORMAT),
            "level": record.levelname,
            "logger": record.name,
            "msg": record.getMessage(),
        }
        payload.update(
            (key, val)
            for key, val in record.__dict__.items()
            if key not in _RESERVED and not key.startswith("_")
        )
        if record.exc_info:
            payload["exc"] = self.formatException(record.exc_info)
        return json.dumps(payload, default=str)


def _make_handler(
    handler: logging.Handler, level: int, formatter: logging.Formatter
) -> logging.Handler:
    handler.setLevel(level)
    handler.setFormatter(formatter)
    return handler


def configure_logging(config: "LoggingConfig", debug: bool = False) -> None:
    """Install stderr (and optional file) handlers on the root logger.

    Args:
        config: ``AppConfig.logging``.
        debug:  ``AppConfig.debug``; forces DEBUG regardless of ``config.level``.
    """
    level = logging.DEBUG if debug else getattr(logging, config.level, logging.INFO)
    formatter = (
        _JsonFormatter()
        if config.json_format
        else logging.Formatter(LOG_FORMAT, datefmt=LOG_DATE_FORMAT)
    )

    handlers = [_make_handler(logging.StreamHandler(sys.stderr), level, formatter)]
    if config.log_file:
        path = Path(config.log_file)
        path.parent.mkdir(parents=True, exist_ok=True)
        handlers.append(
            _make_handler(logging.FileHandler(path, encoding="utf-8"), level, formatter)
        )

    logging.basicConfig(level=level, handlers=handlers, force=True)
