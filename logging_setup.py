# logging_setup.py
from __future__ import annotations

import logging
import logging.config
from typing import Any, Dict, Optional

LOGGER_NAME = "kontent_import"

# Context fields every line carries; missing ones print as "-".
CONTEXT_FIELDS = ("project_id", "stage")

# Attribute names LogRecord already owns. Taken from a real record so the set
# follows the running interpreter.
_RECORD_ATTRS = frozenset(
    logging.LogRecord(LOGGER_NAME, logging.INFO, __file__, 0, "", (), None).__dict__
) | {"message", "asctime"}


class DefaultContextFilter(logging.Filter):
    def filter(self, record: logging.LogRecord) -> bool:
        for field in CONTEXT_FIELDS:
            if not hasattr(record, field):
                setattr(record, field, "-")
        return True


def level_for(verbosity: int) -> int:
    """0 -> WARNING, 1 -> INFO, 2+ (`-v`) -> DEBUG."""
    if verbosity >= 2:
        return logging.DEBUG
    if verbosity == 1:
        return logging.INFO
    return logging.WARNING


def _config(level: int, stream: str) -> Dict[str, Any]:
    fields = " ".join(f"{name.split('_')[0]}=%({name})s" for name in CONTEXT_FIELDS)
    return {
        "version": 1,
        "disable_existing_loggers": False,
        "filters": {"context": {"()": "logging_setup.DefaultContextFilter"}},
        "formatters": {
            "console": {"format": f"%(asctime)s %(levelname)s {fields} %(message)s"},
        },
        "handlers": {
            "stderr": {
                "class": "logging.StreamHandler",
                "stream": stream,
                "formatter": "console",
                "filters": ["context"],
                "level": level,
            },
        },
        "loggers": {
            LOGGER_NAME: {"handlers": ["stderr"], "level": level, "propagate": False},
        },
    }


def setup_logging(verbosity: int = 1, *, stream: str = "ext://sys.stderr") -> None:
    """
    Route everything under the `kontent_import` logger to one console handler.
    Lines look like `... INFO project=<id> stage=<stage> message`.
    """
    logging.config.dictConfig(_config(level_for(verbosity), stream))


class _Adapter(logging.LoggerAdapter):
    """Binds project_id/stage; caller `extra` keys that clash with LogRecord get a `meta_` prefix."""

    def process(self, msg: str, kwargs):
        merged = dict(self.extra)
        for key, value in (kwargs.get("extra") or {}).items():
            if key in _RECORD_ATTRS:
                key = f"meta_{key}"
            merged.setdefault(key, value)
        kwargs["extra"] = merged
        return msg, kwargs


def get_logger(*, stage: str, project_id: Optional[str] = None) -> logging.LoggerAdapter:
    """
    Logger for one pipeline stage, e.g. `get_logger(stage="assets")`.
    Library modules (utils.api, utils.assets) log through this too, so `-v`
    reaches them.
    """
    base = logging.getLogger(LOGGER_NAME)
    return _Adapter(base, {"stage": stage, "project_id": project_id or "-"})
