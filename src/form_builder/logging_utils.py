from __future__ import annotations

import json
import logging
from typing import Any, Optional

from form_builder.config import Settings


def log_event(logger: logging.Logger, event: str, level: int = logging.INFO, **fields: Any) -> None:
    if not logger.isEnabledFor(level):
        return
    record = {"event": event, **fields}
    # One-line JSON for easy grepping.
    try:
        logger.log(level, json.dumps(record, ensure_ascii=False, separators=(",", ":"), default=str))
    except (TypeError, ValueError):
        logger.log(level, "%s %s", event, fields)


def configure_logging(settings: Optional[Settings] = None) -> None:
    """
    Attach a stream handler to the `form_builder` logger at the configured level.

    Safe to call more than once; only the level is updated on later calls.
    """
    level_name = (settings.log_level if settings else "WARNING") or "WARNING"
    level = logging.getLevelName(level_name)
    if not isinstance(level, int):
        level = logging.WARNING
    root = logging.getLogger("form_builder")
    root.setLevel(level)
    if not root.handlers:
        handler = logging.StreamHandler()
        handler.setFormatter(logging.Formatter("%(asctime)s %(levelname)s %(name)s %(message)s"))
        root.addHandler(handler)
