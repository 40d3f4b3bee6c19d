from __future__ import annotations

import logging
import os
import sys
import json
import time
from typing import Optional


class JsonFormatter(logging.Formatter):
    """
    One JSON object per line, e.g.
      {"t": 1718000000123, "lvl": "WARNING", "name": "store",
       "msg": "Skipping malformed annotation record", "extra": {"index": 2}}
    """

    def format(self, record: logging.LogRecord) -> str:  # type: ignore[override]
        payload = {
            "t": int(time.time() * 1000),
            "lvl": record.levelname,
            "name": record.name,
            "msg": record.getMessage(),
        }
        context = getattr(record, "extra", None)
        if isinstance(context, dict):
            payload["extra"] = context
        if record.exc_info:
            payload["exc_info"] = self.formatException(record.exc_info)
        return json.dumps(payload, ensure_ascii=False)


def setup_logging(level: Optional[str] = None) -> None:
    """
    Send JSON logs to stdout. The level comes from `level`, then env
    LOG_LEVEL, then INFO; unknown names fall back to INFO.

    Modules call get_logger() at import time, before the CLI/API/dashboard
    has read `logging.level` from params.yaml, so a repeat call only
    applies an explicitly passed level.
    """
    root = logging.getLogger()
    name = (level or os.environ.get("LOG_LEVEL") or "INFO").upper()
    lvl = getattr(logging, name, None)
    if not isinstance(lvl, int):
        lvl = logging.INFO

    if getattr(root, "_jia_configured", False):
        if level:
            root.setLevel(lvl)
        return

    handler = logging.StreamHandler(sys.stdout)
    handler.setFormatter(JsonFormatter())
    root.handlers.clear()
    root.addHandler(handler)
    root.setLevel(lvl)
    root._jia_configured = True  # type: ignore[attr-defined]


def get_logger(name: str) -> logging.Logger:
    setup_logging()
    return logging.getLogger(name)
