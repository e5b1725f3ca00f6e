from __future__ import annotations

import json
import logging
import os
import sys
import time
from typing import Optional, Union


class JsonFormatter(logging.Formatter):
    """
    Emits each record as a single JSON line on stdout.

    A render fans out into one thread per tile, so records from those threads
    carry the thread name (``tile-<level>-<row>-<col>``) under "thread". Main
    thread records leave it out.

      {"t": 1700000000000, "lvl": "DEBUG", "name": "tilemap.renderer",
       "msg": "Tile load failed", "thread": "tile-3-5-9", "extra": {"url": "..."}}
    """

    def format(self, record: logging.LogRecord) -> str:  # type: ignore[override]
        line = {
            "t": int(time.time() * 1000),
            "lvl": record.levelname,
            "name": record.name,
            "msg": record.getMessage(),
        }
        if record.threadName and record.threadName != "MainThread":
            line["thread"] = record.threadName
        # log.info(msg, extra={"extra": {...}})
        fields = getattr(record, "extra", None)
        if isinstance(fields, dict):
            line["extra"] = fields
        if record.exc_info:
            line["exc_info"] = self.formatException(record.exc_info)
        # bounds tuples, paths and the like fall back to str()
        return json.dumps(line, ensure_ascii=False, default=str)


def _level(level: Union[str, int, None]) -> int:
    if isinstance(level, int):
        return level
    name = str(level or os.environ.get("LOG_LEVEL") or "INFO").upper()
    value = logging.getLevelName(name)
    return value if isinstance(value, int) else logging.INFO


def setup_logging(level: Union[str, int, None] = None, *, force: bool = False) -> None:
    """
    Route the root logger to stdout through JsonFormatter.

    Importing any tilemap module configures logging from LOG_LEVEL (INFO when
    unset). The CLI calls this again with ``force=True`` after reading its
    config file so that ``logging.level`` takes over; without ``force`` a
    second call is a no-op. Unknown level names fall back to INFO.
    """
    root = logging.getLogger()
    if getattr(root, "_tilemap_configured", False) and not force:
        return

    handler = logging.StreamHandler(sys.stdout)
    handler.setFormatter(JsonFormatter())
    root.handlers.clear()
    root.addHandler(handler)
    root.setLevel(_level(level))
    root._tilemap_configured = True  # type: ignore[attr-defined]


def get_logger(name: str) -> logging.Logger:
    setup_logging()
    return logging.getLogger(name)
