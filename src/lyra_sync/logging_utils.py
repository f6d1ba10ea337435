from __future__ import annotations
"""JSON log output for lyra-sync.

Every record becomes one JSON object. Fields passed through ``extra=`` (``event``,
``repo_path``, ``step``...) are copied to the top level, so a publish can be
followed by filtering on ``event`` and ``repo_path``.
"""

import json
import logging
import threading
from datetime import datetime, timezone
from enum import Enum
from pathlib import Path
from typing import Any


# attributes every LogRecord carries on this interpreter, plus the ones Formatter adds
_RESERVED_RECORD_KEYS = frozenset(logging.LogRecord("", logging.NOTSET, "", 0, "", (), None).__dict__) | {
    "message",
    "asctime",
}


def _json_default(value: Any) -> Any:
    if isinstance(value, Enum):
        return value.value
    if isinstance(value, Path):
        return str(value)
    if isinstance(value, (set, frozenset, tuple)):
        return list(value)
    return str(value)


class JsonLogFormatter(logging.Formatter):
    """Render records as single-line JSON.

    The writer's worker threads are named ``lyra-write_N``; records emitted
    outside the main thread carry a ``thread`` field so fan-out writes can be
    told apart.
    """

    def format(self, record: logging.LogRecord) -> str:
        payload: dict[str, Any] = {
            "timestamp": datetime.fromtimestamp(record.created, tz=timezone.utc).isoformat(),
            "level": record.levelname,
            "logger": record.name,
            "message": record.getMessage(),
        }
        if record.threadName and record.threadName != threading.main_thread().name:
            payload["thread"] = record.threadName

        payload.update(
            (key, value)
            for key, value in record.__dict__.items()
            if key not in _RESERVED_RECORD_KEYS and not key.startswith("_")
        )

        if record.exc_info:
            payload["exception"] = self.formatException(record.exc_info)

        return json.dumps(payload, default=_json_default, ensure_ascii=False)


def configure_logging(level: str = "INFO", log_file: Path | None = None) -> None:
    """Send JSON logs to stderr and, when ``log_file`` is set, to that file as well."""
    formatter = JsonLogFormatter()
    handlers: list[logging.Handler] = [logging.StreamHandler()]
    if log_file is not None:
        log_file.parent.mkdir(parents=True, exist_ok=True)
        handlers.append(logging.FileHandler(log_file, encoding="utf-8"))

    root = logging.getLogger()
    root.handlers.clear()
    for handler in handlers:
        handler.setFormatter(formatter)
        root.addHandler(handler)
    root.setLevel(level.upper())
