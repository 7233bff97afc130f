"""
JSONL logging bootstrap.
Installs a single JSONL sink on the root logger early in CLI startup.
"""

import json
import logging
from datetime import UTC
from datetime import datetime
from pathlib import Path

_RESERVED = frozenset(logging.LogRecord("", 0, "", 0, "", (), None).__dict__) | {"message", "asctime"}


class JsonlHandler(logging.Handler):
    def __init__(self, path: str | Path):
        super().__init__()
        self.path = Path(path)
        self.path.parent.mkdir(parents=True, exist_ok=True)

    def format_record(self, record: logging.LogRecord) -> dict:
        payload = {
            "ts": datetime.now(UTC).isoformat(timespec="milliseconds"),
            "lvl": record.levelname,
            "schema": {"name": "module-finder.log", "ver": "1.0.0"},
            "logger": record.name,
            "event": getattr(record, "event", None),
            "message": record.getMessage(),
        }
        # Extra fields passed via logger.x(..., extra={...})
        for key, value in record.__dict__.items():
            if key not in _RESERVED:
                payload.setdefault(key, value)
        return payload

    def emit(self, record: logging.LogRecord) -> None:
        try:
            line = json.dumps(self.format_record(record), ensure_ascii=False, default=str)
            with self.path.open("a", encoding="utf-8") as f:
                f.write(line + "\n")
        except Exception:
            self.handleError(record)


def init_json_logging(path: str | Path, level: str = "WARNING") -> JsonlHandler:
    """Route all log records at ``level`` and above to a JSONL file."""
    root = logging.getLogger()
    root.setLevel(getattr(logging, level.upper(), logging.WARNING))
    # Replace any handler installed by an earlier call
    for h in list(root.handlers):
        if isinstance(h, JsonlHandler):
            root.removeHandler(h)
            h.close()
    handler = JsonlHandler(path)
    root.addHandler(handler)
    return handler
