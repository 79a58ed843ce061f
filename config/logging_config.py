"""
Logging setup for the portfolio API.

Modules log one event per line as "event key=value key=value", e.g.
    transaction_posted id=... type=deposit amount=5000.00 balance=30000.00

With LOG_JSON=1 the formatter lifts the event name and its pairs into
JSON fields so the ledger and holdings trail can be queried. LOG_LEVEL
sets the root level; LOG_LEVELS takes "logger=LEVEL" overrides, e.g.
    LOG_LEVELS=services.settlement_ledger=DEBUG,middleware=WARNING
Request bodies are never logged.
"""
import json
import logging
import os
import sys
from datetime import datetime, timezone
from typing import Any, Dict

_RESERVED_ATTRS = set(vars(logging.LogRecord("", 0, "", 0, "", (), None))) | {"message", "asctime"}

# served by RequestLoggingMiddleware instead
_QUIET_LOGGERS = ("uvicorn.access", "watchfiles")


def parse_event(message: str) -> Dict[str, Any]:
    """Split "event k=v k=v" into {"event": ..., k: v}. Free text stays in "message"."""
    head, _, rest = message.partition(" ")
    if not head or "=" in head or not head.replace("_", "").isalnum():
        return {}
    fields: Dict[str, Any] = {"event": head}
    for token in rest.split():
        key, sep, value = token.partition("=")
        if not sep or not key:
            return {}
        fields[key] = value
    return fields


def _json_serial(obj: Any):
    if hasattr(obj, "isoformat"):
        return obj.isoformat()
    return str(obj)


class JsonFormatter(logging.Formatter):
    """One JSON object per record, with event fields and `extra=` values merged in."""

    def format(self, record: logging.LogRecord) -> str:
        message = record.getMessage()
        payload: Dict[str, Any] = {
            "ts": datetime.fromtimestamp(record.created, tz=timezone.utc).isoformat(timespec="milliseconds"),
            "level": record.levelname,
            "logger": record.name,
            "message": message,
        }
        for key, value in parse_event(message).items():
            payload.setdefault(key, value)
        if record.exc_info and record.exc_info[0]:
            payload["exception"] = self.formatException(record.exc_info)
        for key, value in vars(record).items():
            if key in _RESERVED_ATTRS or key in payload or value is None:
                continue
            payload[key] = value
        return json.dumps(payload, default=_json_serial)


def _level(name: str, default: int = logging.INFO) -> int:
    value = logging.getLevelName(name.strip().upper())
    return value if isinstance(value, int) else default


def _apply_overrides(spec: str) -> None:
    for part in spec.split(","):
        name, sep, level = part.partition("=")
        if sep and name.strip():
            logging.getLogger(name.strip()).setLevel(_level(level))


def configure_logging() -> None:
    """Install a single stdout handler on the root logger. Safe to call more than once."""
    level = _level(os.getenv("LOG_LEVEL") or "INFO")
    use_json = os.getenv("LOG_JSON", "").lower() in ("1", "true", "yes")

    root = logging.getLogger()
    root.setLevel(level)
    for h in root.handlers[:]:
        root.removeHandler(h)

    handler = logging.StreamHandler(sys.stdout)
    if use_json:
        handler.setFormatter(JsonFormatter())
    else:
        handler.setFormatter(
            logging.Formatter("%(asctime)s [%(levelname)s] %(name)s: %(message)s")
        )
    root.addHandler(handler)

    for name in _QUIET_LOGGERS:
        logging.getLogger(name).setLevel(logging.WARNING)
    _apply_overrides(os.getenv("LOG_LEVELS", ""))
