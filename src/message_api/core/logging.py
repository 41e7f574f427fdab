"""JSON logging for the service.

Every record is one JSON object on stdout. Context passed through
``extra={...}`` becomes top level keys, so call sites log a dotted event
name plus fields::

    logger.warning("gate.policy.denied", extra={"actor_id": a, "group_id": g})
"""
import json
import logging
import sys
from datetime import datetime, timezone
from typing import Any, Mapping, MutableMapping, Optional, Sequence

# Attributes every LogRecord carries; anything else came in through ``extra``.
_RECORD_ATTRS = frozenset(vars(logging.LogRecord("", 0, "", 0, "", (), None))) | {"message", "asctime", "taskName"}

# Per request logging of the HTTP clients would repeat what the gate and
# profile resolver already log.
_QUIET_LOGGERS = ("httpx", "httpcore")


def _coerce_for_json(value: Any) -> Any:
    if value is None or isinstance(value, (str, int, float, bool)):
        return value
    if isinstance(value, Mapping):
        return {str(k): _coerce_for_json(v) for k, v in value.items()}
    if isinstance(value, Sequence) and not isinstance(value, (bytes, bytearray)):
        return [_coerce_for_json(v) for v in value]
    return str(value)


class JsonFormatter(logging.Formatter):
    def __init__(self, service: Optional[str] = None) -> None:
        super().__init__()
        self._service = service

    def format(self, record: logging.LogRecord) -> str:  # type: ignore[override]
        created = datetime.fromtimestamp(record.created, tz=timezone.utc)
        payload: MutableMapping[str, Any] = {
            "time": created.strftime("%Y-%m-%dT%H:%M:%S.") + f"{created.microsecond // 1000:03d}Z",
            "level": record.levelname,
            "logger": record.name,
            "event": record.getMessage(),
        }
        if self._service:
            payload["service"] = self._service
        for key, value in record.__dict__.items():
            if key in _RECORD_ATTRS or key in payload or key.startswith("_"):
                continue
            payload[key] = _coerce_for_json(value)
        if record.exc_info:
            payload["exc_info"] = self.formatException(record.exc_info)
        return json.dumps(payload, ensure_ascii=False)


def configure_logging(level: str = "INFO", service: Optional[str] = None) -> None:
    handler = logging.StreamHandler(sys.stdout)
    handler.setFormatter(JsonFormatter(service))
    logging.basicConfig(level=level.upper(), handlers=[handler], force=True)
    for name in _QUIET_LOGGERS:
        logging.getLogger(name).setLevel(max(logging.WARNING, logging.getLogger().level))
