from __future__ import annotations

"""Logging setup for the service planner backend.

Every record carries the request id and service date of the request that
produced it, so a single save can be followed through merge, archive and
resync lines.
"""

from typing import Any, Dict, Iterable, Mapping, Optional, Sequence
from pathlib import Path
import contextvars
import json
import logging
import logging.config
import os
from datetime import datetime, timezone

CONTEXT_FIELDS = ("request_id", "service_date")
_EMPTY_CONTEXT: Dict[str, str] = {field: "-" for field in CONTEXT_FIELDS}

DEFAULT_LOG_FORMAT = (
    "%(asctime)s %(levelname)s %(name)s %(filename)s:%(lineno)d:%(funcName)s "
    "request_id=%(request_id)s service_date=%(service_date)s %(message)s"
)

_RESERVED_RECORD_KEYS = frozenset(
    logging.LogRecord("", 0, "", 0, "", (), None).__dict__.keys()
) | frozenset({"message", "asctime"})

_log_context: contextvars.ContextVar[Mapping[str, str]] = contextvars.ContextVar(
    "service_planner_log_context", default=_EMPTY_CONTEXT
)


def summarize_payload(value: Any, *, max_list: int = 20, max_str: int = 200, depth: int = 3) -> Any:
    """Return a size-limited copy of ``value`` that is safe to log."""
    if depth <= 0:
        return f"<{type(value).__name__}>"
    nested = {"max_list": max_list, "max_str": max_str, "depth": depth - 1}
    if isinstance(value, Mapping):
        keys = list(value)
        summary = {str(key): summarize_payload(value[key], **nested) for key in keys[:max_list]}
        if len(keys) > max_list:
            summary["__len__"] = len(keys)
        return summary
    if isinstance(value, (list, tuple)):
        if len(value) > max_list:
            return {
                "__len__": len(value),
                "sample": [summarize_payload(item, **nested) for item in value[:5]],
            }
        return [summarize_payload(item, **nested) for item in value]
    if isinstance(value, str) and len(value) > max_str:
        return value[:max_str] + "...(truncated)"
    return value


def summarize_elements(elements: Sequence[Mapping[str, Any]]) -> str:
    """Render an element list as ``type:prefix`` pairs, marking filled slots with ``*``."""
    parts = []
    for element in elements:
        content = str(element.get("content") or "")
        prefix = content.split(":", 1)[0].strip()
        marker = "*" if element.get("selection") or element.get("reference") else ""
        parts.append(f"{element.get('type', '?')}:{prefix}{marker}")
    return ",".join(parts)


def set_log_context(*, request_id: Optional[str] = None, service_date: Optional[str] = None) -> None:
    """Update the context attached to records logged from this task."""
    context = dict(_log_context.get())
    if request_id is not None:
        context["request_id"] = request_id
    if service_date is not None:
        context["service_date"] = service_date
    _log_context.set(context)


def clear_log_context() -> None:
    _log_context.set(_EMPTY_CONTEXT)


class LoggingContextFilter(logging.Filter):
    """Copy the current request context onto each record."""
    def filter(self, record: logging.LogRecord) -> bool:
        context = _log_context.get()
        for field in CONTEXT_FIELDS:
            setattr(record, field, context.get(field, "-"))
        return True


class JsonFormatter(logging.Formatter):
    """One JSON object per line, using Cloud Logging's ``severity`` key."""
    def format(self, record: logging.LogRecord) -> str:
        payload: Dict[str, Any] = {
            "timestamp": datetime.fromtimestamp(record.created, tz=timezone.utc).isoformat(
                timespec="milliseconds"
            ),
            "severity": record.levelname,
            "logger": record.name,
            "location": f"{record.filename}:{record.lineno}:{record.funcName}",
            "message": record.getMessage(),
        }
        for field in CONTEXT_FIELDS:
            payload[field] = getattr(record, field, "-")
        payload.update(
            (key, value)
            for key, value in record.__dict__.items()
            if key not in _RESERVED_RECORD_KEYS and key not in payload
        )
        if record.exc_info:
            payload["exception"] = self.formatException(record.exc_info)
        return json.dumps(payload, ensure_ascii=True, default=str)


def _app_env() -> str:
    return (os.getenv("APP_ENV") or os.getenv("ENV") or "dev").lower()


def is_dev_env() -> bool:
    return _app_env() in {"dev", "development", "local", "test"}


def _use_json_logs() -> bool:
    if os.getenv("LOG_FORMAT", "").lower() == "json":
        return True
    return os.getenv("LOG_JSON", "").lower() in {"1", "true", "yes"}


def build_formatter() -> logging.Formatter:
    if _use_json_logs():
        return JsonFormatter()
    return logging.Formatter(DEFAULT_LOG_FORMAT)


def _decorate_handlers(handlers: Iterable[logging.Handler], formatter: logging.Formatter) -> None:
    for handler in handlers:
        handler.setFormatter(formatter)
        if not any(isinstance(f, LoggingContextFilter) for f in handler.filters):
            handler.addFilter(LoggingContextFilter())


def _config_path(root_dir: Path) -> Path:
    override = os.getenv("LOG_CONFIG")
    if override:
        candidate = Path(override)
        return candidate if candidate.is_absolute() else root_dir / candidate
    name = "logging.prod.json" if _app_env() in {"prod", "production"} else "logging.dev.json"
    return root_dir / "config" / name


def configure_logging() -> None:
    """Apply ``config/logging.<env>.json`` plus the LOG_* and BACKEND_LOG_LEVEL overrides."""
    config_path = _config_path(Path(__file__).resolve().parents[1])
    if config_path.exists():
        config = json.loads(config_path.read_text(encoding="utf-8"))
        if _use_json_logs() and "json" in config.get("formatters", {}):
            for handler in config.get("handlers", {}).values():
                handler["formatter"] = "json"
        logging.config.dictConfig(config)
    else:
        logging.basicConfig(level=logging.INFO)
    level_override = os.getenv("BACKEND_LOG_LEVEL")
    if level_override:
        logging.getLogger().setLevel(level_override.upper())
    formatter = build_formatter()
    for name in ("", "uvicorn", "uvicorn.error", "uvicorn.access"):
        _decorate_handlers(logging.getLogger(name).handlers, formatter)


def get_logger(module_name: str) -> logging.Logger:
    """Return a propagating logger; in dev it also writes ``logs/<module>.log``."""
    logger = logging.getLogger(module_name)
    logger.propagate = True
    if getattr(logger, "_file_handler_attached", False) or not is_dev_env():
        return logger
    log_dir = Path("logs")
    log_dir.mkdir(parents=True, exist_ok=True)
    handler = logging.FileHandler(log_dir / f"{module_name.replace('.', '_')}.log", encoding="utf-8")
    handler.setLevel(logging.DEBUG)
    _decorate_handlers([handler], build_formatter())
    logger.addHandler(handler)
    setattr(logger, "_file_handler_attached", True)
    return logger
