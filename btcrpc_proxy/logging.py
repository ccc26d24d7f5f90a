from __future__ import annotations

"""
Structured logging setup for the proxy.

Configures **structlog** + the stdlib ``logging`` package so that:
- All logs (including uvicorn and httpx) are emitted as structured JSON by
  default, or through the console renderer in dev.
- Context variables (the request id) are merged into each event.
- Secret-looking keys (passwords, authorization headers) are redacted.

The btcrpc client library only calls ``structlog.get_logger``; configuring
output is the job of the process that embeds it, i.e. this module.

    from btcrpc_proxy.logging import setup_logging

    setup_logging(level="DEBUG", log_format="console")  # once, at process start
"""

import logging
import os
from typing import Any, Dict, Iterable, Optional

import structlog
from structlog.contextvars import merge_contextvars

REDACT_KEYS = {"authorization", "password", "rpc_password", "secret", "token", "cookie"}


def redact_secrets(_: Any, __: str, event_dict: Dict[str, Any]) -> Dict[str, Any]:
    """Processor that masks values stored under well-known secret keys."""
    for k in list(event_dict.keys()):
        if k.lower() in REDACT_KEYS and event_dict[k] is not None:
            event_dict[k] = "***"
    return event_dict


def _base_processors(service_name: str, include_stacktrace: bool) -> Iterable:
    yield structlog.stdlib.add_log_level
    yield structlog.processors.TimeStamper(fmt="iso", utc=True)
    yield merge_contextvars
    yield structlog.processors.StackInfoRenderer()
    if include_stacktrace:
        yield structlog.processors.format_exc_info
    yield redact_secrets
    yield structlog.processors.UnicodeDecoder()

    def _ensure_service(_: Any, __: str, ev: Dict[str, Any]) -> Dict[str, Any]:
        ev.setdefault("service", service_name)
        return ev

    yield _ensure_service


def setup_logging(
    *,
    service_name: str = "btcrpc-proxy",
    level: Optional[str | int] = None,
    log_format: Optional[str] = None,
) -> None:
    """
    Configure structlog + stdlib logging. Safe to call once at process start.

    `level` defaults to $LOG_LEVEL or INFO; `log_format` to $LOG_FORMAT or
    "json". Stack traces are rendered into JSON events and left to the
    console renderer otherwise.
    """
    level = level or (os.getenv("LOG_LEVEL", "").upper() or "INFO")
    log_format = (log_format or os.getenv("LOG_FORMAT", "") or "json").lower()
    include_stacktrace = log_format == "json"

    processors = list(_base_processors(service_name, include_stacktrace))
    if log_format == "console":
        renderer: Any = structlog.dev.ConsoleRenderer(colors=True, sort_keys=False)
    else:
        renderer = structlog.processors.JSONRenderer(sort_keys=True)

    structlog.configure(
        processors=[
            structlog.stdlib.filter_by_level,
            structlog.stdlib.add_logger_name,
            *processors,
            structlog.stdlib.ProcessorFormatter.wrap_for_formatter,
        ],
        logger_factory=structlog.stdlib.LoggerFactory(),
        wrapper_class=structlog.stdlib.BoundLogger,
        context_class=dict,
        cache_logger_on_first_use=True,
    )

    handler = logging.StreamHandler()
    handler.setFormatter(
        structlog.stdlib.ProcessorFormatter(
            processor=renderer,
            foreign_pre_chain=[structlog.stdlib.add_logger_name, *processors],
        )
    )

    root = logging.getLogger()
    root.setLevel(level)
    for h in list(root.handlers):
        root.removeHandler(h)
    root.addHandler(handler)

    for name in ("uvicorn", "uvicorn.error", "uvicorn.access"):
        lg = logging.getLogger(name)
        lg.handlers = [handler]
        lg.propagate = False
        lg.setLevel(level)

    # httpx logs every request at INFO
    logging.getLogger("httpx").setLevel(os.getenv("LOG_LEVEL_HTTPX", "WARNING"))
    logging.getLogger("httpcore").setLevel(os.getenv("LOG_LEVEL_HTTPCORE", "WARNING"))


__all__ = ["setup_logging", "redact_secrets", "REDACT_KEYS"]
