"""Application logging setup.

This module centralizes logging configuration for the data layer and the
HTTP surface. It provides:

- A simple JSON formatter (opt-in via LOG_JSON) or a human-readable formatter.
- A filter that stamps every record with the tenant bound to the current
  context, so log lines from different tenants can be told apart.
- Timed rotation of the application log (app.log), honoring retention and
  timezone options.

Environment variables: LOG_DIR, LOG_LEVEL, LOG_JSON, LOG_RETENTION_DAYS,
LOG_ROTATE_UTC.
"""

from __future__ import annotations

import json
import logging
import os
from logging.handlers import TimedRotatingFileHandler
from typing import Any, cast

from fastapi import FastAPI

from app.core.tenant_context import AllTenants, get_tenant_binding

UNBOUND_TENANT = "-"
BYPASS_TENANT = "*"


class TenantLogFilter(logging.Filter):
    """Attach ``record.tenant_id`` from the active tenant binding.

    Unbound contexts are rendered as ``-`` and the all-tenants bypass as ``*``.
    """

    def filter(self, record: logging.LogRecord) -> bool:
        binding = get_tenant_binding()
        if binding is None:
            record.tenant_id = UNBOUND_TENANT
        elif isinstance(binding, AllTenants):
            record.tenant_id = BYPASS_TENANT
        else:
            record.tenant_id = str(binding.tenant_id)
        return True


class JsonFormatter(logging.Formatter):
    """Minimal JSON log formatter used when LOG_JSON=true."""

    def format(self, record: logging.LogRecord) -> str:  # pragma: no cover - simple
        log_record = {
            "level": record.levelname,
            "time": self.formatTime(record, "%Y-%m-%dT%H:%M:%S"),
            "logger": record.name,
            "tenant_id": getattr(record, "tenant_id", UNBOUND_TENANT),
            "message": record.getMessage(),
        }
        if record.exc_info:
            log_record["exc_info"] = self.formatException(record.exc_info)
        return json.dumps(log_record)


def _get_formatter(log_json: bool) -> logging.Formatter:
    if log_json:
        return JsonFormatter()
    return logging.Formatter(
        "[%(asctime)s] %(levelname)s in %(name)s [tenant=%(tenant_id)s]: %(message)s"
    )


def init_logging(app: FastAPI | None = None) -> logging.Logger:
    """Initialise the application logger and return it."""

    log_dir = os.getenv("LOG_DIR", "logs")
    log_level_str = os.getenv("LOG_LEVEL", "INFO").upper()
    log_json = os.getenv("LOG_JSON", "false").lower() == "true"
    retention_days = int(os.getenv("LOG_RETENTION_DAYS", "7"))
    rotate_utc = os.getenv("LOG_ROTATE_UTC", "false").lower() == "true"

    os.makedirs(log_dir, exist_ok=True)

    formatter = _get_formatter(log_json)
    log_level = getattr(logging, log_level_str, logging.INFO)

    app_logger = logging.getLogger("app")
    if not app_logger.handlers:
        handler = TimedRotatingFileHandler(
            os.path.join(log_dir, "app.log"),
            when="midnight",
            backupCount=retention_days,
            utc=rotate_utc,
        )
        handler.setFormatter(formatter)
        handler.addFilter(TenantLogFilter())
        app_logger.addHandler(handler)
    app_logger.setLevel(log_level)

    if app is not None:
        cast(Any, app).logger = app_logger
    return app_logger


__all__ = ["JsonFormatter", "TenantLogFilter", "init_logging"]
