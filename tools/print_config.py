"""Print the effective logging and database routing configuration as JSON."""

import json
import logging
import os
import sys

from sqlalchemy.engine import make_url

from app.core.config import get_database_settings, is_single_store, resolve_platform_url


def _redact(url):
    return make_url(url).render_as_string(hide_password=True)


def get_log_config():
    log_dir = os.getenv("LOG_DIR", "logs")
    log_level_str = os.getenv("LOG_LEVEL", "INFO").upper()
    log_json = os.getenv("LOG_JSON", "false").lower() == "true"
    retention_days = int(os.getenv("LOG_RETENTION_DAYS", "7"))
    rotate_utc = os.getenv("LOG_ROTATE_UTC", "false").lower() == "true"

    log_level = getattr(logging, log_level_str, logging.INFO)

    return {
        "log_dir": os.path.abspath(log_dir),
        "log_level": logging.getLevelName(log_level),
        "log_json": log_json,
        "retention_days": retention_days,
        "rotate_utc": rotate_utc,
    }


def get_database_config():
    settings = get_database_settings()
    return {
        "tenant_store": _redact(settings.database_url),
        "platform_store": _redact(resolve_platform_url(settings)),
        "single_store": is_single_store(settings),
        "echo": settings.echo,
    }


def main():
    config = {"logging": get_log_config(), "database": get_database_config()}
    sys.stdout.write(json.dumps(config, indent=2) + "\n")


if __name__ == "__main__":
    main()
