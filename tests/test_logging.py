import json
import logging
import uuid
from logging.handlers import TimedRotatingFileHandler

from fastapi import FastAPI

from app.app_logging import JsonFormatter, TenantLogFilter, init_logging
from app.core.tenant_context import all_tenants, tenant_context


def _clear_handlers(name: str) -> logging.Logger:
    logger = logging.getLogger(name)
    for handler in list(logger.handlers):
        handler.close()
    logger.handlers.clear()
    return logger


def _record(message: str = "hello") -> logging.LogRecord:
    return logging.LogRecord("app.test", logging.INFO, __file__, 1, message, None, None)


def test_init_logging_adds_filtered_handler(monkeypatch, tmp_path):
    monkeypatch.setenv("LOG_DIR", str(tmp_path))
    app_logger = _clear_handlers("app")

    app = FastAPI()
    returned = init_logging(app)

    handlers = [h for h in app_logger.handlers if isinstance(h, TimedRotatingFileHandler)]
    assert returned is app_logger
    assert app.logger is app_logger
    assert len(handlers) == 1
    assert any(isinstance(f, TenantLogFilter) for f in handlers[0].filters)

    init_logging()
    assert len(app_logger.handlers) == 1
    _clear_handlers("app")


def test_log_lines_carry_the_tenant(monkeypatch, tmp_path):
    monkeypatch.setenv("LOG_DIR", str(tmp_path))
    monkeypatch.setenv("LOG_LEVEL", "INFO")
    _clear_handlers("app")
    logger = init_logging()
    tenant_id = uuid.uuid4()

    logger.info("before")
    with tenant_context(tenant_id):
        logging.getLogger("app.repositories").info("inside")
    with all_tenants("nightly report"):
        logger.info("bypass")

    for handler in logger.handlers:
        handler.flush()
    lines = (tmp_path / "app.log").read_text().splitlines()
    assert "[tenant=-]: before" in lines[0]
    assert f"[tenant={tenant_id}]: inside" in lines[1]
    assert "[tenant=*]: bypass" in lines[-1]
    _clear_handlers("app")


def test_tenant_filter_marks_each_binding():
    log_filter = TenantLogFilter()
    tenant_id = uuid.uuid4()

    unbound = _record()
    assert log_filter.filter(unbound)
    assert unbound.tenant_id == "-"

    with tenant_context(tenant_id):
        bound = _record()
        log_filter.filter(bound)
    assert bound.tenant_id == str(tenant_id)

    with all_tenants("migration"):
        bypass = _record()
        log_filter.filter(bypass)
    assert bypass.tenant_id == "*"


def test_json_formatter_includes_tenant():
    record = _record("saved")
    TenantLogFilter().filter(record)

    payload = json.loads(JsonFormatter().format(record))

    assert payload["message"] == "saved"
    assert payload["logger"] == "app.test"
    assert payload["tenant_id"] == "-"
