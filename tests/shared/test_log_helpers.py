import json
import logging

from aicat_shared import get_logger, log_structured, log_success, request_id_var
from aicat_shared.log import SUCCESS_LEVEL, CorrelationFilter, EmojiFormatter


class _ListHandler(logging.Handler):
    def __init__(self):
        super().__init__()
        self.records = []

    def emit(self, record):
        self.records.append(record)


def test_get_logger_shortens_package_names():
    assert get_logger("aicat_backend.features.metadata.service").name == "aicat.metadata.service"
    assert get_logger("aicat_shared.errors").name == "aicat.errors"
    assert get_logger("aicat_backend.routes.registry").name == "aicat.routes.registry"
    assert get_logger("__main__").name == "aicat.main"


def test_get_logger_installs_handler_and_filter_once():
    a = get_logger("tests.log_once")
    b = get_logger("tests.log_once")
    assert a is b
    assert len(a.handlers) == 1
    assert sum(isinstance(f, CorrelationFilter) for f in a.filters) == 1
    assert a.propagate is False


def test_log_structured_emits_json_payload():
    logger = get_logger("tests.structured")
    handler = _ListHandler()
    logger.addHandler(handler)
    try:
        log_structured(logger, logging.WARNING, "Metadata read failed", file_path="a.png", tool="pillow")
    finally:
        logger.removeHandler(handler)

    payload = json.loads(handler.records[-1].getMessage())
    assert payload["message"] == "Metadata read failed"
    assert payload["context"] == {"file_path": "a.png", "tool": "pillow"}
    assert payload["timestamp"].endswith("Z")


def test_log_success_uses_success_level():
    logger = get_logger("tests.success")
    handler = _ListHandler()
    logger.addHandler(handler)
    try:
        log_success(logger, "done")
    finally:
        logger.removeHandler(handler)
    assert handler.records[-1].levelno == SUCCESS_LEVEL
    assert handler.records[-1].levelname == "SUCCESS"


def test_formatter_includes_request_id_from_context():
    logger = get_logger("tests.correlation")
    handler = _ListHandler()
    logger.addHandler(handler)
    token = request_id_var.set("req-123")
    try:
        logger.warning("hello")
    finally:
        request_id_var.reset(token)
        logger.removeHandler(handler)

    record = handler.records[-1]
    assert record.request_id == "req-123"
    line = EmojiFormatter().format(record)
    assert "[req-123]" in line
    assert line.endswith("hello")
