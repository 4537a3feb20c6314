import json
import logging
import sys

import pureami
from pureami import JSONFormatter, setup_logging
from pureami.utils.logging_utils import log_protocol_event


def _record(msg="hello", **extra):
    record = logging.LogRecord(
        name="pureami.test",
        level=logging.INFO,
        pathname=__file__,
        lineno=10,
        msg=msg,
        args=(),
        exc_info=None,
    )
    for key, value in extra.items():
        setattr(record, key, value)
    return record


def test_json_formatter_basic_fields():
    payload = json.loads(JSONFormatter().format(_record()))
    assert payload["level"] == "INFO"
    assert payload["message"] == "hello"
    assert payload["line"] == 10
    assert "timestamp" in payload
    assert "correlation_id" not in payload


def test_json_formatter_includes_correlation_id_and_extra():
    record = _record(correlation_id="abc-3", pureami_extra={"host": "pbx"})
    payload = json.loads(JSONFormatter().format(record))
    assert payload["correlation_id"] == "abc-3"
    assert payload["host"] == "pbx"


def test_json_formatter_exception():
    try:
        raise RuntimeError("boom")
    except RuntimeError:
        record = _record(msg="failed")
        record.exc_info = sys.exc_info()
    payload = json.loads(JSONFormatter().format(record))
    assert "RuntimeError: boom" in payload["exception"]


def test_protocol_event_carries_action_id(caplog):
    logger = logging.getLogger("pureami.protocol.test")
    with caplog.at_level(logging.DEBUG, logger="pureami.protocol.test"):
        log_protocol_event(logger, "Sending action", "Ping", action_id="t-1")
    record = caplog.records[-1]
    assert record.getMessage() == "[PROTOCOL] Sending action: Ping"
    assert record.correlation_id == "t-1"


def test_setup_logging_json(monkeypatch, preserve_root_logger):
    monkeypatch.setenv("PUREAMI_LOG_JSON", "true")
    setup_logging("DEBUG")
    root = logging.getLogger()
    assert root.level == logging.DEBUG
    assert any(isinstance(h.formatter, JSONFormatter) for h in root.handlers)


def test_setup_logging_plain(monkeypatch, preserve_root_logger):
    monkeypatch.delenv("PUREAMI_LOG_JSON", raising=False)
    setup_logging("info")
    root = logging.getLogger()
    assert root.level == logging.INFO
    assert not any(isinstance(h.formatter, JSONFormatter) for h in root.handlers)


def test_package_exports_setup_logging():
    assert pureami.setup_logging is setup_logging
