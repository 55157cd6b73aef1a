import json
import logging

from mobile_post_office.core.logging.formatters import ColorFormatter, JsonFormatter


def make_record():
    return logging.LogRecord("importer", logging.INFO, __file__, 10, "hello %s", ("tester",), None)


def test_json_formatter_basic_fields():
    rec = make_record()
    rec.chunk = 2           # simulate extra={"chunk": 2}
    rec.request_id = "req-1"

    data = json.loads(JsonFormatter(env="testing", service="svc").format(rec))

    assert data["message"] == "hello tester"
    assert data["level"] == "INFO"
    assert data["service"] == "svc"
    assert data["env"] == "testing"
    assert data["request_id"] == "req-1"
    assert data["chunk"] == 2
    assert "timestamp" in data
    assert "version" in data
    # standard LogRecord attributes are not repeated as extras
    assert "msecs" not in data and "args" not in data


def test_json_formatter_non_serializable_extra():
    rec = make_record()

    class X:
        def __repr__(self):
            return "<X>"

    rec.obj = X()

    data = json.loads(JsonFormatter(env="dev", service="svc").format(rec))
    assert isinstance(data["obj"], str)


def test_json_formatter_keeps_chinese_readable():
    rec = logging.LogRecord("importer", logging.INFO, __file__, 1, "district %s", ("中環",), None)

    out = JsonFormatter(env="dev").format(rec)

    assert "中環" in out
    assert json.loads(out)["service"] == "mobile-post-office"


def test_json_formatter_includes_exception():
    try:
        raise ValueError("bad row")
    except ValueError:
        import sys
        rec = logging.LogRecord("importer", logging.ERROR, __file__, 1, "failed", (), sys.exc_info())

    data = json.loads(JsonFormatter().format(rec))
    assert "ValueError: bad row" in data["exc_info"]


def test_color_formatter_line_layout():
    rec = make_record()
    rec.request_id = "rid-9"

    line = ColorFormatter().format(rec)

    assert " | importer" in line
    assert "rid-9" in line
    assert line.endswith("hello tester")
