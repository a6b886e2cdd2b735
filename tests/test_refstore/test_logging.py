import json
import logging

import pytest

from refstore import DictEngine, ReferenceCountedStore
from refstore.config import logging_config
from refstore.logging import JSONFormatter, get_logger, setup_logging, to_jsonable


@pytest.mark.parametrize(
    ("value", "expected"),
    [
        (b"\x00\xff", "00ff"),
        ("text", "text"),
        (3, 3),
        (None, None),
        ({"key": b"\x01"}, {"key": "01"}),
        ((b"\x02", 4), ["02", 4]),
    ],
    ids=["bytes", "str", "int", "none", "dict", "tuple"],
)
def test_to_jsonable(value, expected):
    assert to_jsonable(value) == expected


def test_to_jsonable_falls_back_to_repr():
    class Opaque:
        def __repr__(self):
            return "<opaque>"

    assert to_jsonable(Opaque()) == "<opaque>"


def test_json_formatter_includes_extra_fields():
    formatter = JSONFormatter(fmt_keys={"level": "levelname", "logger": "name", "message": "message"})
    record = logging.LogRecord("refstore.store", logging.DEBUG, __file__, 1, "Value saved", None, None)
    record.key = b"\xab\xcd"
    record.reference_count = 2

    payload = json.loads(formatter.format(record))
    assert payload["level"] == "DEBUG"
    assert payload["logger"] == "refstore.store"
    assert payload["message"] == "Value saved"
    assert payload["key"] == "abcd"
    assert payload["reference_count"] == 2
    assert "timestamp" in payload


def test_get_logger_namespaces_under_package():
    assert get_logger("refstore.store").name == "refstore.store"
    assert get_logger("tools").name == "refstore.tools"


def test_setup_logging_writes_json_lines(tmp_path):
    log_file = tmp_path / "logs" / "refstore.log.jsonl"
    config = json.loads(json.dumps(logging_config))
    config["handlers"]["file_json"]["filename"] = str(log_file)

    logger = setup_logging(config=config)
    try:
        get_logger("test").info("hello", extra={"key": b"\x01"})
    finally:
        queue_handler = logging.getHandlerByName("queue_handler")
        queue_handler.listener.stop()
        for handler in list(logger.handlers):
            logger.removeHandler(handler)
        logger.propagate = True
        logger.setLevel(logging.NOTSET)

    lines = log_file.read_text().splitlines()
    assert json.loads(lines[-1])["message"] == "hello"
    assert json.loads(lines[-1])["key"] == "01"


def test_store_logs_operations(caplog):
    caplog.set_level(logging.DEBUG, logger="refstore")
    store = ReferenceCountedStore(DictEngine())
    store.save(b"\x01", b"value")

    record = next(r for r in caplog.records if r.getMessage() == "Value saved")
    assert record.key == b"\x01"
    assert record.reference_count == 1
