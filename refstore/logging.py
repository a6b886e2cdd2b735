import atexit
import copy
import datetime as dt
import json
import logging
import logging.config
from pathlib import Path

from .config import logging_config

LOG_RECORD_BUILTIN_ATTRS = {
    "args",
    "asctime",
    "created",
    "exc_info",
    "exc_text",
    "filename",
    "funcName",
    "levelname",
    "levelno",
    "lineno",
    "module",
    "msecs",
    "message",
    "msg",
    "name",
    "pathname",
    "process",
    "processName",
    "relativeCreated",
    "stack_info",
    "thread",
    "threadName",
    "taskName",
}


def to_jsonable(value: object) -> object:
    """Render a log `extra` value as something `json.dumps` accepts.

    Keys and values in this package are raw bytes, so they are rendered as hex strings.
    """
    match value:
        case bytes() | bytearray() | memoryview():
            return bytes(value).hex()
        case str() | int() | float() | bool() | None:
            return value
        case dict():
            return {str(k): to_jsonable(v) for k, v in value.items()}
        case list() | tuple() | set() | frozenset():
            return [to_jsonable(item) for item in value]
        case _:
            return repr(value)


class JSONFormatter(logging.Formatter):
    def __init__(
        self,
        *,
        fmt_keys: dict[str, str] | None = None,
    ):
        super().__init__()
        self.fmt_keys = fmt_keys if fmt_keys is not None else {}

    def format(self, record: logging.LogRecord) -> str:
        message = self._prepare_log_dict(record)
        return json.dumps(message, default=str)

    def _prepare_log_dict(self, record: logging.LogRecord) -> dict:
        always_fields = {
            "message": record.getMessage(),
            "timestamp": dt.datetime.fromtimestamp(record.created, tz=dt.UTC).isoformat(),
        }
        if record.exc_info is not None:
            always_fields["exc_info"] = self.formatException(record.exc_info)

        if record.stack_info is not None:
            always_fields["stack_info"] = self.formatStack(record.stack_info)

        message = {
            key: (msg_val if (msg_val := always_fields.pop(val, None)) is not None else getattr(record, val))
            for key, val in self.fmt_keys.items()
        } | always_fields
        for key, val in record.__dict__.items():
            if key not in LOG_RECORD_BUILTIN_ATTRS:
                message[key] = to_jsonable(val)

        return message


def get_logger(name: str) -> logging.Logger:
    """Return a logger below the package namespace; configuration is left to `setup_logging`."""
    if name == "refstore" or name.startswith("refstore."):
        return logging.getLogger(name)
    return logging.getLogger(f"refstore.{name}")


def setup_logging(level: str = "DEBUG", config: dict | None = None) -> logging.Logger:
    """Install the package's logging handlers and start the queue listener.

    Args:
        level: Level of the ``refstore`` logger.
        config: A `logging.config.dictConfig` dictionary; defaults to `refstore.config.logging_config`.

    Returns
    -------
        The package root logger.
    """
    config = copy.deepcopy(logging_config if config is None else config)
    for handler_config in config["handlers"].values():
        if (log_file := handler_config.get("filename")) is not None:
            Path(log_file).resolve().parent.mkdir(parents=True, exist_ok=True)
    logging.config.dictConfig(config)
    queue_handler = logging.getHandlerByName("queue_handler")
    if queue_handler is not None:
        queue_handler.listener.start()
        atexit.register(queue_handler.listener.stop)
    logger = logging.getLogger("refstore")
    logger.setLevel(level)
    return logger
