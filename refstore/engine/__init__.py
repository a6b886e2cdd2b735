from urllib.parse import urlparse

from sqlalchemy.exc import ArgumentError

from .abc import Transaction, TransactionalEngine
from .dict_engine import DictEngine
from .redis_engine import RedisEngine
from .sqlite_engine import SQLiteEngine, StoredRecord

__all__ = [
    "DictEngine",
    "RedisEngine",
    "SQLiteEngine",
    "StoredRecord",
    "Transaction",
    "TransactionalEngine",
    "open_engine",
]


def open_engine(url: str) -> TransactionalEngine:
    """Build an engine from a URL.

    ``memory://`` gives a `DictEngine`, ``redis://`` and ``rediss://`` a `RedisEngine`, and any
    SQLAlchemy URL (``sqlite:///refstore.db``, ``postgresql://...``) a `SQLiteEngine`.
    """
    scheme = urlparse(url).scheme
    match scheme:
        case "memory":
            return DictEngine()
        case "redis" | "rediss" | "unix":
            return RedisEngine.from_url(url)
        case "":
            msg = f"Database URL '{url}' has no scheme."
            raise ValueError(msg)
        case _:
            try:
                return SQLiteEngine(url)
            except ArgumentError as exc:
                msg = f"Unsupported database URL '{url}'."
                raise ValueError(msg) from exc
