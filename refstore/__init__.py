from .codec import MAX_REFERENCE_COUNT, decode_record, encode_record
from .compressor import (
    BrotliCompressor,
    Compressor,
    DummyCompressor,
    LzmaCompressor,
    ZlibCompressor,
    ZstdCompressor,
)
from .engine import DictEngine, RedisEngine, SQLiteEngine, Transaction, TransactionalEngine, open_engine
from .errors import (
    CorruptRecordError,
    EngineFailureError,
    NotFoundError,
    ReferenceCountOverflowError,
    RefStoreError,
    TransactionConflictError,
    ValueMismatchError,
)
from .store import DeleteResult, GetResult, ReferenceCountedStore, SaveResult

__all__ = [
    "MAX_REFERENCE_COUNT",
    "BrotliCompressor",
    "Compressor",
    "CorruptRecordError",
    "DeleteResult",
    "DictEngine",
    "DummyCompressor",
    "EngineFailureError",
    "GetResult",
    "LzmaCompressor",
    "NotFoundError",
    "RedisEngine",
    "RefStoreError",
    "ReferenceCountOverflowError",
    "ReferenceCountedStore",
    "SQLiteEngine",
    "SaveResult",
    "Transaction",
    "TransactionConflictError",
    "TransactionalEngine",
    "ValueMismatchError",
    "ZlibCompressor",
    "ZstdCompressor",
    "decode_record",
    "encode_record",
    "open_engine",
]
