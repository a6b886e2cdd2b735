from collections.abc import Iterable
from dataclasses import dataclass
from types import TracebackType
from typing import Self

from .codec import MAX_REFERENCE_COUNT, decode_record, encode_record
from .compressor import DECOMPRESSION_ERRORS, Compressor, DummyCompressor
from .engine import Transaction, TransactionalEngine
from .errors import CorruptRecordError, NotFoundError, ReferenceCountOverflowError, ValueMismatchError
from .logging import get_logger


@dataclass(frozen=True, slots=True)
class SaveResult:
    reference_count: int
    key: bytes


@dataclass(frozen=True, slots=True)
class DeleteResult:
    reference_count: int


@dataclass(frozen=True, slots=True)
class GetResult:
    reference_count: int
    value: bytes


class ReferenceCountedStore:
    """
    A content-keyed store whose entries are shared by reference count.

    Each key holds exactly one immutable value plus the number of owners sharing it. Saving the same
    value again or calling `increment_reference` adds an owner; `delete` releases one and removes the
    record once the last owner is gone.

    Every mutating operation reads and writes inside a single engine transaction, so concurrent callers
    on the same key never lose an update. Errors are raised, never retried.

    Args:
        engine: The transactional engine holding the records; the store takes ownership of it.
        compressor: Applied to values before they are written. Defaults to no compression, which keeps
            records as ``count || raw value``; with any other compressor the bytes after the count are
            the compressed value, so records are only readable through the same compressor.
        destroy_on_close: Remove every record when the store is closed. Intended for test harnesses.
    """

    def __init__(
        self,
        engine: TransactionalEngine,
        compressor: Compressor | None = None,
        *,
        destroy_on_close: bool = False,
    ):
        self.engine = engine
        self.compressor = DummyCompressor() if compressor is None else compressor
        self.destroy_on_close = destroy_on_close
        self.logger = get_logger(__name__)

    def get(self, key: bytes) -> GetResult:
        """Return the reference count and value stored under `key`.

        Raises
        ------
            NotFoundError: If nothing is stored under `key`.
            CorruptRecordError: If the stored record cannot be decoded.
            EngineFailureError: If the engine read fails.
        """
        record = self.engine.get(key)
        if record is None:
            raise NotFoundError(key)
        count, stored = decode_record(record)
        return GetResult(count, self._decompress(key, stored))

    def save(self, key: bytes, value: bytes) -> SaveResult:
        """Store `value` under `key`, or add a reference if the same value is already there.

        Raises
        ------
            ValueMismatchError: If a different value is already stored under `key`.
            CorruptRecordError: If the stored record or its compressed value cannot be decoded.
            ReferenceCountOverflowError: If the entry already has the maximum number of references.
            EngineFailureError: If the engine fails to read or commit.
        """
        with self.engine.begin_transaction() as txn:
            current = self._read(txn, key)
            if current is None:
                count = 1
                stored = self.compressor.compress(value)
            else:
                count, stored = current
                if self._decompress(key, stored) != value:
                    self.logger.warning("Value mismatch on save", extra={"key": key, "reference_count": count})
                    msg = f"A different value is already stored under key {key.hex()}."
                    raise ValueMismatchError(msg)
                count = self._incremented(key, count)
            self._write(txn, key, count, stored)

        self.logger.debug("Value saved", extra={"key": key, "reference_count": count})
        return SaveResult(count, key)

    def increment_reference(self, key: bytes) -> SaveResult:
        """Add a reference to an existing entry without supplying its value.

        Raises
        ------
            NotFoundError: If nothing is stored under `key`; no entry is created.
            ReferenceCountOverflowError: If the entry already has the maximum number of references.
            EngineFailureError: If the engine fails to read or commit.
        """
        with self.engine.begin_transaction() as txn:
            current = self._read(txn, key)
            if current is None:
                raise NotFoundError(key)
            count, stored = current
            count = self._incremented(key, count)
            self._write(txn, key, count, stored)

        self.logger.debug("Reference added", extra={"key": key, "reference_count": count})
        return SaveResult(count, key)

    def delete(self, key: bytes) -> DeleteResult:
        """Release one reference, removing the entry when it was the last one.

        Returns
        -------
            The remaining reference count; 0 once the record has been removed.

        Raises
        ------
            NotFoundError: If nothing is stored under `key`.
            EngineFailureError: If the engine fails to read or commit.
        """
        with self.engine.begin_transaction() as txn:
            current = self._read(txn, key)
            if current is None:
                raise NotFoundError(key)
            count, stored = current
            if count < 2:
                count = 0
                txn.delete(key)
                txn.commit()
            else:
                count -= 1
                self._write(txn, key, count, stored)

        self.logger.debug("Reference released", extra={"key": key, "reference_count": count})
        return DeleteResult(count)

    def save_batch(self, items: Iterable[tuple[bytes, bytes]]) -> list[SaveResult]:
        return [self.save(key, value) for key, value in items]

    def get_batch(self, keys: Iterable[bytes]) -> list[GetResult]:
        return [self.get(key) for key in keys]

    def delete_batch(self, keys: Iterable[bytes]) -> list[DeleteResult]:
        return [self.delete(key) for key in keys]

    def close(self) -> None:
        """Release the engine, wiping it first when the store was opened with `destroy_on_close`."""
        try:
            if self.destroy_on_close:
                self.engine.destroy()
                self.logger.info("Store destroyed on close")
        finally:
            self.engine.close()

    def __contains__(self, key: bytes) -> bool:
        return self.engine.get(key) is not None

    def __enter__(self) -> Self:
        return self

    def __exit__(
        self,
        exc_type: type[BaseException] | None,
        exc: BaseException | None,
        traceback: TracebackType | None,
    ) -> None:
        self.close()

    @staticmethod
    def _read(txn: Transaction, key: bytes) -> tuple[int, bytes] | None:
        """Read and decode the record under `key` inside `txn`; the value stays compressed."""
        record = txn.get_for_update(key)
        if record is None:
            return None
        return decode_record(record)

    @staticmethod
    def _write(txn: Transaction, key: bytes, count: int, stored: bytes) -> None:
        txn.put(key, encode_record(count, stored))
        txn.commit()

    def _decompress(self, key: bytes, stored: bytes) -> bytes:
        try:
            return self.compressor.decompress(stored)
        except DECOMPRESSION_ERRORS as exc:
            msg = f"Value stored under key {key.hex()} cannot be decompressed."
            raise CorruptRecordError(msg) from exc

    def _incremented(self, key: bytes, count: int) -> int:
        if count >= MAX_REFERENCE_COUNT:
            self.logger.warning("Reference count overflow", extra={"key": key, "reference_count": count})
            msg = f"Entry under key {key.hex()} already has the maximum of {MAX_REFERENCE_COUNT} references."
            raise ReferenceCountOverflowError(msg)
        return count + 1
