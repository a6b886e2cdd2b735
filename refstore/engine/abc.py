from abc import ABC, abstractmethod
from types import TracebackType
from typing import Self


class Transaction(ABC):
    """A single unit of work against a `TransactionalEngine`.

    Reads made through `get_for_update` take part in the transaction's isolation: a conflicting
    write by another transaction either blocks until this one finishes or makes `commit` raise
    `TransactionConflictError`. Writes are not visible to other readers before `commit`.

    Leaving a ``with`` block without committing rolls the transaction back.
    """

    def __init__(self) -> None:
        self.finished = False

    @abstractmethod
    def get_for_update(self, key: bytes) -> bytes | None:
        """Read the record stored under `key` inside this transaction, or None when absent."""

    @abstractmethod
    def put(self, key: bytes, value: bytes) -> None:
        """Stage an insert-or-replace of the record under `key`."""

    @abstractmethod
    def delete(self, key: bytes) -> None:
        """Stage the removal of the record under `key`."""

    @abstractmethod
    def _commit(self) -> None:
        """Apply staged writes atomically."""

    @abstractmethod
    def _rollback(self) -> None:
        """Discard staged writes and release whatever the transaction holds."""

    def commit(self) -> None:
        if self.finished:
            msg = "Transaction has already been committed or rolled back."
            raise RuntimeError(msg)
        try:
            self._commit()
        finally:
            self.finished = True

    def rollback(self) -> None:
        if not self.finished:
            self.finished = True
            self._rollback()

    def __enter__(self) -> Self:
        return self

    def __exit__(
        self,
        exc_type: type[BaseException] | None,
        exc: BaseException | None,
        traceback: TracebackType | None,
    ) -> None:
        self.rollback()


class TransactionalEngine(ABC):
    """Point reads plus atomic transactions over a byte-keyed record space."""

    @abstractmethod
    def get(self, key: bytes) -> bytes | None:
        """Read the record under `key` outside of any transaction, or None when absent."""

    @abstractmethod
    def begin_transaction(self) -> Transaction:
        """Open a new transaction."""

    @abstractmethod
    def destroy(self) -> None:
        """Remove every record owned by this engine."""

    def close(self) -> None:  # noqa: B027
        """Release connections held by the engine."""

    def __enter__(self) -> Self:
        return self

    def __exit__(
        self,
        exc_type: type[BaseException] | None,
        exc: BaseException | None,
        traceback: TracebackType | None,
    ) -> None:
        self.close()
