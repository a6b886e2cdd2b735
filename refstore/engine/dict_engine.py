import threading

from .abc import Transaction, TransactionalEngine


class DictTransaction(Transaction):
    """Holds the engine lock from creation until commit or rollback."""

    def __init__(self, engine: "DictEngine"):
        super().__init__()
        self.engine = engine
        self.writes: dict[bytes, bytes | None] = {}
        self.engine.lock.acquire()
        self.engine.owner = threading.get_ident()

    def get_for_update(self, key: bytes) -> bytes | None:
        if key in self.writes:
            return self.writes[key]
        return self.engine.store.get(key)

    def put(self, key: bytes, value: bytes) -> None:
        self.writes[bytes(key)] = bytes(value)

    def delete(self, key: bytes) -> None:
        self.writes[bytes(key)] = None

    def _commit(self) -> None:
        try:
            for key, value in self.writes.items():
                if value is None:
                    self.engine.store.pop(key, None)
                else:
                    self.engine.store[key] = value
        finally:
            self.writes.clear()
            self.engine.owner = None
            self.engine.lock.release()

    def _rollback(self) -> None:
        self.writes.clear()
        self.engine.owner = None
        self.engine.lock.release()


class DictEngine(TransactionalEngine):
    """In-memory engine backed by a python dict.

    Transactions are serialized by a single lock, so a read-modify-write inside one transaction
    can never interleave with another.
    """

    def __init__(self) -> None:
        self.store: dict[bytes, bytes] = {}
        self.lock = threading.Lock()
        # Thread id of the open transaction, if any.
        self.owner: int | None = None

    def get(self, key: bytes) -> bytes | None:
        return self.store.get(key)

    def begin_transaction(self) -> DictTransaction:
        return DictTransaction(self)

    def destroy(self) -> None:
        """Remove every record, waiting for transactions on other threads to finish.

        Raises
        ------
            RuntimeError: If the calling thread has a transaction open, which would otherwise deadlock.
        """
        if self.owner == threading.get_ident():
            msg = "Cannot destroy the engine while this thread has a transaction open."
            raise RuntimeError(msg)
        with self.lock:
            self.store.clear()
