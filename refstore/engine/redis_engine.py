import redis

from refstore.config import REDIS_KEY_PREFIX
from refstore.errors import EngineFailureError, TransactionConflictError

from .abc import Transaction, TransactionalEngine


class RedisTransaction(Transaction):
    """Optimistic transaction: keys read through `get_for_update` are WATCHed and writes go out in MULTI/EXEC.

    If another client modifies a watched key before `commit`, EXEC is aborted and nothing is written.
    """

    def __init__(self, engine: "RedisEngine"):
        super().__init__()
        self.engine = engine
        self.pipeline = engine.redis_client.pipeline(transaction=True)
        self.writes: dict[bytes, bytes | None] = {}

    def get_for_update(self, key: bytes) -> bytes | None:
        if key in self.writes:
            return self.writes[key]
        name = self.engine.name(key)
        try:
            self.pipeline.watch(name)
            return self.pipeline.get(name)
        except redis.RedisError as exc:
            msg = f"Failed to read key {key.hex()}."
            raise EngineFailureError(msg) from exc

    def put(self, key: bytes, value: bytes) -> None:
        self.writes[bytes(key)] = bytes(value)

    def delete(self, key: bytes) -> None:
        self.writes[bytes(key)] = None

    def _commit(self) -> None:
        try:
            self.pipeline.multi()
            for key, value in self.writes.items():
                if value is None:
                    self.pipeline.delete(self.engine.name(key))
                else:
                    self.pipeline.set(self.engine.name(key), value)
            self.pipeline.execute()
        except redis.WatchError as exc:
            msg = "Transaction aborted by a concurrent write to a watched key."
            raise TransactionConflictError(msg) from exc
        except redis.RedisError as exc:
            msg = "Failed to commit transaction."
            raise EngineFailureError(msg) from exc
        finally:
            self.writes.clear()
            self.pipeline.reset()

    def _rollback(self) -> None:
        self.writes.clear()
        self.pipeline.reset()


class RedisEngine(TransactionalEngine):
    """Redis-based engine; every key is stored as ``prefix + key``."""

    def __init__(self, redis_client: redis.Redis, prefix: bytes = REDIS_KEY_PREFIX):
        self.redis_client = redis_client
        self.prefix = prefix

    @classmethod
    def from_url(cls, url: str, prefix: bytes = REDIS_KEY_PREFIX) -> "RedisEngine":
        return cls(redis.Redis.from_url(url, decode_responses=False), prefix)

    def name(self, key: bytes) -> bytes:
        return self.prefix + key

    def get(self, key: bytes) -> bytes | None:
        try:
            return self.redis_client.get(self.name(key))
        except redis.RedisError as exc:
            msg = f"Failed to read key {key.hex()}."
            raise EngineFailureError(msg) from exc

    def begin_transaction(self) -> RedisTransaction:
        return RedisTransaction(self)

    def destroy(self) -> None:
        try:
            names = list(self.redis_client.scan_iter(match=self.prefix + b"*"))
            if names:
                self.redis_client.delete(*names)
        except redis.RedisError as exc:
            msg = "Failed to destroy records."
            raise EngineFailureError(msg) from exc

    def close(self) -> None:
        self.redis_client.close()
