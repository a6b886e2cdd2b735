from sqlalchemy import event
from sqlalchemy.engine import Connection, Engine
from sqlalchemy.exc import SQLAlchemyError
from sqlmodel import Field, Session, SQLModel, create_engine, select

from refstore.config import SQLITE_BUSY_TIMEOUT
from refstore.errors import EngineFailureError

from .abc import Transaction, TransactionalEngine

# Execution option marking connections that must take SQLite's write lock when they begin.
_BEGIN_IMMEDIATE = "refstore_begin_immediate"


class StoredRecord(SQLModel, table=True):
    __tablename__ = "refstore_record"

    key: bytes = Field(primary_key=True)
    record: bytes


def _install_sqlite_begin_hooks(engine: Engine) -> None:
    """Let the engine emit its own BEGIN so write transactions can use BEGIN IMMEDIATE.

    pysqlite defers BEGIN until the first write, which would let two transactions read the same
    record before either takes the write lock.
    """

    @event.listens_for(engine, "connect")
    def _disable_pysqlite_begin(dbapi_connection, _connection_record) -> None:
        dbapi_connection.isolation_level = None

    @event.listens_for(engine, "begin")
    def _emit_begin(conn: Connection) -> None:
        if conn.get_execution_options().get(_BEGIN_IMMEDIATE):
            conn.exec_driver_sql("BEGIN IMMEDIATE")
        else:
            conn.exec_driver_sql("BEGIN")


class SQLiteTransaction(Transaction):
    def __init__(self, session: Session):
        super().__init__()
        self.session = session

    def get_for_update(self, key: bytes) -> bytes | None:
        try:
            entry = self.session.exec(
                select(StoredRecord).where(StoredRecord.key == key).with_for_update()
            ).first()
        except SQLAlchemyError as exc:
            msg = f"Failed to read key {key.hex()}."
            raise EngineFailureError(msg) from exc
        return entry.record if entry else None

    def put(self, key: bytes, value: bytes) -> None:
        try:
            if entry := self.session.get(StoredRecord, key):
                entry.record = value
            else:
                self.session.add(StoredRecord(key=key, record=value))
        except SQLAlchemyError as exc:
            msg = f"Failed to write key {key.hex()}."
            raise EngineFailureError(msg) from exc

    def delete(self, key: bytes) -> None:
        try:
            if entry := self.session.get(StoredRecord, key):
                self.session.delete(entry)
        except SQLAlchemyError as exc:
            msg = f"Failed to delete key {key.hex()}."
            raise EngineFailureError(msg) from exc

    def _commit(self) -> None:
        try:
            self.session.commit()
        except SQLAlchemyError as exc:
            self.session.rollback()
            msg = "Failed to commit transaction."
            raise EngineFailureError(msg) from exc
        finally:
            self.session.close()

    def _rollback(self) -> None:
        try:
            self.session.rollback()
        finally:
            self.session.close()


class SQLiteEngine(TransactionalEngine):
    """SQL engine storing one row per key.

    On SQLite, write transactions start with BEGIN IMMEDIATE so the read inside the transaction
    already holds the database write lock. Other dialects rely on SELECT ... FOR UPDATE.

    Args:
        db_url: A SQLAlchemy database URL, e.g. ``sqlite:///refstore.db``.
        echo: Log every statement SQLAlchemy emits.
        busy_timeout: Seconds a SQLite connection waits for a lock held by another connection.
    """

    def __init__(self, db_url: str, *, echo: bool = False, busy_timeout: float = SQLITE_BUSY_TIMEOUT):
        connect_args = {"timeout": busy_timeout} if db_url.startswith("sqlite") else {}
        self.db_url = db_url
        self.engine = create_engine(db_url, echo=echo, connect_args=connect_args)
        if self.engine.dialect.name == "sqlite":
            _install_sqlite_begin_hooks(self.engine)
        self.write_engine = self.engine.execution_options(**{_BEGIN_IMMEDIATE: True})
        try:
            SQLModel.metadata.create_all(self.engine, tables=[StoredRecord.__table__])
        except SQLAlchemyError as exc:
            msg = f"Failed to initialise database at '{db_url}'."
            raise EngineFailureError(msg) from exc

    def get(self, key: bytes) -> bytes | None:
        try:
            with Session(self.engine) as session:
                entry = session.get(StoredRecord, key)
                return entry.record if entry else None
        except SQLAlchemyError as exc:
            msg = f"Failed to read key {key.hex()}."
            raise EngineFailureError(msg) from exc

    def begin_transaction(self) -> SQLiteTransaction:
        return SQLiteTransaction(Session(self.write_engine))

    def destroy(self) -> None:
        try:
            SQLModel.metadata.drop_all(self.engine, tables=[StoredRecord.__table__])
            SQLModel.metadata.create_all(self.engine, tables=[StoredRecord.__table__])
        except SQLAlchemyError as exc:
            msg = f"Failed to destroy database at '{self.db_url}'."
            raise EngineFailureError(msg) from exc

    def close(self) -> None:
        self.engine.dispose()
