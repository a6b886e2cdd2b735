import pytest
import redis
from testcontainers.redis import RedisContainer

from refstore import (
    BrotliCompressor,
    DictEngine,
    DummyCompressor,
    LzmaCompressor,
    RedisEngine,
    ReferenceCountedStore,
    SQLiteEngine,
    ZlibCompressor,
    ZstdCompressor,
)


@pytest.fixture(scope="session")
def redis_container():
    # Start one Redis container for the whole session; skip Redis cases when no container runtime is present
    try:
        container = RedisContainer().start()
    except Exception as exc:  # noqa: BLE001
        pytest.skip(f"Redis container unavailable: {exc}")
    yield container
    container.stop()


@pytest.fixture()
def redis_client(redis_container):
    client = redis.Redis(
        host=redis_container.get_container_host_ip(),
        port=redis_container.get_exposed_port(6379),
        db=0,
        decode_responses=False,
    )
    client.flushdb()
    yield client
    client.flushdb()
    client.close()


@pytest.fixture()
def sqlite_path(tmp_path):
    return tmp_path / "refstore.db"


@pytest.fixture(params=["dict", "sqlite", "redis"])
def engine(request, sqlite_path):
    if request.param == "dict":
        engine = DictEngine()
    elif request.param == "sqlite":
        engine = SQLiteEngine(f"sqlite:///{sqlite_path}")
    else:
        engine = RedisEngine(request.getfixturevalue("redis_client"))
    yield engine
    engine.close()


@pytest.fixture(
    params=[
        DummyCompressor(),
        ZstdCompressor(),
        ZlibCompressor(),
        LzmaCompressor(),
        BrotliCompressor(),
    ],
    ids=["dummy", "zstd", "zlib", "lzma", "brotli"],
)
def compressor(request):
    return request.param


@pytest.fixture()
def store(engine):
    return ReferenceCountedStore(engine)


@pytest.fixture()
def memory_store():
    return ReferenceCountedStore(DictEngine())
