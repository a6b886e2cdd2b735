import threading

import pytest

from refstore import DictEngine, ReferenceCountedStore, SQLiteEngine

THREADS = 4
ROUNDS = 25


def run_concurrently(target) -> None:
    errors = []
    barrier = threading.Barrier(THREADS)

    def worker():
        barrier.wait()
        try:
            for _ in range(ROUNDS):
                target()
        except Exception as exc:  # noqa: BLE001
            errors.append(exc)

    threads = [threading.Thread(target=worker) for _ in range(THREADS)]
    for thread in threads:
        thread.start()
    for thread in threads:
        thread.join()
    assert errors == []


@pytest.fixture(params=["dict", "sqlite"])
def shared_store(request, tmp_path):
    if request.param == "dict":
        engine = DictEngine()
    else:
        engine = SQLiteEngine(f"sqlite:///{tmp_path / 'concurrent.db'}")
    with ReferenceCountedStore(engine) as store:
        yield store


def test_concurrent_saves_lose_no_reference(shared_store):
    run_concurrently(lambda: shared_store.save(b"key", b"value"))
    assert shared_store.get(b"key").reference_count == THREADS * ROUNDS


def test_concurrent_increments_lose_no_reference(shared_store):
    shared_store.save(b"key", b"value")
    run_concurrently(lambda: shared_store.increment_reference(b"key"))
    assert shared_store.get(b"key").reference_count == THREADS * ROUNDS + 1


def test_concurrent_deletes_remove_exactly_once(shared_store):
    for _ in range(THREADS * ROUNDS):
        shared_store.save(b"key", b"value")
    run_concurrently(lambda: shared_store.delete(b"key"))
    assert b"key" not in shared_store
