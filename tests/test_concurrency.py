from __future__ import annotations

import threading
import time
from concurrent.futures import ThreadPoolExecutor

import pytest

from gateway import ServiceCatalog, ServiceLoadError, ServiceRegistry
from tests.support import CountingHandle


class SlowHandle(CountingHandle):
    def load(self):
        time.sleep(0.05)
        return super().load()


def test_concurrent_first_access_loads_once() -> None:
    handle = SlowHandle()
    registry = ServiceRegistry(ServiceCatalog.build({"data": handle}))
    workers = 8
    barrier = threading.Barrier(workers)

    def worker():
        barrier.wait()
        return registry.get("data")

    with ThreadPoolExecutor(max_workers=workers) as executor:
        results = list(executor.map(lambda _: worker(), range(workers)))

    assert handle.loads == 1
    assert all(result is results[0] for result in results)


def test_different_names_load_independently() -> None:
    handles = {name: SlowHandle() for name in ("a", "b", "c")}
    registry = ServiceRegistry(ServiceCatalog.build(handles))

    with ThreadPoolExecutor(max_workers=3) as executor:
        list(executor.map(registry.get, handles))

    assert all(handle.loads == 1 for handle in handles.values())
    assert sorted(registry.loaded_names()) == ["a", "b", "c"]


def run_in_threads(registry: ServiceRegistry, names: list[str], timeout: float = 5.0) -> dict[str, object]:
    """Request each name from its own thread at the same moment; return results or raised errors."""
    barrier = threading.Barrier(len(names))
    results: dict[str, object] = {}

    def worker(name):
        barrier.wait()
        try:
            results[name] = registry.get(name)
        except ServiceLoadError as exc:
            results[name] = exc

    threads = [threading.Thread(target=worker, args=(name,), daemon=True) for name in names]
    for thread in threads:
        thread.start()
    for thread in threads:
        thread.join(timeout)
    assert not any(thread.is_alive() for thread in threads), "registry.get() did not return"
    return results


def test_mutual_loads_from_two_threads_do_not_deadlock() -> None:
    registry: ServiceRegistry

    def make(own, other):
        def factory():
            time.sleep(0.05)
            registry.get(other)
            return f"{own}-instance"

        return factory

    registry = ServiceRegistry(ServiceCatalog.build({"a": make("a", "b"), "b": make("b", "a")}))

    results = run_in_threads(registry, ["a", "b"])

    # a true cycle: each load fails in whichever thread holds the lock, and neither hangs
    assert set(results) == {"a", "b"}
    for result in results.values():
        assert isinstance(result, ServiceLoadError)
        assert result.service_name in {"a", "b"}
    assert registry.loaded_names() == []


def test_shared_dependency_from_two_threads_loads_once() -> None:
    shared = SlowHandle()
    registry: ServiceRegistry

    def needs_shared(own):
        def factory():
            time.sleep(0.02)
            return (own, registry.get("shared"))

        return factory

    registry = ServiceRegistry(
        ServiceCatalog.build({"a": needs_shared("a"), "b": needs_shared("b"), "shared": shared})
    )

    results = run_in_threads(registry, ["a", "b"])

    assert shared.loads == 1
    assert results["a"][1] is results["b"][1]
    assert sorted(registry.loaded_names()) == ["a", "b", "shared"]


@pytest.mark.parametrize("first", ["a", "b"])
def test_dependency_chain_resolves_regardless_of_which_thread_wins(first) -> None:
    registry: ServiceRegistry

    def a_factory():
        time.sleep(0.02)
        return ("a", registry.get("b"))

    registry = ServiceRegistry(ServiceCatalog.build({"a": a_factory, "b": SlowHandle()}))
    other = "b" if first == "a" else "a"

    results = run_in_threads(registry, [first, other])

    assert results["a"] == ("a", results["b"])
    assert registry.get("a") is results["a"]
