from __future__ import annotations

import pytest

from gateway import (
    CircularServiceLoadError,
    ServiceCatalog,
    ServiceLoadError,
    ServiceNotFoundError,
    ServiceRegistry,
)
from tests.conftest import SAMPLE_NAMESPACE
from tests.support import CountingHandle, FailingHandle, RecordingLogger


def test_get_returns_same_instance_and_loads_once() -> None:
    handle = CountingHandle()
    registry = ServiceRegistry(ServiceCatalog.build({"data": handle}))

    first = registry.get("data")
    second = registry.get("data")

    assert first is second
    assert handle.loads == 1
    assert registry.is_loaded("data")


def test_get_is_lazy_per_name() -> None:
    data, badge = CountingHandle(), CountingHandle()
    registry = ServiceRegistry(ServiceCatalog.build({"data": data, "badge": badge}))

    registry.get("data")

    assert data.loads == 1
    assert badge.loads == 0
    assert registry.loaded_names() == ["data"]


def test_get_missing_name_returns_none_and_keeps_cache() -> None:
    registry = ServiceRegistry(ServiceCatalog.build({"data": CountingHandle()}))
    registry.get("data")

    assert registry.get("doesNotExist") is None
    assert registry.loaded_names() == ["data"]
    assert not registry.is_loaded("doesNotExist")


def test_require_raises_for_missing_name() -> None:
    registry = ServiceRegistry(ServiceCatalog.build({"data": CountingHandle()}))

    with pytest.raises(ServiceNotFoundError) as exc_info:
        registry.require("doesNotExist")
    assert exc_info.value.name == "doesNotExist"
    assert registry.require("data") is registry.get("data")


def test_load_failure_raises_and_is_not_cached() -> None:
    cause = RuntimeError("boom")
    handle = FailingHandle(cause)
    registry = ServiceRegistry(ServiceCatalog.build({"broken": handle}))

    with pytest.raises(ServiceLoadError) as exc_info:
        registry.get("broken")

    assert exc_info.value.service_name == "broken"
    assert exc_info.value.cause is cause
    assert not registry.is_loaded("broken")

    with pytest.raises(ServiceLoadError):
        registry.get("broken")
    assert handle.loads == 2


def test_handle_returning_none_is_cached() -> None:
    handle = CountingHandle(factory=lambda: None)
    registry = ServiceRegistry(ServiceCatalog.build({"nothing": handle}))

    assert registry.get("nothing") is None
    assert registry.get("nothing") is None
    assert registry.is_loaded("nothing")
    assert handle.loads == 1


def test_self_referencing_load_is_reported_as_circular() -> None:
    registry: ServiceRegistry

    def load_self():
        return registry.get("loop")

    registry = ServiceRegistry(ServiceCatalog.build({"loop": load_self}))

    with pytest.raises(ServiceLoadError) as exc_info:
        registry.get("loop")

    assert isinstance(exc_info.value.cause, CircularServiceLoadError)
    assert not registry.is_loaded("loop")


def test_handle_may_resolve_other_services_while_loading() -> None:
    registry: ServiceRegistry
    base = CountingHandle()

    def load_composite():
        return {"base": registry.get("base")}

    registry = ServiceRegistry(ServiceCatalog.build({"base": base, "composite": load_composite}))

    composite = registry.get("composite")

    assert composite["base"] is registry.get("base")
    assert base.loads == 1


def test_get_outside_lifecycle_does_not_run_hooks(fresh_sample_modules) -> None:
    registry = ServiceRegistry(ServiceCatalog.discover(SAMPLE_NAMESPACE))

    alpha = registry.get("alpha")

    assert alpha.state == {"ready": False, "started": False}
    assert not registry.is_initialized("alpha")


def test_service_without_hooks_resolves() -> None:
    registry = ServiceRegistry(ServiceCatalog.build({"plain": object}))

    assert registry.get("plain") is registry.get("plain")


async def test_load_failure_during_start_is_logged_once(monkeypatch) -> None:
    recorder = RecordingLogger()
    monkeypatch.setattr("gateway.services.registry.logger", recorder)
    registry = ServiceRegistry(ServiceCatalog.build({"broken": FailingHandle(ImportError("gone"))}))

    await registry.start()

    assert len(registry.failures) == 1
    assert recorder.events("error") == [str(registry.failures[0])]
    assert recorder.events("exception") == []


def test_load_failure_through_get_is_left_to_the_caller(monkeypatch) -> None:
    recorder = RecordingLogger()
    monkeypatch.setattr("gateway.services.registry.logger", recorder)
    registry = ServiceRegistry(ServiceCatalog.build({"broken": FailingHandle(ImportError("gone"))}))

    with pytest.raises(ServiceLoadError):
        registry.get("broken")

    assert recorder.events("error") == []
    assert registry.failures == []
