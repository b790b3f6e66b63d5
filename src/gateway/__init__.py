"""gateway：按名称惰性加载服务的轻量注册表。

典型用法::

    catalog = ServiceCatalog.build({"data": DataService, "badge": "app.services.badge:BadgeService"})
    registry = ServiceRegistry(catalog)
    await registry.start()
    data = registry.get("data")
"""

from gateway.exceptions import (
    CatalogConfigError,
    CircularServiceLoadError,
    DuplicateServiceNameError,
    GatewayError,
    InvalidServiceNameError,
    RegistryStateError,
    ServiceInitError,
    ServiceLifecycleError,
    ServiceLoadError,
    ServiceNotFoundError,
    ServiceStartError,
    ServiceTeardownError,
)
from gateway.services.bootstrap import build_catalog, create_registry
from gateway.services.catalog import ServiceCatalog
from gateway.services.handles import CallableHandle, EntryPointHandle, ImportHandle, as_handle
from gateway.services.interfaces import (
    LoadableHandle,
    SupportsInit,
    SupportsStart,
    SupportsTeardown,
    has_init,
    has_start,
    has_teardown,
)
from gateway.services.registry import ServiceRegistry
from gateway.services.schema import LifecyclePhase, ServiceName
from gateway.settings import GatewaySettings

__all__ = [
    "CallableHandle",
    "CatalogConfigError",
    "CircularServiceLoadError",
    "DuplicateServiceNameError",
    "EntryPointHandle",
    "GatewayError",
    "GatewaySettings",
    "ImportHandle",
    "InvalidServiceNameError",
    "LifecyclePhase",
    "LoadableHandle",
    "RegistryStateError",
    "ServiceCatalog",
    "ServiceInitError",
    "ServiceLifecycleError",
    "ServiceLoadError",
    "ServiceName",
    "ServiceNotFoundError",
    "ServiceRegistry",
    "ServiceStartError",
    "ServiceTeardownError",
    "SupportsInit",
    "SupportsStart",
    "SupportsTeardown",
    "as_handle",
    "build_catalog",
    "create_registry",
    "has_init",
    "has_start",
    "has_teardown",
]
