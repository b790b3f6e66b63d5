"""异常模块入口。"""

from gateway.exceptions.service import (
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

__all__ = [
    "CatalogConfigError",
    "CircularServiceLoadError",
    "DuplicateServiceNameError",
    "GatewayError",
    "InvalidServiceNameError",
    "RegistryStateError",
    "ServiceInitError",
    "ServiceLifecycleError",
    "ServiceLoadError",
    "ServiceNotFoundError",
    "ServiceStartError",
    "ServiceTeardownError",
]
