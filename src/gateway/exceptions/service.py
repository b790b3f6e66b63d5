"""
模块名称：服务目录与注册表异常

本模块定义目录构建、服务解析与生命周期驱动过程中使用的异常类型。
主要功能包括：
- 目录构建失败（重名、非法名称、配置错误）
- 服务解析失败（未注册、加载失败、循环加载）
- 生命周期失败（init/start/teardown 阶段的按服务错误）

关键组件：
- `ServiceLifecycleError`：携带服务名、阶段与原始异常的基类

设计背景：宿主需要明确知道是哪个服务、在哪个阶段失败。
注意事项：生命周期异常由注册表记录与上报，不会从 `start()` 抛出。
"""

from __future__ import annotations

from gateway.services.schema import LifecyclePhase


class GatewayError(Exception):
    """本包所有异常的基类。"""


class InvalidServiceNameError(GatewayError, ValueError):
    """服务名称为空或不是字符串。"""


class DuplicateServiceNameError(GatewayError):
    """目录构建时出现重复的服务名称。

    契约：`name` 为冲突的服务名称。
    失败语义：目录构建立即失败，不保留任何一方。
    """

    def __init__(self, name: str):
        self.name = name
        super().__init__(f"Duplicate service name: '{name}'")


class CatalogConfigError(GatewayError):
    """目录来源（命名空间/配置文件）不可用或格式错误。"""


class ServiceNotFoundError(GatewayError, LookupError):
    """请求的服务名称不在目录中。"""

    def __init__(self, name: str):
        self.name = name
        super().__init__(f"Service '{name}' is not registered in the catalog")


class RegistryStateError(GatewayError, RuntimeError):
    """注册表状态不允许当前操作（例如重复调用 `start()`）。"""


class ServiceLifecycleError(GatewayError):
    """单个服务在某一阶段失败。

    契约：携带 `service_name`、`phase` 与原始异常 `cause`。
    """

    phase: LifecyclePhase

    def __init__(self, service_name: str, cause: BaseException | None = None):
        self.service_name = service_name
        self.cause = cause
        detail = f": {cause!r}" if cause is not None else ""
        super().__init__(f"Service '{service_name}' failed during {self.phase.value}{detail}")


class ServiceLoadError(ServiceLifecycleError):
    """加载句柄求值失败。"""

    phase = LifecyclePhase.LOAD


class CircularServiceLoadError(ServiceLoadError):
    """加载过程中同一线程再次请求正在加载的服务。"""

    def __init__(self, service_name: str):
        super().__init__(service_name, RecursionError(f"'{service_name}' requested itself while loading"))


class ServiceInitError(ServiceLifecycleError):
    """服务 `init()` 抛出异常。"""

    phase = LifecyclePhase.INIT


class ServiceStartError(ServiceLifecycleError):
    """服务 `start()` 在其独立任务内抛出异常。"""

    phase = LifecyclePhase.START


class ServiceTeardownError(ServiceLifecycleError):
    """服务 `teardown()` 抛出异常。"""

    phase = LifecyclePhase.TEARDOWN
