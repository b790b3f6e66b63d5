"""
模块名称：服务接口协议

本模块定义加载句柄与服务生命周期钩子的协议接口。
主要功能包括：
- 声明加载句柄的最小接口 `load()`
- 声明可选的 `init()` / `start()` / `teardown()` 能力
- 提供能力检查函数，注册表据此决定是否调用钩子

设计背景：服务实例可以是模块、对象或任意返回值，能力需要检查而非假设。
注意事项：协议仅约束接口，钩子可以是普通函数或协程函数。
"""

from __future__ import annotations

from typing import Any, Protocol, runtime_checkable


@runtime_checkable
class LoadableHandle(Protocol):
    """尚未求值的服务代码引用。"""

    def load(self) -> Any:
        """Evaluate the handle and return the service instance."""
        ...


@runtime_checkable
class SupportsInit(Protocol):
    """具备初始化钩子的服务。"""

    def init(self) -> Any:
        """Initialize the service; may return an awaitable."""
        ...


@runtime_checkable
class SupportsStart(Protocol):
    """具备启动钩子的服务。"""

    def start(self) -> Any:
        """Start the service; may return an awaitable."""
        ...


@runtime_checkable
class SupportsTeardown(Protocol):
    """具备销毁钩子的服务。"""

    def teardown(self) -> Any:
        """Release resources; may return an awaitable."""
        ...


def _has_hook(instance: Any, protocol: type, hook: str) -> bool:
    # 注意：runtime_checkable 只检查属性存在，还需确认可调用
    return isinstance(instance, protocol) and callable(getattr(instance, hook, None))


def has_init(instance: Any) -> bool:
    return _has_hook(instance, SupportsInit, "init")


def has_start(instance: Any) -> bool:
    return _has_hook(instance, SupportsStart, "start")


def has_teardown(instance: Any) -> bool:
    return _has_hook(instance, SupportsTeardown, "teardown")
