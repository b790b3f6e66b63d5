"""
模块名称：服务加载句柄

本模块提供几种常用的加载句柄实现，以及把宿主提供的值统一为句柄的转换函数。
主要功能包括：
- `CallableHandle`：调用零参工厂函数
- `ImportHandle`：按 `module` 或 `module:attr` 路径导入
- `EntryPointHandle`：加载 Python entry point
- `as_handle`：将字符串/可调用对象/句柄统一为 `LoadableHandle`

设计背景：目录只关心“服务在哪里”，句柄构造时不执行任何服务代码。
注意事项：导入路径解析到类时会以无参方式实例化，其余对象原样返回。
"""

from __future__ import annotations

import importlib
import inspect
from typing import TYPE_CHECKING, Any

from typing_extensions import override

from gateway.services.interfaces import LoadableHandle

if TYPE_CHECKING:
    from collections.abc import Callable
    from importlib.metadata import EntryPoint


def _instantiate_if_class(target: Any) -> Any:
    if inspect.isclass(target):
        return target()
    return target


class CallableHandle:
    """零参工厂函数句柄。"""

    def __init__(self, factory: Callable[[], Any]):
        if not callable(factory):
            msg = f"Expected a callable factory, got {type(factory).__name__}"
            raise TypeError(msg)
        self.factory = factory

    def load(self) -> Any:
        return self.factory()

    @override
    def __repr__(self) -> str:
        name = getattr(self.factory, "__qualname__", repr(self.factory))
        return f"CallableHandle({name})"


class ImportHandle:
    """按导入路径加载服务。

    契约：
    - `target` 形如 `pkg.mod` 或 `pkg.mod:attr.sub`
    - `load()` 导入模块；有属性路径时逐级取属性，类会被实例化
    失败语义：格式错误在构造时抛 `ValueError`；导入/取属性失败在 `load()` 时原样抛出。
    """

    def __init__(self, target: str):
        module_path, _, attribute = target.partition(":")
        if not module_path or (":" in target and not attribute):
            msg = f"Invalid import path '{target}' - expected 'module' or 'module:attr' format"
            raise ValueError(msg)
        self.target = target
        self.module_path = module_path
        self.attribute = attribute or None

    def load(self) -> Any:
        module = importlib.import_module(self.module_path)
        if self.attribute is None:
            return module
        obj: Any = module
        for part in self.attribute.split("."):
            obj = getattr(obj, part)
        return _instantiate_if_class(obj)

    @override
    def __repr__(self) -> str:
        return f"ImportHandle({self.target!r})"

    @override
    def __eq__(self, other: object) -> bool:
        return isinstance(other, ImportHandle) and other.target == self.target

    @override
    def __hash__(self) -> int:
        return hash(("ImportHandle", self.target))


class EntryPointHandle:
    """Python entry point 句柄。"""

    def __init__(self, entry_point: EntryPoint):
        self.entry_point = entry_point

    def load(self) -> Any:
        return _instantiate_if_class(self.entry_point.load())

    @override
    def __repr__(self) -> str:
        return f"EntryPointHandle({self.entry_point.name!r} -> {self.entry_point.value!r})"


def as_handle(value: Any) -> LoadableHandle:
    """将宿主提供的值转换为加载句柄。

    契约：已是句柄则原样返回；字符串视为导入路径；其他可调用对象视为工厂。
    失败语义：无法转换时抛 `TypeError`。
    """
    if not inspect.isclass(value) and isinstance(value, LoadableHandle):
        return value
    if isinstance(value, str):
        return ImportHandle(value)
    if callable(value):
        return CallableHandle(value)
    msg = f"Cannot use {type(value).__name__} as a loadable handle"
    raise TypeError(msg)
