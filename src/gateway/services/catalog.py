"""
模块名称：服务目录

本模块提供服务名称到加载句柄的只读映射，以及几种目录构建方式。
主要功能包括：
- 显式条目构建（映射或 `(name, handle)` 序列）
- 扫描命名空间包发现子模块（不导入子模块）
- 从 entry points / 配置文件（gateway.toml、pyproject.toml）发现服务
- 合并多个目录

设计背景：把“服务在哪里”与“服务是否已加载”分离，发现策略可替换而不影响注册表。
注意事项：重复名称一律拒绝（`DuplicateServiceNameError`），不存在后者覆盖前者的情况。
"""

from __future__ import annotations

import importlib
import pkgutil
from collections.abc import Iterable, Iterator, Mapping
from pathlib import Path
from types import MappingProxyType, ModuleType
from typing import TYPE_CHECKING, Any

from typing_extensions import override

from gateway.exceptions import CatalogConfigError, DuplicateServiceNameError, InvalidServiceNameError
from gateway.log.logger import logger
from gateway.services.handles import EntryPointHandle, ImportHandle, as_handle

if TYPE_CHECKING:
    from gateway.services.interfaces import LoadableHandle
    from gateway.services.schema import ServiceName

DEFAULT_ENTRY_POINT_GROUP = "gateway.services"
DEFAULT_CONFIG_FILE = "gateway.toml"


def validate_service_name(name: object) -> ServiceName:
    """校验服务名称并原样返回。

    契约：名称必须为非空字符串（纯空白视为空），区分大小写。
    失败语义：不合法时抛 `InvalidServiceNameError`。
    """
    if not isinstance(name, str):
        msg = f"Service name must be a string, got {type(name).__name__}"
        raise InvalidServiceNameError(msg)
    if not name.strip():
        msg = "Service name must not be empty"
        raise InvalidServiceNameError(msg)
    return name


class ServiceCatalog(Mapping):
    """服务名称到加载句柄的不可变映射。

    契约：构建后只读；迭代顺序与构建顺序一致。
    """

    def __init__(self, entries: Iterable[tuple[ServiceName, LoadableHandle]] = ()):
        handles: dict[str, LoadableHandle] = {}
        for name, handle in entries:
            validate_service_name(name)
            if name in handles:
                raise DuplicateServiceNameError(name)
            handles[name] = handle
        self._handles = MappingProxyType(handles)

    # --- Mapping 接口 ----------------------------------------------------------
    @override
    def __getitem__(self, name: ServiceName) -> LoadableHandle:
        return self._handles[name]

    @override
    def __iter__(self) -> Iterator[ServiceName]:
        return iter(self._handles)

    @override
    def __len__(self) -> int:
        return len(self._handles)

    @override
    def __repr__(self) -> str:
        return f"ServiceCatalog({list(self._handles)!r})"

    def lookup(self, name: ServiceName) -> LoadableHandle | None:
        """按名称查找句柄；未注册返回 None。"""
        return self._handles.get(name)

    def names(self) -> tuple[ServiceName, ...]:
        return tuple(self._handles)

    # --- 构建方式 --------------------------------------------------------------
    @classmethod
    def build(cls, entries: Mapping[ServiceName, Any] | Iterable[tuple[ServiceName, Any]]) -> ServiceCatalog:
        """从显式条目构建目录。

        契约：值经 `as_handle` 转换；序列中出现重复名称时抛 `DuplicateServiceNameError`。
        """
        items = entries.items() if isinstance(entries, Mapping) else entries
        return cls((name, as_handle(value)) for name, value in items)

    @classmethod
    def discover(cls, namespace: ModuleType | str, *, attribute: str | None = None) -> ServiceCatalog:
        """扫描命名空间包的直接子模块构建目录。

        关键路径：
        1) 导入命名空间包本身（不导入子模块）
        2) 用 `pkgutil.iter_modules` 枚举子模块，跳过 `_` 开头的私有模块
        3) 子模块名即服务名，句柄为 `ImportHandle`

        失败语义：命名空间无法导入或不是包时抛 `CatalogConfigError`。
        """
        if isinstance(namespace, str):
            try:
                package = importlib.import_module(namespace)
            except ImportError as exc:
                msg = f"Cannot import service namespace '{namespace}': {exc}"
                raise CatalogConfigError(msg) from exc
        else:
            package = namespace

        search_path = getattr(package, "__path__", None)
        if search_path is None:
            msg = f"Service namespace '{package.__name__}' is not a package"
            raise CatalogConfigError(msg)

        entries = []
        for module_info in sorted(pkgutil.iter_modules(search_path), key=lambda info: info.name):
            if module_info.name.startswith("_"):
                continue
            target = f"{package.__name__}.{module_info.name}"
            if attribute:
                target = f"{target}:{attribute}"
            entries.append((module_info.name, ImportHandle(target)))

        logger.debug(f"Discovered {len(entries)} services in namespace {package.__name__}")
        return cls(entries)

    @classmethod
    def from_entry_points(cls, group: str = DEFAULT_ENTRY_POINT_GROUP) -> ServiceCatalog:
        """从已安装分发包的 entry points 构建目录（不加载）。"""
        from importlib.metadata import entry_points

        eps = entry_points(group=group)
        catalog = cls((ep.name, EntryPointHandle(ep)) for ep in eps)
        logger.debug(f"Discovered {len(catalog)} services from entry point group {group}")
        return catalog

    @classmethod
    def from_config(cls, config_dir: Path | str | None = None, *, file_name: str = DEFAULT_CONFIG_FILE) -> ServiceCatalog:
        """从配置文件构建目录。

        查找顺序：
        1) `<config_dir>/gateway.toml` 的 `[services]`
        2) `<config_dir>/pyproject.toml` 的 `[tool.gateway.services]`

        契约：值为 `module` 或 `module:attr` 字符串；都不存在时返回空目录。
        失败语义：TOML 无法解析或条目格式错误时抛 `CatalogConfigError`。
        """
        config_dir = Path.cwd() if config_dir is None else Path(config_dir)

        gateway_config = config_dir / file_name
        if gateway_config.exists():
            services = _load_toml(gateway_config).get("services", {})
            return cls._from_config_table(services, gateway_config)

        pyproject_config = config_dir / "pyproject.toml"
        if pyproject_config.exists():
            services = _load_toml(pyproject_config).get("tool", {}).get("gateway", {}).get("services", {})
            return cls._from_config_table(services, pyproject_config)

        logger.debug(f"No service config found in {config_dir}")
        return cls()

    @classmethod
    def _from_config_table(cls, services: Any, source: Path) -> ServiceCatalog:
        if not isinstance(services, Mapping):
            msg = f"Services table in {source} must be a table of name = 'module:attr' entries"
            raise CatalogConfigError(msg)

        entries = []
        for service_name, service_path in services.items():
            if not isinstance(service_path, str):
                msg = f"Invalid service path for '{service_name}' in {source}: expected a string"
                raise CatalogConfigError(msg)
            try:
                entries.append((service_name, ImportHandle(service_path)))
            except ValueError as exc:
                msg = f"Invalid service path for '{service_name}' in {source}: {exc}"
                raise CatalogConfigError(msg) from exc

        if entries:
            logger.debug(f"Loaded {len(entries)} services from {source}")
        return cls(entries)

    @classmethod
    def merge(cls, *catalogs: ServiceCatalog) -> ServiceCatalog:
        """合并多个目录；同名服务出现在两个目录中时抛 `DuplicateServiceNameError`。"""
        return cls(item for catalog in catalogs for item in catalog.items())


def _load_toml(config_path: Path) -> dict[str, Any]:
    try:
        import tomllib as tomli  # 注意：Python 3.11+ 内置
    except ImportError:
        import tomli  # 注意：Python 3.10 需外部依赖

    try:
        with config_path.open("rb") as f:
            return tomli.load(f)
    except tomli.TOMLDecodeError as exc:
        msg = f"Failed to parse service config {config_path}: {exc}"
        raise CatalogConfigError(msg) from exc
