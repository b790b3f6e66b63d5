"""
模块名称：注册表启动入口

本模块根据配置构建服务目录并创建注册表。
主要功能包括：
- 按固定顺序合并命名空间扫描、entry points 与配置文件三类来源
- 按配置初始化日志

设计背景：注册表由宿主在启动时显式创建并持有，不提供进程级全局单例。
注意事项：三类来源之间出现同名服务会直接抛 `DuplicateServiceNameError`。
"""

from __future__ import annotations

from pathlib import Path

from gateway.log.logger import configure, logger
from gateway.services.catalog import ServiceCatalog
from gateway.services.registry import ServiceRegistry
from gateway.settings import GatewaySettings


def build_catalog(settings: GatewaySettings) -> ServiceCatalog:
    """按配置构建服务目录。

    发现顺序：
    1) `settings.namespaces` 中每个命名空间包
    2) `settings.entry_point_group` 分组的 entry points（为空则跳过）
    3) `settings.config_dir` 下的配置文件
    """
    catalogs = [ServiceCatalog.discover(namespace) for namespace in settings.namespaces]
    if settings.entry_point_group:
        catalogs.append(ServiceCatalog.from_entry_points(settings.entry_point_group))
    catalogs.append(ServiceCatalog.from_config(settings.config_dir, file_name=settings.config_file))

    catalog = ServiceCatalog.merge(*catalogs)
    logger.debug(f"Service catalog built with services: {list(catalog)}")
    return catalog


def create_registry(
    settings: GatewaySettings | None = None,
    *,
    catalog: ServiceCatalog | None = None,
) -> ServiceRegistry:
    """配置日志、构建目录并返回新的注册表。

    契约：传入 `catalog` 时不再执行发现；返回的注册表由调用方持有。
    """
    if settings is None:
        settings = GatewaySettings()

    configure(
        log_level=settings.log_level,
        log_file=Path(settings.log_file) if settings.log_file else None,
        log_env=settings.log_env,
        log_rotation=settings.log_rotation,
        dev=settings.dev,
    )

    if catalog is None:
        catalog = build_catalog(settings)
    return ServiceRegistry(catalog)
