"""
模块名称：服务注册表

本模块在服务目录之上提供惰性解析、实例缓存与两阶段生命周期驱动。
主要功能包括：
- `get` / `aget`：命中缓存直接返回；未注册返回 None；否则求值句柄一次并缓存
- `start`：先对目录中全部服务执行 `init`，全部完成后再并发启动 `start`
- `join` / `teardown`：等待启动任务、销毁已加载服务

设计背景：宿主只需知道服务名称；单个服务失败不能拖垮其余服务。
注意事项：缓存只增不减，同名服务在注册表生命周期内始终是同一个对象。
"""

from __future__ import annotations

import asyncio
import inspect
import threading
from typing import TYPE_CHECKING, Any

from gateway.exceptions import (
    CircularServiceLoadError,
    RegistryStateError,
    ServiceInitError,
    ServiceLifecycleError,
    ServiceLoadError,
    ServiceNotFoundError,
    ServiceStartError,
    ServiceTeardownError,
)
from gateway.log.logger import logger
from gateway.services.interfaces import has_init, has_start, has_teardown

if TYPE_CHECKING:
    from gateway.services.catalog import ServiceCatalog
    from gateway.services.schema import ServiceName


class AsyncInitThroughSyncGetError(RuntimeError):
    """协程 `init` 只能在驱动事件循环上等待。"""

    def __init__(self, name: str):
        super().__init__(
            f"'{name}' has a coroutine init() and was first requested through get() during the init phase; "
            f"use 'await registry.aget({name!r})' from async init hooks"
        )


class ServiceRegistry:
    """惰性解析并缓存服务实例，驱动 init/start 生命周期。"""

    def __init__(self, catalog: ServiceCatalog) -> None:
        self.catalog = catalog
        self.services: dict[str, Any] = {}
        # 注意：全表一把可重入锁，加载中互相请求的服务不会因加锁顺序相反而死锁
        self._lock = threading.RLock()
        self._loading: set[str] = set()

        self._init_phase_active = False
        self._started = False
        self._init_visited: set[str] = set()
        self._initialized: set[str] = set()
        self._failed: set[str] = set()
        self._failures: list[ServiceLifecycleError] = []
        self._start_tasks: set[asyncio.Task] = set()

    # --- 解析 ------------------------------------------------------------------
    def get(self, name: ServiceName) -> Any | None:
        """获取服务实例，必要时加载并缓存。

        关键路径（三步）：
        1) 命中缓存直接返回，不重新求值
        2) 目录中不存在：记录 `ServiceNotFoundError` 并返回 None，缓存不变
        3) 否则在注册表锁内求值句柄一次，写入缓存后返回

        失败语义：句柄求值失败抛 `ServiceLoadError`，不写缓存。
        注意：init 阶段进行中时，会对尚未访问的服务按需执行同步 `init`；
        协程 `init` 需通过 `aget` 获取，否则记为 `ServiceInitError`。
        """
        found, instance = self._lookup_or_load(name)
        if found and self._init_phase_active:
            self._initialize_on_demand(name, instance)
        return instance

    async def aget(self, name: ServiceName) -> Any | None:
        """`get` 的异步版本：init 阶段内在驱动事件循环上等待按需执行的 `init`。"""
        found, instance = self._lookup_or_load(name)
        if found and self._init_phase_active:
            await self._run_init(name, instance)
        return instance

    def require(self, name: ServiceName) -> Any:
        """同 `get`，但未注册时抛 `ServiceNotFoundError`。"""
        if name not in self.services and self.catalog.lookup(name) is None:
            raise ServiceNotFoundError(name)
        return self.get(name)

    def _lookup_or_load(self, name: ServiceName) -> tuple[bool, Any]:
        if name in self.services:
            return True, self.services[name]

        handle = self.catalog.lookup(name)
        if handle is None:
            logger.warning(str(ServiceNotFoundError(name)))
            return False, None

        with self._lock:
            if name not in self.services:
                self._create_service(name, handle)
            return True, self.services[name]

    def _create_service(self, name: ServiceName, handle) -> None:
        # 注意：只有持锁线程能走到这里，再次遇到同名说明是本线程的递归加载
        if name in self._loading:
            raise CircularServiceLoadError(name)

        logger.debug(f"Create service {name}")
        self._loading.add(name)
        try:
            instance = handle.load()
        except Exception as exc:
            raise ServiceLoadError(name, exc) from exc
        finally:
            self._loading.discard(name)

        self.services[name] = instance
        logger.debug(f"Service created successfully: {name}")

    def is_loaded(self, name: ServiceName) -> bool:
        return name in self.services

    def is_initialized(self, name: ServiceName) -> bool:
        return name in self._initialized

    def loaded_names(self) -> list[ServiceName]:
        return list(self.services)

    @property
    def failures(self) -> list[ServiceLifecycleError]:
        """生命周期中记录的全部失败（按发生顺序）。"""
        with self._lock:
            return list(self._failures)

    @property
    def started(self) -> bool:
        return self._started

    # --- 生命周期 --------------------------------------------------------------
    async def start(self) -> None:
        """驱动目录中全部服务的两阶段生命周期。

        关键路径：
        1) init 阶段：按目录顺序逐个解析并 `await` 其 `init`，每个服务只访问一次
        2) start 阶段：对加载与初始化都成功的服务，以独立任务启动其 `start`

        契约：全部 `init` 完成后才启动任何 `start`；所有任务发出后即返回。
        失败语义：单个服务的加载/初始化/启动失败只记录与上报，不向调用方抛出；
        重复调用抛 `RegistryStateError`。
        """
        with self._lock:
            if self._started:
                msg = "Registry has already been started"
                raise RegistryStateError(msg)
            self._started = True
            self._init_phase_active = True

        logger.debug(f"Init phase started for {len(self.catalog)} services")
        try:
            for name in self.catalog.names():
                if name in self._init_visited:
                    continue
                try:
                    _, instance = self._lookup_or_load(name)
                except ServiceLoadError as exc:
                    self._init_visited.add(name)
                    self._record_failure(exc)
                    continue
                await self._run_init(name, instance)
        finally:
            self._init_phase_active = False

        for name in self.catalog.names():
            if name in self._failed or name not in self.services:
                continue
            instance = self.services[name]
            if has_start(instance):
                self._launch_start(name, instance)
        logger.debug(f"Start phase launched {len(self._start_tasks)} services")
        # 让每个已发出的任务先运行到第一个挂起点
        await asyncio.sleep(0)

    async def _run_init(self, name: ServiceName, instance: Any) -> None:
        if not self._begin_init(name, instance):
            return

        logger.debug(f"Init service {name}")
        try:
            result = instance.init()
            if inspect.isawaitable(result):
                await result
        except Exception as exc:  # noqa: BLE001
            self._record_failure(ServiceInitError(name, exc))
        else:
            self._initialized.add(name)

    def _initialize_on_demand(self, name: ServiceName, instance: Any) -> None:
        if not self._begin_init(name, instance):
            return

        logger.debug(f"Init service {name} on demand")
        try:
            result = instance.init()
            if inspect.iscoroutine(result):
                # 注意：不能在临时事件循环上执行，init 创建的任务会随该循环一起销毁
                result.close()
                raise AsyncInitThroughSyncGetError(name)
        except Exception as exc:  # noqa: BLE001
            self._record_failure(ServiceInitError(name, exc))
        else:
            self._initialized.add(name)

    def _begin_init(self, name: ServiceName, instance: Any) -> bool:
        """标记服务已访问；返回是否需要执行 `init`。

        注意：先标记再执行，循环依赖时返回尚在初始化中的实例而不是再次执行 init。
        """
        with self._lock:
            if name in self._init_visited:
                return False
            self._init_visited.add(name)
            if not has_init(instance):
                self._initialized.add(name)
                return False
            return True

    def _launch_start(self, name: ServiceName, instance: Any) -> None:
        task = asyncio.create_task(self._run_start(name, instance), name=f"gateway-start-{name}")
        self._start_tasks.add(task)
        task.add_done_callback(self._start_tasks.discard)

    async def _run_start(self, name: ServiceName, instance: Any) -> None:
        logger.debug(f"Start service {name}")
        try:
            # 注意：协作式调度，同步 start 在任务内直接执行，长时间运行的服务应提供协程 start
            result = instance.start()
            if inspect.isawaitable(result):
                await result
        except Exception as exc:  # noqa: BLE001
            self._record_failure(ServiceStartError(name, exc))
        else:
            logger.debug(f"Service {name} started")

    def _record_failure(self, error: ServiceLifecycleError) -> None:
        with self._lock:
            self._failures.append(error)
            self._failed.add(error.service_name)
        logger.error(str(error), exc_info=error.cause)

    async def join(self, timeout: float | None = None) -> bool:
        """等待已发出的 start 任务结束；全部结束返回 True。"""
        pending = set(self._start_tasks)
        if not pending:
            return True
        _, still_pending = await asyncio.wait(pending, timeout=timeout)
        return not still_pending

    async def teardown(self) -> None:
        """取消未完成的 start 任务并按加载的逆序销毁服务。

        失败语义：销毁失败记为 `ServiceTeardownError` 并继续；缓存保持不变。
        """
        pending = [task for task in self._start_tasks if not task.done()]
        for task in pending:
            task.cancel()
        if pending:
            await asyncio.gather(*pending, return_exceptions=True)

        for name, service in reversed(list(self.services.items())):
            if not has_teardown(service):
                continue
            logger.debug(f"Teardown service {name}")
            try:
                teardown_result = service.teardown()
                if inspect.isawaitable(teardown_result):
                    await teardown_result
            except Exception as exc:  # noqa: BLE001
                self._record_failure(ServiceTeardownError(name, exc))
