"""日志配置模块。

本模块基于 structlog 配置网关日志，由 `create_registry` 按 `GatewaySettings` 调用。
主要功能包括：
- 按级别过滤并选择输出格式（控制台 / JSON / 键值）
- 非开发模式下移除异常详情
- 写文件时按大小轮转
"""

import logging
import logging.handlers
import os
import sys
from pathlib import Path
from typing import Any

import structlog
from platformdirs import user_cache_dir

from gateway.settings import DEV, VALID_LOG_LEVELS

DEFAULT_MAX_BYTES = 10 * 1024 * 1024
BACKUP_COUNT = 5

_dev_mode = DEV


def remove_exception_in_production(_logger: Any, _method_name: str, event_dict: dict[str, Any]) -> dict[str, Any]:
    """在生产环境移除异常详情。"""
    if _dev_mode is False:
        event_dict.pop("exception", None)
        event_dict.pop("exc_info", None)
    return event_dict


def parse_rotation(log_rotation: str | None) -> int:
    """解析 `"<n> MB"` 形式的轮转配置，返回字节数。

    失败语义：为空或格式不合法时返回默认 10MB。
    """
    if not log_rotation:
        return DEFAULT_MAX_BYTES
    size, _, unit = log_rotation.strip().partition(" ")
    if unit.strip().upper() != "MB" or not size.isdigit() or int(size) == 0:
        return DEFAULT_MAX_BYTES
    return int(size) * 1024 * 1024


def _level_number(log_level: str | None) -> int:
    name = (log_level or os.getenv("GATEWAY_LOG_LEVEL", "") or "ERROR").upper()
    if name not in VALID_LOG_LEVELS:
        name = "ERROR"
    return logging.getLevelName(name)


def _renderer_chain(log_env: str) -> list:
    """按输出环境选择渲染处理器（位于处理器链末尾）。"""
    env = log_env.lower()
    if env in {"container", "container_json"}:
        return [structlog.processors.format_exc_info, structlog.processors.JSONRenderer()]
    if env == "container_csv":
        key_order = ["timestamp", "level", "event"]
        if _dev_mode:
            key_order += ["filename", "func_name", "lineno"]
        return [structlog.processors.KeyValueRenderer(key_order=key_order, drop_missing=True)]
    return [structlog.dev.ConsoleRenderer(colors=True)]


def _attach_file_handler(log_file: Path, level: int, log_rotation: str | None) -> None:
    # 注意：目标目录不存在时改写到用户缓存目录
    if not log_file.parent.exists():
        cache_dir = Path(user_cache_dir("gateway"))
        cache_dir.mkdir(parents=True, exist_ok=True)
        log_file = cache_dir / "gateway.log"

    # structlog 无内建轮转，使用 stdlib 处理
    file_handler = logging.handlers.RotatingFileHandler(
        log_file,
        maxBytes=parse_rotation(log_rotation),
        backupCount=BACKUP_COUNT,
    )
    file_handler.setFormatter(logging.Formatter("%(message)s"))
    logging.root.addHandler(file_handler)
    logging.root.setLevel(level)


def configure(
    *,
    log_level: str | None = None,
    log_file: Path | None = None,
    log_env: str | None = None,
    log_rotation: str | None = None,
    dev: bool | None = None,
    cache: bool = True,
    output_file=None,
) -> None:
    """配置日志系统。

    契约：未显式传入的参数回退到 `GATEWAY_LOG_LEVEL` / `GATEWAY_LOG_FILE` / `GATEWAY_LOG_ENV`；
    `output_file` 仅在不写文件时生效，默认 stdout。
    """
    global _dev_mode, logger  # noqa: PLW0603
    if dev is not None:
        _dev_mode = dev

    level = _level_number(log_level)
    if log_file is None and os.getenv("GATEWAY_LOG_FILE"):
        log_file = Path(os.environ["GATEWAY_LOG_FILE"])
    if log_env is None:
        log_env = os.getenv("GATEWAY_LOG_ENV", "")

    processors: list = [
        structlog.contextvars.merge_contextvars,
        structlog.processors.add_log_level,
        structlog.processors.TimeStamper(fmt="iso"),
    ]
    if _dev_mode:
        processors.append(
            structlog.processors.CallsiteParameterAdder(
                parameters=[
                    structlog.processors.CallsiteParameter.FILENAME,
                    structlog.processors.CallsiteParameter.FUNC_NAME,
                    structlog.processors.CallsiteParameter.LINENO,
                ]
            )
        )
    processors.append(remove_exception_in_production)
    processors.extend(_renderer_chain(log_env))

    if log_file:
        logger_factory = structlog.stdlib.LoggerFactory()
    else:
        logger_factory = structlog.PrintLoggerFactory(file=output_file if output_file is not None else sys.stdout)

    structlog.configure(
        processors=processors,
        wrapper_class=structlog.make_filtering_bound_logger(level),
        context_class=dict,
        logger_factory=logger_factory,
        cache_logger_on_first_use=cache,
    )
    if log_file:
        _attach_file_handler(log_file, level, log_rotation)

    logger = structlog.get_logger()
    logger.debug(f"Logger set up with log level: {logging.getLevelName(level)}")


# 初始化 logger（create_registry 会按配置重新设置）
logger: structlog.BoundLogger = structlog.get_logger()
configure(log_level="CRITICAL", cache=False)
