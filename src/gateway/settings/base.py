"""
模块名称：settings.base

本模块定义网关的运行配置，集中处理环境变量与默认值。
主要功能包括：
- GatewaySettings：日志与服务发现相关的配置模型
- CustomSource：环境变量解析扩展（支持逗号分隔列表）

关键组件：
- GatewaySettings：由 `create_registry` 读取以构建目录与配置日志

设计背景：目录来源（命名空间/entry points/配置文件）需要在单点统一配置。
注意事项：本模块不依赖日志模块，避免与 `gateway.log` 形成循环导入。
"""

from pathlib import Path
from typing import Any

from pydantic import field_validator
from pydantic.fields import FieldInfo
from pydantic_settings import BaseSettings, EnvSettingsSource, PydanticBaseSettingsSource, SettingsConfigDict
from typing_extensions import override

VALID_LOG_LEVELS = ["DEBUG", "INFO", "WARNING", "ERROR", "CRITICAL"]


def is_list_of_any(field: FieldInfo) -> bool:
    """判断字段类型是否为列表或可选列表。

    契约：
    - 输入：Pydantic `FieldInfo`
    - 输出：是否为 `list[...]` 或 `Optional[list[...]]`
    - 失败语义：类型解析失败时返回 False
    """
    if field.annotation is None:
        return False
    try:
        union_args = field.annotation.__args__ if hasattr(field.annotation, "__args__") else []

        return getattr(field.annotation, "__origin__", None) is list or any(
            arg.__origin__ is list for arg in union_args if hasattr(arg, "__origin__")
        )
    except AttributeError:
        return False


class CustomSource(EnvSettingsSource):
    """环境变量解析扩展。

    契约：列表字段接受逗号分隔字符串，其余交给父类解析。
    """

    @override
    def prepare_field_value(self, field_name: str, field: FieldInfo, value: Any, value_is_complex: bool) -> Any:  # type: ignore[misc]
        # 注意：允许 `GATEWAY_NAMESPACES=a.services,b.services`
        if is_list_of_any(field) and isinstance(value, str):
            if value.lstrip().startswith("["):
                return super().prepare_field_value(field_name, field, value, value_is_complex)
            return [item.strip() for item in value.split(",") if item.strip()]
        return super().prepare_field_value(field_name, field, value, value_is_complex)


class GatewaySettings(BaseSettings):
    """网关运行配置集合。

    契约：
    - 输入：环境变量（前缀 `GATEWAY_`）与构造参数
    - 输出：可读写的配置对象
    - 失败语义：无效日志级别抛出 ValidationError
    """

    dev: bool = False
    """是否以开发模式运行（日志输出调用位置与异常详情）。"""

    log_level: str = "WARNING"
    log_file: str | None = None
    log_env: str = ""
    """日志输出格式：空（控制台）、`container`/`container_json`（JSON）、`container_csv`（键值）。"""
    log_rotation: str | None = None
    """日志文件轮转大小，形如 `"10 MB"`；仅在设置 `log_file` 时生效。"""

    namespaces: list[str] = []
    """需要扫描的服务命名空间包（点分路径）。"""
    entry_point_group: str | None = "gateway.services"
    """entry points 分组名；为空时不从 entry points 发现服务。"""
    config_dir: str | None = None
    """服务配置文件所在目录；为空时使用当前工作目录。"""
    config_file: str = "gateway.toml"

    @field_validator("log_level", mode="before")
    @classmethod
    def validate_log_level(cls, value):
        if isinstance(value, str) and value.upper() in VALID_LOG_LEVELS:
            return value.upper()
        msg = f"Invalid log level: {value!r}. Expected one of {VALID_LOG_LEVELS}"
        raise ValueError(msg)

    @field_validator("log_file", "config_dir", mode="before")
    @classmethod
    def stringify_path(cls, value):
        if isinstance(value, Path):
            value = str(value)
        return value

    @field_validator("entry_point_group", mode="before")
    @classmethod
    def empty_group_disables(cls, value):
        if isinstance(value, str) and not value.strip():
            return None
        return value

    model_config = SettingsConfigDict(validate_assignment=True, extra="ignore", env_prefix="GATEWAY_")

    @classmethod
    @override
    def settings_customise_sources(  # type: ignore[misc]
        cls,
        settings_cls: type[BaseSettings],
        init_settings: PydanticBaseSettingsSource,
        env_settings: PydanticBaseSettingsSource,
        dotenv_settings: PydanticBaseSettingsSource,
        file_secret_settings: PydanticBaseSettingsSource,
    ) -> tuple[PydanticBaseSettingsSource, ...]:
        return (init_settings, CustomSource(settings_cls))
