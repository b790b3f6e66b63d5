"""配置模块入口。

`DEV` 在导入时从 `GATEWAY_DEV` 读取，日志模块在 settings 实例化之前就需要它。
"""

import os

from gateway.settings.base import VALID_LOG_LEVELS, GatewaySettings

DEV = os.getenv("GATEWAY_DEV", "false").lower() in {"1", "true", "yes"}

__all__ = ["DEV", "VALID_LOG_LEVELS", "GatewaySettings"]
