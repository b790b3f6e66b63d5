"""
模块名称：服务名称与生命周期阶段

本模块定义服务名称类型与生命周期阶段枚举。
主要功能包括：
- 统一服务名称类型标识
- 标识加载/初始化/启动/销毁阶段，供错误上报使用

设计背景：目录、注册表与异常需要一致的阶段标识。
注意事项：服务名称区分大小写，不做任何规范化。
"""

from enum import Enum

ServiceName = str


class LifecyclePhase(str, Enum):
    """服务生命周期阶段。"""

    LOAD = "load"
    INIT = "init"
    START = "start"
    TEARDOWN = "teardown"
