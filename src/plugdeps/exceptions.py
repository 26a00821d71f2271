# -*- coding: utf-8 -*-
"""
plugdeps 核心异常

依赖图引擎本身不抛出异常（未知能力、空字段都按"未满足"/空集合处理），
这里的异常只用于配置、元数据加载和激活状态存储等外围层。
"""


class PlugDepsError(Exception):
    """所有 plugdeps 自定义异常的基类。"""

    pass


# region 配置异常


class ConfigurationError(PlugDepsError, ValueError):
    """当配置文件缺失或无效时引发。"""

    pass


# endregion

# region 元数据异常


class MetadataLoadError(PlugDepsError, ValueError):
    """当组件元数据文件无法加载或格式不正确时引发。"""

    pass


# endregion

# region 激活状态异常


class ActivationStoreError(PlugDepsError):
    """当激活状态无法读取或写回时引发。"""

    pass


# endregion
