# -*- coding: utf-8 -*-
"""
plugdeps: 组件依赖解析与级联停用引擎
"""

__author__ = "plugdeps"
__version__ = "1.0.0"

from .config import BaseConfig, ResolverConfig, load_config

# 依赖管理
from .dependency import (
    ActivationStore,
    ComponentCatalog,
    ComponentMetadata,
    DependencyGraph,
    DependencyResolver,
    DependencyStatus,
    OperationKind,
    merge_components,
    union_csv,
)

# 异常
from .exceptions import (
    ActivationStoreError,
    ConfigurationError,
    MetadataLoadError,
    PlugDepsError,
)

__all__ = [
    # 配置
    "BaseConfig",
    "ResolverConfig",
    "load_config",
    # 依赖管理
    "ActivationStore",
    "ComponentCatalog",
    "ComponentMetadata",
    "DependencyGraph",
    "DependencyResolver",
    "DependencyStatus",
    "OperationKind",
    "merge_components",
    "union_csv",
    # 异常
    "PlugDepsError",
    "ConfigurationError",
    "MetadataLoadError",
    "ActivationStoreError",
]
