# -*- coding: utf-8 -*-
"""
组件依赖管理系统

提供组件元数据合并、依赖图构建、冲突检测和级联停用等功能。
"""

from .graph import DependencyGraph
from .metadata import (
    ComponentMetadata,
    MetadataLoader,
    merge_components,
    normalize,
    parse_field,
    union_csv,
)
from .resolver import (
    DependencyReport,
    DependencyResolver,
    DependencyStatus,
    OperationKind,
    cascade_levels,
)
from .sources import (
    ActivationStore,
    ComponentCatalog,
    ComponentSource,
    DirectoryComponentSource,
    FileActivationStore,
    FileComponentSource,
    InMemoryActivationStore,
    StaticComponentSource,
)

__all__ = [
    "ComponentMetadata",
    "MetadataLoader",
    "merge_components",
    "normalize",
    "parse_field",
    "union_csv",
    "DependencyGraph",
    "DependencyResolver",
    "DependencyReport",
    "DependencyStatus",
    "OperationKind",
    "cascade_levels",
    "ComponentSource",
    "StaticComponentSource",
    "FileComponentSource",
    "DirectoryComponentSource",
    "ComponentCatalog",
    "ActivationStore",
    "InMemoryActivationStore",
    "FileActivationStore",
]
