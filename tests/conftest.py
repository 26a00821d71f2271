# -*- coding: utf-8 -*-
"""
全局测试配置
提供组件元数据、依赖图和激活状态的共享fixture
"""

import pytest

from plugdeps.dependency.graph import DependencyGraph
from plugdeps.dependency.sources import InMemoryActivationStore


@pytest.fixture
def cache_components():
    """
    示例组件

    A 无依赖；B 依赖 A 并提供虚拟能力 Cache；C 依赖 Cache。
    """
    return {
        "a/a.py": {"Name": "Plugin A", "Provides": "", "Depends": ""},
        "b/b.py": {"Name": "Plugin B", "Provides": "Cache", "Depends": "Plugin A"},
        "c/c.py": {"Name": "Plugin C", "Provides": "", "Depends": "Cache"},
    }


@pytest.fixture
def cache_graph(cache_components) -> DependencyGraph:
    """示例组件的依赖图"""
    return DependencyGraph.build(cache_components)


@pytest.fixture
def all_active_store() -> InMemoryActivationStore:
    """A、B、C 全部激活"""
    return InMemoryActivationStore(["a/a.py", "b/b.py", "c/c.py"])
