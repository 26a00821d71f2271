# -*- coding: utf-8 -*-
"""
依赖图构建测试
"""

import networkx as nx
import pytest

from plugdeps.dependency.graph import DependencyGraph
from plugdeps.dependency.metadata import ComponentMetadata


class TestDependencyGraphBuild:
    """测试 DependencyGraph.build"""

    def test_self_provision(self, cache_graph: DependencyGraph):
        """每个组件都提供自身"""
        for key in cache_graph.keys:
            assert key in cache_graph.get_provided(key)
        assert cache_graph.get_provided("b/b.py") == {"b/b.py", "Cache"}

    def test_name_normalization(self, cache_graph: DependencyGraph):
        """依赖名与组件显示名相同时被替换为组件键"""
        assert cache_graph.get_dependencies("b/b.py") == ("a/a.py",)
        assert cache_graph.get_providers(cache_graph.get_dependencies("b/b.py")[0]) == ["a/a.py"]

    def test_virtual_dependency_kept(self, cache_graph: DependencyGraph):
        assert cache_graph.get_dependencies("c/c.py") == ("Cache",)

    def test_depends_preserves_order_and_duplicates(self):
        graph = DependencyGraph.build({"x": {"Name": "X", "Depends": "b, a, b"}})
        assert graph.get_dependencies("x") == ("b", "a", "b")

    def test_scalar_and_none_item_fields(self):
        """数字字段和列表中的空值不会导致构建失败"""
        graph = DependencyGraph.build(
            {
                "x": {"Name": "X", "Provides": 2.0, "Depends": 42},
                "y": {"Name": "Y", "Provides": ["svc", None], "Depends": [None, "X"]},
            }
        )
        assert graph.get_provided("x") == {"x", "2.0"}
        assert graph.get_dependencies("x") == ("42",)
        assert graph.get_provided("y") == {"y", "svc"}
        assert graph.get_dependencies("y") == ("x",)

    def test_missing_fields(self):
        """缺失或空字段得到空集合"""
        graph = DependencyGraph.build({"x": {}, "y": None, "z": {"Provides": ",,"}})
        assert graph.get_provided("x") == {"x"}
        assert graph.get_provided("y") == {"y"}
        assert graph.get_provided("z") == {"z"}
        assert graph.get_dependencies("x") == ()

    def test_accepts_metadata_models(self):
        graph = DependencyGraph.build(
            {"x": ComponentMetadata(name="X", provides="svc"), "y": ComponentMetadata(depends="X")}
        )
        assert graph.get_dependencies("y") == ("x",)
        assert graph.display_name("x") == "X"
        assert graph.display_name("y") == "y"

    def test_duplicate_names_last_wins(self):
        graph = DependencyGraph.build(
            {
                "first": {"Name": "Same"},
                "second": {"Name": "Same"},
                "user": {"Name": "User", "Depends": "Same"},
            }
        )
        assert graph.get_dependencies("user") == ("second",)

    def test_build_is_deterministic(self, cache_components):
        first = DependencyGraph.build(cache_components)
        second = DependencyGraph.build(cache_components)
        assert dict(first.provides) == dict(second.provides)
        assert dict(first.depends) == dict(second.depends)

    def test_indexes_are_read_only(self, cache_graph: DependencyGraph):
        with pytest.raises(TypeError):
            cache_graph.provides["new"] = frozenset()

    def test_unknown_key(self, cache_graph: DependencyGraph):
        assert cache_graph.get_provided("missing") == frozenset()
        assert cache_graph.get_dependencies("missing") == ()
        assert "missing" not in cache_graph
        assert len(cache_graph) == 3


class TestProviderLookup:
    """测试能力提供者查询"""

    def test_real_dependency_precedence(self):
        """能力名是组件键时只解析到该组件"""
        graph = DependencyGraph.build(
            {
                "core": {"Name": "Core"},
                "impostor": {"Name": "Impostor", "Provides": "core"},
            }
        )
        assert graph.get_providers("core") == ["core"]

    def test_virtual_dependency_many_providers(self):
        graph = DependencyGraph.build(
            {
                "redis": {"Name": "Redis", "Provides": "cache"},
                "memcached": {"Name": "Memcached", "Provides": "cache, kv"},
                "blog": {"Name": "Blog", "Depends": "cache"},
            }
        )
        assert set(graph.get_providers("cache")) == {"redis", "memcached"}
        assert graph.get_providers("kv") == ["memcached"]

    def test_unknown_capability(self, cache_graph: DependencyGraph):
        assert cache_graph.get_providers("nothing") == []

    def test_provided_by(self, cache_graph: DependencyGraph):
        assert cache_graph.provided_by(["a/a.py", "b/b.py"]) == {"a/a.py", "b/b.py", "Cache"}
        assert cache_graph.provided_by([]) == frozenset()

    def test_dependents_of(self, cache_graph: DependencyGraph):
        assert cache_graph.dependents_of("b/b.py") == ["c/c.py"]
        assert cache_graph.dependents_of("a/a.py") == ["b/b.py"]
        assert cache_graph.dependents_of("c/c.py") == []


class TestGraphDiagnostics:
    """测试 networkx 诊断"""

    def test_to_digraph(self, cache_graph: DependencyGraph):
        digraph = cache_graph.to_digraph()
        assert isinstance(digraph, nx.DiGraph)
        assert set(digraph.nodes) == {"a/a.py", "b/b.py", "c/c.py"}
        assert set(digraph.edges) == {("b/b.py", "a/a.py"), ("c/c.py", "b/b.py")}
        assert digraph.edges["c/c.py", "b/b.py"]["capability"] == "Cache"

    def test_find_cycles(self):
        graph = DependencyGraph.build(
            {
                "a": {"Name": "A", "Provides": "alpha", "Depends": "beta"},
                "b": {"Name": "B", "Provides": "beta", "Depends": "alpha"},
                "c": {"Name": "C", "Depends": "a"},
            }
        )
        assert graph.find_cycles() == [["a", "b"]]

    def test_cycle_keeps_dependency_order(self):
        """循环按依赖方向排列，从最小的键开始"""
        graph = DependencyGraph.build(
            {
                "a": {"Name": "A", "Depends": "c"},
                "b": {"Name": "B", "Depends": "a"},
                "c": {"Name": "C", "Depends": "b"},
            }
        )
        cycles = graph.find_cycles()
        assert cycles == [["a", "c", "b"]]
        digraph = graph.to_digraph()
        cycle = cycles[0]
        for current, following in zip(cycle, cycle[1:] + cycle[:1]):
            assert digraph.has_edge(current, following)

    def test_no_cycles(self, cache_graph: DependencyGraph):
        assert cache_graph.find_cycles() == []
