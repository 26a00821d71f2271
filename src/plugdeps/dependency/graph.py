# -*- coding: utf-8 -*-
"""
依赖图构建

根据组件声明的元数据构建提供者索引和依赖索引。图在构建后不可变，
可在多次解析请求之间共享。
"""

import logging
from types import MappingProxyType
from typing import Any, Dict, FrozenSet, Iterable, List, Mapping, Tuple

import networkx as nx

from .metadata import ComponentMetadata, parse_field

logger = logging.getLogger(__name__)


class DependencyGraph:
    """
    组件依赖图

    - provides[key]: 组件提供的能力集合，总是包含组件自身的键
    - depends[key]: 组件依赖的能力列表，与其他组件显示名称相同的依赖
      已被替换为该组件的键
    """

    def __init__(
        self,
        provides: Mapping[str, FrozenSet[str]],
        depends: Mapping[str, Tuple[str, ...]],
        names: Mapping[str, str],
    ):
        self._provides = MappingProxyType(dict(provides))
        self._depends = MappingProxyType(dict(depends))
        self._names = MappingProxyType(dict(names))

    @classmethod
    def build(cls, all_components: Mapping[str, Any]) -> "DependencyGraph":
        """
        从 {key: metadata} 映射构建依赖图

        Args:
            all_components: 组件键到元数据的映射，元数据可以是
                ComponentMetadata 或包含 Name/Provides/Depends 的字典

        Returns:
            构建完成的依赖图
        """
        components: Dict[str, ComponentMetadata] = {
            key: data if isinstance(data, ComponentMetadata) else ComponentMetadata.model_validate(data or {})
            for key, data in all_components.items()
        }

        # 同名组件以后出现者为准
        name_to_key = {metadata.name: key for key, metadata in components.items()}

        provides: Dict[str, FrozenSet[str]] = {}
        depends: Dict[str, Tuple[str, ...]] = {}
        for key, metadata in components.items():
            provides[key] = frozenset(parse_field(metadata.provides)) | {key}
            depends[key] = tuple(
                name_to_key.get(dep, dep) for dep in parse_field(metadata.depends)
            )

        graph = cls(
            provides, depends, {key: metadata.name for key, metadata in components.items()}
        )
        logger.info(f"依赖图构建完成: {len(components)} 个组件")
        return graph

    @property
    def provides(self) -> Mapping[str, FrozenSet[str]]:
        return self._provides

    @property
    def depends(self) -> Mapping[str, Tuple[str, ...]]:
        return self._depends

    @property
    def keys(self) -> List[str]:
        return list(self._provides)

    def __contains__(self, key: str) -> bool:
        return key in self._provides

    def __len__(self) -> int:
        return len(self._provides)

    def display_name(self, key: str) -> str:
        """获取组件显示名称，未声明名称时返回键本身"""
        return self._names.get(key) or key

    def get_provided(self, key: str) -> FrozenSet[str]:
        """获取组件提供的能力，未知组件返回空集合"""
        return self._provides.get(key, frozenset())

    def get_dependencies(self, key: str) -> Tuple[str, ...]:
        """获取组件依赖的能力，未知组件返回空元组"""
        return self._depends.get(key, ())

    def provided_by(self, keys: Iterable[str]) -> FrozenSet[str]:
        """获取一组组件提供的全部能力"""
        provided: set = set()
        for key in keys:
            provided |= self.get_provided(key)
        return frozenset(provided)

    def get_providers(self, capability: str) -> List[str]:
        """
        获取提供某个能力的组件

        真实依赖（能力名等于某组件键）只解析到该组件本身；
        虚拟依赖返回所有声明提供该能力的组件，可能为空。
        """
        if capability in self._provides:
            return [capability]
        return [key for key, provided in self._provides.items() if capability in provided]

    def dependents_of(self, key: str) -> List[str]:
        """获取依赖于指定组件所提供能力的其他组件"""
        provided = self.get_provided(key)
        return [
            other
            for other, deps in self._depends.items()
            if other != key and not provided.isdisjoint(deps)
        ]

    def to_digraph(self) -> nx.DiGraph:
        """转换为 networkx 有向图，边从组件指向其依赖的提供者"""
        digraph = nx.DiGraph()
        digraph.add_nodes_from(self._provides)
        for key, deps in self._depends.items():
            for dep in deps:
                for provider in self.get_providers(dep):
                    digraph.add_edge(key, provider, capability=dep)
        return digraph

    def find_cycles(self) -> List[List[str]]:
        """
        检测依赖声明中的循环

        每个循环按依赖方向排列（前一个依赖后一个，最后一个依赖第一个），
        并旋转到最小的键开头。
        """
        cycles = []
        for cycle in nx.simple_cycles(self.to_digraph()):
            start = cycle.index(min(cycle))
            cycles.append(cycle[start:] + cycle[:start])
        if cycles:
            logger.debug(f"检测到依赖循环: {cycles}")
        return sorted(cycles)
