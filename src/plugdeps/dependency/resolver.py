# -*- coding: utf-8 -*-
"""
依赖解析引擎

提供能力提供者查询、激活冲突检测、级联停用计算以及依赖满足状态分类。
解析器只读取激活集合的快照，实际的停用操作交给 ActivationStore 完成。
"""

import logging
from dataclasses import dataclass, field
from enum import Enum
from typing import Iterable, List, Optional, Sequence

from .graph import DependencyGraph
from .sources import ActivationStore


class OperationKind(str, Enum):
    """解析操作类型"""

    CASCADE = "cascade"  # 停用组件后级联停用依赖者
    CONFLICTING = "conflicting"  # 激活组件前停用提供相同能力的组件

    @classmethod
    def from_action(cls, action: str) -> "OperationKind":
        """将界面动作名映射为操作类型"""
        if action == "deactivate":
            return cls.CASCADE
        if action == "activate":
            return cls.CONFLICTING
        raise ValueError(f"未知的操作: {action}")


class DependencyStatus(str, Enum):
    """依赖满足状态"""

    SATISFIED = "satisfied"
    UNSATISFIED = "unsatisfied"
    UNSATISFIED_NETWORK = "unsatisfied_network"


@dataclass(frozen=True)
class DependencyReport:
    """单个依赖的解析结果"""

    capability: str
    providers: List[str] = field(default_factory=list)
    status: DependencyStatus = DependencyStatus.SATISFIED


def _unique(keys: Iterable[str]) -> List[str]:
    return list(dict.fromkeys(keys))


def cascade_levels(
    graph: DependencyGraph,
    active: Sequence[str],
    frontier: Iterable[str],
    recorded: Iterable[str] = frozenset(),
) -> List[List[str]]:
    """
    计算级联停用的各个层级

    每一层是因上一层被移除而失去所需能力的激活组件。已记录的组件不会再次
    出现，因此即使依赖声明存在循环也一定终止，层数不超过激活组件数量。

    Args:
        graph: 依赖图
        active: 激活集合快照
        frontier: 初始被移除的组件
        recorded: 已经记录为停用、不再参与查找的组件

    Returns:
        按发现顺序排列的层级列表，不包含初始组件所在层
    """
    active = _unique(active)
    seen = set(recorded)
    levels: List[List[str]] = []
    frontier = _unique(frontier)

    while frontier:
        freed = graph.provided_by(frontier)
        found = [
            key
            for key in active
            if key not in seen and not freed.isdisjoint(graph.get_dependencies(key))
        ]
        if not found:
            break

        seen.update(found)
        levels.append(found)
        frontier = found

    return levels


class DependencyResolver:
    """
    依赖解析器

    基于不可变的依赖图和每次调用时读取的激活集合快照工作，自身不保存
    跨调用的状态。
    """

    def __init__(
        self,
        graph: DependencyGraph,
        store: ActivationStore,
        network: bool = False,
        always_on: Optional[Iterable[str]] = None,
    ):
        """
        初始化依赖解析器

        Args:
            graph: 依赖图
            store: 激活状态存储
            network: 是否为多租户（全网激活）部署
            always_on: 常驻组件的键，视为始终满足
        """
        self.graph = graph
        self.store = store
        self.network = network
        self.always_on = frozenset(always_on or ())
        self.logger = logging.getLogger(__name__)

    def get_providers(self, capability: str) -> List[str]:
        """获取提供某个能力的组件"""
        return self.graph.get_providers(capability)

    def run(self, kind: OperationKind, keys: Iterable[str]) -> List[str]:
        """按操作类型执行解析"""
        if kind is OperationKind.CASCADE:
            return self.deactivate_cascade(keys)
        elif kind is OperationKind.CONFLICTING:
            return self.deactivate_conflicting(keys)
        raise ValueError(f"未知的操作类型: {kind}")

    def deactivate_conflicting(self, to_activate: Iterable[str]) -> List[str]:
        """
        停用与待激活组件提供相同能力的已激活组件

        Args:
            to_activate: 即将激活的组件

        Returns:
            冲突组件以及因其停用而级联停用的组件
        """
        to_activate = _unique(to_activate)
        claimed = self.graph.provided_by(to_activate)

        candidates = [key for key in _unique(self.store.get_active_set()) if key not in to_activate]
        conflicting = [
            key for key in candidates if not claimed.isdisjoint(self.graph.get_provided(key))
        ]

        # TODO: 增加严格模式，跳过仍由其他激活组件满足全部依赖的冲突组件
        cascaded = self.deactivate_cascade(conflicting)

        if conflicting:
            self.logger.info(f"停用冲突组件: {conflicting}")
            self._deactivate(conflicting)

        return _unique(conflicting + cascaded)

    def deactivate_cascade(self, to_deactivate: Iterable[str]) -> List[str]:
        """
        停用因依赖无法满足而需要随之停用的组件

        Args:
            to_deactivate: 正在被停用的组件

        Returns:
            级联停用的组件，每个键最多出现一次
        """
        to_deactivate = _unique(to_deactivate)
        if not to_deactivate:
            return []

        active_plugins = self._snapshot_active()
        levels = cascade_levels(self.graph, active_plugins, to_deactivate)
        self.logger.debug(f"级联层级: {levels}")

        # 深层先停用
        for level in reversed(levels):
            self._deactivate(level)

        result = [key for level in levels for key in level]
        if result:
            self.logger.info(f"停用 {to_deactivate} 级联停用了: {result}")
        return result

    def check_component(self, key: str) -> List[DependencyReport]:
        """
        检查组件每个依赖的满足状态

        没有任何提供者处于激活（或常驻）状态的依赖为未满足；多租户部署下
        没有任何提供者全网激活的依赖为全网未满足。
        """
        active = set(self.store.get_active_set()) | self.always_on
        network_active = set(self.store.get_network_active_set())

        reports = []
        for capability in self.graph.get_dependencies(key):
            providers = self.get_providers(capability)
            if active.isdisjoint(providers):
                status = DependencyStatus.UNSATISFIED
            elif self.network and network_active.isdisjoint(providers):
                status = DependencyStatus.UNSATISFIED_NETWORK
            else:
                status = DependencyStatus.SATISFIED
            reports.append(DependencyReport(capability, providers, status))
        return reports

    def can_activate(self, key: str) -> bool:
        """组件的依赖是否全部在本地满足"""
        return all(
            report.status is not DependencyStatus.UNSATISFIED
            for report in self.check_component(key)
        )

    def can_network_activate(self, key: str) -> bool:
        """组件的依赖是否全部在全网满足"""
        if not self.network:
            return False
        network_active = set(self.store.get_network_active_set())
        return all(
            not network_active.isdisjoint(self.get_providers(capability))
            for capability in self.graph.get_dependencies(key)
        )

    def _snapshot_active(self) -> List[str]:
        active = self.store.get_active_set()
        if self.network:
            active = list(active) + list(self.store.get_network_active_set())
        return _unique(active)

    def _deactivate(self, keys: List[str]) -> None:
        """下发停用指令，失败只记录日志"""
        try:
            self.store.deactivate(keys)
        except Exception:
            self.logger.exception(f"停用组件失败: {keys}")
