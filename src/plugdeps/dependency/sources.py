# -*- coding: utf-8 -*-
"""
外部协作接口

组件发现、激活状态存储以及组件来源的扩展钩子。依赖图引擎只通过
这里定义的接口读取组件元数据和当前激活集合，并下发停用指令。
"""

import logging
from abc import ABC, abstractmethod
from pathlib import Path
from typing import Any, Dict, Iterable, List, Mapping, Optional, Sequence

import yaml

from plugdeps.exceptions import ActivationStoreError

from .graph import DependencyGraph
from .metadata import MetadataLoader, merge_components

# 目录扫描时识别的元数据文件名
COMPONENT_FILE_NAMES = ("components.yaml", "components.yml", "components.json")


class ComponentSource(ABC):
    """组件来源基类"""

    @abstractmethod
    def enumerate_components(self) -> Dict[str, Dict[str, Any]]:
        """返回 {key: {Name, Provides, Depends}} 映射"""
        pass


class StaticComponentSource(ComponentSource):
    """基于内存映射的组件来源"""

    def __init__(self, components: Optional[Mapping[str, Any]] = None):
        self._components = dict(components or {})

    def enumerate_components(self) -> Dict[str, Dict[str, Any]]:
        return {key: dict(data or {}) for key, data in self._components.items()}


class FileComponentSource(ComponentSource):
    """从一个或多个元数据文件读取组件，后面的文件覆盖前面的同名键"""

    def __init__(self, paths: Iterable[Path]):
        self.paths = [Path(p) for p in paths]

    def enumerate_components(self) -> Dict[str, Dict[str, Any]]:
        components: Dict[str, Dict[str, Any]] = {}
        for path in self.paths:
            components.update(MetadataLoader.load_from_file(path))
        return components


class DirectoryComponentSource(FileComponentSource):
    """
    从目录扫描组件元数据文件

    识别 components.yaml / components.yml / components.json。
    """

    def __init__(self, directory: Path, recursive: bool = True):
        self.directory = Path(directory)
        self.recursive = recursive
        self.logger = logging.getLogger(__name__)
        super().__init__([])

    def enumerate_components(self) -> Dict[str, Dict[str, Any]]:
        if not self.directory.is_dir():
            self.logger.warning(f"组件目录不存在: {self.directory}")
            return {}

        files: List[Path] = []
        for file_name in COMPONENT_FILE_NAMES:
            if self.recursive:
                files.extend(self.directory.rglob(file_name))
            else:
                files.extend(self.directory.glob(file_name))
                files.extend(self.directory.glob(f"*/{file_name}"))

        self.paths = sorted(files)
        self.logger.info(f"在 {self.directory} 中找到 {len(self.paths)} 个组件元数据文件")
        return super().enumerate_components()


class ComponentCatalog:
    """
    组件目录

    汇总主来源与常驻（always-on）来源，并通过 register_source 允许外部
    追加额外来源。额外来源以安全合并的方式折叠进结果。
    """

    def __init__(
        self,
        primary: ComponentSource,
        always_on: Optional[ComponentSource] = None,
    ):
        self.primary = primary
        self.always_on = always_on
        self._extra_sources: List[ComponentSource] = []
        self.logger = logging.getLogger(__name__)

    def register_source(self, source: ComponentSource) -> None:
        """注册额外的组件来源"""
        self._extra_sources.append(source)
        self.logger.debug(f"已注册额外组件来源: {source.__class__.__name__}")

    def always_on_keys(self) -> List[str]:
        """获取常驻组件的键"""
        if self.always_on is None:
            return []
        return list(self.always_on.enumerate_components())

    def collect(self) -> Dict[str, Dict[str, Any]]:
        """收集全部组件元数据"""
        components = dict(self.primary.enumerate_components())
        if self.always_on is not None:
            components.update(self.always_on.enumerate_components())

        extra = [source.enumerate_components() for source in self._extra_sources]
        return merge_components(components, *extra)

    def build_graph(self) -> DependencyGraph:
        """根据当前收集到的元数据构建依赖图"""
        return DependencyGraph.build(self.collect())


class ActivationStore(ABC):
    """
    激活状态存储基类

    保存本地激活集合和（多租户部署下的）全网激活集合。
    """

    @abstractmethod
    def get_active_set(self) -> List[str]:
        """当前本地激活的组件键"""
        pass

    def get_network_active_set(self) -> List[str]:
        """全网激活的组件键"""
        return []

    @abstractmethod
    def activate(self, keys: Iterable[str]) -> None:
        pass

    @abstractmethod
    def deactivate(self, keys: Iterable[str]) -> None:
        """从本地和全网激活集合中移除组件"""
        pass


class InMemoryActivationStore(ActivationStore):
    """内存中的激活状态"""

    def __init__(
        self,
        active: Optional[Sequence[str]] = None,
        network_active: Optional[Sequence[str]] = None,
    ):
        self.active: List[str] = list(active or [])
        self.network_active: List[str] = list(network_active or [])

    def get_active_set(self) -> List[str]:
        return list(self.active)

    def get_network_active_set(self) -> List[str]:
        return list(self.network_active)

    def activate(self, keys: Iterable[str]) -> None:
        for key in keys:
            if key not in self.active:
                self.active.append(key)

    def deactivate(self, keys: Iterable[str]) -> None:
        removed = set(keys)
        self.active = [key for key in self.active if key not in removed]
        self.network_active = [key for key in self.network_active if key not in removed]


class FileActivationStore(InMemoryActivationStore):
    """
    基于 YAML 状态文件的激活状态

    文件格式::

        active: [a, b]
        network_active: [c]

    文件不存在时视为没有任何激活组件，每次变更后整体写回。
    """

    def __init__(self, path: Path):
        self.path = Path(path)
        self.logger = logging.getLogger(__name__)
        super().__init__()
        self._load()

    def _load(self) -> None:
        if not self.path.exists():
            self.logger.debug(f"状态文件不存在, 视为空激活集合: {self.path}")
            return

        try:
            with open(self.path, "r", encoding="utf-8") as f:
                data = yaml.safe_load(f) or {}
        except (yaml.YAMLError, OSError) as e:
            raise ActivationStoreError(f"读取激活状态失败 {self.path}: {e}") from e

        if not isinstance(data, dict):
            raise ActivationStoreError(f"激活状态文件格式错误: {self.path}")

        for field_name in ("active", "network_active"):
            if not isinstance(data.get(field_name) or [], list):
                raise ActivationStoreError(f"激活状态字段 {field_name} 必须是列表: {self.path}")

        self.active = [str(key) for key in data.get("active") or []]
        self.network_active = [str(key) for key in data.get("network_active") or []]

    def _save(self) -> None:
        data = {"active": self.active, "network_active": self.network_active}
        try:
            self.path.parent.mkdir(parents=True, exist_ok=True)
            with open(self.path, "w", encoding="utf-8") as f:
                yaml.dump(data, f, default_flow_style=False, allow_unicode=True, indent=2)
        except OSError as e:
            raise ActivationStoreError(f"写入激活状态失败 {self.path}: {e}") from e

    def activate(self, keys: Iterable[str]) -> None:
        super().activate(keys)
        self._save()

    def deactivate(self, keys: Iterable[str]) -> None:
        super().deactivate(keys)
        self._save()
        self.logger.info(f"激活状态已写回 {self.path}")
