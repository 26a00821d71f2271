# -*- coding: utf-8 -*-
"""
组件元数据模型

定义组件声明的元数据（名称、Provides、Depends），逗号分隔字段的解析，
以及多个元数据来源之间的安全合并。
"""

import json
import logging
import re
from pathlib import Path
from typing import Any, Dict, Iterable, List, Mapping, Optional, Union

import yaml
from pydantic import BaseModel, ConfigDict, Field, field_validator

from plugdeps.exceptions import MetadataLoadError

logger = logging.getLogger(__name__)

# 逗号，后面可以跟任意空白
FIELD_SEPARATOR = re.compile(r",\s*")

# 合并时新组件的最小字段集
DEFAULT_RECORD: Dict[str, str] = {
    "Name": "",
    "Depends": "",
    "Provides": "",
}

FieldValue = Union[str, Iterable[Any], int, float, None]


def _as_text(value: FieldValue) -> str:
    """把字段值统一为逗号分隔字符串"""
    if value is None:
        return ""
    if isinstance(value, str):
        return value
    if isinstance(value, (list, tuple, set, frozenset)):
        return ",".join(str(item) for item in value if item is not None)
    # YAML 会把 2.0、42 之类的值解析为数字
    return str(value)


def parse_field(value: FieldValue) -> List[str]:
    """
    解析逗号分隔的字段

    Args:
        value: 字段原始值，如 "a, b,c"

    Returns:
        去除首尾空白、过滤空值后的标记列表，保留顺序和重复项
    """
    text = _as_text(value)
    if not text:
        return []
    tokens = (token.strip() for token in FIELD_SEPARATOR.split(text))
    return [token for token in tokens if token]


def normalize(value: FieldValue) -> str:
    """去重后重新拼接字段"""
    return ",".join(dict.fromkeys(parse_field(value)))


def union_csv(first: FieldValue, second: FieldValue) -> str:
    """
    合并两个逗号分隔字符串，只保留唯一值

    结果按首次出现的顺序排列，以 "," 拼接。
    """
    return ",".join(dict.fromkeys(parse_field(first) + parse_field(second)))


class ComponentMetadata(BaseModel):
    """
    组件元数据

    对应组件头部声明的 Name / Provides / Depends 三个字段，
    Provides 与 Depends 保持声明时的逗号分隔字符串形式。
    """

    name: str = Field(default="", alias="Name", description="组件显示名称")
    provides: str = Field(default="", alias="Provides", description="提供的能力")
    depends: str = Field(default="", alias="Depends", description="依赖的能力")

    model_config = ConfigDict(populate_by_name=True, extra="ignore", frozen=True)

    @field_validator("name", mode="before")
    @classmethod
    def validate_name(cls, v):
        """空名称统一为空字符串"""
        if v is None:
            return ""
        return str(v)

    @field_validator("provides", "depends", mode="before")
    @classmethod
    def validate_field(cls, v):
        """允许在 YAML 中以列表形式声明"""
        return _as_text(v)

    @property
    def provided(self) -> List[str]:
        return parse_field(self.provides)

    @property
    def dependencies(self) -> List[str]:
        return parse_field(self.depends)

    def to_record(self) -> Dict[str, str]:
        """转换为头部字段格式的字典"""
        return {"Name": self.name, "Depends": self.depends, "Provides": self.provides}


def _as_record(data: Any) -> Dict[str, Any]:
    if isinstance(data, ComponentMetadata):
        return data.to_record()
    return dict(data or {})


def merge_components(*mappings: Optional[Mapping[str, Any]]) -> Dict[str, Dict[str, Any]]:
    """
    安全地合并多个组件元数据映射

    从左到右折叠：
    - 新出现的键以 DEFAULT_RECORD 为底补齐字段后插入
    - 已存在的键只有在 Name 完全相同时才合并 Depends 和 Provides
    - Name 不同或新记录缺少 Name 时视为"同键不同组件"，保留原有记录

    Args:
        *mappings: 一个或多个 {key: metadata} 映射，第一个作为合并基础

    Returns:
        合并后的新字典，不修改任何输入
    """
    if not mappings:
        return {}

    first, *rest = mappings
    result = {key: _as_record(data) for key, data in (first or {}).items()}

    for mapping in rest:
        if not mapping:
            continue

        for key, data in mapping.items():
            data = _as_record(data)

            if key not in result:
                result[key] = {**DEFAULT_RECORD, **data}
                continue

            existing = result[key]
            if data.get("Name") is None or existing.get("Name") != data["Name"]:
                logger.warning(
                    f"组件 {key} 名称不一致 ({existing.get('Name')!r} != {data.get('Name')!r}), 跳过合并"
                )
                continue

            if data.get("Depends"):
                existing["Depends"] = union_csv(existing.get("Depends"), data["Depends"])
            if data.get("Provides"):
                existing["Provides"] = union_csv(existing.get("Provides"), data["Provides"])

    return result


class MetadataLoader:
    """
    组件元数据加载器

    从 YAML 或 JSON 文件加载 {key: metadata} 映射。
    """

    @staticmethod
    def load_from_file(path: Path) -> Dict[str, Dict[str, Any]]:
        """从文件加载组件元数据映射"""
        path = Path(path)
        if not path.exists():
            raise MetadataLoadError(f"组件元数据文件不存在: {path}")

        suffix = path.suffix.lower()
        try:
            with open(path, "r", encoding="utf-8") as f:
                if suffix in (".yaml", ".yml"):
                    data = yaml.safe_load(f)
                elif suffix == ".json":
                    data = json.load(f)
                else:
                    raise MetadataLoadError(f"不支持的元数据文件格式: {path.suffix}")
        except (yaml.YAMLError, json.JSONDecodeError, OSError) as e:
            raise MetadataLoadError(f"加载组件元数据失败 {path}: {e}") from e

        if data is None:
            return {}
        if not isinstance(data, dict):
            raise MetadataLoadError(f"组件元数据必须是映射: {path}")

        components = {}
        for key, record in data.items():
            if record is None:
                record = {}
            if not isinstance(record, dict):
                raise MetadataLoadError(f"组件 {key} 的元数据必须是映射: {path}")
            components[str(key)] = record

        logger.debug(f"从 {path} 加载了 {len(components)} 个组件")
        return components
