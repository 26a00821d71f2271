# -*- coding: utf-8 -*-
"""
plugdeps 配置模块

解析配置以 pydantic 模型描述，字符串中的 ${VAR} 从环境变量展开，
配置文件可按环境（APP_ENV）分段覆盖 default 段。
"""

import copy
import logging
import os
import re
from pathlib import Path
from typing import Any, Dict, List, Optional, Type, TypeVar

import yaml
from pydantic import BaseModel, ConfigDict, ValidationError, field_validator, model_validator

from plugdeps.exceptions import ConfigurationError

T = TypeVar("T", bound="BaseConfig")

ENV_VAR_PATTERN = re.compile(r"\${([A-Za-z0-9_]+)}")

LOG_LEVELS = ("DEBUG", "INFO", "WARNING", "ERROR", "CRITICAL")


def expand_env_vars(value: Any) -> Any:
    """递归展开字符串中的 ${VAR}，变量未设置时抛出 ValueError"""
    if isinstance(value, dict):
        return {k: expand_env_vars(v) for k, v in value.items()}
    if isinstance(value, list):
        return [expand_env_vars(v) for v in value]
    if not isinstance(value, str):
        return value

    def _lookup(match: "re.Match[str]") -> str:
        name = match.group(1)
        if name not in os.environ:
            raise ValueError(f"环境变量 '{name}' 未设置")
        return os.environ[name]

    return ENV_VAR_PATTERN.sub(_lookup, value)


def deep_merge(base: Dict[str, Any], overrides: Dict[str, Any]) -> Dict[str, Any]:
    """overrides 覆盖 base，嵌套字典逐层合并"""
    result = copy.deepcopy(base)
    for key, value in overrides.items():
        if isinstance(value, dict) and isinstance(result.get(key), dict):
            result[key] = deep_merge(result[key], value)
        else:
            result[key] = value
    return result


class BaseConfig(BaseModel):
    """配置基类：禁止未知字段，赋值时重新验证"""

    model_config = ConfigDict(extra="forbid", validate_assignment=True)

    @model_validator(mode="before")
    @classmethod
    def _expand_env(cls, data: Any) -> Any:
        return expand_env_vars(data)

    @classmethod
    def load_from_dict(
        cls: Type[T],
        config_data: Dict[str, Any],
        env: Optional[str] = None,
    ) -> T:
        """
        以 default 段为底，叠加 env 段（默认取 APP_ENV，缺省为 development）
        """
        env = env or os.getenv("APP_ENV", "development")
        sections = [config_data.get("default") or {}, config_data.get(env) or {}]
        return cls(**deep_merge(*sections))


class ResolverConfig(BaseConfig):
    """依赖解析配置"""

    component_files: List[Path] = []  # 组件元数据文件
    component_dirs: List[Path] = []  # 扫描 components.yaml 的目录
    always_on_files: List[Path] = []  # 常驻组件元数据文件
    state_file: Optional[Path] = None  # 激活状态文件
    network: bool = False  # 多租户（全网激活）部署
    log_level: str = "INFO"

    @field_validator("log_level")
    @classmethod
    def validate_log_level(cls, v):
        """验证日志级别"""
        level = str(v).upper()
        if level not in LOG_LEVELS:
            raise ValueError(f"无效的日志级别: {v}")
        return level

    @property
    def logging_level(self) -> int:
        return logging.getLevelName(self.log_level)

    def resolve_paths(self, base_dir: Path) -> "ResolverConfig":
        """将相对路径解析为相对于 base_dir 的绝对路径"""

        def _abs(path: Path) -> Path:
            return path if path.is_absolute() else base_dir / path

        return self.model_copy(
            update={
                "component_files": [_abs(p) for p in self.component_files],
                "component_dirs": [_abs(p) for p in self.component_dirs],
                "always_on_files": [_abs(p) for p in self.always_on_files],
                "state_file": _abs(self.state_file) if self.state_file else None,
            }
        )


def load_config(path: Path, env: Optional[str] = None) -> ResolverConfig:
    """
    从 YAML 文件加载解析配置

    Args:
        path: 配置文件路径
        env: 目标环境

    Raises:
        ConfigurationError: 文件不存在、无法解析或验证失败
    """
    path = Path(path)
    if not path.exists():
        raise ConfigurationError(f"配置文件不存在: {path}")

    try:
        with open(path, "r", encoding="utf-8") as f:
            data = yaml.safe_load(f) or {}
    except (yaml.YAMLError, OSError) as e:
        raise ConfigurationError(f"加载配置文件失败 {path}: {e}") from e

    if not isinstance(data, dict):
        raise ConfigurationError(f"配置文件格式错误: {path}")

    # 没有环境分段时整个文件即为默认配置
    if "default" not in data:
        data = {"default": data}

    try:
        config = ResolverConfig.load_from_dict(data, env)
    except ValidationError as e:
        raise ConfigurationError(f"配置验证失败 {path}: {e}") from e

    return config.resolve_paths(path.parent.resolve())
