# -*- coding: utf-8 -*-
"""
plugdeps 命令行接口
"""

import argparse
import logging
import sys
from pathlib import Path
from typing import List, Optional

from .config import ResolverConfig, load_config
from .dependency.resolver import DependencyResolver, DependencyStatus
from .dependency.sources import (
    ActivationStore,
    ComponentCatalog,
    DirectoryComponentSource,
    FileActivationStore,
    FileComponentSource,
    InMemoryActivationStore,
)
from .exceptions import PlugDepsError

STATUS_LABELS = {
    DependencyStatus.SATISFIED: "满足",
    DependencyStatus.UNSATISFIED: "未满足",
    DependencyStatus.UNSATISFIED_NETWORK: "全网未满足",
}


def parse_arguments(argv: Optional[List[str]] = None) -> argparse.Namespace:
    """解析命令行参数"""
    parser = argparse.ArgumentParser(
        prog="plugdeps",
        description="plugdeps - 组件依赖解析与级联停用工具",
        formatter_class=argparse.RawDescriptionHelpFormatter,
    )
    parser.add_argument("--config", "-c", default="plugdeps.yaml", help="YAML 配置文件路径")
    parser.add_argument("--env", "-e", help="配置环境 (默认读取 APP_ENV)")
    parser.add_argument("--verbose", "-v", action="store_true", help="输出调试日志")

    subparsers = parser.add_subparsers(dest="command", required=True)

    status = subparsers.add_parser("status", help="显示组件依赖的满足状态")
    status.add_argument("keys", nargs="*", help="组件键，默认显示所有声明了依赖的组件")

    deactivate = subparsers.add_parser("deactivate", help="停用组件及其级联依赖者")
    deactivate.add_argument("keys", nargs="+", help="组件键")

    activate = subparsers.add_parser("activate", help="激活组件并停用冲突组件")
    activate.add_argument("keys", nargs="+", help="组件键")
    activate.add_argument("--force", action="store_true", help="忽略未满足的依赖")

    subparsers.add_parser("check", help="检查依赖循环和未满足的激活组件")

    return parser.parse_args(argv)


def build_catalog(config: ResolverConfig) -> ComponentCatalog:
    """根据配置创建组件目录"""
    always_on = FileComponentSource(config.always_on_files) if config.always_on_files else None
    catalog = ComponentCatalog(FileComponentSource(config.component_files), always_on)
    for directory in config.component_dirs:
        catalog.register_source(DirectoryComponentSource(directory))
    return catalog


def build_store(config: ResolverConfig) -> ActivationStore:
    """根据配置创建激活状态存储"""
    if config.state_file:
        return FileActivationStore(config.state_file)
    return InMemoryActivationStore()


def _label(resolver: DependencyResolver, key: str) -> str:
    name = resolver.graph.display_name(key)
    if key in resolver.always_on:
        return f"{name} (must-use)"
    return name


def _print_status(resolver: DependencyResolver, keys: List[str]) -> None:
    for key in keys:
        print(f"{resolver.graph.display_name(key)} [{key}]")
        for report in resolver.check_component(key):
            providers = " or ".join(_label(resolver, p) for p in report.providers)
            print(f"  - {providers or report.capability}: {STATUS_LABELS[report.status]}")


def _print_deactivated(title: str, keys: List[str]) -> None:
    if keys:
        print(title)
        for key in keys:
            print(f"  - {key}")


def main(argv: Optional[List[str]] = None) -> int:
    """命令行主入口"""
    args = parse_arguments(argv)

    logging.basicConfig(
        level=logging.DEBUG if args.verbose else logging.WARNING,
        format="[%(levelname)s] %(message)s",
    )

    try:
        config = load_config(Path(args.config), args.env)
        if not args.verbose:
            logging.getLogger().setLevel(config.logging_level)

        catalog = build_catalog(config)
        graph = catalog.build_graph()
        store = build_store(config)
        resolver = DependencyResolver(
            graph, store, network=config.network, always_on=catalog.always_on_keys()
        )

        keys = list(getattr(args, "keys", []) or [])
        unknown = [key for key in keys if key not in graph]
        if unknown:
            print(f"未知的组件: {', '.join(unknown)}", file=sys.stderr)
            return 2

        if args.command == "status":
            _print_status(resolver, keys or [k for k in graph.keys if graph.get_dependencies(k)])
            return 0

        if args.command == "deactivate":
            store.deactivate(keys)
            cascaded = resolver.deactivate_cascade(keys)
            _print_deactivated("以下组件也已被停用:", cascaded)
            return 0

        if args.command == "activate":
            blocked = [key for key in keys if not resolver.can_activate(key)]
            if blocked and not args.force:
                print(f"依赖未满足, 无法激活: {', '.join(blocked)}", file=sys.stderr)
                _print_status(resolver, blocked)
                return 1
            conflicting = resolver.deactivate_conflicting(keys)
            store.activate(keys)
            _print_deactivated("以下组件因依赖冲突已被停用:", conflicting)
            return 0

        # check
        exit_code = 0
        for cycle in graph.find_cycles():
            print(f"依赖循环: {' -> '.join(cycle + cycle[:1])}")
        for key in store.get_active_set():
            unsatisfied = [
                report.capability
                for report in resolver.check_component(key)
                if report.status is DependencyStatus.UNSATISFIED
            ]
            if unsatisfied:
                print(f"{key} 的依赖未满足: {', '.join(unsatisfied)}")
                exit_code = 1
        return exit_code

    except PlugDepsError as e:
        print(f"运行失败: {e}", file=sys.stderr)
        return 1
    except KeyboardInterrupt:
        print("\n用户中断", file=sys.stderr)
        return 1


if __name__ == "__main__":
    sys.exit(main())
