#!filepath: specrun/dsl.py
"""
进程级入口：

    from specrun import describe

    group = describe("Stack", fast=True)
    group.example("is empty", lambda ctx: ...)
"""
from __future__ import annotations

from typing import Any, Optional

from specrun.config.app_config import AppConfig
from specrun.core.example import ExampleGroup
from specrun.core.metadata import capture_caller
from specrun.core.world import World

_configuration: Optional[AppConfig] = None
_world: Optional[World] = None


def configuration() -> AppConfig:
    global _configuration
    if _configuration is None:
        _configuration = AppConfig.default()
    return _configuration


def configure(cfg: AppConfig) -> None:
    """替换配置；已有的 world 作废，下次 world() 按新配置重建。"""
    global _configuration, _world
    _configuration = cfg
    _world = None


def world() -> World:
    global _world
    if _world is None:
        _world = World(configuration())
    return _world


def describe(*args: Any, **options: Any) -> ExampleGroup:
    if "caller" not in options and "file_path" not in options:
        options["caller"] = capture_caller()
    options.setdefault("test_file_pattern", configuration().run.test_file_pattern)
    group = ExampleGroup.describe(*args, **options)
    return world().register(group)


def reset() -> None:
    if _world is not None:
        _world.reset()
