#!filepath: specrun/__init__.py

from .utils.logger import Logging, logs
from .config.app_config import AppConfig
from .core.metadata import Metadata, capture_caller
from .core.example import Example, ExampleGroup
from .core.filter_manager import FilterManager
from .core.world import World
from .core.runner import Runner, RunSummary
from .core.execution import current_example
from .core.run_status import ExampleStatusPersister, RunStatus
from .utils.errors import pending
from .matchers import include
from .dsl import configuration, configure, describe, world

__version__ = "0.1.0"

__all__ = [
    "logs", "Logging",
    "AppConfig",
    "Metadata", "capture_caller",
    "Example", "ExampleGroup",
    "FilterManager",
    "World", "Runner", "RunSummary",
    "current_example",
    "ExampleStatusPersister", "RunStatus",
    "pending", "include",
    "configuration", "configure", "describe", "world",
]
