#!filepath: specrun/config/__init__.py
from .app_config import AppConfig
from .log_config import LogConfig
from .run_config import RunConfig

__all__ = ["AppConfig", "LogConfig", "RunConfig"]
