#!filepath: specrun/config/app_config.py
import os

import yaml
from dotenv import load_dotenv
from pydantic import BaseModel, Field, ValidationError

from .log_config import LogConfig
from .run_config import RunConfig
from specrun.utils.errors import ConfigurationError


def project_root() -> str:
    """
    返回项目根目录（基于当前文件位置推导）:
    specrun/config/app_config.py → specrun/config → specrun → project_root
    """
    return os.path.abspath(os.path.join(os.path.dirname(__file__), "../../"))


def default_config_path() -> str:
    return os.path.join(os.path.dirname(__file__), "base.yml")


_TRUE = {"1", "true", "yes", "on"}


class AppConfig(BaseModel):
    log: LogConfig = Field(default_factory=LogConfig)
    run: RunConfig = Field(default_factory=RunConfig)

    @classmethod
    def default(cls) -> "AppConfig":
        """全部默认值，不读磁盘，不读环境变量。"""
        return cls()

    @classmethod
    def load(cls, path: str | None = None) -> "AppConfig":
        """
        加载 YAML 配置 + .env
        - 默认使用 specrun/config/base.yml
        - 不依赖当前工作目录
        """
        root = project_root()

        # 1) 先加载 .env（在项目根目录下）
        load_dotenv(os.path.join(root, ".env"))

        # 2) 决定配置文件路径
        if path is None:
            path = default_config_path()

        if not os.path.exists(path):
            raise FileNotFoundError(f"Config file not found: {path}")

        # 3) 读取 YAML
        with open(path, "r", encoding="utf-8") as f:
            raw = yaml.safe_load(f) or {}

        if not isinstance(raw, dict):
            raise ConfigurationError(f"Config root must be a mapping: {path}")

        # 4) env 覆盖
        raw.setdefault("run", {})
        raw.setdefault("log", {})
        if os.getenv("SPECRUN_STATUS_FILE"):
            raw["run"]["example_status_persistence_file_path"] = os.getenv("SPECRUN_STATUS_FILE")
        if os.getenv("SPECRUN_FAIL_FAST"):
            raw["run"]["fail_fast"] = os.getenv("SPECRUN_FAIL_FAST", "").lower() in _TRUE
        if os.getenv("SPECRUN_LOG_LEVEL"):
            raw["log"]["level"] = os.getenv("SPECRUN_LOG_LEVEL")

        try:
            return cls(**raw)
        except ValidationError as e:
            raise ConfigurationError(f"Invalid config {path}: {e}") from e
