#!filepath: specrun/utils/filesystem.py
from pathlib import Path

from specrun.utils.logger import logs


class FileSystem:
    """
    文件系统工具
    - 自动创建目录
    - 安全写入文件（临时文件 → rename）
    - 读取文本（不存在时返回 None）
    """

    @staticmethod
    def ensure_dir(path: str | Path) -> Path:
        """
        创建目录（如果不存在）
        """
        p = Path(path)
        if not p.exists():
            p.mkdir(parents=True, exist_ok=True)
            logs.debug(f"[FS] 创建目录: {p}")
        return p

    @staticmethod
    def safe_write(path: str | Path, data: bytes) -> None:
        """
        原子写入（避免部分写入导致文件损坏）
            1) 先写入 tmp 文件
            2) replace → 正式文件
        """
        path = Path(path)
        FileSystem.ensure_dir(path.parent)

        tmp_path = path.with_name(path.name + ".tmp")

        with open(tmp_path, "wb") as f:
            f.write(data)
            logs.debug(f"[FS] 写入临时文件: {tmp_path}")

        tmp_path.replace(path)
        logs.debug(f"[FS] 原子写入完成: {path}")

    @staticmethod
    def read_text(path: str | Path) -> str | None:
        """
        整个文件一次读入；不存在返回 None
        """
        p = Path(path)
        if not p.exists():
            return None
        return p.read_text(encoding="utf-8")
