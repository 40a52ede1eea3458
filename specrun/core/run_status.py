#!filepath: specrun/core/run_status.py
from __future__ import annotations

import json
import re
from dataclasses import dataclass
from datetime import datetime, timezone
from enum import Enum
from pathlib import Path
from typing import Any, Dict, List, Mapping, Optional, Tuple

from specrun import logs
from specrun.utils.filesystem import FileSystem


class RunStatus(str, Enum):
    PASSED = "passed"
    FAILED = "failed"
    PENDING = "pending"
    UNKNOWN = "unknown"

    @classmethod
    def parse(cls, raw: Any) -> "RunStatus":
        """非 passed / failed / pending 的一律视为 unknown。"""
        if isinstance(raw, RunStatus):
            return raw
        try:
            return cls(str(raw))
        except ValueError:
            return cls.UNKNOWN


def file_path_of(example_id: str) -> str:
    """'./spec_1.rb[1:1]' → './spec_1.rb'"""
    return example_id.split("[", 1)[0]


_ORDINALS = re.compile(r"\[([\d:]*)\]$")


def _id_sort_key(example_id: str) -> Tuple[str, Tuple[int, ...]]:
    m = _ORDINALS.search(example_id)
    if not m or not m.group(1):
        return file_path_of(example_id), ()
    return file_path_of(example_id), tuple(int(p) for p in m.group(1).split(":") if p)


@dataclass(frozen=True)
class RunStatusRecord:
    example_id: str
    status: RunStatus
    run_time: Optional[float] = None

    @property
    def file_path(self) -> str:
        return file_path_of(self.example_id)

    def to_dict(self) -> dict:
        return {
            "example_id": self.example_id,
            "status": self.status.value,
            "run_time": self.run_time,
        }

    @staticmethod
    def from_dict(data: Mapping[str, Any]) -> "RunStatusRecord":
        return RunStatusRecord(
            example_id=str(data["example_id"]),
            status=RunStatus.parse(data.get("status")),
            run_time=data.get("run_time"),
        )


class ExampleStatusPersister:
    """
    example 状态文件（JSON）

        {
          "version": 1,
          "updated_at": "...",
          "examples": [{"example_id": "...", "status": "passed", "run_time": 0.01}, ...]
        }

    - load_from：整文件一次读入；缺失 / 不可读 / 格式错误 → []
    - persist：与旧记录合并（新状态覆盖），原子写回
    """

    VERSION = 1

    @classmethod
    def load_from(cls, path: str | Path) -> List[RunStatusRecord]:
        try:
            text = FileSystem.read_text(path)
        except (OSError, UnicodeDecodeError) as e:
            logs.warning(f"[Persister] cannot read {path}: {e}")
            return []

        if text is None:
            logs.info(f"[Persister] no status file at {path}")
            return []

        try:
            payload = json.loads(text)
        except ValueError as e:
            logs.warning(f"[Persister] malformed status file {path}: {e}")
            return []

        entries = payload.get("examples", []) if isinstance(payload, dict) else payload
        if not isinstance(entries, list):
            logs.warning(f"[Persister] unexpected layout in {path}")
            return []

        records = []
        for entry in entries:
            if not isinstance(entry, dict) or "example_id" not in entry:
                continue
            records.append(RunStatusRecord.from_dict(entry))

        logs.info(f"[Persister] loaded {len(records)} statuses from {path}")
        return records

    @classmethod
    def persist(
        cls,
        path: str | Path,
        statuses: Mapping[str, RunStatus | str],
        run_times: Optional[Mapping[str, float]] = None,
    ) -> List[RunStatusRecord]:
        run_times = run_times or {}
        merged: Dict[str, RunStatusRecord] = {
            r.example_id: r for r in cls.load_from(path)
        }
        for example_id, status in statuses.items():
            merged[example_id] = RunStatusRecord(
                example_id=example_id,
                status=RunStatus.parse(status),
                run_time=run_times.get(example_id),
            )

        records = sorted(merged.values(), key=lambda r: _id_sort_key(r.example_id))
        payload = {
            "version": cls.VERSION,
            "updated_at": datetime.now(timezone.utc).isoformat(),
            "examples": [r.to_dict() for r in records],
        }
        FileSystem.safe_write(path, json.dumps(payload, indent=2).encode("utf-8"))

        logs.info(f"[Persister] saved {len(records)} statuses to {path}")
        return records
