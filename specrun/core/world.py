#!filepath: specrun/core/world.py
from __future__ import annotations

from collections.abc import Mapping
from typing import Any, Dict, Iterable, Iterator, List, Optional

from specrun import logs
from specrun.config.app_config import AppConfig
from specrun.config.run_config import RunConfig
from specrun.core.example import Example, ExampleGroup
from specrun.core.filter_manager import FilterManager
from specrun.core.reporter import Reporter
from specrun.core.run_status import ExampleStatusPersister, RunStatus, RunStatusRecord, file_path_of
from specrun.utils.memo import Memo


def _as_run_config(configuration: AppConfig | RunConfig | None) -> RunConfig:
    if configuration is None:
        return RunConfig()
    if isinstance(configuration, AppConfig):
        return configuration.run
    return configuration


def _as_record(entry: Any) -> RunStatusRecord:
    if isinstance(entry, RunStatusRecord):
        return entry
    if isinstance(entry, Mapping):
        return RunStatusRecord.from_dict(entry)
    return RunStatusRecord(
        example_id=str(entry.example_id),
        status=RunStatus.parse(entry.status),
    )


class World:
    """
    World = 进程内唯一的注册表

    状态：
      - example_groups：注册顺序的顶层 group（调用方可直接修改，例如 clear()）
      - wants_to_quit：是否提前结束本次 run
      - last_run_statuses / spec_files_with_failures：首次访问时计算并缓存，reset() 清空

    重复注册同一个 group：允许（记 warning），all_examples() 会出现两次。
    """

    def __init__(
        self,
        configuration: AppConfig | RunConfig | None = None,
        reporter: Optional[Reporter] = None,
        persister: Any = ExampleStatusPersister,
    ) -> None:
        self.configuration: RunConfig = _as_run_config(configuration)
        self.reporter = reporter or Reporter()
        self.persister = persister

        self.example_groups: List[ExampleGroup] = []
        self.wants_to_quit = False
        self.filter_manager = FilterManager.from_config(
            self.configuration,
            line_resolver=self.preceding_declaration_line,
            candidate_source=self.all_examples,
        )

        self._last_run_statuses: Memo[Dict[str, str]] = Memo()
        self._spec_files_with_failures: Memo[List[str]] = Memo()

    # --------------------------------------------------
    # registry
    # --------------------------------------------------
    def register(self, example_group: ExampleGroup) -> ExampleGroup:
        if any(g is example_group for g in self.example_groups):
            logs.warning(f"[World] group registered twice: {example_group.name!r}")
        elif example_group.ordinal is None:
            same_file = {
                id(g) for g in self.example_groups if g.file_path == example_group.file_path
            }
            example_group.ordinal = len(same_file) + 1

        self.example_groups.append(example_group)
        logs.debug(f"[World] registered {example_group.name!r} ({len(self.example_groups)} groups)")
        return example_group

    def reset(self) -> None:
        self.example_groups.clear()
        self.wants_to_quit = False
        self.filter_manager.unlock()
        self._last_run_statuses.clear()
        self._spec_files_with_failures.clear()
        logs.debug("[World] reset")

    def abort(self, reason: str = "") -> None:
        """fail-fast / 中断：丢弃剩余 group。"""
        self.wants_to_quit = True
        self.example_groups.clear()
        logs.warning(f"[World] aborting remaining examples {reason}".rstrip())

    # --------------------------------------------------
    # examples
    # --------------------------------------------------
    def all_examples(self) -> Iterator[Example]:
        for group in self.example_groups:
            yield from group.iter_examples()

    def filtered_examples(self) -> List[Example]:
        examples: Iterable[Example] = self.all_examples()
        if self.configuration.only_failures:
            examples = self.only_failures(examples)
        return self.filter_manager.prune(examples)

    def example_count(self) -> int:
        return len(self.filtered_examples())

    def only_failures(self, examples: Optional[Iterable[Example]] = None) -> List[Example]:
        statuses = self.last_run_statuses()
        source = self.all_examples() if examples is None else examples
        return [ex for ex in source if statuses.get(ex.id) == RunStatus.FAILED.value]

    def preceding_declaration_line(
        self,
        target_line: int,
        file_path: Optional[str] = None,
    ) -> Optional[int]:
        candidates = [
            line
            for group in self.example_groups
            for line in group.declaration_lines(file_path)
            if line <= target_line
        ]
        return max(candidates, default=None)

    # --------------------------------------------------
    # last run
    # --------------------------------------------------
    def last_run_statuses(self) -> Dict[str, str]:
        return self._last_run_statuses.get(self._load_last_run_statuses)

    def _load_last_run_statuses(self) -> Dict[str, str]:
        path = self.configuration.example_status_persistence_file_path
        if not path:
            return {}

        try:
            records = [_as_record(e) for e in self.persister.load_from(path)]
        except Exception as e:
            logs.warning(f"[World] ignoring last run statuses from {path}: {e}")
            return {}

        return {r.example_id: r.status.value for r in records}

    def spec_files_with_failures(self) -> List[str]:
        return self._spec_files_with_failures.get(self._load_spec_files_with_failures)

    def _load_spec_files_with_failures(self) -> List[str]:
        if not self.configuration.example_status_persistence_file_path:
            return []

        files: List[str] = []
        for example_id, status in self.last_run_statuses().items():
            if status != RunStatus.FAILED.value:
                continue
            path = file_path_of(example_id)
            if path not in files:
                files.append(path)
        return files

    # --------------------------------------------------
    # announcements
    # --------------------------------------------------
    def announce_filters(self) -> None:
        manager = self.filter_manager
        if self.example_count() > 0:
            if not manager.is_empty:
                logs.info(f"[World] run options: {manager.describe()}")
            return

        if manager.is_empty:
            self.reporter.message("No examples found.")
        else:
            self.reporter.message(f"All examples were filtered out ({manager.describe()})")
