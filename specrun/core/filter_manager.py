#!filepath: specrun/core/filter_manager.py
from __future__ import annotations

import os
from collections.abc import Mapping
from typing import Any, Callable, Dict, Iterable, List, Optional, Set, TypeVar

from specrun import logs
from specrun.core.filters import FilterSpec
from specrun.utils.errors import FilterLockedError

T = TypeVar("T")

# (line, file_path) -> 该行之前最近的声明行
LineResolver = Callable[[int, Optional[str]], Optional[int]]
# 本次运行声明的全部 example
CandidateSource = Callable[[], Iterable[Any]]


def _node(item: Any) -> Any:
    return getattr(item, "metadata", item)


def _merge(specs: Iterable[FilterSpec]) -> Dict[Any, Any]:
    """
    合并视图：同键 list 取并集（保序），标量覆盖
    """
    merged: Dict[Any, Any] = {}
    for spec in specs:
        for key, value in spec.as_dict().items():
            current = merged.get(key)
            if isinstance(current, list) and isinstance(value, list):
                merged[key] = current + [v for v in value if v not in current]
            else:
                merged[key] = value
    return merged


class FilterManager:
    """
    inclusion / exclusion / 行号 filter

    判定规则：
      - exclusion：任何一个 spec 完整命中 → 排除
      - inclusion：未配置 → 全部包含；否则任一 spec 完整命中 → 包含
                   （add_inclusion 之间 OR，spec 内部 AND）
      - 行号：该文件登记了行号时，example 自身行号或其 group 行号须在其中
      - inclusion 把所有 example 都筛掉且 run_all_when_everything_filtered
        开启时，忽略 inclusion（exclusion 仍然生效）

    run 开始后 lock()，之后再修改 filter → FilterLockedError
    """

    def __init__(
        self,
        run_all_when_everything_filtered: bool = False,
        line_resolver: Optional[LineResolver] = None,
        candidate_source: Optional[CandidateSource] = None,
    ) -> None:
        self.run_all_when_everything_filtered = run_all_when_everything_filtered
        self.line_resolver = line_resolver
        self.candidate_source = candidate_source
        self.line_number_filters: Dict[str, Set[int]] = {}
        self._inclusions: List[FilterSpec] = []
        self._exclusions: List[FilterSpec] = []
        self._locked = False

    @classmethod
    def from_config(
        cls,
        run_cfg,
        line_resolver: Optional[LineResolver] = None,
        candidate_source: Optional[CandidateSource] = None,
    ) -> "FilterManager":
        manager = cls(
            run_all_when_everything_filtered=run_cfg.run_all_when_everything_filtered,
            line_resolver=line_resolver,
            candidate_source=candidate_source,
        )
        if run_cfg.inclusion_filters:
            manager.add_inclusion(run_cfg.inclusion_filters)
        if run_cfg.exclusion_filters:
            manager.add_exclusion(run_cfg.exclusion_filters)
        for path, lines in run_cfg.line_numbers.items():
            manager.add_line_filter(path, lines)
        return manager

    # --------------------------------------------------
    # configuration
    # --------------------------------------------------
    def _ensure_unlocked(self) -> None:
        if self._locked:
            raise FilterLockedError("filters cannot be changed after the run has started")

    def add_inclusion(self, spec: Mapping | None = None, **kwargs: Any) -> FilterSpec:
        self._ensure_unlocked()
        built = FilterSpec.build(spec, **kwargs)
        if built and built not in self._inclusions:
            self._inclusions.append(built)
            logs.debug(f"[Filter] include {built.as_dict()}")
        return built

    def add_exclusion(self, spec: Mapping | None = None, **kwargs: Any) -> FilterSpec:
        self._ensure_unlocked()
        built = FilterSpec.build(spec, **kwargs)
        if built and built not in self._exclusions:
            self._exclusions.append(built)
            logs.debug(f"[Filter] exclude {built.as_dict()}")
        return built

    def add_line_filter(self, path: str, lines: Iterable[int]) -> None:
        self._ensure_unlocked()
        self.line_number_filters.setdefault(path, set()).update(int(n) for n in lines)
        logs.debug(f"[Filter] lines {path}: {sorted(self.line_number_filters[path])}")

    def lock(self) -> None:
        self._locked = True

    def unlock(self) -> None:
        self._locked = False

    @property
    def locked(self) -> bool:
        return self._locked

    # --------------------------------------------------
    # views
    # --------------------------------------------------
    @property
    def inclusion_specs(self) -> List[FilterSpec]:
        return list(self._inclusions)

    @property
    def exclusion_specs(self) -> List[FilterSpec]:
        return list(self._exclusions)

    @property
    def inclusion_filters(self) -> Dict[Any, Any]:
        return _merge(self._inclusions)

    @property
    def exclusion_filters(self) -> Dict[Any, Any]:
        return _merge(self._exclusions)

    @property
    def has_inclusions(self) -> bool:
        return bool(self._inclusions)

    @property
    def has_exclusions(self) -> bool:
        return bool(self._exclusions)

    @property
    def is_empty(self) -> bool:
        return not (self._inclusions or self._exclusions or self.line_number_filters)

    def describe(self) -> str:
        parts = []
        if self._inclusions:
            parts.append(f"include {self.inclusion_filters}")
        if self._exclusions:
            parts.append(f"exclude {self.exclusion_filters}")
        if self.line_number_filters:
            lines = {p: sorted(ls) for p, ls in self.line_number_filters.items()}
            parts.append(f"lines {lines}")
        return ", ".join(parts)

    # --------------------------------------------------
    # decisions
    # --------------------------------------------------
    def is_excluded(self, node: Any) -> bool:
        return any(spec.applies(node) for spec in self._exclusions)

    def is_included(self, node: Any) -> bool:
        if not self._inclusions:
            return True
        return any(spec.applies(node) for spec in self._inclusions)

    def _lines_for(self, file_path: str) -> Optional[Set[int]]:
        if file_path in self.line_number_filters:
            return self.line_number_filters[file_path]
        target = os.path.abspath(file_path) if file_path else None
        for path, lines in self.line_number_filters.items():
            if target and os.path.abspath(path) == target:
                return lines
        return None

    def _resolve(self, line: int, file_path: str) -> int:
        if self.line_resolver is None:
            return line
        resolved = self.line_resolver(line, file_path)
        return line if resolved is None else resolved

    def is_line_selected(self, node: Any) -> bool:
        lines = self._lines_for(node.file_path)
        if lines is None:
            return True
        allowed = {self._resolve(n, node.file_path) for n in lines}
        return node.line_number in allowed or node.behaviour.line_number in allowed

    def _selected(self, node: Any, ignore_inclusions: bool) -> bool:
        if self.is_excluded(node):
            return False
        if not self.is_line_selected(node):
            return False
        return ignore_inclusions or self.is_included(node)

    def _runs_all(self, candidates: List[Any]) -> bool:
        return self.run_all_when_everything_filtered and self.everything_filtered(candidates)

    def should_run(self, item: Any, candidates: Optional[Iterable[Any]] = None) -> bool:
        """
        candidates: 本次运行声明的全部 example，用来判断 inclusion 是否筛掉了全部；
        缺省时取 candidate_source()，再缺省只看 item 自己
        """
        if candidates is not None:
            pool = list(candidates)
        elif self.candidate_source is not None:
            pool = list(self.candidate_source())
        else:
            pool = [item]
        return self._selected(_node(item), self._runs_all(pool))

    def everything_filtered(self, items: Iterable[Any]) -> bool:
        """
        inclusion 会把全部（未被排除的）example 筛掉？
        """
        if not self._inclusions:
            return False
        candidates = [i for i in items if self._selected(_node(i), ignore_inclusions=True)]
        return bool(candidates) and not any(self.is_included(_node(i)) for i in candidates)

    def prune(self, items: Iterable[T]) -> List[T]:
        items = list(items)
        ignore = self._runs_all(items)
        if ignore:
            logs.info(f"[Filter] no examples matched {self.inclusion_filters}; running all")
        return [i for i in items if self._selected(_node(i), ignore)]
