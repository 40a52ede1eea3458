#!filepath: specrun/matchers/include.py
from __future__ import annotations

from typing import Any, Callable, Iterable

from specrun.core.structural import includes
from specrun.matchers.base import BaseMatcher


def _none(results: Iterable[bool]) -> bool:
    return not any(results)


class Include(BaseMatcher):
    """
    include(*expected)

      - matches：每个 expected 都被包含（Mapping 键值对全部命中）
      - does_not_match：没有任何 expected 被包含（Mapping 任一键值对命中即失败）
    """

    def __init__(self, *expected: Any) -> None:
        super().__init__(list(expected))

    def matches(self, actual: Any) -> bool:
        super().matches(actual)
        return self._perform_match(all, all, actual)

    def does_not_match(self, actual: Any) -> bool:
        super().does_not_match(actual)
        return self._perform_match(_none, any, actual)

    def _perform_match(
        self,
        predicate: Callable[[Iterable[bool]], bool],
        hash_predicate: Callable[[Iterable[bool]], bool],
        actual: Any,
    ) -> bool:
        return predicate(includes(actual, item, hash_predicate) for item in self.expected)


def include(*expected: Any) -> Include:
    return Include(*expected)
