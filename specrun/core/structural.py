#!filepath: specrun/core/structural.py
"""
结构化匹配（structural match）公共部分

filter 与 include matcher 共用同一套约定：
  - fetch(container, key)   ：Mapping / Metadata / Behaviour / 普通对象统一取值
  - pairs_match(expected, check, quantifier)
                            ：对 expected 的每个 (k, v) 调 check，再用 all / any 汇总
"""
from __future__ import annotations

from collections.abc import Mapping
from typing import Any, Callable, Iterable

MISSING = object()


def fetch(container: Any, key: Any, default: Any = None) -> Any:
    if container is None:
        return default
    if isinstance(container, Mapping):
        return container.get(key, default)
    lookup = getattr(container, "lookup", None)
    if callable(lookup):
        return lookup(key, default)
    if isinstance(key, str):
        return getattr(container, key, default)
    return default


def pairs_match(
    expected: Mapping,
    check: Callable[[Any, Any], bool],
    quantifier: Callable[[Iterable[bool]], bool] = all,
) -> bool:
    return quantifier(check(k, v) for k, v in expected.items())


def includes(actual: Any, expected: Any, quantifier: Callable[[Iterable[bool]], bool] = all) -> bool:
    """
    actual 是否“包含” expected：
      - 两者都是 Mapping：expected 的键值对都出现在 actual 中
      - 只有 actual 是 Mapping：expected 是 actual 的 key
      - 其它：expected in actual（成员 / 子串）
    """
    if isinstance(actual, Mapping):
        if isinstance(expected, Mapping):
            return pairs_match(
                expected,
                lambda k, v: actual.get(k, MISSING) == v,
                quantifier,
            )
        return expected in actual
    return expected in actual
