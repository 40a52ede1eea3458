#!filepath: specrun/core/filters.py
"""
Filter 谓词语言

filter 值被一次性归类为 FilterKind（封闭枚举），每种 kind 一个求值函数：

    NESTED     Mapping        → 递归，所有子键都要命中
    PATTERN    re.Pattern     → 对字符串值 search；非字符串不命中
    PREDICATE  callable       → 调用；任何异常视为不命中
                                （describes 键下只认 lambda / partial，其它按字面量）
    LINE       int + line_number 键
                              → 命中 example 自身行号或其 group 行号
    LITERAL    其它           → ==
"""
from __future__ import annotations

import functools
import re
from collections.abc import Mapping
from dataclasses import dataclass
from enum import Enum
from typing import Any, Callable, Dict, Tuple

from specrun import logs
from specrun.core.structural import fetch, pairs_match

LINE_NUMBER_KEY = "line_number"
SUBJECT_KEY = "describes"


class FilterKind(str, Enum):
    NESTED = "nested"
    PATTERN = "pattern"
    PREDICATE = "predicate"
    LINE = "line"
    LITERAL = "literal"


def _is_line_filter(key: Any, value: Any) -> bool:
    return key == LINE_NUMBER_KEY and isinstance(value, int) and not isinstance(value, bool)


def _is_anonymous(value: Any) -> bool:
    return isinstance(value, functools.partial) or getattr(value, "__name__", None) == "<lambda>"


def _is_predicate(key: Any, value: Any) -> bool:
    # 类本身也是 callable，但作为 describes 之类的字面量比较
    if isinstance(value, type) or not callable(value):
        return False
    # 被描述的对象可以是函数
    if key == SUBJECT_KEY:
        return _is_anonymous(value)
    return True


def classify(key: Any, value: Any) -> FilterKind:
    if isinstance(value, Mapping):
        return FilterKind.NESTED
    if isinstance(value, re.Pattern):
        return FilterKind.PATTERN
    if _is_predicate(key, value):
        return FilterKind.PREDICATE
    if _is_line_filter(key, value):
        return FilterKind.LINE
    return FilterKind.LITERAL


@dataclass(frozen=True)
class FilterCondition:
    key: Any
    kind: FilterKind
    value: Any

    @classmethod
    def build(cls, key: Any, value: Any) -> "FilterCondition":
        return cls(key=key, kind=classify(key, value), value=value)

    def evaluate(self, metadata: Any) -> bool:
        """
        metadata: 被匹配的节点（Metadata），或 NESTED 递归时的子记录
        """
        return _EVALUATORS[self.kind](self, metadata)


# ----------------------------------------------------------------------
# evaluators
# ----------------------------------------------------------------------
def _eval_nested(cond: FilterCondition, metadata: Any) -> bool:
    sub = fetch(metadata, cond.key)
    return pairs_match(
        cond.value,
        lambda k, v: FilterCondition.build(k, v).evaluate(sub),
    )


def _eval_pattern(cond: FilterCondition, metadata: Any) -> bool:
    actual = fetch(metadata, cond.key)
    if not isinstance(actual, str):
        return False
    return cond.value.search(actual) is not None


def _eval_predicate(cond: FilterCondition, metadata: Any) -> bool:
    actual = fetch(metadata, cond.key)
    try:
        return bool(cond.value(actual))
    except Exception as e:
        logs.debug(f"[Filter] predicate for {cond.key!r} raised {type(e).__name__}: {e} -> no match")
        return False


def _eval_line(cond: FilterCondition, metadata: Any) -> bool:
    own = fetch(metadata, LINE_NUMBER_KEY)
    group = fetch(fetch(metadata, "behaviour"), LINE_NUMBER_KEY)
    return cond.value in (own, group)


def _eval_literal(cond: FilterCondition, metadata: Any) -> bool:
    return fetch(metadata, cond.key) == cond.value


_EVALUATORS: Dict[FilterKind, Callable[[FilterCondition, Any], bool]] = {
    FilterKind.NESTED: _eval_nested,
    FilterKind.PATTERN: _eval_pattern,
    FilterKind.PREDICATE: _eval_predicate,
    FilterKind.LINE: _eval_line,
    FilterKind.LITERAL: _eval_literal,
}


# ----------------------------------------------------------------------
# FilterSpec
# ----------------------------------------------------------------------
@dataclass(frozen=True)
class FilterSpec:
    """
    一组 key → filter；applies() 为所有 condition 的 AND。
    """

    conditions: Tuple[FilterCondition, ...] = ()

    @classmethod
    def build(cls, spec: Mapping | None = None, **kwargs: Any) -> "FilterSpec":
        merged: Dict[Any, Any] = dict(spec or {})
        merged.update(kwargs)
        return cls(tuple(FilterCondition.build(k, v) for k, v in merged.items()))

    def applies(self, metadata: Any) -> bool:
        return all(c.evaluate(metadata) for c in self.conditions)

    def as_dict(self) -> Dict[Any, Any]:
        return {c.key: c.value for c in self.conditions}

    def __bool__(self) -> bool:
        return bool(self.conditions)

    def __len__(self) -> int:
        return len(self.conditions)
