#!filepath: specrun/matchers/base.py
from __future__ import annotations

import re
from typing import Any


def _to_sentence(words: list) -> str:
    if not words:
        return ""
    items = [repr(w) for w in words]
    if len(items) == 1:
        return f" {items[0]}"
    if len(items) == 2:
        return f" {items[0]} and {items[1]}"
    return f" {', '.join(items[:-1])}, and {items[-1]}"


class BaseMatcher:
    """
    内置 matcher 的基类：记录 actual / expected，生成描述与失败信息
    """

    def __init__(self, expected: Any = None) -> None:
        self.expected = expected
        self.actual: Any = None

    def matches(self, actual: Any) -> Any:
        self.actual = actual
        return actual

    def does_not_match(self, actual: Any) -> Any:
        self.actual = actual
        return actual

    @property
    def name(self) -> str:
        return re.sub(r"(?<!^)(?=[A-Z])", "_", type(self).__name__).lower()

    def expected_to_sentence(self) -> str:
        expected = self.expected if isinstance(self.expected, list) else [self.expected]
        return _to_sentence(expected)

    def failure_message(self) -> str:
        return f"expected {self.actual!r} to {self.name}{self.expected_to_sentence()}"

    def failure_message_when_negated(self) -> str:
        return f"expected {self.actual!r} not to {self.name}{self.expected_to_sentence()}"

    def description(self) -> str:
        if self.expected is None:
            return self.name
        return f"{self.name}{self.expected_to_sentence()}"
