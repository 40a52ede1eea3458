#!filepath: specrun/core/execution.py
"""
当前执行中的 example

- 按线程隔离（threading.local），不同线程互不可见
- 只能通过 example_scope() 设置；退出（含异常）时恢复为进入前的值
"""
from __future__ import annotations

import threading
from contextlib import contextmanager
from dataclasses import dataclass
from typing import TYPE_CHECKING, Any, Iterator, Optional

from specrun.utils.errors import PendingExampleError

if TYPE_CHECKING:
    from specrun.core.example import Example

_state = threading.local()


def current_example() -> Optional["Example"]:
    return getattr(_state, "example", None)


@contextmanager
def example_scope(example: "Example") -> Iterator["ExampleContext"]:
    previous = current_example()
    _state.example = example
    try:
        yield ExampleContext(example=example)
    finally:
        _state.example = previous


@dataclass(frozen=True)
class ExampleContext:
    """
    传给 example body 的显式上下文
    """

    example: "Example"

    @property
    def metadata(self):
        return self.example.metadata

    def tag(self, key: Any, default: Any = None) -> Any:
        return self.example.metadata.lookup(key, default)

    def pending(self, reason: str = "No reason given") -> None:
        raise PendingExampleError(reason)
