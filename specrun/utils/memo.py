#!filepath: specrun/utils/memo.py
from __future__ import annotations

from typing import Callable, Generic, TypeVar

T = TypeVar("T")

_UNSET = object()


class Memo(Generic[T]):
    """
    显式三态缓存：unset -> computed(value) -> (clear) -> unset

    - get(factory) 只在 unset 时调用 factory
    - 计算结果的 identity 保持不变，直到 clear()
    """

    __slots__ = ("_value",)

    def __init__(self) -> None:
        self._value = _UNSET

    @property
    def is_set(self) -> bool:
        return self._value is not _UNSET

    def get(self, factory: Callable[[], T]) -> T:
        if self._value is _UNSET:
            self._value = factory()
        return self._value

    def clear(self) -> None:
        self._value = _UNSET
