#!filepath: specrun/core/example.py
from __future__ import annotations

from typing import Any, Callable, Iterator, List, Optional, Union

from specrun.core.metadata import Metadata, capture_caller
from specrun.core.run_status import RunStatus


class Example:
    """
    一个可执行的 example

    - metadata 由 group 的 metadata.for_example() 派生
    - id = "<file_path>[<ordinal>:<ordinal>...]"，跨进程稳定
    """

    def __init__(
        self,
        example_group: "ExampleGroup",
        description: Any,
        block: Optional[Callable] = None,
        **options: Any,
    ) -> None:
        self.example_group = example_group
        self.block = block
        self.ordinal = example_group._next_ordinal()
        self.metadata = example_group.metadata.for_example(description, **options)

    @property
    def description(self) -> str:
        return self.metadata.description

    @property
    def full_description(self) -> str:
        return self.metadata.full_description

    @property
    def file_path(self) -> str:
        return self.metadata.file_path

    @property
    def line_number(self) -> int:
        return self.metadata.line_number

    @property
    def location(self) -> str:
        return self.metadata.location

    @property
    def scoped_id(self) -> str:
        return f"{self.example_group.scoped_id}:{self.ordinal}"

    @property
    def id(self) -> str:
        return f"{self.example_group.root.file_path}[{self.scoped_id}]"

    @property
    def execution_result(self) -> dict:
        return self.metadata.execution_result

    @property
    def status(self) -> Optional[RunStatus]:
        return self.execution_result.get("status")

    def __repr__(self) -> str:
        return f"<Example {self.full_description!r} @ {self.location}>"


Member = Union[Example, "ExampleGroup"]


class ExampleGroup:
    """
    group 容器（声明 DSL 的最小实现）

    - members 按声明顺序保存 example 与子 group（共用一个序号计数器）
    - 顶层 group 的 ordinal 在注册进 World 时按文件分配
    """

    def __init__(
        self,
        parent: Optional["ExampleGroup"] = None,
        *args: Any,
        block: Optional[Callable] = None,
        **options: Any,
    ) -> None:
        self.parent = parent
        self.members: List[Member] = []
        self._ordinal_counter = 0
        self.ordinal: Optional[int] = parent._next_ordinal() if parent is not None else None

        if "caller" not in options and "file_path" not in options:
            options["caller"] = capture_caller()
        self.metadata = Metadata.process(
            parent.metadata if parent is not None else None,
            *args,
            behaviour_block=block,
            **options,
        )

    # --------------------------------------------------
    # declaration
    # --------------------------------------------------
    @classmethod
    def describe(cls, *args: Any, **options: Any) -> "ExampleGroup":
        """顶层 group；注册由调用方（World.register / specrun.describe）负责。"""
        if "caller" not in options and "file_path" not in options:
            options["caller"] = capture_caller()
        return cls(None, *args, **options)

    def context(self, *args: Any, **options: Any) -> "ExampleGroup":
        if "caller" not in options and "file_path" not in options:
            options["caller"] = capture_caller()
        child = type(self)(self, *args, **options)
        self.members.append(child)
        return child

    nested = context

    def example(self, description: Any = "", block: Optional[Callable] = None, **options: Any) -> Example:
        if "caller" not in options:
            options["caller"] = capture_caller()
        ex = Example(self, description, block, **options)
        self.members.append(ex)
        return ex

    def it(self, description: Any = "", **options: Any) -> Callable[[Callable], Callable]:
        """
        装饰器形式：

            @group.it("works")
            def _(ctx): ...
        """
        if "caller" not in options:
            options["caller"] = capture_caller()

        def _wrap(fn: Callable) -> Callable:
            self.example(description, fn, **options)
            return fn

        return _wrap

    def _next_ordinal(self) -> int:
        self._ordinal_counter += 1
        return self._ordinal_counter

    # --------------------------------------------------
    # identity
    # --------------------------------------------------
    @property
    def root(self) -> "ExampleGroup":
        group = self
        while group.parent is not None:
            group = group.parent
        return group

    @property
    def scoped_id(self) -> str:
        ordinal = self.ordinal if self.ordinal is not None else 1
        if self.parent is None:
            return str(ordinal)
        return f"{self.parent.scoped_id}:{ordinal}"

    @property
    def description(self) -> str:
        return self.metadata.behaviour.description

    @property
    def name(self) -> str:
        return self.metadata.behaviour.name

    @property
    def file_path(self) -> str:
        return self.metadata.behaviour.file_path

    @property
    def line_number(self) -> int:
        return self.metadata.behaviour.line_number

    @property
    def location(self) -> str:
        return self.metadata.behaviour.location

    # --------------------------------------------------
    # traversal
    # --------------------------------------------------
    @property
    def examples(self) -> List[Example]:
        return [m for m in self.members if isinstance(m, Example)]

    @property
    def children(self) -> List["ExampleGroup"]:
        return [m for m in self.members if isinstance(m, ExampleGroup)]

    def iter_examples(self) -> Iterator[Example]:
        """深度优先、先序，按声明顺序。"""
        for member in self.members:
            if isinstance(member, ExampleGroup):
                yield from member.iter_examples()
            else:
                yield member

    def descendants(self) -> Iterator["ExampleGroup"]:
        yield self
        for child in self.children:
            yield from child.descendants()

    def declaration_lines(self, file_path: Optional[str] = None) -> Iterator[int]:
        if file_path is None or self.file_path == file_path:
            yield self.line_number
        for member in self.members:
            if isinstance(member, ExampleGroup):
                yield from member.declaration_lines(file_path)
            elif file_path is None or member.file_path == file_path:
                yield member.line_number

    def __repr__(self) -> str:
        return f"<ExampleGroup {self.name!r} @ {self.location}>"
