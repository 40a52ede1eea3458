#!filepath: specrun/core/metadata.py
from __future__ import annotations

import re
import traceback
from dataclasses import dataclass, field
from typing import Any, Callable, Dict, List, Optional, Tuple

from specrun import logs
from specrun.config.run_config import DEFAULT_TEST_FILE_PATTERN
from specrun.core.filters import FilterCondition, FilterSpec

_CALLER_ENTRY = re.compile(r"^(?P<path>.*?):(?P<line>\d+)")


# ----------------------------------------------------------------------
# caller → (file_path, line_number)
# ----------------------------------------------------------------------
def capture_caller() -> List[str]:
    """
    当前调用栈，"<path>:<line>" 格式，最内层在前。
    """
    frames = traceback.extract_stack()[:-1]
    return [f"{f.filename}:{f.lineno}" for f in reversed(frames)]


def file_and_line_number(
    caller: Optional[List[str]],
    pattern: str = DEFAULT_TEST_FILE_PATTERN,
) -> Tuple[str, int]:
    """
    取第一个命中测试文件命名规则的栈帧；找不到返回 ("", 0)，不抛异常。
    """
    rx = re.compile(pattern, re.IGNORECASE)
    for entry in caller or ():
        if not rx.search(entry):
            continue
        m = _CALLER_ENTRY.match(entry)
        if m:
            return m.group("path").strip(), int(m.group("line"))
    if caller:
        logs.debug(f"[Metadata] no test-file frame in caller ({len(caller)} entries)")
    return "", 0


def _subject_text(describes: Any) -> str:
    if describes is None:
        return ""
    return getattr(describes, "__name__", None) or str(describes)


# ----------------------------------------------------------------------
# Behaviour：group 身份字段
# ----------------------------------------------------------------------
@dataclass
class Behaviour:
    describes: Any = None
    description: str = ""
    name: str = ""
    block: Optional[Callable] = None
    caller: List[str] = field(default_factory=list)
    file_path: str = ""
    line_number: int = 0

    @property
    def location(self) -> str:
        return f"{self.file_path}:{self.line_number}"

    def lookup(self, key: Any, default: Any = None) -> Any:
        if key == "location":
            return self.location
        if key in _BEHAVIOUR_FIELDS:
            return getattr(self, key)
        return default


_BEHAVIOUR_FIELDS = frozenset(
    {"describes", "description", "name", "block", "caller", "file_path", "line_number"}
)


# ----------------------------------------------------------------------
# Metadata
# ----------------------------------------------------------------------
class Metadata:
    """
    group / example 的层级元数据

    - 已知字段是显式属性；用户 tag 放在 tags 里
    - 子节点创建时复制父节点 tags，再用自己的覆盖（copy，不是链式查找）
    - location 永远由 file_path / line_number 推导
    - example 节点的 file_path / line_number 未单独给出时沿用 group 的
    """

    KNOWN_KEYS = frozenset(
        {
            "behaviour",
            "description",
            "full_description",
            "execution_result",
            "caller",
            "file_path",
            "line_number",
            "location",
        }
    )

    def __init__(
        self,
        parent: Optional["Metadata"] = None,
        test_file_pattern: Optional[str] = None,
    ) -> None:
        self.parent = parent
        self.test_file_pattern = test_file_pattern or (
            parent.test_file_pattern if parent is not None else DEFAULT_TEST_FILE_PATTERN
        )
        self.tags: Dict[str, Any] = dict(parent.tags) if parent is not None else {}
        self.behaviour = Behaviour()

        # example 级字段（group 节点上保持为空）
        self.description: Optional[str] = None
        self.full_description: Optional[str] = None
        self.execution_result: Dict[str, Any] = {}
        self.caller: Optional[List[str]] = None
        self._file_path: Optional[str] = None
        self._line_number: Optional[int] = None

    # --------------------------------------------------
    # construction
    # --------------------------------------------------
    @classmethod
    def process(cls, parent: Optional["Metadata"], *args: Any, **extra: Any) -> "Metadata":
        """
        声明期构造：
          process(parent, [describes], [description], caller=..., file_path=..., line_number=..., **tags)
        """
        meta = cls(parent, test_file_pattern=extra.pop("test_file_pattern", None))
        meta._process(list(args), extra)
        return meta

    def _process(self, args: List[Any], extra: Dict[str, Any]) -> None:
        extra.pop("behaviour", None)
        b = self.behaviour

        if args and not isinstance(args[0], str):
            b.describes = args.pop(0)
        if b.describes is None and self.parent is not None:
            b.describes = self.parent.behaviour.describes

        b.description = str(args.pop(0)) if args else ""
        b.name = self._determine_name()
        b.block = extra.pop("behaviour_block", None)
        b.caller = list(extra.pop("caller", None) or [])

        file_path = extra.pop("file_path", None)
        line_number = extra.pop("line_number", None)
        if file_path is None or line_number is None:
            derived_path, derived_line = file_and_line_number(b.caller, self.test_file_pattern)
        else:
            derived_path, derived_line = "", 0
        b.file_path = file_path if file_path is not None else derived_path
        b.line_number = int(line_number) if line_number is not None else derived_line

        self.tags.update(extra)

    def _determine_name(self) -> str:
        parent = self.parent
        if parent is not None and parent.behaviour.name:
            return f"{parent.behaviour.name} {self.behaviour.description}".strip()
        return f"{_subject_text(self.behaviour.describes)} {self.behaviour.description}".strip()

    def for_example(self, description: Any, **options: Any) -> "Metadata":
        """
        复制 group 节点并叠加 example 字段；example 级 tag 最后生效。
        """
        ex = Metadata(self)
        ex.behaviour = self.behaviour
        ex.description = str(description)
        ex.full_description = f"{self.behaviour.name} {ex.description}".strip()
        ex.execution_result = {}

        caller = options.pop("caller", None)
        ex.caller = list(caller) if caller else None

        file_path = options.pop("file_path", None)
        line_number = options.pop("line_number", None)
        if ex.caller:
            derived_path, derived_line = file_and_line_number(ex.caller, ex.test_file_pattern)
            ex._file_path, ex._line_number = derived_path, derived_line
        if file_path is not None:
            ex._file_path = file_path
        if line_number is not None:
            ex._line_number = int(line_number)

        options.pop("behaviour", None)
        ex.tags.update(options)
        return ex

    # --------------------------------------------------
    # derived fields
    # --------------------------------------------------
    @property
    def is_example(self) -> bool:
        return self.description is not None

    @property
    def file_path(self) -> str:
        return self._file_path if self._file_path is not None else self.behaviour.file_path

    @property
    def line_number(self) -> int:
        return self._line_number if self._line_number is not None else self.behaviour.line_number

    @property
    def location(self) -> str:
        return f"{self.file_path}:{self.line_number}"

    @property
    def name(self) -> str:
        return self.behaviour.name

    def record_result(self, **result: Any) -> None:
        """example 执行结束后写入一次。"""
        self.execution_result.update(result)

    # --------------------------------------------------
    # mapping-style access
    # --------------------------------------------------
    def lookup(self, key: Any, default: Any = None) -> Any:
        if key == "behaviour":
            return self.behaviour
        if key == "description":
            return self.description if self.description is not None else self.behaviour.description
        if key == "full_description":
            return self.full_description if self.full_description is not None else self.behaviour.name
        if key == "execution_result":
            return self.execution_result
        if key == "caller":
            return self.caller if self.caller is not None else self.behaviour.caller
        if key == "file_path":
            return self.file_path
        if key == "line_number":
            return self.line_number
        if key == "location":
            return self.location
        return self.tags.get(key, default)

    get = lookup

    def __getitem__(self, key: Any) -> Any:
        return self.lookup(key)

    def __contains__(self, key: Any) -> bool:
        return key in self.KNOWN_KEYS or key in self.tags

    # --------------------------------------------------
    # filtering
    # --------------------------------------------------
    def matches(self, filter_on: Any, filter_value: Any) -> bool:
        return FilterCondition.build(filter_on, filter_value).evaluate(self)

    def matches_all(self, filters) -> bool:
        spec = filters if isinstance(filters, FilterSpec) else FilterSpec.build(filters)
        return spec.applies(self)

    def __repr__(self) -> str:
        label = self.full_description if self.is_example else self.behaviour.name
        return f"<Metadata {label!r} @ {self.location}>"
