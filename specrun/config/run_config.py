#!filepath: specrun/config/run_config.py
from typing import Any, Dict, List, Optional

from pydantic import BaseModel, Field, field_validator

# *_spec.py / *_test.py / test_*.py，后面紧跟 ":<line>"
DEFAULT_TEST_FILE_PATTERN = r"(?:^|[/\\])(?:test_[^/\\:]*|[^/\\:]*_spec|[^/\\:]*_test)\.py:\d+"


class RunConfig(BaseModel):
    """
    一次运行的过滤 / 复跑配置

    - 由配置层在 run 开始前一次性给出
    - 运行期间不再修改
    """

    example_status_persistence_file_path: Optional[str] = None
    run_all_when_everything_filtered: bool = False
    fail_fast: bool = False
    only_failures: bool = False

    inclusion_filters: Dict[str, Any] = Field(default_factory=dict)
    exclusion_filters: Dict[str, Any] = Field(default_factory=dict)
    line_numbers: Dict[str, List[int]] = Field(default_factory=dict)

    test_file_pattern: str = DEFAULT_TEST_FILE_PATTERN

    @field_validator("line_numbers")
    @classmethod
    def _positive_lines(cls, v: Dict[str, List[int]]) -> Dict[str, List[int]]:
        for path, lines in v.items():
            bad = [n for n in lines if n < 0]
            if bad:
                raise ValueError(f"negative line numbers for {path}: {bad}")
        return v
