# tests/core/test_filter_manager.py
import re

import pytest

from specrun.config.run_config import RunConfig
from specrun.core.filter_manager import FilterManager
from specrun.core.metadata import Metadata
from specrun.utils.errors import FilterLockedError


def _example(description, line, group_line=1, file_path="./a_spec.py", **tags):
    group = Metadata.process(None, "group", file_path=file_path, line_number=group_line)
    return group.for_example(description, line_number=line, **tags)


@pytest.fixture
def examples():
    return [
        _example("one", 3, a=1),
        _example("two", 5, b=2),
        _example("three", 7, a=1, b=2),
        _example("four", 9, slow=True),
    ]


def _selected(manager, examples):
    return [e.description for e in manager.prune(examples)]


def test_no_filters_runs_everything(examples):
    manager = FilterManager()
    assert manager.is_empty
    assert _selected(manager, examples) == ["one", "two", "three", "four"]


def test_inclusion_spec_is_and(examples):
    manager = FilterManager()
    manager.add_inclusion({"a": 1, "b": 2})

    assert _selected(manager, examples) == ["three"]


def test_separate_inclusions_are_or(examples):
    manager = FilterManager()
    manager.add_inclusion(a=1)
    manager.add_inclusion(b=2)

    assert _selected(manager, examples) == ["one", "two", "three"]


def test_exclusion_wins_over_inclusion(examples):
    manager = FilterManager()
    manager.add_inclusion(a=1)
    manager.add_exclusion(b=2)

    assert _selected(manager, examples) == ["one"]


def test_exclusion_spec_must_fully_match(examples):
    manager = FilterManager()
    manager.add_exclusion({"a": 1, "b": 2})

    assert _selected(manager, examples) == ["one", "two", "four"]


def test_exclusion_with_pattern(examples):
    manager = FilterManager()
    manager.add_exclusion(description=re.compile("^t"))

    assert _selected(manager, examples) == ["one", "four"]


def test_everything_filtered_without_policy_runs_nothing(examples):
    manager = FilterManager(run_all_when_everything_filtered=False)
    manager.add_inclusion(focus=True)

    assert manager.everything_filtered(examples)
    assert _selected(manager, examples) == []
    assert not any(manager.should_run(e) for e in examples)


def test_everything_filtered_with_policy_runs_everything(examples):
    manager = FilterManager(run_all_when_everything_filtered=True)
    manager.add_inclusion(focus=True)

    assert _selected(manager, examples) == ["one", "two", "three", "four"]
    assert all(manager.should_run(e, candidates=examples) for e in examples)


def test_should_run_applies_policy_without_prune(examples):
    manager = FilterManager(
        run_all_when_everything_filtered=True,
        candidate_source=lambda: examples,
    )
    manager.add_inclusion(focus=True)
    manager.add_exclusion(slow=True)

    assert [manager.should_run(e) for e in examples] == [True, True, True, False]


def test_should_run_single_node_falls_back_to_itself():
    manager = FilterManager(run_all_when_everything_filtered=True)
    manager.add_inclusion(foo="bar")
    example = _example("lonely", 3)

    assert manager.should_run(example)


def test_should_run_policy_off_for_explicit_candidates(examples):
    manager = FilterManager(run_all_when_everything_filtered=False)
    manager.add_inclusion(focus=True)

    assert not any(manager.should_run(e, candidates=examples) for e in examples)


def test_should_run_policy_untouched_when_something_matches(examples):
    manager = FilterManager(run_all_when_everything_filtered=True)
    manager.add_inclusion(slow=True)

    assert [manager.should_run(e, candidates=examples) for e in examples] == [False, False, False, True]


def test_policy_still_honors_exclusions(examples):
    manager = FilterManager(run_all_when_everything_filtered=True)
    manager.add_inclusion(focus=True)
    manager.add_exclusion(slow=True)

    assert _selected(manager, examples) == ["one", "two", "three"]


def test_policy_not_triggered_when_something_matches(examples):
    manager = FilterManager(run_all_when_everything_filtered=True)
    manager.add_inclusion(slow=True)

    assert _selected(manager, examples) == ["four"]


def test_line_filter_own_or_group_line(examples):
    manager = FilterManager()
    manager.add_line_filter("./a_spec.py", [5])

    assert _selected(manager, examples) == ["two"]

    manager.add_line_filter("./a_spec.py", [1])
    assert _selected(manager, examples) == ["one", "two", "three", "four"]


def test_line_filter_only_applies_to_its_file(examples):
    other = _example("elsewhere", 3, file_path="./b_spec.py")
    manager = FilterManager()
    manager.add_line_filter("./a_spec.py", [3])

    assert _selected(manager, examples + [other]) == ["one", "elsewhere"]


def test_line_filter_uses_resolver():
    """行号在 example body 内部时，resolver 映射到声明行"""
    examples = [_example("one", 3), _example("two", 8)]
    manager = FilterManager(line_resolver=lambda line, path: 8 if line >= 8 else 3)
    manager.add_line_filter("./a_spec.py", [10])

    assert _selected(manager, examples) == ["two"]


def test_merged_views_union_lists_and_overwrite_scalars():
    manager = FilterManager()
    manager.add_inclusion(tags=["a"], speed="slow")
    manager.add_inclusion(tags=["a", "b"], speed="fast")

    assert manager.inclusion_filters == {"tags": ["a", "b"], "speed": "fast"}
    assert len(manager.inclusion_specs) == 2


def test_same_spec_twice_is_kept_once():
    manager = FilterManager()
    manager.add_exclusion(a=1)
    manager.add_exclusion(a=1)

    assert len(manager.exclusion_specs) == 1


def test_locked_manager_rejects_changes():
    manager = FilterManager()
    manager.lock()

    with pytest.raises(FilterLockedError):
        manager.add_inclusion(a=1)
    with pytest.raises(FilterLockedError):
        manager.add_line_filter("./a_spec.py", [1])

    manager.unlock()
    manager.add_inclusion(a=1)
    assert manager.has_inclusions


def test_from_config():
    cfg = RunConfig(
        run_all_when_everything_filtered=True,
        inclusion_filters={"focus": True},
        exclusion_filters={"slow": True},
        line_numbers={"./a_spec.py": [3]},
    )
    manager = FilterManager.from_config(cfg)

    assert manager.run_all_when_everything_filtered
    assert manager.inclusion_filters == {"focus": True}
    assert manager.exclusion_filters == {"slow": True}
    assert manager.line_number_filters == {"./a_spec.py": {3}}
    assert "include" in manager.describe()
