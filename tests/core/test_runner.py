# tests/core/test_runner.py
import pytest

from specrun.config.run_config import RunConfig
from specrun.core.example import ExampleGroup
from specrun.core.execution import current_example
from specrun.core.run_status import ExampleStatusPersister, RunStatus
from specrun.core.runner import Runner
from specrun.core.world import World
from specrun.utils.errors import FilterLockedError


def _fail(ctx):
    raise AssertionError("nope")


def _pass(ctx):
    pass


@pytest.fixture
def populated(world):
    group = ExampleGroup.describe("math", file_path="./math_spec.py", line_number=1)
    group.example("adds", _pass, fast=True)
    group.example("divides", _fail)
    group.example("later")
    group.example("skips", lambda ctx: ctx.pending("not today"))
    world.register(group)
    return world


def test_run_records_statuses(populated, reporter):
    summary = Runner(populated).run()

    assert summary.statuses == {
        "./math_spec.py[1:1]": RunStatus.PASSED,
        "./math_spec.py[1:2]": RunStatus.FAILED,
        "./math_spec.py[1:3]": RunStatus.PENDING,
        "./math_spec.py[1:4]": RunStatus.PENDING,
    }
    assert not summary.success
    assert summary.line() == "4 examples, 1 failures, 2 pending"
    assert reporter.messages[-1] == summary.line()


def test_run_fills_execution_result(populated):
    Runner(populated).run()
    adds, divides, later, skips = populated.all_examples()

    assert adds.execution_result["status"] is RunStatus.PASSED
    assert adds.execution_result["run_time"] >= 0
    assert isinstance(divides.execution_result["exception"], AssertionError)
    assert later.execution_result["pending_message"] == "Not yet implemented"
    assert skips.execution_result["pending_message"] == "not today"


def test_run_honors_filters(populated):
    populated.filter_manager.add_inclusion(fast=True)
    summary = Runner(populated).run()

    assert list(summary.statuses) == ["./math_spec.py[1:1]"]


def test_filters_locked_once_run_started(populated):
    Runner(populated).run()

    with pytest.raises(FilterLockedError):
        populated.filter_manager.add_exclusion(slow=True)


def test_fail_fast_drops_remaining_examples(populated):
    populated.configuration.fail_fast = True
    summary = Runner(populated).run()

    assert summary.aborted
    assert list(summary.statuses.values()) == [RunStatus.PASSED, RunStatus.FAILED]
    assert populated.example_groups == []
    assert populated.wants_to_quit


def test_statuses_persisted_when_path_configured(populated, persister):
    populated.configuration.example_status_persistence_file_path = "examples.json"
    Runner(populated).run()

    assert persister.persisted == [{
        "./math_spec.py[1:1]": RunStatus.PASSED,
        "./math_spec.py[1:2]": RunStatus.FAILED,
        "./math_spec.py[1:3]": RunStatus.PENDING,
        "./math_spec.py[1:4]": RunStatus.PENDING,
    }]


def test_statuses_not_persisted_without_path(populated, persister):
    Runner(populated).run()
    assert persister.persisted == []


def test_current_example_visible_inside_body(world):
    seen = []
    group = ExampleGroup.describe("g")
    ex = group.example("e", lambda ctx: seen.append((current_example(), ctx.example)))
    world.register(group)

    Runner(world).run()

    assert seen == [(ex, ex)]
    assert current_example() is None


def test_rerun_only_failures_round_trip(tmp_path, reporter):
    """第一次运行写状态文件，第二次只跑失败的 example"""
    path = str(tmp_path / "examples.json")

    def build(world):
        group = ExampleGroup.describe("g", file_path="./g_spec.py", line_number=1)
        group.example("ok", _pass)
        group.example("bad", _fail)
        world.register(group)

    first = World(RunConfig(example_status_persistence_file_path=path), reporter=reporter)
    build(first)
    Runner(first).run()

    second = World(
        RunConfig(example_status_persistence_file_path=path, only_failures=True),
        reporter=reporter,
        persister=ExampleStatusPersister,
    )
    build(second)

    assert second.spec_files_with_failures() == ["./g_spec.py"]
    assert [e.description for e in second.filtered_examples()] == ["bad"]


def test_undecodable_status_file_does_not_abort_run(tmp_path, reporter):
    """状态文件不是 UTF-8：照常跑完并覆盖写回"""
    path = tmp_path / "examples.json"
    path.write_bytes(b"\xff\xfe\x00garbage")

    world = World(
        RunConfig(example_status_persistence_file_path=str(path)),
        reporter=reporter,
        persister=ExampleStatusPersister,
    )
    group = ExampleGroup.describe("g", file_path="./g_spec.py", line_number=1)
    group.example("ok", _pass)
    world.register(group)

    summary = Runner(world).run()

    assert summary.success
    assert reporter.messages[-1] == "1 examples, 0 failures, 0 pending"
    records = ExampleStatusPersister.load_from(path)
    assert [(r.example_id, r.status) for r in records] == [("./g_spec.py[1:1]", RunStatus.PASSED)]
