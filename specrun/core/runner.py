#!filepath: specrun/core/runner.py
from __future__ import annotations

from dataclasses import dataclass, field
from time import perf_counter
from typing import Dict, List

from specrun import logs
from specrun.core.example import Example
from specrun.core.execution import example_scope
from specrun.core.run_status import RunStatus
from specrun.core.world import World
from specrun.utils.errors import PendingExampleError


@dataclass
class RunSummary:
    statuses: Dict[str, RunStatus] = field(default_factory=dict)
    failures: List[Example] = field(default_factory=list)
    duration: float = 0.0
    aborted: bool = False

    def count(self, status: RunStatus) -> int:
        return sum(1 for s in self.statuses.values() if s is status)

    @property
    def example_count(self) -> int:
        return len(self.statuses)

    @property
    def success(self) -> bool:
        return not self.failures

    def line(self) -> str:
        return (
            f"{self.example_count} examples, "
            f"{self.count(RunStatus.FAILED)} failures, "
            f"{self.count(RunStatus.PENDING)} pending"
        )


class Runner:
    """
    顺序执行 World 中筛选后的 example

      1. lock filters
      2. announce_filters
      3. 逐个执行（example_scope 内），写 execution_result
      4. fail_fast：第一次失败后 world.abort()
      5. 配置了状态文件时写回
    """

    def __init__(self, world: World) -> None:
        self.world = world

    @logs.catch("run aborted", log_time=True)
    def run(self) -> RunSummary:
        world = self.world
        cfg = world.configuration

        world.filter_manager.lock()
        world.announce_filters()

        examples = world.filtered_examples()
        logs.info(f"[Runner] running {len(examples)} examples")

        summary = RunSummary()
        start = perf_counter()
        run_times: Dict[str, float] = {}

        for example in examples:
            if world.wants_to_quit:
                summary.aborted = True
                break

            status = self.run_example(example)
            summary.statuses[example.id] = status
            run_times[example.id] = example.execution_result.get("run_time", 0.0)

            if status is RunStatus.FAILED:
                summary.failures.append(example)
                if cfg.fail_fast:
                    world.abort(f"after failure in {example.location}")

        summary.duration = perf_counter() - start

        path = cfg.example_status_persistence_file_path
        if path and summary.statuses:
            world.persister.persist(path, summary.statuses, run_times)

        world.reporter.message(summary.line())
        logs.info(f"[Runner] finished in {summary.duration:.4f}s: {summary.line()}")
        return summary

    def run_example(self, example: Example) -> RunStatus:
        start = perf_counter()
        exception = None
        pending_message = None

        with example_scope(example) as ctx:
            if example.block is None:
                status = RunStatus.PENDING
                pending_message = "Not yet implemented"
            else:
                try:
                    example.block(ctx)
                    status = RunStatus.PASSED
                except PendingExampleError as e:
                    status = RunStatus.PENDING
                    pending_message = str(e)
                except Exception as e:
                    status = RunStatus.FAILED
                    exception = e
                    logs.debug(f"[Runner] {example.location} failed: {type(e).__name__}: {e}")

        example.metadata.record_result(
            status=status,
            exception=exception,
            pending_message=pending_message,
            run_time=perf_counter() - start,
        )
        return status
