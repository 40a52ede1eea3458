# tests/conftest.py
from __future__ import annotations

import os
import tempfile

# 日志目录放到临时目录，避免在仓库里生成 logs/
os.environ.setdefault("SPECRUN_LOG_DIR", tempfile.mkdtemp(prefix="specrun-logs-"))

from typing import List

import pytest
from loguru import logger

from specrun.config.run_config import RunConfig
from specrun.core.reporter import Reporter
from specrun.core.run_status import RunStatusRecord, RunStatus
from specrun.core.world import World


@pytest.fixture(autouse=True)
def disable_file_logger():
    logger.remove()
    logger.add(lambda msg: None)
    yield


class FakePersister:
    """
    替代 ExampleStatusPersister：记录 load_from 调用次数
    """

    def __init__(self, records: List[RunStatusRecord] | None = None):
        self.records = list(records or [])
        self.load_calls: List[str] = []
        self.persisted: List[dict] = []

    def load_from(self, path):
        self.load_calls.append(path)
        return list(self.records)

    def persist(self, path, statuses, run_times=None):
        self.persisted.append(dict(statuses))


class RecordingReporter(Reporter):
    def __init__(self):
        self.messages = []

    def message(self, text: str) -> None:
        self.messages.append(text)


def _records(*pairs) -> List[RunStatusRecord]:
    return [RunStatusRecord(example_id=i, status=RunStatus.parse(s)) for i, s in pairs]


@pytest.fixture
def make_records():
    """make_records(("id", "failed"), ...) -> List[RunStatusRecord]"""
    return _records


@pytest.fixture
def persister() -> FakePersister:
    return FakePersister()


@pytest.fixture
def reporter() -> RecordingReporter:
    return RecordingReporter()


@pytest.fixture
def run_config() -> RunConfig:
    return RunConfig()


@pytest.fixture
def world(run_config, reporter, persister) -> World:
    return World(run_config, reporter=reporter, persister=persister)
