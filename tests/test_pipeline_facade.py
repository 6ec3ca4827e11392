# tests/test_pipeline_facade.py
"""
Testes da fachada `Pipeline` (make / plan / outdated / read / destroy).
"""

import pytest

from targetflow.core.exceptions import (
    CyclicDependencyError,
    TaskExecutionError,
    UnknownTaskError,
)
from targetflow.core.pipeline.registry import TaskRegistry
from targetflow.core.pipeline.task import task, value
from targetflow.core.pipeline.types import TaskState
from targetflow.pipeline import Pipeline
from targetflow.storage import LocalStorage
from targetflow.tracking.memory import InMemoryTracker


def _registry(calls, *, fail=False):
    def square(x):
        calls["square"] += 1
        if fail:
            raise ArithmeticError("overflow")
        return x * x

    def report(x):
        calls["report"] += 1
        return f"x={x}"

    return TaskRegistry.from_tasks([
        value("x", 3),
        task("square", square, "x"),
        task("report", report, "x"),
    ])


@pytest.fixture
def config(tmp_path):
    return {
        "cache": {"dir": str(tmp_path / "cache")},
        "run": {"dir": str(tmp_path / "runs")},
        "storage": {"backend": "local", "root": str(tmp_path / "storage")},
    }


def test_config_is_merged_over_defaults(config, calls):
    pipe = Pipeline(_registry(calls), config)

    assert pipe.config["engine"]["fail_fast"] is True
    assert pipe.config["cache"]["dir"] == config["cache"]["dir"]
    assert isinstance(pipe.tracker, InMemoryTracker)
    assert isinstance(pipe.storage, LocalStorage)


def test_invalid_graph_fails_at_construction(config):
    registry = TaskRegistry.from_tasks([task("a", len, "b"), task("b", len, "a")])
    with pytest.raises(CyclicDependencyError):
        Pipeline(registry, config)


def test_make_then_read(config, calls, tmp_path):
    pipe = Pipeline(_registry(calls), config)

    result = pipe.make()

    assert result.value("square") == 9
    assert pipe.read("square") == 9
    assert pipe.read("report") == "x=3"
    assert (tmp_path / "runs" / f"{result.run_id}.json").exists()


def test_make_targets_runs_only_ancestors(config, calls):
    result = Pipeline(_registry(calls), config).make(["square"])

    assert list(result.plan) == ["x", "square"]
    assert calls == {"square": 1}


def test_plan_and_outdated(config, calls):
    pipe = Pipeline(_registry(calls), config)

    assert list(pipe.plan()) == ["x", "square", "report"]
    assert pipe.outdated() == ["x", "square", "report"]
    pipe.make(["report"])
    assert pipe.outdated() == ["square"]
    assert pipe.outdated(["report"]) == []


def test_read_errors(config, calls):
    pipe = Pipeline(_registry(calls), config)

    with pytest.raises(UnknownTaskError):
        pipe.read("missing")
    with pytest.raises(KeyError):
        pipe.read("square")


def test_destroy_forces_recompute(config, calls):
    pipe = Pipeline(_registry(calls), config)
    pipe.make()
    pipe.destroy()

    with pytest.raises(KeyError):
        pipe.read("square")
    result = pipe.make()
    assert result.state("square") == TaskState.SUCCEEDED
    assert calls["square"] == 2


def test_make_raises_after_finalizing_the_run(config, calls):
    tracker = InMemoryTracker()
    pipe = Pipeline(_registry(calls, fail=True), config, tracker=tracker)

    with pytest.raises(TaskExecutionError) as excinfo:
        pipe.make()

    assert excinfo.value.task == "square"
    assert isinstance(excinfo.value.__cause__, ArithmeticError)
    assert tracker.last_run.status == "failed"


def test_make_can_return_failures_instead_of_raising(config, calls):
    config["engine"] = {"raise_on_failure": False}
    result = Pipeline(_registry(calls, fail=True), config).make()

    assert result.state("square") == TaskState.FAILED
    assert result.state("report") == TaskState.PENDING
    assert result.errors["square"].task == "square"
    with pytest.raises(KeyError):
        result.value("square")


def test_unwritable_run_dir_still_ends_the_tracker_run(config, calls, tmp_path):
    blocker = tmp_path / "runs-file"
    blocker.write_text("", encoding="utf-8")
    config["run"] = {"dir": str(blocker)}
    tracker = InMemoryTracker()

    with pytest.raises(OSError):
        Pipeline(_registry(calls), config, tracker=tracker).make()

    assert tracker.last_run.status == "failed"
    assert calls["square"] == 1


def test_unknown_target_is_rejected_before_any_run(config, calls):
    tracker = InMemoryTracker()
    pipe = Pipeline(_registry(calls), config, tracker=tracker)

    with pytest.raises(UnknownTaskError):
        pipe.make(["ghost"])

    assert tracker.runs == {}
