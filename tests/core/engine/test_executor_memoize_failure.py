# tests/core/engine/test_executor_memoize_failure.py
"""
Testes de falha ao memoizar o Result de uma Task.

Um valor que não pode ser serializado (ex.: um generator) faz a Task
falhar como qualquer exceção da compute: TaskExecutionError nomeando a
Task, estado FAILED no Run Record e a mesma política de interrupção.
"""

import pytest

from targetflow.core.engine.graph import build_graph
from targetflow.core.engine.planner import plan_execution
from targetflow.core.exceptions import TaskExecutionError
from targetflow.core.pipeline.registry import TaskRegistry
from targetflow.core.pipeline.task import task
from targetflow.core.pipeline.types import TaskState


def _run(engine, registry):
    graph = build_graph(registry)
    return engine.execute(plan_execution(graph), registry, graph)


def _registry(calls, *, best_effort=False):
    def stream():
        calls["stream"] += 1
        return (i for i in range(3))

    def consume(items):
        calls["consume"] += 1
        return list(items)

    def other():
        calls["other"] += 1
        return 1

    return TaskRegistry.from_tasks([
        task("stream", stream, best_effort=best_effort),
        task("consume", consume, "stream"),
        task("other", other),
    ])


def test_unserializable_result_fails_the_task(make_engine, store, calls):
    result = _run(make_engine(), _registry(calls))

    assert calls["stream"] == 1
    assert result.state("stream") == TaskState.FAILED
    assert result.state("consume") == TaskState.SKIPPED_DEPENDENCY_FAILED
    assert result.state("other") == TaskState.PENDING
    assert len(store) == 0

    with pytest.raises(TaskExecutionError) as excinfo:
        result.raise_for_failure()
    assert excinfo.value.task == "stream"
    assert isinstance(excinfo.value.__cause__, TypeError)


def test_record_never_shows_the_task_as_succeeded(make_engine, calls, tracker):
    record = _run(make_engine(), _registry(calls)).record

    assert record.status == "failed"
    assert record.task_state("stream") == "failed"
    assert record.tasks["stream"]["error"]["type"] == "TaskExecutionError"
    assert record.task_state("consume") == "skipped_dependency_failed"
    assert tracker.last_run.status == "failed"


def test_best_effort_applies_to_memoization_failures(make_engine, calls):
    result = _run(make_engine(), _registry(calls, best_effort=True))

    assert result.state("stream") == TaskState.FAILED
    assert result.state("other") == TaskState.SUCCEEDED
    assert not result.halted
