# tests/core/pipeline/test_task_registry.py
"""
Testes do TaskRegistry e do contrato de Task.

Invariantes:
    - nomes de Task são únicos
    - a ordem de registro é preservada
    - a compute reference recebe upstreams (em ordem) e config como kwargs
"""

import pytest

from targetflow.core.exceptions import DuplicateTaskError, UnknownTaskError
from targetflow.core.pipeline.registry import TaskRegistry
from targetflow.core.pipeline.task import Task, task, value


def _identity(x=None):
    return x


def test_registration_order_is_preserved():
    registry = TaskRegistry.from_tasks([task("b", _identity), task("a", _identity), task("c", _identity)])

    assert registry.names() == ["b", "a", "c"]
    assert [t.name for t in registry] == ["b", "a", "c"]
    assert registry.index("a") == 1
    assert len(registry) == 3
    assert "a" in registry and "z" not in registry


def test_unknown_task_lookup_fails():
    registry = TaskRegistry()
    with pytest.raises(UnknownTaskError):
        registry.get("missing")
    with pytest.raises(UnknownTaskError):
        registry.index("missing")


def test_duplicate_name_is_rejected_via_add():
    registry = TaskRegistry.from_tasks([task("data", _identity)])
    with pytest.raises(DuplicateTaskError):
        registry.add(task("data", _identity))


def test_add_requires_a_task():
    with pytest.raises(TypeError):
        TaskRegistry().add("data")


def test_register_builds_the_task():
    registry = TaskRegistry()
    t = registry.register("split", _identity, ["data"], config={"prop": 0.8}, best_effort=True)

    assert registry.get("split") is t
    assert t.upstream == ("data",)
    assert t.config == {"prop": 0.8}
    assert t.best_effort is True


@pytest.mark.parametrize("name", ["", "   ", None])
def test_task_name_must_be_non_empty(name):
    with pytest.raises(ValueError):
        Task(name=name, compute=_identity)


def test_compute_must_be_callable():
    with pytest.raises(TypeError):
        Task(name="x", compute="not callable")


def test_duplicated_upstream_is_rejected():
    with pytest.raises(ValueError):
        task("x", _identity, "a", "a")


def test_invoke_passes_inputs_in_order_and_config_as_kwargs():
    def split(data, prop, *, seed):
        return (data, prop, seed)

    t = task("split", split, "data", "prop", config={"seed": 7})
    assert t.invoke(["D", 0.5]) == ("D", 0.5, 7)


def test_invoke_with_context_prepends_the_context():
    def fit(ctx, data):
        return (ctx, data)

    t = task("fit", fit, "data", with_context=True)
    assert t.invoke(["D"], ctx="CTX") == ("CTX", "D")


def test_value_task_returns_its_literal():
    t = value("tree_grid", [50, 100])
    assert t.upstream == ()
    assert t.invoke([]) == [50, 100]
