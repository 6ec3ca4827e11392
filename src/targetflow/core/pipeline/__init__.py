# src/targetflow/core/pipeline/__init__.py
"""
# Pipeline Core — targetflow

Contratos e estruturas fundamentais de um pipeline:

- **types**: `TaskState`, `TaskOutcome`
- **task**: `Task`, atalhos `task()` e `value()`
- **registry**: `TaskRegistry` (unicidade de nomes, ordem de registro)
- **context**: `RunContext`, `TaskContext`

Tasks não conhecem o Engine nem o planner; dependências são declarativas.
"""

from .context import RunContext, TaskContext
from .registry import TaskRegistry
from .task import Task, task, value
from .types import TaskOutcome, TaskState

__all__ = [
    "RunContext",
    "TaskContext",
    "TaskRegistry",
    "Task",
    "task",
    "value",
    "TaskOutcome",
    "TaskState",
]
