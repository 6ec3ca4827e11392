# src/targetflow/core/pipeline/registry.py
"""
Registro estrutural de Tasks do pipeline.

Este módulo define o `TaskRegistry`, responsável por registrar Tasks e
garantir unicidade de nomes antes de qualquer construção de grafo,
planejamento ou execução.

Responsabilidades do módulo:
    - Validar unicidade de `task.name`
    - Preservar ordem de registro (critério de desempate do planner)
    - Expor acesso controlado às Tasks registradas

Decisões arquiteturais:
    - A validação ocorre no momento do registro (fail fast)
    - O registry não resolve dependências: isso é papel do graph builder
    - A construção é explícita; não existe registro global implícito

Invariantes:
    - Cada Task registrada possui um nome único
    - A lista de Tasks reflete exatamente a ordem de registro

Limites explícitos:
    - Não valida existência de upstreams
    - Não executa Tasks
"""

from __future__ import annotations

from dataclasses import dataclass, field
from typing import Any, Dict, Iterable, Iterator, List, Optional, Sequence

from targetflow.core.exceptions import DuplicateTaskError, UnknownTaskError

from .task import Compute, Task


@dataclass
class TaskRegistry:
    """
    Registro canônico de Tasks.

    Uso típico (equivalente à lista declarativa de targets):

        registry = TaskRegistry.from_tasks([
            value("tree_grid", [50, 100, 150, 200]),
            task("sw_grid", expand_grid, "tree_grid"),
        ])
    """

    _tasks: Dict[str, Task] = field(default_factory=dict, init=False, repr=False)
    _order: List[str] = field(default_factory=list, init=False, repr=False)

    @classmethod
    def from_tasks(cls, tasks: Iterable[Task]) -> "TaskRegistry":
        registry = cls()
        for t in tasks:
            registry.add(t)
        return registry

    def add(self, task: Task) -> Task:
        if not isinstance(task, Task):
            raise TypeError("registry.add expects a Task")
        if task.name in self._tasks:
            raise DuplicateTaskError.for_name(task.name)

        self._tasks[task.name] = task
        self._order.append(task.name)
        return task

    def register(
        self,
        name: str,
        compute: Compute,
        upstream_names: Sequence[str] = (),
        *,
        config: Optional[Dict[str, Any]] = None,
        best_effort: bool = False,
        with_context: bool = False,
    ) -> Task:
        """Cria e registra uma Task. Falha com DuplicateTaskError se o nome existir."""
        return self.add(
            Task(
                name=name,
                compute=compute,
                upstream=tuple(upstream_names),
                config=dict(config or {}),
                best_effort=best_effort,
                with_context=with_context,
            )
        )

    def get(self, name: str) -> Task:
        if name not in self._tasks:
            raise UnknownTaskError.for_name(name)
        return self._tasks[name]

    def index(self, name: str) -> int:
        """Posição de registro (0-based) da Task."""
        if name not in self._tasks:
            raise UnknownTaskError.for_name(name)
        return self._order.index(name)

    def names(self) -> List[str]:
        return list(self._order)

    def list(self) -> List[Task]:
        return [self._tasks[name] for name in self._order]

    def __contains__(self, name: object) -> bool:
        return name in self._tasks

    def __len__(self) -> int:
        return len(self._order)

    def __iter__(self) -> Iterator[Task]:
        return iter(self.list())
