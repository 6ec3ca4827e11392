# src/targetflow/core/engine/planner.py
"""
Planejador de execução do pipeline.

Produz uma ordem topológica determinística a partir de um
`DependencyGraph` já validado.

Decisões arquiteturais:
    - Algoritmo de Kahn com fila de prontos ordenada por posição de registro
    - Empates são resolvidos pela ordem de registro: a Task registrada
      primeiro ocupa a posição elegível mais cedo
    - A mesma definição de pipeline produz sempre o mesmo plano

Invariantes:
    - Nenhuma Task aparece antes de seus upstreams
    - Todas as Tasks aparecem exatamente uma vez

Limites explícitos:
    - Não executa Tasks
    - Não interage com RunContext
    - Não decide políticas de execução
"""

from __future__ import annotations

import heapq
from dataclasses import dataclass
from typing import Dict, Iterable, Iterator, List, Optional, Tuple

from targetflow.core.exceptions import CyclicDependencyError, UnknownTaskError

from .graph import DependencyGraph


@dataclass(frozen=True)
class ExecutionPlan:
    """Sequência ordenada de nomes de Task pronta para execução."""

    order: Tuple[str, ...]

    def __iter__(self) -> Iterator[str]:
        return iter(self.order)

    def __len__(self) -> int:
        return len(self.order)

    def __getitem__(self, idx: int) -> str:
        return self.order[idx]

    def position(self, name: str) -> int:
        return self.order.index(name)

    def restricted_to(self, names: Iterable[str]) -> "ExecutionPlan":
        """Sub-plano preservando a ordem relativa original."""
        keep = set(names)
        return ExecutionPlan(order=tuple(n for n in self.order if n in keep))


def plan_execution(graph: DependencyGraph, targets: Optional[Iterable[str]] = None) -> ExecutionPlan:
    """
    Produz a ordem topológica determinística das Tasks do grafo.

    Args:
        graph (DependencyGraph): Grafo validado.
        targets (Optional[Iterable[str]]): Se informado, o plano contém
            apenas essas Tasks e seus ancestrais (equivalente a "make x").

    Returns:
        ExecutionPlan: Ordem de execução.

    Raises:
        UnknownTaskError: Se algum target não existir no grafo.
        CyclicDependencyError: Se o grafo não puder ser ordenado (grafo
            construído fora de `build_graph`).
    """
    names: List[str] = list(graph.order)
    if targets is not None:
        requested = list(targets)
        for t in requested:
            if t not in graph:
                raise UnknownTaskError.for_name(t)
        wanted = set(requested)
        wanted |= graph.ancestors(wanted)
        names = [n for n in names if n in wanted]

    rank: Dict[str, int] = {name: i for i, name in enumerate(graph.order)}
    selected = set(names)

    remaining: Dict[str, int] = {
        name: sum(1 for dep in graph.dependencies(name) if dep in selected) for name in names
    }
    ready: List[Tuple[int, str]] = [(rank[n], n) for n in names if remaining[n] == 0]
    heapq.heapify(ready)

    order: List[str] = []
    while ready:
        _, name = heapq.heappop(ready)
        order.append(name)
        for child in graph.dependents(name):
            if child not in selected:
                continue
            remaining[child] -= 1
            if remaining[child] == 0:
                heapq.heappush(ready, (rank[child], child))

    if len(order) != len(names):
        stuck = [n for n in names if n not in set(order)]
        raise CyclicDependencyError.for_cycle(stuck + stuck[:1])

    return ExecutionPlan(order=tuple(order))
