# src/targetflow/core/engine/graph.py
"""
Construção e validação do grafo de dependências (DAG).

Este módulo converte um `TaskRegistry` em um `DependencyGraph` validado:
    - toda dependência declarada referencia uma Task registrada
    - não existem ciclos

Detecção de ciclos:
    Busca em profundidade com marcação "em progresso" por nó. Revisitar um
    nó em progresso sinaliza um ciclo; o caminho ativo da DFS a partir desse
    nó é o ciclo reportado (ex.: a -> b -> c -> a).

Decisões arquiteturais:
    - A ordem de visita segue a ordem de registro, tornando o ciclo
      reportado determinístico
    - A DFS é iterativa (pipelines longos não estouram a pilha)
    - Erros estruturais são fatais: nenhum grafo parcial é retornado

Limites explícitos:
    - Não ordena Tasks (responsabilidade do planner)
    - Não executa Tasks
"""

from __future__ import annotations

from dataclasses import dataclass, field
from typing import Dict, Iterable, List, Set, Tuple

from targetflow.core.exceptions import CyclicDependencyError, UndefinedDependencyError
from targetflow.core.pipeline.registry import TaskRegistry


@dataclass(frozen=True)
class DependencyGraph:
    """
    Grafo de dependências validado (acíclico).

    Campos:
        - upstream: nome → nomes upstream (ordem declarada)
        - order: nomes na ordem de registro
    """
    upstream: Dict[str, Tuple[str, ...]]
    order: Tuple[str, ...]
    _downstream: Dict[str, Tuple[str, ...]] = field(default_factory=dict, repr=False, compare=False)

    def __post_init__(self) -> None:
        children: Dict[str, List[str]] = {name: [] for name in self.order}
        for name in self.order:
            for dep in self.upstream[name]:
                children[dep].append(name)
        object.__setattr__(self, "_downstream", {k: tuple(v) for k, v in children.items()})

    def __contains__(self, name: object) -> bool:
        return name in self.upstream

    def __len__(self) -> int:
        return len(self.order)

    def dependencies(self, name: str) -> Tuple[str, ...]:
        return self.upstream[name]

    def dependents(self, name: str) -> Tuple[str, ...]:
        return self._downstream[name]

    def descendants(self, names: Iterable[str]) -> Set[str]:
        """Todas as Tasks que dependem (transitivamente) de `names`."""
        seen: Set[str] = set()
        stack = list(names)
        while stack:
            current = stack.pop()
            for child in self._downstream[current]:
                if child not in seen:
                    seen.add(child)
                    stack.append(child)
        return seen

    def ancestors(self, names: Iterable[str]) -> Set[str]:
        """Todas as Tasks das quais `names` dependem (transitivamente)."""
        seen: Set[str] = set()
        stack = list(names)
        while stack:
            current = stack.pop()
            for dep in self.upstream[current]:
                if dep not in seen:
                    seen.add(dep)
                    stack.append(dep)
        return seen


_NEW, _IN_PROGRESS, _DONE = 0, 1, 2


def _find_cycle(upstream: Dict[str, Tuple[str, ...]], order: Tuple[str, ...]) -> List[str]:
    """Retorna o primeiro ciclo encontrado (vazio se o grafo for acíclico)."""
    marks: Dict[str, int] = {name: _NEW for name in order}

    for root in order:
        if marks[root] != _NEW:
            continue

        path: List[str] = [root]
        marks[root] = _IN_PROGRESS
        stack: List[Tuple[str, int]] = [(root, 0)]

        while stack:
            node, idx = stack[-1]
            deps = upstream[node]
            if idx >= len(deps):
                stack.pop()
                path.pop()
                marks[node] = _DONE
                continue

            stack[-1] = (node, idx + 1)
            dep = deps[idx]

            if marks[dep] == _IN_PROGRESS:
                start = path.index(dep)
                # path segue arestas "depende de"; o ciclo é reportado no
                # sentido de execução (upstream primeiro)
                cycle = list(reversed(path[start:]))
                return cycle + [cycle[0]]

            if marks[dep] == _NEW:
                marks[dep] = _IN_PROGRESS
                path.append(dep)
                stack.append((dep, 0))

    return []


def build_graph(registry: TaskRegistry) -> DependencyGraph:
    """
    Valida o registry e produz o grafo de dependências.

    Args:
        registry (TaskRegistry): Tasks registradas.

    Returns:
        DependencyGraph: Grafo acíclico validado.

    Raises:
        UndefinedDependencyError: Se uma Task declarar upstream não registrado.
        CyclicDependencyError: Se houver ciclo (reportado como sequência ordenada).
    """
    order = tuple(registry.names())
    upstream: Dict[str, Tuple[str, ...]] = {}

    for t in registry.list():
        for dep in t.upstream:
            if dep not in registry:
                raise UndefinedDependencyError.for_edge(t.name, dep)
        upstream[t.name] = tuple(t.upstream)

    cycle = _find_cycle(upstream, order)
    if cycle:
        raise CyclicDependencyError.for_cycle(cycle)

    return DependencyGraph(upstream=upstream, order=order)
