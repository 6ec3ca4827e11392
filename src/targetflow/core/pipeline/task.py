# src/targetflow/core/pipeline/task.py
"""
Contrato canônico de Task do targetflow.

Uma Task é a menor unidade executável do pipeline: um nome único, uma
compute reference pura e a lista ordenada dos upstreams cujos resultados
ela consome.

Convenção de chamada da compute reference:

    compute(*upstream_outputs, **config)              # Task comum
    compute(task_ctx, *upstream_outputs, **config)    # with_context=True

- `upstream_outputs` segue exatamente a ordem de `upstream`
- `config` é a configuração estática da Task (valores literais)
- `task_ctx` é o TaskContext explícito do run (tracking, storage, log)

Princípios fundamentais:
    - Tasks não conhecem o Engine nem o planner
    - Tasks não controlam ordem de execução
    - Não existe "run corrente" global: o contexto é sempre explícito
    - Dependências são declarativas

Limites explícitos:
    - Não define retry nem tratamento de exceções
    - Não decide políticas de execução (fail-fast, best-effort)
"""

from __future__ import annotations

from dataclasses import dataclass, field
from typing import Any, Callable, Dict, Mapping, Optional, Sequence, Tuple


Compute = Callable[..., Any]


@dataclass(frozen=True)
class Task:
    """
    Definição declarativa de uma Task.

    Atributos:
        - name: identificador único e estável
        - compute: função pura dos outputs upstream para o resultado
        - upstream: nomes das Tasks das quais depende (ordem preservada)
        - config: configuração estática (valores literais) passada como kwargs
        - best_effort: se True, a falha não interrompe o run; apenas os
          dependentes (transitivos) são pulados
        - with_context: se True, recebe o TaskContext como primeiro argumento

    Invariantes:
        - `name` é uma string não vazia
        - `upstream` não contém repetições nem o próprio nome
    """
    name: str
    compute: Compute
    upstream: Tuple[str, ...] = ()
    config: Mapping[str, Any] = field(default_factory=dict)
    best_effort: bool = False
    with_context: bool = False

    def __post_init__(self) -> None:
        if not isinstance(self.name, str) or not self.name.strip():
            raise ValueError("task.name must be a non-empty string")
        if not callable(self.compute):
            raise TypeError(f"task.compute must be callable (task '{self.name}')")

        upstream = tuple(self.upstream)
        if len(set(upstream)) != len(upstream):
            raise ValueError(f"Task '{self.name}' declares duplicated upstream names")
        if self.name in upstream:
            raise ValueError(f"Task '{self.name}' cannot depend on itself")
        object.__setattr__(self, "upstream", upstream)
        object.__setattr__(self, "config", dict(self.config or {}))

    def invoke(self, inputs: Sequence[Any], ctx: Optional[Any] = None) -> Any:
        """Chama a compute reference com os inputs já resolvidos."""
        args = list(inputs)
        if self.with_context:
            args.insert(0, ctx)
        return self.compute(*args, **dict(self.config))


def _literal(*, value: Any) -> Any:
    return value


def task(
    name: str,
    compute: Compute,
    *upstream: str,
    config: Optional[Dict[str, Any]] = None,
    best_effort: bool = False,
    with_context: bool = False,
) -> Task:
    """Atalho declarativo: `task("data_train", training, "data_split")`."""
    return Task(
        name=name,
        compute=compute,
        upstream=tuple(upstream),
        config=dict(config or {}),
        best_effort=best_effort,
        with_context=with_context,
    )


def value(name: str, literal: Any) -> Task:
    """Task literal: o resultado é o próprio valor configurado.

    O valor participa do fingerprint via `config`, portanto trocar o literal
    invalida a Task e todo o seu downstream.
    """
    return Task(name=name, compute=_literal, config={"value": literal})


__all__ = ["Compute", "Task", "task", "value"]
