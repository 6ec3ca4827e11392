# src/targetflow/core/exceptions.py
"""
targetflow — Exceções canônicas (v1)

Este módulo define a hierarquia tipada de exceções do targetflow.

Taxonomia:
- Tempo de configuração (fail fast, abortam a construção do pipeline):
    DuplicateTaskError, UnknownTaskError,
    UndefinedDependencyError, CyclicDependencyError
- Tempo de execução (registradas no Run Record antes de chegar ao chamador):
    TaskExecutionError, DependencyFailedError

Regras:
- Exceções carregam apenas dados estruturados (serializáveis) em `details`.
- A mensagem é curta e humana; nada de stack trace embutido.
- O mapeamento para ErrorPayload é determinístico (nome da classe = código).
"""

from __future__ import annotations

from dataclasses import dataclass, field
from typing import Any, Dict, List, Optional


@dataclass(frozen=True, eq=False)
class TargetflowException(Exception):
    """Base class para exceções internas do targetflow.

    Importante:
    - Sempre carregar dados estruturados em `details`
    - Mensagem deve ser curta e humana
    """

    message: str
    details: Dict[str, Any] = field(default_factory=dict)
    hint: Optional[str] = None

    def __str__(self) -> str:
        return self.message


# ---------------------------------------------------------------------------
# Configuração do pipeline (fail fast)
# ---------------------------------------------------------------------------

@dataclass(frozen=True, eq=False)
class PipelineConfigurationError(TargetflowException):
    """Base para erros estruturais detectados antes de qualquer execução."""


@dataclass(frozen=True, eq=False)
class DuplicateTaskError(PipelineConfigurationError):
    """Uma Task com o mesmo nome já está registrada."""

    @classmethod
    def for_name(cls, name: str) -> "DuplicateTaskError":
        return cls(
            message=f"Duplicate task name: {name}",
            details={"task": name},
            hint="Renomeie uma das Tasks; nomes são a identidade da Task.",
        )


@dataclass(frozen=True, eq=False)
class UnknownTaskError(PipelineConfigurationError):
    """Consulta a uma Task que não existe no registry."""

    @classmethod
    def for_name(cls, name: str) -> "UnknownTaskError":
        return cls(message=f"Unknown task: {name}", details={"task": name})


@dataclass(frozen=True, eq=False)
class UndefinedDependencyError(PipelineConfigurationError):
    """Uma Task declara upstream que não foi registrado."""

    @classmethod
    def for_edge(cls, task: str, upstream: str) -> "UndefinedDependencyError":
        return cls(
            message=f"Task '{task}' depends on undefined task '{upstream}'",
            details={"task": task, "upstream": upstream},
            hint="Registre a Task upstream ou remova a dependência.",
        )


@dataclass(frozen=True, eq=False)
class CyclicDependencyError(PipelineConfigurationError):
    """O grafo de dependências contém um ciclo.

    `cycle` é a sequência ordenada de nomes, repetindo o primeiro no fim
    (ex.: ["a", "b", "a"]).
    """

    cycle: List[str] = field(default_factory=list)

    @classmethod
    def for_cycle(cls, cycle: List[str]) -> "CyclicDependencyError":
        return cls(
            message="Cycle detected in task dependency graph: " + " -> ".join(cycle),
            details={"cycle": list(cycle)},
            hint="Quebre o ciclo removendo uma das dependências listadas.",
            cycle=list(cycle),
        )


# ---------------------------------------------------------------------------
# Execução
# ---------------------------------------------------------------------------

@dataclass(frozen=True, eq=False)
class TaskRunError(TargetflowException):
    """Base para falhas em tempo de execução associadas a uma Task."""

    task: str = ""


@dataclass(frozen=True, eq=False)
class TaskExecutionError(TaskRunError):
    """A compute reference da Task levantou uma exceção (encapsulada)."""

    @classmethod
    def wrap(cls, task: str, exc: BaseException) -> "TaskExecutionError":
        return cls(
            message=f"Task '{task}' failed: {exc.__class__.__name__}: {exc}",
            details={
                "task": task,
                "exception_class": exc.__class__.__name__,
                "exception_message": str(exc),
            },
            hint="Corrija a Task e reexecute; resultados já memoizados continuam válidos.",
            task=task,
        )


@dataclass(frozen=True, eq=False)
class DependencyFailedError(TaskRunError):
    """A Task não foi executada porque um upstream falhou."""

    failed_upstream: List[str] = field(default_factory=list)

    @classmethod
    def for_task(cls, task: str, failed_upstream: List[str]) -> "DependencyFailedError":
        return cls(
            message=f"Task '{task}' skipped: upstream failed ({', '.join(failed_upstream)})",
            details={"task": task, "failed_upstream": list(failed_upstream)},
            task=task,
            failed_upstream=list(failed_upstream),
        )


# ---------------------------------------------------------------------------
# Run Record
# ---------------------------------------------------------------------------

@dataclass(frozen=True, eq=False)
class RunRecordClosedError(TargetflowException):
    """Tentativa de mutar ou finalizar novamente um Run Record já fechado."""


__all__ = [
    "TargetflowException",
    "PipelineConfigurationError",
    "DuplicateTaskError",
    "UnknownTaskError",
    "UndefinedDependencyError",
    "CyclicDependencyError",
    "TaskRunError",
    "TaskExecutionError",
    "DependencyFailedError",
    "RunRecordClosedError",
]
