# src/targetflow/core/pipeline/types.py
"""
Tipos canônicos do pipeline do targetflow.

Componentes principais:
    - TaskState   → enum de estados de uma Task durante um run
    - TaskOutcome → resultado imutável de uma Task ao fim do run

Máquina de estados (por run):

    PENDING → (RUNNING → {SUCCEEDED, FAILED})
            | SKIPPED_CACHED
            | SKIPPED_DEPENDENCY_FAILED

Invariantes:
    - Enums possuem valores textuais canônicos (serializáveis em JSON)
    - TaskOutcome é imutável
    - Tipos não dependem de engine, cache ou tracking
"""

from __future__ import annotations

from dataclasses import dataclass
from enum import Enum
from typing import Any, Dict, Optional

from targetflow.core.errors import ErrorPayload


class TaskState(str, Enum):
    """
    Estados possíveis de uma Task durante uma execução do pipeline.

    Estados terminais:
        - SUCCEEDED: compute executada com sucesso e resultado memoizado
        - FAILED: compute levantou exceção (encapsulada em TaskExecutionError)
        - SKIPPED_CACHED: fingerprint encontrado no Memoization Store
        - SKIPPED_DEPENDENCY_FAILED: algum upstream terminou em falha

    Estados transitórios:
        - PENDING: ainda não processada (permanece assim se o run parar antes)
        - RUNNING: compute em andamento
    """
    PENDING = "pending"
    RUNNING = "running"
    SUCCEEDED = "succeeded"
    FAILED = "failed"
    SKIPPED_CACHED = "skipped_cached"
    SKIPPED_DEPENDENCY_FAILED = "skipped_dependency_failed"

    @property
    def is_terminal(self) -> bool:
        return self in _TERMINAL

    @property
    def is_ok(self) -> bool:
        """Estado terminal que produziu um valor utilizável por downstream."""
        return self in (TaskState.SUCCEEDED, TaskState.SKIPPED_CACHED)


_TERMINAL = frozenset(
    {
        TaskState.SUCCEEDED,
        TaskState.FAILED,
        TaskState.SKIPPED_CACHED,
        TaskState.SKIPPED_DEPENDENCY_FAILED,
    }
)


@dataclass(frozen=True)
class TaskOutcome:
    """
    Resultado imutável de uma Task em um run.

    Campos:
        - name: nome da Task
        - state: estado final (ou PENDING se o run parou antes)
        - fingerprint: chave de memoização calculada (None se não calculada)
        - value: valor produzido ou recuperado do cache (não serializado)
        - error: payload de erro quando FAILED / SKIPPED_DEPENDENCY_FAILED
        - duration_ms: duração da compute (0 quando não executada)
    """
    name: str
    state: TaskState
    fingerprint: Optional[str] = None
    value: Any = None
    error: Optional[ErrorPayload] = None
    duration_ms: int = 0

    def to_dict(self) -> Dict[str, Any]:
        """Representação serializável (sem o valor)."""
        return {
            "name": self.name,
            "state": self.state.value,
            "fingerprint": self.fingerprint,
            "error": self.error.to_dict() if self.error is not None else None,
            "duration_ms": self.duration_ms,
        }
