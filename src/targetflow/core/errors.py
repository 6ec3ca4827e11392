# src/targetflow/core/errors.py
"""
targetflow — Estruturas canônicas de erro (v1)

Erros são artefatos da execução e fazem parte do Run Record, devendo ser:

- explícitos
- serializáveis
- rastreáveis

O Engine converte qualquer exceção capturada em `ErrorPayload` antes de
registrá-la; o payload nunca carrega stack trace cru.
"""

from __future__ import annotations

from dataclasses import asdict, dataclass
from typing import Any, Dict, Optional

from .exceptions import TargetflowException


@dataclass(frozen=True)
class ErrorPayload:
    """
    Payload canônico de erro.

    Campos:
    - type: código estável do erro (não é texto livre)
    - message: mensagem curta, humana e objetiva
    - details: dados estruturados relevantes para diagnóstico
    - hint: ação sugerida ao operador
    """

    type: str
    message: str
    details: Dict[str, Any]
    hint: Optional[str] = None

    def to_dict(self) -> Dict[str, Any]:
        return asdict(self)

    @classmethod
    def from_dict(cls, data: Dict[str, Any]) -> "ErrorPayload":
        return cls(
            type=str(data.get("type", TASK_EXECUTION_ERROR)),
            message=str(data.get("message", "")),
            details=dict(data.get("details", {}) or {}),
            hint=data.get("hint"),
        )


# ---------------------------------------------------------------------------
# Catálogo canônico de tipos de erro (v1)
# ---------------------------------------------------------------------------

# Configuração do pipeline
DUPLICATE_TASK = "DuplicateTaskError"
UNKNOWN_TASK = "UnknownTaskError"
UNDEFINED_DEPENDENCY = "UndefinedDependencyError"
CYCLIC_DEPENDENCY = "CyclicDependencyError"

# Execução
TASK_EXECUTION_ERROR = "TaskExecutionError"
DEPENDENCY_FAILED = "DependencyFailedError"


def error_from_exception(exc: BaseException) -> ErrorPayload:
    """Converte exceções em ErrorPayload (serializável).

    - TargetflowException: já vem com message/details/hint; o código é o
      nome da classe.
    - Outras exceções: encapsuladas como TASK_EXECUTION_ERROR, preservando
      apenas classe e mensagem.
    """
    if isinstance(exc, TargetflowException):
        return ErrorPayload(
            type=exc.__class__.__name__,
            message=exc.message or "Erro de execução",
            details=dict(exc.details or {}),
            hint=exc.hint,
        )

    return ErrorPayload(
        type=TASK_EXECUTION_ERROR,
        message=str(exc) or "Erro inesperado durante execução",
        details={"exception_class": exc.__class__.__name__},
        hint="Verifique o event log do run e a definição da Task",
    )
