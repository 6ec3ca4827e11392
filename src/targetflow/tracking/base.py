# src/targetflow/tracking/base.py
"""
Contrato de tracking do targetflow.

O tracker recebe sempre o `run_id` explicitamente: não existe "run
corrente" ambiente. O Engine abre o run (`start_run`), encaminha params,
métricas e artefatos via RunSession e fecha o run (`end_run`) exatamente
uma vez.

Operações opcionais (registro de modelos) são expostas por trackers que
as suportam; Tasks devem checar `supports_model_registry`.
"""

from __future__ import annotations

from typing import Any, Optional, Protocol, runtime_checkable


@runtime_checkable
class Tracker(Protocol):
    """Protocolo mínimo de tracking usado pelo Engine."""

    def start_run(self, run_name: Optional[str] = None) -> str: ...

    def log_param(self, run_id: str, key: str, value: Any) -> None: ...

    def log_metric(self, run_id: str, key: str, value: float, step: int = 0) -> None: ...

    def log_artifact(self, run_id: str, path: str) -> None: ...

    def end_run(self, run_id: str, status: str) -> None: ...


def supports_model_registry(tracker: Any) -> bool:
    return callable(getattr(tracker, "register_model_version", None))


__all__ = ["Tracker", "supports_model_registry"]
