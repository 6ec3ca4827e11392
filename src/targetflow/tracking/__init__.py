# src/targetflow/tracking/__init__.py
"""
Trackers do targetflow.

- base           → protocolo `Tracker`
- memory         → `InMemoryTracker` (default, testes)
- mlflow_tracker → `MlflowTracker` (servidor MLflow)

`build_tracker(config)` escolhe o backend a partir de `tracking.backend`.
"""

from __future__ import annotations

from typing import Any, Dict

from .base import Tracker, supports_model_registry
from .memory import InMemoryTracker, TrackedRun


def build_tracker(config: Dict[str, Any]) -> Any:
    """
    Instancia o tracker configurado.

    Raises:
        ValueError: Se `tracking.backend` não for suportado.
    """
    cfg = (config or {}).get("tracking", {}) or {}
    backend = str(cfg.get("backend", "memory")).lower()

    if backend == "memory":
        return InMemoryTracker()
    if backend == "mlflow":
        from .mlflow_tracker import MlflowTracker

        return MlflowTracker(
            tracking_uri=cfg.get("uri"),
            experiment=str(cfg.get("experiment") or "default"),
            artifact_location=cfg.get("artifact_location"),
        )
    raise ValueError(f"unsupported tracking backend: {backend}")


__all__ = ["Tracker", "InMemoryTracker", "TrackedRun", "build_tracker", "supports_model_registry"]
