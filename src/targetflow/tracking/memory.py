# src/targetflow/tracking/memory.py
"""
Tracker em memória.

Implementação completa do protocolo Tracker sem dependências externas,
usada como backend default (`tracking.backend: memory`) e nos testes.

Invariantes:
    - run_ids são determinísticos por instância (`run-0001`, `run-0002`, ...)
    - operações em run inexistente ou já encerrado falham com KeyError /
      RuntimeError
    - métricas preservam a ordem de chegada e o `step`
"""

from __future__ import annotations

from dataclasses import dataclass, field
from typing import Any, Dict, List, Optional, Tuple


@dataclass
class TrackedRun:
    run_id: str
    run_name: Optional[str] = None
    status: str = "running"
    params: Dict[str, Any] = field(default_factory=dict)
    metrics: List[Tuple[str, float, int]] = field(default_factory=list)
    artifacts: List[str] = field(default_factory=list)

    def metric_history(self, key: str) -> List[Tuple[int, float]]:
        return [(step, value) for k, value, step in self.metrics if k == key]

    def last_metric(self, key: str) -> Optional[float]:
        history = self.metric_history(key)
        return history[-1][1] if history else None


class InMemoryTracker:
    """Tracker que mantém runs, métricas e versões de modelo em memória."""

    def __init__(self) -> None:
        self.runs: Dict[str, TrackedRun] = {}
        self.models: Dict[str, List[Dict[str, Any]]] = {}
        self._counter = 0

    def start_run(self, run_name: Optional[str] = None) -> str:
        self._counter += 1
        run_id = f"run-{self._counter:04d}"
        self.runs[run_id] = TrackedRun(run_id=run_id, run_name=run_name)
        return run_id

    def _open(self, run_id: str) -> TrackedRun:
        run = self.runs[run_id]
        if run.status != "running":
            raise RuntimeError(f"run '{run_id}' is already ended (status={run.status})")
        return run

    def log_param(self, run_id: str, key: str, value: Any) -> None:
        self._open(run_id).params[key] = value

    def log_metric(self, run_id: str, key: str, value: float, step: int = 0) -> None:
        self._open(run_id).metrics.append((key, float(value), int(step)))

    def log_artifact(self, run_id: str, path: str) -> None:
        self._open(run_id).artifacts.append(str(path))

    def end_run(self, run_id: str, status: str) -> None:
        self._open(run_id).status = status

    # -----------------------------
    # Model registry
    # -----------------------------
    def register_model_version(self, name: str, run_id: str, source: str) -> Dict[str, Any]:
        if run_id not in self.runs:
            raise KeyError(run_id)
        versions = self.models.setdefault(name, [])
        entry = {"name": name, "version": len(versions) + 1, "run_id": run_id, "source": source}
        versions.append(entry)
        return entry

    @property
    def last_run(self) -> Optional[TrackedRun]:
        if not self.runs:
            return None
        return self.runs[sorted(self.runs)[-1]]


__all__ = ["InMemoryTracker", "TrackedRun"]
