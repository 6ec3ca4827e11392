# src/targetflow/core/pipeline/context.py
"""
Contexto de execução do pipeline.

Este módulo define:
    - `RunContext`: estado explícito de um run (identidade, config, event log)
    - `TaskContext`: visão por Task do run, entregue explicitamente às Tasks
      declaradas com `with_context=True`

O TaskContext substitui o "run corrente" ambiente das bibliotecas de
tracking: toda chamada de log_param / log_metric / log_artifact passa pela
sessão do run, que é de propriedade exclusiva do Engine.

Princípios fundamentais:
    - Isolamento por execução (cada run possui seu próprio contexto)
    - Ausência de estado global compartilhado
    - Logs sempre incluem `run_id` e `task`

Limites explícitos:
    - Não executa Tasks
    - Não persiste dados automaticamente
    - Não finaliza o run (responsabilidade do Engine)
"""

from __future__ import annotations

from dataclasses import dataclass, field
from datetime import datetime, timezone
from typing import Any, Dict, List, Optional, Protocol


class RunSessionLike(Protocol):
    """Operações do run expostas às Tasks (implementadas por RunSession)."""

    run_id: str

    def log_param(self, key: str, value: Any, *, task: Optional[str] = None) -> None: ...

    def log_metric(self, key: str, value: float, step: int = 0, *, task: Optional[str] = None) -> None: ...

    def log_artifact(self, path: str, *, task: Optional[str] = None) -> None: ...

    def register_model_version(
        self, name: str, source: str, *, task: Optional[str] = None
    ) -> Optional[Dict[str, Any]]: ...


@dataclass
class RunContext:
    """
    Contexto de execução de um run do pipeline.

    Consolida:
        - identidade da execução (run_id, created_at)
        - configuração resolvida
        - metadados livres (ex.: diretórios, origem)
        - event log estruturado
        - warnings por Task

    Invariantes:
        - Eventos incluem sempre `run_id` e `task`
        - Warnings são associados explicitamente a uma Task
    """
    run_id: str
    created_at: datetime
    config: Dict[str, Any]
    meta: Dict[str, Any] = field(default_factory=dict)

    events: List[Dict[str, Any]] = field(default_factory=list, init=False)
    warnings: Dict[str, List[str]] = field(default_factory=dict, init=False)

    # -----------------------------
    # Logging & warnings
    # -----------------------------
    def log(self, *, task: Optional[str], level: str, message: str, **extra: Any) -> Dict[str, Any]:
        event = {
            "run_id": self.run_id,
            "task": task,
            "level": level,
            "message": message,
            "timestamp": datetime.now(timezone.utc).isoformat(),
        }
        event.update(extra)
        self.events.append(event)
        return event

    def add_warning(self, *, task: str, message: str) -> None:
        if task not in self.warnings:
            self.warnings[task] = []
        self.warnings[task].append(message)

    # -----------------------------
    # Config
    # -----------------------------
    def task_config(self, task: str) -> Dict[str, Any]:
        tasks = self.config.get("tasks", {}) if isinstance(self.config, dict) else {}
        cfg = tasks.get(task, {}) if isinstance(tasks, dict) else {}
        return cfg if isinstance(cfg, dict) else {}


@dataclass
class TaskContext:
    """Contexto explícito entregue a uma Task durante sua compute."""

    task: str
    run: RunContext
    session: RunSessionLike
    storage: Any = None

    @property
    def run_id(self) -> str:
        return self.session.run_id

    @property
    def config(self) -> Dict[str, Any]:
        return self.run.task_config(self.task)

    def log_param(self, key: str, value: Any) -> None:
        self.session.log_param(key, value, task=self.task)

    def log_params(self, params: Dict[str, Any]) -> None:
        for key in sorted(params):
            self.log_param(key, params[key])

    def log_metric(self, key: str, value: float, step: int = 0) -> None:
        self.session.log_metric(key, value, step, task=self.task)

    def log_artifact(self, path: str) -> None:
        self.session.log_artifact(str(path), task=self.task)

    def register_model_version(self, name: str, source: str) -> Optional[Dict[str, Any]]:
        return self.session.register_model_version(name, source, task=self.task)

    def log(self, level: str, message: str, **extra: Any) -> None:
        self.run.log(task=self.task, level=level, message=message, **extra)

    def warn(self, message: str) -> None:
        self.run.add_warning(task=self.task, message=message)
