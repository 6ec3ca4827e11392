# src/targetflow/core/traceability/run_record.py
"""
Run Record v1 — registro rastreável de uma execução do targetflow.

O Run Record consolida, de forma determinística e auditável:
    - metadados da execução (run_id, timestamps, status, hash da config)
    - parâmetros `(key, value)` na ordem em que foram registrados
    - métricas `(key, value, step)` na ordem em que foram registradas
    - referências de artefatos
    - estado final de cada Task (fingerprint, duração, erro)
    - Event Log ordenado

Ciclo de vida:
    - criado aberto no início do run (`create_run_record`)
    - mutado apenas pela sessão do run (propriedade do Engine)
    - fechado exatamente uma vez (`close`); qualquer mutação ou novo
      fechamento após isso levanta `RunRecordClosedError`

Decisões arquiteturais:
    - UTC é o timezone canônico para todos os timestamps
    - O formato de persistência é JSON determinístico (sort_keys)
    - O Run Record é independente do backend de tracking; o tracker recebe
      as mesmas operações em paralelo

Limites explícitos:
    - Não executa pipeline
    - Não decide políticas de execução
    - Não realiza migração de versões de schema
"""

from __future__ import annotations

import json
from dataclasses import dataclass, field
from datetime import datetime, timezone
from pathlib import Path
from typing import Any, Dict, List, Optional, Union

from targetflow.core.exceptions import RunRecordClosedError


RUN_STATUS_RUNNING = "running"
RUN_STATUS_FINISHED = "finished"
RUN_STATUS_FAILED = "failed"


def _ensure_tzaware_utc(dt: datetime) -> datetime:
    """Timestamps timezone-naive são assumidos como UTC."""
    if dt.tzinfo is None:
        return dt.replace(tzinfo=timezone.utc)
    return dt.astimezone(timezone.utc)


def _iso(dt: datetime) -> str:
    return _ensure_tzaware_utc(dt).isoformat()


def _ms_between(start: datetime, end: datetime) -> int:
    """Duração em milissegundos, nunca negativa."""
    s = _ensure_tzaware_utc(start)
    e = _ensure_tzaware_utc(end)
    return max(0, int((e - s).total_seconds() * 1000))


@dataclass
class RunRecord:
    """
    Registro de uma execução de pipeline.

    Campos principais:
        - run: metadados (run_id, started_at, finished_at, status, config_hash)
        - params: lista ordenada de {key, value, task}
        - metrics: lista ordenada de {key, value, step, task}
        - artifacts: lista ordenada de {path, task}
        - tasks: estado final por Task
        - events: Event Log ordenado

    Invariantes:
        - `params`, `metrics`, `artifacts` e `events` preservam a ordem de chamada
        - Após `close`, o registro é somente leitura
    """
    run: Dict[str, Any]
    params: List[Dict[str, Any]] = field(default_factory=list)
    metrics: List[Dict[str, Any]] = field(default_factory=list)
    artifacts: List[Dict[str, Any]] = field(default_factory=list)
    tasks: Dict[str, Dict[str, Any]] = field(default_factory=dict)
    events: List[Dict[str, Any]] = field(default_factory=list)

    # ------------------------------------------------------------------
    # Estado
    # ------------------------------------------------------------------
    @property
    def run_id(self) -> str:
        return str(self.run.get("run_id"))

    @property
    def status(self) -> str:
        return str(self.run.get("status", RUN_STATUS_RUNNING))

    @property
    def closed(self) -> bool:
        return self.status != RUN_STATUS_RUNNING

    def _require_open(self) -> None:
        if self.closed:
            raise RunRecordClosedError(
                message=f"Run record '{self.run_id}' is already closed",
                details={"run_id": self.run_id, "status": self.status},
            )

    # ------------------------------------------------------------------
    # Log de tracking
    # ------------------------------------------------------------------
    def add_param(self, key: str, value: Any, *, task: Optional[str] = None) -> None:
        self._require_open()
        self.params.append({"key": key, "value": value, "task": task})

    def add_metric(
        self,
        key: str,
        value: float,
        step: int = 0,
        *,
        task: Optional[str] = None,
        ts: Optional[datetime] = None,
    ) -> None:
        self._require_open()
        self.metrics.append(
            {
                "key": key,
                "value": float(value),
                "step": int(step),
                "task": task,
                "timestamp": _iso(ts or datetime.now(timezone.utc)),
            }
        )

    def add_artifact(self, path: str, *, task: Optional[str] = None) -> None:
        self._require_open()
        self.artifacts.append({"path": str(path), "task": task})

    def add_event(
        self,
        *,
        event_type: str,
        ts: datetime,
        task: Optional[str] = None,
        payload: Optional[Dict[str, Any]] = None,
    ) -> None:
        """Adiciona um evento explícito ao Event Log (ordem de chamada)."""
        self._require_open()
        ev: Dict[str, Any] = {"event_type": event_type, "timestamp": _iso(ts)}
        if task is not None:
            ev["task"] = task
        if payload is not None:
            ev["payload"] = payload
        self.events.append(ev)

    # ------------------------------------------------------------------
    # Estado de Tasks
    # ------------------------------------------------------------------
    def task_started(self, *, task: str, fingerprint: str, ts: datetime) -> None:
        self._require_open()
        entry = self.tasks.setdefault(task, {"task": task})
        entry.update(
            {
                "state": "running",
                "fingerprint": fingerprint,
                "started_at": _iso(ts),
            }
        )
        self.add_event(event_type="task_started", ts=ts, task=task, payload={"fingerprint": fingerprint})

    def task_finished(
        self,
        *,
        task: str,
        state: str,
        ts: datetime,
        fingerprint: Optional[str] = None,
        error: Optional[Dict[str, Any]] = None,
    ) -> None:
        """
        Registra o estado terminal de uma Task.

        A duração é calculada a partir de `started_at` quando a Task chegou a
        executar (RUNNING); Tasks puladas ficam com duração zero.
        """
        self._require_open()
        entry = self.tasks.setdefault(task, {"task": task})
        started_iso = entry.get("started_at")
        started_dt = datetime.fromisoformat(started_iso) if started_iso else ts

        entry.update(
            {
                "state": state,
                "finished_at": _iso(ts),
                "duration_ms": _ms_between(started_dt, ts),
            }
        )
        if fingerprint is not None:
            entry["fingerprint"] = fingerprint
        if error is not None:
            entry["error"] = error

        payload: Dict[str, Any] = {"state": state, "duration_ms": entry["duration_ms"]}
        if error is not None:
            payload["error"] = error
        self.add_event(event_type="task_finished", ts=ts, task=task, payload=payload)

    def task_state(self, task: str) -> Optional[str]:
        entry = self.tasks.get(task)
        return None if entry is None else entry.get("state")

    # ------------------------------------------------------------------
    # Fechamento
    # ------------------------------------------------------------------
    def close(self, *, status: str, ts: datetime, error: Optional[Dict[str, Any]] = None) -> None:
        """Finaliza o registro. Só pode ser chamado uma vez."""
        if status not in (RUN_STATUS_FINISHED, RUN_STATUS_FAILED):
            raise ValueError(f"Invalid final run status: {status}")
        self.add_event(event_type="run_closed", ts=ts, payload={"status": status})
        self.run["finished_at"] = _iso(ts)
        self.run["status"] = status
        if error is not None:
            self.run["error"] = error

    # ------------------------------------------------------------------
    # Serialização
    # ------------------------------------------------------------------
    def to_dict(self) -> Dict[str, Any]:
        return {
            "run": dict(self.run),
            "params": [dict(p) for p in self.params],
            "metrics": [dict(m) for m in self.metrics],
            "artifacts": [dict(a) for a in self.artifacts],
            "tasks": {k: dict(v) for k, v in self.tasks.items()},
            "events": [dict(e) for e in self.events],
        }

    @classmethod
    def from_dict(cls, data: Dict[str, Any]) -> "RunRecord":
        return cls(
            run=dict(data.get("run", {})),
            params=[dict(p) for p in (data.get("params", []) or [])],
            metrics=[dict(m) for m in (data.get("metrics", []) or [])],
            artifacts=[dict(a) for a in (data.get("artifacts", []) or [])],
            tasks={k: dict(v) for k, v in (data.get("tasks", {}) or {}).items()},
            events=[dict(e) for e in (data.get("events", []) or [])],
        )


def create_run_record(
    *,
    run_id: str,
    started_at: datetime,
    config_hash: str,
    targetflow_version: str,
) -> RunRecord:
    """
    Cria o Run Record inicial (aberto) de uma execução.

    Emite explicitamente o evento `run_started`; nenhum outro evento é
    inferido.
    """
    record = RunRecord(
        run={
            "run_id": run_id,
            "started_at": _iso(started_at),
            "status": RUN_STATUS_RUNNING,
            "config_hash": config_hash,
            "targetflow_version": targetflow_version,
        }
    )
    record.add_event(event_type="run_started", ts=started_at)
    return record


def save_run_record(record: Union[RunRecord, Dict[str, Any]], path: Path) -> None:
    """Persiste o Run Record em JSON (chaves ordenadas, indentado)."""
    data = record.to_dict() if isinstance(record, RunRecord) else record
    path.parent.mkdir(parents=True, exist_ok=True)
    path.write_text(
        json.dumps(data, ensure_ascii=False, indent=2, sort_keys=True, default=str),
        encoding="utf-8",
    )


def load_run_record(path: Path) -> RunRecord:
    data = json.loads(path.read_text(encoding="utf-8"))
    return RunRecord.from_dict(data)
