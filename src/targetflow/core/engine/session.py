# src/targetflow/core/engine/session.py
"""
Sessão de um run: Run Record + tracker, com finalização garantida.

`open_run` é a aquisição escopada do run:

    with open_run(tracker=tracker, ctx=ctx, ...) as session:
        ...

- `tracker.start_run()` é chamado na entrada
- toda operação (param, métrica, artefato) vai para o Run Record e para o
  tracker, nessa ordem
- na saída, o Run Record é fechado e `tracker.end_run` chamado exatamente
  uma vez, inclusive quando uma exceção atravessa o bloco

Uma falha ao salvar o Run Record ou do tracker no fechamento não mascara a
exceção original do run; `end_run` é chamado mesmo quando o salvamento falha.
"""

from __future__ import annotations

from datetime import datetime, timezone
from pathlib import Path
from typing import Any, Dict, Optional

from targetflow.core.config.hashing import compute_config_hash
from targetflow.core.errors import error_from_exception
from targetflow.core.logging import bind, get_logger, unbind
from targetflow.core.pipeline.context import RunContext
from targetflow.core.traceability.run_record import (
    RUN_STATUS_FAILED,
    RUN_STATUS_FINISHED,
    RunRecord,
    create_run_record,
    save_run_record,
)
from targetflow.tracking.base import supports_model_registry

logger = get_logger(__name__)


class RunSession:
    """Operações de tracking de um run aberto (propriedade do Engine)."""

    def __init__(self, *, record: RunRecord, tracker: Any, ctx: RunContext):
        self.record = record
        self.tracker = tracker
        self.ctx = ctx
        self.failed = False
        self.failure: Optional[Dict[str, Any]] = None

    @property
    def run_id(self) -> str:
        return self.record.run_id

    def log_param(self, key: str, value: Any, *, task: Optional[str] = None) -> None:
        self.record.add_param(key, value, task=task)
        self.tracker.log_param(self.run_id, key, value)

    def log_metric(self, key: str, value: float, step: int = 0, *, task: Optional[str] = None) -> None:
        self.record.add_metric(key, value, step, task=task)
        self.tracker.log_metric(self.run_id, key, float(value), int(step))

    def log_artifact(self, path: str, *, task: Optional[str] = None) -> None:
        self.record.add_artifact(path, task=task)
        self.tracker.log_artifact(self.run_id, str(path))

    def register_model_version(self, name: str, source: str, *, task: Optional[str] = None) -> Optional[Dict[str, Any]]:
        """
        Registra uma versão de modelo no tracker, quando suportado.

        Trackers sem registry de modelos apenas geram um evento de aviso; a
        versão criada (ou a ausência dela) fica no Event Log do Run Record.
        """
        ts = datetime.now(timezone.utc)
        if not supports_model_registry(self.tracker):
            logger.warning("model_registry_unsupported", run_id=self.run_id, model=name)
            self.record.add_event(
                event_type="model_version_skipped",
                ts=ts,
                task=task,
                payload={"name": name, "source": source},
            )
            return None

        version = self.tracker.register_model_version(name, self.run_id, source)
        self.record.add_event(event_type="model_version", ts=ts, task=task, payload=dict(version))
        return version

    def mark_failed(self, error: Dict[str, Any]) -> None:
        """Registra a falha do run; o status final será FAILED."""
        self.failed = True
        if self.failure is None:
            self.failure = error


class RunScope:
    """
    Escopo de um run: abre no tracker e garante a finalização única.

    O `run_id` do tracker passa a ser o `run_id` do Run Record e do
    RunContext. Uso:

        with open_run(tracker=tracker, ctx=ctx, targetflow_version=v) as session:
            ...

    Args:
        tracker: Implementação do protocolo Tracker.
        ctx: RunContext do run (recebe o run_id do tracker).
        targetflow_version: Versão registrada no Run Record.
        record_dir: Se informado, o Run Record é salvo em
            `<record_dir>/<run_id>.json` após o fechamento.
    """

    def __init__(
        self,
        *,
        tracker: Any,
        ctx: RunContext,
        targetflow_version: str,
        record_dir: Optional[Path] = None,
    ):
        self.tracker = tracker
        self.ctx = ctx
        self.targetflow_version = targetflow_version
        self.record_dir = record_dir
        self.session: Optional[RunSession] = None

    def __enter__(self) -> RunSession:
        started = datetime.now(timezone.utc)
        run_id = str(self.tracker.start_run())
        self.ctx.run_id = run_id

        record = create_run_record(
            run_id=run_id,
            started_at=started,
            config_hash=compute_config_hash(self.ctx.config),
            targetflow_version=self.targetflow_version,
        )
        self.session = RunSession(record=record, tracker=self.tracker, ctx=self.ctx)
        bind(run_id=run_id)
        logger.info("run_started")
        return self.session

    def __exit__(self, exc_type: Any, exc: Optional[BaseException], tb: Any) -> bool:
        session = self.session
        if session is None:
            raise RuntimeError("run scope exited without being entered")
        record = session.record
        run_id = session.run_id

        if exc is not None:
            session.mark_failed(error_from_exception(exc).to_dict())

        status = RUN_STATUS_FAILED if session.failed else RUN_STATUS_FINISHED
        for ev in self.ctx.events:
            record.add_event(
                event_type="log",
                ts=datetime.fromisoformat(ev["timestamp"]),
                task=ev.get("task"),
                payload={k: v for k, v in ev.items() if k not in ("timestamp", "task", "run_id")},
            )
        record.close(status=status, ts=datetime.now(timezone.utc), error=session.failure)

        try:
            try:
                if self.record_dir is not None:
                    save_run_record(record, Path(self.record_dir) / f"{run_id}.json")
            except Exception:
                status = RUN_STATUS_FAILED
                logger.exception("run_record_save_failed", run_id=run_id)
                if exc is None:
                    raise
            finally:
                logger.info("run_closed", run_id=run_id, status=status)
                self._end_run(run_id, status, exc)
        finally:
            unbind("run_id")
        return False

    def _end_run(self, run_id: str, status: str, exc: Optional[BaseException]) -> None:
        try:
            self.tracker.end_run(run_id, status)
        except Exception:
            logger.exception("tracker_end_run_failed", run_id=run_id)
            if exc is None:
                raise


def open_run(
    *,
    tracker: Any,
    ctx: RunContext,
    targetflow_version: str,
    record_dir: Optional[Path] = None,
) -> RunScope:
    return RunScope(tracker=tracker, ctx=ctx, targetflow_version=targetflow_version, record_dir=record_dir)
