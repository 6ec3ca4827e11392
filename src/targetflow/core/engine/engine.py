# src/targetflow/core/engine/engine.py
"""
Executor do pipeline do targetflow.

Para cada Task, na ordem do plano:
    1. se algum upstream falhou (ou foi pulado por falha) →
       SKIPPED_DEPENDENCY_FAILED (DependencyFailedError registrado)
    2. resolve os outputs upstream deste run e calcula o fingerprint
    3. consulta o Memoization Store:
       - hit  → usa o valor memoizado, SKIPPED_CACHED
       - miss → RUNNING, chama a compute reference; sucesso é memoizado
         (SUCCEEDED); exceção na compute ou na memoização vira
         TaskExecutionError (FAILED)
    4. uma falha interrompe o run, exceto quando a Task é best-effort
       (ou `engine.fail_fast` é False). Em ambos os casos o downstream
       transitivo da falha termina SKIPPED_DEPENDENCY_FAILED; após uma
       interrupção, as demais Tasks permanecem PENDING

Ajustes de rastreabilidade:
- O Engine é o único dono do Run Record (via `open_run`), que é fechado
  exatamente uma vez, mesmo quando uma Task falha.
- Falhas são registradas no Run Record (e no tracker, pelo status final)
  antes de chegarem ao chamador: `execute` retorna o RunResult e
  `RunResult.raise_for_failure()` relança o primeiro TaskExecutionError.
- Entradas já memoizadas nunca são removidas por uma falha posterior.
"""

from __future__ import annotations

import time
from dataclasses import dataclass, field
from datetime import datetime, timezone
from pathlib import Path
from typing import Any, Dict, List, Optional

from targetflow import __version__
from targetflow.core.cache.store import MISS, MemoizationStore
from targetflow.core.errors import ErrorPayload, error_from_exception
from targetflow.core.exceptions import DependencyFailedError, TaskExecutionError
from targetflow.core.logging import get_logger
from targetflow.core.pipeline.context import RunContext, TaskContext
from targetflow.core.pipeline.registry import TaskRegistry
from targetflow.core.pipeline.task import Task
from targetflow.core.pipeline.types import TaskOutcome, TaskState
from targetflow.core.traceability.run_record import RunRecord

from .fingerprint import compute_fingerprint
from .graph import DependencyGraph
from .planner import ExecutionPlan
from .session import RunSession, open_run

logger = get_logger(__name__)

_BROKEN = frozenset({TaskState.FAILED, TaskState.SKIPPED_DEPENDENCY_FAILED})


@dataclass(frozen=True)
class RunResult:
    """Resultado agregado de uma execução de pipeline."""

    run_id: str
    plan: ExecutionPlan
    outcomes: Dict[str, TaskOutcome]
    record: RunRecord
    errors: Dict[str, TaskExecutionError] = field(default_factory=dict)
    causes: Dict[str, BaseException] = field(default_factory=dict, repr=False)

    def state(self, name: str) -> TaskState:
        return self.outcomes[name].state

    def value(self, name: str) -> Any:
        outcome = self.outcomes[name]
        if not outcome.state.is_ok:
            raise KeyError(f"task '{name}' has no value in this run (state={outcome.state.value})")
        return outcome.value

    def names_in(self, state: TaskState) -> List[str]:
        return [n for n in self.plan if self.outcomes[n].state == state]

    @property
    def ok(self) -> bool:
        return not self.errors

    @property
    def halted(self) -> bool:
        """True quando o run parou antes de processar todas as Tasks."""
        return any(o.state == TaskState.PENDING for o in self.outcomes.values())

    def raise_for_failure(self) -> None:
        """Relança o primeiro TaskExecutionError do run (ordem do plano)."""
        for name in self.plan:
            if name in self.errors:
                raise self.errors[name] from self.causes.get(name)


class Engine:
    """Executor canônico (sequencial, em ordem de plano)."""

    def __init__(
        self,
        *,
        store: MemoizationStore,
        tracker: Any,
        ctx: RunContext,
        storage: Any = None,
        record_dir: Optional[Path] = None,
    ):
        self.store = store
        self.tracker = tracker
        self.ctx = ctx
        self.storage = storage
        self.record_dir = record_dir

    # ------------------------------------------------------------------
    # Políticas (config)
    # ------------------------------------------------------------------
    def _fail_fast(self) -> bool:
        engine_cfg = (self.ctx.config or {}).get("engine", {}) or {}
        return bool(engine_cfg.get("fail_fast", True))

    def _is_best_effort(self, task: Task) -> bool:
        cfg = self.ctx.task_config(task.name)
        return bool(cfg.get("best_effort", task.best_effort))

    # ------------------------------------------------------------------
    # Execução
    # ------------------------------------------------------------------
    def execute(self, plan: ExecutionPlan, registry: TaskRegistry, graph: DependencyGraph) -> RunResult:
        outcomes: Dict[str, TaskOutcome] = {name: TaskOutcome(name=name, state=TaskState.PENDING) for name in plan}
        digests: Dict[str, str] = {}
        errors: Dict[str, TaskExecutionError] = {}
        causes: Dict[str, BaseException] = {}

        with open_run(
            tracker=self.tracker,
            ctx=self.ctx,
            targetflow_version=__version__,
            record_dir=self.record_dir,
        ) as session:
            halted = False
            for name in plan:
                task = registry.get(name)

                failed_upstream = [d for d in graph.dependencies(name) if outcomes[d].state in _BROKEN]
                if failed_upstream:
                    outcomes[name] = self._skip_dependency_failed(session, name, failed_upstream)
                    continue
                if halted:
                    continue

                fingerprint = compute_fingerprint(task, [digests[d] for d in task.upstream])
                entry = self.store.lookup(fingerprint)
                if entry is not MISS:
                    digests[name] = entry.value_digest
                    outcomes[name] = TaskOutcome(
                        name=name,
                        state=TaskState.SKIPPED_CACHED,
                        fingerprint=fingerprint,
                        value=entry.value,
                    )
                    session.record.task_finished(
                        task=name,
                        state=TaskState.SKIPPED_CACHED.value,
                        ts=datetime.now(timezone.utc),
                        fingerprint=fingerprint,
                    )
                    self.ctx.log(task=name, level="info", message="skipped (cached)", fingerprint=fingerprint)
                    continue

                outcome, exc, digest = self._run_task(session, task, fingerprint, outcomes)
                outcomes[name] = outcome
                if exc is None:
                    digests[name] = digest
                    continue

                wrapped = TaskExecutionError.wrap(name, exc)
                errors[name] = wrapped
                causes[name] = exc
                session.mark_failed(error_from_exception(wrapped).to_dict())

                if self._fail_fast() and not self._is_best_effort(task):
                    logger.error("run_halted", run_id=session.run_id, task=name)
                    self.ctx.log(task=name, level="error", message="run halted")
                    halted = True

        return RunResult(
            run_id=session.run_id,
            plan=plan,
            outcomes=outcomes,
            record=session.record,
            errors=errors,
            causes=causes,
        )

    def _run_task(
        self,
        session: RunSession,
        task: Task,
        fingerprint: str,
        outcomes: Dict[str, TaskOutcome],
    ) -> "tuple[TaskOutcome, Optional[Exception], Optional[str]]":
        """
        Executa a compute reference e memoiza o Result.

        Uma falha ao memoizar (ex.: valor não serializável) conta como falha
        da Task: nada é registrado como SUCCEEDED antes do store concluir.
        """
        name = task.name
        outcomes[name] = TaskOutcome(name=name, state=TaskState.RUNNING, fingerprint=fingerprint)
        session.record.task_started(task=name, fingerprint=fingerprint, ts=datetime.now(timezone.utc))
        self.ctx.log(task=name, level="info", message="task started", fingerprint=fingerprint)

        inputs = [outcomes[d].value for d in task.upstream]
        task_ctx = TaskContext(task=name, run=self.ctx, session=session, storage=self.storage)

        started = time.perf_counter()
        try:
            value = task.invoke(inputs, task_ctx)
        except Exception as exc:
            return self._failed(session, name, fingerprint, exc, started, phase="compute"), exc, None

        try:
            digest = self.store.store(fingerprint, value, task=name)["value_digest"]
        except Exception as exc:
            return self._failed(session, name, fingerprint, exc, started, phase="memoize"), exc, None

        duration_ms = int((time.perf_counter() - started) * 1000)
        session.record.task_finished(
            task=name,
            state=TaskState.SUCCEEDED.value,
            ts=datetime.now(timezone.utc),
            fingerprint=fingerprint,
        )
        self.ctx.log(task=name, level="info", message="task succeeded", duration_ms=duration_ms)
        return (
            TaskOutcome(
                name=name,
                state=TaskState.SUCCEEDED,
                fingerprint=fingerprint,
                value=value,
                duration_ms=duration_ms,
            ),
            None,
            digest,
        )

    def _failed(
        self,
        session: RunSession,
        name: str,
        fingerprint: str,
        exc: Exception,
        started: float,
        *,
        phase: str,
    ) -> TaskOutcome:
        duration_ms = int((time.perf_counter() - started) * 1000)
        payload = error_from_exception(TaskExecutionError.wrap(name, exc))
        session.record.task_finished(
            task=name,
            state=TaskState.FAILED.value,
            ts=datetime.now(timezone.utc),
            error=payload.to_dict(),
        )
        self.ctx.log(
            task=name,
            level="error",
            message="task failed",
            phase=phase,
            error_type=exc.__class__.__name__,
            error_message=str(exc) or "error",
        )
        logger.warning("task_failed", task=name, phase=phase, error_type=exc.__class__.__name__)
        return TaskOutcome(
            name=name,
            state=TaskState.FAILED,
            fingerprint=fingerprint,
            error=payload,
            duration_ms=duration_ms,
        )

    def _skip_dependency_failed(self, session: RunSession, name: str, failed_upstream: List[str]) -> TaskOutcome:
        payload: ErrorPayload = error_from_exception(DependencyFailedError.for_task(name, failed_upstream))
        session.record.task_finished(
            task=name,
            state=TaskState.SKIPPED_DEPENDENCY_FAILED.value,
            ts=datetime.now(timezone.utc),
            error=payload.to_dict(),
        )
        self.ctx.log(
            task=name,
            level="warning",
            message="skipped due to failed dependency",
            failed_upstream=list(failed_upstream),
        )
        return TaskOutcome(name=name, state=TaskState.SKIPPED_DEPENDENCY_FAILED, error=payload)

    # ------------------------------------------------------------------
    # Inspeção sem execução
    # ------------------------------------------------------------------
    def outdated(self, plan: ExecutionPlan, registry: TaskRegistry, graph: DependencyGraph) -> List[str]:
        """
        Tasks que seriam (re)computadas por `execute`, sem executar nada.

        Uma Task está desatualizada quando algum upstream está desatualizado
        ou quando seu fingerprint não está no Memoization Store.
        """
        digests: Dict[str, str] = {}
        stale: List[str] = []
        stale_set = set()

        for name in plan:
            task = registry.get(name)
            if any(d in stale_set for d in task.upstream):
                stale.append(name)
                stale_set.add(name)
                continue

            fingerprint = compute_fingerprint(task, [digests[d] for d in task.upstream])
            digest = self.store.value_digest_for(fingerprint)
            if digest is None:
                stale.append(name)
                stale_set.add(name)
                continue
            digests[name] = digest

        return stale
