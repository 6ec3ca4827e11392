# src/targetflow/pipeline.py
"""
Fachada de alto nível do targetflow.

`Pipeline` junta registro, configuração, Memoization Store, tracker e
storage e expõe as operações de uso diário:

    pipeline = Pipeline(registry, config)
    pipeline.plan()        # ordem de execução
    pipeline.outdated()    # Tasks que seriam recomputadas
    result = pipeline.make()
    pipeline.read("model") # último valor memoizado de uma Task
    pipeline.destroy()     # descarta o Memoization Store

O grafo é construído e validado na criação: erros de configuração
(dependência indefinida, ciclo) surgem antes de qualquer run.
"""

from __future__ import annotations

from datetime import datetime, timezone
from pathlib import Path
from typing import Any, Dict, Iterable, List, Optional

from targetflow.core.cache.store import MISS, MemoizationStore
from targetflow.core.config.loader import DEFAULT_CONFIG
from targetflow.core.config.merge import deep_merge
from targetflow.core.engine.engine import Engine, RunResult
from targetflow.core.engine.graph import DependencyGraph, build_graph
from targetflow.core.engine.planner import ExecutionPlan, plan_execution
from targetflow.core.logging import get_logger
from targetflow.core.pipeline.context import RunContext
from targetflow.core.pipeline.registry import TaskRegistry
from targetflow.storage import build_storage
from targetflow.tracking import build_tracker

logger = get_logger(__name__)


class Pipeline:
    """Pipeline declarativo pronto para executar."""

    def __init__(
        self,
        registry: TaskRegistry,
        config: Optional[Dict[str, Any]] = None,
        *,
        tracker: Any = None,
        storage: Any = None,
        store: Optional[MemoizationStore] = None,
    ):
        self.registry = registry
        self.config: Dict[str, Any] = deep_merge(DEFAULT_CONFIG, config or {})
        self.graph: DependencyGraph = build_graph(registry)

        self.store = store or MemoizationStore(root=self.config["cache"]["dir"])
        self.tracker = tracker if tracker is not None else build_tracker(self.config)
        self.storage = storage if storage is not None else build_storage(self.config)

    @property
    def record_dir(self) -> Optional[Path]:
        run_dir = (self.config.get("run") or {}).get("dir")
        return Path(run_dir) if run_dir else None

    def _engine(self) -> Engine:
        ctx = RunContext(
            run_id="",
            created_at=datetime.now(timezone.utc),
            config=self.config,
        )
        return Engine(
            store=self.store,
            tracker=self.tracker,
            ctx=ctx,
            storage=self.storage,
            record_dir=self.record_dir,
        )

    # -----------------------------
    # Operações
    # -----------------------------
    def plan(self, targets: Optional[Iterable[str]] = None) -> ExecutionPlan:
        return plan_execution(self.graph, targets)

    def outdated(self, targets: Optional[Iterable[str]] = None) -> List[str]:
        return self._engine().outdated(self.plan(targets), self.registry, self.graph)

    def make(self, targets: Optional[Iterable[str]] = None) -> RunResult:
        """
        Executa o pipeline (ou apenas `targets` e seus ancestrais).

        Com `engine.raise_on_failure` (default), o primeiro
        TaskExecutionError é relançado depois que o run foi finalizado e
        registrado; caso contrário o RunResult é retornado com as falhas.
        """
        plan = self.plan(targets)
        logger.info("pipeline_make", tasks=len(plan))
        result = self._engine().execute(plan, self.registry, self.graph)

        if not result.ok and bool(self.config.get("engine", {}).get("raise_on_failure", True)):
            result.raise_for_failure()
        return result

    def read(self, name: str) -> Any:
        """
        Último valor memoizado de `name`.

        Raises:
            UnknownTaskError: Se a Task não estiver registrada.
            KeyError: Se a Task nunca foi memoizada (ou o store foi destruído).
        """
        self.registry.get(name)
        fingerprint = self.store.latest_fingerprint(name)
        entry = self.store.lookup(fingerprint) if fingerprint else MISS
        if entry is MISS:
            raise KeyError(f"task '{name}' has no stored value")
        return entry.value

    def destroy(self) -> None:
        self.store.clear()


__all__ = ["Pipeline"]
