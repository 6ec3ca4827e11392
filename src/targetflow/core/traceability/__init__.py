# src/targetflow/core/traceability/__init__.py
"""
Rastreabilidade do targetflow.

- run_record → Run Record v1 (params, métricas, artefatos, estado de Tasks,
  Event Log), persistido em JSON determinístico.
"""

from .run_record import (
    RUN_STATUS_FAILED,
    RUN_STATUS_FINISHED,
    RUN_STATUS_RUNNING,
    RunRecord,
    create_run_record,
    load_run_record,
    save_run_record,
)

__all__ = [
    "RUN_STATUS_FAILED",
    "RUN_STATUS_FINISHED",
    "RUN_STATUS_RUNNING",
    "RunRecord",
    "create_run_record",
    "load_run_record",
    "save_run_record",
]
