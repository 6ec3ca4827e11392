# tests/core/traceability/test_run_record.py
"""
Testes do Run Record v1.

Os testes asseguram que:
- o registro nasce aberto, com o evento `run_started`
- params, métricas e artefatos preservam a ordem de chamada
- o estado de cada Task (e sua duração) é registrado
- o registro é fechado exatamente uma vez
- a persistência JSON é um round-trip fiel

Invariantes:
    - Timestamps são UTC (timezone-aware)
    - Após `close`, qualquer mutação levanta RunRecordClosedError
"""

from datetime import datetime, timedelta, timezone

import pytest

from targetflow.core.exceptions import RunRecordClosedError
from targetflow.core.traceability.run_record import (
    RUN_STATUS_FAILED,
    RUN_STATUS_FINISHED,
    RUN_STATUS_RUNNING,
    create_run_record,
    load_run_record,
    save_run_record,
)

T0 = datetime(2026, 1, 16, 12, 0, 0, tzinfo=timezone.utc)


def _record():
    return create_run_record(run_id="run-0001", started_at=T0, config_hash="c" * 64, targetflow_version="0.1.0")


def test_new_record_is_open_with_run_started_event():
    record = _record()

    assert record.status == RUN_STATUS_RUNNING
    assert not record.closed
    assert record.run_id == "run-0001"
    assert record.run["config_hash"] == "c" * 64
    assert record.events == [{"event_type": "run_started", "timestamp": T0.isoformat()}]


def test_naive_timestamps_are_treated_as_utc():
    record = create_run_record(
        run_id="r", started_at=datetime(2026, 1, 16, 12, 0, 0), config_hash="x", targetflow_version="0.1.0"
    )
    assert record.run["started_at"] == T0.isoformat()


def test_logging_preserves_call_order():
    record = _record()
    record.add_param("model_id", "random_forest", task="sw_fit")
    record.add_param("n_estimators", 100, task="sw_fit")
    for step, value in enumerate([180.0, 172.0, 96.0], start=1):
        record.add_metric("prediction", value, step, task="pred_actual", ts=T0)
    record.add_artifact("/tmp/report.html", task="sw_report")

    assert [p["key"] for p in record.params] == ["model_id", "n_estimators"]
    assert [(m["value"], m["step"]) for m in record.metrics] == [(180.0, 1), (172.0, 2), (96.0, 3)]
    assert record.metrics[0]["timestamp"] == T0.isoformat()
    assert record.artifacts == [{"path": "/tmp/report.html", "task": "sw_report"}]


def test_task_lifecycle_records_state_and_duration():
    record = _record()
    record.task_started(task="sw_grid", fingerprint="f" * 64, ts=T0)
    record.task_finished(task="sw_grid", state="succeeded", ts=T0 + timedelta(milliseconds=1500))

    entry = record.tasks["sw_grid"]
    assert record.task_state("sw_grid") == "succeeded"
    assert entry["duration_ms"] == 1500
    assert entry["fingerprint"] == "f" * 64
    assert [e["event_type"] for e in record.events] == ["run_started", "task_started", "task_finished"]


def test_skipped_tasks_have_zero_duration():
    record = _record()
    record.task_finished(task="data", state="skipped_cached", ts=T0, fingerprint="a" * 64)
    assert record.tasks["data"]["duration_ms"] == 0
    assert record.task_state("missing") is None


def test_close_is_final():
    record = _record()
    record.close(status=RUN_STATUS_FINISHED, ts=T0 + timedelta(seconds=3))

    assert record.closed
    assert record.events[-1]["event_type"] == "run_closed"
    assert record.run["finished_at"] == (T0 + timedelta(seconds=3)).isoformat()

    with pytest.raises(RunRecordClosedError):
        record.close(status=RUN_STATUS_FAILED, ts=T0)
    with pytest.raises(RunRecordClosedError):
        record.add_metric("late", 1.0)
    assert record.status == RUN_STATUS_FINISHED


def test_close_rejects_non_terminal_status():
    with pytest.raises(ValueError):
        _record().close(status=RUN_STATUS_RUNNING, ts=T0)


def test_failed_close_keeps_error_payload():
    record = _record()
    error = {"type": "TaskExecutionError", "message": "boom", "details": {"task": "x"}, "hint": None}
    record.close(status=RUN_STATUS_FAILED, ts=T0, error=error)
    assert record.run["error"] == error


def test_json_round_trip(tmp_path):
    record = _record()
    record.add_param("seed", 42)
    record.task_started(task="data", fingerprint="d" * 64, ts=T0)
    record.task_finished(task="data", state="succeeded", ts=T0)
    record.close(status=RUN_STATUS_FINISHED, ts=T0)

    path = tmp_path / "runs" / "run-0001.json"
    save_run_record(record, path)
    loaded = load_run_record(path)

    assert loaded.to_dict() == record.to_dict()
    assert loaded.closed
