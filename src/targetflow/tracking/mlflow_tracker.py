# src/targetflow/tracking/mlflow_tracker.py
"""
Tracker MLflow.

Usa `MlflowClient` com `run_id` explícito em todas as operações, sem o
"run ativo" global do módulo `mlflow`.

Decisões:
    - o experimento é criado na primeira utilização, com
      `artifact_location` opcional (ex.: `s3://mlflow/sw_rf`)
    - status do Run Record é mapeado para o status MLflow
      (`finished` → FINISHED, `failed` → FAILED)
    - o registered model é criado sob demanda; se já existir, apenas uma
      nova versão é adicionada
"""

from __future__ import annotations

from pathlib import Path
from typing import Any, Dict, Optional, Union

from mlflow.exceptions import MlflowException
from mlflow.tracking import MlflowClient

from targetflow.core.logging import get_logger

logger = get_logger(__name__)

_STATUS = {
    "finished": "FINISHED",
    "failed": "FAILED",
    "killed": "KILLED",
}


class MlflowTracker:
    """Implementação do protocolo Tracker sobre um servidor MLflow."""

    def __init__(
        self,
        *,
        tracking_uri: Optional[str] = None,
        experiment: str = "default",
        artifact_location: Optional[str] = None,
        client: Optional[MlflowClient] = None,
    ):
        self.tracking_uri = tracking_uri
        self.experiment = experiment
        self.artifact_location = artifact_location
        self.client = client or MlflowClient(tracking_uri=tracking_uri)
        self._experiment_id: Optional[str] = None

    @property
    def experiment_id(self) -> str:
        if self._experiment_id is None:
            found = self.client.get_experiment_by_name(self.experiment)
            if found is not None:
                self._experiment_id = found.experiment_id
            else:
                self._experiment_id = self.client.create_experiment(
                    self.experiment,
                    artifact_location=self.artifact_location,
                )
                logger.info(
                    "mlflow_experiment_created",
                    experiment=self.experiment,
                    artifact_location=self.artifact_location,
                )
        return self._experiment_id

    # -----------------------------
    # Tracker protocol
    # -----------------------------
    def start_run(self, run_name: Optional[str] = None) -> str:
        run = self.client.create_run(self.experiment_id, run_name=run_name)
        return run.info.run_id

    def log_param(self, run_id: str, key: str, value: Any) -> None:
        self.client.log_param(run_id, key, value)

    def log_metric(self, run_id: str, key: str, value: float, step: int = 0) -> None:
        self.client.log_metric(run_id, key, float(value), step=int(step))

    def log_artifact(self, run_id: str, path: str) -> None:
        local = Path(path)
        if local.is_dir():
            self.client.log_artifacts(run_id, str(local), artifact_path=local.name)
        else:
            self.client.log_artifact(run_id, str(local))

    def end_run(self, run_id: str, status: str) -> None:
        self.client.set_terminated(run_id, status=_STATUS.get(status, status.upper()))

    # -----------------------------
    # Model registry / artefatos
    # -----------------------------
    def register_model_version(self, name: str, run_id: str, source: str) -> Dict[str, Any]:
        try:
            self.client.create_registered_model(name)
        except MlflowException as exc:
            if getattr(exc, "error_code", None) != "RESOURCE_ALREADY_EXISTS":
                raise
        version = self.client.create_model_version(name, source, run_id=run_id)
        logger.info("mlflow_model_version_created", name=name, version=version.version, run_id=run_id)
        return {"name": name, "version": int(version.version), "run_id": run_id, "source": source}

    def download_artifact(self, run_id: str, artifact_path: str, dst_path: Union[str, Path]) -> Path:
        """Baixa um artefato do run para `dst_path` (criado se preciso)."""
        dst = Path(dst_path)
        dst.mkdir(parents=True, exist_ok=True)
        local = self.client.download_artifacts(run_id, artifact_path, dst_path=str(dst))
        logger.info("mlflow_artifact_downloaded", run_id=run_id, artifact_path=artifact_path)
        return Path(local)


__all__ = ["MlflowTracker"]
