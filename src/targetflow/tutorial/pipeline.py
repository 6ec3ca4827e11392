# src/targetflow/tutorial/pipeline.py
"""
Definição declarativa do pipeline de regressão (Star Wars).

`build_registry(config)` devolve o TaskRegistry completo. As opções vêm
da seção `tutorial` da configuração:

    tutorial:
      model_id: random_forest      # ou linear_regression
      data_path: null              # default: CSV embutido no pacote
      output_dir: .targetflow/artifacts
      split_prop: 0.8
      seed: 42
      folds: 5
      tree_grid: {start: 50, stop: 200, by: 50}
      pct_loss_limit: 5.0
      model_name: null             # default: sw_rf / sw_lr
      s3_uri: s3://mlflow/sw_rf
      publish: true

Abertura e encerramento do run no tracker não são Tasks: pertencem ao
Engine. A publicação no storage é best-effort.
"""

from __future__ import annotations

from importlib import resources
from pathlib import Path
from typing import Any, Dict, Optional

from targetflow.core.config.merge import deep_merge
from targetflow.core.pipeline.registry import TaskRegistry
from targetflow.core.pipeline.task import task, value

from . import tasks as t

TUTORIAL_DEFAULTS: Dict[str, Any] = {
    "model_id": "random_forest",
    "data_path": None,
    "output_dir": ".targetflow/artifacts",
    "split_prop": 0.8,
    "seed": 42,
    "folds": 5,
    "tree_grid": {"start": 50, "stop": 200, "by": 50},
    "pct_loss_limit": 5.0,
    "model_name": None,
    "s3_uri": "s3://mlflow/sw_rf",
    "publish": True,
}

_SHORT_NAMES = {"random_forest": "rf", "linear_regression": "lr"}


def default_data_path() -> str:
    return str(resources.files("targetflow.tutorial").joinpath("data", "star_wars_characters.csv"))


def tutorial_settings(config: Optional[Dict[str, Any]] = None) -> Dict[str, Any]:
    settings = deep_merge(TUTORIAL_DEFAULTS, (config or {}).get("tutorial", {}) or {})
    if not settings["data_path"]:
        settings["data_path"] = default_data_path()
    if not settings["model_name"]:
        settings["model_name"] = f"sw_{_SHORT_NAMES.get(settings['model_id'], settings['model_id'])}"
    return settings


def build_registry(config: Optional[Dict[str, Any]] = None) -> TaskRegistry:
    s = tutorial_settings(config)
    model_id = s["model_id"]
    out = Path(s["output_dir"])

    tasks = [
        value("data_file", s["data_path"]),
        task("data", t.load_sw_data, "data_file"),
        task("data_split", t.split_data, "data", config={"prop": s["split_prop"], "seed": s["seed"]}),
        task("data_train", t.training, "data_split"),
        task("data_test", t.testing, "data_split"),
        task("sw_recipe", t.define_preprocessor, "data_train"),
        task("sw_model", t.get_model, config={"model_id": model_id}),
        task("sw_workflow", t.define_workflow, "sw_recipe", "sw_model"),
        task("tree_grid", t.make_tree_grid, config=dict(s["tree_grid"])),
        task("sw_grid", t.expand_grid, "tree_grid", config={"model_id": model_id}),
        task(
            "sw_grid_results",
            t.tune_grid,
            "sw_workflow",
            "data_train",
            "sw_grid",
            config={"folds": s["folds"], "seed": s["seed"]},
        ),
        task("hyperparameters", t.select_hyperparameters, "sw_grid_results", config={"limit": s["pct_loss_limit"]}),
        task(
            "sw_fit",
            t.train_model,
            "data_train",
            "sw_workflow",
            "hyperparameters",
            config={"model_id": model_id},
            with_context=True,
        ),
        task("packaged_model", t.package_model, "sw_fit"),
        task("metrics", t.get_metrics, "sw_fit", "data_test", with_context=True),
        task("pred_actual", t.log_pred_actual, "sw_fit", "data_test", with_context=True),
        value("crated_model", str(out / s["model_name"])),
        task("saved_model", t.save_model, "packaged_model", "crated_model"),
        task("logged_model", t.log_model, "saved_model", with_context=True),
        task("versioned_model", t.register_model, "logged_model", config={"name": s["model_name"]}, with_context=True),
        task("sw_report", t.generate_report, "data", config={"output_dir": str(out)}, with_context=True),
        task("sw_plot", t.plot_data, "data", config={"output_dir": str(out)}, with_context=True),
        value("data_csv", str(out / "star_wars_characters.csv")),
        task("written_csv", t.write_csv, "data", "data_csv"),
        task("logged_csv", t.log_csv, "written_csv", with_context=True),
    ]

    if s["publish"]:
        tasks += [
            value("s3_bucket", s["s3_uri"]),
            task("published_model", t.publish_model, "saved_model", "s3_bucket", with_context=True, best_effort=True),
        ]

    return TaskRegistry.from_tasks(tasks)


__all__ = ["TUTORIAL_DEFAULTS", "build_registry", "default_data_path", "tutorial_settings"]
