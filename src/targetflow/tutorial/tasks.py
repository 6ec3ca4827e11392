# src/targetflow/tutorial/tasks.py
"""
Compute references do pipeline de regressão (personagens de Star Wars).

Objetivo: prever `height` a partir de `mass`.

Fluxo:
    dados → split 80/20 → preprocess (imputação pela média + normalização)
    → regressor → grid search (KFold) → seleção por perda percentual
    → treino final → métricas / predições → empacotamento e registro do
    modelo → relatório HTML, gráfico e CSV como artefatos

Convenções:
    - Funções puras recebem os outputs upstream posicionalmente e a
      configuração estática como kwargs
    - Funções que falam com o tracker ou storage recebem o TaskContext
      como primeiro argumento (`with_context=True` no registro)
"""

from __future__ import annotations

import html
from pathlib import Path
from typing import Any, Dict, List, Optional, Sequence

import joblib
import numpy as np
import pandas as pd
from matplotlib.figure import Figure
from sklearn.base import clone
from sklearn.impute import SimpleImputer
from sklearn.model_selection import GridSearchCV, train_test_split
from sklearn.pipeline import Pipeline as SkPipeline
from sklearn.preprocessing import StandardScaler

from targetflow.modeling.model_registry import ModelRegistry
from targetflow.modeling.search_grids import DEFAULT_SCORING, CvConfig, DefaultSearchGrids, tree_grid
from targetflow.modeling.selection import grid_results_frame, regression_metrics, select_by_pct_loss
from targetflow.storage.base import parse_s3_uri

OUTCOME = "height"
FEATURES = ["mass"]
MODEL_STEP = "model"


class CratedModel:
    """Modelo empacotado: callable autocontido `model(frame) -> predições`."""

    def __init__(self, fitted: Any, features: Sequence[str]):
        self.fitted = fitted
        self.features = list(features)

    def __call__(self, frame: pd.DataFrame) -> np.ndarray:
        return self.fitted.predict(frame[self.features])


def _xy(data: pd.DataFrame):
    return data[FEATURES], data[OUTCOME]


# -----------------------------
# Dados
# -----------------------------
def load_sw_data(path: str) -> pd.DataFrame:
    """Lê height/mass; valores numéricos ausentes viram 0."""
    raw = pd.read_csv(path)
    missing = [c for c in [OUTCOME, *FEATURES] if c not in raw.columns]
    if missing:
        raise ValueError(f"dataset is missing columns: {missing}")
    return raw[[OUTCOME, *FEATURES]].astype(float).fillna(0.0)


def split_data(data: pd.DataFrame, *, prop: float = 0.8, seed: int = 42) -> Dict[str, pd.DataFrame]:
    train, test = train_test_split(data, train_size=prop, random_state=seed)
    return {"train": train.reset_index(drop=True), "test": test.reset_index(drop=True)}


def training(split: Dict[str, pd.DataFrame]) -> pd.DataFrame:
    return split["train"]


def testing(split: Dict[str, pd.DataFrame]) -> pd.DataFrame:
    return split["test"]


# -----------------------------
# Modelo
# -----------------------------
def define_preprocessor(data_train: pd.DataFrame) -> SkPipeline:
    missing = [c for c in FEATURES if c not in data_train.columns]
    if missing:
        raise ValueError(f"training data is missing predictors: {missing}")
    return SkPipeline(
        [
            ("impute", SimpleImputer(strategy="mean")),
            ("normalize", StandardScaler()),
        ]
    )


def get_model(*, model_id: str) -> Any:
    return ModelRegistry.v1().build(model_id)


def define_workflow(preprocessor: SkPipeline, model: Any) -> SkPipeline:
    return SkPipeline([("preprocess", preprocessor), (MODEL_STEP, model)])


def make_tree_grid(*, start: int = 50, stop: int = 200, by: int = 50) -> List[int]:
    return tree_grid(start, stop, by)


def expand_grid(trees: Sequence[int], *, model_id: str) -> Dict[str, List[Any]]:
    """Grid de busca do modelo; para random forest, o grid de árvores."""
    if model_id == "random_forest":
        return {"n_estimators": [int(t) for t in trees]}
    return DefaultSearchGrids().get(model_id).param_grid


def tune_grid(
    workflow: SkPipeline,
    data_train: pd.DataFrame,
    grid: Dict[str, List[Any]],
    *,
    folds: int = 5,
    seed: int = 42,
) -> pd.DataFrame:
    """Grid search com KFold; uma linha por candidato, métrica em RMSE."""
    search = GridSearchCV(
        clone(workflow),
        param_grid={f"{MODEL_STEP}__{k}": list(v) for k, v in grid.items()},
        scoring=DEFAULT_SCORING,
        cv=CvConfig(n_splits=folds, random_state=seed).build(),
    )
    X, y = _xy(data_train)
    search.fit(X, y)

    prefix = f"{MODEL_STEP}__"
    frame = grid_results_frame(search.cv_results_, scoring=DEFAULT_SCORING)
    return frame.rename(columns=lambda c: c[len(prefix):] if c.startswith(prefix) else c)


def select_hyperparameters(results: pd.DataFrame, *, limit: float = 5.0) -> Dict[str, Any]:
    params = [c for c in results.columns if c not in ("mean", "n", "std_err")]
    return select_by_pct_loss(results, order_by=params, metric="mean", limit=limit)


def train_model(
    ctx: Any,
    data_train: pd.DataFrame,
    workflow: SkPipeline,
    hyperparameters: Dict[str, Any],
    *,
    model_id: str,
) -> SkPipeline:
    """Finaliza o workflow com os hiperparâmetros escolhidos e treina."""
    fitted = clone(workflow).set_params(**{f"{MODEL_STEP}__{k}": v for k, v in hyperparameters.items()})
    ctx.log_param("model_id", model_id)
    ctx.log_params(hyperparameters)

    X, y = _xy(data_train)
    fitted.fit(X, y)
    ctx.log("info", "model trained", model_id=model_id, rows=int(len(data_train)))
    return fitted


def package_model(fitted: SkPipeline) -> CratedModel:
    return CratedModel(fitted, FEATURES)


# -----------------------------
# Avaliação
# -----------------------------
def get_metrics(ctx: Any, fitted: SkPipeline, data_test: pd.DataFrame) -> Dict[str, float]:
    X, y = _xy(data_test)
    metrics = regression_metrics(y, fitted.predict(X))
    for key in ("rmse", "mae", "rsq"):
        ctx.log_metric(key, metrics[key])
    return metrics


def log_pred_actual(ctx: Any, fitted: SkPipeline, data_test: pd.DataFrame) -> pd.DataFrame:
    """Loga cada predição e cada valor real como métricas com step (1-based)."""
    X, y = _xy(data_test)
    frame = pd.DataFrame({"prediction": fitted.predict(X), "actual": y.to_numpy(dtype=float)})
    for step, value in enumerate(frame["prediction"], start=1):
        ctx.log_metric("prediction", float(value), step=step)
    for step, value in enumerate(frame["actual"], start=1):
        ctx.log_metric("actual", float(value), step=step)
    return frame


# -----------------------------
# Modelo empacotado / registro
# -----------------------------
def save_model(packaged: CratedModel, model_dir: str) -> str:
    target = Path(model_dir)
    target.mkdir(parents=True, exist_ok=True)
    joblib.dump(packaged, target / "model.joblib")
    return str(target)


def log_model(ctx: Any, saved_dir: str) -> str:
    ctx.log_artifact(saved_dir)
    return saved_dir


def register_model(ctx: Any, logged_dir: str, *, name: str) -> Optional[Dict[str, Any]]:
    source = f"runs:/{ctx.run_id}/{Path(logged_dir).name}"
    return ctx.register_model_version(name, source)


def publish_model(ctx: Any, saved_dir: str, s3_uri: str) -> str:
    """Copia o modelo empacotado para `s3_uri` no storage configurado."""
    if ctx.storage is None:
        raise RuntimeError("no storage configured for model publication")
    bucket, prefix = parse_s3_uri(s3_uri)
    key = "/".join(p for p in (prefix.strip("/"), "model.joblib") if p)
    ctx.storage.put(bucket, key, (Path(saved_dir) / "model.joblib").read_bytes())
    ctx.log("info", "model published", bucket=bucket, key=key)
    return f"s3://{bucket}/{key}"


# -----------------------------
# Relatórios / artefatos
# -----------------------------
def generate_report(ctx: Any, data: pd.DataFrame, *, output_dir: str, title: str = "Star Wars Report") -> str:
    """Relatório HTML exploratório (resumo, ausentes, correlação, amostra)."""
    out = Path(output_dir)
    out.mkdir(parents=True, exist_ok=True)
    path = out / "star_wars.html"

    numeric = data.select_dtypes(include="number")
    sections = [
        ("Summary", numeric.describe().to_html()),
        ("Zero-filled values", (numeric == 0).sum().to_frame("count").to_html()),
        ("Correlation", numeric.corr().to_html()),
        ("Sample", data.head(10).to_html(index=False)),
    ]
    body = "\n".join(f"<h2>{html.escape(h)}</h2>\n{table}" for h, table in sections)
    path.write_text(
        f"<html><head><meta charset='utf-8'><title>{html.escape(title)}</title></head>"
        f"<body><h1>{html.escape(title)}</h1>\n<p>{len(data)} rows</p>\n{body}</body></html>\n",
        encoding="utf-8",
    )
    ctx.log_artifact(str(path))
    return str(path)


def plot_data(ctx: Any, data: pd.DataFrame, *, output_dir: str) -> str:
    out = Path(output_dir)
    out.mkdir(parents=True, exist_ok=True)
    path = out / "star_wars_characters.png"

    fig = Figure(figsize=(6, 4))
    ax = fig.subplots()
    ax.scatter(data[OUTCOME], data[FEATURES[0]], s=12)
    ax.set_xlabel(OUTCOME)
    ax.set_ylabel(FEATURES[0])
    ax.grid(True, linestyle="--", alpha=0.4)
    fig.savefig(path, dpi=150, bbox_inches="tight")

    ctx.log_artifact(str(path))
    return str(path)


def write_csv(data: pd.DataFrame, path: str) -> str:
    target = Path(path)
    target.parent.mkdir(parents=True, exist_ok=True)
    data.to_csv(target, index=False)
    return str(target)


def log_csv(ctx: Any, written: str) -> str:
    ctx.log_artifact(written)
    return written
