# src/targetflow/modeling/selection.py
"""
Seleção de hiperparâmetros e métricas de regressão.

`select_by_pct_loss` escolhe o candidato mais simples cuja perda
percentual em relação ao melhor resultado fica abaixo de `limit`:

    loss = |score - best| / |best| * 100

"Mais simples" é definido pela ordenação ascendente de `order_by`
(ex.: menos árvores).
"""

from __future__ import annotations

from typing import Any, Dict, Iterable, Sequence

import numpy as np
import pandas as pd
from sklearn.metrics import mean_absolute_error, mean_squared_error, r2_score


def grid_results_frame(cv_results: Dict[str, Any], *, scoring: str = "neg_root_mean_squared_error") -> pd.DataFrame:
    """
    Converte `GridSearchCV.cv_results_` em um DataFrame com uma coluna por
    hiperparâmetro, a métrica média (`mean`) já no sinal natural, o número
    de folds (`n`) e o erro padrão da média entre folds (`std_err`).
    """
    split_keys = sorted(
        (k for k in cv_results if k.startswith("split") and k.endswith("_test_score")),
        key=lambda k: int(k[len("split"):-len("_test_score")]),
    )
    if len(split_keys) < 2:
        raise ValueError("cv_results must carry per-fold test scores for at least 2 folds")

    frame = pd.DataFrame(cv_results["params"])
    mean = np.asarray(cv_results["mean_test_score"], dtype=float)
    if scoring.startswith("neg_"):
        mean = -mean
    scores = np.vstack([np.asarray(cv_results[k], dtype=float) for k in split_keys])
    frame["mean"] = mean
    frame["n"] = len(split_keys)
    # desvio amostral (ddof=1) entre folds / sqrt(n)
    frame["std_err"] = scores.std(axis=0, ddof=1) / np.sqrt(len(split_keys))
    return frame


def select_by_pct_loss(
    results: pd.DataFrame,
    *,
    order_by: Sequence[str],
    metric: str = "mean",
    limit: float = 5.0,
    maximize: bool = False,
) -> Dict[str, Any]:
    """
    Retorna os hiperparâmetros (colunas `order_by`) do candidato escolhido.

    Raises:
        ValueError: Se `results` estiver vazio, faltar alguma coluna ou
            `limit` não for positivo.
    """
    if results.empty:
        raise ValueError("no grid results to select from")
    if limit <= 0:
        raise ValueError("limit must be positive")
    missing = [c for c in [metric, *order_by] if c not in results.columns]
    if missing:
        raise ValueError(f"missing columns in grid results: {missing}")

    scores = results[metric].astype(float)
    best = scores.max() if maximize else scores.min()
    if best == 0:
        loss = (scores - best).abs() * 100.0
    else:
        loss = (scores - best).abs() / abs(best) * 100.0

    candidates = results.assign(_loss=loss)
    candidates = candidates[candidates["_loss"] < limit]
    ranked = candidates.sort_values(list(order_by), kind="mergesort")
    # por coluna: uma linha mista (int + float) seria promovida a float
    return {col: _native(ranked[col].iloc[0]) for col in order_by}


def regression_metrics(y_true: Iterable[float], y_pred: Iterable[float]) -> Dict[str, float]:
    """RMSE, MAE e R² (nomes `rmse`, `mae`, `rsq`)."""
    y_true = np.asarray(list(y_true), dtype=float)
    y_pred = np.asarray(list(y_pred), dtype=float)
    return {
        "rmse": float(np.sqrt(mean_squared_error(y_true, y_pred))),
        "mae": float(mean_absolute_error(y_true, y_pred)),
        "rsq": float(r2_score(y_true, y_pred)),
    }


def _native(value: Any) -> Any:
    if isinstance(value, np.generic):
        return value.item()
    return value


__all__ = ["grid_results_frame", "select_by_pct_loss", "regression_metrics"]
