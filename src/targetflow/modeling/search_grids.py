# src/targetflow/modeling/search_grids.py
"""
Grids canônicos de busca por hiperparâmetros (regressão).

Centraliza, por model_id:
    - param_grid (valores explícitos; o grid de árvores é 50..200 de 50 em 50)
    - scoring (RMSE, como score negativo do scikit-learn)
    - cross-validation (KFold com 5 folds, seed explícita)

Invariantes:
    - determinístico (sem acessar dados)
    - falha explícita para model_id inválido
    - parâmetros do grid precisam existir no estimador
"""

from __future__ import annotations

from dataclasses import dataclass
from typing import Any, Dict, List, Optional

from sklearn.model_selection import KFold

from .model_registry import ModelRegistry

DEFAULT_SCORING = "neg_root_mean_squared_error"


def tree_grid(start: int = 50, stop: int = 200, by: int = 50) -> List[int]:
    """Sequência inclusiva `start, start+by, ..., stop`."""
    if by <= 0:
        raise ValueError("by must be positive")
    return list(range(int(start), int(stop) + 1, int(by)))


@dataclass(frozen=True)
class CvConfig:
    """Configuração serializável de CV."""

    n_splits: int = 5
    shuffle: bool = True
    random_state: int = 42

    def build(self, *, seed: Optional[int] = None) -> KFold:
        rs = self.random_state if seed is None else int(seed)
        return KFold(n_splits=self.n_splits, shuffle=self.shuffle, random_state=rs)

    def to_dict(self) -> Dict[str, Any]:
        return {
            "kind": "KFold",
            "n_splits": self.n_splits,
            "shuffle": self.shuffle,
            "random_state": self.random_state,
        }


@dataclass(frozen=True)
class SearchGridSpec:
    model_id: str
    param_grid: Dict[str, List[Any]]
    scoring: str
    cv: CvConfig

    def to_dict(self) -> Dict[str, Any]:
        return {
            "model_id": self.model_id,
            "param_grid": {k: list(v) for k, v in self.param_grid.items()},
            "scoring": self.scoring,
            "cv": self.cv.to_dict(),
        }


class DefaultSearchGrids:
    """Fonte de verdade dos grids de busca por model_id."""

    def __init__(self, *, registry: Optional[ModelRegistry] = None, cv: Optional[CvConfig] = None):
        self.registry = registry or ModelRegistry.v1()
        self.cv = cv or CvConfig()
        self._grids: Dict[str, Dict[str, List[Any]]] = {
            "linear_regression": {"fit_intercept": [True, False]},
            "random_forest": {"n_estimators": tree_grid()},
        }

    def get(self, model_id: str, *, overrides: Optional[Dict[str, List[Any]]] = None) -> SearchGridSpec:
        spec = self.registry.get(model_id)
        if model_id not in self._grids:
            raise KeyError(f"no search grid for model_id: {model_id}")

        grid = {k: list(v) for k, v in self._grids[model_id].items()}
        for key, values in (overrides or {}).items():
            grid[key] = list(values)

        valid = set(spec.build().get_params().keys())
        unknown = sorted(k for k in grid if k not in valid)
        if unknown:
            raise ValueError(f"param_grid has unknown params for {model_id}: {unknown}")

        return SearchGridSpec(model_id=model_id, param_grid=grid, scoring=DEFAULT_SCORING, cv=self.cv)


__all__ = ["CvConfig", "SearchGridSpec", "DefaultSearchGrids", "DEFAULT_SCORING", "tree_grid"]
