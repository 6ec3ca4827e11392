# src/targetflow/modeling/model_registry.py
"""
ModelRegistry — catálogo determinístico de regressores.

Modelos suportados e parâmetros default são centralizados e explícitos,
sem inferência dinâmica. Uma Task escolhe o modelo pelo `model_id`
configurado; o treino é sempre do scikit-learn.

Catálogo v1:
    - linear_regression → sklearn.linear_model.LinearRegression
    - random_forest     → sklearn.ensemble.RandomForestRegressor
"""

from __future__ import annotations

from dataclasses import dataclass, field
from typing import Any, Dict, Iterable, List, Optional, Type

from sklearn.ensemble import RandomForestRegressor
from sklearn.linear_model import LinearRegression


@dataclass(frozen=True)
class ModelSpec:
    """Especificação canônica de um regressor suportado."""

    model_id: str
    estimator_cls: Type[Any]
    default_params: Dict[str, Any] = field(default_factory=dict)
    tunable: List[str] = field(default_factory=list)

    def build(self, overrides: Optional[Dict[str, Any]] = None) -> Any:
        """Instancia o estimador com default_params + overrides (sem treinar)."""
        params = dict(self.default_params)
        if overrides:
            params.update(overrides)
        return self.estimator_cls(**params)


class ModelRegistry:
    """Registry de ModelSpec; extensível via `register()`."""

    def __init__(self, specs: Optional[Iterable[ModelSpec]] = None):
        self._specs: Dict[str, ModelSpec] = {}
        for s in specs or ():
            self.register(s)

    @classmethod
    def v1(cls) -> "ModelRegistry":
        return cls(specs=_default_specs_v1())

    def register(self, spec: ModelSpec) -> None:
        if not isinstance(spec, ModelSpec):
            raise TypeError("spec must be a ModelSpec")
        if not isinstance(spec.model_id, str) or not spec.model_id.strip():
            raise ValueError("model_id must be a non-empty string")
        if spec.model_id in self._specs:
            raise ValueError(f"model_id already registered: {spec.model_id}")
        self._specs[spec.model_id] = spec

    def list_ids(self) -> List[str]:
        return sorted(self._specs.keys())

    def get(self, model_id: str) -> ModelSpec:
        if model_id not in self._specs:
            raise KeyError(f"unknown model_id: {model_id}")
        return self._specs[model_id]

    def build(self, model_id: str, overrides: Optional[Dict[str, Any]] = None) -> Any:
        return self.get(model_id).build(overrides=overrides)


def _default_specs_v1() -> List[ModelSpec]:
    lr = ModelSpec(
        model_id="linear_regression",
        estimator_cls=LinearRegression,
        default_params={"fit_intercept": True},
        tunable=["fit_intercept"],
    )
    rf = ModelSpec(
        model_id="random_forest",
        estimator_cls=RandomForestRegressor,
        default_params={
            "n_estimators": 100,
            "random_state": 42,
            "n_jobs": 1,
        },
        tunable=["n_estimators"],
    )
    return [lr, rf]


__all__ = ["ModelSpec", "ModelRegistry"]
