# src/targetflow/modeling/__init__.py
"""Catálogo de regressores, grids de busca e seleção de hiperparâmetros."""

from .model_registry import ModelRegistry, ModelSpec
from .search_grids import DEFAULT_SCORING, CvConfig, DefaultSearchGrids, SearchGridSpec, tree_grid
from .selection import grid_results_frame, regression_metrics, select_by_pct_loss

__all__ = [
    "ModelRegistry",
    "ModelSpec",
    "CvConfig",
    "DefaultSearchGrids",
    "SearchGridSpec",
    "DEFAULT_SCORING",
    "tree_grid",
    "grid_results_frame",
    "regression_metrics",
    "select_by_pct_loss",
]
