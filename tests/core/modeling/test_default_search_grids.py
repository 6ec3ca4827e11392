from __future__ import annotations

import pytest
from sklearn.model_selection import KFold

from targetflow.modeling.search_grids import (
    DEFAULT_SCORING,
    CvConfig,
    DefaultSearchGrids,
    tree_grid,
)


def test_tree_grid_is_inclusive():
    assert tree_grid() == [50, 100, 150, 200]
    assert tree_grid(10, 30, 10) == [10, 20, 30]
    assert tree_grid(10, 35, 10) == [10, 20, 30]


@pytest.mark.parametrize("by", [0, -5])
def test_tree_grid_rejects_non_positive_step(by):
    with pytest.raises(ValueError):
        tree_grid(50, 200, by)


def test_random_forest_grid_uses_tree_counts():
    spec = DefaultSearchGrids().get("random_forest")

    assert spec.param_grid == {"n_estimators": [50, 100, 150, 200]}
    assert spec.scoring == DEFAULT_SCORING
    assert spec.cv.n_splits == 5


def test_overrides_replace_grid_values():
    spec = DefaultSearchGrids().get("random_forest", overrides={"n_estimators": [10, 20]})
    assert spec.param_grid["n_estimators"] == [10, 20]


def test_unknown_params_are_rejected():
    with pytest.raises(ValueError):
        DefaultSearchGrids().get("linear_regression", overrides={"n_estimators": [1]})


def test_unknown_model_id():
    with pytest.raises(KeyError):
        DefaultSearchGrids().get("svm")


def test_cv_config_builds_seeded_kfold():
    cv = CvConfig(n_splits=3).build(seed=7)

    assert isinstance(cv, KFold)
    assert cv.n_splits == 3
    assert cv.random_state == 7
    assert CvConfig().to_dict() == {"kind": "KFold", "n_splits": 5, "shuffle": True, "random_state": 42}


def test_spec_to_dict_is_serializable():
    d = DefaultSearchGrids().get("linear_regression").to_dict()
    assert d["param_grid"] == {"fit_intercept": [True, False]}
    assert d["cv"]["kind"] == "KFold"
