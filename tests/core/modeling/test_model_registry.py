from __future__ import annotations

import pytest
from sklearn.ensemble import RandomForestRegressor
from sklearn.linear_model import LinearRegression

from targetflow.modeling.model_registry import ModelRegistry, ModelSpec


def test_registry_v1_contains_expected_models():
    reg = ModelRegistry.v1()
    assert reg.list_ids() == ["linear_regression", "random_forest"]


def test_registry_get_returns_spec_with_defaults_and_tunables():
    spec = ModelRegistry.v1().get("random_forest")

    assert isinstance(spec, ModelSpec)
    assert spec.estimator_cls is RandomForestRegressor
    assert spec.default_params["random_state"] == 42
    assert spec.tunable == ["n_estimators"]


def test_registry_build_instantiates_estimator_without_training():
    est = ModelRegistry.v1().build("linear_regression")
    assert isinstance(est, LinearRegression)
    assert not hasattr(est, "coef_")


def test_build_applies_overrides_over_defaults():
    est = ModelRegistry.v1().build("random_forest", overrides={"n_estimators": 150})
    params = est.get_params()
    assert params["n_estimators"] == 150
    assert params["random_state"] == 42


def test_invalid_model_id_raises_explicit_error():
    with pytest.raises(KeyError):
        ModelRegistry.v1().get("does_not_exist")


def test_registry_is_explicitly_extensible_via_register():
    reg = ModelRegistry.v1()
    reg.register(ModelSpec(model_id="dummy_custom", estimator_cls=dict, default_params={"x": 1}))

    assert "dummy_custom" in reg.list_ids()
    assert reg.build("dummy_custom") == {"x": 1}


def test_register_rejects_duplicates_and_bad_specs():
    reg = ModelRegistry.v1()
    with pytest.raises(ValueError):
        reg.register(ModelSpec(model_id="random_forest", estimator_cls=dict))
    with pytest.raises(ValueError):
        reg.register(ModelSpec(model_id=" ", estimator_cls=dict))
    with pytest.raises(TypeError):
        reg.register("random_forest")
