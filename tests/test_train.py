"""Tests for model.train module."""

import lightgbm as lgb
import numpy as np
import pytest

from immune_classifier.model.train import (
    TrainedModel,
    cv_best_iteration,
    cv_fit_one_model,
    fit_one_model,
    lgb_LGBMClassifier,
    lgb_params,
)


class TestLgbParams:
    """Tests for hyperparameter translation."""

    def test_depth_controls_leaves(self, small_params):
        native = lgb_params(small_params, seed=5)

        assert native["objective"] == "binary"
        assert native["max_depth"] == 2
        assert native["num_leaves"] == 4
        assert native["seed"] == 5
        assert native["metric"][0] == "auc"

    def test_classifier_rounds(self, small_params):
        model = lgb_LGBMClassifier(small_params, n_estimators=17)

        assert isinstance(model, lgb.LGBMClassifier)
        assert model.n_estimators == 17
        assert model.max_depth == 2


class TestFitOneModel:
    """Tests for fixed-round training."""

    def test_fits_training_data(self, binary_data, small_params):
        result = fit_one_model(binary_data.features, binary_data.labels, small_params)

        assert isinstance(result, TrainedModel)
        assert result.break_vec == [0.0, 0.25, 0.5, 0.75, 1.0]
        assert result.genes == binary_data.genes
        accuracy = np.mean(result.model.predict(binary_data.features) == binary_data.labels)
        assert accuracy >= 0.9

    def test_numpy_features_have_no_genes(self, binary_data, small_params):
        result = fit_one_model(
            binary_data.features.to_numpy(), binary_data.labels, small_params
        )

        assert result.genes is None

    def test_identical_inputs_identical_model(self, binary_data, small_params):
        a = fit_one_model(binary_data.features, binary_data.labels, small_params, seed=11)
        b = fit_one_model(binary_data.features, binary_data.labels, small_params, seed=11)

        assert a.model.booster_.model_to_string() == b.model.booster_.model_to_string()


class TestCvFitOneModel:
    """Tests for cross-validated training."""

    def test_best_iteration_in_range(self, binary_data, small_params):
        best, cv_results = cv_best_iteration(
            binary_data.features, binary_data.labels, small_params
        )

        assert 1 <= best <= small_params["num_boost_round"]
        assert all(len(history) == best for history in cv_results.values())
        assert any("auc" in key for key in cv_results)
        assert any("binary_error" in key for key in cv_results)

    def test_refit_uses_best_iteration(self, binary_data, small_params):
        best, _ = cv_best_iteration(binary_data.features, binary_data.labels, small_params)
        result = cv_fit_one_model(
            binary_data.features,
            binary_data.labels,
            small_params,
            genes=binary_data.genes,
        )

        assert result.model.n_estimators == best
        assert result.model.booster_.current_iteration() <= best
        assert result.genes == binary_data.genes
        assert result.break_vec == [0.0, 0.25, 0.5, 0.75, 1.0]

    def test_rejects_single_fold(self, binary_data, small_params):
        params = dict(small_params, nfold=1)
        with pytest.raises(ValueError, match="nfold"):
            cv_fit_one_model(binary_data.features, binary_data.labels, params)

    def test_rejects_single_class(self, binary_data, small_params):
        labels = np.zeros_like(binary_data.labels)
        with pytest.raises(ValueError, match="both classes"):
            cv_fit_one_model(binary_data.features, labels, small_params)

    def test_rejects_too_few_samples(self, binary_data, small_params):
        features = binary_data.features.iloc[:4]
        labels = np.array([0, 1, 0, 1])
        with pytest.raises(ValueError, match="Too few samples"):
            cv_fit_one_model(features, labels, small_params)
