"""
tests/unit/test_models/test_knn_regressor.py

Unit tests for KNeighborsRegressor.
"""

import numpy as np
import pytest

from tests.utils.assertions import ModelAssertions
from veracity.data.column import DataType
from veracity.data.table import Table
from veracity.models.neighbors import (
    KNeighborsClassifierSettings,
    KNeighborsRegressor,
    KNeighborsRegressorSettings,
    create_knn_regressor,
)
from veracity.utils.exceptions import InvalidSettingsError, NotFittedError, TypeMismatchError

class TestKNeighborsRegressor:
    """Test neighbor averaging and scoring"""

    @pytest.fixture(autouse=True)
    def setup_data(self, line_regression_data):
        self.features, self.targets = line_regression_data
        yield

    def test_uniform_mean(self):
        """Test the prediction is the plain mean of the k nearest targets"""
        model = create_knn_regressor(3).fit(self.features, self.targets)
        predictions = model.predict(Table.from_dict({'x': [2.0]}))

        ModelAssertions.assert_valid_predictions(predictions, 1)
        assert predictions.dtype == DataType.FLOAT64
        assert predictions.to_list() == [pytest.approx(2.0)]

    def test_distance_weighted_mean(self):
        """Test closer neighbors weigh more"""
        model = create_knn_regressor(2, weights="distance").fit(self.features, self.targets)
        prediction = model.predict(Table.from_dict({'x': [3.5]})).to_list()[0]

        # equidistant neighbors 3 and 100 weigh the same
        assert prediction == pytest.approx(51.5)

        prediction = model.predict(Table.from_dict({'x': [3.1]})).to_list()[0]
        w3, w4 = 1.0 / 0.01, 1.0 / 0.81
        assert prediction == pytest.approx((3.0 * w3 + 100.0 * w4) / (w3 + w4), rel=1e-6)

    def test_exact_match_dominates(self):
        """Test a zero distance gives (almost) the matching target"""
        model = create_knn_regressor(3, weights="distance").fit(self.features, self.targets)
        prediction = model.predict(Table.from_dict({'x': [1.0]})).to_list()[0]

        assert prediction == pytest.approx(1.0, rel=1e-6)

    def test_k_larger_than_training_set(self):
        """Test k is clamped to the number of training rows"""
        model = create_knn_regressor(10).fit(self.features, self.targets)
        prediction = model.predict(Table.from_dict({'x': [0.0]})).to_list()[0]

        assert prediction == pytest.approx(np.mean([1.0, 2.0, 3.0, 100.0]))

    def test_integer_targets(self):
        """Test integer targets give float predictions"""
        model = create_knn_regressor(2).fit(self.features, [1, 2, 3, 4])
        assert model.predict(Table.from_dict({'x': [1.4]})).to_list() == [1.5]

    def test_score_is_r2(self):
        """Test score() returns R² of the predictions"""
        model = create_knn_regressor(1).fit(self.features, self.targets)

        assert model.score(self.features, self.targets) == pytest.approx(1.0)

    def test_non_numeric_targets(self):
        """Test text targets are refused when predicting"""
        model = create_knn_regressor(1).fit(self.features, ['a', 'b', 'c', 'd'])

        with pytest.raises(TypeMismatchError):
            model.predict(self.features)

    def test_settings_type(self):
        """Test classifier settings cannot configure a regressor"""
        with pytest.raises(InvalidSettingsError):
            KNeighborsRegressor(KNeighborsClassifierSettings())

        model = KNeighborsRegressor(KNeighborsRegressorSettings(n_neighbors=2))
        assert model.settings.n_neighbors == 2

    def test_not_fitted(self):
        with pytest.raises(NotFittedError):
            KNeighborsRegressor().predict(self.features)

    def test_model_info(self):
        """Test model info after fit"""
        model = create_knn_regressor(2, name="line").fit(self.features, self.targets)
        info = model.get_model_info()

        assert info['is_fitted'] is True
        assert info['n_training_samples'] == 4
        assert info['settings']['n_neighbors'] == 2
        assert info['metadata']['feature_columns'] == ['x']
        assert model.get_model_summary()['name'] == "line"
