# ============================================
# Veracity - src/veracity/models/neighbors/knn_regressor.py
# K-Nearest Neighbors regression
# ============================================

import time
from typing import Any, Dict, Optional

import numpy as np

from ...data.column import Column
from ...data.table import Table
from ...utils.exceptions import TypeMismatchError
from ...utils.logger import get_logger
from ...utils.timing import time_it
from ..base.base_regressor import BaseRegressor
from .base import LabelsLike, NeighborsMixin
from .settings import KNeighborsRegressorSettings

logger = get_logger('models.neighbors.knn_regressor')

class KNeighborsRegressor(NeighborsMixin, BaseRegressor[KNeighborsRegressorSettings]):
    """
    Brute-force k-nearest-neighbors regressor over Tables

    Predicts the mean target of the k nearest training rows, or with
    distance weights the mean weighted by 1 / (distance + epsilon).
    Targets must be BOOL, INT64 or FLOAT64.
    """

    settings_class = KNeighborsRegressorSettings

    def __init__(self,
                 settings: Optional[KNeighborsRegressorSettings] = None,
                 name: str = "knn_regressor",
                 **kwargs):
        super().__init__(name=name, settings=settings, **kwargs)

    @time_it("knn_regressor_fit")
    def fit(self, features: Table, targets: LabelsLike) -> 'KNeighborsRegressor':
        """Store the training features and targets"""
        logger.info(f"Fitting {self.name} on {features.row_count} rows with {features.column_count} features")
        start = time.perf_counter()

        validation = self._store_training(features, targets)
        for warning in validation.warnings:
            logger.warning(warning)

        self._mark_trained(self.n_training_samples, len(self.feature_names), time.perf_counter() - start)
        return self

    def _target_values(self) -> np.ndarray:
        dtype = self._train_labels.dtype
        if dtype is not None and not dtype.is_numeric:
            raise TypeMismatchError(
                f"{self.name} targets hold {dtype} values; regression needs numeric targets",
                expected="numeric",
                actual=dtype
            )
        return self._train_labels.to_numpy().astype(np.float64)[:self.n_training_samples]

    @time_it("knn_regressor_predict")
    def predict(self, query: Table) -> Column:
        """
        Predict a value for every query row

        Returns:
            FLOAT64 Column "predictions"

        Raises:
            NotFittedError: Before fit
            ColumnNotFoundError: If a training feature column is missing
            TypeMismatchError: If a feature column or the targets are not numeric
            NoDataError: If the model was fitted without training rows
        """
        self._check_is_fitted()
        targets = self._target_values()
        distances, positions = self._search(query)
        neighbor_targets = targets[positions]

        uniform = neighbor_targets.mean(axis=1) if neighbor_targets.size else np.zeros(len(positions))
        weights = self._neighbor_weights(distances)
        weight_sums = weights.sum(axis=1)
        usable = np.isfinite(weight_sums) & (weight_sums != 0)

        with np.errstate(divide='ignore', invalid='ignore'):
            weighted = (weights * neighbor_targets).sum(axis=1) / weight_sums
        predictions = np.where(usable, weighted, uniform)

        self.log_prediction(query.row_count)
        return Column.from_numpy(predictions.astype(np.float64), label="predictions")

    def get_model_info(self) -> Dict[str, Any]:
        info = super().get_model_info()
        info['n_training_samples'] = self.n_training_samples
        return info

def create_knn_regressor(n_neighbors: Optional[int] = None, name: str = "knn_regressor",
                         **settings) -> KNeighborsRegressor:
    """Create a KNeighborsRegressor from keyword settings"""
    if n_neighbors is not None:
        settings['n_neighbors'] = n_neighbors
    return KNeighborsRegressor(KNeighborsRegressorSettings(**settings), name=name)
