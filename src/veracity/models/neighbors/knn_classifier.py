# ============================================
# Veracity - src/veracity/models/neighbors/knn_classifier.py
# K-Nearest Neighbors classification
# ============================================

import time
from typing import Any, Dict, List, Optional

import numpy as np

from ...data.column import Column, DataType
from ...data.table import Table
from ...utils.exceptions import TypeMismatchError
from ...utils.logger import get_logger
from ...utils.timing import time_it
from ..base.base_classifier import BaseClassifier
from .base import LabelsLike, NeighborsMixin, as_column
from .settings import KNeighborsClassifierSettings

logger = get_logger('models.neighbors.knn_classifier')

# ============================================
# K-Nearest Neighbors Classification Model
# ============================================

class KNeighborsClassifier(NeighborsMixin, BaseClassifier[KNeighborsClassifierSettings]):
    """
    Brute-force k-nearest-neighbors classifier over Tables

    Labels may be of any column type. Neighbors are ranked by ascending
    distance with ties kept in training order and NaN distances last.
    With uniform weights each neighbor casts one vote; with distance
    weights a neighbor adds 1 / (distance + epsilon) to its label. The
    label with the largest total wins, ties going to the smallest label.

    Example:
        >>> model = KNeighborsClassifier(KNeighborsClassifierSettings(n_neighbors=3))
        >>> model.fit(train_features, train_labels)
        >>> model.predict(test_features).to_list()
    """

    settings_class = KNeighborsClassifierSettings

    def __init__(self,
                 settings: Optional[KNeighborsClassifierSettings] = None,
                 name: str = "knn_classifier",
                 **kwargs):
        super().__init__(name=name, settings=settings, **kwargs)
        self._classes: List[Any] = []
        self._label_codes: Optional[np.ndarray] = None

    @property
    def classes_(self) -> List[Any]:
        self._check_is_fitted()
        return list(self._classes)

    @time_it("knn_classifier_fit")
    def fit(self, features: Table, labels: LabelsLike) -> 'KNeighborsClassifier':
        """
        Store the training data

        Args:
            features: Training feature table
            labels: One label per training row

        Returns:
            The fitted model

        Raises:
            TypeMismatchError: If a FLOAT64 label column holds NaN
        """
        logger.info(f"Fitting {self.name} on {features.row_count} rows with {features.column_count} features")
        start = time.perf_counter()

        labels = as_column(labels)
        if labels.dtype == DataType.FLOAT64 and np.isnan(labels.to_numpy()).any():
            raise TypeMismatchError(
                f"Labels of {self.name} contain NaN, which cannot be used as a class",
                expected="non-NaN labels",
                actual="NaN"
            )

        validation = self._store_training(features, labels)
        for warning in validation.warnings:
            logger.warning(warning)

        self._classes = self._train_labels.unique()
        class_positions = {label: position for position, label in enumerate(self._classes)}
        self._label_codes = np.array(
            [class_positions[label] for label in self._training_label_values()],
            dtype=np.int64
        )

        self._mark_trained(self.n_training_samples, len(self.feature_names), time.perf_counter() - start)
        logger.info(f"Model {self.name} trained with {len(self._classes)} classes")
        return self

    def _class_totals(self, query: Table) -> np.ndarray:
        """(n_queries, n_classes) vote totals; rows without a usable total fall back to uniform counts"""
        distances, positions = self._search(query)
        codes = self._label_codes[positions]
        rows = np.repeat(np.arange(len(codes)), codes.shape[1])

        totals = np.zeros((len(codes), len(self._classes)))
        np.add.at(totals, (rows, codes.ravel()), self._neighbor_weights(distances).ravel())

        row_sums = totals.sum(axis=1)
        invalid = ~np.isfinite(row_sums) | (row_sums == 0)
        if np.any(invalid):
            logger.debug(f"{int(np.sum(invalid))} query rows fell back to uniform votes")
            counts = np.zeros((int(np.sum(invalid)), len(self._classes)))
            invalid_codes = codes[invalid]
            invalid_rows = np.repeat(np.arange(len(invalid_codes)), invalid_codes.shape[1])
            np.add.at(counts, (invalid_rows, invalid_codes.ravel()), 1.0)
            totals[invalid] = counts
        return totals

    @time_it("knn_classifier_predict")
    def predict(self, query: Table) -> Column:
        """
        Predict a label for every query row

        Args:
            query: Table holding the training feature columns (matched by name)

        Returns:
            Column "predictions" with the training label type

        Raises:
            NotFittedError: Before fit
            ColumnNotFoundError: If a training feature column is missing
            TypeMismatchError: If a feature column is not numeric
            NoDataError: If the model was fitted without training rows
        """
        totals = self._class_totals(query)
        # argmax takes the first maximum, i.e. the smallest label
        winners = np.argmax(totals, axis=1) if len(totals) else np.empty(0, dtype=np.int64)
        predictions = [self._classes[code] for code in winners]

        self.log_prediction(query.row_count)
        return Column.from_values(predictions, dtype=self._train_labels.dtype, label="predictions")

    @time_it("knn_classifier_predict_proba")
    def predict_proba(self, query: Table) -> Table:
        """
        Class probabilities for every query row

        Returns:
            Table with one FLOAT64 column per class, labelled str(class) and
            ordered like classes_, indexed like the query. Rows sum to 1.
        """
        totals = self._class_totals(query)
        probabilities = totals / totals.sum(axis=1, keepdims=True) if len(totals) else totals

        table = Table()
        for position, label in enumerate(self._classes):
            table.add_column(Column.from_numpy(probabilities[:, position]), str(label))
        if query.index is not None and table.column_count:
            table.set_index(query.index)

        self.log_prediction(query.row_count)
        return table

    def get_model_info(self) -> Dict[str, Any]:
        info = super().get_model_info()
        info.update({
            'n_training_samples': self.n_training_samples,
            'classes': [str(label) for label in self._classes],
            'n_classes': len(self._classes),
        })
        return info

# ============================================
# Factory Functions
# ============================================

def create_knn_classifier(n_neighbors: Optional[int] = None, name: str = "knn_classifier",
                          **settings) -> KNeighborsClassifier:
    """
    Create a KNeighborsClassifier from keyword settings

    Example:
        >>> create_knn_classifier(3, weights="distance", metric="manhattan")
    """
    if n_neighbors is not None:
        settings['n_neighbors'] = n_neighbors
    return KNeighborsClassifier(KNeighborsClassifierSettings(**settings), name=name)
