# ============================================
# Veracity - src/veracity/models/neighbors/base.py
# Brute-force neighbor search shared by the KNN models
# ============================================

from typing import Any, List, Optional, Sequence, Tuple, Union

import numpy as np
from joblib import Parallel, delayed

from ...data.column import Column
from ...data.table import Table
from ...utils.config_loader import get
from ...utils.exceptions import NoDataError, TypeMismatchError
from ...utils.logger import get_logger, get_performance_logger
from ...utils.timing import Timer
from ...utils.validators import ValidationResult
from .distance import pairwise_distances
from .enums import KNeighborsWeights

logger = get_logger('models.neighbors.base')
performance_logger = get_performance_logger('models.neighbors')

LabelsLike = Union[Column, Sequence[Any], np.ndarray]

def as_column(values: LabelsLike) -> Column:
    if isinstance(values, Column):
        return values
    return Column.from_values(values)

def numeric_matrix(table: Table, names: Sequence[str], role: str) -> np.ndarray:
    """
    Float64 (rows, features) matrix of the named columns

    Raises:
        ColumnNotFoundError: If a named column is missing
        TypeMismatchError: If a named column is not BOOL, INT64 or FLOAT64
    """
    columns = []
    for name in names:
        column = table.get_column(name)
        if column.dtype is not None and not column.dtype.is_numeric:
            raise TypeMismatchError(
                f"{role.capitalize()} column {name!r} holds {column.dtype} values; neighbor search needs numeric features",
                expected="numeric",
                actual=column.dtype
            )
        columns.append(column.to_numpy().astype(np.float64))

    if not columns:
        return np.empty((table.row_count, 0))
    return np.column_stack(columns)

class NeighborsMixin:
    """
    Training storage and k-nearest-neighbor search

    Mixed into BaseModel subclasses whose settings carry n_neighbors,
    metric, p, weights, epsilon and n_jobs.
    """

    _train_features: Optional[Table] = None
    _train_labels: Optional[Column] = None
    _train_matrix: Optional[np.ndarray] = None

    def _store_training(self, features: Table, labels: LabelsLike) -> ValidationResult:
        """Keep deep copies of the training data"""
        self._train_features = features.copy()
        self._train_labels = as_column(labels).copy()
        self._train_matrix = None
        self.feature_names = self._train_features.column_names

        result = ValidationResult()
        if self._train_features.row_count != len(self._train_labels):
            result.add_warning(
                f"{self.name}: {self._train_features.row_count} feature rows but {len(self._train_labels)} labels; "
                f"only the first {self.n_training_samples} rows take part in the search"
            )
        if self._train_features.row_count == 0:
            result.add_warning(f"{self.name} was fitted without training rows")
        return result

    @property
    def n_training_samples(self) -> int:
        """Rows that have both features and a label"""
        if self._train_features is None or self._train_labels is None:
            return 0
        return min(self._train_features.row_count, len(self._train_labels))

    def _training_matrix(self) -> np.ndarray:
        if self._train_matrix is None:
            matrix = numeric_matrix(self._train_features, self.feature_names, "training")
            self._train_matrix = matrix[:self.n_training_samples]
        return self._train_matrix

    def _query_matrix(self, query: Table) -> np.ndarray:
        return numeric_matrix(query, self.feature_names, "query")

    # ============================================
    # Neighbor search
    # ============================================

    def _effective_k(self) -> int:
        n_samples = self.n_training_samples
        if n_samples == 0:
            raise NoDataError(f"{self.name} has no training rows to search")
        return min(self.settings.n_neighbors, n_samples)

    def _search_chunk(self, chunk: np.ndarray, train: np.ndarray, k: int) -> Tuple[np.ndarray, np.ndarray]:
        distances = pairwise_distances(chunk, train, self.settings.metric, self.settings.p)
        # stable ascending order, NaN last
        order = np.argsort(distances, axis=1, kind='stable')[:, :k]
        return np.take_along_axis(distances, order, axis=1), order

    def _search(self, query: Table) -> Tuple[np.ndarray, np.ndarray]:
        """(distances, positions) of the k nearest training rows for every query row"""
        self._check_is_fitted()
        k = self._effective_k()
        train = self._training_matrix()
        queries = self._query_matrix(query)

        chunk_size = max(1, int(get('model_config', 'knn.chunk_size', 1024)))
        bounds = [(start, min(start + chunk_size, len(queries))) for start in range(0, len(queries), chunk_size)]
        if not bounds:
            return np.empty((0, k)), np.empty((0, k), dtype=np.int64)

        n_jobs = self.settings.n_jobs
        timer = Timer(f"{self.name}_neighbor_search", auto_log=False)
        with timer:
            if n_jobs in (None, 1) or len(bounds) == 1:
                results = [self._search_chunk(queries[start:end], train, k) for start, end in bounds]
            else:
                results = Parallel(n_jobs=n_jobs, backend='threading')(
                    delayed(self._search_chunk)(queries[start:end], train, k) for start, end in bounds
                )
        performance_logger.log_timing(timer.operation_name, timer.result.duration, n_queries=len(queries), k=k)

        distances = np.vstack([chunk_distances for chunk_distances, _ in results])
        positions = np.vstack([chunk_positions for _, chunk_positions in results])
        return distances, positions

    def _neighbor_weights(self, distances: np.ndarray) -> np.ndarray:
        if self.settings.weights == KNeighborsWeights.DISTANCE:
            with np.errstate(divide='ignore', invalid='ignore'):
                return 1.0 / (distances + self.settings.epsilon)
        return np.ones_like(distances)

    def kneighbors(self, query: Table) -> Tuple[np.ndarray, np.ndarray]:
        """
        Find the nearest training rows of every query row

        Args:
            query: Table holding the training feature columns

        Returns:
            (distances, positions), both of shape (n_queries, k) with k
            clamped to the number of training rows; positions index the
            training rows in fit order

        Raises:
            NotFittedError: Before fit
            NoDataError: If the model was fitted without training rows
        """
        return self._search(query)

    def _training_label_values(self) -> List[Any]:
        return self._train_labels.to_list()[:self.n_training_samples]
