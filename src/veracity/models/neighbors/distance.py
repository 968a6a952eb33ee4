# ============================================
# Veracity - src/veracity/models/neighbors/distance.py
# Distance kernels between numeric vectors
# ============================================

from typing import Sequence, Tuple, Union

import numpy as np
from scipy.spatial.distance import cdist

from .enums import DistanceMetric

Vector = Union[np.ndarray, Sequence[float]]

# Upper bound on elements of a (queries, train, features) broadcast block
_BROADCAST_BUDGET = 1 << 22

def _as_pair(a: Vector, b: Vector) -> Tuple[np.ndarray, np.ndarray]:
    a = np.asarray(a, dtype=np.float64)
    b = np.asarray(b, dtype=np.float64)
    if a.ndim != 1 or b.ndim != 1:
        raise ValueError(f"Distance kernels take 1-D vectors, got shapes {a.shape} and {b.shape}")
    if a.shape[0] != b.shape[0]:
        raise ValueError(f"Vectors must be the same length, got {a.shape[0]} and {b.shape[0]}")
    return a, b

# ============================================
# Single-pair kernels
# ============================================

def euclidean_distance(a: Vector, b: Vector) -> float:
    """Sum of squared differences (squared Euclidean distance, no square root)"""
    a, b = _as_pair(a, b)
    return float(np.sum((a - b) ** 2))

def manhattan_distance(a: Vector, b: Vector) -> float:
    """Sum of absolute differences"""
    a, b = _as_pair(a, b)
    return float(np.sum(np.abs(a - b)))

def minkowski_distance(a: Vector, b: Vector, p: float = 2) -> float:
    """(Σ|aᵢ - bᵢ|^p)^(1/p); p is used as given"""
    a, b = _as_pair(a, b)
    with np.errstate(divide='ignore', invalid='ignore', over='ignore'):
        return float(np.sum(np.abs(a - b) ** p) ** (1.0 / p))

def cosine_distance(a: Vector, b: Vector) -> float:
    """1 - cosine similarity; NaN if either vector has zero norm"""
    a, b = _as_pair(a, b)
    norm_a = np.linalg.norm(a)
    norm_b = np.linalg.norm(b)
    if norm_a == 0 or norm_b == 0:
        return float('nan')
    return float(1.0 - np.dot(a, b) / (norm_a * norm_b))

def nan_euclidean_distance(a: Vector, b: Vector) -> float:
    """Squared differences summed over positions where neither value is NaN"""
    a, b = _as_pair(a, b)
    mask = ~(np.isnan(a) | np.isnan(b))
    return float(np.sum((a[mask] - b[mask]) ** 2))

def compute_distance(a: Vector, b: Vector, metric: Union[DistanceMetric, str] = DistanceMetric.EUCLIDEAN,
                     p: float = 2) -> float:
    """Distance between a and b under metric"""
    metric = DistanceMetric.coerce(metric)
    if metric == DistanceMetric.EUCLIDEAN:
        return euclidean_distance(a, b)
    if metric == DistanceMetric.MANHATTAN:
        return manhattan_distance(a, b)
    if metric == DistanceMetric.MINKOWSKI:
        return minkowski_distance(a, b, p)
    if metric == DistanceMetric.COSINE:
        return cosine_distance(a, b)
    return nan_euclidean_distance(a, b)

# ============================================
# Pairwise distance matrices
# ============================================

def _blocked(queries: np.ndarray, train: np.ndarray, kernel) -> np.ndarray:
    """Apply a broadcasting kernel over blocks of query rows"""
    n_features = max(1, queries.shape[1])
    block = max(1, _BROADCAST_BUDGET // max(1, train.shape[0] * n_features))
    parts = [
        kernel(queries[start:start + block, np.newaxis, :], train[np.newaxis, :, :])
        for start in range(0, queries.shape[0], block)
    ]
    if not parts:
        return np.empty((0, train.shape[0]))
    return np.vstack(parts)

def _pairwise_cosine(queries: np.ndarray, train: np.ndarray) -> np.ndarray:
    query_norms = np.linalg.norm(queries, axis=1)
    train_norms = np.linalg.norm(train, axis=1)
    denominator = np.outer(query_norms, train_norms)
    with np.errstate(divide='ignore', invalid='ignore'):
        distances = 1.0 - (queries @ train.T) / denominator
    distances[denominator == 0] = np.nan
    return distances

def pairwise_distances(queries: np.ndarray, train: np.ndarray,
                       metric: Union[DistanceMetric, str] = DistanceMetric.EUCLIDEAN,
                       p: float = 2) -> np.ndarray:
    """
    Distance from every query row to every training row

    Entry [i, j] equals compute_distance(queries[i], train[j], metric, p).

    Args:
        queries: (n_queries, n_features) array
        train: (n_train, n_features) array
        metric: Distance metric
        p: Minkowski exponent

    Returns:
        (n_queries, n_train) float64 array
    """
    metric = DistanceMetric.coerce(metric)
    queries = np.asarray(queries, dtype=np.float64)
    train = np.asarray(train, dtype=np.float64)
    if queries.ndim != 2 or train.ndim != 2:
        raise ValueError(f"Pairwise distances take 2-D arrays, got shapes {queries.shape} and {train.shape}")
    if queries.shape[1] != train.shape[1]:
        raise ValueError(f"Feature counts differ: {queries.shape[1]} and {train.shape[1]}")

    if queries.shape[0] == 0 or train.shape[0] == 0:
        return np.empty((queries.shape[0], train.shape[0]))

    if metric == DistanceMetric.EUCLIDEAN:
        return cdist(queries, train, 'sqeuclidean')
    if metric == DistanceMetric.MANHATTAN:
        return cdist(queries, train, 'cityblock')
    if metric == DistanceMetric.COSINE:
        return _pairwise_cosine(queries, train)
    if metric == DistanceMetric.MINKOWSKI:
        def minkowski(q, t):
            with np.errstate(divide='ignore', invalid='ignore', over='ignore'):
                return np.sum(np.abs(q - t) ** p, axis=2) ** (1.0 / p)
        return _blocked(queries, train, minkowski)

    def nan_euclidean(q, t):
        return np.nansum((q - t) ** 2, axis=2)
    return _blocked(queries, train, nan_euclidean)
