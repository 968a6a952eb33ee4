# ============================================
# Veracity - src/veracity/evaluation/metrics/clustering_metrics.py
# Internal clustering validity indices
# ============================================

from typing import Any, Dict, List, Tuple, Union

import numpy as np
from scipy.spatial.distance import cdist

from ...data.table import Table
from ...utils.exceptions import ShapeMismatchError
from ...utils.logger import get_logger
from ...utils.timing import time_it
from .common import ArrayLike, to_array

logger = get_logger('evaluation.metrics.clustering')

# All indices measure distances as squared Euclidean, matching the
# "euclidean" distance kernel used by the neighbor models.
DISTANCE = 'sqeuclidean'

def _prepare(data: Union[np.ndarray, Table], labels: ArrayLike) -> Tuple[np.ndarray, List[np.ndarray]]:
    """Float feature matrix plus the row positions of each cluster, clusters in label order"""
    matrix = data.to_dense_matrix() if isinstance(data, Table) else np.asarray(data)
    if matrix.ndim != 2:
        raise ShapeMismatchError(f"Clustering data must be 2-dimensional, got {matrix.ndim} dimensions")
    matrix = matrix.astype(np.float64)

    label_array = to_array(labels)
    if len(label_array) != matrix.shape[0]:
        raise ShapeMismatchError(
            f"Each point must have a label: {matrix.shape[0]} points, {len(label_array)} labels",
            expected=matrix.shape[0],
            actual=len(label_array)
        )

    members: Dict[Any, List[int]] = {}
    for position, label in enumerate(label_array.tolist()):
        members.setdefault(label, []).append(position)

    clusters = [np.asarray(members[label]) for label in sorted(members)]
    return matrix, clusters

def _centroids(matrix: np.ndarray, clusters: List[np.ndarray]) -> np.ndarray:
    return np.vstack([matrix[positions].mean(axis=0) for positions in clusters])

@time_it("calinski_harabasz_calculation")
def calculate_calinski_harabasz(data: Union[np.ndarray, Table], labels: ArrayLike) -> float:
    """
    Calculate the Calinski-Harabasz (variance ratio) index

    Args:
        data: (n_samples, n_features) points
        labels: Cluster label per point

    Returns:
        Between-cluster over within-cluster dispersion, each divided by its
        degrees of freedom. 0.0 for fewer than two clusters.
    """
    matrix, clusters = _prepare(data, labels)
    n_samples, n_clusters = matrix.shape[0], len(clusters)
    if n_clusters < 2:
        return 0.0

    overall_mean = matrix.mean(axis=0)
    between = 0.0
    within = 0.0
    for positions in clusters:
        points = matrix[positions]
        centroid = points.mean(axis=0)
        between += len(positions) * float(np.sum((centroid - overall_mean) ** 2))
        within += float(np.sum((points - centroid) ** 2))

    if within == 0:
        return 1.0

    return float((between / (n_clusters - 1)) / (within / (n_samples - n_clusters)))

@time_it("davies_bouldin_calculation")
def calculate_davies_bouldin(data: Union[np.ndarray, Table], labels: ArrayLike) -> float:
    """
    Calculate the Davies-Bouldin index (lower is better)

    Cluster scatter is the root mean squared distance of its points to the
    centroid; cluster separation is the squared distance between centroids.
    Pairs with coincident centroids are skipped.

    Returns:
        Mean over clusters of the worst (scatter_i + scatter_j) / separation_ij,
        0.0 for fewer than two clusters
    """
    matrix, clusters = _prepare(data, labels)
    if len(clusters) < 2:
        return 0.0

    centroids = _centroids(matrix, clusters)
    scatters = np.array([
        np.sqrt(np.mean(np.sum((matrix[positions] - centroid) ** 2, axis=1)))
        for positions, centroid in zip(clusters, centroids)
    ])
    separation = cdist(centroids, centroids, DISTANCE)

    total = 0.0
    for i in range(len(clusters)):
        ratios = [
            (scatters[i] + scatters[j]) / separation[i, j]
            for j in range(len(clusters))
            if j != i and separation[i, j] != 0
        ]
        if ratios:
            total += max(ratios)

    return float(total / len(clusters))

@time_it("dunn_index_calculation")
def calculate_dunn_index(data: Union[np.ndarray, Table], labels: ArrayLike) -> float:
    """
    Calculate the Dunn index (higher is better)

    Cluster diameter is the largest distance from a point to its own
    centroid; separation is the smallest distance between two centroids.

    Returns:
        min separation / max diameter, 0.0 for fewer than two clusters or
        when every cluster has zero diameter
    """
    matrix, clusters = _prepare(data, labels)
    if len(clusters) < 2:
        return 0.0

    centroids = _centroids(matrix, clusters)
    max_diameter = max(
        float(np.max(cdist(matrix[positions], centroid[np.newaxis, :], DISTANCE)))
        for positions, centroid in zip(clusters, centroids)
    )
    if max_diameter == 0:
        return 0.0

    separation = cdist(centroids, centroids, DISTANCE)
    min_separation = float(np.min(separation[np.triu_indices(len(clusters), k=1)]))
    return min_separation / max_diameter

@time_it("silhouette_calculation")
def calculate_silhouette(data: Union[np.ndarray, Table], labels: ArrayLike) -> float:
    """
    Calculate the mean silhouette coefficient

    For each point, a is the mean distance to the other members of its
    cluster and b the smallest mean distance to another cluster;
    s = (b - a) / max(a, b). Points in singleton clusters score 0.

    Returns:
        Mean silhouette (-1 to 1), 0.0 for fewer than two clusters
    """
    matrix, clusters = _prepare(data, labels)
    if len(clusters) < 2:
        return 0.0

    distances = cdist(matrix, matrix, DISTANCE)
    scores = np.zeros(matrix.shape[0])

    for cluster_id, positions in enumerate(clusters):
        if len(positions) < 2:
            continue
        own = distances[np.ix_(positions, positions)]
        a = own.sum(axis=1) / (len(positions) - 1)
        b = np.min(
            np.column_stack([
                distances[np.ix_(positions, other)].mean(axis=1)
                for other_id, other in enumerate(clusters)
                if other_id != cluster_id
            ]),
            axis=1
        )
        denominator = np.maximum(a, b)
        scores[positions] = np.divide(b - a, denominator, out=np.zeros_like(a), where=denominator != 0)

    return float(np.mean(scores))
