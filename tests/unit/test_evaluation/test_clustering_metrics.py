"""
tests/unit/test_evaluation/test_clustering_metrics.py

Unit tests for clustering validity indices. Distances are squared
Euclidean throughout.
"""

import numpy as np
import pytest
from sklearn import metrics as sk_metrics

from veracity.data.table import Table
from veracity.evaluation.metrics.clustering_metrics import (
    calculate_calinski_harabasz,
    calculate_davies_bouldin,
    calculate_dunn_index,
    calculate_silhouette,
)
from veracity.utils.exceptions import ShapeMismatchError

@pytest.fixture
def blobs():
    """Three seeded Gaussian blobs with string labels"""
    rng = np.random.default_rng(7)
    centers = np.array([[0.0, 0.0], [6.0, 0.0], [0.0, 6.0]])
    points = np.vstack([center + rng.normal(scale=0.8, size=(15, 2)) for center in centers])
    labels = np.repeat(['c0', 'c1', 'c2'], 15)
    return points, labels

class TestClusteringMetrics:
    """Test clustering indices"""

    def test_calinski_harabasz_matches_sklearn(self, blobs):
        points, labels = blobs
        expected = sk_metrics.calinski_harabasz_score(points, labels)

        assert calculate_calinski_harabasz(points, labels) == pytest.approx(expected)

    def test_silhouette_matches_sklearn_sqeuclidean(self, blobs):
        """Test the silhouette with squared Euclidean distances"""
        points, labels = blobs
        expected = sk_metrics.silhouette_score(points, labels, metric='sqeuclidean')

        assert calculate_silhouette(points, labels) == pytest.approx(expected)

    def test_silhouette_singleton_scores_zero(self):
        """Test a one-point cluster contributes 0"""
        points = np.array([[0.0], [1.0], [10.0]])
        labels = [0, 0, 1]

        # both members of cluster 0: a = 1, b = 100 and 81
        expected = ((100 - 1) / 100 + (81 - 1) / 81 + 0.0) / 3
        assert calculate_silhouette(points, labels) == pytest.approx(expected)

    def test_davies_bouldin(self):
        """Test RMS scatter over squared centroid separation"""
        points = np.array([[0.0, 0.0], [2.0, 0.0], [10.0, 0.0], [10.0, 4.0]])
        labels = ['a', 'a', 'b', 'b']

        # scatter a = 1, scatter b = 2, separation = 9² + 2² = 85
        expected = (3.0 / 85.0 + 3.0 / 85.0) / 2
        assert calculate_davies_bouldin(points, labels) == pytest.approx(expected)

    def test_davies_bouldin_skips_coincident_centroids(self):
        """Test clusters sharing a centroid do not divide by zero"""
        points = np.array([[-1.0], [1.0], [-2.0], [2.0]])
        assert calculate_davies_bouldin(points, [0, 0, 1, 1]) == 0.0

    def test_dunn_index(self):
        """Test min centroid separation over max point-to-centroid distance"""
        points = np.array([[0.0, 0.0], [2.0, 0.0], [10.0, 0.0], [10.0, 4.0]])

        # separation 85; largest squared distance to own centroid 4
        assert calculate_dunn_index(points, ['a', 'a', 'b', 'b']) == pytest.approx(85.0 / 4.0)

    def test_compact_clusters_score_better(self, blobs):
        """Test tighter blobs improve every index"""
        points, labels = blobs
        centers = {label: points[labels == label].mean(axis=0) for label in set(labels)}
        tighter = np.array([
            centers[label] + 0.5 * (point - centers[label])
            for point, label in zip(points, labels)
        ])

        assert calculate_calinski_harabasz(tighter, labels) > calculate_calinski_harabasz(points, labels)
        assert calculate_davies_bouldin(tighter, labels) < calculate_davies_bouldin(points, labels)
        assert calculate_dunn_index(tighter, labels) > calculate_dunn_index(points, labels)
        assert calculate_silhouette(tighter, labels) > calculate_silhouette(points, labels)

    def test_single_cluster(self, blobs):
        """Test every index is 0 with fewer than two clusters"""
        points, _ = blobs
        labels = ['only'] * len(points)

        for index in (calculate_calinski_harabasz, calculate_davies_bouldin,
                      calculate_dunn_index, calculate_silhouette):
            assert index(points, labels) == 0.0

    def test_calinski_harabasz_zero_dispersion(self):
        """Test clusters of identical points"""
        points = np.array([[0.0], [0.0], [5.0], [5.0]])
        assert calculate_calinski_harabasz(points, [0, 0, 1, 1]) == 1.0

    def test_table_input(self, blobs):
        """Test a Table of feature columns gives the same value"""
        points, labels = blobs
        table = Table.from_dict({'x': points[:, 0], 'y': points[:, 1]})

        assert calculate_silhouette(table, labels) == pytest.approx(calculate_silhouette(points, labels))

    def test_label_count_mismatch(self, blobs):
        points, labels = blobs
        with pytest.raises(ShapeMismatchError):
            calculate_silhouette(points, labels[:-1])
