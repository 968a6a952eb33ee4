from .distance import compute_distance, pairwise_distances
from .enums import DistanceMetric, KNeighborsWeights
from .knn_classifier import KNeighborsClassifier, create_knn_classifier
from .knn_regressor import KNeighborsRegressor, create_knn_regressor
from .settings import KNeighborsClassifierSettings, KNeighborsRegressorSettings

__all__ = [
    'compute_distance',
    'pairwise_distances',
    'DistanceMetric',
    'KNeighborsWeights',
    'KNeighborsClassifier',
    'KNeighborsClassifierSettings',
    'KNeighborsRegressor',
    'KNeighborsRegressorSettings',
    'create_knn_classifier',
    'create_knn_regressor',
]
