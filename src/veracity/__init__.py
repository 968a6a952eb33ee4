"""
Veracity - typed columnar tables, k-nearest-neighbors models and evaluation metrics
"""

from .data.column import Column, DataType
from .data.loaders.csv_loader import CSVLoader, CSVLoaderSettings
from .data.table import Table
from .evaluation.metrics.evaluation_metrics import EvaluationMetric, MetricCategory
from .models.neighbors.enums import DistanceMetric, KNeighborsWeights
from .models.neighbors.knn_classifier import KNeighborsClassifier
from .models.neighbors.knn_regressor import KNeighborsRegressor
from .models.neighbors.settings import KNeighborsClassifierSettings, KNeighborsRegressorSettings
from .utils.exceptions import VeracityBaseException

__version__ = "1.0.0"

__all__ = [
    'Column',
    'DataType',
    'Table',
    'CSVLoader',
    'CSVLoaderSettings',
    'EvaluationMetric',
    'MetricCategory',
    'DistanceMetric',
    'KNeighborsWeights',
    'KNeighborsClassifier',
    'KNeighborsClassifierSettings',
    'KNeighborsRegressor',
    'KNeighborsRegressorSettings',
    'VeracityBaseException',
]
