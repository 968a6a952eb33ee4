from .evaluation_metrics import EvaluationMetric, MetricCategory
from .classification_metrics import calculate_classification_metrics
from .regression_metrics import calculate_regression_metrics

__all__ = [
    'EvaluationMetric',
    'MetricCategory',
    'calculate_classification_metrics',
    'calculate_regression_metrics',
]
