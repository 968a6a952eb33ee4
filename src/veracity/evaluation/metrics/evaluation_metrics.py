# ============================================
# Veracity - src/veracity/evaluation/metrics/evaluation_metrics.py
# Names of all evaluation metrics used for model scoring
# ============================================

from enum import Enum
from typing import List, Union

from ...utils.exceptions import InvalidParameterError

class MetricCategory(Enum):
    """Model kind a metric is defined for"""
    CLASSIFICATION = "classification"
    REGRESSION = "regression"
    CLUSTERING = "clustering"

class EvaluationMetric(Enum):
    """Every metric a model can be asked to score with"""
    # Classification
    ACCURACY = "accuracy"
    AUPRC = "auprc"
    AUROC = "auroc"
    F1 = "f1"
    GEOMETRIC_MEAN = "geometric_mean"
    LOG_LOSS = "log_loss"
    LRAP = "lrap"
    PRECISION = "precision"
    RECALL = "recall"
    SPECIFICITY = "specificity"

    # Clustering
    CALINSKI_HARABASZ = "calinski_harabasz"
    DAVIES_BOULDIN = "davies_bouldin"
    DUNN_INDEX = "dunn_index"
    SILHOUETTE = "silhouette"

    # Regression
    ADJUSTED_R2 = "adjusted_r2"
    EXPLAINED_VARIANCE = "explained_variance"
    HUBER_LOSS = "huber_loss"
    LOG_COSH_LOSS = "log_cosh_loss"
    MAE = "mae"
    MAPE = "mape"
    MBD = "mbd"
    MSE = "mse"
    MSLE = "msle"
    QUANTILE_LOSS = "quantile_loss"
    R2 = "r2"
    RMSE = "rmse"
    SMAPE = "smape"

    @property
    def category(self) -> MetricCategory:
        if self in _CLASSIFICATION:
            return MetricCategory.CLASSIFICATION
        if self in _CLUSTERING:
            return MetricCategory.CLUSTERING
        return MetricCategory.REGRESSION

    @classmethod
    def coerce(cls, value: Union['EvaluationMetric', str]) -> 'EvaluationMetric':
        """Accept a member or its name/value, case-insensitively"""
        if isinstance(value, cls):
            return value
        if isinstance(value, str):
            key = value.strip().lower().replace('-', '_')
            for member in cls:
                if key in (member.value, member.name.lower()):
                    return member
        raise InvalidParameterError(
            f"Unknown evaluation metric: {value!r}",
            parameter_name="score_metric",
            provided_value=value
        )

    @classmethod
    def for_category(cls, category: MetricCategory) -> List['EvaluationMetric']:
        return [member for member in cls if member.category == category]

_CLASSIFICATION = frozenset({
    EvaluationMetric.ACCURACY,
    EvaluationMetric.AUPRC,
    EvaluationMetric.AUROC,
    EvaluationMetric.F1,
    EvaluationMetric.GEOMETRIC_MEAN,
    EvaluationMetric.LOG_LOSS,
    EvaluationMetric.LRAP,
    EvaluationMetric.PRECISION,
    EvaluationMetric.RECALL,
    EvaluationMetric.SPECIFICITY,
})

_CLUSTERING = frozenset({
    EvaluationMetric.CALINSKI_HARABASZ,
    EvaluationMetric.DAVIES_BOULDIN,
    EvaluationMetric.DUNN_INDEX,
    EvaluationMetric.SILHOUETTE,
})
