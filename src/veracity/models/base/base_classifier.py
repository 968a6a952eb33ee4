# ============================================
# Veracity - src/veracity/models/base/base_classifier.py
# Base classifier interface with metric-dispatched scoring
# ============================================

from abc import abstractmethod
from typing import Any, Callable, Dict, List, Optional

import numpy as np

from ...data.column import Column
from ...data.table import Table
from ...evaluation.metrics.classification_metrics import (
    calculate_accuracy,
    calculate_auprc,
    calculate_f1,
    calculate_geometric_mean,
    calculate_precision,
    calculate_recall,
    calculate_specificity,
)
from ...evaluation.metrics.common import ArrayLike, resolve_positive_class, to_array
from ...evaluation.metrics.evaluation_metrics import EvaluationMetric, MetricCategory
from ...utils.exceptions import MetricNotApplicableError, MetricNotImplementedError
from ...utils.logger import get_logger
from .base_model import BaseModel, ModelType, PredictionType, SettingsT

logger = get_logger('models.base.classifier')

# Metrics computed from predicted labels and a positive class
_LABEL_METRICS: Dict[EvaluationMetric, Callable[..., float]] = {
    EvaluationMetric.F1: calculate_f1,
    EvaluationMetric.GEOMETRIC_MEAN: calculate_geometric_mean,
    EvaluationMetric.PRECISION: calculate_precision,
    EvaluationMetric.RECALL: calculate_recall,
    EvaluationMetric.SPECIFICITY: calculate_specificity,
}

_UNSUPPORTED_METRICS = frozenset({
    EvaluationMetric.AUROC,
    EvaluationMetric.LOG_LOSS,
    EvaluationMetric.LRAP,
})

class BaseClassifier(BaseModel[SettingsT]):
    """
    Abstract base class for classifiers

    Settings must expose ``score_metric``; score() dispatches on it.
    """

    def __init__(self, name: str, settings: Optional[SettingsT] = None, **kwargs):
        super().__init__(
            name=name,
            model_type=ModelType.CLASSIFICATION,
            prediction_type=PredictionType.CLASSIFICATION,
            settings=settings,
            **kwargs
        )

    @property
    @abstractmethod
    def classes_(self) -> List[Any]:
        """Distinct training labels in natural sort order"""
        pass

    @abstractmethod
    def predict_proba(self, query: Table) -> Table:
        """One probability column per class, in classes_ order"""
        pass

    def score(self, query: Table, labels: ArrayLike) -> float:
        """
        Score predictions for query against the actual labels

        Binary metrics treat the first actual label as the positive class.

        Args:
            query: Feature table
            labels: Actual labels, one per query row

        Returns:
            Value of settings.score_metric

        Raises:
            MetricNotApplicableError: For regression or clustering metrics
            MetricNotImplementedError: For AUROC, log loss and LRAP
        """
        self._check_is_fitted()
        metric = self.settings.score_metric

        if metric.category != MetricCategory.CLASSIFICATION:
            raise MetricNotApplicableError(
                f"{metric.value} is a {metric.category.value} metric and cannot score a classifier",
                metric=metric.value
            )
        if metric in _UNSUPPORTED_METRICS:
            raise MetricNotImplementedError(
                f"Scoring a classifier with {metric.value} is not supported",
                metric=metric.value
            )

        actual = to_array(labels)
        positive_class = resolve_positive_class(actual)

        if metric == EvaluationMetric.AUPRC:
            scores = self._positive_class_scores(query, positive_class)
            result = calculate_auprc(actual, scores, positive_class)
        else:
            predictions = self.predict(query)
            if metric == EvaluationMetric.ACCURACY:
                result = calculate_accuracy(actual, predictions)
            else:
                result = _LABEL_METRICS[metric](actual, predictions, positive_class)

        logger.info(f"{self.name} {metric.value} score: {result:.4f}")
        return result

    def _positive_class_scores(self, query: Table, positive_class: Any) -> np.ndarray:
        """Predicted probability of positive_class, zeros if it was never seen in training"""
        probabilities = self.predict_proba(query)
        classes = self.classes_
        if positive_class not in classes:
            logger.warning(f"Positive class {positive_class!r} was not seen in training; scoring with zeros")
            return np.zeros(query.row_count)

        column: Column = probabilities.column_at(classes.index(positive_class))
        return column.to_numpy()
