# ============================================
# Veracity - src/veracity/evaluation/metrics/classification_metrics.py
# Classification metrics over label and score sequences
# ============================================

import math
from typing import Any, Dict, Optional, Union

import numpy as np

from ...data.table import Table
from ...utils.exceptions import ShapeMismatchError
from ...utils.logger import get_logger
from ...utils.timing import time_it
from .common import ArrayLike, paired_arrays, resolve_positive_class, to_array, to_float_array

logger = get_logger('evaluation.metrics.classification')

LOG_LOSS_EPSILON = 1e-15

def _equal_mask(values: np.ndarray, other: Any) -> np.ndarray:
    """Element-wise equality that also works for object and mixed arrays"""
    if isinstance(other, np.ndarray):
        if values.dtype.kind in 'biuf' and other.dtype.kind in 'biuf':
            return values == other
        return np.fromiter((a == b for a, b in zip(values, other)), dtype=bool, count=len(values))
    return np.fromiter((a == other for a in values), dtype=bool, count=len(values))

def _binary_counts(y_true: np.ndarray, y_pred: np.ndarray, positive_class: Any) -> Dict[str, int]:
    actual_positive = _equal_mask(y_true, positive_class)
    predicted_positive = _equal_mask(y_pred, positive_class)
    correct = _equal_mask(y_pred, y_true)

    return {
        'tp': int(np.sum(actual_positive & predicted_positive)),
        'fp': int(np.sum(~actual_positive & predicted_positive)),
        'fn': int(np.sum(actual_positive & ~predicted_positive)),
        # negatives predicted as their own (non-positive) class
        'tn': int(np.sum(~actual_positive & correct)),
    }

def _safe_ratio(numerator: float, denominator: float) -> float:
    return float(numerator / denominator) if denominator else 0.0

# ============================================
# Label-based Metrics
# ============================================

@time_it("accuracy_calculation")
def calculate_accuracy(y_true: ArrayLike, y_pred: ArrayLike) -> float:
    """
    Calculate Accuracy - fraction of correct predictions

    Args:
        y_true: True class labels
        y_pred: Predicted class labels

    Returns:
        Accuracy score (0 to 1), NaN for empty inputs
    """
    y_true_array, y_pred_array = paired_arrays(y_true, y_pred)
    if len(y_true_array) == 0:
        return float('nan')

    return float(np.mean(_equal_mask(y_pred_array, y_true_array)))

@time_it("precision_calculation")
def calculate_precision(y_true: ArrayLike, y_pred: ArrayLike, positive_class: Any = None) -> float:
    """
    Calculate Precision - TP / (TP + FP)

    Args:
        y_true: True class labels
        y_pred: Predicted class labels
        positive_class: Label of positive class, defaults to y_true[0]

    Returns:
        Precision score (0 to 1), 0.0 without positive predictions
    """
    y_true_array, y_pred_array = paired_arrays(y_true, y_pred)
    if len(y_true_array) == 0:
        return 0.0

    counts = _binary_counts(y_true_array, y_pred_array, resolve_positive_class(y_true_array, positive_class))
    return _safe_ratio(counts['tp'], counts['tp'] + counts['fp'])

@time_it("recall_calculation")
def calculate_recall(y_true: ArrayLike, y_pred: ArrayLike, positive_class: Any = None) -> float:
    """
    Calculate Recall (Sensitivity) - TP / (TP + FN)

    Args:
        y_true: True class labels
        y_pred: Predicted class labels
        positive_class: Label of positive class, defaults to y_true[0]

    Returns:
        Recall score (0 to 1)
    """
    y_true_array, y_pred_array = paired_arrays(y_true, y_pred)
    if len(y_true_array) == 0:
        return 0.0

    counts = _binary_counts(y_true_array, y_pred_array, resolve_positive_class(y_true_array, positive_class))
    return _safe_ratio(counts['tp'], counts['tp'] + counts['fn'])

@time_it("specificity_calculation")
def calculate_specificity(y_true: ArrayLike, y_pred: ArrayLike, positive_class: Any = None) -> float:
    """
    Calculate Specificity - TN / (TN + FP)

    Only rows whose actual label is not the positive class count. A
    prediction equal to the actual label is a true negative, a prediction
    of the positive class a false positive; with more than two classes,
    predicting a different negative class counts as neither.

    Args:
        y_true: True class labels
        y_pred: Predicted class labels
        positive_class: Label of positive class, defaults to y_true[0]

    Returns:
        Specificity score (0 to 1)
    """
    y_true_array, y_pred_array = paired_arrays(y_true, y_pred)
    if len(y_true_array) == 0:
        return 0.0

    counts = _binary_counts(y_true_array, y_pred_array, resolve_positive_class(y_true_array, positive_class))
    return _safe_ratio(counts['tn'], counts['tn'] + counts['fp'])

@time_it("f1_calculation")
def calculate_f1(y_true: ArrayLike, y_pred: ArrayLike, positive_class: Any = None) -> float:
    """
    Calculate F1 Score - harmonic mean of precision and recall

    Returns:
        F1 score (0 to 1), 0.0 when precision and recall are both 0
    """
    precision = calculate_precision(y_true, y_pred, positive_class)
    recall = calculate_recall(y_true, y_pred, positive_class)
    return _safe_ratio(2 * precision * recall, precision + recall)

@time_it("geometric_mean_calculation")
def calculate_geometric_mean(y_true: ArrayLike, y_pred: ArrayLike, positive_class: Any = None) -> float:
    """sqrt(recall * specificity)"""
    recall = calculate_recall(y_true, y_pred, positive_class)
    specificity = calculate_specificity(y_true, y_pred, positive_class)
    return float(math.sqrt(recall * specificity))

# ============================================
# Score-based Metrics
# ============================================

def _ranked_positives(y_true: ArrayLike, y_score: ArrayLike, positive_class: Any) -> np.ndarray:
    """Positive-class indicator ordered by descending score, ties kept in input order"""
    labels = to_array(y_true)
    scores = to_float_array(y_score)
    if len(labels) != len(scores):
        raise ShapeMismatchError(
            f"y_true and y_score must be the same length, got {len(labels)} and {len(scores)}",
            expected=len(labels),
            actual=len(scores)
        )

    positive = _equal_mask(labels, resolve_positive_class(labels, positive_class))
    order = np.argsort(-scores, kind='stable')
    return positive[order]

def _trapezoid(x: np.ndarray, y: np.ndarray) -> float:
    if len(x) < 2:
        return 0.0
    return float(np.sum(np.diff(x) * (y[1:] + y[:-1]) / 2.0))

@time_it("auroc_calculation")
def calculate_auroc(y_true: ArrayLike, y_score: ArrayLike, positive_class: Any = None) -> float:
    """
    Calculate the area under the ROC curve

    Rows are ranked by descending score (stable for ties); the curve starts
    at (0, 0) and takes one step per row. The area is integrated over the
    false-positive rate with the trapezoidal rule.

    Args:
        y_true: True class labels
        y_score: Score or probability of the positive class
        positive_class: Label of positive class, defaults to y_true[0]

    Returns:
        AUROC (0 to 1), 0.0 if only one class is present
    """
    ranked = _ranked_positives(y_true, y_score, positive_class)
    total_positives = int(np.sum(ranked))
    total_negatives = len(ranked) - total_positives
    if total_positives == 0 or total_negatives == 0:
        return 0.0

    tpr = np.concatenate([[0.0], np.cumsum(ranked) / total_positives])
    fpr = np.concatenate([[0.0], np.cumsum(~ranked) / total_negatives])
    return _trapezoid(fpr, tpr)

@time_it("auprc_calculation")
def calculate_auprc(y_true: ArrayLike, y_score: ArrayLike, positive_class: Any = None) -> float:
    """
    Calculate the area under the precision-recall curve

    Rows are ranked by descending score (stable for ties). Precision and
    recall are taken after each row, without an anchor point, and the area
    is integrated over recall with the trapezoidal rule.

    Returns:
        AUPRC (0 to 1), 0.0 if there are no positives
    """
    ranked = _ranked_positives(y_true, y_score, positive_class)
    total_positives = int(np.sum(ranked))
    if total_positives == 0:
        return 0.0

    tp = np.cumsum(ranked)
    fp = np.cumsum(~ranked)
    precision = tp / (tp + fp)
    recall = tp / total_positives
    return _trapezoid(recall, precision)

@time_it("log_loss_calculation")
def calculate_log_loss(y_true: ArrayLike, y_proba: ArrayLike, positive_class: Any = None,
                       eps: float = LOG_LOSS_EPSILON) -> float:
    """
    Calculate binary cross-entropy

    Args:
        y_true: True class labels
        y_proba: Predicted probability of the positive class
        positive_class: Label of positive class, defaults to y_true[0]
        eps: Probabilities are clamped to [eps, 1 - eps]

    Returns:
        Mean log loss, NaN for empty inputs
    """
    labels = to_array(y_true)
    proba = to_float_array(y_proba)
    if len(labels) != len(proba):
        raise ShapeMismatchError(
            f"y_true and y_proba must be the same length, got {len(labels)} and {len(proba)}",
            expected=len(labels),
            actual=len(proba)
        )
    if len(labels) == 0:
        return float('nan')

    positive = _equal_mask(labels, resolve_positive_class(labels, positive_class))
    proba = np.clip(proba, eps, 1.0 - eps)
    losses = np.where(positive, -np.log(proba), -np.log(1.0 - proba))
    return float(np.mean(losses))

@time_it("lrap_calculation")
def calculate_lrap(y_true: Union[np.ndarray, Table], y_score: Union[np.ndarray, Table]) -> float:
    """
    Calculate label ranking average precision

    For every sample, labels are ranked by descending score (stable for
    ties) and precision is averaged over the ranks of the relevant labels.
    Samples without relevant labels contribute 0 to the mean.

    Args:
        y_true: (n_samples, n_labels) binary relevance indicators
        y_score: (n_samples, n_labels) scores

    Returns:
        LRAP averaged over all samples
    """
    relevance = y_true.to_dense_matrix() if isinstance(y_true, Table) else np.asarray(y_true)
    scores = y_score.to_dense_matrix() if isinstance(y_score, Table) else np.asarray(y_score)
    if relevance.ndim != 2 or relevance.shape != scores.shape:
        raise ShapeMismatchError(
            f"y_true and y_score must be 2-D arrays of the same shape, got {relevance.shape} and {scores.shape}"
        )
    if relevance.shape[0] == 0:
        return float('nan')

    relevance = relevance.astype(bool)
    scores = scores.astype(np.float64)

    total = 0.0
    for relevant_row, score_row in zip(relevance, scores):
        ranked = relevant_row[np.argsort(-score_row, kind='stable')]
        n_relevant = int(np.sum(ranked))
        if n_relevant == 0:
            continue
        ranks = np.arange(1, len(ranked) + 1)
        precision_at_rank = np.cumsum(ranked) / ranks
        total += float(np.sum(precision_at_rank[ranked])) / n_relevant

    return total / relevance.shape[0]

# ============================================
# Summary
# ============================================

def calculate_classification_metrics(y_true: ArrayLike, y_pred: ArrayLike,
                                     positive_class: Any = None,
                                     y_score: Optional[ArrayLike] = None) -> Dict[str, float]:
    """
    Label-based metrics, plus ranking metrics when positive-class scores are given

    Returns:
        Dictionary of metric name -> value
    """
    metrics = {
        'accuracy': calculate_accuracy(y_true, y_pred),
        'precision': calculate_precision(y_true, y_pred, positive_class),
        'recall': calculate_recall(y_true, y_pred, positive_class),
        'f1': calculate_f1(y_true, y_pred, positive_class),
        'specificity': calculate_specificity(y_true, y_pred, positive_class),
        'geometric_mean': calculate_geometric_mean(y_true, y_pred, positive_class),
    }

    if y_score is not None:
        metrics['auroc'] = calculate_auroc(y_true, y_score, positive_class)
        metrics['auprc'] = calculate_auprc(y_true, y_score, positive_class)
        metrics['log_loss'] = calculate_log_loss(y_true, y_score, positive_class)

    logger.debug(f"Calculated {len(metrics)} classification metrics")
    return metrics
