# ============================================
# Veracity - src/veracity/models/neighbors/settings.py
# Settings for the k-nearest-neighbors models
# ============================================

import sys
from dataclasses import dataclass, field
from typing import Any, Dict, Optional, Union

from ...evaluation.metrics.evaluation_metrics import EvaluationMetric
from ...utils.config_loader import get
from ...utils.validators import ParameterValidator
from .enums import DistanceMetric, KNeighborsWeights

def _knn_default(key: str, fallback: Any):
    """Default factory reading model_config.yaml's knn section at construction time"""
    return field(default_factory=lambda: get('model_config', f'knn.{key}', fallback))

@dataclass
class _NeighborsSettings:
    """
    Fields shared by the neighbor model settings

    Enum fields accept members or their names ("distance", "manhattan").
    Defaults come from the ``knn`` section of model_config.yaml.

    Raises:
        InvalidParameterError: On construction, if a value is out of range
    """
    n_neighbors: int = _knn_default('n_neighbors', 5)
    weights: Union[KNeighborsWeights, str] = _knn_default('weights', KNeighborsWeights.UNIFORM.value)
    p: float = _knn_default('p', 2)
    metric: Union[DistanceMetric, str] = _knn_default('metric', DistanceMetric.EUCLIDEAN.value)
    epsilon: float = sys.float_info.epsilon
    n_jobs: Optional[int] = _knn_default('n_jobs', None)

    def __post_init__(self):
        self.weights = KNeighborsWeights.coerce(self.weights)
        self.metric = DistanceMetric.coerce(self.metric)
        self._validate()

    def _validate(self):
        ParameterValidator().validate_neighbors_params(vars(self)).raise_if_invalid()

    def to_dict(self) -> Dict[str, Any]:
        return {
            key: value.value if isinstance(value, (KNeighborsWeights, DistanceMetric, EvaluationMetric)) else value
            for key, value in vars(self).items()
        }

@dataclass
class KNeighborsRegressorSettings(_NeighborsSettings):
    """Settings for KNeighborsRegressor"""

@dataclass
class KNeighborsClassifierSettings(_NeighborsSettings):
    """
    Settings for KNeighborsClassifier

    Adds the metric used by score(); only classification metrics apply.
    """
    score_metric: Union[EvaluationMetric, str] = _knn_default('score_metric', EvaluationMetric.ACCURACY.value)

    def __post_init__(self):
        self.score_metric = EvaluationMetric.coerce(self.score_metric)
        super().__post_init__()
