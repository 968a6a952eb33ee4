# ============================================
# Veracity - src/veracity/models/base/base_regressor.py
# Base regressor interface
# ============================================

from typing import Optional

from ...data.table import Table
from ...evaluation.metrics.common import ArrayLike
from ...evaluation.metrics.regression_metrics import calculate_r2
from ...utils.logger import get_logger
from .base_model import BaseModel, ModelType, PredictionType, SettingsT

logger = get_logger('models.base.regressor')

class BaseRegressor(BaseModel[SettingsT]):
    """Abstract base class for regressors, scored with R²"""

    def __init__(self, name: str, settings: Optional[SettingsT] = None, **kwargs):
        super().__init__(
            name=name,
            model_type=ModelType.REGRESSION,
            prediction_type=PredictionType.REGRESSION,
            settings=settings,
            **kwargs
        )

    def score(self, query: Table, labels: ArrayLike) -> float:
        """
        Coefficient of determination of the predictions for query

        Returns:
            R², 0.0 when the actual values are constant
        """
        self._check_is_fitted()
        result = calculate_r2(labels, self.predict(query))
        logger.info(f"{self.name} r2 score: {result:.4f}")
        return result
