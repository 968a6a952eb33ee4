# ============================================
# Veracity - src/veracity/models/base/base_model.py
# Base model interface for all estimators
# ============================================

from abc import ABC, abstractmethod
from dataclasses import dataclass, field
from datetime import datetime
from enum import Enum
from typing import Any, Dict, Generic, List, Optional, Type, TypeVar

from ...utils.exceptions import InvalidSettingsError, NotFittedError
from ...utils.logger import get_audit_logger, get_logger

logger = get_logger('models.base.model')
audit_logger = get_audit_logger()

# ============================================
# Model Enums and Types
# ============================================

class ModelStatus(Enum):
    """Model lifecycle status"""
    UNTRAINED = "untrained"
    TRAINING = "training"
    TRAINED = "trained"
    ERROR = "error"

class ModelType(Enum):
    """Model type categories"""
    CLASSIFICATION = "classification"
    REGRESSION = "regression"

class PredictionType(Enum):
    """Prediction output types"""
    CLASSIFICATION = "classification"
    PROBABILITY = "probability"
    REGRESSION = "regression"

@dataclass
class ModelMetadata:
    """Model metadata"""
    model_id: str
    name: str
    model_type: str
    prediction_type: str
    version: str
    created_at: datetime
    updated_at: datetime

    # Model specifications
    algorithm: Optional[str] = None
    hyperparameters: Dict[str, Any] = field(default_factory=dict)
    feature_columns: List[str] = field(default_factory=list)

    # Training information
    training_samples: Optional[int] = None
    training_features: Optional[int] = None
    training_duration: Optional[float] = None

    # Usage
    last_prediction_date: Optional[datetime] = None
    prediction_count: int = 0

    def to_dict(self) -> Dict[str, Any]:
        """Convert metadata to dictionary"""
        return {
            'model_id': self.model_id,
            'name': self.name,
            'model_type': self.model_type,
            'prediction_type': self.prediction_type,
            'version': self.version,
            'created_at': self.created_at.isoformat(),
            'updated_at': self.updated_at.isoformat(),
            'algorithm': self.algorithm,
            'hyperparameters': self.hyperparameters,
            'feature_columns': self.feature_columns,
            'training_samples': self.training_samples,
            'training_features': self.training_features,
            'training_duration': self.training_duration,
            'last_prediction_date': self.last_prediction_date.isoformat() if self.last_prediction_date else None,
            'prediction_count': self.prediction_count
        }

SettingsT = TypeVar('SettingsT')

# ============================================
# Base Model Class
# ============================================

class BaseModel(ABC, Generic[SettingsT]):
    """
    Abstract base class for all models

    Subclasses declare the settings dataclass they accept in
    ``settings_class``; add_settings rejects anything else.

    Lifecycle: UNTRAINED -> TRAINED on a successful fit. Fitting again
    replaces the training state in place.
    """

    settings_class: Type[SettingsT]

    def __init__(self,
                 name: str,
                 model_type: ModelType,
                 prediction_type: PredictionType,
                 settings: Optional[SettingsT] = None,
                 version: str = "1.0.0"):
        """
        Initialize base model

        Args:
            name: Model name
            model_type: Model category
            prediction_type: Type of prediction the model makes
            settings: Settings instance, class defaults when None
            version: Model version
        """
        self.name = name
        self.model_type = model_type
        self.prediction_type = prediction_type
        self.version = version

        self._settings: SettingsT = self.settings_class()
        if settings is not None:
            self.add_settings(settings)

        self.status = ModelStatus.UNTRAINED
        self.is_fitted = False
        self.feature_names: Optional[List[str]] = None

        self.last_training_time: Optional[datetime] = None
        self.last_prediction_time: Optional[datetime] = None
        self.last_error: Optional[str] = None

        now = datetime.now()
        self.metadata = ModelMetadata(
            model_id=f"{name}_{model_type.value}_{version}_{now.strftime('%Y%m%d_%H%M%S')}",
            name=name,
            model_type=model_type.value,
            prediction_type=prediction_type.value,
            version=version,
            created_at=now,
            updated_at=now,
            algorithm=self.__class__.__name__,
            hyperparameters=self._settings_dict()
        )

        logger.debug(f"Initialized model {self.name} ({self.__class__.__name__}) version {self.version}")

    # ============================================
    # Settings
    # ============================================

    @property
    def settings(self) -> SettingsT:
        return self._settings

    def add_settings(self, settings: SettingsT):
        """
        Replace the model settings

        Raises:
            InvalidSettingsError: If settings is not an instance of settings_class
        """
        if not isinstance(settings, self.settings_class):
            raise InvalidSettingsError(
                f"{self.__class__.__name__} expects {self.settings_class.__name__}, "
                f"got {type(settings).__name__}",
                expected=self.settings_class.__name__,
                provided=type(settings).__name__
            )

        self._settings = settings
        if hasattr(self, 'metadata'):
            self.update_metadata({'hyperparameters': self._settings_dict()})
        logger.debug(f"Updated settings of {self.name}: {self._settings_dict()}")

    def _settings_dict(self) -> Dict[str, Any]:
        to_dict = getattr(self._settings, 'to_dict', None)
        return to_dict() if callable(to_dict) else dict(vars(self._settings))

    # ============================================
    # Estimator interface
    # ============================================

    @abstractmethod
    def fit(self, features, labels) -> 'BaseModel':
        """Fit the model to training data"""
        pass

    @abstractmethod
    def predict(self, query):
        """Make predictions using the fitted model"""
        pass

    @abstractmethod
    def score(self, query, labels) -> float:
        """Score predictions for query against labels"""
        pass

    def _check_is_fitted(self):
        if not self.is_fitted:
            raise NotFittedError(
                f"Model {self.name} must be fitted before making predictions",
                model_name=self.name
            )

    def _mark_trained(self, n_samples: int, n_features: int, duration: Optional[float] = None):
        """Record a completed fit"""
        self.status = ModelStatus.TRAINED
        self.is_fitted = True
        self.last_error = None
        self.last_training_time = datetime.now()
        self.update_metadata({
            'feature_columns': list(self.feature_names or []),
            'training_samples': n_samples,
            'training_features': n_features,
            'training_duration': duration
        })
        audit_logger.log_model_training(self.name, n_samples, n_features=n_features)

    # ============================================
    # Metadata and tracking
    # ============================================

    def update_metadata(self, updates: Dict[str, Any]):
        """
        Update model metadata

        Args:
            updates: Dictionary of metadata updates
        """
        for key, value in updates.items():
            if hasattr(self.metadata, key):
                setattr(self.metadata, key, value)
            else:
                logger.warning(f"Unknown metadata key: {key}")

        self.metadata.updated_at = datetime.now()

    def log_prediction(self, n_queries: int):
        """Log prediction for tracking"""
        self.last_prediction_time = datetime.now()
        self.metadata.prediction_count += 1
        self.metadata.last_prediction_date = self.last_prediction_time
        audit_logger.log_prediction(self.name, n_queries, prediction_count=self.metadata.prediction_count)

    def get_model_info(self) -> Dict[str, Any]:
        """
        Get comprehensive model information

        Returns:
            Dictionary with model details
        """
        return {
            'metadata': self.metadata.to_dict(),
            'settings': self._settings_dict(),
            'status': self.status.value,
            'is_fitted': self.is_fitted,
            'feature_count': len(self.feature_names) if self.feature_names else 0,
            'last_training_time': self.last_training_time.isoformat() if self.last_training_time else None,
            'last_prediction_time': self.last_prediction_time.isoformat() if self.last_prediction_time else None,
            'last_error': self.last_error
        }

    def get_model_summary(self) -> Dict[str, Any]:
        """Concise model summary"""
        return {
            'name': self.name,
            'model_type': self.model_type.value,
            'prediction_type': self.prediction_type.value,
            'version': self.version,
            'status': self.status.value,
            'is_fitted': self.is_fitted,
            'feature_count': len(self.feature_names) if self.feature_names else 0,
            'prediction_count': self.metadata.prediction_count,
            'created_at': self.metadata.created_at.isoformat(),
            'last_updated': self.metadata.updated_at.isoformat()
        }

    def __repr__(self) -> str:
        status_str = "fitted" if self.is_fitted else "unfitted"
        return f"{self.__class__.__name__}(name='{self.name}', {status_str})"

    def __str__(self) -> str:
        return f"{self.name} ({self.model_type.value}) - {self.status.value}"
