# ============================================
# Veracity - src/veracity/utils/exceptions.py
# Exception hierarchy for tables, models and metrics
# ============================================

import json
import re
import traceback
from datetime import datetime, timezone
from typing import Any, Dict, List, Optional

class VeracityBaseException(Exception):
    """
    Base exception class for all Veracity exceptions

    Features:
    - Error codes for programmatic handling
    - Context information for debugging
    - Severity levels for appropriate responses
    - User-friendly messages for CLI display
    - Detailed technical info for logging
    """

    def __init__(
        self,
        message: str,
        error_code: Optional[str] = None,
        context: Optional[Dict[str, Any]] = None,
        severity: str = "error",
        user_message: Optional[str] = None,
        suggestions: Optional[List[str]] = None,
        cause: Optional[Exception] = None
    ):
        """
        Initialize base exception

        Args:
            message: Technical error message for logs
            error_code: Unique error code for programmatic handling
            context: Additional context information
            severity: Error severity (debug, info, warning, error, critical)
            user_message: User-friendly message for display
            suggestions: List of suggested solutions
            cause: Original exception that caused this error
        """
        super().__init__(message)

        self.message = message
        self.error_code = error_code or self._generate_error_code()
        self.context = context or {}
        self.severity = severity
        self.user_message = user_message or self._generate_user_message()
        self.suggestions = suggestions or []
        self.cause = cause
        self.timestamp = datetime.now(timezone.utc)

        self.context.update({
            'exception_type': self.__class__.__name__,
            'timestamp': self.timestamp.isoformat(),
            'severity': self.severity
        })

    def _generate_error_code(self) -> str:
        """Generate error code based on class name"""
        class_name = self.__class__.__name__
        # CamelCase -> UPPER_SNAKE_CASE
        error_code = re.sub('(.)([A-Z][a-z]+)', r'\1_\2', class_name)
        error_code = re.sub('([a-z0-9])([A-Z])', r'\1_\2', error_code).upper()
        return error_code.replace('_EXCEPTION', '_ERROR')

    def _generate_user_message(self) -> str:
        return "An error occurred while processing your request."

    def to_dict(self) -> Dict[str, Any]:
        """Convert exception to dictionary for JSON serialization"""
        return {
            'error_code': self.error_code,
            'message': self.message,
            'user_message': self.user_message,
            'severity': self.severity,
            'context': self.context,
            'suggestions': self.suggestions,
            'timestamp': self.timestamp.isoformat(),
            'traceback': traceback.format_exc() if self.severity in ['error', 'critical'] else None
        }

    def to_json(self) -> str:
        """Convert exception to JSON string"""
        return json.dumps(self.to_dict(), default=str, indent=2)

    def add_context(self, **kwargs):
        """Add additional context to the exception"""
        self.context.update(kwargs)

    def add_suggestion(self, suggestion: str):
        """Add a suggestion for resolving the error"""
        self.suggestions.append(suggestion)

def _with_context(kwargs: Dict[str, Any], **values) -> Dict[str, Any]:
    """Merge non-None keyword values into the context carried by kwargs"""
    context = kwargs.pop('context', None) or {}
    for key, value in values.items():
        if value is not None:
            context[key] = value
    return context

# ============================================
# Data-related Exceptions
# ============================================

class DataError(VeracityBaseException):
    """Base class for table and column errors"""

    def __init__(self, message: str, **kwargs):
        kwargs.setdefault('severity', "error")
        super().__init__(message, **kwargs)

class ShapeMismatchError(DataError):
    """Raised when row or column counts disagree"""

    def __init__(self, message: str, expected: Optional[int] = None, actual: Optional[int] = None, **kwargs):
        context = _with_context(kwargs, expected=expected, actual=actual)
        kwargs.setdefault('user_message', "The data does not have the expected shape.")
        kwargs.setdefault('suggestions', [
            "Check that every column has the same number of rows",
            "Check that inputs being compared have equal length"
        ])
        super().__init__(message, context=context, **kwargs)

class RowCountMismatchError(ShapeMismatchError):
    """Raised when a column's length differs from the table's row count"""

class IndexRowCountMismatchError(RowCountMismatchError):
    """Raised when an index length differs from the table's row count"""

class ColumnCountMismatchError(ShapeMismatchError):
    """Raised when a row does not have one value per column"""

class DuplicateLabelError(DataError):
    """Raised when a column label is already used in a table"""

    def __init__(self, message: str, label: Optional[str] = None, **kwargs):
        context = _with_context(kwargs, label=label)
        kwargs.setdefault('user_message', f"Column label{f' {label!r}' if label is not None else ''} is already in use.")
        kwargs.setdefault('suggestions', ["Choose a unique column label"])
        super().__init__(message, context=context, **kwargs)

class DuplicateIndexError(DataError):
    """Raised when row index keys are not unique"""

    def __init__(self, message: str, duplicates: Optional[List[str]] = None, **kwargs):
        context = _with_context(kwargs, duplicates=duplicates)
        kwargs.setdefault('user_message', "Row index keys must be unique.")
        super().__init__(message, context=context, **kwargs)

class TypeMismatchError(DataError):
    """Raised when a value or typed view does not match a column's type tag"""

    def __init__(self, message: str, expected: Any = None, actual: Any = None, **kwargs):
        context = _with_context(
            kwargs,
            expected=str(expected) if expected is not None else None,
            actual=str(actual) if actual is not None else None
        )
        kwargs.setdefault('user_message', "The data type does not match the column type.")
        kwargs.setdefault('suggestions', [
            "Check the column types of the table",
            "Convert the values before adding them"
        ])
        super().__init__(message, context=context, **kwargs)

class HeterogeneousDataTypesError(DataError):
    """Raised when a dense matrix is requested from a mixed-type table"""

    def __init__(self, message: str, dtypes: Optional[List[str]] = None, **kwargs):
        context = _with_context(kwargs, dtypes=dtypes)
        kwargs.setdefault('user_message', "All columns must share one type for this operation.")
        kwargs.setdefault('suggestions', ["Select only columns of the same type"])
        super().__init__(message, context=context, **kwargs)

class NoDataError(DataError):
    """Raised when an operation needs data and the table is empty"""

    def __init__(self, message: str, **kwargs):
        kwargs.setdefault('severity', "warning")
        kwargs.setdefault('user_message', "No data available for this operation.")
        super().__init__(message, **kwargs)

class IndexOutOfRangeError(DataError):
    """Raised when a positional lookup is out of range"""

    def __init__(self, message: str, position: Optional[int] = None, size: Optional[int] = None, **kwargs):
        context = _with_context(kwargs, position=position, size=size)
        super().__init__(message, context=context, **kwargs)

class ColumnNotFoundError(DataError):
    """Raised when a named column does not exist"""

    def __init__(self, message: str, column: Optional[str] = None, available: Optional[List[str]] = None, **kwargs):
        context = _with_context(kwargs, column=column, available=available)
        kwargs.setdefault('user_message', f"Column{f' {column!r}' if column is not None else ''} was not found.")
        kwargs.setdefault('suggestions', ["Check the column names of the table"])
        super().__init__(message, context=context, **kwargs)

class DataLoadError(DataError):
    """Raised when a table source cannot be read"""

    def __init__(self, message: str, path: Optional[str] = None, **kwargs):
        context = _with_context(kwargs, path=str(path) if path is not None else None)
        kwargs.setdefault('user_message', "The data file could not be read.")
        kwargs.setdefault('suggestions', [
            "Check that the file exists and is readable",
            "Check the separator and header settings"
        ])
        super().__init__(message, context=context, **kwargs)

# ============================================
# Model-related Exceptions
# ============================================

class ModelError(VeracityBaseException):
    """Base class for model-related errors"""

    def __init__(self, message: str, **kwargs):
        kwargs.setdefault('severity', "error")
        super().__init__(message, **kwargs)

class NotFittedError(ModelError):
    """Raised when a model is used before fit"""

    def __init__(self, message: str, model_name: Optional[str] = None, **kwargs):
        context = _with_context(kwargs, model_name=model_name)
        kwargs.setdefault('user_message', "The model must be fitted before it can be used.")
        kwargs.setdefault('suggestions', ["Call fit() with training data first"])
        super().__init__(message, context=context, **kwargs)

class InvalidSettingsError(ModelError):
    """Raised when a settings object does not belong to the model"""

    def __init__(self, message: str, expected: Optional[str] = None, provided: Optional[str] = None, **kwargs):
        context = _with_context(kwargs, expected=expected, provided=provided)
        kwargs.setdefault('user_message', "Invalid model settings.")
        kwargs.setdefault('suggestions', ["Use the settings class that matches the model"])
        super().__init__(message, context=context, **kwargs)

class InvalidParameterError(InvalidSettingsError):
    """Raised when a parameter value is out of its valid range"""

    def __init__(self, message: str, parameter_name: Optional[str] = None, provided_value: Any = None, **kwargs):
        context = _with_context(kwargs, parameter_name=parameter_name, provided_value=provided_value)
        kwargs.setdefault('user_message', "Invalid input parameters. Please check your inputs and try again.")
        kwargs.setdefault('suggestions', [
            "Check parameter values",
            "Use default values if unsure"
        ])
        super().__init__(message, context=context, **kwargs)

class MetricNotApplicableError(ModelError):
    """Raised when a scoring metric does not apply to the model kind"""

    def __init__(self, message: str, metric: Optional[str] = None, **kwargs):
        context = _with_context(kwargs, metric=metric)
        kwargs.setdefault('user_message', f"Metric{f' {metric}' if metric else ''} cannot score this model.")
        super().__init__(message, context=context, **kwargs)

class MetricNotImplementedError(ModelError):
    """Raised when a recognized scoring metric is not available for a model"""

    def __init__(self, message: str, metric: Optional[str] = None, **kwargs):
        context = _with_context(kwargs, metric=metric)
        kwargs.setdefault('user_message', f"Metric{f' {metric}' if metric else ''} is not implemented yet.")
        super().__init__(message, context=context, **kwargs)

# ============================================
# Configuration Exceptions
# ============================================

class ConfigurationError(VeracityBaseException):
    """Raised when configuration is invalid or missing"""

    def __init__(self, message: str, config_name: Optional[str] = None, **kwargs):
        context = _with_context(kwargs, config_name=config_name)
        kwargs.setdefault('severity', "critical")
        kwargs.setdefault('user_message', "Configuration error.")
        kwargs.setdefault('suggestions', [
            "Check configuration files",
            "Verify environment variables"
        ])
        super().__init__(message, context=context, **kwargs)

# ============================================
# Utility Functions
# ============================================

def handle_exception(func):
    """
    Decorator converting unexpected exceptions into VeracityBaseException

    Usage:
        @handle_exception
        def my_function():
            ...
    """
    from functools import wraps

    @wraps(func)
    def wrapper(*args, **kwargs):
        try:
            return func(*args, **kwargs)
        except VeracityBaseException:
            raise
        except Exception as e:
            raise VeracityBaseException(
                message=f"Unexpected error in {func.__name__}: {str(e)}",
                cause=e,
                severity="error",
                user_message="An unexpected error occurred.",
                context={
                    'function': func.__name__,
                    'args': str(args)[:200],
                    'kwargs': str(kwargs)[:200]
                }
            ) from e

    return wrapper

def log_exception(exception: Exception, logger=None):
    """Log exception with appropriate level and context"""
    from .logger import get_logger

    if logger is None:
        logger = get_logger('exceptions')

    if isinstance(exception, VeracityBaseException):
        level_map = {
            'debug': logger.debug,
            'info': logger.info,
            'warning': logger.warning,
            'error': logger.error,
            'critical': logger.critical
        }

        log_func = level_map.get(exception.severity, logger.error)
        log_func(
            f"[{exception.error_code}] {exception.message}",
            extra={'error_context': exception.context},
            exc_info=exception.severity in ['error', 'critical']
        )
    else:
        logger.error(f"Unexpected exception: {str(exception)}", exc_info=True)

def create_error_response(exception: Exception) -> Dict[str, Any]:
    """Create a standardized error payload"""
    if isinstance(exception, VeracityBaseException):
        return exception.to_dict()
    return {
        'error_code': 'UNEXPECTED_ERROR',
        'message': str(exception),
        'user_message': 'An unexpected error occurred.',
        'severity': 'error',
        'context': {'exception_type': type(exception).__name__},
        'suggestions': [],
        'timestamp': datetime.now(timezone.utc).isoformat()
    }

# ============================================
# Exception Registry
# ============================================

EXCEPTION_REGISTRY = {
    # Data exceptions
    'SHAPE_MISMATCH_ERROR': ShapeMismatchError,
    'ROW_COUNT_MISMATCH_ERROR': RowCountMismatchError,
    'INDEX_ROW_COUNT_MISMATCH_ERROR': IndexRowCountMismatchError,
    'COLUMN_COUNT_MISMATCH_ERROR': ColumnCountMismatchError,
    'DUPLICATE_LABEL_ERROR': DuplicateLabelError,
    'DUPLICATE_INDEX_ERROR': DuplicateIndexError,
    'TYPE_MISMATCH_ERROR': TypeMismatchError,
    'HETEROGENEOUS_DATA_TYPES_ERROR': HeterogeneousDataTypesError,
    'NO_DATA_ERROR': NoDataError,
    'INDEX_OUT_OF_RANGE_ERROR': IndexOutOfRangeError,
    'COLUMN_NOT_FOUND_ERROR': ColumnNotFoundError,
    'DATA_LOAD_ERROR': DataLoadError,

    # Model exceptions
    'NOT_FITTED_ERROR': NotFittedError,
    'INVALID_SETTINGS_ERROR': InvalidSettingsError,
    'INVALID_PARAMETER_ERROR': InvalidParameterError,
    'METRIC_NOT_APPLICABLE_ERROR': MetricNotApplicableError,
    'METRIC_NOT_IMPLEMENTED_ERROR': MetricNotImplementedError,

    # Configuration exceptions
    'CONFIGURATION_ERROR': ConfigurationError,
}

def get_exception_class(error_code: str) -> type:
    """Get exception class by error code"""
    return EXCEPTION_REGISTRY.get(error_code, VeracityBaseException)
