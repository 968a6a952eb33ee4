# ============================================
# Veracity - src/veracity/utils/validators.py
# Parameter and input validation
# ============================================

import math
from typing import Any, Dict, List, Optional, Sized, Type

import numpy as np

from .exceptions import InvalidParameterError, ShapeMismatchError, VeracityBaseException
from .logger import get_logger

logger = get_logger('validators')

# ============================================
# Base Validation Framework
# ============================================

class ValidationResult:
    """Container for validation results"""

    def __init__(self, is_valid: bool = True, errors: Optional[List[str]] = None, warnings: Optional[List[str]] = None):
        self.is_valid = is_valid
        self.errors = errors or []
        self.warnings = warnings or []

    def add_error(self, error: str):
        self.errors.append(error)
        self.is_valid = False

    def add_warning(self, warning: str):
        self.warnings.append(warning)

    def merge(self, other: 'ValidationResult'):
        """Merge another validation result"""
        self.errors.extend(other.errors)
        self.warnings.extend(other.warnings)
        if not other.is_valid:
            self.is_valid = False

    def raise_if_invalid(self, exception_class: Type[VeracityBaseException] = InvalidParameterError, **kwargs):
        """Raise exception_class carrying every error if validation failed"""
        for warning in self.warnings:
            logger.warning(warning)

        if not self.is_valid:
            error_msg = "; ".join(self.errors)
            context = kwargs.pop('context', None) or {}
            context['validation_errors'] = list(self.errors)
            raise exception_class(f"Validation failed: {error_msg}", context=context, **kwargs)

    def __str__(self) -> str:
        status = "VALID" if self.is_valid else "INVALID"
        parts = [f"Validation: {status}"]

        if self.errors:
            parts.append(f"Errors: {', '.join(self.errors)}")
        if self.warnings:
            parts.append(f"Warnings: {', '.join(self.warnings)}")

        return " | ".join(parts)

class BaseValidator:
    """Base class for all validators"""

    def __init__(self, strict_mode: bool = False):
        self.strict_mode = strict_mode

    def _create_result(self, is_valid: bool = True) -> ValidationResult:
        return ValidationResult(is_valid=is_valid)

# ============================================
# Parameter Validators
# ============================================

class ParameterValidator(BaseValidator):
    """Validate model parameters"""

    def validate_neighbors_params(self, params: Dict[str, Any]) -> ValidationResult:
        """
        Validate k-nearest-neighbors parameters

        Args:
            params: Parameter dictionary (n_neighbors, p, epsilon, n_jobs)

        Returns:
            ValidationResult with validation status
        """
        result = self._create_result()

        n_neighbors = params.get('n_neighbors')
        if isinstance(n_neighbors, bool) or not isinstance(n_neighbors, (int, np.integer)):
            result.add_error(f"n_neighbors must be an integer, got {n_neighbors!r}")
        elif n_neighbors < 1:
            result.add_error(f"n_neighbors must be at least 1, got {n_neighbors}")

        p = params.get('p')
        if isinstance(p, bool) or not isinstance(p, (int, float, np.number)):
            result.add_error(f"p must be numeric, got {p!r}")
        elif p <= 0:
            # Minkowski with p <= 0 is not a distance; computed anyway
            result.add_warning(f"Minkowski exponent p={p} is not positive")

        epsilon = params.get('epsilon')
        if isinstance(epsilon, bool) or not isinstance(epsilon, (int, float, np.number)):
            result.add_error(f"epsilon must be numeric, got {epsilon!r}")
        elif not math.isfinite(epsilon) or epsilon <= 0:
            result.add_error(f"epsilon must be a positive finite number, got {epsilon}")

        n_jobs = params.get('n_jobs')
        if n_jobs is not None:
            if isinstance(n_jobs, bool) or not isinstance(n_jobs, (int, np.integer)):
                result.add_error(f"n_jobs must be an integer or None, got {n_jobs!r}")
            elif n_jobs == 0:
                result.add_error("n_jobs must not be 0")

        if self.strict_mode and result.warnings:
            for warning in result.warnings:
                result.add_error(warning)

        return result

# ============================================
# Convenience Functions
# ============================================

def check_consistent_length(first: Sized, second: Sized, names: str = "inputs"):
    """Raise ShapeMismatchError unless both sequences have the same length"""
    if len(first) != len(second):
        raise ShapeMismatchError(
            f"{names} must be the same length, got {len(first)} and {len(second)}",
            expected=len(first),
            actual=len(second)
        )
