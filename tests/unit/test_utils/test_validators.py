"""
tests/unit/test_utils/test_validators.py

Unit tests for ValidationResult and ParameterValidator.
"""

import pytest

from veracity.utils.exceptions import InvalidParameterError, ShapeMismatchError
from veracity.utils.validators import ParameterValidator, ValidationResult, check_consistent_length

VALID = {'n_neighbors': 3, 'p': 2, 'epsilon': 1e-9, 'n_jobs': None}

class TestValidationResult:
    """Test result bookkeeping and raising"""

    def test_errors_invalidate(self):
        result = ValidationResult()
        result.add_warning("careful")
        assert result.is_valid

        result.add_error("broken")
        assert not result.is_valid
        assert "broken" in str(result)

    def test_merge(self):
        first = ValidationResult()
        second = ValidationResult()
        second.add_error("bad")
        first.merge(second)

        assert not first.is_valid
        assert first.errors == ["bad"]

    def test_raise_if_invalid(self):
        """Test every error is carried by the raised exception"""
        result = ValidationResult()
        result.raise_if_invalid()

        result.add_error("one")
        result.add_error("two")
        with pytest.raises(InvalidParameterError) as exc_info:
            result.raise_if_invalid()
        assert exc_info.value.context['validation_errors'] == ["one", "two"]

class TestParameterValidator:
    """Test neighbor parameter validation"""

    def test_valid_parameters(self):
        assert ParameterValidator().validate_neighbors_params(VALID).is_valid

    @pytest.mark.parametrize("key, value", [
        ('n_neighbors', 0),
        ('n_neighbors', True),
        ('n_neighbors', "3"),
        ('epsilon', 0.0),
        ('epsilon', float('inf')),
        ('p', "two"),
        ('n_jobs', 0),
    ])
    def test_invalid_parameters(self, key, value):
        result = ParameterValidator().validate_neighbors_params({**VALID, key: value})
        assert not result.is_valid

    def test_non_positive_p_warns(self):
        """Test p <= 0 is a warning, or an error in strict mode"""
        params = {**VALID, 'p': 0}

        lenient = ParameterValidator().validate_neighbors_params(params)
        assert lenient.is_valid and lenient.warnings

        strict = ParameterValidator(strict_mode=True).validate_neighbors_params(params)
        assert not strict.is_valid

    def test_check_consistent_length(self):
        check_consistent_length([1, 2], "ab")
        with pytest.raises(ShapeMismatchError):
            check_consistent_length([1, 2], [1])
