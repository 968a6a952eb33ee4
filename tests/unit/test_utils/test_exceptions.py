"""
tests/unit/test_utils/test_exceptions.py

Unit tests for the exception hierarchy and its helpers.
"""

import json

import pytest

from veracity.utils.exceptions import (
    ColumnNotFoundError,
    DataError,
    DataLoadError,
    IndexRowCountMismatchError,
    InvalidParameterError,
    InvalidSettingsError,
    ModelError,
    NotFittedError,
    RowCountMismatchError,
    ShapeMismatchError,
    VeracityBaseException,
    create_error_response,
    get_exception_class,
    handle_exception,
)

class TestExceptionHierarchy:
    """Test error codes, context and inheritance"""

    def test_error_code_from_class_name(self):
        assert RowCountMismatchError("x").error_code == "ROW_COUNT_MISMATCH_ERROR"
        assert VeracityBaseException("x").error_code == "VERACITY_BASE_ERROR"

    def test_hierarchy(self):
        """Test the data and model branches"""
        assert issubclass(IndexRowCountMismatchError, RowCountMismatchError)
        assert issubclass(RowCountMismatchError, ShapeMismatchError)
        assert issubclass(ShapeMismatchError, DataError)
        assert issubclass(InvalidParameterError, InvalidSettingsError)
        assert issubclass(NotFittedError, ModelError)
        assert issubclass(ModelError, VeracityBaseException)

    def test_context_carries_keyword_details(self):
        """Test keyword details land in the context, None values are dropped"""
        error = ColumnNotFoundError("missing", column="age", available=["name"])

        assert error.context["column"] == "age"
        assert error.context["available"] == ["name"]
        assert error.context["exception_type"] == "ColumnNotFoundError"
        assert "path" not in DataLoadError("unreadable").context

    def test_to_json(self):
        """Test serialization keeps code, message and suggestions"""
        error = InvalidParameterError("bad k", parameter_name="n_neighbors", provided_value=0)
        payload = json.loads(error.to_json())

        assert payload["error_code"] == "INVALID_PARAMETER_ERROR"
        assert payload["message"] == "bad k"
        assert payload["context"]["parameter_name"] == "n_neighbors"
        assert payload["suggestions"]

    def test_add_context_and_suggestion(self):
        error = NotFittedError("not fitted", model_name="knn")
        error.add_context(step="predict")
        error.add_suggestion("fit first")

        assert error.context["model_name"] == "knn"
        assert error.context["step"] == "predict"
        assert "fit first" in error.suggestions

    def test_registry(self):
        assert get_exception_class("NOT_FITTED_ERROR") is NotFittedError
        assert get_exception_class("UNKNOWN") is VeracityBaseException

class TestExceptionHelpers:
    """Test handle_exception and create_error_response"""

    def test_handle_exception_wraps_unexpected_errors(self):
        @handle_exception
        def divide(a, b):
            return a / b

        assert divide(4, 2) == 2
        with pytest.raises(VeracityBaseException) as exc_info:
            divide(1, 0)
        assert isinstance(exc_info.value.cause, ZeroDivisionError)

    def test_handle_exception_passes_veracity_errors(self):
        @handle_exception
        def fail():
            raise NotFittedError("not fitted")

        with pytest.raises(NotFittedError):
            fail()

    def test_create_error_response(self):
        response = create_error_response(ValueError("boom"))

        assert response["error_code"] == "UNEXPECTED_ERROR"
        assert response["context"]["exception_type"] == "ValueError"
        assert create_error_response(NotFittedError("x"))["error_code"] == "NOT_FITTED_ERROR"
