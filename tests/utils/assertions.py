"""
tests/utils/assertions.py

Custom assertion utilities for Veracity tests.
Provides assertions for tables, columns and model outputs.
"""

from typing import Any, List, Optional

import numpy as np

from veracity.data.column import Column, DataType
from veracity.data.table import Table

# ============================================
# TABLE AND COLUMN ASSERTIONS
# ============================================

class TableAssertions:
    """Assertions for Table and Column structure"""

    @staticmethod
    def assert_column_values(column: Column, expected: List[Any], dtype: Optional[DataType] = None,
                             message: str = "") -> None:
        """Assert a column holds exactly the expected values (and type, when given)"""
        assert column.to_list() == expected, (
            f"Column {column.label!r} holds {column.to_list()}, expected {expected}. {message}"
        )
        if dtype is not None:
            assert column.dtype == dtype, f"Column {column.label!r} has type {column.dtype}, expected {dtype}. {message}"

    @staticmethod
    def assert_equal_column_lengths(table: Table, message: str = "") -> None:
        """Assert every column has the table's row count"""
        for name in table.column_names:
            assert len(table.get_column(name)) == table.row_count, (
                f"Column {name!r} has {len(table.get_column(name))} values for {table.row_count} rows. {message}"
            )

    @staticmethod
    def assert_shape(table: Table, rows: int, columns: int, message: str = "") -> None:
        assert table.shape == (rows, columns), f"Table shape {table.shape} != {(rows, columns)}. {message}"

# ============================================
# MODEL OUTPUT ASSERTIONS
# ============================================

class ModelAssertions:
    """Assertions for model predictions"""

    @staticmethod
    def assert_valid_predictions(predictions: Column, expected_length: int, message: str = "") -> None:
        assert predictions.label == "predictions", f"Unexpected prediction label {predictions.label!r}. {message}"
        assert len(predictions) == expected_length, (
            f"Got {len(predictions)} predictions, expected {expected_length}. {message}"
        )

    @staticmethod
    def assert_probability_table(probabilities: Table, message: str = "") -> None:
        """Assert every row is a probability distribution"""
        matrix = probabilities.to_dense_matrix()
        assert np.all(matrix >= 0.0) and np.all(matrix <= 1.0), f"Probabilities outside [0, 1]. {message}"
        np.testing.assert_allclose(matrix.sum(axis=1), 1.0, err_msg=f"Rows do not sum to 1. {message}")

# ============================================
# CONVENIENCE FUNCTIONS
# ============================================

def assert_column_values(column: Column, expected: List[Any], dtype: Optional[DataType] = None) -> None:
    TableAssertions.assert_column_values(column, expected, dtype)

def assert_probability_table(probabilities: Table) -> None:
    ModelAssertions.assert_probability_table(probabilities)
