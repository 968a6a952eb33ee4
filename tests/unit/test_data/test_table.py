"""
tests/unit/test_data/test_table.py

Unit tests for Table: construction, checked mutation, index handling,
dense conversion, selection and pandas interop.
"""

import threading

import numpy as np
import pandas as pd
import pytest

from tests.utils.assertions import TableAssertions, assert_column_values
from veracity.data.column import Column, DataType
from veracity.data.table import Table
from veracity.utils.exceptions import (
    ColumnCountMismatchError,
    ColumnNotFoundError,
    DuplicateIndexError,
    DuplicateLabelError,
    HeterogeneousDataTypesError,
    IndexOutOfRangeError,
    IndexRowCountMismatchError,
    NoDataError,
    RowCountMismatchError,
    TypeMismatchError,
)

# ============================================
# TEST CONSTRUCTION AND MUTATION
# ============================================

class TestTableMutation:
    """Test add_column, add_row and set_index"""

    @pytest.fixture(autouse=True)
    def setup_table(self):
        """Two-column table for each test"""
        self.table = Table()
        self.table.add_column([1.0, 2.0], "x")
        self.table.add_column(["a", "b"], "y")
        yield

    def test_shape_and_order(self):
        """Test columns keep insertion order"""
        TableAssertions.assert_shape(self.table, 2, 2)
        assert self.table.column_names == ["x", "y"]
        assert self.table.dtypes == {"x": DataType.FLOAT64, "y": DataType.STRING}

    def test_add_column_default_labels(self):
        """Test unlabelled columns are named by ordinal position"""
        table = Table()
        table.add_column([1, 2])
        table.add_column(Column.from_values([3, 4], label="named"))
        table.add_column([5, 6])

        assert table.column_names == ["0", "named", "2"]

    def test_add_column_row_count_mismatch(self):
        """Test a column of another length is refused"""
        with pytest.raises(RowCountMismatchError):
            self.table.add_column([1.0, 2.0, 3.0], "z")
        assert self.table.column_names == ["x", "y"]

    def test_add_column_duplicate_label(self):
        """Test labels are unique"""
        with pytest.raises(DuplicateLabelError):
            self.table.add_column([3.0, 4.0], "x")

    def test_add_column_against_index_without_columns(self):
        """Test the first column must match an index set on an empty table"""
        table = Table()
        table.set_index([])
        with pytest.raises(IndexRowCountMismatchError):
            table.add_column([1, 2], "x")

    def test_add_row(self):
        """Test appending a well-typed row"""
        self.table.add_row([3.0, "c"])

        TableAssertions.assert_shape(self.table, 3, 2)
        TableAssertions.assert_equal_column_lengths(self.table)
        assert self.table.row(2) == {"x": 3.0, "y": "c"}

    def test_add_row_is_all_or_nothing(self):
        """Test a type mismatch in any position leaves every column unchanged"""
        with pytest.raises(TypeMismatchError):
            self.table.add_row([3.0, 4])

        TableAssertions.assert_shape(self.table, 2, 2)
        TableAssertions.assert_equal_column_lengths(self.table)

    def test_add_row_wrong_width(self):
        """Test a row with the wrong number of values"""
        with pytest.raises(ColumnCountMismatchError):
            self.table.add_row([3.0])

    def test_add_row_to_table_without_columns(self):
        """Test adding a row needs at least one column"""
        with pytest.raises(NoDataError):
            Table().add_row([])

    def test_add_row_with_index_key(self):
        """Test an index key materializes positional keys for earlier rows"""
        self.table.add_row([3.0, "c"], index_key="last")

        assert self.table.index == ["0", "1", "last"]

    def test_add_row_duplicate_index_key(self):
        """Test a repeated index key is refused before any column changes"""
        self.table.set_index(["p", "q"])
        with pytest.raises(DuplicateIndexError):
            self.table.add_row([3.0, "c"], index_key="p")
        assert self.table.row_count == 2

    def test_add_row_without_key_skips_used_keys(self):
        """Test a generated key never collides with an existing one"""
        self.table.set_index(["2", "a"])
        self.table.add_row([3.0, "c"])
        self.table.add_row([4.0, "d"])

        assert self.table.index == ["2", "a", "3", "4"]

    def test_set_index_validation(self):
        """Test set_index checks length and uniqueness"""
        with pytest.raises(IndexRowCountMismatchError):
            self.table.set_index(["only"])
        with pytest.raises(DuplicateIndexError):
            self.table.set_index(["k", "k"])

        self.table.set_index([10, 20])
        assert self.table.index == ["10", "20"]

        self.table.set_index(None)
        assert self.table.index is None
        assert self.table.index_or_positions() == ["0", "1"]

    def test_concurrent_add_row(self):
        """Test rows appended from several threads all land intact"""
        def worker(offset):
            for i in range(25):
                self.table.add_row([float(offset + i), f"t{offset}"])

        threads = [threading.Thread(target=worker, args=(n * 100,)) for n in range(4)]
        for thread in threads:
            thread.start()
        for thread in threads:
            thread.join()

        assert self.table.row_count == 102
        TableAssertions.assert_equal_column_lengths(self.table)

# ============================================
# TEST DENSE CONVERSION
# ============================================

class TestDenseConversion:
    """Test to_dense_matrix and from_dense_matrix"""

    def test_to_dense_matrix(self, numeric_table):
        """Test row-major output with columns in insertion order"""
        matrix = numeric_table.to_dense_matrix()

        assert matrix.shape == (4, 3)
        np.testing.assert_array_equal(matrix[:, 1], [0.0, 1.0, 4.0, 9.0])

    def test_heterogeneous_table(self, mixed_table):
        """Test a table of mixed types cannot be densified"""
        assert mixed_table.is_type_heterogeneous()
        with pytest.raises(HeterogeneousDataTypesError):
            mixed_table.to_dense_matrix()

    def test_expected_type_mismatch(self, numeric_table):
        """Test requesting another element type"""
        with pytest.raises(TypeMismatchError):
            numeric_table.to_dense_matrix(DataType.INT64)

    def test_empty_table(self):
        """Test a table without columns"""
        with pytest.raises(NoDataError):
            Table().to_dense_matrix()
        with pytest.raises(NoDataError):
            Table().is_type_heterogeneous()

    def test_zero_rows(self):
        """Test columns without rows give a (0, n) matrix"""
        table = Table()
        table.add_column(Column(DataType.FLOAT64), "a")
        table.add_column(Column(DataType.FLOAT64), "b")

        assert table.to_dense_matrix().shape == (0, 2)

    def test_from_dense_matrix_transposes(self):
        """Test each matrix row becomes a column"""
        matrix = np.array([[1.0, 2.0, 3.0], [4.0, 5.0, 6.0]])
        table = Table.from_dense_matrix(matrix)

        TableAssertions.assert_shape(table, 3, 2)
        assert table.column_names == ["0", "1"]
        np.testing.assert_array_equal(table.to_dense_matrix(), matrix.T)

    def test_from_dense_matrix_labels(self):
        """Test labels name the columns built from matrix rows"""
        table = Table.from_dense_matrix(np.eye(2), labels=["u", "v"])
        assert table.column_names == ["u", "v"]

        with pytest.raises(ColumnCountMismatchError):
            Table.from_dense_matrix(np.eye(2), labels=["u"])

# ============================================
# TEST SELECTION AND SHARING
# ============================================

class TestSelection:
    """Test column access and derived tables"""

    def test_get_column(self, mixed_table):
        """Test access by label and typed access"""
        assert_column_values(mixed_table.get_column("age"), [31, 45, 27], DataType.INT64)
        with pytest.raises(ColumnNotFoundError):
            mixed_table.get_column("missing")
        with pytest.raises(TypeMismatchError):
            mixed_table.get_column("age", DataType.STRING)

    def test_select_columns(self, mixed_table):
        """Test selection keeps the requested order and the index"""
        selected = mixed_table.select_columns(["name", "age"])

        assert selected.column_names == ["name", "age"]
        assert selected.index == ["r0", "r1", "r2"]

        with pytest.raises(ColumnNotFoundError):
            mixed_table.select_columns(["age", "missing"])
        with pytest.raises(DuplicateLabelError):
            mixed_table.select_columns(["age", "age"])

    def test_exclude_matches_select_complement(self, mixed_table):
        """Test exclude_columns and select_columns of the complement agree"""
        excluded = mixed_table.exclude_columns(["name", "not-a-column"])
        complement = [name for name in mixed_table.column_names if name != "name"]

        assert excluded.column_names == mixed_table.select_columns(complement).column_names

    def test_column_at(self, mixed_table):
        """Test positional column access"""
        assert mixed_table.column_at(2).label == "name"
        with pytest.raises(IndexOutOfRangeError):
            mixed_table.column_at(4)
        with pytest.raises(IndexOutOfRangeError):
            mixed_table.column_at(-1)

    def test_derived_table_is_isolated(self, numeric_table):
        """Test mutating a derived table never changes its source"""
        derived = numeric_table.select_columns(["x", "y", "z"])
        derived.add_row([4.0, 16.0, 5.5])

        assert numeric_table.row_count == 4
        assert derived.row_count == 5

        numeric_table.add_row([9.0, 81.0, 9.5])
        assert derived.get_column("x").to_list()[-1] == 4.0

    def test_copy_is_deep(self, numeric_table):
        """Test copy() does not share buffers"""
        duplicate = numeric_table.copy()

        assert not duplicate.get_column("x").shares_storage_with(numeric_table.get_column("x"))
        assert duplicate.to_dict() == numeric_table.to_dict()

# ============================================
# TEST PANDAS INTEROP AND DISPLAY
# ============================================

class TestConversion:
    """Test pandas conversion and text rendering"""

    def test_dataframe_round_trip(self, mixed_table):
        """Test to_dataframe and from_dataframe keep values, types and index"""
        df = mixed_table.to_dataframe()

        assert list(df.columns) == ["age", "height", "name", "member"]
        assert list(df.index) == ["r0", "r1", "r2"]

        table = Table.from_dataframe(df)
        assert table.dtypes == mixed_table.dtypes
        assert table.index == ["r0", "r1", "r2"]
        assert table.to_dict() == mixed_table.to_dict()

    def test_from_dataframe_default_index(self):
        """Test a default RangeIndex does not become a row index"""
        table = Table.from_dataframe(pd.DataFrame({"a": [1.0, 2.0]}))
        assert table.index is None

    def test_to_string(self, numeric_table):
        """Test the text rendering"""
        text = str(numeric_table)

        assert "1.500" in text
        assert text.endswith("[4 rows x 3 columns]")
        assert str(Table()) == "Empty Table"
