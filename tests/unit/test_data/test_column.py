"""
tests/unit/test_data/test_column.py

Unit tests for typed columns: type tags, construction, typed views,
checked appends and copy-on-write sharing.
"""

from enum import Enum

import numpy as np
import pytest

from veracity.data.column import Column, DataType
from veracity.utils.exceptions import ShapeMismatchError, TypeMismatchError

class Color(Enum):
    RED = "red"
    BLUE = "blue"

# ============================================
# TEST DATA TYPE TAGS
# ============================================

class TestDataType:
    """Test DataType coercion and inference"""

    @pytest.mark.parametrize("value, expected", [
        ("float64", DataType.FLOAT64),
        ("INT", DataType.INT64),
        ("string", DataType.STRING),
        (bool, DataType.BOOL),
        (int, DataType.INT64),
        (str, DataType.STRING),
        (np.dtype(np.float32), DataType.FLOAT64),
        (np.dtype(bool), DataType.BOOL),
        (DataType.OBJECT, DataType.OBJECT),
    ])
    def test_coerce(self, value, expected):
        """Test tags resolve from names, Python types and numpy dtypes"""
        assert DataType.coerce(value) == expected

    def test_coerce_unknown_name(self):
        """Test an unknown type name raises TypeMismatchError"""
        with pytest.raises(TypeMismatchError):
            DataType.coerce("decimal")

    def test_infer_bool_before_int(self):
        """Test bool values are not inferred as integers"""
        assert DataType.infer(True) == DataType.BOOL
        assert DataType.infer(np.bool_(False)) == DataType.BOOL
        assert DataType.infer(3) == DataType.INT64
        assert DataType.infer(3.0) == DataType.FLOAT64
        assert DataType.infer("3") == DataType.STRING
        assert DataType.infer((1, 2)) == DataType.OBJECT

    def test_numeric_tags(self):
        """Test which tags count as numeric"""
        assert DataType.BOOL.is_numeric
        assert DataType.INT64.is_numeric
        assert DataType.FLOAT64.is_numeric
        assert not DataType.STRING.is_numeric
        assert not DataType.OBJECT.is_numeric

# ============================================
# TEST COLUMN CONSTRUCTION AND VIEWS
# ============================================

class TestColumnConstruction:
    """Test building columns and reading them back"""

    def test_from_values_infers_type(self):
        """Test the tag is inferred from the first value"""
        column = Column.from_values([1, 2, 3], label="n")

        assert column.dtype == DataType.INT64
        assert column.label == "n"
        assert column.to_list() == [1, 2, 3]
        assert len(column) == 3

    def test_from_values_rejects_mixed_types(self):
        """Test values of different types are refused"""
        with pytest.raises(TypeMismatchError):
            Column.from_values([1.0, "two"])

    def test_float_column_rejects_int(self):
        """Test type matching is exact: an int is not a float64 value"""
        with pytest.raises(TypeMismatchError):
            Column.from_values([1.0, 2], dtype=DataType.FLOAT64)

    def test_from_numpy_tags(self):
        """Test numpy arrays map onto tags by dtype kind"""
        assert Column.from_numpy(np.array([1, 2], dtype=np.int32)).dtype == DataType.INT64
        assert Column.from_numpy(np.array([1.0, 2.0])).dtype == DataType.FLOAT64
        assert Column.from_numpy(np.array([True, False])).dtype == DataType.BOOL
        assert Column.from_numpy(np.array(["a", "b"])).dtype == DataType.STRING

    def test_from_numpy_requires_one_dimension(self):
        """Test 2-D arrays cannot become a column"""
        with pytest.raises(ShapeMismatchError):
            Column.from_numpy(np.zeros((2, 2)))

    def test_empty_column(self):
        """Test an untagged empty column"""
        column = Column()

        assert column.dtype is None
        assert column.is_empty
        assert column.to_list() == []

    def test_typed_view_mismatch(self):
        """Test requesting the wrong element type raises TypeMismatchError"""
        column = Column.from_values(["a", "b"])

        assert column.to_list(DataType.STRING) == ["a", "b"]
        with pytest.raises(TypeMismatchError):
            column.to_list(DataType.FLOAT64)
        with pytest.raises(TypeMismatchError):
            column.to_numpy(int)

    def test_values_are_read_only(self):
        """Test the buffer view cannot be written"""
        column = Column.from_values([1.0, 2.0])

        with pytest.raises(ValueError):
            column.values[0] = 5.0

    def test_to_numpy_is_a_copy(self):
        """Test writing to_numpy output leaves the column intact"""
        column = Column.from_values([1.0, 2.0])
        array = column.to_numpy()
        array[0] = 99.0

        assert column.to_list() == [1.0, 2.0]

    def test_unique_is_sorted(self):
        """Test distinct values come back in natural order"""
        column = Column.from_values(["b", "a", "c", "a"])

        assert column.unique() == ["a", "b", "c"]

    def test_getitem_returns_python_scalars(self):
        """Test element access unwraps numpy scalars"""
        column = Column.from_values([1, 2])

        assert isinstance(column[0], int)
        assert column[1] == 2

# ============================================
# TEST APPENDS AND SHARING
# ============================================

class TestColumnMutation:
    """Test checked appends and copy-on-write behaviour"""

    def test_append_matching_value(self):
        """Test appending a value of the column's type"""
        column = Column.from_values([1.0])
        column.append(2.5)

        assert column.to_list() == [1.0, 2.5]

    def test_append_mismatched_value(self):
        """Test appending a value of another type fails and leaves the column unchanged"""
        column = Column.from_values([1.0])

        with pytest.raises(TypeMismatchError):
            column.append("x")
        with pytest.raises(TypeMismatchError):
            column.append(True)

        assert column.to_list() == [1.0]

    def test_untagged_column_adopts_first_type(self):
        """Test an empty untagged column takes the type of its first value"""
        column = Column()
        column.append("first")

        assert column.dtype == DataType.STRING
        with pytest.raises(TypeMismatchError):
            column.append(1)

    def test_object_column_pins_element_type(self):
        """Test object columns hold a single concrete Python type"""
        column = Column.from_values([Color.RED])
        column.append(Color.BLUE)

        with pytest.raises(TypeMismatchError):
            column.append((1, 2))
        assert column.to_list() == [Color.RED, Color.BLUE]

    def test_empty_object_column_pins_on_first_append(self):
        """Test a tagged empty object column pins the type of its first value"""
        column = Column(dtype=DataType.OBJECT)
        column.append((1, 2))

        with pytest.raises(TypeMismatchError):
            column.append(Color.RED)

    def test_append_does_not_affect_shared_column(self):
        """Test appending to one handle is invisible through another"""
        original = Column.from_values([1, 2])
        shared = original.share()

        assert shared.shares_storage_with(original)

        shared.append(3)

        assert original.to_list() == [1, 2]
        assert shared.to_list() == [1, 2, 3]
        assert not shared.shares_storage_with(original)

    def test_copy_has_own_buffer(self):
        """Test copy() gives an equal column with its own storage"""
        original = Column.from_values([1.0, float('nan')])
        duplicate = original.copy()

        assert duplicate.equals(original)
        assert not duplicate.shares_storage_with(original)
