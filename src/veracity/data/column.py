# ============================================
# Veracity - src/veracity/data/column.py
# Typed, copy-on-write column storage
# ============================================

from enum import Enum
from typing import Any, Iterable, Iterator, List, Optional, Union

import numpy as np

from ..utils.exceptions import ShapeMismatchError, TypeMismatchError
from ..utils.logger import get_logger

logger = get_logger('data.column')

# ============================================
# Type Tags
# ============================================

class DataType(Enum):
    """Closed set of element types a column can hold"""
    BOOL = "bool"
    INT64 = "int64"
    FLOAT64 = "float64"
    STRING = "string"
    OBJECT = "object"

    @property
    def numpy_dtype(self) -> np.dtype:
        """Storage dtype of the column buffer"""
        return _NUMPY_DTYPES[self]

    @property
    def is_numeric(self) -> bool:
        return self in (DataType.BOOL, DataType.INT64, DataType.FLOAT64)

    @classmethod
    def coerce(cls, value: Any) -> 'DataType':
        """
        Resolve a DataType from a tag, its name, a Python type or a numpy dtype

        Examples:
            DataType.coerce("float64") -> DataType.FLOAT64
            DataType.coerce(int) -> DataType.INT64
            DataType.coerce(np.dtype(bool)) -> DataType.BOOL
        """
        if isinstance(value, cls):
            return value
        if isinstance(value, str):
            key = value.strip().lower()
            if key in _NAME_ALIASES:
                return _NAME_ALIASES[key]
            raise TypeMismatchError(f"Unknown data type name: {value!r}", expected="data type name", actual=value)
        if isinstance(value, type) and value in _PYTHON_TYPES:
            return _PYTHON_TYPES[value]
        try:
            kind = np.dtype(value).kind
        except TypeError as e:
            raise TypeMismatchError(f"Cannot interpret {value!r} as a data type", actual=value, cause=e) from e
        if kind in _KIND_TAGS:
            return _KIND_TAGS[kind]
        raise TypeMismatchError(f"Unsupported numpy dtype: {value!r}", actual=value)

    @classmethod
    def infer(cls, value: Any) -> 'DataType':
        """Tag for a single Python or numpy scalar"""
        # bool must be checked before int
        if isinstance(value, (bool, np.bool_)):
            return cls.BOOL
        if isinstance(value, (int, np.integer)):
            return cls.INT64
        if isinstance(value, (float, np.floating)):
            return cls.FLOAT64
        if isinstance(value, str):
            return cls.STRING
        return cls.OBJECT

    def __str__(self) -> str:
        return self.value

_NUMPY_DTYPES = {
    DataType.BOOL: np.dtype(np.bool_),
    DataType.INT64: np.dtype(np.int64),
    DataType.FLOAT64: np.dtype(np.float64),
    DataType.STRING: np.dtype(object),
    DataType.OBJECT: np.dtype(object),
}

_NAME_ALIASES = {
    'bool': DataType.BOOL,
    'boolean': DataType.BOOL,
    'int': DataType.INT64,
    'int64': DataType.INT64,
    'integer': DataType.INT64,
    'float': DataType.FLOAT64,
    'float64': DataType.FLOAT64,
    'double': DataType.FLOAT64,
    'str': DataType.STRING,
    'string': DataType.STRING,
    'text': DataType.STRING,
    'object': DataType.OBJECT,
    'label': DataType.OBJECT,
}

_PYTHON_TYPES = {
    bool: DataType.BOOL,
    int: DataType.INT64,
    float: DataType.FLOAT64,
    str: DataType.STRING,
    object: DataType.OBJECT,
}

_KIND_TAGS = {
    'b': DataType.BOOL,
    'i': DataType.INT64,
    'u': DataType.INT64,
    'f': DataType.FLOAT64,
    'U': DataType.STRING,
    'S': DataType.STRING,
    'O': DataType.OBJECT,
}

def _readonly(array: np.ndarray) -> np.ndarray:
    array.flags.writeable = False
    return array

# ============================================
# Column
# ============================================

class Column:
    """
    A homogeneous, optionally labelled sequence of values

    Every value in a column has the same element type, recorded in its
    DataType tag. The backing numpy buffer is read-only and may be shared
    by several Column objects (see share()); append() builds a new buffer
    and rebinds it on this column only, so columns sharing the old buffer
    are unaffected.

    OBJECT columns additionally pin the concrete Python type of their
    values, so a column of enum members cannot receive a tuple.
    """

    def __init__(self, dtype: Optional[Union[DataType, str, type]] = None, label: Optional[str] = None):
        self._dtype: Optional[DataType] = DataType.coerce(dtype) if dtype is not None else None
        self._element_type: Optional[type] = None
        self._label = label
        self._data = _readonly(np.empty(0, dtype=self._dtype.numpy_dtype if self._dtype else object))

    # ----------------------------------------
    # Construction
    # ----------------------------------------

    @classmethod
    def _from_storage(cls, data: np.ndarray, dtype: Optional[DataType], label: Optional[str],
                      element_type: Optional[type] = None) -> 'Column':
        column = cls.__new__(cls)
        column._dtype = dtype
        column._element_type = element_type
        column._label = label
        column._data = data if not data.flags.writeable else _readonly(data)
        return column

    @classmethod
    def from_values(cls, values: Iterable[Any], dtype: Optional[Union[DataType, str, type]] = None,
                    label: Optional[str] = None) -> 'Column':
        """
        Build a column from a sequence of values

        Args:
            values: Values sharing one element type
            dtype: Expected tag; inferred from the first value when omitted
            label: Optional column name

        Returns:
            New Column

        Raises:
            TypeMismatchError: If values do not share one type or do not match dtype
        """
        if isinstance(values, np.ndarray):
            column = cls.from_numpy(values, label=label)
            if dtype is not None and column.dtype is not None and column.dtype != DataType.coerce(dtype):
                raise TypeMismatchError(
                    f"Array of type {column.dtype} does not match requested type {DataType.coerce(dtype)}",
                    expected=DataType.coerce(dtype),
                    actual=column.dtype
                )
            return column

        values = list(values)
        tag = DataType.coerce(dtype) if dtype is not None else None

        if not values:
            return cls(dtype=tag, label=label)

        if tag is None:
            tag = DataType.infer(values[0])

        element_type = type(values[0]) if tag == DataType.OBJECT else None
        for position, value in enumerate(values):
            if not _accepts(tag, element_type, value):
                raise TypeMismatchError(
                    f"Value {value!r} at position {position} does not match column type {tag}",
                    expected=tag,
                    actual=type(value).__name__
                )

        data = np.empty(len(values), dtype=tag.numpy_dtype)
        if tag.numpy_dtype == np.dtype(object):
            # element-wise fill keeps tuples and other sequences as scalars
            for position, value in enumerate(values):
                data[position] = value
        else:
            data[:] = values

        return cls._from_storage(data, tag, label, element_type)

    @classmethod
    def from_numpy(cls, array: np.ndarray, label: Optional[str] = None) -> 'Column':
        """
        Wrap a 1-D numpy array

        bool arrays become BOOL, integer arrays INT64, floating arrays FLOAT64,
        unicode/bytes arrays STRING and object arrays are inferred per value.
        """
        array = np.asarray(array)
        if array.ndim != 1:
            raise ShapeMismatchError(
                f"Column data must be 1-dimensional, got {array.ndim} dimensions",
                expected=1,
                actual=array.ndim
            )

        kind = array.dtype.kind
        if kind == 'O':
            return cls.from_values(array.tolist(), label=label)
        if kind == 'S':
            return cls.from_values([value.decode() for value in array.tolist()], dtype=DataType.STRING, label=label)
        if kind not in _KIND_TAGS:
            raise TypeMismatchError(f"Unsupported array dtype: {array.dtype}", actual=array.dtype)

        tag = _KIND_TAGS[kind]
        data = np.array(array, dtype=tag.numpy_dtype, copy=True)
        return cls._from_storage(data, tag, label)

    # ----------------------------------------
    # Metadata
    # ----------------------------------------

    @property
    def dtype(self) -> Optional[DataType]:
        """Element type tag, None for an empty column created without one"""
        return self._dtype

    @property
    def label(self) -> Optional[str]:
        return self._label

    def set_label(self, label: Optional[str]):
        self._label = label

    @property
    def values(self) -> np.ndarray:
        """Read-only view of the column buffer"""
        return self._data

    def __len__(self) -> int:
        return self._data.shape[0]

    @property
    def is_empty(self) -> bool:
        return len(self) == 0

    # ----------------------------------------
    # Typed views
    # ----------------------------------------

    def _check_expected(self, dtype: Optional[Union[DataType, str, type]]):
        if dtype is None:
            return
        expected = DataType.coerce(dtype)
        if self._dtype is not None and expected != self._dtype:
            raise TypeMismatchError(
                f"Column {self._label!r} holds {self._dtype} values, not {expected}",
                expected=expected,
                actual=self._dtype
            )

    def to_list(self, dtype: Optional[Union[DataType, str, type]] = None) -> List[Any]:
        """
        Copy of the values as a Python list

        Raises:
            TypeMismatchError: If dtype is given and differs from the column's tag
        """
        self._check_expected(dtype)
        return self._data.tolist()

    def to_numpy(self, dtype: Optional[Union[DataType, str, type]] = None) -> np.ndarray:
        """
        Writable numpy copy of the values

        Raises:
            TypeMismatchError: If dtype is given and differs from the column's tag
        """
        self._check_expected(dtype)
        return self._data.copy()

    def accepts(self, value: Any) -> bool:
        """True when value can be appended without a type mismatch"""
        if self._dtype is None:
            return True
        return _accepts(self._dtype, self._element_type, value)

    def __getitem__(self, position: int) -> Any:
        value = self._data[position]
        return value.item() if isinstance(value, np.generic) else value

    def __iter__(self) -> Iterator[Any]:
        return iter(self._data.tolist())

    def unique(self) -> List[Any]:
        """Distinct values in natural sort order"""
        return sorted(set(self._data.tolist()))

    # ----------------------------------------
    # Mutation
    # ----------------------------------------

    def append(self, value: Any):
        """
        Append one value after checking it against the column's tag

        An empty column created without a tag adopts the tag of its first value.

        Raises:
            TypeMismatchError: If the value does not match the column's type
        """
        if self._dtype is None:
            self._dtype = DataType.infer(value)
            if self._dtype == DataType.OBJECT:
                self._element_type = type(value)
        elif not _accepts(self._dtype, self._element_type, value):
            raise TypeMismatchError(
                f"Cannot append {type(value).__name__} value {value!r} to {self._dtype} column {self._label!r}",
                expected=self._dtype,
                actual=type(value).__name__
            )
        elif self._dtype == DataType.OBJECT and self._element_type is None:
            self._element_type = type(value)

        data = np.empty(len(self) + 1, dtype=self._dtype.numpy_dtype)
        data[:-1] = self._data
        data[-1] = value
        self._data = _readonly(data)

    # ----------------------------------------
    # Copies
    # ----------------------------------------

    def share(self) -> 'Column':
        """New Column object over the same read-only buffer"""
        return Column._from_storage(self._data, self._dtype, self._label, self._element_type)

    def copy(self) -> 'Column':
        """Deep copy with its own buffer"""
        return Column._from_storage(self._data.copy(), self._dtype, self._label, self._element_type)

    def shares_storage_with(self, other: 'Column') -> bool:
        return self._data is other._data

    def equals(self, other: 'Column') -> bool:
        """Same tag and same values (NaN equal to NaN)"""
        if not isinstance(other, Column) or self._dtype != other._dtype or len(self) != len(other):
            return False
        if self._dtype == DataType.FLOAT64:
            return bool(np.array_equal(self._data, other._data, equal_nan=True))
        return self._data.tolist() == other._data.tolist()

    def __repr__(self) -> str:
        return f"Column(label={self._label!r}, dtype={self._dtype}, length={len(self)})"

def _accepts(tag: DataType, element_type: Optional[type], value: Any) -> bool:
    if tag == DataType.BOOL:
        return isinstance(value, (bool, np.bool_))
    if tag == DataType.INT64:
        return isinstance(value, (int, np.integer)) and not isinstance(value, (bool, np.bool_))
    if tag == DataType.FLOAT64:
        return isinstance(value, (float, np.floating))
    if tag == DataType.STRING:
        return isinstance(value, str)
    return DataType.infer(value) == DataType.OBJECT and (element_type is None or type(value) is element_type)
