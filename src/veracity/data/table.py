# ============================================
# Veracity - src/veracity/data/table.py
# Columnar table with typed columns and an optional row index
# ============================================

import threading
from collections import Counter
from typing import Any, Dict, Iterable, Iterator, List, Mapping, Optional, Sequence, Union

import numpy as np
import pandas as pd

from ..utils.exceptions import (
    ColumnCountMismatchError,
    ColumnNotFoundError,
    DuplicateIndexError,
    DuplicateLabelError,
    HeterogeneousDataTypesError,
    IndexOutOfRangeError,
    IndexRowCountMismatchError,
    NoDataError,
    RowCountMismatchError,
    ShapeMismatchError,
    TypeMismatchError,
)
from ..utils.logger import get_logger
from .column import Column, DataType

logger = get_logger('data.table')

ColumnLike = Union[Column, Sequence[Any], np.ndarray]

class Table:
    """
    Ordered collection of equal-length, individually typed columns

    Columns keep insertion order, which is the order used by positional
    access and dense-matrix conversion. An optional row index holds one
    unique string key per row.

    Tables derived through get_column, select_columns, exclude_columns or
    column_at share column buffers with their source. Buffers are
    copy-on-write, so later mutation of either table is never visible in
    the other.

    Example:
        >>> table = Table()
        >>> table.add_column([1.0, 2.0], "x")
        >>> table.add_column(["a", "b"], "y")
        >>> table.add_row([3.0, "c"])
        >>> table.shape
        (3, 2)
    """

    def __init__(self, columns: Optional[Iterable[Column]] = None, index: Optional[Sequence[Any]] = None):
        self._columns: Dict[str, Column] = {}
        self._index: Optional[List[str]] = None
        self._lock = threading.RLock()

        for column in columns or []:
            self.add_column(column)
        if index is not None:
            self.set_index(index)

    # ============================================
    # Construction helpers
    # ============================================

    @classmethod
    def from_columns(cls, columns: Iterable[Column], index: Optional[Sequence[Any]] = None) -> 'Table':
        return cls(columns=columns, index=index)

    @classmethod
    def from_dict(cls, data: Mapping[str, ColumnLike], index: Optional[Sequence[Any]] = None) -> 'Table':
        """Build a table from a mapping of label -> values, in mapping order"""
        table = cls()
        for label, values in data.items():
            table.add_column(values, label)
        if index is not None:
            table.set_index(index)
        return table

    @classmethod
    def from_dense_matrix(cls, matrix: np.ndarray, labels: Optional[Sequence[str]] = None) -> 'Table':
        """
        Build a table with one column per matrix row

        Row i of the matrix becomes column i of the table, so
        Table.from_dense_matrix(m).to_dense_matrix() equals m.T.

        Args:
            matrix: 2-D array
            labels: Optional column labels, one per matrix row
        """
        matrix = np.asarray(matrix)
        if matrix.ndim != 2:
            raise ShapeMismatchError(
                f"Dense matrix must be 2-dimensional, got {matrix.ndim} dimensions",
                expected=2,
                actual=matrix.ndim
            )
        if labels is not None and len(labels) != matrix.shape[0]:
            raise ColumnCountMismatchError(
                f"Got {len(labels)} labels for {matrix.shape[0]} matrix rows",
                expected=matrix.shape[0],
                actual=len(labels)
            )

        table = cls()
        for position, row in enumerate(matrix):
            table.add_column(Column.from_numpy(row), labels[position] if labels is not None else None)

        logger.debug(f"Built table {table.shape} from dense matrix {matrix.shape}")
        return table

    @classmethod
    def from_dataframe(cls, df: pd.DataFrame) -> 'Table':
        """
        Convert a pandas DataFrame

        Numeric and bool columns keep their dtype, object columns are
        inferred from their values. A non-default index becomes the row index.
        """
        table = cls()
        for name in df.columns:
            series = df[name]
            if series.dtype.kind in 'biuf':
                column = Column.from_numpy(series.to_numpy())
            else:
                column = Column.from_values(series.tolist())
            table.add_column(column, str(name))

        if not isinstance(df.index, pd.RangeIndex) or df.index.start != 0 or df.index.step != 1:
            table.set_index([str(key) for key in df.index])
        return table

    # ============================================
    # Shape and metadata
    # ============================================

    @property
    def row_count(self) -> int:
        """Length of the first column, 0 for a table without columns"""
        for column in self._columns.values():
            return len(column)
        return 0

    @property
    def column_count(self) -> int:
        return len(self._columns)

    @property
    def shape(self) -> tuple:
        return (self.row_count, self.column_count)

    @property
    def column_names(self) -> List[str]:
        return list(self._columns.keys())

    @property
    def dtypes(self) -> Dict[str, Optional[DataType]]:
        return {name: column.dtype for name, column in self._columns.items()}

    @property
    def index(self) -> Optional[List[str]]:
        """Row keys, or None when no index has been set"""
        return list(self._index) if self._index is not None else None

    def index_or_positions(self) -> List[str]:
        """Row keys, falling back to "0".."n-1" when no index is set"""
        if self._index is not None:
            return list(self._index)
        return [str(position) for position in range(self.row_count)]

    @property
    def is_empty(self) -> bool:
        return not self._columns

    def __len__(self) -> int:
        return self.row_count

    def __contains__(self, name: object) -> bool:
        return name in self._columns

    def __iter__(self) -> Iterator[str]:
        return iter(self.column_names)

    # ============================================
    # Mutation
    # ============================================

    def add_column(self, values: ColumnLike, label: Optional[str] = None):
        """
        Append a column

        Args:
            values: Column, sequence or 1-D array
            label: Column name. Falls back to the column's own label, then
                to its ordinal position ("0", "1", ...)

        Raises:
            RowCountMismatchError: If the length differs from existing columns
            IndexRowCountMismatchError: If the length differs from the row index
            DuplicateLabelError: If the label is already used
        """
        with self._lock:
            if isinstance(values, Column):
                column = values.share()
            else:
                column = Column.from_values(values)

            if label is None:
                label = column.label if column.label is not None else str(len(self._columns))
            label = str(label)

            if self._columns and len(column) != self.row_count:
                raise RowCountMismatchError(
                    f"Column {label!r} has {len(column)} rows, table has {self.row_count}",
                    expected=self.row_count,
                    actual=len(column)
                )
            if not self._columns and self._index is not None and len(column) != len(self._index):
                raise IndexRowCountMismatchError(
                    f"Column {label!r} has {len(column)} rows, index has {len(self._index)} keys",
                    expected=len(self._index),
                    actual=len(column)
                )
            if label in self._columns:
                raise DuplicateLabelError(f"Column label {label!r} already exists", label=label)

            column.set_label(label)
            self._columns[label] = column

    def add_row(self, values: Sequence[Any], index_key: Optional[Any] = None):
        """
        Append one value to every column, in column order

        All values (and the index key) are checked before any column is
        touched, so a failing call leaves the table unchanged.

        Args:
            values: One value per column
            index_key: Row key. If the table has no index yet, positional
                keys are created for the existing rows first. Without a key
                the row gets the first unused number from row_count upwards.

        Raises:
            ColumnCountMismatchError: If len(values) != column count
            TypeMismatchError: If a value does not match its column's type
            DuplicateIndexError: If index_key is already used
        """
        with self._lock:
            values = list(values)
            if len(values) != len(self._columns):
                raise ColumnCountMismatchError(
                    f"Row has {len(values)} values, table has {len(self._columns)} columns",
                    expected=len(self._columns),
                    actual=len(values)
                )
            if not self._columns:
                raise NoDataError("Cannot add a row to a table without columns")

            for (label, column), value in zip(self._columns.items(), values):
                if not column.accepts(value):
                    raise TypeMismatchError(
                        f"Value {value!r} does not match {column.dtype} column {label!r}",
                        expected=column.dtype,
                        actual=type(value).__name__
                    )

            new_index = None
            if index_key is not None or self._index is not None:
                new_index = self.index_or_positions()
                if index_key is not None:
                    key = str(index_key)
                else:
                    key = self._next_positional_key(new_index)
                if key in new_index:
                    raise DuplicateIndexError(f"Index key {key!r} already exists", duplicates=[key])
                new_index.append(key)

            for column, value in zip(self._columns.values(), values):
                column.append(value)
            if new_index is not None:
                self._index = new_index

    @staticmethod
    def _next_positional_key(index: List[str]) -> str:
        used = set(index)
        position = len(index)
        while str(position) in used:
            position += 1
        return str(position)

    def set_index(self, keys: Optional[Sequence[Any]]):
        """
        Replace the row index; None removes it

        Raises:
            IndexRowCountMismatchError: If the key count differs from the row count
            DuplicateIndexError: If keys are not unique
        """
        with self._lock:
            if keys is None:
                self._index = None
                return

            keys = [str(key) for key in keys]
            if len(keys) != self.row_count:
                raise IndexRowCountMismatchError(
                    f"Index has {len(keys)} keys, table has {self.row_count} rows",
                    expected=self.row_count,
                    actual=len(keys)
                )

            duplicates = sorted(key for key, count in Counter(keys).items() if count > 1)
            if duplicates:
                raise DuplicateIndexError(f"Index keys are not unique: {duplicates[:10]}", duplicates=duplicates)

            self._index = keys

    # ============================================
    # Type inspection and dense conversion
    # ============================================

    def is_type_heterogeneous(self) -> bool:
        """
        True when columns do not all share the first column's type

        Raises:
            NoDataError: If the table has no columns
        """
        if not self._columns:
            raise NoDataError("Cannot inspect column types of an empty table")
        tags = [column.dtype for column in self._columns.values()]
        return any(tag != tags[0] for tag in tags[1:])

    def to_dense_matrix(self, dtype: Optional[Union[DataType, str, type]] = None) -> np.ndarray:
        """
        Row-major (rows, columns) array, columns in insertion order

        Args:
            dtype: Expected column type; must match every column when given

        Raises:
            NoDataError: If the table has no columns
            HeterogeneousDataTypesError: If columns have different types
            TypeMismatchError: If dtype differs from the columns' type
        """
        with self._lock:
            if not self._columns:
                raise NoDataError("Cannot convert an empty table to a dense matrix")
            if self.is_type_heterogeneous():
                dtypes = sorted({str(tag) for tag in self.dtypes.values()})
                raise HeterogeneousDataTypesError(
                    f"Dense conversion needs a single column type, found {dtypes}",
                    dtypes=dtypes
                )

            columns = list(self._columns.values())
            tag = columns[0].dtype
            if dtype is not None:
                expected = DataType.coerce(dtype)
                if tag is not None and expected != tag:
                    raise TypeMismatchError(
                        f"Table columns hold {tag} values, not {expected}",
                        expected=expected,
                        actual=tag
                    )
                tag = expected

            n_rows = self.row_count
            for column in columns:
                if len(column) != n_rows:
                    raise IndexOutOfRangeError(
                        f"Column {column.label!r} ended after {len(column)} of {n_rows} rows",
                        position=len(column),
                        size=n_rows
                    )

            storage_dtype = tag.numpy_dtype if tag is not None else np.dtype(np.float64)
            if n_rows == 0:
                return np.empty((0, len(columns)), dtype=storage_dtype)
            return np.column_stack([column.values for column in columns]).astype(storage_dtype, copy=False)

    # ============================================
    # Selection
    # ============================================

    def _derive(self, labels: Iterable[str]) -> 'Table':
        derived = Table()
        for label in labels:
            derived._columns[label] = self._columns[label].share()
        derived._index = list(self._index) if self._index is not None else None
        return derived

    def get_column(self, name: str, dtype: Optional[Union[DataType, str, type]] = None) -> Column:
        """
        Column by label, sharing storage with this table

        Raises:
            ColumnNotFoundError: If no column has this label
            TypeMismatchError: If dtype is given and differs from the column's type
        """
        if name not in self._columns:
            raise ColumnNotFoundError(f"Column {name!r} not found", column=name, available=self.column_names)
        column = self._columns[name]
        if dtype is not None and column.dtype is not None and DataType.coerce(dtype) != column.dtype:
            raise TypeMismatchError(
                f"Column {name!r} holds {column.dtype} values, not {DataType.coerce(dtype)}",
                expected=DataType.coerce(dtype),
                actual=column.dtype
            )
        return column.share()

    def select_columns(self, names: Iterable[str]) -> 'Table':
        """
        Table with the named columns, in the order given

        Raises:
            ColumnNotFoundError: If a name is not a column of this table
            DuplicateLabelError: If a name is given twice
        """
        names = [str(name) for name in names]
        with self._lock:
            missing = [name for name in names if name not in self._columns]
            if missing:
                raise ColumnNotFoundError(
                    f"Columns not found: {missing}",
                    column=missing[0],
                    available=self.column_names
                )
            repeated = [name for name, count in Counter(names).items() if count > 1]
            if repeated:
                raise DuplicateLabelError(f"Columns selected more than once: {repeated}", label=repeated[0])
            return self._derive(names)

    def exclude_columns(self, names: Iterable[str]) -> 'Table':
        """Table without the named columns; names that are not columns are ignored"""
        excluded = {str(name) for name in names}
        with self._lock:
            return self._derive(label for label in self._columns if label not in excluded)

    def exclude_column(self, name: str) -> 'Table':
        return self.exclude_columns([name])

    def column_at(self, position: int) -> Column:
        """
        Column by insertion position

        Raises:
            IndexOutOfRangeError: If position is outside [0, column_count)
        """
        if not 0 <= position < len(self._columns):
            raise IndexOutOfRangeError(
                f"Column position {position} out of range for {len(self._columns)} columns",
                position=position,
                size=len(self._columns)
            )
        return list(self._columns.values())[position].share()

    def row(self, position: int) -> Dict[str, Any]:
        """Values of one row keyed by column label"""
        if not 0 <= position < self.row_count:
            raise IndexOutOfRangeError(
                f"Row position {position} out of range for {self.row_count} rows",
                position=position,
                size=self.row_count
            )
        return {label: column[position] for label, column in self._columns.items()}

    # ============================================
    # Copies and conversion
    # ============================================

    def copy(self) -> 'Table':
        """Deep copy with independent column buffers"""
        with self._lock:
            duplicate = Table()
            for label, column in self._columns.items():
                duplicate._columns[label] = column.copy()
            duplicate._index = list(self._index) if self._index is not None else None
            return duplicate

    def to_dict(self) -> Dict[str, List[Any]]:
        return {label: column.to_list() for label, column in self._columns.items()}

    def to_dataframe(self) -> pd.DataFrame:
        """Convert to a pandas DataFrame, keeping column order and index"""
        data = {label: column.to_numpy() for label, column in self._columns.items()}
        index = pd.Index(self._index) if self._index is not None else None
        return pd.DataFrame(data, index=index, columns=self.column_names)

    # ============================================
    # Display
    # ============================================

    def __str__(self) -> str:
        return self.to_string()

    def to_string(self, max_rows: int = 10) -> str:
        """Text rendering with labels sorted and floats shown to three decimals"""
        if not self._columns:
            return "Empty Table"

        df = self.to_dataframe()[sorted(self.column_names)]
        body = df.head(max_rows).to_string(float_format=lambda value: f"{value:.3f}")
        if self.row_count > max_rows:
            body += f"\n... ({self.row_count - max_rows} more rows)"
        return f"{body}\n[{self.row_count} rows x {self.column_count} columns]"

    def __repr__(self) -> str:
        return f"Table(rows={self.row_count}, columns={self.column_names})"
