# ============================================
# Veracity - src/veracity/data/loaders/csv_loader.py
# Delimited text loader with per-column type inference
# ============================================

import csv
from dataclasses import dataclass, field
from pathlib import Path
from typing import Any, List, Optional

import pandas as pd

from ...utils.config_loader import get
from ...utils.exceptions import ColumnCountMismatchError, DataLoadError, InvalidParameterError, NoDataError
from ...utils.logger import get_logger
from ...utils.validators import ValidationResult
from ..column import Column, DataType
from ..table import Table
from .base_loader import DataLoader

logger = get_logger('data.loaders.csv')

BLANK_LINE_TOKEN = "NA"
_BOOL_TOKENS = {'true': True, 'false': False}

def _csv_default(key: str, fallback: Any):
    return field(default_factory=lambda: get('model_config', f'csv.{key}', fallback))

@dataclass
class CSVLoaderSettings:
    """
    How a delimited file is read

    header_names: labels for a file without a header row
    header_indices: header_indices[i] is the position in the file's header
        row of the label for column i
    index_col: position of a column holding row keys; it is not loaded
        as a data column
    skip_rows / skip_footer: data rows dropped from the top / bottom
    n_rows: maximum number of data rows kept, None for all
    skip_blank_lines: when False, a blank line becomes a row of "NA" tokens
    """
    separator: str = _csv_default('separator', ',')
    header_names: Optional[List[str]] = None
    header_indices: Optional[List[int]] = None
    index_col: Optional[int] = None
    skip_initial_space: bool = _csv_default('skip_initial_space', True)
    skip_rows: int = 0
    skip_footer: int = 0
    n_rows: Optional[int] = None
    skip_blank_lines: bool = _csv_default('skip_blank_lines', True)

    def __post_init__(self):
        result = ValidationResult()

        if not isinstance(self.separator, str) or len(self.separator) != 1:
            result.add_error(f"separator must be a single character, got {self.separator!r}")
        if self.header_names and self.header_indices:
            result.add_error("header_names and header_indices cannot both be set")
        for name in ('skip_rows', 'skip_footer'):
            if getattr(self, name) < 0:
                result.add_error(f"{name} must be non-negative")
        if self.n_rows is not None and self.n_rows < 0:
            result.add_error("n_rows must be non-negative or None")
        if self.index_col is not None and self.index_col < 0:
            result.add_error("index_col must be non-negative")

        result.raise_if_invalid(InvalidParameterError)

class CSVLoader(DataLoader):
    """
    Load a delimited text file into a Table

    Every token is read as text, stripped, and each column is then typed
    as a whole: all "true"/"false" tokens give a BOOL column, all tokens
    parseable as float give a FLOAT64 column, anything else STRING.
    Columns keep the order they have in the file.
    """

    name = "csv"

    def __init__(self, settings: Optional[CSVLoaderSettings] = None):
        self.settings = settings or CSVLoaderSettings()

    def _load(self, path: Path) -> Table:
        rows = self._read_rows(path)
        if not rows:
            raise NoDataError(f"CSV file contains no data: {path}")

        width = len(rows[0])
        headers = self._resolve_headers(rows, width)
        if not self.settings.header_names:
            rows = rows[1:]

        rows = self._slice_rows(rows)

        index = None
        if self.settings.index_col is not None:
            if self.settings.index_col >= width:
                raise InvalidParameterError(
                    f"index_col {self.settings.index_col} is outside the {width} columns of {path.name}",
                    parameter_name="index_col",
                    provided_value=self.settings.index_col
                )
            index = [row[self.settings.index_col] for row in rows]

        table = Table()
        for position, header in enumerate(headers):
            if position == self.settings.index_col:
                continue
            tokens = [row[position] for row in rows]
            table.add_column(self._infer_column(tokens), header)

        table.set_index(index if index is not None else [str(position) for position in range(len(rows))])
        return table

    def _read_rows(self, path: Path) -> List[List[str]]:
        """Tokenize the file, one list of stripped tokens per line"""
        try:
            raw = pd.read_csv(
                path,
                sep=self.settings.separator,
                header=None,
                dtype=object,
                keep_default_na=False,
                na_filter=False,
                skipinitialspace=self.settings.skip_initial_space,
                skip_blank_lines=self.settings.skip_blank_lines,
                quoting=csv.QUOTE_MINIMAL,
                engine="python"
            )
        except pd.errors.EmptyDataError:
            return []
        except pd.errors.ParserError as e:
            raise ColumnCountMismatchError(
                f"There is a different number of columns in two or more rows of {path.name}: {e}"
            ) from e
        except (OSError, UnicodeDecodeError) as e:
            raise DataLoadError(f"Failed to read {path}: {e}", path=path, cause=e) from e

        width = raw.shape[1]
        rows = []
        for line_number, values in enumerate(raw.itertuples(index=False, name=None), start=1):
            missing = [value is None or (isinstance(value, float) and value != value) for value in values]
            if all(missing) and width > 0:
                # blank line kept because skip_blank_lines is False
                rows.append([BLANK_LINE_TOKEN] * width)
                continue
            if any(missing):
                raise ColumnCountMismatchError(
                    f"Row {line_number} of {path.name} has fewer than {width} columns",
                    expected=width,
                    actual=width - sum(missing)
                )
            rows.append([str(value).strip() for value in values])

        logger.debug(f"Read {len(rows)} lines with {width} columns from {path.name}")
        return rows

    def _resolve_headers(self, rows: List[List[str]], width: int) -> List[str]:
        if self.settings.header_names:
            if len(self.settings.header_names) != width:
                raise ColumnCountMismatchError(
                    f"header_names has {len(self.settings.header_names)} values and the file has {width} columns",
                    expected=width,
                    actual=len(self.settings.header_names)
                )
            return [str(name) for name in self.settings.header_names]

        file_headers = rows[0]
        if self.settings.header_indices:
            indices = list(self.settings.header_indices)
            if len(indices) != width:
                raise ColumnCountMismatchError(
                    f"header_indices has {len(indices)} values and the file has {width} columns",
                    expected=width,
                    actual=len(indices)
                )
            if sorted(indices) != list(range(width)):
                raise InvalidParameterError(
                    f"header_indices must be a permutation of 0..{width - 1}",
                    parameter_name="header_indices",
                    provided_value=indices
                )
            return [file_headers[position] for position in indices]

        return list(file_headers)

    def _slice_rows(self, rows: List[List[str]]) -> List[List[str]]:
        end = len(rows) - self.settings.skip_footer
        rows = rows[self.settings.skip_rows:max(end, 0)]
        if self.settings.n_rows is not None:
            rows = rows[:self.settings.n_rows]
        return rows

    @staticmethod
    def _infer_column(tokens: List[str]) -> Column:
        """Type a column of text tokens: bool, then float64, then string"""
        if all(token.lower() in _BOOL_TOKENS for token in tokens):
            return Column.from_values([_BOOL_TOKENS[token.lower()] for token in tokens], dtype=DataType.BOOL)

        try:
            parsed = [float(token) for token in tokens]
        except ValueError:
            return Column.from_values(tokens, dtype=DataType.STRING)
        return Column.from_values(parsed, dtype=DataType.FLOAT64)
