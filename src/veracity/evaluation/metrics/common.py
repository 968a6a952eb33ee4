# ============================================
# Veracity - src/veracity/evaluation/metrics/common.py
# Input handling shared by metric functions
# ============================================

from typing import Any, Sequence, Tuple, Union

import numpy as np
import pandas as pd

from ...data.column import Column
from ...utils.exceptions import ShapeMismatchError, TypeMismatchError
from ...utils.validators import check_consistent_length

ArrayLike = Union[np.ndarray, pd.Series, Column, Sequence[Any]]

def to_array(values: ArrayLike) -> np.ndarray:
    """1-D numpy array from a Column, Series, array or sequence"""
    if isinstance(values, Column):
        array = values.to_numpy()
    elif isinstance(values, pd.Series):
        array = values.to_numpy()
    else:
        array = np.asarray(values)

    if array.ndim != 1:
        raise ShapeMismatchError(
            f"Expected a 1-dimensional input, got {array.ndim} dimensions",
            expected=1,
            actual=array.ndim
        )
    return array

def to_float_array(values: ArrayLike) -> np.ndarray:
    array = to_array(values)
    if array.dtype.kind not in 'biuf':
        try:
            return array.astype(np.float64)
        except (TypeError, ValueError) as e:
            raise TypeMismatchError(
                f"Metric input must be numeric, got {array.dtype}",
                expected="float64",
                actual=array.dtype,
                cause=e
            ) from e
    return array.astype(np.float64)

def paired_arrays(y_true: ArrayLike, y_pred: ArrayLike, numeric: bool = False) -> Tuple[np.ndarray, np.ndarray]:
    """
    Convert and length-check a (y_true, y_pred) pair

    Raises:
        ShapeMismatchError: If the inputs differ in length
    """
    convert = to_float_array if numeric else to_array
    true_array = convert(y_true)
    pred_array = convert(y_pred)
    check_consistent_length(true_array, pred_array, "y_true and y_pred")
    return true_array, pred_array

def resolve_positive_class(y_true: np.ndarray, positive_class: Any = None) -> Any:
    """The given positive class, else the first actual label"""
    if positive_class is not None:
        return positive_class
    if len(y_true) == 0:
        return None
    first = y_true[0]
    return first.item() if isinstance(first, np.generic) else first
