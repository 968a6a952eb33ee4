# ============================================
# Veracity - src/veracity/evaluation/metrics/regression_metrics.py
# Regression metrics over numeric sequences
# ============================================

from typing import Dict, Optional

import numpy as np

from ...utils.exceptions import InvalidParameterError
from ...utils.logger import get_logger
from ...utils.timing import time_it
from .common import ArrayLike, paired_arrays

logger = get_logger('evaluation.metrics.regression')

# ============================================
# Core Regression Metrics
# ============================================

@time_it("mse_calculation")
def calculate_mse(y_true: ArrayLike, y_pred: ArrayLike) -> float:
    """
    Calculate Mean Squared Error (MSE)

    Args:
        y_true: Actual values
        y_pred: Predicted values

    Returns:
        MSE value, NaN for empty inputs
    """
    y_true_array, y_pred_array = paired_arrays(y_true, y_pred, numeric=True)
    if len(y_true_array) == 0:
        return float('nan')

    return float(np.mean((y_true_array - y_pred_array) ** 2))

@time_it("rmse_calculation")
def calculate_rmse(y_true: ArrayLike, y_pred: ArrayLike) -> float:
    """Calculate Root Mean Squared Error (RMSE)"""
    return float(np.sqrt(calculate_mse(y_true, y_pred)))

@time_it("mae_calculation")
def calculate_mae(y_true: ArrayLike, y_pred: ArrayLike) -> float:
    """
    Calculate Mean Absolute Error (MAE)

    Args:
        y_true: Actual values
        y_pred: Predicted values

    Returns:
        MAE value, NaN for empty inputs
    """
    y_true_array, y_pred_array = paired_arrays(y_true, y_pred, numeric=True)
    if len(y_true_array) == 0:
        return float('nan')

    return float(np.mean(np.abs(y_true_array - y_pred_array)))

@time_it("r2_calculation")
def calculate_r2(y_true: ArrayLike, y_pred: ArrayLike) -> float:
    """
    Calculate the coefficient of determination, 1 - SS_res / SS_tot

    Args:
        y_true: Actual values
        y_pred: Predicted values

    Returns:
        R² value; 0.0 when the actual values are constant (SS_tot == 0),
        NaN for empty inputs
    """
    y_true_array, y_pred_array = paired_arrays(y_true, y_pred, numeric=True)
    if len(y_true_array) == 0:
        return float('nan')

    ss_res = np.sum((y_true_array - y_pred_array) ** 2)
    ss_tot = np.sum((y_true_array - np.mean(y_true_array)) ** 2)
    if ss_tot == 0:
        return 0.0

    return float(1.0 - ss_res / ss_tot)

@time_it("adjusted_r2_calculation")
def calculate_adjusted_r2(y_true: ArrayLike, y_pred: ArrayLike, n_features: int) -> float:
    """
    Calculate Adjusted R²

    Args:
        y_true: Actual values
        y_pred: Predicted values
        n_features: Number of features used by the model

    Returns:
        1 - (1 - R²) * (n - 1) / (n - p - 1)

    Raises:
        InvalidParameterError: If n <= n_features + 1
    """
    y_true_array, _ = paired_arrays(y_true, y_pred, numeric=True)
    n = len(y_true_array)
    if n <= n_features + 1:
        raise InvalidParameterError(
            f"Adjusted R² needs more samples than n_features + 1 ({n} samples, {n_features} features)",
            parameter_name="n_features",
            provided_value=n_features
        )

    r2 = calculate_r2(y_true, y_pred)
    return float(1.0 - (1.0 - r2) * (n - 1) / (n - n_features - 1))

@time_it("explained_variance_calculation")
def calculate_explained_variance(y_true: ArrayLike, y_pred: ArrayLike) -> float:
    """
    Calculate explained variance, 1 - Var(y_true - y_pred) / Var(y_true)

    Returns:
        Explained variance; with constant actual values, 1.0 if the residual
        variance is also 0, else 0.0. NaN for empty inputs.
    """
    y_true_array, y_pred_array = paired_arrays(y_true, y_pred, numeric=True)
    if len(y_true_array) == 0:
        return float('nan')

    var_actual = np.var(y_true_array)
    var_residual = np.var(y_true_array - y_pred_array)
    if var_actual == 0:
        return 1.0 if var_residual == 0 else 0.0

    return float(1.0 - var_residual / var_actual)

# ============================================
# Percentage and Log Metrics
# ============================================

@time_it("mape_calculation")
def calculate_mape(y_true: ArrayLike, y_pred: ArrayLike) -> float:
    """
    Calculate Mean Absolute Percentage Error (MAPE)

    Rows with an actual value of zero are skipped.

    Returns:
        MAPE as percentage, NaN if no row has a non-zero actual value
    """
    y_true_array, y_pred_array = paired_arrays(y_true, y_pred, numeric=True)

    mask = y_true_array != 0
    if not np.any(mask):
        return float('nan')

    errors = np.abs((y_true_array[mask] - y_pred_array[mask]) / y_true_array[mask])
    return float(np.mean(errors) * 100)

@time_it("smape_calculation")
def calculate_smape(y_true: ArrayLike, y_pred: ArrayLike) -> float:
    """
    Calculate Symmetric Mean Absolute Percentage Error (SMAPE)

    Each row contributes |y - ŷ| / ((|y| + |ŷ|) / 2); rows where both
    values are zero contribute 0.

    Returns:
        SMAPE as percentage, NaN for empty inputs
    """
    y_true_array, y_pred_array = paired_arrays(y_true, y_pred, numeric=True)
    if len(y_true_array) == 0:
        return float('nan')

    numerator = np.abs(y_true_array - y_pred_array)
    denominator = (np.abs(y_true_array) + np.abs(y_pred_array)) / 2.0
    ratios = np.divide(numerator, denominator, out=np.zeros_like(numerator), where=denominator != 0)
    return float(np.mean(ratios) * 100)

@time_it("msle_calculation")
def calculate_msle(y_true: ArrayLike, y_pred: ArrayLike) -> float:
    """
    Calculate Mean Squared Logarithmic Error

    Returns:
        mean((log1p(y) - log1p(ŷ))²), NaN if any value is negative
    """
    y_true_array, y_pred_array = paired_arrays(y_true, y_pred, numeric=True)
    if len(y_true_array) == 0 or np.any(y_true_array < 0) or np.any(y_pred_array < 0):
        return float('nan')

    return float(np.mean((np.log1p(y_true_array) - np.log1p(y_pred_array)) ** 2))

@time_it("log_cosh_loss_calculation")
def calculate_log_cosh_loss(y_true: ArrayLike, y_pred: ArrayLike) -> float:
    """mean(log(cosh(y - ŷ))), NaN for empty inputs"""
    y_true_array, y_pred_array = paired_arrays(y_true, y_pred, numeric=True)
    if len(y_true_array) == 0:
        return float('nan')

    diff = y_true_array - y_pred_array
    # log(cosh(x)) = |x| + log1p(exp(-2|x|)) - log(2), stable for large |x|
    abs_diff = np.abs(diff)
    return float(np.mean(abs_diff + np.log1p(np.exp(-2.0 * abs_diff)) - np.log(2.0)))

# ============================================
# Robust and Quantile Losses
# ============================================

@time_it("huber_loss_calculation")
def calculate_huber_loss(y_true: ArrayLike, y_pred: ArrayLike, delta: float = 1.0) -> float:
    """
    Calculate Huber loss

    Args:
        y_true: Actual values
        y_pred: Predicted values
        delta: Error size where the loss turns from quadratic to linear

    Returns:
        Mean Huber loss, NaN for empty inputs
    """
    y_true_array, y_pred_array = paired_arrays(y_true, y_pred, numeric=True)
    if len(y_true_array) == 0:
        return float('nan')

    abs_error = np.abs(y_true_array - y_pred_array)
    quadratic = 0.5 * abs_error ** 2
    linear = delta * (abs_error - 0.5 * delta)
    return float(np.mean(np.where(abs_error <= delta, quadratic, linear)))

@time_it("quantile_loss_calculation")
def calculate_quantile_loss(y_true: ArrayLike, y_pred: ArrayLike, quantile: float = 0.5) -> float:
    """
    Calculate quantile (pinball) loss

    Args:
        y_true: Actual values
        y_pred: Predicted values
        quantile: Target quantile in [0, 1]

    Returns:
        mean(max(q * e, (q - 1) * e)) with e = y - ŷ

    Raises:
        InvalidParameterError: If quantile is outside [0, 1]
    """
    if not 0.0 <= quantile <= 1.0:
        raise InvalidParameterError(
            f"quantile must be between 0 and 1, got {quantile}",
            parameter_name="quantile",
            provided_value=quantile
        )

    y_true_array, y_pred_array = paired_arrays(y_true, y_pred, numeric=True)
    if len(y_true_array) == 0:
        return float('nan')

    error = y_true_array - y_pred_array
    return float(np.mean(np.maximum(quantile * error, (quantile - 1.0) * error)))

@time_it("mbd_calculation")
def calculate_mbd(y_true: ArrayLike, y_pred: ArrayLike) -> float:
    """
    Calculate Mean Bias Deviation, mean(ŷ - y)

    Positive values mean the predictions overestimate on average.
    """
    y_true_array, y_pred_array = paired_arrays(y_true, y_pred, numeric=True)
    if len(y_true_array) == 0:
        return float('nan')

    return float(np.mean(y_pred_array - y_true_array))

# ============================================
# Summary
# ============================================

def calculate_regression_metrics(y_true: ArrayLike, y_pred: ArrayLike,
                                 n_features: Optional[int] = None) -> Dict[str, float]:
    """
    Standard regression metrics in one dictionary

    Args:
        y_true: Actual values
        y_pred: Predicted values
        n_features: Adds adjusted R² when given and there are enough samples

    Returns:
        Dictionary of metric name -> value
    """
    metrics = {
        'mse': calculate_mse(y_true, y_pred),
        'rmse': calculate_rmse(y_true, y_pred),
        'mae': calculate_mae(y_true, y_pred),
        'r2': calculate_r2(y_true, y_pred),
        'explained_variance': calculate_explained_variance(y_true, y_pred),
        'mape': calculate_mape(y_true, y_pred),
        'smape': calculate_smape(y_true, y_pred),
        'mbd': calculate_mbd(y_true, y_pred),
    }

    if n_features is not None and len(y_true) > n_features + 1:
        metrics['adjusted_r2'] = calculate_adjusted_r2(y_true, y_pred, n_features)

    logger.debug(f"Calculated {len(metrics)} regression metrics")
    return metrics
