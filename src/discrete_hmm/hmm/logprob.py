"""
Log-space probability algebra.

Probabilities are carried as natural logarithms so that long observation
sequences do not underflow. Probability zero is represented by the
dedicated sentinel ``LOG_ZERO`` (negative infinity); an undefined result
such as 0/0 is ``nan`` and is never confused with log-zero.
"""

import math
from typing import Optional

import numpy as np

from ..exceptions import NumericDomainError

LOG_ZERO = float('-inf')
LOG_ONE = 0.0


def is_log_zero(value: float) -> bool:
    """Return True if ``value`` is the log-zero sentinel."""
    return value == LOG_ZERO


def is_undefined(value: float) -> bool:
    """Return True if ``value`` is the result of an undefined division."""
    return math.isnan(value)


def ln(x: float) -> float:
    """
    Natural logarithm of a probability.

    Args:
        x: Probability value (must be non-negative)

    Returns:
        ``LOG_ZERO`` for ``x == 0``, ``log(x)`` otherwise

    Raises:
        NumericDomainError: If ``x`` is negative
    """
    if x == 0:
        return LOG_ZERO
    if x > 0:
        return math.log(x)
    raise NumericDomainError(f"Cannot determine ln of a negative number: {x}")


def exp(value: float) -> float:
    """Inverse of :func:`ln`; the log-zero sentinel maps to 0.0."""
    if value == LOG_ZERO:
        return 0.0
    return math.exp(value)


def log_sum(a: float, b: float) -> float:
    """
    Add two probabilities given as logarithms.

    Log-zero is the identity element. Otherwise the larger operand is
    factored out so the exponent argument is never positive.
    """
    if a == LOG_ZERO:
        return b
    if b == LOG_ZERO:
        return a
    if a > b:
        return a + math.log1p(math.exp(b - a))
    return b + math.log1p(math.exp(a - b))


def log_product(*terms: float) -> float:
    """Multiply probabilities given as logarithms; any log-zero factor wins."""
    total = LOG_ONE
    for term in terms:
        if term == LOG_ZERO:
            return LOG_ZERO
        total += term
    return total


def log_divide(numerator: float, denominator: float) -> float:
    """
    Divide two probabilities given as logarithms.

    Returns:
        ``nan`` when the denominator is log-zero (0/0 or x/0 is undefined),
        ``LOG_ZERO`` when only the numerator is log-zero, the difference
        otherwise
    """
    if denominator == LOG_ZERO:
        return math.nan
    if numerator == LOG_ZERO:
        return LOG_ZERO
    return numerator - denominator


def ln_array(values) -> np.ndarray:
    """
    Element-wise :func:`ln` over an array of probabilities.

    Raises:
        NumericDomainError: If any entry is negative
    """
    values = np.asarray(values, dtype=float)
    if np.any(values < 0):
        raise NumericDomainError(
            f"Cannot determine ln of a negative number: {values[values < 0].min()}"
        )
    with np.errstate(divide='ignore'):
        return np.log(values)


def exp_array(values) -> np.ndarray:
    """Element-wise :func:`exp`; log-zero entries become 0.0, nan stays nan."""
    return np.exp(np.asarray(values, dtype=float))


def log_divide_array(numerator, denominator) -> np.ndarray:
    """Element-wise :func:`log_divide` with numpy broadcasting."""
    numerator, denominator = np.broadcast_arrays(
        np.asarray(numerator, dtype=float), np.asarray(denominator, dtype=float)
    )
    with np.errstate(invalid='ignore'):
        result = numerator - denominator
    result = np.where(np.isneginf(numerator), LOG_ZERO, result)
    return np.where(np.isneginf(denominator), np.nan, result)


def log_sum_array(values, axis: Optional[int] = None):
    """
    Log-sum-exp reduction with log-zero as the identity.

    Equivalent to folding :func:`log_sum` over the reduced axis. A slice
    made only of log-zero entries reduces to ``LOG_ZERO``.
    """
    values = np.asarray(values, dtype=float)
    if values.size == 0:
        if axis is None:
            return LOG_ZERO
        return np.full(np.delete(values.shape, axis), LOG_ZERO)

    peak = np.max(values, axis=axis, keepdims=True)
    # All-zero slices would give -inf - -inf; shift them by 0 instead
    shift = np.where(np.isneginf(peak), 0.0, peak)
    with np.errstate(divide='ignore'):
        summed = np.log(np.sum(np.exp(values - shift), axis=axis, keepdims=True))
    result = summed + shift
    if axis is None:
        return float(result.reshape(()))
    return np.squeeze(result, axis=axis)
