"""
Validity flags reported by stochastic matrix validation.
"""

from enum import IntFlag


class MatrixValidity(IntFlag):
    """Bit flags describing why a stochastic matrix is invalid."""

    OK = 0x00
    MATRIX_EMPTY = 0x01  # fewer rows/columns than a useful matrix needs
    ROW_SUM_INVALID = 0x02  # one or more rows do not add up to 1.0
