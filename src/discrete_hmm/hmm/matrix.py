"""
Label-indexed right-stochastic matrices.

A right-stochastic matrix holds one probability distribution per row: every
row must add up to 1.0. Rows and columns are addressed by caller-supplied
labels (states, observations). Internally the labels are mapped to positions
in insertion order and the probabilities live in a dense numpy array, so
label lookups are O(1) and the forward-backward recursions can work on whole
rows at once.

Row is the "current" state and column the "next" state/observation, as in
Rabiner (1989).
"""

import math
from typing import Any, Dict, Hashable, Optional, Sequence, Tuple

import numpy as np

from ..config import get_config
from ..exceptions import (
    EmptyMatrixError,
    InvalidLabelError,
    InvalidObservationError,
    InvalidStateError,
    NormalizationError,
    StochasticInvariantError,
)
from ..logger import get_logger
from .validity import MatrixValidity

logger = get_logger(__name__)

# A 1x1 matrix is useless because the outcome probability is always 1
MATRIX_MIN_SIZE = 2


def _index_labels(labels: Sequence[Hashable], kind: str,
                  error_cls: type) -> Dict[Hashable, int]:
    """Map labels to positions, rejecting too-short or duplicated label sets."""
    if labels is None or len(labels) < MATRIX_MIN_SIZE:
        raise EmptyMatrixError(
            f"The list of {kind} labels must contain at least {MATRIX_MIN_SIZE} entries"
        )

    index = {}
    for position, label in enumerate(labels):
        if label in index:
            raise error_cls(f"Duplicate {kind} label: {label!r}", label)
        index[label] = position
    return index


class StochasticMatrix:
    """
    Right-stochastic matrix addressed by row and column labels.

    Cells are read and written with ``matrix[row, col]``. Those accessors do
    not check the row-sum invariant; use :meth:`get_validated` where a
    checked read is wanted.
    """

    row_error = InvalidLabelError
    column_error = InvalidLabelError

    def __init__(self, row_labels: Sequence[Hashable], column_labels: Sequence[Hashable]):
        """
        Create a matrix with every row set to the uniform distribution.

        Args:
            row_labels: Labels of the rows, at least two
            column_labels: Labels of the columns, at least two

        Raises:
            EmptyMatrixError: If either label set has fewer than two entries
            InvalidLabelError: If a label set contains duplicates
        """
        self._row_index = _index_labels(row_labels, 'row', self.row_error)
        self._column_index = _index_labels(column_labels, 'column', self.column_error)
        self._row_labels = tuple(row_labels)
        self._column_labels = tuple(column_labels)
        self._values = np.full(
            (len(self._row_labels), len(self._column_labels)),
            1.0 / len(self._column_labels)
        )

    # ------------------------------------------------------------------
    # Labels and raw access

    def row_labels(self) -> Tuple[Hashable, ...]:
        return self._row_labels

    def column_labels(self) -> Tuple[Hashable, ...]:
        return self._column_labels

    @property
    def shape(self) -> Tuple[int, int]:
        return self._values.shape

    def row_index(self, label: Hashable) -> int:
        """Position of a row label; raises the row label error if unknown."""
        try:
            return self._row_index[label]
        except (KeyError, TypeError):
            raise self.row_error(f"{label!r} is not a row contained within this matrix", label)

    def column_index(self, label: Hashable) -> int:
        """Position of a column label; raises the column label error if unknown."""
        try:
            return self._column_index[label]
        except (KeyError, TypeError):
            raise self.column_error(f"{label!r} is not a column contained within this matrix", label)

    def __getitem__(self, key: Tuple[Hashable, Hashable]) -> float:
        row, col = key
        return float(self._values[self.row_index(row), self.column_index(col)])

    def __setitem__(self, key: Tuple[Hashable, Hashable], value: float) -> None:
        row, col = key
        self._values[self.row_index(row), self.column_index(col)] = value

    @property
    def values(self) -> np.ndarray:
        """Copy of the probabilities in row/column label order."""
        return self._values.copy()

    def set_values(self, values) -> None:
        """
        Replace every cell at once.

        Args:
            values: Array of shape ``(len(row_labels), len(column_labels))``

        Raises:
            ValueError: If the array shape does not match the matrix
        """
        values = np.asarray(values, dtype=float)
        if values.shape != self._values.shape:
            raise ValueError(
                f"values shape {values.shape} doesn't match expected {self._values.shape}"
            )
        self._values = values.copy()

    def row(self, label: Hashable) -> Dict[Hashable, float]:
        """Copy of one row as a column label -> probability mapping."""
        row = self._values[self.row_index(label)]
        return {col: float(row[i]) for i, col in enumerate(self._column_labels)}

    def get_validated(self, row: Hashable, col: Hashable) -> float:
        """
        Read a cell after checking the matrix and the row it belongs to.

        Raises:
            EmptyMatrixError: If the matrix has fewer than two rows
            InvalidLabelError: If ``row`` or ``col`` is unknown
            StochasticInvariantError: If the row does not add up to 1.0
        """
        if len(self._row_labels) < MATRIX_MIN_SIZE:
            raise EmptyMatrixError("Matrix is empty")
        row_position = self.row_index(row)
        col_position = self.column_index(col)
        if not self.row_is_valid(row):
            raise StochasticInvariantError(
                f"Row {row!r} sums to {self.row_sum(row)!r}, which breaks the rules "
                f"of a right-stochastic matrix"
            )
        return float(self._values[row_position, col_position])

    # ------------------------------------------------------------------
    # Validation

    def row_sum(self, label: Hashable) -> float:
        return math.fsum(self._values[self.row_index(label)])

    def row_is_valid(self, label: Hashable, tolerance: Optional[float] = None) -> bool:
        """
        Check that a row adds up to 1.0.

        Args:
            label: Row label
            tolerance: Allowed absolute deviation from 1.0; defaults to
                ``hmm.row_sum_tolerance`` from the config, 0.0 means exact
        """
        if tolerance is None:
            tolerance = get_config('hmm', 'row_sum_tolerance') or 0.0
        return abs(self.row_sum(label) - 1.0) <= tolerance

    def validate(self, tolerance: Optional[float] = None) -> MatrixValidity:
        """Collect every validity problem of the matrix into one flag value."""
        result = MatrixValidity.OK
        if len(self._row_labels) < MATRIX_MIN_SIZE:
            result |= MatrixValidity.MATRIX_EMPTY
        for label in self._row_labels:
            if not self.row_is_valid(label, tolerance):
                result |= MatrixValidity.ROW_SUM_INVALID
                break
        return result

    # ------------------------------------------------------------------
    # Whole-matrix queries

    def reset_to_uniform(self) -> None:
        """Set every cell to 1 / number of columns."""
        self._values.fill(1.0 / len(self._column_labels))

    def count_below(self, threshold: float) -> int:
        return int(np.count_nonzero(self._values < threshold))

    def count_above(self, threshold: float) -> int:
        return int(np.count_nonzero(self._values > threshold))

    def count_equal(self, value: float) -> int:
        """Number of cells equal to ``value``; ``nan`` counts undefined cells."""
        if isinstance(value, float) and math.isnan(value):
            return int(np.count_nonzero(np.isnan(self._values)))
        return int(np.count_nonzero(self._values == value))

    def contains_value(self, value: float) -> bool:
        return self.count_equal(value) > 0

    def has_undefined(self) -> bool:
        return bool(np.isnan(self._values).any())

    def max_value(self) -> float:
        return float(np.max(self._values))

    def min_value(self, exclude_zero: bool = False) -> float:
        """
        Smallest cell in the matrix.

        Args:
            exclude_zero: Ignore cells that are exactly zero. If every cell is
                zero the largest value (zero) is returned.
        """
        if not exclude_zero:
            return float(np.min(self._values))
        non_zero = self._values[self._values != 0]
        if non_zero.size == 0:
            return self.max_value()
        return float(np.min(non_zero))

    # ------------------------------------------------------------------
    # Low-value normalization

    def _count_correctable(self, threshold: float) -> int:
        defined_rows = ~np.isnan(self._values).any(axis=1)
        return int(np.count_nonzero(self._values[defined_rows] < threshold))

    def normalize_low_values(self, threshold: float, max_passes: Optional[int] = None) -> int:
        """
        Raise every cell below ``threshold`` to ``threshold``.

        In each pass, cells below the threshold are clamped up to it and the
        probability mass this adds to a row is subtracted evenly from the
        cells of that row still strictly above the threshold. Passes repeat
        until no cell is below the threshold. Rows holding undefined (nan)
        cells are left untouched.

        Args:
            threshold: Lowest probability allowed in the matrix
            max_passes: Upper bound on passes; defaults to
                ``hmm.max_normalization_passes`` from the config

        Returns:
            Number of passes performed

        Raises:
            NormalizationError: If a row has no cell left to absorb the
                added mass, or the pass limit is reached
        """
        if max_passes is None:
            max_passes = get_config('hmm', 'max_normalization_passes')

        passes = 0
        while self._count_correctable(threshold) > 0:
            if passes >= max_passes:
                raise NormalizationError(
                    f"Low values still present after {passes} normalization passes "
                    f"(threshold={threshold})"
                )

            for position, label in enumerate(self._row_labels):
                row = self._values[position]
                if np.isnan(row).any():
                    continue

                low = row < threshold
                if not low.any():
                    continue

                old_sum = row.sum()
                row[low] = threshold
                absorbing = row > threshold
                n_absorbing = int(np.count_nonzero(absorbing))
                if n_absorbing == 0:
                    raise NormalizationError(
                        f"Row {label!r} has no values above {threshold} to absorb the correction"
                    )
                row[absorbing] -= (row.sum() - old_sum) / n_absorbing

            passes += 1

        if passes:
            logger.debug(f"Normalized low values below {threshold} in {passes} passes")
        return passes

    # ------------------------------------------------------------------

    def copy(self) -> 'StochasticMatrix':
        """Independent copy sharing no mutable state with this matrix."""
        clone = self.__class__.__new__(self.__class__)
        clone._row_index = dict(self._row_index)
        clone._column_index = dict(self._column_index)
        clone._row_labels = self._row_labels
        clone._column_labels = self._column_labels
        clone._values = self._values.copy()
        return clone

    def __eq__(self, other: Any) -> bool:
        if not isinstance(other, StochasticMatrix):
            return NotImplemented
        return (self._row_labels == other._row_labels
                and self._column_labels == other._column_labels
                and np.array_equal(self._values, other._values))

    __hash__ = None

    def __repr__(self) -> str:
        return (f"{self.__class__.__name__}(rows={len(self._row_labels)}, "
                f"columns={len(self._column_labels)})")


class StateTransitionMatrix(StochasticMatrix):
    """
    Probability of the next state given the current state.

    Rows and columns are both the model's states; every cell starts at
    1 / number of states.
    """

    row_error = InvalidStateError
    column_error = InvalidStateError

    def __init__(self, states: Sequence[Hashable]):
        super().__init__(states, states)


class ConfusionMatrix(StochasticMatrix):
    """
    Probability of each observation being emitted by each state.

    Rows are states and columns the observation alphabet; every cell starts
    at 1 / number of observations.
    """

    row_error = InvalidStateError
    column_error = InvalidObservationError

    def __init__(self, states: Sequence[Hashable], observations: Sequence[Hashable]):
        super().__init__(states, observations)
