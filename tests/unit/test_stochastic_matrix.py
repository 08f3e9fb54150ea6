"""
Unit tests for label-indexed stochastic matrices.

Tests cover construction, label lookup, validation, whole-matrix queries
and low-value normalization.
"""

import math

import numpy as np
import pytest

from discrete_hmm.exceptions import (
    EmptyMatrixError,
    InvalidLabelError,
    InvalidObservationError,
    InvalidStateError,
    NormalizationError,
    StochasticInvariantError,
)
from discrete_hmm.hmm.matrix import ConfusionMatrix, StateTransitionMatrix, StochasticMatrix
from discrete_hmm.hmm.validity import MatrixValidity


class TestConstruction:
    """Matrix construction and uniform initialization."""

    def test_uniform_rows(self):
        matrix = StochasticMatrix(["r1", "r2"], ["c1", "c2", "c3", "c4"])

        assert matrix.shape == (2, 4)
        np.testing.assert_array_equal(matrix.values, np.full((2, 4), 0.25))

    def test_transition_matrix_uniform(self):
        matrix = StateTransitionMatrix(["S1", "S2", "S3"])

        assert matrix.row_labels() == ("S1", "S2", "S3")
        assert matrix.column_labels() == ("S1", "S2", "S3")
        np.testing.assert_array_almost_equal(matrix.values, np.full((3, 3), 1 / 3))

    def test_confusion_matrix_uses_column_count(self):
        matrix = ConfusionMatrix(["S1", "S2", "S3"], ["a", "b", "c", "d"])

        np.testing.assert_array_equal(matrix.values, np.full((3, 4), 0.25))

    @pytest.mark.parametrize("rows, columns", [
        (["only"], ["a", "b"]),
        (["r1", "r2"], ["a"]),
        ([], []),
    ])
    def test_too_small_raises(self, rows, columns):
        with pytest.raises(EmptyMatrixError):
            StochasticMatrix(rows, columns)

    def test_single_state_transition_matrix_raises(self):
        with pytest.raises(EmptyMatrixError):
            StateTransitionMatrix(["S1"])

    def test_duplicate_labels_raise(self):
        with pytest.raises(InvalidStateError) as exc_info:
            StateTransitionMatrix(["S1", "S2", "S1"])
        assert exc_info.value.label == "S1"

        with pytest.raises(InvalidObservationError):
            ConfusionMatrix(["S1", "S2"], ["a", "a"])


class TestAccess:
    """Cell access by label."""

    def test_get_and_set(self):
        matrix = ConfusionMatrix(["S1", "S2"], ["a", "b"])
        matrix["S1", "a"] = 0.75
        matrix["S1", "b"] = 0.25

        assert matrix["S1", "a"] == 0.75
        assert matrix.row("S1") == {"a": 0.75, "b": 0.25}
        assert matrix.row_index("S2") == 1
        assert matrix.column_index("b") == 1

    def test_unknown_labels(self):
        matrix = ConfusionMatrix(["S1", "S2"], ["a", "b"])

        with pytest.raises(InvalidStateError) as exc_info:
            matrix["S9", "a"]
        assert exc_info.value.label == "S9"

        with pytest.raises(InvalidObservationError):
            matrix["S1", "z"] = 0.5

        # Both specialised errors share the generic base
        with pytest.raises(InvalidLabelError):
            matrix["S1", "z"]

    def test_unchecked_access_skips_validation(self):
        matrix = StochasticMatrix(["r1", "r2"], ["c1", "c2"])
        matrix["r1", "c1"] = 0.9

        # The row is now invalid but plain reads still succeed
        assert matrix["r1", "c1"] == 0.9
        assert matrix["r1", "c2"] == 0.5

    def test_get_validated(self):
        matrix = StochasticMatrix(["r1", "r2"], ["c1", "c2"])
        assert matrix.get_validated("r1", "c2") == 0.5

        matrix["r1", "c1"] = 0.9
        with pytest.raises(StochasticInvariantError):
            matrix.get_validated("r1", "c1")
        with pytest.raises(InvalidLabelError):
            matrix.get_validated("r3", "c1")

    def test_set_values_checks_shape(self):
        matrix = StochasticMatrix(["r1", "r2"], ["c1", "c2"])
        with pytest.raises(ValueError, match="doesn't match"):
            matrix.set_values(np.ones((3, 2)) / 2)

    def test_values_is_a_copy(self):
        matrix = StochasticMatrix(["r1", "r2"], ["c1", "c2"])
        values = matrix.values
        values[0, 0] = 42.0

        assert matrix["r1", "c1"] == 0.5


class TestValidation:
    """Row sums and validity flags."""

    def test_fresh_matrix_is_valid(self):
        matrix = ConfusionMatrix(["S1", "S2", "S3"], ["a", "b", "c", "d"])

        assert matrix.validate() == MatrixValidity.OK
        assert all(matrix.row_is_valid(state) for state in matrix.row_labels())

    def test_row_sum_invalid(self):
        matrix = StochasticMatrix(["r1", "r2"], ["c1", "c2"])
        matrix["r2", "c2"] = 0.7

        assert matrix.row_is_valid("r1")
        assert not matrix.row_is_valid("r2")
        assert matrix.validate() == MatrixValidity.ROW_SUM_INVALID
        assert matrix.validate() & MatrixValidity.ROW_SUM_INVALID
        assert not matrix.validate() & MatrixValidity.MATRIX_EMPTY

    def test_row_tolerance(self):
        matrix = StochasticMatrix(["r1", "r2"], ["c1", "c2"])
        matrix["r1", "c1"] = 0.5 + 1e-12

        assert matrix.row_is_valid("r1")
        assert not matrix.row_is_valid("r1", tolerance=0.0)

    def test_copy_is_independent(self):
        matrix = StateTransitionMatrix(["S1", "S2"])
        clone = matrix.copy()
        clone["S1", "S1"] = 0.9
        clone["S1", "S2"] = 0.1

        assert isinstance(clone, StateTransitionMatrix)
        assert matrix["S1", "S1"] == 0.5
        assert clone != matrix
        assert matrix.copy() == matrix


class TestQueries:
    """Full-scan counts and extrema."""

    @pytest.fixture
    def matrix(self):
        matrix = StochasticMatrix(["r1", "r2"], ["c1", "c2", "c3"])
        matrix.set_values([[0.0, 0.2, 0.8],
                           [0.1, 0.1, 0.8]])
        return matrix

    def test_counts(self, matrix):
        assert matrix.count_below(0.15) == 3
        assert matrix.count_above(0.15) == 3
        assert matrix.count_equal(0.8) == 2
        assert matrix.count_equal(0.5) == 0

    def test_contains_value(self, matrix):
        assert matrix.contains_value(0.0)
        assert not matrix.contains_value(math.nan)

        matrix["r1", "c1"] = math.nan
        assert matrix.contains_value(math.nan)
        assert matrix.count_equal(math.nan) == 1
        assert matrix.has_undefined()

    def test_extrema(self, matrix):
        assert matrix.max_value() == 0.8
        assert matrix.min_value() == 0.0
        assert matrix.min_value(exclude_zero=True) == 0.1

    def test_min_value_all_zero(self):
        matrix = StochasticMatrix(["r1", "r2"], ["c1", "c2"])
        matrix.set_values(np.zeros((2, 2)))

        assert matrix.min_value(exclude_zero=True) == 0.0

    def test_reset_to_uniform(self, matrix):
        matrix.reset_to_uniform()

        np.testing.assert_array_almost_equal(matrix.values, np.full((2, 3), 1 / 3))


class TestNormalizeLowValues:
    """Flooring cells and redistributing the added mass."""

    def test_single_pass(self):
        matrix = StochasticMatrix(["r1", "r2"], ["c1", "c2", "c3"])
        matrix.set_values([[0.0, 0.5, 0.5],
                           [0.2, 0.3, 0.5]])

        passes = matrix.normalize_low_values(0.1)

        assert passes == 1
        np.testing.assert_array_almost_equal(matrix.values, [[0.1, 0.45, 0.45],
                                                             [0.2, 0.3, 0.5]])
        assert matrix.count_below(0.1) == 0
        np.testing.assert_allclose(matrix.values.sum(axis=1), 1.0, atol=1e-12)

    def test_multiple_pass(self):
        matrix = StochasticMatrix(["r1", "r2"], ["c1", "c2", "c3"])
        matrix.set_values([[0.0, 0.12, 0.88],
                           [0.2, 0.3, 0.5]])

        passes = matrix.normalize_low_values(0.1)

        assert passes == 2
        np.testing.assert_array_almost_equal(matrix.values[0], [0.1, 0.1, 0.8])
        np.testing.assert_allclose(matrix.values.sum(axis=1), 1.0, atol=1e-12)

    def test_nothing_to_do(self):
        matrix = StochasticMatrix(["r1", "r2"], ["c1", "c2"])

        assert matrix.normalize_low_values(4e-7) == 0
        np.testing.assert_array_equal(matrix.values, np.full((2, 2), 0.5))

    def test_row_that_cannot_absorb_raises(self):
        matrix = StochasticMatrix(["r1", "r2"], ["c1", "c2"])
        matrix.set_values([[0.05, 0.95],
                           [0.5, 0.5]])

        with pytest.raises(NormalizationError):
            matrix.normalize_low_values(0.6)

    def test_pass_limit(self):
        matrix = StochasticMatrix(["r1", "r2"], ["c1", "c2", "c3"])
        matrix.set_values([[0.0, 0.12, 0.88],
                           [0.2, 0.3, 0.5]])

        with pytest.raises(NormalizationError, match="1 normalization passes"):
            matrix.normalize_low_values(0.1, max_passes=1)

    def test_undefined_rows_untouched(self):
        matrix = StochasticMatrix(["r1", "r2"], ["c1", "c2", "c3"])
        matrix.set_values([[math.nan, 0.0, 1.0],
                           [0.0, 0.5, 0.5]])

        matrix.normalize_low_values(0.1)

        assert math.isnan(matrix["r1", "c1"])
        assert matrix["r1", "c2"] == 0.0
        np.testing.assert_array_almost_equal(matrix.values[1], [0.1, 0.45, 0.45])
