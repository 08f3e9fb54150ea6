"""
Unit tests for the HiddenMarkovModel class.
"""

import numpy as np
import pytest

from discrete_hmm.config import set_config
from discrete_hmm.exceptions import (
    EmptyMatrixError,
    InvalidStateError,
    ModelNotTrainedError,
    StochasticInvariantError,
)
from discrete_hmm.hmm.model import MODEL_DEFAULT_NAME, MODEL_VALUE_UNSPECIFIED, HiddenMarkovModel
from discrete_hmm.train.baum_welch import BaumWelchTrainer, TrainingState


class TestHiddenMarkovModel:
    """Test cases for HiddenMarkovModel."""

    def test_init_uniform(self):
        """Fresh models start with uniform rows sized by their own axis."""
        model = HiddenMarkovModel(["S1", "S2", "S3"], ["a", "b", "c", "d"])

        assert model.n_states == 3
        assert model.n_observations == 4
        assert model.name == MODEL_DEFAULT_NAME
        assert model.functionality_id == MODEL_VALUE_UNSPECIFIED
        assert not model.is_trained

        pi, A, B = model.get_parameters()
        np.testing.assert_array_almost_equal(pi, np.full(3, 1 / 3))
        np.testing.assert_array_almost_equal(A, np.full((3, 3), 1 / 3))
        np.testing.assert_array_equal(B, np.full((3, 4), 0.25))
        assert model.validate_stochastic_matrices()

    def test_init_metadata(self):
        model = HiddenMarkovModel(["S1", "S2"], ["a", "b"], name="open door", functionality_id=7)

        assert model.name == "open door"
        assert model.functionality_id == 7
        assert "open door" in repr(model)

    @pytest.mark.parametrize("states, observations", [
        (["S1"], ["a", "b"]),
        (["S1", "S2"], ["a"]),
        ([], ["a", "b"]),
    ])
    def test_init_too_small(self, states, observations):
        with pytest.raises(EmptyMatrixError):
            HiddenMarkovModel(states, observations)

    def test_init_duplicate_states(self):
        with pytest.raises(InvalidStateError):
            HiddenMarkovModel(["S1", "S1"], ["a", "b"])

    def test_labelled_views(self, toy_model):
        assert toy_model.states == ("S1", "S2")
        assert toy_model.observations == ("A", "B")
        assert toy_model.initial_state_probabilities == pytest.approx({"S1": 0.6, "S2": 0.4})
        assert toy_model.transition_matrix["S2", "S1"] == 0.4
        assert toy_model.confusion_matrix["S1", "B"] == 0.1

    def test_get_parameters_returns_copies(self, toy_model):
        pi, A, B = toy_model.get_parameters()
        pi[0] = 0.0
        A[0, 0] = 0.0
        B[0, 0] = 0.0

        pi2, A2, B2 = toy_model.get_parameters()
        assert pi2[0] == 0.6
        assert A2[0, 0] == 0.7
        assert B2[0, 0] == 0.9

    def test_set_parameters_shape_mismatch(self, toy_model):
        with pytest.raises(ValueError, match="doesn't match"):
            toy_model.set_parameters(np.ones(3) / 3, np.eye(2), np.eye(2))
        with pytest.raises(ValueError, match="doesn't match"):
            toy_model.set_parameters(np.ones(2) / 2, np.ones((3, 3)) / 3, np.eye(2))

    @pytest.mark.parametrize("pi, A, B, message", [
        ([0.5, 0.6], np.eye(2), np.eye(2), "Initial probabilities sum to"),
        ([1.2, -0.2], np.eye(2), np.eye(2), "Initial probabilities contain negative values"),
        ([0.5, 0.5], [[0.5, 0.6], [0.5, 0.5]], np.eye(2), "Transition matrix rows don't sum to 1.0"),
        ([0.5, 0.5], np.eye(2), [[1.2, -0.2], [0.5, 0.5]], "Confusion matrix contains negative values"),
    ])
    def test_set_parameters_validation(self, toy_model, pi, A, B, message):
        before = toy_model.get_parameters()

        with pytest.raises(StochasticInvariantError, match=message):
            toy_model.set_parameters(pi, A, B)

        # Rejected parameters are never installed
        for old, new in zip(before, toy_model.get_parameters()):
            np.testing.assert_array_equal(new, old)

    def test_validate_detects_corruption(self, toy_model):
        toy_model.confusion_matrix["S1", "A"] = 0.5

        with pytest.raises(StochasticInvariantError, match="Confusion matrix rows"):
            toy_model.validate_stochastic_matrices()

    def test_untrained_model_refuses_likelihood(self, toy_model):
        with pytest.raises(ModelNotTrainedError, match="toy"):
            toy_model.likelihood(["A", "B"])
        with pytest.raises(ModelNotTrainedError):
            toy_model.log_likelihood(["A", "B"])

    def test_zero_iterations_is_noop(self, toy_model, alternating_sequence):
        before = toy_model.get_parameters()

        result = toy_model.train(alternating_sequence, max_iterations=0)

        assert result.state is TrainingState.INITIALIZING
        assert result.iterations == 0
        assert not toy_model.is_trained
        for old, new in zip(before, toy_model.get_parameters()):
            assert np.array_equal(new, old)

    def test_zero_iterations_from_config(self, toy_model, alternating_sequence):
        set_config('hmm', 'max_iterations', 0)

        toy_model.train(alternating_sequence)

        assert not toy_model.is_trained

    def test_trainer_with_max_iterations_rejected(self, toy_model, alternating_sequence):
        with pytest.raises(ValueError, match="max_iterations"):
            toy_model.train(alternating_sequence, max_iterations=5,
                            trainer=BaumWelchTrainer(max_iterations=50))

        assert not toy_model.is_trained

    def test_trainer_limits_iterations(self, asymmetric_model, alternating_sequence):
        result = asymmetric_model.train(alternating_sequence,
                                        trainer=BaumWelchTrainer(max_iterations=1))

        assert result.iterations == 1
        assert result.state is TrainingState.MAX_ITERATIONS_REACHED

    def test_likelihood_after_training(self, asymmetric_model, alternating_sequence):
        asymmetric_model.train(alternating_sequence, max_iterations=50)

        for sequence in (["A"], ["A", "B"], ["B", "B", "A"], alternating_sequence):
            p = asymmetric_model.likelihood(sequence)
            assert 0.0 <= p <= 1.0 + 1e-9
            if p > 0:
                assert asymmetric_model.log_likelihood(sequence) == pytest.approx(np.log(p))

    def test_likelihoods_of_one_length_sum_to_one(self, asymmetric_model, alternating_sequence):
        asymmetric_model.train(alternating_sequence, max_iterations=50)

        total = sum(asymmetric_model.likelihood([a, b]) for a in "AB" for b in "AB")
        assert total == pytest.approx(1.0)

    def test_clone_is_independent(self, asymmetric_model, alternating_sequence):
        asymmetric_model.train(alternating_sequence, max_iterations=50)
        clone = asymmetric_model.clone()

        assert clone.is_trained
        assert clone.name == asymmetric_model.name
        assert clone.likelihood(["A", "B"]) == asymmetric_model.likelihood(["A", "B"])

        clone.set_parameters(np.array([0.5, 0.5]), np.full((2, 2), 0.5), np.full((2, 2), 0.5))

        assert clone.likelihood(["A", "B"]) == pytest.approx(0.25)
        assert asymmetric_model.likelihood(["A", "B"]) != pytest.approx(0.25)
