"""
Discrete Hidden Markov Model implementation.

This module implements a discrete HMM over caller-supplied states and
observation symbols. Parameters start uniform and are learned from a single
unlabeled observation sequence with the log-space Baum-Welch algorithm.
"""

from typing import Dict, Hashable, Optional, Sequence, Tuple

import numpy as np

from ..config import get_config
from ..exceptions import ModelNotTrainedError, StochasticInvariantError
from ..logger import get_logger
from ..train.baum_welch import BaumWelchTrainer, IterationCallback, TrainingResult
from .forward_backward import ForwardBackwardEngine
from .matrix import ConfusionMatrix, StateTransitionMatrix
from .parameters import ModelParameters
from .validity import MatrixValidity

logger = get_logger(__name__)

MODEL_DEFAULT_NAME = "Unnamed HMM"
MODEL_VALUE_UNSPECIFIED = -1


class HiddenMarkovModel:
    """
    Discrete Hidden Markov Model.

    The model owns:
    - pi: initial state probabilities
    - A: state transition matrix (state -> state)
    - B: confusion matrix (state -> observation)

    ``functionality_id`` is not used by the model; applications use it to
    decide what to do when this model is the most probable one for a
    sequence (see :class:`discrete_hmm.infer.ModelClassifier`).
    """

    def __init__(self, states: Sequence[Hashable], observations: Sequence[Hashable],
                 name: str = MODEL_DEFAULT_NAME,
                 functionality_id: int = MODEL_VALUE_UNSPECIFIED):
        """
        Initialize HiddenMarkovModel with uniform probabilities.

        Args:
            states: Hidden states, at least two
            observations: Observation alphabet, at least two symbols
            name: Display name of the model
            functionality_id: Caller-assigned identifier (default: -1)

        Raises:
            EmptyMatrixError: If states or observations has fewer than two entries
            InvalidLabelError: If states or observations contain duplicates
        """
        self._parameters = ModelParameters.uniform(states, observations)
        self.name = name
        self.functionality_id = functionality_id
        self._is_trained = False

        logger.debug(f"Initialized {self!r}")

    # ------------------------------------------------------------------
    # Properties

    @property
    def states(self) -> Tuple[Hashable, ...]:
        return self._parameters.states

    @property
    def observations(self) -> Tuple[Hashable, ...]:
        return self._parameters.observations

    @property
    def n_states(self) -> int:
        return len(self.states)

    @property
    def n_observations(self) -> int:
        return len(self.observations)

    @property
    def is_trained(self) -> bool:
        """Whether :meth:`train` has completed; untrained models refuse likelihood queries."""
        return self._is_trained

    @property
    def parameters(self) -> ModelParameters:
        return self._parameters

    @property
    def initial_state_probabilities(self) -> Dict[Hashable, float]:
        return self._parameters.initial_distribution()

    @property
    def transition_matrix(self) -> StateTransitionMatrix:
        return self._parameters.transitions

    @property
    def confusion_matrix(self) -> ConfusionMatrix:
        return self._parameters.emissions

    # ------------------------------------------------------------------
    # Parameters

    def get_parameters(self) -> Tuple[np.ndarray, np.ndarray, np.ndarray]:
        """
        Get current model parameters.

        Returns:
            Tuple of (pi, A, B) copies in state/observation order
        """
        return (self._parameters.initial.copy(),
                self._parameters.transitions.values,
                self._parameters.emissions.values)

    def set_parameters(self, pi, A, B) -> None:
        """
        Set model parameters and validate them.

        Args:
            pi: Initial state probabilities [n_states]
            A: Transition matrix [n_states, n_states]
            B: Emission matrix [n_states, n_observations]

        Raises:
            ValueError: If parameter dimensions don't match model configuration
            StochasticInvariantError: If the parameters are not stochastic
        """
        pi = np.asarray(pi, dtype=float)
        if pi.shape != (self.n_states,):
            raise ValueError(f"pi shape {pi.shape} doesn't match expected ({self.n_states},)")

        candidate = self._parameters.copy()
        candidate.initial = pi.copy()
        candidate.transitions.set_values(A)
        candidate.emissions.set_values(B)

        self._validate(candidate)
        self._parameters = candidate

        logger.debug("Model parameters updated and validated")

    def validate_stochastic_matrices(self) -> bool:
        """
        Validate that all probability matrices satisfy stochastic properties.

        Returns:
            bool: True if all matrices are valid stochastic matrices

        Raises:
            StochasticInvariantError: If any matrix violates stochastic properties
        """
        self._validate(self._parameters)
        return True

    @staticmethod
    def _validate(parameters: ModelParameters) -> None:
        tolerance = get_config('hmm', 'row_sum_tolerance') or 0.0
        pi = parameters.initial

        if not abs(pi.sum() - 1.0) <= tolerance:
            raise StochasticInvariantError(f"Initial probabilities sum to {pi.sum()}, expected 1.0")
        if np.any(pi < 0):
            raise StochasticInvariantError("Initial probabilities contain negative values")

        for label, matrix in (("Transition", parameters.transitions),
                              ("Confusion", parameters.emissions)):
            validity = matrix.validate()
            if validity & MatrixValidity.ROW_SUM_INVALID:
                raise StochasticInvariantError(
                    f"{label} matrix rows don't sum to 1.0: {matrix.values.sum(axis=1)}"
                )
            if matrix.min_value() < 0:
                raise StochasticInvariantError(f"{label} matrix contains negative values")

    # ------------------------------------------------------------------
    # Training and inference

    def train(self, sequence: Sequence[Hashable], max_iterations: Optional[int] = None,
              callback: Optional[IterationCallback] = None,
              trainer: Optional[BaumWelchTrainer] = None) -> TrainingResult:
        """
        Train the model on one observation sequence with Baum-Welch.

        Args:
            sequence: Observation labels
            max_iterations: Maximum iterations (default: ``hmm.max_iterations``,
                250); 0 leaves the model untouched and untrained
            callback: Called as ``callback(iteration, likelihood, parameters)``
                after each accepted iteration
            trainer: Preconfigured trainer; cannot be combined with ``max_iterations``

        Returns:
            TrainingResult describing how training ended

        Raises:
            ValueError: If both ``max_iterations`` and ``trainer`` are given
        """
        if trainer is not None and max_iterations is not None:
            raise ValueError(
                "Pass max_iterations to the BaumWelchTrainer instead of train() "
                "when a trainer is given"
            )
        if trainer is None:
            trainer = BaumWelchTrainer(max_iterations=max_iterations)

        if trainer.max_iterations == 0:
            logger.debug(f"{self.name}: training with 0 iterations is a no-op")
            return TrainingResult()

        logger.info(f"Training {self.name} on {len(sequence)} observations")
        parameters, result = trainer.fit(self._parameters, sequence, callback=callback)

        self._parameters = parameters
        self._is_trained = True
        return result

    def likelihood(self, sequence: Sequence[Hashable]) -> float:
        """
        Probability (0.0 to 1.0) of the sequence being emitted by this model.

        Raises:
            ModelNotTrainedError: If the model has not been trained
        """
        self._require_trained()
        return ForwardBackwardEngine(self._parameters).likelihood(sequence)

    def log_likelihood(self, sequence: Sequence[Hashable]) -> float:
        """
        Natural log of :meth:`likelihood`, computed without leaving log space.

        Raises:
            ModelNotTrainedError: If the model has not been trained
        """
        self._require_trained()
        return ForwardBackwardEngine(self._parameters).log_likelihood(sequence)

    def _require_trained(self) -> None:
        if not self._is_trained:
            raise ModelNotTrainedError(
                f"Observation probability requested for an untrained model: {self.name}"
            )

    # ------------------------------------------------------------------

    def clone(self) -> 'HiddenMarkovModel':
        """Independent deep copy of the parameters, metadata and trained flag."""
        clone = self.__class__.__new__(self.__class__)
        clone._parameters = self._parameters.copy()
        clone.name = self.name
        clone.functionality_id = self.functionality_id
        clone._is_trained = self._is_trained
        return clone

    def __repr__(self) -> str:
        return (f"HiddenMarkovModel(name={self.name!r}, n_states={self.n_states}, "
                f"n_observations={self.n_observations}, trained={self._is_trained})")
