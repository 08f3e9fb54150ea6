"""
Log-space forward-backward recursions for a discrete HMM.

All computation happens on logarithms of probabilities. Adding log arrays
implements ``log_product`` element-wise (a log-zero term absorbs any finite
one) and ``log_sum_array`` implements the log-sum-exp reduction.
"""

from typing import Hashable, List, Sequence

import numpy as np

from ..exceptions import EmptySequenceError
from ..logger import get_logger
from .logprob import exp_array, ln_array, log_sum_array
from .parameters import ModelParameters

logger = get_logger(__name__)


class ForwardBackwardEngine:
    """
    Forward and backward variables for one parameter snapshot.

    The logarithms of pi, A and B are taken once at construction, so an
    engine reflects the parameters as they were when it was created.
    """

    def __init__(self, parameters: ModelParameters):
        self.parameters = parameters
        self.ln_initial = ln_array(parameters.initial)
        self.ln_transitions = ln_array(parameters.transitions.values)
        self.ln_emissions = ln_array(parameters.emissions.values)

    @property
    def n_states(self) -> int:
        return self.ln_initial.shape[0]

    def encode(self, sequence: Sequence[Hashable]) -> List[int]:
        """
        Translate observation labels into confusion matrix column positions.

        Raises:
            EmptySequenceError: If the sequence has no observations
            InvalidObservationError: If a symbol is not in the alphabet
        """
        if sequence is None or len(sequence) == 0:
            raise EmptySequenceError("Observation sequence is empty")
        emissions = self.parameters.emissions
        return [emissions.column_index(symbol) for symbol in sequence]

    def log_forward(self, sequence: Sequence[Hashable]) -> np.ndarray:
        """
        Compute the log forward variable.

        Args:
            sequence: Observation labels [T]

        Returns:
            lnAlpha: Array [T, n_states]; lnAlpha[t, i] is the log probability
            of the first t+1 observations and being in state i at time t
        """
        return self._log_forward(self.encode(sequence))

    def log_backward(self, sequence: Sequence[Hashable]) -> np.ndarray:
        """
        Compute the log backward variable.

        Args:
            sequence: Observation labels [T]

        Returns:
            lnBeta: Array [T, n_states]; lnBeta[t, i] is the log probability
            of the observations after t given state i at time t
        """
        return self._log_backward(self.encode(sequence))

    def _log_forward(self, observations: List[int]) -> np.ndarray:
        T = len(observations)
        ln_alpha = np.empty((T, self.n_states))

        ln_alpha[0] = self.ln_initial + self.ln_emissions[:, observations[0]]

        for t in range(1, T):
            # log sum_i alpha[t-1, i] * A[i, j] for every j
            reach = log_sum_array(ln_alpha[t - 1][:, None] + self.ln_transitions, axis=0)
            ln_alpha[t] = reach + self.ln_emissions[:, observations[t]]

        return ln_alpha

    def _log_backward(self, observations: List[int]) -> np.ndarray:
        T = len(observations)
        ln_beta = np.empty((T, self.n_states))

        ln_beta[T - 1] = 0.0

        for t in range(T - 2, -1, -1):
            # log sum_j A[i, j] * B[j, o_t+1] * beta[t+1, j] for every i
            ahead = self.ln_emissions[:, observations[t + 1]] + ln_beta[t + 1]
            ln_beta[t] = log_sum_array(self.ln_transitions + ahead[None, :], axis=1)

        return ln_beta

    def likelihood(self, sequence: Sequence[Hashable]) -> float:
        """Probability of the sequence: sum of exp(lnAlpha) over the last time step."""
        ln_alpha = self.log_forward(sequence)
        return float(np.sum(exp_array(ln_alpha[-1])))

    def log_likelihood(self, sequence: Sequence[Hashable]) -> float:
        """Log probability of the sequence; ``LOG_ZERO`` if it cannot be emitted."""
        ln_alpha = self.log_forward(sequence)
        log_likelihood = log_sum_array(ln_alpha[-1])
        logger.debug(f"Forward pass completed: T={len(ln_alpha)}, log_likelihood={log_likelihood:.6f}")
        return log_likelihood
