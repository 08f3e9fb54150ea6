"""
Baum-Welch (EM) re-estimation of discrete HMM parameters.

Training works on a single observation sequence. Each iteration runs the
forward-backward recursions against the currently accepted parameters,
derives the gamma and xi occupation statistics and re-estimates pi, A and B
into an independent candidate snapshot. The candidate is floored and
renormalized and, unless one of its estimates is undefined, accepted before
the convergence heuristic is evaluated.
"""

from dataclasses import dataclass, field
from enum import Enum
from typing import Callable, Hashable, List, Optional, Sequence, Tuple

import numpy as np

from ..config import get_config
from ..exceptions import ModelTrainingError
from ..hmm.forward_backward import ForwardBackwardEngine
from ..hmm.logprob import exp_array, log_divide_array, log_sum_array
from ..hmm.parameters import ModelParameters
from ..logger import get_logger

logger = get_logger(__name__)

IterationCallback = Callable[[int, float, ModelParameters], None]


class TrainingState(Enum):
    """Lifecycle of a training run; the last three are terminal."""

    INITIALIZING = 'initializing'
    ITERATING = 'iterating'
    CONVERGED = 'converged'
    MAX_ITERATIONS_REACHED = 'max_iterations_reached'
    ABORTED = 'aborted'


@dataclass
class TrainingResult:
    """Outcome of one training run."""

    state: TrainingState = TrainingState.INITIALIZING
    iterations: int = 0
    likelihood_history: List[float] = field(default_factory=list)

    @property
    def converged(self) -> bool:
        return self.state is TrainingState.CONVERGED

    @property
    def aborted(self) -> bool:
        return self.state is TrainingState.ABORTED

    @property
    def final_likelihood(self) -> Optional[float]:
        if not self.likelihood_history:
            return None
        return self.likelihood_history[-1]


def log_gamma(ln_alpha: np.ndarray, ln_beta: np.ndarray) -> np.ndarray:
    """
    Log probability of each state at each time given the whole sequence.

    Args:
        ln_alpha: Log forward variable [T, n_states]
        ln_beta: Log backward variable [T, n_states]

    Returns:
        lnGamma: Array [T, n_states]; each row sums to 1 in probability space.
        Rows of an impossible sequence are undefined (nan).
    """
    ln_gamma = ln_alpha + ln_beta
    normalizer = log_sum_array(ln_gamma, axis=1)
    return log_divide_array(ln_gamma, normalizer[:, None])


def log_xi(observations: Sequence[int], ln_alpha: np.ndarray, ln_beta: np.ndarray,
           ln_transitions: np.ndarray, ln_emissions: np.ndarray) -> np.ndarray:
    """
    Log probability of each state transition at each time given the sequence.

    Args:
        observations: Encoded observation sequence [T]
        ln_alpha: Log forward variable [T, n_states]
        ln_beta: Log backward variable [T, n_states]
        ln_transitions: Log transition matrix [n_states, n_states]
        ln_emissions: Log confusion matrix [n_states, n_observations]

    Returns:
        lnXi: Array [T-1, n_states, n_states]; lnXi[t, i, j] is the log
        probability of being in state i at t and in state j at t+1
    """
    T, n_states = ln_alpha.shape
    if T < 2:
        return np.empty((0, n_states, n_states))

    # B[j, o_t+1] * beta[t+1, j] for every t and j
    ahead = ln_emissions[:, observations[1:]].T + ln_beta[1:]
    ln_xi = ln_alpha[:-1, :, None] + ln_transitions[None, :, :] + ahead[:, None, :]

    normalizer = log_sum_array(ln_xi.reshape(T - 1, -1), axis=1)
    return log_divide_array(ln_xi, normalizer[:, None, None])


class BaumWelchTrainer:
    """
    Unsupervised EM trainer for discrete HMMs.

    Convergence heuristic: after the first iteration the average gain is
    half the sequence likelihood. Every later iteration whose likelihood gain
    falls below ``convergence_ratio`` times the average gain ends training;
    otherwise the average gain is updated to the mean of itself and the new
    gain.
    """

    def __init__(self,
                 max_iterations: Optional[int] = None,
                 min_probability: Optional[float] = None,
                 convergence_ratio: Optional[float] = None,
                 max_normalization_passes: Optional[int] = None):
        """
        Initialize BaumWelchTrainer.

        Args:
            max_iterations: Maximum number of accepted iterations; 0 makes
                training a no-op (default: ``hmm.max_iterations``, 250)
            min_probability: Floor applied to every transition and emission
                probability (default: ``hmm.min_probability``, 4e-7)
            convergence_ratio: Fraction of the average gain below which an
                iteration counts as converged (default: 0.25)
            max_normalization_passes: Pass limit for low-value normalization

        Raises:
            ModelTrainingError: If a setting is out of range
        """
        self.max_iterations = self._setting(max_iterations, 'max_iterations')
        self.min_probability = self._setting(min_probability, 'min_probability')
        self.convergence_ratio = self._setting(convergence_ratio, 'convergence_ratio')
        self.max_normalization_passes = self._setting(
            max_normalization_passes, 'max_normalization_passes'
        )

        if self.max_iterations < 0:
            raise ModelTrainingError(f"max_iterations must be >= 0, got {self.max_iterations}")
        if not 0 <= self.min_probability < 1:
            raise ModelTrainingError(
                f"min_probability must be in [0, 1), got {self.min_probability}"
            )

    @staticmethod
    def _setting(value, key: str):
        return get_config('hmm', key) if value is None else value

    def fit(self, parameters: ModelParameters, sequence: Sequence[Hashable],
            callback: Optional[IterationCallback] = None
            ) -> Tuple[ModelParameters, TrainingResult]:
        """
        Run Baum-Welch until convergence, abort or the iteration limit.

        The given snapshot is never modified; accepted estimates are new
        snapshots.

        Args:
            parameters: Starting parameters
            sequence: Observation labels used for training
            callback: Called as ``callback(iteration, likelihood, parameters)``
                after each accepted iteration

        Returns:
            Tuple of (last accepted parameters, training result)

        Raises:
            EmptySequenceError: If the sequence is empty
            InvalidObservationError: If the sequence holds an unknown symbol
            NormalizationError: If the candidate cannot be floored
        """
        result = TrainingResult()
        if self.max_iterations == 0:
            logger.debug("max_iterations is 0, training skipped")
            return parameters, result

        live = parameters
        observations = ForwardBackwardEngine(live).encode(sequence)
        observation_array = np.asarray(observations)
        n_observations = len(live.observations)

        average_gain = 0.0
        last_likelihood = 0.0

        result.state = TrainingState.ITERATING
        logger.debug(f"Starting Baum-Welch: T={len(observations)}, "
                     f"initial likelihood={ForwardBackwardEngine(live).likelihood(sequence):.6e}")

        while result.state is TrainingState.ITERATING:
            candidate = live.copy()

            engine = ForwardBackwardEngine(live)
            ln_alpha = engine.log_forward(sequence)
            ln_beta = engine.log_backward(sequence)

            ln_gamma = log_gamma(ln_alpha, ln_beta)
            ln_xi = log_xi(observations, ln_alpha, ln_beta,
                           engine.ln_transitions, engine.ln_emissions)

            # Initial state probabilities: occupation at t = 0
            candidate.initial = exp_array(ln_gamma[0])

            # Transitions: expected i -> j transitions / expected visits of i before T-1
            transitions_from = log_sum_array(ln_gamma[:-1], axis=0)
            transitions_num = log_sum_array(ln_xi, axis=0)
            candidate.transitions.set_values(
                exp_array(log_divide_array(transitions_num, transitions_from[:, None]))
            )

            # Emissions: expected visits of j while observing k / expected visits of j
            visits = log_sum_array(ln_gamma, axis=0)
            emissions_num = np.column_stack([
                log_sum_array(ln_gamma[observation_array == k], axis=0)
                for k in range(n_observations)
            ])
            candidate.emissions.set_values(
                exp_array(log_divide_array(emissions_num, visits[:, None]))
            )

            candidate.emissions.normalize_low_values(self.min_probability,
                                                     self.max_normalization_passes)
            candidate.transitions.normalize_low_values(self.min_probability,
                                                       self.max_normalization_passes)

            if candidate.has_undefined():
                result.state = TrainingState.ABORTED
                logger.warning(
                    f"Training aborted at iteration {result.iterations + 1}: "
                    f"a state was never visited, keeping last accepted parameters"
                )
                break

            # Accepted even when this iteration turns out to be the converging one
            live = candidate
            result.iterations += 1

            likelihood = ForwardBackwardEngine(live).likelihood(sequence)
            result.likelihood_history.append(likelihood)

            if result.iterations == 1:
                average_gain = likelihood / 2
                last_likelihood = likelihood
            else:
                gain = likelihood - last_likelihood
                if gain < average_gain * self.convergence_ratio:
                    result.state = TrainingState.CONVERGED
                else:
                    average_gain = (average_gain + gain) / 2
                    last_likelihood = likelihood

            logger.debug(f"Iteration {result.iterations}: likelihood={likelihood:.6e}, "
                         f"average_gain={average_gain:.6e}")

            if callback is not None:
                callback(result.iterations, likelihood, live)

            if (result.state is TrainingState.ITERATING
                    and result.iterations >= self.max_iterations):
                result.state = TrainingState.MAX_ITERATIONS_REACHED

        logger.info(f"Baum-Welch finished: state={result.state.value}, "
                    f"iterations={result.iterations}")

        return live, result
