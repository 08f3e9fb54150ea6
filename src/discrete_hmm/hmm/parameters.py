"""
Parameter snapshot of a discrete HMM.

A :class:`ModelParameters` instance bundles the initial state distribution,
the state transition matrix and the confusion matrix. Training keeps one
snapshot live and re-estimates into an independent copy, which replaces the
live snapshot only when it is accepted.
"""

from dataclasses import dataclass
from typing import Dict, Hashable, Sequence, Tuple

import numpy as np

from .matrix import ConfusionMatrix, StateTransitionMatrix


@dataclass(eq=False)
class ModelParameters:
    """
    Initial state probabilities (pi), transitions (A) and emissions (B).

    ``initial`` is aligned with ``transitions.row_labels()``.
    """

    initial: np.ndarray
    transitions: StateTransitionMatrix
    emissions: ConfusionMatrix

    @classmethod
    def uniform(cls, states: Sequence[Hashable],
                observations: Sequence[Hashable]) -> 'ModelParameters':
        """Build uniform parameters over the given states and observations."""
        transitions = StateTransitionMatrix(states)
        emissions = ConfusionMatrix(states, observations)
        initial = np.full(len(states), 1.0 / len(states))
        return cls(initial=initial, transitions=transitions, emissions=emissions)

    @property
    def states(self) -> Tuple[Hashable, ...]:
        return self.transitions.row_labels()

    @property
    def observations(self) -> Tuple[Hashable, ...]:
        return self.emissions.column_labels()

    def initial_distribution(self) -> Dict[Hashable, float]:
        return {state: float(p) for state, p in zip(self.states, self.initial)}

    def has_undefined(self) -> bool:
        """True if any probability is the undefined result of a 0/0 estimate."""
        return (bool(np.isnan(self.initial).any())
                or self.transitions.has_undefined()
                or self.emissions.has_undefined())

    def copy(self) -> 'ModelParameters':
        return ModelParameters(
            initial=self.initial.copy(),
            transitions=self.transitions.copy(),
            emissions=self.emissions.copy()
        )
