"""
Hidden Markov Model module.

Discrete HMM with log-space forward-backward recursions and stochastic
probability matrices.
"""

from .matrix import StochasticMatrix, StateTransitionMatrix, ConfusionMatrix
from .validity import MatrixValidity
from .parameters import ModelParameters
from .forward_backward import ForwardBackwardEngine
from .model import HiddenMarkovModel

__all__ = [
    "StochasticMatrix",
    "StateTransitionMatrix",
    "ConfusionMatrix",
    "MatrixValidity",
    "ModelParameters",
    "ForwardBackwardEngine",
    "HiddenMarkovModel"
]
