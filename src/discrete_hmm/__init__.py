"""
discrete-hmm: trainable discrete Hidden Markov Models

A Python library for learning discrete HMM parameters from an unlabeled
observation sequence with log-space Baum-Welch, and scoring new sequences
against the trained model.
"""

__version__ = "0.1.0"
__author__ = "discrete-hmm Development Team"

from .config import get_config, set_config
from .logger import get_logger
from .hmm import (
    HiddenMarkovModel,
    StochasticMatrix,
    StateTransitionMatrix,
    ConfusionMatrix,
    MatrixValidity,
)
from .train import BaumWelchTrainer, TrainingResult, TrainingState
from .infer import ModelClassifier

__all__ = [
    "HiddenMarkovModel",
    "StochasticMatrix",
    "StateTransitionMatrix",
    "ConfusionMatrix",
    "MatrixValidity",
    "BaumWelchTrainer",
    "TrainingResult",
    "TrainingState",
    "ModelClassifier",
    "get_config",
    "set_config",
    "get_logger",
    "__version__"
]
