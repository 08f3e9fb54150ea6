"""
Training module.

Baum-Welch re-estimation of discrete HMM parameters.
"""

from .baum_welch import BaumWelchTrainer, TrainingResult, TrainingState

__all__ = [
    "BaumWelchTrainer",
    "TrainingResult",
    "TrainingState"
]
