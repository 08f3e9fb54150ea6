"""
Exception hierarchy for the discrete HMM system.
"""

from typing import Any, Optional


class DiscreteHMMError(Exception):
    """Base exception for the discrete HMM system."""
    pass


class EmptyMatrixError(DiscreteHMMError):
    """Matrix or label set too small to hold probabilities."""
    pass


class InvalidLabelError(DiscreteHMMError):
    """A row or column label that is not part of the matrix."""

    default_message = "The label does not apply here"

    def __init__(self, message: Optional[str] = None, label: Any = None):
        self.label = label
        super().__init__(message or self.default_message)


class InvalidStateError(InvalidLabelError):
    """A state that does not exist in the model."""

    default_message = "The state does not apply here"


class InvalidObservationError(InvalidLabelError):
    """An observation that is not part of the model's alphabet."""

    default_message = "The observation does not apply here"


class StochasticInvariantError(DiscreteHMMError):
    """A row of a stochastic matrix does not sum to 1.0."""
    pass


class NumericDomainError(DiscreteHMMError, ValueError):
    """Logarithm requested for a negative number."""
    pass


class ModelNotTrainedError(DiscreteHMMError):
    """Likelihood requested from a model that has not been trained."""
    pass


class NormalizationError(DiscreteHMMError):
    """Low-value normalization could not restore the row sums."""
    pass


class EmptySequenceError(DiscreteHMMError, ValueError):
    """Observation sequence without any symbols."""
    pass


class ModelTrainingError(DiscreteHMMError):
    """HMM training configuration or numerical issues."""
    pass


class ClassificationError(DiscreteHMMError):
    """Model selection and scoring failures."""
    pass
