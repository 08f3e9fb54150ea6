"""
Model selection by forward algorithm scoring.

Keeps a set of trained models in memory and picks the one most likely to
have emitted an observation sequence. The winner's functionality id tells
the application what to do for that sequence.
"""

from typing import Dict, Hashable, Iterable, List, Optional, Sequence, Tuple, Union

from ..exceptions import ClassificationError, DiscreteHMMError
from ..hmm.logprob import LOG_ZERO
from ..hmm.model import HiddenMarkovModel
from ..logger import get_logger

logger = get_logger(__name__)


class ModelClassifier:
    """
    Multi-model inference engine.

    Models are registered by name; every model must be trained.
    """

    def __init__(self, models: Optional[Iterable[HiddenMarkovModel]] = None):
        self._models: Dict[str, HiddenMarkovModel] = {}
        for model in models or []:
            self.add_model(model)

    @property
    def model_names(self) -> List[str]:
        return list(self._models)

    def __len__(self) -> int:
        return len(self._models)

    def add_model(self, model: HiddenMarkovModel) -> None:
        """
        Register a trained model under its name.

        Raises:
            ClassificationError: If the model is untrained or the name is taken
        """
        if not model.is_trained:
            raise ClassificationError(f"Model '{model.name}' has not been trained")
        if model.name in self._models:
            raise ClassificationError(f"A model named '{model.name}' is already registered")

        self._models[model.name] = model
        logger.debug(f"Registered model {model.name} (functionality_id={model.functionality_id})")

    def remove_model(self, name: str) -> HiddenMarkovModel:
        try:
            return self._models.pop(name)
        except KeyError:
            raise ClassificationError(
                f"Model '{name}' not found. Available models: {self.model_names}"
            )

    def score_sequence(self, sequence: Sequence[Hashable], name: str) -> float:
        """
        Compute log-likelihood of a sequence under one registered model.

        Raises:
            ClassificationError: If the model is unknown or scoring fails
        """
        if name not in self._models:
            raise ClassificationError(
                f"Model '{name}' not found. Available models: {self.model_names}"
            )

        try:
            score = self._models[name].log_likelihood(sequence)
        except DiscreteHMMError as e:
            raise ClassificationError(f"Failed to score sequence for model {name}: {e}") from e

        logger.debug(f"Scored sequence for {name}: {score:.6f}")
        return score

    def score_all(self, sequence: Sequence[Hashable]) -> Dict[str, float]:
        """
        Log-likelihood of a sequence under every registered model.

        Models that cannot score the sequence get ``LOG_ZERO``.
        """
        scores = {}
        for name in self._models:
            try:
                scores[name] = self.score_sequence(sequence, name)
            except ClassificationError as e:
                logger.warning(str(e))
                scores[name] = LOG_ZERO
        return scores

    def predict(self, sequence: Sequence[Hashable], return_all_scores: bool = False
                ) -> Union[str, Tuple[str, Dict[str, float]]]:
        """
        Name of the model most likely to have emitted the sequence.

        Args:
            sequence: Observation labels
            return_all_scores: Also return the score of every model

        Raises:
            ClassificationError: If no model is registered or none can
                explain the sequence
        """
        if not self._models:
            raise ClassificationError("No models available for prediction")

        scores = self.score_all(sequence)
        best = max(scores, key=scores.get)
        if scores[best] == LOG_ZERO:
            raise ClassificationError("No model can explain the observation sequence")

        logger.info(f"Predicted model: {best} (log_likelihood={scores[best]:.6f})")

        if return_all_scores:
            return best, scores
        return best

    def predict_functionality(self, sequence: Sequence[Hashable]) -> int:
        """Functionality id of the most probable model."""
        return self._models[self.predict(sequence)].functionality_id
