"""
DTW classifier with automatic null rejection.

Compares an input time series against the templates of every trained class,
converts the per-class DTW distances into likelihoods and refuses to commit
to a class (predicting the null label 0) when the best distance lies beyond
the threshold calibrated for that class during training.
"""

import logging
from abc import ABC, abstractmethod
from collections import deque
from dataclasses import dataclass, field, replace
from typing import Any, Dict, List, Optional

import joblib
import numpy as np

from ..config.settings import DTWConfig, DTWDefaults
from ..exceptions import DatasetIOError, NotTrainedError
from ..utils.series_utils import SeriesPreprocessor, SeriesValidator, TimeSeriesUtils
from .dataset import TimeSeriesDataset
from .dtw import DTW
from .model import DTWModel
from .trainer import TemplateTrainer

logger = logging.getLogger(__name__)


@dataclass
class PredictionResult:
    """Outcome of classifying one time series."""
    predicted_label: int = DTWDefaults.NULL_CLASS_LABEL
    class_likelihoods: Dict[int, float] = field(default_factory=dict)
    class_distances: Dict[int, float] = field(default_factory=dict)
    maximum_likelihood: float = 0.0
    rejected: bool = False
    success: bool = True
    message: str = ""

    @classmethod
    def failure(cls, message: str) -> 'PredictionResult':
        """Sentinel returned when no prediction could be made."""
        return cls(success=False, message=message)

    @property
    def best_distance(self) -> float:
        if not self.class_distances:
            return float('inf')
        return min(self.class_distances.values())


class Classifier(ABC):
    """Capabilities every classifier plugged into the pipeline provides."""

    @abstractmethod
    def train(self, dataset: TimeSeriesDataset):
        """Train on a labelled dataset, raising on failure."""

    @abstractmethod
    def predict(self, series: Any) -> PredictionResult:
        """Classify a time series, raising NotTrainedError when untrained."""

    @abstractmethod
    def is_trained(self) -> bool:
        """Whether a model is available for prediction."""

    @abstractmethod
    def get_diagnostics(self) -> Dict[str, Any]:
        """Summary of the trained state for display."""


class DTWClassifier(Classifier):
    """Template-matching classifier built on Dynamic Time Warping."""

    def __init__(self, config: Optional[DTWConfig] = None):
        self.config = replace(config) if config is not None else DTWConfig()
        self.model: Optional[DTWModel] = None
        self.input_buffer: deque = deque(maxlen=1)
        self.distance_matrices: Dict[int, np.ndarray] = {}
        self.last_result: Optional[PredictionResult] = None

    # ------------------------------------------------------------------
    # Training
    # ------------------------------------------------------------------

    def train(self, dataset: TimeSeriesDataset) -> DTWModel:
        """
        Train a new model and swap it in.

        The current model is only replaced once training has succeeded, so a
        failed call leaves the classifier exactly as it was.

        Raises:
            InsufficientDataError: Empty dataset or too few samples in a class.
            ConfigurationError: Mismatched dimensionality.
        """
        model = TemplateTrainer(self.config).train(dataset)
        self._install(model)
        logger.info(f"Trained DTW model with {model.num_classes} classes, "
                    f"average template length {model.average_template_length}")
        return model

    def _install(self, model: DTWModel):
        self.model = model
        self.input_buffer = deque(maxlen=model.average_template_length)
        self.distance_matrices = {}
        self.last_result = None

    def is_trained(self) -> bool:
        return self.model is not None

    def clear(self):
        """Discard the trained model and all prediction state."""
        self.model = None
        self.input_buffer = deque(maxlen=1)
        self.distance_matrices = {}
        self.last_result = None

    # ------------------------------------------------------------------
    # Prediction
    # ------------------------------------------------------------------

    def predict(self, series: Any) -> PredictionResult:
        """
        Classify a complete time series.

        Args:
            series: (length, dimensions) array-like

        Returns:
            PredictionResult with label 0 if the input was null rejected

        Raises:
            NotTrainedError: If no model has been trained.
            ConfigurationError: If the series does not match the model dimensionality.
        """
        model = self._require_model()
        series = TimeSeriesUtils.as_series(series, model.num_dimensions)

        # prepare the input exactly as the templates were prepared
        model_config = model.config or self.config
        processed = SeriesPreprocessor(model_config).process(series)
        dtw = DTW.from_config(model_config)

        labels = model.class_labels
        distances = np.empty(len(labels))
        matrices = {}
        for k, label in enumerate(labels):
            best = None
            for template in model.templates[label].templates:
                result = dtw.compute(processed, template)
                if best is None or result.distance < best.distance:
                    best = result
            distances[k] = best.distance
            matrices[label] = best.cost_matrix

        likelihoods = self._likelihoods(distances)
        winner = int(np.argmin(distances))  # first minimum, i.e. lowest label
        winner_label = labels[winner]

        rejected = (self.config.null_rejection_enabled
                    and distances[winner] > model.templates[winner_label].threshold)
        predicted = DTWDefaults.NULL_CLASS_LABEL if rejected else winner_label

        result = PredictionResult(
            predicted_label=predicted,
            class_likelihoods={label: float(likelihoods[k]) for k, label in enumerate(labels)},
            class_distances={label: float(distances[k]) for k, label in enumerate(labels)},
            maximum_likelihood=float(likelihoods.max()),
            rejected=bool(rejected),
        )
        self.distance_matrices = matrices
        self.last_result = result
        logger.debug(f"Predicted {predicted} (best class {winner_label}, "
                     f"distance {distances[winner]:.4f}, rejected {rejected})")
        return result

    def predict_sample(self, sample: Any) -> PredictionResult:
        """
        Push one feature vector into the input buffer and classify the buffer.

        The buffer holds as many samples as the average template length; until
        it is full a failure result is returned.

        Raises:
            NotTrainedError: If no model has been trained.
            ConfigurationError: If the sample has the wrong dimensionality.
        """
        model = self._require_model()
        vector = SeriesValidator.validate_feature_vector(sample, model.num_dimensions)
        self.input_buffer.append(vector)

        if len(self.input_buffer) < self.input_buffer.maxlen:
            return PredictionResult.failure(
                f"Buffering input ({len(self.input_buffer)}/{self.input_buffer.maxlen} samples)")
        return self.predict(np.array(self.input_buffer))

    @staticmethod
    def _likelihoods(distances: np.ndarray) -> np.ndarray:
        """Inverse-distance likelihoods that sum to one across classes."""
        zero = distances == 0
        if zero.any():
            return zero / zero.sum()

        with np.errstate(divide='ignore'):
            inverse = np.where(np.isfinite(distances), 1.0 / distances, 0.0)
        total = inverse.sum()
        if total <= 0:
            return np.zeros_like(distances)
        return inverse / total

    def _require_model(self) -> DTWModel:
        if self.model is None:
            raise NotTrainedError("The DTW classifier has not been trained")
        return self.model

    # ------------------------------------------------------------------
    # Null rejection
    # ------------------------------------------------------------------

    def enable_null_rejection(self, enabled: bool):
        self.config.null_rejection_enabled = bool(enabled)

    def set_null_rejection_coeff(self, coeff: float):
        """Change the coefficient and re-derive thresholds of a trained model."""
        self.config.set_null_rejection_coeff(coeff)
        if self.model is not None:
            self.model = TemplateTrainer(self.config).recompute_thresholds(self.model, coeff)

    def get_null_rejection_thresholds(self) -> Dict[int, float]:
        return self._require_model().thresholds()

    # ------------------------------------------------------------------
    # Diagnostics
    # ------------------------------------------------------------------

    def get_input_data_buffer(self) -> np.ndarray:
        """Copy of the samples currently buffered by predict_sample()."""
        if not self.input_buffer:
            dims = self.model.num_dimensions if self.model else 0
            return np.zeros((0, dims))
        return np.array(self.input_buffer)

    def get_distance_matrices(self) -> Dict[int, np.ndarray]:
        """Copies of the DTW cost matrices from the last prediction, per class."""
        return {label: matrix.copy() for label, matrix in self.distance_matrices.items()}

    def get_class_labels(self) -> List[int]:
        return self.model.class_labels if self.model else []

    def get_num_classes(self) -> int:
        return self.model.num_classes if self.model else 0

    def get_diagnostics(self) -> Dict[str, Any]:
        info: Dict[str, Any] = {
            'trained': self.is_trained(),
            'null_rejection_enabled': self.config.null_rejection_enabled,
            'null_rejection_coeff': self.config.null_rejection_coeff,
        }
        if self.model is None:
            return info

        info.update({
            'num_classes': self.model.num_classes,
            'num_dimensions': self.model.num_dimensions,
            'class_labels': self.model.class_labels,
            'average_template_length': self.model.average_template_length,
            'classes': {
                label: {
                    'num_templates': len(t.templates),
                    'template_lengths': [len(s) for s in t.templates],
                    'training_mu': t.training_mu,
                    'training_sigma': t.training_sigma,
                    'threshold': t.threshold,
                }
                for label, t in self.model.templates.items()
            },
        })
        return info

    # ------------------------------------------------------------------
    # Persistence
    # ------------------------------------------------------------------

    def save_model(self, filename: str):
        """
        Save the trained model with joblib.

        Raises:
            NotTrainedError: If there is nothing to save.
            DatasetIOError: If the file cannot be written.
        """
        model = self._require_model()
        model_data = {
            'model': model,
            'config': self.config.to_dict(),
        }
        try:
            joblib.dump(model_data, filename)
        except OSError as e:
            logger.error(f"Failed to save model to '{filename}': {e}")
            raise DatasetIOError(f"Could not save model to '{filename}': {e}") from e
        logger.info(f"Saved model to '{filename}'")

    def load_model(self, filename: str):
        """
        Load a model saved with save_model(); the current model is kept on failure.

        Raises:
            DatasetIOError: If the file is missing or not a saved model.
        """
        try:
            model_data = joblib.load(filename)
        except Exception as e:  # any unpickling error means a foreign file
            logger.error(f"Failed to load model from '{filename}': {e}")
            raise DatasetIOError(f"Could not load model from '{filename}': {e}") from e

        if not isinstance(model_data, dict) or not isinstance(model_data.get('model'), DTWModel):
            raise DatasetIOError(f"'{filename}' does not contain a DTW model")

        self.config = DTWConfig.from_dict(model_data.get('config', {}))
        self._install(model_data['model'])
        logger.info(f"Loaded model with {self.model.num_classes} classes from '{filename}'")
