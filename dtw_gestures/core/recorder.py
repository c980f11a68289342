"""
Recording of labelled example gestures from a stream of feature vectors.
"""

import logging
from typing import Any, List, Optional

import numpy as np

from ..config.settings import DTWDefaults
from ..exceptions import ConfigurationError
from ..gestures.dataset import LabeledSample, TimeSeriesDataset
from ..utils.logger import RecognitionLogger
from ..utils.series_utils import SeriesValidator

logger = logging.getLogger(__name__)


class TimeSeriesBuffer:
    """Accumulates the feature vectors of one gesture while it is recorded."""

    def __init__(self, num_dimensions: int):
        self.num_dimensions = num_dimensions
        self.rows: List[np.ndarray] = []

    def __len__(self) -> int:
        return len(self.rows)

    def append(self, sample: Any):
        self.rows.append(SeriesValidator.validate_feature_vector(sample, self.num_dimensions))

    def clear(self):
        self.rows = []

    def freeze(self) -> np.ndarray:
        """Return the buffered samples as a (length, dimensions) array."""
        if not self.rows:
            return np.zeros((0, self.num_dimensions))
        return np.vstack(self.rows)


class GestureRecorder:
    """
    Records training examples into a dataset.

    Recording is toggled on and off; while it is on every sample fed to
    add_sample() is buffered, and stopping commits the buffered series
    under the current training class label.
    """

    def __init__(self, dataset: TimeSeriesDataset, session_logger: Optional[RecognitionLogger] = None):
        self.dataset = dataset
        self.buffer = TimeSeriesBuffer(dataset.num_dimensions)
        self.training_class_label = 1
        self.recording = False
        self.session_logger = session_logger

    def set_label(self, class_label: int):
        if class_label <= DTWDefaults.NULL_CLASS_LABEL:
            raise ConfigurationError(f"Class label {class_label} is reserved for the null gesture")
        self.training_class_label = int(class_label)

    def next_label(self) -> int:
        self.training_class_label += 1
        return self.training_class_label

    def previous_label(self) -> int:
        if self.training_class_label > 1:
            self.training_class_label -= 1
        return self.training_class_label

    def start_recording(self):
        self.buffer.clear()
        self.recording = True
        if self.session_logger:
            self.session_logger.log_recording(True, self.training_class_label)

    def stop_recording(self) -> Optional[LabeledSample]:
        """Stop recording and commit the buffered gesture; empty recordings are discarded."""
        self.recording = False
        num_samples = len(self.buffer)
        if self.session_logger:
            self.session_logger.log_recording(False, self.training_class_label, num_samples)

        if num_samples == 0:
            logger.warning(f"Discarding empty recording for class {self.training_class_label}")
            return None

        sample = self.dataset.add_sample(self.training_class_label, self.buffer.freeze())
        self.buffer.clear()
        return sample

    def toggle_recording(self) -> Optional[LabeledSample]:
        """Start or stop recording; returns the committed sample when stopping."""
        if self.recording:
            return self.stop_recording()
        self.start_recording()
        return None

    def add_sample(self, sample: Any) -> bool:
        """Buffer a feature vector if recording; returns whether it was kept."""
        if not self.recording:
            return False
        self.buffer.append(sample)
        return True

    def record(self, class_label: int, samples) -> Optional[LabeledSample]:
        """Record a complete gesture from an iterable of feature vectors."""
        self.set_label(class_label)
        self.start_recording()
        for sample in samples:
            self.add_sample(sample)
        return self.stop_recording()
