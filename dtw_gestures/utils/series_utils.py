"""
Shared utilities for time series handling and preprocessing.

This module provides common functionality used by the trainer, the
classifier and the recorder so that training and prediction data go
through exactly the same transformations.
"""

import logging
from typing import Any, List, Optional, Sequence

import numpy as np

from ..exceptions import ConfigurationError

logger = logging.getLogger(__name__)


class TimeSeriesUtils:
    """Utility class for time series conversions and transforms."""

    @staticmethod
    def as_series(data: Any, num_dimensions: Optional[int] = None) -> np.ndarray:
        """
        Convert data to a float (length, dimensions) array.

        A 1-D input is treated as a single feature vector, i.e. a series of
        length one.

        Raises:
            ConfigurationError: If the data is empty, not 1-D/2-D, contains
                non-finite values or does not match num_dimensions.
        """
        try:
            series = np.array(data, dtype=float)
        except (TypeError, ValueError) as e:
            raise ConfigurationError(f"Time series is not numeric: {e}") from e

        if series.ndim == 1:
            series = series.reshape(1, -1)
        if series.ndim != 2:
            raise ConfigurationError(f"Time series must be 2-D, got {series.ndim} dimensions")
        if series.shape[0] == 0 or series.shape[1] == 0:
            raise ConfigurationError("Time series cannot be empty")
        if not np.all(np.isfinite(series)):
            raise ConfigurationError("Time series contains NaN or infinite values")
        if num_dimensions is not None and series.shape[1] != num_dimensions:
            raise ConfigurationError(
                f"Expected {num_dimensions} dimensions, got {series.shape[1]}")
        return series

    @staticmethod
    def motion_profile(series: np.ndarray) -> np.ndarray:
        """Euclidean magnitude of the change between consecutive samples."""
        if len(series) < 2:
            return np.zeros(0)
        return np.linalg.norm(np.diff(series, axis=0), axis=1)

    @staticmethod
    def trim(series: np.ndarray, threshold: float, max_trim_percent: float) -> np.ndarray:
        """
        Remove low-motion samples from the start and end of a series.

        Motion is measured per segment (pair of consecutive samples) and
        normalised by the peak motion of the series, so threshold is a
        fraction in [0, 1]. Everything between the first and last segment
        above the threshold is kept.

        Args:
            series: (length, dimensions) array
            threshold: Normalised motion a segment must exceed to count as active
            max_trim_percent: Largest share of samples that may be removed. If
                the cut would remove more, the series is returned untouched.

        Returns:
            The trimmed series, or the original if it cannot be trimmed.
        """
        n = len(series)
        if n < 3:
            return series

        motion = TimeSeriesUtils.motion_profile(series)
        peak = motion.max()
        if peak <= 0:
            return series

        active = np.flatnonzero(motion / peak > threshold)
        if len(active) == 0:
            return series

        start = int(active[0])
        end = int(active[-1]) + 2  # segment k spans samples k and k+1
        kept = end - start
        if kept <= 0:
            return series

        removed_percent = 100.0 * (n - kept) / n
        if removed_percent > max_trim_percent:
            logger.debug(
                f"Not trimming: would remove {removed_percent:.1f}% (cap {max_trim_percent:.1f}%)")
            return series

        return series[start:end]

    @staticmethod
    def offset_by_first_sample(series: np.ndarray) -> np.ndarray:
        """Subtract the first feature vector from every sample."""
        return series - series[0]

    @staticmethod
    def average_length(series_list: Sequence[np.ndarray]) -> int:
        """Rounded mean length of a collection of series (at least 1)."""
        if not series_list:
            return 1
        return max(1, int(round(float(np.mean([len(s) for s in series_list])))))


class SeriesValidator:
    """Utility class for validating time series data."""

    @staticmethod
    def validate_series(series: Any, num_dimensions: int) -> np.ndarray:
        """Return the series as an array or raise ConfigurationError."""
        return TimeSeriesUtils.as_series(series, num_dimensions)

    @staticmethod
    def is_valid_series(series: Any, num_dimensions: int) -> bool:
        """Check a series without raising."""
        try:
            TimeSeriesUtils.as_series(series, num_dimensions)
        except ConfigurationError:
            return False
        return True

    @staticmethod
    def validate_feature_vector(sample: Any, num_dimensions: int) -> np.ndarray:
        """Validate a single feature vector and return it as a 1-D array."""
        vector = TimeSeriesUtils.as_series(sample, num_dimensions)
        if len(vector) != 1:
            raise ConfigurationError(f"Expected a single feature vector, got {len(vector)} rows")
        return vector[0]


class SeriesPreprocessor:
    """
    Applies trimming and offset normalisation according to a DTWConfig.

    The same instance is used for training examples and for prediction
    input so both sides of every DTW comparison are prepared identically.
    """

    def __init__(self, config):
        self.config = config

    def process(self, series: np.ndarray) -> np.ndarray:
        if self.config.trim_training_data:
            series = TimeSeriesUtils.trim(
                series, self.config.trim_threshold, self.config.trim_max_percent)
        if self.config.offset_using_first_sample:
            series = TimeSeriesUtils.offset_by_first_sample(series)
        return series

    def process_all(self, series_list: Sequence[np.ndarray]) -> List[np.ndarray]:
        return [self.process(s) for s in series_list]
