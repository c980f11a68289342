"""
Configuration settings for the DTW gesture classifier.
"""

import logging
from dataclasses import dataclass, asdict, fields
from typing import Any, Dict, Optional

from ..exceptions import ConfigurationError

logger = logging.getLogger(__name__)


class DTWDefaults:
    """Default values for DTW training and recognition."""

    # Null rejection
    NULL_REJECTION_ENABLED = True
    NULL_REJECTION_COEFF = 3.0

    # Trimming of inactive lead-in / lead-out (threshold is a fraction of peak motion)
    TRIM_TRAINING_DATA = True
    TRIM_THRESHOLD = 0.1
    TRIM_MAX_PERCENT = 90.0

    OFFSET_USING_FIRST_SAMPLE = True

    # Warping path
    CONSTRAIN_WARPING_PATH = True
    WARPING_BAND_FRACTION = 0.2
    NORMALIZE_BY_PATH_LENGTH = False

    # Training
    TEMPLATE_MODES = ('medoid', 'all')
    TEMPLATE_MODE = 'medoid'
    MIN_SAMPLES_PER_CLASS = 2
    N_JOBS = 1

    NULL_CLASS_LABEL = 0


@dataclass
class DTWConfig:
    """Tunables consumed by the trainer, the classifier and the pipeline."""

    null_rejection_enabled: bool = DTWDefaults.NULL_REJECTION_ENABLED
    null_rejection_coeff: float = DTWDefaults.NULL_REJECTION_COEFF
    trim_training_data: bool = DTWDefaults.TRIM_TRAINING_DATA
    trim_threshold: float = DTWDefaults.TRIM_THRESHOLD
    trim_max_percent: float = DTWDefaults.TRIM_MAX_PERCENT
    offset_using_first_sample: bool = DTWDefaults.OFFSET_USING_FIRST_SAMPLE
    constrain_warping_path: bool = DTWDefaults.CONSTRAIN_WARPING_PATH
    warping_band_width: Optional[int] = None
    normalize_by_path_length: bool = DTWDefaults.NORMALIZE_BY_PATH_LENGTH
    template_mode: str = DTWDefaults.TEMPLATE_MODE
    min_samples_per_class: int = DTWDefaults.MIN_SAMPLES_PER_CLASS
    n_jobs: int = DTWDefaults.N_JOBS

    def __post_init__(self):
        self.validate()

    def validate(self):
        """Raise ConfigurationError if any value is out of range."""
        if not self.null_rejection_coeff > 0:
            raise ConfigurationError(
                f"null_rejection_coeff must be > 0, got {self.null_rejection_coeff}")
        if not 0.0 <= self.trim_threshold <= 1.0:
            raise ConfigurationError(
                f"trim_threshold must be in [0, 1], got {self.trim_threshold}")
        if not 0.0 <= self.trim_max_percent <= 100.0:
            raise ConfigurationError(
                f"trim_max_percent must be in [0, 100], got {self.trim_max_percent}")
        if self.warping_band_width is not None and int(self.warping_band_width) < 0:
            raise ConfigurationError(
                f"warping_band_width must be >= 0, got {self.warping_band_width}")
        if self.template_mode not in DTWDefaults.TEMPLATE_MODES:
            raise ConfigurationError(
                f"template_mode must be one of {DTWDefaults.TEMPLATE_MODES}, got {self.template_mode!r}")
        if int(self.min_samples_per_class) < 2:
            # variance needs at least two examples
            raise ConfigurationError(
                f"min_samples_per_class must be >= 2, got {self.min_samples_per_class}")
        if int(self.n_jobs) == 0:
            raise ConfigurationError("n_jobs must be non-zero")

    def set_null_rejection_coeff(self, coeff: float):
        """Set the null rejection coefficient (must be positive)."""
        if not coeff > 0:
            raise ConfigurationError(f"null_rejection_coeff must be > 0, got {coeff}")
        self.null_rejection_coeff = float(coeff)

    def get_null_rejection_coeff(self) -> float:
        """Get the current null rejection coefficient."""
        return self.null_rejection_coeff

    def to_dict(self) -> Dict[str, Any]:
        return asdict(self)

    @classmethod
    def from_dict(cls, values: Dict[str, Any]) -> 'DTWConfig':
        """Build a config from a mapping, ignoring keys that are not config fields."""
        known = {f.name for f in fields(cls)}
        unknown = sorted(set(values) - known)
        if unknown:
            logger.warning(f"Ignoring unknown config keys: {', '.join(unknown)}")
        return cls(**{k: v for k, v in values.items() if k in known})
