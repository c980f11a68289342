"""
Exception types raised by the DTW gesture recognition toolkit.
"""


class DTWGestureError(Exception):
    """Base class for all recognition errors."""


class ConfigurationError(DTWGestureError, ValueError):
    """Invalid configuration value or mismatched feature dimensionality."""


class InsufficientDataError(DTWGestureError):
    """Not enough training examples to build a model."""


class NotTrainedError(DTWGestureError, RuntimeError):
    """Prediction requested before a model was trained."""


class DatasetIOError(DTWGestureError, IOError):
    """A dataset or model file could not be read or written."""
