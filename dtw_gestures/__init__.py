"""
DTW Gestures Package
Dynamic Time Warping gesture recognition with automatic null rejection.
"""

from .config.settings import DTWConfig
from .core.pipeline import GestureRecognitionPipeline
from .core.recorder import GestureRecorder
from .gestures.dataset import TimeSeriesDataset
from .gestures.dtw import DTW
from .gestures.dtw_classifier import DTWClassifier, PredictionResult

__version__ = "1.0.0"
__all__ = [
    "DTWConfig",
    "GestureRecognitionPipeline",
    "GestureRecorder",
    "TimeSeriesDataset",
    "DTW",
    "DTWClassifier",
    "PredictionResult",
]
