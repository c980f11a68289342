"""
Utilities package for time series processing and logging.

This package provides shared utilities used by the trainer, the
classifier and the recording session.
"""

from .series_utils import (
    TimeSeriesUtils,
    SeriesValidator,
    SeriesPreprocessor
)
from .logger import RecognitionLogger, setup_logging

__all__ = [
    'TimeSeriesUtils',
    'SeriesValidator',
    'SeriesPreprocessor',
    'RecognitionLogger',
    'setup_logging'
]
