"""
Pipeline orchestration and gesture recording.
"""

from .pipeline import GestureRecognitionPipeline
from .recorder import GestureRecorder, TimeSeriesBuffer

__all__ = ['GestureRecognitionPipeline', 'GestureRecorder', 'TimeSeriesBuffer']
