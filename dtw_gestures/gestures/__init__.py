"""
Gesture classification with Dynamic Time Warping.

This module provides the DTW distance engine, the labelled dataset,
the template trainer and the classifier with null rejection.
"""

from .dataset import LabeledSample, TimeSeriesDataset
from .dtw import DTW, DTWResult
from .dtw_classifier import Classifier, DTWClassifier, PredictionResult
from .model import ClassTemplate, DTWModel
from .trainer import TemplateTrainer

__all__ = [
    'LabeledSample',
    'TimeSeriesDataset',
    'DTW',
    'DTWResult',
    'Classifier',
    'DTWClassifier',
    'PredictionResult',
    'ClassTemplate',
    'DTWModel',
    'TemplateTrainer'
]
