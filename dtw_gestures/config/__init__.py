"""
Configuration for the DTW classifier.
"""

from .settings import DTWConfig, DTWDefaults

__all__ = ['DTWConfig', 'DTWDefaults']
