"""Shared fixtures for the DTW gesture tests."""

import numpy as np
import pytest

from dtw_gestures.gestures.dataset import TimeSeriesDataset


def make_line(end, num_points=20, noise=0.0, rng=None, start=(0.0, 0.0)):
    """Straight line from start to end, optionally jittered."""
    t = np.linspace(0.0, 1.0, num_points)[:, np.newaxis]
    line = np.asarray(start, dtype=float) + t * (np.asarray(end, dtype=float) - np.asarray(start, dtype=float))
    if noise and rng is not None:
        line = line + rng.normal(0.0, noise, size=line.shape)
    return line


def make_two_line_dataset(samples_per_class=5, seed=7):
    """Class 1: lines to (100, 0). Class 2: lines to (0, 100)."""
    rng = np.random.default_rng(seed)
    dataset = TimeSeriesDataset(2)
    for _ in range(samples_per_class):
        dataset.add_sample(1, make_line((100, 0), noise=0.3, rng=rng))
    for _ in range(samples_per_class):
        dataset.add_sample(2, make_line((0, 100), noise=0.3, rng=rng))
    return dataset


@pytest.fixture
def line_dataset():
    return make_two_line_dataset()


@pytest.fixture
def rng():
    return np.random.default_rng(1234)
