"""
Labelled time series dataset with file persistence.

Two on-disk layouts are supported. The default is a self-describing text
file: a header with the dimensionality and sample count, then for each
sample a header line followed by one whitespace-separated row per feature
vector. Paths ending in ".json" use a JSON document instead.
"""

import json
import logging
import os
from collections import OrderedDict
from dataclasses import dataclass
from typing import Any, Dict, Iterator, List, Optional, Tuple

import numpy as np
from sklearn.model_selection import train_test_split

from ..config.settings import DTWDefaults
from ..exceptions import ConfigurationError, DatasetIOError
from ..utils.series_utils import SeriesValidator

logger = logging.getLogger(__name__)

FILE_HEADER = "DTW_GESTURE_DATASET_V1"


@dataclass(frozen=True, eq=False)
class LabeledSample:
    """One training example: a class label and its time series."""
    class_label: int
    series: np.ndarray

    @property
    def length(self) -> int:
        return len(self.series)

    def __eq__(self, other):
        if not isinstance(other, LabeledSample):
            return NotImplemented
        return (self.class_label == other.class_label
                and np.array_equal(self.series, other.series))


class TimeSeriesDataset:
    """Ordered collection of labelled time series with a fixed dimensionality."""

    def __init__(self, num_dimensions: int, name: str = ""):
        if int(num_dimensions) < 1:
            raise ConfigurationError(f"num_dimensions must be >= 1, got {num_dimensions}")
        self.num_dimensions = int(num_dimensions)
        self.name = name
        self.samples: List[LabeledSample] = []

    def __len__(self) -> int:
        return len(self.samples)

    def __iter__(self) -> Iterator[LabeledSample]:
        return iter(self.samples)

    def __getitem__(self, index: int) -> LabeledSample:
        return self.samples[index]

    def __eq__(self, other):
        if not isinstance(other, TimeSeriesDataset):
            return NotImplemented
        return self.num_dimensions == other.num_dimensions and self.samples == other.samples

    def __repr__(self):
        return (f"TimeSeriesDataset(num_dimensions={self.num_dimensions}, "
                f"num_samples={len(self.samples)}, classes={self.get_class_labels()})")

    @property
    def num_samples(self) -> int:
        return len(self.samples)

    @property
    def num_classes(self) -> int:
        return len(self.get_class_labels())

    def add_sample(self, class_label: int, series: Any) -> LabeledSample:
        """
        Add a training example.

        Raises:
            ConfigurationError: If the label is the reserved null label (or
                negative) or the series does not match the dimensionality.
        """
        try:
            is_integer = not isinstance(class_label, bool) and int(class_label) == class_label
        except (TypeError, ValueError):
            is_integer = False
        if not is_integer:
            raise ConfigurationError(f"Class label must be an integer, got {class_label!r}")
        if class_label <= DTWDefaults.NULL_CLASS_LABEL:
            raise ConfigurationError(
                f"Class label {class_label} is reserved or invalid; labels start at 1")

        array = SeriesValidator.validate_series(series, self.num_dimensions)
        array.setflags(write=False)
        sample = LabeledSample(int(class_label), array)
        self.samples.append(sample)
        return sample

    def clear(self):
        """Remove every sample."""
        self.samples = []

    def get_class_labels(self) -> List[int]:
        return sorted({s.class_label for s in self.samples})

    def get_class_counts(self) -> Dict[int, int]:
        counts: Dict[int, int] = {}
        for sample in self.samples:
            counts[sample.class_label] = counts.get(sample.class_label, 0) + 1
        return dict(sorted(counts.items()))

    def group_by_class(self) -> "OrderedDict[int, List[np.ndarray]]":
        """Series grouped by class label, labels ascending."""
        groups: "OrderedDict[int, List[np.ndarray]]" = OrderedDict()
        for label in self.get_class_labels():
            groups[label] = []
        for sample in self.samples:
            groups[sample.class_label].append(sample.series)
        return groups

    def split(self, test_fraction: float = 0.2,
              random_state: Optional[int] = None) -> Tuple['TimeSeriesDataset', 'TimeSeriesDataset']:
        """
        Partition into (train, test) datasets, stratified by class label.

        Raises:
            ConfigurationError: If test_fraction is outside (0, 1).
            ValueError: From scikit-learn when a class is too small to stratify.
        """
        if not 0.0 < test_fraction < 1.0:
            raise ConfigurationError(f"test_fraction must be in (0, 1), got {test_fraction}")

        indices = np.arange(len(self.samples))
        labels = [s.class_label for s in self.samples]
        train_idx, test_idx = train_test_split(
            indices, test_size=test_fraction, stratify=labels, random_state=random_state)

        train = TimeSeriesDataset(self.num_dimensions, self.name)
        test = TimeSeriesDataset(self.num_dimensions, self.name)
        for i in sorted(train_idx):
            train.samples.append(self.samples[i])
        for i in sorted(test_idx):
            test.samples.append(self.samples[i])
        return train, test

    # ------------------------------------------------------------------
    # Persistence
    # ------------------------------------------------------------------

    def save(self, filename: str):
        """
        Save the dataset to a file.

        Raises:
            DatasetIOError: If the file cannot be written.
        """
        filename = os.fspath(filename)
        try:
            if filename.endswith('.json'):
                self._save_json(filename)
            else:
                self._save_text(filename)
        except OSError as e:
            logger.error(f"Failed to save dataset to '{filename}': {e}")
            raise DatasetIOError(f"Could not save dataset to '{filename}': {e}") from e
        logger.info(f"Saved {len(self.samples)} samples to '{filename}'")

    @classmethod
    def load(cls, filename: str) -> 'TimeSeriesDataset':
        """
        Load a dataset from a file written by save().

        Raises:
            DatasetIOError: If the file is missing or malformed.
        """
        filename = os.fspath(filename)
        if not os.path.exists(filename):
            raise DatasetIOError(f"Dataset file '{filename}' not found")

        try:
            if filename.endswith('.json'):
                dataset = cls._load_json(filename)
            else:
                dataset = cls._load_text(filename)
        except DatasetIOError:
            raise
        except (OSError, ValueError, KeyError, TypeError, IndexError) as e:
            logger.error(f"Failed to load dataset from '{filename}': {e}")
            raise DatasetIOError(f"Could not load dataset from '{filename}': {e}") from e

        logger.info(f"Loaded {len(dataset)} samples from '{filename}'")
        return dataset

    def load_from_file(self, filename: str):
        """Replace this dataset's contents with a file; unchanged on failure."""
        loaded = self.load(filename)
        self.num_dimensions = loaded.num_dimensions
        self.name = loaded.name
        self.samples = loaded.samples

    def _save_text(self, filename: str):
        with open(filename, 'w', encoding='utf-8') as f:
            f.write(f"{FILE_HEADER}\n")
            f.write(f"NumDimensions: {self.num_dimensions}\n")
            f.write(f"NumSamples: {len(self.samples)}\n")
            for i, sample in enumerate(self.samples):
                f.write(f"Sample: {i} ClassLabel: {sample.class_label} Length: {sample.length}\n")
                for row in sample.series:
                    f.write(" ".join(repr(float(v)) for v in row) + "\n")

    @classmethod
    def _load_text(cls, filename: str) -> 'TimeSeriesDataset':
        with open(filename, 'r', encoding='utf-8') as f:
            lines = [line.strip() for line in f if line.strip()]

        if not lines or lines[0] != FILE_HEADER:
            raise DatasetIOError(f"'{filename}' is not a gesture dataset file")

        num_dimensions = int(_header_value(lines[1], "NumDimensions"))
        num_samples = int(_header_value(lines[2], "NumSamples"))
        dataset = cls(num_dimensions)

        pos = 3
        for i in range(num_samples):
            fields = lines[pos].split()
            if len(fields) != 6 or fields[0] != "Sample:" or fields[2] != "ClassLabel:":
                raise DatasetIOError(f"Malformed header for sample {i}: '{lines[pos]}'")
            class_label = int(fields[3])
            length = int(fields[5])
            rows = [[float(v) for v in line.split()] for line in lines[pos + 1:pos + 1 + length]]
            if len(rows) != length:
                raise DatasetIOError(f"Sample {i} is truncated")
            dataset.add_sample(class_label, rows)
            pos += 1 + length

        return dataset

    def _save_json(self, filename: str):
        data = {
            'name': self.name,
            'num_dimensions': self.num_dimensions,
            'samples': [
                {'class_label': s.class_label, 'series': s.series.tolist()}
                for s in self.samples
            ]
        }
        with open(filename, 'w', encoding='utf-8') as f:
            json.dump(data, f, indent=2)

    @classmethod
    def _load_json(cls, filename: str) -> 'TimeSeriesDataset':
        with open(filename, 'r', encoding='utf-8') as f:
            data = json.load(f)

        if not isinstance(data, dict) or 'num_dimensions' not in data:
            raise DatasetIOError(f"Invalid dataset format in '{filename}'")

        dataset = cls(int(data['num_dimensions']), str(data.get('name', '')))
        for item in data.get('samples', []):
            dataset.add_sample(int(item['class_label']), item['series'])
        return dataset


def _header_value(line: str, key: str) -> str:
    name, _, value = line.partition(':')
    if name.strip() != key:
        raise DatasetIOError(f"Expected '{key}' header, got '{line}'")
    return value.strip()
