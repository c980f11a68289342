"""Tests for the labelled dataset and its file formats."""

import numpy as np
import pytest

from conftest import make_line
from dtw_gestures.exceptions import ConfigurationError, DatasetIOError
from dtw_gestures.gestures.dataset import FILE_HEADER, TimeSeriesDataset


def test_add_sample_validates(line_dataset):
    with pytest.raises(ConfigurationError):
        line_dataset.add_sample(0, make_line((1, 1)))
    with pytest.raises(ConfigurationError):
        line_dataset.add_sample(-2, make_line((1, 1)))
    with pytest.raises(ConfigurationError):
        line_dataset.add_sample(1.5, make_line((1, 1)))
    with pytest.raises(ConfigurationError):
        line_dataset.add_sample(1, np.zeros((5, 3)))
    assert len(line_dataset) == 10


def test_samples_are_read_only(line_dataset):
    with pytest.raises(ValueError):
        line_dataset[0].series[0, 0] = 99.0


def test_class_summary(line_dataset):
    assert line_dataset.get_class_labels() == [1, 2]
    assert line_dataset.get_class_counts() == {1: 5, 2: 5}
    assert line_dataset.num_classes == 2
    assert list(line_dataset.group_by_class()) == [1, 2]


@pytest.mark.parametrize("filename", ["data.txt", "data.json"])
def test_save_and_load(line_dataset, tmp_path, filename):
    path = str(tmp_path / filename)

    line_dataset.save(path)
    loaded = TimeSeriesDataset.load(path)

    assert loaded == line_dataset


def test_text_layout(tmp_path):
    dataset = TimeSeriesDataset(2)
    dataset.add_sample(3, [[1.0, 2.0], [3.0, 4.5]])
    path = tmp_path / "data.txt"

    dataset.save(str(path))
    lines = path.read_text().splitlines()

    assert lines[0] == FILE_HEADER
    assert lines[1] == "NumDimensions: 2"
    assert lines[2] == "NumSamples: 1"
    assert lines[3] == "Sample: 0 ClassLabel: 3 Length: 2"
    assert [float(v) for v in lines[5].split()] == [3.0, 4.5]


def test_load_missing_file(tmp_path):
    with pytest.raises(DatasetIOError):
        TimeSeriesDataset.load(str(tmp_path / "missing.txt"))


@pytest.mark.parametrize("content", [
    "not a dataset\n",
    f"{FILE_HEADER}\nNumDimensions: 2\nNumSamples: 1\nSample: 0 ClassLabel: 1 Length: 3\n1 2\n",
    f"{FILE_HEADER}\nNumDimensions: 2\nNumSamples: 1\nSample: 0 ClassLabel: 1 Length: 1\n1 x\n",
    f"{FILE_HEADER}\nNumDimensions: 2\nNumSamples: 1\nSample: 0 ClassLabel: 0 Length: 1\n1 2\n",
])
def test_load_malformed_file(tmp_path, content):
    path = tmp_path / "bad.txt"
    path.write_text(content)

    with pytest.raises(DatasetIOError):
        TimeSeriesDataset.load(str(path))


def test_load_from_file_keeps_contents_on_failure(line_dataset, tmp_path):
    path = tmp_path / "bad.json"
    path.write_text("[1, 2, 3]")

    with pytest.raises(DatasetIOError):
        line_dataset.load_from_file(str(path))

    assert len(line_dataset) == 10


def test_load_from_file_replaces_contents(line_dataset, tmp_path):
    path = str(tmp_path / "data.json")
    other = TimeSeriesDataset(3)
    other.add_sample(4, np.ones((6, 3)))
    other.save(path)

    line_dataset.load_from_file(path)

    assert line_dataset.num_dimensions == 3
    assert line_dataset.get_class_counts() == {4: 1}


def test_stratified_split(line_dataset):
    train, test = line_dataset.split(0.4, random_state=0)

    assert len(train) + len(test) == len(line_dataset)
    assert train.get_class_counts() == {1: 3, 2: 3}
    assert test.get_class_counts() == {1: 2, 2: 2}


def test_split_rejects_bad_fraction(line_dataset):
    with pytest.raises(ConfigurationError):
        line_dataset.split(1.0)


def test_clear(line_dataset):
    line_dataset.clear()

    assert len(line_dataset) == 0
    assert line_dataset.get_class_labels() == []


@pytest.mark.parametrize("filename", ["data.txt", "data.json"])
def test_save_and_load_accept_paths(line_dataset, tmp_path, filename):
    path = tmp_path / filename

    line_dataset.save(path)

    assert TimeSeriesDataset.load(path) == line_dataset
