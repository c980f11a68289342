"""Tests for template selection and threshold calibration."""

import numpy as np
import pytest

from conftest import make_line, make_two_line_dataset
from dtw_gestures.config.settings import DTWConfig
from dtw_gestures.exceptions import ConfigurationError, InsufficientDataError
from dtw_gestures.gestures.dataset import TimeSeriesDataset
from dtw_gestures.gestures.trainer import TemplateTrainer


def test_empty_dataset_is_rejected():
    with pytest.raises(InsufficientDataError):
        TemplateTrainer(DTWConfig()).train(TimeSeriesDataset(2))


def test_single_example_class_is_rejected(line_dataset):
    line_dataset.add_sample(3, make_line((50, 50)))

    with pytest.raises(InsufficientDataError):
        TemplateTrainer(DTWConfig()).train(line_dataset)


def test_medoid_mode_keeps_one_template_per_class(line_dataset):
    model = TemplateTrainer(DTWConfig()).train(line_dataset)

    assert model.class_labels == [1, 2]
    for label in model.class_labels:
        class_template = model.templates[label]
        assert len(class_template.templates) == 1
        assert len(class_template.training_distances) == 4


def test_all_mode_keeps_every_example(line_dataset):
    model = TemplateTrainer(DTWConfig(template_mode='all')).train(line_dataset)

    for label in model.class_labels:
        assert len(model.templates[label].templates) == 5
        assert len(model.templates[label].training_distances) == 5


def test_threshold_is_mean_plus_coeff_std(line_dataset):
    model = TemplateTrainer(DTWConfig(null_rejection_coeff=2.0)).train(line_dataset)

    for class_template in model.templates.values():
        distances = np.array(class_template.training_distances)
        assert class_template.training_mu == pytest.approx(distances.mean())
        assert class_template.training_sigma == pytest.approx(distances.std())
        assert class_template.threshold == pytest.approx(distances.mean() + 2.0 * distances.std())
        assert class_template.training_sigma >= 0


def test_thresholds_grow_with_coeff(line_dataset):
    thresholds = [TemplateTrainer(DTWConfig(null_rejection_coeff=c)).train(line_dataset).thresholds()
                  for c in (0.5, 1.0, 3.0, 10.0)]

    for label in (1, 2):
        values = [t[label] for t in thresholds]
        assert values == sorted(values)


def test_recompute_thresholds_matches_retraining(line_dataset):
    trainer = TemplateTrainer(DTWConfig(null_rejection_coeff=3.0))
    model = trainer.train(line_dataset)

    recomputed = trainer.recompute_thresholds(model, 5.0)
    retrained = TemplateTrainer(DTWConfig(null_rejection_coeff=5.0)).train(line_dataset)

    assert recomputed.null_rejection_coeff == 5.0
    for label in model.class_labels:
        assert recomputed.thresholds()[label] == pytest.approx(retrained.thresholds()[label])
    # the original model is left alone
    assert model.null_rejection_coeff == 3.0


def test_recompute_thresholds_rejects_bad_coeff(line_dataset):
    trainer = TemplateTrainer(DTWConfig())
    model = trainer.train(line_dataset)

    with pytest.raises(ConfigurationError):
        trainer.recompute_thresholds(model, 0.0)


def test_parallel_training_matches_serial():
    dataset = make_two_line_dataset(samples_per_class=4, seed=3)

    serial = TemplateTrainer(DTWConfig(n_jobs=1)).train(dataset)
    parallel = TemplateTrainer(DTWConfig(n_jobs=2)).train(dataset)

    assert serial.thresholds() == pytest.approx(parallel.thresholds())


def test_pairwise_distances_are_symmetric(rng):
    trainer = TemplateTrainer(DTWConfig())
    series = [rng.normal(size=(n, 2)) for n in (8, 12, 15)]

    distances = trainer.pairwise_distances(series)

    np.testing.assert_array_equal(distances, distances.T)
    np.testing.assert_array_equal(np.diag(distances), 0.0)


def test_model_keeps_training_config_snapshot(line_dataset):
    config = DTWConfig(trim_threshold=0.2)
    model = TemplateTrainer(config).train(line_dataset)

    config.trim_threshold = 0.5

    assert model.config.trim_threshold == 0.2
    assert model.num_dimensions == 2
    assert model.average_template_length >= 1


def test_identical_examples_give_zero_threshold():
    dataset = TimeSeriesDataset(2)
    for _ in range(3):
        dataset.add_sample(1, make_line((10, 10)))

    model = TemplateTrainer(DTWConfig()).train(dataset)

    assert model.templates[1].training_mu == 0.0
    assert model.templates[1].threshold == 0.0
