"""Tests for the DTW classifier and its null rejection."""

import numpy as np
import pytest

from conftest import make_line
from dtw_gestures.config.settings import DTWConfig
from dtw_gestures.exceptions import ConfigurationError, DatasetIOError, NotTrainedError
from dtw_gestures.gestures.dataset import TimeSeriesDataset
from dtw_gestures.gestures.dtw_classifier import DTWClassifier, PredictionResult


@pytest.fixture
def classifier(line_dataset):
    clf = DTWClassifier()
    clf.train(line_dataset)
    return clf


def test_untrained_classifier_raises():
    clf = DTWClassifier()

    assert not clf.is_trained()
    with pytest.raises(NotTrainedError):
        clf.predict(make_line((100, 0)))
    with pytest.raises(NotTrainedError):
        clf.predict_sample([0.0, 0.0])
    with pytest.raises(NotTrainedError):
        clf.get_null_rejection_thresholds()


def test_template_matches_itself(classifier):
    template = classifier.model.templates[1].templates[0]

    result = classifier.predict(template)

    assert result.predicted_label == 1
    assert result.class_distances[1] == 0.0
    assert not result.rejected
    assert result.class_likelihoods[1] == 1.0


def test_recognises_trained_gesture(classifier):
    result = classifier.predict(make_line((100, 0)))

    assert result.success
    assert result.predicted_label == 1
    assert result.class_distances[1] < result.class_distances[2]
    assert sum(result.class_likelihoods.values()) == pytest.approx(1.0)
    assert result.maximum_likelihood == pytest.approx(result.class_likelihoods[1])


def test_rejects_unknown_gesture(classifier):
    result = classifier.predict(make_line((70, 70)))

    assert result.rejected
    assert result.predicted_label == 0
    assert result.best_distance > classifier.get_null_rejection_thresholds()[1]


def test_disabled_null_rejection_always_picks_a_class(classifier):
    classifier.enable_null_rejection(False)

    result = classifier.predict(make_line((70, 70)))

    assert not result.rejected
    assert result.predicted_label in (1, 2)


def test_lower_coeff_never_accepts_more(classifier):
    gestures = [make_line((100, 0)), make_line((90, 20)), make_line((70, 70)), make_line((0, 100))]

    accepted = []
    for coeff in (10.0, 3.0, 1.0, 0.1):
        classifier.set_null_rejection_coeff(coeff)
        accepted.append({i for i, p in enumerate(gestures) if not classifier.predict(p).rejected})

    for looser, tighter in zip(accepted, accepted[1:]):
        assert tighter <= looser


def test_set_coeff_recomputes_thresholds(classifier):
    before = classifier.get_null_rejection_thresholds()

    classifier.set_null_rejection_coeff(10.0)
    after = classifier.get_null_rejection_thresholds()

    for label in before:
        assert after[label] >= before[label]
    assert classifier.config.get_null_rejection_coeff() == 10.0
    with pytest.raises(ConfigurationError):
        classifier.set_null_rejection_coeff(-1.0)


def test_ties_go_to_lowest_label():
    dataset = TimeSeriesDataset(2)
    line = make_line((40, 40))
    for label in (2, 1):
        dataset.add_sample(label, line)
        dataset.add_sample(label, line)
    clf = DTWClassifier()
    clf.train(dataset)

    result = clf.predict(line)

    assert result.predicted_label == 1
    assert result.class_likelihoods == {1: 0.5, 2: 0.5}


def test_likelihoods_follow_inverse_distance():
    likelihoods = DTWClassifier._likelihoods(np.array([1.0, 3.0]))

    np.testing.assert_allclose(likelihoods, [0.75, 0.25])


def test_likelihoods_with_unreachable_classes():
    likelihoods = DTWClassifier._likelihoods(np.array([np.inf, np.inf]))

    np.testing.assert_array_equal(likelihoods, [0.0, 0.0])


def test_wrong_dimensions_rejected(classifier):
    with pytest.raises(ConfigurationError):
        classifier.predict(np.zeros((10, 3)))


def test_distance_matrices_are_copies(classifier):
    classifier.predict(make_line((100, 0)))

    matrices = classifier.get_distance_matrices()
    assert sorted(matrices) == [1, 2]
    matrices[1][:] = -1.0

    assert np.all(classifier.get_distance_matrices()[1] >= 0)


def test_streaming_buffers_until_full(classifier):
    length = classifier.model.average_template_length
    samples = make_line((100, 0), num_points=length)

    for sample in samples[:-1]:
        result = classifier.predict_sample(sample)
        assert not result.success
        assert "Buffering" in result.message

    result = classifier.predict_sample(samples[-1])

    assert result.success
    assert len(classifier.get_input_data_buffer()) == length


def test_retraining_resets_prediction_state(classifier, line_dataset):
    classifier.predict_sample([0.0, 0.0])

    classifier.train(line_dataset)

    assert len(classifier.get_input_data_buffer()) == 0
    assert classifier.get_distance_matrices() == {}


def test_diagnostics(classifier):
    info = classifier.get_diagnostics()

    assert info['trained']
    assert info['class_labels'] == [1, 2]
    assert info['classes'][1]['num_templates'] == 1
    assert info['classes'][2]['threshold'] == classifier.get_null_rejection_thresholds()[2]

    classifier.clear()
    assert classifier.get_diagnostics() == {
        'trained': False,
        'null_rejection_enabled': True,
        'null_rejection_coeff': 3.0,
    }


def test_save_and_load_model(classifier, tmp_path):
    path = str(tmp_path / "model.joblib")
    query = make_line((95, 5))
    expected = classifier.predict(query)

    classifier.save_model(path)
    loaded = DTWClassifier()
    loaded.load_model(path)

    result = loaded.predict(query)
    assert result.predicted_label == expected.predicted_label
    assert result.class_distances == pytest.approx(expected.class_distances)
    assert loaded.get_null_rejection_thresholds() == pytest.approx(
        classifier.get_null_rejection_thresholds())


def test_load_missing_model_keeps_current(classifier, tmp_path):
    with pytest.raises(DatasetIOError):
        classifier.load_model(str(tmp_path / "missing.joblib"))

    assert classifier.is_trained()


def test_save_untrained_model_fails(tmp_path):
    with pytest.raises(NotTrainedError):
        DTWClassifier().save_model(str(tmp_path / "model.joblib"))


def test_failure_result():
    result = PredictionResult.failure("nothing")

    assert not result.success
    assert result.predicted_label == 0
    assert result.best_distance == float('inf')


def test_training_uses_custom_config(line_dataset):
    clf = DTWClassifier(DTWConfig(constrain_warping_path=False, template_mode='all'))
    clf.train(line_dataset)

    assert len(clf.model.templates[1].templates) == 5
    assert clf.predict(make_line((100, 0))).predicted_label == 1


def test_load_foreign_file_raises_dataset_error(classifier, tmp_path):
    path = tmp_path / "model.joblib"
    path.write_text("this is not a model\n")

    with pytest.raises(DatasetIOError):
        classifier.load_model(str(path))

    assert classifier.is_trained()
