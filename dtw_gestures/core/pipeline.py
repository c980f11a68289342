"""
Gesture recognition pipeline that coordinates training and prediction.
"""

import logging
from typing import Any, Dict, List, Optional

from sklearn.metrics import accuracy_score, confusion_matrix

from ..config.settings import DTWConfig, DTWDefaults
from ..exceptions import DTWGestureError
from ..gestures.dataset import TimeSeriesDataset
from ..gestures.dtw_classifier import Classifier, DTWClassifier, PredictionResult

logger = logging.getLogger(__name__)


class GestureRecognitionPipeline:
    """
    Owns a classifier and exposes the train/predict workflow.

    Prediction is expected to run continuously (once per input frame), so
    predict() never raises: failures come back as PredictionResult.failure().
    Training returns a success flag and never disturbs a usable model.
    """

    def __init__(self, classifier: Optional[Classifier] = None, config: Optional[DTWConfig] = None):
        self.classifier = classifier or DTWClassifier(config)
        self.dataset: Optional[TimeSeriesDataset] = None
        self.last_result = PredictionResult.failure("No prediction yet")
        self.last_error: Optional[str] = None

    def set_classifier(self, classifier: Classifier):
        self.classifier = classifier
        self.last_result = PredictionResult.failure("No prediction yet")

    def get_classifier(self) -> Classifier:
        return self.classifier

    def is_trained(self) -> bool:
        return self.classifier.is_trained()

    def train(self, dataset: TimeSeriesDataset) -> bool:
        """Train the classifier; on failure the previous model stays in place."""
        try:
            self.classifier.train(dataset)
        except DTWGestureError as e:
            self.last_error = str(e)
            logger.warning(f"Failed to train pipeline: {e}")
            return False

        self.dataset = dataset
        self.last_error = None
        self.last_result = PredictionResult.failure("No prediction yet")
        logger.info(f"Pipeline trained on {len(dataset)} samples")
        return True

    def predict(self, series: Any) -> PredictionResult:
        """Classify a complete series, returning a failure result instead of raising."""
        return self._run(self.classifier.predict, series)

    def predict_sample(self, sample: Any) -> PredictionResult:
        """Feed one feature vector to a streaming classifier."""
        predict_sample = getattr(self.classifier, 'predict_sample', None)
        if predict_sample is None:
            return PredictionResult.failure("Classifier does not support streaming input")
        return self._run(predict_sample, sample)

    def _run(self, predict, data) -> PredictionResult:
        try:
            result = predict(data)
        except DTWGestureError as e:
            logger.debug(f"Prediction failed: {e}")
            return PredictionResult.failure(str(e))

        if result.success:
            self.last_result = result
        return result

    def get_predicted_class_label(self) -> int:
        if not self.last_result.success:
            return DTWDefaults.NULL_CLASS_LABEL
        return self.last_result.predicted_label

    def get_maximum_likelihood(self) -> float:
        return self.last_result.maximum_likelihood if self.last_result.success else 0.0

    def get_class_labels(self) -> List[int]:
        if not self.is_trained():
            return []
        return list(self.classifier.get_diagnostics().get('class_labels', []))

    def get_num_classes(self) -> int:
        return len(self.get_class_labels())

    def get_class_likelihoods(self) -> List[float]:
        """Likelihoods of the last prediction, ordered by class label."""
        labels = self.get_class_labels()
        if not self.last_result.success:
            return [0.0] * len(labels)
        return [self.last_result.class_likelihoods.get(label, 0.0) for label in labels]

    def test(self, dataset: TimeSeriesDataset) -> Dict[str, Any]:
        """
        Evaluate the trained pipeline on a labelled dataset.

        Returns:
            Dictionary with accuracy, rejection_rate, the confusion matrix
            (rows are true labels, columns predicted labels, null label first)
            and the label order used.
        """
        if not self.is_trained():
            return {'success': False, 'message': "Pipeline is not trained"}
        if len(dataset) == 0:
            return {'success': False, 'message': "Test dataset is empty"}

        y_true = []
        y_pred = []
        for sample in dataset:
            result = self.predict(sample.series)
            if not result.success:
                return {'success': False, 'message': result.message}
            y_true.append(sample.class_label)
            y_pred.append(result.predicted_label)

        return self.summarize(y_true, y_pred)

    def summarize(self, y_true: List[int], y_pred: List[int]) -> Dict[str, Any]:
        """Accuracy report for predictions that were already made."""
        if not y_pred:
            return {'success': False, 'message': "No predictions to summarize"}

        labels = sorted(set(self.get_class_labels()) | set(y_true) | {DTWDefaults.NULL_CLASS_LABEL})
        rejected = sum(1 for p in y_pred if p == DTWDefaults.NULL_CLASS_LABEL)
        return {
            'success': True,
            'accuracy': float(accuracy_score(y_true, y_pred)),
            'rejection_rate': rejected / len(y_pred),
            'labels': labels,
            'confusion_matrix': confusion_matrix(y_true, y_pred, labels=labels),
            'num_samples': len(y_pred),
        }

    def save_model(self, filename: str) -> bool:
        try:
            self.classifier.save_model(filename)
        except (DTWGestureError, AttributeError) as e:
            logger.warning(f"Failed to save model: {e}")
            return False
        return True

    def load_model(self, filename: str) -> bool:
        try:
            self.classifier.load_model(filename)
        except (DTWGestureError, AttributeError) as e:
            logger.warning(f"Failed to load model: {e}")
            return False
        self.last_result = PredictionResult.failure("No prediction yet")
        return True
