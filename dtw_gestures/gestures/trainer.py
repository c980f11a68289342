"""
Template trainer for the DTW classifier.

Builds reference templates for every class of a labelled dataset and
calibrates a per-class null rejection threshold from the spread of the
intra-class DTW distances:

    threshold = mean(distances) + null_rejection_coeff * std(distances)
"""

import logging
from dataclasses import replace
from typing import List, Tuple

import numpy as np
from joblib import Parallel, delayed

from ..exceptions import ConfigurationError, InsufficientDataError
from ..utils.series_utils import SeriesPreprocessor, TimeSeriesUtils
from .dataset import TimeSeriesDataset
from .dtw import DTW
from .model import ClassTemplate, DTWModel

logger = logging.getLogger(__name__)


class TemplateTrainer:
    """Trains a DTWModel from a TimeSeriesDataset."""

    def __init__(self, config):
        self.config = config
        self.dtw = DTW.from_config(config)
        self.preprocessor = SeriesPreprocessor(config)

    def train(self, dataset: TimeSeriesDataset) -> DTWModel:
        """
        Train a new model.

        Raises:
            InsufficientDataError: If the dataset is empty or a class has fewer
                than min_samples_per_class examples.
            ConfigurationError: If a series does not match the dataset
                dimensionality.
        """
        if len(dataset) == 0:
            raise InsufficientDataError("Cannot train on an empty dataset")

        groups = dataset.group_by_class()
        for label, series_list in groups.items():
            if len(series_list) < self.config.min_samples_per_class:
                raise InsufficientDataError(
                    f"Class {label} has {len(series_list)} samples, "
                    f"at least {self.config.min_samples_per_class} are required")
            for series in series_list:
                if series.shape[1] != dataset.num_dimensions:
                    raise ConfigurationError(
                        f"Class {label} contains a series with {series.shape[1]} dimensions, "
                        f"dataset has {dataset.num_dimensions}")

        prepared = {label: self.preprocessor.process_all(series_list)
                    for label, series_list in groups.items()}

        # classes are independent; each job only reads its own group
        labels = list(prepared)
        results = Parallel(n_jobs=self.config.n_jobs)(
            delayed(self._train_class)(prepared[label]) for label in labels)

        coeff = self.config.null_rejection_coeff
        templates = {}
        for label, (class_templates, distances) in zip(labels, results):
            mu = float(np.mean(distances))
            sigma = float(np.std(distances))
            templates[label] = ClassTemplate(
                class_label=label,
                templates=class_templates,
                training_mu=mu,
                training_sigma=sigma,
                threshold=mu + coeff * sigma,
                training_distances=distances,
            )
            logger.info(
                f"Class {label}: {len(class_templates)} template(s), "
                f"mu {mu:.4f} sigma {sigma:.4f} threshold {mu + coeff * sigma:.4f}")

        all_templates = [t for ct in templates.values() for t in ct.templates]
        return DTWModel(
            num_dimensions=dataset.num_dimensions,
            templates=templates,
            average_template_length=TimeSeriesUtils.average_length(all_templates),
            null_rejection_coeff=coeff,
            config=replace(self.config),
        )

    def recompute_thresholds(self, model: DTWModel, null_rejection_coeff: float) -> DTWModel:
        """Re-derive every threshold for a new coefficient without recomputing distances."""
        if not null_rejection_coeff > 0:
            raise ConfigurationError(f"null_rejection_coeff must be > 0, got {null_rejection_coeff}")
        return model.with_coeff(float(null_rejection_coeff))

    def pairwise_distances(self, series_list: List[np.ndarray]) -> np.ndarray:
        """Symmetric matrix of DTW distances between every pair of series."""
        k = len(series_list)
        distances = np.zeros((k, k))
        for i in range(k):
            for j in range(i + 1, k):
                d = self.dtw.distance(series_list[i], series_list[j])
                distances[i, j] = d
                distances[j, i] = d
        return distances

    def _train_class(self, series_list: List[np.ndarray]) -> Tuple[List[np.ndarray], List[float]]:
        """Select templates for one class and collect its intra-class distances."""
        distances = self.pairwise_distances(series_list)

        if self.config.template_mode == 'all':
            # leave-one-out nearest neighbour distance of every example
            masked = distances + np.diag(np.full(len(series_list), np.inf))
            return list(series_list), [float(d) for d in masked.min(axis=1)]

        # medoid: smallest summed distance to the rest of the class
        best = int(np.argmin(distances.sum(axis=1)))
        others = [float(distances[best, j]) for j in range(len(series_list)) if j != best]
        return [series_list[best]], others
