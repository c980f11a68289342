"""
Trained DTW model value objects.
"""

from dataclasses import dataclass, field, replace
from typing import Any, Dict, List

import numpy as np


@dataclass(frozen=True)
class ClassTemplate:
    """Reference series for one class and its null rejection statistics."""
    class_label: int
    templates: List[np.ndarray]
    training_mu: float
    training_sigma: float
    threshold: float
    training_distances: List[float] = field(default_factory=list)

    def with_coeff(self, null_rejection_coeff: float) -> 'ClassTemplate':
        """Copy with the threshold re-derived for another coefficient."""
        return replace(self, threshold=self.training_mu + null_rejection_coeff * self.training_sigma)


@dataclass(frozen=True)
class DTWModel:
    """Everything needed to classify a series; replaced wholesale on retraining."""
    num_dimensions: int
    templates: Dict[int, ClassTemplate]
    average_template_length: int
    null_rejection_coeff: float
    config: Any = None  # preprocessing and DTW settings used at training time

    @property
    def class_labels(self) -> List[int]:
        return sorted(self.templates)

    @property
    def num_classes(self) -> int:
        return len(self.templates)

    def thresholds(self) -> Dict[int, float]:
        return {label: self.templates[label].threshold for label in self.class_labels}

    def with_coeff(self, null_rejection_coeff: float) -> 'DTWModel':
        return replace(
            self,
            templates={label: t.with_coeff(null_rejection_coeff) for label, t in self.templates.items()},
            null_rejection_coeff=null_rejection_coeff,
        )
