"""
Dynamic Time Warping distance engine.

Computes the optimal non-linear alignment cost between two multivariate
time series of possibly different lengths. The full cumulative cost matrix
and the warping path are returned alongside the scalar distance so that
callers can visualise how two gestures were aligned.

Reference: Sakoe & Chiba, "Dynamic programming algorithm optimization for
spoken word recognition", IEEE Trans. ASSP, 1978.
"""

import math
from dataclasses import dataclass, field
from typing import List, Optional, Tuple

import numpy as np

from ..config.settings import DTWDefaults
from ..exceptions import ConfigurationError


@dataclass
class DTWResult:
    """Result of aligning two series with DTW."""
    distance: float
    cost_matrix: np.ndarray
    warping_path: List[Tuple[int, int]] = field(default_factory=list)

    @property
    def path_length(self) -> int:
        return len(self.warping_path)


class DTW:
    """
    DTW with Euclidean local cost and an optional Sakoe-Chiba band.

    The band is expressed in cells along the longer series. Cell (i, j) is
    evaluated when the normalised positions i/(n-1) and j/(m-1) differ by at
    most width/max(n-1, m-1). The band never gets narrower than one cell on
    the shorter series, which keeps (0, 0) connected to (n-1, m-1).
    """

    def __init__(self, constrain_warping_path: bool = False,
                 warping_band_width: Optional[int] = None,
                 normalize_by_path_length: bool = False):
        if warping_band_width is not None and warping_band_width < 0:
            raise ConfigurationError(f"warping_band_width must be >= 0, got {warping_band_width}")
        self.constrain_warping_path = constrain_warping_path
        self.warping_band_width = warping_band_width
        self.normalize_by_path_length = normalize_by_path_length

    @classmethod
    def from_config(cls, config) -> 'DTW':
        return cls(
            constrain_warping_path=config.constrain_warping_path,
            warping_band_width=config.warping_band_width,
            normalize_by_path_length=config.normalize_by_path_length,
        )

    def distance(self, series_a: np.ndarray, series_b: np.ndarray) -> float:
        """Warped alignment cost between two series."""
        return self.compute(series_a, series_b).distance

    def compute(self, series_a: np.ndarray, series_b: np.ndarray) -> DTWResult:
        """
        Align two series.

        Args:
            series_a: (n, d) array
            series_b: (m, d) array

        Returns:
            DTWResult with the distance, the (n, m) cumulative cost matrix and
            the warping path from (0, 0) to (n-1, m-1).

        Raises:
            ConfigurationError: If either series is empty or the
                dimensionalities differ.
        """
        a = self._check(series_a)
        b = self._check(series_b)
        if a.shape[1] != b.shape[1]:
            raise ConfigurationError(
                f"Cannot align series with {a.shape[1]} and {b.shape[1]} dimensions")

        local = self.local_cost_matrix(a, b)
        mask = self.band_mask(len(a), len(b)) if self.constrain_warping_path else None
        cost = self._accumulate(local, mask)
        path = self._backtrack(cost)

        distance = float(cost[-1, -1])
        if self.normalize_by_path_length:
            distance /= len(path)
        return DTWResult(distance, cost, path)

    @staticmethod
    def local_cost_matrix(a: np.ndarray, b: np.ndarray) -> np.ndarray:
        """Pointwise Euclidean distances between every sample of a and b."""
        return np.linalg.norm(a[:, np.newaxis, :] - b[np.newaxis, :, :], axis=2)

    def band_width_for(self, n: int, m: int) -> int:
        """Band width used for series of lengths n and m."""
        if self.warping_band_width is not None:
            return int(self.warping_band_width)
        return int(math.ceil(DTWDefaults.WARPING_BAND_FRACTION * max(n, m)))

    def band_mask(self, n: int, m: int) -> np.ndarray:
        """Boolean (n, m) mask of the cells inside the warping band."""
        if n == 1 or m == 1:
            return np.ones((n, m), dtype=bool)

        width = self.band_width_for(n, m)
        delta = max(width / max(n - 1, m - 1), 1.0 / min(n - 1, m - 1))
        pos_a = np.arange(n) / (n - 1)
        pos_b = np.arange(m) / (m - 1)
        return np.abs(pos_a[:, np.newaxis] - pos_b[np.newaxis, :]) <= delta + 1e-12

    @staticmethod
    def _check(series: np.ndarray) -> np.ndarray:
        series = np.asarray(series, dtype=float)
        if series.ndim == 1:
            series = series.reshape(1, -1)
        if series.ndim != 2 or series.shape[0] == 0 or series.shape[1] == 0:
            raise ConfigurationError("DTW requires non-empty 2-D series")
        return series

    @staticmethod
    def _accumulate(local: np.ndarray, mask: Optional[np.ndarray]) -> np.ndarray:
        """Fill the cumulative cost matrix with the standard DTW recurrence."""
        n, m = local.shape
        cost = np.full((n, m), np.inf)
        cost[0, 0] = local[0, 0]

        # boundary row and column are cumulative sums
        for i in range(1, n):
            if mask is None or mask[i, 0]:
                cost[i, 0] = cost[i - 1, 0] + local[i, 0]
        for j in range(1, m):
            if mask is None or mask[0, j]:
                cost[0, j] = cost[0, j - 1] + local[0, j]

        for i in range(1, n):
            for j in range(1, m):
                if mask is not None and not mask[i, j]:
                    continue
                cost[i, j] = local[i, j] + min(cost[i - 1, j], cost[i, j - 1], cost[i - 1, j - 1])

        return cost

    @staticmethod
    def _backtrack(cost: np.ndarray) -> List[Tuple[int, int]]:
        """Recover the warping path, preferring diagonal steps on ties."""
        i, j = cost.shape[0] - 1, cost.shape[1] - 1
        path = [(i, j)]
        while i > 0 or j > 0:
            if i == 0:
                j -= 1
            elif j == 0:
                i -= 1
            else:
                diagonal = cost[i - 1, j - 1]
                up = cost[i - 1, j]
                left = cost[i, j - 1]
                if diagonal <= up and diagonal <= left:
                    i, j = i - 1, j - 1
                elif up <= left:
                    i -= 1
                else:
                    j -= 1
            path.append((i, j))
        path.reverse()
        return path
