"""
Initial center selection.

Initializers are injected into the engine; the random seed of a run is
forwarded here and nowhere else.
"""

from __future__ import annotations

from abc import ABC, abstractmethod
from typing import Optional

import numpy as np

from .distance import DistanceFunction
from .errors import ConfigurationError
from .storage import PointStore

__all__ = [
    "Initializer",
    "RandomlyChosenInitialMeans",
    "FirstKInitialMeans",
    "KMeansPlusPlusInitialMeans",
    "PredefinedInitialMeans",
    "INITIALIZERS",
    "get_initializer",
]


class Initializer(ABC):
    """
    Abstract base class for initial center strategies.

    Centers need not be members of the data set.
    """

    name = "initializer"

    @abstractmethod
    def choose_initial_means(
        self,
        points: PointStore,
        k: int,
        distance: DistanceFunction,
    ) -> np.ndarray:
        """
        Choose k initial centers.

        Args:
            points: Data to cluster
            k: Number of centers
            distance: Distance function of the run

        Returns:
            float64 array of shape (k, d)
        """
        pass

    def __repr__(self) -> str:
        return f"{self.__class__.__name__}()"


class RandomlyChosenInitialMeans(Initializer):
    """k distinct data points drawn uniformly at random."""

    name = "random"

    def __init__(self, seed: Optional[int] = None):
        self.seed = seed

    def choose_initial_means(self, points, k, distance):
        rng = np.random.default_rng(self.seed)
        rows = rng.choice(len(points), size=k, replace=False)
        return np.array(points.vectors[np.sort(rows)], dtype=np.float64)

    def __repr__(self) -> str:
        return f"RandomlyChosenInitialMeans(seed={self.seed})"


class FirstKInitialMeans(Initializer):
    """The first k points, in id order."""

    name = "first"

    def choose_initial_means(self, points, k, distance):
        return np.array(points.vectors[:k], dtype=np.float64)


class KMeansPlusPlusInitialMeans(Initializer):
    """k-means++: each further center drawn with probability ~ d(x)^2."""

    name = "kmeans++"

    def __init__(self, seed: Optional[int] = None):
        self.seed = seed

    def choose_initial_means(self, points, k, distance):
        rng = np.random.default_rng(self.seed)
        data = points.vectors
        n = len(points)
        means = np.empty((k, points.dim), dtype=np.float64)

        # First center chosen uniformly at random
        means[0] = data[rng.integers(0, n)]

        # Squared (true-metric) distance of every point to its nearest center so far
        weights = np.array([
            distance.to_metric(distance.distance(x, means[0])) ** 2 for x in data
        ])

        for i in range(1, k):
            total = weights.sum()
            if total <= 0:
                # Every point coincides with a chosen center
                next_row = rng.integers(0, n)
            else:
                next_row = rng.choice(n, p=weights / total)
            means[i] = data[next_row]
            new_weights = np.array([
                distance.to_metric(distance.distance(x, means[i])) ** 2 for x in data
            ])
            weights = np.minimum(weights, new_weights)

        return means

    def __repr__(self) -> str:
        return f"KMeansPlusPlusInitialMeans(seed={self.seed})"


class PredefinedInitialMeans(Initializer):
    """Fixed, caller-supplied centers."""

    name = "predefined"

    def __init__(self, means):
        self.means = np.array(means, dtype=np.float64)

    def choose_initial_means(self, points, k, distance):
        if self.means.ndim != 2 or self.means.shape[0] != k:
            raise ConfigurationError(
                f"Predefined means have shape {self.means.shape}, expected ({k}, d)"
            )
        return self.means.copy()

    def __repr__(self) -> str:
        return f"PredefinedInitialMeans(k={len(self.means)})"


INITIALIZERS = {
    cls.name: cls
    for cls in (
        RandomlyChosenInitialMeans,
        FirstKInitialMeans,
        KMeansPlusPlusInitialMeans,
    )
}


def get_initializer(name: str, seed: Optional[int] = None) -> Initializer:
    """Instantiate an initializer by registry name, forwarding the seed."""
    if name not in INITIALIZERS:
        raise ConfigurationError(
            f"Unknown initializer '{name}'. Choose from: {', '.join(sorted(INITIALIZERS))}"
        )
    cls = INITIALIZERS[name]
    if cls is FirstKInitialMeans:
        return cls()
    return cls(seed=seed)
