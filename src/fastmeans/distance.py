"""
Distance functions for the clustering engine.

A distance function declares two properties the engine relies on:

- is_squared: values are squares of a distance; the engine takes the
  square root (to_metric) before any bound arithmetic.
- is_metric: the (square-rooted, if squared) distance satisfies the
  triangle inequality. Bound-pruning variants require this.
"""

from __future__ import annotations

import math
from abc import ABC, abstractmethod

import numpy as np

from .errors import ConfigurationError, DimensionalityError

__all__ = [
    "DistanceFunction",
    "EuclideanDistance",
    "SquaredEuclideanDistance",
    "ManhattanDistance",
    "CosineDistance",
    "DISTANCES",
    "get_distance",
]


class DistanceFunction(ABC):
    """
    Abstract base class for distance functions over numeric vectors.

    Subclasses implement _distance; the dimensionality check is done here
    so every implementation fails the same way.
    """

    name = "distance"
    is_squared = False
    is_metric = True

    def distance(self, a: np.ndarray, b: np.ndarray) -> float:
        """
        Distance between two vectors.

        Raises:
            DimensionalityError: if len(a) != len(b)
        """
        if len(a) != len(b):
            raise DimensionalityError(len(a), len(b))
        return self._distance(a, b)

    @abstractmethod
    def _distance(self, a: np.ndarray, b: np.ndarray) -> float:
        pass

    def pairwise(self, vectors: np.ndarray, centers: np.ndarray) -> np.ndarray:
        """
        Distances from every row of vectors to every row of centers.

        Returns:
            (m, k) array of native values

        Raises:
            DimensionalityError: if the row lengths differ
        """
        vectors = np.asarray(vectors, dtype=np.float64)
        centers = np.asarray(centers, dtype=np.float64)
        if vectors.shape[1] != centers.shape[1]:
            raise DimensionalityError(vectors.shape[1], centers.shape[1])
        return self._pairwise(vectors, centers)

    def _pairwise(self, vectors: np.ndarray, centers: np.ndarray) -> np.ndarray:
        return np.array([[self._distance(v, c) for c in centers] for v in vectors])

    def to_metric(self, value):
        """Convert native values (scalar or array) to the true metric used in bound arithmetic."""
        return np.sqrt(value) if self.is_squared else value

    def __repr__(self) -> str:
        return f"{self.__class__.__name__}()"


class EuclideanDistance(DistanceFunction):
    name = "euclidean"

    def _distance(self, a: np.ndarray, b: np.ndarray) -> float:
        diff = a - b
        return math.sqrt(float(np.dot(diff, diff)))

    def _pairwise(self, vectors, centers):
        diff = vectors[:, None, :] - centers[None, :, :]
        return np.sqrt(np.einsum("mkd,mkd->mk", diff, diff))


class SquaredEuclideanDistance(DistanceFunction):
    """Squared Euclidean distance; its square root is the Euclidean metric."""

    name = "squared_euclidean"
    is_squared = True

    def _distance(self, a: np.ndarray, b: np.ndarray) -> float:
        diff = a - b
        return float(np.dot(diff, diff))

    def _pairwise(self, vectors, centers):
        diff = vectors[:, None, :] - centers[None, :, :]
        return np.einsum("mkd,mkd->mk", diff, diff)


class ManhattanDistance(DistanceFunction):
    name = "manhattan"

    def _distance(self, a: np.ndarray, b: np.ndarray) -> float:
        return float(np.abs(a - b).sum())

    def _pairwise(self, vectors, centers):
        return np.abs(vectors[:, None, :] - centers[None, :, :]).sum(axis=2)


class CosineDistance(DistanceFunction):
    """1 - cosine similarity. Not a metric."""

    name = "cosine"
    is_metric = False

    def _distance(self, a: np.ndarray, b: np.ndarray) -> float:
        norm_a = np.linalg.norm(a)
        norm_b = np.linalg.norm(b)
        if norm_a < 1e-10 or norm_b < 1e-10:
            return 1.0
        return float(1.0 - np.dot(a, b) / (norm_a * norm_b))

    def _pairwise(self, vectors, centers):
        norm_v = np.linalg.norm(vectors, axis=1)
        norm_c = np.linalg.norm(centers, axis=1)
        norms = np.outer(norm_v, norm_c)
        degenerate = (norm_v[:, None] < 1e-10) | (norm_c[None, :] < 1e-10)
        # Zero vectors have no direction
        sims = (vectors @ centers.T) / np.where(degenerate, 1.0, norms)
        return np.where(degenerate, 1.0, 1.0 - sims)


DISTANCES = {
    cls.name: cls
    for cls in (
        EuclideanDistance,
        SquaredEuclideanDistance,
        ManhattanDistance,
        CosineDistance,
    )
}


def get_distance(name: str) -> DistanceFunction:
    """Instantiate a distance function by its registry name."""
    try:
        return DISTANCES[name]()
    except KeyError:
        raise ConfigurationError(
            f"Unknown distance '{name}'. Choose from: {', '.join(sorted(DISTANCES))}"
        ) from None
