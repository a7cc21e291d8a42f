"""
Center management: current means, center-to-center separation, movement.

All values produced here are in the true metric (square roots taken for
squared distance functions), ready for triangle-inequality arithmetic.
"""

from __future__ import annotations

import numpy as np

from ..distance import DistanceFunction
from ..storage import PointStore
from .models import AssignmentTable

# Relative error allowed for distances computed in floating point
ROUNDING_SLACK = 64 * np.finfo(np.float64).eps


def _slack(magnitude):
    magnitude = np.abs(magnitude)
    return np.where(np.isfinite(magnitude), magnitude * ROUNDING_SLACK, 0.0)


def round_down(value, magnitude):
    """
    A float safely below value.

    magnitude is the size of the operands value was computed from; the
    result stays a valid lower bound despite rounding in those operands.
    Infinite values are returned unchanged.
    """
    lowered = np.nextafter(value - _slack(magnitude), -np.inf)
    return np.where(np.isfinite(value), lowered, value)[()]


def round_up(value, magnitude):
    """A float safely above value (see round_down)."""
    raised = np.nextafter(value + _slack(magnitude), np.inf)
    return np.where(np.isfinite(value), raised, value)[()]


class CenterManager:
    """
    Owns the current centers of a run and counts every distance computed.

    Centers are replaced as a whole by apply_movement(); the array handed
    out by `means` is never modified in place afterwards.
    """

    def __init__(self, means: np.ndarray, distance: DistanceFunction):
        self.means = np.array(means, dtype=np.float64)
        self.distance = distance
        self.k = self.means.shape[0]
        self.separation = np.zeros(self.k)
        self.half_distances = np.zeros((self.k, self.k))
        self.distance_computations = 0

    def distance_to(self, vector: np.ndarray, cluster: int) -> float:
        """True-metric distance from a vector to one center (counted)."""
        self.distance_computations += 1
        return self.distance.to_metric(self.distance.distance(vector, self.means[cluster]))

    def _metric(self, a: np.ndarray, b: np.ndarray) -> float:
        self.distance_computations += 1
        return self.distance.to_metric(self.distance.distance(a, b))

    def recompute_separation(self) -> None:
        """
        Recompute half center-to-center distances and per-center separation.

        separation[i] = 0.5 * min_{j != i} d(c_i, c_j); +inf when k == 1.
        Both are rounded down so they never exceed the exact values.
        """
        k = self.k
        half = np.zeros((k, k))
        for i in range(k):
            for j in range(i + 1, k):
                value = 0.5 * self._metric(self.means[i], self.means[j])
                half[i, j] = half[j, i] = round_down(value, value)
        sep = np.full(k, np.inf)
        for i in range(k):
            for j in range(k):
                if i != j and half[i, j] < sep[i]:
                    sep[i] = half[i, j]
        self.half_distances = half
        self.separation = sep

    def compute_means(self, assignments: AssignmentTable) -> np.ndarray:
        """
        New means from the running sums.

        An empty cluster keeps its previous center.
        """
        new_means = self.means.copy()
        for i in range(self.k):
            size = assignments.sizes[i]
            if size > 0:
                new_means[i] = assignments.sums[i] / size
        return new_means

    def relocate_empty_clusters(
        self,
        points: PointStore,
        assignments: AssignmentTable,
        new_means: np.ndarray,
    ) -> list[tuple[int, int]]:
        """
        Move each empty cluster onto the point farthest from its own center.

        Candidates are taken in decreasing distance to their (new) center,
        ties by point order; a donor cluster always keeps at least one
        member. Reassigns the chosen points and rewrites new_means in place
        for every cluster whose membership changed.

        Returns:
            List of (point_id, new_cluster) for every relocated point
        """
        empty = [c for c in range(self.k) if assignments.sizes[c] == 0]
        if not empty:
            return []

        ids = points.ids
        dists = np.empty(len(ids))
        for row, pid in enumerate(ids):
            dists[row] = self._metric(points.get(pid), new_means[assignments.get(pid)])
        order = np.argsort(-dists, kind="stable")

        relocated = []
        touched = set()
        cursor = 0
        for cluster in empty:
            while cursor < len(order):
                pid = ids[order[cursor]]
                cursor += 1
                donor = assignments.get(pid)
                if assignments.sizes[donor] > 1:
                    assignments.move(pid, donor, cluster, points.get(pid))
                    relocated.append((pid, cluster))
                    touched.update((donor, cluster))
                    break
            else:
                # No donor left; the cluster keeps its previous center
                break

        for c in touched:
            new_means[c] = assignments.sums[c] / assignments.sizes[c]
        return relocated

    def apply_movement(self, new_means: np.ndarray) -> np.ndarray:
        """
        Replace the centers and return how far each one moved.

        Returns:
            movement[0..k), nonnegative
        """
        movement = np.array([
            self._metric(self.means[i], new_means[i]) for i in range(self.k)
        ])
        self.means = np.array(new_means, dtype=np.float64)
        return movement
