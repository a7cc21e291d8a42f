"""
Assignment passes for sequential k-means.

Four interchangeable strategies share one protocol:

- ElkanBounds: one upper bound and k lower bounds per point.
- HamerlyBounds: one upper bound and one lower bound per point.
- SortMeans: no stored bounds; other centers are visited nearest first
  and the scan stops at twice the distance to the current center.
- BruteForce: no bounds, every distance computed.

Elkan, Hamerly and brute force scan candidate centers in index order
starting from the current assignment and switch only on a strictly
smaller distance; Sort-Means applies the same tie rule explicitly. They
produce the same partition and differ only in how many distances they
compute. Bounds are rounded outward so floating-point error never prunes
a center that is strictly closer.
"""

from __future__ import annotations

from abc import ABC, abstractmethod

import numpy as np

from ..storage import PointStore, make_storage, HINT_HOT, HINT_TEMP
from .centers import CenterManager, round_down, round_up
from .models import AssignmentTable


class AssignmentStrategy(ABC):
    """Common protocol of the sequential assignment passes."""

    name = "strategy"
    requires_metric = False
    needs_separation = False

    def __init__(self, points: PointStore, k: int):
        self.points = points
        self.k = k

    @staticmethod
    def bound_bytes(n: int, k: int) -> int:
        """Scratch memory the bounds of this strategy need."""
        return 0

    def initial_pass(self, manager: CenterManager, assignments: AssignmentTable) -> int:
        """
        Assign every point to its nearest center, computing all distances.

        Ties go to the lowest center index.

        Returns:
            Number of changes (every point)
        """
        for pid in self.points.iter_ids():
            vector = self.points.get(pid)
            dists = np.empty(self.k)
            best = np.inf
            nearest = -1
            for j in range(self.k):
                dists[j] = manager.distance_to(vector, j)
                if dists[j] < best:
                    best = dists[j]
                    nearest = j
            assignments.assign(pid, nearest, vector)
            self._record_initial(pid, nearest, dists)
        return len(self.points)

    def _record_initial(self, point_id: int, nearest: int, dists: np.ndarray) -> None:
        pass

    @abstractmethod
    def assign_pass(self, manager: CenterManager, assignments: AssignmentTable) -> int:
        """
        Reassign points against the current centers.

        Returns:
            Number of points that changed cluster
        """
        pass

    def update_bounds(self, assignments: AssignmentTable, movement: np.ndarray) -> None:
        """Degrade bounds after the centers moved."""

    def reset_point(self, point_id: int, cluster: int) -> None:
        """Point was relocated onto the new center of `cluster` (distance 0)."""

    def destroy(self) -> None:
        """Release bound storage."""


class BruteForce(AssignmentStrategy):
    """Reference pass without pruning: every distance is computed."""

    name = "lloyd"

    def assign_pass(self, manager, assignments):
        changed = 0
        for pid in self.points.iter_ids():
            orig = assignments.get(pid)
            vector = self.points.get(pid)
            cur = orig
            best = manager.distance_to(vector, orig)
            for j in range(self.k):
                if j == orig:
                    continue
                dist = manager.distance_to(vector, j)
                if dist < best:
                    cur = j
                    best = dist
            if cur != orig:
                assignments.move(pid, orig, cur, vector)
                changed += 1
        return changed


class ElkanBounds(AssignmentStrategy):
    """
    Elkan's triangle-inequality pruning.

    upper[x] >= d(x, c[a(x)]) and lower[x][j] <= d(x, c[j]) for every j
    hold at the start of every pass. Needs O(n*k) memory.
    """

    name = "elkan"
    requires_metric = True
    needs_separation = True

    def __init__(self, points, k):
        super().__init__(points, k)
        self.upper = make_storage(points, HINT_TEMP | HINT_HOT, np.inf)
        self.lower = make_storage(points, HINT_TEMP | HINT_HOT, 0.0, shape=(k,))

    @staticmethod
    def bound_bytes(n, k):
        return 8 * n * (k + 1)

    def _record_initial(self, point_id, nearest, dists):
        self.upper.put(point_id, dists[nearest])
        self.lower.put(point_id, dists)

    def assign_pass(self, manager, assignments):
        sep = manager.separation
        half = manager.half_distances
        changed = 0
        for pid in self.points.iter_ids():
            orig = assignments.get(pid)
            u = self.upper.get(pid)
            # Cannot be closer to any other center
            if u <= sep[orig]:
                continue
            recompute_u = True
            vector = self.points.get(pid)
            lower = self.lower.get(pid)
            cur = orig
            for j in range(self.k):
                if j == orig or u <= lower[j] or u <= half[cur, j]:
                    continue
                if recompute_u:
                    # Tighten the upper bound once per point
                    u = manager.distance_to(vector, cur)
                    self.upper.put(pid, u)
                    recompute_u = False
                    if u <= lower[j] or u <= half[cur, j]:
                        continue
                dist = manager.distance_to(vector, j)
                lower[j] = dist
                if dist < u:
                    cur = j
                    u = dist
            if cur != orig:
                self.upper.put(pid, u)
                assignments.move(pid, orig, cur, vector)
                changed += 1
        return changed

    def update_bounds(self, assignments, movement):
        for pid in self.points.iter_ids():
            u = self.upper.get(pid) + movement[assignments.get(pid)]
            self.upper.put(pid, round_up(u, u))
            lower = self.lower.get(pid)
            # Not clamped at zero: a negative lower bound is still valid
            lower[:] = round_down(lower - movement, np.abs(lower) + movement)

    def reset_point(self, point_id, cluster):
        self.upper.put(point_id, 0.0)
        self.lower.get(point_id)[cluster] = 0.0

    def destroy(self):
        self.upper.destroy()
        self.lower.destroy()


class HamerlyBounds(AssignmentStrategy):
    """
    Hamerly's variant: one lower bound on the second-closest center.

    Same pruning idea as Elkan with O(n) memory; when a point cannot be
    pruned, all k distances are computed.
    """

    name = "hamerly"
    requires_metric = True
    needs_separation = True

    def __init__(self, points, k):
        super().__init__(points, k)
        self.upper = make_storage(points, HINT_TEMP | HINT_HOT, np.inf)
        self.lower = make_storage(points, HINT_TEMP | HINT_HOT, 0.0)

    @staticmethod
    def bound_bytes(n, k):
        return 16 * n

    def _record_initial(self, point_id, nearest, dists):
        self.upper.put(point_id, dists[nearest])
        others = np.delete(dists, nearest)
        self.lower.put(point_id, others.min() if len(others) else np.inf)

    def assign_pass(self, manager, assignments):
        sep = manager.separation
        changed = 0
        for pid in self.points.iter_ids():
            orig = assignments.get(pid)
            u = self.upper.get(pid)
            bound = max(sep[orig], self.lower.get(pid))
            if u <= bound:
                continue
            vector = self.points.get(pid)
            u = manager.distance_to(vector, orig)
            self.upper.put(pid, u)
            if u <= bound:
                continue
            cur = orig
            second = np.inf
            for j in range(self.k):
                if j == orig:
                    continue
                dist = manager.distance_to(vector, j)
                if dist < u:
                    second = u
                    cur = j
                    u = dist
                elif dist < second:
                    second = dist
            self.lower.put(pid, second)
            if cur != orig:
                self.upper.put(pid, u)
                assignments.move(pid, orig, cur, vector)
                changed += 1
        return changed

    def update_bounds(self, assignments, movement):
        if self.k > 1:
            farthest = int(np.argmax(movement))
            longest = movement[farthest]
            second_longest = np.delete(movement, farthest).max()
        else:
            farthest, longest, second_longest = 0, 0.0, 0.0
        for pid in self.points.iter_ids():
            a = assignments.get(pid)
            u = self.upper.get(pid) + movement[a]
            self.upper.put(pid, round_up(u, u))
            lower = self.lower.get(pid)
            shift = second_longest if a == farthest else longest
            self.lower.put(pid, round_down(lower - shift, abs(lower) + shift))

    def reset_point(self, point_id, cluster):
        self.upper.put(point_id, 0.0)
        self.lower.put(point_id, 0.0)

    def destroy(self):
        self.upper.destroy()
        self.lower.destroy()


class SortMeans(AssignmentStrategy):
    """
    Sort-Means: visit the other centers in order of distance from the
    assigned one.

    With u = d(x, c[a]), any center with d(c[a], c[j]) >= 2u is at least u
    from x, so the scan stops at the first such center. Keeps no per-point
    state; only the sorted center neighborhoods are rebuilt each pass.
    """

    name = "sort"
    requires_metric = True
    needs_separation = True

    def assign_pass(self, manager, assignments):
        sep = manager.separation
        half = manager.half_distances
        # Other centers of each center, nearest first
        neighbors = [
            [j for j in np.argsort(half[i], kind="stable") if j != i]
            for i in range(self.k)
        ]
        changed = 0
        for pid in self.points.iter_ids():
            orig = assignments.get(pid)
            vector = self.points.get(pid)
            u = manager.distance_to(vector, orig)
            if u <= sep[orig]:
                continue
            cur = orig
            best = u
            for j in neighbors[orig]:
                if u <= half[orig, j]:
                    break
                dist = manager.distance_to(vector, j)
                # Ties keep the current assignment, else the lowest index
                if dist < best or (dist == best and cur != orig and j < cur):
                    cur = j
                    best = dist
            if cur != orig:
                assignments.move(pid, orig, cur, vector)
                changed += 1
        return changed


STRATEGIES = {
    cls.name: cls
    for cls in (ElkanBounds, HamerlyBounds, SortMeans, BruteForce)
}
