"""
Data models for k-means runs.

Defines the assignment store used during a run and the result types
handed back to the caller.
"""

from __future__ import annotations

from dataclasses import dataclass, field, asdict
from typing import Optional

import numpy as np

from ..storage import PointStore, make_storage, HINT_HOT, HINT_TEMP

# Assignment of a point not yet seen by the initial pass
UNASSIGNED = -1


class AssignmentTable:
    """
    Tracks point -> cluster assignments plus per-cluster running sums.

    Invariant: sums[c] == sum of vectors of all points assigned to c, and
    sizes[c] is their count. Both are maintained incrementally by assign()
    and move(); only the parallel executor replaces them wholesale.
    """

    def __init__(self, points: PointStore, k: int):
        self.points = points
        self.k = k
        self.store = make_storage(points, HINT_TEMP | HINT_HOT, UNASSIGNED, dtype=np.int64)
        self.sums = np.zeros((k, points.dim), dtype=np.float64)
        self.sizes = np.zeros(k, dtype=np.int64)

    def get(self, point_id: int) -> int:
        return int(self.store.get(point_id))

    def assign(self, point_id: int, cluster: int, vector: np.ndarray) -> None:
        """First assignment of a point: add it to the cluster sum."""
        self.store.put(point_id, cluster)
        self.sums[cluster] += vector
        self.sizes[cluster] += 1

    def move(self, point_id: int, old: int, new: int, vector: np.ndarray) -> None:
        """Reassign a point, moving it between the two running sums."""
        self.store.put(point_id, new)
        self.sums[new] += vector
        self.sums[old] -= vector
        self.sizes[new] += 1
        self.sizes[old] -= 1
        if self.sizes[old] == 0:
            # Drop rounding residue of the incremental updates
            self.sums[old] = 0.0

    def put_label(self, point_id: int, cluster: int) -> None:
        """Overwrite a label without touching the sums (caller rebuilds them)."""
        self.store.put(point_id, cluster)

    def replace_sums(self, sums: np.ndarray, sizes: np.ndarray) -> None:
        """Install sums and sizes reduced from partial accumulators."""
        self.sums = np.array(sums, dtype=np.float64)
        self.sizes = np.array(sizes, dtype=np.int64)

    def labels(self) -> list[int]:
        """Cluster index of every point, in point id order."""
        return [self.get(pid) for pid in self.points.iter_ids()]

    def destroy(self) -> None:
        self.store.destroy()


@dataclass
class Cluster:
    """One cluster of the final partition."""

    index: int                       # Position in the result, 0..k-1
    member_ids: frozenset            # Point ids assigned to this cluster
    center: np.ndarray               # Final center
    variance: Optional[float] = None  # Sum of squared distances to center

    @property
    def size(self) -> int:
        return len(self.member_ids)

    def to_meta_dict(self) -> dict:
        """Convert to dict for JSON serialization (excludes center)."""
        return {
            "index": self.index,
            "size": self.size,
            "variance": self.variance,
        }

    @classmethod
    def from_meta_dict(cls, data: dict, center: np.ndarray, member_ids) -> Cluster:
        """Create from metadata dict + center + member ids."""
        return cls(
            index=data["index"],
            member_ids=frozenset(member_ids),
            center=np.asarray(center, dtype=np.float64),
            variance=data.get("variance"),
        )


@dataclass
class RunStatistics:
    """Summary statistics of one run."""

    variant: str
    initializer: str = ""
    iterations: int = 0
    distance_computations: int = 0
    reassignments: list[int] = field(default_factory=list)  # Per pass
    converged: bool = False  # Stopped on zero reassignments, not the cap

    def to_dict(self) -> dict:
        return asdict(self)

    @classmethod
    def from_dict(cls, data: dict) -> RunStatistics:
        return cls(**data)


@dataclass
class ClusteringResult:
    """Final partition: ordered clusters plus run statistics."""

    clusters: list[Cluster]
    statistics: RunStatistics
    assignments: dict[int, int] = field(default_factory=dict)  # point id -> cluster index

    @property
    def centers(self) -> np.ndarray:
        if not self.clusters:
            return np.empty((0, 0), dtype=np.float64)
        return np.vstack([c.center for c in self.clusters])

    @property
    def sizes(self) -> list[int]:
        return [c.size for c in self.clusters]

    @property
    def iterations(self) -> int:
        return self.statistics.iterations

    @property
    def distance_computations(self) -> int:
        return self.statistics.distance_computations

    def __len__(self) -> int:
        return len(self.clusters)
