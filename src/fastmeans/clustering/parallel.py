"""
Data-parallel assignment pass (Lloyd without pruning).

Points are split into fixed, disjoint partitions. Each partition is
processed by a KMeansMapper that owns a private copy of the centers and
private accumulators; the executor merges the partial results only after
every mapper has finished (the reduction barrier).

Mappers work on whole partitions with numpy (DistanceFunction.pairwise),
which releases the GIL, so the worker threads run concurrently. A
distance function without a vectorized form falls back to a per-pair
Python loop and gains little from more workers.
"""

from __future__ import annotations

from concurrent.futures import ThreadPoolExecutor
from dataclasses import dataclass
from typing import Optional

import numpy as np

from ..distance import DistanceFunction
from ..storage import PointStore
from .models import AssignmentTable


@dataclass
class MapperResult:
    """Partial result of one partition."""

    ids: list[int]
    labels: np.ndarray  # (m,) cluster index per id
    sums: np.ndarray    # (k, d) partial cluster sums
    sizes: np.ndarray   # (k,) partial cluster sizes
    changed: int
    distance_computations: int


class KMeansMapper:
    """Nearest-center assignment of one partition against fixed centers."""

    def __init__(
        self,
        ids: list[int],
        vectors: np.ndarray,
        means: np.ndarray,
        distance: DistanceFunction,
        previous,
    ):
        """
        Args:
            ids: Point ids of the partition
            vectors: (m, d) vectors of those ids, same order
            means: Current centers (copied)
            distance: Distance function of the run
            previous: Current cluster index per id
        """
        self.ids = ids
        self.vectors = vectors
        self.means = np.array(means, dtype=np.float64)  # Private copy
        self.distance = distance
        self.previous = np.asarray(previous, dtype=np.int64)

    def run(self) -> MapperResult:
        k, dim = self.means.shape
        dists = self.distance.to_metric(self.distance.pairwise(self.vectors, self.means))
        # argmin takes the lowest index among ties
        labels = np.argmin(dists, axis=1)
        sizes = np.bincount(labels, minlength=k).astype(np.int64)
        sums = np.zeros((k, dim), dtype=np.float64)
        np.add.at(sums, labels, self.vectors)
        return MapperResult(
            ids=self.ids,
            labels=labels,
            sums=sums,
            sizes=sizes,
            changed=int(np.count_nonzero(labels != self.previous)),
            distance_computations=len(self.ids) * k,
        )


def partition_ids(ids: list[int], n_parts: int) -> list[list[int]]:
    """Split ids into at most n_parts contiguous, non-empty blocks."""
    n_parts = max(1, min(n_parts, len(ids)))
    bounds = np.linspace(0, len(ids), n_parts + 1).astype(int)
    return [ids[bounds[i]:bounds[i + 1]] for i in range(n_parts)]


class ParallelExecutor:
    """
    Runs one assignment pass over all partitions on a fixed worker pool.

    Use as a context manager, or call close() when the run ends.
    """

    def __init__(self, points: PointStore, n_workers: int = 4):
        self.points = points
        self.n_workers = max(1, n_workers)
        self.partitions = partition_ids(points.ids, self.n_workers)
        # Vector blocks, gathered once per run
        self.blocks = [points.rows(part) for part in self.partitions]
        self._executor: Optional[ThreadPoolExecutor] = ThreadPoolExecutor(
            max_workers=self.n_workers
        )

    def run_pass(
        self,
        means: np.ndarray,
        distance: DistanceFunction,
        assignments: AssignmentTable,
    ) -> tuple[int, int]:
        """
        Assign every point to its nearest center and rebuild the cluster sums.

        Blocks until all partitions are done; a failure in any mapper is
        re-raised here. Labels and sums in `assignments` are written only
        after the barrier.

        Returns:
            (changed, distance_computations)
        """
        if self._executor is None:
            raise RuntimeError("ParallelExecutor is closed")

        mappers = [
            KMeansMapper(
                part,
                block,
                means,
                distance,
                [assignments.get(pid) for pid in part],
            )
            for part, block in zip(self.partitions, self.blocks)
        ]
        futures = [self._executor.submit(mapper.run) for mapper in mappers]
        # Barrier: wait for every partition
        results = [future.result() for future in futures]

        k, dim = np.shape(means)
        sums = np.zeros((k, dim), dtype=np.float64)
        sizes = np.zeros(k, dtype=np.int64)
        changed = 0
        dists = 0
        for result in results:
            sums += result.sums
            sizes += result.sizes
            changed += result.changed
            dists += result.distance_computations
            for pid, label in zip(result.ids, result.labels):
                assignments.put_label(pid, int(label))
        assignments.replace_sums(sums, sizes)
        return changed, dists

    def close(self) -> None:
        if self._executor is not None:
            self._executor.shutdown(wait=True)
            self._executor = None

    def __enter__(self):
        return self

    def __exit__(self, exc_type, exc_val, exc_tb):
        self.close()
