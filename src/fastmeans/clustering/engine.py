"""
k-means iteration engine.

Core loop: assign -> update means -> update bounds, until a pass makes no
reassignment or the iteration cap is reached.
"""

from __future__ import annotations

from typing import Optional, Union

import numpy as np

from ..config import (
    KMeansConfig,
    VARIANTS,
    EMPTY_CLUSTER_POLICIES,
    NON_METRIC_POLICIES,
    DEFAULT_MAX_BOUND_MEMORY,
)
from ..distance import DistanceFunction, SquaredEuclideanDistance, get_distance
from ..errors import CapacityError, ConfigurationError
from ..initialization import Initializer, KMeansPlusPlusInitialMeans, get_initializer
from ..logger import Observer, null_observer
from ..storage import PointStore
from .algorithm import STRATEGIES, AssignmentStrategy
from .centers import CenterManager
from .models import AssignmentTable, ClusteringResult, RunStatistics
from .parallel import ParallelExecutor
from .result import build_result


class KMeans:
    """
    Exact k-means with a choice of assignment strategy.

    Variants:
        elkan: k lower bounds per point (default)
        hamerly: one lower bound per point
        sort: centers visited nearest first, no stored bounds
        lloyd: no pruning, sequential
        parallel: no pruning, points partitioned over a worker pool

    All variants share the outer protocol and, given the same initial
    centers, the same final partition.
    """

    def __init__(
        self,
        k: int,
        distance: Optional[DistanceFunction] = None,
        initializer: Optional[Initializer] = None,
        max_iterations: int = 0,
        variant: str = "elkan",
        compute_variance: bool = False,
        n_workers: int = 4,
        empty_cluster: str = "keep",
        non_metric: str = "error",
        max_bound_memory: int = DEFAULT_MAX_BOUND_MEMORY,
        observer: Optional[Observer] = None,
        verbose: bool = False,
    ):
        """
        Initialize the engine.

        Args:
            k: Number of clusters (> 0)
            distance: Distance function (default: squared Euclidean)
            initializer: Initial center strategy (default: k-means++)
            max_iterations: Iteration cap, <= 0 for unbounded
            variant: One of elkan, hamerly, sort, lloyd, parallel
            compute_variance: Compute per-cluster sum of squared distances
            n_workers: Worker count for the parallel variant
            empty_cluster: "keep" the previous center or move it to the "farthest" point
            non_metric: "error" or "fallback" to lloyd for non-metric distances
            max_bound_memory: Byte limit for bound storage
            observer: Callable(event_type, data) receiving run events
            verbose: Print one line per iteration
        """
        self.k = k
        self.distance = distance or SquaredEuclideanDistance()
        self.initializer = initializer or KMeansPlusPlusInitialMeans()
        self.max_iterations = max_iterations
        self.variant = variant
        self.compute_variance = compute_variance
        self.n_workers = n_workers
        self.empty_cluster = empty_cluster
        self.non_metric = non_metric
        self.max_bound_memory = max_bound_memory
        self.observer = observer or null_observer
        self.verbose = verbose
        self._validate()

    @classmethod
    def from_config(
        cls,
        config: KMeansConfig,
        observer: Optional[Observer] = None,
    ) -> "KMeans":
        """Create an engine from a KMeansConfig, resolving collaborators by name."""
        config.validate()
        return cls(
            k=config.k,
            distance=get_distance(config.distance),
            initializer=get_initializer(config.initializer, seed=config.seed),
            max_iterations=config.max_iterations,
            variant=config.variant,
            compute_variance=config.compute_variance,
            n_workers=config.n_workers,
            empty_cluster=config.empty_cluster,
            non_metric=config.non_metric,
            max_bound_memory=config.max_bound_memory,
            observer=observer,
            verbose=config.verbose,
        )

    def _validate(self) -> None:
        if self.k <= 0:
            raise ConfigurationError(f"k must be > 0, got {self.k}")
        if self.variant not in VARIANTS:
            raise ConfigurationError(
                f"Unknown variant '{self.variant}'. Choose from: {', '.join(VARIANTS)}"
            )
        if self.empty_cluster not in EMPTY_CLUSTER_POLICIES:
            raise ConfigurationError(f"Unknown empty_cluster policy '{self.empty_cluster}'")
        if self.non_metric not in NON_METRIC_POLICIES:
            raise ConfigurationError(f"Unknown non_metric policy '{self.non_metric}'")

    def _resolve_variant(self, n: int) -> str:
        """Check data-dependent configuration; return the variant to run."""
        if self.k > n:
            raise ConfigurationError(f"k={self.k} exceeds the number of points n={n}")

        variant = self.variant
        if variant in STRATEGIES and STRATEGIES[variant].requires_metric and not self.distance.is_metric:
            message = (
                f"{variant} k-means requires a metric distance, "
                f"{self.distance!r} is not one"
            )
            if self.non_metric == "error":
                raise ConfigurationError(message)
            self._emit("warning", {"message": message + "; falling back to lloyd"})
            if self.verbose:
                print(f"WARNING: {message}; falling back to lloyd")
            variant = "lloyd"

        if variant in STRATEGIES:
            required = STRATEGIES[variant].bound_bytes(n, self.k)
            if required > self.max_bound_memory:
                raise CapacityError(required, self.max_bound_memory)
        return variant

    def _emit(self, event_type: str, data: dict) -> None:
        self.observer(event_type, data)

    def run(self, data: Union[PointStore, np.ndarray, list]) -> ClusteringResult:
        """
        Cluster the data.

        Args:
            data: PointStore, or an (n, d) array-like of vectors

        Returns:
            ClusteringResult with k clusters (empty result when n == 0)

        Raises:
            ConfigurationError: invalid k, non-metric distance, bound capacity
            DimensionalityError: vectors and centers of different length
        """
        points = data if isinstance(data, PointStore) else PointStore(data)
        n = len(points)
        if n == 0:
            return ClusteringResult(
                clusters=[],
                statistics=RunStatistics(variant=self.variant, converged=True),
            )

        variant = self._resolve_variant(n)

        means = self.initializer.choose_initial_means(points, self.k, self.distance)
        if np.shape(means)[0] != self.k:
            raise ConfigurationError(
                f"{self.initializer!r} returned {np.shape(means)[0]} centers, expected {self.k}"
            )

        statistics = RunStatistics(variant=variant, initializer=repr(self.initializer))
        manager = CenterManager(means, self.distance)
        assignments = AssignmentTable(points, self.k)
        try:
            self._emit("run_start", {
                "variant": variant,
                "k": self.k,
                "n": n,
                "dim": points.dim,
                "distance": repr(self.distance),
                "initializer": statistics.initializer,
                "max_iterations": self.max_iterations,
            })

            if variant == "parallel":
                self._run_parallel(points, manager, assignments, statistics)
            else:
                strategy = STRATEGIES[variant](points, self.k)
                try:
                    self._run_sequential(points, strategy, manager, assignments, statistics)
                finally:
                    strategy.destroy()

            statistics.distance_computations = manager.distance_computations
            result = build_result(
                points, assignments, manager, statistics,
                compute_variance=self.compute_variance,
            )
        finally:
            assignments.destroy()

        self._emit("run_end", {
            "iterations": statistics.iterations,
            "converged": statistics.converged,
            "distance_computations": statistics.distance_computations,
            "cluster_sizes": result.sizes,
        })
        if self.verbose:
            print(f"Converged: {statistics.converged} after {statistics.iterations} iterations, "
                  f"{statistics.distance_computations} distance computations")
        return result

    def _within_cap(self, iteration: int) -> bool:
        return self.max_iterations <= 0 or iteration < self.max_iterations

    def _after_pass(self, iteration, changed, manager, statistics) -> None:
        statistics.reassignments.append(changed)
        self._emit("iteration", {
            "iteration": iteration,
            "reassignments": changed,
            "distance_computations": manager.distance_computations,
        })
        if self.verbose:
            print(f"  Iteration {iteration}: {changed} reassignments, "
                  f"{manager.distance_computations} distance computations")

    def _run_sequential(
        self,
        points: PointStore,
        strategy: AssignmentStrategy,
        manager: CenterManager,
        assignments: AssignmentTable,
        statistics: RunStatistics,
    ) -> None:
        iteration = 0
        while self._within_cap(iteration):
            if iteration == 0:
                changed = strategy.initial_pass(manager, assignments)
            else:
                if strategy.needs_separation:
                    manager.recompute_separation()
                changed = strategy.assign_pass(manager, assignments)
            self._after_pass(iteration, changed, manager, statistics)
            if changed == 0:
                statistics.converged = True
                break
            self._update_means(points, manager, assignments, strategy)
            iteration += 1
        statistics.iterations = iteration

    def _run_parallel(
        self,
        points: PointStore,
        manager: CenterManager,
        assignments: AssignmentTable,
        statistics: RunStatistics,
    ) -> None:
        iteration = 0
        with ParallelExecutor(points, self.n_workers) as executor:
            while self._within_cap(iteration):
                changed, dists = executor.run_pass(manager.means, self.distance, assignments)
                manager.distance_computations += dists
                self._after_pass(iteration, changed, manager, statistics)
                if changed == 0:
                    statistics.converged = True
                    break
                self._update_means(points, manager, assignments, None)
                iteration += 1
        statistics.iterations = iteration

    def _update_means(
        self,
        points: PointStore,
        manager: CenterManager,
        assignments: AssignmentTable,
        strategy: Optional[AssignmentStrategy],
    ) -> None:
        """Recompute means, handle empty clusters, then tighten bounds."""
        new_means = manager.compute_means(assignments)
        relocated = []
        if self.empty_cluster == "farthest":
            relocated = manager.relocate_empty_clusters(points, assignments, new_means)
            if relocated:
                self._emit("warning", {
                    "message": f"Relocated {len(relocated)} empty cluster(s)",
                    "clusters": [cluster for _, cluster in relocated],
                })
        movement = manager.apply_movement(new_means)
        if strategy is not None:
            strategy.update_bounds(assignments, movement)
            for pid, cluster in relocated:
                strategy.reset_point(pid, cluster)
