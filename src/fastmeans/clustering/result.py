"""
Result building: final assignment + centers -> ClusteringResult.
"""

from __future__ import annotations

from ..distance import DistanceFunction
from ..storage import PointStore
from .centers import CenterManager
from .models import AssignmentTable, Cluster, ClusteringResult, RunStatistics


def cluster_variance(points: PointStore, member_ids, center, distance: DistanceFunction) -> float:
    """Sum of squared (true-metric) distances of the members to the center."""
    total = 0.0
    for pid in member_ids:
        value = distance.distance(points.get(pid), center)
        total += value if distance.is_squared else value * value
    return total


def build_result(
    points: PointStore,
    assignments: AssignmentTable,
    manager: CenterManager,
    statistics: RunStatistics,
    compute_variance: bool = False,
) -> ClusteringResult:
    """
    Group point ids by cluster index and package them with their centers.

    Membership is derived here, once, from the flat assignment; variance
    distances are added to statistics.distance_computations.
    """
    groups: list[list[int]] = [[] for _ in range(manager.k)]
    flat = {}
    for pid in points.iter_ids():
        cluster = assignments.get(pid)
        groups[cluster].append(pid)
        flat[pid] = cluster

    clusters = []
    for i, members in enumerate(groups):
        center = manager.means[i].copy()
        variance = None
        if compute_variance:
            variance = cluster_variance(points, members, center, manager.distance)
            statistics.distance_computations += len(members)
        clusters.append(Cluster(
            index=i,
            member_ids=frozenset(members),
            center=center,
            variance=variance,
        ))

    return ClusteringResult(clusters=clusters, statistics=statistics, assignments=flat)
