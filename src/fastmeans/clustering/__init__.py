"""
Exact k-means clustering with triangle-inequality pruning.

Sequential engines (Elkan, Hamerly, Sort-Means, brute force) and a data-parallel
Lloyd executor share one iteration protocol and produce the same partition.
"""

from .models import (
    AssignmentTable,
    Cluster,
    ClusteringResult,
    RunStatistics,
    UNASSIGNED,
)
from .centers import CenterManager
from .algorithm import (
    AssignmentStrategy,
    BruteForce,
    ElkanBounds,
    HamerlyBounds,
    SortMeans,
    STRATEGIES,
)
from .parallel import KMeansMapper, ParallelExecutor, partition_ids
from .result import build_result, cluster_variance
from .engine import KMeans
from .manager import ResultStore

__all__ = [
    # Models
    "AssignmentTable",
    "Cluster",
    "ClusteringResult",
    "RunStatistics",
    "UNASSIGNED",
    # Centers
    "CenterManager",
    # Assignment strategies
    "AssignmentStrategy",
    "BruteForce",
    "ElkanBounds",
    "HamerlyBounds",
    "SortMeans",
    "STRATEGIES",
    # Parallel
    "KMeansMapper",
    "ParallelExecutor",
    "partition_ids",
    # Result
    "build_result",
    "cluster_variance",
    # Engine
    "KMeans",
    # Persistence
    "ResultStore",
]
