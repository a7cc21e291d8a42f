"""
fastmeans - exact k-means accelerated by triangle-inequality bounds.
"""

from .config import KMeansConfig, load_config
from .errors import (
    FastMeansError,
    ConfigurationError,
    CapacityError,
    DimensionalityError,
)
from .storage import PointStore
from .clustering import KMeans, ClusteringResult, Cluster, ResultStore
from .logger import RunLogger

__version__ = "0.1.0"

__all__ = [
    "KMeans",
    "KMeansConfig",
    "load_config",
    "ClusteringResult",
    "Cluster",
    "ResultStore",
    "PointStore",
    "RunLogger",
    "FastMeansError",
    "ConfigurationError",
    "CapacityError",
    "DimensionalityError",
]
