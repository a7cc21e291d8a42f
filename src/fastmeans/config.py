"""
Configuration for k-means runs.
"""

from dataclasses import dataclass, asdict, fields
from pathlib import Path
from typing import Optional

import yaml

from .errors import ConfigurationError

__all__ = [
    "KMeansConfig",
    "load_config",
    "VARIANTS",
    "EMPTY_CLUSTER_POLICIES",
    "NON_METRIC_POLICIES",
    "DEFAULT_MAX_BOUND_MEMORY",
]

VARIANTS = ("elkan", "hamerly", "sort", "lloyd", "parallel")
EMPTY_CLUSTER_POLICIES = ("keep", "farthest")
NON_METRIC_POLICIES = ("error", "fallback")

# Elkan keeps n*k float64 lower bounds
DEFAULT_MAX_BOUND_MEMORY = 2 * 1024**3


@dataclass
class KMeansConfig:
    """Configuration for a k-means run."""

    # Clustering
    k: int = 2
    max_iterations: int = 0  # 0 = until convergence
    variant: str = "elkan"

    # Collaborators (resolved by name)
    distance: str = "squared_euclidean"
    initializer: str = "kmeans++"
    seed: Optional[int] = None  # Forwarded to the initializer only

    # Parallel executor
    n_workers: int = 4

    # Policies
    empty_cluster: str = "keep"
    non_metric: str = "error"
    max_bound_memory: int = DEFAULT_MAX_BOUND_MEMORY

    # Output
    compute_variance: bool = False
    verbose: bool = False

    def validate(self) -> None:
        """Check values that do not depend on the data."""
        if self.k <= 0:
            raise ConfigurationError(f"k must be > 0, got {self.k}")
        if self.variant not in VARIANTS:
            raise ConfigurationError(
                f"Unknown variant '{self.variant}'. Choose from: {', '.join(VARIANTS)}"
            )
        if self.empty_cluster not in EMPTY_CLUSTER_POLICIES:
            raise ConfigurationError(
                f"Unknown empty_cluster policy '{self.empty_cluster}'. "
                f"Choose from: {', '.join(EMPTY_CLUSTER_POLICIES)}"
            )
        if self.non_metric not in NON_METRIC_POLICIES:
            raise ConfigurationError(
                f"Unknown non_metric policy '{self.non_metric}'. "
                f"Choose from: {', '.join(NON_METRIC_POLICIES)}"
            )
        if self.n_workers < 1:
            raise ConfigurationError(f"n_workers must be >= 1, got {self.n_workers}")

    def to_dict(self) -> dict:
        """Convert to JSON-serializable dict."""
        return asdict(self)

    @classmethod
    def from_dict(cls, data: dict) -> "KMeansConfig":
        """Create from dict, filtering out unknown keys."""
        valid_keys = {f.name for f in fields(cls)}
        filtered = {k: v for k, v in data.items() if k in valid_keys}
        return cls(**filtered)


def load_config(path: Path, **overrides) -> KMeansConfig:
    """
    Load a KMeansConfig from a YAML file.

    Args:
        path: YAML file with a mapping of config fields
        **overrides: Field values that win over the file (None values ignored)

    Returns:
        Validated KMeansConfig
    """
    path = Path(path)
    if not path.exists():
        raise FileNotFoundError(f"No config file at {path}")

    with open(path) as f:
        data = yaml.safe_load(f) or {}

    if not isinstance(data, dict):
        raise ConfigurationError(f"{path} must contain a mapping, got {type(data).__name__}")

    data.update({k: v for k, v in overrides.items() if v is not None})
    config = KMeansConfig.from_dict(data)
    config.validate()
    return config
