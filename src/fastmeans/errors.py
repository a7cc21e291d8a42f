"""
Exceptions raised by the clustering engine.

Every error is synchronous and surfaced to the caller of the run; nothing
is retried.
"""

__all__ = [
    "FastMeansError",
    "ConfigurationError",
    "CapacityError",
    "DimensionalityError",
]


class FastMeansError(Exception):
    """Base class for all fastmeans errors."""


class ConfigurationError(FastMeansError, ValueError):
    """Invalid run configuration, reported before any iteration runs."""


class CapacityError(ConfigurationError):
    """Bound storage for the requested run would exceed the memory limit."""

    def __init__(self, required_bytes: int, limit_bytes: int):
        self.required_bytes = required_bytes
        self.limit_bytes = limit_bytes
        super().__init__(
            f"Bound storage needs {required_bytes} bytes, "
            f"limit is {limit_bytes} (use variant='hamerly' or raise max_bound_memory)"
        )


class DimensionalityError(FastMeansError, ValueError):
    """Two vectors of different length were passed to a distance function."""

    def __init__(self, dim_a: int, dim_b: int):
        self.dim_a = dim_a
        self.dim_b = dim_b
        super().__init__(f"Dimensionality mismatch: {dim_a} != {dim_b}")
