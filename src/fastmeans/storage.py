"""
Point and scratch storage for the clustering engine.

PointStore is the read-only source of vectors keyed by point id.
Scratch stores (assignments, bounds) are created with make_storage and a
lifetime hint; the engine owns them and calls destroy() when a run ends.

Storage choice: a dense numpy array when ids are the contiguous range
0..n-1 and the store is hot, a dict keyed by id otherwise.
"""

from __future__ import annotations

from abc import ABC, abstractmethod
from typing import Iterable, Iterator, Optional, Sequence

import numpy as np

__all__ = [
    "PointStore",
    "DenseStore",
    "HashStore",
    "make_storage",
    "HINT_HOT",
    "HINT_TEMP",
    "HINT_DB",
]

# Lifetime / access hints (combine with |)
HINT_HOT = 1    # accessed in the inner loop
HINT_TEMP = 2   # released when the run ends
HINT_DB = 4     # outlives the run


class PointStore:
    """
    Read-only vector storage with stable point ids.

    Vectors are copied on construction and marked non-writeable, so the
    engine can hand out row views without copying.
    """

    def __init__(self, vectors, ids: Optional[Sequence[int]] = None):
        """
        Initialize PointStore.

        Args:
            vectors: Array-like of shape (n, d)
            ids: Optional point ids (default: 0..n-1), must be unique
        """
        data = np.array(vectors, dtype=np.float64)
        if data.size == 0:
            dim = data.shape[1] if data.ndim == 2 else 0
            data = data.reshape(0, dim)
        if data.ndim != 2:
            raise ValueError(f"vectors must be 2-D (n, d), got shape {data.shape}")
        data.flags.writeable = False
        self._data = data

        n = data.shape[0]
        if ids is None:
            self._ids = list(range(n))
            self._rows: Optional[dict[int, int]] = None
        else:
            self._ids = [int(i) for i in ids]
            if len(self._ids) != n:
                raise ValueError(f"Got {len(self._ids)} ids for {n} vectors")
            self._rows = {pid: row for row, pid in enumerate(self._ids)}
            if len(self._rows) != n:
                raise ValueError("Point ids must be unique")
            if self._ids == list(range(n)):
                self._rows = None

    @property
    def ids(self) -> list[int]:
        return list(self._ids)

    @property
    def dim(self) -> int:
        return self._data.shape[1]

    @property
    def vectors(self) -> np.ndarray:
        """All vectors as a read-only (n, d) array, in id order."""
        return self._data

    @property
    def contiguous(self) -> bool:
        """True when ids are exactly 0..n-1."""
        return self._rows is None

    def get(self, point_id: int) -> np.ndarray:
        """Vector for a point id (read-only view)."""
        if self._rows is None:
            return self._data[point_id]
        return self._data[self._rows[point_id]]

    def rows(self, point_ids: Sequence[int]) -> np.ndarray:
        """Vectors of several points as one (m, d) array, in the given order."""
        if self._rows is None:
            return self._data[list(point_ids)]
        return self._data[[self._rows[pid] for pid in point_ids]]

    def iter_ids(self) -> Iterator[int]:
        return iter(self._ids)

    def __len__(self) -> int:
        return len(self._ids)

    def __repr__(self) -> str:
        return f"PointStore(n={len(self)}, dim={self.dim})"


class _ScratchStore(ABC):
    """Shared lifecycle for scratch stores."""

    def __init__(self):
        self._destroyed = False

    def _check(self) -> None:
        if self._destroyed:
            raise RuntimeError(f"{self.__class__.__name__} used after destroy()")

    @property
    def destroyed(self) -> bool:
        return self._destroyed

    def destroy(self) -> None:
        """Release storage. Idempotent."""
        self._release()
        self._destroyed = True

    @abstractmethod
    def get(self, point_id: int):
        pass

    @abstractmethod
    def put(self, point_id: int, value) -> None:
        pass

    @abstractmethod
    def _release(self) -> None:
        pass


class DenseStore(_ScratchStore):
    """Scratch store backed by a numpy array indexed by point id (ids 0..n-1)."""

    def __init__(self, size: int, default, shape: tuple = (), dtype=np.float64):
        super().__init__()
        self._data = np.full((size,) + tuple(shape), default, dtype=dtype)

    def get(self, point_id: int):
        """Stored value; for array-valued stores a mutable row view."""
        self._check()
        return self._data[point_id]

    def put(self, point_id: int, value) -> None:
        self._check()
        self._data[point_id] = value

    def _release(self) -> None:
        self._data = None


class HashStore(_ScratchStore):
    """Scratch store backed by a dict keyed by point id."""

    def __init__(self, ids: Iterable[int], default, shape: tuple = (), dtype=np.float64):
        super().__init__()
        if shape:
            self._data = {pid: np.full(shape, default, dtype=dtype) for pid in ids}
        else:
            self._data = {pid: dtype(default) if callable(dtype) else default for pid in ids}

    def get(self, point_id: int):
        self._check()
        return self._data[point_id]

    def put(self, point_id: int, value) -> None:
        self._check()
        if point_id not in self._data:
            raise KeyError(point_id)
        self._data[point_id] = value

    def _release(self) -> None:
        self._data = None


def make_storage(
    points: PointStore,
    hints: int,
    default,
    shape: tuple = (),
    dtype=np.float64,
):
    """
    Create a scratch store with one entry per point.

    Args:
        points: PointStore whose ids key the storage
        hints: Combination of HINT_HOT / HINT_TEMP / HINT_DB
        default: Initial value of every entry
        shape: Per-entry shape (() for scalars)
        dtype: numpy dtype of the entries

    Returns:
        DenseStore when ids are 0..n-1 and HINT_HOT is set, else HashStore
    """
    if points.contiguous and hints & HINT_HOT:
        return DenseStore(len(points), default, shape=shape, dtype=dtype)
    return HashStore(points.iter_ids(), default, shape=shape, dtype=dtype)
