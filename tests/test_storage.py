"""
Test point and scratch storage.
"""

import numpy as np
import pytest

from fastmeans.storage import (
    PointStore,
    DenseStore,
    HashStore,
    make_storage,
    HINT_HOT,
    HINT_TEMP,
    HINT_DB,
    _ScratchStore,
)


def test_point_store_default_ids():
    """Default ids are 0..n-1 and vectors are read-only."""
    print("Testing PointStore with default ids...")

    points = PointStore([[1.0, 2.0], [3.0, 4.0], [5.0, 6.0]])
    assert len(points) == 3
    assert points.dim == 2
    assert points.ids == [0, 1, 2]
    assert points.contiguous
    assert np.array_equal(points.get(1), [3.0, 4.0])
    print("  ✓ Ids, dim and lookup")

    with pytest.raises(ValueError):
        points.get(0)[0] = 99.0
    print("  ✓ Vectors are read-only")

    print("✓ Default id tests passed\n")


def test_point_store_custom_ids():
    """Explicit ids are looked up by value."""
    print("Testing PointStore with custom ids...")

    points = PointStore([[1.0], [2.0], [3.0]], ids=[10, 20, 30])
    assert not points.contiguous
    assert list(points.iter_ids()) == [10, 20, 30]
    assert points.get(20)[0] == 2.0
    print("  ✓ Lookup by id")

    with pytest.raises(ValueError):
        PointStore([[1.0], [2.0]], ids=[5, 5])
    print("  ✓ Duplicate ids rejected")

    with pytest.raises(ValueError):
        PointStore([[1.0], [2.0]], ids=[1])
    print("  ✓ Id count mismatch rejected")

    # Ids given explicitly as 0..n-1 are still contiguous
    assert PointStore([[1.0], [2.0]], ids=[0, 1]).contiguous
    print("  ✓ Explicit 0..n-1 ids are contiguous")

    print("✓ Custom id tests passed\n")


def test_point_store_shapes():
    """Empty input and non-2-D input."""
    print("Testing PointStore shapes...")

    empty = PointStore(np.empty((0, 3)))
    assert len(empty) == 0 and empty.dim == 3
    assert len(PointStore([])) == 0
    print("  ✓ Empty stores")

    with pytest.raises(ValueError):
        PointStore([1.0, 2.0, 3.0])
    print("  ✓ 1-D input rejected")

    print("✓ Shape tests passed\n")


def test_make_storage_choice():
    """Dense for hot contiguous ids, hash otherwise."""
    print("Testing make_storage...")

    contiguous = PointStore(np.zeros((4, 2)))
    sparse = PointStore(np.zeros((4, 2)), ids=[3, 7, 11, 19])

    assert isinstance(make_storage(contiguous, HINT_TEMP | HINT_HOT, 0.0), DenseStore)
    assert isinstance(make_storage(contiguous, HINT_DB, 0.0), HashStore)
    assert isinstance(make_storage(sparse, HINT_TEMP | HINT_HOT, 0.0), HashStore)
    print("  ✓ Storage chosen by ids and hints")

    for points, pid in ((contiguous, 0), (sparse, 7)):
        store = make_storage(points, HINT_HOT, 0.0, shape=(3,))
        row = store.get(pid)
        assert row.shape == (3,)
        # Rows are mutable in place
        row[1] = 5.0
        assert store.get(pid)[1] == 5.0
    print("  ✓ Array-valued entries are mutable rows")

    print("✓ make_storage tests passed\n")


def test_scratch_store_lifecycle():
    """put/get and destroy for both backends."""
    print("Testing scratch store lifecycle...")

    points = PointStore(np.zeros((3, 1)), ids=[1, 2, 3])
    for store in (DenseStore(4, np.inf), HashStore([1, 2, 3], np.inf)):
        store.put(1, 2.5)
        assert store.get(1) == 2.5
        assert store.get(2) == np.inf
        assert not store.destroyed

        store.destroy()
        assert store.destroyed
        with pytest.raises(RuntimeError):
            store.get(1)
        # Idempotent
        store.destroy()
        print(f"  ✓ {store.__class__.__name__}")

    hashed = make_storage(points, HINT_TEMP, -1, dtype=np.int64)
    with pytest.raises(KeyError):
        hashed.put(99, 0)
    print("  ✓ HashStore rejects unknown ids")

    with pytest.raises(TypeError):
        _ScratchStore()
    print("  ✓ Base store is abstract")

    print("✓ Lifecycle tests passed\n")


def test_rows():
    """rows() gathers vectors in the requested order."""
    print("Testing PointStore.rows...")

    dense = PointStore([[0.0], [1.0], [2.0]])
    assert np.array_equal(dense.rows([2, 0]), [[2.0], [0.0]])

    sparse = PointStore([[0.0], [1.0], [2.0]], ids=[30, 10, 20])
    assert np.array_equal(sparse.rows([10, 20, 30]), [[1.0], [2.0], [0.0]])
    print("  ✓ Dense and sparse ids")

    print("✓ rows tests passed\n")
