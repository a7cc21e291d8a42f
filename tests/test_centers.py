"""
Test CenterManager: separation, movement, means and empty clusters.
"""

import math

import numpy as np

from fastmeans.clustering import AssignmentTable, CenterManager
from fastmeans.clustering.centers import round_down, round_up
from fastmeans.distance import EuclideanDistance, SquaredEuclideanDistance
from fastmeans.storage import PointStore


def test_separation():
    """Half center distances and nearest-other-center separation."""
    print("Testing separation...")

    means = [[0.0], [2.0], [10.0]]
    manager = CenterManager(means, EuclideanDistance())
    manager.recompute_separation()

    half = manager.half_distances
    assert np.allclose([half[0, 1], half[1, 2], half[2, 0]], [1.0, 4.0, 5.0])
    # Rounded down, never above the exact half distance
    assert half[0, 1] < 1.0 and half[1, 2] < 4.0 and half[2, 0] < 5.0
    assert np.array_equal(half, half.T)
    assert np.allclose(manager.separation, [1.0, 1.0, 4.0])
    assert np.all(manager.separation <= [1.0, 1.0, 4.0])
    assert manager.distance_computations == 3
    print("  ✓ Separation ~[1, 1, 4] rounded down, 3 distances counted")

    squared = CenterManager(means, SquaredEuclideanDistance())
    squared.recompute_separation()
    assert np.array_equal(squared.separation, manager.separation)
    print("  ✓ Squared distances converted before halving")

    single = CenterManager([[1.0, 1.0]], EuclideanDistance())
    single.recompute_separation()
    assert single.separation[0] == math.inf
    print("  ✓ k == 1 gives infinite separation")

    print("✓ Separation tests passed\n")


def test_apply_movement():
    """Movement is the true-metric distance between old and new centers."""
    print("Testing apply_movement...")

    manager = CenterManager([[0.0, 0.0], [1.0, 1.0]], SquaredEuclideanDistance())
    old = manager.means
    movement = manager.apply_movement(np.array([[3.0, 4.0], [1.0, 1.0]]))

    assert np.array_equal(movement, [5.0, 0.0])
    assert np.array_equal(manager.means, [[3.0, 4.0], [1.0, 1.0]])
    # Previous array untouched
    assert np.array_equal(old, [[0.0, 0.0], [1.0, 1.0]])
    assert manager.distance_computations == 2
    print("  ✓ Movement [5, 0], centers replaced")

    print("✓ Movement tests passed\n")


def test_compute_means_keeps_empty_center():
    """An empty cluster keeps its previous center."""
    print("Testing compute_means...")

    points = PointStore([[0.0], [2.0], [4.0]])
    table = AssignmentTable(points, 3)
    for pid in points.iter_ids():
        table.assign(pid, 0 if pid < 2 else 1, points.get(pid))

    manager = CenterManager([[0.0], [5.0], [-7.0]], EuclideanDistance())
    new_means = manager.compute_means(table)

    assert np.array_equal(new_means, [[1.0], [4.0], [-7.0]])
    assert np.array_equal(manager.means, [[0.0], [5.0], [-7.0]])
    print("  ✓ Means [1, 4], empty cluster stays at -7")

    table.destroy()
    print("✓ compute_means tests passed\n")


def test_relocate_empty_clusters():
    """The farthest point of a multi-member cluster seeds the empty one."""
    print("Testing relocate_empty_clusters...")

    points = PointStore([[0.0], [1.0], [10.0]])
    table = AssignmentTable(points, 2)
    for pid in points.iter_ids():
        table.assign(pid, 0, points.get(pid))

    manager = CenterManager([[0.0], [100.0]], EuclideanDistance())
    new_means = manager.compute_means(table)
    relocated = manager.relocate_empty_clusters(points, table, new_means)

    assert relocated == [(2, 1)]
    assert table.get(2) == 1
    assert list(table.sizes) == [2, 1]
    assert np.array_equal(new_means, [[0.5], [10.0]])
    print("  ✓ Point 10 moved to the empty cluster")

    # Nothing to do once every cluster has members
    assert manager.relocate_empty_clusters(points, table, new_means) == []
    print("  ✓ No-op without empty clusters")

    table.destroy()
    print("✓ Relocation tests passed\n")


def test_relocate_needs_donor():
    """Singleton clusters are never emptied to fill another."""
    print("Testing relocation without donors...")

    points = PointStore([[0.0], [5.0]])
    table = AssignmentTable(points, 3)
    table.assign(0, 0, points.get(0))
    table.assign(1, 1, points.get(1))

    manager = CenterManager([[0.0], [5.0], [9.0]], EuclideanDistance())
    new_means = manager.compute_means(table)
    assert manager.relocate_empty_clusters(points, table, new_means) == []
    assert np.array_equal(new_means[2], [9.0])
    print("  ✓ Empty cluster keeps its center")

    table.destroy()
    print("✓ Donor tests passed\n")


def test_outward_rounding():
    """round_down and round_up bracket the value and leave infinities alone."""
    print("Testing outward rounding...")

    for value in (0.0, 1e-300, 0.5, 3.0, 1e12):
        assert round_down(value, value) < value < round_up(value, value)
    print("  ✓ Strictly below and above finite values")

    assert round_down(np.inf, np.inf) == np.inf
    assert round_up(-np.inf, np.inf) == -np.inf
    print("  ✓ Infinite values unchanged")

    values = np.array([1.0, 2.0])
    assert np.all(round_down(values, values) < values)
    print("  ✓ Works elementwise on arrays")

    print("✓ Rounding tests passed\n")
