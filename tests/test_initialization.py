"""
Test initial center strategies.
"""

import numpy as np
import pytest

from fastmeans.distance import SquaredEuclideanDistance
from fastmeans.errors import ConfigurationError
from fastmeans.initialization import (
    FirstKInitialMeans,
    KMeansPlusPlusInitialMeans,
    PredefinedInitialMeans,
    RandomlyChosenInitialMeans,
    get_initializer,
)
from fastmeans.storage import PointStore


def _points():
    rng = np.random.default_rng(17)
    return PointStore(rng.normal(size=(40, 3)))


def test_data_point_initializers():
    """Random, first-k and k-means++ pick distinct data points."""
    print("Testing data point initializers...")

    points = _points()
    rows = {tuple(v) for v in points.vectors}
    distance = SquaredEuclideanDistance()

    for initializer in (
        RandomlyChosenInitialMeans(seed=1),
        FirstKInitialMeans(),
        KMeansPlusPlusInitialMeans(seed=1),
    ):
        means = initializer.choose_initial_means(points, 5, distance)
        assert means.shape == (5, 3)
        assert len({tuple(m) for m in means}) == 5
        assert all(tuple(m) in rows for m in means)
        print(f"  ✓ {initializer!r}")

    assert np.array_equal(
        FirstKInitialMeans().choose_initial_means(points, 2, distance), points.vectors[:2]
    )
    print("  ✓ First-k takes the first rows")

    print("✓ Data point initializer tests passed\n")


def test_seed_reproducible():
    """The same seed gives the same centers."""
    print("Testing seeds...")

    points = _points()
    distance = SquaredEuclideanDistance()
    for cls in (RandomlyChosenInitialMeans, KMeansPlusPlusInitialMeans):
        a = cls(seed=5).choose_initial_means(points, 4, distance)
        b = cls(seed=5).choose_initial_means(points, 4, distance)
        assert np.array_equal(a, b)
        print(f"  ✓ {cls.__name__}")

    print("✓ Seed tests passed\n")


def test_kmeans_plus_plus_duplicates():
    """k-means++ still returns k centers when all points coincide."""
    print("Testing k-means++ on identical points...")

    points = PointStore(np.ones((10, 2)))
    means = KMeansPlusPlusInitialMeans(seed=0).choose_initial_means(
        points, 3, SquaredEuclideanDistance()
    )
    assert np.array_equal(means, np.ones((3, 2)))
    print("  ✓ 3 centers")

    print("✓ Duplicate tests passed\n")


def test_predefined_and_registry():
    """Predefined centers are checked against k; names resolve."""
    print("Testing predefined means and registry...")

    points = _points()
    distance = SquaredEuclideanDistance()
    fixed = PredefinedInitialMeans(np.zeros((2, 3)))
    assert np.array_equal(fixed.choose_initial_means(points, 2, distance), np.zeros((2, 3)))
    with pytest.raises(ConfigurationError):
        fixed.choose_initial_means(points, 3, distance)
    print("  ✓ Predefined means")

    assert isinstance(get_initializer("kmeans++", seed=2), KMeansPlusPlusInitialMeans)
    assert get_initializer("random", seed=2).seed == 2
    assert isinstance(get_initializer("first", seed=2), FirstKInitialMeans)
    with pytest.raises(ConfigurationError):
        get_initializer("forgy")
    print("  ✓ Registry")

    print("✓ Predefined/registry tests passed\n")
