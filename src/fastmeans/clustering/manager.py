"""
Result persistence.

Saves a ClusteringResult with efficient .npy storage for centers.
"""

from __future__ import annotations

import json
from pathlib import Path

import numpy as np

from ..logger import to_native
from .models import Cluster, ClusteringResult, RunStatistics


class ResultStore:
    """
    Saves and loads clustering results.

    Storage format:
        directory/
        ├── centers.npy        # k × dim float64
        ├── meta.json          # run statistics + per-cluster metadata
        └── assignments.json   # point_id → cluster index
    """

    def __init__(self, directory: Path):
        self.directory = Path(directory)
        self._centers_path = self.directory / "centers.npy"
        self._meta_path = self.directory / "meta.json"
        self._assignments_path = self.directory / "assignments.json"

    @property
    def exists(self) -> bool:
        """Check if a result has been saved here."""
        return self._meta_path.exists()

    def save(self, result: ClusteringResult) -> None:
        """Save result to disk."""
        self.directory.mkdir(parents=True, exist_ok=True)

        if result.clusters:
            np.save(self._centers_path, result.centers)

        # Save metadata (without centers)
        meta = {
            "statistics": result.statistics.to_dict(),
            "clusters": [c.to_meta_dict() for c in result.clusters],
        }
        with open(self._meta_path, 'w') as f:
            json.dump(to_native(meta), f, indent=2)

        with open(self._assignments_path, 'w') as f:
            json.dump({str(k): int(v) for k, v in result.assignments.items()}, f, indent=2)

    def load(self) -> ClusteringResult:
        """Load result from disk."""
        if not self.exists:
            raise FileNotFoundError(f"No saved result in {self.directory}")

        with open(self._meta_path) as f:
            meta = json.load(f)
        with open(self._assignments_path) as f:
            assignments = {int(k): v for k, v in json.load(f).items()}

        clusters_meta = meta.get("clusters", [])
        centers = np.load(self._centers_path) if clusters_meta else np.empty((0, 0))

        members: dict[int, list[int]] = {c["index"]: [] for c in clusters_meta}
        for pid, cluster in assignments.items():
            members[cluster].append(pid)

        clusters = [
            Cluster.from_meta_dict(data, centers[i], members[data["index"]])
            for i, data in enumerate(clusters_meta)
        ]
        return ClusteringResult(
            clusters=clusters,
            statistics=RunStatistics.from_dict(meta["statistics"]),
            assignments=assignments,
        )

    def get_status(self) -> dict:
        """Summary of the saved result."""
        if not self.exists:
            return {"saved": False}

        with open(self._meta_path) as f:
            meta = json.load(f)

        stats = meta["statistics"]
        return {
            "saved": True,
            "variant": stats["variant"],
            "iterations": stats["iterations"],
            "converged": stats["converged"],
            "distance_computations": stats["distance_computations"],
            "clusters": [
                {"index": c["index"], "size": c["size"], "variance": c["variance"]}
                for c in meta["clusters"]
            ],
        }
