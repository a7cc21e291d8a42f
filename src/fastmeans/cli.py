"""
fastmeans CLI - cluster a data file and inspect saved results.

Usage:
    python scripts/cluster.py run data.npy --k 5
    python scripts/cluster.py run data.csv --k 3 --variant hamerly --out ./result
    python scripts/cluster.py run data.txt --config kmeans.yaml --log-dir ./logs
    python scripts/cluster.py status ./result
"""

import argparse
import sys
from pathlib import Path
from typing import Optional

import numpy as np

from .clustering import KMeans, ResultStore
from .config import KMeansConfig, load_config, VARIANTS
from .errors import ConfigurationError, FastMeansError
from .logger import RunLogger


def load_data(path: Path) -> np.ndarray:
    """Load an (n, d) array from .npy or delimited text."""
    path = Path(path)
    if path.suffix == ".npy":
        data = np.load(path)
    else:
        delimiter = "," if path.suffix == ".csv" else None
        data = np.loadtxt(path, delimiter=delimiter, ndmin=2)
    return np.asarray(data, dtype=np.float64)


def build_config(args) -> KMeansConfig:
    """Config file (if any) overridden by explicit command-line values."""
    overrides = {
        "k": args.k,
        "variant": args.variant,
        "distance": args.distance,
        "initializer": args.initializer,
        "max_iterations": args.max_iterations,
        "seed": args.seed,
        "n_workers": args.workers,
        "empty_cluster": args.empty_cluster,
    }
    if args.variance:
        overrides["compute_variance"] = True
    if args.verbose:
        overrides["verbose"] = True

    if args.config:
        return load_config(Path(args.config), **overrides)

    if args.k is None:
        raise ConfigurationError("--k is required without --config")
    config = KMeansConfig.from_dict({k: v for k, v in overrides.items() if v is not None})
    config.validate()
    return config


def print_summary(result) -> None:
    stats = result.statistics
    print(f"Variant: {stats.variant}")
    print(f"Iterations: {stats.iterations} (converged: {stats.converged})")
    print(f"Distance computations: {stats.distance_computations}")
    print(f"Clusters: {len(result)}")
    for cluster in result.clusters:
        line = f"  [{cluster.index}] size={cluster.size}"
        if cluster.variance is not None:
            line += f" variance={cluster.variance:.6g}"
        print(line)


def cmd_run(args):
    """Cluster a data file."""
    config = build_config(args)
    data = load_data(Path(args.data))

    logger = RunLogger(Path(args.log_dir)) if args.log_dir else None
    try:
        engine = KMeans.from_config(config, observer=logger)
        result = engine.run(data)
    finally:
        if logger:
            logger.close()

    print_summary(result)

    if args.out:
        store = ResultStore(Path(args.out))
        store.save(result)
        print(f"Saved result to {args.out}")
    return 0


def cmd_status(args):
    """Show a saved result."""
    status = ResultStore(Path(args.result_dir)).get_status()
    if not status["saved"]:
        print(f"No saved result in {args.result_dir}")
        return 1

    print(f"Variant: {status['variant']}")
    print(f"Iterations: {status['iterations']} (converged: {status['converged']})")
    print(f"Distance computations: {status['distance_computations']}")
    for c in status["clusters"]:
        print(f"  [{c['index']}] size={c['size']}")
    return 0


def main(argv: Optional[list] = None):
    parser = argparse.ArgumentParser(
        description="Exact k-means with triangle-inequality pruning",
    )
    subparsers = parser.add_subparsers(dest="command")

    # run
    p_run = subparsers.add_parser("run", help="Cluster a data file")
    p_run.add_argument("data", help="Data file (.npy, .csv or whitespace-delimited text)")
    p_run.add_argument("--k", type=int, help="Number of clusters")
    p_run.add_argument("--variant", choices=VARIANTS, help="Assignment strategy")
    p_run.add_argument("--distance", help="Distance function name")
    p_run.add_argument("--initializer", help="Initializer name")
    p_run.add_argument("--max-iterations", type=int, help="Iteration cap (0 = unbounded)")
    p_run.add_argument("--seed", type=int, help="Initializer seed")
    p_run.add_argument("--workers", type=int, help="Workers for the parallel variant")
    p_run.add_argument("--empty-cluster", choices=("keep", "farthest"), help="Empty cluster policy")
    p_run.add_argument("--variance", action="store_true", help="Compute cluster variances")
    p_run.add_argument("--config", help="YAML config file")
    p_run.add_argument("--out", help="Directory to save the result")
    p_run.add_argument("--log-dir", help="Directory for the JSONL run log")
    p_run.add_argument("--verbose", action="store_true")

    # status
    p_status = subparsers.add_parser("status", help="Show a saved result")
    p_status.add_argument("result_dir", help="Result directory")

    args = parser.parse_args(argv)

    if not args.command:
        parser.print_help()
        return 1

    commands = {
        "run": cmd_run,
        "status": cmd_status,
    }

    try:
        return commands[args.command](args)
    except (FastMeansError, OSError, ValueError) as e:
        print(f"Error: {e}")
        return 1


if __name__ == "__main__":
    sys.exit(main())
