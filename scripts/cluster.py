#!/usr/bin/env python3
"""
Cluster CLI wrapper for running from a source checkout.

Usage:
    python scripts/cluster.py run data.npy --k 5
    python scripts/cluster.py status ./result
"""

import sys
from pathlib import Path

# Add src/ to path
sys.path.insert(0, str(Path(__file__).parent.parent / "src"))

from fastmeans.cli import main


if __name__ == "__main__":
    sys.exit(main())
