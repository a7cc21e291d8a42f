"""
Structured run logging.

The engine reports progress to an observer: any callable taking
(event_type, data). The default observer does nothing; RunLogger writes
one JSONL line per event for streaming and analysis.

Event types:
- run_start: Config, data shape, initializer
- iteration: Reassignments and distance computations of one pass
- warning: Non-fatal conditions (e.g. non-metric fallback)
- run_end: Summary stats
"""

import json
from datetime import datetime
from pathlib import Path
from typing import Any, Callable

import numpy as np

__all__ = ["Observer", "null_observer", "RunLogger", "to_native"]

Observer = Callable[[str, dict], None]


def null_observer(event_type: str, data: dict) -> None:
    """Observer that ignores every event."""


def to_native(obj):
    """Convert numpy types to native Python types for JSON serialization."""
    if isinstance(obj, dict):
        return {k: to_native(v) for k, v in obj.items()}
    elif isinstance(obj, (list, tuple)):
        return [to_native(v) for v in obj]
    elif isinstance(obj, np.floating):
        return float(obj)
    elif isinstance(obj, np.integer):
        return int(obj)
    elif isinstance(obj, np.ndarray):
        return obj.tolist()
    return obj


class RunLogger:
    def __init__(self, output_dir: Path, file_name: str = "run.jsonl"):
        """
        Initialize logger for clustering runs.

        Args:
            output_dir: Directory for the log file (created if missing)
            file_name: Log file name inside output_dir
        """
        self.output_dir = Path(output_dir)
        self.output_dir.mkdir(parents=True, exist_ok=True)
        self.log_file = self.output_dir / file_name

        # Open file in append mode
        self.file_handle = open(self.log_file, 'a')

    def __call__(self, event_type: str, data: dict) -> None:
        """Observer entry point used by the engine."""
        self._write_event(event_type, data)

    def _write_event(self, event_type: str, data: dict[str, Any]) -> None:
        """Write typed event to JSONL log."""
        event = {
            "type": event_type,
            "timestamp": datetime.now().isoformat(),
            **to_native(data)
        }
        self.file_handle.write(json.dumps(event) + '\n')
        self.file_handle.flush()  # Ensure streaming writes

    def read_events(self) -> list[dict]:
        """Read back all events written so far."""
        with open(self.log_file) as f:
            return [json.loads(line) for line in f if line.strip()]

    def close(self) -> None:
        """Close log file."""
        if hasattr(self, 'file_handle') and self.file_handle:
            self.file_handle.close()
            self.file_handle = None

    def __enter__(self):
        return self

    def __exit__(self, exc_type, exc_val, exc_tb):
        self.close()
