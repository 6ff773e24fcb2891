"""
Collect and save metadata describing a structfuzz run.

The metadata records enough about the environment (host, interpreter,
package version, hardware) and the configuration (seed, CLI arguments) to
reproduce or compare a run later.
"""

import argparse
import json
import platform
import sys
import uuid
from datetime import datetime, timezone
from pathlib import Path

import psutil

from structfuzz import __version__
from structfuzz.types import HardwareInfo, RunMetadata


def get_hardware_info() -> HardwareInfo:
    """Snapshot CPU, memory and the current process footprint."""
    return {
        "cpu_count_logical": psutil.cpu_count(logical=True),
        "cpu_count_physical": psutil.cpu_count(logical=False),
        "total_ram_gb": round(psutil.virtual_memory().total / (1024**3), 2),
        "process_rss_mb": round(psutil.Process().memory_info().rss / (1024**2), 2),
    }


def collect_run_metadata(args: argparse.Namespace, seed: int) -> RunMetadata:
    """
    Gather the metadata for one run.

    Args:
        args: Parsed command-line arguments.
        seed: The seed actually used, which may have been drawn at random.

    Returns:
        A JSON-ready RunMetadata dictionary.
    """
    return {
        "run_id": str(uuid.uuid4()),
        "started": datetime.now(timezone.utc).isoformat(),
        "seed": seed,
        "environment": {
            "hostname": platform.node(),
            "os": platform.platform(),
            "python_version": sys.version,
            "python_executable": sys.executable,
            "structfuzz_version": __version__,
        },
        "hardware": get_hardware_info(),
        "configuration": {key: value for key, value in vars(args).items()},
    }


def save_run_metadata(path: Path, metadata: RunMetadata) -> None:
    path.parent.mkdir(parents=True, exist_ok=True)
    with open(path, "w", encoding="utf-8") as f:
        json.dump(metadata, f, indent=2, default=str)
    print(f"[+] Run metadata saved to {path}", file=sys.stderr)
