"""CLI entry point to index a persisted notes workspace."""
from __future__ import annotations

# ruff: noqa: E402

import argparse
from pathlib import Path
import sys

PROJECT_ROOT = Path(__file__).resolve().parents[1]
if str(PROJECT_ROOT) not in sys.path:
    sys.path.insert(0, str(PROJECT_ROOT))

from notelinks.pipelines.index_notes import run_indexing
from notelinks.utils.config import DEFAULT_CONFIG_PATH


def main() -> None:
    parser = argparse.ArgumentParser(
        description="Extract note connections and export the connection graph"
    )
    parser.add_argument(
        "--config",
        default=DEFAULT_CONFIG_PATH,
        help="Path to the YAML configuration file",
    )
    args = parser.parse_args()
    run_indexing(args.config)


if __name__ == "__main__":
    main()
