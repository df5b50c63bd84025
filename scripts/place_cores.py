#!/usr/bin/env python3
"""Place service cores for a footprint request and write a run folder."""

from __future__ import annotations

import argparse
import json
import logging
import sys
import time
from pathlib import Path

sys.path.insert(0, str(Path(__file__).parent.parent / "src"))

from core_placement import CorePlacementConfig, place_cores
from placement_request import load_placement_request
from run_protocol import open_run, point_latest, read_json, stash_request, write_placement_run

logger = logging.getLogger("place_cores")


def build_parser() -> argparse.ArgumentParser:
    parser = argparse.ArgumentParser(
        description="Place service cores inside stacked floor footprints"
    )
    parser.add_argument(
        "--input", required=True, help="Path to request JSON (floors, levels, inputs)"
    )
    parser.add_argument("--name", default="cores", help="Run name")
    parser.add_argument("--runs-dir", default="runs", help="Runs output root")
    parser.add_argument(
        "--max-erosion-iterations",
        type=int,
        default=1000,
        help="Cap on inward offsets while searching for the core anchor",
    )
    parser.add_argument(
        "-v", "--verbose", action="store_true", help="Enable debug logs"
    )
    return parser


def main(argv: list[str] | None = None) -> int:
    parser = build_parser()
    args = parser.parse_args(argv)
    logging.basicConfig(
        level=logging.DEBUG if args.verbose else logging.INFO,
        format="%(levelname)s %(name)s: %(message)s",
    )

    try:
        payload = read_json(Path(args.input))
        request = load_placement_request(payload)
    except (OSError, json.JSONDecodeError, KeyError, TypeError, ValueError) as exc:
        logger.error("Cannot read request %s: %s", args.input, exc)
        return 2

    started = time.perf_counter()
    run_paths = open_run(args.runs_dir, args.name)
    request_copy = stash_request(run_paths, args.input)

    config = CorePlacementConfig(
        max_erosion_iterations=max(1, int(args.max_erosion_iterations)),
    )
    result = place_cores(request.floors, request.levels, request.inputs, config)
    elapsed = time.perf_counter() - started

    write_placement_run(
        run_paths,
        run_name=args.name,
        request_copy=request_copy,
        request=request,
        result=result,
        config=config,
        elapsed_s=elapsed,
    )
    point_latest(args.runs_dir, run_paths)

    print(f"Run ID: {run_paths.run_id}")
    print(f"Run dir: {run_paths.run_dir}")
    print(f"Groups: {len(result.groups)}")
    print(f"Cores: {len(result.cores)}")
    for warning in result.warnings:
        print(f"Warning: {warning}")
    print(f"Cores JSON: {run_paths.cores_path}")
    return 0


if __name__ == "__main__":
    raise SystemExit(main())
