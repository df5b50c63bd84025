"""
Run folders for placement runs.

Each run gets its own folder under the runs root:

    <runs>/<stamp>_<name>/
        input/<request>.json
        artifacts/cores.json
        metrics.json
        summary.md
        manifest.json
    <runs>/latest -> most recent run
"""

from __future__ import annotations

import json
import os
import re
import shutil
import time
from dataclasses import dataclass
from datetime import datetime, timezone
from pathlib import Path
from typing import Any, Dict, Optional

from core_placement import CorePlacementConfig, CorePlacementResult
from placement_request import PlacementRequest

LATEST = "latest"


@dataclass(frozen=True)
class RunPaths:
    """Locations inside one run folder."""
    run_dir: Path

    @property
    def run_id(self) -> str:
        return self.run_dir.name

    @property
    def input_dir(self) -> Path:
        return self.run_dir / "input"

    @property
    def artifacts_dir(self) -> Path:
        return self.run_dir / "artifacts"

    @property
    def cores_path(self) -> Path:
        return self.artifacts_dir / "cores.json"

    @property
    def metrics_path(self) -> Path:
        return self.run_dir / "metrics.json"

    @property
    def summary_path(self) -> Path:
        return self.run_dir / "summary.md"

    @property
    def manifest_path(self) -> Path:
        return self.run_dir / "manifest.json"


def slugify(value: str) -> str:
    slug = re.sub(r"[^a-z0-9]+", "-", value.lower()).strip("-")
    return slug or "run"


def run_folder_name(run_name: str, now: Optional[datetime] = None) -> str:
    stamp = (now or datetime.now(timezone.utc)).strftime("%Y%m%d_%H%M%S")
    return f"{stamp}_{slugify(run_name)}"


def open_run(runs_root: str, run_name: str) -> RunPaths:
    """Create a fresh run folder; same-second runs get a numeric suffix."""
    root = Path(runs_root)
    base = run_folder_name(run_name)
    candidate, n = root / base, 1
    while candidate.exists():
        n += 1
        candidate = root / f"{base}_{n}"
    paths = RunPaths(candidate)
    for folder in (paths.input_dir, paths.artifacts_dir):
        folder.mkdir(parents=True)
    return paths


def stash_request(paths: RunPaths, request_path: str) -> Path:
    """Keep a copy of the request next to the artifacts it produced."""
    source = Path(request_path)
    copy = paths.input_dir / source.name
    shutil.copy2(source, copy)
    return copy


def read_json(path: Path) -> Dict[str, Any]:
    return json.loads(Path(path).read_text(encoding="utf-8"))


def _dump_json(path: Path, payload: Dict[str, Any]) -> None:
    path.write_text(json.dumps(payload, indent=2), encoding="utf-8")


# ─── Placement artifacts ─────────────────────────────────────────────────────

def placement_metrics(
    paths: RunPaths,
    request: PlacementRequest,
    result: CorePlacementResult,
    elapsed_s: float,
) -> Dict[str, Any]:
    cores = result.cores
    return {
        "run_id": paths.run_id,
        "elapsed_s": round(elapsed_s, 3),
        "counts": {
            "floors": len(request.floors),
            "levels": len(request.levels),
            "groups": len(result.groups),
            "cores": len(cores),
            "edited_cores": sum(1 for c in cores if not c.boundary_is_unedited),
            "core_areas": len(result.core_areas),
            "overrides": len(request.inputs.overrides),
            "warnings": len(result.warnings),
        },
        "total_core_area": round(sum(c.area for c in cores), 3),
    }


def placement_summary(paths: RunPaths, result: CorePlacementResult, elapsed_s: float) -> str:
    cores = result.cores
    edited = sum(1 for c in cores if not c.boundary_is_unedited)
    lines = [
        f"# Run {paths.run_id}",
        "",
        f"- Duration: {elapsed_s:.2f}s",
        f"- Groups: {len(result.groups)}",
        f"- Cores: {len(cores)} ({edited} with edited boundaries)",
        f"- Warnings: {len(result.warnings)}",
        "",
    ]
    for g in result.groups:
        lines.append(
            f"## Group {g.group.index}: {g.group.floor_count} floors, "
            f"{g.group.min_height:.2f}..{g.group.max_height:.2f}"
        )
        lines.extend(
            f"- core {c.id[:8]} {c.length:.2f} x {c.depth:.2f}, "
            f"area {c.area:.2f}" for c in g.cores
        )
        lines.append("")
    if result.warnings:
        lines.append("## Warnings")
        lines.extend(f"- {w}" for w in result.warnings)
        lines.append("")
    return "\n".join(lines)


def placement_manifest(
    paths: RunPaths,
    run_name: str,
    request_copy: Path,
    config: CorePlacementConfig,
) -> Dict[str, Any]:
    return {
        "run_id": paths.run_id,
        "run_name": run_name,
        "created_utc": time.strftime("%Y-%m-%dT%H:%M:%SZ", time.gmtime()),
        "input_request": str(request_copy),
        "config": {
            "erosion_step": config.erosion_step,
            "max_erosion_iterations": config.max_erosion_iterations,
            "removal_match_distance": config.removal_match_distance,
            "default_length": config.sizing.default_length,
            "default_depth": config.sizing.default_depth,
        },
        "artifacts": {
            "cores": str(paths.cores_path),
            "metrics": str(paths.metrics_path),
            "summary": str(paths.summary_path),
        },
    }


def write_placement_run(
    paths: RunPaths,
    *,
    run_name: str,
    request_copy: Path,
    request: PlacementRequest,
    result: CorePlacementResult,
    config: CorePlacementConfig,
    elapsed_s: float,
) -> None:
    """Write cores, metrics, summary and manifest into ``paths``."""
    _dump_json(paths.cores_path, result.to_dict())
    _dump_json(paths.metrics_path, placement_metrics(paths, request, result, elapsed_s))
    paths.summary_path.write_text(
        placement_summary(paths, result, elapsed_s), encoding="utf-8",
    )
    _dump_json(
        paths.manifest_path,
        placement_manifest(paths, run_name, request_copy, config),
    )


def point_latest(runs_root: str, paths: RunPaths) -> Path:
    """Re-point ``<runs>/latest`` at this run.

    Falls back to a folder holding ``latest_run.txt`` where symlinks are
    unavailable.
    """
    latest = Path(runs_root) / LATEST
    if latest.is_symlink() or latest.is_file():
        latest.unlink()
    elif latest.is_dir():
        shutil.rmtree(latest)

    try:
        latest.symlink_to(os.path.relpath(paths.run_dir, latest.parent))
    except OSError:
        latest.mkdir()
        (latest / "latest_run.txt").write_text(paths.run_id, encoding="utf-8")
    return latest
