from __future__ import annotations

import json
import subprocess
import sys
from pathlib import Path

REPO_ROOT = Path(__file__).resolve().parent.parent
SCRIPT = REPO_ROOT / "scripts" / "place_cores.py"


def test_place_cores_cli_runs_and_emits_artifacts(request_file: str, tmp_path: Path):
    runs_dir = tmp_path / "runs"
    cmd = [
        sys.executable,
        str(SCRIPT),
        "--input",
        request_file,
        "--name",
        "single tower",
        "--runs-dir",
        str(runs_dir),
    ]
    proc = subprocess.run(cmd, capture_output=True, text=True)
    assert proc.returncode == 0, proc.stderr
    assert "Run ID:" in proc.stdout
    assert "Cores: 1" in proc.stdout

    run_dirs = sorted(
        [path for path in runs_dir.iterdir() if path.is_dir() and path.name != "latest"]
    )
    assert len(run_dirs) == 1
    run_dir = run_dirs[0]
    assert run_dir.name.endswith("single-tower")

    cores_path = run_dir / "artifacts" / "cores.json"
    assert cores_path.exists()
    assert (run_dir / "manifest.json").exists()
    assert (run_dir / "summary.md").exists()
    assert (run_dir / "input" / "request.json").exists()

    payload = json.loads(cores_path.read_text(encoding="utf-8"))
    assert payload["schema_version"] == "core_placement.result.v1"
    assert payload["warnings"] == []
    assert len(payload["groups"][0]["cores"]) == 1

    metrics = json.loads((run_dir / "metrics.json").read_text(encoding="utf-8"))
    assert metrics["counts"]["cores"] == 1
    assert metrics["counts"]["groups"] == 1


def test_place_cores_cli_reports_warnings(tmp_path: Path):
    request_path = tmp_path / "empty.json"
    request_path.write_text(json.dumps({"floors": [], "levels": []}), encoding="utf-8")
    cmd = [
        sys.executable,
        str(SCRIPT),
        "--input",
        str(request_path),
        "--runs-dir",
        str(tmp_path / "runs"),
    ]
    proc = subprocess.run(cmd, capture_output=True, text=True)
    assert proc.returncode == 0, proc.stderr
    assert "Warning: No Floors or Levels found in model." in proc.stdout


def test_place_cores_cli_rejects_bad_request(tmp_path: Path):
    request_path = tmp_path / "bad.json"
    request_path.write_text(json.dumps({"inputs": {"Length": 80}}), encoding="utf-8")
    cmd = [
        sys.executable,
        str(SCRIPT),
        "--input",
        str(request_path),
        "--runs-dir",
        str(tmp_path / "runs"),
    ]
    proc = subprocess.run(cmd, capture_output=True, text=True)
    assert proc.returncode == 2
    assert not (tmp_path / "runs").exists()
