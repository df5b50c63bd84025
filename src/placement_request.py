"""
JSON request format for placement runs.

    {
      "floors": [{"profile": [[x, y], ...], "holes": [[[x, y], ...]],
                  "elevation": 0.0, "transform": [[1,0,0],[0,1,0],[0,0,1]],
                  "name": "L1"}],
      "levels": [{"profile": ..., "elevation": 0.0, "height": 4.0,
                  "building_name": "Tower A", "name": "Level 1"}],
      "inputs": {"Length": 18, "Width": 10, "overrides": {...}}
    }
"""
from __future__ import annotations

from dataclasses import dataclass, field
from typing import Any, Dict, List, Optional

import numpy as np

from geometry_primitives import FloorFootprint, LevelVolume, profile_to_polygon
from overrides import CorePlacementInputs


@dataclass
class PlacementRequest:
    floors: List[FloorFootprint] = field(default_factory=list)
    levels: List[LevelVolume] = field(default_factory=list)
    inputs: CorePlacementInputs = field(default_factory=CorePlacementInputs)


def _parse_transform(raw: Optional[Any]) -> np.ndarray:
    if raw is None:
        return np.eye(3)
    matrix = np.asarray(raw, dtype=float)
    if matrix.shape != (3, 3):
        raise ValueError(f"transform must be a 3x3 matrix, got shape {matrix.shape}")
    return matrix


def _parse_outline(raw: Dict[str, Any], kind: str):
    profile = raw.get("profile")
    if not profile or len(profile) < 3:
        raise ValueError(f"{kind} needs a profile of at least three points")
    polygon = profile_to_polygon(profile, raw.get("holes"))
    if polygon.is_empty:
        raise ValueError(f"{kind} profile has no area")
    return polygon


def parse_floor(raw: Dict[str, Any]) -> FloorFootprint:
    return FloorFootprint(
        profile=_parse_outline(raw, "floor"),
        elevation=float(raw.get("elevation", 0.0)),
        transform=_parse_transform(raw.get("transform")),
        name=raw.get("name"),
    )


def parse_level(raw: Dict[str, Any]) -> LevelVolume:
    if "height" not in raw:
        raise ValueError("level needs a height")
    return LevelVolume(
        profile=_parse_outline(raw, "level"),
        elevation=float(raw.get("elevation", 0.0)),
        height=float(raw["height"]),
        building_name=raw.get("building_name") or "Unknown",
        name=raw.get("name"),
        transform=_parse_transform(raw.get("transform")),
    )


def load_placement_request(payload: Dict[str, Any]) -> PlacementRequest:
    """Build floors, levels and inputs from a decoded request payload."""
    return PlacementRequest(
        floors=[parse_floor(f) for f in payload.get("floors") or []],
        levels=[parse_level(lv) for lv in payload.get("levels") or []],
        inputs=CorePlacementInputs.from_dict(payload.get("inputs")),
    )
