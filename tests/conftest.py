"""
Shared test fixtures for service core placement tests.
"""
import json
import sys
from pathlib import Path

import numpy as np
import pytest
from shapely.geometry import Polygon, box

# Add src/ to path
sys.path.insert(0, str(Path(__file__).parent.parent / "src"))

from geometry_primitives import FloorFootprint, LevelVolume


@pytest.fixture
def rect_40x30():
    """A 40x30 rectangle with its corner at the origin."""
    return box(0, 0, 40, 30)


@pytest.fixture
def l_shape():
    """An L-shaped footprint: 60x20 bar plus a 20x40 wing."""
    return Polygon([(0, 0), (60, 0), (60, 20), (20, 20), (20, 60), (0, 60)])


@pytest.fixture
def u_shape():
    """A U-shaped footprint whose centroid lies outside it."""
    return Polygon([
        (0, 0), (10, 0), (10, 1), (1, 1), (1, 9), (10, 9), (10, 10), (0, 10),
    ])


@pytest.fixture
def single_floor(rect_40x30):
    """One 40x30 floor at elevation zero."""
    return [FloorFootprint(profile=rect_40x30, elevation=0.0, name="L1")]


@pytest.fixture
def stacked_floors(rect_40x30):
    """Two identical 40x30 floors, 4 units apart."""
    return [
        FloorFootprint(profile=rect_40x30, elevation=4.0, name="L2"),
        FloorFootprint(profile=rect_40x30, elevation=0.0, name="L1"),
    ]


@pytest.fixture
def two_buildings():
    """Two disjoint 40x30 floors, 100 units apart along X."""
    return [
        FloorFootprint(profile=box(0, 0, 40, 30), elevation=0.0, name="A"),
        FloorFootprint(profile=box(100, 0, 140, 30), elevation=0.0, name="B"),
    ]


@pytest.fixture
def tower_levels(rect_40x30):
    """Two 4-unit levels of a named building."""
    return [
        LevelVolume(profile=rect_40x30, elevation=4.0, height=4.0,
                    building_name="Tower A", name="Level 2"),
        LevelVolume(profile=rect_40x30, elevation=0.0, height=4.0,
                    building_name="Tower A", name="Level 1"),
    ]


@pytest.fixture
def translation():
    """Plan transform moving geometry +100 along X."""
    m = np.eye(3)
    m[0, 2] = 100.0
    return m


@pytest.fixture
def request_payload():
    """A decoded request with one 40x30 floor and no overrides."""
    return {
        "floors": [
            {
                "profile": [[0, 0], [40, 0], [40, 30], [0, 30]],
                "elevation": 0.0,
                "name": "L1",
            }
        ],
        "levels": [],
        "inputs": {
            "Length": 18,
            "Width": 10,
            "overrides": {},
        },
    }


@pytest.fixture
def request_file(tmp_path, request_payload) -> str:
    path = tmp_path / "request.json"
    path.write_text(json.dumps(request_payload), encoding="utf-8")
    return str(path)
