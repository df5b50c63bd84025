"""
Service core candidates and the oriented-rectangle builder.
"""
import logging
import uuid
from dataclasses import dataclass, field
from typing import Iterable, List, Optional, Tuple

import numpy as np
from shapely.geometry import Polygon

from dominant_axis import perpendicular
from geometry_primitives import (
    StackedProfile,
    Vec2,
    centroid,
    polygon_to_profile,
)

logger = logging.getLogger(__name__)

DEFAULT_HEIGHT_MARGIN = 1.0


def new_core_id() -> str:
    return str(uuid.uuid4())


@dataclass(frozen=True)
class OverrideProvenance:
    """Which user override produced or edited a core."""
    override_name: str            # "Cores Addition", "CoreDimensions", "Cores"
    override_id: str
    identity_centroid: Optional[Vec2] = None


@dataclass(frozen=True)
class CoreCandidate:
    """A vertical service core: plan boundary plus a height range.

    ``centroid`` is the point the core was placed at (its anchor), which is
    what override identities are matched against.
    """
    boundary: Polygon
    centroid: Vec2
    min_height: float
    max_height: float
    length: float = 0.0
    depth: float = 0.0
    boundary_is_unedited: bool = True
    id: str = field(default_factory=new_core_id)
    provenance: Tuple[OverrideProvenance, ...] = ()
    axis: Optional[Vec2] = None          # length direction of built rectangles

    @property
    def height(self) -> float:
        return self.max_height - self.min_height

    @property
    def area(self) -> float:
        return abs(self.boundary.area)

    def distance_to(self, point: Vec2) -> float:
        return float(np.hypot(self.centroid[0] - point[0], self.centroid[1] - point[1]))

    def to_dict(self) -> dict:
        return {
            "id": self.id,
            "boundary": polygon_to_profile(self.boundary),
            "centroid": [self.centroid[0], self.centroid[1]],
            "length": self.length,
            "depth": self.depth,
            "min_height": self.min_height,
            "max_height": self.max_height,
            "height": self.height,
            "area": self.area,
            "boundary_is_unedited": self.boundary_is_unedited,
            "provenance": [
                {
                    "override_name": p.override_name,
                    "override_id": p.override_id,
                    "identity_centroid": (
                        list(p.identity_centroid) if p.identity_centroid else None
                    ),
                }
                for p in self.provenance
            ],
        }


def core_rectangle(center: Vec2, axis: np.ndarray, length: float, depth: float) -> Polygon:
    """Rectangle of ``length`` along ``axis`` and ``depth`` across it."""
    c = np.asarray(center, dtype=float)
    a = np.asarray(axis, dtype=float)
    p = perpendicular(a)
    half_l = a * length / 2
    half_d = p * depth / 2
    corners = [
        c + half_l + half_d,
        c - half_l + half_d,
        c - half_l - half_d,
        c + half_l - half_d,
    ]
    return Polygon([(float(x), float(y)) for x, y in corners])


def core_top_elevation(
    anchor: Vec2,
    stacked_profiles: Iterable[StackedProfile],
    default: float,
    margin: float = DEFAULT_HEIGHT_MARGIN,
) -> float:
    """Top of a core standing at ``anchor``.

    The highest stacked profile containing the anchor, plus ``margin``, raises
    the group-wide ``default`` so a core shared by several stacked masses
    reaches the top of all of them. It never lowers it: the single-floor
    bump and level tops baked into ``default`` survive.
    """
    elevations = [sp.z for sp in stacked_profiles if sp.contains(anchor)]
    if not elevations:
        return default
    return max(default, max(elevations) + margin)


def build_core_at_point(
    center: Vec2,
    axis: np.ndarray,
    length: float,
    depth: float,
    min_height: float,
    max_height: float,
    stacked_profiles: Iterable[StackedProfile] = (),
    height_margin: float = DEFAULT_HEIGHT_MARGIN,
) -> CoreCandidate:
    """Oriented rectangular core centered on ``center``."""
    top = core_top_elevation(center, stacked_profiles, max_height, height_margin)
    boundary = core_rectangle(center, axis, length, depth)
    return CoreCandidate(
        boundary=boundary,
        centroid=(float(center[0]), float(center[1])),
        min_height=min_height,
        max_height=top,
        length=length,
        depth=depth,
        axis=(float(axis[0]), float(axis[1])),
    )


def build_core_from_polygon(
    boundary: Polygon,
    min_height: float,
    max_height: float,
    stacked_profiles: Iterable[StackedProfile] = (),
    height_margin: float = DEFAULT_HEIGHT_MARGIN,
    length: float = 0.0,
    depth: float = 0.0,
    boundary_is_unedited: bool = True,
    provenance: Tuple[OverrideProvenance, ...] = (),
) -> CoreCandidate:
    """Core taking a user-drawn polygon as its boundary."""
    center = centroid(boundary)
    top = core_top_elevation(center, stacked_profiles, max_height, height_margin)
    return CoreCandidate(
        boundary=boundary,
        centroid=center,
        min_height=min_height,
        max_height=top,
        length=length,
        depth=depth,
        boundary_is_unedited=boundary_is_unedited,
        provenance=provenance,
    )


def cores_summary(cores: List[CoreCandidate]) -> str:
    return ", ".join(
        f"{c.id[:8]} {c.length:.1f}x{c.depth:.1f} @ ({c.centroid[0]:.1f}, {c.centroid[1]:.1f})"
        for c in cores
    )
