"""
Core geometry types for service core placement.

Built on Shapely for 2D polygon operations. Provides FloorFootprint and
LevelVolume (the plan-level inputs), StackedProfile (a profile at an
elevation), the robust interior-point query, and conversions between Shapely
and plain coordinate lists.
"""
import math
from dataclasses import dataclass, field
from typing import List, Optional, Sequence, Tuple

import numpy as np
import shapely
from shapely import affinity
from shapely.geometry import MultiPolygon, Point, Polygon
from shapely.geometry.base import BaseGeometry

Vec2 = Tuple[float, float]
Segment = Tuple[Vec2, Vec2]

RECTANGLE_DOT_TOLERANCE = 0.01
LENGTH_EPSILON = 1e-5


def _identity_transform() -> np.ndarray:
    return np.eye(3)


def apply_plan_transform(polygon: Polygon, transform: Optional[np.ndarray]) -> Polygon:
    """Apply a 3x3 homogeneous plan transform to a polygon."""
    if transform is None:
        return polygon
    m = np.asarray(transform, dtype=float)
    if m.shape != (3, 3):
        raise ValueError(f"Plan transform must be 3x3, got {m.shape}")
    if np.allclose(m, np.eye(3)):
        return polygon
    return affinity.affine_transform(
        polygon,
        [m[0, 0], m[0, 1], m[1, 0], m[1, 1], m[0, 2], m[1, 2]],
    )


@dataclass(frozen=True, eq=False)
class FloorFootprint:
    """A single floor slab outline at an elevation."""
    profile: Polygon                 # local plan coordinates, holes allowed
    elevation: float
    transform: np.ndarray = field(default_factory=_identity_transform)
    name: Optional[str] = None

    def world_profile(self) -> Polygon:
        return apply_plan_transform(self.profile, self.transform)

    @property
    def area(self) -> float:
        return abs(self.profile.area)


@dataclass(frozen=True, eq=False)
class LevelVolume:
    """A pre-stacked level: a footprint extruded by ``height``.

    Produced by a levels/massing step upstream; when present, level data
    decides the top of each group's cores.
    """
    profile: Polygon
    elevation: float
    height: float
    building_name: str = "Unknown"
    name: Optional[str] = None
    transform: np.ndarray = field(default_factory=_identity_transform)

    def world_profile(self) -> Polygon:
        return apply_plan_transform(self.profile, self.transform)

    @property
    def top_elevation(self) -> float:
        return self.elevation + self.height

    @property
    def area(self) -> float:
        return abs(self.profile.area)


@dataclass(frozen=True)
class StackedProfile:
    """A world-space profile and the elevation it sits at."""
    polygon: Polygon
    z: float

    def contains(self, point: Vec2) -> bool:
        return self.polygon.contains(Point(point))


# ─── Polygon helpers ─────────────────────────────────────────────────────────

def polygon_parts(geometry: Optional[BaseGeometry]) -> List[Polygon]:
    """Flatten any geometry into its non-empty polygonal parts."""
    if geometry is None or geometry.is_empty:
        return []
    if isinstance(geometry, Polygon):
        return [geometry]
    if isinstance(geometry, MultiPolygon):
        return [g for g in geometry.geoms if not g.is_empty]
    parts: List[Polygon] = []
    for g in getattr(geometry, "geoms", []):
        parts.extend(polygon_parts(g))
    return parts


def largest_polygon(geometry: Optional[BaseGeometry]) -> Optional[Polygon]:
    """Largest polygonal part by area; ties keep the later part."""
    parts = [p for p in polygon_parts(geometry) if p.area > 0]
    if not parts:
        return None
    return sorted(parts, key=lambda g: g.area)[-1]


def ring_vertices(polygon: Polygon) -> List[Vec2]:
    """Exterior vertices without the closing duplicate."""
    if polygon.is_empty:
        return []
    return [(float(x), float(y)) for x, y in polygon.exterior.coords[:-1]]


def polygon_segments(polygon: Polygon) -> List[Segment]:
    """Closed-loop segments of the exterior ring."""
    verts = ring_vertices(polygon)
    n = len(verts)
    return [(verts[i], verts[(i + 1) % n]) for i in range(n)]


def segment_length(segment: Segment) -> float:
    (x0, y0), (x1, y1) = segment
    return math.hypot(x1 - x0, y1 - y0)


def segment_direction(segment: Segment) -> np.ndarray:
    (x0, y0), (x1, y1) = segment
    d = np.array([x1 - x0, y1 - y0], dtype=float)
    norm = np.linalg.norm(d)
    if norm == 0:
        return d
    return d / norm


def centroid(polygon: Polygon) -> Vec2:
    c = polygon.centroid
    return (float(c.x), float(c.y))


def point_internal(polygon: Polygon) -> Vec2:
    """Return a point inside ``polygon``, robust to concavity.

    Tries the centroid, then the midpoint of every vertex pair that skips
    exactly one vertex (i, i+2). Falls back to the centroid, which may lie
    outside for pathological shapes.
    """
    center = centroid(polygon)
    if polygon.contains(Point(center)):
        return center

    verts = ring_vertices(polygon)
    n = len(verts)
    for i in range(n):
        a = verts[i]
        b = verts[(i + 2) % n]
        candidate = ((a[0] + b[0]) * 0.5, (a[1] + b[1]) * 0.5)
        if polygon.contains(Point(candidate)):
            return candidate
    return center


def is_rectangle(polygon: Polygon) -> Tuple[bool, float, float]:
    """Check for a simple 4-segment rectangle.

    Returns:
        (is_rectangle, length, depth) where length/depth are the longer and
        shorter of the first two sides. They are filled in whenever the
        polygon has four sides, even if the corner test then fails.
    """
    segments = polygon_segments(polygon)
    if len(segments) != 4:
        return (False, 0.0, 0.0)

    lengths = [segment_length(s) for s in segments]
    depth, length = sorted(lengths[:2])

    primary = segment_direction(segments[0])
    secondary = segment_direction(segments[1])
    if abs(float(primary @ secondary)) > RECTANGLE_DOT_TOLERANCE:
        return (False, length, depth)
    if not math.isclose(lengths[0], lengths[2], abs_tol=LENGTH_EPSILON):
        return (False, length, depth)
    if not math.isclose(lengths[1], lengths[3], abs_tol=LENGTH_EPSILON):
        return (False, length, depth)
    return (True, length, depth)


# ─── Conversion functions ────────────────────────────────────────────────────

def polygon_to_profile(polygon: Polygon) -> List[List[float]]:
    """Convert a Shapely Polygon to a list of [x, y] exterior vertices."""
    return [[x, y] for x, y in ring_vertices(polygon)]


def profile_to_polygon(
    profile: Sequence[Sequence[float]],
    holes: Optional[Sequence[Sequence[Sequence[float]]]] = None,
) -> Polygon:
    """Convert [x, y] vertex lists into a Shapely Polygon."""
    if len(profile) < 3:
        return Polygon()
    shell = [(float(p[0]), float(p[1])) for p in profile]
    interiors = [
        [(float(p[0]), float(p[1])) for p in hole]
        for hole in (holes or [])
        if len(hole) >= 3
    ]
    poly = Polygon(shell, interiors)
    if not poly.is_valid:
        poly = shapely.make_valid(poly)
        poly = largest_polygon(poly) or Polygon()
    return poly


def principal_extents(polygon: Polygon) -> Tuple[float, float]:
    """(longer, shorter) side of the minimum rotated bounding rectangle."""
    if polygon.is_empty:
        return (0.0, 0.0)
    obb = polygon.minimum_rotated_rectangle
    coords = list(obb.exterior.coords)
    if len(coords) < 4:
        return (0.0, 0.0)
    edge1 = np.array(coords[1]) - np.array(coords[0])
    edge2 = np.array(coords[2]) - np.array(coords[1])
    len1 = float(np.linalg.norm(edge1))
    len2 = float(np.linalg.norm(edge2))
    return (max(len1, len2), min(len1, len2))


def longest_segment_direction(polygon: Polygon) -> np.ndarray:
    """Unit direction of the longest exterior segment (last one on ties)."""
    segments = polygon_segments(polygon)
    if not segments:
        return np.array([1.0, 0.0])
    longest = sorted(segments, key=segment_length)[-1]
    return segment_direction(longest)
