"""
Core dimension heuristics.

A core must leave a minimum leasable depth between its edges and the building
edge on every side, must not grow past comfortable default dimensions, and
must not shrink below a structural minimum.
"""
import logging
import math
from dataclasses import dataclass
from typing import Optional, Tuple

import numpy as np
import shapely
from shapely.geometry import LineString, Polygon

from dominant_axis import perpendicular
from geometry_primitives import Vec2

logger = logging.getLogger(__name__)


@dataclass
class CoreSizingConfig:
    """Automatic core sizing rules (plan units)."""

    default_length: float = 18.0
    default_depth: float = 10.0
    min_lease_depth_length: float = 9.5  # clearance at each end along the axis
    min_lease_depth_depth: float = 7.5   # clearance at each side across the axis
    min_length: float = 10.0
    min_depth: float = 7.5
    probe_half_length: float = 0.1


def _ray_reach(polygon: Polygon, center: Vec2) -> float:
    minx, miny, maxx, maxy = polygon.bounds
    return (
        math.hypot(maxx - minx, maxy - miny)
        + math.hypot(center[0] - minx, center[1] - miny)
        + 1.0
    )


def measure_clearance(
    polygon: Polygon,
    center: Vec2,
    direction: np.ndarray,
    probe: float = 0.1,
) -> float:
    """Distance from ``center`` to the nearest boundary crossing along ``direction``.

    Crossings closer than ``probe`` are ignored; if none is found the probe
    length itself is returned.
    """
    c = np.asarray(center, dtype=float)
    d = np.asarray(direction, dtype=float)
    start = c + d * probe
    end = c + d * _ray_reach(polygon, center)
    hits = LineString([start, end]).intersection(polygon.boundary)
    if hits.is_empty:
        return probe
    coords = shapely.get_coordinates(hits)
    distances = np.linalg.norm(coords - c, axis=1)
    distances = distances[distances >= probe]
    if len(distances) == 0:
        return probe
    return float(distances.min())


def span_through(
    polygon: Polygon,
    center: Vec2,
    direction: np.ndarray,
    probe: float = 0.1,
) -> float:
    """Boundary-to-boundary length of the line through ``center``."""
    return (
        measure_clearance(polygon, center, direction, probe)
        + measure_clearance(polygon, center, -np.asarray(direction), probe)
    )


def clamp_dimension(span: float, lease_depth: float, minimum: float, default: float) -> float:
    return max(minimum, min(default, span - lease_depth - lease_depth))


def core_dimensions(
    polygon: Polygon,
    center: Vec2,
    axis: np.ndarray,
    config: Optional[CoreSizingConfig] = None,
) -> Tuple[float, float]:
    """Heuristic (length, depth) for a core centered at ``center``.

    Length is measured along ``axis``, depth across it.
    """
    if config is None:
        config = CoreSizingConfig()

    length_span = span_through(polygon, center, axis, config.probe_half_length)
    depth_span = span_through(
        polygon, center, perpendicular(axis), config.probe_half_length,
    )
    length = clamp_dimension(
        length_span, config.min_lease_depth_length,
        config.min_length, config.default_length,
    )
    depth = clamp_dimension(
        depth_span, config.min_lease_depth_depth,
        config.min_depth, config.default_depth,
    )
    logger.debug(
        "Spans %.2f x %.2f -> core %.2f x %.2f",
        length_span, depth_span, length, depth,
    )
    return (length, depth)
