"""
Anchor search for a service core inside a footprint.

Approximates the pole of inaccessibility by eroding the footprint inward one
step at a time, keeping the largest surviving piece, until nothing is left.
The last survivor's interior point is the anchor. Callers only depend on
``compute_anchor`` so an exact algorithm can replace the erosion loop.
"""
import logging
from dataclasses import dataclass
from typing import Optional

import numpy as np
from shapely.errors import GEOSException
from shapely.geometry import Polygon

from dominant_axis import dominant_axis
from geometry_primitives import (
    Vec2,
    centroid,
    largest_polygon,
    point_internal,
    polygon_segments,
)

logger = logging.getLogger(__name__)

DEFAULT_EROSION_STEP = 1.0
DEFAULT_MAX_ITERATIONS = 1000


@dataclass
class AnchorResult:
    """Where to center a core and which way to orient it."""
    point: Vec2
    axis: np.ndarray        # (2,) unit vector, sign ambiguous
    iterations: int         # erosions performed
    converged: bool         # False if the iteration cap was hit


def erode(polygon: Polygon, step: float) -> Optional[Polygon]:
    """Offset inward by ``step``; largest resulting piece or None."""
    try:
        shrunk = polygon.buffer(-step, join_style="mitre")
    except GEOSException as exc:
        logger.debug("Erosion failed: %s", exc)
        return None
    return largest_polygon(shrunk)


def compute_anchor(
    polygon: Polygon,
    erosion_step: float = DEFAULT_EROSION_STEP,
    max_iterations: int = DEFAULT_MAX_ITERATIONS,
) -> AnchorResult:
    """Find a deep interior point of ``polygon`` and its dominant axis.

    Args:
        polygon: Footprint to search. The placement driver passes only the
            outer boundary, so courtyards are not seen by the search.
        erosion_step: Inward offset per iteration.
        max_iterations: Cap on erosions; on reaching it the current
            survivor's centroid is returned instead.

    Returns:
        AnchorResult with the anchor point and a unit axis vector.
    """
    current = polygon
    for iteration in range(max_iterations):
        shrunk = erode(current, erosion_step)
        if shrunk is None:
            return AnchorResult(
                point=point_internal(current),
                axis=dominant_axis(polygon_segments(current)),
                iterations=iteration,
                converged=True,
            )
        current = shrunk

    logger.warning(
        "Anchor search hit the %d iteration cap; using centroid", max_iterations,
    )
    return AnchorResult(
        point=centroid(current),
        axis=dominant_axis(polygon_segments(current)),
        iterations=max_iterations,
        converged=False,
    )
