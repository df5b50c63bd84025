"""
Dominant orientation of a footprint from its boundary segments.

Segments are bucketed by their unsigned direction (a wall and its reverse are
the same orientation), weighted by length, and the heaviest bucket decides the
axis the core rectangle is aligned to.
"""
import logging
import math
from dataclasses import dataclass, field
from typing import Dict, Iterable, List

import numpy as np

from geometry_primitives import Segment, segment_length

logger = logging.getLogger(__name__)

REFERENCE_AXIS = np.array([1.0, 0.0])


@dataclass
class AngleBucket:
    """Accumulated boundary length for one whole-degree orientation."""
    degree: int
    total_length: float = 0.0
    angles: List[float] = field(default_factory=list)  # distinct raw angles

    def add(self, angle: float, length: float) -> None:
        self.total_length += length
        if angle not in self.angles:
            self.angles.append(angle)

    @property
    def mean_angle(self) -> float:
        return sum(self.angles) / len(self.angles)


def segment_angle(segment: Segment) -> float:
    """Unsigned angle in degrees [0, 180) between +X and the segment."""
    (x0, y0), (x1, y1) = segment
    angle = math.degrees(math.atan2(y1 - y0, x1 - x0)) % 360.0
    return angle % 180.0


def angle_buckets(segments: Iterable[Segment]) -> Dict[int, AngleBucket]:
    """Bucket segments by rounded angle, in first-encountered order."""
    buckets: Dict[int, AngleBucket] = {}
    for segment in segments:
        length = segment_length(segment)
        if length == 0:
            continue
        angle = segment_angle(segment)
        degree = int(round(angle))
        if degree not in buckets:
            buckets[degree] = AngleBucket(degree=degree)
        buckets[degree].add(angle, length)
    return buckets


def dominant_axis(segments: Iterable[Segment]) -> np.ndarray:
    """Length-weighted dominant direction of a set of segments.

    Returns a unit 2D vector. The winning bucket is the one with the greatest
    total length; on an exact tie the bucket seen first wins. The angle used
    is the mean of the winner's raw angles, not its rounded degree.
    """
    buckets = angle_buckets(segments)
    if not buckets:
        return REFERENCE_AXIS.copy()

    winner = None
    for bucket in buckets.values():
        if winner is None or bucket.total_length > winner.total_length:
            winner = bucket

    theta = math.radians(winner.mean_angle)
    axis = np.array([math.cos(theta), math.sin(theta)])
    logger.debug(
        "Dominant axis %.3f deg from %d buckets (%.2f length)",
        winner.mean_angle, len(buckets), winner.total_length,
    )
    return axis


def perpendicular(axis: np.ndarray) -> np.ndarray:
    """``axis x Z`` in the plan: the axis turned a quarter clockwise."""
    return np.array([axis[1], -axis[0]], dtype=float)
