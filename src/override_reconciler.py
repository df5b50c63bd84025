"""
Layer user edits on top of automatically placed cores.

Reconciliation is a fold over an ordered list of edit operations. Each
operation takes the current tuple of cores and returns a new one; nothing is
mutated in place. The order is fixed:

  1. legacy additional core locations
  2. user-drawn additions
  3. dimension edits
  4. full boundary replacements
  5. removals

Edits find their target with ``nearest_core`` (plain centroid distance). Two
edits may match the same core in sequence; each sees what earlier edits left.
"""
import logging
from dataclasses import dataclass, field, replace
from typing import Iterable, List, Optional, Sequence, Tuple

import numpy as np
from shapely.geometry import Point, Polygon

from diagnostics import UNABLE_TO_PLACE_CORE, Diagnostics
from geometry_primitives import (
    StackedProfile,
    Vec2,
    centroid,
    is_rectangle,
    longest_segment_direction,
    principal_extents,
)
from overrides import (
    ADDITION_OVERRIDE_NAME,
    CORE_EDIT_OVERRIDE_NAME,
    DIMENSION_OVERRIDE_NAME,
    REMOVAL_OVERRIDE_NAME,
    AdditionOverride,
    CoreEditOverride,
    CorePlacementInputs,
    DimensionOverride,
    RemovalOverride,
)
from service_core import (
    CoreCandidate,
    OverrideProvenance,
    build_core_at_point,
    build_core_from_polygon,
)

logger = logging.getLogger(__name__)

Cores = Tuple[CoreCandidate, ...]

DEFAULT_REMOVAL_MATCH_DISTANCE = 1.0


@dataclass
class GroupContext:
    """What an edit needs to know about the group it lands in."""
    polygon: Polygon
    min_height: float
    max_height: float
    axis: np.ndarray
    stacked_profiles: List[StackedProfile] = field(default_factory=list)
    height_margin: float = 1.0
    removal_match_distance: float = DEFAULT_REMOVAL_MATCH_DISTANCE

    def contains(self, point: Vec2) -> bool:
        return self.polygon.covers(Point(point))


def nearest_core(
    cores: Sequence[CoreCandidate],
    point: Vec2,
    max_distance: Optional[float] = None,
) -> Optional[CoreCandidate]:
    """Core whose centroid is closest to ``point``.

    The first core wins exact ties. With ``max_distance`` set, a best match
    at or beyond that distance counts as no match.
    """
    if not cores:
        return None
    best = min(cores, key=lambda c: c.distance_to(point))
    if max_distance is not None and best.distance_to(point) >= max_distance:
        return None
    return best


def _without(cores: Cores, core: CoreCandidate) -> Cores:
    return tuple(c for c in cores if c.id != core.id)


# ─── Edit operations ─────────────────────────────────────────────────────────

@dataclass(frozen=True)
class PlaceAdditionalCore:
    """Deprecated: a core at an explicit point, oriented like the auto core."""
    point: Vec2
    length: float
    width: float

    def apply(self, cores: Cores, ctx: GroupContext) -> Cores:
        core = build_core_at_point(
            self.point, ctx.axis, self.length, self.width,
            ctx.min_height, ctx.max_height, ctx.stacked_profiles, ctx.height_margin,
        )
        return cores + (core,)


@dataclass(frozen=True)
class AddCore:
    override: AdditionOverride

    def apply(self, cores: Cores, ctx: GroupContext) -> Cores:
        profile = self.override.profile
        unedited, _, _ = is_rectangle(profile)
        length, depth = principal_extents(profile)
        core = build_core_from_polygon(
            profile, ctx.min_height, ctx.max_height,
            ctx.stacked_profiles, ctx.height_margin,
            length=length,
            depth=depth,
            boundary_is_unedited=unedited,
            provenance=(
                OverrideProvenance(
                    ADDITION_OVERRIDE_NAME, self.override.id, centroid(profile),
                ),
            ),
        )
        return cores + (core,)


@dataclass(frozen=True)
class ResizeCore:
    """Explicit length/depth for the nearest core; never clamped."""
    override: DimensionOverride

    def apply(self, cores: Cores, ctx: GroupContext) -> Cores:
        match = nearest_core(cores, self.override.identity_centroid)
        if match is None:
            logger.debug("Dimension override %s has no core to resize", self.override.id)
            return cores
        if match.axis is not None:
            axis = np.array(match.axis)
        else:
            axis = longest_segment_direction(match.boundary)
        resized = build_core_at_point(
            match.centroid,
            axis,
            self.override.length,
            self.override.depth,
            ctx.min_height, ctx.max_height, ctx.stacked_profiles, ctx.height_margin,
        )
        provenance = match.provenance + (
            OverrideProvenance(
                DIMENSION_OVERRIDE_NAME, self.override.id,
                self.override.identity_centroid,
            ),
        )
        resized = replace(resized, provenance=provenance)
        return _without(cores, match) + (resized,)


@dataclass(frozen=True)
class ReplaceCore:
    """User-edited boundary replacing the nearest core."""
    override: CoreEditOverride

    def apply(self, cores: Cores, ctx: GroupContext) -> Cores:
        match = nearest_core(cores, self.override.identity_centroid)
        if match is None:
            logger.debug("Core override %s has no core to replace", self.override.id)
            return cores
        profile = self.override.profile
        length, depth = principal_extents(profile)
        replacement = CoreCandidate(
            boundary=profile,
            centroid=centroid(profile),
            min_height=ctx.min_height,
            max_height=ctx.min_height + match.height,
            length=length,
            depth=depth,
            boundary_is_unedited=False,
            provenance=match.provenance + (
                OverrideProvenance(
                    CORE_EDIT_OVERRIDE_NAME, self.override.id,
                    self.override.identity_centroid,
                ),
            ),
        )
        return _without(cores, match) + (replacement,)


@dataclass(frozen=True)
class RemoveCore:
    override: RemovalOverride

    def apply(self, cores: Cores, ctx: GroupContext) -> Cores:
        match = nearest_core(
            cores, self.override.identity_centroid, ctx.removal_match_distance,
        )
        if match is None:
            logger.debug(
                "%s %s matched nothing near %s",
                REMOVAL_OVERRIDE_NAME, self.override.id,
                self.override.identity_centroid,
            )
            return cores
        return _without(cores, match)


# ─── Building and applying edits ─────────────────────────────────────────────

def additive_operations(ctx: GroupContext, inputs: CorePlacementInputs) -> list:
    """Steps 1-2: operations that only add cores."""
    ops: list = [
        PlaceAdditionalCore(point, inputs.length, inputs.width)
        for point in inputs.additional_core_locations
        if ctx.contains(point)
    ]
    ops.extend(
        AddCore(o) for o in inputs.overrides.additions
        if ctx.contains(centroid(o.profile))
    )
    return ops


def edit_operations(ctx: GroupContext, inputs: CorePlacementInputs) -> list:
    """Steps 3-5: operations that rework or remove existing cores."""
    overrides = inputs.overrides
    ops: list = [
        ResizeCore(o) for o in overrides.core_dimensions
        if ctx.contains(o.identity_centroid)
    ]
    ops.extend(
        ReplaceCore(o) for o in overrides.cores if ctx.contains(o.identity_centroid)
    )
    ops.extend(
        RemoveCore(o) for o in overrides.removals if ctx.contains(o.identity_centroid)
    )
    return ops


def build_edit_operations(ctx: GroupContext, inputs: CorePlacementInputs) -> list:
    """Every operation for this group, in precedence order."""
    return additive_operations(ctx, inputs) + edit_operations(ctx, inputs)


def apply_edits(cores: Iterable[CoreCandidate], operations: Iterable, ctx: GroupContext) -> Cores:
    result: Cores = tuple(cores)
    for op in operations:
        result = op.apply(result, ctx)
    return result


def reconcile_cores(
    auto_cores: Iterable[CoreCandidate],
    ctx: GroupContext,
    inputs: CorePlacementInputs,
    diagnostics: Optional[Diagnostics] = None,
) -> List[CoreCandidate]:
    """Final cores of one group after all user edits.

    Warns when neither automatic placement nor additions produced a core.
    """
    if diagnostics is None:
        diagnostics = Diagnostics()
    cores = apply_edits(auto_cores, additive_operations(ctx, inputs), ctx)
    if not cores:
        diagnostics.warn(UNABLE_TO_PLACE_CORE)
    cores = apply_edits(cores, edit_operations(ctx, inputs), ctx)
    return list(cores)
