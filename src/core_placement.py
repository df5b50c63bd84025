"""
Service core placement: footprints in, reconciled cores out.

For every footprint group:
  1. Intersect the group with each of its floors to find the area shared by
     the whole stack (falling back to the group outline when it is empty).
  2. Search that area for a deep anchor point and a dominant axis.
  3. Size a core against the clearances around the anchor.
  4. Build the oriented core rectangle.
  5. Layer user overrides on top.
Groups never share state, so they can be processed in any order.
"""
import logging
from dataclasses import dataclass, field
from typing import Dict, List, Optional, Sequence, Tuple

from shapely.geometry import Point, Polygon

from core_location import AnchorResult, compute_anchor
from core_sizing import CoreSizingConfig, core_dimensions
from diagnostics import Diagnostics
from footprint_grouper import FootprintGroup, group_footprints
from geometry_primitives import (
    FloorFootprint,
    LevelVolume,
    StackedProfile,
    polygon_parts,
    polygon_to_profile,
)
from override_reconciler import GroupContext, reconcile_cores
from overrides import CorePlacementInputs
from service_core import CoreCandidate, build_core_at_point, cores_summary

logger = logging.getLogger(__name__)

SCHEMA_VERSION = "core_placement.result.v1"


@dataclass
class CorePlacementConfig:
    """Tunables of the placement run (plan/elevation units)."""

    erosion_step: float = 1.0
    max_erosion_iterations: int = 1000
    height_margin: float = 1.0
    single_floor_height_bump: float = 3.0
    synthetic_level_height: float = 3.0
    removal_match_distance: float = 1.0
    sizing: CoreSizingConfig = field(default_factory=CoreSizingConfig)


@dataclass
class CoreArea:
    """Plan area a core takes out of one level; reporting only."""
    core_id: str
    boundary: Polygon
    area: float
    elevation: float
    building_name: str
    level_name: Optional[str]

    def to_dict(self) -> Dict[str, object]:
        return {
            "core_id": self.core_id,
            "boundary": polygon_to_profile(self.boundary),
            "area": self.area,
            "elevation": self.elevation,
            "building_name": self.building_name,
            "level_name": self.level_name,
        }


@dataclass
class GroupResult:
    group: FootprintGroup
    cores: List[CoreCandidate] = field(default_factory=list)
    core_areas: List[CoreArea] = field(default_factory=list)
    anchor: Optional[AnchorResult] = None
    auto_core: Optional[CoreCandidate] = None


@dataclass
class CorePlacementResult:
    groups: List[GroupResult] = field(default_factory=list)
    warnings: List[str] = field(default_factory=list)

    @property
    def cores(self) -> List[CoreCandidate]:
        return [c for g in self.groups for c in g.cores]

    @property
    def core_areas(self) -> List[CoreArea]:
        return [a for g in self.groups for a in g.core_areas]

    def to_dict(self) -> Dict[str, object]:
        return {
            "schema_version": SCHEMA_VERSION,
            "warnings": list(self.warnings),
            "groups": [
                {
                    "index": g.group.index,
                    "boundary": polygon_to_profile(g.group.polygon),
                    "min_height": g.group.min_height,
                    "max_height": g.group.max_height,
                    "floor_count": g.group.floor_count,
                    "anchor": list(g.anchor.point) if g.anchor else None,
                    "cores": [c.to_dict() for c in g.cores],
                    "core_areas": [a.to_dict() for a in g.core_areas],
                }
                for g in self.groups
            ],
        }


def placement_polygon(group: FootprintGroup) -> Polygon:
    """Area shared by every floor of the group, or the group outline."""
    running: List[Polygon] = [group.polygon]
    for floor in group.floors:
        world = floor.world_profile()
        running = [
            part
            for poly in running
            for part in polygon_parts(poly.intersection(world))
            if part.area > 0
        ]
        if not running:
            break
    if not running:
        logger.debug("Group %d floors share no area; using group outline", group.index)
        return group.polygon
    return sorted(running, key=lambda p: p.area)[-1]


def auto_core(
    group: FootprintGroup,
    stacked: List[StackedProfile],
    config: CorePlacementConfig,
) -> Tuple[Optional[CoreCandidate], AnchorResult]:
    """Automatically placed core for a group, or None if placement failed.

    Returns:
        (core or None, AnchorResult)
    """
    shape = placement_polygon(group)
    perimeter = Polygon(shape.exterior)
    anchor = compute_anchor(
        perimeter, config.erosion_step, config.max_erosion_iterations,
    )
    if not group.polygon.covers(Point(anchor.point)):
        logger.info(
            "Group %d: anchor %s fell outside the footprint", group.index, anchor.point,
        )
        return None, anchor

    length, depth = core_dimensions(perimeter, anchor.point, anchor.axis, config.sizing)
    core = build_core_at_point(
        anchor.point, anchor.axis, length, depth,
        group.min_height, group.max_height, stacked, config.height_margin,
    )
    return core, anchor


def core_areas_for(group: FootprintGroup, cores: Sequence[CoreCandidate]) -> List[CoreArea]:
    """One record per (level, core) pair where the level sits within the core.

    Level elevations are compared with the core's absolute top, not with
    its extrusion height; the two differ once a group starts above zero.
    """
    areas = []
    for level in group.levels:
        for core in cores:
            if level.elevation <= core.max_height:
                areas.append(CoreArea(
                    core_id=core.id,
                    boundary=core.boundary,
                    area=core.area,
                    elevation=level.elevation,
                    building_name=level.building_name,
                    level_name=level.name,
                ))
    return areas


def place_cores(
    floors: Sequence[FloorFootprint],
    levels: Optional[Sequence[LevelVolume]] = None,
    inputs: Optional[CorePlacementInputs] = None,
    config: Optional[CorePlacementConfig] = None,
) -> CorePlacementResult:
    """Place service cores in every footprint group.

    Args:
        floors: Floor footprints of all buildings.
        levels: Optional level volumes (take precedence for heights).
        inputs: User parameters and overrides.
        config: Placement tunables.

    Returns:
        CorePlacementResult with cores, core areas and warnings.
    """
    if inputs is None:
        inputs = CorePlacementInputs()
    if config is None:
        config = CorePlacementConfig()

    diagnostics = Diagnostics()
    grouping = group_footprints(
        floors,
        levels,
        diagnostics,
        height_margin=config.height_margin,
        single_floor_bump=config.single_floor_height_bump,
        synthetic_level_height=config.synthetic_level_height,
    )

    result = CorePlacementResult()
    for group in grouping.groups:
        core, anchor = auto_core(group, grouping.stacked_profiles, config)
        ctx = GroupContext(
            polygon=group.polygon,
            min_height=group.min_height,
            max_height=group.max_height,
            axis=anchor.axis,
            stacked_profiles=grouping.stacked_profiles,
            height_margin=config.height_margin,
            removal_match_distance=config.removal_match_distance,
        )
        auto = [core] if core is not None else []
        cores = reconcile_cores(auto, ctx, inputs, diagnostics)
        logger.info("Group %d: %d cores [%s]", group.index, len(cores), cores_summary(cores))

        result.groups.append(GroupResult(
            group=group,
            cores=cores,
            core_areas=core_areas_for(group, cores),
            anchor=anchor,
            auto_core=core,
        ))

    result.warnings = list(diagnostics.warnings)
    return result
