"""
Group stacked floor footprints into independent buildings.

The ground projection of every floor is unioned; each disjoint piece of the
union is a group. Floors and levels are assigned to a group by testing a
guaranteed-interior point of their own outline, which stays reliable for
concave shapes and courtyards where vertex containment would not.
"""
import logging
from dataclasses import dataclass, field
from typing import List, Optional, Sequence

from shapely.geometry import Point, Polygon
from shapely.ops import unary_union

from diagnostics import NO_FLOORS_OR_LEVELS, UNABLE_TO_PLACE_CORE, Diagnostics
from geometry_primitives import (
    FloorFootprint,
    LevelVolume,
    StackedProfile,
    point_internal,
    polygon_parts,
)

logger = logging.getLogger(__name__)

SYNTHETIC_LEVEL_HEIGHT = 3.0
SINGLE_FLOOR_HEIGHT_BUMP = 3.0
HEIGHT_MARGIN = 1.0


@dataclass
class FootprintGroup:
    """One building: a union polygon and the floors/levels inside it."""
    index: int
    polygon: Polygon
    floors: List[FloorFootprint]         # ordered by elevation
    levels: List[LevelVolume]            # ordered by elevation
    min_height: float
    max_height: float
    has_level_data: bool = False

    @property
    def floor_count(self) -> int:
        return len(self.floors)

    def contains(self, point) -> bool:
        return self.polygon.covers(Point(point))


@dataclass
class GroupingResult:
    groups: List[FootprintGroup] = field(default_factory=list)
    stacked_profiles: List[StackedProfile] = field(default_factory=list)
    floors: List[FloorFootprint] = field(default_factory=list)
    has_level_data: bool = False


def membership_point(outline: Polygon) -> Point:
    """A point of ``outline`` itself, courtyards excluded.

    The interior point of the outer ring is used when the outline covers it;
    otherwise (it fell in a hole) Shapely's representative point is.
    """
    candidate = Point(point_internal(Polygon(outline.exterior)))
    if outline.covers(candidate):
        return candidate
    return outline.representative_point()


def _is_member(outline: Polygon, group_polygon: Polygon) -> bool:
    return group_polygon.covers(membership_point(outline))


def levels_as_floors(levels: Sequence[LevelVolume]) -> List[FloorFootprint]:
    """Stand-in floors when a model only carries level volumes."""
    return [
        FloorFootprint(
            profile=lv.profile,
            elevation=lv.elevation,
            transform=lv.transform,
            name=lv.name,
        )
        for lv in levels
    ]


def stacked_profiles(
    floors: Sequence[FloorFootprint],
    levels: Sequence[LevelVolume],
) -> List[StackedProfile]:
    """Every floor at its elevation and every level at its top."""
    stacked = [StackedProfile(f.world_profile(), f.elevation) for f in floors]
    stacked.extend(
        StackedProfile(lv.world_profile(), lv.top_elevation) for lv in levels
    )
    return stacked


def group_footprints(
    floors: Sequence[FloorFootprint],
    levels: Optional[Sequence[LevelVolume]] = None,
    diagnostics: Optional[Diagnostics] = None,
    height_margin: float = HEIGHT_MARGIN,
    single_floor_bump: float = SINGLE_FLOOR_HEIGHT_BUMP,
    synthetic_level_height: float = SYNTHETIC_LEVEL_HEIGHT,
) -> GroupingResult:
    """Union floor footprints into groups and derive each group's height range.

    Args:
        floors: Floor footprints of every building.
        levels: Optional level volumes; when present they set the group tops.
        diagnostics: Collector for non-fatal warnings.

    Returns:
        GroupingResult with the groups in union order. Empty (with a warning)
        when there are neither floors nor levels.
    """
    if diagnostics is None:
        diagnostics = Diagnostics()
    floors = list(floors)
    levels = sorted(levels or [], key=lambda lv: lv.elevation)
    has_level_data = len(levels) > 0

    if not floors and not levels:
        diagnostics.warn(NO_FLOORS_OR_LEVELS)
        return GroupingResult()
    if not floors:
        floors = levels_as_floors(levels)

    floors_ordered = sorted(floors, key=lambda f: f.elevation)
    world = [f.world_profile() for f in floors_ordered]
    union = unary_union([w for w in world if not w.is_empty])

    result = GroupingResult(
        stacked_profiles=stacked_profiles(floors_ordered, levels),
        floors=floors_ordered,
        has_level_data=has_level_data,
    )

    for polygon in polygon_parts(union):
        members = [
            f for f, w in zip(floors_ordered, world)
            if not w.is_empty and _is_member(w, polygon)
        ]
        if not members:
            logger.warning(
                "Dropping footprint group at %s: no floor has an interior point in it",
                polygon.representative_point().coords[0],
            )
            diagnostics.warn(UNABLE_TO_PLACE_CORE)
            continue

        min_height = members[0].elevation
        max_height = members[-1].elevation + height_margin

        if has_level_data:
            member_levels = [
                lv for lv in levels if _is_member(lv.world_profile(), polygon)
            ]
            if member_levels:
                top = member_levels[-1]
                max_height = max(max_height, top.top_elevation + height_margin)
        else:
            member_levels = [
                LevelVolume(
                    profile=f.profile,
                    elevation=f.elevation,
                    height=synthetic_level_height,
                    building_name="Unknown",
                    name=f.name,
                    transform=f.transform,
                )
                for f in members
            ]

        if len(members) == 1 and not has_level_data:
            # a lone floor would otherwise get a flat core
            max_height += single_floor_bump

        group = FootprintGroup(
            index=len(result.groups),
            polygon=polygon,
            floors=members,
            levels=member_levels,
            min_height=min_height,
            max_height=max_height,
            has_level_data=has_level_data,
        )
        logger.info(
            "Group %d: %d floors, %d levels, heights %.2f..%.2f",
            group.index, len(members), len(member_levels), min_height, max_height,
        )
        result.groups.append(group)

    return result
