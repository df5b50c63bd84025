"""
User override records and placement inputs.

Overrides arrive as JSON from the editing client. Each edit carries the
centroid of the core as the user last saw it (its identity) and the new value.
Identity centroids are only ever used to find the core an edit refers to.
"""
from __future__ import annotations

from dataclasses import dataclass, field
from typing import Any, Dict, List, Optional, Sequence

from shapely.geometry import Polygon

from geometry_primitives import Vec2, profile_to_polygon

MIN_INPUT_DIMENSION = 1.0
MAX_INPUT_DIMENSION = 50.0

ADDITION_OVERRIDE_NAME = "Cores Addition"
DIMENSION_OVERRIDE_NAME = "CoreDimensions"
CORE_EDIT_OVERRIDE_NAME = "Cores"
REMOVAL_OVERRIDE_NAME = "Cores Removal"


@dataclass(frozen=True)
class AdditionOverride:
    """A core drawn by the user."""
    id: str
    profile: Polygon


@dataclass(frozen=True)
class DimensionOverride:
    """New explicit length/depth for an existing core."""
    id: str
    identity_centroid: Vec2
    length: float
    depth: float


@dataclass(frozen=True)
class CoreEditOverride:
    """Full replacement of an existing core's boundary."""
    id: str
    identity_centroid: Vec2
    profile: Polygon


@dataclass(frozen=True)
class RemovalOverride:
    """Deletion of an existing core."""
    id: str
    identity_centroid: Vec2


@dataclass
class Overrides:
    additions: List[AdditionOverride] = field(default_factory=list)
    core_dimensions: List[DimensionOverride] = field(default_factory=list)
    cores: List[CoreEditOverride] = field(default_factory=list)
    removals: List[RemovalOverride] = field(default_factory=list)

    def __len__(self) -> int:
        return (
            len(self.additions) + len(self.core_dimensions)
            + len(self.cores) + len(self.removals)
        )

    @classmethod
    def from_dict(cls, payload: Optional[Dict[str, Any]]) -> "Overrides":
        payload = payload or {}
        additions = _get(_get(payload, "Additions") or {}, "Cores") or []
        removals = _get(_get(payload, "Removals") or {}, "Cores") or []
        return cls(
            additions=[_parse_addition(o) for o in additions],
            core_dimensions=[_parse_dimension(o) for o in _get(payload, "CoreDimensions") or []],
            cores=[_parse_core_edit(o) for o in _get(payload, "Cores") or []],
            removals=[_parse_removal(o) for o in removals],
        )


@dataclass
class CorePlacementInputs:
    """User-facing parameters of a placement run.

    ``length``/``width`` size the cores placed at the deprecated
    ``additional_core_locations``.
    """
    length: float = 18.0
    width: float = 10.0
    additional_core_locations: List[Vec2] = field(default_factory=list)
    overrides: Overrides = field(default_factory=Overrides)

    def __post_init__(self):
        for name in ("length", "width"):
            value = getattr(self, name)
            if not MIN_INPUT_DIMENSION <= value <= MAX_INPUT_DIMENSION:
                raise ValueError(
                    f"{name} must be between {MIN_INPUT_DIMENSION} and "
                    f"{MAX_INPUT_DIMENSION}, got {value}"
                )

    @classmethod
    def from_dict(cls, payload: Optional[Dict[str, Any]]) -> "CorePlacementInputs":
        payload = payload or {}
        locations = _get(payload, "AdditionalCoreLocations") or []
        return cls(
            length=float(_get(payload, "Length", 18.0)),
            width=float(_get(payload, "Width", 10.0)),
            additional_core_locations=[_parse_point(p) for p in locations],
            overrides=Overrides.from_dict(_get(payload, "overrides")),
        )


# ─── JSON parsing helpers ────────────────────────────────────────────────────

def _get(payload: Dict[str, Any], key: str, default: Any = None) -> Any:
    """Look up ``key`` accepting either case of its first letter."""
    for candidate in (key, key[0].lower() + key[1:], key[0].upper() + key[1:]):
        if candidate in payload:
            return payload[candidate]
    return default


def _require_float(payload: Dict[str, Any], key: str) -> float:
    value = _get(payload, key)
    if value is None:
        raise ValueError(f"Missing {key} in {payload!r}")
    return float(value)


def _parse_point(raw: Any) -> Vec2:
    if isinstance(raw, dict):
        x, y = _get(raw, "X"), _get(raw, "Y")
        if x is None or y is None:
            raise ValueError(f"Point needs X and Y: {raw!r}")
        return (float(x), float(y))
    if isinstance(raw, Sequence) and len(raw) >= 2:
        return (float(raw[0]), float(raw[1]))
    raise ValueError(f"Cannot read a point from {raw!r}")


def _parse_polygon(raw: Any) -> Polygon:
    """Read ``{"Perimeter": {"vertices": [...]}}`` or a plain vertex list."""
    if raw is None:
        raise ValueError("Override has no profile")
    if isinstance(raw, dict):
        perimeter = _get(raw, "Perimeter", raw)
        vertices = _get(perimeter, "Vertices") if isinstance(perimeter, dict) else perimeter
        if vertices is None:
            raise ValueError(f"Polygon has no vertices: {raw!r}")
        voids = _get(raw, "Voids") or []
        holes = [[_parse_point(v) for v in _get(h, "Vertices") or []] for h in voids]
    else:
        vertices, holes = raw, []
    polygon = profile_to_polygon([_parse_point(v) for v in vertices], holes)
    if polygon.is_empty:
        raise ValueError("Override polygon needs at least three vertices")
    return polygon


def _parse_identity_centroid(raw: Dict[str, Any]) -> Vec2:
    identity = _get(raw, "Identity")
    if identity is None:
        raise KeyError(f"Override {_get(raw, 'id')!r} has no identity")
    return _parse_point(_get(identity, "Centroid"))


def _parse_addition(raw: Dict[str, Any]) -> AdditionOverride:
    value = _get(raw, "Value") or {}
    return AdditionOverride(id=str(_get(raw, "Id", "")), profile=_parse_polygon(_get(value, "Profile")))


def _parse_dimension(raw: Dict[str, Any]) -> DimensionOverride:
    value = _get(raw, "Value") or {}
    return DimensionOverride(
        id=str(_get(raw, "Id", "")),
        identity_centroid=_parse_identity_centroid(raw),
        length=_require_float(value, "Length"),
        depth=_require_float(value, "Depth"),
    )


def _parse_core_edit(raw: Dict[str, Any]) -> CoreEditOverride:
    value = _get(raw, "Value") or {}
    return CoreEditOverride(
        id=str(_get(raw, "Id", "")),
        identity_centroid=_parse_identity_centroid(raw),
        profile=_parse_polygon(_get(value, "Profile")),
    )


def _parse_removal(raw: Dict[str, Any]) -> RemovalOverride:
    return RemovalOverride(
        id=str(_get(raw, "Id", "")),
        identity_centroid=_parse_identity_centroid(raw),
    )
