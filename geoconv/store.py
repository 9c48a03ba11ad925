"""Canonical geometry + attribute model."""

import json
from dataclasses import dataclass, field
from typing import Any, Dict, Iterable, Iterator, List, Optional, Sequence, Union

import shapely
from shapely.geometry import Point, Polygon
from shapely.geometry.base import BaseGeometry, BaseMultipartGeometry

AttributeMap = Dict[str, Any]
Geometry = Union[Point, Polygon]


@dataclass(frozen=True)
class Record:
    """A geometry with its attributes."""

    geometry: Geometry
    attributes: AttributeMap = field(default_factory=dict)

    @property
    def is_point(self) -> bool:
        """True for point records."""
        return isinstance(self.geometry, Point)


class GeometryAttributeStore:
    """Ordered records of one run, frozen once populated."""

    _records: List[Record]
    _frozen: bool

    def __init__(self, records: Optional[Iterable[Record]] = None) -> None:
        self._records = list(records or [])
        self._frozen = False

    def add(self, geometry: Geometry, attributes: AttributeMap) -> Record:
        """Appends a record; attributes are copied."""

        record = Record(geometry=geometry, attributes=dict(attributes))
        self.extend([record])
        return record

    def extend(self, records: Iterable[Record]) -> None:
        """Appends records in order."""

        if self._frozen:
            raise RuntimeError("GeometryAttributeStore is frozen")
        self._records.extend(records)

    def freeze(self) -> "GeometryAttributeStore":
        """Forbids further additions."""

        self._frozen = True
        return self

    @property
    def frozen(self) -> bool:
        """Whether the store still accepts records."""
        return self._frozen

    @property
    def records(self) -> List[Record]:
        """Returns a copy of the records."""
        return list(self._records)

    @property
    def polygons(self) -> List[Record]:
        """Returns the polygon records."""
        return [r for r in self._records if not r.is_point]

    @property
    def points(self) -> List[Record]:
        """Returns the point records."""
        return [r for r in self._records if r.is_point]

    def __iter__(self) -> Iterator[Record]:
        return iter(self._records)

    def __len__(self) -> int:
        return len(self._records)


def render_value(value: Any) -> str:
    """Renders an attribute value as text; strings are kept verbatim."""

    if value is None:
        return ""
    if isinstance(value, str):
        return value
    return json.dumps(value, ensure_ascii=False, default=str)


def make_point(position: Sequence[float]) -> Optional[Point]:
    """Builds a point from a (lon, lat[, alt]) position."""

    if position is None or len(position) < 2:
        return None
    return Point(float(position[0]), float(position[1]))


def make_ring(positions: Sequence[Sequence[float]]) -> Optional[List[tuple]]:
    """Returns the ring as (lon, lat) pairs, or None unless it is closed."""

    if positions is None or len(positions) < 4:
        return None
    if any(len(p) < 2 for p in positions):
        return None
    ring = [(float(p[0]), float(p[1])) for p in positions]
    if ring[0] != ring[-1]:
        return None
    return ring


def make_polygon(
    shell: Sequence[Sequence[float]], holes: Sequence[Sequence[Sequence[float]]] = ()
) -> Optional[Polygon]:
    """Builds a polygon; any unusable ring drops the whole polygon."""

    outer = make_ring(shell)
    if outer is None:
        return None
    inner = [make_ring(hole) for hole in holes]
    if any(ring is None for ring in inner):
        return None
    return Polygon(outer, inner)


def leaf_geometries(geometry: Optional[BaseGeometry]) -> List[Geometry]:
    """Flattens multi-part geometries into 2D points and polygons.

    Lines and empty parts are dropped.
    """

    leaves: List[Geometry] = []
    stack = [geometry]
    while stack:
        current = stack.pop()
        if current is None or current.is_empty:
            continue
        if isinstance(current, (Point, Polygon)):
            leaves.append(shapely.force_2d(current))
        elif isinstance(current, BaseMultipartGeometry):
            stack.extend(reversed(list(current.geoms)))
    return leaves
