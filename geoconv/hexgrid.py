"""Hex-grid primitives over the h3 library, in (lon, lat) order."""

from typing import List, Sequence, Set, Tuple

import h3
from shapely.geometry import Polygon

from .exceptions import DataError

MIN_LEVEL = 0
MAX_LEVEL = 15

LonLat = Tuple[float, float]


def _open_ring(coords: Sequence[Sequence[float]]) -> List[Tuple[float, float]]:
    """Returns the ring as (lat, lng) pairs without the closing vertex."""
    ring = [(lat, lng) for lng, lat in (c[:2] for c in coords)]
    if len(ring) > 1 and ring[0] == ring[-1]:
        ring = ring[:-1]
    return ring


def cell_to_boundary(cell: str) -> List[LonLat]:
    """Returns the closed boundary ring of a cell."""

    ring = [(lng, lat) for lat, lng in h3.cell_to_boundary(cell)]
    ring.append(ring[0])
    return ring


def cell_to_polygon(cell: str) -> Polygon:
    """Returns the cell boundary as a polygon without holes."""

    return Polygon(cell_to_boundary(cell))


def polygon_fill(polygon: Polygon, level: int) -> Set[str]:
    """Returns the cells at ``level`` whose centroid lies in the polygon.

    Cells the polygon only partly overlaps are missed here; the 1-ring
    padding applied at the finest level makes up the difference.
    """

    shape = h3.LatLngPoly(
        _open_ring(polygon.exterior.coords),
        *[_open_ring(hole.coords) for hole in polygon.interiors],
    )
    return set(h3.polygon_to_cells(shape, level))


def neighbor_ring(cell: str) -> Set[str]:
    """Returns the 1-ring of a cell, the cell itself included."""

    return set(h3.grid_disk(cell, 1))


def cell_level(cell: str) -> int:
    """Returns the resolution level of a cell."""

    return h3.get_resolution(cell)


def point_to_cell(lon: float, lat: float, level: int) -> str:
    """Returns the cell at ``level`` containing the point."""

    return h3.latlng_to_cell(lat, lon, level)


def parse_cell(text: str) -> str:
    """Parses a hexadecimal cell id."""

    try:
        value = int(text.strip(), 16)
    except ValueError as e:
        raise DataError(f"Cell id {text!r} is not a hexadecimal number") from e
    if not 0 < value < 1 << 64:
        raise DataError(f"Cell id {text!r} is not a valid H3 cell")
    cell = h3.int_to_str(value)
    if not h3.is_valid_cell(cell):
        raise DataError(f"Cell id {text!r} is not a valid H3 cell")
    return cell


def format_cell(cell: str) -> str:
    """Renders a cell as lowercase hex, no prefix and no zero padding."""

    return format(h3.str_to_int(cell), "x")
