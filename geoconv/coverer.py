"""Adaptive multi-resolution cell covering."""

import logging
import threading
from collections import Counter
from collections.abc import Mapping
from concurrent.futures import ThreadPoolExecutor
from functools import partial
from typing import Dict, Iterator, Optional, Set

from shapely.geometry import LinearRing, Polygon

from . import hexgrid
from .config import ResolutionRange
from .store import AttributeMap, GeometryAttributeStore, Record

logger = logging.getLogger(__name__)


class CoverageResult(Mapping):
    """Cell to attributes mapping written by concurrent covering workers."""

    def __init__(self) -> None:
        self._cells: Dict[str, AttributeMap] = {}
        self._lock = threading.Lock()

    def put(self, cell: str, attributes: AttributeMap) -> None:
        """Binds a cell, replacing any previous binding."""

        with self._lock:
            self._cells[cell] = attributes

    def put_if_absent(self, cell: str, attributes: AttributeMap) -> bool:
        """Binds a cell only if it is unbound; returns True when it was."""

        with self._lock:
            if cell in self._cells:
                return False
            self._cells[cell] = attributes
            return True

    def levels(self) -> Dict[int, int]:
        """Counts cells per resolution level."""

        with self._lock:
            return dict(Counter(hexgrid.cell_level(c) for c in self._cells))

    def __getitem__(self, cell: str) -> AttributeMap:
        return self._cells[cell]

    def __iter__(self) -> Iterator[str]:
        with self._lock:
            return iter(list(self._cells))

    def __len__(self) -> int:
        return len(self._cells)


def interior_cells(cells: Set[str]) -> Set[str]:
    """Cells whose whole 1-ring lies in ``cells``."""

    return {cell for cell in cells if hexgrid.neighbor_ring(cell) <= cells}


def carve(polygon: Polygon, cells: Set[str]) -> Polygon:
    """Returns a new polygon with every cell boundary added as a hole.

    Holes are wound opposite to the shell.
    """

    if not cells:
        return polygon
    hole_ccw = not polygon.exterior.is_ccw
    holes = [list(hole.coords) for hole in polygon.interiors]
    for cell in sorted(cells):
        ring = hexgrid.cell_to_boundary(cell)
        if LinearRing(ring).is_ccw != hole_ccw:
            ring.reverse()
        holes.append(ring)
    return Polygon(polygon.exterior.coords, holes)


class AdaptiveCoverer:
    """Covers records with cells from a range of resolution levels.

    Polygon interiors are kept at the coarsest level whose cells fit and only
    the boundary band is refined, level by level. Points use the finest level.
    """

    _resolution: ResolutionRange
    _max_workers: Optional[int]

    def __init__(
        self, resolution: ResolutionRange, max_workers: Optional[int] = None
    ) -> None:
        self._resolution = resolution
        self._max_workers = max_workers

    @property
    def resolution(self) -> ResolutionRange:
        """Returns the resolution range."""
        return self._resolution

    def cover(self, store: GeometryAttributeStore) -> CoverageResult:
        """Covers every record of the store."""

        result = CoverageResult()
        with ThreadPoolExecutor(max_workers=self._max_workers) as executor:
            list(executor.map(partial(self.cover_record, result=result), store))
        logger.info(
            "covered %d records with %d cells, per level %s",
            len(store),
            len(result),
            dict(sorted(result.levels().items())),
        )
        return result

    def cover_record(self, record: Record, result: CoverageResult) -> None:
        """Writes the covering of one record into ``result``."""

        if record.is_point:
            point = record.geometry
            result.put(
                hexgrid.point_to_cell(point.x, point.y, self._resolution.max_level),
                record.attributes,
            )
        else:
            self.cover_polygon(record.geometry, record.attributes, result)

    def cover_polygon(
        self, polygon: Polygon, attributes: AttributeMap, result: CoverageResult
    ) -> None:
        """Writes the adaptive covering of one polygon into ``result``.

        Above the finest level, interior cells are accepted and carved out of
        the working polygon; the boundary band left over is filled again at
        the next level. At the finest level every filled cell is accepted and
        then padded with its 1-ring without replacing existing bindings.
        """

        finest = self._resolution.max_level
        working = polygon
        coarse = 0
        for level in self._resolution.levels:
            cells = hexgrid.polygon_fill(working, level)
            if level == finest:
                break
            interior = interior_cells(cells)
            logger.debug(
                "level %d: %d filled, %d interior", level, len(cells), len(interior)
            )
            for cell in interior:
                result.put(cell, attributes)
            coarse += len(interior)
            working = carve(working, interior)

        if not cells and not coarse:
            # smaller than a cell at the finest level
            cells = {
                hexgrid.point_to_cell(x, y, finest)
                for x, y, *_ in polygon.exterior.coords
            }
        logger.debug("level %d: %d filled", finest, len(cells))
        for cell in cells:
            result.put(cell, attributes)
        for cell in cells:
            for neighbor in hexgrid.neighbor_ring(cell):
                result.put_if_absent(neighbor, attributes)
