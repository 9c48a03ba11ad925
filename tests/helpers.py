"""Test helpers."""

import h3
from shapely.geometry import Point


def sample_points(polygon, steps=12, margin=0.02):
    """Grid of (lon, lat) points inside the polygon, away from its edges."""

    inner = polygon.buffer(-margin)
    minx, miny, maxx, maxy = inner.bounds
    points = []
    for i in range(steps + 1):
        for j in range(steps + 1):
            lon = minx + (maxx - minx) * i / steps
            lat = miny + (maxy - miny) * j / steps
            if inner.contains(Point(lon, lat)):
                points.append((lon, lat))
    return points


def covered(cells, lon, lat, levels):
    """True if the cell holding the point at one of the levels is in ``cells``."""
    return any(h3.latlng_to_cell(lat, lon, level) in cells for level in levels)
