"""Shared fixtures."""

import json

import pytest
from shapely.geometry import box

from geoconv.store import GeometryAttributeStore


@pytest.fixture
def square():
    """One degree square."""
    return box(5.0, 45.0, 6.0, 46.0)


@pytest.fixture
def small_square():
    return box(5.0, 45.0, 5.3, 45.3)


@pytest.fixture
def square_store(square):
    store = GeometryAttributeStore()
    store.add(square, {"name": "Sq"})
    return store.freeze()


@pytest.fixture
def square_geojson(tmp_path, square):
    """GeoJSON file holding the one degree square named Sq."""

    path = tmp_path / "square.geojson"
    feature = {
        "type": "Feature",
        "properties": {"name": "Sq"},
        "geometry": {
            "type": "Polygon",
            "coordinates": [[list(c) for c in square.exterior.coords]],
        },
    }
    path.write_text(json.dumps(feature), encoding="utf-8")
    return path
