"""GeoJSON documents: models, flattening and writing."""

import json
from enum import Enum
from typing import Annotated, Any, Dict, List, Literal, Optional, Union

from pydantic import BaseModel, Field, TypeAdapter, ValidationError
from shapely.geometry import mapping

from .exceptions import DataError
from .flatten import DocumentFlattener, Visit
from .store import Geometry as LeafGeometry
from .store import GeometryAttributeStore, make_point, make_polygon

Position = List[float]


class GeometryType(str, Enum):
    """GeoJSON geometry type."""

    Point = "Point"
    MultiPoint = "MultiPoint"
    LineString = "LineString"
    MultiLineString = "MultiLineString"
    Polygon = "Polygon"
    MultiPolygon = "MultiPolygon"
    GeometryCollection = "GeometryCollection"


class Geometry(BaseModel):
    """GeoJSON geometry."""

    type: GeometryType
    coordinates: Optional[
        Union[
            Position,
            List[Position],
            List[List[Position]],
            List[List[List[Position]]],
        ]
    ] = Field(None, description="Positions, nested by geometry type.")
    geometries: Optional[List["Geometry"]] = Field(
        None, description="Members of a GeometryCollection."
    )


class Feature(BaseModel):
    """GeoJSON feature."""

    type: Literal["Feature"]
    id: Optional[Union[str, int, float]] = None
    properties: Optional[Dict[str, Any]] = None
    geometry: Optional[Geometry] = None


class FeatureCollection(BaseModel):
    """GeoJSON feature collection."""

    type: Literal["FeatureCollection"]
    features: List[Feature] = Field(default_factory=list)


GeoJsonRoot = Annotated[Union[Feature, FeatureCollection], Field(discriminator="type")]

_ROOT = TypeAdapter(GeoJsonRoot)


def parse_geojson(text: str) -> Union[Feature, FeatureCollection]:
    """Parses a GeoJSON document rooted at a Feature or FeatureCollection."""

    try:
        data = json.loads(text)
    except ValueError as e:
        raise DataError(f"Input is not valid JSON: {e}") from e
    if not isinstance(data, dict) or data.get("type") not in (
        "Feature",
        "FeatureCollection",
    ):
        raise DataError(
            "Input JSON root element was neither Feature nor FeatureCollection"
        )
    try:
        return _ROOT.validate_python(data)
    except ValidationError as e:
        raise DataError(f"Input JSON is not valid GeoJSON: {e}") from e


def leaf_geometries(geometry: Optional[Geometry]) -> List[LeafGeometry]:
    """Extracts the points and polygons of a GeoJSON geometry."""

    leaves: List[LeafGeometry] = []
    stack = [geometry]
    while stack:
        current = stack.pop()
        if current is None:
            continue
        coords = current.coordinates or []
        if current.type == GeometryType.Point:
            leaves.append(make_point(coords))
        elif current.type == GeometryType.MultiPoint:
            leaves.extend(make_point(p) for p in coords)
        elif current.type == GeometryType.Polygon:
            if coords:
                leaves.append(make_polygon(coords[0], coords[1:]))
        elif current.type == GeometryType.MultiPolygon:
            leaves.extend(make_polygon(p[0], p[1:]) for p in coords if p)
        elif current.type == GeometryType.GeometryCollection:
            stack.extend(reversed(current.geometries or []))
    return [leaf for leaf in leaves if leaf is not None]


class GeoJsonFlattener(DocumentFlattener):
    """Flattens GeoJSON text into records."""

    def root(self, document: str) -> Union[Feature, FeatureCollection]:
        return parse_geojson(document)

    def visit(self, node: Union[Feature, FeatureCollection]) -> Visit:
        if isinstance(node, FeatureCollection):
            return [], list(node.features)
        try:
            leaves = leaf_geometries(node.geometry)
        except (TypeError, ValueError) as e:
            raise DataError(
                f"Feature {node.id!r} has malformed coordinates: {e}"
            ) from e
        return self.records(leaves, node.properties or {}), []


def write_geojson(store: GeometryAttributeStore) -> str:
    """Renders the store as a FeatureCollection."""

    features = [
        Feature(
            type="Feature",
            properties=record.attributes,
            geometry=Geometry.model_validate(mapping(record.geometry)),
        )
        for record in store
    ]
    collection = FeatureCollection(type="FeatureCollection", features=features)
    return collection.model_dump_json(exclude_unset=True)
