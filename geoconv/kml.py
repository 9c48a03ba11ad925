"""KML documents: flattening and writing."""

import re
from typing import Iterator, List, Optional, Sequence, Tuple, Union

from lxml import etree
from shapely.geometry import Point, Polygon

from .exceptions import DataError
from .flatten import DocumentFlattener, Visit
from .store import (
    AttributeMap,
    Geometry,
    GeometryAttributeStore,
    make_point,
    make_polygon,
    render_value,
)

KML_NS = "http://www.opengis.net/kml/2.2"

CONTAINERS = ("kml", "Document", "Folder")
GEOMETRIES = (
    "Point",
    "LineString",
    "LinearRing",
    "Polygon",
    "MultiGeometry",
    "Model",
    "Track",
    "MultiTrack",
)

# Placemark fields copied to attributes, in KML schema order
PLACEMARK_FIELDS = ("name", "address", "phoneNumber", "description")


def _local(element: etree._Element) -> Optional[str]:
    if not isinstance(element.tag, str):
        return None
    return etree.QName(element).localname


def _children(element: etree._Element, *names: str) -> Iterator[etree._Element]:
    for child in element:
        if _local(child) in names:
            yield child


def _child(element: etree._Element, name: str) -> Optional[etree._Element]:
    return next(_children(element, name), None)


def parse_coordinates(text: Optional[str]) -> List[Tuple[float, ...]]:
    """Parses a KML ``coordinates`` body into (lon, lat[, alt]) tuples."""

    positions = []
    for chunk in re.split(r"\s+", (text or "").strip()):
        if not chunk:
            continue
        try:
            positions.append(tuple(float(v) for v in chunk.split(",") if v))
        except ValueError as e:
            raise DataError(f"Malformed KML coordinates {chunk!r}") from e
    return positions


def _ring(boundary: Optional[etree._Element]) -> List[Tuple[float, ...]]:
    if boundary is None:
        return []
    if _local(boundary) != "LinearRing":
        boundary = _child(boundary, "LinearRing")
        if boundary is None:
            return []
    return parse_coordinates(getattr(_child(boundary, "coordinates"), "text", None))


def leaf_geometries(geometry: Optional[etree._Element]) -> List[Geometry]:
    """Extracts the points and polygons of a KML geometry element."""

    leaves: List[Optional[Geometry]] = []
    stack = [geometry]
    while stack:
        current = stack.pop()
        if current is None:
            continue
        kind = _local(current)
        if kind == "Point":
            coordinates = _child(current, "coordinates")
            positions = parse_coordinates(getattr(coordinates, "text", None))
            if positions:
                leaves.append(make_point(positions[0]))
        elif kind == "Polygon":
            shell = _ring(_child(current, "outerBoundaryIs"))
            holes = [_ring(b) for b in _children(current, "innerBoundaryIs")]
            leaves.append(make_polygon(shell, holes))
        elif kind == "LinearRing":
            leaves.append(make_polygon(_ring(current)))
        elif kind == "MultiGeometry":
            stack.extend(reversed(list(_children(current, *GEOMETRIES))))
    return [leaf for leaf in leaves if leaf is not None]


def placemark_attributes(placemark: etree._Element) -> AttributeMap:
    """Collects extended data, then the recognised Placemark fields."""

    attributes: AttributeMap = {}
    extended = _child(placemark, "ExtendedData")
    if extended is not None:
        for data in _children(extended, "Data"):
            name = data.get("name")
            if name is not None:
                attributes[name] = getattr(_child(data, "value"), "text", None)
        for schema_data in _children(extended, "SchemaData"):
            for simple in _children(schema_data, "SimpleData"):
                name = simple.get("name")
                if name is not None:
                    attributes[name] = simple.text
    for field in PLACEMARK_FIELDS:
        element = _child(placemark, field)
        if element is not None:
            attributes[field] = element.text or ""
    if placemark.get("id") is not None:
        attributes["id"] = placemark.get("id")
    return attributes


def parse_kml(document: Union[bytes, str]) -> etree._Element:
    """Parses KML and returns its root ``kml`` element."""

    if isinstance(document, str):
        document = document.encode("utf-8")
    parser = etree.XMLParser(resolve_entities=False, no_network=True, huge_tree=True)
    try:
        root = etree.fromstring(document, parser=parser)
    except etree.XMLSyntaxError as e:
        raise DataError(f"Input is not valid XML: {e}") from e
    if _local(root) != "kml":
        raise DataError(f"Input KML root element was {_local(root)!r}, not kml")
    return root


class KmlFlattener(DocumentFlattener):
    """Flattens KML documents, folders and placemarks into records."""

    def root(self, document: Union[bytes, str]) -> etree._Element:
        return parse_kml(document)

    def visit(self, node: etree._Element) -> Visit:
        records = []
        for placemark in _children(node, "Placemark"):
            geometry = next(_children(placemark, *GEOMETRIES), None)
            attributes = placemark_attributes(placemark)
            records.extend(self.records(leaf_geometries(geometry), attributes))
        return records, list(_children(node, *CONTAINERS))


def _tag(name: str) -> str:
    return f"{{{KML_NS}}}{name}"


def _coordinates(parent: etree._Element, positions: Sequence[Sequence[float]]) -> None:
    etree.SubElement(parent, _tag("coordinates")).text = " ".join(
        f"{x},{y}" for x, y, *_ in positions
    )


def _write_geometry(placemark: etree._Element, geometry: Geometry) -> None:
    if isinstance(geometry, Point):
        point = etree.SubElement(placemark, _tag("Point"))
        _coordinates(point, [(geometry.x, geometry.y)])
    elif isinstance(geometry, Polygon):
        polygon = etree.SubElement(placemark, _tag("Polygon"))
        outer = etree.SubElement(polygon, _tag("outerBoundaryIs"))
        ring = etree.SubElement(outer, _tag("LinearRing"))
        _coordinates(ring, geometry.exterior.coords)
        for hole in geometry.interiors:
            inner = etree.SubElement(polygon, _tag("innerBoundaryIs"))
            _coordinates(etree.SubElement(inner, _tag("LinearRing")), hole.coords)


def write_kml(store: GeometryAttributeStore) -> bytes:
    """Renders the store as a KML Document of Placemarks."""

    kml = etree.Element(_tag("kml"), nsmap={None: KML_NS})
    document = etree.SubElement(kml, _tag("Document"))
    fields = {f.lower(): f for f in PLACEMARK_FIELDS}
    for record in store:
        placemark = etree.SubElement(document, _tag("Placemark"))
        known = {}
        extended = []
        for key, value in record.attributes.items():
            if key.lower() == "id":
                placemark.set("id", render_value(value))
            elif key.lower() in fields:
                known[fields[key.lower()]] = render_value(value)
            else:
                extended.append((key, render_value(value)))
        for field in PLACEMARK_FIELDS:
            if field in known:
                etree.SubElement(placemark, _tag(field)).text = known[field]
        if extended:
            data_parent = etree.SubElement(placemark, _tag("ExtendedData"))
            for key, value in extended:
                data = etree.SubElement(data_parent, _tag("Data"), name=key)
                etree.SubElement(data, _tag("value")).text = value
        _write_geometry(placemark, record.geometry)
    return etree.tostring(
        kml, xml_declaration=True, encoding="UTF-8", pretty_print=True
    )
