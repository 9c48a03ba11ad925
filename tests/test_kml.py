"""Tests for KML flattening and writing."""

import pytest
from lxml import etree
from shapely.geometry import Point, box

from geoconv.exceptions import DataError
from geoconv.kml import KML_NS, KmlFlattener, parse_coordinates, write_kml
from geoconv.store import GeometryAttributeStore

SQUARE = "0,0,0 1,0,0 1,1,0 0,1,0 0,0,0"
HOLE_A = "0.1,0.1 0.1,0.2 0.2,0.2 0.2,0.1 0.1,0.1"
HOLE_B = "0.5,0.5 0.5,0.6 0.6,0.6 0.6,0.5 0.5,0.5"


def kml(body, namespace=KML_NS):
    xmlns = f' xmlns="{namespace}"' if namespace else ""
    declaration = '<?xml version="1.0" encoding="UTF-8"?>'
    return f"{declaration}<kml{xmlns}>{body}</kml>".encode("utf-8")


def polygon(outer, *inner):
    holes = "".join(
        f"<innerBoundaryIs><LinearRing><coordinates>{ring}</coordinates></LinearRing></innerBoundaryIs>"
        for ring in inner
    )
    return (
        f"<Polygon><outerBoundaryIs><LinearRing><coordinates>{outer}</coordinates>"
        f"</LinearRing></outerBoundaryIs>{holes}</Polygon>"
    )


def flatten(document):
    return KmlFlattener(max_workers=2).flatten(document)


class TestFlatten:
    def test_placemark_attributes(self):
        document = kml(
            """
            <Document><Folder><Folder>
              <Placemark id="pm-1">
                <name>Shop</name>
                <address>1 Main St</address>
                <phoneNumber>555</phoneNumber>
                <description>Corner shop</description>
                <styleUrl>#style</styleUrl>
                <ExtendedData>
                  <Data name="name"><value>hidden</value></Data>
                  <Data name="kind"><value>retail</value></Data>
                  <SchemaData schemaUrl="#s"><SimpleData name="floors">2</SimpleData></SchemaData>
                </ExtendedData>
                <Point><coordinates>5.1,45.2,0</coordinates></Point>
              </Placemark>
            </Folder></Folder></Document>
            """
        )
        (record,) = flatten(document)
        assert record.attributes == {
            "name": "Shop",
            "address": "1 Main St",
            "phoneNumber": "555",
            "description": "Corner shop",
            "id": "pm-1",
            "kind": "retail",
            "floors": "2",
        }
        assert record.geometry.equals(Point(5.1, 45.2))

    def test_inner_rings_keep_document_order(self):
        holed = polygon(SQUARE, HOLE_A, HOLE_B)
        document = kml(f"<Placemark><name>p</name>{holed}</Placemark>")
        (record,) = flatten(document)
        holes = record.geometry.interiors
        assert len(holes) == 2
        assert holes[0].coords[0] == (0.1, 0.1)
        assert holes[1].coords[0] == (0.5, 0.5)

    def test_multi_geometry_shares_attributes(self):
        document = kml(
            f"""
            <Document><Placemark><name>m</name><MultiGeometry>
              <Point><coordinates>1,2</coordinates></Point>
              <LineString><coordinates>0,0 1,1</coordinates></LineString>
              <MultiGeometry>{polygon(SQUARE)}</MultiGeometry>
              <LinearRing><coordinates>{SQUARE}</coordinates></LinearRing>
            </MultiGeometry></Placemark></Document>
            """
        )
        store = flatten(document)
        assert [r.geometry.geom_type for r in store] == ["Point", "Polygon", "Polygon"]
        assert all(r.attributes == {"name": "m"} for r in store)

    def test_unsupported_geometry_is_dropped(self):
        document = kml(
            """
            <Document>
              <Placemark><LineString><coordinates>0,0 1,1</coordinates></LineString></Placemark>
              <Placemark><LinearRing><coordinates>0,0 1,0 1,1 0,1</coordinates></LinearRing></Placemark>
              <Placemark><name>no geometry</name></Placemark>
              <Folder><name>empty</name></Folder>
            </Document>
            """
        )
        assert len(flatten(document)) == 0

    def test_deep_nesting(self):
        depth = 200
        point = "<Placemark><Point><coordinates>1,2</coordinates></Point></Placemark>"
        body = "<Folder>" * depth + point + "</Folder>" * depth
        assert len(flatten(kml(f"<Document>{body}</Document>"))) == 1

    def test_records_follow_document_order_by_level(self):
        document = kml(
            """
            <Document>
              <Folder><Placemark><name>deep</name><Point><coordinates>0,0</coordinates></Point></Placemark></Folder>
              <Placemark><name>a</name><Point><coordinates>1,1</coordinates></Point></Placemark>
              <Placemark><name>b</name><Point><coordinates>2,2</coordinates></Point></Placemark>
            </Document>
            """
        )
        assert [r.attributes["name"] for r in flatten(document)] == ["a", "b", "deep"]

    def test_without_namespace(self):
        document = kml(f"<Placemark>{polygon(SQUARE)}</Placemark>", namespace=None)
        assert len(flatten(document)) == 1

    @pytest.mark.parametrize(
        "document",
        [
            b"<?xml version='1.0'?><gpx></gpx>",
            b"<kml><Document>",
            kml("<Placemark><Point><coordinates>a,b</coordinates></Point></Placemark>"),
        ],
    )
    def test_rejects_bad_documents(self, document):
        with pytest.raises(DataError):
            flatten(document)


def test_parse_coordinates():
    assert parse_coordinates(" 1,2,3\n\t4,5 ") == [(1.0, 2.0, 3.0), (4.0, 5.0)]
    assert parse_coordinates(None) == []


class TestWrite:
    def test_placemark_fields_and_extended_data(self):
        store = GeometryAttributeStore()
        holed = box(0, 0, 1, 1).difference(box(0.2, 0.2, 0.4, 0.4))
        attributes = {
            "Name": "box",
            "id": "b1",
            "phonenumber": "555",
            "kind": "x",
            "n": 2,
        }
        store.add(holed, attributes)
        store.add(Point(2, 3), {})

        root = etree.fromstring(write_kml(store))

        ns = {"k": KML_NS}
        first, second = root.findall("k:Document/k:Placemark", ns)
        assert first.get("id") == "b1"
        assert first.findtext("k:name", namespaces=ns) == "box"
        assert first.findtext("k:phoneNumber", namespaces=ns) == "555"
        data = {
            d.get("name"): d.findtext("k:value", namespaces=ns)
            for d in first.iterfind(".//k:Data", ns)
        }
        assert data == {"kind": "x", "n": "2"}
        assert len(first.findall("k:Polygon/k:innerBoundaryIs", ns)) == 1
        assert second.findtext("k:Point/k:coordinates", namespaces=ns) == "2.0,3.0"

    def test_written_document_reads_back(self):
        store = GeometryAttributeStore()
        store.add(box(0, 0, 1, 1), {"name": "box", "kind": "x"})

        (record,) = flatten(write_kml(store))

        assert record.geometry.equals(box(0, 0, 1, 1))
        assert record.attributes == {"name": "box", "kind": "x"}
