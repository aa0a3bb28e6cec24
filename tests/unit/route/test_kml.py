"""Unit tests for KML export."""

import xml.etree.ElementTree as ET

import pytest

from viberide.core.exceptions import KMLConversionError
from viberide.services.route.kml import KML_NAMESPACE, to_kml
from viberide.services.route.options import ExportOptions

NS = {"kml": KML_NAMESPACE}


def _folders(kml: str) -> dict:
    root = ET.fromstring(kml.encode("utf-8"))
    return {
        folder.findtext("kml:name", namespaces=NS): folder
        for folder in root.findall("kml:Document/kml:Folder", NS)
    }


class TestKmlDocument:
    def test_header_and_styles(self, alps_route):
        kml = to_kml(alps_route)

        assert kml.startswith('<?xml version="1.0" encoding="UTF-8"?>')
        assert f'<kml xmlns="{KML_NAMESPACE}">' in kml
        assert "<name>Alpine Passes</name>" in kml
        assert "Total Distance: 412.5km" in kml
        assert "Total Duration: 9.5h" in kml
        for style_id in ("routeStyle", "waypointStyle", "poiStyle"):
            assert f'<Style id="{style_id}">' in kml

    def test_snippet_joins_highlights(self, alps_route):
        kml = to_kml(alps_route)

        assert '<Snippet maxLines="3">Stelvio Pass, Lake Como</Snippet>' in kml

    def test_no_snippet_without_highlights(self, loop_route):
        assert "<Snippet" not in to_kml(loop_route)

    def test_deterministic(self, alps_route):
        assert to_kml(alps_route) == to_kml(alps_route)


class TestKmlPlacemarks:
    def test_waypoints_folder(self, alps_route):
        waypoints = _folders(to_kml(alps_route))["Waypoints"]
        placemarks = waypoints.findall("kml:Placemark", NS)

        assert [p.findtext("kml:name", namespaces=NS) for p in placemarks] == ["Milan", "Stelvio Pass"]
        assert [p.findtext("kml:styleUrl", namespaces=NS) for p in placemarks] == [
            "#waypointStyle",
            "#poiStyle",
        ]
        assert placemarks[0].findtext("kml:Point/kml:coordinates", namespaces=NS) == "9.19,45.4642,0"

    def test_route_folder(self, alps_route):
        route = _folders(to_kml(alps_route))["Route"]
        placemarks = route.findall("kml:Placemark", NS)

        assert [p.findtext("kml:name", namespaces=NS) for p in placemarks] == [
            "Day 1: Milan to Stelvio",
            "Route Segment",
        ]
        first = placemarks[0]
        assert first.findtext("kml:LineString/kml:tessellate", namespaces=NS) == "1"
        coordinates = first.findtext("kml:LineString/kml:coordinates", namespaces=NS).split()
        assert coordinates == ["9.19,45.4642,0", "9.2572,45.9931,0", "10.4534,46.5286,0"]
        assert first.findtext("kml:description", namespaces=NS) == (
            "Lakeside roads then switchbacks\nDay 1 • 250km • 5.5h"
        )
        assert placemarks[1].find("kml:description", NS) is None

    def test_include_switches(self, alps_route):
        folders = _folders(to_kml(alps_route, ExportOptions(include_waypoints=False)))
        assert list(folders) == ["Route"]

        folders = _folders(to_kml(alps_route, ExportOptions(include_routes=False)))
        assert list(folders) == ["Waypoints"]

    def test_point_only_route_has_no_route_folder(self, loop_route):
        assert list(_folders(to_kml(loop_route))) == ["Waypoints"]

    def test_escapes_text(self, loop_route):
        loop_route["properties"]["title"] = "<Loop> & 'friends'"
        kml = to_kml(loop_route)

        assert "<name>&lt;Loop&gt; &amp; &apos;friends&apos;</name>" in kml


class TestKmlErrors:
    def test_invalid_route_raises(self, loop_route):
        loop_route["properties"]["total_distance_km"] = 0

        with pytest.raises(KMLConversionError, match="Invalid GeoJSON"):
            to_kml(loop_route)


def test_control_characters_in_feature_text_are_dropped(alps_route):
    alps_route["features"][0]["properties"]["name"] = "Mil\x0ban"
    alps_route["features"][2]["properties"]["description"] = "Twisties\x08"

    kml = to_kml(alps_route)

    folders = _folders(kml)
    names = [p.findtext("kml:name", namespaces=NS) for p in folders["Waypoints"].findall("kml:Placemark", NS)]
    assert names[0] == "Milan"
    assert "\x08" not in kml
