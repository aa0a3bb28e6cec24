"""Unit tests for GPX export."""

import xml.etree.ElementTree as ET
from datetime import datetime, timezone

import pytest

from viberide.core.exceptions import ConversionError, GPXConversionError
from viberide.services.route.gpx import GPX_NAMESPACE, to_gpx
from viberide.services.route.gpx_checker import check_gpx
from viberide.services.route.options import DEFAULT_CREATOR, ExportOptions
from viberide.services.route.validator import validate_route_geo

NS = {"gpx": GPX_NAMESPACE}


def _parse(gpx: str) -> ET.Element:
    return ET.fromstring(gpx.encode("utf-8"))


class TestGpxDocument:
    """Document-level structure."""

    def test_loop_route(self, loop_route):
        gpx = to_gpx(validate_route_geo(loop_route))

        assert gpx.startswith('<?xml version="1.0" encoding="UTF-8"?>')
        assert '<gpx version="1.1"' in gpx
        assert f'xmlns="{GPX_NAMESPACE}"' in gpx
        assert "<name>Loop</name>" in gpx
        assert gpx.count("<wpt ") == 1
        assert "<rte>" not in gpx
        assert "<trk>" not in gpx
        assert check_gpx(gpx).is_valid

    def test_metadata(self, alps_route):
        root = _parse(to_gpx(alps_route))
        metadata = root.find("gpx:metadata", NS)

        assert root.get("creator") == DEFAULT_CREATOR
        assert metadata.findtext("gpx:name", namespaces=NS) == "Alpine Passes"
        assert metadata.findtext("gpx:desc", namespaces=NS) == "Motorcycle route generated by VibeRide"
        assert metadata.findtext("gpx:keywords", namespaces=NS) == "motorcycle,route,412.5km,9.5h"
        assert metadata.find("gpx:time", NS) is None

    def test_generated_at_written_as_utc_time(self, loop_route):
        generated_at = datetime(2024, 5, 1, 12, 30, 15, 250000, tzinfo=timezone.utc)
        gpx = to_gpx(loop_route, ExportOptions(generated_at=generated_at))

        assert "<time>2024-05-01T12:30:15.250Z</time>" in gpx

    def test_custom_creator_is_escaped(self, loop_route):
        gpx = to_gpx(loop_route, ExportOptions(creator='Tom & "Jerry"'))

        assert 'creator="Tom &amp; &quot;Jerry&quot;"' in gpx

    def test_output_is_deterministic(self, alps_route):
        options = ExportOptions(include_tracks=True)

        first = to_gpx(alps_route, options)
        assert all(to_gpx(alps_route, options) == first for _ in range(5))
        assert to_gpx(validate_route_geo(alps_route), options) == first


class TestGpxContent:
    """Waypoints, route points and tracks."""

    def test_waypoints_in_document_order(self, alps_route):
        root = _parse(to_gpx(alps_route))
        waypoints = root.findall("gpx:wpt", NS)

        assert [w.findtext("gpx:name", namespaces=NS) for w in waypoints] == ["Milan", "Stelvio Pass"]
        assert waypoints[0].get("lat") == "45.4642"
        assert waypoints[0].get("lon") == "9.19"
        assert waypoints[0].findtext("gpx:desc", namespaces=NS) == "Start at the Duomo"
        assert waypoints[1].find("gpx:desc", NS) is None

    def test_route_points_are_labelled(self, alps_route):
        root = _parse(to_gpx(alps_route))
        routes = root.findall("gpx:rte", NS)

        assert len(routes) == 1
        assert routes[0].findtext("gpx:desc", namespaces=NS) == "Total distance: 412.5km, Duration: 9.5h"
        names = [p.findtext("gpx:name", namespaces=NS) for p in routes[0].findall("gpx:rtept", NS)]
        assert names == [
            "Day 1: Milan to Stelvio - Start",
            "Day 1: Milan to Stelvio - Point 2",
            "Day 1: Milan to Stelvio - End",
            "Segment - Start",
            "Segment - End",
        ]

    def test_tracks_only_when_enabled(self, alps_route):
        assert "<trk>" not in to_gpx(alps_route)

        root = _parse(to_gpx(alps_route, ExportOptions(include_tracks=True)))
        tracks = root.findall("gpx:trk", NS)

        assert len(tracks) == 1
        points = tracks[0].findall("gpx:trkseg/gpx:trkpt", NS)
        assert len(points) == 5
        assert all(p.find("gpx:name", NS) is None for p in points)

    def test_include_switches(self, alps_route):
        gpx = to_gpx(alps_route, ExportOptions(include_waypoints=False, include_routes=False))

        assert "<wpt" not in gpx
        assert "<rte>" not in gpx
        assert "<metadata>" in gpx

    def test_whole_numbers_render_without_fraction(self, loop_route):
        gpx = to_gpx(loop_route)

        assert "motorcycle,route,10km,1h" in gpx


class TestGpxEscaping:
    """Free text is XML-escaped."""

    def test_title_special_characters(self, loop_route):
        loop_route["properties"]["title"] = "Fish & <Chips> \"Run\" 'Loop'"
        gpx = to_gpx(loop_route)

        escaped = "Fish &amp; &lt;Chips&gt; &quot;Run&quot; &apos;Loop&apos;"
        assert f"<name>{escaped}</name>" in gpx
        assert "<Chips>" not in gpx
        assert "&amp;amp;" not in gpx
        assert _parse(gpx).find("gpx:metadata", NS).findtext("gpx:name", namespaces=NS) == (
            "Fish & <Chips> \"Run\" 'Loop'"
        )

    def test_waypoint_name_escaped(self, loop_route):
        loop_route["features"][0]["properties"]["name"] = "A&B"

        assert "<name>A&amp;B</name>" in to_gpx(loop_route)


class TestGpxErrors:
    def test_invalid_route_raises_conversion_error(self, loop_route):
        loop_route["features"] = []

        with pytest.raises(GPXConversionError) as exc_info:
            to_gpx(loop_route)

        assert isinstance(exc_info.value, ConversionError)
        assert exc_info.value.message.startswith("Invalid GeoJSON: ")
        assert "at least one feature" in exc_info.value.message
        assert exc_info.value.original_error is not None


def test_control_characters_in_feature_text_are_dropped(alps_route):
    alps_route["features"][0]["properties"]["name"] = "Mil\x0ban"
    alps_route["features"][0]["properties"]["description"] = "\x01Start\x1f"
    alps_route["features"][2]["properties"]["name"] = "Day\x00 1"

    gpx = to_gpx(alps_route, ExportOptions(include_tracks=True))

    assert check_gpx(gpx).is_valid
    root = _parse(gpx)
    first = root.find("gpx:wpt", NS)
    assert first.findtext("gpx:name", namespaces=NS) == "Milan"
    assert first.findtext("gpx:desc", namespaces=NS) == "Start"
    assert "<name>Day 1: Milan to Stelvio - Start</name>" in gpx
