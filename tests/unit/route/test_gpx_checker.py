"""Unit tests for the GPX structural checker."""

import pytest

from viberide.core.exceptions import GPXConversionError
from viberide.services.route.gpx import to_gpx
from viberide.services.route.gpx_checker import assert_valid_gpx, check_gpx

HEADER = '<?xml version="1.0" encoding="UTF-8"?>\n'
GPX_OPEN = '<gpx version="1.1" creator="t" xmlns="http://www.topografix.com/GPX/1/1">'


def test_generated_gpx_is_valid(alps_route):
    result = check_gpx(to_gpx(alps_route))

    assert result.is_valid
    assert result.errors == []
    assert result.warnings == []


def test_empty_content():
    result = check_gpx("   ")

    assert not result.is_valid
    assert result.errors == ["GPX content is empty"]


def test_not_xml():
    result = check_gpx(HEADER + "<gpx")

    assert not result.is_valid
    assert result.errors[0].startswith("GPX is not well-formed XML")


def test_wrong_root():
    result = check_gpx(HEADER + "<kml></kml>")

    assert result.errors == ["Missing <gpx> root element"]


def test_wrong_namespace():
    result = check_gpx(HEADER + '<gpx version="1.1"><wpt lat="1" lon="1"/></gpx>')

    assert result.errors == ["Missing or incorrect GPX namespace"]


def test_wrong_version_and_nothing_to_navigate():
    content = HEADER + GPX_OPEN.replace('version="1.1"', 'version="1.0"') + "<metadata/></gpx>"
    result = check_gpx(content)

    assert "Missing or incorrect GPX version (must be 1.1)" in result.errors
    assert "GPX must contain at least one waypoint, route, or track" in result.errors


def test_out_of_range_coordinates():
    content = HEADER + GPX_OPEN + '<metadata/><wpt lat="91" lon="0"><name>a</name></wpt></gpx>'
    result = check_gpx(content)

    assert result.errors == ["Waypoint 1: Invalid latitude (91)"]


def test_route_without_points():
    content = HEADER + GPX_OPEN + "<metadata/><rte><name>r</name></rte></gpx>"
    result = check_gpx(content)

    assert result.errors == ["Routes missing route points (<rtept>)"]


def test_missing_metadata_and_names_are_warnings():
    content = HEADER + GPX_OPEN + '<wpt lat="1" lon="2"/></gpx>'
    result = check_gpx(content)

    assert result.is_valid
    assert "Missing <metadata> element (recommended)" in result.warnings
    assert "Some waypoints missing <name> element (recommended)" in result.warnings


def test_missing_declaration_is_error():
    result = check_gpx(GPX_OPEN + '<metadata/><wpt lat="1" lon="2"><name>a</name></wpt></gpx>')

    assert result.errors == ["Missing XML declaration"]


def test_assert_valid_gpx_lists_errors():
    with pytest.raises(GPXConversionError) as exc_info:
        assert_valid_gpx(HEADER + "<kml></kml>")

    assert exc_info.value.message == "Invalid GPX file:\nMissing <gpx> root element"
