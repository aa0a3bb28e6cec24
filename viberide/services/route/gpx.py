"""GPX 1.1 export of a validated route."""

from typing import Any, List, Mapping, Optional, Union

from viberide.core.exceptions import GPXConversionError, ValidationError
from viberide.schemas.route_geo import RouteGeo
from viberide.services.route.options import ExportOptions
from viberide.services.route.validator import validate_route_geo
from viberide.services.route.xml_utils import escape_xml, format_number, format_timestamp
from viberide.utils.logging import get_logger

LOGGER = get_logger(__name__)

GPX_NAMESPACE = "http://www.topografix.com/GPX/1/1"
GPX_SCHEMA_LOCATION = f"{GPX_NAMESPACE} {GPX_NAMESPACE}/gpx.xsd"
GPX_DESCRIPTION = "Motorcycle route generated by VibeRide"


def _point_label(index: int, count: int) -> str:
    if index == 0:
        return "Start"
    if index == count - 1:
        return "End"
    return f"Point {index + 1}"


def to_gpx(route: Union[RouteGeo, Mapping[str, Any]], options: Optional[ExportOptions] = None) -> str:
    """Render a route as a GPX 1.1 document.

    The route is validated again before rendering, so a caller holding an
    unchecked structure cannot produce a partial document.

    Args:
        route: Validated RouteGeo (or the equivalent GeoJSON mapping)
        options: Rendering switches; defaults to waypoints + route, no track

    Returns:
        str: GPX XML text

    Raises:
        GPXConversionError: If the route fails validation
    """
    options = options or ExportOptions()
    try:
        geo = validate_route_geo(route)
    except ValidationError as e:
        raise GPXConversionError(f"Invalid GeoJSON: {e.message}", original_error=e) from e

    props = geo.properties
    distance = format_number(props.total_distance_km)
    duration = format_number(props.total_duration_h)
    waypoints = list(geo.points())
    lines = list(geo.line_strings())

    parts: List[str] = [
        '<?xml version="1.0" encoding="UTF-8"?>\n',
        f'<gpx version="1.1" creator="{escape_xml(options.creator)}"\n',
        f'  xmlns="{GPX_NAMESPACE}"\n',
        '  xmlns:xsi="http://www.w3.org/2001/XMLSchema-instance"\n',
        f'  xsi:schemaLocation="{GPX_SCHEMA_LOCATION}">\n',
        "  <metadata>\n",
        f"    <name>{escape_xml(props.title)}</name>\n",
        f"    <desc>{GPX_DESCRIPTION}</desc>\n",
    ]
    if options.generated_at is not None:
        parts.append(f"    <time>{format_timestamp(options.generated_at)}</time>\n")
    parts.append(f"    <keywords>motorcycle,route,{distance}km,{duration}h</keywords>\n")
    parts.append("  </metadata>\n")

    if options.include_waypoints:
        for feature in waypoints:
            geometry = feature.geometry
            parts.append(f'  <wpt lat="{format_number(geometry.lat)}" lon="{format_number(geometry.lon)}">\n')
            parts.append(f"    <name>{escape_xml(feature.prop('name') or 'Waypoint')}</name>\n")
            description = feature.prop("description")
            if description:
                parts.append(f"    <desc>{escape_xml(description)}</desc>\n")
            parts.append("  </wpt>\n")

    summary = f"Total distance: {distance}km, Duration: {duration}h"

    if options.include_routes and lines:
        parts.append("  <rte>\n")
        parts.append(f"    <name>{escape_xml(props.title)}</name>\n")
        parts.append(f"    <desc>{summary}</desc>\n")
        for feature in lines:
            segment_name = escape_xml(feature.prop("name") or "Segment")
            points = feature.geometry.points
            for i, position in enumerate(points):
                parts.append(f'    <rtept lat="{format_number(position.lat)}" lon="{format_number(position.lon)}">\n')
                parts.append(f"      <name>{segment_name} - {_point_label(i, len(points))}</name>\n")
                parts.append("    </rtept>\n")
        parts.append("  </rte>\n")

    if options.include_tracks and lines:
        parts.append("  <trk>\n")
        parts.append(f"    <name>{escape_xml(props.title)}</name>\n")
        parts.append(f"    <desc>{summary}</desc>\n")
        parts.append("    <trkseg>\n")
        for feature in lines:
            for position in feature.geometry.points:
                parts.append(f'      <trkpt lat="{format_number(position.lat)}" lon="{format_number(position.lon)}"></trkpt>\n')
        parts.append("    </trkseg>\n")
        parts.append("  </trk>\n")

    parts.append("</gpx>")
    gpx = "".join(parts)

    LOGGER.debug(
        "Generated GPX from GeoJSON",
        extra={
            "title": props.title,
            "waypoint_count": len(waypoints),
            "route_count": len(lines),
            "gpx_length": len(gpx),
        },
    )
    return gpx
