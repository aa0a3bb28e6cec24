"""KML 2.2 export of a validated route."""

from typing import Any, List, Mapping, Optional, Union

from viberide.core.exceptions import KMLConversionError, ValidationError
from viberide.schemas.route_geo import Feature, RouteGeo
from viberide.services.route.options import ExportOptions
from viberide.services.route.validator import validate_route_geo
from viberide.services.route.xml_utils import escape_xml, format_number
from viberide.utils.logging import get_logger

LOGGER = get_logger(__name__)

KML_NAMESPACE = "http://www.opengis.net/kml/2.2"

STYLES = """    <Style id="routeStyle">
      <LineStyle>
        <color>ff0000ff</color>
        <width>4</width>
      </LineStyle>
    </Style>
    <Style id="waypointStyle">
      <IconStyle>
        <color>ff00ff00</color>
        <scale>1.2</scale>
        <Icon>
          <href>http://maps.google.com/mapfiles/kml/pushpin/ylw-pushpin.png</href>
        </Icon>
      </IconStyle>
    </Style>
    <Style id="poiStyle">
      <IconStyle>
        <color>ff0000ff</color>
        <scale>1.0</scale>
        <Icon>
          <href>http://maps.google.com/mapfiles/kml/shapes/star.png</href>
        </Icon>
      </IconStyle>
    </Style>
"""


def _segment_description(feature: Feature) -> str:
    """Feature description followed by a ``Day N • Xkm • Yh`` line when known."""
    description = feature.prop("description") or ""
    day = feature.prop("day")
    distance = feature.prop("distance_km")
    duration = feature.prop("duration_h")

    metadata = []
    if day:
        metadata.append(f"Day {format_number(day)}")
    if distance:
        metadata.append(f"{format_number(distance)}km")
    if duration:
        metadata.append(f"{format_number(duration)}h")
    if not metadata:
        return str(description)

    separator = "\n" if description else ""
    return f"{description}{separator}{' • '.join(metadata)}"


def _waypoint_placemark(feature: Feature) -> List[str]:
    geometry = feature.geometry
    style_id = "poiStyle" if feature.prop("type") == "poi" else "waypointStyle"
    parts = [
        "      <Placemark>\n",
        f"        <name>{escape_xml(feature.prop('name') or 'Waypoint')}</name>\n",
    ]
    description = feature.prop("description")
    if description:
        parts.append(f"        <description>{escape_xml(description)}</description>\n")
    parts.extend(
        [
            f"        <styleUrl>#{style_id}</styleUrl>\n",
            "        <Point>\n",
            f"          <coordinates>{format_number(geometry.lon)},{format_number(geometry.lat)},0</coordinates>\n",
            "        </Point>\n",
            "      </Placemark>\n",
        ]
    )
    return parts


def _route_placemark(feature: Feature) -> List[str]:
    parts = [
        "      <Placemark>\n",
        f"        <name>{escape_xml(feature.prop('name') or 'Route Segment')}</name>\n",
    ]
    description = _segment_description(feature)
    if description:
        parts.append(f"        <description>{escape_xml(description)}</description>\n")
    parts.extend(
        [
            "        <styleUrl>#routeStyle</styleUrl>\n",
            "        <LineString>\n",
            "          <tessellate>1</tessellate>\n",
            "          <coordinates>\n",
        ]
    )
    for position in feature.geometry.points:
        parts.append(f"            {format_number(position.lon)},{format_number(position.lat)},0\n")
    parts.extend(
        [
            "          </coordinates>\n",
            "        </LineString>\n",
            "      </Placemark>\n",
        ]
    )
    return parts


def to_kml(route: Union[RouteGeo, Mapping[str, Any]], options: Optional[ExportOptions] = None) -> str:
    """Render a route as a KML 2.2 document.

    Raises:
        KMLConversionError: If the route fails validation
    """
    options = options or ExportOptions()
    try:
        geo = validate_route_geo(route)
    except ValidationError as e:
        raise KMLConversionError(f"Invalid GeoJSON: {e.message}", original_error=e) from e

    props = geo.properties
    waypoints = list(geo.points())
    lines = list(geo.line_strings())

    parts: List[str] = [
        '<?xml version="1.0" encoding="UTF-8"?>\n',
        f'<kml xmlns="{KML_NAMESPACE}">\n',
        "  <Document>\n",
        f"    <name>{escape_xml(props.title)}</name>\n",
        f"    <description>Motorcycle route generated by {escape_xml(options.creator)}\n",
        f"Total Distance: {format_number(props.total_distance_km)}km\n",
        f"Total Duration: {format_number(props.total_duration_h)}h</description>\n",
    ]
    if props.highlights:
        parts.append(f'    <Snippet maxLines="3">{escape_xml(", ".join(props.highlights))}</Snippet>\n')
    parts.append(STYLES)

    if options.include_waypoints and waypoints:
        parts.append("    <Folder>\n      <name>Waypoints</name>\n      <open>1</open>\n")
        for feature in waypoints:
            parts.extend(_waypoint_placemark(feature))
        parts.append("    </Folder>\n")

    if options.include_routes and lines:
        parts.append("    <Folder>\n      <name>Route</name>\n      <open>1</open>\n")
        for feature in lines:
            parts.extend(_route_placemark(feature))
        parts.append("    </Folder>\n")

    parts.append("  </Document>\n</kml>")
    kml = "".join(parts)

    LOGGER.debug(
        "Generated KML from GeoJSON",
        extra={
            "title": props.title,
            "waypoint_count": len(waypoints),
            "route_count": len(lines),
            "kml_length": len(kml),
        },
    )
    return kml
