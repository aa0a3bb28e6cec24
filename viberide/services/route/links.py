"""Navigation app links (Google Maps, Mapy.com) built from a validated route.

Both providers cap how many positions a shared route may carry, so the
route's segments are merged into one path and thinned to the first
position, the last position and evenly spaced positions in between.
"""

import math
from enum import Enum
from typing import Any, List, Mapping, Sequence, Union
from urllib.parse import urlencode

from viberide.core.exceptions import LinkGenerationError, TooManyPointsError, ValidationError
from viberide.schemas.route_geo import Position, RouteGeo
from viberide.services.route.validator import validate_route_geo
from viberide.utils.logging import get_logger

LOGGER = get_logger(__name__)

GOOGLE_MAPS_URL = "https://www.google.com/maps/dir/"
MAPY_URL = "https://mapy.com/fnc/v1/route"

GOOGLE_MAPS_MAX_POINTS = 25
MAPY_MAX_POINTS = 15

GOOGLE_TRAVEL_MODES = ("driving", "bicycling", "walking")
MAPY_ROUTE_TYPES = {
    "car": "car_fast",
    "bike": "bike_road",
    "foot": "foot_fast",
}


class LinkProvider(str, Enum):
    GOOGLE_MAPS = "google"
    MAPY = "mapy"


def merge_segments(geo: RouteGeo) -> List[Position]:
    """Join every LineString into one path, dropping each shared joint.

    Raises:
        LinkGenerationError: If the route has no LineString
    """
    lines = list(geo.line_strings())
    if not lines:
        raise LinkGenerationError("No LineString feature found in GeoJSON")

    merged: List[Position] = []
    for feature in lines:
        points = feature.geometry.points
        # A segment starts where the previous one ended
        merged.extend(points[1:] if merged else points)

    if len(merged) < 2:
        raise LinkGenerationError("Route must have at least 2 coordinates")
    return merged


def sample_points(positions: Sequence[Position], max_points: int) -> List[Position]:
    """Keep the first and last position plus evenly spaced ones in between."""
    if len(positions) <= max_points:
        return list(positions)

    sampled = [positions[0]]
    middle_count = max_points - 2
    if middle_count > 0:
        step = (len(positions) - 1) / (middle_count + 1)
        # Round half up
        sampled.extend(positions[math.floor(step * i + 0.5)] for i in range(1, middle_count + 1))
    sampled.append(positions[-1])
    return sampled


def _coordinate(first: float, second: float) -> str:
    return f"{first:.6f},{second:.6f}"


def _route_points(
    route: Union[RouteGeo, Mapping[str, Any]], max_points: int, provider: str
) -> List[Position]:
    try:
        geo = validate_route_geo(route)
    except ValidationError as e:
        raise LinkGenerationError(f"Invalid GeoJSON: {e.message}", original_error=e) from e

    positions = merge_segments(geo)
    sampled = sample_points(positions, max_points)
    if len(sampled) > max_points:
        raise TooManyPointsError(
            f"Route has {len(sampled)} points after sampling, exceeds {provider} limit of {max_points}",
            max_points=max_points,
        )
    LOGGER.debug(
        "Sampled route for navigation link",
        extra={
            "provider": provider,
            "original_points": len(positions),
            "sampled_points": len(sampled),
        },
    )
    return sampled


def build_google_maps_link(
    route: Union[RouteGeo, Mapping[str, Any]],
    travel_mode: str = "driving",
    max_points: int = GOOGLE_MAPS_MAX_POINTS,
) -> str:
    """Google Maps directions URL for the route.

    Google expects ``lat,lon`` pairs; waypoints are ``|``-separated.

    Raises:
        TooManyPointsError: If ``max_points`` cannot hold an origin and a destination
        LinkGenerationError: If the route is invalid or has no LineString
    """
    if travel_mode not in GOOGLE_TRAVEL_MODES:
        raise LinkGenerationError(f"Unsupported Google Maps travel mode: {travel_mode}")

    points = _route_points(route, max_points, "Google Maps")
    params = {
        "api": "1",
        "origin": _coordinate(points[0].lat, points[0].lon),
        "destination": _coordinate(points[-1].lat, points[-1].lon),
        "travelmode": travel_mode,
    }
    if len(points) > 2:
        params["waypoints"] = "|".join(_coordinate(p.lat, p.lon) for p in points[1:-1])
    return f"{GOOGLE_MAPS_URL}?{urlencode(params)}"


def build_mapy_link(
    route: Union[RouteGeo, Mapping[str, Any]],
    transport: str = "car",
    max_points: int = MAPY_MAX_POINTS,
) -> str:
    """Mapy.com route planner URL for the route.

    Mapy keeps GeoJSON's ``lon,lat`` order; waypoints are ``;``-separated.

    Raises:
        TooManyPointsError: If ``max_points`` cannot hold a start and an end
        LinkGenerationError: If the route is invalid or has no LineString
    """
    route_type = MAPY_ROUTE_TYPES.get(transport)
    if route_type is None:
        raise LinkGenerationError(f"Unsupported Mapy.com transport: {transport}")

    points = _route_points(route, max_points, "Mapy.com")
    params = {
        "start": _coordinate(points[0].lon, points[0].lat),
        "end": _coordinate(points[-1].lon, points[-1].lat),
        "routeType": route_type,
    }
    if len(points) > 2:
        params["waypoints"] = ";".join(_coordinate(p.lon, p.lat) for p in points[1:-1])
    return f"{MAPY_URL}?{urlencode(params)}"
