"""Structural and geometric validation of planner route output.

The planner's output is untrusted, so every field the converters rely on is
checked here before a :class:`RouteGeo` is built. Validation stops at the
first violation and reports it as a single :class:`ValidationError`.
"""

import math
from collections.abc import Mapping, Sequence
from typing import Any, Dict, List

from pydantic import ValidationError as PydanticValidationError

from viberide.core.exceptions import ValidationError
from viberide.schemas.route_geo import MAX_TITLE_LENGTH, RouteGeo
from viberide.services.route.xml_utils import has_invalid_xml_chars
from viberide.utils.logging import get_logger

LOGGER = get_logger(__name__)

GEOMETRY_TYPES = ("Point", "LineString")
LON_RANGE = (-180.0, 180.0)
LAT_RANGE = (-90.0, 90.0)


def _is_number(value: Any) -> bool:
    # bool is an int subclass but never a coordinate or a distance
    if isinstance(value, bool) or not isinstance(value, (int, float)):
        return False
    return isinstance(value, int) or math.isfinite(value)


def _is_array(value: Any) -> bool:
    return isinstance(value, Sequence) and not isinstance(value, (str, bytes, bytearray))


def _check_position(value: Any, where: str) -> None:
    """Check one ``[lon, lat]`` pair; ``where`` prefixes the error message."""
    if not _is_array(value) or len(value) != 2:
        raise ValidationError(f"{where} must be [lon, lat] array")
    lon, lat = value
    if not _is_number(lon) or not _is_number(lat):
        raise ValidationError(f"{where} must contain numbers")
    if not LON_RANGE[0] <= lon <= LON_RANGE[1]:
        raise ValidationError(f"{where} longitude must be between -180 and 180")
    if not LAT_RANGE[0] <= lat <= LAT_RANGE[1]:
        raise ValidationError(f"{where} latitude must be between -90 and 90")


def _check_properties(props: Mapping) -> None:
    title = props.get("title")
    if not isinstance(title, str) or len(title) == 0:
        raise ValidationError("GeoJSON properties must include a non-empty title string")
    if len(title) > MAX_TITLE_LENGTH:
        raise ValidationError(f"GeoJSON title must not exceed {MAX_TITLE_LENGTH} characters")
    if has_invalid_xml_chars(title):
        raise ValidationError("GeoJSON title contains characters not allowed in XML")

    for key in ("total_distance_km", "total_duration_h"):
        value = props.get(key)
        if not _is_number(value) or value <= 0:
            raise ValidationError(f"GeoJSON properties must include a positive {key} number")

    # Absent highlights are valid; an explicit null is not an array
    if "highlights" in props:
        highlights = props["highlights"]
        if not _is_array(highlights):
            raise ValidationError("GeoJSON highlights must be an array")
        if not all(isinstance(h, str) for h in highlights):
            raise ValidationError("GeoJSON highlights must be an array of strings")
        if any(has_invalid_xml_chars(h) for h in highlights):
            raise ValidationError("GeoJSON highlights contain characters not allowed in XML")


def _check_feature(index: int, feature: Any) -> None:
    if not isinstance(feature, Mapping):
        raise ValidationError(f"Feature at index {index} is not an object")

    if feature.get("type") != "Feature":
        raise ValidationError(f'Feature at index {index} must have type "Feature"')

    geometry = feature.get("geometry")
    if not isinstance(geometry, Mapping):
        raise ValidationError(f"Feature at index {index} must have a geometry object")

    geometry_type = geometry.get("type")
    if geometry_type not in GEOMETRY_TYPES:
        raise ValidationError(
            f'Feature at index {index} has invalid geometry type "{geometry_type}". '
            "Must be Point or LineString"
        )

    coordinates = geometry.get("coordinates")
    if not _is_array(coordinates):
        raise ValidationError(f"Feature at index {index} geometry must have coordinates array")

    if geometry_type == "Point":
        if len(coordinates) != 2:
            raise ValidationError(
                f"Point feature at index {index} must have exactly 2 coordinates [lon, lat]"
            )
        _check_position(coordinates, f"Point feature at index {index} coordinates")
    else:
        if len(coordinates) < 2:
            raise ValidationError(
                f"LineString feature at index {index} must have at least 2 coordinates"
            )
        for j, position in enumerate(coordinates):
            _check_position(position, f"LineString feature at index {index}, coordinate {j}")

    properties = feature.get("properties")
    if properties is not None and not isinstance(properties, Mapping):
        raise ValidationError(f"Feature at index {index} properties must be an object or null")


def validate_route_geo(data: Any) -> RouteGeo:
    """Validate an untrusted tree and build an immutable :class:`RouteGeo`.

    Args:
        data: Parsed planner output, or an existing RouteGeo to re-check

    Returns:
        RouteGeo: The validated structure

    Raises:
        ValidationError: On the first violation found
    """
    if isinstance(data, RouteGeo):
        data = data.to_geojson()

    if not isinstance(data, Mapping):
        raise ValidationError("GeoJSON must be an object")

    if data.get("type") != "FeatureCollection":
        raise ValidationError('GeoJSON type must be "FeatureCollection"')

    features = data.get("features")
    if not _is_array(features):
        raise ValidationError("GeoJSON must have a features array")

    props = data.get("properties")
    if not isinstance(props, Mapping):
        raise ValidationError("GeoJSON must have a properties object")

    _check_properties(props)

    if len(features) == 0:
        raise ValidationError("GeoJSON must have at least one feature")

    for index, feature in enumerate(features):
        _check_feature(index, feature)

    try:
        return RouteGeo.model_validate(
            {
                "type": "FeatureCollection",
                "properties": dict(props),
                "features": [_normalize_feature(f) for f in features],
            }
        )
    except PydanticValidationError as e:
        LOGGER.warning("Route passed structural checks but failed model validation", extra={"error": str(e)})
        raise ValidationError(f"GeoJSON failed validation: {e}", original_error=e) from e


def _normalize_feature(feature: Mapping) -> Dict[str, Any]:
    geometry = feature["geometry"]
    coordinates: List[Any] = list(geometry["coordinates"])
    if geometry["type"] == "LineString":
        coordinates = [tuple(position) for position in coordinates]
    else:
        coordinates = tuple(coordinates)
    properties = feature.get("properties")
    return {
        "type": "Feature",
        "geometry": {"type": geometry["type"], "coordinates": coordinates},
        "properties": dict(properties) if properties is not None else None,
    }


def is_valid_route_geo(data: Any) -> bool:
    """Boolean form of :func:`validate_route_geo` for callers that only branch."""
    try:
        validate_route_geo(data)
    except ValidationError:
        return False
    return True
