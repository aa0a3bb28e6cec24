"""Summary projection of a route for callers that skip the geometry."""

from dataclasses import dataclass, field
from typing import Any, Dict, List, Mapping, Optional, Union

from viberide.schemas.route_geo import MAX_ROUTE_NAME_LENGTH, RouteGeo
from viberide.services.route.validator import validate_route_geo


@dataclass(frozen=True)
class RouteSummary:
    title: str
    total_distance_km: float
    total_duration_h: float
    highlights: List[str] = field(default_factory=list)

    def to_dict(self) -> Dict[str, Any]:
        return {
            "title": self.title,
            "total_distance_km": self.total_distance_km,
            "total_duration_h": self.total_duration_h,
            "highlights": list(self.highlights),
        }


def extract_summary(route: Union[RouteGeo, Mapping[str, Any]]) -> RouteSummary:
    """Validate ``route`` and project its top-level metadata.

    Missing highlights come back as an empty list.

    Raises:
        ValidationError: If the route is invalid
    """
    geo = validate_route_geo(route)
    props = geo.properties
    return RouteSummary(
        title=props.title,
        total_distance_km=props.total_distance_km,
        total_duration_h=props.total_duration_h,
        highlights=list(props.highlights or ()),
    )


def route_name(geo: RouteGeo) -> Optional[str]:
    """Name of the first named route segment, if any, cut to the stored length."""
    for feature in geo.line_strings():
        name = feature.prop("name")
        if name:
            return str(name)[:MAX_ROUTE_NAME_LENGTH].rstrip()
    return None


def waypoint_count(geo: RouteGeo) -> int:
    return sum(1 for _ in geo.points())
