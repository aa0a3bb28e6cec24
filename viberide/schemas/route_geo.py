"""Validated route structure (a constrained GeoJSON FeatureCollection).

Instances are only produced by :func:`viberide.services.route.validator.validate_route_geo`
and are frozen once built.
"""

from typing import Annotated, Any, Dict, Iterator, List, Literal, NamedTuple, Optional, Tuple, Union

from pydantic import BaseModel, ConfigDict, Field

MAX_TITLE_LENGTH = 60
MAX_ROUTE_NAME_LENGTH = 120


class Position(NamedTuple):
    """A (longitude, latitude) pair in WGS84 degrees."""

    lon: float
    lat: float


class PointGeometry(BaseModel):
    model_config = ConfigDict(frozen=True)

    type: Literal["Point"] = "Point"
    coordinates: Position

    @property
    def lon(self) -> float:
        return self.coordinates.lon

    @property
    def lat(self) -> float:
        return self.coordinates.lat


class LineStringGeometry(BaseModel):
    model_config = ConfigDict(frozen=True)

    type: Literal["LineString"] = "LineString"
    coordinates: Tuple[Position, ...]

    @property
    def points(self) -> Tuple[Position, ...]:
        return self.coordinates


Geometry = Annotated[Union[PointGeometry, LineStringGeometry], Field(discriminator="type")]


class Feature(BaseModel):
    model_config = ConfigDict(frozen=True)

    type: Literal["Feature"] = "Feature"
    geometry: Geometry
    properties: Optional[Dict[str, Any]] = None

    def prop(self, key: str, default: Any = None) -> Any:
        """Feature property lookup that tolerates ``properties: null``."""
        if not self.properties:
            return default
        return self.properties.get(key, default)


class RouteProperties(BaseModel):
    # Extra planner keys (e.g. ``days``) are kept as-is
    model_config = ConfigDict(frozen=True, extra="allow")

    title: str = Field(min_length=1, max_length=MAX_TITLE_LENGTH)
    total_distance_km: float = Field(gt=0)
    total_duration_h: float = Field(gt=0)
    highlights: Optional[Tuple[str, ...]] = None


class RouteGeo(BaseModel):
    model_config = ConfigDict(frozen=True)

    type: Literal["FeatureCollection"] = "FeatureCollection"
    properties: RouteProperties
    features: Tuple[Feature, ...] = Field(min_length=1)

    @property
    def title(self) -> str:
        return self.properties.title

    def points(self) -> Iterator[Feature]:
        """Point features in document order."""
        return (f for f in self.features if isinstance(f.geometry, PointGeometry))

    def line_strings(self) -> Iterator[Feature]:
        """LineString features in document order."""
        return (f for f in self.features if isinstance(f.geometry, LineStringGeometry))

    def to_geojson(self) -> Dict[str, Any]:
        """Plain GeoJSON dict suitable for JSON storage and re-validation."""
        properties = self.properties.model_dump(mode="json")
        if properties.get("highlights") is None:
            properties.pop("highlights", None)

        features: List[Dict[str, Any]] = []
        for feature in self.features:
            geometry = feature.geometry
            if isinstance(geometry, PointGeometry):
                coordinates: Any = [geometry.lon, geometry.lat]
            else:
                coordinates = [[p.lon, p.lat] for p in geometry.points]
            features.append(
                {
                    "type": "Feature",
                    "geometry": {"type": geometry.type, "coordinates": coordinates},
                    "properties": dict(feature.properties) if feature.properties is not None else None,
                }
            )

        return {"type": "FeatureCollection", "properties": properties, "features": features}
