"""Structural check of GPX documents before they are handed out."""

import xml.etree.ElementTree as ET
from dataclasses import dataclass, field
from typing import List

from viberide.core.exceptions import GPXConversionError
from viberide.services.route.gpx import GPX_NAMESPACE

_NS = {"gpx": GPX_NAMESPACE}


@dataclass
class GpxCheckResult:
    is_valid: bool
    errors: List[str] = field(default_factory=list)
    warnings: List[str] = field(default_factory=list)


def _check_point(element: ET.Element, label: str, errors: List[str]) -> None:
    for attribute, limit, word in (("lat", 90.0, "latitude"), ("lon", 180.0, "longitude")):
        raw = element.get(attribute)
        if raw is None:
            errors.append(f"{label}: missing {attribute} attribute")
            continue
        try:
            value = float(raw)
        except ValueError:
            errors.append(f"{label}: Invalid {word} ({raw})")
            continue
        if not -limit <= value <= limit:
            errors.append(f"{label}: Invalid {word} ({raw})")


def check_gpx(content: str) -> GpxCheckResult:
    """Check that ``content`` is a usable GPX 1.1 document.

    Hard problems (no root, wrong version or namespace, nothing to navigate,
    out-of-range coordinates) are errors; missing metadata or names are
    warnings.
    """
    errors: List[str] = []
    warnings: List[str] = []

    if not content or not content.strip():
        return GpxCheckResult(is_valid=False, errors=["GPX content is empty"])

    if not content.lstrip().startswith('<?xml version="1.0"'):
        errors.append("Missing XML declaration")

    try:
        root = ET.fromstring(content.encode("utf-8"))
    except ET.ParseError as e:
        errors.append(f"GPX is not well-formed XML: {e}")
        return GpxCheckResult(is_valid=False, errors=errors, warnings=warnings)

    if root.tag != f"{{{GPX_NAMESPACE}}}gpx":
        if root.tag.endswith("gpx"):
            errors.append("Missing or incorrect GPX namespace")
        else:
            errors.append("Missing <gpx> root element")
        return GpxCheckResult(is_valid=False, errors=errors, warnings=warnings)

    if root.get("version") != "1.1":
        errors.append("Missing or incorrect GPX version (must be 1.1)")

    if root.find("gpx:metadata", _NS) is None:
        warnings.append("Missing <metadata> element (recommended)")

    waypoints = root.findall("gpx:wpt", _NS)
    routes = root.findall("gpx:rte", _NS)
    tracks = root.findall("gpx:trk", _NS)

    if not waypoints and not routes and not tracks:
        errors.append("GPX must contain at least one waypoint, route, or track")

    for index, waypoint in enumerate(waypoints, start=1):
        _check_point(waypoint, f"Waypoint {index}", errors)
    if any(w.find("gpx:name", _NS) is None for w in waypoints):
        warnings.append("Some waypoints missing <name> element (recommended)")

    if routes:
        if any(r.find("gpx:name", _NS) is None for r in routes):
            warnings.append("Some routes missing <name> element (recommended)")
        route_points = [p for r in routes for p in r.findall("gpx:rtept", _NS)]
        if not route_points:
            errors.append("Routes missing route points (<rtept>)")
        for index, point in enumerate(route_points, start=1):
            _check_point(point, f"Route point {index}", errors)

    return GpxCheckResult(is_valid=not errors, errors=errors, warnings=warnings)


def assert_valid_gpx(content: str) -> None:
    """Raise :class:`GPXConversionError` listing every error in ``content``."""
    result = check_gpx(content)
    if not result.is_valid:
        raise GPXConversionError("Invalid GPX file:\n" + "\n".join(result.errors))
