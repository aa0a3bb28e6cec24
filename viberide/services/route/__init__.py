"""Route validation, summary, GPX/KML export and navigation links."""

from viberide.services.route.filenames import sanitize_filename
from viberide.services.route.gpx import to_gpx
from viberide.services.route.gpx_checker import GpxCheckResult, assert_valid_gpx, check_gpx
from viberide.services.route.kml import to_kml
from viberide.services.route.links import LinkProvider, build_google_maps_link, build_mapy_link
from viberide.services.route.options import DEFAULT_CREATOR, ExportOptions
from viberide.services.route.summary import RouteSummary, extract_summary
from viberide.services.route.validator import is_valid_route_geo, validate_route_geo

__all__ = [
    "DEFAULT_CREATOR",
    "ExportOptions",
    "GpxCheckResult",
    "LinkProvider",
    "RouteSummary",
    "assert_valid_gpx",
    "build_google_maps_link",
    "build_mapy_link",
    "check_gpx",
    "extract_summary",
    "is_valid_route_geo",
    "sanitize_filename",
    "to_gpx",
    "to_kml",
    "validate_route_geo",
]
