"""Options shared by the GPX and KML converters."""

from dataclasses import dataclass
from datetime import datetime
from typing import Optional

DEFAULT_CREATOR = "VibeRide - https://viberide.com"


@dataclass(frozen=True)
class ExportOptions:
    """Rendering switches for an export.

    ``include_tracks`` only affects GPX. ``generated_at`` is written as the
    GPX metadata time; leave it unset to get output that depends on the route
    and options alone.
    """

    include_waypoints: bool = True
    include_routes: bool = True
    include_tracks: bool = False
    creator: str = DEFAULT_CREATOR
    generated_at: Optional[datetime] = None
