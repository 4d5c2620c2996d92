"""Payload pieces shared by the configure builders."""
import json
from dataclasses import dataclass, field
from typing import Any, Dict, Optional

from ..models import Location, SessionContext

# Zero-coordinate pair sent next to a location; albums use the exif names.
SINGLE_MEDIA_ZERO_PAIR = ("av_latitude", "av_longitude")
ALBUM_ZERO_PAIR = ("exif_latitude", "exif_longitude")


@dataclass(frozen=True)
class ConfigureRequest:
    """Endpoint, signed fields and query params of one configure call."""
    endpoint: str
    fields: Dict[str, Any]
    params: Dict[str, Any] = field(default_factory=dict)


def session_fields(session: SessionContext) -> Dict[str, Any]:
    return {
        "_csrftoken": session.csrf_token,
        "_uid": session.account_id,
        "_uuid": session.uuid,
    }


def location_fields(
    location: Optional[Location],
    zero_pair=SINGLE_MEDIA_ZERO_PAIR,
) -> Dict[str, Any]:
    """
    Geotag fields for ``location``; empty when there is none.

    The coordinates are repeated under the posting_* and media_* names.
    """
    if location is None:
        return {}
    zero_lat, zero_lng = zero_pair
    return {
        "location": json.dumps(location.to_payload()),
        "geotag_enabled": "1",
        "posting_latitude": location.lat,
        "posting_longitude": location.lng,
        "media_latitude": location.lat,
        "media_longitude": location.lng,
        zero_lat: 0.0,
        zero_lng: 0.0,
    }
