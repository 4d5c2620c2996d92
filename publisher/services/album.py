"""
Album Aggregator - Single Responsibility: compose one sidecar configure call.

Items must already be uploaded; no request is made per item.
"""
import json
import time
from typing import Any, Callable, Dict, Optional, Sequence

from ..errors import InvalidInput
from ..models import AlbumItem, ExternalMetadata, MediaKind, SessionContext
from .ids import generate_upload_id
from .payloads import ALBUM_ZERO_PAIR, ConfigureRequest, location_fields, session_fields

ALBUM_ENDPOINT = "media/configure_sidecar/"
EXIF_DATE_FORMAT = "%Y:%m:%d %H:%M:%S"


class AlbumAggregator:
    """Builds the configure_sidecar request for an ordered list of items."""

    def __init__(
        self,
        session: SessionContext,
        clock: Callable[[], float] = time.time,
    ):
        self._session = session
        self._clock = clock

    def build(
        self,
        items: Sequence[AlbumItem],
        external: Optional[ExternalMetadata] = None,
    ) -> ConfigureRequest:
        """
        Build the album request.

        Args:
            items: Uploaded items in display order
            external: Album-wide caption and location

        Returns:
            ConfigureRequest for media/configure_sidecar/
        """
        if not items:
            raise InvalidInput("An album needs at least one item.")
        external = ExternalMetadata.from_mapping(external)

        # One timestamp for the whole album.
        date = time.strftime(EXIF_DATE_FORMAT, time.localtime(self._clock()))
        children = [self._child(item, date) for item in items]

        fields: Dict[str, Any] = session_fields(self._session)
        fields.update({
            "client_sidecar_id": generate_upload_id(),
            "caption": external.caption,
            "children_metadata": children,
        })
        fields.update(location_fields(external.location, zero_pair=ALBUM_ZERO_PAIR))
        return ConfigureRequest(ALBUM_ENDPOINT, fields)

    def _child(self, item: AlbumItem, date: str) -> Dict[str, Any]:
        if item.kind is MediaKind.PHOTO:
            return self._photo_child(item, date)
        if item.kind is MediaKind.VIDEO:
            return self._video_child(item, date)
        raise InvalidInput(f"Unsupported album item kind: {item.kind!r}")

    @staticmethod
    def _photo_child(item: AlbumItem, date: str) -> Dict[str, Any]:
        child = {
            "date_time_original": date,
            "scene_type": 1,
            "disable_comments": False,
            "upload_id": item.upload_id,
            "source_type": 0,
            "scene_capture_type": "standard",
            "date_time_digitized": date,
            "geotag_enabled": False,
            "camera_position": "back",
            "edits": {
                "filter_strength": 1,
                "filter_name": "IGNormalFilter",
            },
        }
        # per-item user tags are only supported on photos
        if item.usertags is not None:
            child["usertags"] = json.dumps({"in": list(item.usertags)})
        return child

    @staticmethod
    def _video_child(item: AlbumItem, date: str) -> Dict[str, Any]:
        length = item.internal.descriptor.rounded_length
        if length is None:
            raise InvalidInput(f"Album video {item.upload_id} has no duration.")
        return {
            "length": length,
            "date_time_original": date,
            "scene_type": 1,
            "poster_frame_index": 0,
            "trim_type": 0,
            "disable_comments": False,
            "upload_id": item.upload_id,
            "source_type": "library",
            "geotag_enabled": False,
            "edits": {
                "length": length,
                "cinema": "unsupported",
                "original_length": length,
                "source_type": "library",
                "start_time": 0,
                "camera_position": "unknown",
                "trim_type": 0,
            },
        }
