"""
Configure Engine - Single Responsibility: attach uploaded assets to a feed.

One builder per (destination, media kind) pair. Each builder produces its
own field set; new destinations get a new builder rather than more branches
inside an existing one.
"""
import json
import logging
import random
import time
from typing import Any, Callable, Dict, Optional, Sequence, Tuple

from ..errors import ConfigureFailed, InvalidInput
from ..models import (
    AlbumItem,
    Destination,
    ExternalMetadata,
    InternalMetadata,
    MediaKind,
    SessionContext,
)
from ..protocols import IDeviceProfile, ITransferClient
from .album import AlbumAggregator
from .device import DeviceProfile
from .payloads import ConfigureRequest, location_fields, session_fields

logger = logging.getLogger(__name__)

TIMELINE_ENDPOINT = "media/configure/"
STORY_ENDPOINT = "media/configure_to_story/"

Builder = Callable[[InternalMetadata, ExternalMetadata], ConfigureRequest]


class ConfigureEngine:
    """
    Builds and submits configure requests.

    Usage:
        engine = ConfigureEngine(client, session, device)
        body = await engine.configure_photo("timeline", internal, {"caption": "hi"})
    """

    def __init__(
        self,
        client: ITransferClient,
        session: SessionContext,
        device: Optional[IDeviceProfile] = None,
        clock: Callable[[], float] = time.time,
        rng: Optional[random.Random] = None,
    ):
        self._client = client
        self._session = session
        self._device = device or DeviceProfile.from_string()
        self._clock = clock
        self._rng = rng or random.Random()
        self._album = AlbumAggregator(session, clock=clock)
        self._builders: Dict[Tuple[Destination, MediaKind], Builder] = {
            (Destination.TIMELINE, MediaKind.PHOTO): self._timeline_photo,
            (Destination.STORY, MediaKind.PHOTO): self._story_photo,
            (Destination.TIMELINE, MediaKind.VIDEO): self._timeline_video,
            (Destination.STORY, MediaKind.VIDEO): self._story_video,
        }

    # ------------------------------------------------------------------
    # Public API
    # ------------------------------------------------------------------

    def build(
        self,
        destination: Destination,
        internal: InternalMetadata,
        external: Optional[Any] = None,
    ) -> ConfigureRequest:
        """Build the configure request for one uploaded asset."""
        destination = Destination.parse(destination)
        key = (destination, internal.descriptor.kind)
        builder = self._builders.get(key)
        if builder is None:
            raise InvalidInput(
                f'Bad target feed "{destination.value}" for a {key[1].value}.'
            )
        return builder(internal, ExternalMetadata.from_mapping(external))

    async def configure_photo(
        self,
        destination: Destination,
        internal: InternalMetadata,
        external: Optional[Any] = None,
    ) -> Dict[str, Any]:
        if internal.descriptor.kind is not MediaKind.PHOTO:
            raise InvalidInput("configure_photo() needs photo metadata.")
        return await self.submit(self.build(destination, internal, external))

    async def configure_video(
        self,
        destination: Destination,
        internal: InternalMetadata,
        external: Optional[Any] = None,
    ) -> Dict[str, Any]:
        if internal.descriptor.kind is not MediaKind.VIDEO:
            raise InvalidInput("configure_video() needs video metadata.")
        return await self.submit(self.build(destination, internal, external))

    async def configure_album(
        self,
        items: Sequence[AlbumItem],
        external: Optional[Any] = None,
    ) -> Dict[str, Any]:
        return await self.submit(self._album.build(items, ExternalMetadata.from_mapping(external)))

    async def submit(self, request: ConfigureRequest) -> Dict[str, Any]:
        """Send a configure request; raise ConfigureFailed unless the server says ok."""
        response = await self._client.send(
            request.endpoint,
            request.fields,
            multipart=False,
            signed=True,
            params=request.params or None,
        )
        if not response.ok:
            logger.debug("Configure %s rejected: %s", request.endpoint, response.body)
            raise ConfigureFailed(response.message, status_code=response.status_code)

        logger.info("Configured %s (upload_id=%s)",
                    request.endpoint, request.fields.get("upload_id", "-"))
        return response.body

    # ------------------------------------------------------------------
    # Builders
    # ------------------------------------------------------------------

    def _now(self) -> int:
        return int(self._clock())

    def _photo_base(self, internal: InternalMetadata) -> Dict[str, Any]:
        width = internal.descriptor.width
        height = internal.descriptor.height
        fields = session_fields(self._session)
        fields.update({
            "edits": {
                "crop_original_size": [width, height],
                "crop_zoom": 1,
                "crop_center": [0.0, -0.0],
            },
            "device": self._device.to_payload(),
            "extra": {
                "source_width": width,
                "source_height": height,
            },
        })
        return fields

    def _video_base(self, internal: InternalMetadata) -> Dict[str, Any]:
        descriptor = internal.descriptor
        fields = {
            "video_result": "deprecated",
            "upload_id": internal.upload_id,
            "poster_frame_index": 0,
            "length": descriptor.rounded_length,
            "audio_muted": False,
            "filter_type": 0,
            "source_type": 4,
            "device": self._device.to_payload(),
            "extra": {
                "source_width": descriptor.width,
                "source_height": descriptor.height,
            },
        }
        fields.update(session_fields(self._session))
        return fields

    def _timeline_photo(self, internal: InternalMetadata, external: ExternalMetadata) -> ConfigureRequest:
        fields = self._photo_base(internal)
        fields.update({
            "caption": external.caption,
            "source_type": 4,
            "media_folder": "Camera",
            "upload_id": internal.upload_id,
        })
        fields.update(location_fields(external.location))
        return ConfigureRequest(TIMELINE_ENDPOINT, fields)

    def _story_photo(self, internal: InternalMetadata, external: ExternalMetadata) -> ConfigureRequest:
        # stories take neither caption nor location
        now = self._now()
        fields = self._photo_base(internal)
        fields.update({
            "client_shared_at": now,
            "source_type": 3,
            "configure_mode": 1,
            "client_timestamp": now,
            "upload_id": internal.upload_id,
        })
        return ConfigureRequest(STORY_ENDPOINT, fields)

    def _timeline_video(self, internal: InternalMetadata, external: ExternalMetadata) -> ConfigureRequest:
        fields = self._video_base(internal)
        fields["caption"] = external.caption
        fields.update(location_fields(external.location))
        return ConfigureRequest(TIMELINE_ENDPOINT, fields, params={"video": 1})

    def _story_video(self, internal: InternalMetadata, external: ExternalMetadata) -> ConfigureRequest:
        now = self._now()
        fields = self._video_base(internal)
        fields.update({
            "configure_mode": 1,  # 1 = REEL_SHARE, 2 = DIRECT_STORY_SHARE
            "story_media_creation_date": now,
            "client_shared_at": now - self._rng.randint(3, 10),
            "client_timestamp": now,
            "caption": external.caption,
        })
        mentions = external.reel_mentions()
        if mentions:
            # sent as an opaque JSON string inside the signed body
            fields["reel_mentions"] = json.dumps([m.to_payload() for m in mentions])
        return ConfigureRequest(STORY_ENDPOINT, fields, params={"video": 1})
