"""Single asset publishing handlers."""
import logging
from pathlib import Path
from typing import Any, Dict, Optional

from ..errors import InvalidInput
from ..models import Destination, InternalMetadata, MediaKind, PublishConfig
from ..services.configure import ConfigureEngine
from ..services.inspector import AssetInspector
from ..services.photo_upload import PhotoUploadService
from ..services.retry import configure_with_retries
from ..services.video_upload import ProgressCallback, VideoUploadService

logger = logging.getLogger(__name__)

SINGLE_DESTINATIONS = (Destination.TIMELINE, Destination.STORY)


def _single_destination(destination) -> Destination:
    destination = Destination.parse(destination)
    if destination not in SINGLE_DESTINATIONS:
        raise InvalidInput(f'Bad target feed "{destination.value}".')
    return destination


class SingleUploadHandler:
    """Handles one photo or one video, from local file to configured post."""

    def __init__(
        self,
        inspector: AssetInspector,
        photos: PhotoUploadService,
        videos: VideoUploadService,
        configurer: ConfigureEngine,
        config: PublishConfig,
    ):
        """
        Initialize single upload handler.

        Args:
            inspector: AssetInspector
            photos: PhotoUploadService
            videos: VideoUploadService
            configurer: ConfigureEngine
            config: PublishConfig
        """
        self._inspector = inspector
        self._photos = photos
        self._videos = videos
        self._configurer = configurer
        self._config = config

    async def upload_single_photo(
        self,
        destination: Destination,
        path: Path,
        external: Optional[Any] = None,
    ) -> Dict[str, Any]:
        """Inspect, upload and configure a photo on the timeline or story."""
        destination = _single_destination(destination)
        path = Path(path)

        descriptor = await self._inspector.inspect_async(path, MediaKind.PHOTO)
        self._inspector.validate(destination, descriptor)

        upload_id = await self._photos.upload_photo(destination, path)
        internal = InternalMetadata(upload_id=upload_id, descriptor=descriptor)
        return await self.configure_single_photo(destination, internal, external)

    async def upload_single_video(
        self,
        destination: Destination,
        path: Path,
        external: Optional[Any] = None,
        max_attempts: Optional[int] = None,
        progress_callback: Optional[ProgressCallback] = None,
    ) -> Dict[str, Any]:
        """
        Inspect, transfer and configure a video on the timeline or story.

        Args:
            destination: timeline or story
            path: Video file
            external: caption/location/usertags mapping
            max_attempts: Attempts per chunk (defaults to config.chunk_attempts)
            progress_callback: Called with (bytes_sent, total_bytes)

        Returns:
            Decoded body of the successful configure response
        """
        if max_attempts is None:
            max_attempts = self._config.chunk_attempts
        if max_attempts < 1:
            raise InvalidInput("The maxAttempts parameter must be 1 or higher.")
        destination = _single_destination(destination)
        path = Path(path)

        descriptor = await self._inspector.inspect_async(path, MediaKind.VIDEO)
        self._inspector.validate(destination, descriptor)

        session = await self._videos.request_session(destination, descriptor)
        await self._videos.transfer(session, max_attempts, progress_callback)

        # The thumbnail is stored under the video's own upload id.
        await self._photos.upload_video_thumbnail(destination, path, session.upload_id)

        internal = InternalMetadata(upload_id=session.upload_id, descriptor=descriptor)
        return await self.configure_single_video_with_retries(destination, internal, external)

    async def configure_single_photo(
        self,
        destination: Destination,
        internal: InternalMetadata,
        external: Optional[Any] = None,
    ) -> Dict[str, Any]:
        return await self._configurer.configure_photo(
            _single_destination(destination), internal, external
        )

    async def configure_single_video(
        self,
        destination: Destination,
        internal: InternalMetadata,
        external: Optional[Any] = None,
    ) -> Dict[str, Any]:
        return await self._configurer.configure_video(
            _single_destination(destination), internal, external
        )

    async def configure_single_video_with_retries(
        self,
        destination: Destination,
        internal: InternalMetadata,
        external: Optional[Any] = None,
        max_attempts: Optional[int] = None,
    ) -> Dict[str, Any]:
        """Configure a video, retrying while the server is still transcoding it."""
        if max_attempts is None:
            max_attempts = self._config.configure_attempts
        logger.info("Configuring video %s", internal.upload_id)
        return await configure_with_retries(
            lambda: self.configure_single_video(destination, internal, external),
            max_attempts=max_attempts,
            delay=self._config.retry_delay,
        )
