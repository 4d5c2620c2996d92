"""Album (multi-item post) handler."""
import logging
from dataclasses import dataclass
from pathlib import Path
from typing import Any, Dict, List, Mapping, Optional, Sequence

from ..errors import InvalidInput
from ..models import (
    AlbumItem,
    AssetDescriptor,
    Destination,
    InternalMetadata,
    MediaKind,
    PublishConfig,
)
from ..services.configure import ConfigureEngine
from ..services.inspector import AssetInspector
from ..services.photo_upload import PhotoUploadService
from ..services.retry import configure_with_retries
from ..services.video_upload import ProgressCallback, VideoUploadService

logger = logging.getLogger(__name__)

MIN_ALBUM_ITEMS = 2
MAX_ALBUM_ITEMS = 10


@dataclass(frozen=True)
class _AlbumEntry:
    descriptor: AssetDescriptor
    usertags: Optional[Sequence[Any]] = None


class AlbumUploadHandler:
    """
    Uploads every item of an album, then configures them as one post.

    All items are inspected and validated before the first byte is sent.
    """

    def __init__(
        self,
        inspector: AssetInspector,
        photos: PhotoUploadService,
        videos: VideoUploadService,
        configurer: ConfigureEngine,
        config: PublishConfig,
    ):
        self._inspector = inspector
        self._photos = photos
        self._videos = videos
        self._configurer = configurer
        self._config = config

    async def upload_album(
        self,
        media: Sequence[Mapping[str, Any]],
        external: Optional[Any] = None,
        max_attempts: Optional[int] = None,
        progress_callback: Optional[ProgressCallback] = None,
    ) -> Dict[str, Any]:
        """
        Upload and configure an album.

        Args:
            media: Entries like {"type": "photo", "file": path, "usertags": [...]}
            external: Album-wide caption and location
            max_attempts: Attempts per video chunk (defaults to config.chunk_attempts)
            progress_callback: Called with (bytes_sent, total_bytes) for each video

        Returns:
            Decoded body of the successful configure_sidecar response
        """
        if max_attempts is None:
            max_attempts = self._config.chunk_attempts
        if max_attempts < 1:
            raise InvalidInput("The maxAttempts parameter must be 1 or higher.")
        if not MIN_ALBUM_ITEMS <= len(media) <= MAX_ALBUM_ITEMS:
            raise InvalidInput(
                f"Instagram only accepts {MIN_ALBUM_ITEMS} to {MAX_ALBUM_ITEMS} "
                f"media items in albums, got {len(media)}."
            )

        entries = [await self._inspect_entry(index, entry) for index, entry in enumerate(media)]

        items: List[AlbumItem] = []
        for entry in entries:
            upload_id = await self._upload_entry(entry, max_attempts, progress_callback)
            items.append(AlbumItem(
                kind=entry.descriptor.kind,
                internal=InternalMetadata(upload_id=upload_id, descriptor=entry.descriptor),
                usertags=entry.usertags,
            ))

        logger.info("Uploaded %d album items, configuring", len(items))
        return await self.configure_timeline_album_with_retries(items, external)

    async def configure_timeline_album(
        self,
        items: Sequence[AlbumItem],
        external: Optional[Any] = None,
    ) -> Dict[str, Any]:
        return await self._configurer.configure_album(items, external)

    async def configure_timeline_album_with_retries(
        self,
        items: Sequence[AlbumItem],
        external: Optional[Any] = None,
        max_attempts: Optional[int] = None,
    ) -> Dict[str, Any]:
        """Configure an album, retrying while its videos are still transcoding."""
        if max_attempts is None:
            max_attempts = self._config.configure_attempts
        return await configure_with_retries(
            lambda: self.configure_timeline_album(items, external),
            max_attempts=max_attempts,
            delay=self._config.retry_delay,
        )

    async def _inspect_entry(self, index: int, entry: Mapping[str, Any]) -> _AlbumEntry:
        if not isinstance(entry, Mapping) or "type" not in entry or "file" not in entry:
            raise InvalidInput(f"Album item {index} needs a type and a file.")
        try:
            kind = MediaKind(entry["type"])
        except ValueError:
            raise InvalidInput(
                f'Unsupported album media type "{entry["type"]}".'
            ) from None

        descriptor = await self._inspector.inspect_async(Path(entry["file"]), kind)
        self._inspector.validate(Destination.ALBUM, descriptor)
        return _AlbumEntry(descriptor=descriptor, usertags=entry.get("usertags"))

    async def _upload_entry(
        self,
        entry: _AlbumEntry,
        max_attempts: int,
        progress_callback: Optional[ProgressCallback],
    ) -> str:
        descriptor = entry.descriptor
        if descriptor.kind is MediaKind.PHOTO:
            return await self._photos.upload_photo(Destination.ALBUM, descriptor.path)

        session = await self._videos.request_session(Destination.ALBUM, descriptor)
        await self._videos.transfer(session, max_attempts, progress_callback)
        await self._photos.upload_video_thumbnail(
            Destination.ALBUM, descriptor.path, session.upload_id
        )
        return session.upload_id
