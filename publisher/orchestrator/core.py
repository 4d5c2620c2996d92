"""Core orchestrator - coordinates all publishing workflows."""
from pathlib import Path
from typing import Any, Dict, Mapping, Optional, Sequence

from ..models import (
    AlbumItem,
    Destination,
    InternalMetadata,
    PublishConfig,
    SessionContext,
)
from ..protocols import IAssetProbe, ITransferClient
from ..services.configure import ConfigureEngine
from ..services.device import DeviceProfile
from ..services.inspector import AssetInspector
from ..services.photo_upload import PhotoUploadService
from ..services.probe import FFmpegProbe
from ..services.transfer import HTTPTransferClient
from ..services.video_upload import ProgressCallback, VideoUploadService

from .album_upload import AlbumUploadHandler
from .single_upload import SingleUploadHandler


class PublishOrchestrator:
    """
    Orchestrates uploads and configures using injected services.

    Follows:
    - Dependency Injection (transfer client and probe can be injected)
    - Single Responsibility (delegates to handlers)
    - Open/Closed (extend via new handlers)

    Usage:
        session = SessionContext(uuid, csrf_token, account_id, cookies)
        async with PublishOrchestrator(session) as publisher:
            body = await publisher.upload_single_photo("timeline", path, {"caption": "hi"})

        # With a custom transport (tests, proxies)
        async with PublishOrchestrator(session, client=my_client) as publisher:
            ...
    """

    def __init__(
        self,
        session: SessionContext,
        config: Optional[PublishConfig] = None,
        device: Optional[DeviceProfile] = None,
        client: Optional[ITransferClient] = None,
        probe: Optional[IAssetProbe] = None,
    ):
        """
        Initialize orchestrator with dependencies.

        Args:
            session: Authenticated session values
            config: Publishing configuration
            device: Device profile (defaults to the stock device string)
            client: Pre-built transfer client; an HTTPTransferClient is opened otherwise
            probe: Asset probe (defaults to FFmpegProbe)
        """
        self._session = session
        self._config = config or PublishConfig()
        self._device = device or DeviceProfile.from_string()
        self._external_client = client
        self._probe = probe or FFmpegProbe()

        # Initialized in __aenter__
        self._http_client: Optional[HTTPTransferClient] = None
        self._single_handler: Optional[SingleUploadHandler] = None
        self._album_handler: Optional[AlbumUploadHandler] = None

    async def __aenter__(self):
        """Initialize services and handlers."""
        if self._external_client is not None:
            client = self._external_client
        else:
            self._http_client = HTTPTransferClient(self._session, self._device, self._config)
            await self._http_client.__aenter__()
            client = self._http_client

        inspector = AssetInspector(self._probe)
        photos = PhotoUploadService(client, self._session, self._probe)
        videos = VideoUploadService(client, self._session)
        configurer = ConfigureEngine(client, self._session, self._device)

        self._single_handler = SingleUploadHandler(
            inspector, photos, videos, configurer, self._config
        )
        self._album_handler = AlbumUploadHandler(
            inspector, photos, videos, configurer, self._config
        )
        return self

    async def __aexit__(self, *args):
        """Cleanup resources."""
        if self._http_client:
            await self._http_client.__aexit__(*args)
            self._http_client = None

    async def upload_single_photo(
        self,
        destination: Destination,
        path: Path,
        external: Optional[Any] = None,
    ) -> Dict[str, Any]:
        """Upload a photo to the timeline or story."""
        assert self._single_handler is not None
        return await self._single_handler.upload_single_photo(destination, path, external)

    async def upload_single_video(
        self,
        destination: Destination,
        path: Path,
        external: Optional[Any] = None,
        max_attempts: Optional[int] = None,
        progress_callback: Optional[ProgressCallback] = None,
    ) -> Dict[str, Any]:
        """Upload a video to the timeline or story."""
        assert self._single_handler is not None
        return await self._single_handler.upload_single_video(
            destination, path, external, max_attempts, progress_callback
        )

    async def upload_album(
        self,
        media: Sequence[Mapping[str, Any]],
        external: Optional[Any] = None,
        max_attempts: Optional[int] = None,
        progress_callback: Optional[ProgressCallback] = None,
    ) -> Dict[str, Any]:
        """Upload 2-10 photos/videos as one timeline post."""
        assert self._album_handler is not None
        return await self._album_handler.upload_album(
            media, external, max_attempts, progress_callback
        )

    async def configure_single_photo(
        self,
        destination: Destination,
        internal: InternalMetadata,
        external: Optional[Any] = None,
    ) -> Dict[str, Any]:
        assert self._single_handler is not None
        return await self._single_handler.configure_single_photo(destination, internal, external)

    async def configure_single_video(
        self,
        destination: Destination,
        internal: InternalMetadata,
        external: Optional[Any] = None,
    ) -> Dict[str, Any]:
        assert self._single_handler is not None
        return await self._single_handler.configure_single_video(destination, internal, external)

    async def configure_single_video_with_retries(
        self,
        destination: Destination,
        internal: InternalMetadata,
        external: Optional[Any] = None,
        max_attempts: Optional[int] = None,
    ) -> Dict[str, Any]:
        assert self._single_handler is not None
        return await self._single_handler.configure_single_video_with_retries(
            destination, internal, external, max_attempts
        )

    async def configure_timeline_album(
        self,
        items: Sequence[AlbumItem],
        external: Optional[Any] = None,
    ) -> Dict[str, Any]:
        assert self._album_handler is not None
        return await self._album_handler.configure_timeline_album(items, external)

    async def configure_timeline_album_with_retries(
        self,
        items: Sequence[AlbumItem],
        external: Optional[Any] = None,
        max_attempts: Optional[int] = None,
    ) -> Dict[str, Any]:
        assert self._album_handler is not None
        return await self._album_handler.configure_timeline_album_with_retries(
            items, external, max_attempts
        )
