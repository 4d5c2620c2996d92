"""
Photo Upload Service - Single Responsibility: transfer one photo's bytes.

Also uploads video thumbnails, which travel through the same endpoint.
"""
import asyncio
import json
import logging
from pathlib import Path
from typing import Optional

from ..errors import InvalidInput, TransferFailed
from ..models import Destination, SessionContext
from ..protocols import IAssetProbe, ITransferClient
from .ids import generate_upload_id
from .probe import FFmpegProbe

logger = logging.getLogger(__name__)

PHOTO_ENDPOINT = "upload/photo/"
IMAGE_COMPRESSION = json.dumps(
    {"lib_name": "jt", "lib_version": "1.3.0", "quality": "87"},
    separators=(",", ":"),
)


class PhotoUploadService:
    """Uploads raw photo (or video thumbnail) bytes and returns the upload id."""

    def __init__(
        self,
        client: ITransferClient,
        session: SessionContext,
        probe: Optional[IAssetProbe] = None,
    ):
        self._client = client
        self._session = session
        self._probe = probe or FFmpegProbe()

    async def upload_photo(
        self,
        destination: Destination,
        path: Path,
        upload_id: Optional[str] = None,
    ) -> str:
        """
        Upload the bytes of a photo file.

        Args:
            destination: Target feed (timeline, story or album)
            path: Photo file
            upload_id: Custom upload id, generated when omitted

        Returns:
            The upload id the server now associates with the bytes
        """
        path = Path(path)
        if not path.is_file():
            raise InvalidInput(f'The photo file "{path}" does not exist on disk.')

        loop = asyncio.get_running_loop()
        data = await loop.run_in_executor(None, path.read_bytes)
        return await self._send(Destination.parse(destination), data, upload_id, is_thumbnail=False)

    async def upload_video_thumbnail(
        self,
        destination: Destination,
        path: Path,
        upload_id: str,
    ) -> str:
        """Upload a frame of ``path`` under its parent video's upload id."""
        path = Path(path)
        if not path.is_file():
            raise InvalidInput(f'The video file "{path}" does not exist on disk.')
        if not upload_id:
            raise InvalidInput("A video thumbnail needs its video's upload id.")

        loop = asyncio.get_running_loop()
        data = await loop.run_in_executor(None, self._probe.video_thumbnail, path)
        return await self._send(Destination.parse(destination), data, upload_id, is_thumbnail=True)

    async def _send(
        self,
        destination: Destination,
        data: bytes,
        upload_id: Optional[str],
        is_thumbnail: bool,
    ) -> str:
        upload_id = upload_id or generate_upload_id()

        fields = {
            "upload_id": upload_id,
            "_uuid": self._session.uuid,
            "_csrftoken": self._session.csrf_token,
            "image_compression": IMAGE_COMPRESSION,
        }
        if destination is Destination.ALBUM:
            fields["is_sidecar"] = "1"
            if is_thumbnail:
                fields["media_type"] = "2"

        filename = f"pending_media_{generate_upload_id()}.jpg"
        response = await self._client.send(
            PHOTO_ENDPOINT,
            fields,
            multipart=True,
            signed=False,
            files={"photo": (filename, data, "application/octet-stream")},
        )
        if not response.ok:
            raise TransferFailed(
                f"Photo upload {upload_id} failed: {response.message}",
                status_code=response.status_code,
            )

        logger.info("Uploaded %s %s (%d bytes)",
                    "thumbnail" if is_thumbnail else "photo", upload_id, len(data))
        return upload_id
