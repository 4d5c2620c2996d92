"""
Video Upload Service - Single Responsibility: chunked video transfer.

Flow:
1. Request an upload session -> server issues {upload_url, job}
2. Split the file into exactly 4 contiguous byte ranges
3. POST the ranges strictly in order, each with its Content-Range
4. Complete once range 3 succeeds; Failed once a range runs out of attempts
"""
import asyncio
import json
import logging
import random
from pathlib import Path
from typing import Callable, List, Optional

from ..errors import InvalidInput, TransferFailed
from ..models import AssetDescriptor, ChunkRange, Destination, SessionContext, UploadSession
from ..protocols import ITransferClient
from .ids import generate_upload_id

logger = logging.getLogger(__name__)

VIDEO_ENDPOINT = "upload/video/"
CHUNK_COUNT = 4
UPLOAD_URL_INDEX = 3
CROP_OFFSET_MAX = 128

ProgressCallback = Callable[[int, int], None]


def plan_chunks(total_bytes: int, parts: int = CHUNK_COUNT) -> List[ChunkRange]:
    """
    Split [0, total_bytes) into ``parts`` contiguous ranges.

    All but the last range are ``total_bytes // parts`` long; the last one
    absorbs the remainder.
    """
    if total_bytes < 0:
        raise InvalidInput("Byte count can't be negative.")
    size = total_bytes // parts
    chunks = []
    for index in range(parts):
        start = index * size
        end = total_bytes if index == parts - 1 else start + size
        chunks.append(ChunkRange(index=index, start=start, end=end))
    return chunks


def _read_range(path: Path, chunk: ChunkRange) -> bytes:
    with open(path, "rb") as f:
        f.seek(chunk.start)
        return f.read(chunk.length)


class VideoUploadService:
    """
    Transfers a video's bytes through a server-issued upload session.

    Chunks are never sent in parallel: the server indexes them by position.
    """

    def __init__(
        self,
        client: ITransferClient,
        session: SessionContext,
        rng: Optional[random.Random] = None,
    ):
        self._client = client
        self._session = session
        self._rng = rng or random.Random()

    async def request_session(
        self,
        destination: Destination,
        descriptor: AssetDescriptor,
    ) -> UploadSession:
        """
        Ask the server where to upload a new video.

        Args:
            destination: timeline, story, album or direct_v2
            descriptor: Video being uploaded (album sessions only use its path)

        Returns:
            UploadSession with url, job and chunk plan
        """
        destination = Destination.parse(destination)
        if descriptor is None or not descriptor.is_video:
            raise InvalidInput("A video descriptor is required to request an upload session.")
        upload_id = generate_upload_id()

        fields = {
            "upload_id": upload_id,
            "_csrftoken": self._session.csrf_token,
            "_uuid": self._session.uuid,
        }

        if destination is Destination.ALBUM:
            fields["is_sidecar"] = "1"
        else:
            fields.update({
                "media_type": "2",
                "upload_media_duration_ms": str(descriptor.duration_ms),
                "upload_media_width": str(descriptor.width),
                "upload_media_height": str(descriptor.height),
            })
            if destination is Destination.DIRECT:
                crop_x = self._rng.randint(0, CROP_OFFSET_MAX)
                crop_y = self._rng.randint(0, CROP_OFFSET_MAX)
                fields.update({
                    "upload_media_width": "0",
                    "upload_media_height": "0",
                    "direct_v2": "1",
                    "hflip": "false",
                    "rotate": "0",
                    "crop_rect": json.dumps([
                        crop_x,
                        crop_y,
                        crop_x + descriptor.width,
                        crop_y + descriptor.height,
                    ]),
                })

        response = await self._client.send(VIDEO_ENDPOINT, fields, multipart=False, signed=False)
        if not response.ok:
            raise TransferFailed(
                f"Video upload session request failed: {response.message}",
                status_code=response.status_code,
            )

        urls = response.body.get("video_upload_urls") or []
        try:
            target = urls[UPLOAD_URL_INDEX]
            upload_url, job = target["url"], target["job"]
        except (IndexError, KeyError, TypeError):
            raise TransferFailed("Server did not return a usable video upload url.") from None

        total = descriptor.path.stat().st_size
        logger.info("Video upload session %s issued (%d bytes)", upload_id, total)
        return UploadSession(
            upload_id=upload_id,
            upload_url=upload_url,
            job=job,
            path=descriptor.path,
            total_bytes=total,
            chunks=tuple(plan_chunks(total)),
        )

    async def transfer(
        self,
        session: UploadSession,
        max_attempts: int,
        progress_callback: Optional[ProgressCallback] = None,
    ) -> None:
        """
        Send all chunks of ``session`` in order.

        Args:
            session: Session from request_session()
            max_attempts: Attempts per chunk before giving up
            progress_callback: Called with (bytes_sent, total_bytes) after each chunk

        Raises:
            TransferFailed: a chunk exhausted its attempts
        """
        if max_attempts < 1:
            raise InvalidInput("The maxAttempts parameter must be 1 or higher.")

        path = session.path
        if not path.is_file():
            raise InvalidInput(f'The video file "{path}" does not exist on disk.')

        total = path.stat().st_size
        chunks = session.chunks
        if session.total_bytes != total or not chunks:
            chunks = tuple(plan_chunks(total))

        loop = asyncio.get_running_loop()
        for chunk in chunks:
            data = await loop.run_in_executor(None, _read_range, path, chunk)
            await self._send_chunk(session, chunk, data, total, max_attempts)
            if progress_callback:
                progress_callback(chunk.end, total)

        logger.info("Video %s transferred in %d chunks", session.upload_id, len(chunks))

    async def _send_chunk(
        self,
        session: UploadSession,
        chunk: ChunkRange,
        data: bytes,
        total: int,
        max_attempts: int,
    ) -> None:
        headers = {
            "Session-ID": session.upload_id,
            "job": session.job,
            "Content-Type": "application/octet-stream",
            "Content-Disposition": 'attachment; filename="video.mov"',
            "Content-Range": chunk.content_range(total),
        }

        last_error: Optional[str] = None
        for attempt in range(1, max_attempts + 1):
            try:
                response = await self._client.send_bytes(session.upload_url, data, headers)
            except TransferFailed as exc:
                last_error = str(exc)
            else:
                if response.http_ok:
                    logger.debug("Chunk %d (%s) sent", chunk.index, headers["Content-Range"])
                    return
                last_error = f"HTTP {response.status_code}: {response.message}"

            if attempt < max_attempts:
                logger.warning(
                    "Chunk %d of %s failed (attempt %d/%d): %s",
                    chunk.index, session.upload_id, attempt, max_attempts, last_error,
                )

        raise TransferFailed(
            f"Upload of chunk {chunk.index} failed after {max_attempts} attempts: {last_error}"
        )
